# finance models: transactions, summaries and lookup tables
# mirrors frontend types/finances.ts Transaction, Expense, FinancialSummary

import datetime as dt
from typing import Optional, Literal
from pydantic import BaseModel, Field, model_validator


class DateRange(BaseModel):
    start: dt.date
    end: dt.date

    @model_validator(mode="after")
    def _check_order(self):
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self


class Transaction(BaseModel):
    """a transactions row of type income"""
    id: int
    date: dt.date
    amount: float
    type: Literal["income", "expense"] = "income"
    status: str = "draft"
    source: Optional[str] = None
    category: Optional[str] = None
    client_name: Optional[str] = None
    client_id: Optional[int] = None
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    receipt_number: Optional[str] = None
    session_id: Optional[int] = None


class Expense(BaseModel):
    """a transactions row of type expense, payee and description come from client_name/source"""
    id: int
    date: dt.date
    amount: float
    type: Literal["expense"] = "expense"
    status: str = "draft"
    category: Optional[str] = None
    payee: str = ""
    description: str = ""
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    attachment_url: Optional[str] = None


class IncomeCreate(BaseModel):
    date: dt.date
    amount: float = Field(..., gt=0)
    source: str = ""
    category: str = ""
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    payment_method: str
    reference_number: Optional[str] = None
    receipt_number: Optional[str] = None
    session_id: Optional[int] = None
    status: str = "טיוטה"


class ExpenseCreate(BaseModel):
    date: dt.date
    amount: float = Field(..., gt=0)
    category: str
    payee: str = ""
    description: str = ""
    payment_method: str
    reference_number: Optional[str] = None
    status: str = "טיוטה"


class TransactionUpdate(BaseModel):
    date: Optional[dt.date] = None
    amount: Optional[float] = Field(None, gt=0)
    status: Optional[str] = None
    source: Optional[str] = None
    category: Optional[str] = None
    client_name: Optional[str] = None
    client_id: Optional[int] = None
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    receipt_number: Optional[str] = None
    attachment_url: Optional[str] = None


class FinancialSummary(BaseModel):
    total_income: float = Field(0.0, alias="totalIncome")
    total_expenses: float = Field(0.0, alias="totalExpenses")
    net_profit: float = Field(0.0, alias="netProfit")
    period: str = ""

    model_config = {"populate_by_name": True}


class MonthlyFinancePoint(BaseModel):
    """one month bucket of the finance chart"""
    month: str
    income: float = 0.0
    expenses: float = 0.0
    profit: float = 0.0


class FinanceCategory(BaseModel):
    id: int
    name: str
    type: Literal["income", "expense"]


class PaymentMethod(BaseModel):
    id: int
    name: str


class PaymentStats(BaseModel):
    total_received: float = Field(0.0, alias="totalReceived")
    outstanding_balance: float = Field(0.0, alias="outstandingBalance")

    model_config = {"populate_by_name": True}
