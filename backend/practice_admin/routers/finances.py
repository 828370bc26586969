# finances router: income and expense transactions, summaries and lookup tables
# every range endpoint takes either a period label or an explicit start/end pair

import logging
from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError

from practice_admin.dependencies import require_admin
from practice_admin.models.finance import (
    DateRange,
    Expense,
    ExpenseCreate,
    FinanceCategory,
    FinancialSummary,
    IncomeCreate,
    MonthlyFinancePoint,
    PaymentMethod,
    PaymentStats,
    Transaction,
    TransactionUpdate,
)
from practice_admin.services.finance_service import FinanceService, get_finance_service
from practice_admin.utils.periods import DEFAULT_PERIOD, get_date_range_for_period

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/finances", tags=["finances"], dependencies=[Depends(require_admin)])


def resolve_range(
    period: str = Query(DEFAULT_PERIOD, description="month, quarter, 3months or year"),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
) -> DateRange:
    """explicit start/end wins over the period label"""
    if start is None and end is None:
        return get_date_range_for_period(period)
    if start is None or end is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="start and end must be given together",
        )
    try:
        return DateRange(start=start, end=end)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end must not be before start",
        )


@router.get("/range", response_model=DateRange)
async def get_range(date_range: DateRange = Depends(resolve_range)):
    """the date range a period label resolves to"""
    return date_range


# transactions

@router.get("/income", response_model=list[Transaction])
async def list_income(
    date_range: DateRange = Depends(resolve_range),
    finance: FinanceService = Depends(get_finance_service),
):
    return await finance.get_income_transactions(date_range)


@router.post("/income", response_model=Transaction, status_code=status.HTTP_201_CREATED)
async def add_income(body: IncomeCreate, finance: FinanceService = Depends(get_finance_service)):
    return await finance.add_income(body)


@router.get("/expenses", response_model=list[Expense])
async def list_expenses(
    date_range: DateRange = Depends(resolve_range),
    finance: FinanceService = Depends(get_finance_service),
):
    return await finance.get_expense_transactions(date_range)


@router.post("/expenses", response_model=Expense, status_code=status.HTTP_201_CREATED)
async def add_expense(body: ExpenseCreate, finance: FinanceService = Depends(get_finance_service)):
    return await finance.add_expense(body)


@router.patch("/transactions/{transaction_id}")
async def update_transaction(
    transaction_id: int,
    body: TransactionUpdate,
    finance: FinanceService = Depends(get_finance_service),
):
    return await finance.update_transaction(transaction_id, body)


@router.delete("/transactions/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(transaction_id: int, finance: FinanceService = Depends(get_finance_service)):
    await finance.delete_transaction(transaction_id)


# aggregates

@router.get("/summary", response_model=FinancialSummary)
async def get_summary(
    date_range: DateRange = Depends(resolve_range),
    finance: FinanceService = Depends(get_finance_service),
):
    return await finance.get_financial_summary(date_range)


@router.get("/chart", response_model=list[MonthlyFinancePoint])
async def get_chart(
    date_range: DateRange = Depends(resolve_range),
    finance: FinanceService = Depends(get_finance_service),
):
    """income, expenses and profit per month of the range"""
    return await finance.get_financial_chart_data(date_range)


@router.get("/payment-stats", response_model=PaymentStats)
async def get_payment_stats(finance: FinanceService = Depends(get_finance_service)):
    return await finance.get_payment_stats()


# lookups

@router.get("/categories", response_model=list[FinanceCategory])
async def list_categories(
    kind: Optional[Literal["income", "expense"]] = Query(None, alias="type"),
    finance: FinanceService = Depends(get_finance_service),
):
    return await finance.list_finance_categories(kind)


@router.get("/payment-methods", response_model=list[PaymentMethod])
async def list_payment_methods(finance: FinanceService = Depends(get_finance_service)):
    return await finance.list_payment_methods()
