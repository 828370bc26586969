# finance service: income/expense transactions, summaries and chart buckets
# reads are cached per date range, every mutation invalidates the affected tags
#
# form labels arrive in hebrew and are stored as codes:
#   income categories, expense categories and payment methods map to english codes
#   labels without a mapping are stored as given

import logging
from typing import Optional

from dateutil.relativedelta import relativedelta
from fastapi import Depends

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
from practice_admin.services.backend import BackendClient, Embed, Filter, Order, eq, get_backend
from practice_admin.services.cache import QueryCache, get_cache
from practice_admin.utils.periods import start_of_month

logger = logging.getLogger(__name__)

TABLE = "transactions"

# cache tags
INCOME_TAG = "incomeData"
EXPENSE_TAG = "expenseData"
CHART_TAG = "financialChartData"
SUMMARY_TAG = "financialSummary"

STATUS_MAPPING = {
    "מאושר": "confirmed",
    "טיוטה": "draft",
}

INCOME_CATEGORY_MAPPING = {
    "טיפולים": "therapy",
    "ייעוץ": "consultation",
    "סדנאות": "workshop",
    "אחר": "other",
}

INCOME_PAYMENT_MAPPING = {
    "מזומן": "cash",
    "ביט": "bit",
    "העברה": "transfer",
}

EXPENSE_CATEGORY_MAPPING = {
    "שכירות": "rent",
    "ציוד משרדי": "supplies",
    "שירותים מקצועיים": "services",
    "מסים": "taxes",
    "חשבונות": "utilities",
    "אחר": "other",
}

EXPENSE_PAYMENT_MAPPING = {
    "אשראי": "credit",
    "העברה בנקאית": "transfer",
    "מזומן": "cash",
    "צ'ק": "check",
}

INCOME_COLUMNS = (
    "id", "date", "amount", "type", "status", "source", "category", "client_name",
    "client_id", "payment_method", "reference_number", "receipt_number", "session_id",
)

EXPENSE_COLUMNS = (
    "id", "date", "amount", "type", "status", "category", "client_name", "source",
    "payment_method", "reference_number", "attachment_url",
)


def _range_filters(kind: str, date_range: DateRange) -> list[Filter]:
    return [
        eq("type", kind),
        Filter("date", "gte", date_range.start.isoformat()),
        Filter("date", "lte", date_range.end.isoformat()),
    ]


def _range_key(tag: str, date_range: DateRange) -> tuple:
    return (tag, date_range.start.isoformat(), date_range.end.isoformat())


def _to_expense(row: dict) -> Expense:
    return Expense(
        id=row["id"],
        date=row["date"],
        amount=row["amount"],
        status=row.get("status") or "draft",
        category=row.get("category"),
        payee=row.get("client_name") or "",
        description=row.get("source") or "",
        payment_method=row.get("payment_method"),
        reference_number=row.get("reference_number"),
        attachment_url=row.get("attachment_url"),
    )


def map_income_category(category: str, client_id: Optional[int]) -> str:
    # income linked to a client with no category is a therapy session
    if client_id and not category:
        return "therapy"
    return INCOME_CATEGORY_MAPPING.get(category, category)


class FinanceService:
    """transactions table access with cached range reads"""

    def __init__(self, backend: BackendClient, cache: QueryCache):
        self.backend = backend
        self.cache = cache

    # reads

    async def get_income_transactions(self, date_range: DateRange) -> list[Transaction]:
        async def fetch():
            rows = await self.backend.fetch(
                TABLE,
                filters=_range_filters("income", date_range),
                order=[Order("date", ascending=False)],
                columns=INCOME_COLUMNS,
            )
            return [Transaction(**row) for row in rows]

        return await self.cache.get_or_fetch(_range_key(INCOME_TAG, date_range), fetch)

    async def get_expense_transactions(self, date_range: DateRange) -> list[Expense]:
        async def fetch():
            rows = await self.backend.fetch(
                TABLE,
                filters=_range_filters("expense", date_range),
                order=[Order("date", ascending=False)],
                columns=EXPENSE_COLUMNS,
            )
            return [_to_expense(row) for row in rows]

        return await self.cache.get_or_fetch(_range_key(EXPENSE_TAG, date_range), fetch)

    async def get_financial_summary(self, date_range: DateRange) -> FinancialSummary:
        async def compute():
            income = await self.get_income_transactions(date_range)
            expenses = await self.get_expense_transactions(date_range)
            total_income = sum(t.amount for t in income)
            total_expenses = sum(e.amount for e in expenses)
            return FinancialSummary(
                totalIncome=total_income,
                totalExpenses=total_expenses,
                netProfit=total_income - total_expenses,
                period=f"{date_range.start.isoformat()} - {date_range.end.isoformat()}",
            )

        return await self.cache.get_or_fetch(_range_key(SUMMARY_TAG, date_range), compute)

    async def get_financial_chart_data(self, date_range: DateRange) -> list[MonthlyFinancePoint]:
        """one bucket per calendar month of the range, empty months included"""
        async def compute():
            income = await self.get_income_transactions(date_range)
            expenses = await self.get_expense_transactions(date_range)

            buckets: dict[str, MonthlyFinancePoint] = {}
            month = start_of_month(date_range.start)
            while month <= date_range.end:
                label = month.strftime("%Y-%m")
                buckets[label] = MonthlyFinancePoint(month=label)
                month += relativedelta(months=1)

            for t in income:
                bucket = buckets.get(t.date.strftime("%Y-%m"))
                if bucket:
                    bucket.income += t.amount
            for e in expenses:
                bucket = buckets.get(e.date.strftime("%Y-%m"))
                if bucket:
                    bucket.expenses += e.amount
            for bucket in buckets.values():
                bucket.profit = bucket.income - bucket.expenses
            return list(buckets.values())

        return await self.cache.get_or_fetch(_range_key(CHART_TAG, date_range), compute)

    # mutations

    async def add_income(self, data: IncomeCreate) -> Transaction:
        payload = {
            "date": data.date.isoformat(),
            "amount": data.amount,
            "type": "income",
            "source": data.source,
            "category": map_income_category(data.category, data.client_id),
            "client_id": data.client_id or None,
            "client_name": data.client_name or None,
            "payment_method": INCOME_PAYMENT_MAPPING.get(data.payment_method, data.payment_method),
            "reference_number": data.reference_number or None,
            "receipt_number": data.receipt_number or None,
            "session_id": data.session_id or None,
            "status": STATUS_MAPPING.get(data.status, "draft"),
        }
        row = await self.backend.insert(TABLE, payload)
        logger.info(f"Added income {row['id']}: {data.amount} on {payload['date']}")
        self.cache.invalidate_many(INCOME_TAG, CHART_TAG, SUMMARY_TAG)
        return Transaction(**row)

    async def add_expense(self, data: ExpenseCreate) -> Expense:
        payload = {
            "date": data.date.isoformat(),
            "amount": data.amount,
            "type": "expense",
            "category": EXPENSE_CATEGORY_MAPPING.get(data.category, data.category),
            # the transactions table has no payee/description columns
            "client_name": data.payee,
            "source": data.description,
            "payment_method": EXPENSE_PAYMENT_MAPPING.get(data.payment_method, data.payment_method),
            "reference_number": data.reference_number or None,
            "status": STATUS_MAPPING.get(data.status, "draft"),
        }
        row = await self.backend.insert(TABLE, payload)
        logger.info(f"Added expense {row['id']}: {data.amount} on {payload['date']}")
        self.cache.invalidate_many(EXPENSE_TAG, CHART_TAG, SUMMARY_TAG)
        return _to_expense(row)

    async def update_transaction(self, transaction_id: int, updates: TransactionUpdate) -> dict:
        payload = updates.model_dump(exclude_unset=True)
        if payload.get("date") is not None:
            payload["date"] = payload["date"].isoformat()
        row = await self.backend.update_one(TABLE, transaction_id, payload)
        self.cache.invalidate_many(INCOME_TAG, EXPENSE_TAG, CHART_TAG, SUMMARY_TAG)
        return row

    async def delete_transaction(self, transaction_id: int):
        await self.backend.delete_one(TABLE, transaction_id)
        logger.info(f"Deleted transaction {transaction_id}")
        self.cache.invalidate_many(INCOME_TAG, EXPENSE_TAG, CHART_TAG, SUMMARY_TAG)

    # lookups

    async def list_finance_categories(self, kind: Optional[str] = None) -> list[FinanceCategory]:
        filters = [eq("type", kind)] if kind else []
        rows = await self.backend.fetch("finance_categories", filters=filters, order=[Order("name")])
        return [FinanceCategory(**row) for row in rows]

    async def list_payment_methods(self) -> list[PaymentMethod]:
        rows = await self.backend.fetch("payment_methods", order=[Order("name")])
        return [PaymentMethod(**row) for row in rows]

    async def get_payment_stats(self) -> PaymentStats:
        """received from paid sessions, outstanding from the patient price of unpaid ones"""
        paid = await self.backend.fetch("sessions", filters=[eq("payment_status", "paid")], columns=("paid_amount",))
        unpaid = await self.backend.fetch(
            "sessions",
            filters=[Filter("payment_status", "neq", "paid")],
            columns=("patient_id",),
            embed={"patients": Embed("patient_id", ("session_price",))},
        )
        total_received = sum(row.get("paid_amount") or 0 for row in paid)
        outstanding = sum((row.get("patients") or {}).get("session_price") or 0 for row in unpaid)
        return PaymentStats(totalReceived=total_received, outstandingBalance=outstanding)


async def get_finance_service(
    backend: BackendClient = Depends(get_backend),
    cache: QueryCache = Depends(get_cache),
) -> FinanceService:
    """dependency injection for the finance service"""
    return FinanceService(backend, cache)
