# tests for the finance service and the finances router
# covers hebrew label mapping, cache invalidation and range aggregates

from datetime import date

import pytest

from practice_admin.models.finance import DateRange, ExpenseCreate, IncomeCreate, TransactionUpdate
from practice_admin.services.cache import QueryCache
from practice_admin.services.finance_service import (
    CHART_TAG,
    EXPENSE_TAG,
    INCOME_TAG,
    SUMMARY_TAG,
    FinanceService,
    map_income_category,
)

JUNE_QUARTER = DateRange(start=date(2024, 4, 1), end=date(2024, 6, 30))


@pytest.fixture
def finance(backend):
    return FinanceService(backend, QueryCache())


class TestIncomeCategoryMapping:
    def test_hebrew_labels(self):
        assert map_income_category("ייעוץ", None) == "consultation"
        assert map_income_category("סדנאות", None) == "workshop"

    def test_client_without_category_is_therapy(self):
        assert map_income_category("", 5) == "therapy"

    def test_unmapped_label_kept(self):
        assert map_income_category("הרצאה", None) == "הרצאה"


class TestReads:
    """range reads"""

    async def test_income_in_range_date_descending(self, finance):
        income = await finance.get_income_transactions(JUNE_QUARTER)
        assert [t.id for t in income] == [1, 2]
        assert income[0].date == date(2024, 6, 10)

    async def test_expenses_map_payee_and_description(self, finance):
        expenses = await finance.get_expense_transactions(JUNE_QUARTER)
        assert len(expenses) == 1
        assert expenses[0].payee == "Landlord"
        assert expenses[0].description == "June rent"

    async def test_reads_are_cached(self, finance, mock_db):
        await finance.get_income_transactions(JUNE_QUARTER)
        mock_db.table("transactions").fail = True
        # served from the cache, the backend is not touched
        income = await finance.get_income_transactions(JUNE_QUARTER)
        assert len(income) == 2

    async def test_summary(self, finance):
        summary = await finance.get_financial_summary(JUNE_QUARTER)
        assert summary.total_income == 750
        assert summary.total_expenses == 1200
        assert summary.net_profit == -450

    async def test_chart_covers_every_month(self, finance):
        points = await finance.get_financial_chart_data(JUNE_QUARTER)
        assert [p.month for p in points] == ["2024-04", "2024-05", "2024-06"]
        assert (points[0].income, points[0].expenses) == (0, 0)
        assert points[1].income == 350
        assert (points[2].income, points[2].expenses, points[2].profit) == (400, 1200, -800)


class TestMutations:
    """writes map labels and invalidate cached reads"""

    async def test_add_income_round_trip(self, finance):
        await finance.get_income_transactions(JUNE_QUARTER)
        created = await finance.add_income(IncomeCreate(
            date=date(2024, 6, 12),
            amount=300,
            source="workshop",
            category="סדנאות",
            client_name="Group",
            payment_method="ביט",
            status="מאושר",
        ))
        assert created.category == "workshop"
        assert created.payment_method == "bit"
        assert created.status == "confirmed"

        income = await finance.get_income_transactions(JUNE_QUARTER)
        fetched = next(t for t in income if t.id == created.id)
        assert fetched.model_dump() == created.model_dump()
        assert [t.id for t in income][0] == created.id

    async def test_add_income_defaults(self, finance):
        created = await finance.add_income(IncomeCreate(
            date=date(2024, 6, 12), amount=400, client_id=1, payment_method="העברה",
        ))
        assert created.category == "therapy"
        assert created.payment_method == "transfer"
        assert created.status == "draft"

    async def test_add_income_invalidates_tags(self, finance):
        cache = finance.cache
        for tag in (INCOME_TAG, EXPENSE_TAG, CHART_TAG, SUMMARY_TAG):
            cache.set((tag, "x"), [])
        await finance.add_income(IncomeCreate(date=date(2024, 6, 1), amount=10, payment_method="מזומן"))
        assert (INCOME_TAG, "x") not in cache
        assert (CHART_TAG, "x") not in cache
        assert (SUMMARY_TAG, "x") not in cache
        assert (EXPENSE_TAG, "x") in cache

    async def test_add_expense_maps_and_stores_payee(self, finance, mock_db):
        created = await finance.add_expense(ExpenseCreate(
            date=date(2024, 6, 5),
            amount=250,
            category="ציוד משרדי",
            payee="Office shop",
            description="printer ink",
            payment_method="אשראי",
        ))
        assert created.category == "supplies"
        assert created.payment_method == "credit"
        stored = mock_db.rows("transactions")[-1]
        assert stored["client_name"] == "Office shop"
        assert stored["source"] == "printer ink"
        assert stored["type"] == "expense"

    async def test_summary_refreshes_after_expense(self, finance):
        before = await finance.get_financial_summary(JUNE_QUARTER)
        await finance.add_expense(ExpenseCreate(
            date=date(2024, 6, 5), amount=50, category="מסים", payment_method="מזומן",
        ))
        after = await finance.get_financial_summary(JUNE_QUARTER)
        assert after.total_expenses == before.total_expenses + 50

    async def test_update_and_delete(self, finance):
        await finance.get_income_transactions(JUNE_QUARTER)
        updated = await finance.update_transaction(1, TransactionUpdate(amount=420, date=date(2024, 6, 11)))
        assert updated["amount"] == 420
        assert updated["date"] == "2024-06-11"

        income = await finance.get_income_transactions(JUNE_QUARTER)
        assert income[0].amount == 420

        await finance.delete_transaction(2)
        income = await finance.get_income_transactions(JUNE_QUARTER)
        assert [t.id for t in income] == [1]


class TestLookups:
    async def test_categories_by_type(self, finance):
        cats = await finance.list_finance_categories("expense")
        assert [c.name for c in cats] == ["שכירות"]

    async def test_payment_methods(self, finance):
        methods = await finance.list_payment_methods()
        assert len(methods) == 2

    async def test_payment_stats(self, finance):
        stats = await finance.get_payment_stats()
        assert stats.total_received == 400
        # one pending session of patient 1 and one partial of patient 2
        assert stats.outstanding_balance == 750


class TestFinancesRouter:
    """http surface"""

    async def test_income_by_explicit_range(self, admin_client):
        resp = await admin_client.get("/finances/income", params={"start": "2024-06-01", "end": "2024-06-30"})
        assert resp.status_code == 200
        assert [t["id"] for t in resp.json()] == [1]

    async def test_half_range_rejected(self, admin_client):
        resp = await admin_client.get("/finances/income", params={"start": "2024-06-01"})
        assert resp.status_code == 422

    async def test_reversed_range_rejected(self, admin_client):
        resp = await admin_client.get("/finances/summary", params={"start": "2024-06-30", "end": "2024-06-01"})
        assert resp.status_code == 422

    async def test_range_endpoint_resolves_period(self, admin_client):
        resp = await admin_client.get("/finances/range", params={"period": "month"})
        assert resp.status_code == 200
        assert resp.json()["start"].endswith("-01")

    async def test_add_income(self, admin_client):
        resp = await admin_client.post("/finances/income", json={
            "date": "2024-06-12",
            "amount": 300,
            "category": "טיפולים",
            "payment_method": "מזומן",
            "status": "מאושר",
        })
        assert resp.status_code == 201
        data = resp.json()
        assert data["category"] == "therapy"
        assert data["payment_method"] == "cash"

    async def test_non_positive_amount_rejected(self, admin_client):
        resp = await admin_client.post("/finances/expenses", json={
            "date": "2024-06-12", "amount": 0, "category": "מסים", "payment_method": "מזומן",
        })
        assert resp.status_code == 422

    async def test_summary_uses_aliases(self, admin_client):
        resp = await admin_client.get("/finances/summary", params={"start": "2024-04-01", "end": "2024-06-30"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["totalIncome"] == 750
        assert data["netProfit"] == -450

    async def test_delete_missing_transaction(self, admin_client):
        resp = await admin_client.delete("/finances/transactions/999")
        assert resp.status_code == 404

    async def test_backend_failure_is_bad_gateway(self, admin_client, mock_db):
        mock_db.table("transactions").fail = True
        resp = await admin_client.get("/finances/expenses", params={"start": "2024-06-01", "end": "2024-06-30"})
        assert resp.status_code == 502
        assert "connection reset" in resp.json()["detail"]

    async def test_requires_admin(self, assistant_client):
        resp = await assistant_client.get("/finances/summary")
        assert resp.status_code == 403
