# tests for patients router and service: records, statistics and session history
# admin-only endpoints

from datetime import datetime, timezone

from practice_admin.services.patient_service import get_client_statistics, session_debt

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


class TestListPatients:
    """list patients"""

    async def test_ordered_by_name(self, admin_client):
        resp = await admin_client.get("/patients")
        assert resp.status_code == 200
        assert [p["name"] for p in resp.json()] == ["Avi Cohen", "Dana Levi"]

    async def test_assistant_cannot_list(self, assistant_client):
        resp = await assistant_client.get("/patients")
        assert resp.status_code == 403


class TestPatientRecords:
    """create, read, update and delete"""

    async def test_create_and_get(self, admin_client):
        resp = await admin_client.post("/patients", json={"name": "Noa Bar", "phone": "050-3333333", "session_price": 380})
        assert resp.status_code == 201
        created = resp.json()
        assert created["id"] == 3

        resp = await admin_client.get(f"/patients/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["session_price"] == 380

    async def test_create_requires_name(self, admin_client):
        resp = await admin_client.post("/patients", json={"name": ""})
        assert resp.status_code == 422

    async def test_negative_price_rejected(self, admin_client):
        resp = await admin_client.patch("/patients/1", json={"session_price": -5})
        assert resp.status_code == 422

    async def test_update_only_given_fields(self, admin_client):
        resp = await admin_client.patch("/patients/2", json={"notes": "mornings now"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["notes"] == "mornings now"
        assert data["session_price"] == 350

    async def test_missing_patient(self, admin_client):
        assert (await admin_client.get("/patients/404")).status_code == 404
        assert (await admin_client.patch("/patients/404", json={"notes": "x"})).status_code == 404
        assert (await admin_client.delete("/patients/404")).status_code == 404

    async def test_delete(self, admin_client, mock_db):
        resp = await admin_client.delete("/patients/2")
        assert resp.status_code == 204
        assert [p["id"] for p in mock_db.rows("patients")] == [1]


class TestStatistics:
    """per-client totals and debt"""

    def test_session_debt_rules(self):
        assert session_debt({"payment_status": "paid", "paid_amount": 400}, 400) == 0
        assert session_debt({"payment_status": "pending", "paid_amount": None}, 400) == 400
        assert session_debt({"payment_status": "partial", "paid_amount": 150}, 400) == 250
        assert session_debt({"payment_status": "partial", "paid_amount": 0}, 400) == 0

    async def test_statistics_for_patient_with_pending_session(self, backend):
        stats = await get_client_statistics(backend, 1, now=NOW)
        assert stats.total_sessions == 2
        assert stats.paid_sessions == 1
        assert stats.unpaid_sessions == 1
        assert stats.total_debt == 400
        assert stats.last_session == "2024-06-03T10:00:00+03:00"
        assert stats.next_session == "2024-06-18T10:00:00+03:00"

    async def test_statistics_partial_payment(self, backend):
        stats = await get_client_statistics(backend, 2, now=NOW)
        assert stats.total_debt == 250

    async def test_statistics_route_uses_aliases(self, admin_client):
        resp = await admin_client.get("/patients/1/statistics")
        assert resp.status_code == 200
        data = resp.json()
        assert data["totalSessions"] == 2
        assert data["totalDebt"] == 400


class TestPatientSessions:
    async def test_history_newest_first(self, admin_client):
        resp = await admin_client.get("/patients/1/sessions")
        assert [s["id"] for s in resp.json()] == [2, 1]

    async def test_future_sessions_with_name(self, admin_client):
        resp = await admin_client.get("/patients/1/future-sessions")
        data = resp.json()
        assert [s["id"] for s in data] == [1, 3]
        assert data[0]["patients"] == {"name": "Dana Levi"}
