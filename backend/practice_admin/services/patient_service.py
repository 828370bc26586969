# patient service: client records and per-client statistics

import logging
from datetime import datetime, timezone
from typing import Optional

from practice_admin.models.patient import ClientStatistics, Patient, PatientCreate, PatientUpdate
from practice_admin.services.backend import BackendClient, Filter, Order, eq

logger = logging.getLogger(__name__)

TABLE = "patients"
LIST_COLUMNS = ("id", "name", "phone", "email", "notes", "session_price")


async def list_patients(backend: BackendClient) -> list[Patient]:
    rows = await backend.fetch(TABLE, order=[Order("name")], columns=LIST_COLUMNS)
    return [Patient(**row) for row in rows]


async def get_patient(backend: BackendClient, patient_id: int) -> Patient:
    row = await backend.fetch_one(TABLE, [eq("id", patient_id)])
    return Patient(**row)


async def create_patient(backend: BackendClient, data: PatientCreate) -> Patient:
    row = await backend.insert(TABLE, data.model_dump())
    logger.info(f"Created patient {row['id']}")
    return Patient(**row)


async def update_patient(backend: BackendClient, patient_id: int, data: PatientUpdate) -> Patient:
    row = await backend.update_one(TABLE, patient_id, data.model_dump(exclude_unset=True))
    return Patient(**row)


async def delete_patient(backend: BackendClient, patient_id: int):
    await backend.delete_one(TABLE, patient_id)
    logger.info(f"Deleted patient {patient_id}")


def session_debt(session: dict, session_price: float) -> float:
    """what is still owed for one held session"""
    paid = session.get("paid_amount") or 0
    status = session.get("payment_status")
    if status == "pending":
        return session_price - paid
    if status == "partial":
        return session_price - paid if paid else 0
    return 0


async def get_client_statistics(
    backend: BackendClient,
    patient_id: int,
    now: Optional[datetime] = None,
) -> ClientStatistics:
    patient = await get_patient(backend, patient_id)
    price = patient.session_price or 0
    now = now or datetime.now(timezone.utc)

    sessions = await backend.fetch(
        "sessions", [eq("patient_id", patient_id)], order=[Order("session_date", ascending=False)],
    )
    upcoming = await backend.fetch(
        "future_sessions",
        [eq("patient_id", patient_id), Filter("session_date", "gt", now.isoformat())],
        order=[Order("session_date")],
        limit=1,
    )

    paid = sum(1 for s in sessions if s.get("payment_status") == "paid")
    return ClientStatistics(
        totalSessions=len(sessions),
        paidSessions=paid,
        unpaidSessions=len(sessions) - paid,
        totalDebt=sum(session_debt(s, price) for s in sessions),
        lastSession=sessions[0]["session_date"] if sessions else None,
        nextSession=upcoming[0]["session_date"] if upcoming else None,
    )
