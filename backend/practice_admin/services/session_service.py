# session service: scheduled (future) sessions, held sessions and conversion between them

import logging
from typing import Optional

from practice_admin.models.session import (
    FutureSession,
    FutureSessionCreate,
    FutureSessionUpdate,
    Session,
    SessionConvert,
    SessionCreate,
)
from practice_admin.services.backend import BackendClient, Embed, Order, eq

logger = logging.getLogger(__name__)

PATIENT_NAME = {"patients": Embed("patient_id", ("name",))}


async def list_patient_sessions(backend: BackendClient, patient_id: int) -> list[Session]:
    rows = await backend.fetch("sessions", [eq("patient_id", patient_id)], order=[Order("session_date", ascending=False)])
    return [Session(**row) for row in rows]


async def create_session(backend: BackendClient, data: SessionCreate) -> Session:
    row = await backend.insert("sessions", data.model_dump())
    logger.info(f"Recorded session {row['id']} for patient {row['patient_id']}")
    return Session(**row)


async def delete_session(backend: BackendClient, session_id: int):
    await backend.delete_one("sessions", session_id)


async def list_future_sessions(backend: BackendClient, patient_id: Optional[int] = None) -> list[FutureSession]:
    filters = [eq("patient_id", patient_id)] if patient_id is not None else []
    rows = await backend.fetch("future_sessions", filters, order=[Order("session_date")], embed=PATIENT_NAME)
    return [FutureSession(**row) for row in rows]


async def create_future_session(backend: BackendClient, data: FutureSessionCreate) -> FutureSession:
    payload = data.model_dump()
    payload["status"] = "scheduled"
    row = await backend.insert("future_sessions", payload)
    logger.info(f"Scheduled session {row['id']} at {row['session_date']}")
    return FutureSession(**row)


async def update_future_session(backend: BackendClient, session_id: int, data: FutureSessionUpdate) -> FutureSession:
    row = await backend.update_one("future_sessions", session_id, data.model_dump(exclude_unset=True))
    return FutureSession(**row)


async def delete_future_session(backend: BackendClient, session_id: int):
    await backend.delete_one("future_sessions", session_id)
    logger.info(f"Deleted future session {session_id}")


async def convert_future_session(backend: BackendClient, session_id: int, data: SessionConvert) -> Session:
    """record a held session from a scheduled one, then drop the scheduled row"""
    future = await backend.fetch_one("future_sessions", [eq("id", session_id)])
    if future.get("patient_id") is None:
        raise ValueError("Future session has no patient")

    payload = {
        "patient_id": future["patient_id"],
        "session_date": future["session_date"],
        "meeting_type": future.get("meeting_type") or "Zoom",
        "session_type_id": future.get("session_type_id"),
        **data.model_dump(),
    }
    row = await backend.insert("sessions", payload)
    await backend.delete_one("future_sessions", session_id)
    logger.info(f"Converted future session {session_id} into session {row['id']}")
    return Session(**row)
