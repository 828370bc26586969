# session type service: reads and writes the session_types table
# a missing table falls back to the built-in defaults

import logging

from practice_admin.models.session import SessionType, SessionTypeCreate, SessionTypeUpdate
from practice_admin.services.backend import BackendClient, Order, TableNotFoundError, eq
from practice_admin.utils.session_types import default_session_types

logger = logging.getLogger(__name__)

TABLE = "session_types"


async def list_session_types(backend: BackendClient) -> list[SessionType]:
    """default type first, then by name. other backend errors propagate."""
    try:
        rows = await backend.fetch(
            TABLE,
            order=[Order("is_default", ascending=False), Order("name")],
            strict=True,
        )
    except TableNotFoundError:
        logger.warning("session_types table not found, using built-in defaults")
        return default_session_types()

    return [SessionType(**row) for row in rows]


async def _clear_default(backend: BackendClient):
    await backend.update(TABLE, {"is_default": False}, [eq("is_default", True)])


async def create_session_type(backend: BackendClient, data: SessionTypeCreate) -> SessionType:
    if data.is_default:
        await _clear_default(backend)
    row = await backend.insert(TABLE, data.model_dump())
    logger.info(f"Created session type {row['code']} ({row['duration_minutes']} min)")
    return SessionType(**row)


async def update_session_type(backend: BackendClient, type_id: int, data: SessionTypeUpdate) -> SessionType:
    updates = data.model_dump(exclude_unset=True)
    if updates.get("is_default"):
        await _clear_default(backend)
    row = await backend.update_one(TABLE, type_id, updates)
    return SessionType(**row)
