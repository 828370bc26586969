# sessions router: session types, scheduled sessions and held sessions

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from practice_admin.dependencies import require_admin
from practice_admin.models.session import (
    FutureSession,
    FutureSessionCreate,
    FutureSessionUpdate,
    Session,
    SessionConvert,
    SessionCreate,
    SessionType,
    SessionTypeCreate,
    SessionTypeUpdate,
)
from practice_admin.services import session_service, session_type_service
from practice_admin.services.backend import BackendClient, get_backend
from practice_admin.services.calendar_service import fetch_booked_sessions

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/sessions", tags=["sessions"], dependencies=[Depends(require_admin)])


# session types

@router.get("/types", response_model=list[SessionType])
async def list_session_types(backend: BackendClient = Depends(get_backend)):
    """configured types, or the built-in defaults when none are stored"""
    return await session_type_service.list_session_types(backend)


@router.post("/types", response_model=SessionType, status_code=status.HTTP_201_CREATED)
async def create_session_type(body: SessionTypeCreate, backend: BackendClient = Depends(get_backend)):
    return await session_type_service.create_session_type(backend, body)


@router.patch("/types/{type_id}", response_model=SessionType)
async def update_session_type(type_id: int, body: SessionTypeUpdate, backend: BackendClient = Depends(get_backend)):
    return await session_type_service.update_session_type(backend, type_id, body)


# future sessions

@router.get("/future", response_model=list[FutureSession])
async def list_future_sessions(
    reference_date: Optional[date] = Query(None, alias="referenceDate"),
    backend: BackendClient = Depends(get_backend),
):
    """scheduled sessions in the booking window, with the patient name joined"""
    rows = await fetch_booked_sessions(backend, reference_date=reference_date)
    return [FutureSession(**row) for row in rows]


@router.post("/future", response_model=FutureSession, status_code=status.HTTP_201_CREATED)
async def create_future_session(body: FutureSessionCreate, backend: BackendClient = Depends(get_backend)):
    return await session_service.create_future_session(backend, body)


@router.patch("/future/{session_id}", response_model=FutureSession)
async def update_future_session(
    session_id: int,
    body: FutureSessionUpdate,
    backend: BackendClient = Depends(get_backend),
):
    return await session_service.update_future_session(backend, session_id, body)


@router.delete("/future/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_future_session(session_id: int, backend: BackendClient = Depends(get_backend)):
    await session_service.delete_future_session(backend, session_id)


@router.post("/future/{session_id}/convert", response_model=Session, status_code=status.HTTP_201_CREATED)
async def convert_future_session(
    session_id: int,
    body: SessionConvert,
    backend: BackendClient = Depends(get_backend),
):
    """record the scheduled session as held and remove it from the schedule"""
    try:
        return await session_service.convert_future_session(backend, session_id, body)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )


# held sessions

@router.post("", response_model=Session, status_code=status.HTTP_201_CREATED)
async def create_session(body: SessionCreate, backend: BackendClient = Depends(get_backend)):
    return await session_service.create_session(backend, body)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: int, backend: BackendClient = Depends(get_backend)):
    await session_service.delete_session(backend, session_id)
