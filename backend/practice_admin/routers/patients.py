# patients router: client records, statistics and per-client session history
# admin-only endpoints over the patients and sessions tables

import logging

from fastapi import APIRouter, Depends, status

from practice_admin.dependencies import require_admin
from practice_admin.models.patient import ClientStatistics, Patient, PatientCreate, PatientUpdate
from practice_admin.models.session import FutureSession, Session
from practice_admin.services import patient_service, session_service
from practice_admin.services.backend import BackendClient, get_backend

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/patients", tags=["patients"], dependencies=[Depends(require_admin)])


@router.get("", response_model=list[Patient])
async def list_patients(backend: BackendClient = Depends(get_backend)):
    """all patients ordered by name"""
    return await patient_service.list_patients(backend)


@router.post("", response_model=Patient, status_code=status.HTTP_201_CREATED)
async def create_patient(body: PatientCreate, backend: BackendClient = Depends(get_backend)):
    return await patient_service.create_patient(backend, body)


@router.get("/{patient_id}", response_model=Patient)
async def get_patient(patient_id: int, backend: BackendClient = Depends(get_backend)):
    return await patient_service.get_patient(backend, patient_id)


@router.patch("/{patient_id}", response_model=Patient)
async def update_patient(patient_id: int, body: PatientUpdate, backend: BackendClient = Depends(get_backend)):
    return await patient_service.update_patient(backend, patient_id, body)


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_patient(patient_id: int, backend: BackendClient = Depends(get_backend)):
    await patient_service.delete_patient(backend, patient_id)


@router.get("/{patient_id}/statistics", response_model=ClientStatistics)
async def get_client_statistics(patient_id: int, backend: BackendClient = Depends(get_backend)):
    """session count, outstanding debt and last/next session dates"""
    return await patient_service.get_client_statistics(backend, patient_id)


@router.get("/{patient_id}/sessions", response_model=list[Session])
async def list_patient_sessions(patient_id: int, backend: BackendClient = Depends(get_backend)):
    return await session_service.list_patient_sessions(backend, patient_id)


@router.get("/{patient_id}/future-sessions", response_model=list[FutureSession])
async def list_patient_future_sessions(patient_id: int, backend: BackendClient = Depends(get_backend)):
    return await session_service.list_future_sessions(backend, patient_id)
