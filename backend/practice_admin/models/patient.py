# patient models: client records and per-client statistics
# mirrors frontend types/patient.ts Patient, ClientStatistics

from typing import Optional
from pydantic import BaseModel, Field


class Patient(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    session_price: Optional[float] = None


class PatientCreate(BaseModel):
    name: str = Field(..., min_length=1, description="full name")
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    session_price: Optional[float] = Field(None, ge=0)


class PatientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    session_price: Optional[float] = Field(None, ge=0)


class ClientStatistics(BaseModel):
    """session totals and outstanding debt for one patient"""
    total_sessions: int = Field(0, alias="totalSessions")
    paid_sessions: int = Field(0, alias="paidSessions")
    unpaid_sessions: int = Field(0, alias="unpaidSessions")
    total_debt: float = Field(0.0, alias="totalDebt")
    last_session: Optional[str] = Field(None, alias="lastSession")
    next_session: Optional[str] = Field(None, alias="nextSession")

    model_config = {"populate_by_name": True}
