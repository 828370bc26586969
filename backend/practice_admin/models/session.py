# session models: session types, scheduled (future) and historical sessions
# mirrors frontend types/sessionTypes.ts, types/session.ts, types/patient.ts Session

from typing import Optional, Literal
from pydantic import BaseModel, Field

MeetingType = Literal["Zoom", "Phone", "In-Person"]
SessionStatus = Literal["scheduled", "completed", "cancelled"]
PaymentStatus = Literal["paid", "partial", "pending"]


class SessionType(BaseModel):
    id: int
    name: str
    code: str
    duration_minutes: int = 90
    is_default: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class SessionTypeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)
    duration_minutes: int = Field(90, gt=0)
    is_default: bool = False


class SessionTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    code: Optional[str] = Field(None, min_length=1)
    duration_minutes: Optional[int] = Field(None, gt=0)
    is_default: Optional[bool] = None


class PatientName(BaseModel):
    name: Optional[str] = None


class FutureSession(BaseModel):
    """a scheduled session from the future_sessions table"""
    id: int
    patient_id: Optional[int] = None
    session_date: str
    end_time: Optional[str] = None
    meeting_type: Optional[MeetingType] = None
    session_type_id: Optional[int] = None
    status: SessionStatus = "scheduled"
    notes: Optional[str] = None
    zoom_link: Optional[str] = None
    patients: Optional[PatientName] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class FutureSessionCreate(BaseModel):
    patient_id: Optional[int] = None
    session_date: str = Field(..., description="iso timestamp of the session start")
    end_time: Optional[str] = None
    meeting_type: MeetingType = "Zoom"
    session_type_id: Optional[int] = None
    notes: Optional[str] = None
    zoom_link: Optional[str] = None


class FutureSessionUpdate(BaseModel):
    patient_id: Optional[int] = None
    session_date: Optional[str] = None
    end_time: Optional[str] = None
    meeting_type: Optional[MeetingType] = None
    session_type_id: Optional[int] = None
    status: Optional[SessionStatus] = None
    notes: Optional[str] = None
    zoom_link: Optional[str] = None


class Session(BaseModel):
    """a held session from the sessions table"""
    id: int
    patient_id: int
    session_date: str
    meeting_type: Optional[MeetingType] = None
    session_type_id: Optional[int] = None
    summary: Optional[str] = None
    sent_exercises: bool = False
    exercise_list: Optional[list[str]] = None
    paid_amount: Optional[float] = None
    payment_status: PaymentStatus = "pending"
    payment_method: Optional[str] = None
    payment_date: Optional[str] = None
    payment_notes: Optional[str] = None
    attachment_urls: Optional[list[str]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class SessionCreate(BaseModel):
    patient_id: int
    session_date: str
    meeting_type: MeetingType = "Zoom"
    session_type_id: Optional[int] = None
    summary: Optional[str] = None
    sent_exercises: bool = False
    exercise_list: Optional[list[str]] = None
    paid_amount: Optional[float] = Field(None, ge=0)
    payment_status: PaymentStatus = "pending"
    payment_method: Optional[str] = None
    payment_date: Optional[str] = None
    payment_notes: Optional[str] = None


class SessionConvert(BaseModel):
    """details recorded when a scheduled session is marked as held"""
    summary: Optional[str] = None
    sent_exercises: bool = False
    exercise_list: Optional[list[str]] = None
    paid_amount: Optional[float] = Field(None, ge=0)
    payment_status: PaymentStatus = "pending"
    payment_method: Optional[str] = None
    payment_date: Optional[str] = None
    payment_notes: Optional[str] = None
