# calendar models: availability slots, week grid cells and provider events
# mirrors frontend types/calendar.ts CalendarSlot, GoogleCalendarEvent

import datetime as dt
from typing import Any, Optional, Literal
from pydantic import BaseModel, Field

SlotStatus = Literal["available", "private", "unspecified", "booked", "completed", "canceled"]
SyncStatus = Literal["synced", "google-only", "backend-only"]


class AvailabilitySlot(BaseModel):
    """a calendar_slots row"""
    id: int
    date: str
    day_of_week: Optional[int] = None
    start_time: str
    end_time: Optional[str] = None
    status: str = "available"
    slot_type: Optional[str] = None
    notes: Optional[str] = None
    is_recurring: bool = False


class AvailabilitySlotCreate(BaseModel):
    date: dt.date
    start_time: str = Field(..., pattern=r"^\d{2}:\d{2}(:\d{2})?$")
    end_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}(:\d{2})?$")
    status: Literal["available", "private", "unspecified"] = "available"
    notes: Optional[str] = None
    is_recurring: bool = False


class EventTime(BaseModel):
    date_time: Optional[str] = Field(None, alias="dateTime")
    date: Optional[str] = None
    time_zone: Optional[str] = Field(None, alias="timeZone")

    model_config = {"populate_by_name": True}


class GoogleCalendarEvent(BaseModel):
    id: str
    summary: str = ""
    description: str = ""
    start: EventTime
    end: EventTime
    status: str = "confirmed"
    sync_status: SyncStatus = Field("google-only", alias="syncStatus")

    model_config = {"populate_by_name": True}


class CalendarSlot(BaseModel):
    """one hour cell of the week grid"""
    date: str
    day: int
    hour: str
    status: SlotStatus = "unspecified"
    notes: str = ""
    description: str = ""
    sync_status: SyncStatus = Field("synced", alias="syncStatus")
    from_google: bool = Field(False, alias="fromGoogle")
    from_future_session: bool = Field(False, alias="fromFutureSession")
    in_google_calendar: bool = Field(False, alias="inGoogleCalendar")
    is_meeting: bool = Field(False, alias="isMeeting")
    is_patient_meeting: bool = Field(False, alias="isPatientMeeting")
    show_border: bool = Field(False, alias="showBorder")
    icon: Optional[str] = None
    start_time: Optional[str] = Field(None, alias="startTime")
    end_time: Optional[str] = Field(None, alias="endTime")
    hours_span: int = Field(1, alias="hoursSpan")
    is_first_hour: bool = Field(True, alias="isFirstHour")
    is_last_hour: bool = Field(True, alias="isLastHour")
    start_minute: int = Field(0, alias="startMinute")
    end_minute: int = Field(60, alias="endMinute")
    google_event_id: Optional[str] = Field(None, alias="googleEventId")
    future_session: Optional[dict[str, Any]] = Field(None, alias="futureSession")

    model_config = {"populate_by_name": True}


class WeekDay(BaseModel):
    date: str
    label: str
    day_number: int = Field(..., alias="dayNumber")

    model_config = {"populate_by_name": True}


class WeekCalendar(BaseModel):
    days: list[WeekDay]
    slots: dict[str, dict[str, CalendarSlot]]


class CalendarSyncComparison(BaseModel):
    matching_events: list[dict[str, Any]] = Field(default_factory=list, alias="matchingEvents")
    only_in_google: list[GoogleCalendarEvent] = Field(default_factory=list, alias="onlyInGoogle")
    only_in_backend: list[dict[str, Any]] = Field(default_factory=list, alias="onlyInBackend")

    model_config = {"populate_by_name": True}


class GoogleAuthUrl(BaseModel):
    authorization_url: str = Field(..., alias="authorizationUrl")

    model_config = {"populate_by_name": True}


class GoogleAuthCallback(BaseModel):
    code: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)


class GoogleConnectionStatus(BaseModel):
    connected: bool
    calendar_id: Optional[str] = Field(None, alias="calendarId")
    expires_at: Optional[str] = Field(None, alias="expiresAt")

    model_config = {"populate_by_name": True}
