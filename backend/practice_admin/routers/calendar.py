# calendar router: weekly grid, availability slots and the google calendar connection
# google events are read-only; the grid renders without them when google is not connected

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from practice_admin.dependencies import require_admin
from practice_admin.models.calendar import (
    AvailabilitySlot,
    AvailabilitySlotCreate,
    CalendarSyncComparison,
    GoogleAuthCallback,
    GoogleAuthUrl,
    GoogleCalendarEvent,
    GoogleConnectionStatus,
    WeekCalendar,
)
from practice_admin.models.session import FutureSession
from practice_admin.services import calendar_service
from practice_admin.services.backend import BackendClient, get_backend
from practice_admin.services.google_calendar_service import (
    GoogleCalendarService,
    GoogleCalendarError,
    GoogleNotConnectedError,
    InvalidOAuthStateError,
    get_google_calendar,
)
from practice_admin.services.session_type_service import list_session_types
from practice_admin.utils.periods import today

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/calendar", tags=["calendar"], dependencies=[Depends(require_admin)])


def _week_bounds(current: date) -> tuple[datetime, datetime]:
    start = datetime.combine(calendar_service.start_of_week(current), time.min, tzinfo=calendar_service.practice_tz())
    return start, start + timedelta(days=7)


async def _week_events(google: GoogleCalendarService, current: date) -> list[GoogleCalendarEvent]:
    time_min, time_max = _week_bounds(current)
    try:
        return await google.list_events(time_min, time_max)
    except GoogleNotConnectedError:
        logger.info("Google Calendar not connected, building week without provider events")
        return []
    except GoogleCalendarError as e:
        logger.warning(f"Google Calendar unavailable, building week without provider events: {e}")
        return []


# week grid

@router.get("/week", response_model=WeekCalendar)
async def get_week(
    day: Optional[date] = Query(None, alias="date"),
    include_google: bool = Query(True, alias="includeGoogle"),
    backend: BackendClient = Depends(get_backend),
    google: GoogleCalendarService = Depends(get_google_calendar),
):
    """hourly grid for the week containing date (default today)"""
    current = day or today()
    events = await _week_events(google, current) if include_google else []
    session_types = await list_session_types(backend)
    return await calendar_service.build_week_calendar(backend, current, events, session_types)


@router.get("/compare", response_model=CalendarSyncComparison)
async def compare_week(
    day: Optional[date] = Query(None, alias="date"),
    backend: BackendClient = Depends(get_backend),
    google: GoogleCalendarService = Depends(get_google_calendar),
):
    """availability slots against google events for the week containing date"""
    current = day or today()
    time_min, time_max = _week_bounds(current)
    events = await google.list_events(time_min, time_max)
    slots = await calendar_service.fetch_availability_slots(backend, reference_date=current)
    week_slots = [s for s in slots if time_min.date().isoformat() <= s.get("date", "") < time_max.date().isoformat()]
    return calendar_service.compare_calendar_data(events, week_slots)


# availability and bookings in the booking window

@router.get("/availability", response_model=list[AvailabilitySlot])
async def list_availability(
    reference_date: Optional[date] = Query(None, alias="referenceDate"),
    backend: BackendClient = Depends(get_backend),
):
    return await calendar_service.fetch_availability_slots(backend, reference_date=reference_date)


@router.get("/booked", response_model=list[FutureSession])
async def list_booked(
    reference_date: Optional[date] = Query(None, alias="referenceDate"),
    backend: BackendClient = Depends(get_backend),
):
    return await calendar_service.fetch_booked_sessions(backend, reference_date=reference_date)


@router.post("/slots", response_model=AvailabilitySlot, status_code=status.HTTP_201_CREATED)
async def create_slot(body: AvailabilitySlotCreate, backend: BackendClient = Depends(get_backend)):
    payload = body.model_dump()
    payload["date"] = body.date.isoformat()
    payload["day_of_week"] = (body.date.weekday() + 1) % 7
    return await backend.insert("calendar_slots", payload)


@router.delete("/slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_slot(slot_id: int, backend: BackendClient = Depends(get_backend)):
    await backend.delete_one("calendar_slots", slot_id)


# google calendar connection

@router.get("/google/auth-url", response_model=GoogleAuthUrl)
async def google_auth_url(google: GoogleCalendarService = Depends(get_google_calendar)):
    return GoogleAuthUrl(authorizationUrl=await google.create_authorization_url())


@router.post("/google/callback", response_model=GoogleConnectionStatus)
async def google_callback(body: GoogleAuthCallback, google: GoogleCalendarService = Depends(get_google_calendar)):
    try:
        await google.exchange_code(body.code, body.state)
    except InvalidOAuthStateError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return await google.status()


@router.get("/google/status", response_model=GoogleConnectionStatus)
async def google_status(google: GoogleCalendarService = Depends(get_google_calendar)):
    return await google.status()


@router.post("/google/sign-out")
async def google_sign_out(google: GoogleCalendarService = Depends(get_google_calendar)):
    disconnected = await google.sign_out()
    return {"disconnected": disconnected}


@router.get("/google/events", response_model=list[GoogleCalendarEvent])
async def google_events(
    start: date,
    end: date,
    google: GoogleCalendarService = Depends(get_google_calendar),
):
    """provider events from start up to the end of end"""
    tz = calendar_service.practice_tz()
    time_min = datetime.combine(start, time.min, tzinfo=tz)
    time_max = datetime.combine(end + timedelta(days=1), time.min, tzinfo=tz)
    return await google.list_events(time_min, time_max)
