# calendar service: booking window fetch and the weekly calendar grid
#
# grid build:
#   1. fetch availability slots and booked sessions for the window (concurrently)
#   2. lay out an empty week of hourly cells
#   3. apply availability slots
#   4. apply google calendar events (patient meetings stretched to their minimum length)
#   5. apply booked sessions last, flagging those that also exist in google calendar

import asyncio
import logging
import math
from datetime import date, datetime, timedelta
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from practice_admin.config import settings
from practice_admin.models.calendar import (
    CalendarSlot,
    CalendarSyncComparison,
    GoogleCalendarEvent,
    WeekCalendar,
    WeekDay,
)
from practice_admin.models.session import SessionType
from practice_admin.services.backend import BackendClient, Embed, Filter, Order
from practice_admin.utils.meeting_icons import (
    MEETING_ICON,
    get_meeting_icon,
    get_meeting_icon_by_type_id,
    is_patient_meeting,
    is_seft_session,
    meeting_type_in_hebrew,
)
from practice_admin.utils.periods import today
from practice_admin.utils.session_types import get_session_type_duration

logger = logging.getLogger(__name__)

DAY_LABELS_HE = ["א׳", "ב׳", "ג׳", "ד׳", "ה׳", "ו׳", "ש׳"]

# minimum length of patient meetings read from google calendar
GOOGLE_MEETING_MINUTES = 90
GOOGLE_SEFT_MINUTES = 180

UNKNOWN_PATIENT = "לקוח לא ידוע"

Grid = dict[str, dict[str, CalendarSlot]]


# time helpers

def practice_tz() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def to_local(value: str) -> datetime:
    """parse an iso timestamp into the practice timezone, naive values are taken as local"""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=practice_tz())
    return parsed.astimezone(practice_tz())


def start_of_week(day: date) -> date:
    """sunday of the week containing day"""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _hhmm(moment: datetime) -> str:
    return f"{moment.hour:02d}:{moment.minute:02d}"


def _hour_key(hour: int) -> str:
    return f"{hour:02d}:00"


# booking window fetch

def booking_window(reference_date: Optional[date] = None, current_day: Optional[date] = None) -> tuple[date, date]:
    """[start, start + BOOKING_WINDOW_MONTHS]. start is the week start of reference_date
    when one is given, otherwise today."""
    if reference_date is not None:
        start = start_of_week(reference_date)
    else:
        start = current_day or today()
    return start, start + relativedelta(months=settings.BOOKING_WINDOW_MONTHS)


async def fetch_availability_slots(
    backend: BackendClient,
    reference_date: Optional[date] = None,
    current_day: Optional[date] = None,
) -> list[dict]:
    """calendar_slots rows whose date falls inside the booking window"""
    start, end = booking_window(reference_date, current_day)
    logger.info(f"Fetching availability slots from {start} to {end}")

    slots = await backend.fetch(
        "calendar_slots",
        filters=[Filter("date", "gte", start.isoformat()), Filter("date", "lte", end.isoformat())],
        order=[Order("date"), Order("start_time")],
    )
    logger.info(f"Fetched availability slots: {len(slots)}")
    return slots


async def fetch_booked_sessions(
    backend: BackendClient,
    reference_date: Optional[date] = None,
    current_day: Optional[date] = None,
) -> list[dict]:
    """future_sessions rows inside the booking window, with the patient name joined"""
    start, end = booking_window(reference_date, current_day)
    logger.info(f"Fetching booked sessions from {start} to {end}")

    # session_date is a timestamp, so the last day is covered with an exclusive bound
    sessions = await backend.fetch(
        "future_sessions",
        filters=[
            Filter("session_date", "gte", start.isoformat()),
            Filter("session_date", "lt", (end + timedelta(days=1)).isoformat()),
        ],
        order=[Order("session_date")],
        embed={"patients": Embed("patient_id", ("name",))},
    )
    logger.info(f"Fetched booked sessions: {len(sessions)}")
    return sessions


# week grid

def generate_week_days(current: date) -> list[WeekDay]:
    start = start_of_week(current)
    days = []
    for offset in range(7):
        day = start + timedelta(days=offset)
        days.append(WeekDay(date=day.isoformat(), label=DAY_LABELS_HE[offset], dayNumber=offset))
    return days


def generate_empty_calendar_data(current: date) -> Grid:
    grid: Grid = {}
    hours = range(settings.CALENDAR_FIRST_HOUR, settings.CALENDAR_FIRST_HOUR + settings.CALENDAR_HOURS)
    for day in generate_week_days(current):
        grid[day.date] = {
            _hour_key(h): CalendarSlot(date=day.date, day=day.day_number, hour=_hour_key(h))
            for h in hours
        }
    return grid


def apply_availability_slots(grid: Grid, slots: Sequence[dict]) -> Grid:
    """mark hourly cells with the status of matching calendar_slots rows"""
    for slot in slots:
        day_map = grid.get(slot.get("date", ""))
        start_time = slot.get("start_time") or ""
        if day_map is None or len(start_time) < 2:
            continue
        hour = f"{start_time[:2]}:00"
        if hour not in day_map:
            continue
        day_map[hour] = day_map[hour].model_copy(update={
            "status": slot.get("slot_type") or slot.get("status") or "unspecified",
            "notes": slot.get("notes") or "",
            "sync_status": "synced",
            "show_border": False,
        })
    return grid


def _span_cells(start: datetime, end: datetime):
    """(hour, is_first, is_last) for every hour cell an interval touches on its start day"""
    if end.date() != start.date():
        last_hour = 23
    elif end.minute == 0 and end.hour > start.hour:
        last_hour = end.hour - 1
    else:
        last_hour = end.hour
    for hour in range(start.hour, last_hour + 1):
        yield hour, hour == start.hour, hour == last_hour


def _end_minute(end: datetime, start: datetime) -> int:
    if end.date() != start.date() or end.minute == 0:
        return 60
    return end.minute


def process_google_events(grid: Grid, events: Sequence[GoogleCalendarEvent]) -> Grid:
    """book the cells covered by each timed google event"""
    for event in events:
        if not event.start.date_time or not event.end.date_time:
            logger.debug(f"Event {event.id} has no dateTime, skipping")
            continue
        try:
            start = to_local(event.start.date_time)
            end = to_local(event.end.date_time)
        except ValueError as e:
            logger.warning(f"Skipping event {event.id} with unparseable time: {e}")
            continue

        day_map = grid.get(start.date().isoformat())
        if day_map is None:
            continue

        summary = event.summary or ""
        patient_meeting = is_patient_meeting(summary)
        if patient_meeting:
            required = GOOGLE_SEFT_MINUTES if is_seft_session(summary) else GOOGLE_MEETING_MINUTES
            if end - start < timedelta(minutes=required):
                end = start + timedelta(minutes=required)

        icon = get_meeting_icon(summary)
        display = summary
        if patient_meeting and icon and not summary.startswith(icon):
            display = f"{icon} {summary}"

        duration = (end - start).total_seconds() / 60
        for hour, first, last in _span_cells(start, end):
            day_map[_hour_key(hour)] = CalendarSlot(
                date=start.date().isoformat(),
                day=(start.weekday() + 1) % 7,
                hour=_hour_key(hour),
                status="booked",
                notes=display,
                description=event.description or "",
                syncStatus="google-only",
                fromGoogle=True,
                isMeeting=True,
                isPatientMeeting=patient_meeting,
                showBorder=True,
                icon=icon or MEETING_ICON,
                startTime=_hhmm(start),
                endTime=_hhmm(end),
                hoursSpan=max(1, math.ceil(duration / 60)),
                isFirstHour=first,
                isLastHour=last,
                startMinute=start.minute if first else 0,
                endMinute=_end_minute(end, start) if last else 60,
                googleEventId=event.id,
            )
    return grid


def _matching_google_event(moment: datetime, events: Sequence[GoogleCalendarEvent]) -> Optional[GoogleCalendarEvent]:
    for event in events:
        if not event.start.date_time:
            continue
        try:
            event_start = to_local(event.start.date_time)
        except ValueError:
            continue
        if abs((moment - event_start).total_seconds()) < 60:
            return event
    return None


def process_future_sessions(
    grid: Grid,
    sessions: Sequence[dict],
    google_events: Sequence[GoogleCalendarEvent] = (),
    session_types: Optional[Sequence[SessionType]] = None,
) -> Grid:
    """book the cells of each scheduled session, merging over google cells"""
    for session in sessions:
        if not session.get("session_date"):
            logger.warning(f"Future session {session.get('id')} has no session_date, skipping")
            continue
        try:
            start = to_local(session["session_date"])
            if session.get("end_time"):
                end = to_local(session["end_time"])
            else:
                minutes = get_session_type_duration(session.get("session_type_id"), session_types)
                end = start + timedelta(minutes=minutes)
        except ValueError as e:
            logger.warning(f"Skipping future session {session.get('id')}: {e}")
            continue

        day_map = grid.get(start.date().isoformat())
        if day_map is None:
            continue

        in_google = _matching_google_event(start, google_events) is not None
        patient_name = (session.get("patients") or {}).get("name") or UNKNOWN_PATIENT
        icon = get_meeting_icon_by_type_id(session.get("session_type_id"))
        summary = f"{icon} פגישה עם {patient_name}"
        meeting_type = meeting_type_in_hebrew(session.get("meeting_type"))
        duration = (end - start).total_seconds() / 60

        for hour, first, last in _span_cells(start, end):
            key = _hour_key(hour)
            existing = day_map.get(key) or CalendarSlot(
                date=start.date().isoformat(), day=(start.weekday() + 1) % 7, hour=key,
            )
            day_map[key] = existing.model_copy(update={
                "status": "booked",
                "notes": summary,
                "description": f"פגישה {meeting_type} עם {patient_name}",
                "from_future_session": True,
                "future_session": existing.future_session or session,
                "in_google_calendar": in_google,
                "is_meeting": True,
                "is_patient_meeting": True,
                "sync_status": "synced" if in_google else "backend-only",
                "start_time": _hhmm(start),
                "end_time": _hhmm(end),
                "hours_span": max(1, math.ceil(duration / 60)),
                "is_first_hour": first,
                "is_last_hour": last,
                "start_minute": start.minute if first else 0,
                "end_minute": _end_minute(end, start) if last else 60,
                "show_border": True,
                "icon": icon,
            })
    return grid


async def build_week_calendar(
    backend: BackendClient,
    current: date,
    google_events: Sequence[GoogleCalendarEvent] = (),
    session_types: Optional[Sequence[SessionType]] = None,
) -> WeekCalendar:
    """compose the week grid for the week containing current"""
    slots, sessions = await asyncio.gather(
        fetch_availability_slots(backend, reference_date=current),
        fetch_booked_sessions(backend, reference_date=current),
    )

    grid = generate_empty_calendar_data(current)
    apply_availability_slots(grid, slots)
    if google_events:
        process_google_events(grid, google_events)
    process_future_sessions(grid, sessions, google_events, session_types)

    booked = sum(1 for day in grid.values() for cell in day.values() if cell.status == "booked")
    logger.info(f"Week of {start_of_week(current)}: {len(slots)} slots, {len(sessions)} sessions, {booked} booked cells")
    return WeekCalendar(days=generate_week_days(current), slots=grid)


def compare_calendar_data(google_events: Sequence[GoogleCalendarEvent], slots: Sequence[dict]) -> CalendarSyncComparison:
    """match provider events against availability slots by date and start time"""
    google_map: dict[str, GoogleCalendarEvent] = {}
    for event in google_events:
        if not event.start.date_time:
            continue
        try:
            start = to_local(event.start.date_time)
        except ValueError as e:
            logger.warning(f"Skipping event {event.id} with unparseable time: {e}")
            continue
        google_map[f"{start.date().isoformat()}_{_hhmm(start)}"] = event

    slot_map: dict[str, dict] = {}
    for slot in slots:
        if slot.get("date") and slot.get("start_time"):
            slot_map[f"{slot['date']}_{slot['start_time'][:5]}"] = slot

    comparison = CalendarSyncComparison()
    for key, event in google_map.items():
        if key in slot_map:
            comparison.matching_events.append({"googleEvent": event.model_dump(by_alias=True), "backendSlot": slot_map[key]})
        else:
            comparison.only_in_google.append(event)
    comparison.only_in_backend.extend(slot for key, slot in slot_map.items() if key not in google_map)
    return comparison
