# meeting icon detection for calendar cells
# works on free-text summaries (google events) and on session_type_id (backend sessions)

from typing import Optional

SEFT_ICON = "⚡"
INTAKE_ICON = "📝"
MEETING_ICON = "⭐"

PATIENT_MEETING_PREFIX = "פגישה עם"

_SEFT_KEYWORDS = ("seft", "ספט")
_INTAKE_KEYWORDS = ("intake", "אינטייק")

_ICONS_BY_TYPE_ID = {1: MEETING_ICON, 2: INTAKE_ICON, 3: SEFT_ICON}

MEETING_TYPES_HE = {
    "Zoom": "זום",
    "Phone": "טלפון",
    "In-Person": "פגישה פרונטלית",
    "Private": "זמן פרטי",
}


def _normalize(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def is_patient_meeting(summary: Optional[str]) -> bool:
    return _normalize(summary).startswith(PATIENT_MEETING_PREFIX)


def is_seft_session(summary: Optional[str]) -> bool:
    text = _normalize(summary)
    return any(k in text for k in _SEFT_KEYWORDS)


def is_intake_session(summary: Optional[str]) -> bool:
    text = _normalize(summary)
    return any(k in text for k in _INTAKE_KEYWORDS)


def get_meeting_icon(summary: Optional[str] = "") -> Optional[str]:
    """icon for a calendar summary, None when it does not look like a meeting"""
    if is_seft_session(summary):
        return SEFT_ICON
    if is_intake_session(summary):
        return INTAKE_ICON
    if is_patient_meeting(summary) or "פגישה" in _normalize(summary):
        return MEETING_ICON
    return None


def get_meeting_icon_by_type_id(session_type_id: Optional[int]) -> str:
    return _ICONS_BY_TYPE_ID.get(session_type_id, MEETING_ICON)


def meeting_type_in_hebrew(meeting_type: Optional[str]) -> str:
    if not meeting_type:
        return "לא צוין"
    return MEETING_TYPES_HE.get(meeting_type, meeting_type)
