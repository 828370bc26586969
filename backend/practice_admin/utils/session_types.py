# session type lookups: duration, display icon and icon color
# pure and total: every lookup has a fallback instead of an error

from typing import Optional, Sequence

from practice_admin.config import settings
from practice_admin.models.session import SessionType

DEFAULT_SESSION_TYPES = [
    {"name": "פגישה רגילה (קוד הנפש)", "code": "regular", "duration_minutes": 90, "is_default": True},
    {"name": "פגישת אינטייק", "code": "intake", "duration_minutes": 75, "is_default": False},
    {"name": "פגישת SEFT", "code": "seft", "duration_minutes": 240, "is_default": False},
]

SESSION_TYPE_ICONS = {
    "regular": "ק",
    "intake": "א",
    "seft": "S",
}

SESSION_TYPE_COLORS = {
    "regular": "bg-purple-100 text-purple-700",
    "intake": "bg-blue-100 text-blue-700",
    "seft": "bg-green-100 text-green-700",
}
UNKNOWN_TYPE_COLOR = "bg-gray-100 text-gray-600"
FALLBACK_TYPE_COLOR = "bg-orange-100 text-orange-700"


def default_session_types() -> list[SessionType]:
    """the built-in types, numbered from 1 in declaration order"""
    return [SessionType(id=i + 1, **t) for i, t in enumerate(DEFAULT_SESSION_TYPES)]


def get_default_session_type() -> SessionType:
    return default_session_types()[0]


def find_session_type(
    session_type_id: Optional[int],
    session_types: Optional[Sequence[SessionType]],
) -> Optional[SessionType]:
    if not session_type_id or not session_types:
        return None
    for session_type in session_types:
        if session_type.id == session_type_id:
            return session_type
    return None


def get_session_type_duration(
    session_type_id: Optional[int],
    session_types: Optional[Sequence[SessionType]] = None,
) -> int:
    """duration in minutes, the default session length when the type is unknown"""
    session_type = find_session_type(session_type_id, session_types)
    return session_type.duration_minutes if session_type else settings.DEFAULT_SESSION_MINUTES


def get_session_type_icon(
    session_type_id: Optional[int],
    session_types: Optional[Sequence[SessionType]] = None,
) -> Optional[str]:
    session_type = find_session_type(session_type_id, session_types)
    if session_type is None:
        return None
    # first character of the name for codes without a fixed glyph
    return SESSION_TYPE_ICONS.get(session_type.code, session_type.name[:1])


def get_session_type_icon_color(
    session_type_id: Optional[int],
    session_types: Optional[Sequence[SessionType]] = None,
) -> str:
    session_type = find_session_type(session_type_id, session_types)
    if session_type is None:
        return UNKNOWN_TYPE_COLOR
    return SESSION_TYPE_COLORS.get(session_type.code, FALLBACK_TYPE_COLOR)
