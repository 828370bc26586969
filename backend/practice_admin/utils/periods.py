# period label -> calendar-month-aligned date range
# used by the finance views to pick the reporting window

import logging
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from practice_admin.config import settings
from practice_admin.models.finance import DateRange

logger = logging.getLogger(__name__)

DEFAULT_PERIOD = "3months"

# label -> (months back for start, months ahead for end)
PERIOD_OFFSETS = {
    "month": (0, 0),
    "quarter": (2, 0),
    "3months": (1, 1),
    "year": (11, 0),
}


def today() -> date:
    """current date in the practice timezone"""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).date()


def start_of_month(day: date) -> date:
    return day.replace(day=1)


def end_of_month(day: date) -> date:
    return start_of_month(day) + relativedelta(months=1, days=-1)


def get_date_range_for_period(period: str, now: Optional[date] = None) -> DateRange:
    """resolve a period label to a {start, end} range of whole months.
    unrecognized labels fall back to 3months without raising."""
    now = now or today()
    if isinstance(now, datetime):
        now = now.date()

    offsets = PERIOD_OFFSETS.get(period)
    if offsets is None:
        logger.debug(f"Unknown period label {period!r}, using {DEFAULT_PERIOD}")
        offsets = PERIOD_OFFSETS[DEFAULT_PERIOD]

    back, ahead = offsets
    return DateRange(
        start=start_of_month(now - relativedelta(months=back)),
        end=end_of_month(now + relativedelta(months=ahead)),
    )
