from __future__ import annotations

import re
from datetime import date, datetime

from .errors import InvalidDate

DATE_FORMAT = "%Y%m%d"
SEARCH_DATE_FORMAT = "%d.%m.%Y"

_DATE_RE = re.compile(r"[0-9]{8}")
_SEARCH_DATE_RE = re.compile(r"[0-9]{2}\.[0-9]{2}\.[0-9]{4}")


def parse_date(text: str) -> date:
    """Parse the fixed-width ``YYYYMMDD`` form used for storage and interchange."""
    if not _DATE_RE.fullmatch(text or ""):
        raise InvalidDate(text)
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError as exc:
        raise InvalidDate(text) from exc


def format_date(value: date) -> str:
    # strftime("%Y") does not zero-pad years below 1000 on every platform
    return f"{value.year:04d}{value.month:02d}{value.day:02d}"


def parse_search_date(text: str) -> date | None:
    """Return the date for a ``DD.MM.YYYY`` search term, or None for free text."""
    if not _SEARCH_DATE_RE.fullmatch(text):
        return None
    try:
        return datetime.strptime(text, SEARCH_DATE_FORMAT).date()
    except ValueError:
        return None


def as_date(moment: date | datetime) -> date:
    if isinstance(moment, datetime):
        return moment.date()
    return moment
