"""
Date normalization for job records

Rows arrive with dates as epoch-millisecond numbers, numeric strings,
ISO strings or free text. Everything is reduced to a YYYY-MM-DD string.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Tried in order after ISO-8601 parsing fails
_FALLBACK_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%a %b %d %Y",
)


def today() -> date:
    """Current calendar date in UTC"""
    return datetime.now(timezone.utc).date()


def today_iso() -> str:
    return today().isoformat()


def days_ago_iso(days: int, reference: Optional[date] = None) -> str:
    base = reference or today()
    return (base - timedelta(days=days)).isoformat()


def _from_epoch_millis(value: float) -> Optional[str]:
    try:
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc).date().isoformat()
    except (OverflowError, OSError, ValueError):
        return None


def _is_numeric(text: str) -> bool:
    try:
        float(text)
        return True
    except ValueError:
        return False


def _from_text(text: str) -> Optional[str]:
    candidate = text.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        parsed = None

    if parsed is not None:
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        return parsed.date().isoformat()

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(candidate, fmt).date().isoformat()
        except ValueError:
            continue
    return None


def normalize_date(value: Any) -> str:
    """
    Convert any stored date representation to YYYY-MM-DD.

    Empty input and anything unparseable become today's date, so this
    never raises. Numbers (and numeric strings without '-') are epoch
    milliseconds.
    """
    if isinstance(value, bool) or not value:
        return today_iso()

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    result: Optional[str] = None
    if isinstance(value, (int, float)):
        result = _from_epoch_millis(float(value))
    else:
        text = str(value).strip()
        if text and "-" not in text and _is_numeric(text):
            result = _from_epoch_millis(float(text))
        elif text:
            result = _from_text(text)

    if result is None:
        logger.warning(f"⚠️ Unparseable date {value!r}, using today")
        return today_iso()
    return result
