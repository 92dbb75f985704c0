import logging
from datetime import date, datetime, timedelta, timezone

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def now_millis() -> int:
    return (datetime.now(timezone.utc) - _EPOCH) // timedelta(milliseconds=1)


def _datetime_millis(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - _EPOCH) // timedelta(milliseconds=1)


def to_epoch_millis(value, now: int | None = None) -> int:
    """
    Normalize a timestamp to epoch milliseconds.

    Integers are taken as already normalized, digit strings likewise.
    ISO-8601 date-times and date-only strings are parsed, naive values as UTC.
    None, blanks and anything unparseable become ``now``.
    """
    if now is None:
        now = now_millis()
    if value is None or isinstance(value, bool):
        return now
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, datetime):
        return _datetime_millis(value)
    if isinstance(value, date):
        return _datetime_millis(datetime(value.year, value.month, value.day))
    raw = str(value).strip()
    if not raw:
        return now
    if raw.lstrip("-").isdigit():
        return int(raw)
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparseable timestamp %r replaced with current time", value)
        return now
    return _datetime_millis(parsed)
