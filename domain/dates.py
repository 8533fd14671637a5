"""Date parsing boundary.

Every check-in/check-out entering the system passes through
``parse_datetime`` once; after that the engine only sees timezone-aware
datetimes in hotel civil time (UTC+9).
"""
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Optional, Tuple, Union

from domain.exceptions import InvalidDateError

HOTEL_TZ = timezone(timedelta(hours=9), "KST")

DateInput = Union[str, date, datetime, None]

# strptime patterns tried in order after ISO parsing fails
_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y년 %m월 %d일 %H:%M",
    "%Y.%m.%d %H:%M:%S",
    "%Y.%m.%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%d %b %Y %H:%M:%S",
    "%d %b %Y %H:%M",
    "%b %d, %Y %H:%M",
    "%d-%m-%Y %H:%M",
    "%d.%m.%Y %H:%M",
    "%d/%m/%Y %H:%M",
)
_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y년 %m월 %d일",
    "%Y.%m.%d",
    "%Y/%m/%d",
    "%d %b %Y",
    "%b %d, %Y",
    "%b %d %Y",
    "%B %d, %Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d/%m/%Y",
)


class DateParseCache:
    """Per-process memo of raw string -> parsed datetime.

    Owned by whoever wires the application together; tests call ``reset``.
    """

    def __init__(self):
        self._entries: Dict[Tuple[str, Optional[str]], Optional[datetime]] = {}

    def get(self, key: Tuple[str, Optional[str]]) -> Tuple[bool, Optional[datetime]]:
        if key in self._entries:
            return True, self._entries[key]
        return False, None

    def put(self, key: Tuple[str, Optional[str]], value: Optional[datetime]) -> None:
        self._entries[key] = value

    def reset(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def clean_date_string(value: str) -> str:
    """Strip OTA decorations such as "(토)" or a trailing "미리예약"."""
    cleaned = re.sub(r"\([^)]*\)", "", value)
    cleaned = re.sub(r"-+$", "", cleaned.strip())
    cleaned = cleaned.replace("미리예약", "")
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned.strip()


def parse_time_of_day(value: str) -> time:
    """Parse "HH:mm" (or "HH:mm:ss") into a time"""
    parts = [int(p) for p in value.split(":")]
    while len(parts) < 3:
        parts.append(0)
    return time(parts[0], parts[1], parts[2])


def to_hotel_time(value: datetime) -> datetime:
    """Attach UTC+9 to naive datetimes, convert aware ones"""
    if value.tzinfo is None:
        return value.replace(tzinfo=HOTEL_TZ)
    return value.astimezone(HOTEL_TZ)


def _parse_string(raw: str, default_time: Optional[str]) -> Optional[datetime]:
    cleaned = clean_date_string(raw)
    if not cleaned:
        return None

    try:
        parsed = datetime.fromisoformat(cleaned.replace("Z", "+00:00"))
        if "T" not in cleaned and " " not in cleaned and default_time:
            parsed = datetime.combine(parsed.date(), parse_time_of_day(default_time))
        return to_hotel_time(parsed)
    except ValueError:
        pass

    for fmt in _DATETIME_FORMATS:
        try:
            return to_hotel_time(datetime.strptime(cleaned, fmt))
        except ValueError:
            continue

    for fmt in _DATE_FORMATS:
        try:
            day = datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
        clock = parse_time_of_day(default_time) if default_time else time(0, 0)
        return datetime.combine(day, clock, tzinfo=HOTEL_TZ)

    return None


def parse_datetime(
    value: DateInput,
    default_time: Optional[str] = None,
    cache: Optional[DateParseCache] = None,
) -> Optional[datetime]:
    """Normalise a check-in/check-out value to an aware UTC+9 datetime.

    Accepts datetimes, dates and the string shapes OTA sites send. Date-only
    values take ``default_time`` ("HH:mm") when given, midnight otherwise.
    Returns None when the value cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_hotel_time(value)
    if isinstance(value, date):
        clock = parse_time_of_day(default_time) if default_time else time(0, 0)
        return datetime.combine(value, clock, tzinfo=HOTEL_TZ)
    if not isinstance(value, str):
        return None

    key = (value, default_time)
    if cache is not None:
        hit, cached = cache.get(key)
        if hit:
            return cached

    parsed = _parse_string(value, default_time)
    if cache is not None:
        cache.put(key, parsed)
    return parsed


def require_datetime(
    value: DateInput,
    field: str,
    default_time: Optional[str] = None,
    cache: Optional[DateParseCache] = None,
) -> datetime:
    """Like parse_datetime but raises InvalidDateError on failure"""
    parsed = parse_datetime(value, default_time=default_time, cache=cache)
    if parsed is None:
        raise InvalidDateError(value, field)
    return parsed


def start_of_day(value: datetime) -> datetime:
    """Midnight of the civil day ``value`` falls in"""
    value = to_hotel_time(value)
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def format_date(value: Union[date, datetime]) -> str:
    """yyyy-MM-dd key used by availability maps"""
    if isinstance(value, datetime):
        value = to_hotel_time(value).date()
    return value.isoformat()


def iter_days(start: date, end: date):
    """Yield each calendar day in [start, end)"""
    current = start
    while current < end:
        yield current
        current += timedelta(days=1)
