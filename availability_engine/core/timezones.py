"""Conversion between an actor's local wall-clock time and UTC instants.

Local dates and times never carry an offset. Two DST edge cases get fixed rules:

* a wall-clock time inside a spring-forward gap does not exist and is rejected
  with ``NonexistentLocalTime``;
* a wall-clock time repeated by a fall-back transition resolves to its earlier
  occurrence (``fold=0``).
"""

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class InvalidLocalDate(ValueError):
    pass


class InvalidLocalTimeFormat(ValueError):
    pass


class NonexistentLocalTime(ValueError):
    def __init__(self, local_date: date, local_time: time, tz_name: str) -> None:
        super().__init__(
            f"{local_date.isoformat()} {local_time.strftime('%H:%M')} does not exist in {tz_name} "
            "(skipped by a daylight-saving transition)"
        )
        self.local_date = local_date
        self.local_time = local_time


class UnknownTimeZone(ValueError):
    pass


def resolve_zone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise UnknownTimeZone(f"Unknown time zone: {tz_name!r}") from e


def parse_local_date(value: date | str) -> date:
    """Accept a date or a YYYY-MM-DD string."""
    if isinstance(value, datetime):
        raise InvalidLocalDate(f"Expected a civil date, got a datetime: {value!r}")
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as e:
        raise InvalidLocalDate(f"Invalid date {value!r}, expected YYYY-MM-DD") from e


def parse_local_time(value: time | str) -> time:
    """Accept a time or an HH:MM string (24h clock)."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    if not isinstance(value, str):
        raise InvalidLocalTimeFormat(f"Invalid time {value!r}, expected HH:MM")
    parts = value.strip().split(":")
    if len(parts) != 2 or not all(p.isdigit() and len(p) == 2 for p in parts):
        raise InvalidLocalTimeFormat(f"Invalid time {value!r}, expected HH:MM")
    hours, minutes = int(parts[0]), int(parts[1])
    if hours > 23 or minutes > 59:
        raise InvalidLocalTimeFormat(f"Invalid time {value!r}, expected HH:MM")
    return time(hours, minutes)


def format_local_time(t: time) -> str:
    return f"{t.hour:02d}:{t.minute:02d}"


def minutes_since_midnight(t: time) -> int:
    return t.hour * 60 + t.minute


def local_weekday(local_date: date) -> int:
    """Weekday index with 0=Sunday, 1=Monday ... 6=Saturday."""
    return local_date.isoweekday() % 7


def _wall_clock(local_date: date, local_time: time, zone: ZoneInfo) -> datetime:
    # fold=0 picks the earlier of two repeated wall-clock times
    return datetime.combine(local_date, local_time).replace(tzinfo=zone, fold=0)


def is_valid_local_instant(local_date: date, local_time: time | str, tz_name: str) -> bool:
    zone = resolve_zone(tz_name)
    local_time = parse_local_time(local_time)
    wall = _wall_clock(local_date, local_time, zone)
    round_trip = wall.astimezone(UTC).astimezone(zone)
    return round_trip.replace(tzinfo=None) == wall.replace(tzinfo=None)


def to_utc(local_date: date, local_time: time | str, tz_name: str) -> datetime:
    """Aware UTC instant for a local wall-clock date+time."""
    zone = resolve_zone(tz_name)
    local_time = parse_local_time(local_time)
    if not is_valid_local_instant(local_date, local_time, tz_name):
        raise NonexistentLocalTime(local_date, local_time, tz_name)
    return _wall_clock(local_date, local_time, zone).astimezone(UTC)


def day_bounds_utc(local_date: date, tz_name: str) -> tuple[datetime, datetime]:
    """Half-open [start, end) UTC bounds of a local calendar day.

    The day runs from local midnight of ``local_date`` to local midnight of the next
    day, so a 23:45 local booking stays inside its own day even when its UTC instant
    falls on the following UTC date.
    """
    zone = resolve_zone(tz_name)
    start = _wall_clock(local_date, time(0, 0), zone).astimezone(UTC)
    end = _wall_clock(local_date + timedelta(days=1), time(0, 0), zone).astimezone(UTC)
    return start, end


def utc_to_local(instant: datetime, tz_name: str) -> datetime:
    """Local wall-clock datetime (aware) for a UTC instant; naive input is read as UTC."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(resolve_zone(tz_name))


def local_today(now: datetime, tz_name: str) -> date:
    return utc_to_local(now, tz_name).date()


def to_naive_utc(dt: datetime) -> datetime:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    if dt.tzinfo is not None:
        return dt.astimezone(UTC).replace(tzinfo=None)
    return dt


def as_aware_utc(dt: datetime) -> datetime:
    """Naive values coming back from the database are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def utc_now() -> datetime:
    return datetime.now(UTC)
