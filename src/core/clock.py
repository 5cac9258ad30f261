"""Calendar and time source.

Day, week and month boundaries are computed in the configured timezone so that
rollover and redemption windows follow the player's calendar, not UTC offsets.
Weeks start on Monday (ISO 8601) unless a caller asks for another first weekday.
"""

from calendar import MONDAY
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from src.core.config import settings


def start_of_day(dt: datetime) -> datetime:
    """Return midnight of the day containing dt."""
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(dt: datetime, week_starts_on: int = MONDAY) -> datetime:
    """Return 00:00 on the first day of the week containing dt.

    week_starts_on uses the `calendar` weekday numbers (MONDAY=0 ... SUNDAY=6).
    """
    first_day = dt - timedelta(days=(dt.weekday() - week_starts_on) % 7)
    return start_of_day(first_day)


def start_of_month(dt: datetime) -> datetime:
    """Return 00:00 on the first day of the month containing dt."""
    return start_of_day(dt).replace(day=1)


def iso_week_id(value: date | datetime) -> str:
    """Return the ISO week identifier (e.g., '2026-W42') for a date."""
    year, week, _ = value.isocalendar()
    return f"{year}-W{week:02d}"


def days_between(earlier: date, later: date) -> int:
    """Return the number of calendar days from earlier to later."""
    return (later - earlier).days


class Clock:
    """Injectable time source. Subclasses only provide now()."""

    def __init__(self, tz: ZoneInfo) -> None:
        self.tz = tz

    def now(self) -> datetime:
        raise NotImplementedError

    def localize(self, dt: datetime) -> datetime:
        """Express a timestamp in the clock's timezone (naive values are treated as local)."""
        if dt.tzinfo is None:
            return dt.replace(tzinfo=self.tz)
        return dt.astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()

    def calendar_day(self, dt: datetime) -> date:
        """Return the local calendar day of a timestamp."""
        return self.localize(dt).date()

    def current_iso_week(self) -> str:
        return iso_week_id(self.now())

    def start_of_day(self, dt: datetime | None = None) -> datetime:
        return start_of_day(self.localize(dt or self.now()))

    def start_of_week(self, dt: datetime | None = None, *, week_starts_on: int = MONDAY) -> datetime:
        return start_of_week(self.localize(dt or self.now()), week_starts_on)

    def start_of_month(self, dt: datetime | None = None) -> datetime:
        return start_of_month(self.localize(dt or self.now()))


class SystemClock(Clock):
    """Wall-clock time in the configured timezone."""

    def now(self) -> datetime:
        return datetime.now(self.tz)


def get_clock() -> Clock:
    """Build the system clock for the configured timezone."""
    return SystemClock(ZoneInfo(settings.timezone))
