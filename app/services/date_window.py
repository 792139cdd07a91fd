"""Resolution of the optional fromDate/toDate query parameters into a time window."""
import calendar
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from app.core.exceptions import InvalidDateRangeError

START_OF_DAY = time(0, 0, 0, 0)
END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class DateWindow:
    """Inclusive bounds on a record's date. A None side is unbounded."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {"from": to_iso(self.start), "to": to_iso(self.end)}


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize with millisecond precision, e.g. 2024-03-31T23:59:59.999."""
    if value is None:
        return None
    return value.isoformat(timespec="milliseconds")


def _parse_day(raw: str, param: str) -> date:
    """
    Calendar date of a YYYY-MM-DD string or an ISO-8601 timestamp.

    A timestamp with an offset keeps the calendar date it has in that offset;
    it is not converted to server-local time first, so
    "2024-03-31T23:30:00-05:00" is March 31 on every server.
    """
    text = raw.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise InvalidDateRangeError(
            f"Invalid {param}: '{raw}'. Expected a date like YYYY-MM-DD",
            details={"param": param, "value": raw},
        )


def parse_date_bounds(
    from_date: Optional[str],
    to_date: Optional[str],
) -> DateWindow:
    """Expand each supplied bound to the start/end of its day, independently."""
    start = None
    end = None
    if from_date:
        start = datetime.combine(_parse_day(from_date, "fromDate"), START_OF_DAY)
    if to_date:
        end = datetime.combine(_parse_day(to_date, "toDate"), END_OF_DAY)
    return DateWindow(start=start, end=end)


def current_month_window(now: Optional[datetime] = None) -> DateWindow:
    """First instant to last millisecond of the month containing `now` (server-local)."""
    today = (now or datetime.now()).date()
    last_day = calendar.monthrange(today.year, today.month)[1]
    return DateWindow(
        start=datetime.combine(today.replace(day=1), START_OF_DAY),
        end=datetime.combine(today.replace(day=last_day), END_OF_DAY),
    )


def resolve_date_window(
    from_date: Optional[str],
    to_date: Optional[str],
    now: Optional[datetime] = None,
) -> DateWindow:
    """
    Resolve the analytics window.

    With neither bound supplied (None or empty) the window is the current
    calendar month. Otherwise each supplied bound is applied on its own and
    the missing side stays open. A start after the end is not rejected; it
    simply matches nothing.
    """
    if not from_date and not to_date:
        return current_month_window(now)
    return parse_date_bounds(from_date, to_date)
