"""Monthly timeline generation."""

from datetime import date, datetime
from typing import List, Optional

from ..models.lookups import DEFAULT_PROJECT_DURATION_MONTHS


def month_start(d: date) -> date:
    """First day of the month containing ``d``."""
    if isinstance(d, datetime):
        d = d.date()
    return d.replace(day=1)


def add_months(d: date, months: int) -> date:
    """Shift a month-start date by a whole number of months."""
    month_index = d.year * 12 + (d.month - 1) + months
    return date(month_index // 12, month_index % 12 + 1, 1)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month (may be negative)."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def resolve_end_date(start: date, end: Optional[date]) -> date:
    """Use the completion date when valid, else the default horizon."""
    if not isinstance(end, date):
        return add_months(month_start(start), DEFAULT_PROJECT_DURATION_MONTHS)
    return end


def generate_timeline(start: Optional[date], end: Optional[date] = None) -> List[date]:
    """Generate one period per calendar month, start through end inclusive.

    Periods are the first day of each month. If ``end`` is absent or not a
    date the timeline runs ``DEFAULT_PROJECT_DURATION_MONTHS`` past the start
    month. If ``end`` precedes ``start`` the timeline collapses to the start
    month alone rather than raising.

    Args:
        start: Project start date (None = current month).
        end: Project completion date.

    Returns:
        Ordered list of month-start dates.

    Example:
        >>> len(generate_timeline(date(2025, 1, 1), date(2026, 12, 1)))
        24
    """
    first = month_start(start if isinstance(start, date) else date.today())
    last = month_start(resolve_end_date(first, end))

    span = months_between(first, last)
    if span < 0:
        return [first]

    return [add_months(first, i) for i in range(span + 1)]


def period_label(period_start: date) -> str:
    """Display label for a period, e.g. "Jan 2025"."""
    return period_start.strftime("%b %Y")
