"""
Day and list views over agenda items.

Dates are parsed strictly as ISO-8601 first, then permissively. Items whose
date cannot be parsed at all are left out of date-bounded views; they are
never an error.
"""
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Union

from dateutil.parser import parse as parse_date
from dateutil.parser import ParserError

from .calendar_grid import DayCell, MONTH_NAMES
from .schema import AgendaItem


def parse_item_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an item date.

    The calendar day is taken as written; offsets are kept but not converted.
    Returns None if neither the ISO nor the permissive parser accepts it.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    try:
        # fromisoformat only accepts a trailing Z from 3.11 on
        return datetime.fromisoformat(text[:-1] + "+00:00" if text.endswith("Z") else text)
    except ValueError:
        pass
    try:
        return parse_date(text)
    except (ParserError, ValueError, OverflowError):
        return None


def time_sort_value(value: Optional[str]) -> int:
    """"09:30" → 930. Missing or unreadable times sort first as 0."""
    if not value or not isinstance(value, str):
        return 0
    try:
        return int(value.replace(":", ""))
    except ValueError:
        return 0


def item_day(item: AgendaItem) -> Optional[date]:
    parsed = parse_item_date(item.date)
    return parsed.date() if parsed else None


def items_for_day(items: Iterable[AgendaItem], day: Union[date, datetime]) -> List[AgendaItem]:
    """Items on the given calendar day, by time of day. Stable for equal times."""
    if isinstance(day, datetime):
        day = day.date()
    matching = [item for item in items if item_day(item) == day]
    return sorted(matching, key=lambda item: time_sort_value(item.time))


def sort_for_list(items: Iterable[AgendaItem]) -> List[AgendaItem]:
    """Items with a valid date, by day then time of day. Stable for ties."""
    dated = []
    for item in items:
        day = item_day(item)
        if day is not None:
            dated.append((day, time_sort_value(item.time), item))
    dated.sort(key=lambda entry: (entry[0], entry[1]))
    return [entry[2] for entry in dated]


def items_by_day(items: Iterable[AgendaItem], cells: List[DayCell]) -> Dict[date, List[AgendaItem]]:
    """Map every grid cell's date to its day-sorted items."""
    buckets: Dict[date, List[AgendaItem]] = {cell.date: [] for cell in cells}
    for item in items:
        day = item_day(item)
        if day in buckets:
            buckets[day].append(item)
    for day, bucket in buckets.items():
        bucket.sort(key=lambda item: time_sort_value(item.time))
    return buckets


def items_for_dj(items: Iterable[AgendaItem], dj_id: str) -> List[AgendaItem]:
    return [item for item in items if item.dj_id == dj_id]


def format_day(value: Union[date, datetime], pattern: str = "dd/MM/yyyy") -> str:
    """
    Format a date with one of the patterns the agenda screens use.

    Supported: "dd/MM/yyyy", "dd/MM", "dd 'de' MMMM". Anything else falls
    back to dd/MM/yyyy.
    """
    day = f"{value.day:02d}"
    month = f"{value.month:02d}"
    if pattern == "dd/MM":
        return f"{day}/{month}"
    if pattern == "dd 'de' MMMM":
        return f"{day} de {MONTH_NAMES[value.month - 1]}"
    return f"{day}/{month}/{value.year}"
