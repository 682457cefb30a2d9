"""
Month grid for the personal agenda calendar.

Weeks start on Monday. The grid opens with the tail of the previous month,
lists every day of the month, then pads with the next month until the last
week is complete, so it always holds 28, 35 or 42 cells.
"""
import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Tuple

MONTH_NAMES = [
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
]


@dataclass(frozen=True)
class DayCell:
    """One calendar cell."""
    date: date
    in_current_month: bool

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "inCurrentMonth": self.in_current_month}


def normalize_month(year: int, month_index: int) -> Tuple[int, int]:
    """Fold a zero-based month index outside 0..11 into the adjacent years."""
    year += month_index // 12
    return year, month_index % 12


def shift_month(year: int, month_index: int, delta: int) -> Tuple[int, int]:
    """Previous/next month navigation: (2024, 0) shifted by -1 is (2023, 11)."""
    return normalize_month(year, month_index + delta)


def month_label(year: int, month_index: int) -> str:
    year, month_index = normalize_month(year, month_index)
    return f"{MONTH_NAMES[month_index]} de {year}"


def build_month_grid(year: int, month_index: int) -> List[DayCell]:
    """
    Build the Monday-first grid for a month.

    Args:
        year: Four-digit year
        month_index: Zero-based month (0 = January)

    Returns:
        List of DayCell, length a multiple of 7, first cell a Monday
    """
    year, month_index = normalize_month(year, month_index)
    first = date(year, month_index + 1, 1)
    days_in_month = calendar.monthrange(year, month_index + 1)[1]

    sunday_indexed = first.isoweekday() % 7      # 0=Sun..6=Sat
    leading = (sunday_indexed + 6) % 7           # 0=Mon..6=Sun
    total_cells = -(-(leading + days_in_month) // 7) * 7

    cells: List[DayCell] = []
    for offset in range(leading, 0, -1):
        cells.append(DayCell(first - timedelta(days=offset), False))
    for day in range(days_in_month):
        cells.append(DayCell(first + timedelta(days=day), True))
    while len(cells) < total_cells:
        cells.append(DayCell(cells[-1].date + timedelta(days=1), False))
    return cells


def weeks(cells: List[DayCell]) -> List[List[DayCell]]:
    """Split a grid into rows of 7."""
    return [cells[i:i + 7] for i in range(0, len(cells), 7)]
