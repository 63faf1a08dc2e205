from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple
import datetime as dt

from domain.calendar_clock import day_number_of_date
from koenawin.engine import CYCLE_LENGTH, GRID_DAYS, DerivedSchedule, derive_schedule


@dataclass
class ScheduledDay:
    date: dt.date
    schedule: DerivedSchedule


def bead_step(selected: Optional[int], total: int) -> Tuple[Optional[int], bool]:
    """
    Advance the bead pointer by one.
    Returns (new_selected, cycle_completed). Stepping past the last bead
    completes the cycle and clears the pointer.
    """
    if selected is not None and selected >= total - 1:
        return None, True
    return (0 if selected is None else selected + 1), False


def bead_back(selected: Optional[int]) -> Optional[int]:
    if selected is None or selected == 0:
        return selected
    return selected - 1


def beads_counted(selected: Optional[int]) -> int:
    return 0 if selected is None else selected + 1


def upcoming_days(start_date: Optional[dt.date], today: dt.date, days: int = 7) -> List[ScheduledDay]:
    out: List[ScheduledDay] = []
    for i in range(max(0, days)):
        d = today + dt.timedelta(days=i)
        out.append(ScheduledDay(date=d, schedule=derive_schedule(start_date, day_number_of_date(d))))
    return out


def days_until_rest(start_date: Optional[dt.date], today: dt.date) -> Optional[int]:
    """0 on a rest day, None when no schedule is running."""
    s = derive_schedule(start_date, day_number_of_date(today))
    if not s.started or s.day_in_cycle is None:
        return None
    if s.is_rest_day:
        return 0
    return GRID_DAYS - s.day_in_cycle


def cycle_progress(start_date: Optional[dt.date], today: dt.date) -> Optional[Tuple[int, int]]:
    """(full 83-day cycles completed, 1-based day within current cycle)."""
    s = derive_schedule(start_date, day_number_of_date(today))
    if not s.started or s.day_in_cycle is None:
        return None
    return s.days_passed // CYCLE_LENGTH, s.day_in_cycle + 1


def valid_bead_pointer(selected: Optional[int], total: int) -> Optional[int]:
    """Drop a pointer that no longer fits the current bead mode."""
    if selected is None or not 0 <= selected < total:
        return None
    return selected


def bead_fraction(selected: Optional[int], total: int) -> float:
    if total <= 0:
        return 0.0
    return min(1.0, beads_counted(valid_bead_pointer(selected, total)) / total)


def settings_changes(
    current_mode: int,
    current_start: Optional[dt.date],
    mode: int,
    start: Optional[dt.date],
) -> Tuple[Optional[int], Optional[dt.date]]:
    """
    (mode to save, start date to save); None where nothing changed.
    An empty date field never sets a start date.
    """
    new_mode = mode if int(mode) != int(current_mode) else None
    new_start = start if start is not None and start != current_start else None
    return new_mode, new_start
