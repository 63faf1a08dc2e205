# koenawin/engine.py
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any, Callable, Optional, Tuple
import datetime as dt
import logging
import threading

from domain.calendar_clock import (
    calendar_date_key,
    day_number_of_date,
    now_utc,
    practice_day_number,
)

logger = logging.getLogger("koenawin.engine")


# ----------------------------
# Constants
# ----------------------------

# Row-major. Each cell is the round number (and cycles needed) for one day.
GRID: Tuple[Tuple[int, ...], ...] = (
    (2, 9, 4, 7, 5, 3, 6, 1, 8),
    (3, 1, 5, 8, 6, 4, 7, 2, 9),
    (4, 2, 6, 9, 7, 5, 8, 3, 1),
    (5, 3, 7, 1, 8, 6, 9, 4, 2),
    (6, 4, 8, 2, 9, 7, 1, 5, 3),
    (7, 5, 9, 3, 1, 8, 2, 6, 4),
    (8, 6, 1, 4, 2, 9, 3, 7, 5),
    (9, 7, 2, 5, 3, 1, 4, 8, 6),
    (1, 8, 3, 6, 4, 2, 5, 9, 7),
)

GRID_SIZE = 9
GRID_DAYS = GRID_SIZE * GRID_SIZE  # 81
CYCLE_LENGTH = 83                  # 81 grid days + 2 rest days
SPECIAL_COLUMN = 4

ROUND_NAMES = {
    1: "အရဟံ",
    2: "သမ္ပာသမ္ဗုဒ္ဓေါ",
    3: "ဝိဇ္ဇာစရဏသမ္ပန္နော",
    4: "သုဂတော",
    5: "လောကဝိဒူ",
    6: "အနုတ္တရောပုရိသဓမ္မသာရထိ",
    7: "သတ္ထာဒေဝမနုဿာနံ",
    8: "ဗုဒ္ဓေါ",
    9: "ဘဂဝါ",
}
REST_DAY_LABEL = "နားရက် - Rest Day"
SPECIAL_DAY_LABEL = "သက်သတ်လွတ်နေ့ - Vegetarian Day"


class PracticeMode(IntEnum):
    FULL = 108
    SIMPLE = 9


def coerce_practice_mode(value: Any) -> PracticeMode:
    try:
        return PracticeMode(int(value))
    except (TypeError, ValueError):
        return PracticeMode.FULL


# ----------------------------
# Errors
# ----------------------------

class InvalidStartDate(ValueError):
    """Start date is not a Monday."""

    def __init__(self, date: dt.date):
        self.date = date
        super().__init__(f"{date.isoformat()} is a {date.strftime('%A')}. Please select a Monday.")


# ----------------------------
# Data models
# ----------------------------

@dataclass
class ScheduleState:
    """
    Mutable, persisted progress.
    - start_date=None means no schedule is configured (no daily goal).
    - cycles_completed_today / goal_celebrated_today are only ever reset together.
    """
    start_date: Optional[dt.date] = None
    practice_mode: PracticeMode = PracticeMode.FULL
    cycles_completed_today: int = 0
    goal_celebrated_today: bool = False
    last_seen_date_key: str = ""


@dataclass(frozen=True)
class DerivedSchedule:
    configured: bool
    days_passed: int
    day_in_cycle: Optional[int]
    is_rest_day: bool
    is_special_day: bool
    round_number: int
    cycles_needed_today: int
    row_index: Optional[int] = None
    col_index: Optional[int] = None

    @property
    def started(self) -> bool:
        return self.configured and self.days_passed >= 0

    @property
    def has_goal(self) -> bool:
        return self.started and not self.is_rest_day

    @property
    def round_name(self) -> str:
        return ROUND_NAMES.get(self.round_number, "")


@dataclass(frozen=True)
class CompletionResult:
    cycles_completed_today: int
    goal_just_reached: bool


@dataclass(frozen=True)
class RolloverResult:
    rolled: bool


NOT_CONFIGURED = DerivedSchedule(
    configured=False,
    days_passed=0,
    day_in_cycle=None,
    is_rest_day=False,
    is_special_day=False,
    round_number=0,
    cycles_needed_today=0,
)


# ----------------------------
# Pure derivation
# ----------------------------

def is_monday(d: dt.date) -> bool:
    return d.weekday() == 0


def grid_position(day_in_cycle: int) -> Tuple[int, int]:
    if not 0 <= day_in_cycle < GRID_DAYS:
        raise ValueError(f"day_in_cycle out of grid range: {day_in_cycle}")
    return day_in_cycle // GRID_SIZE, day_in_cycle % GRID_SIZE


def derive_schedule(start_date: Optional[dt.date], today_day_number: int) -> DerivedSchedule:
    if start_date is None:
        return NOT_CONFIGURED

    days_passed = today_day_number - day_number_of_date(start_date)
    if days_passed < 0:
        return DerivedSchedule(
            configured=True,
            days_passed=days_passed,
            day_in_cycle=None,
            is_rest_day=False,
            is_special_day=False,
            round_number=0,
            cycles_needed_today=0,
        )

    day_in_cycle = days_passed % CYCLE_LENGTH
    if day_in_cycle >= GRID_DAYS:
        return DerivedSchedule(
            configured=True,
            days_passed=days_passed,
            day_in_cycle=day_in_cycle,
            is_rest_day=True,
            is_special_day=False,
            round_number=0,
            cycles_needed_today=0,
        )

    row, col = grid_position(day_in_cycle)
    round_number = GRID[row][col]
    return DerivedSchedule(
        configured=True,
        days_passed=days_passed,
        day_in_cycle=day_in_cycle,
        is_rest_day=False,
        is_special_day=(col == SPECIAL_COLUMN),
        round_number=round_number,
        cycles_needed_today=round_number,
        row_index=row,
        col_index=col,
    )


# ----------------------------
# Stateful scheduler
# ----------------------------

class ScheduleEngine:
    """
    Owns one ScheduleState and the DerivedSchedule cached for the current
    practice day. Every mutating call persists through `store.save(state)`.

    Mutations are serialized with a lock: the Streamlit host shares one engine
    across session threads and the rollover tick. Callers that build their own
    host must not mutate `state` directly.
    """

    def __init__(self, store, clock: Optional[Callable[[], dt.datetime]] = None):
        self.store = store
        self.clock = clock or now_utc
        self._lock = threading.RLock()
        self._state = ScheduleState(last_seen_date_key=calendar_date_key(self.clock()))
        self._schedule = self.derive()

    # ---- setup ----
    def configure(self, state: ScheduleState, now: Optional[dt.datetime] = None) -> None:
        with self._lock:
            self._state = replace(
                state,
                start_date=_as_date(state.start_date),
                practice_mode=coerce_practice_mode(state.practice_mode),
                cycles_completed_today=max(0, int(state.cycles_completed_today)),
            )
            self._schedule = self.derive(now)

    def set_start_date(self, date: dt.date, now: Optional[dt.datetime] = None) -> None:
        date = _as_date(date)
        if not is_monday(date):
            raise InvalidStartDate(date)
        with self._lock:
            new_state = replace(
                self._state,
                start_date=date,
                cycles_completed_today=0,
                goal_celebrated_today=False,
            )
            new_schedule = derive_schedule(date, practice_day_number(now or self.clock()))
            self._commit(new_state, new_schedule)
            logger.info("start date set to %s", date.isoformat())

    def set_practice_mode(self, mode: Any) -> PracticeMode:
        with self._lock:
            self._commit(replace(self._state, practice_mode=coerce_practice_mode(mode)))
            return self._state.practice_mode

    # ---- derivation ----
    def derive(self, now: Optional[dt.datetime] = None) -> DerivedSchedule:
        now = now or self.clock()
        return derive_schedule(self._state.start_date, practice_day_number(now))

    # ---- progress ----
    def complete_cycle(self) -> CompletionResult:
        with self._lock:
            cycles = self._state.cycles_completed_today + 1
            goal_just_reached = (
                self._schedule.has_goal
                and cycles >= self._schedule.cycles_needed_today
                and not self._state.goal_celebrated_today
            )
            self._commit(
                replace(
                    self._state,
                    cycles_completed_today=cycles,
                    goal_celebrated_today=self._state.goal_celebrated_today or goal_just_reached,
                )
            )
            return CompletionResult(cycles, goal_just_reached)

    def reset_today(self) -> None:
        # goal_celebrated_today survives a manual reset
        with self._lock:
            self._commit(replace(self._state, cycles_completed_today=0))

    def check_rollover(self, now: Optional[dt.datetime] = None) -> RolloverResult:
        now = now or self.clock()
        key = calendar_date_key(now)
        with self._lock:
            if key == self._state.last_seen_date_key:
                return RolloverResult(rolled=False)
            previous = self._state.last_seen_date_key
            new_state = replace(
                self._state,
                cycles_completed_today=0,
                goal_celebrated_today=False,
                last_seen_date_key=key,
            )
            self._commit(new_state, derive_schedule(new_state.start_date, practice_day_number(now)))
            logger.info("practice day rolled over: %s -> %s", previous, key)
            return RolloverResult(rolled=True)

    # ---- read accessors ----
    @property
    def state(self) -> ScheduleState:
        return replace(self._state)

    @property
    def schedule(self) -> DerivedSchedule:
        return self._schedule

    @property
    def start_date(self) -> Optional[dt.date]:
        return self._state.start_date

    @property
    def practice_mode(self) -> PracticeMode:
        return self._state.practice_mode

    @property
    def cycles_completed_today(self) -> int:
        return self._state.cycles_completed_today

    @property
    def goal_celebrated_today(self) -> bool:
        return self._state.goal_celebrated_today

    @property
    def cycles_needed_today(self) -> int:
        return self._schedule.cycles_needed_today

    @property
    def is_rest_day(self) -> bool:
        return self._schedule.is_rest_day

    @property
    def is_special_day(self) -> bool:
        return self._schedule.is_special_day

    @property
    def round_number(self) -> int:
        return self._schedule.round_number

    @property
    def goal_reached(self) -> bool:
        return self._schedule.has_goal and self.cycles_completed_today >= self.cycles_needed_today

    # ---- internal ----
    def _commit(self, new_state: ScheduleState, new_schedule: Optional[DerivedSchedule] = None) -> None:
        # save first; in-memory state only changes once the record is written
        self.store.save(replace(new_state))
        self._state = new_state
        if new_schedule is not None:
            self._schedule = new_schedule


def _as_date(value: Optional[dt.date]) -> Optional[dt.date]:
    if isinstance(value, dt.datetime):
        return value.date()
    return value
