from __future__ import annotations

import datetime as dt
import threading
import unittest

from domain.calendar_clock import PRACTICE_TZ, day_number_of_date
from koenawin.engine import (
    CYCLE_LENGTH,
    GRID,
    InvalidStartDate,
    PracticeMode,
    ScheduleEngine,
    ScheduleState,
    derive_schedule,
    grid_position,
)

START = dt.date(2024, 1, 1)  # Monday


def _noon(d: dt.date) -> dt.datetime:
    return dt.datetime(d.year, d.month, d.day, 12, 0, tzinfo=PRACTICE_TZ)


def _on_day(days_passed: int):
    return derive_schedule(START, day_number_of_date(START) + days_passed)


class MemoryStore:
    def __init__(self):
        self.saves = []

    def save(self, state):
        self.saves.append(state)


class BrokenStore(MemoryStore):
    def __init__(self):
        super().__init__()
        self.broken = False

    def save(self, state):
        if self.broken:
            raise RuntimeError("progress save failed: disk full")
        super().save(state)


def _engine(days_passed: int = 0, start=START, **state_kw):
    now = _noon(START + dt.timedelta(days=days_passed))
    store = BrokenStore()
    engine = ScheduleEngine(store, clock=lambda: now)
    engine.configure(
        ScheduleState(start_date=start, last_seen_date_key=now.date().isoformat(), **state_kw),
        now=now,
    )
    return engine, store


class DeriveScheduleTests(unittest.TestCase):
    def test_grid_is_verbatim(self):
        self.assertEqual(GRID[0], (2, 9, 4, 7, 5, 3, 6, 1, 8))
        self.assertEqual(GRID[4], (6, 4, 8, 2, 9, 7, 1, 5, 3))
        self.assertEqual(GRID[8], (1, 8, 3, 6, 4, 2, 5, 9, 7))
        for row in GRID:
            self.assertEqual(sorted(row), list(range(1, 10)))

    def test_first_day(self):
        s = _on_day(0)
        self.assertEqual((s.row_index, s.col_index), (0, 0))
        self.assertEqual(s.round_number, 2)
        self.assertEqual(s.cycles_needed_today, 2)
        self.assertFalse(s.is_special_day)
        self.assertFalse(s.is_rest_day)
        self.assertTrue(s.has_goal)

    def test_fifth_day_is_special(self):
        s = _on_day(4)
        self.assertEqual(s.col_index, 4)
        self.assertTrue(s.is_special_day)
        self.assertEqual(s.round_number, 5)
        self.assertEqual(s.cycles_needed_today, 5)

    def test_rest_days_are_last_two_of_cycle(self):
        rest = [d for d in range(CYCLE_LENGTH) if _on_day(d).is_rest_day]
        self.assertEqual(rest, [81, 82])
        s = _on_day(81)
        self.assertEqual(s.cycles_needed_today, 0)
        self.assertEqual(s.round_number, 0)
        self.assertFalse(s.is_special_day)
        self.assertFalse(s.has_goal)

    def test_schedule_repeats_every_83_days(self):
        for d in (0, 4, 40, 80, 81, 82):
            a = _on_day(d)
            b = _on_day(d + CYCLE_LENGTH)
            self.assertEqual(a.day_in_cycle, b.day_in_cycle)
            self.assertEqual(a.round_number, b.round_number)
            self.assertEqual(a.is_rest_day, b.is_rest_day)
            self.assertEqual(a.is_special_day, b.is_special_day)

    def test_last_grid_day(self):
        s = _on_day(80)
        self.assertEqual((s.row_index, s.col_index), (8, 8))
        self.assertEqual(s.round_number, 7)

    def test_before_start_is_not_started(self):
        s = _on_day(-3)
        self.assertTrue(s.configured)
        self.assertFalse(s.started)
        self.assertEqual(s.days_passed, -3)
        self.assertEqual(s.cycles_needed_today, 0)
        self.assertFalse(s.is_rest_day)
        self.assertFalse(s.is_special_day)

    def test_no_start_date_is_not_configured(self):
        s = derive_schedule(None, day_number_of_date(START))
        self.assertFalse(s.configured)
        self.assertEqual(s.cycles_needed_today, 0)

    def test_grid_position_rejects_rest_days(self):
        with self.assertRaises(ValueError):
            grid_position(81)


class ScheduleEngineTests(unittest.TestCase):
    def test_goal_fires_exactly_once(self):
        engine, _ = _engine(0)
        self.assertEqual(engine.cycles_needed_today, 2)
        r1 = engine.complete_cycle()
        r2 = engine.complete_cycle()
        r3 = engine.complete_cycle()
        self.assertFalse(r1.goal_just_reached)
        self.assertTrue(r2.goal_just_reached)
        self.assertFalse(r3.goal_just_reached)
        self.assertEqual(r3.cycles_completed_today, 3)
        self.assertTrue(engine.goal_celebrated_today)

    def test_rest_day_has_no_goal(self):
        engine, _ = _engine(82)
        self.assertTrue(engine.is_rest_day)
        for _ in range(3):
            self.assertFalse(engine.complete_cycle().goal_just_reached)
        self.assertFalse(engine.goal_celebrated_today)

    def test_no_schedule_has_no_goal(self):
        engine, _ = _engine(0, start=None)
        self.assertFalse(engine.complete_cycle().goal_just_reached)
        self.assertEqual(engine.cycles_completed_today, 1)

    def test_reset_keeps_celebrated_flag(self):
        engine, _ = _engine(0)
        engine.complete_cycle()
        engine.complete_cycle()
        engine.reset_today()
        self.assertEqual(engine.cycles_completed_today, 0)
        self.assertTrue(engine.goal_celebrated_today)
        self.assertFalse(engine.complete_cycle().goal_just_reached)
        self.assertFalse(engine.complete_cycle().goal_just_reached)

    def test_every_mutation_persists(self):
        engine, store = _engine(0)
        engine.complete_cycle()
        engine.reset_today()
        engine.set_practice_mode(9)
        self.assertEqual(len(store.saves), 3)
        self.assertEqual(store.saves[0].cycles_completed_today, 1)
        self.assertEqual(store.saves[1].cycles_completed_today, 0)
        self.assertEqual(store.saves[2].practice_mode, PracticeMode.SIMPLE)

    def test_check_rollover_resets_once(self):
        engine, store = _engine(0)
        engine.complete_cycle()
        engine.complete_cycle()

        same_day = _noon(START).replace(hour=23, minute=59)
        self.assertFalse(engine.check_rollover(same_day).rolled)
        self.assertEqual(engine.cycles_completed_today, 2)

        next_day = _noon(START + dt.timedelta(days=1))
        saves_before = len(store.saves)
        self.assertTrue(engine.check_rollover(next_day).rolled)
        self.assertEqual(engine.cycles_completed_today, 0)
        self.assertFalse(engine.goal_celebrated_today)
        self.assertEqual(engine.state.last_seen_date_key, "2024-01-02")
        self.assertEqual(engine.round_number, 9)
        self.assertEqual(len(store.saves), saves_before + 1)

        self.assertFalse(engine.check_rollover(next_day).rolled)
        self.assertEqual(len(store.saves), saves_before + 1)

    def test_rollover_into_rest_day(self):
        engine, _ = _engine(80)
        self.assertFalse(engine.is_rest_day)
        engine.check_rollover(_noon(START + dt.timedelta(days=81)))
        self.assertTrue(engine.is_rest_day)
        self.assertEqual(engine.cycles_needed_today, 0)

    def test_set_start_date_rejects_non_monday(self):
        engine, store = _engine(0)
        engine.complete_cycle()
        saves_before = len(store.saves)
        with self.assertRaises(InvalidStartDate):
            engine.set_start_date(dt.date(2024, 1, 3))
        self.assertEqual(engine.start_date, START)
        self.assertEqual(engine.cycles_completed_today, 1)
        self.assertEqual(len(store.saves), saves_before)

    def test_set_start_date_resets_progress_and_rederives(self):
        engine, store = _engine(4)
        for _ in range(5):
            engine.complete_cycle()
        self.assertTrue(engine.goal_celebrated_today)
        # today is 2024-01-05; the new Monday is still ahead
        engine.set_start_date(dt.date(2024, 1, 8))
        self.assertEqual(engine.cycles_completed_today, 0)
        self.assertFalse(engine.goal_celebrated_today)
        self.assertFalse(engine.schedule.started)
        self.assertEqual(store.saves[-1].start_date, dt.date(2024, 1, 8))
        self.assertEqual(store.saves[-1].cycles_completed_today, 0)
        self.assertFalse(store.saves[-1].goal_celebrated_today)

    def test_datetime_start_date_is_taken_as_its_date(self):
        engine, store = _engine(0)
        engine.set_start_date(dt.datetime(2024, 1, 1, 0, 0))
        self.assertEqual(type(engine.start_date), dt.date)
        self.assertEqual(engine.start_date, START)
        self.assertEqual(engine.round_number, 2)
        self.assertEqual(engine.derive().round_number, 2)
        self.assertEqual(type(store.saves[-1].start_date), dt.date)

    def test_non_monday_datetime_is_rejected_without_change(self):
        engine, store = _engine(0)
        engine.complete_cycle()
        with self.assertRaises(InvalidStartDate):
            engine.set_start_date(dt.datetime(2024, 1, 2, 9, 0))
        self.assertEqual(engine.start_date, START)
        self.assertEqual(engine.cycles_completed_today, 1)
        self.assertEqual(len(store.saves), 1)

    def test_configure_coerces_invalid_mode(self):
        engine, _ = _engine(0, practice_mode=42)
        self.assertEqual(engine.practice_mode, PracticeMode.FULL)
        engine, _ = _engine(0, practice_mode=9)
        self.assertEqual(engine.practice_mode, PracticeMode.SIMPLE)
        self.assertEqual(engine.set_practice_mode("nonsense"), PracticeMode.FULL)

    def test_state_is_a_copy(self):
        engine, _ = _engine(0)
        snapshot = engine.state
        snapshot.cycles_completed_today = 99
        self.assertEqual(engine.cycles_completed_today, 0)

    def test_failed_save_leaves_progress_untouched(self):
        engine, store = _engine(0)
        store.broken = True
        for _ in range(2):
            with self.assertRaises(RuntimeError):
                engine.complete_cycle()
        self.assertEqual(engine.cycles_completed_today, 0)
        self.assertFalse(engine.goal_celebrated_today)

        store.broken = False
        engine.complete_cycle()
        self.assertTrue(engine.complete_cycle().goal_just_reached)
        self.assertTrue(engine.goal_celebrated_today)

    def test_failed_save_leaves_settings_and_day_untouched(self):
        engine, store = _engine(0)
        engine.complete_cycle()
        store.broken = True

        with self.assertRaises(RuntimeError):
            engine.reset_today()
        with self.assertRaises(RuntimeError):
            engine.set_practice_mode(9)
        with self.assertRaises(RuntimeError):
            engine.set_start_date(dt.date(2024, 1, 8))
        with self.assertRaises(RuntimeError):
            engine.check_rollover(_noon(START + dt.timedelta(days=1)))

        self.assertEqual(engine.cycles_completed_today, 1)
        self.assertEqual(engine.practice_mode, PracticeMode.FULL)
        self.assertEqual(engine.start_date, START)
        self.assertEqual(engine.state.last_seen_date_key, "2024-01-01")
        self.assertEqual(engine.round_number, 2)
        self.assertTrue(engine.schedule.started)
        self.assertEqual(len(store.saves), 1)

    def test_concurrent_completions_are_serialized(self):
        engine, store = _engine(0)

        def work():
            for _ in range(50):
                engine.complete_cycle()

        threads = [threading.Thread(target=work) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(engine.cycles_completed_today, 200)
        self.assertEqual(sum(1 for s in store.saves if s.goal_celebrated_today and s.cycles_completed_today == 2), 1)


if __name__ == "__main__":
    unittest.main()
