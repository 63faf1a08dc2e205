# storage/repo.py
from __future__ import annotations

from typing import Any, Callable, Dict, Optional
import datetime as dt
import logging

from domain.calendar_clock import calendar_date_key, now_utc
from koenawin.engine import PracticeMode, ScheduleState

logger = logging.getLogger("koenawin.storage")


class CorruptPersistedState(ValueError):
    """A stored field could not be parsed. Recovered with its default."""

    def __init__(self, key: str, value: Any):
        self.key = key
        self.value = value
        super().__init__(f"corrupt value for {key!r}: {value!r}")


# ----------------------------
# Field parsers (raise CorruptPersistedState)
# ----------------------------

def _parse_start_date(raw: Any) -> Optional[dt.date]:
    if raw is None or raw == "":
        return None
    try:
        # accept both "YYYY-MM-DD" and full ISO timestamps
        return dt.date.fromisoformat(str(raw).split("T")[0])
    except ValueError:
        raise CorruptPersistedState("start_date", raw) from None


def _parse_cycles(raw: Any) -> int:
    if raw is None or raw == "":
        return 0
    try:
        n = int(str(raw).strip())
    except ValueError:
        raise CorruptPersistedState("today_cycles", raw) from None
    if n < 0:
        raise CorruptPersistedState("today_cycles", raw)
    return n


def _parse_bool(key: str, raw: Any) -> bool:
    if raw is None or raw == "":
        return False
    s = str(raw).strip().lower()
    if s in ("1", "true", "t", "yes", "y"):
        return True
    if s in ("0", "false", "f", "no", "n"):
        return False
    raise CorruptPersistedState(key, raw)


def _parse_bead_mode(raw: Any) -> PracticeMode:
    if raw is None or raw == "":
        return PracticeMode.FULL
    try:
        return PracticeMode(int(str(raw).strip()))
    except ValueError:
        raise CorruptPersistedState("bead_mode", raw) from None


def _parse_date_key(raw: Any) -> str:
    if raw is None or raw == "":
        return ""
    try:
        return dt.date.fromisoformat(str(raw).strip()).isoformat()
    except ValueError:
        raise CorruptPersistedState("last_date", raw) from None


class ProgressRepo:
    """
    App-level progress interface (backend-agnostic).
    `store` needs read_all() -> dict and write_all(dict).
    """
    def __init__(self, store, clock: Optional[Callable[[], dt.datetime]] = None):
        self.store = store
        self.clock = clock or now_utc

    def _field(self, record: Dict[str, Any], key: str, parse: Callable[[Any], Any], default: Any) -> Any:
        try:
            return parse(record.get(key))
        except CorruptPersistedState as e:
            logger.warning("%s; falling back to %r", e, default)
            return default

    def load(self, now: Optional[dt.datetime] = None) -> ScheduleState:
        today_key = calendar_date_key(now or self.clock())
        try:
            record = self.store.read_all()
        except Exception as e:
            logger.warning("progress record could not be read, using defaults: %s", e)
            record = {}

        start_date = self._field(record, "start_date", _parse_start_date, None)
        mode = self._field(record, "bead_mode", _parse_bead_mode, PracticeMode.FULL)
        last_key = self._field(record, "last_date", _parse_date_key, "")

        if last_key != today_key:
            # stale day: behave as if the rollover already happened
            return ScheduleState(
                start_date=start_date,
                practice_mode=mode,
                cycles_completed_today=0,
                goal_celebrated_today=False,
                last_seen_date_key=today_key,
            )

        return ScheduleState(
            start_date=start_date,
            practice_mode=mode,
            cycles_completed_today=self._field(record, "today_cycles", _parse_cycles, 0),
            goal_celebrated_today=self._field(
                record, "goal_celebrated", lambda v: _parse_bool("goal_celebrated", v), False
            ),
            last_seen_date_key=today_key,
        )

    def save(self, state: ScheduleState) -> None:
        record = state_to_record(state)
        try:
            self.store.write_all(record)
        except Exception as e:
            logger.error("progress save failed: %s", e)
            raise RuntimeError(f"progress save failed: {e}") from e

    def clear(self) -> ScheduleState:
        state = ScheduleState(last_seen_date_key=calendar_date_key(self.clock()))
        self.save(state)
        return state


def state_to_record(state: ScheduleState) -> Dict[str, str]:
    return {
        "start_date": state.start_date.isoformat() if state.start_date else "",
        "today_cycles": str(int(state.cycles_completed_today)),
        "last_date": state.last_seen_date_key,
        "goal_celebrated": str(bool(state.goal_celebrated_today)).lower(),
        "bead_mode": str(int(state.practice_mode)),
    }
