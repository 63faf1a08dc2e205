from __future__ import annotations

import datetime as dt

# Myanmar Standard Time, fixed. Host timezone and DST never apply.
PRACTICE_OFFSET = dt.timedelta(hours=6, minutes=30)
PRACTICE_TZ = dt.timezone(PRACTICE_OFFSET)

_DAY_MS = 24 * 60 * 60 * 1000
_OFFSET_MS = int(PRACTICE_OFFSET.total_seconds()) * 1000
_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)
_EPOCH_DATE = dt.date(1970, 1, 1)


def _as_utc(instant: dt.datetime) -> dt.datetime:
    # naive datetimes are read as UTC, not host-local
    if instant.tzinfo is None:
        return instant.replace(tzinfo=dt.timezone.utc)
    return instant.astimezone(dt.timezone.utc)


def _epoch_millis(instant: dt.datetime) -> int:
    delta = _as_utc(instant) - _EPOCH
    return (delta.days * 86400 + delta.seconds) * 1000 + delta.microseconds // 1000


def practice_day_number(instant: dt.datetime) -> int:
    """Whole days since 1970-01-01 under the +6:30 day boundary."""
    return (_epoch_millis(instant) + _OFFSET_MS) // _DAY_MS


def day_number_of_date(d: dt.date) -> int:
    """Day number of a calendar date in the shifted zone.

    Equals practice_day_number() of every instant that falls on `d`
    in PRACTICE_TZ.
    """
    return (d - _EPOCH_DATE).days


def practice_today(instant: dt.datetime) -> dt.date:
    return _as_utc(instant).astimezone(PRACTICE_TZ).date()


def calendar_date_key(instant: dt.datetime) -> str:
    return practice_today(instant).isoformat()


def now_utc() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)
