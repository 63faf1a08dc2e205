from __future__ import annotations

import datetime as dt
import uuid
from typing import Iterable

from shared.practice_summary import ScheduledDay
from koenawin.engine import REST_DAY_LABEL, SPECIAL_DAY_LABEL


def ics_escape(s: str) -> str:
    return str(s).replace("\\", "\\\\").replace(",", "\\,").replace(";", "\\;").replace("\n", "\\n")


def _day_summary(day: ScheduledDay) -> str:
    s = day.schedule
    if s.is_rest_day:
        return f"Koenawin {REST_DAY_LABEL}"
    return f"Koenawin round {s.round_number} ({s.round_name}) x{s.cycles_needed_today}"


def schedule_to_ics_bytes(days: Iterable[ScheduledDay]) -> bytes:
    """All-day events, one per scheduled day. Days before the start are skipped."""
    now_utc = dt.datetime.now(dt.timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Koenawin//Practice Schedule//EN",
        "CALSCALE:GREGORIAN",
    ]
    for day in days:
        if not day.schedule.started:
            continue
        start = day.date.strftime("%Y%m%d")
        end = (day.date + dt.timedelta(days=1)).strftime("%Y%m%d")
        description = SPECIAL_DAY_LABEL if day.schedule.is_special_day else ""
        lines.extend(
            [
                "BEGIN:VEVENT",
                f"UID:{uuid.uuid4()}@koenawin",
                f"DTSTAMP:{now_utc}",
                f"DTSTART;VALUE=DATE:{start}",
                f"DTEND;VALUE=DATE:{end}",
                f"SUMMARY:{ics_escape(_day_summary(day))}",
                f"DESCRIPTION:{ics_escape(description)}",
                "END:VEVENT",
            ]
        )
    lines.append("END:VCALENDAR")
    return ("\r\n".join(lines) + "\r\n").encode("utf-8")
