"""Store punctuality policy.

Pure functions: a punch time (already in store-local time) is compared with
the fixed daily store schedule. Nothing here touches persistence or clocks.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional

from ..core.constants import (
    CHECK_IN_EARLY_MINUTES,
    CHECK_IN_GRACE_MINUTES,
    CHECK_OUT_EARLY_MINUTES,
    EVENING_END,
    LUNCH_END,
    LUNCH_START,
    MORNING_START,
)
from ..core.enums import PunchStatus


def parse_hhmm(value: str) -> time:
    return datetime.strptime(value, "%H:%M").time()


@dataclass(frozen=True)
class StoreSchedule:
    morning_start: time = parse_hhmm(MORNING_START)
    lunch_start: time = parse_hhmm(LUNCH_START)
    lunch_end: time = parse_hhmm(LUNCH_END)
    evening_end: time = parse_hhmm(EVENING_END)
    grace_minutes: int = CHECK_IN_GRACE_MINUTES
    early_check_in_minutes: int = CHECK_IN_EARLY_MINUTES
    early_check_out_minutes: int = CHECK_OUT_EARLY_MINUTES

    @property
    def lunch_minutes(self) -> int:
        return minutes_of_day(self.lunch_end) - minutes_of_day(self.lunch_start)

    @property
    def expected_work_minutes(self) -> int:
        """Scheduled presence minus the lunch break."""
        return minutes_of_day(self.evening_end) - minutes_of_day(self.morning_start) - self.lunch_minutes


DEFAULT_SCHEDULE = StoreSchedule()


@dataclass(frozen=True)
class StatusInfo:
    status: Optional[PunchStatus]
    message: str
    minutes_diff: Optional[int] = None


NO_STATUS = StatusInfo(status=None, message="")


def minutes_of_day(value) -> int:
    """Minutes since midnight of a `datetime` or `time` (seconds are ignored)."""
    return value.hour * 60 + value.minute


def format_minutes(minutes: int) -> str:
    """Render a minute count as "2h 19m", "2h" or "45m"; negatives give "0m"."""
    if minutes < 0:
        return "0m"
    hours, mins = divmod(int(minutes), 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def classify_check_in(punch_time: datetime, schedule: StoreSchedule = DEFAULT_SCHEDULE) -> StatusInfo:
    diff = minutes_of_day(punch_time) - minutes_of_day(schedule.morning_start)

    if -schedule.early_check_in_minutes <= diff <= schedule.grace_minutes:
        return StatusInfo(status=PunchStatus.ON_TIME, message="On time", minutes_diff=diff)
    if diff > schedule.grace_minutes:
        return StatusInfo(status=PunchStatus.LATE, message=f"Late by {format_minutes(diff)}", minutes_diff=diff)
    return StatusInfo(status=PunchStatus.EARLY, message=f"Early by {format_minutes(abs(diff))}", minutes_diff=diff)


def classify_check_out(
    punch_time: datetime,
    check_in_time: Optional[datetime] = None,
    schedule: StoreSchedule = DEFAULT_SCHEDULE,
) -> StatusInfo:
    """Classify an OUT punch against the evening end; `check_in_time` is unused."""

    diff = minutes_of_day(punch_time) - minutes_of_day(schedule.evening_end)

    if diff > 0:
        return StatusInfo(status=PunchStatus.OVERTIME, message=f"Overtime: {format_minutes(diff)}", minutes_diff=diff)
    if diff < -schedule.early_check_out_minutes:
        return StatusInfo(
            status=PunchStatus.EARLY,
            message=f"Early checkout by {format_minutes(abs(diff))}",
            minutes_diff=diff,
        )
    return StatusInfo(status=PunchStatus.ON_TIME, message="On time", minutes_diff=diff)
