from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from ..core.enums import PunchType


@dataclass(frozen=True)
class Totals:
    work_minutes: int = 0
    break_minutes: int = 0

    def to_dict(self) -> dict:
        return {"workMinutes": self.work_minutes, "breakMinutes": self.break_minutes}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Totals":
        data = data or {}
        return cls(work_minutes=int(data.get("workMinutes", 0)), break_minutes=int(data.get("breakMinutes", 0)))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _minutes(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60.0


def compute_totals(punches: Iterable, now: datetime) -> Totals:
    """Fold punches (in append order) into work/break minutes.

    A second IN replaces the pending one, an OUT or BREAK_START with no open
    work span is ignored, BREAK_END without an open break is ignored. An
    open work span at the end accrues up to `now`. Minutes are accumulated as
    floats and rounded once.
    """
    work = 0.0
    brk = 0.0
    last_in: Optional[datetime] = None
    last_break_start: Optional[datetime] = None

    for punch in punches:
        at = punch.timestamp
        if punch.type == PunchType.IN:
            last_in = at
        elif punch.type == PunchType.OUT:
            if last_in is not None:
                work += _minutes(last_in, at)
                last_in = None
        elif punch.type == PunchType.BREAK_START:
            if last_in is not None:
                work += _minutes(last_in, at)
                last_in = None
                last_break_start = at
        elif punch.type == PunchType.BREAK_END:
            if last_break_start is not None:
                brk += _minutes(last_break_start, at)
                last_break_start = None
                last_in = at

    if last_in is not None:
        work += _minutes(last_in, now)

    return Totals(work_minutes=_round_half_up(work), break_minutes=_round_half_up(brk))
