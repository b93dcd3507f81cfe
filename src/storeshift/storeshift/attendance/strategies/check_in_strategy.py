from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..time_policy import StatusInfo, StoreSchedule, classify_check_in
from .base import PunchStrategy


class CheckInStrategy(PunchStrategy):
    """IN punch: on time, late or early against the morning start."""

    def classify(self, *, punch_time: datetime, check_in_time: Optional[datetime], schedule: StoreSchedule) -> StatusInfo:
        return classify_check_in(punch_time, schedule)
