from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..time_policy import NO_STATUS, StatusInfo, StoreSchedule
from .base import PunchStrategy


class UnclassifiedStrategy(PunchStrategy):
    """Break punches, and OUT punches with no check-in that day."""

    def classify(self, *, punch_time: datetime, check_in_time: Optional[datetime], schedule: StoreSchedule) -> StatusInfo:
        return NO_STATUS
