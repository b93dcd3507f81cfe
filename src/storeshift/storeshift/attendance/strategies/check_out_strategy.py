from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..time_policy import StatusInfo, StoreSchedule, classify_check_out
from .base import PunchStrategy


class CheckOutStrategy(PunchStrategy):
    """OUT punch: on time, early checkout or overtime against the evening end."""

    def classify(self, *, punch_time: datetime, check_in_time: Optional[datetime], schedule: StoreSchedule) -> StatusInfo:
        return classify_check_out(punch_time, check_in_time, schedule)
