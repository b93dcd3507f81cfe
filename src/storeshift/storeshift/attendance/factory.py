from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import PunchType
from .strategies.base import PunchStrategy
from .strategies.check_in_strategy import CheckInStrategy
from .strategies.check_out_strategy import CheckOutStrategy
from .strategies.unclassified_strategy import UnclassifiedStrategy
from .time_policy import DEFAULT_SCHEDULE, StatusInfo, StoreSchedule


@dataclass
class PunchStrategyFactory:
    """Factory Pattern: choose the classification strategy for a punch."""

    schedule: StoreSchedule = field(default_factory=lambda: DEFAULT_SCHEDULE)

    def for_punch(self, *, punch_type: PunchType, check_in_time: Optional[datetime]) -> PunchStrategy:
        if punch_type == PunchType.IN:
            return CheckInStrategy()
        if punch_type == PunchType.OUT and check_in_time is not None:
            return CheckOutStrategy()
        return UnclassifiedStrategy()

    def punch_status(
        self,
        punch_type: PunchType,
        punch_time: datetime,
        check_in_time: Optional[datetime] = None,
    ) -> StatusInfo:
        strategy = self.for_punch(punch_type=punch_type, check_in_time=check_in_time)
        return strategy.classify(punch_time=punch_time, check_in_time=check_in_time, schedule=self.schedule)
