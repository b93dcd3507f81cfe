from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ..time_policy import StatusInfo, StoreSchedule


class PunchStrategy(ABC):
    """Strategy Pattern: encapsulate how a punch of one type is classified."""

    @abstractmethod
    def classify(
        self,
        *,
        punch_time: datetime,
        check_in_time: Optional[datetime],
        schedule: StoreSchedule,
    ) -> StatusInfo:
        raise NotImplementedError
