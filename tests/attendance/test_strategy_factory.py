from datetime import datetime

from src.storeshift.storeshift.attendance.factory import PunchStrategyFactory
from src.storeshift.storeshift.attendance.strategies.check_in_strategy import CheckInStrategy
from src.storeshift.storeshift.attendance.strategies.check_out_strategy import CheckOutStrategy
from src.storeshift.storeshift.attendance.strategies.unclassified_strategy import UnclassifiedStrategy
from src.storeshift.storeshift.core.enums import PunchStatus, PunchType


def test_factory_picks_check_in_strategy():
    factory = PunchStrategyFactory()
    strategy = factory.for_punch(punch_type=PunchType.IN, check_in_time=None)

    assert isinstance(strategy, CheckInStrategy)


def test_factory_check_out_needs_a_check_in():
    factory = PunchStrategyFactory()
    check_in = datetime(2024, 5, 10, 9, 30)

    assert isinstance(factory.for_punch(punch_type=PunchType.OUT, check_in_time=check_in), CheckOutStrategy)
    assert isinstance(factory.for_punch(punch_type=PunchType.OUT, check_in_time=None), UnclassifiedStrategy)


def test_break_punches_are_never_classified():
    factory = PunchStrategyFactory()
    check_in = datetime(2024, 5, 10, 9, 30)

    for kind in (PunchType.BREAK_START, PunchType.BREAK_END):
        info = factory.punch_status(kind, datetime(2024, 5, 10, 13, 40), check_in)
        assert info.status is None
        assert info.message == ""


def test_punch_status_late_check_out_is_overtime():
    factory = PunchStrategyFactory()
    info = factory.punch_status(PunchType.OUT, datetime(2024, 5, 10, 22, 0), datetime(2024, 5, 10, 9, 30))

    assert info.status == PunchStatus.OVERTIME
    assert info.message == "Overtime: 30m"
