from __future__ import annotations

import threading
import time

from src.storeshift.storeshift.common.fanout import FanOut, best_effort
from src.storeshift.storeshift.common.keyed_lock import KeyedLock


def test_keyed_lock_serializes_same_key():
    locks = KeyedLock()
    counter = {"value": 0}

    def bump():
        with locks.hold(("u1", "2024-05-10")):
            current = counter["value"]
            time.sleep(0.001)
            counter["value"] = current + 1

    threads = [threading.Thread(target=bump) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert counter["value"] == 10
    assert len(locks) == 0


def test_keyed_lock_does_not_block_other_keys():
    locks = KeyedLock()

    with locks.hold("a"):
        with locks.hold("b"):
            assert len(locks) == 2


def test_fanout_waits_for_all_and_collects_failures():
    fanout = FanOut(max_workers=2)
    done = []

    def ok(i):
        return lambda: done.append(i)

    def fail():
        raise RuntimeError("boom")

    try:
        failures = fanout.run([ok(1), fail, ok(2)], label="test")
    finally:
        fanout.close()

    assert sorted(done) == [1, 2]
    assert len(failures) == 1
    assert isinstance(failures[0], RuntimeError)


def test_best_effort_swallows_and_logs(caplog):
    def fail():
        raise ValueError("nope")

    best_effort(fail, label="side effect")

    assert "side effect" in caplog.text
