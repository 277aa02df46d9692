"""
调度器的单元测试
"""

import pytest

from not10.controller import ManualTicker, SingleFlightGuard, ThreadTicker, Ticker


@pytest.mark.unit
@pytest.mark.fast
class TestManualTicker:
    """手动调度器测试"""

    def test_tick_runs_callback(self):
        ticker = ManualTicker()
        calls = []
        ticker.start(lambda: calls.append(1) or len(calls))
        assert ticker.running
        assert ticker.tick(3) == [1, 2, 3]
        assert ticker.tick_count == 3

    def test_tick_before_start(self):
        with pytest.raises(RuntimeError):
            ManualTicker().tick()

    def test_stop(self):
        ticker = ManualTicker()
        ticker.start(lambda: None)
        ticker.stop()
        assert not ticker.running

    def test_implements_protocol(self):
        assert isinstance(ManualTicker(), Ticker)
        assert isinstance(ThreadTicker(), Ticker)


@pytest.mark.unit
@pytest.mark.fast
class TestThreadTicker:
    """后台调度器测试"""

    def test_interval_below_one_second_rejected(self):
        with pytest.raises(ValueError):
            ThreadTicker(interval=0.5)

    def test_stop_without_start(self):
        ticker = ThreadTicker()
        ticker.stop()
        assert not ticker.running


@pytest.mark.unit
@pytest.mark.fast
class TestSingleFlightGuard:
    """单飞互斥测试"""

    def test_second_acquire_fails(self):
        guard = SingleFlightGuard()
        assert guard.try_acquire("ROOM")
        assert not guard.try_acquire("ROOM")
        assert guard.try_acquire("OTHER")
        guard.release("ROOM")
        assert guard.try_acquire("ROOM")

    def test_claim_context(self):
        guard = SingleFlightGuard()
        with guard.claim("ROOM") as acquired:
            assert acquired
            assert guard.is_in_flight("ROOM")
            with guard.claim("ROOM") as nested:
                assert not nested
            assert guard.is_in_flight("ROOM"), "未拿到执行权的上下文不应释放"
        assert not guard.is_in_flight("ROOM")
