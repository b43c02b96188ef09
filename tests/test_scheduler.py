"""
FixedRateScheduler tests
Deadline arithmetic is checked deterministically; the live lane with loose timing bounds
"""

import threading
import time

import pytest

from fakes import wait_for
from tone_meter.config import ExecutionConfig
from tone_meter.scheduler import FixedRateScheduler, next_deadline


class TestNextDeadline:
    """Missed deadlines are skipped, not queued"""

    def test_on_time(self):
        assert next_deadline(1.0, 1.01, 0.05) == (pytest.approx(1.05), 0)

    def test_exactly_at_next_deadline_not_skipped(self):
        assert next_deadline(1.0, 1.5, 0.5) == (1.5, 0)

    def test_one_missed(self):
        deadline, missed = next_deadline(0.0, 0.07, 0.05)
        assert missed == 1
        assert deadline == pytest.approx(0.10)

    def test_many_missed(self):
        deadline, missed = next_deadline(0.0, 0.32, 0.05)
        assert missed == 6
        assert deadline == pytest.approx(0.35)
        # Next deadline is always in the future
        assert deadline > 0.32


class TestFixedRateScheduler:

    def setup_method(self):
        self.scheduler = FixedRateScheduler(ExecutionConfig(name_prefix="test"))

    def teardown_method(self):
        self.scheduler.shutdown(wait=True, timeout=2)

    def test_runs_periodically(self):
        ticks = []
        self.scheduler.schedule_at_fixed_rate(lambda: ticks.append(time.monotonic()), 0.01)
        assert wait_for(lambda: len(ticks) >= 5)
        assert self.scheduler.ticks_run >= 5

    def test_first_tick_is_immediate(self):
        fired = threading.Event()
        self.scheduler.schedule_at_fixed_rate(fired.set, 10.0)
        assert fired.wait(1.0)

    def test_initial_delay(self):
        fired = threading.Event()
        self.scheduler.schedule_at_fixed_rate(fired.set, 0.01, initial_delay=0.2)
        assert not fired.wait(0.05)
        assert fired.wait(2.0)

    def test_thread_name_and_daemon(self):
        names = []
        self.scheduler.schedule_at_fixed_rate(
            lambda: names.append(threading.current_thread().name), 0.01)
        assert wait_for(lambda: names)
        assert names[0] == "test-sampler"
        assert self.scheduler._thread.daemon is True

    def test_overrunning_task_skips_ticks(self):
        def slow():
            time.sleep(0.03)

        self.scheduler.schedule_at_fixed_rate(slow, 0.01)
        time.sleep(0.3)
        self.scheduler.shutdown(wait=True, timeout=2)

        assert self.scheduler.ticks_skipped > 0
        # Never runs more often than the task allows
        assert self.scheduler.ticks_run <= 11

    def test_task_exception_does_not_stop_schedule(self):
        calls = []

        def flaky():
            calls.append(1)
            raise RuntimeError("tick failed")

        self.scheduler.schedule_at_fixed_rate(flaky, 0.01)
        assert wait_for(lambda: len(calls) >= 3)

    def test_shutdown_stops_ticks(self):
        ticks = []
        self.scheduler.schedule_at_fixed_rate(lambda: ticks.append(1), 0.01)
        assert wait_for(lambda: ticks)
        self.scheduler.shutdown(wait=True, timeout=2)
        count = len(ticks)
        time.sleep(0.05)
        assert len(ticks) == count
        assert self.scheduler.is_shutdown

    def test_one_task_per_lane(self):
        self.scheduler.schedule_at_fixed_rate(lambda: None, 0.01)
        with pytest.raises(RuntimeError):
            self.scheduler.schedule_at_fixed_rate(lambda: None, 0.01)

    def test_schedule_after_shutdown(self):
        self.scheduler.shutdown()
        with pytest.raises(RuntimeError):
            self.scheduler.schedule_at_fixed_rate(lambda: None, 0.01)

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            self.scheduler.schedule_at_fixed_rate(lambda: None, 0)
