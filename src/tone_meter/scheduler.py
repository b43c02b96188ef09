"""
Fixed-rate scheduler on a single background thread
Late ticks are skipped, never queued
"""

import logging
import threading
import time
from typing import Callable, Optional, Tuple

from .config import ExecutionConfig

logger = logging.getLogger(__name__)


def next_deadline(deadline: float, now: float, interval: float) -> Tuple[float, int]:
    """
    Advance a fixed-rate deadline past a finished tick.

    Args:
        deadline: Deadline of the tick that just ran
        now: Current clock reading
        interval: Tick period in seconds

    Returns:
        (next deadline, number of deadlines skipped because they already passed)
    """
    upcoming = deadline + interval
    if now <= upcoming:
        return upcoming, 0
    missed = int((now - upcoming) // interval) + 1
    return upcoming + missed * interval, missed


class FixedRateScheduler:
    """
    Runs one task at t0 + k * interval on a dedicated thread.

    If the task overruns, the deadlines it covered are dropped rather than
    replayed back-to-back, so the lane never builds a backlog.
    """

    def __init__(self, execution: Optional[ExecutionConfig] = None,
                 lane: str = "sampler",
                 clock: Callable[[], float] = time.monotonic):
        self.execution = execution or ExecutionConfig()
        self.lane = lane
        self.clock = clock

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.ticks_run = 0
        self.ticks_skipped = 0

    @property
    def is_shutdown(self) -> bool:
        return self._stop_event.is_set()

    def schedule_at_fixed_rate(self, task: Callable[[], None], interval: float,
                               initial_delay: float = 0.0) -> None:
        """Start running task every `interval` seconds"""
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        if self._stop_event.is_set():
            raise RuntimeError("Scheduler has been shut down")
        if self._thread is not None:
            raise RuntimeError("Scheduler lane already has a task")

        self._thread = threading.Thread(
            target=self._run,
            args=(task, interval, initial_delay),
            name=self.execution.thread_name(self.lane),
            daemon=self.execution.daemon,
        )
        self._thread.start()
        logger.debug("[SCHED] %s every %.1fms", self._thread.name, interval * 1000)

    def _run(self, task: Callable[[], None], interval: float, initial_delay: float) -> None:
        deadline = self.clock() + initial_delay
        while not self._stop_event.wait(max(0.0, deadline - self.clock())):
            try:
                task()
            except Exception:
                logger.exception("[SCHED] Task raised; schedule continues")
            self.ticks_run += 1

            deadline, missed = next_deadline(deadline, self.clock(), interval)
            if missed:
                self.ticks_skipped += missed
                logger.debug("[SCHED] Skipped %d late tick(s)", missed)

    def shutdown(self, wait: bool = False, timeout: Optional[float] = None) -> None:
        """Stop scheduling; an in-flight tick is allowed to finish"""
        self._stop_event.set()
        thread = self._thread
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
