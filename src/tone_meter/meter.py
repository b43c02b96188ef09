"""
ProcessMeter - polls a process statistic on its own thread
Each reading is pushed to a consumer (typically Synth.update)
"""

import logging
import threading
import time
from typing import Callable, Optional

import psutil

from .config import ExecutionConfig

logger = logging.getLogger(__name__)


class RssProbe:
    """Resident set size in bytes"""

    def __init__(self, process: Optional[psutil.Process] = None):
        self.process = process or psutil.Process()

    def __call__(self) -> float:
        return float(self.process.memory_info().rss)


class RssRateProbe:
    """
    Rate of change of resident memory in bytes/second (absolute value).
    The first reading has no baseline and reports 0.0.
    """

    def __init__(self, process: Optional[psutil.Process] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.process = process or psutil.Process()
        self.clock = clock
        self._last = None

    def __call__(self) -> float:
        rss = self.process.memory_info().rss
        now = self.clock()
        last = self._last
        self._last = (rss, now)
        if last is None or now <= last[1]:
            return 0.0
        return abs(rss - last[0]) / (now - last[1])


class CpuProbe:
    """Process CPU percent since the previous reading"""

    def __init__(self, process: Optional[psutil.Process] = None):
        self.process = process or psutil.Process()
        # First call primes psutil's counters and always returns 0.0
        self.process.cpu_percent(interval=None)

    def __call__(self) -> float:
        return float(self.process.cpu_percent(interval=None))


PROBES = {
    'rss-rate': RssRateProbe,
    'rss': RssProbe,
    'cpu': CpuProbe,
}


def make_probe(name: str, process: Optional[psutil.Process] = None):
    try:
        factory = PROBES[name]
    except KeyError:
        raise ValueError(f"Unknown probe {name!r} (choose from {', '.join(PROBES)})") from None
    return factory(process)


class ProcessMeter:
    """Background poller: consumer(probe()) every `interval` seconds"""

    def __init__(self, consumer: Callable[[float], None],
                 probe: Callable[[], float],
                 interval: float = 1.0,
                 execution: Optional[ExecutionConfig] = None):
        self.consumer = consumer
        self.probe = probe
        self.interval = interval
        self.execution = execution or ExecutionConfig()

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.readings = 0

    def poll(self) -> None:
        """Take one reading and deliver it"""
        try:
            value = self.probe()
        except psutil.Error as e:
            logger.warning("[METER] Probe failed: %s", e)
            return
        self.readings += 1
        self.consumer(value)

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.poll()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("ProcessMeter already started")
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name=self.execution.thread_name("meter"),
            daemon=self.execution.daemon,
        )
        self._thread.start()
        logger.info("[METER] Polling every %.2fs", self.interval)

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2)
