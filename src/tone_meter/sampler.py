"""
RateSampler - turns the latest measurement into an oscillator frequency
Runs on a FixedRateScheduler lane, separate from the player thread
"""

import logging
from typing import Callable, Optional

from .config import INTERVAL_MS
from .errors import InvalidFrequency
from .oscillator import Oscillator
from .scheduler import FixedRateScheduler

logger = logging.getLogger(__name__)


def linear_mapping(divisor: float = 1e6, offset: float = 0.0) -> Callable[[float], float]:
    """frequency = offset + value / divisor (default: bytes/s read as MB/s in Hz)"""
    if divisor == 0:
        raise ValueError("divisor must be non-zero")

    def mapping(value: float) -> float:
        return offset + value / divisor
    return mapping


default_mapping = linear_mapping()


class RateSampler:
    """
    Keeps only the most recent measurement (last write wins) and, once per
    tick, maps it to a frequency and retunes the oscillator.
    """

    def __init__(self, oscillator: Oscillator,
                 mapping: Optional[Callable[[float], float]] = None,
                 interval: float = INTERVAL_MS / 1000.0,
                 scheduler: Optional[FixedRateScheduler] = None):
        self.oscillator = oscillator
        self.mapping = mapping or default_mapping
        self.interval = interval
        self.scheduler = scheduler or FixedRateScheduler()

        self._latest: Optional[float] = None

        # Metrics
        self.updates_received = 0
        self.frequencies_applied = 0
        self.frequencies_rejected = 0

    @property
    def latest(self) -> Optional[float]:
        return self._latest

    def update(self, value: float) -> None:
        """Measurement-source callback; overwrites any unread value"""
        self._latest = value
        self.updates_received += 1

    def tick(self) -> None:
        value = self._latest
        if value is None:
            return

        frequency = self.mapping(value)
        try:
            self.oscillator.set_frequency(frequency)
        except InvalidFrequency as e:
            # Keep the previous pitch; common before the source has warmed up
            self.frequencies_rejected += 1
            logger.debug("[SAMPLER] %s", e)
            return

        self.frequencies_applied += 1
        logger.debug("[SAMPLER] value=%r -> %.2f Hz", value, frequency)

    def start(self) -> None:
        self.scheduler.schedule_at_fixed_rate(self.tick, self.interval)

    def stop(self) -> None:
        """Best-effort: a tick already running is not cancelled"""
        self.scheduler.shutdown()
