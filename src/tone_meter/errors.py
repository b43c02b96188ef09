"""
Error types for tone_meter
All errors raised by the synthesis engine derive from ToneMeterError
"""


class ToneMeterError(Exception):
    """Base class for tone_meter errors"""


class InvalidFrequency(ToneMeterError, ValueError):
    """Frequency is not positive or would give a zero-length period"""

    def __init__(self, frequency, sample_rate):
        self.frequency = frequency
        self.sample_rate = sample_rate
        super().__init__(
            f"Invalid frequency {frequency!r} Hz "
            f"(must be > 0 and <= sample rate {sample_rate} Hz)"
        )


class SinkAcquisitionFailure(ToneMeterError):
    """Audio output device unavailable or does not support the format"""


class IllegalRestart(ToneMeterError):
    """A player may only be started once"""
