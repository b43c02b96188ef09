"""
Oscillator - single-voice waveform generator
- One sample per call from an integer phase counter (sample_index)
- Frequency changes recompute the period but keep sample_index,
  so a retune lands mid-cycle (audible as a small phase jump)
- Fills 16-bit signed big-endian buffers for the player
"""

import math
from abc import ABC, abstractmethod
from enum import Enum

import numpy as np

from .config import SAMPLE_RATE
from .errors import InvalidFrequency

INT16_MAX = 32767
TWO_PI = 2.0 * math.pi
DEFAULT_FREQUENCY = 1000.0


class Waveshape(Enum):
    SINE = "sine"
    SQUARE = "square"
    # 2*(x - floor(x + 0.5)): ramps 0 -> 1, jumps to -1, ramps back to 0.
    # Formerly labelled "saw"; the formula is what is kept.
    TRIANGLE = "triangle"

    @classmethod
    def parse(cls, value) -> "Waveshape":
        """Accept a Waveshape or its name/value, case-insensitive"""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for shape in cls:
            if key in (shape.value, shape.name.lower()):
                return shape
        raise ValueError(f"Unknown waveshape: {value!r}")


class SampleProvider(ABC):
    """
    Anything the player can pull audio from.
    get_samples() fills buffer and returns the byte count (<= 0 ends the stream).
    """

    @abstractmethod
    def get_samples(self, buffer: bytearray) -> int:
        pass


def to_int16(value: float) -> int:
    """Scale a [-1, 1] float to a signed 16-bit sample (round half up)"""
    return int(math.floor(value * INT16_MAX + 0.5))


class Oscillator(SampleProvider):
    """
    Integer-phase oscillator with three waveshapes.

    The (frequency, period) pair is published as one tuple, so the
    streaming thread always sees a matching pair. sample_index is owned
    by whichever thread calls next_sample().
    """

    def __init__(self, sample_rate: int = SAMPLE_RATE,
                 waveshape=Waveshape.SINE,
                 frequency: float = DEFAULT_FREQUENCY):
        self.sample_rate = sample_rate
        self.waveshape = Waveshape.parse(waveshape)
        self.sample_index = 0
        self._tuning = (0.0, 1)
        self.set_frequency(frequency)

        # Scratch for one buffer of float samples (grown on demand)
        self._scratch = np.zeros(0, dtype=np.float64)

    @property
    def frequency(self) -> float:
        return self._tuning[0]

    @property
    def period_in_samples(self) -> int:
        return self._tuning[1]

    def set_waveshape(self, waveshape) -> None:
        """Switch formula; phase is untouched"""
        self.waveshape = Waveshape.parse(waveshape)

    def set_frequency(self, frequency: float) -> None:
        """
        Retune the oscillator.

        Raises:
            InvalidFrequency: frequency <= 0, not finite, or above the
                sample rate (period would truncate to zero)
        """
        try:
            f = float(frequency)
        except (TypeError, ValueError):
            raise InvalidFrequency(frequency, self.sample_rate) from None

        if not math.isfinite(f) or f <= 0.0 or f > self.sample_rate:
            raise InvalidFrequency(frequency, self.sample_rate)

        period = int(self.sample_rate / f)
        if period < 1:
            raise InvalidFrequency(frequency, self.sample_rate)

        # Single store; readers never see a half-updated pair
        self._tuning = (f, period)

    def next_sample(self) -> float:
        """Generate one sample in [-1, 1] and advance the phase counter"""
        period = self._tuning[1]
        index = self.sample_index
        x = index / period

        shape = self.waveshape
        if shape is Waveshape.SQUARE:
            value = 1.0 if index < period // 2 else -1.0
        elif shape is Waveshape.TRIANGLE:
            value = 2.0 * (x - math.floor(x + 0.5))
        else:
            value = math.sin(TWO_PI * x)

        # Wraps by modulo, so an index left over from a longer period folds back
        self.sample_index = (index + 1) % period
        return value

    def fill_buffer(self, buffer: bytearray) -> int:
        """
        Fill buffer with big-endian int16 samples.

        Args:
            buffer: Writable bytes-like object; len(buffer) // 2 samples are written

        Returns:
            Number of bytes written
        """
        count = len(buffer) // 2
        if count == 0:
            return 0

        if self._scratch.shape[0] != count:
            self._scratch = np.zeros(count, dtype=np.float64)
        scratch = self._scratch

        for i in range(count):
            scratch[i] = self.next_sample()

        # Round half up, same as to_int16()
        scaled = np.floor(scratch * INT16_MAX + 0.5).astype('>i2')
        nbytes = count * 2
        buffer[:nbytes] = scaled.tobytes()
        return nbytes

    def get_samples(self, buffer: bytearray) -> int:
        return self.fill_buffer(buffer)

    def __repr__(self) -> str:
        return (f"Oscillator({self.waveshape.value}, {self.frequency:.2f}Hz, "
                f"period={self.period_in_samples}, index={self.sample_index})")
