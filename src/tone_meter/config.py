"""
Configuration for tone_meter
Environment variables (TONE_METER_*) override the defaults below
"""

import os
from dataclasses import dataclass, field
from typing import Optional

# Defaults, before any TONE_METER_* override
DEFAULT_SAMPLE_RATE = "22050"
DEFAULT_BUFFER_SIZE = "1000"  # bytes
DEFAULT_PRIMING_BUFFERS = "20"
DEFAULT_INTERVAL_MS = "50"
DEFAULT_OSC_HOST = "127.0.0.1"
DEFAULT_OSC_PORT = "5006"
DEFAULT_LOG_LEVEL = "INFO"

# Audio format (fixed: 16-bit signed, mono, big-endian)
SAMPLE_RATE = int(os.environ.get("TONE_METER_SAMPLE_RATE", DEFAULT_SAMPLE_RATE))
BUFFER_SIZE = int(os.environ.get("TONE_METER_BUFFER_SIZE", DEFAULT_BUFFER_SIZE))
SAMPLE_SIZE = 16
CHANNELS = 1
SIGNED = True
BIG_ENDIAN = True

# Zeroed buffers written before the real source takes over
PRIMING_BUFFERS = int(os.environ.get("TONE_METER_PRIMING_BUFFERS", DEFAULT_PRIMING_BUFFERS))

# Frequency update cadence
INTERVAL_MS = float(os.environ.get("TONE_METER_INTERVAL_MS", DEFAULT_INTERVAL_MS))

# OSC measurement source
OSC_HOST = os.environ.get("TONE_METER_OSC_HOST", DEFAULT_OSC_HOST)
OSC_PORT = int(os.environ.get("TONE_METER_OSC_PORT", DEFAULT_OSC_PORT))

LOG_LEVEL = os.environ.get("TONE_METER_LOG_LEVEL", DEFAULT_LOG_LEVEL)


@dataclass(frozen=True)
class AudioFormat:
    """Format demanded from the audio sink; never negotiated"""
    sample_rate: int = SAMPLE_RATE
    sample_size: int = SAMPLE_SIZE
    channels: int = CHANNELS
    signed: bool = SIGNED
    big_endian: bool = BIG_ENDIAN
    buffer_size: int = BUFFER_SIZE

    @property
    def frame_size(self) -> int:
        """Bytes per frame"""
        return (self.sample_size // 8) * self.channels

    @property
    def samples_per_buffer(self) -> int:
        return self.buffer_size // self.frame_size


@dataclass(frozen=True)
class ExecutionConfig:
    """
    Thread naming and daemon flags for every lane the synth owns.
    Passed into the orchestrator instead of module-level thread factories.
    """
    name_prefix: str = "tone-meter"
    daemon: bool = True

    def thread_name(self, lane: str) -> str:
        return f"{self.name_prefix}-{lane}"


@dataclass
class ToneConfig:
    """Top-level runtime configuration"""
    audio: AudioFormat = field(default_factory=AudioFormat)
    priming_buffers: int = PRIMING_BUFFERS
    interval: float = INTERVAL_MS / 1000.0  # seconds
    osc_host: str = OSC_HOST
    osc_port: int = OSC_PORT
    device: Optional[str] = None
    log_level: str = LOG_LEVEL

    @classmethod
    def from_env(cls, environ=None) -> "ToneConfig":
        """Build a config from TONE_METER_* variables (defaults to os.environ)"""
        env = os.environ if environ is None else environ
        audio = AudioFormat(
            sample_rate=int(env.get("TONE_METER_SAMPLE_RATE", DEFAULT_SAMPLE_RATE)),
            buffer_size=int(env.get("TONE_METER_BUFFER_SIZE", DEFAULT_BUFFER_SIZE)),
        )
        device = env.get('TONE_METER_DEVICE') or None
        return cls(
            audio=audio,
            priming_buffers=int(env.get("TONE_METER_PRIMING_BUFFERS", DEFAULT_PRIMING_BUFFERS)),
            interval=float(env.get("TONE_METER_INTERVAL_MS", DEFAULT_INTERVAL_MS)) / 1000.0,
            osc_host=env.get("TONE_METER_OSC_HOST", DEFAULT_OSC_HOST),
            osc_port=int(env.get("TONE_METER_OSC_PORT", DEFAULT_OSC_PORT)),
            device=device,
            log_level=env.get("TONE_METER_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )
