"""
Audio output sinks
Lifecycle: open -> start -> blocking writes -> drain -> close
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from .config import AudioFormat
from .errors import SinkAcquisitionFailure

logger = logging.getLogger(__name__)


class AudioSink(ABC):
    """
    Blocking output for 16-bit signed big-endian PCM.
    write() must not return until the device has accepted the data.
    drain() and close() must be safe to call after a failed open().
    """

    @abstractmethod
    def open(self, fmt: AudioFormat) -> None:
        pass

    @abstractmethod
    def start(self) -> None:
        pass

    @abstractmethod
    def write(self, data) -> None:
        pass

    @abstractmethod
    def drain(self) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


def check_format(fmt: AudioFormat) -> None:
    """Reject anything but the one format the player produces"""
    if fmt.sample_size != 16 or not fmt.signed or not fmt.big_endian:
        raise SinkAcquisitionFailure(
            f"Unsupported sample format: {fmt.sample_size}-bit "
            f"{'signed' if fmt.signed else 'unsigned'} "
            f"{'big' if fmt.big_endian else 'little'}-endian"
        )
    if fmt.channels != 1:
        raise SinkAcquisitionFailure(f"Unsupported channel count: {fmt.channels}")
    if fmt.buffer_size <= 0 or fmt.buffer_size % fmt.frame_size:
        raise SinkAcquisitionFailure(f"Buffer size {fmt.buffer_size} is not a whole number of frames")


class SoundDeviceSink(AudioSink):
    """
    PortAudio output through sounddevice.RawOutputStream.
    PortAudio works in native byte order, so buffers are byte-swapped on write.
    """

    def __init__(self, device: Optional[str] = None):
        self.device = device
        self.stream = None
        self.format: Optional[AudioFormat] = None
        self.underrun_count = 0

    def open(self, fmt: AudioFormat) -> None:
        check_format(fmt)
        try:
            # Loading the module loads libportaudio; a missing library is a device failure
            import sounddevice as sd
        except OSError as e:
            raise SinkAcquisitionFailure(f"PortAudio not available: {e}") from e

        try:
            sd.check_output_settings(
                device=self.device,
                channels=fmt.channels,
                dtype='int16',
                samplerate=fmt.sample_rate,
            )
            self.stream = sd.RawOutputStream(
                samplerate=fmt.sample_rate,
                blocksize=fmt.samples_per_buffer,
                device=self.device,
                channels=fmt.channels,
                dtype='int16',
            )
        except (sd.PortAudioError, ValueError) as e:
            raise SinkAcquisitionFailure(f"Could not open output device: {e}") from e

        self.format = fmt
        logger.info("[SINK] Opened %s: %dHz, %d-bit, %d channel(s)",
                    self.device or "default device", fmt.sample_rate,
                    fmt.sample_size, fmt.channels)

    def start(self) -> None:
        self.stream.start()

    def write(self, data) -> None:
        samples = np.frombuffer(data, dtype='>i2').astype(np.int16)
        # Blocks until PortAudio has room for the whole buffer
        if self.stream.write(samples):
            self.underrun_count += 1

    def drain(self) -> None:
        # stop() lets queued buffers play out; abort() would drop them
        if self.stream is not None and self.stream.active:
            self.stream.stop()

    def close(self) -> None:
        if self.stream is not None:
            self.stream.close()
            self.stream = None
            logger.info("[SINK] Closed (%d underruns)", self.underrun_count)
