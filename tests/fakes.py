"""
Test doubles: an in-memory sink and simple sample providers
"""

import threading
import time

from tone_meter.errors import SinkAcquisitionFailure
from tone_meter.oscillator import SampleProvider
from tone_meter.sink import AudioSink


def wait_for(predicate, timeout=2.0, step=0.005):
    """Poll until predicate() is true; returns its final value"""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(step)
    return predicate()


class RecordingSink(AudioSink):
    """
    Records lifecycle calls and written buffers.

    Args:
        fail_open: raise SinkAcquisitionFailure from open()
        delay: seconds each write blocks (stand-in for device backpressure)
        on_write: callback(write_count) run after each write
        keep: store at most this many buffers
    """

    def __init__(self, fail_open=False, delay=0.0, on_write=None, keep=None):
        self.fail_open = fail_open
        self.delay = delay
        self.on_write = on_write
        self.keep = keep

        self.calls = []
        self.buffers = []
        self.writes = 0
        self.format = None
        self.lock = threading.Lock()

    def open(self, fmt):
        self.calls.append('open')
        if self.fail_open:
            raise SinkAcquisitionFailure("no output device")
        self.format = fmt

    def start(self):
        self.calls.append('start')

    def write(self, data):
        if self.delay:
            time.sleep(self.delay)
        with self.lock:
            self.writes += 1
            if self.keep is None or len(self.buffers) < self.keep:
                self.buffers.append(bytes(data))
        if self.on_write is not None:
            self.on_write(self.writes)

    def drain(self):
        self.calls.append('drain')

    def close(self):
        self.calls.append('close')


class ConstantProvider(SampleProvider):
    """Fills every buffer with one byte value; returns 0 after `limit` buffers"""

    def __init__(self, value=0x11, limit=None):
        self.value = value
        self.limit = limit
        self.calls = 0

    def get_samples(self, buffer):
        if self.limit is not None and self.calls >= self.limit:
            return 0
        self.calls += 1
        buffer[:] = bytes([self.value]) * len(buffer)
        return len(buffer)


class FailingProvider(ConstantProvider):
    """Raises on the `fail_at`-th call (1-based)"""

    def __init__(self, fail_at=3):
        super().__init__()
        self.fail_at = fail_at

    def get_samples(self, buffer):
        if self.calls + 1 >= self.fail_at:
            raise RuntimeError("provider blew up")
        return super().get_samples(buffer)
