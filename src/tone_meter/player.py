"""
BufferedPlayer - streams a sample provider to a blocking audio sink
- Dedicated thread per player, started at most once
- Primes the device with zeroed buffers before real audio (no startup pop)
- The sink write is the only blocking point and paces generation
- stop() is cooperative: checked once per buffer
"""

import logging
import threading
from enum import Enum
from typing import Optional

from .config import AudioFormat, ExecutionConfig, PRIMING_BUFFERS
from .errors import IllegalRestart, SinkAcquisitionFailure
from .oscillator import SampleProvider
from .sink import AudioSink

logger = logging.getLogger(__name__)


class PlayerState(Enum):
    IDLE = "IDLE"
    PRIMING = "PRIMING"
    STREAMING = "STREAMING"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"


class SilenceProvider(SampleProvider):
    """Zeroed buffers for the first `count` requests"""

    def __init__(self, count: int):
        self.count = count
        self.served = 0

    @property
    def exhausted(self) -> bool:
        return self.served >= self.count

    def get_samples(self, buffer: bytearray) -> int:
        buffer[:] = bytes(len(buffer))
        self.served += 1
        return len(buffer)


class BufferedPlayer:
    """
    Pulls fixed-size buffers from a SampleProvider and writes them to an AudioSink.

    Provider selection is driven by state: PRIMING pulls from a
    SilenceProvider, STREAMING from the attached real provider. The player
    never touches the real provider beyond get_samples().
    """

    def __init__(self, sink: AudioSink,
                 fmt: Optional[AudioFormat] = None,
                 priming_buffers: int = PRIMING_BUFFERS,
                 execution: Optional[ExecutionConfig] = None):
        if priming_buffers < 0:
            raise ValueError(f"priming_buffers must be >= 0, got {priming_buffers}")

        self.sink = sink
        self.format = fmt or AudioFormat()
        self.execution = execution or ExecutionConfig()

        self._provider: Optional[SampleProvider] = None
        self._silence = SilenceProvider(priming_buffers)

        self._state = PlayerState.IDLE
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        # One buffer, reused for every iteration
        self._buffer = bytearray(self.format.buffer_size)

        # Metrics
        self.buffers_requested = 0
        self.buffers_written = 0
        self.error: Optional[BaseException] = None

    @property
    def state(self) -> PlayerState:
        return self._state

    @property
    def thread(self) -> Optional[threading.Thread]:
        return self._thread

    @property
    def priming_buffers(self) -> int:
        return self._silence.count

    def set_sample_provider(self, provider: SampleProvider) -> None:
        """Attach the real source used once priming is done"""
        self._provider = provider

    def start(self) -> bool:
        """
        Start the player thread.

        Returns:
            True if a thread was started. False if no provider is attached
            (no-op) or the player was already started (IllegalRestart).
        """
        try:
            with self._state_lock:
                if self._state is not PlayerState.IDLE or self._thread is not None:
                    raise IllegalRestart(
                        f"Illegal to restart a player once it has been started "
                        f"(state={self._state.value})"
                    )
                if self._provider is None:
                    logger.warning("[PLAYER] start() ignored: no sample provider attached")
                    return False

                first = PlayerState.PRIMING if self._silence.count > 0 else PlayerState.STREAMING
                self._state = first
                self._thread = threading.Thread(
                    target=self._run,
                    name=self.execution.thread_name("player"),
                    daemon=self.execution.daemon,
                )
        except IllegalRestart as e:
            logger.error("[PLAYER] %s", e)
            return False

        self._thread.start()
        logger.info("[PLAYER] Started: %d priming buffers of %d bytes",
                    self._silence.count, self.format.buffer_size)
        return True

    def stop(self) -> None:
        """Request shutdown; takes effect at the next buffer boundary"""
        with self._state_lock:
            if self._state is PlayerState.IDLE:
                # Never ran: nothing to drain
                self._state = PlayerState.STOPPED
            elif self._state in (PlayerState.PRIMING, PlayerState.STREAMING):
                self._state = PlayerState.STOPPING
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the player thread; True once it has finished"""
        if self._thread is None:
            return self._state is PlayerState.STOPPED
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _set_state(self, new_state: PlayerState, only_from: Optional[PlayerState] = None) -> None:
        with self._state_lock:
            if only_from is not None and self._state is not only_from:
                return
            self._state = new_state

    def _next_buffer(self) -> int:
        """Fill the shared buffer from whichever provider the state selects"""
        self.buffers_requested += 1

        # Checked on the counter too: a concurrent stop() may already have moved PRIMING to STOPPING
        if self._state is PlayerState.PRIMING or not self._silence.exhausted:
            nbytes = self._silence.get_samples(self._buffer)
            if self._silence.exhausted:
                # Device has settled; the next request comes from the real source
                self._set_state(PlayerState.STREAMING, only_from=PlayerState.PRIMING)
                logger.debug("[PLAYER] Priming done after %d buffers", self._silence.served)
            return nbytes

        return self._provider.get_samples(self._buffer)

    def _run(self) -> None:
        """Player thread body"""
        view = memoryview(self._buffer)
        try:
            self.sink.open(self.format)
            self.sink.start()

            while not self._stop_event.is_set():
                nbytes = self._next_buffer()
                if nbytes <= 0:
                    logger.info("[PLAYER] Provider exhausted after %d buffers", self.buffers_requested)
                    break
                # Blocks until the device accepts the buffer
                self.sink.write(view[:nbytes])
                self.buffers_written += 1

        except SinkAcquisitionFailure as e:
            self.error = e
            logger.error("[PLAYER] Audio sink unavailable: %s", e)
        except Exception as e:
            self.error = e
            logger.exception("[PLAYER] Streaming stopped by error")
        finally:
            self._release_sink()
            self._set_state(PlayerState.STOPPED)
            logger.info("[PLAYER] Stopped after %d buffers", self.buffers_written)

    def _release_sink(self) -> None:
        """Drain then close; close runs even if drain fails"""
        try:
            self.sink.drain()
        except Exception:
            logger.exception("[PLAYER] Error draining audio sink")
        try:
            self.sink.close()
        except Exception:
            logger.exception("[PLAYER] Error closing audio sink")

    def get_metrics(self) -> dict:
        return {
            'state': self._state.value,
            'buffers_requested': self.buffers_requested,
            'buffers_written': self.buffers_written,
            'priming_buffers': self._silence.served,
            'error': repr(self.error) if self.error else None,
        }
