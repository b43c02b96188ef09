"""
Synth - wires a measurement to an audible tone
RateSampler (fixed-rate lane) -> Oscillator -> BufferedPlayer (player thread) -> sink
"""

import logging
from typing import Callable, Optional

from .config import ExecutionConfig, ToneConfig
from .errors import IllegalRestart
from .oscillator import Oscillator, Waveshape
from .player import BufferedPlayer, PlayerState
from .sampler import RateSampler
from .scheduler import FixedRateScheduler
from .sink import AudioSink, SoundDeviceSink

logger = logging.getLogger(__name__)


class Synth:
    """
    Owns the oscillator and both lanes that touch it.
    Neither lane is retried or restarted; build a new Synth to play again.
    """

    def __init__(self, mapping: Optional[Callable[[float], float]] = None,
                 interval: Optional[float] = None,
                 waveshape=Waveshape.SINE,
                 config: Optional[ToneConfig] = None,
                 sink: Optional[AudioSink] = None,
                 execution: Optional[ExecutionConfig] = None):
        self.config = config or ToneConfig()
        self.execution = execution or ExecutionConfig()

        self.oscillator = Oscillator(
            sample_rate=self.config.audio.sample_rate,
            waveshape=waveshape,
        )

        self.scheduler = FixedRateScheduler(self.execution, lane="sampler")
        self.sampler = RateSampler(
            self.oscillator,
            mapping=mapping,
            interval=self.config.interval if interval is None else interval,
            scheduler=self.scheduler,
        )

        if sink is None:
            sink = SoundDeviceSink(device=self.config.device)
        self.player = BufferedPlayer(
            sink,
            fmt=self.config.audio,
            priming_buffers=self.config.priming_buffers,
            execution=self.execution,
        )
        self._started = False

    @property
    def state(self) -> PlayerState:
        return self.player.state

    def update(self, value: float) -> None:
        """Measurement callback; hand this to a measurement source"""
        self.sampler.update(value)

    def start(self) -> bool:
        # stop() before start() also shuts the lanes for good
        if self._started or self.scheduler.is_shutdown or self.player.state is not PlayerState.IDLE:
            logger.error("[SYNTH] %s", IllegalRestart("Synth can only be started once"))
            return False
        self._started = True

        self.sampler.start()
        self.player.set_sample_provider(self.oscillator)
        started = self.player.start()
        if started:
            logger.info("[SYNTH] Playing %s, retuning every %.0fms",
                        self.oscillator.waveshape.value, self.sampler.interval * 1000)
        return started

    def stop(self) -> None:
        self.sampler.stop()
        self.player.stop()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the player thread has drained and closed the sink"""
        return self.player.join(timeout)

    def get_status(self) -> dict:
        status = self.player.get_metrics()
        status.update({
            'frequency': self.oscillator.frequency,
            'period_in_samples': self.oscillator.period_in_samples,
            'waveshape': self.oscillator.waveshape.value,
            'updates_received': self.sampler.updates_received,
            'frequencies_applied': self.sampler.frequencies_applied,
            'frequencies_rejected': self.sampler.frequencies_rejected,
            'ticks_run': self.scheduler.ticks_run,
            'ticks_skipped': self.scheduler.ticks_skipped,
        })
        return status
