"""
tone_meter - hear a measurement change
A single oscillator whose pitch tracks a periodically sampled value
"""

__version__ = "0.1.0"

from .errors import IllegalRestart, InvalidFrequency, SinkAcquisitionFailure, ToneMeterError
from .oscillator import Oscillator, SampleProvider, Waveshape
from .player import BufferedPlayer, PlayerState
from .sampler import RateSampler
from .synth import Synth

__all__ = [
    'Synth', 'Oscillator', 'Waveshape', 'SampleProvider',
    'BufferedPlayer', 'PlayerState', 'RateSampler',
    'ToneMeterError', 'InvalidFrequency', 'SinkAcquisitionFailure', 'IllegalRestart',
]
