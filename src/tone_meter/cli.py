"""
tone-meter command line
Plays a process statistic (or OSC-fed values) as a tone for a fixed duration
"""

import argparse
import logging
import sys

from .config import ExecutionConfig, ToneConfig
from .meter import PROBES, ProcessMeter, make_probe
from .osc_source import OSCMeasurementSource
from .oscillator import Waveshape
from .sampler import linear_mapping
from .synth import Synth

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tone-meter",
        description="Sonify a changing measurement as an oscillator tone",
    )
    parser.add_argument('--source', choices=sorted(PROBES) + ['osc'], default='rss-rate',
                        help='Measurement source (default: rss-rate)')
    parser.add_argument('--waveshape', choices=[w.value for w in Waveshape], default='sine')
    parser.add_argument('--duration', type=float, default=60.0,
                        help='Seconds to play before shutting down (default: 60)')
    parser.add_argument('--interval-ms', type=float, default=None,
                        help='Frequency update period (default: TONE_METER_INTERVAL_MS or 50)')
    parser.add_argument('--poll', type=float, default=1.0,
                        help='Seconds between process meter readings (default: 1.0)')
    parser.add_argument('--divisor', type=float, default=1e6,
                        help='Measurement units per Hz (default: 1e6)')
    parser.add_argument('--offset', type=float, default=0.0,
                        help='Hz added after scaling (default: 0)')
    parser.add_argument('--device', default=None, help='sounddevice output device')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = ToneConfig.from_env()
    if args.interval_ms is not None:
        config.interval = args.interval_ms / 1000.0
    if args.device is not None:
        config.device = args.device

    level = logging.DEBUG if args.verbose else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(threadName)s %(levelname)s %(message)s")

    execution = ExecutionConfig()
    synth = Synth(
        mapping=linear_mapping(args.divisor, args.offset),
        waveshape=args.waveshape,
        config=config,
        execution=execution,
    )

    if args.source == 'osc':
        source = OSCMeasurementSource(synth.update, config.osc_host, config.osc_port, execution)
    else:
        source = ProcessMeter(synth.update, make_probe(args.source), args.poll, execution)

    try:
        source.start()
    except OSError as e:
        # e.g. OSC port already in use
        logger.error("Could not start %s source: %s", args.source, e)
        return 1

    try:
        if synth.start():
            # Returns early if the player ends on its own (e.g. no audio device)
            synth.wait(args.duration)
        else:
            logger.error("Synth did not start")
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    finally:
        synth.stop()
        source.stop()
        synth.wait(timeout=2.0)
        logger.info("Final status: %s", synth.get_status())
    return 0


if __name__ == "__main__":
    sys.exit(main())
