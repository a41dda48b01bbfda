"""
Main application script for the real-time loudness meter.

This script parses command-line arguments, captures audio from the selected
microphone, routes it through a LoudnessMeter and logs every momentary,
short-term and integrated loudness value as it becomes available.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging
import sys

from py_needles.core.config import AppArgs, AppConfig
from py_needles.core.events import EventKind, MeasurementEvent
from py_needles.core.meter import LoudnessMeter
from py_needles.hardware.config import HardwareConfig
from py_needles.hardware.microphone import MicrophoneSource

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(threadName)s %(message)s")
logger = logging.getLogger(__name__)


class LoudnessDisplay:
    """Keeps the latest value of every mode and logs it on each update."""

    def __init__(self):
        self.latest: dict[str, float] = {}

    def __call__(self, event: MeasurementEvent) -> None:
        self.latest[event.mode.value] = event.value
        readings = " | ".join(f"{mode}: {value:7.2f} LUFS" for mode, value in sorted(self.latest.items()))
        logger.info(readings)


class RealTimeMeterApp:
    """
    Stitches together the microphone, the meter and the display.
    """

    def __init__(self, config: AppConfig):
        device_config = HardwareConfig(
            target_audio_device=config.audio_device,
            sample_rate=config.sample_rate,
            buffer_seconds=config.buffer_seconds,
            channels=config.channels,
        )
        self.source = MicrophoneSource(device_config)
        self.meter = LoudnessMeter(
            self.source,
            modes=config.modes,
            worker_endpoint=config.worker_endpoint,
            worklet_endpoint=config.worklet_endpoint,
        )
        self.display = LoudnessDisplay()
        self.meter.subscribe(EventKind.DATA_AVAILABLE, self.display)
        logger.info("RealTimeMeterApp initialized.")

    def run(self):
        self.meter.backend_ready.result()
        self.meter.start()
        try:
            self.source.run()
        finally:
            self.meter.stop()
            self.meter.flush(timeout=1.0)

    def close(self):
        self.meter.close()


def main():
    logger.info("Initializing Real Time Loudness Meter...")

    args = AppArgs.get_args()

    app: RealTimeMeterApp | None = None
    try:
        config = AppArgs.validate_args(args)
        app = RealTimeMeterApp(config)
        app.run()
    except (ValueError, SystemExit) as e:
        logger.error(f"Configuration Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Meter stopped by user.")
    except Exception as e:
        logger.critical(f"Unexpected Error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        if app:
            app.close()

    logger.info("Application shutdown complete.")


if __name__ == "__main__":
    main()
