"""
Offline loudness analyzer for WAV files.

Loads a WAV file, renders it through the K-weighting cascade at once and
reports the loudness values produced by the meter backend. The momentary and
short-term series can be written to a CSV file, one row per value.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import argparse
import csv
import logging
import os
import sys

import numpy as np
from scipy.io import wavfile

from py_needles.core.events import EventKind, MeasurementEvent
from py_needles.core.messages import Mode
from py_needles.core.meter import LoudnessMeter
from py_needles.settings import get_settings
from py_needles.sources import BufferSource

logging.basicConfig(level=logging.INFO, format="%(message)s", stream=sys.stdout)
logger = logging.getLogger(__name__)

settings = get_settings()


def load_wav(path: str) -> tuple[int, np.ndarray]:
    """Loads a WAV file and normalizes integer samples to float32 (-1.0 to 1.0)."""
    sample_rate, data = wavfile.read(path)

    if data.dtype == np.int16:
        data = data.astype(np.float32) / 32768.0
    elif data.dtype == np.int32:
        data = data.astype(np.float32) / 2147483648.0
    elif data.dtype == np.uint8:
        data = (data.astype(np.float32) - 128.0) / 128.0

    return sample_rate, data


class FileMeterApp:
    """
    Measures the loudness of a complete WAV file.
    """

    def __init__(self, file_path: str, modes: list[str], endpoint: str):
        self.file_path = file_path
        self.filename = os.path.basename(file_path)
        self.sample_rate, self.audio_data = load_wav(file_path)
        self.source = BufferSource(self.audio_data, sample_rate=self.sample_rate)
        self.meter = LoudnessMeter(self.source, modes=modes, worker_endpoint=endpoint)
        self.measurements: dict[Mode, list[float]] = {mode: [] for mode in self.meter.modes}
        self.meter.subscribe(EventKind.DATA_AVAILABLE, self._collect)

    def _collect(self, event: MeasurementEvent) -> None:
        self.measurements[event.mode].append(event.value)

    def run(self, timeout: float | None = None) -> dict[Mode, list[float]]:
        logger.info(f"🎧 Analyzing {self.filename} ({self.source.duration_seconds:.2f}s)...")
        self.meter.start().result(timeout)
        self.meter.flush(timeout)
        self.meter.stop()

        for mode, values in self.measurements.items():
            if not values:
                logger.info(f"{mode.value}: no measurement (audio too short)")
            elif mode is Mode.INTEGRATED:
                logger.info(f"integrated: {values[-1]:.2f} LUFS")
            else:
                logger.info(f"{mode.value}: max {max(values):.2f} LUFS over {len(values)} hops")
        return self.measurements

    def save_csv(self, output_csv: str) -> int:
        """Writes one row per momentary or short-term value, stamped with the end of its window."""
        cfg = settings.loudness
        windows = {Mode.MOMENTARY: cfg.momentary_window_seconds, Mode.SHORT_TERM: cfg.short_term_window_seconds}

        rows = 0
        with open(output_csv, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["time_s", "mode", "lufs"])
            for mode, window in windows.items():
                for i, value in enumerate(self.measurements.get(mode, [])):
                    writer.writerow([f"{window + i * cfg.hop_seconds:.1f}", mode.value, f"{value:.2f}"])
                    rows += 1
        logger.info(f"💾 Saved {rows} rows to {output_csv}")
        return rows

    def close(self):
        self.meter.close()


def main():
    parser = argparse.ArgumentParser(description="Measure the loudness (LUFS) of a WAV file.")
    parser.add_argument("file", type=str, help="Path to the WAV file.")
    parser.add_argument(
        "-m",
        "--modes",
        nargs="+",
        default=[mode.value for mode in Mode],
        choices=[mode.value for mode in Mode],
        help="Loudness modes to report. Default: all.",
    )
    parser.add_argument(
        "--endpoint",
        type=str,
        default=settings.meter.default_worker_endpoint,
        help="Processor endpoint ('package.module:Factory').",
    )
    parser.add_argument("-o", "--output-csv", type=str, default=None, help="Write the hop series to a CSV file.")
    args = parser.parse_args()

    if not os.path.exists(args.file):
        logger.error(f"File not found: {args.file}")
        sys.exit(1)

    app: FileMeterApp | None = None
    try:
        app = FileMeterApp(args.file, modes=args.modes, endpoint=args.endpoint)
        app.run()
        if args.output_csv:
            app.save_csv(args.output_csv)
    except ValueError as e:
        logger.error(f"Error reading {args.file}: {e}")
        sys.exit(1)
    finally:
        if app:
            app.close()


if __name__ == "__main__":
    main()
