"""
Defines classes and functions for parsing command-line arguments and setting up
the configuration for the metering applications.

This module handles argument validation, device selection, and the choice of
processing endpoints for the meter backend.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import argparse
import logging
import sys

from ..hardware.selector import HardwareNotFound, HardwareSelector
from ..settings import get_settings
from .messages import Mode, parse_modes

settings = get_settings()

logger = logging.getLogger(__name__)

MIN_BUFFER_SECONDS = 0.01


class AppConfig:
    """
    Holds the validated and processed configuration settings for a metering application.
    """

    def __init__(
        self,
        audio_device: HardwareSelector,
        sample_rate: float,
        buffer_seconds: float,
        channels: int,
        modes: frozenset[Mode],
        worker_endpoint: str | None,
        worklet_endpoint: str | None,
    ):
        self.audio_device: HardwareSelector = audio_device
        self.sample_rate: float = sample_rate
        self.buffer_seconds: float = buffer_seconds
        self.channels: int = channels
        self.modes: frozenset[Mode] = modes
        self.worker_endpoint: str | None = worker_endpoint
        self.worklet_endpoint: str | None = worklet_endpoint


class AppArgs:
    """
    Handles parsing and validation of command-line arguments for the live meter.
    """

    @staticmethod
    def get_parser() -> argparse.ArgumentParser:
        """
        Creates and returns the ArgumentParser with standard arguments.
        Does NOT parse arguments immediately.

        :return: An argparse.ArgumentParser object with standard flags configured.
        """
        parser = argparse.ArgumentParser(description="Run the real-time loudness meter (LUFS).")
        parser.add_argument(
            "--device-id",
            type=int,
            default=None,
            help="Target audio device ID (e.g., 7). Default: System default input device.",
        )
        parser.add_argument(
            "-b",
            "--buffer-seconds",
            type=float,
            default=settings.audio.buffer_seconds,
            help=f"Duration of captured audio chunks in seconds. Default: {settings.audio.buffer_seconds}s.",
        )
        parser.add_argument(
            "-r",
            "--sample-rate",
            type=float,
            default=None,
            help=f"Sample rate (Hz). Default: device native rate, or {settings.audio.sample_rate} Hz.",
        )
        parser.add_argument(
            "-c",
            "--channels",
            type=int,
            default=settings.audio.channels,
            help=f"Number of input channels to meter. Default: {settings.audio.channels}.",
        )
        parser.add_argument(
            "-m",
            "--modes",
            nargs="+",
            default=[mode.value for mode in Mode],
            choices=[mode.value for mode in Mode],
            help="Loudness modes to report. Default: all.",
        )
        backend = parser.add_mutually_exclusive_group()
        backend.add_argument(
            "--worker-endpoint",
            type=str,
            default=None,
            help=(
                "Processor endpoint ('package.module:Factory') hosted on a worker thread. "
                f"Default: {settings.meter.default_worker_endpoint}."
            ),
        )
        backend.add_argument(
            "--worklet-endpoint",
            type=str,
            default=None,
            help="Processor endpoint hosted on the audio-rendering thread (lowest latency).",
        )
        return parser

    @staticmethod
    def get_args() -> argparse.Namespace:
        return AppArgs.get_parser().parse_args()

    @staticmethod
    def validate_args(args: argparse.Namespace) -> AppConfig:
        """
        Validates the parsed command-line arguments and creates the final AppConfig object.

        - Ensures buffer_seconds is positive.
        - Selects the audio device (default or specified ID).
        - Determines the sample rate (argument, then device native rate, then default).
        - Falls back to the reference worker endpoint when no endpoint is given.

        :param args: The argparse.Namespace object containing parsed arguments.
        :return: A populated and validated AppConfig object.
        :raises ValueError: If configuration is invalid.
        :raises SystemExit: If the specified device ID cannot be found.
        """
        logger.info("Validating command-line arguments...")

        buffer_seconds = float(args.buffer_seconds)
        if buffer_seconds < MIN_BUFFER_SECONDS:
            logger.warning(
                f"Requested buffer size ({buffer_seconds:.3f}s) is below minimum ({MIN_BUFFER_SECONDS}s). "
                f"Adjusting buffer size to {MIN_BUFFER_SECONDS}s."
            )
            buffer_seconds = MIN_BUFFER_SECONDS

        try:
            selected_audio_device = HardwareSelector(target_id=args.device_id)
            logger.info(f"Selected audio device: ID={selected_audio_device.id}, Name='{selected_audio_device.name}'")
        except HardwareNotFound as e:
            logger.error(f"Failed to select audio device: {e}")
            sys.exit(1)

        if args.sample_rate is not None:
            sample_rate = float(args.sample_rate)
        elif selected_audio_device.native_rate > 0:
            sample_rate = selected_audio_device.native_rate
            logger.info(f"Using device native sample rate: {sample_rate:.0f} Hz.")
        else:
            sample_rate = float(settings.audio.sample_rate)

        if sample_rate <= 0:
            raise ValueError(f"Invalid sample rate: {sample_rate}")

        channels = int(args.channels)
        if channels < 1:
            raise ValueError(f"Invalid channel count: {channels}")
        if channels > selected_audio_device.max_input_channels:
            logger.warning(
                f"Device offers {selected_audio_device.max_input_channels} input channels; "
                f"reducing from {channels}."
            )
            channels = selected_audio_device.max_input_channels

        worker_endpoint = args.worker_endpoint
        if worker_endpoint is None and args.worklet_endpoint is None:
            worker_endpoint = settings.meter.default_worker_endpoint

        config = AppConfig(
            audio_device=selected_audio_device,
            sample_rate=sample_rate,
            buffer_seconds=buffer_seconds,
            channels=channels,
            modes=parse_modes(args.modes),
            worker_endpoint=worker_endpoint,
            worklet_endpoint=args.worklet_endpoint,
        )

        logger.info(
            f"Final Configuration: SR={config.sample_rate:.0f} Hz, Buffer={config.buffer_seconds:.2f}s, "
            f"Channels={config.channels}, Modes={sorted(m.value for m in config.modes)}"
        )
        return config
