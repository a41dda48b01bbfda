"""
Captures live audio for a MicrophoneSource.

The capture loop keeps an input stream open on the configured device and
queues every block, shaped (frames, channels), together with its capture time.
A lost device is reopened after a delay until a retry limit is reached; a
consumer that falls behind loses blocks instead of delaying the capture.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging
import queue
import threading
from datetime import datetime

import numpy as np
import sounddevice as sd

from ..hardware.config import HardwareConfig

logger = logging.getLogger(__name__)

RECONNECT_DELAY_SECONDS = 5
RECONNECT_MAX_RETRIES = 10


class ListenerThread:
    """
    Producer side of a live session: reads blocks from the input device into the audio queue.

    :param audio_device_config: Stream parameters (device ID, sample rate, block size, channels, dtype).
    :param audio_queue: Receives (audio_chunk, timestamp) tuples.
    :param stop_event: Set to end the capture; also set here when the device is lost for good.
    """

    def __init__(
        self,
        audio_device_config: HardwareConfig,
        audio_queue: queue.Queue,
        stop_event: threading.Event,
    ):
        self._config = audio_device_config
        self._queue = audio_queue
        self._stop_event = stop_event

        self._reconnect_delay_seconds = RECONNECT_DELAY_SECONDS
        self._max_retries = RECONNECT_MAX_RETRIES
        self._class_name = self.__class__.__name__
        logger.debug(f"{self._class_name} initialized for device {self._config.id}.")

    def run(self):
        logger.info(f"{self._class_name} thread started.")
        failures = 0

        while not self._stop_event.is_set():
            try:
                self._capture()
                failures = 0
            except (sd.PortAudioError, OSError) as e:
                failures += 1
                if not self._wait_before_reopening(failures, e):
                    break
            except Exception as e:
                logger.critical(f"Capture aborted by an unexpected error: {e}", exc_info=True)
                self._stop_event.set()
                break

        logger.info(f"{self._class_name} thread finished.")

    def _capture(self) -> None:
        """Opens the input stream and queues blocks until the stop event is set."""
        block_size = self._config.block_size

        with sd.InputStream(
            device=self._config.id,
            blocksize=block_size,
            samplerate=self._config.sample_rate,
            dtype=self._config.dtype,
            channels=self._config.channels,
        ) as stream:
            logger.debug(
                f"Capturing {self._config.channels} channel(s) from device {self._config.id} "
                f"at {self._config.sample_rate} Hz."
            )
            while not self._stop_event.is_set():
                audio_chunk, overflow = stream.read(block_size)
                if overflow:
                    logger.warning(f"Input overflow on device {self._config.id}: samples were lost.")
                self._enqueue(audio_chunk)

    def _enqueue(self, audio_chunk: np.ndarray) -> None:
        try:
            self._queue.put_nowait((audio_chunk, datetime.now()))
        except queue.Full:
            logger.warning("Audio queue is full, dropping a block to keep the meter real-time.")

    def _wait_before_reopening(self, failures: int, error: Exception) -> bool:
        """
        Logs a device failure and waits before the next attempt.

        :return: False once the retry limit is reached (the stop event is then set).
        """
        logger.error(f"Input device error ({failures}/{self._max_retries}): {error}")

        if failures >= self._max_retries:
            logger.critical(f"❌ Input device still failing after {failures} attempts. Stopping capture.")
            self._stop_event.set()
            return False

        logger.info(f"Reopening the input stream in {self._reconnect_delay_seconds}s...")
        self._stop_event.wait(self._reconnect_delay_seconds)
        return True
