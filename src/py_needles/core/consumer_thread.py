"""
Implements the audio stream consumer thread.

This module contains the class responsible for fetching audio chunks from a
shared queue and running them through the meter's pipeline (K-weighting
filters followed by the backend node). This thread is the audio-rendering
thread of a live session.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging
import queue
import threading

from .pipeline import AudioPipeline

logger = logging.getLogger(__name__)


class ConsumerThread:
    """
    A thread dedicated to processing audio chunks received from a shared queue.

    This class acts as the "Consumer" in a producer-consumer pattern. It
    continuously fetches (audio_chunk, timestamp) tuples and executes the
    pipeline on them until the stop event is set. A failing chunk is logged and
    skipped; an unexpected loop error stops the thread.
    """

    def __init__(
        self,
        audio_queue: queue.Queue,
        stop_event: threading.Event,
        pipeline: AudioPipeline,
        consumer_queue_timeout_seconds: float,
    ):
        """
        Initializes the audio consumer thread.

        :param audio_queue: The queue from which (audio_chunk, timestamp) tuples are fetched.
        :param stop_event: A `threading.Event` used to signal the thread to exit its loop.
        :param pipeline: The pipeline executed for every chunk.
        :param consumer_queue_timeout_seconds: Queue wait before re-checking the stop event.
        """
        self._queue = audio_queue
        self._stop_event = stop_event
        self._pipeline = pipeline
        self._consumer_queue_timeout_seconds = consumer_queue_timeout_seconds

        self._class_name = self.__class__.__name__
        logger.debug(f"{self._class_name} initialized.")

    def run(self):
        logger.info(f"{self._class_name} thread started.")

        while not self._stop_event.is_set():
            try:
                audio_chunk, timestamp = self._queue.get(timeout=self._consumer_queue_timeout_seconds)
            except queue.Empty:
                continue
            except Exception as e:
                logger.error(f"Unexpected error in {self._class_name} run loop: {e}", exc_info=True)
                self._stop_event.set()
                break

            try:
                self._pipeline.execute(audio_chunk, timestamp)
            except Exception as e:
                logger.error(f"Error executing pipeline: {e}", exc_info=True)

        logger.info(f"{self._class_name} thread finished.")
