"""
Live audio source capturing from an input device.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging
import threading

from ..core.consumer_thread import ConsumerThread
from ..core.listener_thread import ListenerThread
from ..core.thread_app import ThreadApp
from ..sources import AudioSource
from .config import HardwareConfig

logger = logging.getLogger(__name__)

CONSUMER_QUEUE_TIMEOUT_SECONDS = 1


class MicrophoneSource(AudioSource, ThreadApp):
    """
    Live source capturing from an input device.

    A ListenerThread captures chunks into a queue; a ConsumerThread executes the
    pipeline for each chunk and so acts as the audio-rendering thread.
    """

    def __init__(self, hardware_config: HardwareConfig):
        AudioSource.__init__(self, hardware_config.sample_rate, hardware_config.channels)
        ThreadApp.__init__(self)
        self._hardware_config = hardware_config

    def _setup_threads(self):
        listener = ListenerThread(
            audio_device_config=self._hardware_config,
            audio_queue=self._queue,
            stop_event=self._stop_event,
        )
        self._threads.append(threading.Thread(target=self._thread_guard(listener.run), name="ListenerThread"))

        consumer = ConsumerThread(
            audio_queue=self._queue,
            stop_event=self._stop_event,
            pipeline=self.pipeline,
            consumer_queue_timeout_seconds=CONSUMER_QUEUE_TIMEOUT_SECONDS,
        )
        self._threads.append(threading.Thread(target=self._thread_guard(consumer.run), name="ConsumerThread"))

        logger.info(f"Registered {len(self._threads)} audio threads.")

    def stop(self, timeout: float | None = None) -> None:
        self.shutdown()
        self.join(timeout)
