"""
An abstract base class for long-running components with multiple background
threads and graceful shutdown handling.

This class provides a reusable foundation for managing thread lifecycles,
handling OS signals (SIGINT, SIGTERM), and ensuring a clean exit.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging
import queue
import signal
import threading
from abc import ABC, abstractmethod
from typing import Callable

logger = logging.getLogger(__name__)


class ThreadApp(ABC):
    """
    Provides the core structure for a multi-threaded component. It handles
    thread creation, lifecycle management, and graceful shutdown on receiving
    SIGINT or SIGTERM signals.
    """

    def __init__(self):
        self._stop_event = threading.Event()
        self._queue: queue.Queue = queue.Queue()
        self._threads: list[threading.Thread] = []

    @property
    def is_running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def _handle_signal(self, signum, frame):
        logger.info(f"Signal {signal.Signals(signum).name} received, initiating graceful shutdown.")
        self.shutdown()

    def _thread_guard(self, target: Callable[[], None]) -> Callable[[], None]:
        """Wraps a thread target so an unhandled error stops every thread."""

        def guarded():
            try:
                target()
            except Exception as e:
                logger.critical(f"Thread {threading.current_thread().name} crashed: {e}", exc_info=True)
                self.shutdown()

        return guarded

    def shutdown(self):
        """Sets the stop event. Safe to call more than once."""
        if not self._stop_event.is_set():
            logger.info("🛑 Shutting down gracefully...")
            self._stop_event.set()

    @abstractmethod
    def _setup_threads(self):
        """
        Creates the background threads and appends them to `self._threads`.
        """

    def start(self):
        """Creates and starts the threads without blocking."""
        if self.is_running:
            logger.warning(f"{self.__class__.__name__} already running.")
            return

        self._stop_event.clear()
        self._threads = []
        self._setup_threads()
        for thread in self._threads:
            thread.start()
        logger.info(f"Started {len(self._threads)} threads.")

    def join(self, timeout: float | None = None):
        """Waits for all registered threads to complete their execution."""
        for thread in self._threads:
            thread.join(timeout)
        logger.info("✅ All threads have been stopped.")

    def run(self):
        """
        Starts the threads and blocks until a shutdown is signaled.

        1. Registers the signal handlers.
        2. Starts all threads.
        3. Waits until a shutdown is signaled.
        4. Joins all threads to ensure a clean exit.
        """
        signal.signal(signal.SIGINT, self._handle_signal)
        signal.signal(signal.SIGTERM, self._handle_signal)

        self.start()
        logger.info("🚀 Running. Press Ctrl+C or send SIGTERM to stop.")

        self._stop_event.wait()
        self.join()
