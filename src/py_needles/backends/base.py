"""
Common contract for the processing backend hosts.

A backend hosts a processor (resolved from an endpoint string such as
"py_needles.processing.loudness_processor:LoudnessProcessor") behind an
asynchronous message boundary. The control plane only ever calls `send`, and
receives wire events through the `on_event` callback it supplied.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import importlib
import logging
import queue
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable

from ..core.errors import BackendUnavailable
from ..core.interfaces import AudioSink
from ..core.messages import ControlMessage
from ..settings import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

EventCallback = Callable[[dict[str, Any]], None]


def resolve_endpoint(endpoint: str) -> Callable:
    """
    Imports the processor factory named by an endpoint string.

    :param endpoint: "package.module:attribute" (or "package.module.attribute").
    :return: A callable accepting a post callback and returning a processor.
    :raises BackendUnavailable: If the module or attribute cannot be loaded.
    """
    module_name, sep, attribute = endpoint.partition(":")
    if not sep:
        module_name, _, attribute = endpoint.rpartition(".")

    if not module_name or not attribute:
        raise BackendUnavailable(f"Malformed processing endpoint '{endpoint}'.")

    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attribute)
    except (ImportError, AttributeError) as e:
        raise BackendUnavailable(f"Could not load processing endpoint '{endpoint}': {e}") from e

    if not callable(factory):
        raise BackendUnavailable(f"Processing endpoint '{endpoint}' is not callable.")

    logger.debug(f"Resolved processing endpoint '{endpoint}'.")
    return factory


class Backend(ABC):
    """
    One backend variant behind the uniform send / event contract.

    :param endpoint: Endpoint string naming the processor factory.
    :param on_event: Called with every wire event the processor posts.
    """

    def __init__(self, endpoint: str, on_event: EventCallback):
        self.endpoint = endpoint
        self._on_event = on_event
        self._class_name = self.__class__.__name__

    @property
    @abstractmethod
    def node(self) -> Future:
        """
        Memoized future resolving to the audio graph node (an AudioSink), or to
        None when the variant needs no node. Resolves with BackendUnavailable if
        the processor could not be loaded.
        """

    @abstractmethod
    def send(self, message: ControlMessage) -> None:
        """
        Posts a message to the processor without waiting for it to be handled.

        :raises BackendUnavailable: If the backend failed to initialize.
        """

    @abstractmethod
    def flush(self, timeout: float | None = None) -> bool:
        """Blocks until every message sent so far was handled. Returns False on timeout."""

    def close(self) -> None:
        """Releases threads held by the backend."""

    def wait_ready(self, timeout: float | None = None) -> AudioSink | None:
        """
        Waits for the backend to finish initializing.

        :raises BackendUnavailable: If initialization failed.
        """
        try:
            return self.node.result(timeout=timeout)
        except (BackendUnavailable, FutureTimeoutError):
            raise
        except Exception as e:
            raise BackendUnavailable(f"{self._class_name} failed to initialize: {e}") from e


class BackendWorker:
    """
    Message loop hosting a processor on a dedicated thread.

    Loads the processor first, then drains the inbox in FIFO order until the
    stop event is set. Failing messages are logged and the loop keeps running.
    """

    def __init__(
        self,
        endpoint: str,
        inbox: queue.Queue,
        stop_event: threading.Event,
        on_event: EventCallback,
        ready: Future,
        queue_timeout_seconds: float,
    ):
        self._endpoint = endpoint
        self._inbox = inbox
        self._stop_event = stop_event
        self._on_event = on_event
        self._ready = ready
        self._queue_timeout_seconds = queue_timeout_seconds
        self._class_name = self.__class__.__name__

    def run(self):
        logger.info(f"{self._class_name} thread started for '{self._endpoint}'.")

        try:
            processor = resolve_endpoint(self._endpoint)(self._on_event)
        except BackendUnavailable as e:
            logger.error(f"{self._class_name} could not start: {e}")
            self._ready.set_exception(e)
            return
        except Exception as e:
            logger.error(f"{self._class_name} processor construction failed: {e}", exc_info=True)
            self._ready.set_exception(BackendUnavailable(f"Processor construction failed: {e}"))
            return

        self._ready.set_result(processor)

        while not self._stop_event.is_set():
            try:
                data = self._inbox.get(timeout=self._queue_timeout_seconds)
            except queue.Empty:
                continue

            if isinstance(data, threading.Event):
                # Flush barrier: everything queued before it has been handled.
                data.set()
                continue

            try:
                processor.on_message(data)
            except Exception as e:
                logger.error(f"Error handling '{data.get('type')}' message: {e}", exc_info=True)

        logger.info(f"{self._class_name} thread finished.")


class WorkerBackend(Backend):
    """Base for variants hosting the processor on a dedicated worker thread."""

    def __init__(self, endpoint: str, on_event: EventCallback):
        super().__init__(endpoint, on_event)
        self._inbox: queue.Queue = queue.Queue()
        self._stop_event = threading.Event()
        self._ready: Future = Future()
        self._poll_seconds = settings.meter.worker_queue_timeout_seconds
        self._node: Future | None = None

        worker = BackendWorker(
            endpoint=endpoint,
            inbox=self._inbox,
            stop_event=self._stop_event,
            on_event=on_event,
            ready=self._ready,
            queue_timeout_seconds=settings.meter.worker_queue_timeout_seconds,
        )
        self._thread = threading.Thread(target=worker.run, name=f"{self._class_name}Worker", daemon=True)
        self._thread.start()

    @property
    def node(self) -> Future:
        if self._node is None:
            self._node = Future()
            self._ready.add_done_callback(self._resolve_node)
        return self._node

    def _create_node(self) -> AudioSink | None:
        """Builds the graph node once the processor is loaded. None when no node is needed."""
        return None

    def _resolve_node(self, ready: Future) -> None:
        if ready.exception() is not None:
            self._node.set_exception(ready.exception())
        else:
            self._node.set_result(self._create_node())

    def _check_available(self) -> None:
        if self._ready.done() and self._ready.exception() is not None:
            raise BackendUnavailable(f"{self._class_name} is unavailable: {self._ready.exception()}")

    def post(self, data: dict[str, Any]) -> None:
        self._check_available()
        self._inbox.put(data)

    def send(self, message: ControlMessage) -> None:
        self.post(message.to_wire())

    def flush(self, timeout: float | None = None) -> bool:
        self._check_available()
        barrier = threading.Event()
        self._inbox.put(barrier)

        deadline = None if timeout is None else time.monotonic() + timeout
        while not barrier.wait(self._poll_seconds):
            # The worker never reaches the barrier if the processor failed to load.
            self._check_available()
            if not self._thread.is_alive():
                return barrier.is_set()
            if deadline is not None and time.monotonic() >= deadline:
                return False
        return True

    def close(self) -> None:
        self._stop_event.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=settings.meter.join_timeout_seconds)
        logger.debug(f"{self._class_name} closed.")
