"""
Backend running the processor on the audio-rendering thread.

The endpoint module is registered asynchronously, once. Until registration
completes, control messages are buffered; afterwards they are handed to the
node in the order they were sent. Audio is processed inline by whichever
thread executes the pipeline, which gives the lowest latency.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime
from typing import Any

import numpy as np

from ..core.errors import BackendUnavailable
from ..core.interfaces import AudioSink
from ..core.messages import ControlMessage, Process
from ..settings import get_settings
from .base import Backend, EventCallback, resolve_endpoint

logger = logging.getLogger(__name__)

settings = get_settings()


class WorkletNode(AudioSink):
    """
    Pipeline sink owning the processor instance.

    Audio blocks and port messages are serialized by a lock so the processor
    never observes two messages at once. Events the processor posts while
    handling a message are queued and delivered once the lock is released, so
    listeners may send control messages back to the node.

    :param factory: Processor factory resolved from the endpoint.
    :param on_event: Receives every event the processor posts.
    :param name: Name the node is registered under.
    """

    def __init__(self, factory, on_event: EventCallback, name: str):
        self.name = name
        self._on_event = on_event
        self._outbox: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        self._processor = factory(self._outbox.append)

    def post(self, data: dict[str, Any]) -> None:
        with self._lock:
            try:
                self._processor.on_message(data)
            except Exception as e:
                logger.error(f"Worklet '{self.name}' failed handling '{data.get('type')}': {e}", exc_info=True)
            events = self._outbox[:]
            self._outbox.clear()

        for event in events:
            try:
                self._on_event(event)
            except Exception as e:
                logger.error(f"Worklet '{self.name}' failed delivering '{event.get('type')}': {e}", exc_info=True)

    def handle_audio(self, audio_chunk: np.ndarray, timestamp: datetime) -> None:
        if audio_chunk.size == 0:
            return
        frames = audio_chunk if audio_chunk.ndim == 2 else audio_chunk.reshape(-1, 1)
        channels = tuple(np.array(frames[:, channel], dtype=np.float32) for channel in range(frames.shape[1]))
        self.post(Process(channel_blocks=channels).to_wire())


class WorkletBackend(Backend):
    def __init__(self, endpoint: str, on_event: EventCallback, name: str | None = None):
        super().__init__(endpoint, on_event)
        self.name = name or settings.meter.worklet_name
        self._lock = threading.Lock()
        self._pending: deque[dict[str, Any]] = deque()
        self._ready_node: WorkletNode | None = None
        self._failure: BackendUnavailable | None = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="WorkletRegistry")
        self._node = self._start_registration()

    @property
    def node(self) -> Future:
        return self._node

    def _start_registration(self) -> Future:
        logger.debug(f"Registering worklet module '{self.endpoint}'...")
        node: Future = Future()
        registration = self._executor.submit(self._register)
        registration.add_done_callback(lambda done: self._on_registered(done, node))
        return node

    def _register(self) -> WorkletNode:
        factory = resolve_endpoint(self.endpoint)
        try:
            return WorkletNode(factory, self._on_event, self.name)
        except Exception as e:
            raise BackendUnavailable(f"Worklet processor construction failed: {e}") from e

    def _on_registered(self, registration: Future, node: Future) -> None:
        error = registration.exception()
        if error is not None:
            with self._lock:
                self._failure = error if isinstance(error, BackendUnavailable) else BackendUnavailable(str(error))
                logger.error(f"Worklet registration failed, dropping {len(self._pending)} messages: {error}")
                self._pending.clear()
            node.set_exception(self._failure)
            return

        worklet_node = registration.result()
        # Messages sent while draining are appended to the pending queue, keeping FIFO order.
        while True:
            with self._lock:
                if not self._pending:
                    self._ready_node = worklet_node
                    break
                data = self._pending.popleft()
            worklet_node.post(data)

        logger.info(f"Worklet '{self.name}' registered.")
        # Resolved only once buffered messages were delivered, so audio never overtakes them.
        node.set_result(worklet_node)

    def send(self, message: ControlMessage) -> None:
        with self._lock:
            if self._failure is not None:
                raise BackendUnavailable(f"WorkletBackend is unavailable: {self._failure}")
            if self._ready_node is None:
                self._pending.append(message.to_wire())
                return
            worklet_node = self._ready_node
        worklet_node.post(message.to_wire())

    def flush(self, timeout: float | None = None) -> bool:
        # Messages are handled synchronously once the node is registered.
        try:
            self.wait_ready(timeout)
        except FutureTimeoutError:
            return False
        with self._lock:
            if self._failure is not None:
                raise BackendUnavailable(f"WorkletBackend is unavailable: {self._failure}")
            return not self._pending

    def close(self) -> None:
        self._executor.shutdown(wait=False)
        logger.debug("WorkletBackend closed.")
