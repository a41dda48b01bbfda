"""
Selects and wires the processing backend for a meter session.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging
from concurrent.futures import Future

from ..core.errors import ConfigurationError
from ..core.messages import ControlMessage
from ..core.pipeline import AudioPipeline
from .base import Backend, EventCallback
from .offline import OfflineBackend
from .script_processor import ScriptProcessorBackend
from .worklet import WorkletBackend

logger = logging.getLogger(__name__)


class BackendAdapter:
    """
    Chooses one backend variant from the session's capabilities and hides it
    behind a single `send` method.

    Selection order:
    1. Offline sessions use the OfflineBackend (no graph node).
    2. A worklet endpoint selects the WorkletBackend.
    3. A worker endpoint selects the ScriptProcessorBackend.
    4. Otherwise a ConfigurationError is raised.

    The backend is created on first access and reused afterwards; its node is
    connected to the end of the weighted pipeline exactly once.
    """

    def __init__(
        self,
        weighted_source: AudioPipeline,
        on_event: EventCallback,
        is_offline: bool,
        worker_endpoint: str | None = None,
        worklet_endpoint: str | None = None,
    ):
        self._weighted_source = weighted_source
        self._on_event = on_event
        self.is_offline = is_offline
        self.worker_endpoint = worker_endpoint
        self.worklet_endpoint = worklet_endpoint
        self._backend: Backend | None = None
        self._ready: Future = Future()

    @property
    def backend(self) -> Backend:
        if self._backend is None:
            self._backend = self._select()
            self._backend.node.add_done_callback(self._connect)
        return self._backend

    def _select(self) -> Backend:
        if self.is_offline:
            endpoint = self.worker_endpoint or self.worklet_endpoint
            if endpoint is None:
                raise ConfigurationError("Offline session requires a processing endpoint; none was provided.")
            logger.debug("Using OfflineBackend")
            return OfflineBackend(endpoint, self._on_event)

        if self.worklet_endpoint is not None:
            logger.debug("Using WorkletBackend")
            return WorkletBackend(self.worklet_endpoint, self._on_event)

        if self.worker_endpoint is not None:
            logger.debug("Using ScriptProcessorBackend")
            return ScriptProcessorBackend(self.worker_endpoint, self._on_event)

        raise ConfigurationError("Must provide either a worker or a worklet endpoint: no processing endpoint provided.")

    def _connect(self, node: Future) -> None:
        if node.exception() is not None:
            logger.error(f"Backend node unavailable, audio path not connected: {node.exception()}")
            self._ready.set_exception(node.exception())
            return

        sink = node.result()
        if sink is None:
            logger.debug("Backend needs no graph node.")
        else:
            self._weighted_source.add_sink(sink)
            logger.info(f"{sink.__class__.__name__} connected downstream of the weighting filter.")
        self._ready.set_result(sink)

    @property
    def ready(self) -> Future:
        """Future resolving once the backend is initialized and its node is connected."""
        self.backend  # selects and wires the backend on first access
        return self._ready

    def send(self, message: ControlMessage) -> None:
        self.backend.send(message)

    def flush(self, timeout: float | None = None) -> bool:
        return self.backend.flush(timeout)

    def close(self) -> None:
        if self._backend is not None:
            self._backend.close()
