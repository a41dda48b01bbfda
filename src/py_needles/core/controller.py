"""
Owns the lifecycle of a loudness metering session.

The controller is the only component with mutable session state. It gates the
lifecycle actions with a small state machine, sends the matching control
message to the backend, slices offline buffers into bounded blocks, and
republishes backend events on its EventBus.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Any, Iterable

import numpy as np

from ..backends.adapter import BackendAdapter
from ..settings import get_settings
from .errors import BackendUnavailable, InvalidParameter, InvalidStateError
from .events import EventBus, EventKind, Listener, MeasurementEvent
from .messages import (
    ControlMessage,
    Initialize,
    Mode,
    Pause,
    Process,
    Record,
    Reset,
    Resume,
    SetParam,
    Stop,
    parse_modes,
)
from .pipeline import AudioPipeline

logger = logging.getLogger(__name__)

settings = get_settings()


class SessionState(str, Enum):
    INACTIVE = "inactive"
    RECORDING = "recording"
    PAUSED = "paused"


class LoudnessController:
    """
    Lifecycle state machine and backend relay for one metering session.

    Transitions (action -> new state, message sent):
    - start:  INACTIVE only        -> RECORDING, Record (offline: render + feed)
    - pause:  any but INACTIVE     -> PAUSED,    Pause
    - resume: any but INACTIVE     -> RECORDING, Resume
    - stop:   any but INACTIVE     -> INACTIVE,  Stop
    - reset:  any state, unchanged,              Reset

    Use LoudnessMeter to build one: it guarantees the weighted source carries
    the K-weighting cascade.
    """

    def __init__(
        self,
        *,
        source,
        weighted_source: AudioPipeline,
        modes: Iterable[Mode | str],
        worker_endpoint: str | None = None,
        worklet_endpoint: str | None = None,
    ):
        """
        :param source: The AudioSource being measured.
        :param weighted_source: The pipeline carrying the K-weighted signal.
        :param modes: Loudness modes to report.
        :param worker_endpoint: Processor endpoint hosted on a worker thread.
        :param worklet_endpoint: Processor endpoint hosted on the audio-rendering thread.
        :raises InvalidParameter: If the modes or endpoints are malformed.
        :raises ConfigurationError: If no endpoint is usable for this session.
        """
        self.modes = parse_modes(modes)
        for endpoint in (worker_endpoint, worklet_endpoint):
            if endpoint is not None and (not isinstance(endpoint, str) or not endpoint.strip()):
                raise InvalidParameter(f"Endpoint must be a non-empty string, got {endpoint!r}.")

        self.source = source
        self.weighted_source = weighted_source
        self.worker_endpoint = worker_endpoint
        self.worklet_endpoint = worklet_endpoint
        self._state = SessionState.INACTIVE
        self._events = EventBus()
        self._render_executor: ThreadPoolExecutor | None = None
        self._block_size = settings.meter.offline_block_size

        self._adapter = BackendAdapter(
            weighted_source=weighted_source,
            on_event=self._relay,
            is_offline=self.is_offline,
            worker_endpoint=worker_endpoint,
            worklet_endpoint=worklet_endpoint,
        )
        self._send(Initialize(sample_rate=source.sample_rate, modes=self.modes))
        logger.info(f"{self.__class__.__name__} initialized: modes={sorted(m.value for m in self.modes)}")

    # --- Properties ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_offline(self) -> bool:
        return bool(getattr(self.source, "is_offline", False))

    @property
    def backend_ready(self) -> Future:
        """Future resolving once the backend is initialized (BackendUnavailable on failure)."""
        return self._adapter.ready

    # --- Events ---

    def subscribe(self, kind: EventKind | str, listener: Listener) -> None:
        self._events.subscribe(kind, listener)

    def unsubscribe(self, kind: EventKind | str | None = None, listener: Listener | None = None) -> None:
        self._events.unsubscribe(kind, listener)

    def _relay(self, data: dict[str, Any]) -> None:
        try:
            event = MeasurementEvent.from_wire(data)
        except InvalidParameter as e:
            logger.warning(f"Ignoring backend event: {e}")
            return

        if event.kind is EventKind.DATA_AVAILABLE and event.mode not in self.modes:
            logger.warning(f"Dropping '{event.mode.value}' measurement: mode was not requested.")
            return

        self._events.trigger(event)

    # --- Lifecycle ---

    def start(self) -> Future | None:
        """
        Starts recording.

        :return: For offline sessions, a future completing once the rendered source
                 has been fed to the backend; None for live sessions.
        :raises InvalidStateError: If the session is not inactive.
        """
        self._require(SessionState.INACTIVE, action="start")
        self._send(Record())
        self._state = SessionState.RECORDING

        if not self.is_offline:
            return None

        if self._render_executor is None:
            self._render_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="OfflineRender")
        return self._render_executor.submit(self._render_and_feed)

    def pause(self) -> None:
        self._require_active(action="pause")
        self._send(Pause())
        self._state = SessionState.PAUSED

    def resume(self) -> None:
        self._require_active(action="resume")
        self._send(Resume())
        self._state = SessionState.RECORDING

    def stop(self) -> None:
        self._require_active(action="stop")
        self._send(Stop())
        self._state = SessionState.INACTIVE

    def reset(self) -> None:
        """Clears the backend accumulators without touching the lifecycle state."""
        try:
            self._send(Reset())
        except BackendUnavailable as e:
            logger.warning(f"Reset not delivered: {e}")

    def _require(self, expected: SessionState, action: str) -> None:
        if self._state is not expected:
            raise InvalidStateError(action=action, state=self._state)

    def _require_active(self, action: str) -> None:
        if self._state is SessionState.INACTIVE:
            raise InvalidStateError(action=action, state=self._state)

    # --- Feeding ---

    def _render_and_feed(self) -> int:
        rendered = self.source.render()
        return self.feed(rendered)

    def feed(self, buffer: np.ndarray) -> int:
        """
        Sends a complete buffer to the backend in blocks of at most `block_size` frames.

        Offline sessions first announce the buffer duration (ms) so the backend can
        close its integrated measurement once the last block arrives. Each block is
        copied out of the buffer as it is sent.

        :param buffer: Samples shaped (frames,) or (frames, channels).
        :return: The number of Process messages sent.
        """
        frames = buffer if buffer.ndim == 2 else buffer.reshape(-1, 1)
        length, channels = frames.shape

        if self.is_offline:
            self._send(SetParam(key="duration", value=length / self.source.sample_rate * 1000))

        sent = 0
        for start in range(0, length, self._block_size):
            stop = min(start + self._block_size, length)
            block = tuple(frames[start:stop, channel].astype(np.float32) for channel in range(channels))
            self._send(Process(channel_blocks=block))
            sent += 1

        logger.info(f"Fed {length} frames to the backend in {sent} blocks.")
        return sent

    def _send(self, message: ControlMessage) -> None:
        self._adapter.send(message)

    # --- Teardown ---

    def flush(self, timeout: float | None = None) -> bool:
        """Blocks until the backend handled every message sent so far."""
        return self._adapter.flush(timeout)

    def close(self) -> None:
        if self._render_executor is not None:
            self._render_executor.shutdown(wait=True)
            self._render_executor = None
        self._adapter.close()
        logger.debug(f"{self.__class__.__name__} closed.")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
