"""
Backend driven by a fixed-size audio callback.

The ScriptProcessorNode sits at the end of the audio pipeline. It regroups
whatever chunk sizes the source produces into fixed blocks and forwards each
block, one array per channel, to the processor running on a worker thread.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging
import threading
from datetime import datetime

import numpy as np

from ..core.errors import BackendUnavailable
from ..core.interfaces import AudioSink
from ..core.messages import Process
from ..settings import get_settings
from .base import EventCallback, WorkerBackend

logger = logging.getLogger(__name__)

settings = get_settings()


class ScriptProcessorNode(AudioSink):
    """
    Pipeline sink emitting one Process message per block of `block_size` frames.

    :param backend: The backend owning the worker the blocks are posted to.
    :param block_size: Number of frames per callback block.
    """

    def __init__(self, backend: "ScriptProcessorBackend", block_size: int):
        self._backend = backend
        self._block_size = block_size
        self._pending: list[np.ndarray] = []
        self._pending_frames = 0
        self._lock = threading.Lock()

    def handle_audio(self, audio_chunk: np.ndarray, timestamp: datetime) -> None:
        if audio_chunk.size == 0:
            return
        frames = audio_chunk if audio_chunk.ndim == 2 else audio_chunk.reshape(-1, 1)

        with self._lock:
            self._pending.append(frames)
            self._pending_frames += len(frames)
            if self._pending_frames < self._block_size:
                return

            buffered = np.concatenate(self._pending)
            full = (len(buffered) // self._block_size) * self._block_size
            remainder = buffered[full:]
            self._pending = [remainder] if len(remainder) else []
            self._pending_frames = len(remainder)

        for start in range(0, full, self._block_size):
            block = buffered[start : start + self._block_size]
            channels = tuple(np.array(block[:, channel], dtype=np.float32) for channel in range(block.shape[1]))
            try:
                self._backend.send(Process(channel_blocks=channels))
            except BackendUnavailable as e:
                logger.warning(f"Dropping audio block: {e}")
                return


class ScriptProcessorBackend(WorkerBackend):
    def __init__(self, endpoint: str, on_event: EventCallback, block_size: int | None = None):
        super().__init__(endpoint, on_event)
        self.block_size = block_size or settings.meter.script_processor_block_size

    def _create_node(self) -> ScriptProcessorNode:
        logger.debug(f"ScriptProcessorNode created with block size {self.block_size}.")
        return ScriptProcessorNode(self, self.block_size)
