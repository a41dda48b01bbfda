"""
Implements the audio processing pipeline manager.

This module defines the AudioPipeline class, responsible for orchestrating the flow
of audio data through a sequence of transformers (e.g., the K-weighting biquads) and
delivering the result to multiple sinks (e.g., a loudness backend node).

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging
import threading
from datetime import datetime

import numpy as np

from .interfaces import AudioSink, AudioTransformer

logger = logging.getLogger(__name__)


class AudioPipeline:
    """
    Orchestrates the flow of audio through transformers and into sinks.

    Sinks may be attached from another thread (e.g., once a backend finishes
    registering), so the sink list is copied before each fan-out.
    """

    def __init__(self):
        self._transformers: list[AudioTransformer] = []
        self._sinks: list[AudioSink] = []
        self._lock = threading.Lock()

    @property
    def transformers(self) -> list[AudioTransformer]:
        return list(self._transformers)

    @property
    def sinks(self) -> list[AudioSink]:
        with self._lock:
            return list(self._sinks)

    def add_transformer(self, transformer: AudioTransformer):
        """Adds a transformer to the chain (order matters)."""
        self._transformers.append(transformer)

    def add_sink(self, sink: AudioSink):
        """Adds a consumer to the end of the chain."""
        with self._lock:
            self._sinks.append(sink)
        logger.debug(f"Sink {sink.__class__.__name__} connected to pipeline.")

    def transform(self, audio_chunk: np.ndarray) -> np.ndarray:
        """Passes audio through all transformers sequentially."""
        processed_chunk = audio_chunk
        for transformer in self._transformers:
            processed_chunk = transformer.process_audio(processed_chunk)
        return processed_chunk

    def execute(self, audio_chunk: np.ndarray, timestamp: datetime):
        """
        Runs the pipeline for a single audio chunk.
        """
        # 1. Transform
        processed_chunk = self.transform(audio_chunk)

        # 2. Fan-out: Deliver the final audio to all sinks
        for sink in self.sinks:
            sink.handle_audio(processed_chunk, timestamp)

    def render(self, buffer: np.ndarray) -> np.ndarray:
        """
        Renders a complete buffer through the transformers, starting from clean state.

        Used for offline sessions: the whole source is conditioned in one pass and
        the sinks are bypassed.
        """
        for transformer in self._transformers:
            transformer.reset()
        rendered = self.transform(buffer)
        logger.debug(f"Rendered {len(rendered)} frames through {len(self._transformers)} transformers.")
        return rendered
