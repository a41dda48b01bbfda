"""
Audio sources feeding a loudness meter.

A source produces chunks shaped (frames, channels) and drives the meter's
pipeline with them. Live sources push chunks as they arrive; the offline
BufferSource holds a complete prerecorded buffer that is rendered at once.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging
import math
import numbers
from datetime import datetime

import numpy as np

from .core.errors import ConfigurationError, InvalidParameter
from .core.pipeline import AudioPipeline

logger = logging.getLogger(__name__)


def as_frames(audio: np.ndarray) -> np.ndarray:
    """Returns audio as a float array shaped (frames, channels)."""
    frames = np.asarray(audio)
    if frames.ndim == 1:
        frames = frames[:, np.newaxis]
    if frames.ndim != 2:
        raise InvalidParameter(f"Audio must be shaped (frames,) or (frames, channels), got {frames.shape}.")
    if not np.issubdtype(frames.dtype, np.floating):
        frames = frames.astype(np.float32)
    return frames


class AudioSource:
    """Base class holding the stream format and the pipeline the source drives."""

    is_offline = False

    def __init__(self, sample_rate: float, channels: int):
        if isinstance(sample_rate, bool) or not isinstance(sample_rate, numbers.Real):
            raise InvalidParameter(f"Sample rate must be a number, got {sample_rate!r}.")
        if not math.isfinite(sample_rate) or sample_rate <= 0:
            raise InvalidParameter(f"Sample rate must be positive and finite, got {sample_rate!r}.")
        if channels < 1:
            raise InvalidParameter(f"Channel count must be at least 1, got {channels}.")

        self.sample_rate = float(sample_rate)
        self.channels = int(channels)
        self._pipeline: AudioPipeline | None = None

    @property
    def pipeline(self) -> AudioPipeline:
        if self._pipeline is None:
            raise ConfigurationError(f"{self.__class__.__name__} is not connected to a pipeline.")
        return self._pipeline

    def connect(self, pipeline: AudioPipeline) -> None:
        if self._pipeline is not None and self._pipeline is not pipeline:
            raise ConfigurationError(f"{self.__class__.__name__} is already connected to a meter.")
        self._pipeline = pipeline


class StreamSource(AudioSource):
    """
    Live source driven by the caller, e.g. from a sounddevice callback or a
    network stream. The calling thread acts as the audio-rendering thread.
    """

    def push(self, audio_chunk: np.ndarray, timestamp: datetime | None = None) -> None:
        frames = as_frames(audio_chunk)
        if frames.shape[1] != self.channels:
            raise InvalidParameter(f"Expected {self.channels} channels, got {frames.shape[1]}.")
        self.pipeline.execute(frames, timestamp or datetime.now())


class BufferSource(AudioSource):
    """
    Offline source wrapping a complete prerecorded buffer.

    :param buffer: Samples shaped (frames,) or (frames, channels).
    :param sample_rate: Sample rate of the buffer in Hz.
    """

    is_offline = True

    def __init__(self, buffer: np.ndarray, sample_rate: float):
        frames = as_frames(buffer)
        super().__init__(sample_rate, frames.shape[1])
        self.buffer = frames

    @property
    def length(self) -> int:
        return len(self.buffer)

    @property
    def duration_seconds(self) -> float:
        return self.length / self.sample_rate

    def render(self) -> np.ndarray:
        """Runs the whole buffer through the connected pipeline's transformers."""
        logger.info(f"Rendering {self.length} frames ({self.duration_seconds:.2f}s) offline...")
        return self.pipeline.render(self.buffer)
