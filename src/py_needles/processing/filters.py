"""
Implements a stateful biquad filter stage for the audio pipeline.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging

import numpy as np
from scipy import signal

from ..core.interfaces import AudioTransformer
from .coefficients import FilterCoefficients

logger = logging.getLogger(__name__)


class BiquadFilter(AudioTransformer):
    """
    Applies one second-order section to chunked audio.

    The filter delay line is kept between calls so consecutive chunks are
    filtered as one continuous signal. Chunks are shaped (frames,) or
    (frames, channels); each channel has its own state.
    """

    def __init__(self, coefficients: FilterCoefficients, name: str = "biquad"):
        self.name = name
        self._b = np.asarray(coefficients.numerators, dtype=np.float64)
        self._a = np.asarray(coefficients.denominators, dtype=np.float64)
        self._zi: np.ndarray | None = None
        logger.debug(f"BiquadFilter '{name}' initialized: b={self._b}, a={self._a}")

    def process_audio(self, audio_chunk: np.ndarray) -> np.ndarray:
        """
        Filters a chunk along the time axis, continuing from the previous chunk.

        :param audio_chunk: Samples shaped (frames,) or (frames, channels).
        :return: Filtered samples with the same shape and dtype as the input.
        """
        if audio_chunk.size == 0:
            return audio_chunk

        state_shape = (2,) + audio_chunk.shape[1:]
        if self._zi is None or self._zi.shape != state_shape:
            self._zi = np.zeros(state_shape, dtype=np.float64)

        filtered, self._zi = signal.lfilter(self._b, self._a, audio_chunk, axis=0, zi=self._zi)
        return filtered.astype(audio_chunk.dtype, copy=False)

    def reset(self) -> None:
        self._zi = None
