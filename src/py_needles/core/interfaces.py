"""
Defines the contracts between audio pipeline stages.

Transformers condition audio in place of the original signal (e.g., the
K-weighting biquads); sinks receive the final audio (e.g., a backend node).

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

from abc import ABC, abstractmethod
from datetime import datetime

import numpy as np


class AudioTransformer(ABC):
    """A stage that takes audio and returns modified audio of the same shape."""

    @abstractmethod
    def process_audio(self, audio_chunk: np.ndarray) -> np.ndarray:
        pass

    def reset(self) -> None:
        """Clears any state carried between chunks."""


class AudioSink(ABC):
    """A terminal stage consuming audio chunks."""

    @abstractmethod
    def handle_audio(self, audio_chunk: np.ndarray, timestamp: datetime) -> None:
        pass
