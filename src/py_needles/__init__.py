"""
Real-time and offline loudness metering.

Exposes the LoudnessMeter entry point, the audio sources that drive it, and
the K-weighting coefficient designers.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

from importlib.metadata import PackageNotFoundError, version

from .core.errors import BackendUnavailable, ConfigurationError, InvalidParameter, InvalidStateError, NeedlesError
from .core.events import EventKind, MeasurementEvent
from .core.controller import SessionState
from .core.messages import Mode
from .core.meter import LoudnessMeter
from .processing.coefficients import FilterCoefficients, design_pre_filter, design_weighting_filter
from .sources import BufferSource, StreamSource

__all__ = [
    "LoudnessMeter",
    "SessionState",
    "Mode",
    "EventKind",
    "MeasurementEvent",
    "BufferSource",
    "StreamSource",
    "FilterCoefficients",
    "design_pre_filter",
    "design_weighting_filter",
    "NeedlesError",
    "InvalidParameter",
    "ConfigurationError",
    "InvalidStateError",
    "BackendUnavailable",
]


try:
    __version__ = version("py-needles")
except PackageNotFoundError:
    # Package is not installed
    __version__ = "unknown"
