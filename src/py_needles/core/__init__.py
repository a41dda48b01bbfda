"""
Exposes the control plane components of the meter.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

from .errors import BackendUnavailable, ConfigurationError, InvalidParameter, InvalidStateError, NeedlesError
from .events import EventBus, EventKind, MeasurementEvent
from .interfaces import AudioSink, AudioTransformer
from .messages import Mode
from .pipeline import AudioPipeline

__all__ = [
    "AudioPipeline",
    "AudioSink",
    "AudioTransformer",
    "EventBus",
    "EventKind",
    "MeasurementEvent",
    "Mode",
    "NeedlesError",
    "InvalidParameter",
    "ConfigurationError",
    "InvalidStateError",
    "BackendUnavailable",
]
