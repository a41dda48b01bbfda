"""
Processing backend hosts and the adapter selecting between them.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

from .adapter import BackendAdapter
from .base import Backend, resolve_endpoint
from .offline import OfflineBackend
from .script_processor import ScriptProcessorBackend
from .worklet import WorkletBackend

__all__ = [
    "Backend",
    "BackendAdapter",
    "OfflineBackend",
    "ScriptProcessorBackend",
    "WorkletBackend",
    "resolve_endpoint",
]
