"""
Backend used for offline (non-realtime) sessions.

The source buffer is rendered in full before it is measured, so no audio
graph node is needed: the controller feeds the rendered blocks to the worker
directly.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging

from .base import WorkerBackend

logger = logging.getLogger(__name__)


class OfflineBackend(WorkerBackend):
    """Worker-hosted processor fed directly by the controller. Its node resolves to None."""

    def flush(self, timeout: float | None = None) -> bool:
        handled = super().flush(timeout)
        if not handled:
            logger.warning(f"Offline flush timed out after {timeout}s.")
        return handled
