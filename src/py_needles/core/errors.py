"""
Exception taxonomy for the loudness meter control plane.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""


class NeedlesError(Exception):
    """Base class for every error raised by py_needles."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class InvalidParameter(NeedlesError, ValueError):
    """Raised synchronously for a bad sample rate or malformed options."""


class ConfigurationError(NeedlesError):
    """Raised at construction when no usable processing endpoint is configured."""


class InvalidStateError(NeedlesError):
    """
    Raised when a lifecycle action is not legal in the current state.

    Carries the attempted action and the state the meter was in, which is left unchanged.
    """

    def __init__(self, action: str, state):
        self.action = action
        self.state = state
        state_name = getattr(state, "value", state)
        super().__init__(f"Failed to execute '{action}' on 'LoudnessMeter': the meter's state is '{state_name}'.")


class BackendUnavailable(NeedlesError):
    """Raised when a processing backend failed to initialize."""
