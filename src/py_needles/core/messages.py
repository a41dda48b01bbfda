"""
Defines the control messages sent to a processing backend and their wire format.

Backends are hosted behind a message boundary (a worker thread or the audio
rendering thread), so every message is converted to a plain dict before it
crosses it. The dict layout is the contract an external backend processor
implements.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

import numpy as np

from .errors import InvalidParameter


class Mode(str, Enum):
    """Loudness integration windows a backend can report."""

    MOMENTARY = "momentary"
    SHORT_TERM = "short_term"
    INTEGRATED = "integrated"


def parse_modes(modes: Iterable[Mode | str]) -> frozenset[Mode]:
    """
    Normalizes a collection of mode names or members into a set of Mode.

    :raises InvalidParameter: If the collection is empty, a string, or has unknown names.
    """
    if isinstance(modes, (str, bytes)) or modes is None:
        raise InvalidParameter(f"Modes must be a collection of mode names, got {modes!r}.")

    parsed = set()
    for mode in modes:
        try:
            parsed.add(Mode(mode))
        except ValueError:
            valid = ", ".join(m.value for m in Mode)
            raise InvalidParameter(f"Unknown mode {mode!r}. Expected one of: {valid}.") from None

    if not parsed:
        raise InvalidParameter("At least one mode must be requested.")
    return frozenset(parsed)


@dataclass(frozen=True)
class Initialize:
    sample_rate: float
    modes: frozenset[Mode]

    def to_wire(self) -> dict[str, Any]:
        ordered = [mode.value for mode in Mode if mode in self.modes]
        return {"type": "initialize", "attributes": {"sampleRate": self.sample_rate, "modes": ordered}}


@dataclass(frozen=True)
class Process:
    """One block of audio, one array per channel."""

    channel_blocks: tuple[np.ndarray, ...]

    @property
    def frames(self) -> int:
        return len(self.channel_blocks[0]) if self.channel_blocks else 0

    def to_wire(self) -> dict[str, Any]:
        return {"type": "process", "input": list(self.channel_blocks)}


@dataclass(frozen=True)
class Record:
    def to_wire(self) -> dict[str, Any]:
        return {"type": "record"}


@dataclass(frozen=True)
class Pause:
    def to_wire(self) -> dict[str, Any]:
        return {"type": "pause"}


@dataclass(frozen=True)
class Resume:
    def to_wire(self) -> dict[str, Any]:
        return {"type": "resume"}


@dataclass(frozen=True)
class Stop:
    def to_wire(self) -> dict[str, Any]:
        return {"type": "stop"}


@dataclass(frozen=True)
class Reset:
    def to_wire(self) -> dict[str, Any]:
        return {"type": "reset"}


@dataclass(frozen=True)
class SetParam:
    key: str
    value: Any

    def to_wire(self) -> dict[str, Any]:
        return {"type": "set", "key": self.key, "value": self.value}


ControlMessage = Initialize | Process | Record | Pause | Resume | Stop | Reset | SetParam
