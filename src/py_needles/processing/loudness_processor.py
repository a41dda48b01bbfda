"""
Reference loudness processor hosted by the meter backends.

The processor consumes the backend wire messages (see py_needles.core.messages)
and posts measurement events back as dicts. Its input is expected to be already
K-weighted by the meter's filter cascade, so only the mean-square accumulation,
windowing and gating of ITU-R BS.1770 / EBU R128 are performed here:

- Momentary loudness: mean power over the last 400 ms.
- Short-term loudness: mean power over the last 3 s.
- Integrated loudness: 400 ms blocks with 75% overlap, gated at -70 LUFS
  (absolute) and then 10 LU below the ungated mean (relative).

All three are updated on a 100 ms hop.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging
import math
from collections import deque
from typing import Any, Callable

import numpy as np

from ..settings import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

LOUDNESS_OFFSET = -0.691
SURROUND_CHANNEL_WEIGHTS = np.array([1.0, 1.0, 1.0, 1.41, 1.41])

Post = Callable[[dict[str, Any]], None]


def power_to_lufs(power: float, lower_bound: float) -> float:
    if power <= 0:
        return lower_bound
    return max(LOUDNESS_OFFSET + 10 * math.log10(power), lower_bound)


def gated_loudness(block_powers: np.ndarray, absolute_gate: float, relative_gate: float, lower_bound: float) -> float:
    """
    Applies the two-stage gate to a series of 400 ms block powers.

    :param block_powers: Channel-weighted mean-square power of each gating block.
    :return: The integrated loudness in LUFS, or lower_bound if every block is gated out.
    """
    if block_powers.size == 0:
        return lower_bound

    absolute_threshold = 10 ** ((absolute_gate - LOUDNESS_OFFSET) / 10)
    above_absolute = block_powers[block_powers > absolute_threshold]
    if above_absolute.size == 0:
        return lower_bound

    relative_threshold_lufs = power_to_lufs(float(np.mean(above_absolute)), lower_bound) + relative_gate
    relative_threshold = 10 ** ((relative_threshold_lufs - LOUDNESS_OFFSET) / 10)
    above_relative = above_absolute[above_absolute > relative_threshold]
    if above_relative.size == 0:
        return lower_bound

    return power_to_lufs(float(np.mean(above_relative)), lower_bound)


class LoudnessProcessor:
    """
    Stateful processor answering the backend message protocol.

    :param post: Callable receiving every event dict this processor emits.
    """

    def __init__(self, post: Post):
        self._post = post
        self._initialized = False
        self._recording = False
        self._sample_rate = 0.0
        self._modes: frozenset[str] = frozenset()
        self._expected_frames: int | None = None

        cfg = settings.loudness
        self._absolute_gate = cfg.absolute_gate_lufs
        self._relative_gate = cfg.relative_gate_lu
        self._lower_bound = cfg.lufs_lower_bound
        self._hop_seconds = cfg.hop_seconds
        self._momentary_hops = max(1, round(cfg.momentary_window_seconds / cfg.hop_seconds))
        self._short_term_hops = max(1, round(cfg.short_term_window_seconds / cfg.hop_seconds))

        self._handlers = {
            "initialize": self._on_initialize,
            "process": self._on_process,
            "record": self._on_record,
            "pause": self._on_pause,
            "resume": self._on_resume,
            "stop": self._on_stop,
            "reset": self._on_reset,
            "set": self._on_set,
        }
        self._clear()

    def on_message(self, data: dict[str, Any]) -> None:
        kind = data.get("type")
        handler = self._handlers.get(kind)
        if handler is None:
            logger.error(f"Unknown message type {kind!r}; ignoring.")
            return
        if not self._initialized and kind != "initialize":
            logger.error(f"Received '{kind}' before 'initialize'; ignoring.")
            return
        handler(data)

    # --- Lifecycle ---

    def _on_initialize(self, data: dict[str, Any]) -> None:
        if self._initialized:
            logger.warning("Processor already initialized; ignoring repeated 'initialize'.")
            return
        attributes = data.get("attributes", {})
        self._sample_rate = float(attributes["sampleRate"])
        self._modes = frozenset(attributes.get("modes", ()))
        self._hop_frames = max(1, round(self._sample_rate * self._hop_seconds))
        self._initialized = True
        logger.info(f"Loudness processor initialized: SR={self._sample_rate:.0f} Hz, modes={sorted(self._modes)}")

    def _on_record(self, data: dict[str, Any]) -> None:
        self._clear()
        self._recording = True
        self._post({"type": "start"})

    def _on_pause(self, data: dict[str, Any]) -> None:
        self._recording = False
        self._post({"type": "pause"})

    def _on_resume(self, data: dict[str, Any]) -> None:
        self._recording = True
        self._post({"type": "resume"})

    def _on_stop(self, data: dict[str, Any]) -> None:
        self._recording = False
        self._post({"type": "stop"})

    def _on_reset(self, data: dict[str, Any]) -> None:
        self._clear()

    def _on_set(self, data: dict[str, Any]) -> None:
        key, value = data.get("key"), data.get("value")
        if key == "duration":
            self._expected_frames = round(float(value) / 1000 * self._sample_rate)
            logger.debug(f"Expecting {self._expected_frames} frames before end of stream.")
        else:
            logger.warning(f"Unknown parameter {key!r}; ignoring.")

    def _clear(self) -> None:
        self._hop_energy: np.ndarray | None = None
        self._hop_fill = 0
        self._processed_frames = 0
        self._finished = False
        self._hops: deque[np.ndarray] = deque(maxlen=max(self._momentary_hops, self._short_term_hops))
        self._block_powers: list[float] = []

    # --- Accumulation ---

    def _on_process(self, data: dict[str, Any]) -> None:
        if not self._recording or self._finished:
            return

        channels = data.get("input") or []
        if not channels:
            return
        frames = np.stack([np.asarray(channel, dtype=np.float64) for channel in channels], axis=1)

        position = 0
        total = len(frames)
        while position < total:
            if self._hop_energy is None:
                self._hop_energy = np.zeros(frames.shape[1])

            take = min(self._hop_frames - self._hop_fill, total - position)
            segment = frames[position : position + take]
            self._hop_energy += np.sum(segment * segment, axis=0)
            self._hop_fill += take
            position += take

            if self._hop_fill == self._hop_frames:
                self._complete_hop()

        self._processed_frames += total
        if self._expected_frames is not None and self._processed_frames >= self._expected_frames:
            self._end_of_stream()

    def _weighted_power(self, hops) -> float:
        mean_square = np.mean(np.stack(hops), axis=0)
        if mean_square.size == len(SURROUND_CHANNEL_WEIGHTS):
            return float(np.sum(SURROUND_CHANNEL_WEIGHTS * mean_square))
        return float(np.sum(mean_square))

    def _complete_hop(self) -> None:
        self._hops.append(self._hop_energy / self._hop_frames)
        self._hop_energy = None
        self._hop_fill = 0

        recent = list(self._hops)
        if len(recent) >= self._momentary_hops:
            block_power = self._weighted_power(recent[-self._momentary_hops :])
            self._block_powers.append(block_power)
            self._emit("momentary", power_to_lufs(block_power, self._lower_bound))

        if len(recent) >= self._short_term_hops:
            short_term_power = self._weighted_power(recent[-self._short_term_hops :])
            self._emit("short_term", power_to_lufs(short_term_power, self._lower_bound))

        if self._expected_frames is None and self._block_powers:
            self._emit("integrated", self._integrated())

    def _integrated(self) -> float:
        return gated_loudness(
            np.asarray(self._block_powers), self._absolute_gate, self._relative_gate, self._lower_bound
        )

    def _end_of_stream(self) -> None:
        self._finished = True
        logger.info(f"End of stream reached after {self._processed_frames} frames.")
        self._emit("integrated", self._integrated())

    def _emit(self, mode: str, value: float) -> None:
        if mode in self._modes:
            self._post({"type": "dataavailable", "mode": mode, "value": value})
