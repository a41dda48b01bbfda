"""
Public entry point of the loudness meter.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import logging
from typing import Iterable

from ..processing.coefficients import design_pre_filter, design_weighting_filter
from ..processing.filters import BiquadFilter
from .controller import LoudnessController
from .messages import Mode
from .pipeline import AudioPipeline

logger = logging.getLogger(__name__)


class LoudnessMeter(LoudnessController):
    """
    Measures momentary, short-term and integrated loudness of a source.

    The source is always routed through the K-weighting cascade (pre-filter then
    weighting filter) before reaching the backend.

    Example:
        source = BufferSource(samples, sample_rate=48000)
        with LoudnessMeter(source, modes=["integrated"], worker_endpoint=ENDPOINT) as meter:
            meter.subscribe("dataavailable", print)
            meter.start().result()
            meter.flush()
    """

    def __init__(
        self,
        source,
        modes: Iterable[Mode | str],
        worker_endpoint: str | None = None,
        worklet_endpoint: str | None = None,
    ):
        pre_filter = BiquadFilter(design_pre_filter(source.sample_rate), name="pre-filter")
        weighting_filter = BiquadFilter(design_weighting_filter(source.sample_rate), name="weighting-filter")

        weighted_source = AudioPipeline()
        weighted_source.add_transformer(pre_filter)
        weighted_source.add_transformer(weighting_filter)
        source.connect(weighted_source)
        logger.debug(f"K-weighting cascade built for {source.sample_rate:.0f} Hz.")

        super().__init__(
            source=source,
            weighted_source=weighted_source,
            modes=modes,
            worker_endpoint=worker_endpoint,
            worklet_endpoint=worklet_endpoint,
        )
