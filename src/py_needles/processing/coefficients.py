"""
Designs the two biquad sections of the K-weighting cascade.

Both sections are derived with the bilinear transform from fixed analog
prototypes (ITU-R BS.1770), so the coefficients can be recomputed for any
sample rate instead of relying on the 48 kHz tables of the standard.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

import math
from typing import NamedTuple

from ..core.errors import InvalidParameter

# Stage 1: high-shelf "pre-filter" (head acoustics).
PRE_FILTER_GAIN_DB = 3.999843853973347
PRE_FILTER_F0 = 1681.974450955533
PRE_FILTER_Q = 0.7071752369554196
PRE_FILTER_VB_EXPONENT = 0.4996667741545416

# Stage 2: RLB high-pass "weighting filter".
WEIGHTING_FILTER_F0 = 38.13547087602444
WEIGHTING_FILTER_Q = 0.5003270373238773


class FilterCoefficients(NamedTuple):
    """Normalized direct-form biquad coefficients; denominators[0] is always 1."""

    numerators: tuple[float, float, float]
    denominators: tuple[float, float, float]


def _validate_sample_rate(sample_rate: float) -> float:
    if isinstance(sample_rate, bool):
        raise InvalidParameter(f"Sample rate must be a number, got {sample_rate!r}.")
    try:
        fs = float(sample_rate)
    except (TypeError, ValueError):
        raise InvalidParameter(f"Sample rate must be a number, got {sample_rate!r}.") from None

    if not math.isfinite(fs) or fs <= 0:
        raise InvalidParameter(f"Sample rate must be a positive finite number, got {sample_rate!r}.")
    return fs


def design_pre_filter(sample_rate: float) -> FilterCoefficients:
    """
    Computes the high-shelf pre-filter for the given sample rate.

    :param sample_rate: Sample rate in Hz.
    :return: The shelf-boost numerator/denominator triplets.
    :raises InvalidParameter: If the sample rate is not positive and finite.
    """
    fs = _validate_sample_rate(sample_rate)

    K = math.tan(math.pi * PRE_FILTER_F0 / fs)
    Q = PRE_FILTER_Q
    Vh = math.pow(10, PRE_FILTER_GAIN_DB / 20)
    Vb = math.pow(Vh, PRE_FILTER_VB_EXPONENT)

    a0 = 1 + K / Q + K * K
    a1 = 2 * (K * K - 1) / a0
    a2 = (1 - K / Q + K * K) / a0
    b0 = (Vh + Vb * K / Q + K * K) / a0
    b1 = 2 * (K * K - Vh) / a0
    b2 = (Vh - Vb * K / Q + K * K) / a0

    return FilterCoefficients(numerators=(b0, b1, b2), denominators=(1.0, a1, a2))


def design_weighting_filter(sample_rate: float) -> FilterCoefficients:
    """
    Computes the RLB high-pass weighting filter for the given sample rate.

    :param sample_rate: Sample rate in Hz.
    :return: Coefficients with the numerator fixed to (1, -2, 1).
    :raises InvalidParameter: If the sample rate is not positive and finite.
    """
    fs = _validate_sample_rate(sample_rate)

    K = math.tan(math.pi * WEIGHTING_FILTER_F0 / fs)
    Q = WEIGHTING_FILTER_Q

    a0 = 1 + K / Q + K * K
    a1 = 2 * (K * K - 1) / a0
    a2 = (1 - K / Q + K * K) / a0

    return FilterCoefficients(numerators=(1.0, -2.0, 1.0), denominators=(1.0, a1, a2))
