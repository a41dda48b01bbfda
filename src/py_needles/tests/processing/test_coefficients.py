"""
Unit tests for the K-weighting coefficient designers.
"""

import math

import pytest

from py_needles.core.errors import InvalidParameter
from py_needles.processing.coefficients import PRE_FILTER_F0, design_pre_filter, design_weighting_filter

# Reference values for 48 kHz (ITU-R BS.1770 tables).
PRE_FILTER_48K_B = (1.53512485958697, -2.69169618940638, 1.19839281085285)
PRE_FILTER_48K_A = (1.0, -1.69065929318241, 0.73248077421585)
WEIGHTING_FILTER_48K_A = (1.0, -1.99004745483398, 0.99007225036621)


@pytest.mark.parametrize("sample_rate", [8000, 22050, 44100, 48000, 96000, 192000])
def test_coefficients_are_finite_and_normalized(sample_rate):
    """Both stages produce finite values with a unit leading denominator."""
    for coefficients in (design_pre_filter(sample_rate), design_weighting_filter(sample_rate)):
        assert coefficients.denominators[0] == 1.0
        assert all(math.isfinite(c) for c in coefficients.numerators + coefficients.denominators)


def test_pre_filter_matches_reference_at_48k():
    coefficients = design_pre_filter(48000)

    assert coefficients.numerators == pytest.approx(PRE_FILTER_48K_B, abs=1e-4)
    assert coefficients.denominators == pytest.approx(PRE_FILTER_48K_A, abs=1e-4)


def test_weighting_filter_matches_reference_at_48k():
    coefficients = design_weighting_filter(48000)

    assert coefficients.numerators == (1.0, -2.0, 1.0)
    assert coefficients.denominators == pytest.approx(WEIGHTING_FILTER_48K_A, abs=1e-4)


def test_pre_filter_warping_term():
    """The bilinear pre-warp uses the shelf corner frequency."""
    assert math.tan(math.pi * PRE_FILTER_F0 / 48000) == pytest.approx(0.1105, abs=1e-3)


def test_weighting_filter_numerators_do_not_depend_on_rate():
    assert design_weighting_filter(44100).numerators == design_weighting_filter(96000).numerators


def test_designs_differ_across_rates():
    assert design_pre_filter(44100) != design_pre_filter(48000)


@pytest.mark.parametrize("sample_rate", [0, -1, -48000, float("nan"), float("inf"), "abc", None, True])
def test_invalid_sample_rate_raises(sample_rate):
    with pytest.raises(InvalidParameter):
        design_pre_filter(sample_rate)
    with pytest.raises(InvalidParameter):
        design_weighting_filter(sample_rate)


def test_invalid_parameter_is_a_value_error():
    with pytest.raises(ValueError):
        design_pre_filter(0)
