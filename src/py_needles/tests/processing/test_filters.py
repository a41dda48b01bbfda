"""
Unit tests for the BiquadFilter pipeline stage.
"""

import numpy as np
from scipy import signal

from py_needles.processing.coefficients import design_pre_filter, design_weighting_filter
from py_needles.processing.filters import BiquadFilter


def _reference(coefficients, audio):
    return signal.lfilter(coefficients.numerators, coefficients.denominators, audio, axis=0)


def test_chunked_output_matches_one_shot():
    """State carried between chunks makes chunked filtering seamless."""
    coefficients = design_pre_filter(48000)
    rng = np.random.default_rng(0)
    audio = rng.standard_normal(4800)

    biquad = BiquadFilter(coefficients)
    chunked = np.concatenate([biquad.process_audio(chunk) for chunk in np.array_split(audio, 7)])

    np.testing.assert_allclose(chunked, _reference(coefficients, audio), atol=1e-10)


def test_reset_restarts_from_silence():
    coefficients = design_weighting_filter(48000)
    audio = np.ones(256)

    biquad = BiquadFilter(coefficients)
    first = biquad.process_audio(audio)
    second = biquad.process_audio(audio)
    biquad.reset()
    after_reset = biquad.process_audio(audio)

    assert not np.allclose(first, second)
    np.testing.assert_allclose(first, after_reset)


def test_multichannel_keeps_shape_and_filters_each_channel():
    coefficients = design_pre_filter(44100)
    rng = np.random.default_rng(1)
    audio = rng.standard_normal((1000, 2)).astype(np.float32)

    output = BiquadFilter(coefficients).process_audio(audio)

    assert output.shape == (1000, 2)
    assert output.dtype == np.float32
    np.testing.assert_allclose(output[:, 1], _reference(coefficients, audio[:, 1]), rtol=1e-4, atol=1e-4)


def test_empty_chunk_is_passed_through():
    biquad = BiquadFilter(design_pre_filter(48000))
    empty = np.zeros((0, 1))

    assert biquad.process_audio(empty) is empty
