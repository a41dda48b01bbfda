"""
Tests for the offline WAV file meter application.
"""

import csv

import numpy as np
import pytest
from scipy.io import wavfile

from py_needles.apps.file_meter import FileMeterApp, load_wav
from py_needles.core.messages import Mode
from py_needles.settings import get_settings

settings = get_settings()

SAMPLE_RATE = 48000


@pytest.fixture
def sine_wav(tmp_path):
    t = np.arange(SAMPLE_RATE * 2) / SAMPLE_RATE
    tone = 0.5 * np.sin(2 * np.pi * 997 * t)
    path = tmp_path / "tone.wav"
    wavfile.write(path, SAMPLE_RATE, (tone * 32767).astype(np.int16))
    return path


def test_load_wav_normalizes_int16(sine_wav):
    sample_rate, data = load_wav(str(sine_wav))

    assert sample_rate == SAMPLE_RATE
    assert data.dtype == np.float32
    assert np.max(np.abs(data)) == pytest.approx(0.5, abs=1e-3)


def test_file_meter_reports_all_modes(sine_wav, tmp_path):
    endpoint = settings.meter.default_worker_endpoint
    app = FileMeterApp(str(sine_wav), modes=["momentary", "integrated"], endpoint=endpoint)
    try:
        measurements = app.run(timeout=10)
        output = tmp_path / "series.csv"
        app.save_csv(str(output))
    finally:
        app.close()

    # -6.02 dB below a full-scale tone at -3.01 LUFS.
    assert measurements[Mode.INTEGRATED] == [pytest.approx(-9.03, abs=0.1)]
    assert len(measurements[Mode.MOMENTARY]) == 17

    with open(output, newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["time_s", "mode", "lufs"]
    assert len(rows) == 18
    assert rows[1][:2] == ["0.4", "momentary"]
    assert rows[-1][:2] == ["2.0", "momentary"]
