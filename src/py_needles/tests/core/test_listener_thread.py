"""
Unit tests for ListenerThread.
Mocks the sounddevice library to avoid hardware dependencies.
"""

import queue
import threading
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from py_needles.core.listener_thread import ListenerThread


class FakePortAudioError(Exception):
    pass


@pytest.fixture
def mock_sounddevice():
    with patch("py_needles.core.listener_thread.sd") as mock_sd:
        mock_sd.PortAudioError = FakePortAudioError
        yield mock_sd


@pytest.fixture
def device_config():
    config = MagicMock()
    config.id = 3
    config.sample_rate = 48000
    config.block_size = 4800
    config.channels = 2
    config.dtype = "float32"
    return config


def test_listener_queues_chunks(mock_sounddevice, device_config):
    audio_queue = queue.Queue()
    stop_event = threading.Event()
    chunk = np.zeros((4800, 2), dtype=np.float32)

    stream = mock_sounddevice.InputStream.return_value.__enter__.return_value

    def read(frames):
        stop_event.set()
        return chunk, False

    stream.read.side_effect = read

    ListenerThread(device_config, audio_queue, stop_event).run()

    queued_chunk, timestamp = audio_queue.get_nowait()
    assert queued_chunk is chunk
    assert timestamp is not None
    mock_sounddevice.InputStream.assert_called_once_with(
        device=3, blocksize=4800, samplerate=48000, dtype="float32", channels=2
    )


def test_listener_gives_up_after_max_retries(mock_sounddevice, device_config):
    mock_sounddevice.InputStream.side_effect = FakePortAudioError("device unplugged")
    stop_event = threading.Event()

    listener = ListenerThread(device_config, queue.Queue(), stop_event)
    listener._reconnect_delay_seconds = 0
    listener._max_retries = 3
    listener.run()

    assert mock_sounddevice.InputStream.call_count == 3
    assert stop_event.is_set()


def test_listener_drops_chunk_when_queue_full(mock_sounddevice, device_config):
    audio_queue = queue.Queue(maxsize=1)
    audio_queue.put(("old", None))
    stop_event = threading.Event()

    stream = mock_sounddevice.InputStream.return_value.__enter__.return_value

    def read(frames):
        stop_event.set()
        return np.zeros((4800, 2)), True

    stream.read.side_effect = read

    ListenerThread(device_config, audio_queue, stop_event).run()

    assert audio_queue.get_nowait() == ("old", None)
