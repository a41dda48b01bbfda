"""
Unit tests for MicrophoneSource thread setup.
"""

from unittest.mock import MagicMock, patch

from py_needles.core.pipeline import AudioPipeline
from py_needles.hardware.microphone import MicrophoneSource


def _hardware_config():
    hardware_config = MagicMock()
    hardware_config.sample_rate = 48000
    hardware_config.channels = 2
    return hardware_config


def test_microphone_source_sets_up_listener_and_consumer():
    source = MicrophoneSource(_hardware_config())
    source.connect(AudioPipeline())

    with (
        patch("py_needles.hardware.microphone.ListenerThread") as listener,
        patch("py_needles.hardware.microphone.ConsumerThread") as consumer,
    ):
        source._setup_threads()

    assert not source.is_offline
    assert source.channels == 2
    assert [t.name for t in source._threads] == ["ListenerThread", "ConsumerThread"]
    listener.assert_called_once()
    assert consumer.call_args.kwargs["pipeline"] is source.pipeline


def test_microphone_source_stops_its_threads():
    source = MicrophoneSource(_hardware_config())
    source.connect(AudioPipeline())

    with (
        patch("py_needles.hardware.microphone.ListenerThread") as listener,
        patch("py_needles.hardware.microphone.ConsumerThread") as consumer,
    ):
        listener.return_value.run.side_effect = lambda: source._stop_event.wait(5)
        consumer.return_value.run.side_effect = lambda: source._stop_event.wait(5)
        source.start()
        assert source.is_running

        source.stop(timeout=5)

    assert not source.is_running
