"""
Tests for the backend hosts, running real worker threads.
"""

import threading
from datetime import datetime
from unittest.mock import patch

import numpy as np
import pytest

from py_needles.backends.base import resolve_endpoint
from py_needles.backends.offline import OfflineBackend
from py_needles.backends.script_processor import ScriptProcessorBackend, ScriptProcessorNode
from py_needles.backends.worklet import WorkletBackend, WorkletNode
from py_needles.core.errors import BackendUnavailable
from py_needles.core.messages import Initialize, Mode, Pause, Process, Record, Reset, Resume, SetParam, Stop
from py_needles.processing.loudness_processor import LoudnessProcessor

ENDPOINT = "py_needles.processing.loudness_processor:LoudnessProcessor"
MISSING_ENDPOINT = "py_needles.no_such_module:Processor"


class RecordingProcessor:
    """Processor double keeping every message it receives."""

    def __init__(self, post):
        self.post = post
        self.received = []

    def on_message(self, data):
        if data.get("type") == "reset":
            raise RuntimeError("reset failed")
        self.received.append(data)
        self.post({"type": "start"})


@pytest.fixture
def backends():
    created = []
    yield created
    for backend in created:
        backend.close()


def test_resolve_endpoint_forms():
    assert resolve_endpoint(ENDPOINT) is LoudnessProcessor
    assert resolve_endpoint("py_needles.processing.loudness_processor.LoudnessProcessor") is LoudnessProcessor


@pytest.mark.parametrize(
    "endpoint",
    ["nodots", MISSING_ENDPOINT, "py_needles.processing.loudness_processor:LOUDNESS_OFFSET", ":Processor"],
)
def test_resolve_endpoint_failures(endpoint):
    with pytest.raises(BackendUnavailable):
        resolve_endpoint(endpoint)


def test_offline_backend_measures_fed_audio(backends):
    events = []
    backend = OfflineBackend(ENDPOINT, events.append)
    backends.append(backend)

    assert backend.wait_ready(timeout=5) is None

    t = np.arange(48000) / 48000
    audio = np.sin(2 * np.pi * 1000 * t).astype(np.float32)
    backend.send(Initialize(sample_rate=48000, modes=frozenset({Mode.INTEGRATED})))
    backend.send(SetParam(key="duration", value=1000))
    backend.send(Record())
    backend.send(Process(channel_blocks=(audio,)))

    assert backend.flush(timeout=5)
    assert events[0] == {"type": "start"}
    assert [e["mode"] for e in events[1:]] == ["integrated"]
    assert events[1]["value"] == pytest.approx(-3.70, abs=0.05)


def test_worker_handles_messages_in_order(backends):
    events = []
    processors = []

    def factory(post):
        processors.append(RecordingProcessor(post))
        return processors[-1]

    with patch("py_needles.backends.base.resolve_endpoint", return_value=factory):
        backend = OfflineBackend("pkg.module:Recorder", events.append)
        backends.append(backend)
        backend.wait_ready(timeout=5)

    messages = [Record(), Pause(), Reset(), Resume(), Stop()]
    for message in messages:
        backend.send(message)
    assert backend.flush(timeout=5)

    # The failing reset is logged and the loop keeps going.
    assert [m["type"] for m in processors[0].received] == ["record", "pause", "resume", "stop"]
    assert len(events) == 4


def test_worker_with_missing_endpoint_is_unavailable(backends):
    backend = OfflineBackend(MISSING_ENDPOINT, lambda data: None)
    backends.append(backend)

    with pytest.raises(BackendUnavailable):
        backend.wait_ready(timeout=5)
    with pytest.raises(BackendUnavailable):
        backend.node.result(timeout=5)
    with pytest.raises(BackendUnavailable):
        backend.send(Record())
    with pytest.raises(BackendUnavailable):
        backend.flush(timeout=1)


def test_script_processor_regroups_audio_into_blocks(backends):
    processors = []

    def factory(post):
        processors.append(RecordingProcessor(post))
        return processors[-1]

    with patch("py_needles.backends.base.resolve_endpoint", return_value=factory):
        backend = ScriptProcessorBackend("pkg.module:Recorder", lambda data: None, block_size=1024)
        backends.append(backend)
        node = backend.wait_ready(timeout=5)

    assert isinstance(node, ScriptProcessorNode)
    for _ in range(3):
        node.handle_audio(np.ones((1000, 2), dtype=np.float32), datetime.now())
    assert backend.flush(timeout=5)

    blocks = processors[0].received
    assert [m["type"] for m in blocks] == ["process", "process"]
    assert all(len(m["input"]) == 2 and len(m["input"][0]) == 1024 for m in blocks)


def test_script_processor_node_is_memoized(backends):
    backend = ScriptProcessorBackend(ENDPOINT, lambda data: None)
    backends.append(backend)

    assert backend.node is backend.node
    assert backend.wait_ready(timeout=5) is backend.wait_ready(timeout=5)


def test_worklet_buffers_messages_until_registered(backends):
    gate = threading.Event()
    processors = []

    def factory(post):
        gate.wait(timeout=5)
        processors.append(RecordingProcessor(post))
        return processors[-1]

    events = []
    with patch("py_needles.backends.worklet.resolve_endpoint", return_value=factory):
        backend = WorkletBackend("pkg.module:Recorder", events.append)
        backends.append(backend)

        backend.send(Initialize(sample_rate=48000, modes=frozenset({Mode.MOMENTARY})))
        backend.send(Record())
        assert not backend.node.done()
        assert not backend.flush(timeout=0.05)

        gate.set()
        node = backend.wait_ready(timeout=5)

    assert isinstance(node, WorkletNode)
    backend.send(Pause())
    node.handle_audio(np.zeros(128, dtype=np.float32), datetime.now())

    received = processors[0].received
    assert [m["type"] for m in received] == ["initialize", "record", "pause", "process"]
    assert backend.flush(timeout=1)
    assert len(events) == 4


def test_worklet_with_missing_endpoint_is_unavailable(backends):
    backend = WorkletBackend(MISSING_ENDPOINT, lambda data: None)
    backends.append(backend)

    with pytest.raises(BackendUnavailable):
        backend.wait_ready(timeout=5)
    with pytest.raises(BackendUnavailable):
        backend.send(Record())
