"""
Unit tests for the EventBus and MeasurementEvent.
"""

from unittest.mock import Mock

import pytest

from py_needles.core.errors import InvalidParameter
from py_needles.core.events import EventBus, EventKind, MeasurementEvent
from py_needles.core.messages import Mode

MOMENTARY_EVENT = MeasurementEvent(EventKind.DATA_AVAILABLE, Mode.MOMENTARY, -23.0)


def test_subscribe_and_trigger_in_order():
    bus = EventBus()
    calls = []
    bus.subscribe(EventKind.DATA_AVAILABLE, lambda event: calls.append(("first", event)))
    bus.subscribe("dataavailable", lambda event: calls.append(("second", event)))

    bus.trigger(MOMENTARY_EVENT)

    assert calls == [("first", MOMENTARY_EVENT), ("second", MOMENTARY_EVENT)]


def test_trigger_only_reaches_matching_kind():
    bus = EventBus()
    on_start = Mock()
    on_data = Mock()
    bus.subscribe(EventKind.START, on_start)
    bus.subscribe(EventKind.DATA_AVAILABLE, on_data)

    bus.trigger(MeasurementEvent(EventKind.START))

    on_start.assert_called_once_with(MeasurementEvent(EventKind.START))
    on_data.assert_not_called()


def test_unsubscribe_single_listener():
    bus = EventBus()
    keep = Mock()
    drop = Mock()
    bus.subscribe(EventKind.DATA_AVAILABLE, keep)
    bus.subscribe(EventKind.DATA_AVAILABLE, drop)

    bus.unsubscribe(EventKind.DATA_AVAILABLE, drop)
    bus.trigger(MOMENTARY_EVENT)

    keep.assert_called_once()
    drop.assert_not_called()


def test_unsubscribe_kind_and_all():
    bus = EventBus()
    for kind in EventKind:
        bus.subscribe(kind, Mock())

    bus.unsubscribe("stop")
    assert bus.listener_count(EventKind.STOP) == 0
    assert bus.listener_count(EventKind.START) == 1

    bus.unsubscribe()
    assert all(bus.listener_count(kind) == 0 for kind in EventKind)


def test_unsubscribe_during_dispatch_keeps_snapshot():
    """A listener removed mid-dispatch still receives the current event, not the next one."""
    bus = EventBus()
    second = Mock()

    def first(event):
        bus.unsubscribe(EventKind.DATA_AVAILABLE, second)

    bus.subscribe(EventKind.DATA_AVAILABLE, first)
    bus.subscribe(EventKind.DATA_AVAILABLE, second)

    bus.trigger(MOMENTARY_EVENT)
    bus.trigger(MOMENTARY_EVENT)

    second.assert_called_once()


def test_subscribe_during_dispatch_waits_for_next_event():
    bus = EventBus()
    late = Mock()
    bus.subscribe(EventKind.DATA_AVAILABLE, lambda event: bus.subscribe(EventKind.DATA_AVAILABLE, late))

    bus.trigger(MOMENTARY_EVENT)
    late.assert_not_called()

    bus.trigger(MOMENTARY_EVENT)
    late.assert_called_once()


def test_failing_listener_does_not_block_others():
    bus = EventBus()
    after = Mock()
    bus.subscribe(EventKind.DATA_AVAILABLE, Mock(side_effect=RuntimeError("listener bug")))
    bus.subscribe(EventKind.DATA_AVAILABLE, after)

    bus.trigger(MOMENTARY_EVENT)

    after.assert_called_once_with(MOMENTARY_EVENT)


def test_invalid_kind_or_listener_raises():
    bus = EventBus()
    with pytest.raises(InvalidParameter):
        bus.subscribe("loudness", Mock())
    with pytest.raises(InvalidParameter):
        bus.subscribe(EventKind.START, "not callable")
    with pytest.raises(InvalidParameter):
        bus.unsubscribe("loudness")


def test_event_from_wire():
    assert MeasurementEvent.from_wire({"type": "dataavailable", "mode": "short_term", "value": -18}) == (
        MeasurementEvent(EventKind.DATA_AVAILABLE, Mode.SHORT_TERM, -18.0)
    )
    assert MeasurementEvent.from_wire({"type": "pause"}) == MeasurementEvent(EventKind.PAUSE)


@pytest.mark.parametrize(
    "data",
    [
        {"type": "loudness"},
        {},
        {"type": "dataavailable", "mode": "peak", "value": 0},
        {"type": "dataavailable", "mode": "momentary"},
        {"type": "dataavailable", "mode": "momentary", "value": None},
    ],
)
def test_malformed_event_from_wire_raises(data):
    with pytest.raises(InvalidParameter):
        MeasurementEvent.from_wire(data)
