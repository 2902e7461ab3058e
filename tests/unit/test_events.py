# tests/unit/test_events.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from unittest.mock import MagicMock

import pytest

from flystate import EventEmitter, MachineFlyweight, StateFlyweight


@pytest.fixture
def emitter() -> EventEmitter:
    return EventEmitter()


def test_on_returns_callback_and_receives_data(emitter: EventEmitter) -> None:
    spy = MagicMock()
    assert emitter.on("start", spy) is spy
    emitter.emit("start", {"a": 1})
    spy.assert_called_once_with({"a": 1})


def test_listeners_run_in_registration_order(emitter: EventEmitter) -> None:
    order = []
    emitter.on("start", lambda _: order.append(1))
    emitter.on("start", lambda _: order.append(2))
    emitter.on("start", lambda _: order.append(3))
    emitter.emit("start", None)
    assert order == [1, 2, 3]


def test_once_fires_a_single_time(emitter: EventEmitter) -> None:
    spy = MagicMock()
    emitter.once("start", spy)
    emitter.emit("start", "first")
    emitter.emit("start", "second")
    spy.assert_called_once_with("first")
    assert emitter.listener_count("start") == 0


def test_once_wrapper_can_be_removed_early(emitter: EventEmitter) -> None:
    spy = MagicMock()
    wrapper = emitter.once("start", spy)
    assert emitter.off("start", wrapper) is True
    emitter.emit("start", None)
    spy.assert_not_called()


def test_off_reports_whether_anything_was_removed(emitter: EventEmitter) -> None:
    spy = MagicMock()
    emitter.on("start", spy)
    assert emitter.off("start", spy) is True
    assert emitter.off("start", spy) is False
    assert emitter.off("never-registered", spy) is False


def test_off_removes_one_registration_at_a_time(emitter: EventEmitter) -> None:
    spy = MagicMock()
    emitter.on("start", spy)
    emitter.on("start", spy)
    emitter.off("start", spy)
    emitter.emit("start", None)
    assert spy.call_count == 1


def test_clear_removes_all_events(emitter: EventEmitter) -> None:
    start, stop = MagicMock(), MagicMock()
    emitter.on("start", start)
    emitter.on("stop", stop)
    emitter.clear()
    emitter.emit("start", None)
    emitter.emit("stop", None)
    start.assert_not_called()
    stop.assert_not_called()


def test_listener_removing_itself_does_not_skip_others(emitter: EventEmitter) -> None:
    later = MagicMock()

    def remove_self(_):
        emitter.off("start", remove_self)

    emitter.on("start", remove_self)
    emitter.on("start", later)
    emitter.emit("start", None)
    later.assert_called_once_with(None)


def test_state_flyweight_child_is_memoized() -> None:
    node = StateFlyweight()
    child = node.child("inner")
    assert isinstance(child, MachineFlyweight)
    assert node.child("inner") is child
    assert node.child("other") is not child


def test_clear_does_not_touch_descendants() -> None:
    node = StateFlyweight()
    nested = node.child("inner").events("Leaf")
    spy = MagicMock()
    nested.on("start", spy)
    node.clear()
    nested.emit("start", None)
    spy.assert_called_once_with(None)


def test_machine_flyweight_events_are_memoized() -> None:
    flyweight = MachineFlyweight()
    assert "Foo" not in flyweight
    node = flyweight.events("Foo")
    assert "Foo" in flyweight
    assert flyweight.events("Foo") is node


def test_off_for_unknown_event_registers_nothing(emitter: EventEmitter) -> None:
    assert emitter.off("never-registered", MagicMock()) is False
    emitter.emit("also-never-registered", None)
    assert "never-registered" not in emitter._listeners
    assert "also-never-registered" not in emitter._listeners
