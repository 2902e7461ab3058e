# tests/integration/test_nested_machines.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from unittest.mock import MagicMock

import pytest

from flystate import Machine, ParentHandle, machine, transition


@pytest.fixture
def log():
    return []


def _inner_states(log):
    def build_ping(state):
        def ping():
            log.append(("inner", "ping", dict(state.props)))
            state.goto("Pong")

        return state.build(messages={"ping": ping})

    def build_pong(state):
        return state.build(messages={"finish": lambda: state.parent.dispatch("done")})

    return {
        "Ping": transition("Pong").build(build_ping),
        "Pong": transition().build(build_pong),
    }


def _outer(log, inner_props=None) -> Machine:
    def build_active(state):
        children = {"inner": state.child(initial="Ping", states=_inner_states(log), props=inner_props)}
        return state.build(
            children=children,
            messages=lambda msg: msg.build(
                ping=lambda: log.append(("outer", "ping", None)),
                done=lambda: msg.goto("Done"),
            ),
        )

    return machine(
        initial="Active",
        states={"Active": transition("Done").build(build_active), "Done": transition().build()},
        props={"msg": "hi"},
    )


def test_children_start_with_parent(log) -> None:
    m = _outer(log)
    m.start({"count": 1})
    child = m.dispatcher().children["inner"]
    assert child.running()
    assert child.current() == "Ping"
    assert isinstance(child.parent, ParentHandle)


def test_children_receive_full_parent_props(log) -> None:
    m = _outer(log, inner_props={"private": True})
    m.start({"count": 1})
    child = m.dispatcher().children["inner"]
    assert child.props() == {"msg": "hi", "count": 1, "private": True}


def test_children_see_messages_before_parent_handler(log) -> None:
    m = _outer(log)
    m.start({"count": 1})
    m.dispatch("ping")
    assert log == [("inner", "ping", {"msg": "hi", "count": 1}), ("outer", "ping", None)]
    assert m.dispatcher().children["inner"].current() == "Pong"


def test_child_can_drive_parent_through_parent_handle(log) -> None:
    m = _outer(log)
    m.start()
    m.dispatch("ping")
    child = m.dispatcher().children["inner"]
    m.dispatch("finish")
    assert m.current() == "Done"
    assert not child.running()


def test_children_stop_with_parent(log) -> None:
    m = _outer(log)
    m.start()
    child = m.dispatcher().children["inner"]
    m.stop()
    assert not child.running()


def test_each_entry_builds_new_children(log) -> None:
    m = _outer(log)
    m.start()
    first = m.dispatcher().children["inner"]
    m.force("Active")
    second = m.dispatcher().children["inner"]
    assert second is not first
    assert not first.running()
    assert second.running()


def test_nested_events_survive_restarts(log) -> None:
    m = _outer(log)
    spy = MagicMock()
    m.events("Active").child("inner").events("Ping").on("start", spy)
    m.start()
    m.stop()
    m.start()
    assert spy.call_count == 2


def test_nested_events_registered_after_start_still_fire(log) -> None:
    m = _outer(log)
    m.start()
    spy = MagicMock()
    m.events("Active").child("inner").events("Pong").on("start", spy)
    m.dispatch("ping")
    spy.assert_called_once()


def test_start_and_stop_event_order_across_levels(log) -> None:
    m = _outer(log)
    order = []
    outer_events = m.events("Active")
    inner_events = outer_events.child("inner").events("Ping")
    outer_events.on("start", lambda _: order.append("outer.start"))
    outer_events.on("stop", lambda _: order.append("outer.stop"))
    inner_events.on("start", lambda _: order.append("inner.start"))
    inner_events.on("stop", lambda _: order.append("inner.stop"))
    m.start()
    m.stop()
    assert order == ["outer.start", "inner.start", "inner.stop", "outer.stop"]


def test_stopped_child_is_skipped_by_parent_dispatch(log) -> None:
    m = _outer(log)
    m.start()
    m.dispatcher().children["inner"].stop()
    m.dispatch("ping")
    assert log == [("outer", "ping", None)]


def _nested(depth: int) -> Machine:
    """A chain of machines, each level's only state owning the next level as child 'c'."""
    if depth == 0:
        return machine(initial="Leaf", states={"Leaf": transition().build()})

    def build(state):
        return state.build(children={"c": _nested(depth - 1)})

    return machine(initial="Level", states={"Level": transition().build(build)})


@pytest.mark.parametrize("depth", [1, 2, 5])
def test_deep_listener_fires_once(depth: int) -> None:
    root = _nested(depth)
    node = root.events("Level")
    for _ in range(depth - 1):
        node = node.child("c").events("Level")
    leaf = node.child("c").events("Leaf")

    spy = MagicMock()
    leaf.on("start", spy)
    root.start({"n": depth})
    spy.assert_called_once_with({"n": depth})
