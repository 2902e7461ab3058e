# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Any, Callable, List, Tuple

import pytest

from flystate import Machine, machine, transition


class Recorder:
    """Collects (label, payload) pairs in call order."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Any]] = []

    def hook(self, label: str) -> Callable[..., None]:
        def _record(*args: Any) -> None:
            self.calls.append((label, args[0] if len(args) == 1 else args))

        return _record

    @property
    def labels(self) -> List[str]:
        return [label for label, _ in self.calls]


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


def _toggling_state(other: str):
    return transition(other, "Final").build(
        lambda state: state.build(
            messages=lambda msg: msg.build(
                next=lambda: msg.goto(other),
                end=lambda: msg.goto("Final"),
            )
        )
    )


@pytest.fixture
def foo_bar_factory() -> Callable[..., Machine]:
    """Returns a factory for the Foo <-> Bar machine with a terminal Final state."""

    def _factory(**kwargs: Any) -> Machine:
        return machine(
            initial="Foo",
            states={
                "Foo": _toggling_state("Bar"),
                "Bar": _toggling_state("Foo"),
                "Final": transition().build(),
            },
            **kwargs,
        )

    return _factory


@pytest.fixture
def foo_bar(foo_bar_factory) -> Machine:
    return foo_bar_factory()
