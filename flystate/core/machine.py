# flystate/core/machine.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from flystate.core.builders import StateFactory
from flystate.core.dispatcher import StateDispatcher
from flystate.core.errors import (
    InternalInvariantError,
    NotStartedError,
    StoppedError,
    TransitionError,
    ValidationError,
)
from flystate.core.events import START, STOP, MachineFlyweight, StateFlyweight
from flystate.core.machine_status import MachineStatus
from flystate.core.props import Props, merge_props
from flystate.core.props import update_props as apply_prop_updates
from flystate.core.validations import Validator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MachineConfig:
    """Normalized construction-time options of a Machine."""

    initial: str
    states: Mapping[str, StateFactory]
    static_props: Mapping[str, Any] = field(default_factory=dict)
    validate: bool = True


class ParentHandle:
    """
    What a child machine's states see as ``state.parent``: a way to send
    messages to the enclosing machine, and read its props, without being able
    to drive its transitions directly.
    """

    def __init__(self, machine: "Machine") -> None:
        self._machine = machine

    def dispatch(self, name: str, *args: Any, **kwargs: Any) -> None:
        self._machine.dispatch(name, *args, **kwargs)

    @property
    def props(self) -> Props:
        return self._machine.props()

    def current(self) -> str:
        return self._machine.current()


class Machine:
    """
    Runs one state at a time out of a map of state factories.

    Every start(), goto() and force() builds a fresh StateDispatcher; the old
    one is fully stopped first. Listeners registered through events() live on
    the machine rather than on a state instance, so they survive transitions
    and restarts.
    """

    def __init__(
        self,
        initial: str,
        states: Mapping[str, StateFactory],
        props: Optional[Mapping[str, Any]] = None,
        static_props: Optional[Mapping[str, Any]] = None,
        validate: bool = True,
    ) -> None:
        """
        :param initial: Name of the state entered on every start().
        :param states: State name to factory built with transition(...).build().
        :param props: Props fixed for the machine's lifetime.
        :param static_props: Alias for ``props``.
        :param validate: Check the state graph now and fail fast.
        :raises ValidationError: If the definition is malformed.
        """
        if props is not None and static_props is not None:
            raise ValidationError("Pass either props or static_props, not both")
        self._config = MachineConfig(
            initial=initial,
            states=dict(states),
            static_props=dict(props if props is not None else static_props or {}),
            validate=validate,
        )
        if validate:
            Validator().validate_machine(self._config.initial, self._config.states)

        self._current: Optional[StateDispatcher] = None
        self._current_name: str = initial
        self._running = False
        self._ever_ran = False
        self._props: Optional[Props] = None
        self._events = MachineFlyweight()
        self._parent: Optional[ParentHandle] = None

    @property
    def config(self) -> MachineConfig:
        return self._config

    @property
    def initial(self) -> str:
        return self._config.initial

    @property
    def status(self) -> MachineStatus:
        if not self._ever_ran:
            return MachineStatus.NEVER_STARTED
        return MachineStatus.RUNNING if self._running else MachineStatus.STOPPED

    @property
    def parent(self) -> Optional[ParentHandle]:
        return self._parent

    def start(self, props: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> None:
        """
        Enter the initial state with fresh props. No-op while running.

        :param props: Props for this run, merged over the static props.
        :param kwargs: Extra props, merged over ``props``.
        """
        if self._running:
            return
        was_started = self._ever_ran
        previous, previous_name = self._current, self._current_name
        self._ever_ran = True
        self._running = True

        dynamic = dict(props or {})
        dynamic.update(kwargs)
        self._props = merge_props(self._config.static_props, dynamic)
        logger.debug(f"Starting machine at '{self._config.initial}'")
        try:
            self._create_and_start(self._config.initial)
        except Exception:
            logger.debug(f"Starting machine at '{self._config.initial}' failed")
            self._running = False
            self._ever_ran = was_started
            self._rollback(previous, previous_name)
            raise

    def stop(self) -> None:
        """Stop the current state. Idempotent."""
        if not self._running:
            return
        self._running = False
        logger.debug(f"Stopping machine in '{self._current_name}'")
        self._stop_current()

    def dispatch(self, name: str, *args: Any, **kwargs: Any) -> None:
        """
        Deliver a message to the current state. Messages without a handler
        are ignored.

        :raises NotStartedError: If start() was never called.
        :raises StoppedError: If the machine is stopped.
        """
        self._assert_running()
        self.dispatcher().dispatch(name, *args, **kwargs)

    def goto(self, next_state: str, update_props: Optional[Mapping[str, Any]] = None) -> None:
        """Transition to ``next_state`` unless it is already current."""
        self._assert_running()
        if next_state == self._current_name:
            return
        self.force(next_state, update_props)

    def force(self, next_state: str, update_props: Optional[Mapping[str, Any]] = None) -> None:
        """
        Stop the current state and build ``next_state``, even if it has the
        same name. ``update_props`` keys overwrite the shared props in between.

        If tearing down the old state or entering the new one raises, the
        machine is left stopped in the old state and can be start()ed again.
        """
        self._assert_running()
        if next_state not in self._config.states:
            raise TransitionError(f"Unknown state '{next_state}'")
        if self._props is None:
            raise InternalInvariantError("Internal error: props are None on a running machine")

        previous, previous_name = self.dispatcher(), self._current_name
        logger.debug(f"Transition '{previous_name}' -> '{next_state}'")
        try:
            self._stop_current()
            # A stop listener may have stopped the machine
            if not self._running:
                return
            apply_prop_updates(self._props, update_props)
            self._create_and_start(next_state)
        except Exception:
            logger.debug(f"Transition '{previous_name}' -> '{next_state}' failed; stopping machine")
            self._running = False
            self._rollback(previous, previous_name)
            raise

    def running(self) -> bool:
        """True between start() and stop()."""
        return self._running

    def current(self) -> str:
        """Name of the current state, or of the initial state before start()."""
        return self._current_name

    def current_name(self) -> str:
        return self._current_name

    def dispatcher(self) -> StateDispatcher:
        if self._current is None:
            raise InternalInvariantError("Internal error: no current state; was the machine ever started?")
        return self._current

    def props(self) -> Props:
        if self._props is None:
            raise InternalInvariantError("Internal error: props are None; was the machine ever started?")
        return self._props

    def events(self, name: str) -> StateFlyweight:
        """
        Return the persistent event node for state ``name``. Use
        ``.child(key)`` on it to reach states of nested machines.
        """
        return self._events.events(name)

    def current_events(self) -> StateFlyweight:
        return self.events(self._current_name)

    def hydrate(self, parent: Optional[ParentHandle], flyweight: MachineFlyweight) -> None:
        """
        Attach this machine to an enclosing state: messages from its states'
        ``state.parent`` go to ``parent``, and its events are published on
        ``flyweight``.
        """
        self._parent = parent
        self._events = flyweight

    def _create_and_start(self, name: str) -> None:
        factory = self._config.states[name]
        props = self.props()
        dispatcher = factory(self, props, self._parent)
        self._current = dispatcher
        self._current_name = name

        events = self.events(name)
        events.emit(START, props)
        # A start listener may already have moved the machine on
        if dispatcher.alive and self._current is dispatcher:
            dispatcher.start(events, ParentHandle(self))

    def _stop_current(self) -> None:
        current = self.dispatcher()
        if not current.alive:
            return
        name = self._current_name
        current.stop()
        self.events(name).emit(STOP, self._props)

    def _rollback(self, previous: Optional[StateDispatcher], previous_name: str) -> None:
        # Tear down whatever was entered after ``previous``, then point back at it
        current = self._current
        if current is not None and current is not previous and current.alive:
            self._stop_current()
        self._current = previous
        self._current_name = previous_name

    def _assert_running(self) -> None:
        if not self._ever_ran:
            raise NotStartedError("State machine was never started")
        if not self._running:
            raise StoppedError("State machine is stopped")

    def __repr__(self) -> str:
        return f"Machine(current={self._current_name!r}, status={self.status.name})"


def machine(
    initial: str,
    states: Mapping[str, StateFactory],
    props: Optional[Mapping[str, Any]] = None,
    static_props: Optional[Mapping[str, Any]] = None,
    validate: bool = True,
) -> Machine:
    """Build a Machine from keyword options."""
    return Machine(initial=initial, states=states, props=props, static_props=static_props, validate=validate)
