# flystate/core/builders.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Union

from flystate.core.dispatcher import Handler, StateDispatcher
from flystate.core.errors import TransitionError, ValidationError
from flystate.core.props import Props
from flystate.runtime.follow import FollowHandler

if TYPE_CHECKING:
    from flystate.core.machine import Machine, ParentHandle

BuildFn = Callable[["StateBuilder"], StateDispatcher]
Messages = Union[Mapping[str, Handler], Callable[["MessageBuilder"], Mapping[str, Handler]]]


def _default_build(state: "StateBuilder") -> StateDispatcher:
    return state.build()


class MessageBuilder:
    """
    Handed to a ``messages=`` callable so handlers can close over goto/force
    without reaching for the state builder.
    """

    def __init__(self, state: "StateBuilder") -> None:
        self._state = state

    @property
    def props(self) -> Props:
        return self._state.props

    def goto(self, next_state: str, update_props: Optional[Mapping[str, Any]] = None) -> None:
        self._state.goto(next_state, update_props)

    def force(self, next_state: str, update_props: Optional[Mapping[str, Any]] = None) -> None:
        self._state.force(next_state, update_props)

    def build(self, mapping: Optional[Mapping[str, Handler]] = None, **handlers: Handler) -> Dict[str, Handler]:
        """
        Collect message handlers into a table.

        :param mapping: Handlers keyed by message name, for names that are not
            valid Python identifiers.
        :param handlers: Handlers as keyword arguments.
        """
        table: Dict[str, Handler] = dict(mapping or {})
        table.update(handlers)
        for name, handler in table.items():
            if not callable(handler):
                raise ValidationError(f"Handler for message '{name}' must be callable")
        return table


class StateBuilder:
    """
    The object a state's build function receives. Exposes the run's props,
    transitions restricted to the targets the state declared, self-dispatch
    and the scoped subscription handler.
    """

    def __init__(
        self,
        machine: "Machine",
        props: Props,
        parent: Optional["ParentHandle"],
        targets: FrozenSet[str],
        middleware: Optional[List[StateDispatcher]] = None,
    ) -> None:
        self.machine = machine
        self.props = props
        self.parent = parent
        self.follow = FollowHandler()
        self._targets = targets
        self._middleware = list(middleware or [])
        self._dispatcher: Optional[StateDispatcher] = None
        self._started = False
        self._pending: List[Callable[[], None]] = []

    def goto(self, next_state: str, update_props: Optional[Mapping[str, Any]] = None) -> None:
        """Transition unless already in ``next_state``."""
        self._check_target(next_state)
        self._run(lambda: self.machine.goto(next_state, update_props))

    def force(self, next_state: str, update_props: Optional[Mapping[str, Any]] = None) -> None:
        """Transition, rebuilding the state even if it is the current one."""
        self._check_target(next_state)
        self._run(lambda: self.machine.force(next_state, update_props))

    def dispatch(self, name: str, *args: Any, **kwargs: Any) -> None:
        """
        Send a message to the machine running this state. Calls made while
        the state is still being built are delivered once it has started;
        calls made after it stopped are ignored.
        """
        self._run(lambda: self.machine.dispatch(name, *args, **kwargs))

    def child(
        self,
        initial: str,
        states: Mapping[str, "StateFactory"],
        props: Optional[Mapping[str, Any]] = None,
        static_props: Optional[Mapping[str, Any]] = None,
        validate: bool = True,
    ) -> "Machine":
        """Create a machine to declare under ``children=``. Takes the same options as Machine."""
        from flystate.core.machine import Machine

        return Machine(initial=initial, states=states, props=props, static_props=static_props, validate=validate)

    def build(
        self,
        messages: Optional[Messages] = None,
        children: Optional[Mapping[str, "Machine"]] = None,
        stop: Optional[Callable[[], Any]] = None,
    ) -> StateDispatcher:
        """
        Produce the dispatcher for this state.

        :param messages: Handler table, or a callable taking a MessageBuilder
            and returning one.
        :param children: Child machines keyed by name.
        :param stop: Hook run when the state is torn down.
        """
        if self._dispatcher is not None:
            raise ValidationError("build() may only be called once per state")
        if callable(messages):
            messages = messages(MessageBuilder(self))
        self._dispatcher = StateDispatcher(
            messages=messages,
            children=children,
            stop=stop,
            props=self.props,
            middleware=self._middleware,
            follow=self.follow,
            on_started=self._flush,
        )
        return self._dispatcher

    def _check_target(self, next_state: str) -> None:
        if next_state not in self._targets:
            declared = ", ".join(sorted(self._targets)) or "none"
            raise TransitionError(f"Transition to '{next_state}' was not declared (declared: {declared})")

    def _run(self, action: Callable[[], None]) -> None:
        if not self._started:
            self._pending.append(action)
            return
        if self._dispatcher is not None and not self._dispatcher.alive:
            return
        action()

    def _flush(self) -> None:
        self._started = True
        pending, self._pending = self._pending, []
        for action in pending:
            if self._dispatcher is None or not self._dispatcher.alive:
                return
            action()


class StateFactory:
    """
    A buildable state: the transition targets it may request, its middleware
    and the function that builds its dispatcher. Called by the machine every
    time the state is entered.
    """

    def __init__(
        self,
        targets: FrozenSet[str],
        middleware: Mapping[str, "StateFactory"],
        build_fn: Optional[BuildFn] = None,
    ) -> None:
        self.targets = frozenset(targets)
        self.middleware: Dict[str, StateFactory] = dict(middleware)
        self._build_fn = build_fn or _default_build

    def all_targets(self) -> FrozenSet[str]:
        """Targets of this state and, recursively, of its middleware."""
        targets = set(self.targets)
        for mw in self.middleware.values():
            targets |= mw.all_targets()
        return frozenset(targets)

    def __call__(self, machine: "Machine", props: Props, parent: Optional["ParentHandle"] = None) -> StateDispatcher:
        # Middleware is built first, in declared order
        middleware = [factory(machine, props, parent) for factory in self.middleware.values()]
        builder = StateBuilder(machine, props, parent, self.targets, middleware)
        dispatcher = self._build_fn(builder)
        if not isinstance(dispatcher, StateDispatcher):
            raise ValidationError(
                f"State build function must return state.build(...), got {type(dispatcher).__name__}"
            )
        return dispatcher

    def __repr__(self) -> str:
        return f"StateFactory(targets={sorted(self.targets)}, middleware={list(self.middleware)})"


class TransitionBuilder:
    """
    Declares the states a state may transition to, then its middleware, then
    its build function.

    Example:
        Idle = transition("Running").middleware(Logger=logger_state).build(build_idle)
    """

    def __init__(self, targets: FrozenSet[str], middleware: Optional[Mapping[str, StateFactory]] = None) -> None:
        self._targets = frozenset(targets)
        self._middleware: Dict[str, StateFactory] = dict(middleware or {})

    def middleware(
        self, mapping: Optional[Mapping[str, StateFactory]] = None, **factories: StateFactory
    ) -> "TransitionBuilder":
        """
        Append middleware in declaration order. Returns a new builder.

        :raises ValidationError: On a repeated name, a non-factory value, or a
            middleware that can transition outside this state's targets.
        """
        added: Dict[str, StateFactory] = dict(mapping or {})
        for name, factory in factories.items():
            if name in added:
                raise ValidationError(f"Middleware '{name}' declared twice")
            added[name] = factory

        combined = dict(self._middleware)
        for name, factory in added.items():
            if name in combined:
                raise ValidationError(f"Middleware '{name}' declared twice")
            if not isinstance(factory, StateFactory):
                raise ValidationError(f"Middleware '{name}' must be built with transition(...).build()")
            extra = factory.all_targets() - self._targets
            if extra:
                raise ValidationError(
                    f"Middleware '{name}' may transition to {sorted(extra)}, which the state does not declare"
                )
            combined[name] = factory
        return TransitionBuilder(self._targets, combined)

    def build(self, build_fn: Optional[BuildFn] = None) -> StateFactory:
        return StateFactory(self._targets, self._middleware, build_fn)


def transition(*targets: str) -> TransitionBuilder:
    """
    Start declaring a state that may transition to ``targets``. A state with
    no targets is terminal.
    """
    for target in targets:
        if not isinstance(target, str) or not target:
            raise ValidationError(f"Transition targets must be non-empty strings, got {target!r}")
    return TransitionBuilder(frozenset(targets))
