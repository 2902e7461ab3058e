# flystate/core/dispatcher.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Mapping, Optional

from flystate.core.props import Props
from flystate.interfaces.protocols import Dispatchable
from flystate.runtime.follow import FollowHandler

if TYPE_CHECKING:
    from flystate.core.events import StateFlyweight
    from flystate.core.machine import Machine, ParentHandle

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class Lifecycle(Enum):
    """Liveness of one state incarnation."""

    ALIVE = auto()  # Receiving messages
    STOPPING = auto()  # Tearing down; messages are swallowed
    DEAD = auto()  # Fully stopped


class StateDispatcher:
    """
    The live object for one constructed state: its message handlers, the child
    machines it declared, its middleware and an optional stop hook.

    A dispatcher is created on every start/goto/force and never revived once
    stopped; re-entering the same state name builds a new one.
    """

    def __init__(
        self,
        messages: Optional[Mapping[str, Handler]] = None,
        children: Optional[Mapping[str, "Machine"]] = None,
        stop: Optional[Callable[[], Any]] = None,
        props: Optional[Props] = None,
        middleware: Optional[List["StateDispatcher"]] = None,
        follow: Optional[FollowHandler] = None,
        on_started: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        :param messages: Message name to handler.
        :param children: Child machines, started and stopped with this state.
        :param stop: Hook called once while this state is torn down.
        :param props: The run's shared props.
        :param middleware: Middleware dispatchers, in declared order.
        :param follow: Scoped subscriptions released on stop.
        :param on_started: Called once the state and its children are started.
        """
        self._messages: Dict[str, Handler] = dict(messages or {})
        self._children: Dict[str, "Machine"] = dict(children or {})
        self._stop_hook = stop
        self.props = props
        self._middleware: List[StateDispatcher] = list(middleware or [])
        self.follow = follow if follow is not None else FollowHandler()
        self._on_started = on_started
        self._lifecycle = Lifecycle.ALIVE

    @property
    def lifecycle(self) -> Lifecycle:
        return self._lifecycle

    @property
    def alive(self) -> bool:
        return self._lifecycle is Lifecycle.ALIVE

    @property
    def children(self) -> Dict[str, "Machine"]:
        return dict(self._children)

    @property
    def middleware(self) -> List["StateDispatcher"]:
        return list(self._middleware)

    def handles(self, name: str) -> bool:
        """True if this state or any of its middleware has a handler for ``name``."""
        return name in self._messages or any(mw.handles(name) for mw in self._middleware)

    def start(self, events: "StateFlyweight", parent: "ParentHandle") -> None:
        """
        Start the declared child machines with this state's props, then run
        anything the state's builder queued during construction.

        :param events: This state's flyweight node; children are hydrated from
            its child(key) nodes.
        :param parent: Handle children use to reach the enclosing machine.
        """
        self._start_tree(events, parent)
        if self.alive:
            self._started()

    def dispatch(self, name: str, *args: Any, **kwargs: Any) -> None:
        """
        Deliver a message to children, then middleware, then the own handler.

        Stops early as soon as this state is no longer alive, which is how a
        goto() from a child or middleware short-circuits the rest of the walk.
        """
        if not self.alive:
            return

        for receiver in self._receivers():
            receiver.dispatch(name, *args, **kwargs)
            if not self.alive:
                return

        handler = self._messages.get(name)
        if handler is not None:
            handler(*args, **kwargs)

    def stop(self) -> None:
        """
        Tear the state down: children, middleware, the stop hook, then any
        subscriptions made through ``follow``. Idempotent.
        """
        if self._lifecycle is not Lifecycle.ALIVE:
            return
        self._lifecycle = Lifecycle.STOPPING

        receivers: List[Dispatchable] = [*self._children.values(), *self._middleware]
        for receiver in receivers:
            receiver.stop()
        if self._stop_hook is not None:
            self._stop_hook()
        self.follow.clear()

        self._lifecycle = Lifecycle.DEAD

    def _receivers(self) -> Iterator[Dispatchable]:
        # Children first, in declaration order, skipping any stopped on their own
        for child in list(self._children.values()):
            if child.running():
                yield child
        yield from list(self._middleware)

    def _start_tree(self, events: "StateFlyweight", parent: "ParentHandle") -> None:
        self._start_children(events, parent)
        for mw in self._middleware:
            if not self.alive:
                return
            mw._start_tree(events, parent)

    def _start_children(self, events: "StateFlyweight", parent: "ParentHandle") -> None:
        for key, child in self._children.items():
            if not self.alive:
                return
            logger.debug(f"Starting child machine '{key}'")
            child.hydrate(parent, events.child(key))
            child.start(self.props)

    def _started(self) -> None:
        for mw in self._middleware:
            if not self.alive:
                return
            mw._started()
        if self.alive and self._on_started is not None:
            self._on_started()
