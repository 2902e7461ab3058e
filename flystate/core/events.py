# flystate/core/events.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Any, Callable, Dict, List

Listener = Callable[[Any], Any]

START = "start"
STOP = "stop"


class EventEmitter:
    """
    A minimal synchronous event emitter. Listeners for an event run in the
    order they were registered.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def on(self, event: str, callback: Listener) -> Listener:
        """
        Register a callback for an event.

        :param event: Event name, e.g. "start" or "stop".
        :param callback: Called with the event data on every emit.
        :return: The callback, so it can be passed to off() later.
        """
        self._ensure_key(event).append(callback)
        return callback

    def off(self, event: str, callback: Listener) -> bool:
        """
        Unregister a callback.

        :return: True if the callback was registered, False otherwise.
        """
        listeners = self._listeners.get(event)
        if listeners is None:
            return False
        try:
            listeners.remove(callback)
        except ValueError:
            return False
        return True

    def once(self, event: str, callback: Listener) -> Listener:
        """
        Register a callback that unregisters itself after its first call.

        :return: The wrapping listener; pass it to off() to cancel early.
        """

        def wrapped(data: Any) -> Any:
            self.off(event, wrapped)
            return callback(data)

        return self.on(event, wrapped)

    def clear(self) -> None:
        """Remove every listener for every event on this emitter."""
        for event in self._listeners:
            self._listeners[event] = []

    def emit(self, event: str, data: Any = None) -> None:
        """Call every listener registered for ``event`` with ``data``."""
        # Snapshot so once() listeners may remove themselves mid-iteration
        for listener in list(self._listeners.get(event, ())):
            listener(data)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def _ensure_key(self, event: str) -> List[Listener]:
        return self._listeners.setdefault(event, [])


class StateFlyweight(EventEmitter):
    """
    Persistent subscription point for the "start" and "stop" events of one
    named state. Outlives every instance of the state it describes, so
    listeners survive transitions and restarts.

    Example:
        machine.events("Playing").child("audio").events("Muted").on("start", cb)
    """

    def __init__(self) -> None:
        super().__init__()
        self._machine_map: Dict[str, "MachineFlyweight"] = {}

    def child(self, key: str) -> "MachineFlyweight":
        """
        Return the flyweight for the child machine declared under ``key``,
        creating it on first access.
        """
        flyweight = self._machine_map.get(key)
        if flyweight is None:
            flyweight = MachineFlyweight()
            self._machine_map[key] = flyweight
        return flyweight


class MachineFlyweight:
    """
    Maps state names to their StateFlyweight nodes for one machine. Nodes are
    created lazily and never replaced.
    """

    def __init__(self) -> None:
        self._state_map: Dict[str, StateFlyweight] = {}

    def events(self, name: str) -> StateFlyweight:
        flyweight = self._state_map.get(name)
        if flyweight is None:
            flyweight = StateFlyweight()
            self._state_map[name] = flyweight
        return flyweight

    def __contains__(self, name: str) -> bool:
        return name in self._state_map
