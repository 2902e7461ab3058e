# flystate/runtime/follow.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple

Callback = Callable[..., Any]

# (subscribe, unsubscribe) method names, checked in order
_METHOD_PAIRS: Tuple[Tuple[str, str], ...] = (
    ("on", "off"),
    ("add_listener", "remove_listener"),
    ("add_event_listener", "remove_event_listener"),
)


@dataclass(eq=False)
class _Watcher:
    """Internal record of one subscription made through a FollowHandler."""

    source: Any
    event: str
    callback: Callback
    unsubscribe: str


def _methods_for(source: Any) -> Tuple[str, str]:
    for subscribe, unsubscribe in _METHOD_PAIRS:
        if callable(getattr(source, subscribe, None)) and callable(getattr(source, unsubscribe, None)):
            return subscribe, unsubscribe
    raise TypeError(f"{type(source).__name__} has no supported subscribe/unsubscribe method pair")


class FollowHandler:
    """
    Tracks subscriptions made on external event sources so they can all be
    released at once. Every state gets its own handler (``state.follow``),
    cleared automatically when the state stops.

    Supported sources expose one of the method pairs on/off,
    add_listener/remove_listener or add_event_listener/remove_event_listener.
    """

    def __init__(self) -> None:
        self._watched: Dict[str, List[_Watcher]] = {}

    def on(self, source: Any, event: str, callback: Callback) -> Callback:
        """
        Subscribe ``callback`` to ``event`` on ``source`` and remember it.

        :return: The callback, for a later off().
        """
        subscribe, unsubscribe = _methods_for(source)
        self._watched.setdefault(event, []).append(_Watcher(source, event, callback, unsubscribe))
        getattr(source, subscribe)(event, callback)
        return callback

    def once(self, source: Any, event: str, callback: Callback) -> Callback:
        """
        Subscribe a callback that unsubscribes itself after the first call.

        :return: The wrapping handler; pass it to off() to cancel early.
        """

        def handler(*args: Any, **kwargs: Any) -> Any:
            self.off(source, event, handler)
            return callback(*args, **kwargs)

        return self.on(source, event, handler)

    def off(self, source: Any, event: str, callback: Callback) -> bool:
        """
        Unsubscribe a callback registered through this handler.

        :return: True if it was tracked and removed, False otherwise.
        """
        watchers = self._watched.get(event)
        if not watchers:
            return False
        for index, watcher in enumerate(watchers):
            if watcher.source is source and watcher.callback is callback:
                del watchers[index]
                result = getattr(source, watcher.unsubscribe)(event, callback)
                return result is not False
        return False

    def clear(self) -> None:
        """Unsubscribe everything this handler is tracking."""
        watchers = [watcher for group in self._watched.values() for watcher in group]
        for watcher in watchers:
            self.off(watcher.source, watcher.event, watcher.callback)

    def __len__(self) -> int:
        return sum(len(group) for group in self._watched.values())
