# flystate/interfaces/protocols.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Dispatchable(Protocol):
    """
    Anything a state fans messages out to: child machines and middleware
    dispatchers alike.

    Methods:
        dispatch(name, *args, **kwargs): Deliver a message.
        stop(): Tear the receiver down. Must be idempotent.

    Runtime Invariants:
    - dispatch() after stop() never runs a handler.
    """

    def dispatch(self, name: str, *args: Any, **kwargs: Any) -> None:
        """Deliver a named message with its arguments."""
        ...

    def stop(self) -> None:
        """Stop the receiver."""
        ...
