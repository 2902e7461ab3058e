"""flystate: hierarchical finite state machines with flyweight events

One active state per machine level, synchronous message dispatch, nested
child machines, middleware interceptors, and start/stop subscriptions that
outlive the state instances they describe.

Example:
    Foo = transition("Bar").build(lambda state: state.build(
        messages=lambda msg: msg.build(next=lambda: msg.goto("Bar"))
    ))
    Bar = transition("Foo").build(lambda state: state.build(
        messages=lambda msg: msg.build(next=lambda: msg.goto("Foo"))
    ))
    m = machine(initial="Foo", states={"Foo": Foo, "Bar": Bar})
    m.start()
    m.dispatch("next")  # now in "Bar"

Cross-cutting Concerns:
    Threading:
        - Single-threaded and synchronous; nothing is queued or scheduled

    Error Handling:
        - Structured error hierarchy rooted at FlystateError
        - Errors propagate to the caller of the triggering method

    Logging:
        - Module loggers under the "flystate" namespace
        - No handlers are configured by the library
"""

from flystate.core import (
    EventEmitter,
    FlystateError,
    InternalInvariantError,
    Lifecycle,
    Machine,
    MachineConfig,
    MachineFlyweight,
    MachineStatus,
    MessageBuilder,
    NotStartedError,
    ParentHandle,
    StateBuilder,
    StateDispatcher,
    StateFactory,
    StateFlyweight,
    StoppedError,
    TransitionBuilder,
    TransitionError,
    ValidationError,
    machine,
    merge_props,
    transition,
    update_props,
)
from flystate.runtime import FollowHandler

__version__ = "0.1.0"

__all__ = [
    "EventEmitter",
    "FlystateError",
    "FollowHandler",
    "InternalInvariantError",
    "Lifecycle",
    "Machine",
    "MachineConfig",
    "MachineFlyweight",
    "MachineStatus",
    "MessageBuilder",
    "NotStartedError",
    "ParentHandle",
    "StateBuilder",
    "StateDispatcher",
    "StateFactory",
    "StateFlyweight",
    "StoppedError",
    "TransitionBuilder",
    "TransitionError",
    "ValidationError",
    "machine",
    "merge_props",
    "transition",
    "update_props",
]
