"""
Core package providing the state machine runtime.

Architecture:
- Machine orchestrates one StateDispatcher at a time
- StateDispatcher fans messages out to children, middleware, then handlers
- Flyweight nodes carry start/stop listeners across state incarnations
- Builders compose state factories and validate transition targets
"""

# Import order matters to avoid circular dependencies
from .errors import (
    FlystateError,
    InternalInvariantError,
    NotStartedError,
    StoppedError,
    TransitionError,
    ValidationError,
)
from .props import merge_props, update_props
from .events import EventEmitter, MachineFlyweight, StateFlyweight
from .dispatcher import Lifecycle, StateDispatcher
from .builders import MessageBuilder, StateBuilder, StateFactory, TransitionBuilder, transition
from .machine_status import MachineStatus
from .machine import Machine, MachineConfig, ParentHandle, machine

__all__ = [
    # Errors
    "FlystateError",
    "InternalInvariantError",
    "NotStartedError",
    "StoppedError",
    "TransitionError",
    "ValidationError",
    # Props
    "merge_props",
    "update_props",
    # Events
    "EventEmitter",
    "MachineFlyweight",
    "StateFlyweight",
    # States
    "Lifecycle",
    "StateDispatcher",
    "MessageBuilder",
    "StateBuilder",
    "StateFactory",
    "TransitionBuilder",
    "transition",
    # Machines
    "Machine",
    "MachineConfig",
    "MachineStatus",
    "ParentHandle",
    "machine",
]
