from enum import Enum, auto


class MachineStatus(Enum):
    """Defines the lifecycle of a machine as seen by its callers.

    Used to decide whether dispatch and transitions are allowed.
    """

    NEVER_STARTED = auto()  # Constructed, start() not called yet
    RUNNING = auto()  # Between start() and stop()
    STOPPED = auto()  # Stopped; start() re-enters the initial state
