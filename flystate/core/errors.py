# flystate/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details


class FlystateError(Exception):
    """
    Base exception class for errors raised by the state machine runtime.
    """


class NotStartedError(FlystateError):
    """
    Raised when a machine is dispatched to or transitioned before its first start().
    """


class StoppedError(FlystateError):
    """
    Raised when a machine is dispatched to or transitioned after stop() and
    before the next start().
    """


class InternalInvariantError(FlystateError):
    """
    Raised when the runtime finds its own bookkeeping in an impossible state,
    e.g. a running machine without a current state. Signals an engine bug
    rather than caller misuse.
    """


class ValidationError(FlystateError):
    """
    Raised when a machine or state definition is malformed at construction time.
    """


class TransitionError(FlystateError):
    """
    Raised when a transition targets a state that is unknown to the machine or
    was not declared by the state requesting it.
    """
