# flystate/core/validations.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, List, Mapping, Set

from flystate.core.errors import ValidationError

if TYPE_CHECKING:
    from flystate.core.builders import StateFactory

logger = logging.getLogger(__name__)


class Validator:
    """
    Performs construction-time validation of a machine definition, standing in
    for the exhaustiveness a static type system would give over state names.
    """

    def __init__(self) -> None:
        self._rules = _DefaultValidationRules

    def validate_machine(self, initial: Any, states: Mapping[str, "StateFactory"]) -> None:
        """
        Check that the state map is usable and closed under transitions.

        :param initial: The initial state name.
        :param states: State name to factory.
        :raises ValidationError: Listing every problem found.
        """
        errors = self._rules.collect_errors(initial, states)
        if errors:
            raise ValidationError("Invalid machine definition:\n  " + "\n  ".join(errors))

        unreachable = set(states) - self._rules.reachable(initial, states)
        if unreachable:
            logger.warning(f"States {sorted(unreachable)} are not reachable from initial state '{initial}'")


class _DefaultValidationRules:
    """
    Built-in rules: a non-empty map of factories, a known initial state, and
    every declared transition target present in the map.
    """

    @staticmethod
    def collect_errors(initial: Any, states: Mapping[str, "StateFactory"]) -> List[str]:
        from flystate.core.builders import StateFactory

        if not isinstance(states, Mapping) or not states:
            return ["Machine must declare at least one state."]

        errors: List[str] = []
        if not isinstance(initial, str) or initial not in states:
            errors.append(f"Initial state {initial!r} is not in the state map.")

        for name, factory in states.items():
            if not isinstance(factory, StateFactory):
                errors.append(f"State '{name}' must be built with transition(...).build().")
                continue
            for target in sorted(factory.all_targets()):
                if target not in states:
                    errors.append(f"State '{name}' transitions to '{target}', which is not in the state map.")
        return errors

    @staticmethod
    def reachable(initial: str, states: Mapping[str, "StateFactory"]) -> Set[str]:
        seen: Set[str] = set()
        frontier = [initial]
        while frontier:
            name = frontier.pop()
            if name in seen:
                continue
            seen.add(name)
            frontier.extend(target for target in states[name].all_targets() if target not in seen)
        return seen
