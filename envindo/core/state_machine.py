"""Explicit transition tables for the back-office entities.

Every workflow entity (subscription, invoice, collection run, manifest) owns one
``TransitionTable``: the closed set of states plus the named transitions between
them. Services ask the table before touching a row, and the repository applies
the change as a compare-and-swap against the ``source`` state the table
returned, so a transition is both legal and race-free or it does not happen.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Tuple, Type

from envindo.core.exceptions import IllegalTransitionError


@dataclass(frozen=True)
class Transition:
    name: str
    sources: FrozenSet[str]
    target: str


@dataclass
class TransitionTable:
    entity: str
    states: Type[Enum]
    transitions: Dict[str, Transition] = field(default_factory=dict)

    def add(self, name: str, sources: Iterable[Enum], target: Enum) -> "TransitionTable":
        source_values = frozenset(self._value(s) for s in sources)
        target_value = self._value(target)
        self.transitions[name] = Transition(name=name, sources=source_values, target=target_value)
        return self

    def _value(self, state) -> str:
        # Accepts enum members or raw column values; unknown states are a programming error.
        return self.states(state).value

    @property
    def terminal_states(self) -> FrozenSet[str]:
        outgoing = set()
        for transition in self.transitions.values():
            outgoing |= transition.sources
        return frozenset(s.value for s in self.states) - outgoing

    def can(self, name: str, current: str) -> bool:
        transition = self.transitions.get(name)
        return transition is not None and current in transition.sources

    def check(self, name: str, current: str) -> Tuple[str, str]:
        """Returns ``(expected_current, target)`` or raises ``IllegalTransitionError``."""
        transition = self.transitions[name]
        if current not in transition.sources:
            raise IllegalTransitionError(self.entity, current, transition.target)
        return current, transition.target

    def transition_to(self, target: str) -> str:
        """Finds the transition name that leads into ``target``.

        Used by the admin ``status`` endpoints that take a target state rather
        than a command. States reachable through several transitions resolve to
        the first one registered.
        """
        target_value = self._value(target)
        for transition in self.transitions.values():
            if transition.target == target_value:
                return transition.name
        raise KeyError(target_value)
