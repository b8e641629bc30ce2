"""Small transition-table state machine shared by courses, assignments and submissions.

A machine is a closed set of states plus a table of allowed ``(source, target)``
pairs. Each transition may carry a guard (raises a ``DomainError`` to refuse)
and an effect (mutates the instance and, for cascades, related rows). Anything
not listed in the table is refused, including ``current == target`` unless the
self-transition is listed explicitly.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable

from django.utils import timezone

from LearningManagementApp.core.errors import InvalidStateTransition

Hook = Callable[[Any, datetime], None]


@dataclass(frozen=True)
class Transition:
    source: str
    target: str
    guard: Hook | None = None
    effect: Hook | None = None


class StateMachine:
    def __init__(self, name: str, states: Iterable[str], transitions: Iterable[Transition], field: str = "status"):
        self.name = name
        self.field = field
        self.states = frozenset(states)
        self._table: dict[tuple[str, str], Transition] = {}
        for transition in transitions:
            if transition.source not in self.states or transition.target not in self.states:
                raise ValueError(f"{name}: unknown state in {transition.source} -> {transition.target}")
            self._table[(transition.source, transition.target)] = transition

    def allowed_targets(self, source: str) -> list[str]:
        return sorted(target for (src, target) in self._table if src == source)

    def can(self, source: str, target: str) -> bool:
        return (source, target) in self._table

    def apply(self, instance: Any, target: str, now: datetime | None = None) -> Transition:
        """Move ``instance`` to ``target`` running guard then effect; the caller saves.

        Raises:
            InvalidStateTransition: If the pair is not in the table.
            DomainError: Whatever the guard raises.
        """
        current = getattr(instance, self.field)
        transition = self._table.get((current, target))
        if transition is None:
            if current == target:
                detail = f"{self.name} is already {current}."
            else:
                detail = f"Cannot change {self.name} status from {current} to {target}."
            raise InvalidStateTransition(detail)
        now = now or timezone.now()
        if transition.guard is not None:
            transition.guard(instance, now)
        setattr(instance, self.field, target)
        if transition.effect is not None:
            transition.effect(instance, now)
        return transition
