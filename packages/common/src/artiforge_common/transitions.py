"""Stateless transition validation for data-driven state graphs.

The graph is supplied by the caller (typically loaded from reference data),
so the validator never hard-codes which states exist or which are terminal.
A state is terminal when it has no outgoing edges.

Example:
    ```python
    from artiforge_common.transitions import TransitionValidator

    ARTIFACT_STATE = TransitionValidator(
        "artifact_state",
        {
            1: {2},      # To Do -> In Progress
            2: {3},      # In Progress -> Approved
            3: {2},      # Approved -> In Progress
        },
        labels={1: "To Do", 2: "In Progress", 3: "Approved"},
    )

    ARTIFACT_STATE.validate(1, 2)       # ok
    ARTIFACT_STATE.validate(1, 3)       # raises InvalidTransitionError
    ARTIFACT_STATE.check(1, 3).ok       # False, nothing raised
    ```
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable, Mapping

from artiforge_common.exceptions import OperationError
from artiforge_common.outcome import Outcome

logger = logging.getLogger(__name__)


class InvalidTransitionError(OperationError):
    """Raised when a state transition is not allowed.

    Attributes:
        entity: Name of the transition graph (e.g. ``"artifact_state"``).
        current_state: The state being transitioned from.
        target_state: The rejected target state.
        allowed: States that are valid targets from ``current_state``, or
            ``None`` if the current state itself is unknown.
    """

    client_error = True

    def __init__(
        self,
        entity: str,
        current_state: Hashable,
        target_state: Hashable,
        allowed: set[Hashable] | None = None,
        labels: Mapping[Hashable, str] | None = None,
    ) -> None:
        self.entity = entity
        self.current_state = current_state
        self.target_state = target_state
        self.allowed = allowed

        def label(state: Hashable) -> str:
            return labels.get(state, str(state)) if labels else str(state)

        if allowed is not None:
            allowed_str = (
                ", ".join(sorted(label(s) for s in allowed)) if allowed else "(none, terminal)"
            )
            message = (
                f"{entity}: cannot transition from '{label(current_state)}' "
                f"to '{label(target_state)}'. Allowed targets: {allowed_str}"
            )
        else:
            message = f"{entity}: unknown current state '{label(current_state)}'"

        super().__init__(
            message,
            context={
                "entity": entity,
                "current_state": current_state,
                "target_state": target_state,
                "allowed": sorted(allowed, key=str) if allowed else [],
            },
        )


class TransitionValidator:
    """Stateless validator for a declarative transition graph.

    Args:
        name: Human-readable name used in error messages.
        transitions: Mapping from each state to the states it may move to.
            States that only appear as targets are terminal.
        labels: Optional display names for states (used in messages).
    """

    def __init__(
        self,
        name: str,
        transitions: Mapping[Hashable, Iterable[Hashable]],
        labels: Mapping[Hashable, str] | None = None,
    ) -> None:
        self._name = name
        self._transitions = {k: set(v) for k, v in transitions.items()}
        self._labels = dict(labels or {})

    @classmethod
    def from_edges(
        cls,
        name: str,
        edges: Iterable[tuple[Hashable, Hashable]],
        states: Iterable[Hashable] = (),
        labels: Mapping[Hashable, str] | None = None,
    ) -> TransitionValidator:
        """Build a validator from ``(from_state, to_state)`` pairs.

        Args:
            name: Graph name.
            edges: Directed edges.
            states: Additional known states (those without outgoing edges).
            labels: Optional display names.
        """
        graph: dict[Hashable, set[Hashable]] = {state: set() for state in states}
        for source, target in edges:
            graph.setdefault(source, set()).add(target)
            graph.setdefault(target, set())
        return cls(name, graph, labels=labels)

    @property
    def name(self) -> str:
        """The name of this transition graph."""
        return self._name

    @property
    def states(self) -> set[Hashable]:
        """Return all known states (sources and targets)."""
        all_states: set[Hashable] = set(self._transitions.keys())
        for targets in self._transitions.values():
            all_states.update(targets)
        return all_states

    @property
    def terminal_states(self) -> set[Hashable]:
        """States with no outgoing edges."""
        return {s for s in self.states if not self._transitions.get(s)}

    def targets(self, state: Hashable) -> set[Hashable]:
        """Return the states reachable in one step from ``state``."""
        return set(self._transitions.get(state, set()))

    def label(self, state: Hashable) -> str:
        """Return the display name of ``state``."""
        return self._labels.get(state, str(state))

    def check(self, current_state: Hashable | None, target_state: Hashable) -> Outcome[Hashable]:
        """Check a proposed transition without raising.

        Args:
            current_state: The current state. ``None`` skips the check.
            target_state: The desired target state.

        Returns:
            Successful outcome carrying ``target_state``, or a failed
            outcome carrying an :class:`InvalidTransitionError`.
        """
        if current_state is None:
            return Outcome.success(target_state)

        allowed = self._transitions.get(current_state)
        if allowed is None or target_state not in allowed:
            return Outcome.failure(InvalidTransitionError(
                entity=self._name,
                current_state=current_state,
                target_state=target_state,
                allowed=None if allowed is None else set(allowed),
                labels=self._labels,
            ))
        return Outcome.success(target_state)

    def validate(self, current_state: Hashable | None, target_state: Hashable) -> None:
        """Validate a proposed transition.

        Raises:
            InvalidTransitionError: If the transition is not allowed.
        """
        self.check(current_state, target_state).unwrap()

    def __repr__(self) -> str:
        return f"TransitionValidator({self._name!r}, {len(self.states)} states)"
