"""Artifact lifecycle state machine.

The graph comes from the catalog's seeded transitions; terminal states are
those without outgoing edges. Validation and the state write happen in one
call so a rejected move never touches the stored artifact.
"""

from __future__ import annotations

import logging
from typing import List, Set, Union

from artiforge_common.outcome import Outcome
from artiforge_common.transitions import TransitionValidator
from artiforge_workflow.catalog import TypeCatalog
from artiforge_workflow.exceptions import ArtifactNotFoundError
from artiforge_workflow.models import Artifact, ArtifactState, LoadedArtifact
from artiforge_workflow.repositories.base import ArtifactRepository

logger = logging.getLogger(__name__)


class ArtifactStateMachine:
    """Validates and applies artifact state changes.

    Args:
        catalog: Initialized type catalog providing states and edges
        artifact_repository: Repository the new state is written to
    """

    def __init__(self, catalog: TypeCatalog, artifact_repository: ArtifactRepository):
        self.catalog = catalog
        self.artifacts = artifact_repository
        self._validator: TransitionValidator | None = None

    @property
    def validator(self) -> TransitionValidator:
        if self._validator is None:
            self._validator = TransitionValidator.from_edges(
                "artifact_state",
                [(t.from_state_id, t.to_state_id) for t in self.catalog.transitions],
                states=[s.id for s in self.catalog.states],
                labels={s.id: s.name for s in self.catalog.states},
            )
        return self._validator

    def check(self, current_state_id: int, target_state_id: int) -> Outcome[int]:
        """Check a move without raising."""
        return self.validator.check(current_state_id, target_state_id)

    def validate(self, current_state_id: int, target_state_id: int) -> None:
        """Raise :class:`InvalidTransitionError` if the move is not an edge."""
        self.check(current_state_id, target_state_id).unwrap()

    def available_transitions(self, state_id: int) -> List[ArtifactState]:
        """States reachable in one step from ``state_id``."""
        targets = self.validator.targets(state_id)
        return [state for state in self.catalog.states if state.id in targets]

    @property
    def terminal_states(self) -> Set[int]:
        return {int(s) for s in self.validator.terminal_states}

    async def transition(self, artifact: LoadedArtifact, target_state_id: int) -> Artifact:
        """Move ``artifact`` to ``target_state_id``.

        Raises:
            InvalidTransitionError: If no edge leads from the current state to
                the target; nothing is written in that case.
            ArtifactNotFoundError: If the artifact vanished before the write.
        """
        current = artifact.artifact.state_id
        self.validate(current, target_state_id)
        updated = await self.artifacts.update_artifact_state_with_id(artifact.id, target_state_id)
        if updated is None:
            raise ArtifactNotFoundError(artifact.id)
        logger.info(
            "Artifact %s moved from %s to %s",
            artifact.id, self.validator.label(current), self.validator.label(target_state_id),
        )
        return updated

    async def force(self, artifact_id: int, state: Union[str, int]) -> Artifact:
        """Write ``state`` (name or id) without consulting the graph.

        Used when an AI update reactivates an artifact regardless of its
        current state.
        """
        state_id = state if isinstance(state, int) else self.catalog.get_artifact_state_id_by_name(state)
        updated = await self.artifacts.update_artifact_state_with_id(artifact_id, state_id)
        if updated is None:
            raise ArtifactNotFoundError(artifact_id)
        logger.warning(
            "Artifact %s state reset to %s", artifact_id, self.validator.label(state_id)
        )
        return updated
