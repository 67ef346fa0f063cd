"""Process-wide lookup of reference data.

The catalog is populated once at startup from the reference repository and
is read-only afterwards. Changing phases, states or types requires a
process restart; there is no invalidation.

Example:
    ```python
    catalog = TypeCatalog()
    await catalog.initialize(repositories.reference)

    info = catalog.get_artifact_type_info("Use Cases")
    fmt = catalog.get_artifact_format(info.slug)      # [USE_CASES] ... [/USE_CASES]
    in_progress = catalog.get_artifact_state_id_by_name("In Progress")
    ```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List

from artiforge_common.exceptions import NotFoundError, OperationError
from artiforge_llm.base import ArtifactFormat
from artiforge_workflow.exceptions import InvalidArtifactTypeError
from artiforge_workflow.models import (
    ArtifactState,
    ArtifactType,
    LifecyclePhase,
    ReferenceData,
    StateTransition,
)
from artiforge_workflow.repositories.base import ReferenceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArtifactTypeInfo:
    """Identifier pair for an artifact type."""
    type_id: int
    slug: str


class TypeCatalog:
    """Read-mostly cache of phases, states, transitions and artifact types."""

    def __init__(self) -> None:
        self._phases: Dict[int, LifecyclePhase] = {}
        self._states: Dict[int, ArtifactState] = {}
        self._transitions: List[StateTransition] = []
        self._types: Dict[int, ArtifactType] = {}
        self._types_by_name: Dict[str, ArtifactType] = {}
        self._formats: Dict[str, ArtifactFormat] = {}
        self._initialized = False

    async def initialize(self, reference: ReferenceRepository) -> None:
        """Load reference data from the repository."""
        self.load(ReferenceData(
            phases=await reference.get_lifecycle_phases(),
            states=await reference.get_artifact_states(),
            transitions=await reference.get_state_transitions(),
            artifact_types=await reference.get_artifact_types(),
        ))

    def load(self, data: ReferenceData) -> None:
        """Replace the catalog contents with ``data``."""
        self._phases = {phase.id: phase for phase in data.phases}
        self._states = {state.id: state for state in data.states}
        self._transitions = list(data.transitions)
        self._types = {t.id: t for t in data.artifact_types}
        self._types_by_name = {t.name: t for t in data.artifact_types}
        self._formats = {t.slug: t.artifact_format for t in data.artifact_types}
        self._initialized = True
        logger.debug(
            "Type catalog loaded: %d phases, %d states, %d types",
            len(self._phases), len(self._states), len(self._types),
        )

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def _require(self) -> None:
        if not self._initialized:
            raise OperationError("Type catalog has not been initialized")

    @property
    def phases(self) -> List[LifecyclePhase]:
        """Lifecycle phases in pipeline order."""
        self._require()
        return sorted(self._phases.values(), key=lambda phase: phase.order)

    @property
    def states(self) -> List[ArtifactState]:
        self._require()
        return sorted(self._states.values(), key=lambda state: state.id)

    @property
    def transitions(self) -> List[StateTransition]:
        self._require()
        return list(self._transitions)

    @property
    def artifact_types(self) -> List[ArtifactType]:
        """Artifact types in rank order."""
        self._require()
        return sorted(self._types.values(), key=lambda t: t.id)

    def find_artifact_type(self, name: str) -> ArtifactType | None:
        """Return the type called ``name``, or ``None``."""
        self._require()
        return self._types_by_name.get(name)

    def get_artifact_type_by_name(self, name: str) -> ArtifactType:
        """Return the type called ``name``.

        Raises:
            InvalidArtifactTypeError: If no such type exists.
        """
        artifact_type = self.find_artifact_type(name)
        if artifact_type is None:
            raise InvalidArtifactTypeError(name)
        return artifact_type

    def get_artifact_type(self, type_id: int) -> ArtifactType:
        """Return the type with id ``type_id``.

        Raises:
            InvalidArtifactTypeError: If no such type exists.
        """
        self._require()
        artifact_type = self._types.get(type_id)
        if artifact_type is None:
            raise InvalidArtifactTypeError(str(type_id))
        return artifact_type

    def get_artifact_type_info(self, name: str) -> ArtifactTypeInfo:
        """Return the id and slug of the type called ``name``."""
        artifact_type = self.get_artifact_type_by_name(name)
        return ArtifactTypeInfo(type_id=artifact_type.id, slug=artifact_type.slug)

    def get_artifact_format(self, slug: str | None) -> ArtifactFormat:
        """Tag format for a type slug; unknown slugs get the generic format."""
        self._require()
        fmt = self._formats.get(slug) if slug else None
        return fmt or ArtifactFormat.for_slug(None)

    def dependencies(self, artifact_type: ArtifactType) -> List[ArtifactType]:
        """Types ``artifact_type`` directly depends on."""
        self._require()
        return [self._types[i] for i in artifact_type.dependency_type_ids if i in self._types]

    def get_artifact_state_id_by_name(self, name: str) -> int:
        """Return the id of the state called ``name``.

        Raises:
            NotFoundError: If no such state exists.
        """
        self._require()
        for state in self._states.values():
            if state.name == name:
                return state.id
        raise NotFoundError(f"Invalid state: {name}", context={"state": name})

    def get_artifact_state(self, state_id: int) -> ArtifactState:
        """Return the state with id ``state_id``.

        Raises:
            NotFoundError: If no such state exists.
        """
        self._require()
        state = self._states.get(state_id)
        if state is None:
            raise NotFoundError(f"Artifact state {state_id} not found", context={"state_id": state_id})
        return state

    def get_phase(self, phase_id: int) -> LifecyclePhase:
        """Return the phase with id ``phase_id``.

        Raises:
            NotFoundError: If no such phase exists.
        """
        self._require()
        phase = self._phases.get(phase_id)
        if phase is None:
            raise NotFoundError(f"Lifecycle phase {phase_id} not found", context={"phase_id": phase_id})
        return phase

    def types_in_phase(self, phase_id: int) -> List[ArtifactType]:
        """Artifact types of a phase in rank order."""
        return [t for t in self.artifact_types if t.lifecycle_phase_id == phase_id]

    def __repr__(self) -> str:
        return f"TypeCatalog(initialized={self._initialized}, types={len(self._types)})"
