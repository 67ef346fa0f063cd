"""In-memory implementation of the workflow repositories.

Simple dict-based storage suitable for:
- Testing without database dependencies
- Single-instance deployments and local development

All three repositories share one :class:`InMemoryStore`, whose
``asyncio.Lock`` serializes every mutation. Returned entities are copies.

Example:
    ```python
    repositories = create_memory_repositories()
    project = await repositories.projects.create("Todo App")
    ```
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Dict, List, Tuple

from artiforge_common.exceptions import NotFoundError, OperationError
from artiforge_workflow.exceptions import ArtifactNotFoundError, InvalidArtifactTypeError
from artiforge_workflow.models import (
    Artifact,
    ArtifactInteraction,
    ArtifactState,
    ArtifactType,
    ArtifactVersion,
    LifecyclePhase,
    LoadedArtifact,
    Project,
    ReferenceData,
    StateTransition,
    utc_now,
)
from artiforge_workflow.repositories.base import ArtifactRef, Repositories
from artiforge_workflow.seed import reference_data

logger = logging.getLogger(__name__)


class InMemoryStore:
    """Shared tables of the in-memory repositories."""

    def __init__(self, reference: ReferenceData | None = None) -> None:
        self.reference = reference or reference_data()
        self.projects: Dict[int, Project] = {}
        self.artifacts: Dict[int, Artifact] = {}
        self.versions: Dict[int, ArtifactVersion] = {}
        self.interactions: Dict[int, ArtifactInteraction] = {}
        self.lock = asyncio.Lock()
        self._sequences: Dict[str, int] = {}

    def next_id(self, table: str) -> int:
        self._sequences[table] = self._sequences.get(table, 0) + 1
        return self._sequences[table]

    def type_by_id(self, type_id: int) -> ArtifactType:
        for artifact_type in self.reference.artifact_types:
            if artifact_type.id == type_id:
                return artifact_type
        raise InvalidArtifactTypeError(str(type_id))

    def type_by_name(self, name: str) -> ArtifactType:
        for artifact_type in self.reference.artifact_types:
            if artifact_type.name == name:
                return artifact_type
        raise InvalidArtifactTypeError(name)

    def phase_by_id(self, phase_id: int) -> LifecyclePhase:
        for phase in self.reference.phases:
            if phase.id == phase_id:
                return phase
        raise NotFoundError(f"Lifecycle phase {phase_id} not found", context={"phase_id": phase_id})

    def state_by_id(self, state_id: int) -> ArtifactState:
        for state in self.reference.states:
            if state.id == state_id:
                return state
        raise NotFoundError(f"Artifact state {state_id} not found", context={"state_id": state_id})

    def load(self, artifact: Artifact) -> LoadedArtifact:
        """Join an artifact row with its relations (as copies)."""
        artifact_type = self.type_by_id(artifact.artifact_type_id)
        project = self.projects.get(artifact.project_id)
        version = self.versions.get(artifact.current_version_id) if artifact.current_version_id else None
        return LoadedArtifact(
            artifact=copy.copy(artifact),
            artifact_type=artifact_type,
            phase=self.phase_by_id(artifact_type.lifecycle_phase_id),
            state=self.state_by_id(artifact.state_id),
            project=copy.copy(project) if project else None,
            current_version=copy.copy(version) if version else None,
        )

    def append_version(self, artifact: Artifact, content: str) -> ArtifactVersion:
        numbers = [v.version_number for v in self.versions.values() if v.artifact_id == artifact.id]
        version = ArtifactVersion(
            id=self.next_id("version"),
            artifact_id=artifact.id,
            version_number=max(numbers, default=0) + 1,
            content=content,
        )
        self.versions[version.id] = version
        artifact.current_version_id = version.id
        artifact.updated_at = utc_now()
        return version

    def remove_artifact(self, artifact_id: int) -> None:
        self.artifacts.pop(artifact_id, None)
        for table in (self.versions, self.interactions):
            for key in [k for k, row in table.items() if row.artifact_id == artifact_id]:
                del table[key]


class InMemoryProjectRepository:
    """Project storage backed by an :class:`InMemoryStore`."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def create(self, name: str) -> Project:
        async with self._store.lock:
            project = Project(id=self._store.next_id("project"), name=name)
            self._store.projects[project.id] = project
            return copy.copy(project)

    async def find_by_id(self, project_id: int) -> Project | None:
        project = self._store.projects.get(project_id)
        return copy.copy(project) if project else None

    async def find_all(self) -> List[Project]:
        return [copy.copy(p) for _, p in sorted(self._store.projects.items())]

    async def update(self, project_id: int, name: str) -> Project | None:
        async with self._store.lock:
            project = self._store.projects.get(project_id)
            if project is None:
                return None
            project.name = name
            project.updated_at = utc_now()
            return copy.copy(project)

    async def delete(self, project_id: int) -> bool:
        async with self._store.lock:
            if self._store.projects.pop(project_id, None) is None:
                return False
            owned = [a.id for a in self._store.artifacts.values() if a.project_id == project_id]
            for artifact_id in owned:
                self._store.remove_artifact(artifact_id)
            logger.debug("Deleted project %s with %d artifacts", project_id, len(owned))
            return True


class InMemoryArtifactRepository:
    """Artifact, version and interaction storage backed by an :class:`InMemoryStore`."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def create(
        self,
        project_id: int,
        artifact_type_id: int,
        name: str,
        state_id: int,
        content: str | None = None,
    ) -> Artifact:
        async with self._store.lock:
            self._store.type_by_id(artifact_type_id)
            artifact = Artifact(
                id=self._store.next_id("artifact"),
                project_id=project_id,
                artifact_type_id=artifact_type_id,
                name=name,
                state_id=state_id,
            )
            self._store.artifacts[artifact.id] = artifact
            if content:
                self._store.append_version(artifact, content)
            return copy.copy(artifact)

    async def find_by_id(self, artifact_id: int) -> LoadedArtifact | None:
        artifact = self._store.artifacts.get(artifact_id)
        return self._store.load(artifact) if artifact else None

    async def update(
        self, artifact_id: int, name: str | None = None, content: str | None = None
    ) -> LoadedArtifact | None:
        async with self._store.lock:
            artifact = self._store.artifacts.get(artifact_id)
            if artifact is None:
                return None
            if name is not None and name != artifact.name:
                artifact.name = name
                artifact.updated_at = utc_now()
            if content is not None:
                current = self._store.versions.get(artifact.current_version_id)
                if current is None or current.content != content:
                    self._store.append_version(artifact, content)
            return self._store.load(artifact)

    async def delete(self, artifact_id: int) -> bool:
        async with self._store.lock:
            if artifact_id not in self._store.artifacts:
                return False
            self._store.remove_artifact(artifact_id)
            return True

    async def get_artifacts_by_type(self, artifact: ArtifactRef, type_name: str) -> List[LoadedArtifact]:
        type_id = self._store.type_by_name(type_name).id
        project_id = artifact.artifact.project_id if isinstance(artifact, LoadedArtifact) else artifact.project_id
        return [
            self._store.load(candidate)
            for _, candidate in sorted(self._store.artifacts.items())
            if candidate.project_id == project_id
            and candidate.artifact_type_id == type_id
            and candidate.id < artifact.id
        ]

    async def get_artifacts_by_project_id_and_phase(
        self, project_id: int, phase_name: str
    ) -> List[LoadedArtifact]:
        loaded = [
            self._store.load(a)
            for _, a in sorted(self._store.artifacts.items())
            if a.project_id == project_id
        ]
        return [item for item in loaded if item.phase.name == phase_name]

    async def create_artifact_version(self, artifact_id: int, content: str) -> ArtifactVersion:
        async with self._store.lock:
            artifact = self._store.artifacts.get(artifact_id)
            if artifact is None:
                raise ArtifactNotFoundError(artifact_id)
            return copy.copy(self._store.append_version(artifact, content))

    async def get_last_interactions(
        self, artifact_id: int, limit: int = 3
    ) -> Tuple[List[ArtifactInteraction], int]:
        if artifact_id not in self._store.artifacts:
            raise ArtifactNotFoundError(artifact_id)
        rows = sorted(
            (i for i in self._store.interactions.values() if i.artifact_id == artifact_id),
            key=lambda i: i.sequence_number,
            reverse=True,
        )
        next_sequence = rows[0].sequence_number + 1 if rows else 1
        return [copy.copy(i) for i in rows[:limit * 2]], next_sequence

    async def create_interaction(
        self,
        artifact_id: int,
        role: str,
        content: str,
        sequence_number: int,
        version_id: int | None = None,
    ) -> ArtifactInteraction:
        async with self._store.lock:
            if artifact_id not in self._store.artifacts:
                raise ArtifactNotFoundError(artifact_id)
            for existing in self._store.interactions.values():
                if existing.artifact_id == artifact_id and existing.sequence_number == sequence_number:
                    raise OperationError(
                        f"Interaction {sequence_number} already exists for artifact {artifact_id}",
                        context={"artifact_id": artifact_id, "sequence_number": sequence_number},
                    )
            interaction = ArtifactInteraction(
                id=self._store.next_id("interaction"),
                artifact_id=artifact_id,
                role=role,
                content=content,
                sequence_number=sequence_number,
                version_id=version_id,
            )
            self._store.interactions[interaction.id] = interaction
            return copy.copy(interaction)

    async def get_available_transitions(self, artifact: ArtifactRef) -> List[ArtifactState]:
        state_id = artifact.artifact.state_id if isinstance(artifact, LoadedArtifact) else artifact.state_id
        targets = {t.to_state_id for t in self._store.reference.transitions if t.from_state_id == state_id}
        return [s for s in self._store.reference.states if s.id in targets]

    async def update_artifact_state_with_id(self, artifact_id: int, state_id: int) -> Artifact | None:
        async with self._store.lock:
            artifact = self._store.artifacts.get(artifact_id)
            if artifact is None:
                return None
            artifact.state_id = state_id
            artifact.updated_at = utc_now()
            return copy.copy(artifact)


class InMemoryReferenceRepository:
    """Reference data served from an :class:`InMemoryStore`."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def get_lifecycle_phases(self) -> List[LifecyclePhase]:
        return list(self._store.reference.phases)

    async def get_artifact_states(self) -> List[ArtifactState]:
        return list(self._store.reference.states)

    async def get_state_transitions(self) -> List[StateTransition]:
        return list(self._store.reference.transitions)

    async def get_artifact_types(self) -> List[ArtifactType]:
        return list(self._store.reference.artifact_types)


def create_memory_repositories(reference: ReferenceData | None = None) -> Repositories:
    """Build the three repositories over one fresh in-memory store."""
    store = InMemoryStore(reference)
    return Repositories(
        projects=InMemoryProjectRepository(store),
        artifacts=InMemoryArtifactRepository(store),
        reference=InMemoryReferenceRepository(store),
    )
