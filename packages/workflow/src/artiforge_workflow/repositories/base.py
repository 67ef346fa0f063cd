"""Repository protocols for workflow persistence.

The orchestrator only talks to storage through these interfaces; the
storage engine behind them is out of scope. An in-memory implementation
lives in :mod:`artiforge_workflow.repositories.memory`.

All methods are async so that database-backed implementations can await
I/O without changing callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol, Tuple, Union, runtime_checkable

from artiforge_workflow.models import (
    Artifact,
    ArtifactInteraction,
    ArtifactState,
    ArtifactType,
    ArtifactVersion,
    LifecyclePhase,
    LoadedArtifact,
    Project,
    StateTransition,
)

ArtifactRef = Union[Artifact, LoadedArtifact]


@runtime_checkable
class ProjectRepository(Protocol):
    """Storage of projects."""

    async def create(self, name: str) -> Project:
        """Insert a project."""
        ...

    async def find_by_id(self, project_id: int) -> Project | None:
        """Return the project, or ``None`` if absent."""
        ...

    async def find_all(self) -> List[Project]:
        """Return all projects ordered by id."""
        ...

    async def update(self, project_id: int, name: str) -> Project | None:
        """Rename a project, returning ``None`` if absent."""
        ...

    async def delete(self, project_id: int) -> bool:
        """Delete a project and its artifacts."""
        ...


@runtime_checkable
class ArtifactRepository(Protocol):
    """Storage of artifacts, their versions and their interaction log."""

    async def create(
        self,
        project_id: int,
        artifact_type_id: int,
        name: str,
        state_id: int,
        content: str | None = None,
    ) -> Artifact:
        """Insert an artifact; version 1 is created when ``content`` is given."""
        ...

    async def find_by_id(self, artifact_id: int) -> LoadedArtifact | None:
        """Return the artifact with type, phase, state, project and version joined."""
        ...

    async def update(
        self, artifact_id: int, name: str | None = None, content: str | None = None
    ) -> LoadedArtifact | None:
        """Rename and/or append a version when ``content`` differs from the current one."""
        ...

    async def delete(self, artifact_id: int) -> bool:
        """Delete an artifact with its versions and interactions."""
        ...

    async def get_artifacts_by_type(self, artifact: ArtifactRef, type_name: str) -> List[LoadedArtifact]:
        """Artifacts of ``type_name`` in the same project created before ``artifact``.

        Ordered earliest first.
        """
        ...

    async def get_artifacts_by_project_id_and_phase(
        self, project_id: int, phase_name: str
    ) -> List[LoadedArtifact]:
        """Artifacts of a project whose type belongs to ``phase_name``, ordered by id."""
        ...

    async def create_artifact_version(self, artifact_id: int, content: str) -> ArtifactVersion:
        """Append the next version and make it current."""
        ...

    async def get_last_interactions(
        self, artifact_id: int, limit: int = 3
    ) -> Tuple[List[ArtifactInteraction], int]:
        """Return up to ``limit`` pairs (``limit * 2`` rows) newest first, plus the next sequence number."""
        ...

    async def create_interaction(
        self,
        artifact_id: int,
        role: str,
        content: str,
        sequence_number: int,
        version_id: int | None = None,
    ) -> ArtifactInteraction:
        """Append an interaction."""
        ...

    async def get_available_transitions(self, artifact: ArtifactRef) -> List[ArtifactState]:
        """States reachable in one step from the artifact's state."""
        ...

    async def update_artifact_state_with_id(self, artifact_id: int, state_id: int) -> Artifact | None:
        """Write a new state id, returning ``None`` if the artifact is absent."""
        ...


@runtime_checkable
class ReferenceRepository(Protocol):
    """Read access to seeded reference data."""

    async def get_lifecycle_phases(self) -> List[LifecyclePhase]:
        ...

    async def get_artifact_states(self) -> List[ArtifactState]:
        ...

    async def get_state_transitions(self) -> List[StateTransition]:
        ...

    async def get_artifact_types(self) -> List[ArtifactType]:
        ...


@dataclass
class Repositories:
    """The repositories a workflow is wired with."""
    projects: ProjectRepository
    artifacts: ArtifactRepository
    reference: ReferenceRepository
