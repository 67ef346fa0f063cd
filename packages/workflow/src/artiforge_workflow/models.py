"""Entities of the artifact workflow.

Reference data (phases, states, transitions, artifact types) is static and
seeded once. Projects, artifacts, versions and interactions are created by
the orchestrator through the repository interfaces.

All entities are plain dataclasses; repositories hand out copies, so
mutating a returned object never changes stored state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List

from artiforge_llm.base import ArtifactFormat


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LifecyclePhase:
    """Ordered named stage of a project (e.g. Requirements, Design)."""
    id: int
    name: str
    order: int


@dataclass(frozen=True)
class ArtifactState:
    """Named node in the artifact state graph."""
    id: int
    name: str


@dataclass(frozen=True)
class StateTransition:
    """Directed edge of the artifact state graph."""
    from_state_id: int
    to_state_id: int


@dataclass(frozen=True)
class ArtifactType:
    """Category of document with a fixed pipeline rank.

    Attributes:
        id: Type id; doubles as the pipeline rank
        name: Display name (e.g. ``Vision Document``)
        slug: Identifier used for tags and log file names
        syntax: Content syntax, ``markdown`` or ``mermaid``
        lifecycle_phase_id: Phase the type belongs to
        dependency_type_ids: Types that must exist before this one
        repeatable: Whether a project may hold several instances
    """
    id: int
    name: str
    slug: str
    syntax: str
    lifecycle_phase_id: int
    dependency_type_ids: tuple[int, ...] = ()
    repeatable: bool = False

    @property
    def artifact_format(self) -> ArtifactFormat:
        """Tag format used to extract this type's content from model output."""
        return ArtifactFormat.for_slug(self.slug, self.syntax)


@dataclass
class Project:
    """A user project owning zero or more artifacts."""
    id: int
    name: str
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class ArtifactVersion:
    """Immutable snapshot of an artifact's content."""
    id: int
    artifact_id: int
    version_number: int
    content: str
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class Artifact:
    """One document instance.

    ``current_version_id`` points at the latest version once one exists.
    """
    id: int
    project_id: int
    artifact_type_id: int
    name: str
    state_id: int
    current_version_id: int | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class ArtifactInteraction:
    """One turn of an artifact's generation dialogue."""
    id: int
    artifact_id: int
    role: str
    content: str
    sequence_number: int
    version_id: int | None = None
    created_at: datetime = field(default_factory=utc_now)

    def to_message(self) -> Dict[str, str]:
        """Convert to a ``{role, content}`` chat message."""
        return {"role": self.role, "content": self.content}


@dataclass
class LoadedArtifact:
    """An artifact with its type, phase, state, project and current version joined."""
    artifact: Artifact
    artifact_type: ArtifactType
    phase: LifecyclePhase
    state: ArtifactState
    project: Project | None = None
    current_version: ArtifactVersion | None = None

    @property
    def id(self) -> int:
        return self.artifact.id

    @property
    def name(self) -> str:
        return self.artifact.name

    @property
    def content(self) -> str | None:
        """Content of the current version, if any."""
        return self.current_version.content if self.current_version else None

    @property
    def has_content(self) -> bool:
        """Whether the current version holds non-blank content."""
        return bool(self.content and self.content.strip())


@dataclass(frozen=True)
class ReferenceData:
    """Static reference data loaded into the type catalog."""
    phases: List[LifecyclePhase]
    states: List[ArtifactState]
    transitions: List[StateTransition]
    artifact_types: List[ArtifactType]
