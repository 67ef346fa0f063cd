"""Repository interfaces and the in-memory implementation."""

from artiforge_workflow.repositories.base import (
    ArtifactRef,
    ArtifactRepository,
    ProjectRepository,
    ReferenceRepository,
    Repositories,
)
from artiforge_workflow.repositories.memory import (
    InMemoryArtifactRepository,
    InMemoryProjectRepository,
    InMemoryReferenceRepository,
    InMemoryStore,
    create_memory_repositories,
)

__all__ = [
    "ArtifactRef",
    "ArtifactRepository",
    "InMemoryArtifactRepository",
    "InMemoryProjectRepository",
    "InMemoryReferenceRepository",
    "InMemoryStore",
    "ProjectRepository",
    "ReferenceRepository",
    "Repositories",
    "create_memory_repositories",
]
