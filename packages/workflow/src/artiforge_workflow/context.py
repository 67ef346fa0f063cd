"""Dependency-aware context assembly for artifact generation.

The software-engineering pipeline is a fixed progression of checkpoint
types::

    Vision -> Functional Requirements -> Non-Functional Requirements
           -> Use Cases -> C4 Context -> C4 Container -> C4 Component

An artifact whose type has reached a checkpoint needs the content of the
checkpoint's predecessor before it can be generated or updated. The
predecessor is the earliest artifact of that type created before the
artifact in the same project. Assembly is all-or-nothing: the first
missing predecessor fails the whole bundle.

The result is a :class:`ContextBundle` tagged with the :class:`ContextTier`
that was reached. A bundle refuses construction when a field its tier
requires is missing, so a template never sees a half-filled context.

Example:
    ```python
    assembler = ContextAssembler(repositories.artifacts, catalog)

    outcome = await assembler.assemble(artifact, is_update=False)
    if not outcome.ok:
        print(outcome.error)    # Vision document missing; ...

    bundle = await assembler.get_context(artifact, True, "Add offline mode")
    bundle.to_dict()["vision"]
    ```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List

from artiforge_common.outcome import Outcome
from artiforge_workflow import seed
from artiforge_workflow.catalog import TypeCatalog
from artiforge_workflow.exceptions import MissingDependencyError
from artiforge_workflow.models import LoadedArtifact
from artiforge_workflow.repositories.base import ArtifactRepository

logger = logging.getLogger(__name__)


class ContextTier(IntEnum):
    """Highest checkpoint whose predecessor content a bundle carries."""
    BASE = 0
    VISION = 1
    FUNCTIONAL_REQUIREMENTS = 2
    NON_FUNCTIONAL_REQUIREMENTS = 3
    USE_CASES = 4
    C4_CONTEXT = 5
    C4_CONTAINER = 6


@dataclass(frozen=True)
class ArtifactSummary:
    """Identifiers of the artifact a bundle is built for.

    ``name`` and ``content`` are only set for updates.
    """
    artifact_id: int | None
    artifact_type_id: int
    artifact_type_name: str
    artifact_phase: str
    name: str | None = None
    content: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "artifact_id": self.artifact_id,
            "artifact_type_id": self.artifact_type_id,
            "artifact_type_name": self.artifact_type_name,
            "artifact_phase": self.artifact_phase,
        }
        if self.name is not None or self.content is not None:
            data["name"] = self.name
            data["content"] = self.content
        return data


@dataclass(frozen=True)
class _Checkpoint:
    tier: ContextTier
    gate: str
    source: str
    field_name: str
    message: str
    multiple: bool = False


CHECKPOINTS: List[_Checkpoint] = [
    _Checkpoint(
        ContextTier.VISION, seed.FUNCTIONAL_REQUIREMENTS, seed.VISION, "vision",
        "Vision document missing; a vision is requirement for context",
    ),
    _Checkpoint(
        ContextTier.FUNCTIONAL_REQUIREMENTS, seed.NON_FUNCTIONAL_REQUIREMENTS,
        seed.FUNCTIONAL_REQUIREMENTS, "functional_requirements",
        "Functional requirements missing; functional requirements are required context",
    ),
    _Checkpoint(
        ContextTier.NON_FUNCTIONAL_REQUIREMENTS, seed.USE_CASES,
        seed.NON_FUNCTIONAL_REQUIREMENTS, "non_functional_requirements",
        "Non-Functional requirements missing; non-functional requirements are required context",
    ),
    _Checkpoint(
        ContextTier.USE_CASES, seed.C4_CONTEXT, seed.USE_CASES, "use_cases",
        "Use Cases missing; Use cases are required context", multiple=True,
    ),
    _Checkpoint(
        ContextTier.C4_CONTEXT, seed.C4_CONTAINER, seed.C4_CONTEXT, "c4_context",
        "C4 Context missing; C4 Context is required context",
    ),
    _Checkpoint(
        ContextTier.C4_CONTAINER, seed.C4_COMPONENT, seed.C4_CONTAINER, "c4_container",
        "C4 Container missing; C4 Container is required context",
    ),
]

# Repeatable types see their earlier siblings under these fields.
SIBLING_FIELDS: Dict[str, str] = {
    seed.USE_CASES: "use_cases",
    seed.C4_COMPONENT: "c4_components",
}

_REQUIRED_FIELDS: Dict[ContextTier, str] = {c.tier: c.field_name for c in CHECKPOINTS}


@dataclass(frozen=True)
class ContextBundle:
    """Prompt context for one generation call.

    Base fields are always present. Predecessor fields are filled up to
    ``tier``; constructing a bundle whose tier demands a field that is
    ``None`` raises ``ValueError``.
    """
    project_name: str
    artifact: ArtifactSummary
    is_update: bool
    user_message: str | None = None
    tier: ContextTier = ContextTier.BASE
    vision: str | None = None
    functional_requirements: str | None = None
    non_functional_requirements: str | None = None
    use_cases: List[str] | None = None
    c4_context: str | None = None
    c4_container: str | None = None
    c4_components: List[str] | None = None

    def __post_init__(self) -> None:
        for tier, name in _REQUIRED_FIELDS.items():
            if tier <= self.tier and getattr(self, name) is None:
                raise ValueError(f"Context tier {self.tier.name} requires '{name}'")

    @property
    def predecessors(self) -> Dict[str, Any]:
        """Predecessor and sibling fields that are set."""
        names = list(_REQUIRED_FIELDS.values()) + ["c4_components"]
        return {name: getattr(self, name) for name in names if getattr(self, name) is not None}

    def to_dict(self) -> Dict[str, Any]:
        """Mapping handed to the prompt templates."""
        data: Dict[str, Any] = {
            "project": {"name": self.project_name},
            "artifact": self.artifact.to_dict(),
            "is_update": self.is_update,
            "user_message": self.user_message,
        }
        data.update(self.predecessors)
        return data


class ContextAssembler:
    """Builds :class:`ContextBundle` objects from stored predecessors.

    Args:
        artifact_repository: Source of predecessor artifacts
        catalog: Initialized type catalog, used for pipeline ranks
    """

    def __init__(self, artifact_repository: ArtifactRepository, catalog: TypeCatalog):
        self.artifacts = artifact_repository
        self.catalog = catalog

    def _rank(self, type_name: str) -> int:
        return self.catalog.get_artifact_type_by_name(type_name).id

    async def assemble(
        self,
        artifact: LoadedArtifact,
        is_update: bool,
        user_message: str | None = None,
    ) -> Outcome[ContextBundle]:
        """Build the context for ``artifact``.

        Returns:
            The bundle, or a failed outcome carrying
            :class:`MissingDependencyError` for the first absent predecessor.
        """
        try:
            return Outcome.success(await self._build(artifact, is_update, user_message))
        except MissingDependencyError as e:
            logger.info("Context for artifact %s incomplete: %s", artifact.id, e)
            return Outcome.failure(e)

    async def get_context(
        self,
        artifact: LoadedArtifact,
        is_update: bool,
        user_message: str | None = None,
    ) -> ContextBundle:
        """Build the context for ``artifact``.

        Raises:
            MissingDependencyError: If a mandatory predecessor is absent or empty.
        """
        return (await self.assemble(artifact, is_update, user_message)).unwrap()

    async def _build(
        self, artifact: LoadedArtifact, is_update: bool, user_message: str | None
    ) -> ContextBundle:
        artifact_type = artifact.artifact_type
        rank = artifact_type.id
        summary = ArtifactSummary(
            artifact_id=artifact.id,
            artifact_type_id=artifact_type.id,
            artifact_type_name=artifact_type.name,
            artifact_phase=artifact.phase.name,
            name=artifact.name if is_update else None,
            content=(artifact.content or "") if is_update else None,
        )

        fields: Dict[str, Any] = {}
        tier = ContextTier.BASE
        for checkpoint in CHECKPOINTS:
            if rank < self._rank(checkpoint.gate):
                break
            fields[checkpoint.field_name] = await self._predecessor(artifact, checkpoint)
            tier = checkpoint.tier

        sibling_field = SIBLING_FIELDS.get(artifact_type.name)
        if sibling_field and sibling_field not in fields:
            siblings = await self.artifacts.get_artifacts_by_type(artifact, artifact_type.name)
            fields[sibling_field] = [s.content for s in siblings if s.has_content]

        logger.debug("Context for artifact %s reached tier %s", artifact.id, tier.name)
        project_name = artifact.project.name if artifact.project else "Unknown Project"
        return ContextBundle(
            project_name=project_name,
            artifact=summary,
            is_update=is_update,
            user_message=user_message or None,
            tier=tier,
            **fields,
        )

    async def _predecessor(self, artifact: LoadedArtifact, checkpoint: _Checkpoint) -> Any:
        found = await self.artifacts.get_artifacts_by_type(artifact, checkpoint.source)
        if checkpoint.multiple:
            if not found:
                raise MissingDependencyError(checkpoint.source, checkpoint.message)
            contents = [item.content for item in found if item.has_content]
            if not contents:
                raise MissingDependencyError(
                    checkpoint.source,
                    "No Use Cases with content found; Use cases are required context",
                )
            return contents
        if not found or not found[0].has_content:
            raise MissingDependencyError(checkpoint.source, checkpoint.message)
        return found[0].content

