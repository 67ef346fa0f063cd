"""Artifact generation and workflow engine.

Sequences the creation of pipeline artifacts (vision, requirements, use
cases, C4 diagrams), their AI-driven revisions, versions and lifecycle
states.

Example:
    ```python
    from artiforge_workflow import build_workflow

    async with build_workflow() as workflow:
        project = await workflow.orchestrator.create_project("Todo App")
    ```
"""

from artiforge_workflow.app import Workflow, build_workflow
from artiforge_workflow.assistant import AIAssistant, GenerationResult
from artiforge_workflow.catalog import ArtifactTypeInfo, TypeCatalog
from artiforge_workflow.config import WorkflowSettings, load_settings
from artiforge_workflow.context import ArtifactSummary, ContextAssembler, ContextBundle, ContextTier
from artiforge_workflow.exceptions import (
    ArtifactNotFoundError,
    DuplicateArtifactError,
    InvalidArtifactTypeError,
    MissingDependencyError,
    ProjectNotFoundError,
)
from artiforge_workflow.orchestrator import WorkflowOrchestrator
from artiforge_workflow.repositories import Repositories, create_memory_repositories
from artiforge_workflow.state_machine import ArtifactStateMachine
from artiforge_workflow.templates import ArtifactTemplateRenderer, TemplateInput

__version__ = "0.1.0"

__all__ = [
    "AIAssistant",
    "ArtifactNotFoundError",
    "ArtifactStateMachine",
    "ArtifactSummary",
    "ArtifactTemplateRenderer",
    "ArtifactTypeInfo",
    "ContextAssembler",
    "ContextBundle",
    "ContextTier",
    "DuplicateArtifactError",
    "GenerationResult",
    "InvalidArtifactTypeError",
    "MissingDependencyError",
    "ProjectNotFoundError",
    "Repositories",
    "TemplateInput",
    "TypeCatalog",
    "Workflow",
    "WorkflowOrchestrator",
    "WorkflowSettings",
    "build_workflow",
    "create_memory_repositories",
    "load_settings",
]
