"""Composition root.

Every service is constructed exactly once here and handed to its consumers
through constructors.

Example:
    ```python
    async with build_workflow(load_settings("artiforge.yaml")) as workflow:
        project = await workflow.orchestrator.create_project("Todo App")
    ```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from artiforge_common.settings import Settings
from artiforge_llm.providers import AIProviderFactory
from artiforge_workflow.assistant import AIAssistant
from artiforge_workflow.catalog import TypeCatalog
from artiforge_workflow.config import WorkflowSettings, load_settings
from artiforge_workflow.context import ContextAssembler
from artiforge_workflow.orchestrator import WorkflowOrchestrator
from artiforge_workflow.repositories.base import Repositories
from artiforge_workflow.repositories.memory import create_memory_repositories
from artiforge_workflow.state_machine import ArtifactStateMachine
from artiforge_workflow.templates import ArtifactTemplateRenderer

logger = logging.getLogger(__name__)


@dataclass
class Workflow:
    """The wired services of one process."""
    settings: Settings
    repositories: Repositories
    catalog: TypeCatalog
    provider_factory: AIProviderFactory
    renderer: ArtifactTemplateRenderer
    assistant: AIAssistant
    context: ContextAssembler
    state_machine: ArtifactStateMachine
    orchestrator: WorkflowOrchestrator

    async def initialize(self) -> None:
        """Populate the type catalog from the reference repository."""
        await self.catalog.initialize(self.repositories.reference)
        logger.info("Workflow initialized: %r", self.catalog)

    async def close(self) -> None:
        """Close cached AI providers."""
        await self.provider_factory.close()

    async def __aenter__(self) -> Workflow:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def build_workflow(
    settings: Settings | None = None,
    repositories: Repositories | None = None,
    provider_factory: AIProviderFactory | None = None,
) -> Workflow:
    """Construct all workflow services.

    Args:
        settings: Loaded settings; defaults to the packaged defaults
        repositories: Storage; defaults to fresh in-memory repositories
        provider_factory: AI provider source; defaults to one built from ``settings``

    Returns:
        An uninitialized :class:`Workflow`; call ``await initialize()`` first.
    """
    settings = settings or load_settings()
    repositories = repositories or create_memory_repositories()
    provider_factory = provider_factory or AIProviderFactory(settings)

    catalog = TypeCatalog()
    renderer = ArtifactTemplateRenderer(catalog, settings.get("workflow.template_dir", None))
    assistant = AIAssistant(renderer, provider_factory, log_dir=settings.get("ai.log_dir", None))
    context = ContextAssembler(repositories.artifacts, catalog)
    state_machine = ArtifactStateMachine(catalog, repositories.artifacts)
    orchestrator = WorkflowOrchestrator(
        repositories,
        catalog,
        context,
        assistant,
        state_machine,
        WorkflowSettings.from_settings(settings),
    )
    return Workflow(
        settings=settings,
        repositories=repositories,
        catalog=catalog,
        provider_factory=provider_factory,
        renderer=renderer,
        assistant=assistant,
        context=context,
        state_machine=state_machine,
        orchestrator=orchestrator,
    )
