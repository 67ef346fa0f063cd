"""Workflow orchestrator: the single entry point used by controllers.

Each operation follows the same sequence: look up and validate, assemble
context, call the AI assistant, persist versions and interactions, then
return a view model with the artifact's available transitions.

Interaction sequence numbers are read then written, so ``interact``,
``stream_interact``, ``transition`` and ``update`` hold a per-artifact
``asyncio.Lock`` for their whole duration. The lock only covers callers
sharing this orchestrator instance.

Example:
    ```python
    project = await orchestrator.create_project("Todo App")
    details = await orchestrator.create_artifact(int(project["project_id"]), "Vision Document")
    artifact_id = int(details["artifact"]["artifact_id"])
    details = await orchestrator.interact_artifact(artifact_id, "It is for busy parents")
    ```
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Sequence
from weakref import WeakValueDictionary

from artiforge_llm.base import AIMessage
from artiforge_llm.providers import list_providers
from artiforge_workflow import views
from artiforge_workflow.assistant import AIAssistant, GenerationResult
from artiforge_workflow.catalog import TypeCatalog
from artiforge_workflow.config import WorkflowSettings
from artiforge_workflow.context import ContextAssembler
from artiforge_workflow.exceptions import (
    ArtifactNotFoundError,
    DuplicateArtifactError,
    ProjectNotFoundError,
)
from artiforge_workflow.models import ArtifactInteraction, ArtifactState, LoadedArtifact
from artiforge_workflow.repositories.base import Repositories
from artiforge_workflow.state_machine import ArtifactStateMachine
from artiforge_workflow.streaming import ChunkSink, emit, error_chunk, final_chunk, text_chunk

logger = logging.getLogger(__name__)


def _assistant_messages(result: GenerationResult) -> List[Dict[str, str]]:
    if not result.commentary.strip():
        return []
    return [{"role": "assistant", "content": result.commentary}]


class WorkflowOrchestrator:
    """Sequences artifact creation, AI interaction, versioning and state changes.

    Args:
        repositories: Project, artifact and reference repositories
        catalog: Initialized type catalog
        context_assembler: Builds prompt context from predecessors
        assistant: Runs generation calls
        state_machine: Validates and applies state changes
        settings: Orchestrator tunables
    """

    def __init__(
        self,
        repositories: Repositories,
        catalog: TypeCatalog,
        context_assembler: ContextAssembler,
        assistant: AIAssistant,
        state_machine: ArtifactStateMachine,
        settings: WorkflowSettings | None = None,
    ):
        self.projects = repositories.projects
        self.artifacts = repositories.artifacts
        self.catalog = catalog
        self.context = context_assembler
        self.assistant = assistant
        self.state_machine = state_machine
        self.settings = settings or WorkflowSettings()
        self._locks: WeakValueDictionary[int, asyncio.Lock] = WeakValueDictionary()

    def lock_for(self, artifact_id: int) -> asyncio.Lock:
        """Lock serializing writes to one artifact."""
        lock = self._locks.get(artifact_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[artifact_id] = lock
        return lock

    # Projects

    async def create_project(self, name: str) -> Dict[str, Any]:
        project = await self.projects.create(name)
        logger.info("Project %s created: %s", project.id, project.name)
        return views.project_metadata(project)

    async def list_projects(self) -> List[Dict[str, Any]]:
        return [views.project_metadata(p) for p in await self.projects.find_all()]

    async def view_project(self, project_id: int) -> Dict[str, Any]:
        """Project metadata with, per phase, each type's artifacts or a placeholder.

        Raises:
            ProjectNotFoundError: If the project does not exist.
        """
        project = await self.projects.find_by_id(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)

        placeholder_state = self._state_named(self.settings.placeholder_state)
        placeholder_transitions: Sequence[ArtifactState] = (
            self.state_machine.available_transitions(placeholder_state.id) if placeholder_state else []
        )

        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for phase in self.catalog.phases:
            in_phase = await self.artifacts.get_artifacts_by_project_id_and_phase(project_id, phase.name)
            items: List[Dict[str, Any]] = []
            for artifact_type in self.catalog.types_in_phase(phase.id):
                matching = sorted(
                    (a for a in in_phase if a.artifact_type.id == artifact_type.id), key=lambda a: a.id
                )
                for loaded in matching:
                    transitions = await self.artifacts.get_available_transitions(loaded)
                    items.append(views.artifact_item(loaded, transitions))
                if not matching:
                    items.append(views.placeholder_item(
                        artifact_type, placeholder_state, placeholder_transitions
                    ))
            grouped[phase.name] = items
        return views.project_details(project, grouped)

    # Artifacts

    async def get_artifact(self, artifact_id: int) -> Dict[str, Any]:
        """Flat record of one artifact.

        Raises:
            ArtifactNotFoundError: If the artifact does not exist.
        """
        return views.artifact_record(await self._load(artifact_id))

    async def get_artifact_details(self, artifact_id: int) -> Dict[str, Any]:
        """Detail view with recent interactions in chronological order.

        Raises:
            ArtifactNotFoundError: If the artifact does not exist.
        """
        loaded = await self._load(artifact_id)
        recent, _ = await self.artifacts.get_last_interactions(artifact_id, self.settings.detail_history)
        messages = [interaction.to_message() for interaction in reversed(recent)]
        return await self._details(loaded, messages)

    async def create_artifact(
        self,
        project_id: int,
        artifact_type_name: str,
        provider_id: str | None = None,
        model: str | None = None,
    ) -> Dict[str, Any]:
        """Create an artifact and run the kickoff generation call.

        The artifact row is removed again if context assembly or generation
        fails, so the call can be repeated.

        Raises:
            ProjectNotFoundError: If the project does not exist.
            InvalidArtifactTypeError: If the type name is unknown.
            DuplicateArtifactError: If a non-repeatable type already exists.
            MissingDependencyError: If a required predecessor is absent.
        """
        project = await self.projects.find_by_id(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        artifact_type = self.catalog.get_artifact_type_by_name(artifact_type_name)

        if not artifact_type.repeatable:
            phase = self.catalog.get_phase(artifact_type.lifecycle_phase_id)
            existing = await self.artifacts.get_artifacts_by_project_id_and_phase(project_id, phase.name)
            if any(a.artifact_type.id == artifact_type.id for a in existing):
                raise DuplicateArtifactError(artifact_type.name, project_id)

        state_id = self.catalog.get_artifact_state_id_by_name(self.settings.initial_state)
        created = await self.artifacts.create(
            project_id, artifact_type.id, f"New {artifact_type.name}", state_id
        )
        try:
            loaded = await self._load(created.id)
            bundle = await self.context.get_context(loaded, is_update=False)
            result = await self.assistant.kickoff_artifact_interaction(
                bundle, provider_id=provider_id, model=model
            )
        except Exception:
            logger.info("Rolling back artifact %s after failed kickoff", created.id)
            await self.artifacts.delete(created.id)
            raise

        if result.commentary.strip():
            await self.artifacts.create_interaction(created.id, "assistant", result.commentary, 1)
        if result.artifact_content.strip():
            await self.artifacts.create_artifact_version(created.id, result.artifact_content)
        logger.info("Artifact %s (%s) created in project %s", created.id, artifact_type.name, project_id)

        return await self._details(await self._load(created.id), _assistant_messages(result))

    async def interact_artifact(
        self,
        artifact_id: int,
        user_message: str,
        provider_id: str | None = None,
        model: str | None = None,
    ) -> Dict[str, Any]:
        """Send a user message and apply the model's revision.

        Raises:
            ArtifactNotFoundError: If the artifact does not exist.
            MissingDependencyError: If a required predecessor is absent.
            EmptyArtifactContentError: If the model returned no content.
            UnknownProviderError: If ``provider_id`` is not registered.
        """
        async with self.lock_for(artifact_id):
            loaded = await self._load(artifact_id)
            self.assistant.resolve_provider(provider_id)
            bundle = await self.context.get_context(loaded, is_update=True, user_message=user_message)
            history, sequence = await self._record_user_message(loaded, user_message)
            result = await self.assistant.update_artifact(
                bundle, history, provider_id=provider_id, model=model
            )
            await self._record_update(loaded, result, sequence)
            return await self._details(await self._load(artifact_id), _assistant_messages(result))

    async def stream_interact_artifact(
        self,
        artifact_id: int,
        user_message: str,
        sink: ChunkSink,
        provider_id: str | None = None,
        model: str | None = None,
    ) -> GenerationResult | None:
        """Like :meth:`interact_artifact`, pushing fragments to ``sink``.

        Every failure is delivered to ``sink`` as a terminal error chunk
        instead of being raised; the call then returns ``None``.
        """
        async def forward(text: str) -> None:
            await emit(sink, text_chunk(text))

        try:
            async with self.lock_for(artifact_id):
                loaded = await self._load(artifact_id)
                self.assistant.resolve_provider(provider_id, streaming=True)
                bundle = await self.context.get_context(loaded, is_update=True, user_message=user_message)
                history, sequence = await self._record_user_message(loaded, user_message)
                result = await self.assistant.generate_artifact_streaming(
                    bundle, forward, history, provider_id=provider_id, model=model
                )
                await self._record_update(loaded, result, sequence)
        except Exception as e:
            logger.error("Streaming interaction with artifact %s failed: %s", artifact_id, e)
            await emit(sink, error_chunk(str(e)))
            return None

        await emit(sink, final_chunk(result.artifact_content, result.commentary))
        return result

    async def transition_artifact(self, artifact_id: int, new_state_id: int) -> Dict[str, Any]:
        """Move an artifact along an edge of the state graph.

        Raises:
            ArtifactNotFoundError: If the artifact does not exist.
            InvalidTransitionError: If there is no edge to ``new_state_id``.
        """
        async with self.lock_for(artifact_id):
            loaded = await self._load(artifact_id)
            await self.state_machine.transition(loaded, int(new_state_id))
            return await self._details(await self._load(artifact_id))

    async def update_artifact(
        self,
        artifact_id: int,
        name: str | None = None,
        content: str | None = None,
    ) -> Dict[str, Any]:
        """Manual edit; appends a version only when the content changed.

        Raises:
            ArtifactNotFoundError: If the artifact does not exist.
        """
        async with self.lock_for(artifact_id):
            updated = await self.artifacts.update(artifact_id, name=name, content=content)
            if updated is None:
                raise ArtifactNotFoundError(artifact_id)
            return views.artifact_record(updated)

    def list_providers(self) -> List[Dict[str, Any]]:
        return list_providers()

    # Helpers

    async def _load(self, artifact_id: int) -> LoadedArtifact:
        loaded = await self.artifacts.find_by_id(artifact_id)
        if loaded is None:
            raise ArtifactNotFoundError(artifact_id)
        return loaded

    def _state_named(self, name: str) -> ArtifactState | None:
        return next((s for s in self.catalog.states if s.name == name), None)

    async def _details(
        self, loaded: LoadedArtifact, messages: Sequence[Dict[str, str]] = ()
    ) -> Dict[str, Any]:
        transitions = await self.artifacts.get_available_transitions(loaded)
        return views.artifact_details(loaded, transitions, messages)

    async def _record_user_message(self, loaded: LoadedArtifact, user_message: str):
        """Fetch prior messages and append the user message.

        Runs after the provider and context are resolved; nothing is written
        for a request rejected before that point.

        Returns:
            Prior messages oldest first and the user message's sequence number.
        """
        recent, sequence = await self.artifacts.get_last_interactions(
            loaded.id, self.settings.history_pairs
        )
        await self.artifacts.create_interaction(
            loaded.id, "user", user_message, sequence,
            version_id=loaded.artifact.current_version_id,
        )
        return _to_history(recent), sequence

    async def _record_update(self, loaded: LoadedArtifact, result: GenerationResult, sequence: int) -> None:
        version_id = None
        if result.artifact_content.strip():
            version = await self.artifacts.create_artifact_version(loaded.id, result.artifact_content)
            version_id = version.id
            logger.info("Artifact %s now at version %s", loaded.id, version.version_number)
        if result.commentary.strip():
            await self.artifacts.create_interaction(
                loaded.id, "assistant", result.commentary, sequence + 1, version_id=version_id
            )
        active_id = self.catalog.get_artifact_state_id_by_name(self.settings.active_state)
        if loaded.artifact.state_id != active_id:
            await self.state_machine.force(loaded.id, active_id)


def _to_history(recent: Sequence[ArtifactInteraction]) -> List[AIMessage]:
    """Newest-first interactions as chronological chat messages."""
    return [AIMessage(role=i.role, content=i.content) for i in reversed(recent)]
