"""AI assistant that turns a context bundle into artifact content.

The assistant renders prompts, picks a provider from the factory, runs a
standard or streamed call, normalizes the output and, when a log directory
is configured, writes a JSON record of the exchange.

Example:
    ```python
    assistant = AIAssistant(renderer, AIProviderFactory(settings), log_dir="ai_logs")
    result = await assistant.kickoff_artifact_interaction(bundle)
    print(result.commentary)
    ```
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Sequence, Union

from artiforge_common.exceptions import ArtiforgeError, OperationError
from artiforge_llm.base import (
    AIMessage,
    AIRequestResponse,
    AsyncAIProvider,
    ChunkCallback,
    ParsedResponse,
    ProviderKind,
)
from artiforge_llm.exceptions import StreamingUnsupportedError
from artiforge_llm.providers import AIProviderFactory
from artiforge_workflow.context import ContextBundle
from artiforge_workflow.templates import ArtifactTemplateRenderer, TemplateInput

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Content and commentary produced by one generation call."""
    artifact_content: str
    commentary: str

    def to_dict(self) -> Dict[str, str]:
        return {"artifact_content": self.artifact_content, "commentary": self.commentary}


class AIAssistant:
    """Generates artifact content through the configured AI providers.

    Args:
        renderer: Prompt renderer
        provider_factory: Source of provider instances
        log_dir: Directory for interaction logs; ``None`` disables logging
    """

    def __init__(
        self,
        renderer: ArtifactTemplateRenderer,
        provider_factory: AIProviderFactory,
        log_dir: Union[str, Path, None] = None,
    ):
        self.renderer = renderer
        self.provider_factory = provider_factory
        self.log_dir = Path(log_dir) if log_dir else None

    def resolve_provider(self, provider_id: str | None = None, streaming: bool = False) -> AsyncAIProvider:
        """Return the provider for ``provider_id``, checking it can stream when asked.

        Raises:
            UnknownProviderError: If the identifier is not registered.
            StreamingUnsupportedError: If ``streaming`` and the provider is standard-only.
        """
        provider = self.provider_factory.get_provider(provider_id)
        if streaming and provider.kind is not ProviderKind.STREAMING:
            raise StreamingUnsupportedError(provider.provider_id)
        return provider

    async def kickoff_artifact_interaction(
        self,
        bundle: ContextBundle,
        provider_id: str | None = None,
        model: str | None = None,
    ) -> GenerationResult:
        """Open the dialogue for a new artifact."""
        return await self.generate_artifact(bundle, provider_id=provider_id, model=model)

    async def update_artifact(
        self,
        bundle: ContextBundle,
        history: Sequence[AIMessage] = (),
        provider_id: str | None = None,
        model: str | None = None,
    ) -> GenerationResult:
        """Produce replacement content for an existing artifact."""
        return await self.generate_artifact(bundle, history, provider_id, model)

    async def generate_artifact(
        self,
        bundle: ContextBundle,
        history: Sequence[AIMessage] = (),
        provider_id: str | None = None,
        model: str | None = None,
    ) -> GenerationResult:
        """Run a complete (non-streamed) generation call.

        Raises:
            ArtiforgeError: Domain and provider errors pass through unchanged.
            OperationError: Any other failure, as ``Failed to generate artifact: ...``.
        """
        try:
            template_input = self.renderer.get_artifact_input(bundle)
            provider = self.resolve_provider(provider_id)
            result = await provider.generate_response(
                template_input.system_prompt,
                template_input.template,
                template_input.artifact_format,
                is_update=bundle.is_update,
                history=list(history),
                model=model,
            )
            return self._finish(bundle, provider, model, template_input, result)
        except ArtiforgeError:
            raise
        except Exception as e:
            logger.error("Artifact generation failed: %s", e)
            raise OperationError(f"Failed to generate artifact: {e}") from e

    async def generate_artifact_streaming(
        self,
        bundle: ContextBundle,
        on_chunk: ChunkCallback,
        history: Sequence[AIMessage] = (),
        provider_id: str | None = None,
        model: str | None = None,
    ) -> GenerationResult:
        """Run a streamed generation call, forwarding fragments to ``on_chunk``.

        Raises:
            StreamingUnsupportedError: If the provider is not a streaming provider.
            OperationError: Any non-domain failure, as
                ``Failed to generate streaming artifact: ...``.
        """
        try:
            template_input = self.renderer.get_artifact_input(bundle)
            provider = self.resolve_provider(provider_id, streaming=True)
            result = await provider.generate_streaming_response(  # type: ignore[attr-defined]
                template_input.system_prompt,
                template_input.template,
                template_input.artifact_format,
                is_update=bundle.is_update,
                history=list(history),
                model=model,
                on_chunk=on_chunk,
            )
            return self._finish(bundle, provider, model, template_input, result)
        except ArtiforgeError:
            raise
        except Exception as e:
            logger.error("Streaming artifact generation failed: %s", e)
            raise OperationError(f"Failed to generate streaming artifact: {e}") from e

    def _finish(
        self,
        bundle: ContextBundle,
        provider: AsyncAIProvider,
        model: str | None,
        template_input: TemplateInput,
        result: AIRequestResponse,
    ) -> GenerationResult:
        parsed = provider.parse_response(result, template_input.artifact_format, bundle.is_update)
        self._write_log(bundle, provider, model, template_input, result, parsed)
        return GenerationResult(
            artifact_content=parsed.artifact_content, commentary=parsed.commentary
        )

    def log_file_name(self, bundle: ContextBundle, timestamp: str) -> str:
        """``<timestamp>_<type slug>_<artifact id | new>.json`` with a filesystem-safe timestamp."""
        safe_time = timestamp.replace(":", "-").replace(".", "-")
        slug = self.renderer.catalog.get_artifact_type_info(bundle.artifact.artifact_type_name).slug
        artifact_id = bundle.artifact.artifact_id if bundle.artifact.artifact_id is not None else "new"
        return f"{safe_time}_{slug}_{artifact_id}.json"

    def _write_log(
        self,
        bundle: ContextBundle,
        provider: AsyncAIProvider,
        model: str | None,
        template_input: TemplateInput,
        result: AIRequestResponse,
        parsed: ParsedResponse,
    ) -> None:
        if self.log_dir is None:
            return
        timestamp = datetime.now(timezone.utc).isoformat()
        record: Dict[str, Any] = {
            "timestamp": timestamp,
            "artifact_info": {
                "id": bundle.artifact.artifact_id,
                "name": bundle.artifact.name or "New Artifact",
                "type": bundle.artifact.artifact_type_name,
                "project": bundle.project_name,
            },
            "ai_config": {
                "provider": provider.provider_id,
                "model": model or provider.default_model,
            },
            "ai_input": {
                "system_prompt": template_input.system_prompt,
                "user_template": template_input.template,
                "artifact_format": template_input.artifact_format.to_dict(),
            },
            "ai_output": {
                "raw_response": result.raw_response,
                "parsed_response": parsed.to_dict(),
            },
        }
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            path = self.log_dir / self.log_file_name(bundle, timestamp)
            path.write_text(json.dumps(record, indent=2, default=str), encoding="utf-8")
            logger.debug("AI interaction logged to %s", path)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to write AI interaction log: %s", e)
