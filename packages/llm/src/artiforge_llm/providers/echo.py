"""Echo provider for testing and offline development."""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Sequence, Union

from artiforge_common.settings import Settings
from artiforge_llm.base import (
    AIConfig, AIMessage, AIRequestResponse, ArtifactFormat, AsyncAIProvider, ChunkCallback,
    ModelCapability, ParsedResponse, StreamingAIProvider, deliver_chunk,
)

logger = logging.getLogger(__name__)

ScriptedResponse = Union[str, ParsedResponse, BaseException]


class _EchoBehavior:
    """Scripted-response behavior shared by the streaming and standard echo providers.

    Scripted responses are consumed in order: a string is treated as raw
    tag-delimited model output, a :class:`ParsedResponse` as a structured
    (tool-call style) result, and an exception is raised. When the script is
    exhausted the provider echoes the user prompt back: inside the artifact
    tags for updates, as commentary for kickoffs.

    Every call is recorded in :attr:`calls` for assertions.
    """

    config: AIConfig

    def _setup_echo(self) -> None:
        self.echo_prefix = self.config.options.get("echo_prefix", "Echo: ")
        self.chunk_size = max(1, int(self.config.options.get("chunk_size", 8)))
        self.stream_delay = float(self.config.options.get("stream_delay", 0.0))
        self._responses: List[ScriptedResponse] = list(self.config.options.get("responses", []))
        self.calls: List[Dict[str, Any]] = []

    def set_responses(self, responses: Sequence[ScriptedResponse]) -> None:
        """Replace the scripted response queue."""
        self._responses = list(responses)

    def add_response(self, response: ScriptedResponse) -> None:
        """Append one scripted response."""
        self._responses.append(response)

    @property
    def call_count(self) -> int:
        """Number of generate calls made so far."""
        return len(self.calls)

    def _record(self, system_prompt, user_prompt, artifact_format, is_update, history, model, streamed):
        self.calls.append({
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "artifact_format": artifact_format,
            "is_update": is_update,
            "history": [m.to_dict() for m in history or ()],
            "model": model or self.config.model,
            "streamed": streamed,
        })

    def _next(self, user_prompt: str, artifact_format: ArtifactFormat, is_update: bool) -> ScriptedResponse:
        if self._responses:
            return self._responses.pop(0)
        echoed = f"{self.echo_prefix}{user_prompt}"
        if is_update:
            return f"{artifact_format.start_tag}\n{echoed}\n{artifact_format.end_tag}"
        return echoed

    def _to_result(self, response: ScriptedResponse, system_prompt, user_prompt, history, model, streamed):
        if isinstance(response, BaseException):
            raise response
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(m.to_dict() for m in history or ())
        messages.append({"role": "user", "content": user_prompt})
        metadata = {"provider": self.config.provider, "model": model or self.config.model, "streamed": streamed}
        if isinstance(response, ParsedResponse):
            return AIRequestResponse(
                formatted_prompts=messages,
                raw_response=response.raw_response,
                parsed_response=response,
                metadata=metadata,
            )
        return AIRequestResponse(formatted_prompts=messages, raw_response=response, metadata=metadata)


class EchoProvider(_EchoBehavior, StreamingAIProvider):
    """Echo provider with streaming support.

    Example:
        ```python
        provider = EchoProvider({"provider": "echo", "model": "echo-model"})
        provider.set_responses([
            "[COMMENTARY]What is the product about?[/COMMENTARY]",
            "[VISION]# Vision[/VISION][COMMENTARY]Drafted.[/COMMENTARY]",
        ])
        ```
    """

    display_name = "Echo"

    def __init__(self, config: Union[AIConfig, Settings, Mapping[str, Any]]):
        super().__init__(config)
        self._setup_echo()

    def get_capabilities(self) -> List[ModelCapability]:
        """Get echo provider capabilities."""
        return [
            ModelCapability.TEXT_GENERATION,
            ModelCapability.FUNCTION_CALLING,
            ModelCapability.STREAMING,
        ]

    async def generate_response(
        self,
        system_prompt: str,
        user_prompt: str,
        artifact_format: ArtifactFormat,
        is_update: bool = False,
        history: Sequence[AIMessage] | None = None,
        model: str | None = None,
    ) -> AIRequestResponse:
        """Return the next scripted response or an echo of the prompt."""
        self._record(system_prompt, user_prompt, artifact_format, is_update, history, model, False)
        response = self._next(user_prompt, artifact_format, is_update)
        return self._to_result(response, system_prompt, user_prompt, history, model, False)

    async def generate_streaming_response(
        self,
        system_prompt: str,
        user_prompt: str,
        artifact_format: ArtifactFormat,
        is_update: bool = False,
        history: Sequence[AIMessage] | None = None,
        model: str | None = None,
        on_chunk: ChunkCallback | None = None,
    ) -> AIRequestResponse:
        """Deliver the next response in ``chunk_size`` pieces."""
        self._record(system_prompt, user_prompt, artifact_format, is_update, history, model, True)
        response = self._next(user_prompt, artifact_format, is_update)
        if isinstance(response, BaseException):
            raise response

        text = response.raw_response if isinstance(response, ParsedResponse) else response
        for index in range(0, len(text), self.chunk_size):
            if self.stream_delay:
                await asyncio.sleep(self.stream_delay)
            await deliver_chunk(on_chunk, text[index:index + self.chunk_size])

        return self._to_result(response, system_prompt, user_prompt, history, model, True)


class StandardEchoProvider(_EchoBehavior, AsyncAIProvider):
    """Echo provider without streaming, for exercising standard-only dispatch."""

    display_name = "Echo"

    def __init__(self, config: Union[AIConfig, Settings, Mapping[str, Any]]):
        super().__init__(config)
        self._setup_echo()

    def get_capabilities(self) -> List[ModelCapability]:
        """Get capabilities."""
        return [ModelCapability.TEXT_GENERATION]

    async def generate_response(
        self,
        system_prompt: str,
        user_prompt: str,
        artifact_format: ArtifactFormat,
        is_update: bool = False,
        history: Sequence[AIMessage] | None = None,
        model: str | None = None,
    ) -> AIRequestResponse:
        """Return the next scripted response or an echo of the prompt."""
        self._record(system_prompt, user_prompt, artifact_format, is_update, history, model, False)
        response = self._next(user_prompt, artifact_format, is_update)
        return self._to_result(response, system_prompt, user_prompt, history, model, False)
