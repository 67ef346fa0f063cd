"""OpenAI chat-completions provider implementations.

Two variants share the same endpoint (``{base_url}/chat/completions``):

- :class:`OpenAIProvider` asks for tag-delimited output and parses it with
  the tag strategy.
- :class:`OpenAIFunctionCallingProvider` registers the artifact tools and
  reads content and commentary from the tool-call arguments.

Example:
    ```python
    from artiforge_llm.providers import OpenAIProvider
    from artiforge_llm.base import AIConfig, ArtifactFormat

    config = AIConfig(provider="openai", model="gpt-4o", api_key="sk-...")
    async with OpenAIProvider(config) as ai:
        result = await ai.generate_streaming_response(
            system_prompt, user_prompt, ArtifactFormat.for_slug("vision"),
            is_update=True, on_chunk=lambda text: print(text, end=""),
        )
    ```
"""

import json
import logging
from typing import Any, Dict, List, Sequence

from artiforge_llm.base import (
    AIMessage, AIRequestResponse, ArtifactFormat, ChunkCallback, ModelCapability, ToolCall,
    deliver_chunk,
)
from artiforge_llm.parsing import (
    GENERATE_CONTENT_TOOL, artifact_tool_definitions, decode_tool_arguments, format_instructions,
    parse_tool_calls,
)
from artiforge_llm.providers.http import HTTPProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(HTTPProvider):
    """OpenAI provider using tag-delimited output."""

    display_name = "OpenAI"
    default_base_url = "https://api.openai.com/v1"
    fallback_model = "gpt-4"

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Bearer {self.config.api_key or ''}"
        if self.config.organization_id:
            headers["OpenAI-Organization"] = self.config.organization_id
        return headers

    @property
    def completions_url(self) -> str:
        """Chat-completions endpoint."""
        return f"{self.base_url}/chat/completions"

    def _model(self, model: str | None) -> str:
        return model or self.default_model or self.fallback_model

    def _user_prompt(self, user_prompt: str, artifact_format: ArtifactFormat, is_update: bool) -> str:
        return format_instructions(user_prompt, artifact_format, is_update)

    def _build_messages(
        self,
        system_prompt: str,
        user_prompt: str,
        artifact_format: ArtifactFormat,
        is_update: bool,
        history: Sequence[AIMessage] | None,
    ) -> List[Dict[str, str]]:
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(self._history_messages(history))
        messages.append({
            "role": "user",
            "content": self._user_prompt(user_prompt, artifact_format, is_update),
        })
        return messages

    def _payload(self, messages: List[Dict[str, str]], model: str, stream: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": self.config.temperature,
        }
        if self.config.max_tokens:
            payload["max_tokens"] = self.config.max_tokens
        if stream:
            payload["stream"] = True
        return payload

    def _metadata(self, model: str, data: Dict[str, Any] | None = None, **extra: Any) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {"provider": self.provider_id, "model": model}
        if data:
            metadata["usage"] = data.get("usage")
            choices = data.get("choices") or [{}]
            metadata["finish_reason"] = choices[0].get("finish_reason")
        metadata.update(extra)
        return metadata

    @staticmethod
    def _message(data: Dict[str, Any]) -> Dict[str, Any]:
        choices = data.get("choices") or []
        if not choices:
            return {}
        return choices[0].get("message") or {}

    @staticmethod
    def _delta(event: Dict[str, Any]) -> Dict[str, Any]:
        choices = event.get("choices") or []
        if not choices:
            return {}
        return choices[0].get("delta") or {}

    async def generate_response(
        self,
        system_prompt: str,
        user_prompt: str,
        artifact_format: ArtifactFormat,
        is_update: bool = False,
        history: Sequence[AIMessage] | None = None,
        model: str | None = None,
    ) -> AIRequestResponse:
        """Generate a complete response."""
        model_to_use = self._model(model)
        messages = self._build_messages(system_prompt, user_prompt, artifact_format, is_update, history)
        data = await self._post_json(self.completions_url, self._payload(messages, model_to_use))
        return AIRequestResponse(
            formatted_prompts=messages,
            raw_response=self._message(data).get("content") or "",
            metadata=self._metadata(model_to_use, data),
        )

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
        """Stream a response, forwarding content deltas to ``on_chunk``."""
        model_to_use = self._model(model)
        messages = self._build_messages(system_prompt, user_prompt, artifact_format, is_update, history)
        parts: List[str] = []

        async with self._event_stream(
            self.completions_url, self._payload(messages, model_to_use, stream=True)
        ) as events:
            async for event in events:
                content = self._delta(event).get("content")
                if content:
                    parts.append(content)
                    await deliver_chunk(on_chunk, content)

        return AIRequestResponse(
            formatted_prompts=messages,
            raw_response="".join(parts),
            metadata=self._metadata(model_to_use, streamed=True),
        )


class OpenAIFunctionCallingProvider(OpenAIProvider):
    """OpenAI provider delivering content and commentary through tool calls.

    Updates force a ``generate_artifact_content`` call; kickoffs and streamed
    calls let the model choose.
    """

    def get_capabilities(self) -> List[ModelCapability]:
        """Get provider capabilities."""
        return [
            ModelCapability.TEXT_GENERATION,
            ModelCapability.FUNCTION_CALLING,
            ModelCapability.STREAMING,
        ]

    def _user_prompt(self, user_prompt: str, artifact_format: ArtifactFormat, is_update: bool) -> str:
        return user_prompt

    @staticmethod
    def _tools() -> List[Dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": tool["name"],
                    "description": tool["description"],
                    "parameters": tool["parameters"],
                },
            }
            for tool in artifact_tool_definitions()
        ]

    def _tool_payload(
        self, messages: List[Dict[str, str]], model: str, is_update: bool, stream: bool = False
    ) -> Dict[str, Any]:
        payload = self._payload(messages, model, stream=stream)
        payload["tools"] = self._tools()
        if is_update and not stream:
            payload["tool_choice"] = {"type": "function", "function": {"name": GENERATE_CONTENT_TOOL}}
        else:
            payload["tool_choice"] = "auto"
        return payload

    def _result(
        self,
        messages: List[Dict[str, str]],
        text: str,
        tool_calls: List[ToolCall],
        metadata: Dict[str, Any],
    ) -> AIRequestResponse:
        parsed = parse_tool_calls(tool_calls, [text])
        raw = json.dumps({
            "content": text,
            "tool_calls": [{"name": c.name, "arguments": c.parameters} for c in tool_calls],
        })
        parsed.raw_response = raw
        metadata["tool_calls"] = [c.name for c in tool_calls]
        return AIRequestResponse(
            formatted_prompts=messages,
            raw_response=raw,
            parsed_response=parsed,
            metadata=metadata,
        )

    async def generate_response(
        self,
        system_prompt: str,
        user_prompt: str,
        artifact_format: ArtifactFormat,
        is_update: bool = False,
        history: Sequence[AIMessage] | None = None,
        model: str | None = None,
    ) -> AIRequestResponse:
        """Generate a complete response through tool calls."""
        model_to_use = self._model(model)
        messages = self._build_messages(system_prompt, user_prompt, artifact_format, is_update, history)
        data = await self._post_json(
            self.completions_url, self._tool_payload(messages, model_to_use, is_update)
        )

        message = self._message(data)
        tool_calls = []
        for call in message.get("tool_calls") or []:
            function = call.get("function") or {}
            name = function.get("name")
            tool_calls.append(ToolCall(
                name=name,
                parameters=decode_tool_arguments(function.get("arguments"), name),
                id=call.get("id"),
            ))
        return self._result(
            messages, message.get("content") or "", tool_calls, self._metadata(model_to_use, data)
        )

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
        """Stream a response; tool arguments are decoded after the stream ends."""
        model_to_use = self._model(model)
        messages = self._build_messages(system_prompt, user_prompt, artifact_format, is_update, history)
        text_parts: List[str] = []
        calls: Dict[int, Dict[str, Any]] = {}

        async with self._event_stream(
            self.completions_url,
            self._tool_payload(messages, model_to_use, is_update, stream=True),
        ) as events:
            async for event in events:
                delta = self._delta(event)
                content = delta.get("content")
                if content:
                    text_parts.append(content)
                    await deliver_chunk(on_chunk, content)

                for fragment in delta.get("tool_calls") or []:
                    entry = calls.setdefault(
                        fragment.get("index", 0), {"id": None, "name": None, "arguments": []}
                    )
                    if fragment.get("id"):
                        entry["id"] = fragment["id"]
                    function = fragment.get("function") or {}
                    if function.get("name"):
                        entry["name"] = function["name"]
                    if function.get("arguments"):
                        entry["arguments"].append(function["arguments"])

        tool_calls = [
            ToolCall(
                name=entry["name"],
                parameters=decode_tool_arguments("".join(entry["arguments"]), entry["name"]),
                id=entry["id"],
            )
            for _, entry in sorted(calls.items())
        ]
        return self._result(
            messages, "".join(text_parts), tool_calls, self._metadata(model_to_use, streamed=True)
        )
