"""Anthropic messages-API provider implementations.

The messages API takes the system prompt as a top-level ``system`` field and
does not accept a ``system`` role inside the message list, so history
entries with that role are sent as ``assistant`` turns.

Streaming uses the API's server-sent events: ``content_block_start`` opens a
text or ``tool_use`` block, ``content_block_delta`` carries ``text_delta`` or
``input_json_delta`` fragments for the block at the given index.
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


class AnthropicProvider(HTTPProvider):
    """Anthropic provider using tag-delimited output."""

    display_name = "Anthropic"
    default_base_url = "https://api.anthropic.com"
    default_api_version = "2023-06-01"
    fallback_model = "claude-3-opus-20240229"

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["x-api-key"] = self.config.api_key or ""
        headers["anthropic-version"] = self.config.api_version or self.default_api_version
        return headers

    @property
    def messages_url(self) -> str:
        """Messages endpoint."""
        return f"{self.base_url}/v1/messages"

    def _model(self, model: str | None) -> str:
        return model or self.default_model or self.fallback_model

    def _user_prompt(self, user_prompt: str, artifact_format: ArtifactFormat, is_update: bool) -> str:
        return format_instructions(user_prompt, artifact_format, is_update)

    def _build_messages(
        self,
        user_prompt: str,
        artifact_format: ArtifactFormat,
        is_update: bool,
        history: Sequence[AIMessage] | None,
    ) -> List[Dict[str, str]]:
        messages = [
            {
                "role": "assistant" if message.role == "system" else message.role,
                "content": message.content,
            }
            for message in history or ()
        ]
        messages.append({
            "role": "user",
            "content": self._user_prompt(user_prompt, artifact_format, is_update),
        })
        return messages

    def _payload(
        self, system_prompt: str, messages: List[Dict[str, str]], model: str, stream: bool = False
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "system": system_prompt,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }
        if stream:
            payload["stream"] = True
        return payload

    @staticmethod
    def _formatted(system_prompt: str, messages: List[Dict[str, str]]) -> List[Dict[str, str]]:
        return [{"role": "system", "content": system_prompt}, *messages]

    def _metadata(self, model: str, data: Dict[str, Any] | None = None, **extra: Any) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {"provider": self.provider_id, "model": model}
        if data:
            metadata["usage"] = data.get("usage")
            metadata["stop_reason"] = data.get("stop_reason")
        metadata.update(extra)
        return metadata

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
        messages = self._build_messages(user_prompt, artifact_format, is_update, history)
        data = await self._post_json(
            self.messages_url, self._payload(system_prompt, messages, model_to_use)
        )
        text = "".join(
            block.get("text", "") for block in data.get("content") or [] if block.get("type") == "text"
        )
        return AIRequestResponse(
            formatted_prompts=self._formatted(system_prompt, messages),
            raw_response=text,
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
        """Stream a response, forwarding text deltas to ``on_chunk``."""
        model_to_use = self._model(model)
        messages = self._build_messages(user_prompt, artifact_format, is_update, history)
        parts: List[str] = []

        async with self._event_stream(
            self.messages_url, self._payload(system_prompt, messages, model_to_use, stream=True)
        ) as events:
            async for event in events:
                if event.get("type") != "content_block_delta":
                    continue
                text = (event.get("delta") or {}).get("text")
                if text:
                    parts.append(text)
                    await deliver_chunk(on_chunk, text)

        return AIRequestResponse(
            formatted_prompts=self._formatted(system_prompt, messages),
            raw_response="".join(parts),
            metadata=self._metadata(model_to_use, streamed=True),
        )


class AnthropicFunctionCallingProvider(AnthropicProvider):
    """Anthropic provider delivering content and commentary as ``tool_use`` blocks."""

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
                "name": tool["name"],
                "description": tool["description"],
                "input_schema": tool["parameters"],
            }
            for tool in artifact_tool_definitions()
        ]

    def _tool_payload(
        self,
        system_prompt: str,
        messages: List[Dict[str, str]],
        model: str,
        is_update: bool,
        stream: bool = False,
    ) -> Dict[str, Any]:
        payload = self._payload(system_prompt, messages, model, stream=stream)
        payload["tools"] = self._tools()
        if is_update:
            payload["tool_choice"] = {"type": "tool", "name": GENERATE_CONTENT_TOOL}
        else:
            payload["tool_choice"] = {"type": "auto"}
        return payload

    def _result(
        self,
        system_prompt: str,
        messages: List[Dict[str, str]],
        text_segments: List[str],
        tool_calls: List[ToolCall],
        metadata: Dict[str, Any],
    ) -> AIRequestResponse:
        parsed = parse_tool_calls(tool_calls, text_segments)
        raw = json.dumps({
            "text": text_segments,
            "tool_use": [{"name": c.name, "input": c.parameters} for c in tool_calls],
        })
        parsed.raw_response = raw
        metadata["tool_calls"] = [c.name for c in tool_calls]
        return AIRequestResponse(
            formatted_prompts=self._formatted(system_prompt, messages),
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
        """Generate a complete response through tool use."""
        model_to_use = self._model(model)
        messages = self._build_messages(user_prompt, artifact_format, is_update, history)
        data = await self._post_json(
            self.messages_url,
            self._tool_payload(system_prompt, messages, model_to_use, is_update),
        )

        text_segments: List[str] = []
        tool_calls: List[ToolCall] = []
        for block in data.get("content") or []:
            if block.get("type") == "text":
                text_segments.append(block.get("text", ""))
            elif block.get("type") == "tool_use":
                name = block.get("name")
                tool_calls.append(ToolCall(
                    name=name,
                    parameters=decode_tool_arguments(block.get("input"), name),
                    id=block.get("id"),
                ))
        return self._result(
            system_prompt, messages, text_segments, tool_calls, self._metadata(model_to_use, data)
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
        """Stream a response; ``input_json_delta`` fragments are decoded at the end."""
        model_to_use = self._model(model)
        messages = self._build_messages(user_prompt, artifact_format, is_update, history)
        blocks: Dict[int, Dict[str, Any]] = {}

        async with self._event_stream(
            self.messages_url,
            self._tool_payload(system_prompt, messages, model_to_use, is_update, stream=True),
        ) as events:
            async for event in events:
                event_type = event.get("type")
                index = event.get("index", 0)
                if event_type == "content_block_start":
                    start = event.get("content_block") or {}
                    blocks[index] = {
                        "type": start.get("type"),
                        "name": start.get("name"),
                        "id": start.get("id"),
                        "input": start.get("input") or {},
                        "parts": [start["text"]] if start.get("text") else [],
                    }
                elif event_type == "content_block_delta":
                    block = blocks.setdefault(
                        index, {"type": "text", "name": None, "id": None, "input": {}, "parts": []}
                    )
                    delta = event.get("delta") or {}
                    if delta.get("type") == "input_json_delta":
                        block["parts"].append(delta.get("partial_json", ""))
                    elif delta.get("text"):
                        block["parts"].append(delta["text"])
                        await deliver_chunk(on_chunk, delta["text"])

        text_segments: List[str] = []
        tool_calls: List[ToolCall] = []
        for _, block in sorted(blocks.items()):
            joined = "".join(block["parts"])
            if block["type"] == "tool_use":
                parameters = decode_tool_arguments(joined, block["name"]) if joined else block["input"]
                tool_calls.append(ToolCall(name=block["name"], parameters=parameters, id=block["id"]))
            else:
                text_segments.append(joined)

        return self._result(
            system_prompt, messages, text_segments, tool_calls,
            self._metadata(model_to_use, streamed=True),
        )
