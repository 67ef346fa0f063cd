"""Base AI provider abstraction components.

This module defines the contract every model provider implements so that the
rest of artiforge can treat free-text (tag-delimited) and structured
(tool-call) model output the same way. A call produces an
:class:`AIRequestResponse` carrying the prompts that were sent, the raw
model output, an optional already-parsed result and provider metadata;
:meth:`AsyncAIProvider.parse_response` normalizes it into a
:class:`ParsedResponse` of artifact content plus commentary.

Providers come in two variants, tagged by :class:`ProviderKind`:

- ``STANDARD`` providers only implement :meth:`AsyncAIProvider.generate_response`.
- ``STREAMING`` providers (subclasses of :class:`StreamingAIProvider`) also
  implement :meth:`StreamingAIProvider.generate_streaming_response`.

Callers dispatch on ``provider.kind`` rather than probing for methods.

Example:
    ```python
    from artiforge_llm import create_ai_provider
    from artiforge_llm.base import ArtifactFormat, AIMessage

    fmt = ArtifactFormat.for_slug("vision")
    async with create_ai_provider({"provider": "anthropic", "api_key": "..."}) as ai:
        result = await ai.generate_response(
            "You are a product strategist.",
            "Draft a vision document for a todo app.",
            fmt,
            is_update=False,
            history=[AIMessage(role="user", content="Keep it short")],
        )
        parsed = ai.parse_response(result, fmt, is_update=False)
        print(parsed.commentary)
    ```
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Sequence, Union

from artiforge_common.settings import Settings

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[str], Union[None, Awaitable[None]]]

COMMENTARY_START_TAG = "[COMMENTARY]"
COMMENTARY_END_TAG = "[/COMMENTARY]"


async def deliver_chunk(on_chunk: ChunkCallback | None, text: str) -> None:
    """Hand a text fragment to a sync or async chunk callback."""
    if on_chunk is None:
        return
    result = on_chunk(text)
    if inspect.isawaitable(result):
        await result


class ModelCapability(Enum):
    """Capabilities a provider advertises.

    Attributes:
        TEXT_GENERATION: Free-text output with delimited tags
        FUNCTION_CALLING: Structured tool/function-call output
        STREAMING: Incremental response streaming
    """
    TEXT_GENERATION = "text_generation"
    FUNCTION_CALLING = "function_calling"
    STREAMING = "streaming"


class ProviderKind(Enum):
    """Dispatch tag distinguishing streaming-capable providers."""
    STANDARD = "standard"
    STREAMING = "streaming"


@dataclass(frozen=True)
class ArtifactFormat:
    """Delimiters used to locate artifact content in free-text output.

    Attributes:
        start_tag: Marker opening the artifact body (e.g. ``[VISION]``)
        end_tag: Marker closing the artifact body (e.g. ``[/VISION]``)
        syntax: Content syntax of the body (``markdown`` or ``mermaid``)
        commentary_start_tag: Optional marker opening the commentary
        commentary_end_tag: Optional marker closing the commentary
    """
    start_tag: str
    end_tag: str
    syntax: str = "markdown"
    commentary_start_tag: str | None = COMMENTARY_START_TAG
    commentary_end_tag: str | None = COMMENTARY_END_TAG

    @classmethod
    def for_slug(cls, slug: str | None, syntax: str = "markdown") -> ArtifactFormat:
        """Build the conventional format for an artifact type slug.

        An empty slug yields the generic ``[ARTIFACT]`` format.
        """
        marker = slug.upper() if slug else "ARTIFACT"
        return cls(start_tag=f"[{marker}]", end_tag=f"[/{marker}]", syntax=syntax)

    @property
    def has_commentary_tags(self) -> bool:
        """Whether both commentary tags are configured."""
        return bool(self.commentary_start_tag and self.commentary_end_tag)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return asdict(self)


@dataclass
class AIMessage:
    """A message in an artifact conversation.

    Attributes:
        role: ``system``, ``user`` or ``assistant``
        content: Message text
    """
    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        """Convert to the common chat-message dictionary shape."""
        return {"role": self.role, "content": self.content}


@dataclass
class ToolCall:
    """A structured call emitted by the model.

    Attributes:
        name: Name of the tool
        parameters: Decoded arguments
        id: Optional provider identifier for the call
    """
    name: str
    parameters: Dict[str, Any]
    id: str | None = None


@dataclass
class ParsedResponse:
    """Normalized content/commentary pair extracted from model output."""
    raw_response: str
    artifact_content: str = ""
    commentary: str = ""

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary representation."""
        return {
            "raw_response": self.raw_response,
            "artifact_content": self.artifact_content,
            "commentary": self.commentary,
        }


@dataclass
class AIRequestResponse:
    """Complete record of one model call.

    Attributes:
        formatted_prompts: Messages exactly as sent to the provider
        raw_response: Raw text output (tool-call providers store the text segments)
        parsed_response: Result already extracted by the provider, if any
        metadata: Provider, model and usage details
    """
    formatted_prompts: List[Dict[str, Any]]
    raw_response: str
    parsed_response: ParsedResponse | None = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AIConfig:
    """Configuration for a model provider.

    Example:
        ```python
        config = AIConfig(
            provider="openai",
            model="gpt-4",
            api_key="sk-...",
            base_url="https://api.openai.com/v1",
        )
        ```
    """
    provider: str
    model: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    api_version: str | None = None
    organization_id: str | None = None
    temperature: float = 0.7
    max_tokens: int = 4000
    timeout: float = 120.0
    models: List[str] = field(default_factory=list)
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, config_dict: Mapping[str, Any]) -> AIConfig:
        """Create an AIConfig from a dictionary, ignoring unknown keys.

        ``default_model`` is accepted as an alias of ``model``.
        """
        data = dict(config_dict)
        if "default_model" in data and not data.get("model"):
            data["model"] = data["default_model"]
        valid_fields = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in valid_fields})

    def clone(self, **overrides: Any) -> AIConfig:
        """Create a copy of this config with overrides applied."""
        return replace(self, **overrides)


def normalize_ai_config(
    config: Union[AIConfig, Settings, Mapping[str, Any]],
    provider: str | None = None,
) -> AIConfig:
    """Normalize supported config shapes to an :class:`AIConfig`.

    Args:
        config: AIConfig, Settings (reads ``ai.providers.<provider>``) or dict
        provider: Provider id, required when ``config`` is a Settings object

    Raises:
        TypeError: If the config type is not supported
    """
    if isinstance(config, AIConfig):
        return config
    if isinstance(config, Settings):
        provider_id = provider or config.get("ai.default_provider")
        section = config.section(f"ai.providers.{provider_id}")
        section.setdefault("provider", provider_id)
        return AIConfig.from_dict(section)
    if isinstance(config, Mapping):
        data = dict(config)
        if provider and "provider" not in data:
            data["provider"] = provider
        return AIConfig.from_dict(data)
    raise TypeError(
        f"Unsupported config type: {type(config).__name__}. "
        f"Expected AIConfig, Settings, or dict."
    )


class AsyncAIProvider(ABC):
    """Async model provider interface."""

    kind = ProviderKind.STANDARD
    display_name = "AI"

    def __init__(self, config: Union[AIConfig, Settings, Mapping[str, Any]]):
        """Initialize provider with configuration.

        Args:
            config: Configuration as AIConfig, Settings, or dict
        """
        self.config = normalize_ai_config(config)
        self._is_initialized = False

    @property
    def provider_id(self) -> str:
        """Identifier under which this provider is registered."""
        return self.config.provider

    @property
    def default_model(self) -> str | None:
        """Model used when a call does not name one."""
        return self.config.model

    @property
    def is_initialized(self) -> bool:
        """Check if provider is initialized."""
        return self._is_initialized

    @abstractmethod
    def get_capabilities(self) -> List[ModelCapability]:
        """Get provider capabilities."""

    @abstractmethod
    async def generate_response(
        self,
        system_prompt: str,
        user_prompt: str,
        artifact_format: ArtifactFormat,
        is_update: bool = False,
        history: Sequence[AIMessage] | None = None,
        model: str | None = None,
    ) -> AIRequestResponse:
        """Run one complete model call.

        Args:
            system_prompt: Rendered system prompt
            user_prompt: Rendered user prompt
            artifact_format: Delimiters for the artifact being produced
            is_update: Whether replacement content is required
            history: Prior conversation in chronological order
            model: Model override

        Returns:
            The request/response record

        Raises:
            ProviderError: On transport or non-2xx provider failures
        """

    def parse_response(
        self,
        result: Union[AIRequestResponse, str],
        artifact_format: ArtifactFormat,
        is_update: bool = False,
    ) -> ParsedResponse:
        """Normalize a call result into content and commentary.

        Results that already carry a parsed response (tool-call providers)
        are only validated; raw text is run through the tag parser.

        Raises:
            EmptyArtifactContentError: If ``is_update`` and no content was produced
        """
        from artiforge_llm.parsing import (
            extract_content_and_commentary, validate_and_format_response
        )

        if isinstance(result, AIRequestResponse):
            if result.parsed_response is not None:
                return validate_and_format_response(result.parsed_response, is_update)
            raw = result.raw_response
        else:
            raw = result
        return validate_and_format_response(
            extract_content_and_commentary(raw, artifact_format), is_update
        )

    async def initialize(self) -> None:
        """Initialize the provider."""
        self._is_initialized = True

    async def close(self) -> None:
        """Release provider resources."""
        self._is_initialized = False

    async def __aenter__(self):
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(provider={self.provider_id!r}, model={self.default_model!r})"


class StreamingAIProvider(AsyncAIProvider):
    """Provider that can also deliver output incrementally."""

    kind = ProviderKind.STREAMING

    @abstractmethod
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
        """Run a streamed model call.

        ``on_chunk`` receives visible text fragments as they arrive. Structured
        fragments are accumulated and only decoded after the stream ends, so
        the returned record has the same shape as :meth:`generate_response`.
        """
