"""AI provider adapters for artiforge.

Normalizes complete and streamed model calls across providers that answer
with tag-delimited text or with structured tool calls into one
content/commentary result.
"""

from artiforge_llm.base import (
    AIConfig,
    AIMessage,
    AIRequestResponse,
    ArtifactFormat,
    AsyncAIProvider,
    ModelCapability,
    ParsedResponse,
    ProviderKind,
    StreamingAIProvider,
    ToolCall,
    deliver_chunk,
    normalize_ai_config,
)
from artiforge_llm.exceptions import (
    EmptyArtifactContentError,
    ProviderError,
    StreamingUnsupportedError,
    UnknownProviderError,
)
from artiforge_llm.parsing import (
    check_response,
    extract_content_and_commentary,
    has_valid_artifact_content,
    parse_tool_calls,
    validate_and_format_response,
)
from artiforge_llm.providers import (
    AIProviderFactory,
    AnthropicFunctionCallingProvider,
    AnthropicProvider,
    EchoProvider,
    OpenAIFunctionCallingProvider,
    OpenAIProvider,
    StandardEchoProvider,
    create_ai_provider,
    list_providers,
)

__version__ = "0.1.0"

__all__ = [
    "AIConfig",
    "AIMessage",
    "AIProviderFactory",
    "AIRequestResponse",
    "AnthropicFunctionCallingProvider",
    "AnthropicProvider",
    "ArtifactFormat",
    "AsyncAIProvider",
    "EchoProvider",
    "EmptyArtifactContentError",
    "ModelCapability",
    "OpenAIFunctionCallingProvider",
    "OpenAIProvider",
    "ParsedResponse",
    "ProviderError",
    "ProviderKind",
    "StandardEchoProvider",
    "StreamingAIProvider",
    "StreamingUnsupportedError",
    "ToolCall",
    "UnknownProviderError",
    "check_response",
    "create_ai_provider",
    "deliver_chunk",
    "extract_content_and_commentary",
    "has_valid_artifact_content",
    "list_providers",
    "normalize_ai_config",
    "parse_tool_calls",
    "validate_and_format_response",
]
