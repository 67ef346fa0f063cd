"""Provider and parsing errors for artiforge_llm."""

from typing import Any, Dict

from artiforge_common.exceptions import (
    ConfigurationError,
    OperationError,
    ResourceError,
    ValidationError,
)


class ProviderError(ResourceError):
    """Raised when a model API call fails (transport error or non-2xx status).

    Attributes:
        provider: Provider identifier
        status: HTTP status code, ``None`` for transport failures
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status: int | None = None,
        context: Dict[str, Any] | None = None,
    ):
        self.provider = provider
        self.status = status
        merged = {"provider": provider, "status": status}
        merged.update(context or {})
        super().__init__(message, context=merged)


class StreamingUnsupportedError(OperationError):
    """Raised when streaming is requested from a standard-only provider."""

    def __init__(self, provider: str | None = None):
        self.provider = provider
        super().__init__(
            "The selected AI provider does not support streaming",
            context={"provider": provider},
        )


class EmptyArtifactContentError(ValidationError):
    """Raised when an update response carries no artifact content."""

    def __init__(self, message: str = "Update response must contain artifact content"):
        super().__init__(message, context={"is_update": True})


class UnknownProviderError(ConfigurationError):
    """Raised when a provider identifier is not registered."""

    def __init__(self, provider: str, available: list[str]):
        self.provider = provider
        self.available = available
        super().__init__(
            f"Unknown provider: {provider}. Available providers: {available}",
            context={"provider": provider, "available": available},
        )
