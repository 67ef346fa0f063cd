"""Common exception hierarchy for all artiforge packages.

Every error raised by artiforge code derives from :class:`ArtiforgeError`,
which carries an optional context dictionary for structured error data and
a ``client_error`` classification used at service boundaries to decide
between a client-caused (4xx-like) and a server-side (5xx-like) response.

Example:
    ```python
    from artiforge_common.exceptions import ArtiforgeError, NotFoundError

    raise NotFoundError(
        "Artifact not found",
        context={"artifact_id": 42}
    )

    try:
        operation()
    except ArtiforgeError as e:
        status = 400 if e.client_error else 500
        logger.error("Error: %s (context=%s)", e, e.context)
    ```

Package-Specific Extensions:
    ```python
    from artiforge_common.exceptions import ValidationError

    class MissingDependencyError(ValidationError):
        '''Raised when a required predecessor artifact is absent.'''
        def __init__(self, type_name: str, message: str):
            super().__init__(message, context={"type_name": type_name})
    ```
"""

from typing import Any, Dict


class ArtiforgeError(Exception):
    """Base exception for all artiforge packages.

    Attributes:
        context: Dictionary containing contextual information about the error
        details: Alias for context
        client_error: Whether the error was caused by the caller's input
            rather than by a downstream or internal failure

    Args:
        message: Human-readable error message
        context: Optional dictionary with error context (IDs, names, etc.)
        details: Alternative to context (both are supported)

    Example:
        ```python
        error = ArtiforgeError(
            "Operation failed",
            context={"operation": "save", "artifact_id": 7}
        )
        str(error)
        # 'Operation failed'
        error.context
        # {'operation': 'save', 'artifact_id': 7}
        ```
    """

    client_error = False

    def __init__(
        self,
        message: str,
        context: Dict[str, Any] | None = None,
        details: Dict[str, Any] | None = None,
    ):
        """Initialize the exception with optional context.

        Args:
            message: Error message
            context: Optional context dictionary
            details: Optional details dictionary (takes precedence over context)
        """
        super().__init__(message)
        self.message = message
        self.context = details or context or {}
        self.details = self.context


class ValidationError(ArtiforgeError):
    """Raised when input or produced data fails validation.

    Example:
        ```python
        raise ValidationError(
            "Update response must contain artifact content",
            context={"is_update": True}
        )
        ```
    """

    client_error = True


class ConfigurationError(ArtiforgeError):
    """Raised when configuration is invalid or missing.

    Covers missing settings sections, unknown provider identifiers and
    absent prompt templates.
    """

    pass


class NotFoundError(ArtiforgeError):
    """Raised when a requested project, artifact or type does not exist.

    Example:
        ```python
        raise NotFoundError(
            "Project not found",
            context={"project_id": 3}
        )
        ```
    """

    client_error = True


class OperationError(ArtiforgeError):
    """Raised when an operation cannot be carried out in the current state."""

    pass


class ResourceError(ArtiforgeError):
    """Raised when an external resource (model API, storage) fails."""

    pass
