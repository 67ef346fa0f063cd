"""Common building blocks shared by the artiforge packages.

- **Exceptions**: Unified exception hierarchy with context and 4xx/5xx classification
- **Outcome**: Value-or-error results for expected domain failures
- **Transitions**: Data-driven state graph validation
- **Settings**: YAML/dict settings with ``${VAR}`` substitution and env overrides

Example:
    ```python
    from artiforge_common import NotFoundError, Settings, TransitionValidator

    settings = Settings.load({"ai": {"default_provider": "anthropic"}})
    ```
"""

from artiforge_common.exceptions import (
    ArtiforgeError,
    ConfigurationError,
    NotFoundError,
    OperationError,
    ResourceError,
    ValidationError,
)
from artiforge_common.outcome import Outcome
from artiforge_common.settings import Settings, substitute_variables
from artiforge_common.transitions import InvalidTransitionError, TransitionValidator

__version__ = "0.1.0"

__all__ = [
    "ArtiforgeError",
    "ConfigurationError",
    "InvalidTransitionError",
    "NotFoundError",
    "OperationError",
    "Outcome",
    "ResourceError",
    "Settings",
    "TransitionValidator",
    "ValidationError",
    "substitute_variables",
]
