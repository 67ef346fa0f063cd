"""Result values for expected domain failures.

Operations whose failure is part of normal control flow (a missing
predecessor document, a rejected state change, an empty update) return an
:class:`Outcome` instead of raising. Callers that prefer exceptions use
:meth:`Outcome.unwrap`, which raises the carried error.

Example:
    ```python
    outcome = assembler.assemble(artifact, is_update=False)
    if not outcome.ok:
        logger.info("Cannot build context: %s", outcome.error)
    bundle = outcome.unwrap()
    ```
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from artiforge_common.exceptions import ArtiforgeError

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Value-or-error result of a domain operation.

    Attributes:
        value: The produced value, ``None`` on failure.
        error: The domain error describing the failure, ``None`` on success.
    """

    value: T | None = None
    error: ArtiforgeError | None = None

    @property
    def ok(self) -> bool:
        """Whether the operation succeeded."""
        return self.error is None

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        """Create a successful outcome."""
        return cls(value=value)

    @classmethod
    def failure(cls, error: ArtiforgeError) -> Outcome[T]:
        """Create a failed outcome carrying ``error``."""
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value or raise the carried error.

        Raises:
            ArtiforgeError: The error this outcome carries.
        """
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
