"""Workflow errors.

All derive from the common hierarchy, so ``client_error`` tells a boundary
layer whether to answer with a 4xx- or 5xx-class response.
"""

from artiforge_common.exceptions import NotFoundError, ValidationError


class MissingDependencyError(ValidationError):
    """Raised when a mandatory predecessor artifact is absent or empty.

    Attributes:
        type_name: Name of the missing predecessor type
    """

    def __init__(self, type_name: str, message: str | None = None):
        self.type_name = type_name
        super().__init__(
            message or f"{type_name} missing; {type_name} is required context",
            context={"type_name": type_name},
        )


class ProjectNotFoundError(NotFoundError):
    """Raised when a project id does not exist."""

    def __init__(self, project_id):
        self.project_id = project_id
        super().__init__(
            f"Project with id {project_id} not found", context={"project_id": project_id}
        )


class ArtifactNotFoundError(NotFoundError):
    """Raised when an artifact id does not exist."""

    def __init__(self, artifact_id):
        self.artifact_id = artifact_id
        super().__init__(
            f"Artifact with id {artifact_id} not found", context={"artifact_id": artifact_id}
        )


class InvalidArtifactTypeError(NotFoundError):
    """Raised when an artifact type name is not in the catalog."""

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(
            f"Invalid artifact type: {type_name}", context={"type_name": type_name}
        )


class DuplicateArtifactError(ValidationError):
    """Raised when a project already holds a non-repeatable artifact type."""

    def __init__(self, type_name: str, project_id: int):
        self.type_name = type_name
        self.project_id = project_id
        super().__init__(
            f"Project already has an artifact of type '{type_name}'",
            context={"type_name": type_name, "project_id": project_id},
        )
