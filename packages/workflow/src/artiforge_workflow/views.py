"""View models returned by the orchestrator.

Plain dictionaries mirroring the entity fields, with every numeric id
serialized as a string and timestamps as ISO 8601.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Sequence

from artiforge_workflow.models import ArtifactState, ArtifactType, LoadedArtifact, Project


def _id(value: int | None) -> str | None:
    return None if value is None else str(value)


def _time(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def project_metadata(project: Project) -> Dict[str, Any]:
    return {
        "project_id": str(project.id),
        "name": project.name,
        "created_at": _time(project.created_at),
        "updated_at": _time(project.updated_at),
    }


def state_options(states: Iterable[ArtifactState]) -> List[Dict[str, str]]:
    """``[{state_id, state_name}]`` for a list of reachable states."""
    return [{"state_id": str(state.id), "state_name": state.name} for state in states]


def dependent_type_id(artifact_type: ArtifactType) -> str | None:
    """Id of the first type ``artifact_type`` depends on."""
    deps = artifact_type.dependency_type_ids
    return str(deps[0]) if deps else None


def artifact_item(loaded: LoadedArtifact, transitions: Sequence[ArtifactState]) -> Dict[str, Any]:
    """Entry of an existing artifact in a project view."""
    version = loaded.current_version
    return {
        "id": str(loaded.id),
        "name": loaded.name,
        "type": loaded.artifact_type.name,
        "type_id": str(loaded.artifact_type.id),
        "content": loaded.content,
        "version_number": _id(version.version_number if version else None),
        "state_id": str(loaded.state.id),
        "state_name": loaded.state.name,
        "available_transitions": state_options(transitions),
        "dependent_type_id": dependent_type_id(loaded.artifact_type),
    }


def placeholder_item(
    artifact_type: ArtifactType,
    state: ArtifactState | None,
    transitions: Sequence[ArtifactState],
) -> Dict[str, Any]:
    """Entry for a type with no artifact yet; it has no id."""
    return {
        "id": None,
        "name": f"New {artifact_type.name}",
        "type": artifact_type.name,
        "type_id": str(artifact_type.id),
        "content": None,
        "version_number": None,
        "state_id": _id(state.id if state else None),
        "state_name": state.name if state else None,
        "available_transitions": state_options(transitions),
        "dependent_type_id": dependent_type_id(artifact_type),
    }


def project_details(project: Project, artifacts: Dict[str, List[Dict[str, Any]]]) -> Dict[str, Any]:
    """Project metadata plus artifact entries grouped by phase name."""
    return dict(project_metadata(project), artifacts=artifacts)


def artifact_details(
    loaded: LoadedArtifact,
    transitions: Sequence[ArtifactState],
    messages: Sequence[Dict[str, str]] = (),
) -> Dict[str, Any]:
    """Detail view of one artifact with its chat messages in chronological order."""
    version = loaded.current_version
    return {
        "artifact": {
            "artifact_id": str(loaded.id),
            "artifact_type_id": str(loaded.artifact_type.id),
            "artifact_type_name": loaded.artifact_type.name,
            "artifact_version_number": _id(version.version_number if version else None),
            "artifact_version_content": loaded.content,
            "name": loaded.name,
            "state_id": str(loaded.state.id),
            "state_name": loaded.state.name,
            "available_transitions": state_options(transitions),
            "dependent_type_id": dependent_type_id(loaded.artifact_type),
        },
        "chat_completion": {"messages": list(messages)},
    }


def artifact_record(loaded: LoadedArtifact) -> Dict[str, Any]:
    """Flat record of an artifact row and its current version."""
    artifact = loaded.artifact
    version = loaded.current_version
    return {
        "artifact_id": str(artifact.id),
        "project_id": str(artifact.project_id),
        "artifact_type_id": str(artifact.artifact_type_id),
        "name": artifact.name,
        "state_id": str(artifact.state_id),
        "current_version_id": _id(artifact.current_version_id),
        "version_number": _id(version.version_number if version else None),
        "content": loaded.content,
        "created_at": _time(artifact.created_at),
        "updated_at": _time(artifact.updated_at),
    }
