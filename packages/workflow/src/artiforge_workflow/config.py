"""Settings for a workflow deployment.

:func:`load_settings` layers caller sources over the packaged
``defaults.yaml``; :class:`WorkflowSettings` is the typed view of the
``workflow`` section.

Example:
    ```python
    settings = load_settings("artiforge.yaml", {"ai": {"log_dir": "ai_logs"}})
    workflow_settings = WorkflowSettings.from_settings(settings)
    ```
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

from artiforge_common.settings import Settings, SettingsSource

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

REQUIRED_SECTIONS = ("ai", "ai.providers", "workflow")


def load_settings(
    *sources: SettingsSource,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load the packaged defaults overlaid with ``sources``.

    Raises:
        ConfigurationError: If a required section is missing or not a mapping.
    """
    settings = Settings.load(DEFAULTS_PATH, *sources, environ=environ)
    for path in REQUIRED_SECTIONS:
        settings.section(path)
    return settings


@dataclass(frozen=True)
class WorkflowSettings:
    """Orchestrator tunables.

    Attributes:
        initial_state: State of a newly created artifact
        placeholder_state: State shown for types without an artifact yet
        active_state: State an artifact is forced into after an AI update
        history_pairs: Interaction pairs sent to the model on update
        detail_history: Interaction pairs shown in the detail view
    """
    initial_state: str = "In Progress"
    placeholder_state: str = "To Do"
    active_state: str = "In Progress"
    history_pairs: int = 3
    detail_history: int = 10

    @classmethod
    def from_settings(cls, settings: Settings | None) -> WorkflowSettings:
        if settings is None:
            return cls()
        section: dict[str, Any] = settings.get("workflow", {}) or {}
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in section.items() if k in known})
