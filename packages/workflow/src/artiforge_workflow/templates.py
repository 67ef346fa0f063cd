"""Prompt rendering for artifact generation.

Templates are Jinja2 files in a single directory:

- ``<phase-slug>-agent.j2``: system prompt for every type of a phase
  (``requirements-agent.j2``, ``design-agent.j2``)
- ``artifact_new.j2``: user prompt for a kickoff call
- ``artifact_update.j2``: user prompt for an update call

Both kinds are rendered with :meth:`ContextBundle.to_dict`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

from jinja2 import Environment, FileSystemLoader, TemplateError, TemplateNotFound

from artiforge_common.exceptions import ConfigurationError
from artiforge_llm.base import ArtifactFormat
from artiforge_workflow.catalog import TypeCatalog
from artiforge_workflow.context import ContextBundle

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "prompt_templates"

NEW_ARTIFACT_TEMPLATE = "artifact_new"
UPDATE_ARTIFACT_TEMPLATE = "artifact_update"


def slugify_phase(phase: str) -> str:
    return phase.lower().replace(" ", "-")


@dataclass(frozen=True)
class TemplateInput:
    """Rendered prompts and tag format for one generation call."""
    system_prompt: str
    template: str
    artifact_format: ArtifactFormat


class ArtifactTemplateRenderer:
    """Renders system and user prompts from a :class:`ContextBundle`.

    Args:
        catalog: Initialized type catalog, used to look up tag formats
        template_dir: Directory of ``.j2`` files; defaults to the packaged set
    """

    def __init__(self, catalog: TypeCatalog, template_dir: Union[str, Path, None] = None):
        self.catalog = catalog
        self.template_dir = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR
        self._env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            # Prompt generation, not HTML
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def system_template_name(self, phase: str) -> str:
        return f"{slugify_phase(phase)}-agent"

    def user_template_name(self, is_update: bool) -> str:
        return UPDATE_ARTIFACT_TEMPLATE if is_update else NEW_ARTIFACT_TEMPLATE

    def render(self, name: str, params: Dict[str, Any]) -> str:
        """Render template ``name`` (without extension).

        Raises:
            ConfigurationError: If the template is missing or fails to render.
        """
        try:
            return self._env.get_template(f"{name}.j2").render(**params)
        except TemplateNotFound as e:
            raise ConfigurationError(
                f"Template not found: {name}.j2",
                context={"template": name, "template_dir": str(self.template_dir)},
            ) from e
        except TemplateError as e:
            raise ConfigurationError(
                f"Failed to render template {name}.j2: {e}", context={"template": name}
            ) from e

    def get_artifact_input(self, bundle: ContextBundle) -> TemplateInput:
        """Render both prompts for ``bundle`` and resolve the type's tag format.

        Raises:
            ConfigurationError: If a template is missing.
            InvalidArtifactTypeError: If the bundle names an unknown type.
        """
        params = bundle.to_dict()
        info = self.catalog.get_artifact_type_info(bundle.artifact.artifact_type_name)
        system_prompt = self.render(self.system_template_name(bundle.artifact.artifact_phase), params)
        user_prompt = self.render(self.user_template_name(bundle.is_update), params)
        logger.debug(
            "Rendered prompts for %s (update=%s)", bundle.artifact.artifact_type_name, bundle.is_update
        )
        return TemplateInput(
            system_prompt=system_prompt,
            template=user_prompt,
            artifact_format=self.catalog.get_artifact_format(info.slug),
        )
