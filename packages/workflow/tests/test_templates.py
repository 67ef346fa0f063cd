"""Tests for ArtifactTemplateRenderer."""

import pytest

from artiforge_common.exceptions import ConfigurationError
from artiforge_workflow.context import ArtifactSummary, ContextBundle, ContextTier
from artiforge_workflow.templates import ArtifactTemplateRenderer


def bundle(type_name="Vision Document", type_id=1, phase="Requirements", is_update=False, **fields):
    return ContextBundle(
        project_name="Todo App",
        artifact=ArtifactSummary(
            artifact_id=7,
            artifact_type_id=type_id,
            artifact_type_name=type_name,
            artifact_phase=phase,
            name="Vision" if is_update else None,
            content="old body" if is_update else None,
        ),
        is_update=is_update,
        user_message="Make it shorter" if is_update else None,
        **fields,
    )


@pytest.fixture
def renderer(catalog):
    return ArtifactTemplateRenderer(catalog)


def test_new_artifact_prompts(renderer):
    result = renderer.get_artifact_input(bundle())

    assert "Todo App" in result.system_prompt
    assert "Vision Document" in result.system_prompt
    assert 'new Vision Document for the project "Todo App"' in result.template
    assert result.artifact_format.start_tag == "[VISION]"


def test_update_prompt_carries_content_and_request(renderer):
    result = renderer.get_artifact_input(bundle(is_update=True))

    assert "old body" in result.template
    assert "Make it shorter" in result.template


def test_design_phase_prompt_lists_use_cases(renderer):
    data = bundle(
        type_name="C4 Context", type_id=5, phase="Design", tier=ContextTier.USE_CASES,
        vision="V", functional_requirements="F", non_functional_requirements="N",
        use_cases=["Login flow", "Checkout flow"],
    )
    result = renderer.get_artifact_input(data)

    assert "Mermaid" in result.system_prompt
    assert "Login flow" in result.system_prompt
    assert "Checkout flow" in result.system_prompt
    assert result.artifact_format.syntax == "mermaid"


def test_template_names(renderer):
    assert renderer.system_template_name("Requirements") == "requirements-agent"
    assert renderer.system_template_name("Detailed Design") == "detailed-design-agent"
    assert renderer.user_template_name(True) == "artifact_update"
    assert renderer.user_template_name(False) == "artifact_new"


def test_missing_template_is_configuration_error(catalog, tmp_path):
    (tmp_path / "artifact_new.j2").write_text("hello")
    renderer = ArtifactTemplateRenderer(catalog, tmp_path)

    with pytest.raises(ConfigurationError, match="Template not found: requirements-agent.j2"):
        renderer.get_artifact_input(bundle())


def test_custom_template_directory(catalog, tmp_path):
    (tmp_path / "requirements-agent.j2").write_text("System for {{ project.name }}")
    (tmp_path / "artifact_new.j2").write_text("Start {{ artifact.artifact_type_name }}")
    renderer = ArtifactTemplateRenderer(catalog, tmp_path)

    result = renderer.get_artifact_input(bundle())

    assert result.system_prompt == "System for Todo App"
    assert result.template == "Start Vision Document"
