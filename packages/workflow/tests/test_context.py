"""Tests for ContextAssembler and ContextBundle."""

import pytest

from artiforge_workflow.context import ArtifactSummary, ContextAssembler, ContextBundle, ContextTier
from artiforge_workflow.exceptions import MissingDependencyError

PIPELINE = [
    "Vision Document",
    "Functional Requirements",
    "Non-Functional Requirements",
    "Use Cases",
    "C4 Context",
    "C4 Container",
    "C4 Component",
]


@pytest.fixture
def assembler(repositories, catalog):
    return ContextAssembler(repositories.artifacts, catalog)


@pytest.fixture
async def project(repositories):
    return await repositories.projects.create("P")


async def seed_through(seeder, project_id, last_type):
    """Insert one artifact with content for every type before ``last_type``."""
    for name in PIPELINE[:PIPELINE.index(last_type)]:
        await seeder.add(project_id, name, content=f"{name} body")


class TestMissingDependencies:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("type_name", PIPELINE[1:])
    async def test_types_past_vision_need_a_vision(self, assembler, seeder, project, type_name):
        artifact = await seeder.add(project.id, type_name, content=None)

        outcome = await assembler.assemble(artifact, is_update=False)

        assert not outcome.ok
        assert isinstance(outcome.error, MissingDependencyError)
        assert str(outcome.error) == "Vision document missing; a vision is requirement for context"

    @pytest.mark.asyncio
    async def test_vision_without_content_counts_as_missing(self, assembler, seeder, project):
        await seeder.add(project.id, "Vision Document", content="   ")
        requirements = await seeder.add(project.id, "Functional Requirements", content=None)

        with pytest.raises(MissingDependencyError, match="Vision document missing"):
            await assembler.get_context(requirements, is_update=False)

    @pytest.mark.asyncio
    async def test_predecessor_created_later_is_ignored(self, assembler, seeder, project):
        requirements = await seeder.add(project.id, "Functional Requirements", content=None)
        await seeder.add(project.id, "Vision Document")

        with pytest.raises(MissingDependencyError):
            await assembler.get_context(requirements, is_update=False)

    @pytest.mark.asyncio
    async def test_first_missing_predecessor_is_reported(self, assembler, seeder, project):
        await seeder.add(project.id, "Vision Document")
        await seeder.add(project.id, "Functional Requirements")
        container = await seeder.add(project.id, "C4 Container", content=None)

        with pytest.raises(MissingDependencyError) as exc_info:
            await assembler.get_context(container, is_update=False)
        assert exc_info.value.type_name == "Non-Functional Requirements"
        assert exc_info.value.client_error

    @pytest.mark.asyncio
    async def test_use_cases_without_content(self, assembler, seeder, project):
        await seed_through(seeder, project.id, "Use Cases")
        await seeder.add(project.id, "Use Cases", content="")
        c4_context = await seeder.add(project.id, "C4 Context", content=None)

        with pytest.raises(MissingDependencyError, match="No Use Cases with content found"):
            await assembler.get_context(c4_context, is_update=False)

    @pytest.mark.asyncio
    async def test_no_use_cases(self, assembler, seeder, project):
        await seed_through(seeder, project.id, "Use Cases")
        c4_context = await seeder.add(project.id, "C4 Context", content=None)

        with pytest.raises(MissingDependencyError, match="Use Cases missing"):
            await assembler.get_context(c4_context, is_update=False)


class TestAssembledContext:

    @pytest.mark.asyncio
    async def test_vision_always_succeeds(self, assembler, seeder, project):
        await seeder.add(project.id, "C4 Context")
        await seeder.add(project.id, "Use Cases")
        vision = await seeder.add(project.id, "Vision Document", content=None)

        bundle = await assembler.get_context(vision, is_update=False)

        assert bundle.tier is ContextTier.BASE
        assert bundle.predecessors == {}
        assert bundle.to_dict() == {
            "project": {"name": "P"},
            "artifact": {
                "artifact_id": vision.id,
                "artifact_type_id": 1,
                "artifact_type_name": "Vision Document",
                "artifact_phase": "Requirements",
            },
            "is_update": False,
            "user_message": None,
        }

    @pytest.mark.asyncio
    async def test_c4_context_sees_every_use_case(self, assembler, seeder, project):
        await seed_through(seeder, project.id, "Use Cases")
        await seeder.add(project.id, "Use Cases", content="Login")
        await seeder.add(project.id, "Use Cases", content="Checkout")
        c4_context = await seeder.add(project.id, "C4 Context", content=None)

        bundle = await assembler.get_context(c4_context, is_update=False)

        assert bundle.tier is ContextTier.USE_CASES
        assert sorted(bundle.use_cases) == ["Checkout", "Login"]
        assert bundle.vision == "Vision Document body"
        assert bundle.non_functional_requirements == "Non-Functional Requirements body"
        assert bundle.c4_context is None

    @pytest.mark.asyncio
    async def test_first_predecessor_is_authoritative(self, assembler, seeder, project):
        await seeder.add(project.id, "Vision Document", content="first")
        await seeder.add(project.id, "Vision Document", content="second")
        requirements = await seeder.add(project.id, "Functional Requirements", content=None)

        bundle = await assembler.get_context(requirements, is_update=False)
        assert bundle.vision == "first"
        assert bundle.tier is ContextTier.VISION

    @pytest.mark.asyncio
    async def test_use_cases_see_earlier_siblings(self, assembler, seeder, project):
        await seed_through(seeder, project.id, "Use Cases")
        first = await assembler.get_context(
            await seeder.add(project.id, "Use Cases", content=None), is_update=False
        )
        assert first.use_cases == []

        await seeder.add(project.id, "Use Cases", content="Login")
        second = await assembler.get_context(
            await seeder.add(project.id, "Use Cases", content=None), is_update=False
        )
        assert second.use_cases == ["Login"]
        assert second.tier is ContextTier.NON_FUNCTIONAL_REQUIREMENTS

    @pytest.mark.asyncio
    async def test_c4_component_gets_full_chain(self, assembler, seeder, project):
        await seed_through(seeder, project.id, "C4 Component")
        await seeder.add(project.id, "C4 Component", content="api")
        component = await seeder.add(project.id, "C4 Component", content=None)

        data = (await assembler.get_context(component, is_update=False)).to_dict()

        assert data["c4_container"] == "C4 Container body"
        assert data["c4_context"] == "C4 Context body"
        assert data["use_cases"] == ["Use Cases body"]
        assert data["c4_components"] == ["api"]

    @pytest.mark.asyncio
    async def test_update_includes_own_content_and_message(self, assembler, seeder, project):
        vision = await seeder.add(project.id, "Vision Document", content="draft")

        bundle = await assembler.get_context(vision, is_update=True, user_message="Shorter")

        assert bundle.is_update
        assert bundle.user_message == "Shorter"
        artifact = bundle.to_dict()["artifact"]
        assert artifact["name"] == "Vision Document doc"
        assert artifact["content"] == "draft"


def test_bundle_rejects_missing_tier_field():
    summary = ArtifactSummary(
        artifact_id=1, artifact_type_id=3,
        artifact_type_name="Non-Functional Requirements", artifact_phase="Requirements",
    )
    with pytest.raises(ValueError, match="functional_requirements"):
        ContextBundle(
            project_name="P", artifact=summary, is_update=False,
            tier=ContextTier.FUNCTIONAL_REQUIREMENTS, vision="v",
        )
