"""Tests for TypeCatalog."""

import pytest

from artiforge_common.exceptions import NotFoundError, OperationError
from artiforge_workflow.catalog import ArtifactTypeInfo, TypeCatalog
from artiforge_workflow.exceptions import InvalidArtifactTypeError
from artiforge_workflow.repositories import create_memory_repositories


class TestInitialization:

    def test_uninitialized_catalog_refuses_lookups(self):
        catalog = TypeCatalog()
        assert not catalog.is_initialized
        with pytest.raises(OperationError, match="not been initialized"):
            catalog.get_artifact_type_info("Vision Document")

    @pytest.mark.asyncio
    async def test_initialize_from_reference_repository(self):
        catalog = TypeCatalog()
        await catalog.initialize(create_memory_repositories().reference)

        assert catalog.is_initialized
        assert [p.name for p in catalog.phases] == ["Requirements", "Design"]
        assert len(catalog.artifact_types) == 7
        assert "types=7" in repr(catalog)


class TestLookups:

    def test_type_info(self, catalog):
        assert catalog.get_artifact_type_info("Use Cases") == ArtifactTypeInfo(type_id=4, slug="use_cases")

    def test_unknown_type(self, catalog):
        assert catalog.find_artifact_type("Business Plan") is None
        with pytest.raises(InvalidArtifactTypeError, match="Invalid artifact type: Business Plan"):
            catalog.get_artifact_type_by_name("Business Plan")

    def test_artifact_format(self, catalog):
        fmt = catalog.get_artifact_format("c4_context")
        assert fmt.start_tag == "[C4_CONTEXT]"
        assert fmt.end_tag == "[/C4_CONTEXT]"
        assert fmt.syntax == "mermaid"
        assert fmt.commentary_start_tag == "[COMMENTARY]"

    def test_unknown_slug_gets_generic_format(self, catalog):
        fmt = catalog.get_artifact_format("business_plan")
        assert (fmt.start_tag, fmt.end_tag, fmt.syntax) == ("[ARTIFACT]", "[/ARTIFACT]", "markdown")

    def test_state_ids(self, catalog):
        assert catalog.get_artifact_state_id_by_name("To Do") == 1
        assert catalog.get_artifact_state_id_by_name("Approved") == 3
        with pytest.raises(NotFoundError, match="Invalid state: Done"):
            catalog.get_artifact_state_id_by_name("Done")

    def test_types_in_phase_are_ranked(self, catalog):
        design = catalog.types_in_phase(2)
        assert [t.name for t in design] == ["C4 Context", "C4 Container", "C4 Component"]

    def test_dependencies(self, catalog):
        c4_context = catalog.get_artifact_type_by_name("C4 Context")
        assert [t.name for t in catalog.dependencies(c4_context)] == ["Use Cases"]
        vision = catalog.get_artifact_type(1)
        assert catalog.dependencies(vision) == []

    def test_repeatable_types(self, catalog):
        repeatable = [t.name for t in catalog.artifact_types if t.repeatable]
        assert repeatable == ["Use Cases", "C4 Component"]
