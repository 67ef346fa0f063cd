"""Shared fixtures for workflow tests."""

import pytest

from artiforge_common.settings import Settings
from artiforge_llm.providers import AIProviderFactory, EchoProvider
from artiforge_workflow import build_workflow, load_settings
from artiforge_workflow.catalog import TypeCatalog
from artiforge_workflow.repositories import create_memory_repositories
from artiforge_workflow.seed import IN_PROGRESS, reference_data


@pytest.fixture
def catalog():
    """Catalog loaded with the seeded reference data."""
    catalog = TypeCatalog()
    catalog.load(reference_data())
    return catalog


@pytest.fixture
def repositories():
    return create_memory_repositories()


@pytest.fixture
def echo():
    """Scriptable streaming echo provider."""
    return EchoProvider({"provider": "echo", "model": "echo-model", "options": {"chunk_size": 5}})


@pytest.fixture
def provider_factory(echo):
    factory = AIProviderFactory(Settings({"ai": {"default_provider": "echo", "providers": {}}}))
    factory.register_instance(echo, "echo")
    return factory


@pytest.fixture
async def workflow(tmp_path, repositories, provider_factory):
    """Fully wired workflow over in-memory storage and the echo provider."""
    settings = load_settings(
        {"ai": {"default_provider": "echo", "log_dir": str(tmp_path / "ai_logs")}},
        environ={},
    )
    wf = build_workflow(settings, repositories=repositories, provider_factory=provider_factory)
    await wf.initialize()
    yield wf
    await wf.close()


@pytest.fixture
def orchestrator(workflow):
    return workflow.orchestrator


class ArtifactSeeder:
    """Inserts artifacts with content directly through the repositories."""

    def __init__(self, repositories, catalog):
        self.repositories = repositories
        self.catalog = catalog

    async def add(self, project_id, type_name, content="content", state=IN_PROGRESS):
        artifact_type = self.catalog.get_artifact_type_by_name(type_name)
        artifact = await self.repositories.artifacts.create(
            project_id,
            artifact_type.id,
            f"{type_name} doc",
            self.catalog.get_artifact_state_id_by_name(state),
            content=content,
        )
        return await self.repositories.artifacts.find_by_id(artifact.id)


@pytest.fixture
def seeder(repositories, catalog):
    return ArtifactSeeder(repositories, catalog)
