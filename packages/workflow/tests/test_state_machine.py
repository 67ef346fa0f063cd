"""Tests for ArtifactStateMachine."""

import pytest

from artiforge_common.transitions import InvalidTransitionError
from artiforge_workflow.catalog import TypeCatalog
from artiforge_workflow.models import ArtifactState, ReferenceData, StateTransition
from artiforge_workflow.repositories import create_memory_repositories
from artiforge_workflow.seed import APPROVED, IN_PROGRESS, TODO, reference_data
from artiforge_workflow.state_machine import ArtifactStateMachine


@pytest.fixture
def machine(catalog, repositories):
    return ArtifactStateMachine(catalog, repositories.artifacts)


@pytest.fixture
async def artifact(repositories, seeder):
    project = await repositories.projects.create("P")
    return await seeder.add(project.id, "Vision Document", state=TODO)


def test_check_does_not_raise(machine):
    assert machine.check(1, 2).ok
    outcome = machine.check(1, 3)
    assert not outcome.ok
    assert isinstance(outcome.error, InvalidTransitionError)
    assert "cannot transition from 'To Do' to 'Approved'" in str(outcome.error)


def test_available_transitions(machine):
    assert [s.name for s in machine.available_transitions(2)] == [APPROVED]
    assert [s.name for s in machine.available_transitions(3)] == [IN_PROGRESS]


def test_seeded_graph_has_no_terminal_states(machine):
    assert machine.terminal_states == set()


@pytest.mark.asyncio
async def test_valid_transition_is_written(machine, artifact, repositories):
    updated = await machine.transition(artifact, 2)

    assert updated.state_id == 2
    stored = await repositories.artifacts.find_by_id(artifact.id)
    assert stored.state.name == IN_PROGRESS


@pytest.mark.asyncio
async def test_invalid_transition_leaves_state_unchanged(machine, artifact, repositories):
    with pytest.raises(InvalidTransitionError) as exc_info:
        await machine.transition(artifact, 3)

    assert exc_info.value.client_error
    stored = await repositories.artifacts.find_by_id(artifact.id)
    assert stored.artifact.state_id == 1


@pytest.mark.asyncio
async def test_transition_out_of_terminal_state_fails():
    seeded = reference_data()
    data = ReferenceData(
        phases=seeded.phases,
        states=seeded.states + [ArtifactState(id=4, name="Archived")],
        transitions=seeded.transitions + [StateTransition(from_state_id=3, to_state_id=4)],
        artifact_types=seeded.artifact_types,
    )
    repositories = create_memory_repositories(data)
    catalog = TypeCatalog()
    catalog.load(data)
    machine = ArtifactStateMachine(catalog, repositories.artifacts)
    project = await repositories.projects.create("P")
    created = await repositories.artifacts.create(project.id, 1, "Vision", 4, content="body")
    artifact = await repositories.artifacts.find_by_id(created.id)

    assert machine.terminal_states == {4}
    for target in (1, 2, 3):
        with pytest.raises(InvalidTransitionError, match="none, terminal"):
            await machine.transition(artifact, target)

    stored = await repositories.artifacts.find_by_id(artifact.id)
    assert stored.artifact.state_id == 4
    assert stored.state.name == "Archived"


@pytest.mark.asyncio
async def test_force_ignores_graph(machine, artifact):
    updated = await machine.force(artifact.id, APPROVED)
    assert updated.state_id == 3
