"""Tests for artiforge_common.transitions module."""

import pytest

from artiforge_common.exceptions import OperationError
from artiforge_common.transitions import InvalidTransitionError, TransitionValidator


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def artifact_states():
    """The seeded artifact lifecycle graph, keyed by state id."""
    return TransitionValidator.from_edges(
        "artifact_state",
        [(1, 2), (2, 3), (3, 2)],
        labels={1: "To Do", 2: "In Progress", 3: "Approved"},
    )


@pytest.fixture
def terminal_graph():
    """A graph where 'archived' has no outgoing edges."""
    return TransitionValidator("doc", {
        "draft":    {"review"},
        "review":   {"draft", "archived"},
        "archived": set(),
    })


# ---------------------------------------------------------------------------
# Valid transitions
# ---------------------------------------------------------------------------


class TestValidTransitions:

    def test_valid_transition_does_not_raise(self, artifact_states):
        artifact_states.validate(1, 2)
        artifact_states.validate(3, 2)

    def test_none_current_skips_validation(self, artifact_states):
        artifact_states.validate(None, 99)

    def test_check_success_carries_target(self, artifact_states):
        outcome = artifact_states.check(2, 3)
        assert outcome.ok
        assert outcome.value == 3


# ---------------------------------------------------------------------------
# Invalid transitions
# ---------------------------------------------------------------------------


class TestInvalidTransitions:

    def test_missing_edge_raises(self, artifact_states):
        with pytest.raises(InvalidTransitionError) as exc_info:
            artifact_states.validate(1, 3)
        err = exc_info.value
        assert err.current_state == 1
        assert err.target_state == 3
        assert err.allowed == {2}
        assert "To Do" in str(err)
        assert "Approved" in str(err)

    def test_terminal_state_rejects_everything(self, terminal_graph):
        outcome = terminal_graph.check("archived", "draft")
        assert not outcome.ok
        assert isinstance(outcome.error, InvalidTransitionError)
        assert "terminal" in str(outcome.error)

    def test_unknown_current_state(self, terminal_graph):
        with pytest.raises(InvalidTransitionError) as exc_info:
            terminal_graph.validate("ghost", "draft")
        assert exc_info.value.allowed is None
        assert "unknown current state" in str(exc_info.value)

    def test_is_operation_error_and_client_caused(self, artifact_states):
        with pytest.raises(OperationError) as exc_info:
            artifact_states.validate(1, 3)
        assert exc_info.value.client_error is True


# ---------------------------------------------------------------------------
# Graph introspection
# ---------------------------------------------------------------------------


class TestGraph:

    def test_states_and_terminals(self, terminal_graph):
        assert terminal_graph.states == {"draft", "review", "archived"}
        assert terminal_graph.terminal_states == {"archived"}

    def test_from_edges_registers_isolated_states(self):
        graph = TransitionValidator.from_edges("g", [(1, 2)], states=[1, 2, 5])
        assert graph.terminal_states == {2, 5}

    def test_targets_returns_copy(self, artifact_states):
        targets = artifact_states.targets(2)
        targets.add(1)
        assert artifact_states.targets(2) == {3}

    def test_label_falls_back_to_str(self, artifact_states):
        assert artifact_states.label(2) == "In Progress"
        assert artifact_states.label(9) == "9"
