"""Seed reference data for the software-engineering pipeline.

Type ids double as pipeline ranks: each type depends on the one before it,
and a later id means a later checkpoint.
"""

from artiforge_workflow.models import (
    ArtifactState,
    ArtifactType,
    LifecyclePhase,
    ReferenceData,
    StateTransition,
)

REQUIREMENTS = "Requirements"
DESIGN = "Design"

TODO = "To Do"
IN_PROGRESS = "In Progress"
APPROVED = "Approved"

VISION = "Vision Document"
FUNCTIONAL_REQUIREMENTS = "Functional Requirements"
NON_FUNCTIONAL_REQUIREMENTS = "Non-Functional Requirements"
USE_CASES = "Use Cases"
C4_CONTEXT = "C4 Context"
C4_CONTAINER = "C4 Container"
C4_COMPONENT = "C4 Component"

PHASES = [
    LifecyclePhase(id=1, name=REQUIREMENTS, order=1),
    LifecyclePhase(id=2, name=DESIGN, order=2),
]

STATES = [
    ArtifactState(id=1, name=TODO),
    ArtifactState(id=2, name=IN_PROGRESS),
    ArtifactState(id=3, name=APPROVED),
]

TRANSITIONS = [
    StateTransition(from_state_id=1, to_state_id=2),
    StateTransition(from_state_id=2, to_state_id=3),
    StateTransition(from_state_id=3, to_state_id=2),
]

ARTIFACT_TYPES = [
    ArtifactType(id=1, name=VISION, slug="vision", syntax="markdown", lifecycle_phase_id=1),
    ArtifactType(id=2, name=FUNCTIONAL_REQUIREMENTS, slug="functional_requirements",
                 syntax="markdown", lifecycle_phase_id=1, dependency_type_ids=(1,)),
    ArtifactType(id=3, name=NON_FUNCTIONAL_REQUIREMENTS, slug="non_functional_requirements",
                 syntax="markdown", lifecycle_phase_id=1, dependency_type_ids=(2,)),
    ArtifactType(id=4, name=USE_CASES, slug="use_cases", syntax="markdown",
                 lifecycle_phase_id=1, dependency_type_ids=(3,), repeatable=True),
    ArtifactType(id=5, name=C4_CONTEXT, slug="c4_context", syntax="mermaid",
                 lifecycle_phase_id=2, dependency_type_ids=(4,)),
    ArtifactType(id=6, name=C4_CONTAINER, slug="c4_container", syntax="mermaid",
                 lifecycle_phase_id=2, dependency_type_ids=(5,)),
    ArtifactType(id=7, name=C4_COMPONENT, slug="c4_component", syntax="mermaid",
                 lifecycle_phase_id=2, dependency_type_ids=(6,), repeatable=True),
]


def reference_data() -> ReferenceData:
    """Return the seeded phases, states, transitions and artifact types."""
    return ReferenceData(
        phases=list(PHASES),
        states=list(STATES),
        transitions=list(TRANSITIONS),
        artifact_types=list(ARTIFACT_TYPES),
    )
