"""Job lifecycle transition rules."""

from app.errors import InvalidState
from app.schemas.job import JobState

TERMINAL_STATES: frozenset[JobState] = frozenset({JobState.COMPLETED, JobState.FAILED})
ACTIVE_STATES: frozenset[JobState] = frozenset({JobState.PENDING, JobState.PROCESSING})

# Completion from PENDING is legal: a worker report may land before submit() finishes.
_ALLOWED_TRANSITIONS: dict[JobState, set[JobState]] = {
    JobState.PENDING: {JobState.PROCESSING, JobState.COMPLETED, JobState.FAILED},
    JobState.PROCESSING: {JobState.COMPLETED, JobState.FAILED},
    JobState.COMPLETED: set(),
    JobState.FAILED: set(),
}


def is_terminal(state: JobState) -> bool:
    return state in TERMINAL_STATES


def allowed_next_states(state: JobState) -> list[JobState]:
    """Return deterministically ordered allowed successors for a state."""
    return sorted(_ALLOWED_TRANSITIONS.get(state, set()), key=lambda s: s.value)


def ensure_transition(old_state: JobState, new_state: JobState) -> None:
    """Validate transition according to lifecycle rules."""
    if new_state not in _ALLOWED_TRANSITIONS.get(old_state, set()):
        raise InvalidState(
            current_state=old_state.value,
            attempted_state=new_state.value,
            allowed_next_states=[state.value for state in allowed_next_states(old_state)],
        )
