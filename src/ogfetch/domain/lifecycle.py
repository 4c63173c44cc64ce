"""Per-document processing lifecycle.

    idle -> fetching -> normalizing -> planning -> serializing -> done
                     \\-> failed -> error_writing -> done

Precondition failures (invalid policy, missing document or URL) move
``idle -> failed`` directly. Retries inside the fetch engine are not
separate states.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class RunState(StrEnum):
    """States of one document-processing run."""

    IDLE = "idle"
    FETCHING = "fetching"
    NORMALIZING = "normalizing"
    PLANNING = "planning"
    SERIALIZING = "serializing"
    FAILED = "failed"
    ERROR_WRITING = "error_writing"
    DONE = "done"


RUN_TRANSITIONS: dict[str, list[str]] = {
    RunState.IDLE: [RunState.FETCHING, RunState.FAILED],
    RunState.FETCHING: [RunState.NORMALIZING, RunState.FAILED],
    RunState.NORMALIZING: [RunState.PLANNING, RunState.FAILED],
    RunState.PLANNING: [RunState.SERIALIZING, RunState.FAILED],
    RunState.SERIALIZING: [RunState.DONE, RunState.FAILED],
    RunState.FAILED: [RunState.ERROR_WRITING, RunState.DONE],
    RunState.ERROR_WRITING: [RunState.DONE],
    RunState.DONE: [],
}


class InvalidTransition(RuntimeError):
    """Raised on a transition not listed in :data:`RUN_TRANSITIONS`."""


@dataclass
class DocumentRun:
    """Tracks the state trail of a single run."""

    state: RunState = RunState.IDLE
    history: list[RunState] = field(default_factory=lambda: [RunState.IDLE])

    def advance(self, new_state: RunState) -> None:
        allowed = RUN_TRANSITIONS.get(self.state, [])
        if new_state not in allowed:
            msg = f"Invalid run transition: {self.state} -> {new_state}. Allowed: {allowed}"
            raise InvalidTransition(msg)
        self.state = new_state
        self.history.append(new_state)

    @property
    def finished(self) -> bool:
        return self.state is RunState.DONE

    def trail(self) -> list[str]:
        return [str(s) for s in self.history]
