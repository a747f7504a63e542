"""Lifecycle state of the process-wide schema service.

Used by `SchemaServiceManager` to track background initialization and by
the init status tool and ``/health`` route to report it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Final


class SchemaInitPhase(Enum):
    """Initialization phase for the schema service lifecycle."""

    IDLE = auto()
    STARTING = auto()
    RUNNING = auto()
    READY = auto()
    FAILED = auto()
    STOPPED = auto()


_PHASE_DESCRIPTIONS: Final[dict[SchemaInitPhase, str]] = {
    SchemaInitPhase.IDLE: "Starting: waiting for server lifespan.",
    SchemaInitPhase.STARTING: "Starting: creating database engine.",
    SchemaInitPhase.RUNNING: "Initializing: checking connectivity and resolving dialect.",
    SchemaInitPhase.READY: "Ready for queries.",
    SchemaInitPhase.FAILED: "Initialization failed; see error_message.",
    SchemaInitPhase.STOPPED: "Stopped.",
}


@dataclass(frozen=True)
class SchemaInitState:
    """Snapshot of initialization state with timestamps and error details."""

    phase: SchemaInitPhase
    started_at: float | None = None
    completed_at: float | None = None
    error_message: str | None = None
    attempts: int = 0

    @property
    def description(self) -> str:
        return _PHASE_DESCRIPTIONS[self.phase]


INIT_NOT_READY_PHASES: Final[set[SchemaInitPhase]] = {
    SchemaInitPhase.IDLE,
    SchemaInitPhase.STARTING,
    SchemaInitPhase.RUNNING,
}
