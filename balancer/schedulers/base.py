"""Base Scheduler — abstract interface for step rules."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from balancer.models.log import AssignmentLogEntry, LogStatus
from balancer.models.server import Server
from balancer.models.task import Task


class StepKind(str, Enum):
    """What a single step did."""
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    IDLE = "idle"


@dataclass(frozen=True)
class StepResult:
    """Immutable outcome of one step: the next servers/queue plus the events it produced.

    log_entries are in event order (oldest first); the controller prepends
    them to the live log.
    """
    servers: list[Server]
    queue: list[Task]
    log_entries: list[AssignmentLogEntry]
    kind: StepKind

    @property
    def assigned_count(self) -> int:
        return sum(1 for e in self.log_entries if e.status == LogStatus.ASSIGNED)

    @property
    def completed_count(self) -> int:
        return sum(1 for e in self.log_entries if e.status == LogStatus.COMPLETED)


class BaseScheduler(ABC):
    """Abstract base class for step rules. Subclasses implement step()."""

    @abstractmethod
    def step(self, servers: list[Server], queue: list[Task]) -> StepResult:
        """Return the next state. Must not mutate the inputs."""
        ...

    @property
    def name(self) -> str:
        """Human-readable scheduler name for reports."""
        return self.__class__.__name__
