"""Simulation state — the single owned struct the controller mutates, and its snapshots."""

from pydantic import BaseModel, ConfigDict, Field

from balancer.models.log import AssignmentLogEntry
from balancer.models.server import Server
from balancer.models.task import Task


class Statistics(BaseModel):
    """Derived aggregates, recomputed after every step."""

    model_config = ConfigDict(frozen=True)

    total_tasks: int = Field(default=0, ge=0, description="Successful assignments so far")
    completed_tasks: int = Field(default=0, ge=0, description="Completion events so far")
    average_load: float = Field(default=0.0, ge=0, description="Mean server load")


class SimulationState(BaseModel):
    """Servers, queue, statistics and log (most recent first)."""

    servers: list[Server] = Field(default_factory=list)
    queue: list[Task] = Field(default_factory=list)
    statistics: Statistics = Field(default_factory=Statistics)
    log: list[AssignmentLogEntry] = Field(default_factory=list)

    def copy_deep(self) -> "SimulationState":
        return self.model_copy(deep=True)


class Snapshot(BaseModel):
    """Immutable copy of a simulation state tagged with its step number."""

    model_config = ConfigDict(frozen=True)

    step_number: int = Field(ge=0)
    state: SimulationState
