"""Server model — a capacity-bounded machine holding an ordered list of tasks."""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from balancer.models.task import Task


class Server(BaseModel):
    """A server with a fixed capacity. Tasks are kept oldest first."""

    id: int = Field(description="Unique server identifier")
    capacity: int = Field(gt=0, description="Max load units the server can hold")
    load: int = Field(default=0, ge=0, description="Sum of assigned task weights")
    tasks: list[Task] = Field(default_factory=list, description="Assigned tasks, oldest first")

    @model_validator(mode="after")
    def _check_load(self) -> "Server":
        expected = sum(t.weight for t in self.tasks)
        if self.load != expected:
            raise ValueError(
                f"load {self.load} does not match task weights {expected}"
            )
        if self.load > self.capacity:
            raise ValueError(f"load {self.load} exceeds capacity {self.capacity}")
        return self

    @property
    def available_capacity(self) -> int:
        """Remaining capacity units."""
        return self.capacity - self.load

    @property
    def is_idle(self) -> bool:
        return not self.tasks

    def can_admit(self, task: Task) -> bool:
        """True if the task fits without exceeding capacity."""
        return self.load + task.weight <= self.capacity

    def load_percent(self, load: Optional[int] = None) -> float:
        """Load as a percentage of capacity, rounded to one decimal."""
        value = self.load if load is None else load
        return round(value / self.capacity * 100, 1)

    def assign_task(self, task: Task) -> None:
        """Append a task to the tail and grow the load."""
        self.load += task.weight
        self.tasks.append(task)

    def complete_oldest(self) -> Optional[Task]:
        """Remove the head task and shrink the load (never below zero)."""
        if not self.tasks:
            return None
        task = self.tasks.pop(0)
        self.load = max(0, self.load - task.weight)
        return task

    def __repr__(self) -> str:
        return (
            f"Server(id={self.id}, load={self.load}/{self.capacity}, "
            f"tasks={len(self.tasks)})"
        )
