"""Status Advisor — describes the current situation and what the next step will do.

Predictions use the scheduler's own target selection, so a "ready" report
names the same server the next assignment step will pick.
"""

from dataclasses import dataclass
from enum import Enum

from balancer.models.server import Server
from balancer.models.task import Task
from balancer.schedulers.least_loaded import LeastLoadedScheduler


class Situation(str, Enum):
    """Coarse simulation situations."""
    STOPPED = "stopped"         # Controller is paused
    IDLE = "idle"               # Nothing queued, nothing running
    PROCESSING = "processing"   # Queue drained, servers still hold tasks
    READY = "ready"             # Queue head fits on the target server
    BLOCKED = "blocked"         # Queue head must wait for completions


@dataclass(frozen=True)
class StatusReport:
    """Human-readable summary of the current state and the next action."""
    situation: Situation
    current: str
    next: str
    target_server_id: int | None = None
    units_to_free: int = 0


class StatusAdvisor:
    """Builds a StatusReport from servers and queue."""

    def describe(
        self, servers: list[Server], queue: list[Task], running: bool
    ) -> StatusReport:
        if not running:
            return StatusReport(
                situation=Situation.STOPPED,
                current="Simulation is stopped.",
                next="When started, tasks in the queue will be assigned to servers.",
            )

        if not queue:
            if all(s.is_idle for s in servers):
                return StatusReport(
                    situation=Situation.IDLE,
                    current="No tasks in queue and no active tasks. System is idle.",
                    next="Add tasks to see them assigned to servers.",
                )
            return StatusReport(
                situation=Situation.PROCESSING,
                current="All tasks have been assigned. Servers are processing tasks.",
                next="Each server with work will complete its oldest task.",
            )

        task = queue[0]
        target = LeastLoadedScheduler.select_target(servers)
        if target is None:
            return StatusReport(
                situation=Situation.BLOCKED,
                current=f"Task {task.label} ({task.weight} units) is waiting in queue.",
                next="No servers are configured.",
                units_to_free=task.weight,
            )

        if target.can_admit(task):
            return StatusReport(
                situation=Situation.READY,
                current=f"Task {task.label} ({task.weight} units) is waiting in queue.",
                next=(
                    f"Task {task.label} will be assigned to Server {target.id} "
                    f"(current load: {target.load_percent()}%). "
                    f"New load will be {target.load_percent(target.load + task.weight)}%."
                ),
                target_server_id=target.id,
            )

        missing = task.weight - target.available_capacity
        return StatusReport(
            situation=Situation.BLOCKED,
            current=(
                f"Task {task.label} ({task.weight} units) cannot be assigned yet. "
                f"Server {target.id} is at or near capacity."
            ),
            next=(
                f"System will wait for tasks to complete. Server {target.id} "
                f"needs {missing} more units freed."
            ),
            target_server_id=target.id,
            units_to_free=missing,
        )
