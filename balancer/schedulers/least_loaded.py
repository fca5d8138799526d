"""Least-loaded scheduler — assign the queue head, otherwise complete in-flight work."""

from datetime import datetime
from typing import Callable, Optional

from balancer.models.log import AssignmentLogEntry, LogStatus
from balancer.models.server import Server
from balancer.models.task import Task
from balancer.schedulers.base import BaseScheduler, StepKind, StepResult


class LeastLoadedScheduler(BaseScheduler):
    """One decision per step.

    1. Assignment: if some server can admit the queue head, the head goes to
       the minimum-load server (first in list order on ties). The target is
       not searched among feasible servers only; if it cannot admit the task
       nothing is assigned and the step falls through.
    2. Completion: every server holding tasks completes its oldest task.
       With no work anywhere the step is idle.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self.clock = clock

    def step(self, servers: list[Server], queue: list[Task]) -> StepResult:
        next_servers = [s.model_copy(deep=True) for s in servers]
        next_queue = list(queue)

        if next_queue and self.is_feasible(next_servers, next_queue[0]):
            target = self.select_target(next_servers)
            if target is not None and target.can_admit(next_queue[0]):
                task = next_queue.pop(0)
                entry = self._assign(target, task)
                return StepResult(next_servers, next_queue, [entry], StepKind.ASSIGNED)

        entries: list[AssignmentLogEntry] = []
        for server in next_servers:
            if server.is_idle:
                continue
            entries.append(self._complete(server))

        kind = StepKind.COMPLETED if entries else StepKind.IDLE
        return StepResult(next_servers, next_queue, entries, kind)

    @staticmethod
    def is_feasible(servers: list[Server], task: Task) -> bool:
        """True if any server could admit the task."""
        return any(s.can_admit(task) for s in servers)

    @staticmethod
    def select_target(servers: list[Server]) -> Optional[Server]:
        """Minimum-load server; min() keeps the first one on ties."""
        if not servers:
            return None
        return min(servers, key=lambda s: s.load)

    def _assign(self, server: Server, task: Task) -> AssignmentLogEntry:
        before = server.load
        server.assign_task(task)
        return self._entry(server, task, before, LogStatus.ASSIGNED)

    def _complete(self, server: Server) -> AssignmentLogEntry:
        before = server.load
        task = server.complete_oldest()
        return self._entry(server, task, before, LogStatus.COMPLETED)

    def _entry(
        self, server: Server, task: Task, before: int, status: LogStatus
    ) -> AssignmentLogEntry:
        return AssignmentLogEntry(
            timestamp=self.clock(),
            task_id=task.id,
            task_weight=task.weight,
            server_id=server.id,
            load_before=server.load_percent(before),
            load_after=server.load_percent(),
            status=status,
        )
