"""Simulation Controller — the single entry point that drives steps and history.

The controller owns the live SimulationState. Every state transition goes
through the scheduler (new steps) or the history manager (navigation), and
each command runs under one lock so callers never interleave.
"""

import threading
from enum import Enum
from typing import Optional

from pydantic import ValidationError

from balancer.config import Settings, get_logger, load_settings
from balancer.errors import InvalidTaskError
from balancer.metrics.collector import StatisticsCollector
from balancer.models.log import AssignmentLogEntry
from balancer.models.server import Server
from balancer.models.state import SimulationState, Statistics
from balancer.models.task import Task
from balancer.schedulers.base import BaseScheduler, StepKind
from balancer.schedulers.least_loaded import LeastLoadedScheduler
from balancer.simulator.generator import TaskGenerator, WeightSource
from balancer.simulator.history import HistoryManager
from balancer.simulator.status import StatusAdvisor, StatusReport

logger = get_logger(__name__)


class AdvanceOutcome(str, Enum):
    """What a call to advance() did."""
    STEPPED = "stepped"       # Scheduler ran and a snapshot was pushed
    REPLAYED = "replayed"     # Restored the next stored snapshot
    NO_EFFECT = "no_effect"   # Stopped, nothing changed


class SimulationController:
    """Run/pause state, queue mutation, stepping and time-travel navigation."""

    def __init__(
        self,
        servers: Optional[list[Server]] = None,
        queue: Optional[list[Task]] = None,
        scheduler: Optional[BaseScheduler] = None,
        weight_source: Optional[WeightSource] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or load_settings()
        self.scheduler = scheduler or LeastLoadedScheduler()
        self.weight_source = weight_source or TaskGenerator(
            min_weight=self.settings.min_task_weight,
            max_weight=self.settings.max_task_weight,
            seed=self.settings.seed,
        )
        self.collector = StatisticsCollector()
        self.advisor = StatusAdvisor()
        self.history = HistoryManager()
        self.last_step_kind: Optional[StepKind] = None

        if servers is None:
            servers = [
                Server(id=i + 1, capacity=self.settings.server_capacity)
                for i in range(self.settings.server_count)
            ]
        # Reset restores empty copies of the configured pool and drops any seed queue.
        self._initial_servers = [
            Server(id=s.id, capacity=s.capacity) for s in servers
        ]

        queue = list(queue or [])
        known_ids = [t.id for t in queue] + [t.id for s in servers for t in s.tasks]

        self._lock = threading.RLock()
        self._running = False
        self._next_task_id = max(known_ids, default=0) + 1
        self._state = SimulationState(
            servers=[s.model_copy(deep=True) for s in servers],
            queue=queue,
        )
        self._state.statistics = self.collector.calculate(
            Statistics(), self._state.servers
        )

    # ── Commands ──────────────────────────────────────────────────────

    def start(self) -> bool:
        """Switch to running. The first start records snapshot 0."""
        with self._lock:
            if self._running:
                return False
            self._running = True
            if len(self.history) == 0:
                self.history.push(self._state)
            logger.info("Simulation started at step %d", self.history.cursor)
            return True

    def stop(self) -> bool:
        """Pause without touching state or history."""
        with self._lock:
            if not self._running:
                return False
            self._running = False
            logger.info("Simulation paused at step %d", self.history.cursor)
            return True

    def enqueue_task(self, weight: int) -> Optional[Task]:
        """Append a new task to the queue. Returns None while stopped.

        Raises InvalidTaskError for a non-integer or non-positive weight.
        """
        with self._lock:
            try:
                task = Task(id=self._next_task_id, weight=weight)
            except ValidationError as exc:
                raise InvalidTaskError(f"Invalid task weight: {weight!r}") from exc
            if not self._running:
                return None

            if not self.history.is_at_latest:
                # A new action while viewing history ends the redo branch.
                dropped = self.history.truncate()
                logger.debug("Enqueue while rewound dropped %d snapshots", dropped)

            self._next_task_id += 1
            self._state.queue.append(task)
            logger.debug("Enqueued %s (weight=%d)", task.label, task.weight)
            return task

    def add_task(self) -> Optional[Task]:
        """Enqueue one task with a generated weight."""
        with self._lock:
            if not self._running:
                return None
            return self.enqueue_task(self.weight_source.next_weight())

    def add_tasks(self, count: Optional[int] = None) -> list[Task]:
        """Enqueue a batch of generated tasks (settings.batch_size by default)."""
        if count is None:
            count = self.settings.batch_size
        with self._lock:
            added: list[Task] = []
            for _ in range(count):
                task = self.add_task()
                if task is None:
                    break
                added.append(task)
            return added

    def advance(self) -> AdvanceOutcome:
        """Take one step forward: replay a stored snapshot or compute a new one."""
        with self._lock:
            if not self._running:
                return AdvanceOutcome.NO_EFFECT

            if not self.history.is_at_latest:
                self._state = self.history.forward()
                logger.debug("Replayed snapshot %d", self.history.cursor)
                return AdvanceOutcome.REPLAYED

            result = self.scheduler.step(self._state.servers, self._state.queue)
            self.last_step_kind = result.kind
            self._state.servers = result.servers
            self._state.queue = result.queue
            self._state.log = self._prepend(result.log_entries, self._state.log)
            self._state.statistics = self.collector.calculate(
                self._state.statistics, self._state.servers, result
            )
            snapshot = self.history.push(self._state)
            logger.debug(
                "Step %d: %s (%d events)",
                snapshot.step_number, result.kind.value, len(result.log_entries),
            )
            return AdvanceOutcome.STEPPED

    def rewind(self) -> bool:
        """Restore the previous snapshot. No effect at the earliest one."""
        with self._lock:
            state = self.history.back()
            if state is None:
                return False
            self._state = state
            logger.debug("Rewound to snapshot %d", self.history.cursor)
            return True

    def reset(self) -> None:
        """Back to empty servers, empty queue, zero statistics, no history, paused."""
        with self._lock:
            self._running = False
            self._next_task_id = 1
            self.last_step_kind = None
            self.history.clear()
            servers = [s.model_copy(deep=True) for s in self._initial_servers]
            self._state = SimulationState(
                servers=servers,
                statistics=self.collector.calculate(Statistics(), servers),
            )
            logger.info("Simulation reset")

    # ── Read-only views ───────────────────────────────────────────────

    def state(self) -> SimulationState:
        """A private copy of the full live state."""
        with self._lock:
            return self._state.copy_deep()

    @property
    def servers(self) -> list[Server]:
        return [s.model_copy(deep=True) for s in self._state.servers]

    @property
    def queue(self) -> list[Task]:
        return list(self._state.queue)

    @property
    def statistics(self) -> Statistics:
        return self._state.statistics

    @property
    def log(self) -> list[AssignmentLogEntry]:
        return list(self._state.log)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def cursor(self) -> int:
        return self.history.cursor

    @property
    def history_length(self) -> int:
        return len(self.history)

    @property
    def current_step(self) -> int:
        """1-based step number for display."""
        return self.history.cursor + 1

    @property
    def is_viewing_history(self) -> bool:
        return not self.history.is_at_latest

    @property
    def can_rewind(self) -> bool:
        return self.history.can_go_back

    @property
    def can_advance(self) -> bool:
        """False when stopped, or at the latest snapshot with nothing left to do."""
        if not self._running:
            return False
        if self.history.can_go_forward:
            return True
        return bool(self._state.queue) or any(
            not s.is_idle for s in self._state.servers
        )

    def status(self) -> StatusReport:
        with self._lock:
            return self.advisor.describe(
                self._state.servers, self._state.queue, self._running
            )

    def print_report(self) -> None:
        """Render the live state with rich."""
        with self._lock:
            self.collector.print_report(
                self._state,
                step=self.current_step,
                history_length=self.history_length,
                status=self.status(),
            )

    @staticmethod
    def _prepend(
        entries: list[AssignmentLogEntry], log: list[AssignmentLogEntry]
    ) -> list[AssignmentLogEntry]:
        """Newest event first: the last event of a step lands at the head."""
        return list(reversed(entries)) + log
