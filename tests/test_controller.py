"""
Tests for the SimulationController.

These tests verify:
    1. start/stop/advance/rewind/reset lifecycle and their no-op guards
    2. Statistics: one total per assignment, one completion per event
    3. History: N advances give N+1 snapshots, rewind + replay restore state
    4. A new action after rewinding discards the redo branch
    5. Enqueue boundary validation (InvalidTaskError)
    6. Capacity invariants on long random runs and serialized concurrent calls
"""

import threading

import pytest

from balancer.config import Settings
from balancer.errors import InvalidTaskError
from balancer.models.log import LogStatus
from balancer.models.server import Server
from balancer.models.task import Task
from balancer.schedulers.base import StepKind
from balancer.simulator.controller import AdvanceOutcome, SimulationController
from balancer.simulator.generator import TaskGenerator
from balancer.simulator.status import Situation


class FixedWeights:
    """Weight source that replays a fixed sequence."""

    def __init__(self, weights: list[int]):
        self._weights = list(weights)

    def next_weight(self) -> int:
        return self._weights.pop(0)


class TestSimulationController:
    """Tests for the controller's commands and views."""

    def _make_controller(self, count: int = 3, capacity: int = 100,
                         weights: list[int] | None = None,
                         **kwargs) -> SimulationController:
        """Helper: `count` empty servers with ids 1..count."""
        servers = kwargs.pop(
            "servers", [Server(id=i + 1, capacity=capacity) for i in range(count)]
        )
        return SimulationController(
            servers=servers,
            weight_source=FixedWeights(weights or []),
            settings=Settings(),
            **kwargs,
        )

    # ── Lifecycle ─────────────────────────────────────────────────────

    def test_initial_state(self):
        ctrl = self._make_controller()
        assert not ctrl.is_running
        assert ctrl.cursor == -1
        assert ctrl.history_length == 0
        assert ctrl.queue == []
        assert ctrl.statistics.total_tasks == 0
        assert ctrl.status().situation == Situation.STOPPED

    def test_start_takes_initial_snapshot(self):
        ctrl = self._make_controller()
        assert ctrl.start()
        assert ctrl.is_running
        assert ctrl.history_length == 1
        assert ctrl.cursor == 0
        assert ctrl.current_step == 1

    def test_start_twice_is_noop(self):
        ctrl = self._make_controller()
        ctrl.start()
        assert not ctrl.start()
        assert ctrl.history_length == 1

    def test_restart_keeps_history(self):
        ctrl = self._make_controller()
        ctrl.start()
        ctrl.enqueue_task(10)
        ctrl.advance()
        assert ctrl.stop()
        assert not ctrl.stop()

        ctrl.start()
        assert ctrl.history_length == 2
        assert ctrl.cursor == 1

    def test_advance_while_stopped_is_noop(self):
        ctrl = self._make_controller()
        assert ctrl.advance() == AdvanceOutcome.NO_EFFECT
        assert ctrl.history_length == 0

        ctrl.start()
        ctrl.enqueue_task(10)
        ctrl.stop()
        assert ctrl.advance() == AdvanceOutcome.NO_EFFECT
        assert ctrl.history_length == 1
        assert len(ctrl.queue) == 1

    def test_enqueue_while_stopped_is_noop(self):
        ctrl = self._make_controller()
        assert ctrl.enqueue_task(10) is None
        assert ctrl.queue == []

    # ── Enqueue boundary ──────────────────────────────────────────────

    @pytest.mark.parametrize("weight", [0, -3, 2.5, "10", True])
    def test_invalid_weight_rejected(self, weight):
        ctrl = self._make_controller()
        ctrl.start()
        with pytest.raises(InvalidTaskError):
            ctrl.enqueue_task(weight)
        assert ctrl.queue == []

    def test_invalid_task_error_is_value_error(self):
        assert issubclass(InvalidTaskError, ValueError)

    def test_task_ids_are_sequential(self):
        ctrl = self._make_controller()
        ctrl.start()
        tasks = [ctrl.enqueue_task(w) for w in (10, 20, 30)]
        assert [t.id for t in tasks] == [1, 2, 3]
        assert ctrl.queue == tasks

    def test_add_tasks_uses_weight_source(self):
        ctrl = self._make_controller(weights=[11, 12, 13, 14, 15])
        ctrl.start()

        added = ctrl.add_tasks()

        assert [t.weight for t in added] == [11, 12, 13, 14, 15]
        assert len(ctrl.queue) == 5

    def test_add_task_while_stopped(self):
        ctrl = self._make_controller(weights=[10])
        assert ctrl.add_task() is None
        assert ctrl.add_tasks(3) == []

    # ── Scenarios ─────────────────────────────────────────────────────

    def test_first_task_goes_to_first_server(self):
        ctrl = self._make_controller()
        ctrl.start()
        ctrl.enqueue_task(30)

        assert ctrl.advance() == AdvanceOutcome.STEPPED

        servers = ctrl.servers
        assert ctrl.last_step_kind == StepKind.ASSIGNED
        assert servers[0].load == 30
        assert [t.id for t in servers[0].tasks] == [1]
        assert ctrl.queue == []
        assert ctrl.statistics.total_tasks == 1
        assert ctrl.statistics.average_load == 10.0

    def test_infeasible_task_waits_for_completion(self):
        ctrl = self._make_controller(
            servers=[Server(id=1, capacity=100, load=90, tasks=[Task(id=1, weight=90)])],
            queue=[Task(id=2, weight=20)],
        )
        ctrl.start()

        ctrl.advance()

        assert ctrl.last_step_kind == StepKind.COMPLETED
        assert ctrl.servers[0].load == 0
        assert ctrl.servers[0].tasks == []
        assert ctrl.statistics.completed_tasks == 1
        assert ctrl.queue == [Task(id=2, weight=20)]

        # Next id continues after the seeded tasks
        assert ctrl.enqueue_task(5).id == 3

    def test_completion_counts_every_event(self):
        ctrl = self._make_controller()
        ctrl.start()
        ctrl.enqueue_task(30)
        ctrl.enqueue_task(20)
        ctrl.advance()  # T1 -> server 1
        ctrl.advance()  # T2 -> server 2
        ctrl.advance()  # both complete

        stats = ctrl.statistics
        assert stats.total_tasks == 2
        assert stats.completed_tasks == 2
        assert stats.average_load == 0.0

    def test_log_is_most_recent_first(self):
        ctrl = self._make_controller()
        ctrl.start()
        ctrl.enqueue_task(30)
        ctrl.enqueue_task(20)
        for _ in range(3):
            ctrl.advance()

        log = ctrl.log
        assert [(e.task_id, e.status) for e in log] == [
            (2, LogStatus.COMPLETED),
            (1, LogStatus.COMPLETED),
            (2, LogStatus.ASSIGNED),
            (1, LogStatus.ASSIGNED),
        ]
        assert [e.server_id for e in log] == [2, 1, 2, 1]

    def test_idle_step_still_recorded(self):
        ctrl = self._make_controller()
        ctrl.start()

        assert ctrl.advance() == AdvanceOutcome.STEPPED
        assert ctrl.last_step_kind == StepKind.IDLE
        assert ctrl.log == []
        assert ctrl.history_length == 2

    # ── History ───────────────────────────────────────────────────────

    def test_history_linearity(self):
        ctrl = self._make_controller()
        ctrl.start()
        for w in (10, 20, 30):
            ctrl.enqueue_task(w)

        n = 7
        for _ in range(n):
            ctrl.advance()

        assert ctrl.history_length == n + 1
        assert ctrl.cursor == n

    def test_rewind_restores_previous_state(self):
        ctrl = self._make_controller()
        ctrl.start()
        ctrl.enqueue_task(30)
        before = ctrl.state()

        ctrl.advance()
        assert ctrl.rewind()

        assert ctrl.cursor == 0
        assert ctrl.servers == before.servers
        assert ctrl.statistics == before.statistics
        assert ctrl.log == []

    def test_rewind_at_start_is_noop(self):
        ctrl = self._make_controller()
        assert not ctrl.rewind()
        ctrl.start()
        assert not ctrl.rewind()
        assert ctrl.cursor == 0

    def test_replay_after_rewind(self):
        """Advancing behind the latest snapshot replays without recomputing."""
        ctrl = self._make_controller()
        ctrl.start()
        for w in (30, 20, 10):
            ctrl.enqueue_task(w)
        for _ in range(4):
            ctrl.advance()
        latest = ctrl.state()

        ctrl.rewind()
        ctrl.rewind()
        assert ctrl.is_viewing_history
        assert ctrl.can_advance

        assert ctrl.advance() == AdvanceOutcome.REPLAYED
        assert ctrl.advance() == AdvanceOutcome.REPLAYED

        assert not ctrl.is_viewing_history
        assert ctrl.history_length == 5
        assert ctrl.servers == latest.servers
        assert ctrl.queue == latest.queue
        assert ctrl.statistics == latest.statistics
        assert len(ctrl.log) == len(latest.log)

    def test_rewind_works_while_stopped(self):
        ctrl = self._make_controller()
        ctrl.start()
        ctrl.enqueue_task(10)
        ctrl.advance()
        ctrl.stop()

        assert ctrl.rewind()
        assert ctrl.cursor == 0
        assert ctrl.advance() == AdvanceOutcome.NO_EFFECT

    def test_new_action_after_rewind_truncates(self):
        """Rewind k, enqueue, advance: snapshot count is (cursor - k + 1) + 1."""
        ctrl = self._make_controller()
        ctrl.start()
        for w in (30, 20, 10):
            ctrl.enqueue_task(w)
        for _ in range(5):
            ctrl.advance()
        previous_cursor = ctrl.cursor
        k = 2
        for _ in range(k):
            ctrl.rewind()

        ctrl.enqueue_task(15)
        assert not ctrl.is_viewing_history

        assert ctrl.advance() == AdvanceOutcome.STEPPED
        assert ctrl.history_length == (previous_cursor - k + 1) + 1
        assert ctrl.cursor == ctrl.history_length - 1

    def test_restored_state_does_not_alias_history(self):
        ctrl = self._make_controller()
        ctrl.start()
        ctrl.enqueue_task(30)
        ctrl.advance()
        stored = ctrl.history.snapshot(1).state

        ctrl.rewind()
        ctrl.advance()  # replay snapshot 1
        ctrl.enqueue_task(40)
        ctrl.advance()  # mutates live state computed from the replayed one

        assert ctrl.history.snapshot(1).state == stored

    def test_task_ids_survive_rewind(self):
        ctrl = self._make_controller()
        ctrl.start()
        ctrl.enqueue_task(10)
        ctrl.advance()
        ctrl.rewind()

        assert ctrl.enqueue_task(10).id == 2

    # ── Reset ─────────────────────────────────────────────────────────

    def test_reset_clears_everything(self):
        ctrl = self._make_controller()
        ctrl.start()
        for w in (30, 20, 10):
            ctrl.enqueue_task(w)
        for _ in range(4):
            ctrl.advance()
        ctrl.rewind()

        ctrl.reset()

        assert not ctrl.is_running
        assert all(s.load == 0 and s.tasks == [] for s in ctrl.servers)
        assert [s.id for s in ctrl.servers] == [1, 2, 3]
        assert ctrl.queue == []
        assert ctrl.statistics.total_tasks == 0
        assert ctrl.statistics.completed_tasks == 0
        assert ctrl.statistics.average_load == 0.0
        assert ctrl.log == []
        assert ctrl.history_length == 0
        assert ctrl.cursor == -1
        assert ctrl.last_step_kind is None

        ctrl.start()
        assert ctrl.enqueue_task(10).id == 1

    # ── Views ─────────────────────────────────────────────────────────

    def test_can_advance(self):
        ctrl = self._make_controller()
        assert not ctrl.can_advance
        ctrl.start()
        assert not ctrl.can_advance

        ctrl.enqueue_task(10)
        assert ctrl.can_advance
        ctrl.advance()
        assert ctrl.can_advance  # server 1 still holds T1
        ctrl.advance()
        assert not ctrl.can_advance

    def test_views_are_copies(self):
        ctrl = self._make_controller()
        ctrl.start()
        ctrl.servers[0].assign_task(Task(id=9, weight=10))
        ctrl.queue.append(Task(id=9, weight=10))

        assert ctrl.servers[0].load == 0
        assert ctrl.queue == []

    # ── Invariants ────────────────────────────────────────────────────

    def test_capacity_invariant_random_run(self):
        ctrl = SimulationController(
            servers=[Server(id=i + 1, capacity=100) for i in range(3)],
            weight_source=TaskGenerator(seed=7),
            settings=Settings(),
        )
        ctrl.start()
        ctrl.add_tasks(20)

        for step in range(80):
            if step % 10 == 0:
                ctrl.add_tasks(3)
            ctrl.advance()
            for s in ctrl.servers:
                assert s.load <= s.capacity
                assert s.load == sum(t.weight for t in s.tasks)

        stats = ctrl.statistics
        assert stats.completed_tasks <= stats.total_tasks

    def test_concurrent_advances_are_serialized(self):
        ctrl = self._make_controller()
        ctrl.start()
        for w in (10, 20, 30, 40):
            ctrl.enqueue_task(w)

        def worker():
            for _ in range(25):
                ctrl.advance()

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert ctrl.history_length == 101
        assert ctrl.cursor == 100
        assert ctrl.statistics.total_tasks == 4
        assert ctrl.statistics.completed_tasks == 4
