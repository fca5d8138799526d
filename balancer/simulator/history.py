"""History Manager — linear snapshot stack with a cursor for undo/redo navigation.

Every stored snapshot is a deep copy of the live state, and every restore
hands out another deep copy, so live mutation can never reach into history.
Taking a new step after rewinding discards the redo branch.
"""

from typing import Optional

from balancer.models.state import SimulationState, Snapshot


class HistoryManager:
    """Snapshots indexed 0..n-1 with a cursor; cursor == -1 means empty."""

    def __init__(self):
        self._snapshots: list[Snapshot] = []
        self._cursor: int = -1

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def latest_index(self) -> int:
        return len(self._snapshots) - 1

    @property
    def is_at_latest(self) -> bool:
        """True when no redo branch exists ahead of the cursor."""
        return self._cursor == self.latest_index

    @property
    def can_go_back(self) -> bool:
        return self._cursor > 0

    @property
    def can_go_forward(self) -> bool:
        return self._cursor < self.latest_index

    def push(self, state: SimulationState) -> Snapshot:
        """Store a copy of `state` after the cursor, dropping any redo branch first."""
        self.truncate()
        snapshot = Snapshot(
            step_number=len(self._snapshots),
            state=state.copy_deep(),
        )
        self._snapshots.append(snapshot)
        self._cursor = snapshot.step_number
        return snapshot

    def goto(self, index: int) -> SimulationState:
        """Move the cursor to `index` and return a private copy of that state."""
        if not 0 <= index < len(self._snapshots):
            raise IndexError(f"snapshot index {index} out of range 0..{self.latest_index}")
        self._cursor = index
        return self._snapshots[index].state.copy_deep()

    def back(self) -> Optional[SimulationState]:
        """Restore the previous snapshot, or None at the earliest one."""
        if not self.can_go_back:
            return None
        return self.goto(self._cursor - 1)

    def forward(self) -> Optional[SimulationState]:
        """Replay the next stored snapshot, or None at the latest one."""
        if not self.can_go_forward:
            return None
        return self.goto(self._cursor + 1)

    def truncate(self) -> int:
        """Discard every snapshot after the cursor. Returns how many were dropped."""
        dropped = len(self._snapshots) - (self._cursor + 1)
        if dropped > 0:
            del self._snapshots[self._cursor + 1:]
        return max(dropped, 0)

    def snapshot(self, index: int) -> Snapshot:
        """Read-only access to a stored snapshot (a copy)."""
        return self._snapshots[index].model_copy(deep=True)

    def clear(self) -> None:
        self._snapshots.clear()
        self._cursor = -1
