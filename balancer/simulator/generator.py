"""Task weight generator — the pluggable random source behind "add task"."""

import random
from typing import Optional, Protocol


class WeightSource(Protocol):
    """Anything that can hand out positive integer task weights."""

    def next_weight(self) -> int:
        ...


class TaskGenerator:
    """Draws uniform integer weights from [min_weight, max_weight] using a seeded RNG."""

    def __init__(self, min_weight: int = 10, max_weight: int = 39, seed: Optional[int] = None):
        if min_weight <= 0 or max_weight < min_weight:
            raise ValueError(
                f"Invalid weight range: [{min_weight}, {max_weight}]"
            )
        self.min_weight = min_weight
        self.max_weight = max_weight
        self.rng = random.Random(seed)

    def next_weight(self) -> int:
        return self.rng.randint(self.min_weight, self.max_weight)

    def weights(self, count: int) -> list[int]:
        """Draw `count` weights in order."""
        return [self.next_weight() for _ in range(count)]
