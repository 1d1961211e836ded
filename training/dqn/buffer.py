import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

import numpy as np

from core.errors import ConfigurationError
from core.rules import Move


class EpisodeResult(str, Enum):
    """How an episode ended, from the trained agent's point of view."""
    WIN = 'win'
    LOSS = 'loss'
    DQ = 'dq'
    OPPONENT_DQ = 'opponent-dq'
    TIE = 'tie'


@dataclass(frozen=True)
class ReplayElement:
    """
    One transition seen by the trained agent.

    pre_move_board is the board the agent was asked to move on,
    post_move_board the board after its move and the opponent's reply.
    Both are read-only snapshots (see core.board.freeze_board).
    """
    agent_symbol: str
    pre_move_board: np.ndarray
    action: Move
    reward: float
    post_move_board: np.ndarray
    done: bool
    has_made_double_move_before: bool
    has_made_double_move_after: bool
    episode_result: Optional[EpisodeResult] = None


class ReplayMemory:
    """
    Fixed-capacity circular buffer of transitions.

    - append() overwrites the oldest slot once full
    - sample() returns nothing until the buffer has been filled once
    """

    def __init__(self, capacity: int, rng: Optional[random.Random] = None):
        """
        Args:
            capacity: Maximum number of transitions to store
            rng: Source of randomness for sampling (seed it for reproducible runs)
        """
        if not isinstance(capacity, int) or capacity <= 0:
            raise ConfigurationError(f"Replay memory capacity must be a positive integer, got {capacity!r}")

        self.capacity = capacity
        self.rng = rng or random.Random()

        # Circular buffer pointer
        self.head = 0
        self._size = 0
        self.memory: List[Any] = [None] * capacity

    def append(self, item: Any):
        """Store one transition at head and advance the pointer."""
        self.memory[self.head] = item
        self.head = (self.head + 1) % self.capacity
        self._size = min(self._size + 1, self.capacity)

    def sample(self, batch_size: int) -> List[Any]:
        """
        Sample `batch_size` distinct stored transitions.

        Args:
            batch_size: Number of transitions to sample

        Returns:
            List of transitions, or [] while the buffer is not yet full

        Raises:
            ValueError: batch_size is larger than the capacity
        """
        if batch_size > self.capacity:
            raise ValueError(f"Cannot sample {batch_size} elements from a memory of capacity {self.capacity}")

        if not self.full():
            return []

        indices = list(range(self.capacity))
        self.rng.shuffle(indices)
        return [self.memory[idx] for idx in indices[:batch_size]]

    def size(self) -> int:
        return self._size

    def full(self) -> bool:
        return self._size == self.capacity

    def __len__(self) -> int:
        """Return current number of stored transitions."""
        return self._size
