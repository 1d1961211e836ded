"""Random opponent, also used as the exploration policy of the DQN agent."""
import random
from typing import Optional

import numpy as np

from core.board import free_positions, free_slot_count
from core.errors import ExhaustionError
from core.rules import Move, TicTacTwoRules


class RandomAgent:
    """
    Plays a uniformly random free cell.

    While its double move is unused it plays one with probability
    `double_move_prob`: two random free cells, where the same cell is only
    allowed twice if it still has two free slots.
    """

    def __init__(
        self,
        symbol: str = 'x',
        name: str = 'random',
        double_move_prob: float = 0.25,
        rng: Optional[random.Random] = None,
    ):
        self.symbol = symbol
        self.name = name
        self.double_move_prob = double_move_prob
        self.rng = rng or random.Random()
        self.has_made_double_move = False

    def init(self):
        pass

    def start_game(self):
        self.has_made_double_move = False

    def move(self, board: np.ndarray, opponent_has_made_double_move: bool = False) -> Move:
        free = free_positions(board)
        if not free:
            raise ExhaustionError(f"No legal moves: {TicTacTwoRules.describe(board)}")

        if not self.has_made_double_move and self.rng.random() < self.double_move_prob:
            if len(free) > 1:
                first = self.rng.choice(free)
                while True:
                    second = self.rng.choice(free)
                    if second != first or free_slot_count(board[first]) > 1:
                        break
                self.has_made_double_move = True
                return Move.double(first, second, self.symbol)

            # Single free cell left: play it as a normal move
            return Move.single(free[0], self.symbol)

        return Move.single(self.rng.choice(free), self.symbol)
