from typing import Iterable, List, Sequence

import numpy as np

from core.errors import ExhaustionError
from core.rules import Move


class ScriptedAgent:
    """
    Replays a fixed list of position tuples, one per turn.

    (3,) plays a single mark in cell 3, (3, 5) a double move. The script
    restarts on every start_game().
    """

    def __init__(self, script: Iterable[Sequence[int]], symbol: str = 'x', name: str = 'scripted'):
        self.script: List[tuple] = [tuple(positions) for positions in script]
        self.symbol = symbol
        self.name = name
        self.cursor = 0
        self.has_made_double_move = False

    def init(self):
        pass

    def start_game(self):
        self.cursor = 0
        self.has_made_double_move = False

    def move(self, board: np.ndarray, opponent_has_made_double_move: bool = False) -> Move:
        if self.cursor >= len(self.script):
            raise ExhaustionError(f"{self.name}: script exhausted after {len(self.script)} moves")

        positions = self.script[self.cursor]
        self.cursor += 1

        is_double = len(positions) == 2
        if is_double:
            self.has_made_double_move = True
        return Move(positions=positions, mark=self.symbol, is_double_move=is_double)
