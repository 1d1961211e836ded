import random
from typing import List, Optional, Tuple

import numpy as np

from core.board import SYMBOL_TO_MARK, clone_board, first_free_slot, other_symbol
from core.rules import Move, TicTacTwoRules
from .random_agent import RandomAgent


def _play(board: np.ndarray, positions: Tuple[int, ...], symbol: str) -> np.ndarray:
    after = clone_board(board)
    for position in positions:
        after[position, first_free_slot(after[position])] = SYMBOL_TO_MARK[symbol]
    return after


def winning_moves(board: np.ndarray, symbol: str, allow_double: bool = False) -> List[Tuple[int, ...]]:
    """
    Brute force: try every placement and keep the ones that complete a line
    for `symbol`. Single placements come first, doubles only if allowed.
    """
    found = []
    for position in TicTacTwoRules.legal_positions(board):
        win = TicTacTwoRules.check_for_winner(_play(board, (position,), symbol))
        if win.has_winner and win.symbol == symbol:
            found.append((position,))

    if allow_double and not found:
        for pair in TicTacTwoRules.double_move_targets(board):
            win = TicTacTwoRules.check_for_winner(_play(board, pair, symbol))
            if win.has_winner and win.symbol == symbol:
                found.append(pair)
    return found


class HeuristicAgent:
    """
    Scripted opponent: take an immediate win (using the double move if that
    is what it takes), otherwise block the opponent's single-placement win,
    otherwise play like RandomAgent.

    With allow_double_moves=False it never plays two marks in one turn.
    """

    def __init__(
        self,
        symbol: str = 'x',
        name: str = 'heuristic',
        double_move_prob: float = 0.0,
        allow_double_moves: bool = True,
        rng: Optional[random.Random] = None,
    ):
        self.rng = rng or random.Random()
        self.name = name
        self.allow_double_moves = allow_double_moves
        self.fallback = RandomAgent(symbol=symbol, name=f"{name}-fallback",
                                    double_move_prob=double_move_prob if allow_double_moves else 0.0,
                                    rng=self.rng)
        self.symbol = symbol
        self.has_made_double_move = False

    @property
    def symbol(self) -> str:
        return self._symbol

    @symbol.setter
    def symbol(self, value: str):
        # The engine reassigns symbols on reset; keep the fallback in step
        self._symbol = value
        self.fallback.symbol = value

    def init(self):
        pass

    def start_game(self):
        self.has_made_double_move = False
        self.fallback.start_game()

    def move(self, board: np.ndarray, opponent_has_made_double_move: bool = False) -> Move:
        can_double = self.allow_double_moves and not self.has_made_double_move
        wins = winning_moves(board, self.symbol, allow_double=can_double)
        if wins:
            return self._to_move(self.rng.choice(wins))

        threats = winning_moves(board, other_symbol(self.symbol))
        if threats:
            return self._to_move(self.rng.choice(threats))

        move = self.fallback.move(board, opponent_has_made_double_move)
        if move.is_double_move:
            self.has_made_double_move = True
        return move

    def _to_move(self, positions: Tuple[int, ...]) -> Move:
        if len(positions) == 2:
            self.has_made_double_move = True
            self.fallback.has_made_double_move = True
            return Move.double(positions[0], positions[1], self.symbol)
        return Move.single(positions[0], self.symbol)
