import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .board import (
    NUM_CELLS,
    SYMBOLS,
    cell_owner,
    free_positions,
    free_slot_count,
    is_board_full,
    is_cell_full,
    board_to_string,
)
from .errors import MalformedMoveError

# Rows top-to-bottom, columns left-to-right, then the two diagonals.
# The scan order decides which line gets reported when several are complete.
WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


@dataclass(frozen=True)
class Move:
    """A move as returned by an agent."""
    positions: Tuple[int, ...]
    mark: str
    is_double_move: bool = False

    @classmethod
    def single(cls, position: int, mark: str) -> "Move":
        return cls(positions=(position,), mark=mark, is_double_move=False)

    @classmethod
    def double(cls, first: int, second: int, mark: str) -> "Move":
        return cls(positions=(first, second), mark=mark, is_double_move=True)


class IllegalMoveType(str, Enum):
    DOUBLE_MOVE_NOT_AVAILABLE = 'double-move-not-available'
    DOUBLE_MOVE_NOT_POSSIBLE = 'double-move-not-possible'
    OUT_OF_BOUNDS = 'out-of-bounds'
    CELL_FULL = 'cell-full'


@dataclass(frozen=True)
class WinCheck:
    has_winner: bool
    symbol: Optional[str] = None
    winning_cells: Optional[Tuple[int, int, int]] = None


@dataclass(frozen=True)
class IllegalMoveCheck:
    has_error: bool
    error_cell: Optional[int] = None
    type: Optional[IllegalMoveType] = None


NO_WINNER = WinCheck(has_winner=False)
LEGAL = IllegalMoveCheck(has_error=False)


class TicTacTwoRules:
    @staticmethod
    def validate_move(move: Move):
        """
        Reject moves whose shape contradicts itself before the board is touched.

        Raises:
            MalformedMoveError: bad symbol, non-integer positions, or a
                positions count that disagrees with is_double_move
        """
        if move.mark not in SYMBOLS:
            raise MalformedMoveError(f"Malformed move: symbol is {move.mark!r}")

        if not isinstance(move.is_double_move, (bool, np.bool_)):
            raise MalformedMoveError(
                f"Malformed move: is_double_move is not a boolean. It is {move.is_double_move!r}"
            )

        if not isinstance(move.positions, (tuple, list)):
            raise MalformedMoveError(f"Malformed move: positions is not a sequence. It is {move.positions!r}")

        for position in move.positions:
            if isinstance(position, bool) or not isinstance(position, (int, np.integer)):
                raise MalformedMoveError(f"Malformed move: position {position!r} is not an integer")

        expected = 2 if move.is_double_move else 1
        if len(move.positions) != expected:
            raise MalformedMoveError(
                f"Malformed move: is_double_move is {move.is_double_move} and positions is {tuple(move.positions)}"
            )

    @staticmethod
    def check_for_winner(board: np.ndarray) -> WinCheck:
        """Return the first line whose three cells are owned by the same symbol."""
        owners = [cell_owner(cell) for cell in board]
        for line in WINNING_LINES:
            first = owners[line[0]]
            if first and owners[line[1]] == first and owners[line[2]] == first:
                return WinCheck(has_winner=True, symbol=first, winning_cells=line)
        return NO_WINNER

    @staticmethod
    def check_for_illegal_move(
        board: np.ndarray,
        move: Move,
        agent_has_made_double_move: bool = False,
    ) -> IllegalMoveCheck:
        """
        Ordered legality checks; the first failing check wins.

        Args:
            board: Current board array (9, cell_width)
            move: Move to validate
            agent_has_made_double_move: Whether the moving agent already used its double

        Returns:
            IllegalMoveCheck describing the first violation, or LEGAL
        """
        TicTacTwoRules.validate_move(move)
        positions = [int(p) for p in move.positions]

        if move.is_double_move and agent_has_made_double_move:
            return IllegalMoveCheck(True, positions[0], IllegalMoveType.DOUBLE_MOVE_NOT_AVAILABLE)

        if move.is_double_move and positions[0] == positions[1]:
            target = positions[0]
            if 0 <= target < NUM_CELLS and free_slot_count(board[target]) < 2:
                return IllegalMoveCheck(True, target, IllegalMoveType.DOUBLE_MOVE_NOT_POSSIBLE)

        for position in positions:
            if position < 0 or position >= NUM_CELLS:
                return IllegalMoveCheck(True, position, IllegalMoveType.OUT_OF_BOUNDS)

        for position in positions:
            if is_cell_full(board[position]):
                return IllegalMoveCheck(True, position, IllegalMoveType.CELL_FULL)

        return LEGAL

    @staticmethod
    def is_done(board: np.ndarray) -> bool:
        return is_board_full(board)

    @staticmethod
    def legal_positions(board: np.ndarray) -> List[int]:
        return free_positions(board)

    @staticmethod
    def double_move_targets(board: np.ndarray) -> List[Tuple[int, int]]:
        """All ordered position pairs a double move could legally target."""
        free = free_positions(board)
        pairs = []
        for first in free:
            for second in free:
                if first == second and free_slot_count(board[first]) < 2:
                    continue
                pairs.append((first, second))
        return pairs

    @staticmethod
    def describe(board: np.ndarray, move: Optional[Move] = None) -> str:
        """Debug string used in fatal error messages."""
        text = f"board={board_to_string(board)}"
        if move is not None:
            text += f" move={move}"
        return text


__all__ = [
    'WINNING_LINES',
    'Move',
    'IllegalMoveType',
    'WinCheck',
    'IllegalMoveCheck',
    'TicTacTwoRules',
]
