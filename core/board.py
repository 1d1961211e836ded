import numpy as np
from typing import Optional, Sequence, Tuple, Union

from .errors import ConfigurationError, EncodingError

# Slot values stored in the board array
EMPTY = 0
MARK_X = 1
MARK_O = -1

SYMBOL_X = 'x'
SYMBOL_O = 'o'
SYMBOLS = (SYMBOL_X, SYMBOL_O)

SYMBOL_TO_MARK = {SYMBOL_X: MARK_X, SYMBOL_O: MARK_O}

# Characters used by board_to_string / board_from_string
_MARK_TO_CHAR = {EMPTY: '-', MARK_X: 'x', MARK_O: 'o'}
_CHAR_TO_MARK = {c: m for m, c in _MARK_TO_CHAR.items()}

NUM_CELLS = 9
BOARD_ROWS = 3
BOARD_COLS = 3

Owner = Union[str, bool]


def other_symbol(symbol: str) -> str:
    """'x' -> 'o' and 'o' -> 'x'."""
    if symbol == SYMBOL_X:
        return SYMBOL_O
    if symbol == SYMBOL_O:
        return SYMBOL_X
    raise ConfigurationError(f"Malformed symbol: {symbol!r}")


# ------------------------------------------------------------------
# Cell helpers
# ------------------------------------------------------------------
def create_empty_board(cell_width: int = 3) -> np.ndarray:
    """
    Create an empty 3x3 board.

    Args:
        cell_width: Number of mark slots per cell (1 = tic-tac-toe, 3 = tic-tac-two)

    Returns:
        int8 array of shape (9, cell_width), all slots EMPTY
    """
    if not isinstance(cell_width, (int, np.integer)) or cell_width < 1:
        raise ConfigurationError(f"cell_width must be a positive integer, got {cell_width!r}")
    return np.zeros((NUM_CELLS, int(cell_width)), dtype=np.int8)


def cell_owner(cell: Sequence[int]) -> Owner:
    """
    Majority rule: a symbol owns the cell once it fills more than half
    of the cell's slots (2 of 3, or 1 of 1). Returns False otherwise.
    """
    cell = np.asarray(cell)
    width = cell.shape[0]
    x_count = int(np.count_nonzero(cell == MARK_X))
    o_count = int(np.count_nonzero(cell == MARK_O))

    if x_count * 2 > width:
        return SYMBOL_X
    if o_count * 2 > width:
        return SYMBOL_O
    return False


def free_slot_count(cell: Sequence[int]) -> int:
    return int(np.count_nonzero(np.asarray(cell) == EMPTY))


def is_cell_full(cell: Sequence[int]) -> bool:
    """A cell is full once it is owned or has no empty slot left."""
    if cell_owner(cell):
        return True
    return free_slot_count(cell) == 0


def first_free_slot(cell: Sequence[int]) -> int:
    free = np.flatnonzero(np.asarray(cell) == EMPTY)
    if free.size == 0:
        return -1
    return int(free[0])


def is_board_full(board: np.ndarray) -> bool:
    return all(is_cell_full(cell) for cell in board)


def free_positions(board: np.ndarray) -> list:
    """Indices of every cell that can still take a mark."""
    return [idx for idx, cell in enumerate(board) if not is_cell_full(cell)]


# ------------------------------------------------------------------
# Conversions at the boundary
# ------------------------------------------------------------------
def clone_board(board: np.ndarray) -> np.ndarray:
    return np.array(board, dtype=np.int8, copy=True)


def freeze_board(board: np.ndarray) -> np.ndarray:
    """Read-only copy, used for replay snapshots."""
    frozen = clone_board(board)
    frozen.flags.writeable = False
    return frozen


def board_key(board: np.ndarray) -> Tuple[int, bytes]:
    """Canonical hashable key for a board (width + raw bytes)."""
    board = np.ascontiguousarray(board, dtype=np.int8)
    return board.shape[1], board.tobytes()


def cell_to_string(cell: Sequence[int]) -> str:
    return ''.join(_MARK_TO_CHAR[int(m)] for m in cell)


def board_to_string(board: np.ndarray) -> str:
    """
    Serialize a board as 9 cells separated by '|'.

    Example (cell_width=3): '---|x--|oo-|---|...'
    """
    return '|'.join(cell_to_string(cell) for cell in board)


def board_from_string(text: str) -> np.ndarray:
    cells = text.strip().split('|')
    if len(cells) != NUM_CELLS:
        raise EncodingError(f"Expected {NUM_CELLS} cells, got {len(cells)} in {text!r}")

    widths = {len(c) for c in cells}
    if len(widths) != 1:
        raise EncodingError(f"Cells have different widths in {text!r}")

    board = create_empty_board(widths.pop())
    for idx, cell in enumerate(cells):
        for slot, char in enumerate(cell):
            if char not in _CHAR_TO_MARK:
                raise EncodingError(f"Unknown mark {char!r} in cell {idx} of {text!r}")
            board[idx, slot] = _CHAR_TO_MARK[char]
    return board


def format_board(board: np.ndarray, prev_board: Optional[np.ndarray] = None) -> str:
    """Render the board as 3 text rows, optionally next to the previous board."""
    lines = []
    for row in range(BOARD_ROWS):
        cells = range(row * BOARD_COLS, (row + 1) * BOARD_COLS)
        current = '|' + '|'.join(cell_to_string(board[i]) for i in cells) + '|'
        if prev_board is not None:
            before = '|' + '|'.join(cell_to_string(prev_board[i]) for i in cells) + '|'
            current = f"{before}\t -> \t{current}"
        lines.append(current)
    return '\n'.join(lines)


class TicTacTwoBoard:
    """Mutable board owned by the game engine."""

    def __init__(self, cell_width: int = 3):
        self.cell_width = cell_width
        self.reset()

    def reset(self):
        self.board = create_empty_board(self.cell_width)
        return self.board

    def get_state(self) -> np.ndarray:
        return self.board.copy()

    def place_mark(self, position: int, symbol: str) -> int:
        """Write `symbol` into the first free slot of `position`. Returns the slot index."""
        slot = first_free_slot(self.board[position])
        if slot < 0:
            raise ValueError(f"Cell {position} has no free slot: {cell_to_string(self.board[position])}")
        self.board[position, slot] = SYMBOL_TO_MARK[symbol]
        return slot

    def is_full(self) -> bool:
        return is_board_full(self.board)

    def print_board(self, prev_board: Optional[np.ndarray] = None):
        print("\nCurrent Board:")
        print(format_board(self.board, prev_board))
