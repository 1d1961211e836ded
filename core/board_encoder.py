import itertools
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import torch

from .board import EMPTY, MARK_O, MARK_X, NUM_CELLS, SYMBOL_O, SYMBOL_X, board_key
from .errors import ConfigurationError, EncodingError

Signature = Tuple[int, ...]

SYMBOL_INDEX = {SYMBOL_X: 0, SYMBOL_O: 1}


def build_cell_signatures(cell_width: int) -> List[Signature]:
    """
    Every multiset of {EMPTY, X, O} of size `cell_width`, as sorted tuples.

    Width 3 gives the 10 canonical cell contents ('---', '--x', ..., 'xxx'),
    width 1 gives 3.
    """
    values = sorted((MARK_O, EMPTY, MARK_X))
    return [tuple(combo) for combo in itertools.combinations_with_replacement(values, cell_width)]


class TicTacTwoBoardEncoder:
    """
    Converts a (9, cell_width) board plus agent state into a flat feature vector.

    Layout:
        [0, 9 * S)          one-hot cell signature for each of the 9 cells (S signatures)
        [9 * S, 9 * S + 2)  one-hot agent symbol (x=0, o=1)
        [9 * S + 2, + 2)    one-hot "has already made its double move"

    Slot order inside a cell does not matter: contents are sorted before the
    lookup, so 'x-o' and 'ox-' encode identically.

    Encoded vectors are cached in an LRU keyed by the raw board bytes,
    symbol and double flag. cache_size=None means unbounded, 0 disables it.
    """

    def __init__(self, cell_width: int = 3, cache_size: Optional[int] = 50_000):
        if cell_width < 1:
            raise ConfigurationError(f"cell_width must be >= 1, got {cell_width}")
        if cache_size is not None and cache_size < 0:
            raise ConfigurationError(f"cache_size must be >= 0 or None, got {cache_size}")

        self.cell_width = cell_width
        self.signatures = build_cell_signatures(cell_width)
        self.signature_to_index: Dict[Signature, int] = {
            sig: idx for idx, sig in enumerate(self.signatures)
        }
        self.num_signatures = len(self.signatures)

        self.board_size = NUM_CELLS * self.num_signatures
        self.feature_size = self.board_size + 2 + 2

        self.cache_size = cache_size
        self._cache: "OrderedDict[tuple, torch.Tensor]" = OrderedDict()
        self.cache_hits = 0
        self.cache_misses = 0

    # ------------------------------------------------------------------
    # Cell level
    # ------------------------------------------------------------------
    def cell_signature_index(self, cell: Sequence[int]) -> int:
        signature = tuple(sorted(int(m) for m in cell))
        if signature not in self.signature_to_index:
            raise EncodingError(
                f"Error encoding cell {[int(m) for m in cell]}: unknown signature for cell_width={self.cell_width}"
            )
        return self.signature_to_index[signature]

    def symbol_index(self, symbol: str) -> int:
        if symbol not in SYMBOL_INDEX:
            raise EncodingError(f"Unknown agent symbol: {symbol!r}")
        return SYMBOL_INDEX[symbol]

    # ------------------------------------------------------------------
    # Board level
    # ------------------------------------------------------------------
    def _encode_uncached(self, board: np.ndarray, symbol: str, has_made_double_move: bool) -> torch.Tensor:
        board = np.asarray(board)
        if board.shape != (NUM_CELLS, self.cell_width):
            raise EncodingError(
                f"Error encoding board: expected shape {(NUM_CELLS, self.cell_width)}, got {board.shape}"
            )

        features = np.zeros(self.feature_size, dtype=np.float32)
        for idx, cell in enumerate(board):
            features[idx * self.num_signatures + self.cell_signature_index(cell)] = 1.0

        features[self.board_size + self.symbol_index(symbol)] = 1.0
        features[self.board_size + 2 + int(bool(has_made_double_move))] = 1.0

        return torch.from_numpy(features)

    def encode(self, board: np.ndarray, symbol: str, has_made_double_move: bool = False) -> torch.Tensor:
        """
        Encode one board from the point of view of `symbol`.

        Args:
            board: (9, cell_width) int8 board
            symbol: 'x' or 'o', the agent the features are for
            has_made_double_move: whether that agent already used its double

        Returns:
            float32 tensor of shape (feature_size,). Treat it as read-only,
            it may be shared with the cache.

        Raises:
            EncodingError: unknown cell content, symbol or board shape
        """
        if self.cache_size == 0:
            return self._encode_uncached(board, symbol, has_made_double_move)

        key = (board_key(board), symbol, bool(has_made_double_move))
        cached = self._cache.get(key)
        if cached is not None:
            self._cache.move_to_end(key)
            self.cache_hits += 1
            return cached

        self.cache_misses += 1
        encoded = self._encode_uncached(board, symbol, has_made_double_move)
        self._cache[key] = encoded
        if self.cache_size is not None and len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
        return encoded

    def batch_encode(
        self,
        boards: Sequence[np.ndarray],
        symbols: Sequence[str],
        double_flags: Sequence[bool],
    ) -> torch.Tensor:
        """
        Encode multiple boards into a batched tensor.

        Returns:
            Tensor of shape (Batch, feature_size)
        """
        encoded_list = [
            self.encode(board, symbol, flag)
            for board, symbol, flag in zip(boards, symbols, double_flags)
        ]
        return torch.stack(encoded_list, dim=0)

    def decode(self, encoded: torch.Tensor) -> Tuple[np.ndarray, str, bool]:
        """
        Convert a feature vector back to (board, symbol, has_made_double_move).
        Slots come back in sorted order (for debugging/visualization).
        """
        if isinstance(encoded, torch.Tensor):
            features = encoded.detach().cpu().numpy()
        else:
            features = np.asarray(encoded)

        board = np.zeros((NUM_CELLS, self.cell_width), dtype=np.int8)
        cells = features[:self.board_size].reshape(NUM_CELLS, self.num_signatures)
        for idx in range(NUM_CELLS):
            board[idx] = self.signatures[int(np.argmax(cells[idx]))]

        symbol = SYMBOL_X if features[self.board_size] >= features[self.board_size + 1] else SYMBOL_O
        has_doubled = bool(features[self.board_size + 3] > features[self.board_size + 2])
        return board, symbol, has_doubled

    @property
    def cache_len(self) -> int:
        return len(self._cache)
