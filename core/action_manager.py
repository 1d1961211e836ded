import torch
from typing import Dict, List, Sequence, Tuple, Union

from .board import NUM_CELLS
from .errors import EncodingError
from .rules import Move

Positions = Tuple[int, ...]


class ActionManager:
    """
    Maps Tic-Tac-Two moves to fixed integer indices for neural network output.

    Pre-calculates the whole action space once:
    - 9 single moves: (p,)
    - 81 ordered double moves: (p1, p2), including p1 == p2

    Whether a same-cell double is actually playable depends on the board and
    is checked by the rules when the move is applied, not here.
    """

    def __init__(self, allow_double_moves: bool = True, device: Union[str, torch.device] = "cpu"):
        self.device = torch.device(device) if isinstance(device, str) else device
        self.allow_double_moves = allow_double_moves
        self.move_to_id: Dict[Positions, int] = {}
        self.id_to_move: Dict[int, Positions] = {}
        self.action_dim: int = 0

        self._build_action_space()

    def _build_action_space(self):
        moves: List[Positions] = []

        # Single moves
        for position in range(NUM_CELLS):
            moves.append((position,))

        # Double moves
        if self.allow_double_moves:
            for first in range(NUM_CELLS):
                for second in range(NUM_CELLS):
                    moves.append((first, second))

        for idx, move in enumerate(moves):
            self.move_to_id[move] = idx
            self.id_to_move[idx] = move

        self.action_dim = len(moves)

    def get_action_id(self, positions: Sequence[int]) -> int:
        """
        Convert a positions list to its action ID.

        Raises:
            EncodingError: positions are not part of the action space
        """
        key = tuple(int(p) for p in positions)
        if key not in self.move_to_id:
            raise EncodingError(f"No action id for positions {tuple(positions)}")
        return self.move_to_id[key]

    def get_positions(self, action_id: int) -> Positions:
        """
        Convert an action ID back to positions.

        Raises:
            EncodingError: unknown action id
        """
        action_id = int(action_id)
        if action_id not in self.id_to_move:
            raise EncodingError(
                f"No move encoding found for index: {action_id}. Num actions is {self.action_dim}."
            )
        return self.id_to_move[action_id]

    def encode_move(self, move: Move) -> int:
        return self.get_action_id(move.positions)

    def make_move(self, action_id: int, symbol: str) -> Move:
        positions = self.get_positions(action_id)
        return Move(positions=positions, mark=symbol, is_double_move=len(positions) == 2)

    def is_double(self, action_id: int) -> bool:
        return len(self.get_positions(action_id)) == 2

    def one_hot(self, action_ids: Sequence[int]) -> torch.Tensor:
        """Batch of one-hot action rows, shape (len(action_ids), action_dim)."""
        ids = torch.as_tensor(list(action_ids), dtype=torch.long, device=self.device)
        return torch.nn.functional.one_hot(ids, num_classes=self.action_dim).float()

    def to(self, device):
        """Move to a different device."""
        self.device = torch.device(device)
        return self
