from typing import Protocol, runtime_checkable

import numpy as np

from core.rules import Move


@runtime_checkable
class Agent(Protocol):
    """
    What the game engine and the training loop expect from a player.

    Any object with these members can sit on either side of a game;
    there is no base class to inherit from.
    """
    symbol: str
    name: str

    def init(self) -> None:
        """Load slow resources (model weights). Called once before the first game."""

    def start_game(self) -> None:
        """Reset per-game state. Called by the engine on every reset()."""

    def move(self, board: np.ndarray, opponent_has_made_double_move: bool) -> Move:
        """Return the move for `board`, a copy the agent may keep."""
