import random
import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .board import SYMBOL_O, SYMBOL_X, TicTacTwoBoard
from .errors import ConfigurationError, ExhaustionError, MalformedMoveError
from .rules import IllegalMoveType, Move, TicTacTwoRules


@dataclass(frozen=True)
class GameConfig:
    """
    Options for one game engine instance.

    cell_width=1 gives classic tic-tac-toe, cell_width=3 the multi-mark variant.
    """
    cell_width: int = 3
    randomize_order: bool = True
    randomize_symbol: bool = True
    allow_double_moves: bool = True

    def __post_init__(self):
        if not isinstance(self.cell_width, int) or self.cell_width < 1:
            raise ConfigurationError(f"cell_width must be >= 1, got {self.cell_width!r}")


class GameOutcome(str, Enum):
    IN_PROGRESS = 'in-progress'
    WIN = 'win'
    DISQUALIFIED = 'disqualified'
    TIE = 'tie'


@dataclass(frozen=True)
class StepResult:
    """Result of one engine step. `player` is the agent that just moved."""
    outcome: GameOutcome
    action: Move
    player: Any
    winning_symbol: Optional[str] = None
    winning_cells: Optional[Tuple[int, int, int]] = None
    error_cell: Optional[int] = None
    error_type: Optional[IllegalMoveType] = None

    @property
    def done(self) -> bool:
        return self.outcome != GameOutcome.IN_PROGRESS

    @property
    def has_winner(self) -> bool:
        return self.outcome == GameOutcome.WIN

    @property
    def has_error(self) -> bool:
        return self.outcome == GameOutcome.DISQUALIFIED

    @property
    def winning_player(self):
        return self.player if self.has_winner else None

    @property
    def disqualified_player(self):
        return self.player if self.has_error else None


class TicTacTwoGame:
    """
    Two-player game state machine.

    There is no game loop in here: the caller drives the game with step(),
    which lets the training loop observe every transition.

        AwaitingMove(p) -> AwaitingMove(other) | Won | Disqualified | Tied
    """

    def __init__(self, player1, player2, config: Optional[GameConfig] = None, rng: Optional[random.Random] = None):
        if player1 is player2:
            raise ConfigurationError("player1 and player2 must be different agents")

        self.player1 = player1
        self.player2 = player2
        self.config = config or GameConfig()
        self.rng = rng or random.Random()

        self.board = TicTacTwoBoard(self.config.cell_width)
        self.current_player = player1
        self.agent_has_made_double_move: Dict[int, bool] = {}
        self.last_result: Optional[StepResult] = None
        self.move_count = 0

        self.reset()

    def init(self):
        """Give both agents a chance to load slow resources (models)."""
        self.player1.init()
        self.player2.init()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reset(self) -> np.ndarray:
        """Start a new game. All engine randomness lives here."""
        if self.config.randomize_order:
            self.current_player = self.player1 if self.rng.random() <= 0.5 else self.player2
        else:
            self.current_player = self.player1

        if self.config.randomize_symbol:
            if self.rng.random() < 0.5:
                self.player1.symbol, self.player2.symbol = SYMBOL_X, SYMBOL_O
            else:
                self.player1.symbol, self.player2.symbol = SYMBOL_O, SYMBOL_X

        if self.player1.symbol == self.player2.symbol:
            raise ConfigurationError(f"Both players use the symbol {self.player1.symbol!r}")

        self.board.reset()
        # Keyed by id(): agents are not required to be hashable
        self.agent_has_made_double_move = {id(self.player1): False, id(self.player2): False}
        self.last_result = None
        self.move_count = 0

        self.player1.start_game()
        self.player2.start_game()

        return self.board.get_state()

    def toggle_player(self):
        self.current_player = self.other_player

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def other_player(self):
        return self.player2 if self.current_player is self.player1 else self.player1

    @property
    def done(self) -> bool:
        return self.last_result is not None and self.last_result.done

    def get_state(self) -> np.ndarray:
        return self.board.get_state()

    def has_made_double_move(self, agent) -> bool:
        return self.agent_has_made_double_move[id(agent)]

    # ------------------------------------------------------------------
    # Step
    # ------------------------------------------------------------------
    def step(self) -> StepResult:
        """
        Ask the current player for a move and apply it.

        Returns:
            StepResult. An illegal move ends the game as DISQUALIFIED
            for the current player; it is not raised.

        Raises:
            ExhaustionError: the game is already over
            MalformedMoveError: the agent returned a self-contradicting move
        """
        if self.done:
            raise ExhaustionError(f"Game is over ({self.last_result.outcome.value}); call reset() first")

        player = self.current_player
        opponent_has_doubled = self.has_made_double_move(self.other_player)
        move = player.move(self.board.get_state(), opponent_has_doubled)

        TicTacTwoRules.validate_move(move)
        if move.mark != player.symbol:
            raise MalformedMoveError(
                f"{getattr(player, 'name', player)} plays {player.symbol!r} but returned mark {move.mark!r}"
            )

        if move.is_double_move and not self.config.allow_double_moves:
            return self._finish(StepResult(
                outcome=GameOutcome.DISQUALIFIED,
                action=move,
                player=player,
                error_cell=int(move.positions[0]),
                error_type=IllegalMoveType.DOUBLE_MOVE_NOT_AVAILABLE,
            ))

        error = TicTacTwoRules.check_for_illegal_move(
            self.board.board, move, self.has_made_double_move(player)
        )
        if error.has_error:
            return self._finish(StepResult(
                outcome=GameOutcome.DISQUALIFIED,
                action=move,
                player=player,
                error_cell=error.error_cell,
                error_type=error.type,
            ))

        # Play the move
        for position in move.positions:
            self.board.place_mark(int(position), move.mark)
        if move.is_double_move:
            self.agent_has_made_double_move[id(player)] = True
        self.move_count += 1

        win = TicTacTwoRules.check_for_winner(self.board.board)
        if win.has_winner:
            return self._finish(StepResult(
                outcome=GameOutcome.WIN,
                action=move,
                player=player,
                winning_symbol=win.symbol,
                winning_cells=win.winning_cells,
            ))

        if TicTacTwoRules.is_done(self.board.board):
            return self._finish(StepResult(outcome=GameOutcome.TIE, action=move, player=player))

        self.toggle_player()
        return self._finish(StepResult(outcome=GameOutcome.IN_PROGRESS, action=move, player=player))

    def _finish(self, result: StepResult) -> StepResult:
        self.last_result = result
        return result

    def render(self, prev_board: Optional[np.ndarray] = None):
        self.board.print_board(prev_board)
