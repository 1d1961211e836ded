from .board import TicTacTwoBoard, create_empty_board
from .rules import Move, TicTacTwoRules, IllegalMoveType
from .game import TicTacTwoGame, GameConfig, GameOutcome, StepResult
from .action_manager import ActionManager
from .board_encoder import TicTacTwoBoardEncoder
from .errors import ConfigurationError, EncodingError, ExhaustionError, MalformedMoveError

__all__ = [
    'TicTacTwoBoard',
    'create_empty_board',
    'Move',
    'TicTacTwoRules',
    'IllegalMoveType',
    'TicTacTwoGame',
    'GameConfig',
    'GameOutcome',
    'StepResult',
    'ActionManager',
    'TicTacTwoBoardEncoder',
    'ConfigurationError',
    'EncodingError',
    'ExhaustionError',
    'MalformedMoveError',
]
