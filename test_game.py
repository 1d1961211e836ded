import random

import numpy as np
import pytest

from agents.random_agent import RandomAgent
from agents.scripted_agent import ScriptedAgent
from core.board import EMPTY, board_to_string
from core.errors import ConfigurationError, ExhaustionError, MalformedMoveError
from core.game import GameConfig, GameOutcome, TicTacTwoGame
from core.rules import IllegalMoveType, Move

FIXED = GameConfig(cell_width=3, randomize_order=False, randomize_symbol=False)


def scripted_game(script_x, script_o, config=FIXED):
    px = ScriptedAgent(script_x, symbol='x', name='px')
    po = ScriptedAgent(script_o, symbol='o', name='po')
    return TicTacTwoGame(px, po, config), px, po


def play_out(game):
    result = None
    while not game.done:
        result = game.step()
    return result


class WrongMarkAgent(ScriptedAgent):
    def move(self, board, opponent_has_made_double_move=False):
        move = super().move(board, opponent_has_made_double_move)
        return Move(positions=move.positions, mark='o' if self.symbol == 'x' else 'x',
                    is_double_move=move.is_double_move)


def test_win_by_majority():
    """A second double disqualifies x; one double then single marks along the top row wins."""
    game, px, po = scripted_game(
        [(0, 0), (1, 1), (2, 2)],
        [(4,), (5,)],
    )
    result = play_out(game)
    # x: (0,0) is a double; (1,1) is a second double -> disqualified
    assert result.outcome == GameOutcome.DISQUALIFIED
    assert result.player is px
    assert result.error_type == IllegalMoveType.DOUBLE_MOVE_NOT_AVAILABLE

    game, px, po = scripted_game(
        [(0, 0), (1,), (1,), (2,), (2,)],
        [(4,), (5,), (6,), (7,)],
    )
    result = play_out(game)
    assert result.outcome == GameOutcome.WIN
    assert result.winning_player is px
    assert result.winning_symbol == 'x'
    assert result.winning_cells == (0, 1, 2)
    assert game.move_count == 9


def test_tie_on_width_one_board():
    config = GameConfig(cell_width=1, randomize_order=False, randomize_symbol=False, allow_double_moves=False)
    # x o x / x o o / o x x
    game, px, po = scripted_game(
        [(0,), (2,), (3,), (7,), (8,)],
        [(1,), (4,), (5,), (6,)],
        config,
    )
    result = play_out(game)
    assert result.outcome == GameOutcome.TIE
    assert not result.has_winner
    assert board_to_string(game.get_state()) == 'x|o|x|x|o|o|o|x|x'


def test_illegal_move_disqualifies_without_touching_board():
    game, px, po = scripted_game([(4,), (9,)], [(0,)])
    game.step()
    game.step()
    before = game.get_state()
    result = game.step()
    assert result.outcome == GameOutcome.DISQUALIFIED
    assert result.disqualified_player is px
    assert result.error_type == IllegalMoveType.OUT_OF_BOUNDS
    assert result.error_cell == 9
    assert (game.get_state() == before).all()


def test_double_move_budget():
    game, px, po = scripted_game([(0, 1), (2,), (3, 5)], [(6,), (7, 8)])
    game.step()
    assert game.has_made_double_move(px)
    assert not game.has_made_double_move(po)
    game.step()
    game.step()
    r = game.step()
    assert game.has_made_double_move(po)
    assert r.outcome == GameOutcome.IN_PROGRESS
    r = game.step()
    assert r.outcome == GameOutcome.DISQUALIFIED
    assert r.error_type == IllegalMoveType.DOUBLE_MOVE_NOT_AVAILABLE

    game.reset()
    assert not game.has_made_double_move(px)
    assert not game.has_made_double_move(po)


def test_doubles_disabled_is_not_available():
    config = GameConfig(cell_width=3, randomize_order=False, randomize_symbol=False, allow_double_moves=False)
    game, px, po = scripted_game([(0, 1)], [], config)
    result = game.step()
    assert result.outcome == GameOutcome.DISQUALIFIED
    assert result.error_type == IllegalMoveType.DOUBLE_MOVE_NOT_AVAILABLE


def test_step_after_game_over_raises():
    game, px, po = scripted_game([(9,)], [])
    game.step()
    assert game.done
    with pytest.raises(ExhaustionError):
        game.step()


def test_wrong_mark_is_malformed():
    px = WrongMarkAgent([(0,)], symbol='x', name='px')
    po = ScriptedAgent([(1,)], symbol='o', name='po')
    game = TicTacTwoGame(px, po, FIXED)
    before = game.get_state()
    with pytest.raises(MalformedMoveError):
        game.step()
    assert (game.get_state() == before).all()


def test_same_symbol_rejected():
    a = ScriptedAgent([], symbol='x')
    b = ScriptedAgent([], symbol='x')
    with pytest.raises(ConfigurationError):
        TicTacTwoGame(a, b, FIXED)


def test_reset_is_idempotent():
    game, px, po = scripted_game([(4,), (0,)], [(1,)])
    first = game.reset()
    game.step()
    game.step()
    second = game.reset()
    assert (first == second).all()
    assert game.move_count == 0
    assert game.current_player is px
    assert not game.done
    # Script restarts as well
    assert game.step().action.positions == (4,)


def test_back_to_back_resets_after_a_game():
    game, px, po = scripted_game([(0, 0), (1,)], [(4, 4), (5,)])
    game.step()
    game.step()
    assert game.has_made_double_move(px) and game.has_made_double_move(po)

    for _ in range(2):
        board = game.reset()
        assert (board == EMPTY).all()
        assert (game.get_state() == EMPTY).all()
        assert not game.has_made_double_move(px)
        assert not game.has_made_double_move(po)
        assert game.move_count == 0
        assert not game.done


def test_reset_randomizes_order_and_symbols():
    a = RandomAgent(symbol='x', name='a', rng=random.Random(1))
    b = RandomAgent(symbol='o', name='b', rng=random.Random(2))
    game = TicTacTwoGame(a, b, GameConfig(), rng=random.Random(0))

    starters, symbols = set(), set()
    for _ in range(50):
        game.reset()
        starters.add(game.current_player.name)
        symbols.add(a.symbol)
        assert a.symbol != b.symbol
    assert starters == {'a', 'b'}
    assert symbols == {'x', 'o'}


def test_same_moves_same_trajectory():
    def trajectory(seed):
        a = RandomAgent(symbol='x', name='a', rng=random.Random(seed))
        b = RandomAgent(symbol='o', name='b', rng=random.Random(seed + 1))
        game = TicTacTwoGame(a, b, GameConfig(), rng=random.Random(seed))
        boards = [game.get_state()]
        while not game.done:
            game.step()
            boards.append(game.get_state())
        return boards

    first, second = trajectory(7), trajectory(7)
    assert len(first) == len(second)
    assert all(np.array_equal(x, y) for x, y in zip(first, second))


def test_random_games_always_terminate():
    rng = random.Random(3)
    a = RandomAgent(symbol='x', name='a', rng=random.Random(4))
    b = RandomAgent(symbol='o', name='b', rng=random.Random(5))
    for width in (1, 3):
        game = TicTacTwoGame(a, b, GameConfig(cell_width=width, allow_double_moves=width > 1), rng=rng)
        for _ in range(30):
            game.reset()
            result = play_out(game)
            assert result.done
            assert game.move_count <= 9 * width


if __name__ == "__main__":
    test_win_by_majority()
    test_tie_on_width_one_board()
    test_double_move_budget()
    print("OK: game tests passed")
