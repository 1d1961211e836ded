import numpy as np
import pytest

from core.board import (
    EMPTY,
    MARK_O,
    MARK_X,
    board_from_string,
    board_to_string,
    cell_owner,
    create_empty_board,
    first_free_slot,
    free_positions,
    freeze_board,
    is_board_full,
    is_cell_full,
)
from core.errors import ConfigurationError, EncodingError, MalformedMoveError
from core.rules import IllegalMoveType, Move, TicTacTwoRules


def test_empty_board_shape():
    b = create_empty_board(3)
    assert b.shape == (9, 3)
    assert b.dtype == np.int8
    assert (b == EMPTY).all()
    assert create_empty_board(1).shape == (9, 1)


def test_empty_board_rejects_bad_width():
    with pytest.raises(ConfigurationError):
        create_empty_board(0)


def test_cell_owner_majority():
    assert cell_owner([MARK_X, MARK_X, EMPTY]) == 'x'
    assert cell_owner([MARK_O, EMPTY, MARK_O]) == 'o'
    assert cell_owner([MARK_X, MARK_O, EMPTY]) is False
    assert cell_owner([MARK_X, EMPTY, EMPTY]) is False
    assert cell_owner([MARK_O]) == 'o'
    assert cell_owner([EMPTY]) is False


def test_cell_full_when_owned_or_no_slot_left():
    assert is_cell_full([MARK_X, MARK_X, EMPTY]), "owned cell must count as full"
    assert is_cell_full([MARK_X, MARK_O, MARK_X])
    assert not is_cell_full([MARK_X, MARK_O, EMPTY])
    assert first_free_slot([MARK_X, EMPTY, EMPTY]) == 1
    assert first_free_slot([MARK_X, MARK_O, MARK_X]) == -1


def test_string_round_trip_and_errors():
    text = '---|x--|oo-|xox|---|---|---|---|--x'
    b = board_from_string(text)
    assert board_to_string(b) == text
    assert cell_owner(b[2]) == 'o'
    assert free_positions(b) == [0, 1, 4, 5, 6, 7, 8]

    with pytest.raises(EncodingError):
        board_from_string('---|---')
    with pytest.raises(EncodingError):
        board_from_string('---|---|---|---|---|---|---|---|--z')


def test_freeze_board_is_read_only_copy():
    b = create_empty_board(3)
    frozen = freeze_board(b)
    b[0, 0] = MARK_X
    assert frozen[0, 0] == EMPTY
    with pytest.raises(ValueError):
        frozen[0, 0] = MARK_O


def test_winner_top_row_single_slot_cells():
    """Row 0-1-2 owned by X on a width-1 board."""
    b = create_empty_board(1)
    b[[0, 1, 2], 0] = MARK_X
    win = TicTacTwoRules.check_for_winner(b)
    assert win.has_winner
    assert win.symbol == 'x'
    assert win.winning_cells == (0, 1, 2)


def test_winner_uses_ownership_not_presence():
    b = board_from_string('xx-|xo-|xx-|---|---|---|---|---|---')
    # cell 1 holds an x but is not owned
    assert not TicTacTwoRules.check_for_winner(b).has_winner

    b = board_from_string('xx-|xxo|xx-|---|---|---|---|---|---')
    assert TicTacTwoRules.check_for_winner(b).winning_cells == (0, 1, 2)


def test_winner_scan_order():
    """With a full column and the main diagonal both owned, the column is found first."""
    b = create_empty_board(1)
    b[[0, 3, 6, 4, 8], 0] = MARK_O
    win = TicTacTwoRules.check_for_winner(b)
    assert win.symbol == 'o'
    assert win.winning_cells == (0, 3, 6)


def test_no_winner_with_fewer_than_three_owned_cells():
    b = create_empty_board(1)
    b[[0, 4], 0] = MARK_X
    b[[1, 2], 0] = MARK_O
    assert not TicTacTwoRules.check_for_winner(b).has_winner


def test_out_of_bounds():
    b = create_empty_board(3)
    err = TicTacTwoRules.check_for_illegal_move(b, Move.single(9, 'x'))
    assert err.has_error
    assert err.type == IllegalMoveType.OUT_OF_BOUNDS
    assert err.error_cell == 9

    err = TicTacTwoRules.check_for_illegal_move(b, Move.double(2, -1, 'x'))
    assert err.type == IllegalMoveType.OUT_OF_BOUNDS
    assert err.error_cell == -1


def test_double_move_not_possible():
    b = board_from_string('---|---|---|---|xo-|---|---|---|---')
    err = TicTacTwoRules.check_for_illegal_move(b, Move.double(4, 4, 'o'))
    assert err.has_error
    assert err.type == IllegalMoveType.DOUBLE_MOVE_NOT_POSSIBLE
    assert err.error_cell == 4

    # Two free slots are enough
    b = board_from_string('---|---|---|---|x--|---|---|---|---')
    assert not TicTacTwoRules.check_for_illegal_move(b, Move.double(4, 4, 'o')).has_error


def test_double_move_not_available_comes_first():
    b = board_from_string('---|---|---|---|xo-|---|---|---|---')
    # Both double-not-possible and out-of-bounds apply, availability wins
    err = TicTacTwoRules.check_for_illegal_move(b, Move.double(4, 4, 'x'), agent_has_made_double_move=True)
    assert err.type == IllegalMoveType.DOUBLE_MOVE_NOT_AVAILABLE

    err = TicTacTwoRules.check_for_illegal_move(b, Move.double(0, 12, 'x'), agent_has_made_double_move=True)
    assert err.type == IllegalMoveType.DOUBLE_MOVE_NOT_AVAILABLE


def test_out_of_bounds_checked_before_cell_full():
    b = board_from_string('xx-|---|---|---|---|---|---|---|---')
    err = TicTacTwoRules.check_for_illegal_move(b, Move.double(0, 9, 'o'))
    assert err.type == IllegalMoveType.OUT_OF_BOUNDS


def test_cell_full():
    b = board_from_string('xx-|xoo|---|---|---|---|---|---|---')
    err = TicTacTwoRules.check_for_illegal_move(b, Move.single(0, 'o'))
    assert err.type == IllegalMoveType.CELL_FULL
    assert err.error_cell == 0

    err = TicTacTwoRules.check_for_illegal_move(b, Move.double(2, 1, 'o'))
    assert err.type == IllegalMoveType.CELL_FULL
    assert err.error_cell == 1

    assert not TicTacTwoRules.check_for_illegal_move(b, Move.double(2, 3, 'o')).has_error


@pytest.mark.parametrize("move", [
    Move(positions=(1, 2), mark='x', is_double_move=False),
    Move(positions=(1,), mark='x', is_double_move=True),
    Move(positions=(1,), mark='z', is_double_move=False),
    Move(positions=(1.5,), mark='x', is_double_move=False),
    Move(positions=(True,), mark='x', is_double_move=False),
    Move(positions=(), mark='x', is_double_move=False),
])
def test_malformed_moves_rejected_before_board_access(move):
    b = create_empty_board(3)
    before = b.copy()
    with pytest.raises(MalformedMoveError):
        TicTacTwoRules.check_for_illegal_move(b, move)
    assert (b == before).all()


def test_board_full_and_double_targets():
    b = board_from_string('xx-|oo-|xox|oxo|x--|---|---|---|---')
    assert not is_board_full(b)
    targets = TicTacTwoRules.double_move_targets(b)
    assert (4, 4) in targets
    assert (5, 5) in targets
    assert (0, 5) not in targets

    full = board_from_string('xx-|oo-|xox|oxo|xx-|oo-|xx-|oo-|xox')
    assert is_board_full(full)
    assert TicTacTwoRules.is_done(full)
    assert TicTacTwoRules.legal_positions(full) == []


if __name__ == "__main__":
    test_winner_top_row_single_slot_cells()
    test_out_of_bounds()
    test_double_move_not_possible()
    test_double_move_not_available_comes_first()
    print("OK: board tests passed")
