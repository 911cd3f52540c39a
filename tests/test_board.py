import pytest

from crowdtris.board import EMPTY, LIGHT_BACKGROUND, Board

X = "🟥"


def test_from_rows_takes_dimensions_from_rows():
    board = Board.from_rows([[EMPTY, X, EMPTY], [X, X, X]])
    assert (board.width, board.height) == (3, 2)
    assert board.get_cell(0, 1) == X
    assert board.rows() == [[EMPTY, X, EMPTY], [X, X, X]]


def test_from_rows_rejects_ragged_or_empty_input():
    with pytest.raises(ValueError):
        Board.from_rows([[EMPTY, EMPTY], [EMPTY]])
    with pytest.raises(ValueError):
        Board.from_rows([])


def test_cell_access_out_of_bounds_raises():
    board = Board(4, 3)
    with pytest.raises(IndexError):
        board.get_cell(3, 0)
    with pytest.raises(IndexError):
        board.set_cell(0, -1, X)
    assert board.is_empty(0, 0)
    assert not board.is_empty(-1, 0)


def test_row_full_and_shift_down_keeps_top_row():
    board = Board(3, 4)
    board.set_cell(0, 0, X)
    for col in range(3):
        board.set_cell(2, col, X)
    assert board.is_row_full(2)
    assert not board.is_row_full(3)

    board.shift_down(2)
    assert board.rows() == [
        [X, EMPTY, EMPTY],
        [X, EMPTY, EMPTY],
        [EMPTY, EMPTY, EMPTY],
        [EMPTY, EMPTY, EMPTY],
    ]


def test_render_replaces_empty_cells():
    board = Board(2, 2)
    board.set_cell(1, 1, X)
    assert board.render() == f"{EMPTY}{EMPTY}\n{EMPTY}{X}"
    assert board.render(LIGHT_BACKGROUND) == f"{LIGHT_BACKGROUND}{LIGHT_BACKGROUND}\n{LIGHT_BACKGROUND}{X}"
