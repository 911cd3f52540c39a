from __future__ import annotations

import json
import logging
import random

import pytest

from crowdtris.board import EMPTY, LIGHT_BACKGROUND
from crowdtris.clients import ReplyFileClient
from crowdtris.commands import Intent
from crowdtris.errors import ExternalFetchError, PersistenceLoadError, PublishError
from crowdtris.grid import Grid
from crowdtris.piece import Piece
from crowdtris.session import Session, SessionConfig, load_grid, load_or_create, run_one_tick, save

I = "🟧"
I_SHAPE = ((I, I, I, I),)


def _grid_with(piece: Piece) -> Grid:
    grid = Grid(rng=random.Random(0))
    grid.board.fill()
    grid.pieces = [piece]
    grid.draw_piece_to_board(piece)
    return grid


def test_load_or_create_falls_back_when_missing(tmp_path, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="crowdtris.session"):
        grid = load_or_create(tmp_path / "missing.json")
    assert (grid.width, grid.height) == (8, 13)
    assert len(grid.pieces) == 1
    assert "Starting a new 8x13 game" in caplog.text


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        "[]",
        '{"pieces": []}',
        '{"pieces": [], "board": []}',
        '{"pieces": [{}], "board": [["⬛"]]}',
        '{"pieces": [{"shape": [[1, 1]], "position": [0, 0]}], "board": [["⬛"]]}',
        '{"pieces": [{"shape": [[null, null]], "position": [0, 0]}], "board": [["⬛"]]}',
    ],
)
def test_load_or_create_falls_back_on_malformed_state(tmp_path, content: str) -> None:
    path = tmp_path / "save.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(PersistenceLoadError):
        load_grid(path)
    grid = load_or_create(path, default_width=10, default_height=12)
    assert (grid.width, grid.height) == (10, 12)


def test_save_and_load_round_trip(tmp_path) -> None:
    grid = Grid(10, 18, rng=random.Random(5))
    for _ in range(30):
        grid.tick(intent=Intent.LEFT)
    path = tmp_path / "nested" / "save.json"
    save(grid, path)

    restored = load_grid(path)
    assert (restored.width, restored.height) == (10, 18)
    assert restored.board.rows() == grid.board.rows()
    assert [p.to_record() for p in restored.pieces] == [p.to_record() for p in grid.pieces]
    assert [p.project_cells() for p in restored.pieces] == [p.project_cells() for p in grid.pieces]
    assert restored.render_text() == grid.render_text()


def test_saved_file_uses_documented_layout(tmp_path) -> None:
    grid = _grid_with(Piece(I_SHAPE, position=(0, 1), rotation=2))
    path = tmp_path / "save.json"
    save(grid, path)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert set(data) == {"pieces", "board"}
    assert data["pieces"] == [{"shape": [[I, I, I, I]], "position": [0, 1], "rotation": 2, "fixed": False}]
    assert len(data["board"]) == 18 and len(data["board"][0]) == 10
    assert I in path.read_text(encoding="utf-8")


def test_dimensions_come_from_board(tmp_path) -> None:
    record = {
        "pieces": [{"shape": [[I, I, I, I]], "position": [3, 0], "rotation": 0, "fixed": True}],
        "board": [[EMPTY] * 5 for _ in range(7)],
    }
    grid = Grid.from_record(record)
    assert (grid.width, grid.height) == (5, 7)
    assert grid.pieces[0].fixed


def test_legacy_keys_are_accepted(tmp_path) -> None:
    path = tmp_path / "save.json"
    record = {
        "blocks": [{"shape": [[I, I, I, I]], "position": [-1, 2], "rotation": 1, "fixed": False}],
        "rows": [[EMPTY] * 8 for _ in range(13)],
    }
    path.write_text(json.dumps(record), encoding="utf-8")
    grid = load_grid(path)
    assert (grid.width, grid.height) == (8, 13)
    assert grid.pieces[0].rotation == 1


def test_run_one_tick_order_and_persistence(tmp_path) -> None:
    piece = Piece(I_SHAPE, position=(2, 3))
    grid = _grid_with(piece)
    path = tmp_path / "save.json"
    calls = []

    def fetch():
        calls.append("fetch")
        return ["left", "go left", "right"]

    def publish(text):
        calls.append("publish")
        assert not path.exists()
        return "1"

    report = run_one_tick(grid, fetch, publish, path)

    assert calls == ["fetch", "publish"]
    assert report.intent == Intent.LEFT
    assert piece.position == (3, 2)
    assert report.text == grid.render_text()
    assert report.published and report.saved
    assert load_grid(path).board.rows() == grid.board.rows()


def test_fetch_failure_still_advances_grid(tmp_path, caplog) -> None:
    piece = Piece(I_SHAPE, position=(2, 3))
    grid = _grid_with(piece)
    path = tmp_path / "save.json"

    def fetch():
        raise ExternalFetchError("feed down")

    with caplog.at_level(logging.WARNING, logger="crowdtris.session"):
        report = run_one_tick(grid, fetch, lambda text: "1", path)

    assert report.intent == Intent.NONE
    assert piece.position == (3, 3)
    assert report.saved and path.exists()
    assert "Could not fetch replies" in caplog.text


def test_publish_failure_skips_save(tmp_path, caplog) -> None:
    piece = Piece(I_SHAPE, position=(2, 3))
    grid = _grid_with(piece)
    path = tmp_path / "save.json"

    def publish(text):
        raise PublishError("rate limited")

    with caplog.at_level(logging.ERROR, logger="crowdtris.session"):
        report = run_one_tick(grid, lambda: [], publish, path)

    assert not report.published
    assert not report.saved
    assert not path.exists()
    assert piece.position == (3, 3)
    assert "Could not publish board" in caplog.text


def test_save_failure_is_logged_not_raised(tmp_path, caplog) -> None:
    piece = Piece(I_SHAPE, position=(2, 3))
    grid = _grid_with(piece)
    blocker = tmp_path / "file.txt"
    blocker.write_text("", encoding="utf-8")

    with caplog.at_level(logging.ERROR, logger="crowdtris.session"):
        report = run_one_tick(grid, lambda: [], lambda text: "1", blocker / "save.json")

    assert report.published
    assert not report.saved
    assert piece.position == (3, 3)
    assert "Could not save state" in caplog.text


def test_undecodable_replies_do_not_stop_the_tick(tmp_path) -> None:
    replies = tmp_path / "replies.txt"
    replies.write_bytes(b"left\n\xff\xfe bad\n")
    config = SessionConfig(save_path=tmp_path / "save.json")
    piece = Piece(I_SHAPE, position=(2, 3))
    session = Session(ReplyFileClient(replies, tmp_path / "out.txt"), config, grid=_grid_with(piece), background=EMPTY)

    report = session.tick()

    assert report.intent == Intent.NONE
    assert piece.position == (3, 3)
    assert report.saved


def test_render_uses_given_background(tmp_path) -> None:
    grid = _grid_with(Piece(I_SHAPE, position=(2, 3)))
    report = run_one_tick(grid, lambda: [], lambda text: "1", tmp_path / "s.json", background=LIGHT_BACKGROUND)
    assert EMPTY not in report.text
    assert LIGHT_BACKGROUND in report.text
    assert report.text.count("\n") == grid.height - 1


@pytest.mark.parametrize(
    ("hour", "expected"),
    [(23, EMPTY), (0, EMPTY), (9, EMPTY), (10, LIGHT_BACKGROUND), (12, LIGHT_BACKGROUND), (22, LIGHT_BACKGROUND)],
)
def test_config_background_follows_hour(hour: int, expected: str) -> None:
    assert SessionConfig().background(hour) == expected


def test_session_ticks_against_reply_file(tmp_path) -> None:
    replies = tmp_path / "replies.txt"
    replies.write_text("right\n\n➡️ please\nspin\n", encoding="utf-8")
    outbox = tmp_path / "outbox.txt"
    config = SessionConfig(save_path=tmp_path / "save.json", interval_ms=0)
    piece = Piece(I_SHAPE, position=(2, 3))
    session = Session(ReplyFileClient(replies, outbox), config, grid=_grid_with(piece), background=EMPTY)

    report = session.tick()

    assert report.intent == Intent.RIGHT
    assert piece.position == (3, 4)
    assert outbox.read_text(encoding="utf-8").startswith(report.text)
    assert config.save_path.exists()
    assert session.grid.interval == 0


def test_session_loads_saved_game(tmp_path) -> None:
    path = tmp_path / "save.json"
    save(_grid_with(Piece(I_SHAPE, position=(4, 0))), path)
    session = Session(ReplyFileClient(tmp_path / "none.txt"), SessionConfig(save_path=path))
    assert session.grid.pieces[0].position == (4, 0)
    assert session.background in (EMPTY, LIGHT_BACKGROUND)
