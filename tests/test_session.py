"""Tests for GameSession sequencing: moves, win/loss, power-ups and undo."""
from __future__ import annotations

import random

import pytest

import core
from core import DIRECTION, Snapshot, Tile
from session import GameMode, GameSession, GameStatus


class _FixedRandom:
    """Always spawns a 2 in the first empty cell."""

    def choice(self, seq):
        return seq[0]

    def random(self):
        return 0.5


def _restore(tiles, score=0, mode=GameMode.FUN, **kwargs):
    return GameSession.restore(
        tiles, score, grid_size=4, mode=mode, rng=_FixedRandom(),
        new_id=core.TileIdCounter("spawn"), **kwargs,
    )


def _almost_stuck_board():
    # Every adjacent pair differs; (3, 0) is the only gap so LEFT is the
    # only move and the spawn into (3, 3) leaves no equal neighbours.
    return [
        Tile(f"t{r}{c}", 2 ** (r + c + 1), r, c)
        for r in range(4)
        for c in range(4)
        if (r, c) != (3, 0)
    ]


def _checkerboard():
    return [Tile(f"t{r}{c}", 2 if (r + c) % 2 == 0 else 4, r, c) for r in range(4) for c in range(4)]


@pytest.fixture
def session():
    s = GameSession(4, rng=random.Random(5), new_id=core.TileIdCounter())
    s.start()
    return s


class TestLifecycle:

    def test_start(self, session):
        assert len(session.tiles) == 2
        assert session.score == 0
        assert session.status == GameStatus.PLAYING
        assert session.history == ()
        core.validate_tiles(session.tiles, 4)

    def test_restart_clears_state(self, session):
        session.score = 100
        session.history = (Snapshot((), 4),)
        session.start()
        assert session.score == 0
        assert session.history == ()

    def test_rejects_bad_grid_size(self):
        with pytest.raises(ValueError):
            GameSession(3)

    def test_restore_validates_tiles(self):
        with pytest.raises(ValueError):
            _restore([Tile("a", 2, 0, 0), Tile("b", 2, 0, 0)])
        with pytest.raises(ValueError):
            _restore([], score=-1)

    def test_restore_rejects_status_that_contradicts_the_board(self):
        with pytest.raises(ValueError):
            _restore([Tile("a", 2048, 0, 0)], status=GameStatus.WON)
        with pytest.raises(ValueError):
            _restore([Tile("a", 2, 0, 0)], status=GameStatus.LOST)
        with pytest.raises(ValueError):
            _restore(_checkerboard())

    def test_restore_accepts_a_win_on_a_stuck_board(self):
        s = _restore(_checkerboard(), status=GameStatus.WON, has_won=True, win_tile=4)
        assert s.status == GameStatus.WON

    def test_matrix_is_a_copy(self):
        s = _restore([Tile("a", 2, 1, 1)])
        matrix = s.matrix()
        matrix[1][1] = 1024
        assert s.tiles == [Tile("a", 2, 1, 1)]


class TestMove:

    def test_effective_move_merges_spawns_and_records(self):
        s = _restore([Tile("a", 2, 0, 2), Tile("b", 2, 0, 3)], score=10)
        outcome = s.move(DIRECTION.LEFT)
        assert outcome.moved is True
        assert outcome.score_increase == 4
        assert s.score == 14
        assert s.tiles[0] == Tile("a", 4, 0, 0, is_merged=True)
        assert s.tiles[1] == Tile("spawn_0", 2, 0, 1, is_new=True)
        assert s.history == (Snapshot((Tile("a", 2, 0, 2), Tile("b", 2, 0, 3)), 10),)

    def test_ineffective_move_changes_nothing(self):
        tiles = [Tile("a", 2, 0, 0), Tile("b", 4, 0, 1)]
        s = _restore(tiles)
        outcome = s.move(DIRECTION.LEFT)
        assert outcome == (False, 0, GameStatus.PLAYING)
        assert s.tiles == tiles
        assert s.history == ()

    def test_invalid_direction(self, session):
        with pytest.raises(ValueError):
            session.move("UP")

    def test_loss(self):
        s = _restore(_almost_stuck_board(), score=50)
        outcome = s.move(DIRECTION.LEFT)
        assert outcome.moved is True
        assert outcome.status == GameStatus.LOST
        assert core.is_terminal(s.tiles, 4)
        assert s.move(DIRECTION.RIGHT).moved is False

    def test_undo_after_loss_resumes_play(self):
        board = _almost_stuck_board()
        s = _restore(board, score=50)
        s.move(DIRECTION.LEFT)
        assert s.undo() is True
        assert s.status == GameStatus.PLAYING
        assert s.tiles == board
        assert s.score == 50

    def test_win_is_reported_once(self):
        s = _restore([
            Tile("a", 1024, 0, 0), Tile("b", 1024, 0, 1),
            Tile("c", 1024, 1, 0), Tile("d", 1024, 1, 1),
        ])
        outcome = s.move(DIRECTION.LEFT)
        assert outcome.status == GameStatus.WON
        assert s.has_won is True
        assert s.move(DIRECTION.UP).moved is False

        assert s.keep_playing() is True
        assert s.status == GameStatus.PLAYING
        outcome = s.move(DIRECTION.UP)
        assert outcome.moved is True
        assert outcome.score_increase == 4096
        assert outcome.status == GameStatus.PLAYING

    def test_keep_playing_only_after_win(self, session):
        assert session.keep_playing() is False

    def test_win_on_a_stuck_board_then_keep_playing_loses(self):
        s = _restore(_almost_stuck_board(), score=50, win_tile=128)
        outcome = s.move(DIRECTION.LEFT)
        assert outcome.status == GameStatus.WON
        assert core.is_terminal(s.tiles, 4)

        assert s.keep_playing() is True
        assert s.status == GameStatus.LOST
        for direction in DIRECTION:
            assert s.move(direction) == (False, 0, GameStatus.LOST)

    def test_classic_mode_keeps_no_history(self):
        s = _restore([Tile("a", 2, 0, 3)], mode=GameMode.CLASSIC)
        assert s.move(DIRECTION.LEFT).moved is True
        assert s.history == ()
        assert s.undo() is False


class TestPowerUps:

    def test_remove_records_history(self):
        s = _restore([Tile("a", 2, 0, 0), Tile("b", 8, 2, 2)], score=12)
        assert s.remove_tile("a") is True
        assert s.tiles == [Tile("b", 8, 2, 2)]
        assert s.score == 12
        assert len(s.history) == 1

    def test_remove_missing_records_nothing(self):
        s = _restore([Tile("a", 2, 0, 0)])
        assert s.remove_tile("zz") is False
        assert s.history == ()

    def test_swap_and_undo(self):
        tiles = [Tile("a", 2, 0, 0), Tile("b", 8, 2, 2)]
        s = _restore(tiles)
        assert s.swap_tiles("a", "b") is True
        assert s.tiles == [Tile("a", 2, 2, 2), Tile("b", 8, 0, 0)]
        assert s.undo() is True
        assert s.tiles == tiles
        assert s.undo() is False

    def test_swap_same_tile_is_a_no_op(self):
        s = _restore([Tile("a", 2, 0, 0)])
        assert s.swap_tiles("a", "a") is False
        assert s.history == ()

    def test_power_ups_do_not_spawn(self):
        s = _restore([Tile("a", 2, 0, 0), Tile("b", 4, 0, 1)])
        s.remove_tile("a")
        assert len(s.tiles) == 1

    def test_unavailable_in_classic_mode(self):
        s = _restore([Tile("a", 2, 0, 0), Tile("b", 4, 0, 1)], mode=GameMode.CLASSIC)
        assert s.remove_tile("a") is False
        assert s.swap_tiles("a", "b") is False
        assert len(s.tiles) == 2

    def test_unavailable_when_game_is_over(self):
        s = _restore(_checkerboard(), status=GameStatus.LOST)
        assert s.remove_tile("t00") is False
        assert len(s.tiles) == 16

    def test_swap_that_leaves_no_moves_ends_the_game(self):
        tiles = core.swap(_checkerboard(), "t00", "t01")
        s = _restore(tiles)
        assert s.swap_tiles("t00", "t01") is True
        assert s.status == GameStatus.LOST
        assert s.undo() is True
        assert s.status == GameStatus.PLAYING

    def test_history_keeps_last_ten(self):
        tiles = [Tile(f"t{i}", 2, i // 4, i % 4) for i in range(12)]
        s = _restore(tiles)
        for tile in tiles:
            assert s.remove_tile(tile.id) is True
        assert len(s.history) == core.HISTORY_CAPACITY
        # the two oldest snapshots (12 and 11 tiles) were evicted
        assert len(s.history[0].tiles) == 10
        assert len(s.history[-1].tiles) == 1
