# session.py
# Stateful game session: owns the tile store, score, status and undo history,
# and sequences the stateless core operations.

from enum import Enum
from typing import List, NamedTuple, Optional, Sequence, Tuple
import logging
import random

import core
from core import DIRECTION, Snapshot, Tile, TileIdFactory

logger = logging.getLogger(__name__)


class GameStatus(Enum):
    """Represents the current progress state of the game."""
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"


class GameMode(Enum):
    """Classic mode has no undo, power-ups or advisor; fun mode has all three."""
    CLASSIC = "classic"
    FUN = "fun"


class MoveOutcome(NamedTuple):
    """What a call to GameSession.move did."""
    moved: bool
    score_increase: int
    status: GameStatus


class GameSession:
    """
    A single game from start to finish.

    The session is the only writer of its tiles. Moves are applied as
    resolve -> spawn -> terminal check -> commit; power-ups and undo bypass
    the resolver. Calls are expected to be serialized by the caller.
    """

    def __init__(
        self,
        grid_size: int = 4,
        win_tile: int = 2048,
        mode: GameMode = GameMode.FUN,
        rng: Optional[random.Random] = None,
        new_id: Optional[TileIdFactory] = None,
    ):
        self.grid_size = core.validate_grid_size(grid_size)
        if win_tile < 2:
            raise ValueError("Win tile must be at least 2.")
        self.win_tile = win_tile
        self.mode = mode
        self.rng = rng or random.Random()
        self.new_id = new_id or core.TileIdCounter()
        self.tiles: List[Tile] = []
        self.score = 0
        self.status = GameStatus.PLAYING
        self.has_won = False
        self.history: Tuple[Snapshot, ...] = ()

    @classmethod
    def restore(
        cls,
        tiles: Sequence[Tile],
        score: int,
        grid_size: int,
        win_tile: int = 2048,
        mode: GameMode = GameMode.FUN,
        status: GameStatus = GameStatus.PLAYING,
        has_won: bool = False,
        history: Sequence[Snapshot] = (),
        rng: Optional[random.Random] = None,
        new_id: Optional[TileIdFactory] = None,
    ) -> "GameSession":
        """
        Rebuilds a session from state held by the caller.
        Raises:
            ValueError: If the tiles or any snapshot break the board invariants,
                        or the score is negative. Also raised when the status
                        does not match the board: won without has_won, lost
                        with moves left, or playing with none.
        """
        session = cls(grid_size, win_tile, mode, rng, new_id)
        if score < 0:
            raise ValueError("Score must be non-negative.")
        core.validate_tiles(list(tiles), grid_size)
        for snapshot in history:
            core.validate_tiles(list(snapshot.tiles), grid_size)
        if status == GameStatus.WON and not has_won:
            raise ValueError("Status won requires has_won.")
        terminal = core.is_terminal(list(tiles), grid_size)
        if (status == GameStatus.LOST and not terminal) or (status == GameStatus.PLAYING and terminal):
            raise ValueError(f"Status {status.value} does not match the board.")
        session.tiles = list(tiles)
        session.score = score
        session.status = status
        session.has_won = has_won
        session.history = tuple(history)[-core.HISTORY_CAPACITY:]
        return session

    # --- Lifecycle ---

    def start(self) -> None:
        """Begins a fresh game on the same grid size."""
        self.tiles, self.score = core.new_session(self.grid_size, self.rng, self.new_id)
        self.status = GameStatus.PLAYING
        self.has_won = False
        self.history = ()
        logger.info("New %dx%d game started in %s mode", self.grid_size, self.grid_size, self.mode.value)

    def keep_playing(self) -> bool:
        """
        Acknowledges a win and resumes play. A winning move may also have
        filled the board, in which case the game goes straight to lost.
        """
        if self.status != GameStatus.WON:
            return False
        self.status = self._status_after_change()
        return True

    def _status_after_change(self) -> GameStatus:
        if core.is_terminal(self.tiles, self.grid_size):
            logger.info("No moves left, final score %d", self.score)
            return GameStatus.LOST
        return GameStatus.PLAYING

    @property
    def history_enabled(self) -> bool:
        return self.mode == GameMode.FUN

    def matrix(self) -> List[List[int]]:
        return core.to_matrix(self.tiles, self.grid_size)

    def snapshot_state(self) -> Snapshot:
        return Snapshot(tuple(self.tiles), self.score)

    def _record(self) -> None:
        if self.history_enabled:
            self.history = core.history_push(self.history, self.snapshot_state())

    # --- Moves ---

    def move(self, direction: DIRECTION) -> MoveOutcome:
        """
        Plays one directional move.
        Args:
            direction (DIRECTION): The direction to move.
        Returns:
            MoveOutcome: Whether the board changed, the score gained and the
                         resulting status. A move that changes nothing does not
                         spawn, record history or change the status.
        Raises:
            ValueError: If the direction is invalid.
        """
        if self.status != GameStatus.PLAYING:
            core.validate_direction(direction)
            return MoveOutcome(False, 0, self.status)

        result = core.resolve(self.tiles, direction, self.grid_size)
        if not result.moved:
            return MoveOutcome(False, 0, self.status)

        self._record()
        tiles = core.spawn(result.tiles, self.grid_size, self.rng, self.new_id)
        self.tiles = tiles
        self.score += result.score_increase

        if not self.has_won and core.check_for_win(tiles, self.win_tile):
            self.has_won = True
            self.status = GameStatus.WON
            logger.info("Reached %d with score %d", self.win_tile, self.score)
        elif core.is_terminal(tiles, self.grid_size):
            self.status = GameStatus.LOST
            logger.info("No moves left, final score %d", self.score)

        return MoveOutcome(True, result.score_increase, self.status)

    # --- Power-ups ---

    def _power_ups_available(self) -> bool:
        return self.mode == GameMode.FUN and self.status == GameStatus.PLAYING

    def remove_tile(self, tile_id: str) -> bool:
        """Removes a tile. Returns False if nothing changed."""
        if not self._power_ups_available():
            return False
        tiles = core.remove(self.tiles, tile_id)
        if tiles is self.tiles:
            return False
        self._record()
        self.tiles = tiles
        return True

    def swap_tiles(self, tile_id_1: str, tile_id_2: str) -> bool:
        """Swaps the positions of two tiles. Returns False if nothing changed."""
        if not self._power_ups_available():
            return False
        tiles = core.swap(self.tiles, tile_id_1, tile_id_2)
        if tiles is self.tiles:
            return False
        self._record()
        self.tiles = tiles
        self.status = self._status_after_change()
        return True

    def undo(self) -> bool:
        """
        Restores the tiles and score from before the last recorded operation.
        Undo always returns the game to playing, even from a lost board.
        """
        if not self.history_enabled:
            return False
        previous, self.history = core.history_pop(self.history)
        if previous is None:
            return False
        self.tiles = list(previous.tiles)
        self.score = previous.score
        self.status = GameStatus.PLAYING
        logger.debug("Undo to score %d, %d snapshots left", self.score, len(self.history))
        return True
