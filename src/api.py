from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field
from typing import Callable, List, Optional
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
import logging

import config
import core
from advisor import Advisor
from session import GameMode, GameSession, GameStatus

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Initialize the rate limiter
limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="Neon Sums 2048 API",
    description="A stateless API for playing 2048 with undo and power-ups. "\
                "Manage your game state (tiles, score, history) on the client side.",
    version="1.0.0"
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

advisor = Advisor()

# --- Pydantic Models for API requests and responses ---

class TileData(BaseModel):
    """A single tile on the board."""
    id: str = Field(..., min_length=1, description="Opaque tile identifier.")
    value: int = Field(..., ge=2, description="Tile value, a power of two.")
    row: int = Field(..., ge=0)
    col: int = Field(..., ge=0)
    is_new: bool = Field(default=False, description="Spawned by the last move.")
    is_merged: bool = Field(default=False, description="Produced by a merge in the last move.")

    @classmethod
    def from_tile(cls, tile: core.Tile) -> "TileData":
        return cls(
            id=tile.id, value=tile.value, row=tile.row, col=tile.col,
            is_new=tile.is_new, is_merged=tile.is_merged,
        )

    def to_tile(self) -> core.Tile:
        return core.Tile(self.id, self.value, self.row, self.col, self.is_new, self.is_merged)


class SnapshotData(BaseModel):
    """A (tiles, score) pair kept for undo."""
    tiles: List[TileData]
    score: int = Field(..., ge=0)


class NewGameSettings(BaseModel):
    """Settings for creating a new game."""
    size: int = Field(
        default=config.DEFAULT_GRID_SIZE,
        description="Size of the N x N game board: 4, 5 or 6."
    )
    win_tile: int = Field(
        default=config.WIN_TILE,
        ge=2,
        description="The tile value to achieve for winning the game (e.g., 2048)."
    )
    mode: GameMode = Field(
        default=GameMode.FUN,
        description="classic (no undo or power-ups) or fun."
    )


class GameStateData(BaseModel):
    """Represents the complete state of a game instance."""
    tiles: List[TileData] = Field(..., description="All tiles currently on the board.")
    score: int = Field(..., ge=0, description="Current score of the game.")
    status: GameStatus = Field(..., description="playing, won or lost.")
    has_won: bool = Field(default=False, description="True once the win tile has been reached.")
    win_tile: int = Field(..., ge=2, description="The tile value required to win this game instance.")
    board_size: int = Field(..., description="The dimension N of the N x N board.")
    mode: GameMode = Field(default=GameMode.FUN)
    history: List[SnapshotData] = Field(default_factory=list, description="Undo snapshots, oldest first.")


class StateRequestData(BaseModel):
    state: GameStateData


class MoveRequestData(StateRequestData):
    """Data required to make a move."""
    direction: core.DIRECTION = Field(
        ...,
        description="Direction of the move (UP, DOWN, LEFT, RIGHT)."
    )


class RemoveRequestData(StateRequestData):
    tile_id: str


class SwapRequestData(StateRequestData):
    tile_id_1: str
    tile_id_2: str


class MoveResponseData(GameStateData):
    """Response after a move, including the new game state and move effectiveness."""
    move_was_effective: bool = Field(
        ...,
        description="True if the move resulted in a change to the board state, False otherwise."
    )
    score_increase: int = Field(default=0, ge=0)
    message: Optional[str] = Field(
        default=None,
        description="An optional message, e.g., if a move was invalid, game ended, or other info."
    )


class ActionResponseData(GameStateData):
    """Response after a power-up, undo or continue request."""
    changed: bool = Field(..., description="False when the request was a no-op.")


class HintRequestData(BaseModel):
    board: List[List[int]] = Field(..., description="N x N board values, 0 for empty.")


class HintResponseData(BaseModel):
    direction: str
    reason: str


class CommentaryRequestData(BaseModel):
    score: int = Field(..., ge=0)
    won: bool = False


class CommentaryResponseData(BaseModel):
    comment: str

# --- State conversion ---

def session_from_state(state: GameStateData) -> GameSession:
    """Rebuilds a session from client-held state. Raises ValueError if invalid."""
    return GameSession.restore(
        tiles=[t.to_tile() for t in state.tiles],
        score=state.score,
        grid_size=state.board_size,
        win_tile=state.win_tile,
        mode=state.mode,
        status=state.status,
        has_won=state.has_won,
        history=[
            core.Snapshot(tuple(t.to_tile() for t in snap.tiles), snap.score)
            for snap in state.history
        ],
        new_id=core.random_tile_id,
    )


def state_fields(session: GameSession) -> dict:
    return dict(
        tiles=[TileData.from_tile(t) for t in session.tiles],
        score=session.score,
        status=session.status,
        has_won=session.has_won,
        win_tile=session.win_tile,
        board_size=session.grid_size,
        mode=session.mode,
        history=[
            SnapshotData(tiles=[TileData.from_tile(t) for t in snap.tiles], score=snap.score)
            for snap in session.history
        ],
    )


def _run_action(state: GameStateData, action: Callable[[GameSession], bool], what: str) -> ActionResponseData:
    try:
        session = session_from_state(state)
        changed = action(session)
        return ActionResponseData(changed=changed, **state_fields(session))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Error processing {what}: {str(e)}")
    except Exception as e:
        logger.error(f"Unexpected error in {what}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"An unexpected server error occurred during {what}.")

# --- API Endpoints ---

@app.post("/game/new", response_model=GameStateData, summary="Start a New 2048 Game")
@limiter.limit(config.RATE_LIMIT)
async def start_new_game(request: Request, settings: NewGameSettings):
    """
    Initializes a new game based on the provided settings.

    - **size**: Dimension of the N x N board (4, 5 or 6).
    - **win_tile**: Tile value to reach to win (e.g., 2048). Default is 2048.
    - **mode**: classic or fun.

    Returns the initial game state: two random tiles, score 0, status playing
    and an empty undo history.
    """
    try:
        session = GameSession(
            grid_size=settings.size,
            win_tile=settings.win_tile,
            mode=settings.mode,
            new_id=core.random_tile_id,
        )
        session.start()
        return GameStateData(**state_fields(session))
    except ValueError as e:
        # Invalid size or win tile
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error in /game/new: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"An unexpected error occurred during game creation: {str(e)}")


@app.post("/game/move", response_model=MoveResponseData, summary="Make a Move in the Game")
@limiter.limit(config.RATE_LIMIT)
async def make_move(request: Request, request_data: MoveRequestData):
    """
    Processes a player's move in the game.

    The API will:
    1. Slide and merge the tiles in the requested direction.
    2. If the move changed the board, record an undo snapshot (fun mode) and add a new tile.
    3. Determine the new game status (playing, won, lost).
    """
    message_for_client: Optional[str] = None
    try:
        session = session_from_state(request_data.state)
        outcome = session.move(request_data.direction)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Error processing move: {str(e)}")
    except Exception as e:
        logger.error(f"Unexpected error in /game/move: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"An unexpected server error occurred while processing the move: {str(e)}")

    if not outcome.moved:
        message_for_client = "Move was not effective; board state unchanged."
    if outcome.status == GameStatus.WON:
        message_for_client = "Congratulations! You won!"
    elif outcome.status == GameStatus.LOST:
        message_for_client = "Game Over. No more valid moves."

    return MoveResponseData(
        move_was_effective=outcome.moved,
        score_increase=outcome.score_increase,
        message=message_for_client,
        **state_fields(session),
    )


@app.post("/game/remove", response_model=ActionResponseData, summary="Remove a Tile (power-up)")
@limiter.limit(config.RATE_LIMIT)
async def remove_tile(request: Request, request_data: RemoveRequestData):
    """Deletes one tile. A missing id, classic mode or a finished game is a no-op."""
    return _run_action(request_data.state, lambda s: s.remove_tile(request_data.tile_id), "remove")


@app.post("/game/swap", response_model=ActionResponseData, summary="Swap Two Tiles (power-up)")
@limiter.limit(config.RATE_LIMIT)
async def swap_tiles(request: Request, request_data: SwapRequestData):
    """Exchanges the positions of two tiles."""
    return _run_action(
        request_data.state,
        lambda s: s.swap_tiles(request_data.tile_id_1, request_data.tile_id_2),
        "swap",
    )


@app.post("/game/undo", response_model=ActionResponseData, summary="Undo the Last Action")
@limiter.limit(config.RATE_LIMIT)
async def undo(request: Request, request_data: StateRequestData):
    return _run_action(request_data.state, lambda s: s.undo(), "undo")


@app.post("/game/continue", response_model=ActionResponseData, summary="Keep Playing After a Win")
@limiter.limit(config.RATE_LIMIT)
async def keep_playing(request: Request, request_data: StateRequestData):
    return _run_action(request_data.state, lambda s: s.keep_playing(), "continue")


@app.post("/advisor/hint", response_model=HintResponseData, summary="Ask the AI for a Move Hint")
@limiter.limit(config.RATE_LIMIT)
def get_hint(request: Request, request_data: HintRequestData):
    """
    Returns advisory text only. The suggestion is never applied to any game;
    when the AI is unavailable a fallback hint is returned.
    """
    hint = advisor.hint(request_data.board)
    return HintResponseData(direction=hint.direction, reason=hint.reason)


@app.post("/advisor/commentary", response_model=CommentaryResponseData, summary="AI Reaction to a Finished Game")
@limiter.limit(config.RATE_LIMIT)
def get_commentary(request: Request, request_data: CommentaryRequestData):
    return CommentaryResponseData(comment=advisor.commentary(request_data.score, request_data.won))
