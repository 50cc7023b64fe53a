# core.py
# This file is the stateless grid engine for the Neon Sums 2048 game.

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional, Set, Tuple
import itertools
import logging
import random
import uuid

logger = logging.getLogger(__name__)

GRID_SIZES: Tuple[int, ...] = (4, 5, 6)
HISTORY_CAPACITY = 10
SPAWN_FOUR_PROBABILITY = 0.1


class DIRECTION(Enum):
    """Represents the possible move directions."""
    UP = "UP"
    DOWN = "DOWN"
    LEFT = "LEFT"
    RIGHT = "RIGHT"


@dataclass(frozen=True)
class Tile:
    """A single numbered tile on the board."""
    id: str
    value: int
    row: int
    col: int
    is_new: bool = False
    is_merged: bool = False


class MoveResult(NamedTuple):
    """Outcome of resolving a directional move."""
    tiles: List[Tile]
    score_increase: int
    moved: bool


class Snapshot(NamedTuple):
    """A captured (tiles, score) pair used for undo."""
    tiles: Tuple[Tile, ...]
    score: int


TileIdFactory = Callable[[], str]

# --- Tile Identifiers ---

class TileIdCounter:
    """Session-scoped monotonic id factory: tile_0, tile_1, ..."""

    def __init__(self, prefix: str = "tile", start: int = 0):
        self.prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self.prefix}_{next(self._counter)}"


def random_tile_id() -> str:
    """Collision-resistant tile id for callers that keep no counter."""
    return f"tile_{uuid.uuid4().hex}"

# --- Grid Helper Functions ---

def validate_grid_size(grid_size: int) -> int:
    """
    Checks that the grid size is one of the supported sizes.
    Args:
        grid_size (int): The dimension N of the N x N grid.
    Returns:
        int: The validated grid size.
    Raises:
        ValueError: If the size is not in GRID_SIZES.
    """
    if isinstance(grid_size, bool) or grid_size not in GRID_SIZES:
        raise ValueError(f"Grid size must be one of {GRID_SIZES}, got {grid_size!r}.")
    return grid_size


def validate_direction(direction: DIRECTION) -> DIRECTION:
    if not isinstance(direction, DIRECTION):
        raise ValueError(f"Invalid direction {direction!r}.")
    return direction


def _is_power_of_two(value: int) -> bool:
    return value >= 2 and value & (value - 1) == 0


def validate_tiles(tiles: List[Tile], grid_size: int) -> None:
    """
    Checks the tile store invariants: coordinates inside the grid, one tile
    per cell, unique ids and power-of-two values.
    Args:
        tiles (List[Tile]): The tiles to check.
        grid_size (int): The dimension of the grid.
    Raises:
        ValueError: On the first violated invariant.
    """
    validate_grid_size(grid_size)
    seen_ids: Set[str] = set()
    seen_cells: Set[Tuple[int, int]] = set()
    for tile in tiles:
        if not (0 <= tile.row < grid_size and 0 <= tile.col < grid_size):
            raise ValueError(f"Tile {tile.id!r} at ({tile.row}, {tile.col}) is outside the grid.")
        if tile.id in seen_ids:
            raise ValueError(f"Duplicate tile id {tile.id!r}.")
        if (tile.row, tile.col) in seen_cells:
            raise ValueError(f"Cell ({tile.row}, {tile.col}) is occupied by more than one tile.")
        if not _is_power_of_two(tile.value):
            raise ValueError(f"Tile {tile.id!r} has invalid value {tile.value}.")
        seen_ids.add(tile.id)
        seen_cells.add((tile.row, tile.col))


def get_empty_cells(tiles: List[Tile], grid_size: int) -> List[Tuple[int, int]]:
    """
    Get coordinates of unoccupied cells, in row-major order.
    Args:
        tiles (List[Tile]): The tiles on the board.
        grid_size (int): The dimension of the grid.
    Returns:
        List[Tuple[int, int]]: List of (row, col) tuples for empty cells.
    """
    occupied = {(t.row, t.col) for t in tiles}
    return [
        (row, col)
        for row in range(grid_size)
        for col in range(grid_size)
        if (row, col) not in occupied
    ]


def to_matrix(tiles: List[Tile], grid_size: int) -> List[List[int]]:
    """
    Renders the tiles as an N x N matrix of values, 0 for empty cells.
    This is a fresh copy and the only board view handed to the advisor.
    """
    matrix = [[0] * grid_size for _ in range(grid_size)]
    for tile in tiles:
        matrix[tile.row][tile.col] = tile.value
    return matrix


def max_tile_value(tiles: List[Tile]) -> int:
    return max((t.value for t in tiles), default=0)


def check_for_win(tiles: List[Tile], win_tile: int = 2048) -> bool:
    """
    Check if any tile has reached the win tile value.
    Args:
        tiles (List[Tile]): The tiles on the board.
        win_tile (int): The tile value that signifies a win. Default is 2048.
    Returns:
        bool: True if the game is won, False otherwise.
    """
    return max_tile_value(tiles) >= win_tile

# --- Spawning ---

def spawn(
    tiles: List[Tile],
    grid_size: int,
    rng: Optional[random.Random] = None,
    new_id: Optional[TileIdFactory] = None,
) -> List[Tile]:
    """
    Adds a new tile (90% chance of 2, 10% chance of 4) to a random empty cell.
    Args:
        tiles (List[Tile]): The current tiles.
        grid_size (int): The dimension of the grid.
        rng (random.Random): Source of randomness, defaults to the random module.
        new_id (TileIdFactory): Id factory for the new tile, defaults to random_tile_id.
    Returns:
        List[Tile]: A new list with the spawned tile appended, or the input
                    list itself if the grid is full.
    """
    empty_cells = get_empty_cells(tiles, grid_size)
    if not empty_cells:
        return tiles

    rng = rng or random
    new_id = new_id or random_tile_id
    row, col = rng.choice(empty_cells)
    value = 4 if rng.random() < SPAWN_FOUR_PROBABILITY else 2
    tile = Tile(id=new_id(), value=value, row=row, col=col, is_new=True)
    logger.debug("Spawned %s (%d) at (%d, %d)", tile.id, value, row, col)
    return [*tiles, tile]


def new_session(
    grid_size: int = 4,
    rng: Optional[random.Random] = None,
    new_id: Optional[TileIdFactory] = None,
) -> Tuple[List[Tile], int]:
    """
    Creates the opening board: two spawned tiles and a score of zero.
    Raises:
        ValueError: If the grid size is not supported.
    """
    validate_grid_size(grid_size)
    tiles: List[Tile] = []
    tiles = spawn(tiles, grid_size, rng, new_id)
    tiles = spawn(tiles, grid_size, rng, new_id)
    return tiles, 0

# --- Core Game Move Processing ---

def resolve(tiles: List[Tile], direction: DIRECTION, grid_size: int) -> MoveResult:
    """
    Slides and merges every line of the board in the given direction.

    Each row (LEFT/RIGHT) or column (UP/DOWN) is walked from its leading
    edge. The most recently placed tile is the merge candidate; an equal
    tile following it is absorbed into it and clears the candidate, so a
    tile takes part in at most one merge per move. Input tiles are never
    mutated.

    Args:
        tiles (List[Tile]): The current tiles.
        direction (DIRECTION): The direction to move.
        grid_size (int): The dimension of the grid.
    Returns:
        MoveResult: The new tiles (input order, absorbed tiles dropped), the
                    score gained and whether anything moved or merged.
    Raises:
        ValueError: If the direction or grid size is invalid.
    """
    validate_direction(direction)
    validate_grid_size(grid_size)

    vertical = direction in (DIRECTION.UP, DIRECTION.DOWN)
    ascending = direction in (DIRECTION.LEFT, DIRECTION.UP)
    step = 1 if ascending else -1

    # Working copy addressed by index; flags reset for this resolution
    arena = [replace(t, is_new=False, is_merged=False) for t in tiles]
    lines: Dict[int, List[int]] = {}
    for index, tile in enumerate(arena):
        lines.setdefault(tile.col if vertical else tile.row, []).append(index)

    absorbed: Set[int] = set()
    score_increase = 0
    moved = False

    for indices in lines.values():
        indices.sort(
            key=lambda i: arena[i].row if vertical else arena[i].col,
            reverse=not ascending,
        )
        target = 0 if ascending else grid_size - 1
        candidate: Optional[int] = None

        for index in indices:
            tile = arena[index]
            if candidate is not None and arena[candidate].value == tile.value:
                merged_value = arena[candidate].value * 2
                arena[candidate] = replace(arena[candidate], value=merged_value, is_merged=True)
                score_increase += merged_value
                absorbed.add(index)
                candidate = None
                moved = True
                continue

            current = tile.row if vertical else tile.col
            if current != target:
                if vertical:
                    arena[index] = replace(tile, row=target)
                else:
                    arena[index] = replace(tile, col=target)
                moved = True
            candidate = index
            target += step

    new_tiles = [t for i, t in enumerate(arena) if i not in absorbed]
    if moved:
        logger.debug("Resolved %s: %d merges, +%d", direction.name, len(absorbed), score_increase)
    return MoveResult(new_tiles, score_increase, moved)

# --- Game State Checks ---

def is_terminal(tiles: List[Tile], grid_size: int) -> bool:
    """
    Check whether the grid is stuck: full and with no equal neighbours.
    Looking right and down from every tile covers each adjacent pair once.
    Args:
        tiles (List[Tile]): The tiles on the board.
        grid_size (int): The dimension of the grid.
    Returns:
        bool: True if no move is possible, False otherwise.
    """
    if len(tiles) < grid_size * grid_size:
        return False

    values = {(t.row, t.col): t.value for t in tiles}
    for (row, col), value in values.items():
        if values.get((row, col + 1)) == value:
            return False
        if values.get((row + 1, col)) == value:
            return False
    return True

# --- Power-ups ---

def remove(tiles: List[Tile], tile_id: str) -> List[Tile]:
    """
    Deletes the tile with the given id. Returns the input unchanged if no
    such tile exists. Score is not affected.
    """
    if not any(t.id == tile_id for t in tiles):
        return tiles
    logger.debug("Removed tile %s", tile_id)
    return [t for t in tiles if t.id != tile_id]


def swap(tiles: List[Tile], tile_id_1: str, tile_id_2: str) -> List[Tile]:
    """
    Exchanges the positions (not values or ids) of two tiles.
    Args:
        tiles (List[Tile]): The current tiles.
        tile_id_1 (str): Id of the first tile.
        tile_id_2 (str): Id of the second tile.
    Returns:
        List[Tile]: A new list with the two positions exchanged, or the input
                    unchanged if either id is missing or both ids are equal.
    """
    if tile_id_1 == tile_id_2:
        return tiles
    first = next((t for t in tiles if t.id == tile_id_1), None)
    second = next((t for t in tiles if t.id == tile_id_2), None)
    if first is None or second is None:
        return tiles

    swapped = {
        first.id: replace(first, row=second.row, col=second.col),
        second.id: replace(second, row=first.row, col=first.col),
    }
    logger.debug("Swapped tiles %s and %s", tile_id_1, tile_id_2)
    return [swapped.get(t.id, t) for t in tiles]

# --- Undo History ---

def history_push(history: Tuple[Snapshot, ...], snapshot: Snapshot) -> Tuple[Snapshot, ...]:
    """
    Appends a snapshot, evicting the oldest entries beyond HISTORY_CAPACITY.
    """
    return (*history, snapshot)[-HISTORY_CAPACITY:]


def history_pop(history: Tuple[Snapshot, ...]) -> Tuple[Optional[Snapshot], Tuple[Snapshot, ...]]:
    """
    Removes the most recent snapshot.
    Returns:
        Tuple[Optional[Snapshot], Tuple[Snapshot, ...]]: The popped snapshot
            (None when the history is empty) and the remaining history.
    """
    if not history:
        return None, history
    return history[-1], history[:-1]
