# cli_driver.py
# This file is intended to be run to play or test the game on the CLI

from typing import List, Optional
import argparse
import logging
import random

import config
from advisor import Advisor
from core import DIRECTION, Tile
from session import GameMode, GameSession, GameStatus

DIRECTION_KEYS = {'W': DIRECTION.UP, 'A': DIRECTION.LEFT, 'S': DIRECTION.DOWN, 'D': DIRECTION.RIGHT}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Play Neon Sums 2048 in the terminal')
    parser.add_argument('--size', type=int, default=config.DEFAULT_GRID_SIZE, choices=[4, 5, 6],
                        help='Board dimension (default: %(default)s)')
    parser.add_argument('--win-tile', type=int, default=config.WIN_TILE,
                        help='Tile value that wins the game (default: %(default)s)')
    parser.add_argument('--mode', choices=[m.value for m in GameMode], default=GameMode.FUN.value,
                        help='classic disables undo, power-ups and hints')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for tile spawns')
    return parser.parse_args(argv)


def find_tile(tiles: List[Tile], row: int, col: int) -> Optional[Tile]:
    return next((t for t in tiles if t.row == row and t.col == col), None)


def read_cell(session: GameSession, prompt: str) -> Optional[Tile]:
    """Asks for 'row col' (1-based) and returns the tile there, if any."""
    parts = input(prompt).split()
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        print("Enter a row and a column, e.g. '1 3'.")
        return None
    tile = find_tile(session.tiles, int(parts[0]) - 1, int(parts[1]) - 1)
    if tile is None:
        print("There is no tile there.")
    return tile


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    logging.basicConfig(level=config.LOG_LEVEL)

    session = GameSession(args.size, args.win_tile, GameMode(args.mode), rng=random.Random(args.seed))
    advisor = Advisor(enabled=session.mode == GameMode.FUN and config.ADVISOR_ENABLED)
    best_score = 0

    # 1. Initialize game
    session.start()
    display_board_state(session, best_score)

    # 2. Game Loop
    while True:
        if session.status == GameStatus.LOST:
            print("No more moves possible. Better luck next time!")
            print(advisor.commentary(session.score, False))
            if session.mode != GameMode.FUN or input("Undo last move? (y/N): ").strip().upper() != 'Y':
                break
            if not session.undo():
                break
            display_board_state(session, best_score)
            continue

        if session.status == GameStatus.WON:
            print(f"Congratulations! You reached the {session.win_tile} tile!")
            print(advisor.commentary(session.score, True))
            if input("Keep playing? (y/N): ").strip().upper() != 'Y':
                break
            session.keep_playing()

        move_input = input("Move (W/A/S/D), U undo, R remove, X swap, H hint, Q quit: ").strip().upper()

        if move_input == 'Q':
            print("Quitting game.")
            break

        if move_input in DIRECTION_KEYS:
            # 3. Process the move; spawning and status checks happen in the session
            outcome = session.move(DIRECTION_KEYS[move_input])
            if not outcome.moved:
                print("Move did not change the board. Try a different direction.")
                continue
            best_score = max(best_score, session.score)
        elif session.mode != GameMode.FUN and move_input in ('U', 'R', 'X', 'H'):
            print("Undo, power-ups and hints are only available in fun mode.")
            continue
        elif move_input == 'U':
            if not session.undo():
                print("Nothing to undo.")
                continue
        elif move_input == 'R':
            tile = read_cell(session, "Tile to remove (row col): ")
            if tile is None or not session.remove_tile(tile.id):
                continue
        elif move_input == 'X':
            first = read_cell(session, "First tile (row col): ")
            second = read_cell(session, "Second tile (row col): ") if first else None
            if second is None or not session.swap_tiles(first.id, second.id):
                print("Nothing swapped.")
                continue
        elif move_input == 'H':
            hint = advisor.hint(session.matrix())
            print(f"AI suggests: {hint.direction} ({hint.reason})")
            continue
        else:
            print("Invalid input.")
            continue

        display_board_state(session, best_score)

    # 4. Game Ended
    print("\n--- Final Board State ---")
    display_board_state(session, best_score)


# --- Display Function ---
def display_board_state(session: GameSession, best_score: int):
    """Prints the board, score, and game status to the console."""
    print(f"\nScore: {session.score}  Best: {max(best_score, session.score)}")
    status_message = {
        GameStatus.PLAYING: f"Status: {session.status.value}",
        GameStatus.WON: "YOU WON!",
        GameStatus.LOST: "GAME OVER!"
    }
    print(status_message[session.status])

    for row in session.matrix():
        print("\t".join(str(v) if v else "." for v in row))
    if session.mode == GameMode.FUN:
        print(f"Undo steps available: {len(session.history)}")
    print("-" * (session.grid_size * 6))


if __name__ == "__main__":
    main()
