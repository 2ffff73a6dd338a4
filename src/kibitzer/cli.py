#!/usr/bin/env python3
"""
Command-Line Interface for Kibitzer
-----------------------------------
Ask the orchestrator for a single move, or play a full game against it in the
terminal.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Callable, Optional

import chess

from .exceptions import KibitzerError
from .game.orchestrator import Orchestrator
from .utils.chess_utils import legal_moves, parse_uci
from .utils.config_loader import default_config, load_config
from .utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)


def pick_move(args, config) -> int:
    """Entry point for the 'pick' subcommand."""
    try:
        chess.Board(args.fen)
    except ValueError as e:
        print(f"✗ Invalid FEN: {e}", file=sys.stderr)
        return 2
    fen = args.fen.strip()

    async def _run():
        async with Orchestrator.from_config(config) as orchestrator:
            return await orchestrator.pick_move(fen, legal_moves(fen))

    result = asyncio.run(_run())
    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0


async def play_game(
    orchestrator: Orchestrator,
    human_color: chess.Color = chess.WHITE,
    read_line: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> str:
    """Alternate human and orchestrator moves until the game ends.

    Returns the PGN result string ("*" when the human quits).
    """
    board = chess.Board()
    announced = False

    while not board.is_game_over(claim_draw=True):
        if board.turn == human_color:
            text = (await asyncio.to_thread(read_line, "Your move (UCI, 'quit' to stop): ")).strip()
            if text.lower() in ("quit", "exit"):
                write("Game abandoned.")
                return "*"
            move = parse_uci(board, text)
            if move is None:
                write(f"✗ Illegal move: {text!r}")
                continue
            board.push(move)
            continue

        result = await orchestrator.pick_move(board.fen(), [m.uci() for m in board.legal_moves])
        if orchestrator.downgrade_notice and not announced:
            write(orchestrator.downgrade_notice)
            announced = True

        move = parse_uci(board, result.move)
        if move is None:
            raise KibitzerError(f"{result.source.value} returned illegal move {result.move!r}")
        board.push(move)
        write(f"AI [{result.source.value}] plays {result.move}: {result.commentary}")

    outcome = board.result(claim_draw=True)
    write(f"Game over: {outcome}")
    return outcome


def play(args, config) -> int:
    """Entry point for the 'play' subcommand."""
    human = chess.WHITE if args.color == "white" else chess.BLACK

    async def _run():
        async with Orchestrator.from_config(config) as orchestrator:
            await play_game(orchestrator, human)

    asyncio.run(_run())
    return 0


def _load(config_path: Optional[str]):
    try:
        return load_config(config_path)
    except FileNotFoundError:
        if config_path:
            raise
        return default_config()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Kibitzer chess move orchestrator")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to the configuration file (default: $KIBITZER_CONFIG or configs/config.yaml).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Override the configured log level (DEBUG, INFO, ...).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    pick_parser = subparsers.add_parser("pick", help="Pick one move for a position.")
    pick_parser.add_argument("--fen", type=str, default=chess.STARTING_FEN, help="Position in FEN.")
    pick_parser.set_defaults(func=pick_move)

    play_parser = subparsers.add_parser("play", help="Play a game in the terminal.")
    play_parser.add_argument(
        "--color",
        type=str,
        default="white",
        choices=["white", "black"],
        help="Colour played by the human.",
    )
    play_parser.set_defaults(func=play)

    return parser


def main(argv=None) -> int:
    """
    Main function to parse arguments and run commands.
    """
    args = build_parser().parse_args(argv)

    try:
        config = _load(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"✗ {e}", file=sys.stderr)
        return 2

    setup_logging(args.log_level or config.logging.level, config.logging.quiet_loggers)

    try:
        return args.func(args, config)
    except KibitzerError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
