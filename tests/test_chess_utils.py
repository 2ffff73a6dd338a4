import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT / "src"))

import chess

from kibitzer.utils.chess_utils import (
    apply_move,
    is_check,
    is_checkmate,
    is_game_over,
    legal_moves,
    parse_uci,
    side_to_move,
)

FOOLS_MATE_SETUP = "rnbqkbnr/pppp1ppp/8/4p3/6P1/5P2/PPPPP2P/RNBQKBNR b KQkq - 0 2"


def test_legal_moves_start_position():
    moves = legal_moves(chess.STARTING_FEN)
    assert len(moves) == 20
    assert "e2e4" in moves


def test_apply_move_reports_mate_and_leaves_input_alone():
    applied = apply_move(FOOLS_MATE_SETUP, "d8h4")
    assert applied is not None
    assert applied.checkmate and applied.check
    assert not applied.captured
    assert is_checkmate(applied.fen)
    assert is_game_over(applied.fen)
    assert not is_check(FOOLS_MATE_SETUP)


def test_apply_move_rejects_illegal_and_garbage():
    assert apply_move(chess.STARTING_FEN, "e2e5") is None
    assert apply_move(chess.STARTING_FEN, "zz") is None
    assert apply_move("not a fen", "e2e4") is None


def test_parse_uci_defaults_to_queen_promotion():
    board = chess.Board("8/P7/8/8/8/8/7k/4K3 w - - 0 1")
    move = parse_uci(board, "a7a8")
    assert move == chess.Move.from_uci("a7a8q")
    assert parse_uci(board, "a7a8n") == chess.Move.from_uci("a7a8n")


def test_side_to_move():
    assert side_to_move(chess.STARTING_FEN) == "white"
    assert side_to_move(FOOLS_MATE_SETUP) == "black"
