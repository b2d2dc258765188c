from __future__ import annotations

from raichess.engine.board import Board
from raichess.engine.game import GameController, Phase
from raichess.engine.legality import list_all_legal_moves
from raichess.engine.move import parse_uci
from raichess.engine.types import PieceColor, PieceType
from raichess.puzzles.catalog import (
    SAMPLE_MATE_IN_1,
    check_mate_in_one,
    resolve_move,
    start_puzzle,
)


def _play(board: Board, uci: str, color: PieceColor):
    wanted = parse_uci(uci)
    move = next(m for m in list_all_legal_moves(color, board) if m.same_path(wanted))
    board.apply(move)
    return move


def test_sample_puzzles() -> None:
    assert len(SAMPLE_MATE_IN_1) == 3
    assert [p.side_to_move for p in SAMPLE_MATE_IN_1] == [
        PieceColor.WHITE,
        PieceColor.BLACK,
        PieceColor.WHITE,
    ]
    assert all(p.mate_in == 1 for p in SAMPLE_MATE_IN_1)
    assert SAMPLE_MATE_IN_1[1].board().to_placement() == "6k1/5ppp/8/8/8/8/5PPP/6K1"


def test_king_shuffle_is_not_mate() -> None:
    puzzle = SAMPLE_MATE_IN_1[1]
    for uci in ("g8f8", "g8h8"):
        board = puzzle.board()
        _play(board, uci, puzzle.side_to_move)
        verdict = check_mate_in_one(board, puzzle.side_to_move)
        assert not verdict.solved
        assert verdict.text == "Not mate. Try again."


def test_checkmate_is_solved() -> None:
    board = Board.from_placement("7k/8/6K1/8/8/8/8/Q7")
    _play(board, "a1a8", PieceColor.WHITE)
    verdict = check_mate_in_one(board, PieceColor.WHITE)
    assert verdict.solved
    assert verdict.text == "Correct! Checkmate."


def test_stalemate_is_not_solved() -> None:
    board = Board.from_placement("7k/8/6K1/8/8/8/8/5Q2")
    _play(board, "f1f7", PieceColor.WHITE)
    assert not check_mate_in_one(board, PieceColor.WHITE).solved


def test_start_puzzle_switches_engine_off() -> None:
    ctrl = GameController(vs_ai=True, self_play=False, synchronous=True)
    puzzle = SAMPLE_MATE_IN_1[1]
    start_puzzle(ctrl, puzzle)
    assert ctrl.vs_ai is False
    assert ctrl.side_to_move is PieceColor.BLACK
    assert ctrl.board.to_placement() == "6k1/5ppp/8/8/8/8/5PPP/6K1"
    assert ctrl.last_move is None
    assert ctrl.phase is Phase.IDLE


def test_resolve_move_accepts_underpromotion() -> None:
    board = Board.from_placement("7k/P5pp/8/8/8/8/8/K7")
    rook = resolve_move(board, PieceColor.WHITE, parse_uci("a7a8r"))
    assert rook is not None
    assert rook.promotion is PieceType.ROOK
    assert rook.to_uci() == "a7a8r"

    board.apply(rook)
    assert board.piece_at(rook.to_sq).type is PieceType.ROOK
    assert check_mate_in_one(board, PieceColor.WHITE).solved
    board.undo(rook)

    knight = resolve_move(board, PieceColor.WHITE, parse_uci("a7a8n"))
    board.apply(knight)
    assert not check_mate_in_one(board, PieceColor.WHITE).solved


def test_resolve_move_defaults_and_rejections() -> None:
    board = Board.from_placement("7k/P5pp/8/8/8/8/8/K7")
    assert resolve_move(board, PieceColor.WHITE, parse_uci("a7a8")).promotion is PieceType.QUEEN
    # Promotion letter on a non-promoting move
    assert resolve_move(board, PieceColor.WHITE, parse_uci("a1a2q")) is None
    assert resolve_move(board, PieceColor.WHITE, parse_uci("a1a3")) is None
