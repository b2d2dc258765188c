from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from raichess.engine.attacks import in_check
from raichess.engine.board import Board, side_from_fen
from raichess.engine.game import GameController
from raichess.engine.legality import list_all_legal_moves
from raichess.engine.move import Move
from raichess.engine.types import PieceColor


@dataclass(frozen=True)
class ChessPuzzle:
    title: str
    fen: str  # placement and side to move; remaining fields optional
    mate_in: int

    @property
    def side_to_move(self) -> PieceColor:
        return side_from_fen(self.fen)

    def board(self) -> Board:
        return Board.from_placement(self.fen)


@dataclass(frozen=True)
class PuzzleVerdict:
    solved: bool
    text: str


SAMPLE_MATE_IN_1: List[ChessPuzzle] = [
    ChessPuzzle(title="Mate in 1 (#1)", fen="4k3/8/8/8/8/8/4Q3/4K3 w - - 0 1", mate_in=1),
    ChessPuzzle(title="Mate in 1 (#2)", fen="6k1/5ppp/8/8/8/8/5PPP/6K1 b - - 0 1", mate_in=1),
    ChessPuzzle(title="Mate in 1 (#3)", fen="4k3/8/8/8/8/5Q2/8/4K3 w - - 0 1", mate_in=1),
]


def check_mate_in_one(board: Board, mover: PieceColor) -> PuzzleVerdict:
    """Judge the position after ``mover`` has played.

    Solved only when the opponent is in check and has no legal reply.
    """
    defender = mover.opponent
    if not list_all_legal_moves(defender, board) and in_check(board, defender):
        return PuzzleVerdict(True, "Correct! Checkmate.")
    return PuzzleVerdict(False, "Not mate. Try again.")


def resolve_move(board: Board, mover: PieceColor, wanted: Move) -> Optional[Move]:
    """Match a parsed move against the legal moves of ``mover``.

    Generated promotions are queen-only; the requested piece replaces it, and
    a promotion without a piece letter stays a queen. Returns None when no
    legal move shares the origin and destination.
    """
    for m in list_all_legal_moves(mover, board):
        if m.from_sq != wanted.from_sq or m.to_sq != wanted.to_sq:
            continue
        if m.promotion is None:
            return m if wanted.promotion is None else None
        promotion = wanted.promotion or m.promotion
        return Move(m.from_sq, m.to_sq, captured=m.captured, promotion=promotion)
    return None


def start_puzzle(controller: GameController, puzzle: ChessPuzzle) -> None:
    """Load ``puzzle`` into ``controller`` with the engine switched off."""
    controller.configure(vs_ai=False, self_play=False)
    controller.load_position(puzzle.fen, puzzle.side_to_move)
