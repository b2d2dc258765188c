"""Static position evaluation.

Pure, deterministic, and side-effect free. Scores are in pawns, positive
favors white, and every term is mirrored for black.
"""

from __future__ import annotations

from typing import Final

from raichess.engine.board import Board
from raichess.engine.types import Piece, PieceColor, PieceType, Square


MATERIAL: Final = {
    PieceType.PAWN: 1.0,
    PieceType.KNIGHT: 3.2,
    PieceType.BISHOP: 3.2,
    PieceType.ROOK: 5.1,
    PieceType.QUEEN: 9.5,
    PieceType.KING: 0.0,
}

# Indexed by rank counted from the pawn's own side
PAWN_ADVANCE: Final = (0.0, 0.05, 0.10, 0.20, 0.30, 0.20, 0.10, 0.0)
KNIGHT_CENTER_BONUS: Final = 0.4
KNIGHT_DISTANCE_PENALTY: Final = 0.1
BISHOP_EDGE_WEIGHT: Final = 0.05
QUEEN_EDGE_WEIGHT: Final = 0.02
ROOK_ADVANCED_BONUS: Final = 0.15
KING_SHELTER_BONUS: Final = 0.3
KING_EXPOSED_PENALTY: Final = -0.2


def _relative_rank(piece: Piece, sq: Square) -> int:
    return sq.rank if piece.color is PieceColor.WHITE else 7 - sq.rank


def _edge_distance(sq: Square) -> int:
    return min(sq.file, 7 - sq.file) + min(sq.rank, 7 - sq.rank)


def positional_bonus(piece: Piece, sq: Square) -> float:
    """Placement bonus for ``piece`` on ``sq`` from its owner's point of view."""
    rr = _relative_rank(piece, sq)
    kind = piece.type
    if kind is PieceType.PAWN:
        return PAWN_ADVANCE[rr]
    if kind is PieceType.KNIGHT:
        # Manhattan distance from the four centre squares
        d = abs(3.5 - sq.file) + abs(3.5 - sq.rank)
        return KNIGHT_CENTER_BONUS - KNIGHT_DISTANCE_PENALTY * d
    if kind is PieceType.BISHOP:
        return BISHOP_EDGE_WEIGHT * _edge_distance(sq)
    if kind is PieceType.ROOK:
        return ROOK_ADVANCED_BONUS if rr >= 5 else 0.0
    if kind is PieceType.QUEEN:
        return QUEEN_EDGE_WEIGHT * _edge_distance(sq)
    return KING_SHELTER_BONUS if rr <= 1 else KING_EXPOSED_PENALTY


def evaluate(board: Board) -> float:
    """Material plus positional bonus, white minus black."""
    score = 0.0
    for sq, p in board.pieces():
        value = MATERIAL[p.type] + positional_bonus(p, sq)
        score += value if p.color is PieceColor.WHITE else -value
    return score
