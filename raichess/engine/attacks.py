from __future__ import annotations

from .board import Board
from .types import PieceColor, PieceType, Square


KNIGHT_OFFSETS = ((1, 2), (2, 1), (-1, 2), (-2, 1), (1, -2), (2, -1), (-1, -2), (-2, -1))
KING_OFFSETS = ((-1, -1), (0, -1), (1, -1), (-1, 0), (1, 0), (-1, 1), (0, 1), (1, 1))
ORTHOGONAL_DIRS = ((1, 0), (-1, 0), (0, 1), (0, -1))
DIAGONAL_DIRS = ((1, 1), (-1, 1), (1, -1), (-1, -1))


def pawn_direction(color: PieceColor) -> int:
    return 1 if color is PieceColor.WHITE else -1


def is_attacked(sq: Square, by: PieceColor, board: Board) -> bool:
    """Return True if square ``sq`` is attacked by side ``by`` on ``board``.

    Covers: knights, pawns, king, and slider rays for bishops/rooks/queens.
    """
    # Knight attacks
    for df, dr in KNIGHT_OFFSETS:
        o = sq.offset(df, dr)
        if o is not None:
            p = board.piece_at(o)
            if p is not None and p.color is by and p.type is PieceType.KNIGHT:
                return True

    # Pawn attacks: look one rank back along the attacker's push direction
    dr = -pawn_direction(by)
    for df in (-1, 1):
        o = sq.offset(df, dr)
        if o is not None:
            p = board.piece_at(o)
            if p is not None and p.color is by and p.type is PieceType.PAWN:
                return True

    # King attacks
    for df, dr in KING_OFFSETS:
        o = sq.offset(df, dr)
        if o is not None:
            p = board.piece_at(o)
            if p is not None and p.color is by and p.type is PieceType.KING:
                return True

    # Slider attacks: the first piece on each ray decides
    for dirs, kinds in (
        (ORTHOGONAL_DIRS, (PieceType.ROOK, PieceType.QUEEN)),
        (DIAGONAL_DIRS, (PieceType.BISHOP, PieceType.QUEEN)),
    ):
        for df, dr in dirs:
            f, r = sq.file + df, sq.rank + dr
            while 0 <= f < 8 and 0 <= r < 8:
                p = board.squares[r * 8 + f]
                if p is not None:
                    if p.color is by and p.type in kinds:
                        return True
                    break
                f += df
                r += dr

    return False


def in_check(board: Board, color: PieceColor) -> bool:
    """Return True if ``color``'s king is attacked. A missing king is never in check."""
    king_sq = board.find_king(color)
    if king_sq is None:
        return False
    return is_attacked(king_sq, color.opponent, board)
