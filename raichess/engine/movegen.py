from __future__ import annotations

from typing import List, Optional

from .attacks import (
    DIAGONAL_DIRS,
    KING_OFFSETS,
    KNIGHT_OFFSETS,
    ORTHOGONAL_DIRS,
    in_check,
    is_attacked,
    pawn_direction,
)
from .board import Board
from .castling import KING_HOME, CastlingRights
from .move import Move
from .types import Piece, PieceColor, PieceType, Square


SLIDER_DIRS = {
    PieceType.BISHOP: DIAGONAL_DIRS,
    PieceType.ROOK: ORTHOGONAL_DIRS,
    PieceType.QUEEN: ORTHOGONAL_DIRS + DIAGONAL_DIRS,
}


def pawn_start_rank(color: PieceColor) -> int:
    return 1 if color is PieceColor.WHITE else 6


def promotion_rank(color: PieceColor) -> int:
    return 7 if color is PieceColor.WHITE else 0


def pseudo_legal_moves(
    from_sq: Square, board: Board, rights: Optional[CastlingRights] = None
) -> List[Move]:
    """Return pseudo-legal moves for the piece on ``from_sq``.

    Args:
        from_sq (Square): Origin square; an empty square yields no moves.
        board (Board): Position to generate on.
        rights (Optional[CastlingRights]): When given, castling candidates are
            added for a king on its original square. Search passes ``None``.

    Returns:
        List[Move]: Moves in generation order. Pawn moves onto the last rank
            carry an automatic queen promotion.

    Notes:
        Moves may still leave the mover's king in check; see
        ``legality.list_all_legal_moves``. En passant is not generated.
    """
    piece = board.piece_at(from_sq)
    if piece is None:
        return []
    kind = piece.type
    if kind is PieceType.PAWN:
        return _pawn_moves(from_sq, piece, board)
    if kind is PieceType.KNIGHT:
        return _step_moves(from_sq, piece, board, KNIGHT_OFFSETS)
    if kind is PieceType.KING:
        moves = _step_moves(from_sq, piece, board, KING_OFFSETS)
        if rights is not None:
            moves.extend(_castling_moves(from_sq, piece, board, rights))
        return moves
    return _slider_moves(from_sq, piece, board, SLIDER_DIRS[kind])


def _step_moves(from_sq: Square, piece: Piece, board: Board, offsets) -> List[Move]:
    out: List[Move] = []
    for df, dr in offsets:
        to = from_sq.offset(df, dr)
        if to is None:
            continue
        occ = board.piece_at(to)
        if occ is None:
            out.append(Move(from_sq, to))
        elif occ.color is not piece.color:
            out.append(Move(from_sq, to, captured=occ))
    return out


def _slider_moves(from_sq: Square, piece: Piece, board: Board, dirs) -> List[Move]:
    out: List[Move] = []
    for df, dr in dirs:
        to = from_sq.offset(df, dr)
        while to is not None:
            occ = board.piece_at(to)
            if occ is not None:
                if occ.color is not piece.color:
                    out.append(Move(from_sq, to, captured=occ))
                break
            out.append(Move(from_sq, to))
            to = to.offset(df, dr)
    return out


def _pawn_moves(from_sq: Square, piece: Piece, board: Board) -> List[Move]:
    out: List[Move] = []
    color = piece.color
    dr = pawn_direction(color)
    last = promotion_rank(color)

    def promo(to: Square) -> Optional[PieceType]:
        return PieceType.QUEEN if to.rank == last else None

    one = from_sq.offset(0, dr)
    if one is not None and board.piece_at(one) is None:
        out.append(Move(from_sq, one, promotion=promo(one)))
        if from_sq.rank == pawn_start_rank(color):
            two = from_sq.offset(0, 2 * dr)
            if two is not None and board.piece_at(two) is None:
                out.append(Move(from_sq, two))

    for df in (-1, 1):
        to = from_sq.offset(df, dr)
        if to is None:
            continue
        occ = board.piece_at(to)
        if occ is not None and occ.color is not color:
            out.append(Move(from_sq, to, captured=occ, promotion=promo(to)))
    return out


def _castling_moves(
    from_sq: Square, piece: Piece, board: Board, rights: CastlingRights
) -> List[Move]:
    color = piece.color
    if from_sq != KING_HOME[color] or rights.king_moved(color):
        return []
    if in_check(board, color):
        return []
    enemy = color.opponent
    rank = from_sq.rank
    out: List[Move] = []

    def empty(*files: int) -> bool:
        return all(board.piece_at(Square(f, rank)) is None for f in files)

    def safe(*files: int) -> bool:
        return not any(is_attacked(Square(f, rank), enemy, board) for f in files)

    def rook_on(file: int) -> bool:
        p = board.piece_at(Square(file, rank))
        return p is not None and p.type is PieceType.ROOK and p.color is color

    if not rights.rook_h_moved(color) and rook_on(7) and empty(5, 6) and safe(5, 6):
        out.append(Move(from_sq, Square(6, rank)))
    # b-file must be empty but may be attacked
    if not rights.rook_a_moved(color) and rook_on(0) and empty(1, 2, 3) and safe(2, 3):
        out.append(Move(from_sq, Square(2, rank)))
    return out


def is_castling_move(move: Move, piece: Optional[Piece]) -> bool:
    return (
        piece is not None
        and piece.type is PieceType.KING
        and abs(move.to_sq.file - move.from_sq.file) == 2
    )


def castling_rook_move(move: Move) -> Move:
    """Rook hop that accompanies a two-file king move."""
    rank = move.from_sq.rank
    if move.to_sq.file == 6:
        return Move(Square(7, rank), Square(5, rank))
    return Move(Square(0, rank), Square(3, rank))
