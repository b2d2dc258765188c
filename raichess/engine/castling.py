from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .board import Board
from .types import Piece, PieceColor, PieceType, Square


# Original squares, keyed by the flag they guard
KING_HOME = {PieceColor.WHITE: Square(4, 0), PieceColor.BLACK: Square(4, 7)}
ROOK_A_HOME = {PieceColor.WHITE: Square(0, 0), PieceColor.BLACK: Square(0, 7)}
ROOK_H_HOME = {PieceColor.WHITE: Square(7, 0), PieceColor.BLACK: Square(7, 7)}


@dataclass(frozen=True)
class CastlingRights:
    """Six monotone "has moved" flags.

    A flag turns on when the king or rook leaves its original square, or when an
    enemy move captures the piece standing there. Flags never turn off again.
    """

    white_king_moved: bool = False
    white_rook_a_moved: bool = False
    white_rook_h_moved: bool = False
    black_king_moved: bool = False
    black_rook_a_moved: bool = False
    black_rook_h_moved: bool = False

    @classmethod
    def from_board(cls, board: Board) -> "CastlingRights":
        """Derive rights for an imported position.

        Any king or rook not standing on its original square is treated as
        having moved.
        """
        flags = {}
        for color, prefix in ((PieceColor.WHITE, "white"), (PieceColor.BLACK, "black")):
            flags[f"{prefix}_king_moved"] = not _has(board, KING_HOME[color], PieceType.KING, color)
            flags[f"{prefix}_rook_a_moved"] = not _has(
                board, ROOK_A_HOME[color], PieceType.ROOK, color
            )
            flags[f"{prefix}_rook_h_moved"] = not _has(
                board, ROOK_H_HOME[color], PieceType.ROOK, color
            )
        return cls(**flags)

    def king_moved(self, color: PieceColor) -> bool:
        return self.white_king_moved if color is PieceColor.WHITE else self.black_king_moved

    def rook_a_moved(self, color: PieceColor) -> bool:
        return self.white_rook_a_moved if color is PieceColor.WHITE else self.black_rook_a_moved

    def rook_h_moved(self, color: PieceColor) -> bool:
        return self.white_rook_h_moved if color is PieceColor.WHITE else self.black_rook_h_moved

    def can_castle_kingside(self, color: PieceColor) -> bool:
        return not self.king_moved(color) and not self.rook_h_moved(color)

    def can_castle_queenside(self, color: PieceColor) -> bool:
        return not self.king_moved(color) and not self.rook_a_moved(color)

    def updated_after(
        self, moved: Optional[Piece], from_sq: Square, to_sq: Square, captured: Optional[Piece]
    ) -> "CastlingRights":
        """Return the rights after a committed move."""
        changes = {}
        if moved is not None:
            changes.update(_flags_for(moved, from_sq))
        if captured is not None and captured.type is PieceType.ROOK:
            changes.update(_flags_for(captured, to_sq))
        if not changes:
            return self
        return replace(self, **changes)


def _has(board: Board, sq: Square, kind: PieceType, color: PieceColor) -> bool:
    p = board.piece_at(sq)
    return p is not None and p.type is kind and p.color is color


def _flags_for(piece: Piece, sq: Square) -> dict:
    prefix = "white" if piece.color is PieceColor.WHITE else "black"
    if piece.type is PieceType.KING and sq == KING_HOME[piece.color]:
        return {f"{prefix}_king_moved": True}
    if piece.type is PieceType.ROOK:
        if sq == ROOK_A_HOME[piece.color]:
            return {f"{prefix}_rook_a_moved": True}
        if sq == ROOK_H_HOME[piece.color]:
            return {f"{prefix}_rook_h_moved": True}
    return {}
