from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .types import CHAR_TO_PIECE, PIECE_TO_CHAR, Piece, PieceType, Square


PROMOTION_PIECES = {"q", "r", "b", "n"}


@dataclass(frozen=True)
class Move:
    """Engine-internal move representation.

    Attributes:
        from_sq (Square): Origin square.
        to_sq (Square): Destination square.
        captured (Optional[Piece]): Piece standing on ``to_sq`` just before the
            move is applied; required by ``Board.undo``.
        promotion (Optional[PieceType]): Piece the pawn turns into on the last
            rank, if any.
    """

    from_sq: Square
    to_sq: Square
    captured: Optional[Piece] = None
    promotion: Optional[PieceType] = None

    @property
    def is_capture(self) -> bool:
        return self.captured is not None

    def same_path(self, other: "Move") -> bool:
        """True when both moves share origin, destination and promotion."""
        return (
            self.from_sq == other.from_sq
            and self.to_sq == other.to_sq
            and self.promotion == other.promotion
        )

    def to_uci(self) -> str:
        """Serialize the move into long algebraic form.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``.
        """
        promo = PIECE_TO_CHAR[self.promotion] if self.promotion is not None else ""
        return self.from_sq.name + self.to_sq.name + promo

    def __str__(self) -> str:
        return self.to_uci()


def parse_uci(uci: str) -> Move:
    """Parse a long algebraic move string.

    The parsed move carries no captured piece; callers resolve it against a
    board before applying it.

    Raises:
        ValueError: If the string has an invalid length, squares, or promotion
            piece.
    """
    if len(uci) not in (4, 5):
        raise ValueError(f"invalid UCI move length: {uci!r}")
    from_sq = Square.from_name(uci[0:2])
    to_sq = Square.from_name(uci[2:4])
    promo: Optional[PieceType] = None
    if len(uci) == 5:
        ch = uci[4].lower()
        if ch not in PROMOTION_PIECES:
            raise ValueError(f"invalid promotion piece: {ch!r}")
        promo = CHAR_TO_PIECE[ch]
    return Move(from_sq, to_sq, promotion=promo)
