from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PieceColor(str, Enum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "PieceColor":
        return PieceColor.BLACK if self is PieceColor.WHITE else PieceColor.WHITE


class PieceType(str, Enum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"


PIECE_TO_CHAR = {
    PieceType.PAWN: "p",
    PieceType.KNIGHT: "n",
    PieceType.BISHOP: "b",
    PieceType.ROOK: "r",
    PieceType.QUEEN: "q",
    PieceType.KING: "k",
}
CHAR_TO_PIECE = {v: k for k, v in PIECE_TO_CHAR.items()}


@dataclass(frozen=True)
class Piece:
    """Immutable piece value: a type plus a color."""

    type: PieceType
    color: PieceColor

    @property
    def symbol(self) -> str:
        """FEN letter, uppercase for white."""
        ch = PIECE_TO_CHAR[self.type]
        return ch.upper() if self.color is PieceColor.WHITE else ch

    @classmethod
    def from_symbol(cls, ch: str) -> "Piece":
        """Decode a FEN letter.

        Unknown letters decode as pawns, which is how the lenient position
        reader treats them.
        """
        color = PieceColor.WHITE if ch.isupper() else PieceColor.BLACK
        return cls(CHAR_TO_PIECE.get(ch.lower(), PieceType.PAWN), color)


@dataclass(frozen=True)
class Square:
    """Board coordinate.

    Attributes:
        file (int): 0..7 for files a..h.
        rank (int): 0..7 for ranks 1..8 (0 is white's back rank).
    """

    file: int
    rank: int

    @property
    def index(self) -> int:
        return self.rank * 8 + self.file

    @property
    def name(self) -> str:
        return square_to_str(self.index)

    @classmethod
    def from_index(cls, idx: int) -> "Square":
        return cls(idx % 8, idx // 8)

    @classmethod
    def from_name(cls, s: str) -> "Square":
        return cls.from_index(str_to_square(s))

    def offset(self, df: int, dr: int) -> "Square | None":
        """Return the square shifted by ``(df, dr)`` or ``None`` off the board."""
        f, r = self.file + df, self.rank + dr
        if 0 <= f < 8 and 0 <= r < 8:
            return Square(f, r)
        return None

    def __str__(self) -> str:
        return self.name


def str_to_square(s: str) -> int:
    """Convert algebraic notation into a 0-based square index.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        int: Zero-based square index (a1=0 .. h8=63).

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    file = ord(s[0]) - ord("a")
    rank = int(s[1]) - 1
    return rank * 8 + file


def square_to_str(idx: int) -> str:
    """Convert a 0-based square index into algebraic notation.

    Raises:
        ValueError: If ``idx`` is outside the valid square range.
    """
    if idx < 0 or idx > 63:
        raise ValueError(f"invalid square index: {idx}")
    return chr(ord("a") + idx % 8) + str(idx // 8 + 1)


@dataclass(frozen=True)
class GameResult:
    """Terminal outcome: checkmate with a winner, or stalemate (``winner`` is None)."""

    kind: str  # "checkmate" or "stalemate"
    winner: "PieceColor | None" = None

    @classmethod
    def checkmate(cls, winner: PieceColor) -> "GameResult":
        return cls("checkmate", winner)

    @classmethod
    def stalemate(cls) -> "GameResult":
        return cls("stalemate")

    @property
    def is_checkmate(self) -> bool:
        return self.kind == "checkmate"
