from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from .move import Move
from .types import Piece, PieceColor, PieceType, Square


STARTPOS_PLACEMENT = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"
STARTPOS_FEN = STARTPOS_PLACEMENT + " w - - 0 1"

BACK_RANK = (
    PieceType.ROOK,
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.QUEEN,
    PieceType.KING,
    PieceType.BISHOP,
    PieceType.KNIGHT,
    PieceType.ROOK,
)


def _empty_squares() -> List[Optional[Piece]]:
    return [None] * 64


@dataclass
class Board:
    """Flat 64-cell piece grid.

    Notes:
    - Squares are 0..63 (a1=0 .. h8=63), rank-major from white's perspective.
    - Pure data mutation: no legality checks live here. Castling's rook hop is
      issued by the caller as a separate ``apply``.
    """

    squares: List[Optional[Piece]] = field(default_factory=_empty_squares)

    @classmethod
    def empty(cls) -> "Board":
        return cls()

    @classmethod
    def starting(cls) -> "Board":
        """Create a board initialized to the standard chess starting position."""
        b = cls()
        for f, kind in enumerate(BACK_RANK):
            b.squares[f] = Piece(kind, PieceColor.WHITE)
            b.squares[8 + f] = Piece(PieceType.PAWN, PieceColor.WHITE)
            b.squares[48 + f] = Piece(PieceType.PAWN, PieceColor.BLACK)
            b.squares[56 + f] = Piece(kind, PieceColor.BLACK)
        return b

    @classmethod
    def from_placement(cls, fen: str) -> "Board":
        """Read the piece-placement field of a FEN string.

        Only the first whitespace-separated token is used; side to move,
        castling and counters are ignored here.

        Returns:
            Board: Decoded position, or the standard starting position when the
                placement does not have exactly 8 ``/``-separated ranks.

        Notes:
            The reader is lenient by contract: unknown letters decode as pawns
            and pieces past the eighth file of a rank are dropped.
        """
        tokens = fen.split()
        if not tokens:
            return cls.starting()
        ranks = tokens[0].split("/")
        if len(ranks) != 8:
            return cls.starting()
        b = cls()
        for rank_idx, rank in enumerate(ranks):
            file_idx = 0
            board_rank = 7 - rank_idx  # FEN lists rank 8 first
            for ch in rank:
                if ch.isdigit():
                    file_idx += int(ch)
                    continue
                if file_idx >= 8:
                    continue
                b.squares[board_rank * 8 + file_idx] = Piece.from_symbol(ch)
                file_idx += 1
        return b

    def to_placement(self) -> str:
        """Serialize the grid into the FEN piece-placement field."""
        rows: List[str] = []
        for rank_idx in range(7, -1, -1):
            run = 0
            row = []
            for file_idx in range(8):
                p = self.squares[rank_idx * 8 + file_idx]
                if p is None:
                    run += 1
                    continue
                if run:
                    row.append(str(run))
                    run = 0
                row.append(p.symbol)
            if run:
                row.append(str(run))
            rows.append("".join(row))
        return "/".join(rows)

    def copy(self) -> "Board":
        return Board(squares=list(self.squares))

    def piece_at(self, sq: Square) -> Optional[Piece]:
        return self.squares[sq.index]

    def set_piece(self, sq: Square, piece: Optional[Piece]) -> None:
        self.squares[sq.index] = piece

    def pieces(self, color: Optional[PieceColor] = None) -> Iterator[Tuple[Square, Piece]]:
        """Yield ``(square, piece)`` pairs in index order, optionally for one color."""
        for i, p in enumerate(self.squares):
            if p is not None and (color is None or p.color is color):
                yield Square.from_index(i), p

    def apply(self, move: Move) -> None:
        """Relocate the moving piece, replacing its type when promoting."""
        moved = self.squares[move.from_sq.index]
        self.squares[move.from_sq.index] = None
        if move.promotion is not None and moved is not None:
            moved = Piece(move.promotion, moved.color)
        self.squares[move.to_sq.index] = moved

    def undo(self, move: Move) -> None:
        """Reverse ``apply(move)``: restore the mover and the captured piece."""
        moved = self.squares[move.to_sq.index]
        if move.promotion is not None and moved is not None:
            moved = Piece(PieceType.PAWN, moved.color)
        self.squares[move.from_sq.index] = moved
        self.squares[move.to_sq.index] = move.captured

    def find_king(self, color: PieceColor) -> Optional[Square]:
        for i, p in enumerate(self.squares):
            if p is not None and p.type is PieceType.KING and p.color is color:
                return Square.from_index(i)
        return None

    def material_count(self) -> int:
        return sum(1 for p in self.squares if p is not None)

    def __str__(self) -> str:
        lines = []
        for rank_idx in range(7, -1, -1):
            row = self.squares[rank_idx * 8 : rank_idx * 8 + 8]
            lines.append(" ".join(p.symbol if p else "." for p in row))
        return "\n".join(lines)


def side_from_fen(fen: str) -> PieceColor:
    """Side to move from a FEN-like string: white only for an explicit ``w``."""
    parts = fen.split()
    if len(parts) >= 2 and parts[1] == "w":
        return PieceColor.WHITE
    return PieceColor.BLACK
