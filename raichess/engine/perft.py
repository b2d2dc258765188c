from __future__ import annotations

from .board import Board
from .legality import list_all_legal_moves
from .types import PieceColor


def perft(board: Board, side_to_move: PieceColor, depth: int) -> int:
    """Compute perft node count for ``board`` at ``depth``.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    Castling is not generated inside the tree, matching search, and promotions
    are queen-only, so counts diverge from standard tables in positions where
    either matters.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    nodes = 0
    for m in list_all_legal_moves(side_to_move, board):
        board.apply(m)
        nodes += perft(board, side_to_move.opponent, depth - 1)
        board.undo(m)
    return nodes
