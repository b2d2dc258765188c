from __future__ import annotations

from typing import List, Optional, Set

from .attacks import in_check
from .board import Board
from .castling import CastlingRights
from .move import Move
from .movegen import castling_rook_move, is_castling_move, pseudo_legal_moves
from .types import GameResult, PieceColor, Square


def leaves_king_safe(board: Board, move: Move, color: PieceColor) -> bool:
    """Simulate ``move`` and report whether ``color``'s king is still unattacked.

    The board is restored before returning.
    """
    castle = is_castling_move(move, board.piece_at(move.from_sq))
    if castle:
        rook_move = castling_rook_move(move)
        board.apply(rook_move)
    board.apply(move)
    try:
        return not in_check(board, color)
    finally:
        board.undo(move)
        if castle:
            board.undo(rook_move)


def legal_moves_from(
    from_sq: Square, board: Board, side_to_move: PieceColor, rights: Optional[CastlingRights] = None
) -> List[Move]:
    piece = board.piece_at(from_sq)
    if piece is None or piece.color is not side_to_move:
        return []
    return [
        m for m in pseudo_legal_moves(from_sq, board, rights) if leaves_king_safe(board, m, piece.color)
    ]


def legal_targets(
    from_sq: Square, board: Board, side_to_move: PieceColor, rights: Optional[CastlingRights] = None
) -> Set[Square]:
    """Destinations the side to move may reach from ``from_sq``.

    Returns an empty set for an empty square or an opponent's piece.
    """
    return {m.to_sq for m in legal_moves_from(from_sq, board, side_to_move, rights)}


def list_all_legal_moves(
    color: PieceColor, board: Board, rights: Optional[CastlingRights] = None
) -> List[Move]:
    """All legal moves for ``color``, origin squares scanned a1..h8.

    Generation order is stable and is what search tie-breaking relies on.
    """
    moves: List[Move] = []
    for sq, _ in list(board.pieces(color)):
        for m in pseudo_legal_moves(sq, board, rights):
            if leaves_king_safe(board, m, color):
                moves.append(m)
    return moves


def capture_moves(color: PieceColor, board: Board) -> List[Move]:
    """Legal captures only; quiescence search expands these."""
    moves: List[Move] = []
    for sq, _ in list(board.pieces(color)):
        for m in pseudo_legal_moves(sq, board):
            if m.captured is not None and leaves_king_safe(board, m, color):
                moves.append(m)
    return moves


def has_legal_moves(color: PieceColor, board: Board) -> bool:
    for sq, _ in list(board.pieces(color)):
        for m in pseudo_legal_moves(sq, board):
            if leaves_king_safe(board, m, color):
                return True
    return False


def game_result(board: Board, side_to_move: PieceColor) -> Optional[GameResult]:
    """Checkmate or stalemate when ``side_to_move`` has no legal move, else None."""
    if has_legal_moves(side_to_move, board):
        return None
    if in_check(board, side_to_move):
        return GameResult.checkmate(side_to_move.opponent)
    return GameResult.stalemate()
