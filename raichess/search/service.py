from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from raichess.engine.attacks import in_check
from raichess.engine.board import Board
from raichess.engine.legality import capture_moves, has_legal_moves, list_all_legal_moves
from raichess.engine.move import Move
from raichess.engine.types import PieceColor
from raichess.eval import evaluate


logger = logging.getLogger(__name__)

INF = 1e9
MATE_SCORE = 1e6  # plus remaining depth, so shorter mates score higher


@dataclass
class SearchResult:
    best_move: Optional[Move]
    score: Optional[float]
    depth: int
    nodes: int
    qnodes: int
    time_ms: int
    iters: List[Dict[str, float]] = field(default_factory=list)


class SearchService:
    """Minimax search with alpha-beta pruning and a captures-only quiescence tail.

    Scores are from white's point of view: white maximizes, black minimizes.
    The service never mutates the board it is handed; every entry point works
    on a private copy with apply/undo.
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter) -> None:
        self.clock = clock
        self.use_quiescence = False
        self.nodes = 0
        self.qnodes = 0

    # --- Single depth ---
    def best_move(
        self, board: Board, color: PieceColor, depth: int, use_quiescence: bool = False
    ) -> Optional[Move]:
        """Best move for ``color`` at a fixed ``depth``; None when there is no legal move."""
        self.use_quiescence = use_quiescence
        move, _ = self._root(board.copy(), color, depth)
        return move

    def _root(
        self, board: Board, color: PieceColor, depth: int
    ) -> Tuple[Optional[Move], Optional[float]]:
        moves = list_all_legal_moves(color, board)
        if not moves:
            return None, None
        maximizing = color is PieceColor.WHITE
        best: Optional[Move] = None
        best_score = -INF if maximizing else INF
        alpha, beta = -INF, INF
        for m in moves:
            board.apply(m)
            s = self.minimax(board, depth - 1, color.opponent, alpha, beta)
            board.undo(m)
            # Strict comparison: ties keep the first move in generation order
            if maximizing:
                if s > best_score:
                    best_score, best = s, m
                    alpha = max(alpha, s)
            elif s < best_score:
                best_score, best = s, m
                beta = min(beta, s)
        return best, best_score

    def minimax(
        self, board: Board, depth: int, side_to_move: PieceColor, alpha: float, beta: float
    ) -> float:
        """Alpha-beta minimax score of ``board`` with ``side_to_move`` to play.

        A node without legal moves is terminal at any depth: mate scores
        +/-(MATE_SCORE + depth) against the side to move, stalemate scores 0. Otherwise
        ``depth <= 0`` returns the static evaluation (or quiescence).
        """
        self.nodes += 1
        maximizing = side_to_move is PieceColor.WHITE
        if depth <= 0:
            if not has_legal_moves(side_to_move, board):
                return _terminal_score(board, side_to_move, depth)
            if self.use_quiescence:
                return self.quiescence(board, alpha, beta, side_to_move)
            return evaluate(board)
        moves = list_all_legal_moves(side_to_move, board)
        if not moves:
            return _terminal_score(board, side_to_move, depth)

        opponent = side_to_move.opponent
        if maximizing:
            value = -INF
            for m in moves:
                board.apply(m)
                value = max(value, self.minimax(board, depth - 1, opponent, alpha, beta))
                board.undo(m)
                alpha = max(alpha, value)
                if alpha >= beta:
                    break
            return value

        value = INF
        for m in moves:
            board.apply(m)
            value = min(value, self.minimax(board, depth - 1, opponent, alpha, beta))
            board.undo(m)
            beta = min(beta, value)
            if alpha >= beta:
                break
        return value

    def quiescence(
        self, board: Board, alpha: float, beta: float, side_to_move: PieceColor
    ) -> float:
        """Extend the horizon over captures only.

        The side to move may stand pat on the static evaluation. Each capture
        removes a piece, so the recursion is finite without a depth limit.
        """
        self.qnodes += 1
        stand_pat = evaluate(board)
        maximizing = side_to_move is PieceColor.WHITE
        if maximizing:
            if stand_pat >= beta:
                return stand_pat
            alpha = max(alpha, stand_pat)
        else:
            if stand_pat <= alpha:
                return stand_pat
            beta = min(beta, stand_pat)

        value = stand_pat
        opponent = side_to_move.opponent
        for m in capture_moves(side_to_move, board):
            board.apply(m)
            s = self.quiescence(board, alpha, beta, opponent)
            board.undo(m)
            if maximizing:
                value = max(value, s)
                alpha = max(alpha, value)
            else:
                value = min(value, s)
                beta = min(beta, value)
            if alpha >= beta:
                break
        return value

    def minimax_unpruned(self, board: Board, depth: int, side_to_move: PieceColor) -> float:
        """Plain minimax without pruning or quiescence; reference for verifying pruning."""
        moves = list_all_legal_moves(side_to_move, board)
        if not moves:
            return _terminal_score(board, side_to_move, depth)
        if depth <= 0:
            return evaluate(board)
        maximizing = side_to_move is PieceColor.WHITE
        scores = []
        for m in moves:
            board.apply(m)
            scores.append(self.minimax_unpruned(board, depth - 1, side_to_move.opponent))
            board.undo(m)
        return max(scores) if maximizing else min(scores)

    # --- Iterative deepening ---
    def search(
        self,
        board: Board,
        color: PieceColor,
        max_depth: int,
        time_limit: float,
        use_quiescence: bool = False,
        stop_event: Optional[threading.Event] = None,
    ) -> SearchResult:
        """Iterative deepening from depth 1 to ``max_depth`` under a soft deadline.

        A depth in progress always runs to completion; the deadline and
        ``stop_event`` are only honoured between depths. The result of the
        deepest completed depth wins. If no depth completes, ``best_move`` is None.
        """
        self.use_quiescence = use_quiescence
        self.nodes = 0
        self.qnodes = 0
        scratch = board.copy()
        start = self.clock()
        deadline = start + time_limit

        def expired() -> bool:
            if stop_event is not None and stop_event.is_set():
                return True
            return self.clock() >= deadline

        best: Optional[Move] = None
        best_score: Optional[float] = None
        completed = 0
        iters: List[Dict[str, float]] = []
        for d in range(1, max(1, max_depth) + 1):
            if expired():
                break
            iter_start = self.clock()
            nodes_before, qnodes_before = self.nodes, self.qnodes
            move, score = self._root(scratch, color, d)
            if move is None:
                # No legal move at the root; deeper searches cannot change that
                break
            best, best_score, completed = move, score, d
            iters.append(
                {
                    "depth": d,
                    "time_ms": int((self.clock() - iter_start) * 1000),
                    "nodes": self.nodes - nodes_before,
                    "qnodes": self.qnodes - qnodes_before,
                    "score": score,
                }
            )
            logger.debug("depth %d best %s score %.2f nodes %d", d, move, score, self.nodes)
            if expired():
                break

        elapsed_ms = int((self.clock() - start) * 1000)
        logger.info(
            "search %s depth=%d best=%s nodes=%d qnodes=%d time_ms=%d",
            color.value,
            completed,
            best,
            self.nodes,
            self.qnodes,
            elapsed_ms,
        )
        return SearchResult(
            best_move=best,
            score=best_score,
            depth=completed,
            nodes=self.nodes,
            qnodes=self.qnodes,
            time_ms=elapsed_ms,
            iters=iters,
        )

    def best_move_timed(
        self,
        board: Board,
        color: PieceColor,
        max_depth: int,
        time_limit: float,
        use_quiescence: bool = False,
    ) -> Optional[Move]:
        return self.search(board, color, max_depth, time_limit, use_quiescence).best_move


def _terminal_score(board: Board, side_to_move: PieceColor, depth: int) -> float:
    """Score of a position where ``side_to_move`` has no legal move.

    Mates found with more depth remaining are nearer the root and score higher.
    """
    if in_check(board, side_to_move):
        mate = MATE_SCORE + max(depth, 0)
        return -mate if side_to_move is PieceColor.WHITE else mate
    return 0.0
