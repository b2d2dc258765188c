from __future__ import annotations

import pytest

import raichess.search.service as service_mod
from raichess.engine.board import Board
from raichess.engine.legality import list_all_legal_moves
from raichess.engine.types import PieceColor
from raichess.puzzles.catalog import check_mate_in_one
from raichess.search.service import INF, MATE_SCORE, SearchService


W = PieceColor.WHITE
B = PieceColor.BLACK


@pytest.mark.parametrize(
    "placement, side, depth",
    [
        ("4k3/8/8/8/8/8/8/R3K3", W, 3),
        ("4k3/8/2p5/3p4/8/8/3Q4/4K3", W, 2),
        ("4k3/8/2p5/3p4/8/8/3Q4/4K3", B, 2),
        ("7k/8/6K1/8/8/8/8/Q7", W, 2),
        ("6k1/5ppp/8/8/8/8/5PPP/6K1", B, 2),
    ],
)
def test_pruning_does_not_change_score(placement: str, side: PieceColor, depth: int) -> None:
    board = Board.from_placement(placement)
    svc = SearchService()
    pruned = svc.minimax(board, depth, side, -INF, INF)
    plain = svc.minimax_unpruned(board, depth, side)
    assert pruned == pytest.approx(plain)
    assert board == Board.from_placement(placement)


def test_finds_mate_in_one_at_depth_one() -> None:
    board = Board.from_placement("7k/8/6K1/8/8/8/8/Q7")
    mv = SearchService().best_move(board, W, depth=1)
    assert mv is not None
    board.apply(mv)
    assert check_mate_in_one(board, W).solved


def test_timed_search_finds_mate_in_one() -> None:
    board = Board.from_placement("7k/8/6K1/8/8/8/8/Q7")
    res = SearchService().search(board, W, max_depth=3, time_limit=30.0, use_quiescence=True)
    assert res.best_move is not None
    # Mate on the next ply, found with two plies of depth to spare
    assert res.score == MATE_SCORE + 2
    board.apply(res.best_move)
    assert not list_all_legal_moves(B, board)
    assert check_mate_in_one(board, W).solved


@pytest.mark.parametrize("depth", [2, 3])
@pytest.mark.parametrize("quiescence", [False, True])
def test_deeper_search_prefers_immediate_mate(depth: int, quiescence: bool) -> None:
    board = Board.from_placement("7k/8/6K1/8/8/8/8/Q7")
    mv = SearchService().best_move(board, W, depth, use_quiescence=quiescence)
    board.apply(mv)
    assert not list_all_legal_moves(B, board)
    assert check_mate_in_one(board, W).solved


def test_shorter_mate_outscores_longer_mate() -> None:
    svc = SearchService()
    mated = Board.from_placement("7k/6Q1/6K1/8/8/8/8/8")
    assert svc.minimax(mated, 2, B, -INF, INF) > svc.minimax(mated, 0, B, -INF, INF)
    white_mated = Board.from_placement("8/8/8/8/8/6k1/6q1/6K1")
    assert svc.minimax(white_mated, 2, W, -INF, INF) < svc.minimax(white_mated, 0, W, -INF, INF)


def test_black_finds_mate_with_minimizing_sign() -> None:
    board = Board.from_placement("q7/8/8/8/8/6k1/8/7K")
    res = SearchService().search(board, B, max_depth=2, time_limit=30.0)
    assert res.score == -(MATE_SCORE + 1)
    board.apply(res.best_move)
    assert check_mate_in_one(board, B).solved


def test_queen_position_without_mate_still_returns_legal_move() -> None:
    # Lone queen cannot mate in one here; the engine must still answer
    board = Board.from_placement("4k3/8/8/8/8/8/4Q3/4K3")
    legal = list_all_legal_moves(W, board)
    mv = SearchService().best_move_timed(board, W, max_depth=2, time_limit=30.0)
    assert mv is not None
    assert any(mv.same_path(m) for m in legal)
    for m in legal:
        board.apply(m)
        assert not check_mate_in_one(board, W).solved
        board.undo(m)


def test_no_move_when_checkmated_or_stalemated() -> None:
    svc = SearchService()
    mated = Board.from_placement("7k/6Q1/6K1/8/8/8/8/8")
    stale = Board.from_placement("7k/5Q2/6K1/8/8/8/8/8")
    assert svc.best_move(mated, B, depth=2) is None
    res = svc.search(stale, B, max_depth=2, time_limit=5.0)
    assert res.best_move is None
    assert res.depth == 0


def test_terminal_scores() -> None:
    svc = SearchService()
    mated = Board.from_placement("7k/6Q1/6K1/8/8/8/8/8")
    stale = Board.from_placement("7k/5Q2/6K1/8/8/8/8/8")
    for depth in (0, 1, 3):
        assert svc.minimax(mated, depth, B, -INF, INF) == MATE_SCORE + depth
        assert svc.minimax(stale, depth, B, -INF, INF) == 0.0


def test_ties_keep_first_move_in_generation_order(monkeypatch) -> None:
    monkeypatch.setattr(service_mod, "evaluate", lambda board: 0.0)
    board = Board.starting()
    first = list_all_legal_moves(W, board)[0]
    for depth in (1, 2):
        assert SearchService().best_move(board, W, depth).same_path(first)


def test_search_does_not_mutate_input_board() -> None:
    board = Board.from_placement("4k3/2p5/3p4/8/8/2N5/3Q4/4K3")
    before = board.copy()
    SearchService().search(board, W, max_depth=2, time_limit=30.0, use_quiescence=True)
    assert board == before
