from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import InMemorySessionStore
from ...engine.attacks import in_check
from ...engine.board import Board, side_from_fen
from ...engine.game import GameController, Phase
from ...engine.move import parse_uci
from ...engine.perft import perft as perft_nodes
from ...engine.types import PieceColor, PieceType, Square
from ...puzzles.catalog import SAMPLE_MATE_IN_1, check_mate_in_one, resolve_move
from ...search.service import SearchService
from ...search.skill import AISkill, config_for


logger = logging.getLogger(__name__)

MAX_PERFT_DEPTH = 5


class GameConfig(BaseModel):
    vs_ai: bool = True
    ai_color: PieceColor = PieceColor.BLACK
    ai_skill: AISkill = AISkill.CASUAL
    self_play: bool = False


class ConfigRequest(BaseModel):
    vs_ai: Optional[bool] = None
    ai_color: Optional[PieceColor] = None
    ai_skill: Optional[AISkill] = None
    self_play: Optional[bool] = None


class CreateGameResponse(BaseModel):
    game_id: str
    placement: str


class SelectRequest(BaseModel):
    square: str = Field(..., description="Square name, e.g. e2")


class MoveRequest(BaseModel):
    move: str = Field(..., description="Long algebraic move string, e.g. e2e4")


class PromotionRequest(BaseModel):
    piece: Literal["queen", "rook", "bishop", "knight"]


class PositionRequest(BaseModel):
    fen: str = Field(..., description="FEN; only placement and side to move are read")
    side_to_move: Optional[PieceColor] = None


class SearchRequest(BaseModel):
    skill: Optional[AISkill] = None
    depth: Optional[int] = Field(default=None, ge=1, le=7)
    time_limit: Optional[float] = Field(default=None, gt=0, le=30)
    quiescence: Optional[bool] = None


class AttemptRequest(BaseModel):
    move: str


class ResultModel(BaseModel):
    kind: str
    winner: Optional[PieceColor]


class PendingPromotionModel(BaseModel):
    from_sq: str
    to_sq: str
    color: PieceColor


class GameState(BaseModel):
    game_id: str
    placement: str
    side_to_move: PieceColor
    phase: Phase
    selected: Optional[str]
    legal_targets: List[str]
    in_check: bool
    result: Optional[ResultModel]
    pending_promotion: Optional[PendingPromotionModel]
    last_move: Optional[str]
    config: GameConfig


def create_app(synchronous_engine: bool = False) -> FastAPI:
    """Build the HTTP front end.

    Args:
        synchronous_engine (bool): Run engine replies inside the request that
            triggered them instead of on a background thread.
    """
    app = FastAPI(title="RaiChess API", version="0.1.0")

    logging.basicConfig(level=logging.INFO)

    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore()

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    def create_game(cfg: Optional[GameConfig] = None) -> CreateGameResponse:
        cfg = cfg or GameConfig()
        controller = GameController(
            vs_ai=cfg.vs_ai,
            ai_color=cfg.ai_color,
            ai_skill=cfg.ai_skill,
            self_play=cfg.self_play,
            synchronous=synchronous_engine,
        )
        game_id = store.create(controller)
        # Engine may own white
        controller.reset()
        return CreateGameResponse(game_id=game_id, placement=controller.board.to_placement())

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    def get_state(game_id: str) -> GameState:
        return _state(game_id, _require_game(store, game_id))

    @app.delete("/api/games/{game_id}")
    def delete_game(game_id: str) -> Dict[str, bool]:
        controller = _require_game(store, game_id)
        # Cancel any in-flight search
        controller.configure(vs_ai=False, self_play=False)
        controller.reset()
        store.delete(game_id)
        return {"deleted": True}

    @app.post("/api/games/{game_id}/select", response_model=GameState)
    def select(game_id: str, req: SelectRequest) -> GameState:
        controller = _require_game(store, game_id)
        controller.select(_parse_square(req.square))
        return _state(game_id, controller)

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    def make_move(game_id: str, req: MoveRequest) -> GameState:
        controller = _require_game(store, game_id)
        try:
            move = parse_uci(req.move)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        _require_accepting(controller)
        if not controller.submit_move(move.from_sq, move.to_sq):
            raise HTTPException(status_code=400, detail="illegal move")
        if move.promotion is not None and controller.pending_promotion is not None:
            controller.confirm_promotion(move.promotion)
        return _state(game_id, controller)

    @app.post("/api/games/{game_id}/promotion", response_model=GameState)
    def promote(game_id: str, req: PromotionRequest) -> GameState:
        controller = _require_game(store, game_id)
        if not controller.confirm_promotion(PieceType(req.piece)):
            raise HTTPException(status_code=409, detail="no promotion pending")
        return _state(game_id, controller)

    @app.post("/api/games/{game_id}/reset", response_model=GameState)
    def reset(game_id: str) -> GameState:
        controller = _require_game(store, game_id)
        controller.reset()
        return _state(game_id, controller)

    @app.post("/api/games/{game_id}/config", response_model=GameState)
    def configure(game_id: str, req: ConfigRequest) -> GameState:
        controller = _require_game(store, game_id)
        controller.configure(
            vs_ai=req.vs_ai, ai_color=req.ai_color, ai_skill=req.ai_skill, self_play=req.self_play
        )
        return _state(game_id, controller)

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    def set_position(game_id: str, req: PositionRequest) -> GameState:
        controller = _require_game(store, game_id)
        if not req.fen.strip():
            raise HTTPException(status_code=400, detail="fen is required")
        controller.load_position(req.fen, req.side_to_move)
        return _state(game_id, controller)

    @app.post("/api/games/{game_id}/search")
    def search(game_id: str, req: SearchRequest) -> Dict[str, Any]:
        controller = _require_game(store, game_id)
        snap = controller.snapshot()
        cfg = config_for(req.skill or snap.ai_skill)
        depth = req.depth or cfg.max_depth
        time_limit = req.time_limit or cfg.time_limit
        quiescence = cfg.quiescence if req.quiescence is None else req.quiescence
        res = SearchService().search(snap.board, snap.side_to_move, depth, time_limit, quiescence)
        return {
            "best_move": res.best_move.to_uci() if res.best_move else None,
            "score": res.score,
            "depth": res.depth,
            "nodes": res.nodes,
            "qnodes": res.qnodes,
            "time_ms": res.time_ms,
            "iters": res.iters,
        }

    @app.post("/api/perft")
    def perft(payload: Dict[str, Any]) -> Dict[str, Any]:
        fen = payload.get("fen")
        if not fen:
            raise HTTPException(status_code=400, detail="fen is required")
        try:
            depth = int(payload.get("depth", 1))
        except (TypeError, ValueError):
            raise HTTPException(status_code=400, detail="depth must be an integer")
        if depth < 0 or depth > MAX_PERFT_DEPTH:
            raise HTTPException(status_code=400, detail=f"depth must be in 0..{MAX_PERFT_DEPTH}")
        nodes = perft_nodes(Board.from_placement(fen), side_from_fen(fen), depth)
        return {"nodes": nodes}

    @app.get("/api/puzzles")
    def list_puzzles() -> List[Dict[str, Any]]:
        return [
            {
                "index": i,
                "title": p.title,
                "fen": p.fen,
                "mate_in": p.mate_in,
                "side_to_move": p.side_to_move,
            }
            for i, p in enumerate(SAMPLE_MATE_IN_1)
        ]

    @app.post("/api/puzzles/{index}/attempt")
    def attempt_puzzle(index: int, req: AttemptRequest) -> Dict[str, Any]:
        if index < 0 or index >= len(SAMPLE_MATE_IN_1):
            raise HTTPException(status_code=404, detail="puzzle not found")
        puzzle = SAMPLE_MATE_IN_1[index]
        try:
            wanted = parse_uci(req.move)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        board = puzzle.board()
        mover = puzzle.side_to_move
        move = resolve_move(board, mover, wanted)
        if move is None:
            raise HTTPException(status_code=400, detail="illegal move")
        board.apply(move)
        verdict = check_mate_in_one(board, mover)
        return {"solved": verdict.solved, "text": verdict.text, "move": move.to_uci()}

    return app


def _require_game(store: InMemorySessionStore, game_id: str) -> GameController:
    controller = store.get(game_id)
    if controller is None:
        raise HTTPException(status_code=404, detail="game not found")
    return controller


def _require_accepting(controller: GameController) -> None:
    phase = controller.phase
    if phase is Phase.GAME_OVER:
        raise HTTPException(status_code=409, detail="game is over")
    if phase is Phase.PENDING_PROMOTION:
        raise HTTPException(status_code=409, detail="promotion pending")
    if phase is Phase.THINKING or controller.engine_owns(controller.side_to_move):
        raise HTTPException(status_code=409, detail="engine to move")


def _parse_square(name: str) -> Square:
    try:
        return Square.from_name(name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _state(game_id: str, controller: GameController) -> GameState:
    snap = controller.snapshot()
    pp = snap.pending_promotion
    return GameState(
        game_id=game_id,
        placement=snap.board.to_placement(),
        side_to_move=snap.side_to_move,
        phase=snap.phase,
        selected=snap.selected.name if snap.selected else None,
        legal_targets=sorted(sq.name for sq in snap.legal_targets),
        in_check=in_check(snap.board, snap.side_to_move),
        result=(
            ResultModel(kind=snap.result.kind, winner=snap.result.winner) if snap.result else None
        ),
        pending_promotion=(
            PendingPromotionModel(from_sq=pp.from_sq.name, to_sq=pp.to_sq.name, color=pp.color)
            if pp
            else None
        ),
        last_move=snap.last_move.to_uci() if snap.last_move else None,
        config=GameConfig(
            vs_ai=snap.vs_ai,
            ai_color=snap.ai_color,
            ai_skill=snap.ai_skill,
            self_play=snap.self_play,
        ),
    )


# Default app for non-factory servers
app = create_app()
