from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional

from raichess.search.service import SearchService
from raichess.search.skill import AISkill, config_for

from .board import Board, side_from_fen
from .castling import CastlingRights
from .legality import game_result, legal_moves_from
from .move import Move
from .movegen import castling_rook_move, is_castling_move, promotion_rank
from .types import GameResult, PieceColor, PieceType, Square


logger = logging.getLogger(__name__)

PROMOTION_CHOICES = (PieceType.QUEEN, PieceType.ROOK, PieceType.BISHOP, PieceType.KNIGHT)


class Phase(str, Enum):
    IDLE = "idle"
    SELECTED = "selected"
    PENDING_PROMOTION = "pending_promotion"
    THINKING = "thinking"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class PendingPromotion:
    from_sq: Square
    to_sq: Square
    color: PieceColor


@dataclass(frozen=True)
class GameSnapshot:
    """Everything a front end needs to render the game, copied at publish time."""

    board: Board
    side_to_move: PieceColor
    phase: Phase
    selected: Optional[Square]
    legal_targets: FrozenSet[Square]
    result: Optional[GameResult]
    pending_promotion: Optional[PendingPromotion]
    last_move: Optional[Move]
    castling: CastlingRights
    vs_ai: bool
    ai_color: PieceColor
    ai_skill: AISkill
    self_play: bool
    epoch: int


Listener = Callable[[GameSnapshot], None]


class GameController:
    """Authoritative game state and the rules state machine around it.

    Responsibility: own the board, side to move and castling rights; turn
    square selections into moves; detect game end; drive the engine whenever it
    owns the side to move.

    Notes:
    - All state is guarded by one re-entrant lock. The engine searches on a
      worker thread over a board copy and commits through the same path as
      human moves.
    - At most one search is outstanding. ``reset``/``load_position`` start a new
      epoch; results from an older epoch are dropped.
    - With ``synchronous=True`` the engine runs on the calling thread instead,
      which keeps tests and request handlers deterministic.
    """

    def __init__(
        self,
        *,
        vs_ai: bool = True,
        ai_color: PieceColor = PieceColor.BLACK,
        ai_skill: AISkill = AISkill.CASUAL,
        self_play: bool = False,
        synchronous: bool = False,
        search_factory: Callable[[], SearchService] = SearchService,
    ) -> None:
        self._lock = threading.RLock()
        self._idle = threading.Condition(self._lock)
        self._listeners: List[Listener] = []
        self._search_factory = search_factory
        self._synchronous = synchronous
        self._stop_event = threading.Event()
        self._worker: Optional[threading.Thread] = None
        self._commits = 0

        self.vs_ai = vs_ai
        self.ai_color = PieceColor(ai_color)
        self.ai_skill = AISkill(ai_skill)
        self.self_play = self_play

        self.epoch = 0
        self._init_state(Board.starting(), PieceColor.WHITE, CastlingRights())

    def _init_state(self, board: Board, side: PieceColor, rights: CastlingRights) -> None:
        self.board = board
        self.side_to_move = side
        self.castling = rights
        self.selected: Optional[Square] = None
        self._target_moves: Dict[Square, Move] = {}
        self.result: Optional[GameResult] = None
        self.pending_promotion: Optional[PendingPromotion] = None
        self.last_move: Optional[Move] = None
        self.thinking = False

    # --- Observer contract ---
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for state changes; returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> GameSnapshot:
        with self._lock:
            return GameSnapshot(
                board=self.board.copy(),
                side_to_move=self.side_to_move,
                phase=self.phase,
                selected=self.selected,
                legal_targets=frozenset(self._target_moves),
                result=self.result,
                pending_promotion=self.pending_promotion,
                last_move=self.last_move,
                castling=self.castling,
                vs_ai=self.vs_ai,
                ai_color=self.ai_color,
                ai_skill=self.ai_skill,
                self_play=self.self_play,
                epoch=self.epoch,
            )

    def _notify(self) -> None:
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("state listener failed")

    @property
    def phase(self) -> Phase:
        if self.result is not None:
            return Phase.GAME_OVER
        if self.thinking:
            return Phase.THINKING
        if self.pending_promotion is not None:
            return Phase.PENDING_PROMOTION
        if self.selected is not None:
            return Phase.SELECTED
        return Phase.IDLE

    @property
    def legal_targets(self) -> FrozenSet[Square]:
        with self._lock:
            return frozenset(self._target_moves)

    def engine_owns(self, color: PieceColor) -> bool:
        return self.self_play or (self.vs_ai and color is self.ai_color)

    # --- Inbound commands ---
    def reset(self) -> None:
        """Start a new game from the standard position."""
        with self._lock:
            self._new_epoch()
            self._init_state(Board.starting(), PieceColor.WHITE, CastlingRights())
            logger.info("game reset epoch=%d", self.epoch)
            self._notify()
            self._drive()

    def load_position(self, fen: str, side_to_move: Optional[PieceColor] = None) -> None:
        """Replace the position with an imported one.

        Malformed placements fall back to the standard starting position. Kings
        and rooks away from their original squares lose their castling rights.
        """
        board = Board.from_placement(fen)
        side = PieceColor(side_to_move) if side_to_move is not None else side_from_fen(fen)
        with self._lock:
            self._new_epoch()
            self._init_state(board, side, CastlingRights.from_board(board))
            self.result = game_result(self.board, self.side_to_move)
            logger.info("position loaded %s side=%s", board.to_placement(), side.value)
            self._notify()
            self._drive()

    def configure(
        self,
        *,
        vs_ai: Optional[bool] = None,
        ai_color: Optional[PieceColor] = None,
        ai_skill: Optional[AISkill] = None,
        self_play: Optional[bool] = None,
    ) -> None:
        with self._lock:
            if vs_ai is not None:
                self.vs_ai = vs_ai
            if ai_color is not None:
                self.ai_color = PieceColor(ai_color)
            if ai_skill is not None:
                self.ai_skill = AISkill(ai_skill)
            if self_play is not None:
                self.self_play = self_play
            self._notify()
            self._drive()

    def select(self, square: Square) -> None:
        """Handle a tap on ``square``.

        Invalid taps never raise; they clear the selection.
        """
        with self._lock:
            if (
                self.result is not None
                or self.pending_promotion is not None
                or self.thinking
                or self.engine_owns(self.side_to_move)
            ):
                return
            if self.selected is not None:
                if square == self.selected:
                    self._clear_selection()
                    self._notify()
                    return
                move = self._target_moves.get(square)
                if move is not None:
                    self._commit_human(move)
                    return
            piece = self.board.piece_at(square)
            if piece is not None and piece.color is self.side_to_move:
                self.selected = square
                moves = legal_moves_from(square, self.board, self.side_to_move, self.castling)
                self._target_moves = {m.to_sq: m for m in moves}
            else:
                self._clear_selection()
            self._notify()

    def submit_move(self, from_sq: Square, to_sq: Square) -> bool:
        """Select ``from_sq`` then ``to_sq``; True when a move was accepted."""
        with self._lock:
            before = (self._commits, self.pending_promotion, self.epoch)
            self._clear_selection()
            self.select(from_sq)
            if to_sq not in self._target_moves:
                self._clear_selection()
                self._notify()
                return False
            self.select(to_sq)
            return (self._commits, self.pending_promotion, self.epoch) != before

    def confirm_promotion(self, kind: PieceType) -> bool:
        """Finish a pending promotion with the chosen piece type."""
        with self._lock:
            pp = self.pending_promotion
            if pp is None:
                return False
            kind = PieceType(kind)
            if kind not in PROMOTION_CHOICES:
                logger.warning("rejected promotion choice %s", kind.value)
                return False
            move = Move(pp.from_sq, pp.to_sq, captured=self.board.piece_at(pp.to_sq), promotion=kind)
            self.pending_promotion = None
            self._commit(move)
            self._drive()
            return True

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no engine search is in flight; False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: not self.thinking, timeout=timeout)

    # --- Commit path ---
    def _commit_human(self, move: Move) -> None:
        piece = self.board.piece_at(move.from_sq)
        if (
            piece is not None
            and piece.type is PieceType.PAWN
            and move.to_sq.rank == promotion_rank(piece.color)
        ):
            self.pending_promotion = PendingPromotion(move.from_sq, move.to_sq, piece.color)
            self._clear_selection()
            self._notify()
            return
        self._commit(move)
        self._drive()

    def _commit(self, move: Move) -> None:
        moved = self.board.piece_at(move.from_sq)
        captured = self.board.piece_at(move.to_sq)
        if captured != move.captured:
            move = Move(move.from_sq, move.to_sq, captured=captured, promotion=move.promotion)
        if is_castling_move(move, moved):
            self.board.apply(castling_rook_move(move))
        self.board.apply(move)
        self.castling = self.castling.updated_after(moved, move.from_sq, move.to_sq, captured)
        self.last_move = move
        self._clear_selection()
        self._commits += 1
        self.side_to_move = self.side_to_move.opponent
        self.result = game_result(self.board, self.side_to_move)
        logger.info("move %s", move.to_uci())
        if self.result is not None:
            logger.info(
                "game over: %s winner=%s",
                self.result.kind,
                self.result.winner.value if self.result.winner else None,
            )
        self._notify()

    def _clear_selection(self) -> None:
        self.selected = None
        self._target_moves = {}

    def _new_epoch(self) -> None:
        self.epoch += 1
        self._stop_event.set()
        self._stop_event = threading.Event()
        if self.thinking:
            self.thinking = False
            self._idle.notify_all()

    # --- Engine driving loop ---
    def _engine_to_move(self) -> bool:
        return self.result is None and self.engine_owns(self.side_to_move)

    def _drive(self) -> None:
        if self.thinking or not self._engine_to_move():
            return
        self.thinking = True
        self._notify()
        if self._synchronous:
            self._engine_loop(self.epoch, self._stop_event)
            return
        self._worker = threading.Thread(
            target=self._engine_loop,
            args=(self.epoch, self._stop_event),
            name="raichess-search",
            daemon=True,
        )
        self._worker.start()

    def _engine_loop(self, epoch: int, stop_event: threading.Event) -> None:
        """Search and commit until a human is to move or the game is over."""
        while True:
            with self._lock:
                if epoch != self.epoch:
                    return
                if not self._engine_to_move():
                    self._finish_thinking()
                    return
                board = self.board.copy()
                color = self.side_to_move
                cfg = config_for(self.ai_skill)

            result = self._search_factory().search(
                board,
                color,
                cfg.max_depth,
                cfg.time_limit,
                cfg.quiescence,
                stop_event=stop_event,
            )

            with self._lock:
                if epoch != self.epoch:
                    return
                if self.side_to_move is not color or not self._engine_to_move():
                    # Side was handed to a human while searching
                    self._finish_thinking()
                    return
                if result.best_move is None:
                    logger.warning("engine produced no move for %s", color.value)
                    self._finish_thinking()
                    return
                self._commit(result.best_move)

    def _finish_thinking(self) -> None:
        self.thinking = False
        self._idle.notify_all()
        self._notify()
