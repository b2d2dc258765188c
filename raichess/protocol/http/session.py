from __future__ import annotations

import threading
import uuid
from typing import Callable, Dict, Optional

from ...engine.game import GameController


class InMemorySessionStore:
    """Thread-safe in-memory store of game controllers keyed by ``game_id``."""

    def __init__(self, factory: Callable[[], GameController] = GameController) -> None:
        self._lock = threading.RLock()
        self._games: Dict[str, GameController] = {}
        self._factory = factory

    def create(self, controller: Optional[GameController] = None) -> str:
        """Register a controller (a fresh one by default) and return its id."""
        gid = str(uuid.uuid4())
        if controller is None:
            controller = self._factory()
        with self._lock:
            self._games[gid] = controller
        return gid

    def get(self, game_id: str) -> Optional[GameController]:
        with self._lock:
            return self._games.get(game_id)

    def delete(self, game_id: str) -> bool:
        with self._lock:
            return self._games.pop(game_id, None) is not None
