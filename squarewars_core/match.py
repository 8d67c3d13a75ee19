from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from . import rules
from .config import GameConfig
from .errors import SquareWarsError
from .rules import Effect
from .snapshot import export_snapshot, import_snapshot
from .square import Square
from .state import MatchState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchResult:
    accepted: bool
    state: MatchState
    score_delta: int = 0
    new_squares: Tuple[Square, ...] = ()
    effects: Tuple[Effect, ...] = ()
    error: Optional[str] = None  # SquareWarsError code when rejected
    message: str = ''


class Match:
    """
    One match owned by one session.

    Mutating calls are serialized with a lock and never raise for game-rule violations:
    a rejected call returns ``accepted=False`` with the unchanged state.
    """

    def __init__(self, config: Optional[GameConfig] = None, state: Optional[MatchState] = None) -> None:
        self.config = config or GameConfig()
        self._lock = threading.RLock()
        self._state = state if state is not None else rules.initial_state(self.config)

    @property
    def state(self) -> MatchState:
        return self._state

    def _rejected(self, err: SquareWarsError) -> MatchResult:
        logger.debug("Rejected: %s (%s)", err.code, err)
        return MatchResult(accepted=False, state=self._state, error=err.code, message=str(err))

    def place(self, x: int, y: int) -> MatchResult:
        with self._lock:
            try:
                new_state, outcome, effects = rules.place(self._state, x, y, self.config)
            except SquareWarsError as e:
                return self._rejected(e)
            self._state = new_state
            return MatchResult(
                accepted=True,
                state=new_state,
                score_delta=outcome.score_delta,
                new_squares=outcome.new_squares,
                effects=tuple(effects),
            )

    def undo(self) -> MatchResult:
        with self._lock:
            try:
                new_state, effects = rules.undo(self._state)
            except SquareWarsError as e:
                return self._rejected(e)
            self._state = new_state
            return MatchResult(accepted=True, state=new_state, effects=tuple(effects))

    def reset(self) -> MatchResult:
        with self._lock:
            self._state, effects = rules.reset(self.config)
            return MatchResult(accepted=True, state=self._state, effects=tuple(effects))

    def export_snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return export_snapshot(self._state)

    def import_snapshot(self, data: Any) -> MatchResult:
        with self._lock:
            try:
                loaded = import_snapshot(data, self.config)
            except SquareWarsError as e:
                return self._rejected(e)
            self._state = loaded
            logger.info("Loaded snapshot with %d moves", len(loaded.history))
            return MatchResult(accepted=True, state=loaded, effects=(Effect('loaded'),))


def effect_messages(effects: Tuple[Effect, ...]) -> List[str]:
    """Short notification texts for a list of effects, as shown by the shells."""
    out: List[str] = []
    for e in effects:
        if e.kind == 'scored':
            out.append(f"Captured! +{e.value}")
        elif e.kind == 'last_chance':
            out.append(f"{e.player.value if e.player else ''} reached {e.value}. Last chance!")
        elif e.kind == 'game_over':
            out.append(f"{e.player.value} wins!" if e.player else "Draw!")
        elif e.kind == 'undone':
            out.append("Move undone")
        elif e.kind == 'reset':
            out.append("Board cleared")
        elif e.kind == 'loaded':
            out.append("Snapshot loaded")
    return out
