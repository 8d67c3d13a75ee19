from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from .board import Board, Coord, FIRST_PLAYER, Player
from .config import GameConfig
from .errors import SnapshotIncompatible
from .finder import find_new_squares, total_score
from .square import Square
from .state import HistoryItem, MatchState, Phase, Scores

logger = logging.getLogger(__name__)


# ---------- JSON encoding ----------

def _object(obj: Any, what: str) -> Dict[str, Any]:
    if not isinstance(obj, dict):
        raise ValueError(f"{what} must be an object, got {type(obj).__name__}")
    return obj


def _player_to_json(p: Optional[Player]) -> Optional[str]:
    return p.value if p is not None else None


def _player_from_json(v: Any) -> Optional[Player]:
    if v is None:
        return None
    return Player(str(v))


def point_to_json(c: Coord) -> Dict[str, int]:
    return {"x": int(c[0]), "y": int(c[1])}


def point_from_json(obj: Dict[str, Any]) -> Coord:
    obj = _object(obj, "point")
    return (int(obj["x"]), int(obj["y"]))


def board_to_json(b: Board) -> List[List[Optional[str]]]:
    return [[_player_to_json(cell) for cell in column] for column in b.rows()]


def board_from_json(rows: Any) -> Board:
    if not isinstance(rows, list):
        raise ValueError("board must be a list of columns")
    return Board.from_rows([[_player_from_json(cell) for cell in column] for column in rows])


def scores_to_json(s: Scores) -> Dict[str, int]:
    return {Player.RED.value: int(s.red), Player.BLUE.value: int(s.blue)}


def scores_from_json(obj: Dict[str, Any]) -> Scores:
    obj = _object(obj, "scores")
    return Scores(red=int(obj.get(Player.RED.value, 0)), blue=int(obj.get(Player.BLUE.value, 0)))


def square_to_json(sq: Square) -> Dict[str, Any]:
    return {
        "points": [point_to_json(p) for p in sq.points],
        "score": int(sq.score),
        "player": sq.player.value,
    }


def square_from_json(obj: Dict[str, Any]) -> Square:
    obj = _object(obj, "square")
    return Square.of(
        (point_from_json(p) for p in obj["points"]),
        score=int(obj["score"]),
        player=Player(str(obj["player"])),
    )


def state_to_json(s: MatchState) -> Dict[str, Any]:
    return {
        "board": board_to_json(s.board),
        "currentPlayer": s.current_player.value,
        "scores": scores_to_json(s.scores),
        "history": [
            {
                "point": point_to_json(h.point),
                "player": h.player.value,
                "boardState": board_to_json(h.board),
                "scores": scores_to_json(h.scores),
            }
            for h in s.history
        ],
        "foundSquares": [square_to_json(sq) for sq in s.found_squares],
        "isGameOver": s.is_over,
        "winner": _player_to_json(s.winner),
        "lastChance": s.last_chance,
        "lastSquaresFound": [square_to_json(sq) for sq in s.last_squares],
    }


def json_to_state(obj: Dict[str, Any]) -> MatchState:
    """Decodes a saved game. Raises KeyError/ValueError/TypeError on malformed input."""
    if bool(obj.get("isGameOver", False)):
        phase = Phase.OVER
    elif bool(obj.get("lastChance", False)):
        phase = Phase.LAST_CHANCE
    else:
        phase = Phase.IN_PROGRESS
    history = tuple(
        HistoryItem(
            point=point_from_json(h["point"]),
            player=Player(str(h["player"])),
            board=board_from_json(h["boardState"]),
            scores=scores_from_json(h["scores"]),
        )
        for h in (_object(item, "history entry") for item in obj.get("history", []))
    )
    return MatchState(
        board=board_from_json(obj["board"]),
        current_player=Player(str(obj["currentPlayer"])),
        scores=scores_from_json(obj["scores"]),
        history=history,
        found_squares=tuple(square_from_json(sq) for sq in obj.get("foundSquares", [])),
        last_squares=tuple(square_from_json(sq) for sq in obj.get("lastSquaresFound", [])),
        phase=phase,
        winner=_player_from_json(obj.get("winner")) if phase is Phase.OVER else None,
    )


# ---------- Snapshots ----------

def export_snapshot(state: MatchState) -> Dict[str, Any]:
    """JSON-compatible copy of the whole match; the storage layer keeps it verbatim."""
    return state_to_json(state)


def validate_state(state: MatchState, config: GameConfig) -> None:
    """
    Replays the recorded moves from an empty board and checks that every stored pre-move
    board and score matches the replay, and that the final board and scores do too.
    """
    size = config.grid_size
    if state.board.size != size:
        raise SnapshotIncompatible(f'Saved board is {state.board.size}x{state.board.size}, expected {size}x{size}')
    if state.board.count_occupied() != len(state.history):
        raise SnapshotIncompatible(
            f'{state.board.count_occupied()} occupied points but {len(state.history)} recorded moves'
        )
    board = Board.empty(size)
    scores = Scores()
    mover = FIRST_PLAYER
    for i, item in enumerate(state.history):
        if item.player is not mover:
            raise SnapshotIncompatible(f'History entry {i} was played by {item.player.value} out of turn')
        if item.board != board:
            raise SnapshotIncompatible(f'History entry {i} stores a board that does not match the earlier moves')
        if item.scores != scores:
            raise SnapshotIncompatible(f'History entry {i} stores scores that do not match the earlier moves')
        if not board.in_bounds(*item.point) or board.at(*item.point) is not None:
            raise SnapshotIncompatible(f'History entry {i} plays an illegal point: {item.point}')
        board = board.with_mark(item.point, mover)
        scores = scores.plus(mover, total_score(find_new_squares(board, item.point, mover)))
        mover = mover.other
    if board != state.board:
        raise SnapshotIncompatible('Board does not match the recorded moves')
    if scores != state.scores:
        raise SnapshotIncompatible('Scores do not match the recorded moves')
    if state.current_player is not mover:
        raise SnapshotIncompatible('Player to move does not follow the recorded moves')


def import_snapshot(data: Any, config: GameConfig) -> MatchState:
    """Decodes and validates a saved game. Raises SnapshotIncompatible; the caller's state is untouched."""
    if not isinstance(data, dict):
        raise SnapshotIncompatible('Snapshot must be a JSON object')
    try:
        state = json_to_state(data)
    except (KeyError, ValueError, TypeError) as e:
        logger.warning("Rejected malformed snapshot: %s", e)
        raise SnapshotIncompatible(f'Malformed snapshot: {e}') from e
    try:
        validate_state(state, config)
    except SnapshotIncompatible as e:
        logger.warning("Rejected snapshot: %s", e)
        raise
    return state


@dataclass(frozen=True)
class SaveSlot:
    id: str
    label: str  # human-readable save time
    thumbnail: str  # opaque preview supplied by the shell
    data: Dict[str, Any]

    def to_json(self) -> Dict[str, Any]:
        return {"id": self.id, "timestamp": self.label, "thumbnail": self.thumbnail, "data": copy.deepcopy(self.data)}

    @classmethod
    def from_json(cls, obj: Dict[str, Any]) -> 'SaveSlot':
        return cls(
            id=str(obj["id"]),
            label=str(obj.get("timestamp", "")),
            thumbnail=str(obj.get("thumbnail", "")),
            data=dict(obj["data"]),
        )


def make_slot(state: MatchState, thumbnail: str = "", now: Optional[datetime] = None) -> SaveSlot:
    when = now or datetime.now()
    return SaveSlot(
        id=uuid.uuid4().hex,
        label=when.strftime("%Y-%m-%d %H:%M:%S"),
        thumbnail=thumbnail,
        data=export_snapshot(state),
    )
