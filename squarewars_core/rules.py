from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .board import Board, Coord, FIRST_PLAYER, Player
from .config import GameConfig
from .errors import CellOccupied, GameAlreadyOver, InvalidCoordinate, NothingToUndo
from .finder import find_new_squares, total_score
from .square import Square
from .state import HistoryItem, MatchState, Phase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Effect:
    """Something the shell should do after a transition (toast, popup, persist). Never run by the core."""
    kind: str  # 'scored' | 'last_chance' | 'game_over' | 'undone' | 'reset' | 'loaded'
    player: Optional[Player] = None
    value: int = 0
    point: Optional[Coord] = None


@dataclass(frozen=True)
class PlaceOutcome:
    score_delta: int
    new_squares: Tuple[Square, ...]


def initial_state(config: GameConfig) -> MatchState:
    return MatchState(board=Board.empty(config.grid_size), current_player=FIRST_PLAYER)


def place(state: MatchState, x: int, y: int, config: GameConfig) -> Tuple[MatchState, PlaceOutcome, List[Effect]]:
    """Applies one ply for the player to move and returns the new state. Raises on illegal placements."""
    if state.is_over:
        raise GameAlreadyOver('The match is over')
    if not state.board.in_bounds(x, y):
        raise InvalidCoordinate(f'({x}, {y}) is outside the {state.size}x{state.size} board')
    if state.board.at(x, y) is not None:
        raise CellOccupied(f'({x}, {y}) is already taken')

    mover = state.current_player
    point = (x, y)
    board = state.board.with_mark(point, mover)
    squares = find_new_squares(board, point, mover)
    delta = total_score(squares)
    scores = state.scores.plus(mover, delta)

    effects: List[Effect] = []
    if delta > 0:
        effects.append(Effect('scored', player=mover, value=delta, point=point))

    phase = state.phase
    winner: Optional[Player] = None
    if phase is not Phase.LAST_CHANCE and scores.of(mover) >= config.target_score:
        # The crossing ply never ends the match; the opponent gets one more.
        phase = Phase.LAST_CHANCE
        effects.append(Effect('last_chance', player=mover, value=scores.of(mover)))
    elif phase is Phase.LAST_CHANCE:
        phase = Phase.OVER
        winner = scores.leader()
        effects.append(Effect('game_over', player=winner, value=scores.of(winner) if winner else scores.red))

    new_state = MatchState(
        board=board,
        current_player=mover.other,
        scores=scores,
        history=state.history + (HistoryItem(point=point, player=mover, board=state.board, scores=state.scores),),
        found_squares=state.found_squares + squares,
        last_squares=squares,
        phase=phase,
        winner=winner,
    )
    if squares:
        logger.info("%s at %s completed %d square(s) for %d points", mover.value, point, len(squares), delta)
    if phase is not state.phase:
        logger.info("Phase %s -> %s (scores RED=%d BLUE=%d)", state.phase.value, phase.value, scores.red, scores.blue)
    return new_state, PlaceOutcome(score_delta=delta, new_squares=squares), effects


def undo(state: MatchState) -> Tuple[MatchState, List[Effect]]:
    """
    Pops the most recent ply. Disabled once the match is over.

    Logged squares are matched to the undone ply by vertex: any square containing the undone
    point is dropped. Scores are restored exactly from history.
    """
    if state.is_over:
        raise GameAlreadyOver('Undo is disabled after the match has ended')
    if not state.history:
        raise NothingToUndo('No moves to undo')

    last = state.history[-1]
    new_state = MatchState(
        board=last.board,
        current_player=last.player,
        scores=last.scores,
        history=state.history[:-1],
        found_squares=tuple(sq for sq in state.found_squares if not sq.contains(last.point)),
        last_squares=(),
        phase=Phase.IN_PROGRESS,
        winner=None,
    )
    return new_state, [Effect('undone', player=last.player, point=last.point)]


def reset(config: GameConfig) -> Tuple[MatchState, List[Effect]]:
    return initial_state(config), [Effect('reset')]


def replay_board(history: Tuple[HistoryItem, ...], size: int) -> Board:
    """Rebuilds the board by replaying every recorded ply from an empty grid."""
    board = Board.empty(size)
    for item in history:
        board = board.with_mark(item.point, item.player)
    return board
