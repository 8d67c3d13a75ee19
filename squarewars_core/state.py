from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .board import Board, Coord, FIRST_PLAYER, Player
from .square import Square


class Phase(str, Enum):
    IN_PROGRESS = 'in_progress'
    LAST_CHANCE = 'last_chance'  # target reached; the other player has one ply left
    OVER = 'over'


@dataclass(frozen=True)
class Scores:
    red: int = 0
    blue: int = 0

    def of(self, player: Player) -> int:
        return self.red if player is Player.RED else self.blue

    def plus(self, player: Player, points: int) -> 'Scores':
        if player is Player.RED:
            return Scores(red=self.red + points, blue=self.blue)
        return Scores(red=self.red, blue=self.blue + points)

    def leader(self) -> Optional[Player]:
        """Player with the strictly higher total, None on a tie."""
        if self.red > self.blue:
            return Player.RED
        if self.blue > self.red:
            return Player.BLUE
        return None


@dataclass(frozen=True)
class HistoryItem:
    """One ply: where the mover played plus the board and scores from before the move."""
    point: Coord
    player: Player
    board: Board
    scores: Scores


@dataclass(frozen=True)
class MatchState:
    """Authoritative state of one match. Transitions live in rules.py."""
    board: Board
    current_player: Player = FIRST_PLAYER
    scores: Scores = field(default_factory=Scores)
    history: Tuple[HistoryItem, ...] = ()
    found_squares: Tuple[Square, ...] = ()
    last_squares: Tuple[Square, ...] = ()
    phase: Phase = Phase.IN_PROGRESS
    winner: Optional[Player] = None  # only meaningful when phase is OVER

    @property
    def is_over(self) -> bool:
        return self.phase is Phase.OVER

    @property
    def last_chance(self) -> bool:
        return self.phase is Phase.LAST_CHANCE

    @property
    def size(self) -> int:
        return self.board.size

    def status_text(self) -> str:
        if self.is_over:
            return f"GAME OVER - {self.winner.value} WINS!" if self.winner else "GAME OVER - DRAW"
        if self.last_chance:
            return f"LAST CHANCE! Turn: {self.current_player.value}"
        return f"Turn: {self.current_player.value}"
