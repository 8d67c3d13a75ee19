from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

Coord = Tuple[int, int]  # (x, y)


class Player(str, Enum):
    RED = 'RED'
    BLUE = 'BLUE'

    @property
    def other(self) -> 'Player':
        return Player.BLUE if self is Player.RED else Player.RED


FIRST_PLAYER = Player.RED


@dataclass(frozen=True)
class Board:
    """Square lattice of grid points, each empty or owned by one player."""
    size: int
    cells: Tuple[Optional[Player], ...]  # indexed x * size + y

    @classmethod
    def empty(cls, size: int) -> 'Board':
        if size < 2:
            raise ValueError(f'Board size must be at least 2, got {size}')
        return cls(size=size, cells=(None,) * (size * size))

    def index(self, x: int, y: int) -> int:
        return x * self.size + y

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def at(self, x: int, y: int) -> Optional[Player]:
        """Gets the owner of a grid point; out-of-bounds points are always empty."""
        if not self.in_bounds(x, y):
            return None
        return self.cells[self.index(x, y)]

    def coords(self) -> Iterable[Coord]:
        for x in range(self.size):
            for y in range(self.size):
                yield (x, y)

    def occupied(self) -> Iterable[Tuple[Coord, Player]]:
        for coord in self.coords():
            owner = self.at(*coord)
            if owner is not None:
                yield coord, owner

    def count_occupied(self) -> int:
        return sum(1 for cell in self.cells if cell is not None)

    def with_mark(self, coord: Coord, player: Player) -> 'Board':
        """Returns a copy of the board with ``coord`` owned by ``player``."""
        x, y = coord
        cells = list(self.cells)
        cells[self.index(x, y)] = player
        return Board(size=self.size, cells=tuple(cells))

    def rows(self) -> List[List[Optional[Player]]]:
        """Nested ``[x][y]`` lists, the layout used by saved games."""
        return [[self.at(x, y) for y in range(self.size)] for x in range(self.size)]

    @classmethod
    def from_rows(cls, rows: List[List[Optional[Player]]]) -> 'Board':
        size = len(rows)
        cells: List[Optional[Player]] = []
        for column in rows:
            if len(column) != size:
                raise ValueError('Board rows must form a square grid')
            cells.extend(column)
        return cls(size=size, cells=tuple(cells))

    def pretty(self, highlight: Optional[Iterable[Coord]] = None) -> str:
        """Generates a text grid: R/B for owned points, '*' for highlighted ones, '.' when empty."""
        marks = set(highlight or ())
        lines: List[str] = ['   ' + ' '.join(str(x % 10) for x in range(self.size))]
        for y in range(self.size):
            row: List[str] = []
            for x in range(self.size):
                owner = self.at(x, y)
                if (x, y) in marks:
                    row.append('*')
                elif owner is Player.RED:
                    row.append('R')
                elif owner is Player.BLUE:
                    row.append('B')
                else:
                    row.append('.')
            lines.append(f"{y:2d} " + ' '.join(row))
        return "\n".join(lines)
