from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

from .board import Coord, Player

Vertices = Tuple[Coord, Coord, Coord, Coord]


def canonical_points(points: Iterable[Coord]) -> Vertices:
    """Sorts four vertices lexicographically by (x, y); the result doubles as the dedup key."""
    pts = tuple(sorted((int(x), int(y)) for x, y in points))
    if len(pts) != 4 or len(set(pts)) != 4:
        raise ValueError(f'A square needs 4 distinct vertices, got {pts}')
    return pts  # type: ignore[return-value]


@dataclass(frozen=True)
class Square:
    """A completed square: canonical vertices, owner and score (squared side length)."""
    points: Vertices
    score: int
    player: Player

    @classmethod
    def of(cls, points: Iterable[Coord], score: int, player: Player) -> 'Square':
        return cls(points=canonical_points(points), score=score, player=player)

    @property
    def key(self) -> Vertices:
        return self.points

    def contains(self, coord: Coord) -> bool:
        return coord in self.points
