from __future__ import annotations

from typing import List, Optional, Set, Tuple

from .board import Board, Coord, Player
from .square import Square, Vertices, canonical_points


def _edge_completions(a: Coord, b: Coord) -> List[Tuple[Coord, Coord]]:
    """Far vertices of the two squares having A-B as a side, one per rotation direction."""
    dx, dy = b[0] - a[0], b[1] - a[1]
    return [
        ((b[0] - dy, b[1] + dx), (a[0] - dy, a[1] + dx)),
        ((b[0] + dy, b[1] - dx), (a[0] + dy, a[1] - dx)),
    ]


def _diagonal_completion(a: Coord, b: Coord) -> Optional[Tuple[Coord, Coord]]:
    """Other diagonal of the square having A-B as a diagonal, or None when it is off-lattice."""
    ax, ay = a
    bx, by = b
    cx2 = ax + bx + ay - by
    cy2 = ay + by + bx - ax
    if cx2 % 2 != 0 or cy2 % 2 != 0:
        return None
    c = (cx2 // 2, cy2 // 2)
    d = ((ax + bx - ay + by) // 2, (ay + by - bx + ax) // 2)
    return c, d


def _owned(board: Board, coord: Coord, player: Player) -> bool:
    return board.in_bounds(*coord) and board.at(*coord) is player


def find_new_squares(board: Board, point: Coord, player: Player) -> Tuple[Square, ...]:
    """
    Finds every square that has ``point`` as a vertex and all four vertices owned by ``player``.

    The board must already contain the new mark. Each other point B owned by the player is
    tried both as an adjacent corner (A-B is a side) and as the opposite corner (A-B is a
    diagonal). Squares are reported once per canonical vertex set, in discovery order, with
    score equal to the squared side length whichever pairing found them.
    """
    if not board.in_bounds(*point):
        raise ValueError(f'Point {point} is outside the {board.size}x{board.size} board')
    if board.at(*point) is not player:
        raise ValueError(f'Point {point} must be owned by {player.value} before detection')

    found: List[Square] = []
    seen: Set[Vertices] = set()

    def check_and_add(b: Coord, c: Coord, d: Coord, score: int) -> None:
        if not (_owned(board, c, player) and _owned(board, d, player)):
            return
        key = canonical_points((point, b, c, d))
        if key in seen:
            return
        seen.add(key)
        found.append(Square(points=key, score=score, player=player))

    for b, owner in board.occupied():
        if owner is not player or b == point:
            continue
        dx, dy = b[0] - point[0], b[1] - point[1]
        length2 = dx * dx + dy * dy
        for c, d in _edge_completions(point, b):
            check_and_add(b, c, d, length2)
        diagonal = _diagonal_completion(point, b)
        if diagonal is not None:
            # side^2 is half of diagonal^2
            check_and_add(b, diagonal[0], diagonal[1], length2 // 2)

    return tuple(found)


def total_score(squares: Tuple[Square, ...]) -> int:
    return sum(sq.score for sq in squares)
