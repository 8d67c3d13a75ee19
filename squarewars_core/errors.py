from __future__ import annotations


class SquareWarsError(Exception):
    """Base class for rejected operations. The match state is never modified when one is raised."""
    code = 'SquareWarsError'


class InvalidCoordinate(SquareWarsError):
    code = 'InvalidCoordinate'


class CellOccupied(SquareWarsError):
    code = 'CellOccupied'


class GameAlreadyOver(SquareWarsError):
    code = 'GameAlreadyOver'


class NothingToUndo(SquareWarsError):
    code = 'NothingToUndo'


class SnapshotIncompatible(SquareWarsError):
    """Raised when a saved game does not fit the configured board or is internally inconsistent."""
    code = 'SnapshotIncompatible'
