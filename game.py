from __future__ import annotations

# Facade module that re-exports SquareWars core functionality.
# Used by the Flask app and tests; single-responsibility modules live under squarewars_core/*.

from squarewars_core.board import Board, Coord, FIRST_PLAYER, Player
from squarewars_core.square import Square, canonical_points
from squarewars_core.finder import find_new_squares, total_score
from squarewars_core.state import HistoryItem, MatchState, Phase, Scores
from squarewars_core.errors import (
    CellOccupied,
    GameAlreadyOver,
    InvalidCoordinate,
    NothingToUndo,
    SnapshotIncompatible,
    SquareWarsError,
)
from squarewars_core.config import GameConfig
from squarewars_core.rules import Effect, PlaceOutcome, initial_state, place, replay_board, reset, undo
from squarewars_core.match import Match, MatchResult, effect_messages
from squarewars_core.snapshot import (
    SaveSlot,
    board_from_json,
    board_to_json,
    export_snapshot,
    import_snapshot,
    json_to_state,
    make_slot,
    square_to_json,
    state_to_json,
)
from squarewars_core.db import (
    MAX_SLOTS,
    db_autosave_state,
    db_clear_autosave,
    db_delete_slot,
    db_get_slot,
    db_list_slots,
    db_load_autosave,
    db_save_slot,
    db_store_autosave,
)


def main() -> None:
    # CLI driver delegated to squarewars_core.cli
    from squarewars_core.cli import main as _main
    _main()


if __name__ == '__main__':
    main()
