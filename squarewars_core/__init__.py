"""
SquareWars core Python package.

This package contains the game data structures and pure-logic helpers used by
the Flask app (app.py), the terminal shell and the tests.
Modules:
- board.py: Board, Player, Coord
- square.py: Square and vertex canonicalization
- finder.py: detection of squares completed by a placement
- state.py: MatchState, Phase, Scores, HistoryItem
- rules.py: place / undo / reset transitions
- match.py: Match session wrapper
- snapshot.py, db.py: save/restore
"""
