from __future__ import annotations

import argparse
import logging
from typing import List, Optional, Tuple

from .config import GameConfig
from .db import (
    db_autosave_state,
    db_clear_autosave,
    db_delete_slot,
    db_list_slots,
    db_load_autosave,
    db_save_slot,
)
from .match import Match, MatchResult, effect_messages
from .snapshot import make_slot
from .square import Square

CLI_SESSION = 'cli'

HELP = (
    "Commands: x,y (or x y) place | u undo | r reset | s save | l list saves | "
    "load N | del N | q quit"
)


def parse_command(text: str) -> Tuple[str, Optional[Tuple[int, int]], Optional[int]]:
    """Parses one input line into (command, point, slot number). Unknown input gives ('?', None, None)."""
    text = text.strip()
    lowered = text.lower()
    if lowered in ('u', 'undo'):
        return 'undo', None, None
    if lowered in ('r', 'reset'):
        return 'reset', None, None
    if lowered in ('s', 'save'):
        return 'save', None, None
    if lowered in ('l', 'list'):
        return 'list', None, None
    if lowered in ('q', 'quit', 'exit'):
        return 'quit', None, None
    if lowered in ('h', 'help', '?'):
        return 'help', None, None
    parts = lowered.split()
    if len(parts) == 2 and parts[0] in ('load', 'del') and parts[1].isdigit():
        return parts[0], None, int(parts[1])
    sep = ',' if ',' in text else ' '
    try:
        x_s, y_s = [t for t in text.split(sep) if t.strip() != '']
        return 'place', (int(x_s), int(y_s)), None
    except ValueError:
        return '?', None, None


def _highlight(squares: Tuple[Square, ...]) -> List[Tuple[int, int]]:
    return [p for sq in squares for p in sq.points]


def _show(result: MatchResult) -> None:
    s = result.state
    print(s.board.pretty(_highlight(s.last_squares)))
    print(f"RED {s.scores.red}  BLUE {s.scores.blue}  | {s.status_text()}")
    for msg in effect_messages(result.effects):
        print(f"* {msg}")


def main(argv: Optional[List[str]] = None) -> None:
    env = GameConfig.from_env()
    parser = argparse.ArgumentParser(description='SquareWars: two-player square capture on a lattice')
    parser.add_argument('--size', type=int, default=env.grid_size, help='Board side N (NxN grid points)')
    parser.add_argument('--target', type=int, default=env.target_score, help='Score that triggers the last chance round')
    parser.add_argument('--db', default=env.db_path, help='SQLite DB file path for saves')
    parser.add_argument('--resume', action='store_true', help='Resume the last auto-saved match')
    parser.add_argument('--verbose', action='store_true', help='Log game events')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    config = GameConfig(grid_size=args.size, target_score=args.target, db_path=args.db)
    match = Match(config)

    if args.resume:
        saved = db_load_autosave(config.db_path, CLI_SESSION)
        if saved is not None:
            res = match.import_snapshot(saved)
            print('Resumed auto-saved match.' if res.accepted else f'Could not resume: {res.message}')

    print(HELP)
    _show(MatchResult(accepted=True, state=match.state))

    while True:
        try:
            text = input(f"{match.state.current_player.value}> ")
        except EOFError:
            break
        cmd, point, slot_no = parse_command(text)
        if cmd == 'quit':
            break
        if cmd == 'help':
            print(HELP)
            continue
        if cmd == '?':
            print('Could not parse. Try again.')
            continue
        if cmd == 'list':
            slots = db_list_slots(config.db_path)
            if not slots:
                print('No saved snapshots.')
            for i, slot in enumerate(slots, start=1):
                scores = slot.data.get('scores', {})
                print(f"{i}. {slot.label}  RED {scores.get('RED', 0)} - BLUE {scores.get('BLUE', 0)}")
            continue
        if cmd == 'save':
            slot = make_slot(match.state, thumbnail=match.state.board.pretty())
            db_save_slot(config.db_path, slot)
            print(f"Snapshot saved {slot.label}")
            continue
        if cmd in ('load', 'del'):
            slots = db_list_slots(config.db_path)
            if slot_no is None or not 1 <= slot_no <= len(slots):
                print('No such snapshot.')
                continue
            slot = slots[slot_no - 1]
            if cmd == 'del':
                db_delete_slot(config.db_path, slot.id)
                print(f"Deleted {slot.label}")
                continue
            result = match.import_snapshot(slot.data)
        elif cmd == 'undo':
            result = match.undo()
        elif cmd == 'reset':
            result = match.reset()
            db_clear_autosave(config.db_path, CLI_SESSION)
        else:
            assert point is not None
            result = match.place(*point)

        if not result.accepted:
            print(f"Rejected ({result.error}): {result.message}")
            continue
        db_autosave_state(config.db_path, CLI_SESSION, result.state)
        _show(result)
