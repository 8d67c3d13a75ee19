from __future__ import annotations

import json
import logging
import os
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .snapshot import SaveSlot, export_snapshot
from .state import MatchState

logger = logging.getLogger(__name__)

MAX_SLOTS = 10


def _ensure_db_dir(db_path: str) -> None:
    """Ensures the directory for the SQLite DB exists before connecting."""
    directory = os.path.dirname(db_path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory, exist_ok=True)


def _resolve_db_path(db_path: str) -> str:
    """Resolves a potentially unwritable DB path to a writable one, creating the directory if needed."""
    try:
        _ensure_db_dir(db_path)
        return db_path
    except PermissionError:
        pass
    candidates = [
        os.getenv('SQUAREWARS_DB_DIR'),
        os.path.join(os.getcwd(), 'data'),
        '/tmp',
    ]
    base = os.path.basename(db_path) or 'squarewars.db'
    for d in candidates:
        if not d:
            continue
        try:
            os.makedirs(d, exist_ok=True)
            return os.path.join(d, base)
        except OSError:
            continue
    # Last resort: current working directory
    return base


def _connect(db_path: str) -> sqlite3.Connection:
    resolved = _resolve_db_path(db_path)
    _ensure_db_dir(resolved)
    conn = sqlite3.connect(resolved)
    _ensure_db(conn)
    return conn


def _ensure_db(conn: sqlite3.Connection) -> None:
    """Ensures the save-slot and auto-save tables exist."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS slots (
            id TEXT PRIMARY KEY,
            label TEXT NOT NULL,
            thumbnail TEXT NOT NULL,
            data TEXT NOT NULL,
            saved_at TEXT NOT NULL
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS autosave (
            session TEXT PRIMARY KEY,
            data TEXT NOT NULL,
            saved_at TEXT NOT NULL
        )
        """
    )
    conn.commit()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _row_to_slot(row) -> SaveSlot:
    slot_id, label, thumbnail, data = row
    return SaveSlot(id=slot_id, label=label, thumbnail=thumbnail, data=json.loads(data))


def db_save_slot(db_path: str, slot: SaveSlot) -> List[SaveSlot]:
    """Stores a manual save as the newest slot, drops the oldest beyond MAX_SLOTS, and returns the list."""
    conn = _connect(db_path)
    try:
        conn.execute(
            "INSERT OR REPLACE INTO slots (id, label, thumbnail, data, saved_at) VALUES (?, ?, ?, ?, ?)",
            (slot.id, slot.label, slot.thumbnail, json.dumps(slot.data), _now()),
        )
        conn.execute(
            """
            DELETE FROM slots WHERE id NOT IN (
                SELECT id FROM slots ORDER BY saved_at DESC, rowid DESC LIMIT ?
            )
            """,
            (MAX_SLOTS,),
        )
        conn.commit()
    finally:
        conn.close()
    logger.info("Saved slot %s (%s)", slot.id, slot.label)
    return db_list_slots(db_path)


def db_list_slots(db_path: str) -> List[SaveSlot]:
    """Lists save slots, newest first."""
    conn = _connect(db_path)
    try:
        cur = conn.execute("SELECT id, label, thumbnail, data FROM slots ORDER BY saved_at DESC, rowid DESC")
        return [_row_to_slot(row) for row in cur.fetchall()]
    finally:
        conn.close()


def db_get_slot(db_path: str, slot_id: str) -> Optional[SaveSlot]:
    conn = _connect(db_path)
    try:
        cur = conn.execute("SELECT id, label, thumbnail, data FROM slots WHERE id = ?", (slot_id,))
        row = cur.fetchone()
        return _row_to_slot(row) if row else None
    finally:
        conn.close()


def db_delete_slot(db_path: str, slot_id: str) -> bool:
    conn = _connect(db_path)
    try:
        cur = conn.execute("DELETE FROM slots WHERE id = ?", (slot_id,))
        conn.commit()
        return cur.rowcount > 0
    finally:
        conn.close()


def db_store_autosave(db_path: str, session: str, data: Dict[str, Any]) -> None:
    conn = _connect(db_path)
    try:
        conn.execute(
            "INSERT OR REPLACE INTO autosave (session, data, saved_at) VALUES (?, ?, ?)",
            (session, json.dumps(data), _now()),
        )
        conn.commit()
    finally:
        conn.close()


def db_load_autosave(db_path: str, session: str) -> Optional[Dict[str, Any]]:
    conn = _connect(db_path)
    try:
        cur = conn.execute("SELECT data FROM autosave WHERE session = ?", (session,))
        row = cur.fetchone()
    finally:
        conn.close()
    if not row:
        return None
    try:
        return json.loads(row[0])
    except ValueError:
        logger.warning("Discarding unreadable auto-save for session %s", session)
        return None


def db_clear_autosave(db_path: str, session: str) -> None:
    conn = _connect(db_path)
    try:
        conn.execute("DELETE FROM autosave WHERE session = ?", (session,))
        conn.commit()
    finally:
        conn.close()


def db_autosave_state(db_path: str, session: str, state: MatchState) -> bool:
    """Auto-saves a match that has moves and is still being played. Returns True when written."""
    if not state.history or state.is_over:
        return False
    db_store_autosave(db_path, session, export_snapshot(state))
    return True
