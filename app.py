from __future__ import annotations

import logging
import os
import threading
import uuid
from typing import Any, Dict, Optional, Tuple

from flask import Flask, jsonify, request

from squarewars_core.config import GameConfig
from squarewars_core.db import (
    db_autosave_state,
    db_clear_autosave,
    db_delete_slot,
    db_get_slot,
    db_list_slots,
    db_load_autosave,
    db_save_slot,
)
from squarewars_core.match import Match, MatchResult, effect_messages
from squarewars_core.rules import Effect
from squarewars_core.snapshot import make_slot, point_to_json, square_to_json, state_to_json

logger = logging.getLogger(__name__)

CONFIG = GameConfig.from_env()

app = Flask(__name__)

# One Match per session; each Match serializes its own mutations.
_SESSIONS: Dict[str, Match] = {}
_SESSIONS_LOCK = threading.Lock()


def _new_match(session: str, replace: bool) -> Optional[Match]:
    """Registers a fresh Match; an existing session is only replaced when ``replace`` is set."""
    match = Match(CONFIG)
    with _SESSIONS_LOCK:
        if session in _SESSIONS and not replace:
            return None
        _SESSIONS[session] = match
    return match


def _grid_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _get_match(session: Any) -> Optional[Match]:
    if not isinstance(session, str):
        return None
    with _SESSIONS_LOCK:
        return _SESSIONS.get(session)


def _body() -> Dict[str, Any]:
    body = request.get_json(force=True, silent=True)
    return body if isinstance(body, dict) else {}


def _effects_to_json(effects: Tuple[Effect, ...]) -> Any:
    return [
        {
            "kind": e.kind,
            "player": e.player.value if e.player else None,
            "value": e.value,
            "point": point_to_json(e.point) if e.point else None,
        }
        for e in effects
    ]


def _result_json(session: str, res: MatchResult) -> Dict[str, Any]:
    return {
        "ok": res.accepted,
        "session": session,
        "state": state_to_json(res.state),
        "status": res.state.status_text(),
        "scoreDelta": res.score_delta,
        "newSquares": [square_to_json(sq) for sq in res.new_squares],
        "effects": _effects_to_json(res.effects),
        "messages": effect_messages(res.effects),
    }


def _respond(session: str, res: MatchResult) -> Any:
    if not res.accepted:
        out = _result_json(session, res)
        out.update({"error": res.error, "message": res.message})
        return jsonify(out), 400
    db_autosave_state(CONFIG.db_path, session, res.state)
    return jsonify(_result_json(session, res))


def _unknown_session() -> Any:
    return jsonify({"ok": False, "error": "unknown session"}), 404


# ---------- Core Game API ----------

@app.post("/api/new")
def api_new() -> Any:
    body = _body()
    session = body.get("session")
    if not isinstance(session, str) or not session:
        session = uuid.uuid4().hex
    resume = bool(body.get("resume"))
    match = _new_match(session, replace=resume)
    if match is None:
        return jsonify({"ok": False, "error": "session already exists"}), 409
    res = MatchResult(accepted=True, state=match.state)
    if resume:
        saved = db_load_autosave(CONFIG.db_path, session)
        if saved is not None:
            loaded = match.import_snapshot(saved)
            if loaded.accepted:
                res = loaded
            else:
                # Stale auto-save from another board size; start fresh.
                db_clear_autosave(CONFIG.db_path, session)
    return jsonify(_result_json(session, res))


@app.get("/api/state")
def api_state() -> Any:
    session = request.args.get("session")
    match = _get_match(session)
    if match is None:
        return _unknown_session()
    return jsonify(_result_json(session, MatchResult(accepted=True, state=match.state)))


@app.post("/api/place")
def api_place() -> Any:
    body = _body()
    session = body.get("session")
    match = _get_match(session)
    if match is None:
        return _unknown_session()
    x, y = _grid_int(body.get("x")), _grid_int(body.get("y"))
    if x is None or y is None:
        return jsonify({"ok": False, "error": "integer x and y required"}), 400
    return _respond(session, match.place(x, y))


@app.post("/api/undo")
def api_undo() -> Any:
    session = _body().get("session")
    match = _get_match(session)
    if match is None:
        return _unknown_session()
    return _respond(session, match.undo())


@app.post("/api/reset")
def api_reset() -> Any:
    session = _body().get("session")
    match = _get_match(session)
    if match is None:
        return _unknown_session()
    res = match.reset()
    db_clear_autosave(CONFIG.db_path, session)
    return jsonify(_result_json(session, res))


# ---------- Save slots ----------

def _slot_summary(slot) -> Dict[str, Any]:
    scores = slot.data.get("scores", {}) if isinstance(slot.data, dict) else {}
    return {
        "id": slot.id,
        "timestamp": slot.label,
        "thumbnail": slot.thumbnail,
        "scores": scores,
    }


@app.get("/api/snapshots")
def api_list_snapshots() -> Any:
    slots = db_list_slots(CONFIG.db_path)
    return jsonify({"ok": True, "slots": [_slot_summary(s) for s in slots]})


@app.post("/api/snapshots")
def api_save_snapshot() -> Any:
    body = _body()
    session = body.get("session")
    match = _get_match(session)
    if match is None:
        return _unknown_session()
    thumbnail = body.get("thumbnail")
    slot = make_slot(match.state, thumbnail=thumbnail if isinstance(thumbnail, str) else "")
    slots = db_save_slot(CONFIG.db_path, slot)
    return jsonify({
        "ok": True,
        "slot": _slot_summary(slot),
        "slots": [_slot_summary(s) for s in slots],
        "messages": [f"Snapshot saved {slot.label}"],
    })


@app.post("/api/snapshots/<slot_id>/load")
def api_load_snapshot(slot_id: str) -> Any:
    session = _body().get("session")
    match = _get_match(session)
    if match is None:
        return _unknown_session()
    slot = db_get_slot(CONFIG.db_path, slot_id)
    if slot is None:
        return jsonify({"ok": False, "error": "unknown snapshot"}), 404
    return _respond(session, match.import_snapshot(slot.data))


@app.delete("/api/snapshots/<slot_id>")
def api_delete_snapshot(slot_id: str) -> Any:
    if not db_delete_slot(CONFIG.db_path, slot_id):
        return jsonify({"ok": False, "error": "unknown snapshot"}), 404
    return jsonify({"ok": True, "slots": [_slot_summary(s) for s in db_list_slots(CONFIG.db_path)]})


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    port = int(os.getenv("PORT", "5000"))
    app.run(host="0.0.0.0", port=port, debug=False)
