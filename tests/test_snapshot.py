import json
import unittest
from datetime import datetime

from game import (
    Board,
    GameConfig,
    Match,
    Phase,
    Player,
    SnapshotIncompatible,
    board_from_json,
    board_to_json,
    export_snapshot,
    import_snapshot,
    initial_state,
    json_to_state,
    make_slot,
    place,
    replay_board,
    state_to_json,
)


def played_state(config, moves):
    s = initial_state(config)
    for x, y in moves:
        s, _, _ = place(s, x, y, config)
    return s


UNIT_SQUARE_GAME = [(0, 0), (5, 5), (1, 0), (5, 4), (0, 1), (4, 5), (1, 1)]


class TestSnapshotJson(unittest.TestCase):
    def setUp(self):
        self.config = GameConfig(grid_size=6, target_score=100)

    def test_given_board_when_to_json_then_columns_indexed_x_then_y(self):
        board = Board.empty(3).with_mark((2, 0), Player.RED).with_mark((0, 1), Player.BLUE)
        rows = board_to_json(board)
        self.assertEqual(len(rows), 3)
        self.assertEqual(rows[2][0], "RED")
        self.assertEqual(rows[0][1], "BLUE")
        self.assertIsNone(rows[1][1])
        self.assertEqual(board_from_json(rows), board)

    def test_given_played_state_when_roundtrip_through_json_text_then_equal(self):
        s = played_state(self.config, UNIT_SQUARE_GAME)
        data = json.loads(json.dumps(export_snapshot(s)))
        self.assertEqual(json_to_state(data), s)
        self.assertEqual(import_snapshot(data, self.config), s)

    def test_given_state_when_exported_then_uses_save_format_fields(self):
        s = played_state(self.config, UNIT_SQUARE_GAME)
        data = state_to_json(s)
        self.assertEqual(data["currentPlayer"], "BLUE")
        self.assertEqual(data["scores"], {"RED": 1, "BLUE": 0})
        self.assertEqual(len(data["history"]), 7)
        self.assertEqual(data["history"][0]["point"], {"x": 0, "y": 0})
        self.assertEqual(data["history"][0]["player"], "RED")
        self.assertEqual(data["foundSquares"][0]["score"], 1)
        self.assertEqual(len(data["foundSquares"][0]["points"]), 4)
        self.assertEqual(data["lastSquaresFound"], data["foundSquares"])
        self.assertFalse(data["isGameOver"])
        self.assertFalse(data["lastChance"])
        self.assertIsNone(data["winner"])

    def test_given_finished_state_when_roundtrip_then_phase_and_winner_kept(self):
        config = GameConfig(grid_size=6, target_score=1)
        s = played_state(config, UNIT_SQUARE_GAME + [(3, 3)])
        self.assertEqual(s.phase, Phase.OVER)
        back = import_snapshot(export_snapshot(s), config)
        self.assertEqual(back.phase, Phase.OVER)
        self.assertIs(back.winner, Player.RED)


class TestSnapshotValidation(unittest.TestCase):
    def setUp(self):
        self.config = GameConfig(grid_size=6, target_score=100)
        self.data = export_snapshot(played_state(self.config, UNIT_SQUARE_GAME))

    def test_given_other_board_size_when_imported_then_rejected(self):
        other = export_snapshot(played_state(GameConfig(grid_size=8), [(0, 0)]))
        with self.assertRaises(SnapshotIncompatible):
            import_snapshot(other, self.config)

    def test_given_board_without_history_when_imported_then_rejected(self):
        self.data["history"] = []
        with self.assertRaises(SnapshotIncompatible):
            import_snapshot(self.data, self.config)

    def test_given_history_not_matching_board_when_imported_then_rejected(self):
        self.data["history"][0]["point"] = {"x": 3, "y": 3}
        with self.assertRaises(SnapshotIncompatible):
            import_snapshot(self.data, self.config)

    def test_given_malformed_data_when_imported_then_rejected(self):
        for bad in [None, [], "x", {"board": []}, {"board": [[None]], "currentPlayer": "GREEN", "scores": {}}]:
            with self.assertRaises(SnapshotIncompatible):
                import_snapshot(bad, self.config)
        self.data["board"][0] = self.data["board"][0][:-1]
        with self.assertRaises(SnapshotIncompatible):
            import_snapshot(self.data, self.config)

    def test_given_non_object_nested_fields_when_imported_then_rejected_not_raised(self):
        match = Match(self.config)
        match.place(2, 2)
        before = match.state
        tampered = []
        bad = json.loads(json.dumps(self.data))
        bad["scores"] = [1, 2]
        tampered.append(bad)
        bad = json.loads(json.dumps(self.data))
        bad["history"][1]["scores"] = "RED:0"
        tampered.append(bad)
        bad = json.loads(json.dumps(self.data))
        bad["history"][0]["point"] = [0, 0]
        tampered.append(bad)
        bad = json.loads(json.dumps(self.data))
        bad["history"][2] = "(1,0)"
        tampered.append(bad)
        bad = json.loads(json.dumps(self.data))
        bad["foundSquares"] = [[0, 0]]
        tampered.append(bad)
        for data in tampered:
            with self.assertRaises(SnapshotIncompatible):
                import_snapshot(data, self.config)
            res = match.import_snapshot(data)
            self.assertFalse(res.accepted)
            self.assertEqual(res.error, 'SnapshotIncompatible')
            self.assertIs(match.state, before)

    def test_given_stored_pre_move_board_altered_when_imported_then_rejected(self):
        data = export_snapshot(played_state(self.config, [(0, 0), (5, 5), (1, 0)]))
        data["history"][2]["boardState"][3][3] = "BLUE"
        with self.assertRaises(SnapshotIncompatible):
            import_snapshot(data, self.config)

    def test_given_stored_scores_altered_when_imported_then_rejected(self):
        bad = json.loads(json.dumps(self.data))
        bad["history"][3]["scores"] = {"RED": 0, "BLUE": 4}
        with self.assertRaises(SnapshotIncompatible):
            import_snapshot(bad, self.config)
        bad = json.loads(json.dumps(self.data))
        bad["scores"] = {"RED": 50, "BLUE": 0}
        with self.assertRaises(SnapshotIncompatible):
            import_snapshot(bad, self.config)

    def test_given_imported_game_when_undone_then_board_matches_replayed_history(self):
        match = Match(self.config)
        self.assertTrue(match.import_snapshot(self.data).accepted)
        while match.state.history:
            self.assertTrue(match.undo().accepted)
            s = match.state
            self.assertEqual(replay_board(s.history, self.config.grid_size), s.board)

    def test_given_wrong_player_to_move_when_imported_then_rejected(self):
        self.data["currentPlayer"] = "RED"
        with self.assertRaises(SnapshotIncompatible):
            import_snapshot(self.data, self.config)

    def test_given_empty_snapshot_when_imported_then_accepted(self):
        data = export_snapshot(initial_state(self.config))
        self.assertEqual(import_snapshot(data, self.config), initial_state(self.config))

    def test_given_incompatible_snapshot_when_match_imports_then_state_preserved(self):
        match = Match(self.config)
        match.place(2, 2)
        before = match.state
        other = export_snapshot(played_state(GameConfig(grid_size=10), [(0, 0)]))
        res = match.import_snapshot(other)
        self.assertFalse(res.accepted)
        self.assertEqual(res.error, 'SnapshotIncompatible')
        self.assertIs(match.state, before)

        ok = match.import_snapshot(self.data)
        self.assertTrue(ok.accepted)
        self.assertEqual(len(match.state.history), 7)
        self.assertEqual([e.kind for e in ok.effects], ['loaded'])


class TestSaveSlot(unittest.TestCase):
    def test_given_state_when_slot_made_then_label_thumbnail_and_data_set(self):
        config = GameConfig(grid_size=6)
        s = played_state(config, [(1, 1)])
        slot = make_slot(s, thumbnail="data:image/png;base64,AAAA", now=datetime(2024, 5, 1, 12, 30, 0))
        self.assertEqual(slot.label, "2024-05-01 12:30:00")
        self.assertEqual(slot.thumbnail, "data:image/png;base64,AAAA")
        self.assertEqual(slot.data, export_snapshot(s))
        self.assertTrue(slot.id)
        self.assertNotEqual(slot.id, make_slot(s).id)
        obj = slot.to_json()
        self.assertEqual(obj["timestamp"], slot.label)
        self.assertEqual(type(slot).from_json(obj), slot)


if __name__ == '__main__':
    unittest.main(verbosity=2)
