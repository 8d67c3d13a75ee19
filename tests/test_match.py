import threading
import unittest

from game import GameConfig, Match, Phase, Player, effect_messages


class TestMatchSession(unittest.TestCase):
    def setUp(self):
        self.match = Match(GameConfig(grid_size=10, target_score=100))

    def test_given_legal_move_when_placed_then_accepted_with_delta(self):
        for x, y in [(0, 0), (9, 9), (1, 0), (9, 8), (0, 1), (9, 7)]:
            self.assertTrue(self.match.place(x, y).accepted)
        res = self.match.place(1, 1)
        self.assertTrue(res.accepted)
        self.assertIsNone(res.error)
        self.assertEqual(res.score_delta, 1)
        self.assertEqual(len(res.new_squares), 1)
        self.assertIs(res.state, self.match.state)
        self.assertEqual(effect_messages(res.effects), ["Captured! +1"])

    def test_given_occupied_or_out_of_bounds_when_placed_then_rejected_without_mutation(self):
        self.match.place(4, 4)
        before = self.match.state
        occupied = self.match.place(4, 4)
        self.assertFalse(occupied.accepted)
        self.assertEqual(occupied.error, 'CellOccupied')
        self.assertIs(self.match.state, before)
        outside = self.match.place(10, 3)
        self.assertFalse(outside.accepted)
        self.assertEqual(outside.error, 'InvalidCoordinate')
        self.assertIs(self.match.state, before)

    def test_given_empty_history_when_undo_then_rejected_and_state_unchanged(self):
        before = self.match.state
        res = self.match.undo()
        self.assertFalse(res.accepted)
        self.assertEqual(res.error, 'NothingToUndo')
        self.assertIs(self.match.state, before)

    def test_given_moves_when_undo_then_previous_state_restored(self):
        self.match.place(2, 2)
        before = self.match.state
        self.match.place(3, 3)
        res = self.match.undo()
        self.assertTrue(res.accepted)
        self.assertEqual(res.state, before)
        self.assertEqual(effect_messages(res.effects), ["Move undone"])

    def test_given_played_match_when_reset_then_initial_state(self):
        self.match.place(2, 2)
        self.match.place(3, 3)
        res = self.match.reset()
        self.assertTrue(res.accepted)
        self.assertEqual(res.state.history, ())
        self.assertEqual(res.state.current_player, Player.RED)
        self.assertEqual(res.state.phase, Phase.IN_PROGRESS)
        self.assertEqual(res.state.board.count_occupied(), 0)

    def test_given_finished_match_when_placing_then_game_already_over(self):
        match = Match(GameConfig(grid_size=4, target_score=1))
        for x, y in [(0, 0), (3, 3), (1, 0), (3, 2), (0, 1), (2, 3), (1, 1)]:
            self.assertTrue(match.place(x, y).accepted)
        self.assertEqual(match.state.phase, Phase.LAST_CHANCE)
        last = match.place(2, 0)
        self.assertTrue(last.accepted)
        self.assertEqual(match.state.phase, Phase.OVER)
        self.assertIs(match.state.winner, Player.RED)
        self.assertEqual(effect_messages(last.effects), ["RED wins!"])
        res = match.place(2, 1)
        self.assertFalse(res.accepted)
        self.assertEqual(res.error, 'GameAlreadyOver')
        self.assertFalse(match.undo().accepted)

    def test_given_concurrent_callers_when_placing_then_each_cell_taken_once(self):
        match = Match(GameConfig(grid_size=10, target_score=10_000))
        accepted = []
        lock = threading.Lock()

        def worker():
            for x in range(10):
                for y in range(10):
                    if match.place(x, y).accepted:
                        with lock:
                            accepted.append((x, y))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(len(accepted), 100)
        self.assertEqual(len(set(accepted)), 100)
        self.assertEqual(len(match.state.history), 100)


if __name__ == '__main__':
    unittest.main(verbosity=2)
