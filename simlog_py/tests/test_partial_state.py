from __future__ import annotations

import unittest

from simlog_py.core.types import AgentState
from simlog_py.parsing.partial_state import PartialWorldState


class TestPartialWorldState(unittest.TestCase):
    def test_unchanged_values_keep_identity(self) -> None:
        partial = PartialWorldState(0, 0.1, 0)
        partial.set_playmode("play_on")
        game_state = partial.game_state
        partial.set_playmode("play_on")
        self.assertIs(partial.game_state, game_state)

        partial.set_score(1, 0)
        score = partial.score
        partial.set_score(1, 0)
        self.assertIs(partial.score, score)
        partial.set_score(1, 0, 1, 0, 0, 0)
        self.assertIsNot(partial.score, score)
        self.assertEqual(partial.score.penalty_score_left, 1)

    def test_append_requires_an_agent(self) -> None:
        partial = PartialWorldState(0, 0.1, 0)
        states = []
        self.assertFalse(partial.append_to(states))
        self.assertEqual(states, [])

        partial.set_agent_state(True, 3, AgentState())
        self.assertTrue(partial.append_to(states))
        self.assertEqual(len(states), 1)
        self.assertEqual(len(states[0].left_agent_states), 4)
        self.assertIsNone(states[0].left_agent_states[0])
        self.assertEqual(states[0].right_agent_states, [])
        self.assertFalse(partial.has_agents())

    def test_time_advances_without_drift(self) -> None:
        partial = PartialWorldState(0, 0.1, 0)
        states = []
        for _ in range(30):
            partial.set_agent_state(False, 1, AgentState())
            partial.append_to(states)

        self.assertEqual(partial.time, 3.0)
        self.assertEqual([s.time for s in states[:4]], [0, 0.1, 0.2, 0.3])

    def test_game_time_rounded_to_milliseconds(self) -> None:
        partial = PartialWorldState(0, 0.1, 0)
        partial.set_game_time(1.23456)
        self.assertEqual(partial.game_time, 1.235)

    def test_negative_player_number_rejected(self) -> None:
        partial = PartialWorldState(0, 0.1, 0)
        with self.assertRaises(ValueError):
            partial.set_agent_state(True, -1, AgentState())


if __name__ == "__main__":
    unittest.main()
