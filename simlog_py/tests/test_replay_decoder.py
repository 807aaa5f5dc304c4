from __future__ import annotations

import math
import unittest

import numpy as np

from simlog_py.core.errors import EmptyLogError, ParserError
from simlog_py.core.params import Environment2DParams, Environment3DParams
from simlog_py.core.types import Agent2DData, Agent2DFlags, SimulationType
from simlog_py.decoders.replay import (
    REPLAY_V0_2D,
    REPLAY_V0_3D,
    REPLAY_V1_2D,
    REPLAY_V1_3D,
    ReplayDecoder,
    select_replay_format,
)

LEGACY_2D = """T "Alpha" "Beta"
S 10 play_on 0 0
b 1.5 -2.0
l 1 -10 5 90
L 2 -20 0 0 30 s8000
S 20 play_on 1 0
b 0 0
r 3 10 0 180
"""

RPL_2D_V1 = """RPL 2D 1
EP {"simulator_step": 50}
PP {"player_types": 3}
PT 1 {"id": 1, "player_speed_max": 1.1}
T Alpha_Team Beta #00ff00 blue
S 0 before_kick_off 0 0
b 0 0
L 1 1 9 -50 0 45 (j 10) (s 7000)
r 2 1 50 0 180
S 1 kick_off_l 0 0
b 1 1
l 1 1 -49 0 45
R 2 0 1 49 0 180
"""

LEGACY_3D = """V 1 0 50
T Alpha red Beta 0x0000ff
F 62
S 0 play_on 0 0
b 0 0 42 1000 0 0 0
l 1 1000 2000 500 1000 0 0 0
L 2 nao_hetero3 0 0 0 1000 0 0 0
"""

RPL_3D_V1 = """RPL 3D 1
S 0 play_on 0 0
b 1 2 3 1 0 0 0
L 1 0 0 1 2 0.5 1 0 0 0 (j 10 20)
"""


def decode(text: str, resource: str = "test.replay") -> ReplayDecoder:
    decoder = ReplayDecoder()
    decoder.parse(text, resource)
    decoder.queue.drain()
    return decoder


class TestFormatSelection(unittest.TestCase):
    def test_variant_per_kind_and_version(self) -> None:
        self.assertIs(select_replay_format(SimulationType.TWOD, 0), REPLAY_V0_2D)
        self.assertIs(select_replay_format(SimulationType.TWOD, 3), REPLAY_V1_2D)
        self.assertIs(select_replay_format(SimulationType.THREED, 0), REPLAY_V0_3D)
        self.assertIs(select_replay_format(SimulationType.THREED, 1), REPLAY_V1_3D)


class TestLegacy2DReplay(unittest.TestCase):
    def setUp(self) -> None:
        self.decoder = decode(LEGACY_2D)
        self.log = self.decoder.get_log()

    def test_header(self) -> None:
        self.assertEqual(self.log.type, SimulationType.TWOD)
        self.assertEqual(self.log.version, 0)
        self.assertEqual(self.log.left_team.name, "Alpha")
        self.assertEqual(self.log.right_team.name, "Beta")
        self.assertEqual(len(self.log.left_team.agents), 11)
        self.assertEqual(len(self.log.right_team.agents), 11)
        self.assertIs(self.decoder.format, REPLAY_V0_2D)

    def test_states(self) -> None:
        self.assertTrue(self.log.fully_loaded)
        self.assertEqual([s.time for s in self.log.states], [0, 0.1])
        self.assertEqual([s.game_time for s in self.log.states], [1.0, 2.0])

    def test_ball_line(self) -> None:
        ball = self.log.states[0].ball_state
        np.testing.assert_allclose(ball.position, [1.5, 0.2, -2.0])

    def test_agent_lines(self) -> None:
        left = self.log.states[0].left_agent_states
        self.assertEqual(len(left), 3)
        self.assertIsNone(left[0])

        field_player = left[1]
        self.assertEqual(field_player.flags, int(Agent2DFlags.STAND))
        np.testing.assert_allclose(field_player.position, [-10.0, 0.0, 5.0])
        half = math.sqrt(0.5)
        np.testing.assert_allclose(field_player.orientation, [0.0, -half, 0.0, half], atol=1e-9)
        self.assertEqual(len(field_player.joint_angles), 0)

        goalie = left[2]
        self.assertEqual(goalie.flags, int(Agent2DFlags.STAND | Agent2DFlags.GOALIE))
        self.assertAlmostEqual(goalie.joint_angles[0], math.radians(-30))
        self.assertEqual(goalie.data[Agent2DData.STAMINA], 8000.0)

        right = self.log.states[1].right_agent_states
        np.testing.assert_allclose(right[3].position, [10.0, 0.0, 0.0])

    def test_score_timeline(self) -> None:
        self.assertEqual(len(self.log.game_state_list), 1)
        self.assertEqual(len(self.log.game_score_list), 2)
        self.assertEqual(self.log.game_score_list[-1].goals_left, 1)
        self.assertEqual(self.log.game_score_list[-1].time, 0.1)


class TestReplay2DVersion1(unittest.TestCase):
    def setUp(self) -> None:
        self.decoder = decode(RPL_2D_V1, "test.rpl2d")
        self.log = self.decoder.get_log()

    def test_parameter_blocks(self) -> None:
        self.assertEqual(self.log.environment_params.get_number(Environment2DParams.SIMULATOR_STEP), 50)
        self.assertEqual(self.log.frequency, 20.0)
        self.assertEqual(self.log.player_params.get_number("player_types"), 3)
        self.assertAlmostEqual(self.log.get_player_type(1).get_number("player_speed_max"), 1.1)

    def test_team_line(self) -> None:
        self.assertEqual(self.log.left_team.name, "Alpha Team")
        self.assertEqual(self.log.right_team.name, "Beta")
        self.assertEqual(self.log.left_team.color, "#00ff00")
        self.assertEqual(self.log.right_team.color, "#0000ff")

    def test_states_follow_frequency(self) -> None:
        self.assertEqual([s.time for s in self.log.states], [0, 0.05])
        self.assertEqual([g.play_mode for g in self.log.game_state_list], ["before_kick_off", "kick_off_l"])

    def test_agent_lines(self) -> None:
        agent = self.log.states[0].left_agent_states[1]
        self.assertEqual(agent.flags, 9)
        np.testing.assert_allclose(agent.position, [-50.0, 0.0, 0.0])
        self.assertAlmostEqual(agent.joint_angles[0], math.radians(-10))
        self.assertEqual(agent.data[Agent2DData.STAMINA], 7000.0)

        registered = self.log.left_team.agents[0]
        self.assertIs(registered.player_types[0], self.log.get_player_type(1))

        later = self.log.states[1].left_agent_states[1]
        self.assertEqual(later.model_index, 0)
        self.assertEqual(later.x, -49.0)

    def test_invalid_json_keeps_previous_parameters(self) -> None:
        text = RPL_2D_V1.replace('PP {"player_types": 3}\n', 'PP {"player_types": 3}\nPP {broken\nEP [1, 2]\n')
        decoder = decode(text)
        log = decoder.get_log()
        self.assertEqual(log.player_params.get_number("player_types"), 3)
        self.assertEqual(log.environment_params.get_number(Environment2DParams.SIMULATOR_STEP), 50)
        self.assertEqual([d.tag for d in decoder.diagnostics.entries], ["PP", "EP"])
        self.assertEqual(len(log.states), 2)


class TestReplay3D(unittest.TestCase):
    def test_legacy_header_and_fixed_point_lines(self) -> None:
        log = decode(LEGACY_3D, "test.rpl3d").get_log()
        self.assertEqual(log.type, SimulationType.THREED)
        self.assertEqual(log.frequency, 50)
        self.assertEqual(log.environment_params.get_number(Environment3DParams.FIELD_LENGTH), 12)
        self.assertEqual(log.left_team.color, "#ff0000")
        self.assertEqual(log.right_team.color, "#0000ff")

        self.assertEqual(len(log.states), 1)
        np.testing.assert_allclose(log.states[0].ball_state.position, [0.0, 0.042, 0.0])

        agent = log.states[0].left_agent_states[1]
        np.testing.assert_allclose(agent.position, [1.0, 0.5, -2.0])
        np.testing.assert_allclose(agent.orientation, [0.0, 0.0, 0.0, 1.0])

        model_agent = next(a for a in log.left_team.agents if a.player_no == 2)
        self.assertIs(model_agent.player_types[0], log.player_types[3])

    def test_joint_reordering(self) -> None:
        # head(2) l-arm(4) l-leg(6) r-arm(4) r-leg(6), hundredths of a degree
        joints = " ".join(str(v * 100) for v in range(1, 23))
        text = LEGACY_3D + f"S 1 play_on 0 0\nl 1 0 0 0 1000 0 0 0 {joints}\n"
        log = decode(text, "test.rpl3d").get_log()
        angles = np.degrees(log.states[1].left_agent_states[1].joint_angles)
        expected = [1, 2, 13, 14, 15, 16, 3, 4, 5, 6, 17, 18, 19, 20, 21, 22, 7, 8, 9, 10, 11, 12]
        np.testing.assert_allclose(angles, expected)

    def test_version_1_lines(self) -> None:
        log = decode(RPL_3D_V1, "test.rpl3d").get_log()
        np.testing.assert_allclose(log.states[0].ball_state.position, [1.0, 3.0, -2.0])
        agent = log.states[0].left_agent_states[1]
        np.testing.assert_allclose(agent.position, [1.0, 0.5, -2.0])
        np.testing.assert_allclose(agent.orientation, [0.0, 0.0, 0.0, 1.0])
        np.testing.assert_allclose(agent.joint_angles, [math.radians(10), math.radians(20)])


class TestReplayErrors(unittest.TestCase):
    def test_unknown_header(self) -> None:
        with self.assertRaises(ParserError):
            ReplayDecoder().parse("XYZ 1\nS 0 play_on 0 0\n", "bad.replay")

    def test_malformed_rpl_header(self) -> None:
        with self.assertRaises(ParserError):
            ReplayDecoder().parse("RPL 4D 1\n", "bad.replay")
        with self.assertRaises(ParserError):
            ReplayDecoder().parse("RPL 2D x\n", "bad.replay")

    def test_incomplete_legacy_3d_header(self) -> None:
        with self.assertRaises(ParserError):
            ReplayDecoder().parse("V 1 0 50\nT a red b blue\n", "bad.rpl3d")

    def test_empty_log(self) -> None:
        with self.assertRaises(EmptyLogError):
            ReplayDecoder().parse("RPL 2D 1\nT a b\nS 0 play_on 0 0\n", "empty.replay")

    def test_bad_lines_are_skipped(self) -> None:
        text = RPL_2D_V1 + "l x 1 0 0 0\nb 1\nZ unknown tag\n"
        decoder = decode(text)
        self.assertEqual(len(decoder.get_log().states), 2)
        self.assertEqual([d.tag for d in decoder.diagnostics.entries], ["l", "b"])
        self.assertEqual(decoder.diagnostics.entries[0].line_no, 14)

    def test_partial_header_waits_for_data(self) -> None:
        decoder = ReplayDecoder()
        self.assertFalse(decoder.parse("RPL 2", "stream.replay", partial=True, incremental=True))
        self.assertIsNone(decoder.get_log())

        self.assertTrue(
            decoder.parse("D 1\nS 0 play_on 0 0\nl 1 1 0 0 0\n", "stream.replay", partial=False, incremental=True)
        )
        decoder.queue.drain()
        self.assertEqual(decoder.get_log().version, 1)
        self.assertEqual(len(decoder.get_log().states), 1)


if __name__ == "__main__":
    unittest.main()
