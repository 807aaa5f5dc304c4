"""Decoder for the line-based Replay format (2D and 3D, versions 0 and 1+).

Header variants:

- ``RPL <2D|3D> <version>``
- legacy 2D: ``T "<left-team>" "<right-team>"``
- legacy 3D: ``V <version> <unused> <frequency>`` followed by a
  ``T <left> <left-color> <right> <right-color>`` line and a
  ``F <server-version>`` world line

The ball/agent line layout depends on kind and version; it is resolved
once from the header into a :class:`ReplayFormat`.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
from scipy.spatial.transform import Rotation

from ..core.errors import ParserError
from ..core.log import Replay, Resource, SimulationLog
from ..core.params import ENVIRONMENT_3D_PRESETS, ParameterMap
from ..core.teams import TeamDescription
from ..core.types import (
    Agent2DData,
    Agent2DFlags,
    AgentState,
    ObjectState,
    SimulationType,
    pack_data_slots,
)
from ..parsing.line_cursor import LineCursor
from ..parsing.partial_state import DecoderStorage, PartialWorldState
from ..parsing.symbol_tree import SymbolNode, parse_symbol_tree
from .base import LineLogDecoder, require_line, unquote

logger = logging.getLogger(__name__)

DEG_TO_RAD = math.pi / 180.0
NEG_DEG_TO_RAD = -math.pi / 180.0

# Legacy 2D replays have no player lines announcing the team size
LEGACY_2D_TEAM_SIZE = 11


def heading_quat(angle_deg: float) -> np.ndarray:
    """Quaternion ``[x, y, z, w]`` for a rotation about the vertical (y) axis."""
    return Rotation.from_rotvec([0.0, angle_deg * DEG_TO_RAD, 0.0]).as_quat()


def wrap_degrees(angle: float) -> float:
    if angle > 180:
        angle -= 360
    elif angle < -180:
        angle += 360
    return angle


BallDecoder = Callable[[list[str], PartialWorldState], "str | None"]
AgentDecoder = Callable[[str, Replay, DecoderStorage, bool], "str | None"]


@dataclass(frozen=True)
class ReplayFormat:
    """Ball and agent line decoders of one replay kind/version."""

    name: str
    decode_ball: BallDecoder
    decode_agent: AgentDecoder


def _team_context(
    replay: Replay, storage: DecoderStorage, left_side: bool
) -> tuple[TeamDescription, dict[int, int]]:
    if left_side:
        return replay.left_team, storage.left_index_list
    return replay.right_team, storage.right_index_list


def decode_ball_2d(tokens: list[str], partial_state: PartialWorldState) -> str | None:
    # b <x> <y>
    if len(tokens) < 3:
        return "Not enough data in ball line"

    partial_state.ball_state = ObjectState.from_pose(float(tokens[1]), 0.2, float(tokens[2]))
    return None


def decode_ball_v0_3d(tokens: list[str], partial_state: PartialWorldState) -> str | None:
    # b <x> <y> <z> <qw> <qx> <qy> <qz>, fixed point (x1000)
    if len(tokens) < 8:
        return "Not enough data in ball line"

    partial_state.ball_state = ObjectState.from_pose(
        int(tokens[1]) / 1000,
        int(tokens[3]) / 1000,
        -int(tokens[2]) / 1000,
        int(tokens[5]) / 1000,
        int(tokens[7]) / 1000,
        -int(tokens[6]) / 1000,
        int(tokens[4]) / 1000,
    )
    return None


def decode_ball_v1_3d(tokens: list[str], partial_state: PartialWorldState) -> str | None:
    # b <x> <y> <z> <qw> <qx> <qy> <qz>
    if len(tokens) < 8:
        return "Not enough data in ball line"

    partial_state.ball_state = ObjectState.from_pose(
        float(tokens[1]),
        float(tokens[3]),
        -float(tokens[2]),
        float(tokens[5]),
        float(tokens[7]),
        -float(tokens[6]),
        float(tokens[4]),
    )
    return None


def decode_agent_v0_2d(line: str, replay: Replay, storage: DecoderStorage, left_side: bool) -> str | None:
    # {l|L|r|R} <unum> <x> <y> <heading-angle>[ <neck-angle> <stamina>]
    tokens = line.split(" ")
    partial_state = storage.partial_state
    if partial_state is None:
        return "Agent line before first state line"
    if len(tokens) < 5:
        return "Not enough data in agent line"

    player_no = int(tokens[1])
    flags = Agent2DFlags.STAND
    if tokens[0] in ("L", "R"):
        flags |= Agent2DFlags.GOALIE

    heading = float(tokens[4])
    quat = heading_quat(-heading)
    joint_angles: list[float] = []
    data: dict[int, float] = {}

    if len(tokens) > 6:
        neck = wrap_degrees(float(tokens[5]) - heading)
        joint_angles.append(-neck * DEG_TO_RAD)
        data[Agent2DData.STAMINA] = float(tokens[6][1:])

    partial_state.set_agent_state(
        left_side,
        player_no,
        AgentState.create(
            0,
            int(flags),
            float(tokens[2]),
            0.0,
            float(tokens[3]),
            quat[0],
            quat[1],
            quat[2],
            quat[3],
            joint_angles,
            pack_data_slots(data),
        ),
    )
    return None


def _shuffle_v0_3d_joints(values: list[float]) -> list[float]:
    """Reorder joints from <head> <l-arm> <l-leg> <r-arm> <r-leg>
    to <head> <r-arm> <l-arm> <r-leg> <l-leg>."""
    num_leg_joints = 7 if len(values) > 22 else 6
    head = values[0:2]
    idx = 2
    l_arm = values[idx : idx + 4]
    idx += 4
    l_leg = values[idx : idx + num_leg_joints]
    idx += num_leg_joints
    r_arm = values[idx : idx + 4]
    idx += 4
    r_leg = values[idx : idx + num_leg_joints]
    return head + r_arm + l_arm + r_leg + l_leg


def decode_agent_v0_3d(line: str, replay: Replay, storage: DecoderStorage, left_side: bool) -> str | None:
    # {l|L|r|R} <unum>[ <model>] <x> <y> <z> <qw> <qx> <qy> <qz>[ <joint-angle>]*
    tokens = line.split(" ")
    partial_state = storage.partial_state
    if partial_state is None:
        return "Agent line before first state line"
    if len(tokens) < 9:
        return "Not enough data in agent line"

    player_no = int(tokens[1])
    team, index_list = _team_context(replay, storage, left_side)
    data_idx = 2

    if tokens[0] in ("L", "R"):
        if len(tokens) < 10:
            return "Not enough data in agent line"
        data_idx += 1

        # model names end with their type number, e.g. nao_hetero3
        try:
            model_type = int(tokens[2][-1])
        except ValueError:
            model_type = 0

        team.add_agent(player_no, replay.get_player_type(model_type))
        index_list[player_no] = team.get_recent_type_idx(player_no)

    model_idx = index_list.get(player_no, 0)
    raw = tokens[data_idx : data_idx + 7]
    if len(raw) < 7:
        return "Not enough data in agent line"

    x, y, z, qw, qx, qy, qz = (int(v) / 1000 for v in raw)
    joints = [float(v) / 100 * DEG_TO_RAD for v in tokens[data_idx + 7 :]]

    partial_state.set_agent_state(
        left_side,
        player_no,
        AgentState.create(
            model_idx,
            0,
            x,
            z,
            -y,
            qx,
            qz,
            -qy,
            qw,
            _shuffle_v0_3d_joints(joints),
        ),
    )
    return None


def _joint_values(node: SymbolNode, negate: bool) -> list[float]:
    factor = NEG_DEG_TO_RAD if negate else DEG_TO_RAD
    return [float(v) * factor for v in node.values[1:]]


def decode_agent_v1(line: str, replay: Replay, storage: DecoderStorage, left_side: bool) -> str | None:
    # 2D: {l|L|r|R} <unum>[ typeIdx] <flags> <x> <y> <heading-angle>[(j <joint-angle>+)][(s <stamina>)]
    # 3D: {l|L|r|R} <unum>[ typeIdx] <flags> <x> <y> <z> <qw> <qx> <qy> <qz>[(j <joint-angle>+)][(s <stamina>)]
    root = parse_symbol_tree("(" + line + ")")
    partial_state = storage.partial_state
    if partial_state is None:
        return "Agent line before first state line"
    values = root.values
    if len(values) < 6:
        return "Not enough data in agent line"

    player_no = int(values[1])
    team, index_list = _team_context(replay, storage, left_side)
    data_idx = 2

    if values[0] in ("L", "R"):
        team.add_agent(player_no, replay.get_player_type(int(values[data_idx])))
        index_list[player_no] = team.get_recent_type_idx(player_no)
        data_idx += 1

    model_idx = index_list.get(player_no, 0)
    flags = int(values[data_idx], 16)
    data_idx += 1

    is_2d = replay.type == SimulationType.TWOD
    if is_2d:
        x, y, z = float(values[data_idx]), 0.0, float(values[data_idx + 1])
        qx, qy, qz, qw = heading_quat(-float(values[data_idx + 2]))
    else:
        x = float(values[data_idx])
        y = float(values[data_idx + 2])
        z = -float(values[data_idx + 1])
        qx = float(values[data_idx + 4])
        qy = float(values[data_idx + 6])
        qz = -float(values[data_idx + 5])
        qw = float(values[data_idx + 3])

    joint_angles: list[float] = []
    data: dict[int, float] = {}
    joints_node = root.find_child("j")
    if joints_node is not None:
        joint_angles = _joint_values(joints_node, negate=is_2d)
    stamina_node = root.find_child("s")
    if stamina_node is not None:
        data[Agent2DData.STAMINA] = float(stamina_node.values[1])

    partial_state.set_agent_state(
        left_side,
        player_no,
        AgentState.create(model_idx, flags, x, y, z, qx, qy, qz, qw, joint_angles, pack_data_slots(data)),
    )
    return None


REPLAY_V0_2D = ReplayFormat("v0-2d", decode_ball_2d, decode_agent_v0_2d)
REPLAY_V0_3D = ReplayFormat("v0-3d", decode_ball_v0_3d, decode_agent_v0_3d)
REPLAY_V1_2D = ReplayFormat("v1-2d", decode_ball_2d, decode_agent_v1)
REPLAY_V1_3D = ReplayFormat("v1-3d", decode_ball_v1_3d, decode_agent_v1)


def select_replay_format(sim_type: SimulationType, version: int) -> ReplayFormat:
    if sim_type == SimulationType.THREED:
        return REPLAY_V0_3D if version == 0 else REPLAY_V1_3D
    return REPLAY_V0_2D if version == 0 else REPLAY_V1_2D


def _parse_json_object(text: str) -> dict:
    obj = json.loads(text)
    if not isinstance(obj, dict):
        raise ValueError(f"Expected a JSON object, got {type(obj).__name__}")
    return obj


class ReplayDecoder(LineLogDecoder):
    """Decodes ``.replay`` / ``.rpl2d`` / ``.rpl3d`` files."""

    kind = "replay"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.format: ReplayFormat | None = None

    @property
    def replay(self) -> Replay | None:
        return self.log  # type: ignore[return-value]

    def dispose(self, keep_cursor_alive: bool = False) -> None:
        super().dispose(keep_cursor_alive)
        self.format = None

    # -- header ------------------------------------------------------------

    def _parse_header(self, cursor: LineCursor, resource: Resource) -> SimulationLog:
        line = require_line(cursor, "replay header")
        tokens = line.split(" ")

        if tokens[0] == "RPL":
            replay = self._parse_rpl_header(tokens, resource)
        elif line[0] == "T":
            replay = self._parse_legacy_2d_header(tokens, resource)
        elif line[0] == "V":
            replay = self._parse_legacy_3d_header(cursor, tokens, resource)
        else:
            raise ParserError(
                "Failed parsing replay file - no Replay header found "
                "(and none of the fallback options applies)!"
            )

        # Move to the first body line
        cursor.next()

        self.format = select_replay_format(replay.type, replay.version)
        logger.info(f"Decoding replay ({self.format.name}) from {resource}")
        return replay

    @staticmethod
    def _parse_rpl_header(tokens: list[str], resource: Resource) -> Replay:
        # RPL <2D|3D> <version>
        if len(tokens) < 3 or tokens[1] not in ("2D", "3D"):
            raise ParserError("Malformed Replay Header!")
        try:
            version = int(tokens[2])
        except ValueError as exc:
            raise ParserError(f"Malformed Replay Header version: {tokens[2]}") from exc

        sim_type = SimulationType.TWOD if tokens[1] == "2D" else SimulationType.THREED
        return Replay(resource, sim_type, version)

    @staticmethod
    def _parse_legacy_2d_header(tokens: list[str], resource: Resource) -> Replay:
        # T "<left-team>" "<right-team>"
        logger.info("Detected old 2D replay file format")
        if len(tokens) < 3:
            raise ParserError("Invalid team line!")

        replay = Replay(resource, SimulationType.TWOD, 0)
        replay.left_team.name = unquote(tokens[1])
        replay.right_team.name = unquote(tokens[2])

        default_type = replay.get_player_type(0)
        for player_no in range(1, LEGACY_2D_TEAM_SIZE + 1):
            replay.left_team.add_agent(player_no, default_type)
            replay.right_team.add_agent(player_no, default_type)
        return replay

    @staticmethod
    def _parse_legacy_3d_header(cursor: LineCursor, tokens: list[str], resource: Resource) -> Replay:
        # V <version> <unused> <frequency>
        logger.info("Detected old 3D replay file format")
        if len(tokens) < 4:
            raise ParserError("Malformed Replay Header!")
        try:
            frequency = int(tokens[3])
        except ValueError as exc:
            raise ParserError(f"Malformed Replay Header frequency: {tokens[3]}") from exc

        # T <left-team> <left-color> <right-team> <right-color>
        team_tokens = require_line(cursor, "teams line").split(" ")
        if len(team_tokens) < 5 or team_tokens[0] != "T":
            raise ParserError("Invalid teams line!")

        # F <server-version>
        world_tokens = require_line(cursor, "world line").split(" ")
        if len(world_tokens) < 2 or world_tokens[0] != "F":
            raise ParserError("Invalid world line!")

        replay = Replay(resource, SimulationType.THREED, 0)
        replay.frequency = frequency
        replay.left_team.name = unquote(team_tokens[1])
        replay.right_team.name = unquote(team_tokens[3])
        try:
            replay.left_team.color = team_tokens[2]
            replay.right_team.color = team_tokens[4]
        except ValueError as exc:
            logger.warning(f"Ignoring invalid team colors: {exc}")

        try:
            preset = ENVIRONMENT_3D_PRESETS.get(int(world_tokens[1]))
        except ValueError:
            preset = None
        if preset is not None:
            replay.environment_params = preset()
        return replay

    def _create_storage(self, log: SimulationLog) -> DecoderStorage:
        max_lines = self.config.replay_2d_batch if log.type == SimulationType.TWOD else self.config.replay_3d_batch
        return DecoderStorage(max_lines=max_lines)

    # -- body --------------------------------------------------------------

    def _decode_line(self, line: str) -> str | None:
        replay, storage, fmt = self.replay, self.storage, self.format
        assert replay is not None and storage is not None and fmt is not None

        tag = line[0]
        if tag == "E":
            if line[1:2] == "P":
                return self._parse_environment_params(line, replay, storage)
        elif tag == "P":
            if line[1:2] == "P":
                return self._parse_player_params(line, replay)
            if line[1:2] == "T":
                return self._parse_player_type_params(line, replay)
        elif tag == "T":
            return self._parse_team_line(line, replay)
        elif tag == "S":
            return self._parse_state_line(line, replay, storage)
        elif tag in ("b", "B"):
            if storage.partial_state is None:
                return "Ball line before first state line"
            return fmt.decode_ball(line.split(" "), storage.partial_state)
        elif tag in ("l", "L"):
            return fmt.decode_agent(line, replay, storage, True)
        elif tag in ("r", "R"):
            return fmt.decode_agent(line, replay, storage, False)

        logger.debug(f"Unknown replay line: {line[:20]}")
        return None

    @staticmethod
    def _parse_environment_params(line: str, replay: Replay, storage: DecoderStorage) -> str | None:
        # EP <single-line-json>
        problem = None
        try:
            new_params = _parse_json_object(line[3:])
        except ValueError as exc:
            problem = f"Invalid environment parameters: {exc}"
        else:
            replay.environment_params.clear()
            replay.environment_params.param_obj = new_params

        replay.update_frequency()
        if storage.partial_state is not None:
            storage.partial_state.time_step = 1 / replay.frequency
        return problem

    @staticmethod
    def _parse_player_params(line: str, replay: Replay) -> str | None:
        # PP <single-line-json>
        try:
            new_params = _parse_json_object(line[3:])
        except ValueError as exc:
            return f"Invalid player parameters: {exc}"

        replay.player_params.clear()
        replay.player_params.param_obj = new_params
        return None

    @staticmethod
    def _parse_player_type_params(line: str, replay: Replay) -> str | None:
        # PT <id> <single-line-json>
        idx = line.find(" ", 4)
        if not 3 < idx < 10:
            return "Malformed player type line"

        type_idx = int(line[3:idx])
        try:
            new_params = _parse_json_object(line[idx + 1 :])
        except ValueError as exc:
            return f"Invalid player type parameters: {exc}"

        replay.set_player_type(type_idx, ParameterMap(new_params))
        return None

    @staticmethod
    def _parse_team_line(line: str, replay: Replay) -> str | None:
        # T <left-team> <right-team>[ <left-color> <right-color>]
        tokens = line.split(" ")
        if len(tokens) < 3:
            return "Not enough data in team line"

        replay.left_team.name = tokens[1]
        replay.right_team.name = tokens[2]

        if len(tokens) > 4:
            try:
                replay.left_team.color = tokens[3]
                replay.right_team.color = tokens[4]
            except ValueError as exc:
                logger.warning(f"Ignoring invalid team colors: {exc}")

        replay.on_teams_updated()
        return None

    @staticmethod
    def _parse_state_line(line: str, replay: Replay, storage: DecoderStorage) -> str | None:
        # S <game-time> <playmode> <score-left> <score-right>
        #   [ <penalty-score-left> <penalty-miss-left> <penalty-score-right> <penalty-miss-right>]
        tokens = line.split(" ")
        if len(tokens) < 5:
            return "Not enough data in state line"

        game_time = float(tokens[1])
        if replay.version == 0:
            game_time /= 10
        if len(tokens) > 8:
            score = tuple(int(v) for v in tokens[3:9])
        else:
            score = (int(tokens[3]), int(tokens[4]))

        if storage.partial_state is not None:
            storage.partial_state.append_to(replay.states)
        else:
            storage.partial_state = PartialWorldState(0, 1 / replay.frequency, 0)

        storage.partial_state.set_game_time(game_time)
        storage.partial_state.set_playmode(tokens[2])
        storage.partial_state.set_score(*score)
        return None
