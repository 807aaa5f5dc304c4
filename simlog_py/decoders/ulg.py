"""Decoder for 2D soccer server game logs (``.rcg``, ULG format).

Every body line is a parenthesized block, e.g.::

    (show 1 ((b) 0 0 0 0) ((l 1) 0 0x1 -50 0 0 0 0 0 (v h 90) (s 8000 1 1 130600) (c 0 0 0 0 0 0 0 0 0 0 0)))

Game times are given in tenths of a second.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

from ..core.errors import ParserError
from ..core.log import Resource, SServerLog, SimulationLog
from ..core.params import ParameterMap, ParameterObject, PlayerType2DParams
from ..core.types import Agent2DData, AgentState, ObjectState, pack_data_slots
from ..parsing.line_cursor import LineCursor
from ..parsing.partial_state import DecoderStorage, PartialWorldState
from ..parsing.symbol_tree import SymbolNode, parse_symbol_tree
from .base import LineLogDecoder, require_line, unquote
from .replay import DEG_TO_RAD, heading_quat

logger = logging.getLogger(__name__)

# (c ...) sub-node slots, in order of appearance
COUNT_SLOTS = (
    Agent2DData.KICK_COUNT,
    Agent2DData.DASH_COUNT,
    Agent2DData.TURN_COUNT,
    Agent2DData.CATCH_COUNT,
    Agent2DData.MOVE_COUNT,
    Agent2DData.TURN_NECK_COUNT,
    Agent2DData.VIEW_COUNT,
    Agent2DData.SAY_COUNT,
    Agent2DData.TACKLE_COUNT,
    Agent2DData.POINT_TO_COUNT,
    Agent2DData.ATTENTION_COUNT,
)

# (s ...) sub-node slots, in order of appearance
STAMINA_SLOTS = (
    Agent2DData.STAMINA,
    Agent2DData.STAMINA_EFFORT,
    Agent2DData.STAMINA_RECOVERY,
    Agent2DData.STAMINA_CAPACITY,
)


def parse_parameter_value(token: str) -> bool | float | str:
    """Interpret one parameter token by its literal shape."""
    if token == "true":
        return True
    if token == "false":
        return False
    if token[0] == '"':
        return token[1:-1]
    try:
        return float(token)
    except ValueError:
        return token


def parse_parameters(line: str, context: str) -> ParameterObject:
    """Collect the ``(<name> <value>)`` children of a parameter block line."""
    root = parse_symbol_tree(line)
    params: ParameterObject = {}
    for child in root.children:
        if len(child.values) < 2:
            logger.warning(f"Malformed name-value pair in {context} line: {child.values}")
            continue
        params[child.values[0]] = parse_parameter_value(child.values[1])
    return params


class ULGDecoder(LineLogDecoder):
    """Decodes ``.rcg`` game logs written by the 2D soccer server."""

    kind = "ulg"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._handlers: dict[str, Callable[[str, SServerLog, PartialWorldState], str | None]] = {
            "server_param": self._parse_server_params,
            "player_param": self._parse_player_params,
            "player_type": self._parse_player_type,
            "team": self._parse_team_line,
            "playmode": self._parse_playmode_line,
            "show": self._parse_show_line,
            "msg": self._ignore_line,
            "draw": self._ignore_line,
        }

    @property
    def sserver_log(self) -> SServerLog | None:
        return self.log  # type: ignore[return-value]

    # -- header ------------------------------------------------------------

    def _parse_header(self, cursor: LineCursor, resource: Resource) -> SimulationLog:
        line = require_line(cursor, "ULG header")
        if not line.startswith("ULG"):
            raise ParserError("Failed parsing ULG log file - no ULG header found!")
        try:
            version = int(line[3:])
        except ValueError as exc:
            raise ParserError(f"Malformed ULG header: {line[:20]}") from exc

        cursor.next()
        logger.info(f"Decoding ULG{version} log from {resource}")
        return SServerLog(resource, version)

    def _create_storage(self, log: SimulationLog) -> DecoderStorage:
        return DecoderStorage(
            partial_state=PartialWorldState(0, 1 / log.frequency, 0),
            max_lines=self.config.ulg_batch,
        )

    # -- body --------------------------------------------------------------

    def _decode_line(self, line: str) -> str | None:
        sserver_log, storage = self.sserver_log, self.storage
        assert sserver_log is not None and storage is not None and storage.partial_state is not None

        end = line.find(" ")
        tag = line[1:end] if line[0] == "(" and end > 0 else ""
        handler = self._handlers.get(tag)
        if handler is None:
            logger.debug(f"Unknown ulg line: {line[:20]}")
            return None
        return handler(line, sserver_log, storage.partial_state)

    @staticmethod
    def _ignore_line(line: str, sserver_log: SServerLog, partial_state: PartialWorldState) -> str | None:
        return None

    @staticmethod
    def _parse_server_params(line: str, sserver_log: SServerLog, partial_state: PartialWorldState) -> str | None:
        # (server_param (<name> <value>)*)
        sserver_log.environment_params = ParameterMap(parse_parameters(line, "server parameter"))
        sserver_log.update_frequency()
        partial_state.time_step = 1 / sserver_log.frequency
        return None

    @staticmethod
    def _parse_player_params(line: str, sserver_log: SServerLog, partial_state: PartialWorldState) -> str | None:
        # (player_param (<name> <value>)*)
        sserver_log.player_params = ParameterMap(parse_parameters(line, "player parameter"))
        return None

    @staticmethod
    def _parse_player_type(line: str, sserver_log: SServerLog, partial_state: PartialWorldState) -> str | None:
        # (player_type (<name> <value>)*)
        params = ParameterMap(parse_parameters(line, "player type"))
        type_idx = params.get_number(PlayerType2DParams.ID)
        if type_idx is None:
            return "Player type without id"

        sserver_log.set_player_type(int(type_idx), params)
        return None

    @staticmethod
    def _parse_team_line(line: str, sserver_log: SServerLog, partial_state: PartialWorldState) -> str | None:
        # (team <time> <left-team-name> <right-team-name> <goals-left> <goals-right>
        #   [<pen-score-left> <pen-miss-left> <pen-score-right> <pen-miss-right>])
        values = parse_symbol_tree(line).values
        if len(values) < 6:
            return "Not enough data in team line"

        game_time = int(values[1]) / 10
        score = [int(v) for v in values[4:6]]
        if len(values) > 9:
            score.extend(int(v) for v in values[6:10])

        sserver_log.left_team.name = unquote(values[2])
        sserver_log.right_team.name = unquote(values[3])
        sserver_log.on_teams_updated()

        partial_state.append_to(sserver_log.states)
        partial_state.set_game_time(game_time)
        partial_state.set_score(*score)
        return None

    @staticmethod
    def _parse_playmode_line(line: str, sserver_log: SServerLog, partial_state: PartialWorldState) -> str | None:
        # (playmode <time> <playmode>)
        values = parse_symbol_tree(line).values
        if len(values) < 3:
            return "Not enough data in playmode line"

        game_time = int(values[1]) / 10
        partial_state.append_to(sserver_log.states)
        partial_state.set_game_time(game_time)
        partial_state.set_playmode(values[2])
        return None

    def _parse_show_line(self, line: str, sserver_log: SServerLog, partial_state: PartialWorldState) -> str | None:
        # (show <time>
        #    [(pm <playmode-no>)]
        #    [(tm <left-team-name> <right-team-name> <goals-left> <goals-right> [<pen-score-left> ...])]
        #    ((b) <x> <y> <vx> <vy>)
        #    [((<side> <unum>) <player_type> <flags> <x> <y> <vx> <vy> <body> <neck> [<point-x> <point-y>]
        #        (v <view-quality> <view-width>)
        #        (s <stamina> <effort> <recovery> [<capacity>])
        #        [(f <side> <unum>)]
        #        (c <kick> <dash> <turn> <catch> <move> <tneck> <view> <say> <tackle> <pointto> <attention>)
        #    )]*
        # )
        root = parse_symbol_tree(line)
        if len(root.values) < 2:
            return "Not enough data in show line"

        game_time = int(root.values[1]) / 10
        partial_state.append_to(sserver_log.states)
        partial_state.set_game_time(game_time)

        problems = []
        for child in root.children:
            if child.children and child.children[0].values:
                side = child.children[0].values[0]
                if side == "b":
                    problem = self._parse_ball(child, partial_state)
                elif side in ("l", "r"):
                    problem = self._parse_agent(child, sserver_log, partial_state, side == "l")
                else:
                    problem = f"Unexpected node {side}"
            elif child.values and child.values[0] in ("pm", "tm"):
                logger.debug(f"Ignoring {child.values[0]} node in show line")
                problem = None
            else:
                problem = "Unexpected node"

            if problem:
                problems.append(problem)

        return "; ".join(problems) if problems else None

    @staticmethod
    def _parse_ball(node: SymbolNode, partial_state: PartialWorldState) -> str | None:
        # ((b) <x> <y> <vx> <vy>)
        if len(node.values) < 2:
            return "Not enough data in ball node"

        partial_state.ball_state = ObjectState.from_pose(float(node.values[0]), 0.2, float(node.values[1]))
        return None

    @staticmethod
    def _parse_agent(
        node: SymbolNode,
        sserver_log: SServerLog,
        partial_state: PartialWorldState,
        left_side: bool,
    ) -> str | None:
        values = node.values
        if len(values) < 7:
            return "Not enough data in agent node"

        team = sserver_log.left_team if left_side else sserver_log.right_team
        player_no = int(node.children[0].values[1])
        type_idx = int(values[0])
        flags = int(values[1], 16)
        team.add_agent(player_no, sserver_log.get_player_type(type_idx))

        qx, qy, qz, qw = heading_quat(-float(values[6]))
        joint_angles = []
        if len(values) > 7:
            joint_angles.append(-float(values[7]) * DEG_TO_RAD)

        data: dict[int, float] = {}
        for child in node.children[1:]:
            sub = child.values
            if not sub:
                continue
            if sub[0] == "s":
                for slot, value in zip(STAMINA_SLOTS, sub[1:]):
                    data[slot] = float(value)
            elif sub[0] == "f":
                if len(sub) > 2:
                    data[Agent2DData.FOCUS_SIDE] = -1 if sub[1] == "l" else 1
                    data[Agent2DData.FOCUS_UNUM] = int(sub[2])
            elif sub[0] == "c":
                for slot, value in zip(COUNT_SLOTS, sub[1:]):
                    data[slot] = int(value)
            elif sub[0] != "v":
                logger.debug(f"Unexpected child node {sub[0]} in agent node")

        partial_state.set_agent_state(
            left_side,
            player_no,
            AgentState.create(
                team.get_recent_type_idx(player_no),
                flags,
                float(values[2]),
                0.0,
                float(values[3]),
                qx,
                qy,
                qz,
                qw,
                joint_angles,
                pack_data_slots(data),
            ),
        )
        return None
