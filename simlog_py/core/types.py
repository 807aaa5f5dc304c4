"""Core datatypes for decoded simulation logs.

State vectors are flat ``float64`` arrays with a fixed layout:

- object state: ``[x, y, z, qx, qy, qz, qw]``
- agent state: object state + ``[model_idx, flags, data_idx, *joint_angles, *data]``

Quaternion convention is ``[x, y, z, w]`` (scalar last).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Iterable, Mapping, Sequence

import numpy as np

# Object state layout
X_POS = 0
Y_POS = 1
Z_POS = 2
X_QUAT = 3
Y_QUAT = 4
Z_QUAT = 5
W_QUAT = 6

# Agent state layout (appended to the object state layout)
MODEL_IDX = 7
FLAGS = 8
DATA_IDX = 9
JOINT_ANGLES = 10


class SimulationType(IntEnum):
    TWOD = 1
    THREED = 2


class TeamSide(IntEnum):
    LEFT = -1
    NEUTRAL = 0
    RIGHT = 1


def get_side_letter(side: TeamSide, uppercase: bool = False) -> str:
    """Return ``l``/``r``/``n`` (or upper case) for the given side."""
    if side == TeamSide.LEFT:
        letter = "l"
    elif side == TeamSide.RIGHT:
        letter = "r"
    else:
        letter = "n"
    return letter.upper() if uppercase else letter


class Agent2DFlags(IntFlag):
    """Player status bits as written by the 2D soccer server."""

    DISABLE = 0x00000000
    STAND = 0x00000001
    KICK = 0x00000002
    KICK_FAULT = 0x00000004
    GOALIE = 0x00000008
    CATCH = 0x00000010
    CATCH_FAULT = 0x00000020
    BALL_TO_PLAYER = 0x00000040
    PLAYER_TO_BALL = 0x00000080
    DISCARD = 0x00000100
    LOST = 0x00000200
    BALL_COLLIDE = 0x00000400
    PLAYER_COLLIDE = 0x00000800
    TACKLE = 0x00001000
    TACKLE_FAULT = 0x00002000
    BACK_PASS = 0x00004000
    FREE_KICK = 0x00008000
    POST_COLLIDE = 0x00010000
    FOUL_CHARGED = 0x00020000
    YELLOW_CARD = 0x00040000
    RED_CARD = 0x00080000
    ILLEGAL_DEFENSE = 0x00100000


class Agent3DFlags(IntFlag):
    """Player status bits used by 3D replays."""

    CROWDING = 0x00000001
    TOUCHING = 0x00000002
    ILLEGAL_DEFENCE = 0x00000004
    ILLEGAL_ATTACK = 0x00000008
    INCAPABLE = 0x00000010
    ILLEGAL_KICKOFF = 0x00000020
    CHARGING = 0x00000040


class Agent2DData(IntEnum):
    """Slot indices into the generic data segment of a 2D agent state."""

    STAMINA = 0
    STAMINA_EFFORT = 1
    STAMINA_RECOVERY = 2
    STAMINA_CAPACITY = 3
    FOCUS_SIDE = 4
    FOCUS_UNUM = 5
    KICK_COUNT = 6
    DASH_COUNT = 7
    TURN_COUNT = 8
    CATCH_COUNT = 9
    MOVE_COUNT = 10
    TURN_NECK_COUNT = 11
    VIEW_COUNT = 12
    SAY_COUNT = 13
    TACKLE_COUNT = 14
    POINT_TO_COUNT = 15
    ATTENTION_COUNT = 16


def pack_data_slots(slots: Mapping[int, float]) -> list[float]:
    """Turn a sparse ``slot -> value`` mapping into a dense list (gaps are NaN)."""
    if not slots:
        return []
    out = [math.nan] * (max(slots) + 1)
    for idx, value in slots.items():
        out[int(idx)] = float(value)
    return out


def encode_object_state(
    x: float,
    y: float,
    z: float,
    qx: float,
    qy: float,
    qz: float,
    qw: float,
) -> np.ndarray:
    return np.array([x, y, z, qx, qy, qz, qw], dtype=float)


def encode_agent_state(
    model_idx: int,
    flags: int,
    x: float,
    y: float,
    z: float,
    qx: float,
    qy: float,
    qz: float,
    qw: float,
    joint_angles: Sequence[float] = (),
    data: Sequence[float] = (),
) -> np.ndarray:
    """Encode agent information into one flat state vector."""
    data_idx = JOINT_ANGLES + len(joint_angles)
    state = np.empty(data_idx + len(data), dtype=float)
    state[:7] = (x, y, z, qx, qy, qz, qw)
    state[MODEL_IDX] = model_idx
    state[FLAGS] = flags
    state[DATA_IDX] = data_idx
    state[JOINT_ANGLES:data_idx] = joint_angles
    state[data_idx:] = data
    return state


@dataclass(eq=False)
class ObjectState:
    """Position and orientation of a rigid object at one point in time."""

    state: np.ndarray = field(default_factory=lambda: encode_object_state(0, 0, 0, 0, 0, 0, 1))

    @classmethod
    def from_pose(
        cls,
        x: float,
        y: float,
        z: float,
        qx: float = 0.0,
        qy: float = 0.0,
        qz: float = 0.0,
        qw: float = 1.0,
    ) -> ObjectState:
        return cls(encode_object_state(x, y, z, qx, qy, qz, qw))

    def _get(self, idx: int, default: float = 0.0) -> float:
        return float(self.state[idx]) if len(self.state) > idx else default

    @property
    def x(self) -> float:
        return self._get(X_POS)

    @property
    def y(self) -> float:
        return self._get(Y_POS)

    @property
    def z(self) -> float:
        return self._get(Z_POS)

    @property
    def qx(self) -> float:
        return self._get(X_QUAT)

    @property
    def qy(self) -> float:
        return self._get(Y_QUAT)

    @property
    def qz(self) -> float:
        return self._get(Z_QUAT)

    @property
    def qw(self) -> float:
        return self._get(W_QUAT, 1.0)

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    @property
    def orientation(self) -> np.ndarray:
        return np.array([self.qx, self.qy, self.qz, self.qw], dtype=float)

    def is_valid(self) -> bool:
        """An all-zero quaternion marks an object that is absent this tick."""
        if len(self.state) <= W_QUAT:
            return False
        return bool(np.any(self.state[X_QUAT : W_QUAT + 1] != 0.0))


@dataclass(eq=False)
class AgentState:
    """Pose, model, status flags, joint angles and generic data of one agent.

    The pose lives in the first seven entries of ``state`` and is exposed
    as an embedded :class:`ObjectState` sharing the same memory.
    """

    state: np.ndarray = field(default_factory=lambda: encode_agent_state(0, 0, 0, 0, 0, 0, 0, 0, 1))

    @classmethod
    def create(
        cls,
        model_idx: int,
        flags: int,
        x: float,
        y: float,
        z: float,
        qx: float,
        qy: float,
        qz: float,
        qw: float,
        joint_angles: Sequence[float] = (),
        data: Sequence[float] = (),
    ) -> AgentState:
        return cls(encode_agent_state(model_idx, flags, x, y, z, qx, qy, qz, qw, joint_angles, data))

    @property
    def pose(self) -> ObjectState:
        return ObjectState(self.state[: W_QUAT + 1])

    @property
    def x(self) -> float:
        return self.pose.x

    @property
    def y(self) -> float:
        return self.pose.y

    @property
    def z(self) -> float:
        return self.pose.z

    @property
    def qx(self) -> float:
        return self.pose.qx

    @property
    def qy(self) -> float:
        return self.pose.qy

    @property
    def qz(self) -> float:
        return self.pose.qz

    @property
    def qw(self) -> float:
        return self.pose.qw

    @property
    def position(self) -> np.ndarray:
        return self.pose.position

    @property
    def orientation(self) -> np.ndarray:
        return self.pose.orientation

    @property
    def model_index(self) -> int:
        if len(self.state) <= MODEL_IDX:
            return 0
        return int(round(float(self.state[MODEL_IDX])))

    @property
    def flags(self) -> int:
        if len(self.state) <= FLAGS:
            return 0
        return int(self.state[FLAGS])

    @property
    def joint_angles(self) -> np.ndarray:
        if len(self.state) <= DATA_IDX:
            return np.empty(0, dtype=float)
        return self.state[JOINT_ANGLES : int(self.state[DATA_IDX])].copy()

    @property
    def data(self) -> np.ndarray:
        if len(self.state) <= DATA_IDX:
            return np.empty(0, dtype=float)
        return self.state[int(self.state[DATA_IDX]) :].copy()

    def is_valid(self) -> bool:
        return self.pose.is_valid() and len(self.state) > DATA_IDX


@dataclass(frozen=True, eq=False)
class GameState:
    """Play mode and the global time it took effect.

    Compared by identity: one instance is shared by all ticks with the
    same play mode run.
    """

    time: float
    play_mode: str


@dataclass(frozen=True, eq=False)
class GameScore:
    """Goals and penalty results per side, compared by identity."""

    time: float
    goals_left: int
    goals_right: int
    penalty_score_left: int = 0
    penalty_miss_left: int = 0
    penalty_score_right: int = 0
    penalty_miss_right: int = 0


def unwrap_agent_states(agent_states: Iterable[AgentState | None]) -> list[np.ndarray | None]:
    return [s.state if s is not None else None for s in agent_states]


def wrap_agent_states(state_arrs: Iterable[np.ndarray | None]) -> list[AgentState | None]:
    return [AgentState(s) if s is not None else None for s in state_arrs]


@dataclass(frozen=True, eq=False)
class WorldState:
    """One committed simulation tick."""

    time: float
    game_time: float
    game_state: GameState
    score: GameScore
    ball_state_arr: np.ndarray
    left_agent_state_arrs: list[np.ndarray | None]
    right_agent_state_arrs: list[np.ndarray | None]

    @property
    def ball_state(self) -> ObjectState:
        return ObjectState(self.ball_state_arr)

    @property
    def left_agent_states(self) -> list[AgentState | None]:
        return wrap_agent_states(self.left_agent_state_arrs)

    @property
    def right_agent_states(self) -> list[AgentState | None]:
        return wrap_agent_states(self.right_agent_state_arrs)
