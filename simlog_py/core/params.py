"""Parameter maps and versioned parameter defaults for 2D and 3D logs."""

from __future__ import annotations

from typing import Any, Union

ParameterValue = Union[float, int, bool, str, "ParameterObject"]
ParameterObject = dict[str, Any]


class ParameterMap:
    """Ordered ``name -> value`` map with typed getters."""

    def __init__(self, params: ParameterObject | None = None) -> None:
        self.param_obj: ParameterObject = params if params is not None else {}

    def __len__(self) -> int:
        return len(self.param_obj)

    def __contains__(self, key: object) -> bool:
        return key in self.param_obj

    def __repr__(self) -> str:
        return f"ParameterMap({self.param_obj!r})"

    def clear(self) -> None:
        self.param_obj = {}

    def get_number(self, key: str) -> float | None:
        value = self.param_obj.get(key)
        # bool is an int subclass but is not a number parameter
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        return None

    def get_boolean(self, key: str) -> bool | None:
        value = self.param_obj.get(key)
        if value is None:
            return None
        return bool(value)

    def get_string(self, key: str) -> str | None:
        value = self.param_obj.get(key)
        return value if isinstance(value, str) else None

    def get_object(self, key: str) -> ParameterMap | None:
        value = self.param_obj.get(key)
        return ParameterMap(value) if isinstance(value, dict) else None


# 2D soccer server (rcssserver)
class Environment2DParams:
    SIMULATOR_STEP = "simulator_step"
    GOAL_WIDTH = "goal_width"
    BALL_SIZE = "ball_size"
    PLAYER_SIZE = "player_size"
    HALF_TIME = "half_time"
    NR_NORMAL_HALFS = "nr_normal_halfs"
    EXTRA_HALF_TIME = "extra_half_time"
    NR_EXTRA_HALFS = "nr_extra_halfs"
    PEN_BEFORE_SETUP_WAIT = "pen_before_setup_wait"
    KEEPAWAY = "keepaway"
    KEEPAWAY_LENGTH = "keepaway_length"
    KEEPAWAY_WIDTH = "keepaway_width"
    VISIBLE_DISTANCE = "visible_distance"


class Player2DParams:
    PLAYER_TYPES = "player_types"
    PT_MAX = "pt_max"
    SUBS_MAX = "subs_max"
    RANDOM_SEED = "random_seed"
    ALLOW_MULT_DEFAULT_TYPE = "allow_mult_default_type"


class PlayerType2DParams:
    ID = "id"
    PLAYER_SPEED_MAX = "player_speed_max"
    STAMINA_INC_MAX = "stamina_inc_max"
    PLAYER_DECAY = "player_decay"
    INERTIA_MOMENT = "inertia_moment"
    DASH_POWER_RATE = "dash_power_rate"
    PLAYER_SIZE = "player_size"
    KICKABLE_MARGIN = "kickable_margin"
    KICK_RAND = "kick_rand"
    EXTRA_STAMINA = "extra_stamina"
    EFFORT_MAX = "effort_max"
    EFFORT_MIN = "effort_min"
    KICK_POWER_RATE = "kick_power_rate"
    FOUL_DETECT_PROBABILITY = "foul_detect_probability"
    CATCHABLE_AREA_L_STRETCH = "catchable_area_l_stretch"


def create_default_2d_environment_params() -> ParameterMap:
    return ParameterMap(
        {
            Environment2DParams.SIMULATOR_STEP: 100,
            Environment2DParams.GOAL_WIDTH: 14.02,
            Environment2DParams.BALL_SIZE: 0.085,
            Environment2DParams.PLAYER_SIZE: 0.3,
            Environment2DParams.HALF_TIME: 300,
            Environment2DParams.NR_NORMAL_HALFS: 2,
            Environment2DParams.EXTRA_HALF_TIME: 100,
            Environment2DParams.NR_EXTRA_HALFS: 2,
            Environment2DParams.PEN_BEFORE_SETUP_WAIT: 10,
            Environment2DParams.KEEPAWAY: False,
            Environment2DParams.KEEPAWAY_LENGTH: 20,
            Environment2DParams.KEEPAWAY_WIDTH: 20,
            Environment2DParams.VISIBLE_DISTANCE: 3,
        }
    )


def create_default_2d_player_params() -> ParameterMap:
    return ParameterMap(
        {
            Player2DParams.PLAYER_TYPES: 18,
            Player2DParams.PT_MAX: 1,
            Player2DParams.SUBS_MAX: 3,
            Player2DParams.RANDOM_SEED: -1,
            Player2DParams.ALLOW_MULT_DEFAULT_TYPE: False,
        }
    )


def create_default_2d_player_type_params() -> list[ParameterMap]:
    """Default heterogeneous player types 0..17; type 0 carries the stock values."""
    types: list[ParameterMap] = []
    for i in range(18):
        params: ParameterObject = {PlayerType2DParams.ID: i}
        if i == 0:
            params.update(
                {
                    PlayerType2DParams.PLAYER_SPEED_MAX: 1.05,
                    PlayerType2DParams.STAMINA_INC_MAX: 45,
                    PlayerType2DParams.PLAYER_DECAY: 0.4,
                    PlayerType2DParams.INERTIA_MOMENT: 5,
                    PlayerType2DParams.DASH_POWER_RATE: 0.006,
                    PlayerType2DParams.PLAYER_SIZE: 0.3,
                    PlayerType2DParams.KICKABLE_MARGIN: 0.7,
                    PlayerType2DParams.KICK_RAND: 0.1,
                    PlayerType2DParams.EXTRA_STAMINA: 50,
                    PlayerType2DParams.EFFORT_MAX: 1,
                    PlayerType2DParams.EFFORT_MIN: 0.6,
                    PlayerType2DParams.KICK_POWER_RATE: 0.027,
                    PlayerType2DParams.FOUL_DETECT_PROBABILITY: 0.5,
                    PlayerType2DParams.CATCHABLE_AREA_L_STRETCH: 1,
                }
            )
        types.append(ParameterMap(params))
    return types


# 3D simulation server (SimSpark)
class Environment3DParams:
    LOG_STEP = "log_step"
    FIELD_LENGTH = "FieldLength"
    FIELD_WIDTH = "FieldWidth"
    FIELD_HEIGHT = "FieldHeight"
    GOAL_WIDTH = "GoalWidth"
    GOAL_DEPTH = "GoalDepth"
    GOAL_HEIGHT = "GoalHeight"
    BORDER_SIZE = "BorderSize"
    FREE_KICK_DISTANCE = "FreeKickDistance"
    WAIT_BEFORE_KICK_OFF = "WaitBeforeKickOff"
    AGENT_MASS = "AgentMass"
    AGENT_RADIUS = "AgentRadius"
    AGENT_MAX_SPEED = "AgentMaxSpeed"
    BALL_RADIUS = "BallRadius"
    BALL_MASS = "BallMass"
    RULE_GOAL_PAUSE_TIME = "RuleGoalPauseTime"
    RULE_KICK_IN_PAUSE_TIME = "RuleKickInPauseTime"
    RULE_HALF_TIME = "RuleHalfTime"
    PLAY_MODES = "play_modes"


class PlayerType3DParams:
    MODEL_NAME = "model"
    MODEL_TYPE = "model_type"


def create_3d_environment_params_v62() -> ParameterMap:
    return ParameterMap(
        {
            Environment3DParams.LOG_STEP: 200,
            Environment3DParams.FIELD_LENGTH: 12,
            Environment3DParams.FIELD_WIDTH: 8,
            Environment3DParams.FIELD_HEIGHT: 40,
            Environment3DParams.GOAL_WIDTH: 1.4,
            Environment3DParams.GOAL_DEPTH: 0.4,
            Environment3DParams.GOAL_HEIGHT: 0.8,
            Environment3DParams.FREE_KICK_DISTANCE: 1,
            Environment3DParams.AGENT_RADIUS: 0.4,
            Environment3DParams.BALL_RADIUS: 0.042,
            Environment3DParams.RULE_HALF_TIME: 300,
        }
    )


def create_3d_environment_params_v63() -> ParameterMap:
    params = create_3d_environment_params_v62()
    params.param_obj.update(
        {
            Environment3DParams.FIELD_LENGTH: 18,
            Environment3DParams.FIELD_WIDTH: 12,
            Environment3DParams.GOAL_WIDTH: 2.1,
            Environment3DParams.GOAL_DEPTH: 0.6,
            Environment3DParams.FREE_KICK_DISTANCE: 1.8,
        }
    )
    return params


def create_3d_environment_params_v64() -> ParameterMap:
    params = create_3d_environment_params_v63()
    params.param_obj.update(
        {
            Environment3DParams.FIELD_LENGTH: 21,
            Environment3DParams.FIELD_WIDTH: 14,
        }
    )
    return params


def create_3d_environment_params_v66() -> ParameterMap:
    params = create_3d_environment_params_v63()
    params.param_obj.update(
        {
            Environment3DParams.FIELD_LENGTH: 30,
            Environment3DParams.FIELD_WIDTH: 20,
            Environment3DParams.FREE_KICK_DISTANCE: 2,
        }
    )
    return params


# Server version code (as written in legacy 3D world lines) -> field preset
ENVIRONMENT_3D_PRESETS = {
    62: create_3d_environment_params_v62,
    63: create_3d_environment_params_v63,
    64: create_3d_environment_params_v64,
    66: create_3d_environment_params_v66,
}


def create_default_3d_environment_params() -> ParameterMap:
    return create_3d_environment_params_v66()


def create_default_3d_player_params() -> ParameterMap:
    return ParameterMap()


def create_default_3d_player_type_params() -> list[ParameterMap]:
    """Default ``nao_hetero`` 0..4 model types."""
    return [
        ParameterMap({PlayerType3DParams.MODEL_NAME: "nao_hetero", PlayerType3DParams.MODEL_TYPE: i})
        for i in range(5)
    ]
