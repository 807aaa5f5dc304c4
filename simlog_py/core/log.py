"""The simulation log aggregate and its format-specific subtypes."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from pathlib import Path
from typing import Union

from .params import (
    Environment2DParams,
    Environment3DParams,
    ParameterMap,
    create_default_2d_environment_params,
    create_default_2d_player_params,
    create_default_2d_player_type_params,
    create_default_3d_environment_params,
    create_default_3d_player_params,
    create_default_3d_player_type_params,
)
from .teams import TeamDescription
from .types import GameScore, GameState, SimulationType, TeamSide, WorldState

logger = logging.getLogger(__name__)

Resource = Union[str, Path]
Listener = Callable[["SimulationLog"], None]

STATES_CHANGED = "states-changed"
PLAYER_CHANGED = "player-changed"


class SimulationLog:
    """Append-only sequence of world states plus derived indices.

    States are only ever appended by a decoder; ``start_time``,
    ``end_time``, ``duration`` and the play-mode/score timelines are
    recomputed by :meth:`on_states_updated`.
    """

    def __init__(self, resource: Resource, sim_type: SimulationType) -> None:
        self.resource = resource
        self.type = sim_type
        self.frequency = 1.0

        self.left_team = TeamDescription("Left Team", "#ffff00", TeamSide.LEFT)
        self.right_team = TeamDescription("Right Team", "#ff0000", TeamSide.RIGHT)

        self.states: list[WorldState] = []
        self.start_time = 0.0
        self.end_time = 0.0
        self.duration = 0.0
        self.game_state_list: list[GameState] = []
        self.game_score_list: list[GameScore] = []
        self.fully_loaded = False

        self._listeners: dict[str, list[Listener]] = {}

        if sim_type == SimulationType.TWOD:
            self.environment_params = create_default_2d_environment_params()
            self.player_params = create_default_2d_player_params()
            self.player_types = create_default_2d_player_type_params()
        else:
            self.environment_params = create_default_3d_environment_params()
            self.player_params = create_default_3d_player_params()
            self.player_types = create_default_3d_player_type_params()

        self.update_frequency()

    def __len__(self) -> int:
        return len(self.states)

    # -- listeners ---------------------------------------------------------

    def add_listener(self, event: str, callback: Listener) -> None:
        self._listeners.setdefault(event, []).append(callback)

    def remove_listener(self, event: str, callback: Listener) -> None:
        callbacks = self._listeners.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def _dispatch(self, event: str) -> None:
        for callback in list(self._listeners.get(event, [])):
            callback(self)

    # -- parameters --------------------------------------------------------

    def get_player_type(self, idx: int) -> ParameterMap:
        """Return the player type at ``idx``, registering an empty one if unknown."""
        if idx < 0:
            raise IndexError(f"Invalid player type index {idx}")
        while len(self.player_types) <= idx:
            self.player_types.append(ParameterMap())
        return self.player_types[idx]

    def set_player_type(self, idx: int, params: ParameterMap) -> None:
        self.get_player_type(idx)
        self.player_types[idx] = params

    def update_frequency(self) -> None:
        """Derive the sampling frequency from the step parameter (in ms)."""
        if self.type == SimulationType.TWOD:
            step = self.environment_params.get_number(Environment2DParams.SIMULATOR_STEP)
        else:
            step = self.environment_params.get_number(Environment3DParams.LOG_STEP)

        if step:
            self.frequency = 1000.0 / step

    # -- state access ------------------------------------------------------

    def get_index_for_time(self, time: float) -> int:
        idx = int(math.floor(time * self.frequency))
        if idx < 0:
            return 0
        if idx >= len(self.states):
            return len(self.states) - 1
        return idx

    def get_state_for_time(self, time: float) -> WorldState | None:
        if not self.states:
            return None
        return self.states[self.get_index_for_time(time)]

    # -- update notifications ---------------------------------------------

    def on_teams_updated(self) -> None:
        self._dispatch(PLAYER_CHANGED)

    def on_states_updated(self) -> None:
        if self.states:
            self.start_time = self.states[0].time
            self.end_time = self.states[-1].time
            self.duration = self.end_time - self.start_time

            # Consecutive states share GameState/GameScore instances while
            # unchanged, so identity marks a change.
            self.game_state_list.clear()
            self.game_score_list.clear()
            prev_state = self.states[0].game_state
            prev_score = self.states[0].score
            self.game_state_list.append(prev_state)
            self.game_score_list.append(prev_score)

            for world_state in self.states[1:]:
                if world_state.game_state is not prev_state:
                    prev_state = world_state.game_state
                    self.game_state_list.append(prev_state)
                if world_state.score is not prev_score:
                    prev_score = world_state.score
                    self.game_score_list.append(prev_score)

        self._dispatch(STATES_CHANGED)

    def finalize(self) -> None:
        """Mark the log as fully loaded; no further states will be appended."""
        self.fully_loaded = True
        self.on_states_updated()
        logger.info(
            f"Simulation log finalized: {len(self.states)} states, "
            f"{self.start_time:.2f}s - {self.end_time:.2f}s"
        )


class Replay(SimulationLog):
    """A log decoded from the Replay text format."""

    def __init__(self, resource: Resource, sim_type: SimulationType, version: int) -> None:
        super().__init__(resource, sim_type)
        self.version = version


class SServerLog(SimulationLog):
    """A log decoded from a 2D soccer server (ULG) game log."""

    def __init__(self, resource: Resource, version: int) -> None:
        super().__init__(resource, SimulationType.TWOD)
        self.version = version
