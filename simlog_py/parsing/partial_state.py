"""In-progress world state and per-decoder bookkeeping."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..core.types import (
    AgentState,
    GameScore,
    GameState,
    ObjectState,
    WorldState,
    unwrap_agent_states,
)


def _round_ms(value: float) -> float:
    return round(value * 1000) / 1000


def _dense(agent_states: dict[int, AgentState]) -> list[AgentState | None]:
    """Sparse ``player_no -> state`` into a list indexed by player number."""
    if not agent_states:
        return []
    out: list[AgentState | None] = [None] * (max(agent_states) + 1)
    for player_no, state in agent_states.items():
        out[player_no] = state
    return out


class PartialWorldState:
    """Collects the fields of one tick that arrive across several lines.

    Play mode and score persist across commits, as does the ball state;
    agent states are cleared once the tick is appended to a log.
    """

    def __init__(self, time: float, time_step: float, game_time: float) -> None:
        self.time = time
        self.time_step = time_step
        self.game_time = game_time
        self.game_state = GameState(time, "unknown")
        self.score = GameScore(time, 0, 0)
        self.ball_state = ObjectState()
        self.left_agent_states: dict[int, AgentState] = {}
        self.right_agent_states: dict[int, AgentState] = {}

    def set_game_time(self, game_time: float) -> None:
        self.game_time = _round_ms(game_time)

    def set_playmode(self, play_mode: str) -> None:
        if self.game_state.play_mode != play_mode:
            self.game_state = GameState(self.time, play_mode)

    def set_score(
        self,
        goals_left: int,
        goals_right: int,
        pen_score_left: int = 0,
        pen_miss_left: int = 0,
        pen_score_right: int = 0,
        pen_miss_right: int = 0,
    ) -> None:
        score = self.score
        if (
            score.goals_left != goals_left
            or score.goals_right != goals_right
            or score.penalty_score_left != pen_score_left
            or score.penalty_miss_left != pen_miss_left
            or score.penalty_score_right != pen_score_right
            or score.penalty_miss_right != pen_miss_right
        ):
            self.score = GameScore(
                self.time,
                goals_left,
                goals_right,
                pen_score_left,
                pen_miss_left,
                pen_score_right,
                pen_miss_right,
            )

    def set_agent_state(self, left_side: bool, player_no: int, state: AgentState) -> None:
        if player_no < 0:
            raise ValueError(f"Invalid player number {player_no}")
        if left_side:
            self.left_agent_states[player_no] = state
        else:
            self.right_agent_states[player_no] = state

    def has_agents(self) -> bool:
        return bool(self.left_agent_states) or bool(self.right_agent_states)

    def append_to(self, states: list[WorldState]) -> bool:
        """Commit this tick to ``states`` if at least one agent is present.

        Returns True if a world state was appended.
        """
        if not self.has_agents():
            return False

        states.append(
            WorldState(
                time=self.time,
                game_time=self.game_time,
                game_state=self.game_state,
                score=self.score,
                ball_state_arr=self.ball_state.state,
                left_agent_state_arrs=unwrap_agent_states(_dense(self.left_agent_states)),
                right_agent_state_arrs=unwrap_agent_states(_dense(self.right_agent_states)),
            )
        )

        self.time = _round_ms(self.time + self.time_step)
        self.left_agent_states = {}
        self.right_agent_states = {}
        return True


@dataclass
class DecoderStorage:
    """Mutable decoding context owned by one decoder instance."""

    partial_state: PartialWorldState | None = None
    max_lines: int = 300
    # Most recent player type index per player number, for lines that omit it
    left_index_list: dict[int, int] = field(default_factory=dict)
    right_index_list: dict[int, int] = field(default_factory=dict)
