"""Team and agent descriptions collected while decoding a log."""

from __future__ import annotations

from collections.abc import Callable

from matplotlib.colors import to_hex

from .params import ParameterMap
from .types import TeamSide, get_side_letter

TeamListener = Callable[["TeamDescription"], None]

NAME_CHANGED = "name"
COLOR_CHANGED = "color"
AGENTS_CHANGED = "agents"


def normalize_color(color: str | tuple[float, float, float]) -> str:
    """Convert a color name / hex string / RGB tuple into ``#rrggbb``.

    Raises ValueError for values matplotlib does not understand.
    """
    if isinstance(color, str):
        color = color.strip()
        if color.lower().startswith("0x"):
            color = "#" + color[2:]
    return to_hex(color)


class AgentDescription:
    """Player number, side and the player types an agent used over a log."""

    def __init__(self, player_no: int, side: TeamSide, player_type: ParameterMap) -> None:
        self.player_no = player_no
        self.side = side
        self.player_types: list[ParameterMap] = [player_type]
        self.recent_type_idx = 0

    def is_goalie(self) -> bool:
        return self.player_no == 1

    def add_player_type(self, player_type: ParameterMap) -> bool:
        """Register ``player_type`` (by identity) and make it the recent one.

        Returns True if the type list grew.
        """
        for idx, known in enumerate(self.player_types):
            if known is player_type:
                self.recent_type_idx = idx
                return False

        self.player_types.append(player_type)
        self.recent_type_idx = len(self.player_types) - 1
        return True

    def get_side_letter(self, uppercase: bool = False) -> str:
        return get_side_letter(self.side, uppercase)


class TeamDescription:
    """Name, color and agent registry of one team.

    Listeners registered for ``name``, ``color`` or ``agents`` are called
    with the team whenever that property actually changes.
    """

    def __init__(self, name: str, color: str, side: TeamSide) -> None:
        self.side = side
        self._name = name
        self._color = normalize_color(color)
        self._agents: list[AgentDescription] = []
        self._listeners: dict[str, list[TeamListener]] = {}

    def add_listener(self, event: str, callback: TeamListener) -> None:
        self._listeners.setdefault(event, []).append(callback)

    def remove_listener(self, event: str, callback: TeamListener) -> None:
        callbacks = self._listeners.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def _dispatch(self, event: str) -> None:
        for callback in list(self._listeners.get(event, [])):
            callback(self)

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, new_name: str) -> None:
        new_name = new_name.replace("_", " ")
        if new_name != self._name:
            self._name = new_name
            self._dispatch(NAME_CHANGED)

    @property
    def color(self) -> str:
        return self._color

    @color.setter
    def color(self, color: str | tuple[float, float, float]) -> None:
        new_color = normalize_color(color)
        if new_color != self._color:
            self._color = new_color
            self._dispatch(COLOR_CHANGED)

    @property
    def agents(self) -> list[AgentDescription]:
        return self._agents

    def _find(self, player_no: int) -> AgentDescription | None:
        for agent in reversed(self._agents):
            if agent.player_no == player_no:
                return agent
        return None

    def add_agent(self, player_no: int, player_type: ParameterMap) -> bool:
        """Add an agent or a new player type of an existing agent.

        Returns True if the registry changed.
        """
        agent = self._find(player_no)
        if agent is not None:
            if not agent.add_player_type(player_type):
                return False
        else:
            self._agents.append(AgentDescription(player_no, self.side, player_type))

        self._dispatch(AGENTS_CHANGED)
        return True

    def get_recent_type_idx(self, player_no: int) -> int:
        agent = self._find(player_no)
        return agent.recent_type_idx if agent is not None else 0

    def get_side_letter(self, uppercase: bool = False) -> str:
        return get_side_letter(self.side, uppercase)
