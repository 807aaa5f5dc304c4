"""Abstract decoder interface and recoverable decode diagnostics."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from .log import Resource, SimulationLog


@dataclass(frozen=True)
class DecodeDiagnostic:
    """A single body line that could not be (fully) decoded."""

    line_no: int
    tag: str
    message: str


@dataclass
class DiagnosticLog:
    """Bounded list of diagnostics; overflow is only counted."""

    capacity: int = 100
    entries: list[DecodeDiagnostic] = field(default_factory=list)
    dropped: int = 0

    def add(self, diagnostic: DecodeDiagnostic) -> None:
        if len(self.entries) < self.capacity:
            self.entries.append(diagnostic)
        else:
            self.dropped += 1

    @property
    def total(self) -> int:
        return len(self.entries) + self.dropped

    def __len__(self) -> int:
        return len(self.entries)


class LogDecoder(ABC):
    """Incrementally decodes one log resource into a :class:`SimulationLog`."""

    @abstractmethod
    def parse(
        self,
        data: str,
        resource: Resource,
        partial: bool = False,
        incremental: bool = False,
    ) -> bool:
        """Start or continue decoding.

        Returns True the first time the decoded log holds at least one state.
        Raises ParserError on structural failures and EmptyLogError when a
        non-partial call leaves the log without states.
        """

    @abstractmethod
    def get_log(self) -> SimulationLog | None:
        """Return the (possibly still growing) decoded log."""

    @abstractmethod
    def dispose(self, keep_cursor_alive: bool = False) -> None:
        """Release all decoding resources and cancel pending continuations."""
