"""Restartable line tokenizer over a (possibly still growing) text buffer."""

from __future__ import annotations

import re

_LINE_RE = re.compile(r"[^\r\n]+")


class LineCursor:
    """Iterate over the complete lines of a text buffer.

    While ``partial`` is set, a trailing line without terminator is not
    reported, since more characters of it may still arrive.
    """

    def __init__(self, data: str, partial: bool = False) -> None:
        self.data = data
        self.partial = partial
        self.line: str | None = None
        self.line_no = 0
        self._pos = 0

    @property
    def position(self) -> int:
        """Offset just past the most recently returned line."""
        return self._pos

    def rewind(self, position: int = 0, line_no: int = 0) -> None:
        self._pos = position
        self.line_no = line_no
        self.line = None

    def update(self, data: str, partial: bool = False, incremental: bool = False) -> bool:
        """Replace the buffer or append a new chunk to its unconsumed remainder.

        Returns True if the cursor had run out of lines before the update.
        """
        if incremental:
            self.data = self.data[self._pos :] + data
            self._pos = 0
        else:
            self.data = data

        self.partial = partial
        return self.line is None

    def _match(self) -> re.Match[str] | None:
        match = _LINE_RE.search(self.data, self._pos)
        if match is None:
            return None
        if self.partial and match.end() == len(self.data):
            return None
        return match

    def has_next(self) -> bool:
        return self._match() is not None

    def next(self) -> str | None:
        """Advance to the next complete line and return it (None if there is none)."""
        match = self._match()
        if match is None:
            self.line = None
        else:
            self.line = match.group(0)
            self._pos = match.end()
            self.line_no += 1
        return self.line

    def dispose(self) -> None:
        self.data = ""
        self.partial = False
        self.line = None
        self._pos = 0
