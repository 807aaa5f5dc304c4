"""Shared resumable line-decoding driver for the log decoders."""

from __future__ import annotations

import logging
from abc import abstractmethod

from ..core.config import NormalizedDecoderConfig
from ..core.errors import EmptyLogError, ParserError
from ..core.interfaces import DecodeDiagnostic, DiagnosticLog, LogDecoder
from ..core.log import Resource, SimulationLog
from ..core.tasks import BatchTask, CancellationToken, TaskQueue
from ..parsing.line_cursor import LineCursor
from ..parsing.partial_state import DecoderStorage

logger = logging.getLogger(__name__)

# Raised by a single body line; the line is skipped and decoding continues.
RECOVERABLE_ERRORS = (ValueError, IndexError, KeyError, TypeError, ParserError)


class IncompleteHeader(Exception):
    """The header lines are not yet fully available in partial data."""


def require_line(cursor: LineCursor, what: str) -> str:
    """Return the next header line or fail (fatally, unless data is partial)."""
    line = cursor.next()
    if line is None:
        if cursor.partial:
            raise IncompleteHeader(what)
        raise ParserError(f"Log corrupt: missing {what}!")
    return line


def unquote(token: str) -> str:
    if len(token) >= 2 and token[0] == '"' and token[-1] == '"':
        return token[1:-1]
    return token


class LineLogDecoder(LogDecoder):
    """Header-then-body decoder driven by a :class:`LineCursor`.

    The body is decoded in batches of at most ``storage.max_lines`` lines.
    While more lines are available, the next batch is queued on
    ``self.queue``; the host runs it via ``queue.run_pending()`` or
    ``queue.drain()``.
    """

    kind = "log"

    def __init__(
        self,
        config: NormalizedDecoderConfig | None = None,
        queue: TaskQueue | None = None,
    ) -> None:
        self.config = config if config is not None else NormalizedDecoderConfig(config_path=None)
        self.queue = queue if queue is not None else TaskQueue()
        self.diagnostics = DiagnosticLog(self.config.max_diagnostics)

        self.cursor: LineCursor | None = None
        self.log: SimulationLog | None = None
        self.storage: DecoderStorage | None = None
        self._token = CancellationToken()
        self._task: BatchTask | None = None
        self._finished = False

    # -- format hooks ------------------------------------------------------

    @abstractmethod
    def _parse_header(self, cursor: LineCursor, resource: Resource) -> SimulationLog:
        """Decode the header lines and leave the cursor on the first body line."""

    @abstractmethod
    def _create_storage(self, log: SimulationLog) -> DecoderStorage:
        """Create the per-resource decoding context."""

    @abstractmethod
    def _decode_line(self, line: str) -> str | None:
        """Decode one body line; return a problem description or None."""

    # -- decoder contract --------------------------------------------------

    def parse(
        self,
        data: str,
        resource: Resource,
        partial: bool = False,
        incremental: bool = False,
    ) -> bool:
        if self.log is None:
            if self.cursor is None:
                self.cursor = LineCursor(data, partial)
            else:
                self.cursor.update(data, partial, incremental)

            try:
                log = self._parse_header(self.cursor, resource)
            except IncompleteHeader as exc:
                logger.debug(f"Waiting for more data to complete the {self.kind} header ({exc})")
                self.cursor.rewind()
                return False

            self.log = log
            self.storage = self._create_storage(log)
            self._task = BatchTask(self._decode_batch, self.queue, self._token)
            was_empty = True
            self._task.run()
        else:
            was_empty = len(self.log.states) == 0
            if self._finished or self.cursor is None or self._task is None:
                return False
            if self.cursor.update(data, partial, incremental):
                self._task.run()

        log = self.log
        if log is None:
            return False
        if not partial and not log.states:
            # A complete resource must yield a state within this call.
            self._task.run_until(lambda: len(log.states) > 0)
            if not log.states:
                raise EmptyLogError(f"Empty {self.kind} file!")

        return was_empty and len(log.states) > 0

    def get_log(self) -> SimulationLog | None:
        return self.log

    def dispose(self, keep_cursor_alive: bool = False) -> None:
        self._token.cancel()
        self._token = CancellationToken()

        if self.cursor is not None and not keep_cursor_alive:
            self.cursor.dispose()

        self.cursor = None
        self.log = None
        self.storage = None
        self._task = None
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def pending(self) -> bool:
        """True while a continuation batch is queued."""
        return self._task is not None and self._task.scheduled

    # -- body driver -------------------------------------------------------

    def _decode_batch(self) -> bool:
        cursor, log, storage = self.cursor, self.log, self.storage
        if cursor is None or log is None or storage is None:
            return False

        line = cursor.line if cursor.line is not None else cursor.next()
        states_before = len(log.states)
        count = 0

        while line is not None and count < storage.max_lines:
            self._decode_line_safe(line, cursor.line_no)
            if self.log is not log:
                # disposed from a listener
                return False
            count += 1
            line = cursor.next()

        if len(log.states) > states_before:
            log.on_states_updated()
            if self.log is not log:
                return False

        if line is not None:
            return True

        if not cursor.partial:
            self._finish()
        return False

    def _decode_line_safe(self, line: str, line_no: int) -> None:
        try:
            problem = self._decode_line(line)
        except RECOVERABLE_ERRORS as exc:
            problem = f"{type(exc).__name__}: {exc}"

        if problem:
            self._report(line, line_no, problem)

    def _report(self, line: str, line_no: int, problem: str) -> None:
        tag = line.split(" ", 1)[0][:20]
        if len(self.diagnostics) < self.diagnostics.capacity:
            logger.warning(f"Skipping {self.kind} line {line_no} ({tag}): {problem}")
        self.diagnostics.add(DecodeDiagnostic(line_no=line_no, tag=tag, message=problem))

    def _finish(self) -> None:
        if self.cursor is None or self.log is None or self.storage is None:
            return
        self.cursor.dispose()

        if self.storage.partial_state is not None:
            self.storage.partial_state.append_to(self.log.states)

        self._finished = True
        self.log.finalize()
        if self.diagnostics.total:
            logger.info(f"{self.diagnostics.total} {self.kind} line(s) could not be decoded")
