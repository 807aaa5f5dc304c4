"""Local file loading for simulation logs."""

from __future__ import annotations

import gzip
import logging
from pathlib import Path

from ..core.config import NormalizedDecoderConfig, default_decoder_config
from ..core.interfaces import LogDecoder
from ..core.log import SimulationLog
from ..core.registry import create_decoder, decoder_name_for, register_builtin_decoders
from ..core.tasks import TaskQueue

logger = logging.getLogger(__name__)


def read_log_text(path: Path) -> str:
    """Read a log file as text, inflating gzip-compressed files."""
    raw = path.read_bytes()
    if raw[:2] == b"\x1f\x8b":
        raw = gzip.decompress(raw)
    return raw.decode("utf-8", errors="replace")


class SimulationLogLoader:
    """Feeds a local log file to the matching decoder.

    In chunked mode the text is handed over in ``chunk_size`` pieces as
    partial, incremental data, the way a download in progress would be.
    """

    def __init__(self, cfg: NormalizedDecoderConfig | None = None) -> None:
        self.cfg = cfg if cfg is not None else default_decoder_config()
        self.queue = TaskQueue()
        self.decoder: LogDecoder | None = None
        register_builtin_decoders()

    def load_file(self, path: str | Path, chunked: bool = False) -> SimulationLog:
        path = Path(path)
        decoder_name = decoder_name_for(path.name)
        logger.info(f"Loading {path} with {decoder_name} decoder")

        text = read_log_text(path)
        decoder = create_decoder(decoder_name, config=self.cfg, queue=self.queue)
        self.decoder = decoder

        try:
            if chunked:
                self._feed_chunks(decoder, text, path)
            else:
                decoder.parse(text, path)
                self.queue.drain()
        except Exception:
            decoder.dispose()
            self.decoder = None
            raise

        log = decoder.get_log()
        assert log is not None
        return log

    def _feed_chunks(self, decoder: LogDecoder, text: str, path: Path) -> None:
        size = self.cfg.chunk_size
        for start in range(0, len(text), size):
            chunk = text[start : start + size]
            if decoder.parse(chunk, path, partial=True, incremental=True):
                logger.debug(f"First states available after {start + len(chunk)} characters")
            self.queue.drain()

        decoder.parse("", path, partial=False, incremental=True)
        self.queue.drain()

    def dispose(self) -> None:
        if self.decoder is not None:
            self.decoder.dispose()
            self.decoder = None
