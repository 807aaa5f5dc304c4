"""Format decoders producing :class:`~simlog_py.core.log.SimulationLog` instances.

Each decoder reads a header, then decodes the body line by line in
bounded batches.
"""

from __future__ import annotations

from .base import LineLogDecoder
from .replay import ReplayDecoder, ReplayFormat, select_replay_format
from .ulg import ULGDecoder

__all__ = [
    "LineLogDecoder",
    "ReplayDecoder",
    "ReplayFormat",
    "ULGDecoder",
    "select_replay_format",
]
