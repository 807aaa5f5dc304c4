"""Decoder registry and file-name based decoder selection."""

from __future__ import annotations

from collections.abc import Callable

from .config import NormalizedDecoderConfig
from .interfaces import LogDecoder
from .tasks import TaskQueue

DecoderFactory = Callable[..., LogDecoder]

DECODERS: dict[str, DecoderFactory] = {}

_BUILTINS_REGISTERED = False

# (suffix, decoder name); checked in order against the lower-cased file name
_SUFFIX_RULES = (
    (".rcg", "ulg"),
    (".rcg.gz", "ulg"),
    (".replay", "replay"),
    (".replay.gz", "replay"),
    (".rpl2d", "replay"),
    (".rpl2d.gz", "replay"),
    (".rpl3d", "replay"),
    (".rpl3d.gz", "replay"),
)


def _normalize_name(name: str) -> str:
    return str(name).lower().strip()


def register_decoder(name: str, factory: DecoderFactory) -> None:
    DECODERS[_normalize_name(name)] = factory


def create_decoder(
    name: str,
    config: NormalizedDecoderConfig | None = None,
    queue: TaskQueue | None = None,
) -> LogDecoder:
    key = _normalize_name(name)
    if key not in DECODERS:
        available = ", ".join(sorted(DECODERS)) or "none"
        raise ValueError(f"Unknown decoder '{name}'. Available: {available}")
    return DECODERS[key](config=config, queue=queue)


def decoder_name_for(file_name: str) -> str:
    """Select the decoder for a file name or URL by its extension."""
    name = str(file_name).split("?", 1)[0].lower()
    for suffix, decoder in _SUFFIX_RULES:
        if name.endswith(suffix):
            return decoder
    raise ValueError(f"Unsupported log file type: {file_name}")


def register_builtin_decoders() -> None:
    """Register built-in log decoders once."""
    global _BUILTINS_REGISTERED
    if _BUILTINS_REGISTERED:
        return

    from ..decoders.replay import ReplayDecoder
    from ..decoders.ulg import ULGDecoder

    register_decoder("replay", ReplayDecoder)
    register_decoder("ulg", ULGDecoder)

    _BUILTINS_REGISTERED = True
