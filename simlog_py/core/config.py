"""Config loading and normalization for the log decoders."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[1] / "decoder_config.yaml"


@dataclass
class NormalizedDecoderConfig:
    """Normalized config used by decoders and the loader."""

    config_path: Path | None
    replay_2d_batch: int = 300
    replay_3d_batch: int = 50
    ulg_batch: int = 100
    max_diagnostics: int = 100
    chunk_size: int = 65536
    log_level: str = "INFO"


def load_decoder_config(path: Path) -> dict[str, Any]:
    """Load decoder YAML config from disk.

    Missing files are handled gracefully and return an empty config.
    """
    if not path.exists():
        return {}

    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def normalize_decoder_config(raw_cfg: dict[str, Any], config_path: Path | None = None) -> NormalizedDecoderConfig:
    batch_cfg = dict(raw_cfg.get("batch", {}) or {})
    loader_cfg = dict(raw_cfg.get("loader", {}) or {})
    log_cfg = dict(raw_cfg.get("logging", {}) or {})

    return NormalizedDecoderConfig(
        config_path=config_path,
        replay_2d_batch=int(batch_cfg.get("replay_2d", 300)),
        replay_3d_batch=int(batch_cfg.get("replay_3d", 50)),
        ulg_batch=int(batch_cfg.get("ulg", 100)),
        max_diagnostics=int(raw_cfg.get("max_diagnostics", 100)),
        chunk_size=max(1, int(loader_cfg.get("chunk_size", 65536))),
        log_level=str(log_cfg.get("level", "INFO")).upper(),
    )


def config_from_args(args: argparse.Namespace) -> NormalizedDecoderConfig:
    """Normalize YAML config plus CLI overrides into one runtime object."""
    config_path = Path(args.config) if args.config is not None else DEFAULT_CONFIG_PATH
    cfg = normalize_decoder_config(load_decoder_config(config_path), config_path)

    if getattr(args, "chunk_size", None) is not None:
        cfg.chunk_size = max(1, int(args.chunk_size))
    if getattr(args, "log_level", None) is not None:
        cfg.log_level = str(args.log_level).upper()

    return cfg


def default_decoder_config() -> NormalizedDecoderConfig:
    return normalize_decoder_config(load_decoder_config(DEFAULT_CONFIG_PATH), DEFAULT_CONFIG_PATH)
