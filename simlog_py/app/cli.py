"""CLI argument parsing for the log summary tool."""

from __future__ import annotations

import argparse


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Decode a RoboCup soccer simulation log and print a summary.")
    parser.add_argument(
        "log_file",
        type=str,
        help="Path to a .replay/.rpl2d/.rpl3d or .rcg file (optionally gzipped).",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to decoder_config.yaml (defaults to the packaged one).",
    )
    parser.add_argument(
        "--chunked",
        action="store_true",
        help="Feed the file in partial chunks like a streaming download.",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Characters per chunk in --chunked mode (overrides the config).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (overrides the config).",
    )
    return parser.parse_args(argv)
