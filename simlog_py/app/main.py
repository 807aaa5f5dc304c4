"""Main entrypoint for the log summary tool."""

from __future__ import annotations

import logging

from ..core.config import config_from_args
from ..core.errors import ParserError
from ..core.log import SimulationLog
from .cli import parse_args
from .loader import SimulationLogLoader

logger = logging.getLogger(__name__)


def summarize(log: SimulationLog) -> list[str]:
    lines = [
        f"Resource: {log.resource}",
        f"Type: {log.type.name} ({type(log).__name__} v{getattr(log, 'version', '?')})",
        f"Teams: {log.left_team.name} vs {log.right_team.name}",
        f"Frequency: {log.frequency:.1f} Hz",
        f"States: {len(log.states)} ({log.start_time:.2f}s - {log.end_time:.2f}s, duration {log.duration:.2f}s)",
    ]
    if log.game_score_list:
        final = log.game_score_list[-1]
        lines.append(f"Final score: {final.goals_left}:{final.goals_right}")
    lines.append(f"Play mode changes: {len(log.game_state_list)}, score changes: {len(log.game_score_list)}")
    return lines


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    cfg = config_from_args(args)

    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    logger.info("=" * 60)
    logger.info("Decoding simulation log")
    logger.info("=" * 60)
    logger.info(f"Loading config from: {cfg.config_path}")

    loader = SimulationLogLoader(cfg)
    try:
        log = loader.load_file(args.log_file, chunked=args.chunked)
    except ParserError as exc:
        logger.error(f"Failed to decode {args.log_file}: {exc}")
        raise SystemExit(1)
    except (OSError, ValueError) as exc:
        logger.error(str(exc))
        raise SystemExit(1)

    for line in summarize(log):
        print(line)

    diagnostics = getattr(loader.decoder, "diagnostics", None)
    if diagnostics is not None and diagnostics.total:
        logger.warning(f"{diagnostics.total} line(s) skipped while decoding")


if __name__ == "__main__":
    main()
