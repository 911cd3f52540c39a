"""Run crowd-voted ticks from the command line.

Run with: `python -m crowdtris --replies replies.txt`

Each tick reads the votes in the reply file, advances the saved game, prints
(or appends to ``--outbox``) the rendered board and saves the new state.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from time import sleep
from typing import Optional, Sequence

from .clients import ReplyFileClient
from .session import DEFAULT_HEIGHT, DEFAULT_SAVE_PATH, DEFAULT_WIDTH, Session, SessionConfig
from .grid import DEFAULT_INTERVAL_MS


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="crowdtris", description=__doc__)
    parser.add_argument("--save", type=Path, default=DEFAULT_SAVE_PATH, help="Saved game file.")
    parser.add_argument("--width", type=int, default=DEFAULT_WIDTH, help="Width of a new board.")
    parser.add_argument("--height", type=int, default=DEFAULT_HEIGHT, help="Height of a new board.")
    parser.add_argument(
        "--replies",
        type=Path,
        default=Path("data/replies.txt"),
        help="Text file with one reply per line.",
    )
    parser.add_argument("--outbox", type=Path, default=None, help="Append boards here instead of printing.")
    parser.add_argument("--ticks", type=int, default=1, help="Number of ticks to run.")
    parser.add_argument(
        "--interval-ms",
        type=int,
        default=DEFAULT_INTERVAL_MS,
        help="Pause between ticks when running more than one.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format="%(message)s")

    config = SessionConfig(
        save_path=args.save,
        width=args.width,
        height=args.height,
        interval_ms=args.interval_ms,
    )
    session = Session(ReplyFileClient(args.replies, args.outbox), config)
    for index in range(args.ticks):
        if session.grid.paused:
            break
        session.tick()
        if index + 1 < args.ticks:
            sleep(session.grid.interval / 1000.0)


if __name__ == "__main__":
    main()
