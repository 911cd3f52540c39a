"""One game session: load state, run a tick, publish and persist.

A tick always runs in the same order: fetch replies, advance the grid, render,
publish, save.  Saving comes last so a board that failed to publish is never
written to disk.  Collaborator failures are logged and never escape
:func:`run_one_tick`; state already mutated in memory is kept as is.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from .board import EMPTY
from .clients import SocialClient
from .commands import Intent, interpret
from .errors import ExternalFetchError, PersistenceLoadError, PublishError
from .grid import DEFAULT_INTERVAL_MS, Grid, TickOutcome
from .utils import DARK_END_HOUR, DARK_START_HOUR, background_for_hour

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_SAVE_PATH = Path("data/save.json")
DEFAULT_WIDTH = 8
DEFAULT_HEIGHT = 13


@dataclass
class SessionConfig:
    save_path: Path = DEFAULT_SAVE_PATH
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    interval_ms: int = DEFAULT_INTERVAL_MS
    dark_start_hour: int = DARK_START_HOUR
    dark_end_hour: int = DARK_END_HOUR

    def background(self, hour: Optional[int] = None) -> str:
        """Return the empty-cell glyph for ``hour`` (default: the current hour)."""

        if hour is None:
            hour = datetime.now().hour
        return background_for_hour(hour, self.dark_start_hour, self.dark_end_hour)


@dataclass
class TickReport:
    """Result of :func:`run_one_tick`."""

    intent: Intent
    outcome: TickOutcome
    text: str
    published: bool = False
    saved: bool = False


def load_grid(path: PathLike) -> Grid:
    """Load a grid saved by :func:`save`.

    Raises:
        PersistenceLoadError: If the file is missing, unreadable or malformed.
    """

    try:
        with Path(path).open("r", encoding="utf-8") as fh:
            record = json.load(fh)
    except (OSError, ValueError) as exc:
        raise PersistenceLoadError(f"Cannot read saved state from {path}: {exc}") from exc
    return Grid.from_record(record)


def load_or_create(
    path: PathLike,
    default_width: int = DEFAULT_WIDTH,
    default_height: int = DEFAULT_HEIGHT,
) -> Grid:
    """Load the saved grid at ``path`` or start a fresh one."""

    try:
        return load_grid(path)
    except PersistenceLoadError as exc:
        LOGGER.warning("Starting a new %dx%d game: %s", default_width, default_height, exc)
        return Grid(default_width, default_height)


def save(grid: Grid, path: PathLike) -> None:
    """Write ``grid`` to ``path`` as JSON, creating parent directories."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(grid.to_record(), fh, indent=2, ensure_ascii=False)


def run_one_tick(
    grid: Grid,
    fetch_messages: Callable[[], Sequence[str]],
    publish: Callable[[str], object],
    save_path: PathLike,
    background: str = EMPTY,
) -> TickReport:
    """Run one full tick against the given collaborators."""

    try:
        intent = interpret(fetch_messages())
    except ExternalFetchError:
        LOGGER.warning("Could not fetch replies; no move this tick", exc_info=True)
        intent = Intent.NONE

    outcome = grid.tick(intent=intent)
    report = TickReport(intent=intent, outcome=outcome, text=grid.render_text(background))

    try:
        publish(report.text)
    except PublishError:
        LOGGER.error("Could not publish board; state not saved", exc_info=True)
        return report
    report.published = True

    try:
        save(grid, save_path)
    except OSError:
        LOGGER.error("Could not save state to %s", save_path, exc_info=True)
        return report
    report.saved = True
    return report


@dataclass
class Session:
    """A grid bound to its save file and reply feed.

    The background glyph is resolved once when the session is created.
    """

    client: SocialClient
    config: SessionConfig = field(default_factory=SessionConfig)
    grid: Optional[Grid] = None
    background: Optional[str] = None

    def __post_init__(self) -> None:
        if self.grid is None:
            self.grid = load_or_create(self.config.save_path, self.config.width, self.config.height)
        self.grid.interval = self.config.interval_ms
        if self.background is None:
            self.background = self.config.background()

    def _fetch(self) -> Sequence[str]:
        return self.client.fetch_replies(self.client.latest_post_id())

    def tick(self) -> TickReport:
        return run_one_tick(
            self.grid,
            self._fetch,
            self.client.publish,
            self.config.save_path,
            background=self.background,
        )
