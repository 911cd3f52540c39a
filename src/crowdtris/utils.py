"""Utility helpers shared by the engine and the session layer."""

from __future__ import annotations

from typing import Hashable, Iterable, List, TypeVar

from .board import EMPTY, LIGHT_BACKGROUND

T = TypeVar("T", bound=Hashable)

# Hours (24h clock) during which the dark background is used.
DARK_START_HOUR = 23
DARK_END_HOUR = 10


def unique_in_order(values: Iterable[T]) -> List[T]:
    """Return each distinct value of ``values`` once, in first-seen order."""

    return list(dict.fromkeys(values))


def is_dark_hour(hour: int, start: int = DARK_START_HOUR, end: int = DARK_END_HOUR) -> bool:
    """Return ``True`` if ``hour`` falls in the night window ``[start, end)``.

    The window wraps past midnight when ``start > end``.
    """

    if start <= end:
        return start <= hour < end
    return hour >= start or hour < end


def background_for_hour(hour: int, start: int = DARK_START_HOUR, end: int = DARK_END_HOUR) -> str:
    """Return the glyph used for empty cells at ``hour``."""

    return EMPTY if is_dark_hour(hour, start, end) else LIGHT_BACKGROUND
