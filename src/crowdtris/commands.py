"""Turn a batch of free-text replies into a single move.

Every reply is checked against four keyword sets.  A reply counts at most once
per set but may vote in several sets ("turn left" votes for both tilt and
left).  The counts are then resolved by a cascading priority where ties never
go to the higher tier.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Sequence, Tuple, Union

LOGGER = logging.getLogger(__name__)


class Intent(str, Enum):
    """Directional action applied to the active piece for one tick."""

    NONE = "none"
    LEFT = "left"
    RIGHT = "right"
    TILT_LEFT = "tilt_left"
    SOFT_DROP = "soft_drop"


# (lower-case words, emoji) per vote category.
LEFT_KEYWORDS: Tuple[Tuple[str, ...], Tuple[str, ...]] = (("left",), ("⬅️",))
RIGHT_KEYWORDS: Tuple[Tuple[str, ...], Tuple[str, ...]] = (("right",), ("➡️",))
TILT_KEYWORDS: Tuple[Tuple[str, ...], Tuple[str, ...]] = (
    ("spin", "tilt", "turn", "flip"),
    ("⤴️", "↩️"),
)
DOWN_KEYWORDS: Tuple[Tuple[str, ...], Tuple[str, ...]] = (("down", "drop"), ("⬇️",))

Messages = Iterable[Union[str, Sequence[str]]]


@dataclass(frozen=True)
class VoteTally:
    """Number of replies voting for each move."""

    left: int = 0
    right: int = 0
    tilt: int = 0
    down: int = 0


def _flatten(messages: Messages) -> Iterator[str]:
    for item in messages:
        if isinstance(item, str):
            yield item
        else:
            yield from item


def _matches(text: str, keywords: Tuple[Tuple[str, ...], Tuple[str, ...]]) -> bool:
    words, emoji = keywords
    lowered = text.lower()
    return any(word in lowered for word in words) or any(symbol in text for symbol in emoji)


def count_votes(messages: Messages) -> VoteTally:
    """Count the replies matching each keyword set.

    ``messages`` may be a flat list of strings or a list of batches (lists of
    strings); batches are read in order.
    """

    texts: List[str] = list(_flatten(messages))
    return VoteTally(
        left=sum(_matches(text, LEFT_KEYWORDS) for text in texts),
        right=sum(_matches(text, RIGHT_KEYWORDS) for text in texts),
        tilt=sum(_matches(text, TILT_KEYWORDS) for text in texts),
        down=sum(_matches(text, DOWN_KEYWORDS) for text in texts),
    )


def resolve_intent(tally: VoteTally) -> Intent:
    """Pick one move from ``tally``.

    Tilt beats everything it strictly outnumbers, then left, then right, then
    down.  A tier that is tied with any lower tier falls through.
    """

    if tally.tilt > 0 and tally.tilt > tally.left and tally.tilt > tally.right and tally.tilt > tally.down:
        return Intent.TILT_LEFT
    if tally.left > 0 and tally.left > tally.right and tally.left > tally.down:
        return Intent.LEFT
    if tally.right > 0 and tally.right > tally.down:
        return Intent.RIGHT
    if tally.down > 0:
        return Intent.SOFT_DROP
    return Intent.NONE


def interpret(messages: Messages) -> Intent:
    """Return the intent voted for by ``messages``."""

    tally = count_votes(messages)
    intent = resolve_intent(tally)
    LOGGER.debug("Votes %s resolved to %s", tally, intent.value)
    return intent
