"""External collaborators: where replies come from and where boards go.

The real social network client lives outside this package.  Anything that
implements :class:`SocialClient` can drive a :class:`~crowdtris.session.Session`;
:class:`ReplyFileClient` is a local stand-in that reads replies from a text
file, which is handy for running the game by hand.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional, Protocol, TextIO, Union

from .errors import ExternalFetchError, PublishError

LOGGER = logging.getLogger(__name__)

# Separates successive boards in an outbox file.
POST_SEPARATOR = "\n\n"


class SocialClient(Protocol):
    """Interface the session expects from a message feed."""

    def latest_post_id(self) -> Optional[str]:
        """Return the identifier of the last published board, if any."""

    def fetch_replies(self, post_id: Optional[str]) -> List[str]:
        """Return the text of every reply to ``post_id``, oldest first.

        Raises:
            ExternalFetchError: If the replies cannot be retrieved.
        """

    def publish(self, text: str) -> str:
        """Publish ``text`` and return the new post identifier.

        Raises:
            PublishError: If publishing fails.
        """


class ReplyFileClient:
    """File-backed client.

    Every non-blank line of ``replies_path`` is one reply to the latest post.
    Published boards are appended to ``outbox_path`` or written to ``stream``
    when no outbox is configured.
    """

    def __init__(
        self,
        replies_path: Union[str, Path],
        outbox_path: Optional[Union[str, Path]] = None,
        *,
        stream: Optional[TextIO] = None,
    ) -> None:
        self.replies_path = Path(replies_path)
        self.outbox_path = Path(outbox_path) if outbox_path is not None else None
        self.stream = stream
        self.posts = 0

    def latest_post_id(self) -> Optional[str]:
        return str(self.posts) if self.posts else None

    def fetch_replies(self, post_id: Optional[str]) -> List[str]:
        try:
            text = self.replies_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            LOGGER.debug("No reply file at %s", self.replies_path)
            return []
        except (OSError, UnicodeDecodeError) as exc:
            raise ExternalFetchError(f"Cannot read replies from {self.replies_path}: {exc}") from exc
        return [line.strip() for line in text.splitlines() if line.strip()]

    def publish(self, text: str) -> str:
        try:
            if self.outbox_path is None:
                stream = self.stream or sys.stdout
                stream.write(text + "\n")
                stream.flush()
            else:
                self.outbox_path.parent.mkdir(parents=True, exist_ok=True)
                with self.outbox_path.open("a", encoding="utf-8") as fh:
                    fh.write(text + POST_SEPARATOR)
        except OSError as exc:
            raise PublishError(f"Cannot publish board: {exc}") from exc
        self.posts += 1
        return str(self.posts)
