"""Exception types raised by the game and its collaborators.

A stack reaching the top of the board is not an error; :meth:`Grid.tick`
reports it through :class:`~crowdtris.grid.TickOutcome` and resets.
"""

from __future__ import annotations


class CrowdtrisError(Exception):
    """Base class for every error raised by this package."""


class PersistenceLoadError(CrowdtrisError):
    """Saved state is missing, unreadable or malformed."""


class CollaboratorError(CrowdtrisError):
    """An external collaborator (reply feed, publisher) failed."""


class ExternalFetchError(CollaboratorError):
    """Replies could not be fetched."""


class PublishError(CollaboratorError):
    """The rendered board could not be published."""
