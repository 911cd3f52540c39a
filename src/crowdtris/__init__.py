"""Falling-block puzzle driven by crowd-voted replies."""

from .board import Board, EMPTY, LIGHT_BACKGROUND
from .piece import DEFAULT_SHAPES, Piece, Shape
from .grid import Grid, TickOutcome
from .commands import Intent, VoteTally, count_votes, interpret, resolve_intent
from .clients import ReplyFileClient, SocialClient
from .errors import (
    CollaboratorError,
    CrowdtrisError,
    ExternalFetchError,
    PersistenceLoadError,
    PublishError,
)
from .session import Session, SessionConfig, TickReport, load_grid, load_or_create, run_one_tick, save

__all__ = [
    "Board",
    "EMPTY",
    "LIGHT_BACKGROUND",
    "DEFAULT_SHAPES",
    "Piece",
    "Shape",
    "Grid",
    "TickOutcome",
    "Intent",
    "VoteTally",
    "count_votes",
    "interpret",
    "resolve_intent",
    "ReplyFileClient",
    "SocialClient",
    "CrowdtrisError",
    "CollaboratorError",
    "ExternalFetchError",
    "PersistenceLoadError",
    "PublishError",
    "Session",
    "SessionConfig",
    "TickReport",
    "load_grid",
    "load_or_create",
    "run_one_tick",
    "save",
]
