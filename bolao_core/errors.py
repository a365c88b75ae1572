"""Error taxonomy raised by the resolution engine.

Every error is raised before anything is staged, so a failed call never
leaves a partial ChangeSet behind.
"""
from __future__ import annotations


class ResolutionError(Exception):
    """Base class; ``kind`` is a stable tag callers can map to status codes."""

    kind = "resolution_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.kind)
        self.message = message


class InvalidInput(ResolutionError, ValueError):
    """Malformed scoreline, empty team set, non-positive team count, etc."""

    kind = "invalid_input"


class PrematureResolution(ResolutionError, RuntimeError):
    """The deciding match or quiz round is not finished yet."""

    kind = "premature_resolution"


class AlreadyResolved(ResolutionError, RuntimeError):
    """The outcome or round was already scored; resolving again would double count."""

    kind = "already_resolved"


__all__ = [
    "ResolutionError",
    "InvalidInput",
    "PrematureResolution",
    "AlreadyResolved",
]
