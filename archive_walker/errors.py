"""
Domain exceptions for archive_walker.

Notes
-----
Only failures that prevent a walk from starting are raised. Failures on an
individual entry during traversal are carried on that entry instead
(see ``WalkEntry.error``) and never unwind the walk.
"""

from __future__ import annotations

from pathlib import Path


class WalkerError(RuntimeError):
    """Base exception for all walker domain failures."""


class RootResolutionError(WalkerError):
    """
    Raised when the walk root does not exist or cannot be stat'ed.

    Attributes
    ----------
    path:
        The root path as given by the caller.
    """

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(message)
        self.path = path


class WalkerConfigError(WalkerError, ValueError):
    """Raised when walker options hold invalid values."""
