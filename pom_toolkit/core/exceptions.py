from __future__ import annotations

"""Exception classes raised by the manifest merge toolkit.

Every error that aborts a generation step derives from
:class:`PomToolkitError` so that callers can catch the whole family at the
pipeline boundary. Recoverable conditions (a missing section, a predicate that
does not match) are *not* exceptions; they are signalled through return values.
"""

from typing import Iterable, List, Optional

__all__ = [
    "PomToolkitError",
    "ParseError",
    "NoMatchingVersion",
]


class PomToolkitError(Exception):
    """Base exception for all toolkit errors.

    Carries an optional underlying exception so that the original traceback
    stays reachable from log records.
    """

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.cause = cause


class ParseError(PomToolkitError):
    """Raised when manifest text is not well-formed markup.

    Fatal for the current generation step: it is raised while loading, before
    anything is written back to disk.
    """

    def __init__(self, message: str, source: Optional[str] = None,
                 line: Optional[int] = None, column: Optional[int] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message, cause)
        self.source = source
        self.line = line
        self.column = column

    def __str__(self) -> str:
        text = super().__str__()
        if self.source:
            text = f"{self.source}: {text}"
        if self.line is not None:
            text = f"{text} (line {self.line}, column {self.column or 0})"
        return text


class NoMatchingVersion(PomToolkitError):
    """Raised when no release identifier satisfies a requested version prefix."""

    def __init__(self, requested: str, releases: Optional[Iterable[str]] = None) -> None:
        self.requested = requested
        self.releases: List[str] = list(releases or [])
        if self.releases:
            message = (
                f"No release matches version '{requested}'. "
                f"Available releases: {', '.join(self.releases)}"
            )
        else:
            message = f"No release matches version '{requested}'. No releases were provided."
        super().__init__(message)
