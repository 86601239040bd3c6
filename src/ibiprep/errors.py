"""Exception hierarchy for ibiprep.

Every stage raises a subclass of :class:`IbiPrepError`.  Each class also
derives from the closest builtin exception so callers that only catch
``ValueError`` or ``FileNotFoundError`` keep working.
"""

from __future__ import annotations

import pathlib
from typing import Optional, Union

PathLike = Union[str, pathlib.Path]


class IbiPrepError(Exception):
    """Base class for all pipeline failures."""

    def __init__(self, message: str, *, path: Optional[PathLike] = None):
        self.path = str(path) if path is not None else None
        self.message = message
        super().__init__(f"{self.path}: {message}" if self.path else message)


class NotFoundError(IbiPrepError, FileNotFoundError):
    """Raised when an input file does not exist."""


class FormatError(IbiPrepError, ValueError):
    """Raised for unsupported file extensions or unreadable layouts."""

    def __init__(self, message: str, *, path: Optional[PathLike] = None, extension: str | None = None):
        self.extension = extension
        super().__init__(message, path=path)


class CaseNotFoundError(IbiPrepError, LookupError):
    """Raised when a case identifier is absent from a timing file."""

    def __init__(self, case_id: str, *, path: Optional[PathLike] = None):
        self.case_id = case_id
        super().__init__(f"case ID {case_id!r} not found in timing file", path=path)


class ConversionError(IbiPrepError, ValueError):
    """Raised when a field that must be numeric cannot be converted."""

    def __init__(
        self,
        field: str,
        raw: object,
        *,
        path: Optional[PathLike] = None,
        line: int | None = None,
    ):
        self.field = field
        self.raw = raw
        self.line = line
        where = f"line {line}, " if line is not None else ""
        super().__init__(f"{where}field {field!r}: cannot convert {raw!r} to a number", path=path)


class MalformedTimingError(IbiPrepError, ValueError):
    """Raised when timing columns are not strictly (Start, Stop) paired."""


class FilterDesignError(IbiPrepError, ValueError):
    """Raised when the band-pass filter cannot be built or applied."""


class EmptyWindowError(IbiPrepError, ValueError):
    """Raised when trimming selects no samples."""

    def __init__(self, low: float, high: float, span: tuple[float, float] | None = None):
        self.low = low
        self.high = high
        self.span = span
        msg = f"no samples between {low:g} s and {high:g} s"
        if span is not None:
            msg += f" (recording spans {span[0]:g} s to {span[1]:g} s)"
        super().__init__(msg)


__all__ = [
    "IbiPrepError",
    "NotFoundError",
    "FormatError",
    "CaseNotFoundError",
    "ConversionError",
    "MalformedTimingError",
    "FilterDesignError",
    "EmptyWindowError",
]
