"""Exception types raised by diascript."""
from __future__ import annotations

from typing import List, Optional


class DiascriptError(Exception):
    """Base class for diascript errors, carrying a stable code for the CLI."""

    code = "E_DIASCRIPT"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigurationError(DiascriptError, ValueError):
    """Raised when a shape or line is declared with invalid configuration."""

    code = "E_CONFIG"


class LayoutError(DiascriptError):
    """Raised when a shape fails to produce a usable size during layout.

    ``path`` lists the shape descriptions from the outermost container down to
    the offending shape; containers prepend themselves while the error
    propagates.
    """

    code = "E_LAYOUT"

    def __init__(self, message: str, path: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.path: List[str] = list(path or [])

    def __str__(self) -> str:
        if not self.path:
            return self.message
        return f"{self.message} (at {' > '.join(self.path)})"


class MeasurementError(LayoutError):
    """Raised when the text-measurement service is missing or fails."""

    code = "E_MEASURE"
