"""
Exception types raised by the DEM rendering pipeline.

All failures surface as a subclass of ``DEMViewerError`` so callers (the CLI in
particular) can catch them in one place. No-data cells are never an error.
"""

from typing import Optional


class DEMViewerError(Exception):
    """Base class for all dem-viewer failures."""


class ParseError(DEMViewerError, ValueError):
    """
    Malformed ASCII Grid input.

    Attributes:
        line: 1-based line number of the offending line, if known
        token: The offending token, if known
    """

    def __init__(self, message: str, line: Optional[int] = None, token: Optional[str] = None):
        self.message = message
        self.line = line
        self.token = token
        super().__init__(str(self))

    def __str__(self):
        location = ""
        if self.line is not None:
            location = f"line {self.line}: "
        if self.token is not None:
            return f"{location}{self.message} (token {self.token!r})"
        return f"{location}{self.message}"


class ConfigError(DEMViewerError, ValueError):
    """Unknown render mode or invalid light-source configuration."""


class IoError(DEMViewerError, OSError):
    """Input file missing, unreadable or not decodable."""

    def __init__(self, message: str, path=None):
        self.path = path
        super().__init__(message)

    def __str__(self):
        if self.path is not None:
            return f"{self.args[0]}: {self.path}"
        return self.args[0]
