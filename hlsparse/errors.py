"""
Exceptions raised while reading a playlist.

Every error carries the line number and the offending line when they are
known. ``ParseError`` subclasses abort a parse; ``ValidationError`` instances
are collected by the validator and only raised in strict mode.
"""

from __future__ import annotations


class HLSParseError(Exception):
    """Base class for every error this package raises."""

    def __init__(self, message: str, lineno: int | None = None, line: str | None = None):
        super().__init__(message)
        self.message = message
        self.lineno = lineno
        self.line = line

    def __str__(self):
        if self.lineno is None:
            return self.message
        if self.line is None:
            return "%s (line %d)" % (self.message, self.lineno)
        return "%s (line %d: %s)" % (self.message, self.lineno, self.line)


class ParseError(HLSParseError):
    """A hard failure: the playlist is rejected as a whole."""


class EncodingError(ParseError):
    """The input is not valid UTF-8."""


class FormatError(ParseError):
    """The mandatory ``#EXTM3U`` header is missing."""


class PlaylistSyntaxError(ParseError):
    """A malformed attribute-list or tag body."""


class PlaylistValueError(ParseError, ValueError):
    """A bad numeric or enumerated literal within a known tag."""

    def __init__(self, message: str, tag: str | None = None, field: str | None = None,
                 lineno: int | None = None, line: str | None = None):
        super().__init__(message, lineno, line)
        self.tag = tag
        self.field = field


class StructuralError(ParseError):
    """Mode ambiguity, an orphan URI or a tag ordering violation."""


class ValidationError(HLSParseError):
    """A semantic issue found after the playlist was assembled."""
