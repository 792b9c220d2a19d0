"""
Line classifier for Extended M3U text.

Splits playlist text into ``TagLine``, ``CommentLine``, ``BlankLine`` and
``UriLine`` values, lazily, checking the ``#EXTM3U`` header on the way.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Union

from hlsparse import protocol
from hlsparse.errors import EncodingError, FormatError

BOM = "\ufeff"


@dataclass(frozen=True)
class TagLine:
    """A line starting with ``#EXT``: the tag name and its raw body, if any."""

    name: str
    body: str | None
    lineno: int = field(default=0, compare=False)

    @property
    def text(self) -> str:
        if self.body is None:
            return "#" + self.name
        return "#%s:%s" % (self.name, self.body)


@dataclass(frozen=True)
class CommentLine:
    text: str
    lineno: int = field(default=0, compare=False)


@dataclass(frozen=True)
class BlankLine:
    lineno: int = field(default=0, compare=False)

    @property
    def text(self) -> str:
        return ""


@dataclass(frozen=True)
class UriLine:
    uri: str
    lineno: int = field(default=0, compare=False)

    @property
    def text(self) -> str:
        return self.uri


Line = Union[TagLine, CommentLine, BlankLine, UriLine]


def decode(content: str | bytes) -> str:
    """Return ``content`` as text, rejecting anything that is not UTF-8.

    A single leading byte order mark is dropped.
    """
    if isinstance(content, (bytes, bytearray, memoryview)):
        try:
            text = bytes(content).decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError("invalid UTF-8 at byte %d" % e.start) from e
    else:
        try:
            content.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodingError("invalid UTF-8 at character %d" % e.start) from e
        text = content
    if text.startswith(BOM):
        text = text[len(BOM):]
    return text


def split_lines(text: str) -> Iterator[str]:
    """Yield the lines of ``text`` split on ``\\n`` or ``\\r\\n``."""
    start = 0
    length = len(text)
    while start < length:
        end = text.find("\n", start)
        if end == -1:
            yield text[start:]
            return
        line = text[start:end]
        if line.endswith("\r"):
            line = line[:-1]
        yield line
        start = end + 1


def classify(raw: str, lineno: int = 0) -> Line:
    line = raw.rstrip()
    if not line:
        return BlankLine(lineno)
    if line.startswith("#EXT"):
        name, sep, body = line[1:].partition(":")
        return TagLine(name, body if sep else None, lineno)
    if line.startswith("#"):
        return CommentLine(line, lineno)
    return UriLine(line, lineno)


def iter_lines(content: str | bytes) -> Iterator[Line]:
    """
    Classify every line of a playlist.

    Encoding problems are reported immediately; the header check happens
    when the first non-blank line is reached.

    Raises:
        EncodingError: if ``content`` is not valid UTF-8.
        FormatError: if the first non-blank line is not ``#EXTM3U``.
    """
    return _iter_classified(decode(content))


def _iter_classified(text: str) -> Iterator[Line]:
    seen_header = False
    for lineno, raw in enumerate(split_lines(text), 1):
        line = classify(raw, lineno)
        if not seen_header and not isinstance(line, BlankLine):
            if not (isinstance(line, TagLine) and line.name == protocol.extm3u and line.body is None):
                raise FormatError("missing #EXTM3U header", lineno, raw.rstrip())
            seen_header = True
        yield line
    if not seen_header:
        raise FormatError("missing #EXTM3U header")
