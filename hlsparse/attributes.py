"""
Attribute-list parsing (RFC 8216 section 4.2).

An attribute-list is a comma separated list of ``NAME=VALUE`` pairs where a
value may be a quoted-string containing commas. The body is tokenized by a
small state machine, then each value is converted once into its typed form.
"""

from __future__ import annotations

import re
from decimal import Decimal
from collections.abc import Mapping
from typing import Iterator, NamedTuple, Union

from hlsparse.errors import PlaylistSyntaxError, PlaylistValueError

# value kinds used by the tag schemas
QUOTED_STRING = "quoted-string"
ENUMERATED_STRING = "enumerated-string"
DECIMAL_INTEGER = "decimal-integer"
HEXADECIMAL_SEQUENCE = "hexadecimal-sequence"
DECIMAL_FLOATING_POINT = "decimal-floating-point"
SIGNED_DECIMAL_FLOATING_POINT = "signed-decimal-floating-point"
DECIMAL_RESOLUTION = "decimal-resolution"
QUOTED_OR_ENUMERATED = "quoted-string or enumerated-string"

MAX_DECIMAL_INTEGER = 2**64 - 1

DECIMAL_INTEGER_PATTERN = re.compile(r"^[0-9]+$")
HEXADECIMAL_PATTERN = re.compile(r"^0[xX][0-9A-Fa-f]+$")
FLOAT_PATTERN = re.compile(r"^[0-9]+(?:\.[0-9]*)?$")
SIGNED_FLOAT_PATTERN = re.compile(r"^-?[0-9]+(?:\.[0-9]*)?$")
RESOLUTION_PATTERN = re.compile(r"^([0-9]+)x([0-9]+)$")


class EnumeratedString(str):
    """An unquoted attribute value such as ``AES-128`` or ``YES``."""

    __slots__ = ()

    def __repr__(self):
        return "EnumeratedString(%s)" % str.__repr__(self)


class HexSequence(str):
    """
    A hexadecimal-sequence attribute value, kept in its ``0x`` form.

    Ex.: ``0x9c7db8778570d05c3177c349fd9236aa``
    """

    __slots__ = ()

    def to_bytes(self) -> bytes:
        digits = self[2:]
        if len(digits) % 2:
            digits = "0" + digits
        return bytes.fromhex(digits)

    def to_int(self) -> int:
        return int(self[2:], 16)

    def __repr__(self):
        return "HexSequence(%s)" % str.__repr__(self)


class Resolution(NamedTuple):
    width: int
    height: int

    def __str__(self):
        return "%dx%d" % (self.width, self.height)


AttributeValue = Union[str, EnumeratedString, HexSequence, int, float, Resolution]


class AttributeList(Mapping):
    """
    Read-only, ordered mapping of attribute names to typed values.

    Names are kept as they appear in the playlist (``GROUP-ID``).
    """

    __slots__ = ("_items",)

    def __init__(self, items=()):
        self._items = dict(items)

    def __getitem__(self, name: str) -> AttributeValue:
        return self._items[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self):
        return hash(tuple(self._items.items()))

    def __repr__(self):
        return "AttributeList(%r)" % self._items

    def __str__(self):
        return ",".join("%s=%s" % (name, format_value(value)) for name, value in self._items.items())


_NAME, _VALUE, _QUOTED, _AFTER_QUOTE = range(4)


def tokenize(body: str, tag: str | None = None, lineno: int | None = None,
             line: str | None = None) -> list[tuple[str, str, bool]]:
    """
    Split an attribute-list body into ``(name, value, quoted)`` triples.

    Commas inside a quoted-string never end a value.
    """

    def error(message):
        if tag:
            message = "%s: %s" % (tag, message)
        return PlaylistSyntaxError(message, lineno, line)

    tokens = []
    seen = set()

    def emit(name, value, quoted):
        if name in seen:
            raise error("duplicate attribute %s" % name)
        if not quoted and not value:
            raise error("attribute %s has no value" % name)
        seen.add(name)
        tokens.append((name, value, quoted))

    state = _NAME
    start = 0
    name = ""
    for pos, char in enumerate(body):
        if state == _NAME:
            if char == "=":
                name = body[start:pos].strip()
                if not name:
                    raise error("empty attribute name")
                state = _VALUE
                start = pos + 1
            elif char == ",":
                raise error("attribute %r has no value" % body[start:pos].strip())
            elif char == '"':
                raise error("unexpected quote in attribute name")
        elif state == _VALUE:
            if char == '"':
                if body[start:pos].strip():
                    raise error("unexpected quote in value of %s" % name)
                state = _QUOTED
                start = pos + 1
            elif char == ",":
                emit(name, body[start:pos].strip(), False)
                state = _NAME
                start = pos + 1
        elif state == _QUOTED:
            if char == '"':
                emit(name, body[start:pos], True)
                state = _AFTER_QUOTE
        else:
            if char == ",":
                state = _NAME
                start = pos + 1
            elif not char.isspace():
                raise error("unexpected %r after quoted value of %s" % (char, name))

    if state == _QUOTED:
        raise error("unterminated quoted-string in %s" % name)
    if state == _VALUE:
        emit(name, body[start:].strip(), False)
    elif state == _NAME and body[start:].strip():
        raise error("attribute %r has no value" % body[start:].strip())
    return tokens


def infer_value(value: str, quoted: bool) -> AttributeValue:
    """Type a value from its lexical form alone."""
    if quoted:
        return value
    if DECIMAL_INTEGER_PATTERN.match(value):
        return int(value)
    if HEXADECIMAL_PATTERN.match(value):
        return HexSequence(value)
    if SIGNED_FLOAT_PATTERN.match(value):
        return float(value)
    match = RESOLUTION_PATTERN.match(value)
    if match:
        return Resolution(int(match.group(1)), int(match.group(2)))
    return EnumeratedString(value)


def convert_value(kind: str, value: str, quoted: bool, tag: str | None = None,
                  name: str | None = None, lineno: int | None = None,
                  line: str | None = None) -> AttributeValue:
    """Convert a value to the type ``kind`` declares for it."""

    def invalid():
        shown = '"%s"' % value if quoted else value
        return PlaylistValueError(
            "%s: invalid %s for %s: %s" % (tag, kind, name, shown),
            tag=tag, field=name, lineno=lineno, line=line,
        )

    if kind == QUOTED_STRING:
        if not quoted:
            raise invalid()
        return value
    if kind == QUOTED_OR_ENUMERATED:
        return value if quoted else EnumeratedString(value)
    if quoted:
        raise invalid()
    if kind == ENUMERATED_STRING:
        return EnumeratedString(value)
    if kind == DECIMAL_INTEGER:
        if not DECIMAL_INTEGER_PATTERN.match(value) or int(value) > MAX_DECIMAL_INTEGER:
            raise invalid()
        return int(value)
    if kind == HEXADECIMAL_SEQUENCE:
        if not HEXADECIMAL_PATTERN.match(value):
            raise invalid()
        return HexSequence(value)
    if kind == DECIMAL_FLOATING_POINT:
        if not FLOAT_PATTERN.match(value):
            raise invalid()
        return float(value)
    if kind == SIGNED_DECIMAL_FLOATING_POINT:
        if not SIGNED_FLOAT_PATTERN.match(value):
            raise invalid()
        return float(value)
    if kind == DECIMAL_RESOLUTION:
        match = RESOLUTION_PATTERN.match(value)
        if not match:
            raise invalid()
        return Resolution(int(match.group(1)), int(match.group(2)))
    raise ValueError("unknown attribute kind %r" % kind)


def parse_attribute_list(body: str, schema: Mapping[str, str] | None = None,
                         tag: str | None = None, lineno: int | None = None,
                         line: str | None = None) -> AttributeList:
    """
    Parse an attribute-list body.

    Attributes named in ``schema`` are converted to their declared kind and
    rejected when they do not match it; any other attribute keeps the type
    its lexical form suggests.
    """
    schema = schema or {}
    attributes = []
    for name, value, quoted in tokenize(body, tag, lineno, line):
        kind = schema.get(name)
        if kind is None:
            typed = infer_value(value, quoted)
        else:
            typed = convert_value(kind, value, quoted, tag, name, lineno, line)
        attributes.append((name, typed))
    return AttributeList(attributes)


def format_value(value: AttributeValue) -> str:
    """Render a typed value the way it is written in an attribute-list."""
    if isinstance(value, (EnumeratedString, HexSequence)):
        return str(value)
    if isinstance(value, str):
        return quoted(value)
    if isinstance(value, Resolution):
        return str(value)
    if isinstance(value, float):
        return float_to_string(value)
    return str(value)


def float_to_string(value: float) -> str:
    """Positional notation of ``value``; ``1e-05`` becomes ``0.00001``."""
    output = format(Decimal(repr(value)), "f")
    if "." not in output:
        output += ".0"
    return output


def quoted(string: str) -> str:
    return '"%s"' % string
