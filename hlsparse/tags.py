"""
Tag body grammars.

``parse_tag`` turns a tag name and its raw body into a ``Tag`` whose value is
an ``AttributeList``, a typed scalar, ``None`` for standalone tags, or the
raw body for tags this package does not know.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import NamedTuple, Union

from hlsparse import protocol
from hlsparse.attributes import (
    DECIMAL_FLOATING_POINT,
    DECIMAL_INTEGER,
    DECIMAL_INTEGER_PATTERN,
    DECIMAL_RESOLUTION,
    ENUMERATED_STRING,
    FLOAT_PATTERN,
    HEXADECIMAL_SEQUENCE,
    MAX_DECIMAL_INTEGER,
    QUOTED_OR_ENUMERATED,
    QUOTED_STRING,
    SIGNED_DECIMAL_FLOATING_POINT,
    AttributeList,
    parse_attribute_list,
)
from hlsparse.errors import PlaylistSyntaxError, PlaylistValueError
from hlsparse.model import ByteRange, PlaylistType, format_date_time, number_to_string

STREAM_INF_ATTRIBUTES = {
    "BANDWIDTH": DECIMAL_INTEGER,
    "AVERAGE-BANDWIDTH": DECIMAL_INTEGER,
    "PROGRAM-ID": DECIMAL_INTEGER,
    "CODECS": QUOTED_STRING,
    "SUPPLEMENTAL-CODECS": QUOTED_STRING,
    "RESOLUTION": DECIMAL_RESOLUTION,
    "FRAME-RATE": DECIMAL_FLOATING_POINT,
    "HDCP-LEVEL": ENUMERATED_STRING,
    "ALLOWED-CPC": QUOTED_STRING,
    "VIDEO-RANGE": ENUMERATED_STRING,
    "STABLE-VARIANT-ID": QUOTED_STRING,
    "PATHWAY-ID": QUOTED_STRING,
    "AUDIO": QUOTED_STRING,
    "VIDEO": QUOTED_STRING,
    "SUBTITLES": QUOTED_STRING,
    "CLOSED-CAPTIONS": QUOTED_OR_ENUMERATED,
}

I_FRAME_STREAM_INF_ATTRIBUTES = {
    name: kind for name, kind in STREAM_INF_ATTRIBUTES.items()
    if name not in ("FRAME-RATE", "AUDIO", "SUBTITLES", "CLOSED-CAPTIONS")
}
I_FRAME_STREAM_INF_ATTRIBUTES["URI"] = QUOTED_STRING

MEDIA_ATTRIBUTES = {
    "TYPE": ENUMERATED_STRING,
    "URI": QUOTED_STRING,
    "GROUP-ID": QUOTED_STRING,
    "LANGUAGE": QUOTED_STRING,
    "ASSOC-LANGUAGE": QUOTED_STRING,
    "NAME": QUOTED_STRING,
    "STABLE-RENDITION-ID": QUOTED_STRING,
    "DEFAULT": ENUMERATED_STRING,
    "AUTOSELECT": ENUMERATED_STRING,
    "FORCED": ENUMERATED_STRING,
    "INSTREAM-ID": QUOTED_STRING,
    "CHARACTERISTICS": QUOTED_STRING,
    "CHANNELS": QUOTED_STRING,
}

KEY_ATTRIBUTES = {
    "METHOD": ENUMERATED_STRING,
    "URI": QUOTED_STRING,
    "IV": HEXADECIMAL_SEQUENCE,
    "KEYFORMAT": QUOTED_STRING,
    "KEYFORMATVERSIONS": QUOTED_STRING,
}

MAP_ATTRIBUTES = {
    "URI": QUOTED_STRING,
    "BYTERANGE": QUOTED_STRING,
}

START_ATTRIBUTES = {
    "TIME-OFFSET": SIGNED_DECIMAL_FLOATING_POINT,
    "PRECISE": ENUMERATED_STRING,
}

SESSION_DATA_ATTRIBUTES = {
    "DATA-ID": QUOTED_STRING,
    "VALUE": QUOTED_STRING,
    "URI": QUOTED_STRING,
    "LANGUAGE": QUOTED_STRING,
}

ATTRIBUTE_SCHEMAS = {
    protocol.ext_x_stream_inf: STREAM_INF_ATTRIBUTES,
    protocol.ext_x_i_frame_stream_inf: I_FRAME_STREAM_INF_ATTRIBUTES,
    protocol.ext_x_media: MEDIA_ATTRIBUTES,
    protocol.ext_x_key: KEY_ATTRIBUTES,
    protocol.ext_x_session_key: KEY_ATTRIBUTES,
    protocol.ext_x_map: MAP_ATTRIBUTES,
    protocol.ext_x_start: START_ATTRIBUTES,
    protocol.ext_x_session_data: SESSION_DATA_ATTRIBUTES,
}

STANDALONE_TAGS = frozenset([
    protocol.extm3u,
    protocol.ext_x_endlist,
    protocol.ext_x_discontinuity,
    protocol.ext_i_frames_only,
    protocol.ext_is_independent_segments,
])

# tag -> name of its single decimal-integer field
INTEGER_TAGS = {
    protocol.ext_x_targetduration: "duration",
    protocol.ext_x_media_sequence: "number",
    protocol.ext_x_discontinuity_sequence: "number",
    protocol.ext_x_version: "version",
}


class Inf(NamedTuple):
    """The body of an EXTINF tag."""

    duration: float
    title: str | None = None


TagValue = Union[AttributeList, Inf, ByteRange, PlaylistType, datetime, int, str, None]


@dataclass(frozen=True)
class Tag:
    '''
    A parsed tag line

    `name`
      the tag name without the leading ``#``. ex.: "EXT-X-KEY"

    `value`
      an ``AttributeList`` for attribute-list tags, a typed scalar for
      EXTINF, EXT-X-BYTERANGE and the other single-value tags, ``None`` for
      standalone tags, and the raw body (or ``None``) for unknown tags
    '''

    name: str
    value: TagValue = None
    lineno: int = field(default=0, compare=False)

    @property
    def is_known(self) -> bool:
        return is_known_tag(self.name)

    def __str__(self):
        if self.value is None:
            return "#" + self.name
        return "#%s:%s" % (self.name, format_tag_value(self.value))


def format_tag_value(value: TagValue) -> str:
    if isinstance(value, Inf):
        return "%s,%s" % (number_to_string(value.duration), value.title or "")
    if isinstance(value, PlaylistType):
        return value.value
    if isinstance(value, datetime):
        return format_date_time(value)
    return str(value)


def is_known_tag(name: str) -> bool:
    return (name in ATTRIBUTE_SCHEMAS or name in STANDALONE_TAGS or name in INTEGER_TAGS
            or name in SCALAR_PARSERS)


def _line_text(name, body):
    return "#" + name if body is None else "#%s:%s" % (name, body)


def _invalid(kind, name, field_name, value, lineno, body):
    return PlaylistValueError(
        "%s: invalid %s for %s: %s" % (name, kind, field_name, value),
        tag=name, field=field_name, lineno=lineno, line=_line_text(name, body),
    )


def parse_decimal_integer(value: str, name: str, field_name: str,
                          lineno: int | None = None, body: str | None = None) -> int:
    value = value.strip()
    if not DECIMAL_INTEGER_PATTERN.match(value) or int(value) > MAX_DECIMAL_INTEGER:
        raise _invalid(DECIMAL_INTEGER, name, field_name, value, lineno, body)
    return int(value)


def parse_byte_range(value: str, name: str = protocol.ext_x_byterange,
                     lineno: int | None = None, body: str | None = None) -> ByteRange:
    """Parse ``<n>[@<o>]``."""
    length, sep, offset = value.partition("@")
    length = parse_decimal_integer(length, name, "length", lineno, body)
    if not sep:
        return ByteRange(length)
    return ByteRange(length, parse_decimal_integer(offset, name, "offset", lineno, body))


def parse_date_time(value: str, name: str = protocol.ext_x_program_date_time,
                    lineno: int | None = None, body: str | None = None) -> datetime:
    value = value.strip()
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00").replace("z", "+00:00"))
    except ValueError as e:
        raise _invalid("date-time", name, "date-time", value, lineno, body) from e


def _parse_extinf(name, body, lineno, strict):
    duration, sep, title = body.partition(",")
    if not sep and strict:
        raise PlaylistSyntaxError("%s: missing comma after duration" % name, lineno, _line_text(name, body))
    duration = duration.strip()
    if not FLOAT_PATTERN.match(duration):
        raise _invalid(DECIMAL_FLOATING_POINT, name, "duration", duration, lineno, body)
    return Inf(float(duration), title if title.strip() else None)


def _parse_byterange(name, body, lineno, strict):
    return parse_byte_range(body, name, lineno, body)


def _parse_program_date_time(name, body, lineno, strict):
    return parse_date_time(body, name, lineno, body)


def _parse_playlist_type(name, body, lineno, strict):
    try:
        return PlaylistType(body.strip())
    except ValueError as e:
        raise _invalid("playlist type", name, "type", body.strip(), lineno, body) from e


SCALAR_PARSERS = {
    protocol.extinf: _parse_extinf,
    protocol.ext_x_byterange: _parse_byterange,
    protocol.ext_x_program_date_time: _parse_program_date_time,
    protocol.ext_x_playlist_type: _parse_playlist_type,
}


def parse_tag(name: str, body: str | None, lineno: int | None = None, strict: bool = False) -> Tag:
    """
    Parse the body of the tag called ``name``.

    Raises:
        PlaylistSyntaxError: for a malformed body, e.g. an unterminated
            quoted-string or a missing value.
        PlaylistValueError: for a bad literal; the error names the tag and
            the field.
    """
    lineno_value = lineno or 0
    if name in STANDALONE_TAGS:
        return Tag(name, None, lineno_value)
    if not is_known_tag(name):
        return Tag(name, body, lineno_value)
    if body is None or not body.strip():
        raise PlaylistSyntaxError("%s: missing value" % name, lineno, _line_text(name, body))

    if name in ATTRIBUTE_SCHEMAS:
        value = parse_attribute_list(body, ATTRIBUTE_SCHEMAS[name], name, lineno, _line_text(name, body))
    elif name in INTEGER_TAGS:
        value = parse_decimal_integer(body, name, INTEGER_TAGS[name], lineno, body)
    else:
        value = SCALAR_PARSERS[name](name, body, lineno, strict)
    return Tag(name, value, lineno_value)
