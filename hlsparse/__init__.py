"""
Parser for HLS playlists in the Extended M3U format (RFC 8216 section 4).

Usage::

    import hlsparse

    playlist = hlsparse.parse(content)
    if playlist.is_variant:
        uris = [variant.uri for variant in playlist.variants]
    else:
        uris = [segment.uri for segment in playlist.segments]
"""

from hlsparse.attributes import (
    AttributeList,
    EnumeratedString,
    HexSequence,
    Resolution,
    parse_attribute_list,
)
from hlsparse.errors import (
    EncodingError,
    FormatError,
    HLSParseError,
    ParseError,
    PlaylistSyntaxError,
    PlaylistValueError,
    StructuralError,
    ValidationError,
)
from hlsparse.lexer import BlankLine, CommentLine, TagLine, UriLine, iter_lines
from hlsparse.model import (
    ByteRange,
    IFrameStream,
    InitSection,
    Key,
    MediaPlaylist,
    MultivariantPlaylist,
    Playlist,
    PlaylistType,
    Rendition,
    RenditionType,
    Segment,
    SessionData,
    Start,
    VariantStream,
)
from hlsparse.parser import iter_tags, parse, parse_with_diagnostics
from hlsparse.tags import Inf, Tag, parse_tag
from hlsparse.validator import validate

loads = parse

__all__ = [
    "AttributeList",
    "BlankLine",
    "ByteRange",
    "CommentLine",
    "EncodingError",
    "EnumeratedString",
    "FormatError",
    "HLSParseError",
    "HexSequence",
    "IFrameStream",
    "Inf",
    "InitSection",
    "Key",
    "MediaPlaylist",
    "MultivariantPlaylist",
    "ParseError",
    "Playlist",
    "PlaylistSyntaxError",
    "PlaylistType",
    "PlaylistValueError",
    "Rendition",
    "RenditionType",
    "Resolution",
    "Segment",
    "SessionData",
    "Start",
    "StructuralError",
    "Tag",
    "TagLine",
    "UriLine",
    "ValidationError",
    "VariantStream",
    "iter_lines",
    "iter_tags",
    "loads",
    "parse",
    "parse_attribute_list",
    "parse_tag",
    "parse_with_diagnostics",
    "validate",
]
