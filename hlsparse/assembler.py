"""
Builds a playlist from a stream of tags and URI lines.

The assembler is a fold: every tag updates a ``PendingState`` record (fields
waiting for the next URI line, the active key and map, the inferred playlist
kind) and a ``Document`` accumulator. Both are created per call, so nothing is
shared between parses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, Union

from hlsparse import protocol
from hlsparse.attributes import AttributeList
from hlsparse.errors import StructuralError
from hlsparse.lexer import UriLine
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
from hlsparse.tags import Inf, Tag, parse_byte_range

logger = logging.getLogger(__name__)

MEDIA = "media"
MULTIVARIANT = "multivariant"

# tags that decide the playlist kind on their own
MEDIA_DEFINING_TAGS = frozenset([protocol.extinf])
MULTIVARIANT_DEFINING_TAGS = frozenset([
    protocol.ext_x_stream_inf,
    protocol.ext_x_i_frame_stream_inf,
    protocol.ext_x_media,
])

# tags that only hint at the kind when nothing defines it
MEDIA_HINT_TAGS = frozenset([
    protocol.ext_x_targetduration,
    protocol.ext_x_media_sequence,
    protocol.ext_x_discontinuity_sequence,
    protocol.ext_x_playlist_type,
    protocol.ext_x_endlist,
    protocol.ext_i_frames_only,
    protocol.ext_x_byterange,
    protocol.ext_x_discontinuity,
    protocol.ext_x_program_date_time,
    protocol.ext_x_key,
    protocol.ext_x_map,
])
MULTIVARIANT_HINT_TAGS = frozenset([
    protocol.ext_x_session_data,
    protocol.ext_x_session_key,
])

CustomTagsParser = Callable[[Tag], None]


@dataclass
class PendingState:
    """Values carried from one tag to the next."""

    inf: Inf | None = None
    inf_lineno: int = 0
    stream_inf: AttributeList | None = None
    stream_inf_lineno: int = 0
    byte_range: ByteRange | None = None
    discontinuity: bool = False
    program_date_time: datetime | None = None
    key: Key | None = None
    init_section: InitSection | None = None
    kind: str | None = None
    hints: set = field(default_factory=set)


@dataclass
class Document:
    """Accumulated playlist fields."""

    version: int | None = None
    target_duration: int | None = None
    media_sequence: int = 0
    discontinuity_sequence: int = 0
    playlist_type: PlaylistType | None = None
    is_ended: bool = False
    is_i_frames_only: bool = False
    independent_segments: bool = False
    start: Start | None = None
    segments: list = field(default_factory=list)
    variants: list = field(default_factory=list)
    renditions: list = field(default_factory=list)
    i_frame_variants: list = field(default_factory=list)
    session_data: list = field(default_factory=list)
    session_keys: list = field(default_factory=list)


def _set_kind(kind, tag, state):
    if state.kind is None:
        logger.debug("%s playlist inferred from %s on line %d", kind, tag.name, tag.lineno)
        state.kind = kind
    elif state.kind != kind:
        raise StructuralError("ambiguous playlist type", tag.lineno, str(tag))


def _split_codecs(codecs):
    if not codecs:
        return ()
    return tuple(codec.strip() for codec in codecs.split(",") if codec.strip())


def key_from_tag(tag: Tag) -> Key:
    """Key described by an EXT-X-KEY or EXT-X-SESSION-KEY tag, as written."""
    attributes = tag.value
    method = attributes.get("METHOD")
    return Key(
        method=str(method) if method is not None else None,
        uri=attributes.get("URI"),
        iv=attributes.get("IV"),
        keyformat=attributes.get("KEYFORMAT"),
        keyformatversions=attributes.get("KEYFORMATVERSIONS"),
    )


def build_key(tag: Tag) -> Key | None:
    """Key an EXT-X-KEY tag makes active; None for METHOD=NONE."""
    key = key_from_tag(tag)
    if key.method == "NONE":
        return None
    return key


def _on_extinf(tag, data, state):
    _set_kind(MEDIA, tag, state)
    if state.inf is not None:
        raise StructuralError("%s on line %d is not followed by a URI" % (protocol.extinf, state.inf_lineno),
                              tag.lineno, str(tag))
    state.inf = tag.value
    state.inf_lineno = tag.lineno


def _on_stream_inf(tag, data, state):
    _set_kind(MULTIVARIANT, tag, state)
    if state.stream_inf is not None:
        raise StructuralError("%s on line %d is not followed by a URI"
                              % (protocol.ext_x_stream_inf, state.stream_inf_lineno),
                              tag.lineno, str(tag))
    state.stream_inf = tag.value
    state.stream_inf_lineno = tag.lineno


def _on_i_frame_stream_inf(tag, data, state):
    _set_kind(MULTIVARIANT, tag, state)
    attributes = tag.value
    data.i_frame_variants.append(IFrameStream(
        uri=attributes.get("URI"),
        bandwidth=attributes.get("BANDWIDTH"),
        average_bandwidth=attributes.get("AVERAGE-BANDWIDTH"),
        codecs=_split_codecs(attributes.get("CODECS")),
        resolution=attributes.get("RESOLUTION"),
        hdcp_level=attributes.get("HDCP-LEVEL"),
        video=attributes.get("VIDEO"),
        program_id=attributes.get("PROGRAM-ID"),
        attributes=attributes,
    ))


def _on_media(tag, data, state):
    _set_kind(MULTIVARIANT, tag, state)
    attributes = tag.value
    rendition_type = attributes.get("TYPE")
    if rendition_type is not None:
        try:
            rendition_type = RenditionType(rendition_type)
        except ValueError:
            rendition_type = str(rendition_type)
    data.renditions.append(Rendition(
        type=rendition_type,
        group_id=attributes.get("GROUP-ID"),
        name=attributes.get("NAME"),
        uri=attributes.get("URI"),
        language=attributes.get("LANGUAGE"),
        assoc_language=attributes.get("ASSOC-LANGUAGE"),
        default=attributes.get("DEFAULT") == "YES",
        autoselect=attributes.get("AUTOSELECT") == "YES",
        forced=attributes.get("FORCED") == "YES",
        instream_id=attributes.get("INSTREAM-ID"),
        characteristics=attributes.get("CHARACTERISTICS"),
        channels=attributes.get("CHANNELS"),
        attributes=attributes,
    ))


def _on_session_data(tag, data, state):
    attributes = tag.value
    data.session_data.append(SessionData(
        data_id=attributes.get("DATA-ID"),
        value=attributes.get("VALUE"),
        uri=attributes.get("URI"),
        language=attributes.get("LANGUAGE"),
        attributes=attributes,
    ))


def _on_session_key(tag, data, state):
    data.session_keys.append(key_from_tag(tag))


def _on_key(tag, data, state):
    state.key = build_key(tag)


def _on_map(tag, data, state):
    attributes = tag.value
    uri = attributes.get("URI")
    byte_range = attributes.get("BYTERANGE")
    if byte_range is not None:
        byte_range = parse_byte_range(byte_range, tag.name, tag.lineno, str(tag.value))
    state.init_section = InitSection(uri, byte_range)


def _on_byterange(tag, data, state):
    state.byte_range = tag.value


def _on_discontinuity(tag, data, state):
    state.discontinuity = True


def _on_program_date_time(tag, data, state):
    state.program_date_time = tag.value


def _on_version(tag, data, state):
    if data.version is not None:
        raise StructuralError("duplicate %s" % tag.name, tag.lineno, str(tag))
    data.version = tag.value


def _on_targetduration(tag, data, state):
    if data.target_duration is not None:
        raise StructuralError("duplicate %s" % tag.name, tag.lineno, str(tag))
    data.target_duration = tag.value


def _on_media_sequence(tag, data, state):
    data.media_sequence = tag.value


def _on_discontinuity_sequence(tag, data, state):
    data.discontinuity_sequence = tag.value


def _on_playlist_type(tag, data, state):
    data.playlist_type = tag.value


def _on_endlist(tag, data, state):
    data.is_ended = True


def _on_i_frames_only(tag, data, state):
    data.is_i_frames_only = True


def _on_independent_segments(tag, data, state):
    data.independent_segments = True


def _on_start(tag, data, state):
    attributes = tag.value
    data.start = Start(attributes.get("TIME-OFFSET"), attributes.get("PRECISE") == "YES")


def _on_extm3u(tag, data, state):
    pass


HANDLERS = {
    protocol.extm3u: _on_extm3u,
    protocol.extinf: _on_extinf,
    protocol.ext_x_stream_inf: _on_stream_inf,
    protocol.ext_x_i_frame_stream_inf: _on_i_frame_stream_inf,
    protocol.ext_x_media: _on_media,
    protocol.ext_x_session_data: _on_session_data,
    protocol.ext_x_session_key: _on_session_key,
    protocol.ext_x_key: _on_key,
    protocol.ext_x_map: _on_map,
    protocol.ext_x_byterange: _on_byterange,
    protocol.ext_x_discontinuity: _on_discontinuity,
    protocol.ext_x_program_date_time: _on_program_date_time,
    protocol.ext_x_version: _on_version,
    protocol.ext_x_targetduration: _on_targetduration,
    protocol.ext_x_media_sequence: _on_media_sequence,
    protocol.ext_x_discontinuity_sequence: _on_discontinuity_sequence,
    protocol.ext_x_playlist_type: _on_playlist_type,
    protocol.ext_x_endlist: _on_endlist,
    protocol.ext_i_frames_only: _on_i_frames_only,
    protocol.ext_is_independent_segments: _on_independent_segments,
    protocol.ext_x_start: _on_start,
}


def _resolve_byte_range(line, data, state):
    byte_range = state.byte_range
    if byte_range is None or byte_range.offset is not None:
        return byte_range
    previous = data.segments[-1] if data.segments else None
    if previous is None or previous.byte_range is None or previous.uri != line.uri:
        raise StructuralError(
            "%s without an offset must follow a sub-range of the same resource" % protocol.ext_x_byterange,
            line.lineno, line.uri,
        )
    return ByteRange(byte_range.length, previous.byte_range.end)


def _on_segment_uri(line, data, state):
    data.segments.append(Segment(
        duration=state.inf.duration,
        uri=line.uri,
        title=state.inf.title,
        byte_range=_resolve_byte_range(line, data, state),
        key=state.key,
        init_section=state.init_section,
        discontinuity=state.discontinuity,
        program_date_time=state.program_date_time,
    ))
    state.inf = None
    state.byte_range = None
    state.discontinuity = False
    state.program_date_time = None


def _on_variant_uri(line, data, state):
    attributes = state.stream_inf
    data.variants.append(VariantStream(
        uri=line.uri,
        bandwidth=attributes.get("BANDWIDTH"),
        average_bandwidth=attributes.get("AVERAGE-BANDWIDTH"),
        codecs=_split_codecs(attributes.get("CODECS")),
        resolution=attributes.get("RESOLUTION"),
        frame_rate=attributes.get("FRAME-RATE"),
        hdcp_level=attributes.get("HDCP-LEVEL"),
        audio=attributes.get("AUDIO"),
        video=attributes.get("VIDEO"),
        subtitles=attributes.get("SUBTITLES"),
        closed_captions=attributes.get("CLOSED-CAPTIONS"),
        program_id=attributes.get("PROGRAM-ID"),
        attributes=attributes,
    ))
    state.stream_inf = None


def _on_uri(line, data, state):
    if state.stream_inf is not None:
        _on_variant_uri(line, data, state)
    elif state.inf is not None:
        _on_segment_uri(line, data, state)
    else:
        raise StructuralError("unexpected URI", line.lineno, line.uri)


def step(item: Union[Tag, UriLine], data: Document, state: PendingState,
         custom_tags_parser: CustomTagsParser | None = None) -> None:
    """Apply one tag or URI line to the accumulators."""
    if isinstance(item, UriLine):
        _on_uri(item, data, state)
        return
    if item.name in MEDIA_DEFINING_TAGS or item.name in MEDIA_HINT_TAGS:
        state.hints.add(MEDIA)
    elif item.name in MULTIVARIANT_DEFINING_TAGS or item.name in MULTIVARIANT_HINT_TAGS:
        state.hints.add(MULTIVARIANT)
    handler = HANDLERS.get(item.name)
    if handler is not None:
        handler(item, data, state)
        return
    logger.debug("skipping unknown tag %s on line %d", item.name, item.lineno)
    if callable(custom_tags_parser):
        custom_tags_parser(item)


def finish(data: Document, state: PendingState) -> Playlist:
    """Check nothing is left pending and build the playlist."""
    if state.inf is not None:
        raise StructuralError("%s is not followed by a URI" % protocol.extinf, state.inf_lineno)
    if state.stream_inf is not None:
        raise StructuralError("%s is not followed by a URI" % protocol.ext_x_stream_inf, state.stream_inf_lineno)

    kind = state.kind
    if kind is None:
        if MEDIA in state.hints:
            kind = MEDIA
        elif MULTIVARIANT in state.hints:
            kind = MULTIVARIANT
        else:
            raise StructuralError("cannot determine playlist type")
        logger.debug("%s playlist inferred from its other tags", kind)

    if kind == MULTIVARIANT:
        logger.debug("assembled multivariant playlist with %d variants and %d renditions",
                     len(data.variants), len(data.renditions))
        return MultivariantPlaylist(
            variants=tuple(data.variants),
            renditions=tuple(data.renditions),
            i_frame_variants=tuple(data.i_frame_variants),
            session_data=tuple(data.session_data),
            session_keys=tuple(data.session_keys),
            version=data.version,
            independent_segments=data.independent_segments,
            start=data.start,
        )

    logger.debug("assembled media playlist with %d segments", len(data.segments))
    return MediaPlaylist(
        target_duration=data.target_duration,
        media_sequence=data.media_sequence,
        playlist_type=data.playlist_type,
        is_ended=data.is_ended,
        segments=tuple(data.segments),
        version=data.version,
        discontinuity_sequence=data.discontinuity_sequence,
        is_i_frames_only=data.is_i_frames_only,
        independent_segments=data.independent_segments,
        start=data.start,
    )


def assemble(items: Iterable[Union[Tag, UriLine]],
             custom_tags_parser: CustomTagsParser | None = None) -> Playlist:
    """
    Fold tags and URI lines into a playlist.

    Raises:
        StructuralError: on an ambiguous playlist type, an orphan URI, a
            tag without its URI or a duplicated header tag.
    """
    data = Document()
    state = PendingState()
    for item in items:
        step(item, data, state, custom_tags_parser)
    return finish(data, state)
