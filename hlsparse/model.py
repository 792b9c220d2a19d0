"""
Playlist document model.

A parsed document is either a ``MultivariantPlaylist`` or a ``MediaPlaylist``.
Everything here is immutable; sequences are tuples. ``dumps()`` renders a
playlist back to ``.m3u8`` text that parses to an equal model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import NamedTuple, Union

from hlsparse import protocol
from hlsparse.attributes import (
    AttributeList,
    HexSequence,
    Resolution,
    float_to_string,
    quoted,
)


class PlaylistType(str, Enum):
    VOD = "VOD"
    EVENT = "EVENT"


class RenditionType(str, Enum):
    AUDIO = "AUDIO"
    VIDEO = "VIDEO"
    SUBTITLES = "SUBTITLES"
    CLOSED_CAPTIONS = "CLOSED-CAPTIONS"


class ByteRange(NamedTuple):
    """
    A sub-range of a resource, from EXT-X-BYTERANGE or a BYTERANGE attribute.

    ``offset`` is ``None`` only on a freshly parsed tag that omitted it; the
    assembler resolves it before a segment is built.
    """

    length: int
    offset: int | None = None

    @property
    def end(self) -> int:
        return (self.offset or 0) + self.length

    def __str__(self):
        if self.offset is None:
            return str(self.length)
        return "%d@%d" % (self.length, self.offset)


class Start(NamedTuple):
    """
    Preferred start point, from EXT-X-START.

    ``time_offset`` is ``None`` only when the tag omitted TIME-OFFSET, which
    the validator reports.
    """

    time_offset: float | None
    precise: bool = False

    def __str__(self):
        output = []
        if self.time_offset is not None:
            output.append("TIME-OFFSET=%s" % number_to_string(self.time_offset))
        if self.precise or self.time_offset is None:
            output.append("PRECISE=%s" % ("YES" if self.precise else "NO"))
        return "#%s:%s" % (protocol.ext_x_start, ",".join(output))


def number_to_string(number) -> str:
    if isinstance(number, float):
        if number.is_integer():
            return str(int(number))
        return float_to_string(number)
    return str(number)


def format_date_time(value: datetime) -> str:
    return value.isoformat()


@dataclass(frozen=True)
class Key:
    '''
    Key used to encrypt the segments in a media playlist (EXT-X-KEY)

    `method`
      is a string. ex.: "AES-128"

    `uri`
      is a string. ex:: "https://priv.example.com/key.php?r=52"

    `iv`
      initialization vector, a ``HexSequence``. ex.: 0X12A

    A key whose method is NONE is never stored on a segment: it clears the
    active key instead. `method` is None only when the tag omitted it, which
    the validator reports.
    '''

    method: str | None
    uri: str | None = None
    iv: HexSequence | None = None
    keyformat: str | None = None
    keyformatversions: str | None = None

    def dumps(self, tag: str = protocol.ext_x_key) -> str:
        output = []
        if self.method is not None:
            output.append("METHOD=%s" % self.method)
        if self.uri is not None:
            output.append("URI=" + quoted(self.uri))
        if self.iv is not None:
            output.append("IV=%s" % self.iv)
        if self.keyformat is not None:
            output.append("KEYFORMAT=" + quoted(self.keyformat))
        if self.keyformatversions is not None:
            output.append("KEYFORMATVERSIONS=" + quoted(self.keyformatversions))
        return "#%s:%s" % (tag, ",".join(output))

    def __str__(self):
        return self.dumps()


@dataclass(frozen=True)
class InitSection:
    """Media initialization section, from EXT-X-MAP."""

    uri: str | None
    byte_range: ByteRange | None = None

    def __str__(self):
        output = []
        if self.uri is not None:
            output.append("URI=" + quoted(self.uri))
        if self.byte_range is not None:
            output.append("BYTERANGE=" + quoted(str(self.byte_range)))
        return "#%s:%s" % (protocol.ext_x_map, ",".join(output))


@dataclass(frozen=True)
class Segment:
    '''
    A media segment from a media playlist

    `uri`
      a string with the segment uri

    `duration`
      duration attribute from EXTINF parameter, in seconds

    `title`
      title attribute from EXTINF parameter, or None

    `byte_range`
      a ``ByteRange`` from EXT-X-BYTERANGE, with its offset resolved

    `key`
      the ``Key`` in effect for this segment (EXT-X-KEY), or None

    `init_section`
      the ``InitSection`` in effect for this segment (EXT-X-MAP), or None

    `discontinuity`
      True when an EXT-X-DISCONTINUITY tag precedes the segment

    `program_date_time`
      the EXT-X-PROGRAM-DATE-TIME attached to this segment as a datetime
    '''

    duration: float
    uri: str
    title: str | None = None
    byte_range: ByteRange | None = None
    key: Key | None = None
    init_section: InitSection | None = None
    discontinuity: bool = False
    program_date_time: datetime | None = None

    def dumps(self, last_segment: Segment | None = None) -> str:
        output = []
        last_key = last_segment.key if last_segment else None
        if self.key != last_key:
            output.append(str(self.key) if self.key else "#%s:METHOD=NONE" % protocol.ext_x_key)
        last_map = last_segment.init_section if last_segment else None
        if self.init_section is not None and self.init_section != last_map:
            output.append(str(self.init_section))
        if self.discontinuity:
            output.append("#" + protocol.ext_x_discontinuity)
        if self.program_date_time is not None:
            output.append("#%s:%s" % (protocol.ext_x_program_date_time,
                                      format_date_time(self.program_date_time)))
        output.append("#%s:%s,%s" % (protocol.extinf, number_to_string(self.duration), self.title or ""))
        if self.byte_range is not None:
            output.append("#%s:%s" % (protocol.ext_x_byterange, self.byte_range))
        output.append(self.uri)
        return "\n".join(output)

    def __str__(self):
        return self.dumps(None)


@dataclass(frozen=True)
class VariantStream:
    '''
    A variant stream of a multivariant playlist (EXT-X-STREAM-INF + URI).

    `codecs` is the CODECS list split into its formats; `attributes` holds
    every attribute of the tag, including ones this package does not know.
    '''

    uri: str
    bandwidth: int | None
    average_bandwidth: int | None = None
    codecs: tuple[str, ...] = ()
    resolution: Resolution | None = None
    frame_rate: float | None = None
    hdcp_level: str | None = None
    audio: str | None = None
    video: str | None = None
    subtitles: str | None = None
    closed_captions: str | None = None
    program_id: int | None = None
    attributes: AttributeList = field(default_factory=AttributeList)

    def __str__(self):
        return "#%s:%s\n%s" % (protocol.ext_x_stream_inf, self.attributes, self.uri)


@dataclass(frozen=True)
class IFrameStream:
    """An I-frame media playlist reference (EXT-X-I-FRAME-STREAM-INF)."""

    uri: str | None
    bandwidth: int | None
    average_bandwidth: int | None = None
    codecs: tuple[str, ...] = ()
    resolution: Resolution | None = None
    hdcp_level: str | None = None
    video: str | None = None
    program_id: int | None = None
    attributes: AttributeList = field(default_factory=AttributeList)

    def __str__(self):
        return "#%s:%s" % (protocol.ext_x_i_frame_stream_inf, self.attributes)


@dataclass(frozen=True)
class Rendition:
    '''
    An alternative rendition from EXT-X-MEDIA

    `type`
      a ``RenditionType``, or the raw value when it is not one of the four
      kinds (reported by the validator)

    `group_id`, `name`, `language`, `assoc_language`, `instream_id`,
    `characteristics`, `channels`
      quoted attributes of the tag

    `default`, `autoselect`, `forced`
      YES/NO attributes as booleans
    '''

    type: RenditionType | str | None
    group_id: str | None
    name: str | None
    uri: str | None = None
    language: str | None = None
    assoc_language: str | None = None
    default: bool = False
    autoselect: bool = False
    forced: bool = False
    instream_id: str | None = None
    characteristics: str | None = None
    channels: str | None = None
    attributes: AttributeList = field(default_factory=AttributeList)

    def __str__(self):
        return "#%s:%s" % (protocol.ext_x_media, self.attributes)


@dataclass(frozen=True)
class SessionData:
    """Arbitrary session data, from EXT-X-SESSION-DATA."""

    data_id: str | None
    value: str | None = None
    uri: str | None = None
    language: str | None = None
    attributes: AttributeList = field(default_factory=AttributeList)

    def __str__(self):
        return "#%s:%s" % (protocol.ext_x_session_data, self.attributes)


def _header(version, independent_segments, start):
    output = ["#" + protocol.extm3u]
    if version is not None:
        output.append("#%s:%d" % (protocol.ext_x_version, version))
    if independent_segments:
        output.append("#" + protocol.ext_is_independent_segments)
    if start is not None:
        output.append(str(start))
    return output


@dataclass(frozen=True)
class MultivariantPlaylist:
    """A playlist listing variant streams and their renditions."""

    variants: tuple[VariantStream, ...] = ()
    renditions: tuple[Rendition, ...] = ()
    i_frame_variants: tuple[IFrameStream, ...] = ()
    session_data: tuple[SessionData, ...] = ()
    session_keys: tuple[Key, ...] = ()
    version: int | None = None
    independent_segments: bool = False
    start: Start | None = None

    is_variant = True

    def renditions_for(self, variant: VariantStream) -> list[Rendition]:
        """Renditions whose group is referenced by ``variant``."""
        groups = {
            (RenditionType.AUDIO, variant.audio),
            (RenditionType.VIDEO, variant.video),
            (RenditionType.SUBTITLES, variant.subtitles),
            (RenditionType.CLOSED_CAPTIONS, variant.closed_captions),
        }
        return [rendition for rendition in self.renditions
                if (rendition.type, rendition.group_id) in groups]

    def dumps(self) -> str:
        '''
        Returns the playlist as a string.
        You could also use str(<this obj>)
        '''
        output = _header(self.version, self.independent_segments, self.start)
        output.extend(str(data) for data in self.session_data)
        output.extend(key.dumps(protocol.ext_x_session_key) for key in self.session_keys)
        output.extend(str(rendition) for rendition in self.renditions)
        output.extend(str(variant) for variant in self.variants)
        output.extend(str(stream) for stream in self.i_frame_variants)
        return "\n".join(output) + "\n"

    def __str__(self):
        return self.dumps()


@dataclass(frozen=True)
class MediaPlaylist:
    """A playlist listing the media segments of one stream."""

    target_duration: int | None = None
    media_sequence: int = 0
    playlist_type: PlaylistType | None = None
    is_ended: bool = False
    segments: tuple[Segment, ...] = ()
    version: int | None = None
    discontinuity_sequence: int = 0
    is_i_frames_only: bool = False
    independent_segments: bool = False
    start: Start | None = None

    is_variant = False

    @property
    def duration(self) -> float:
        return sum(segment.duration for segment in self.segments)

    def dumps(self) -> str:
        '''
        Returns the playlist as a string.
        You could also use str(<this obj>)
        '''
        output = _header(self.version, self.independent_segments, self.start)
        if self.target_duration is not None:
            output.append("#%s:%d" % (protocol.ext_x_targetduration, self.target_duration))
        if self.media_sequence:
            output.append("#%s:%d" % (protocol.ext_x_media_sequence, self.media_sequence))
        if self.discontinuity_sequence:
            output.append("#%s:%d" % (protocol.ext_x_discontinuity_sequence, self.discontinuity_sequence))
        if self.playlist_type is not None:
            output.append("#%s:%s" % (protocol.ext_x_playlist_type, self.playlist_type.value))
        if self.is_i_frames_only:
            output.append("#" + protocol.ext_i_frames_only)
        last_segment = None
        for segment in self.segments:
            output.append(segment.dumps(last_segment))
            last_segment = segment
        if self.is_ended:
            output.append("#" + protocol.ext_x_endlist)
        return "\n".join(output) + "\n"

    def __str__(self):
        return self.dumps()


Playlist = Union[MultivariantPlaylist, MediaPlaylist]
