import logging
from datetime import datetime, timezone

import pytest

import hlsparse
from hlsparse import (
    ByteRange,
    InitSection,
    Key,
    MediaPlaylist,
    MultivariantPlaylist,
    PlaylistType,
    RenditionType,
    Resolution,
    Segment,
    Start,
    Tag,
    UriLine,
)
from hlsparse.errors import (
    FormatError,
    PlaylistSyntaxError,
    PlaylistValueError,
    StructuralError,
    ValidationError,
)

import playlists


def test_simple_media_playlist():
    playlist = hlsparse.parse(playlists.SIMPLE_PLAYLIST)
    assert isinstance(playlist, MediaPlaylist)
    assert not playlist.is_variant
    assert playlist.target_duration == 10
    assert playlist.segments == (Segment(duration=9.009, uri="http://example.com/seg1.ts"),)
    assert playlist.is_ended
    assert playlist.media_sequence == 0
    assert playlist.version is None


def test_parse_accepts_bytes():
    assert hlsparse.parse(playlists.SIMPLE_PLAYLIST.encode("utf-8")) == hlsparse.parse(playlists.SIMPLE_PLAYLIST)


def test_loads_is_parse():
    assert hlsparse.loads(playlists.SIMPLE_PLAYLIST) == hlsparse.parse(playlists.SIMPLE_PLAYLIST)


def test_big_buck_bunny_media_playlist():
    playlist = hlsparse.parse(playlists.BIG_BUCK_BUNNY_PLAYLIST)
    assert playlist.version == 4
    assert playlist.target_duration == 20
    assert playlist.media_sequence == 1
    assert playlist.is_ended
    assert len(playlist.segments) == 8

    first = playlist.segments[0]
    assert first.duration == 12.166
    assert first.byte_range == ByteRange(1430680, 4048392)
    assert first.uri == "segment_1440468394459_1440468394459_1.ts"
    assert first.program_date_time == datetime(2015, 8, 25, 1, 59, 23, 708000, tzinfo=timezone.utc)

    last = playlist.segments[-1]
    assert last.duration == 7.834
    assert last.byte_range == ByteRange(657812, 4032976)
    assert last.uri == "segment_1440468394459_1440468394459_2.ts"
    assert last.program_date_time is None

    assert playlist.duration == pytest.approx(100.96)


def test_big_buck_bunny_multivariant_playlist():
    playlist = hlsparse.parse(playlists.BIG_BUCK_BUNNY_MULTIVARIANT_PLAYLIST)
    assert isinstance(playlist, MultivariantPlaylist)
    assert playlist.is_variant
    assert playlist.version == 4
    assert playlist.independent_segments
    assert [variant.bandwidth for variant in playlist.variants] == [1280000, 2560000, 7680000]

    low = playlist.variants[0]
    assert low.uri == "bbb/low/index.m3u8"
    assert low.average_bandwidth == 1000000
    assert low.codecs == ("avc1.4d001f", "mp4a.40.2")
    assert low.resolution == Resolution(640, 360)
    assert low.frame_rate == 24.0
    assert low.audio == "aac"
    assert low.subtitles == "subs"
    assert playlist.variants[2].hdcp_level == "TYPE-0"

    audio, subtitles = playlist.renditions
    assert audio.type is RenditionType.AUDIO
    assert audio.group_id == "aac"
    assert audio.language == "en"
    assert audio.default and audio.autoselect and not audio.forced
    assert audio.uri == "audio/en/index.m3u8"
    assert subtitles.type is RenditionType.SUBTITLES
    assert not subtitles.default

    assert playlist.renditions_for(low) == [audio, subtitles]

    (iframes,) = playlist.i_frame_variants
    assert iframes.uri == "bbb/low/iframes.m3u8"
    assert iframes.bandwidth == 86000
    assert iframes.codecs == ("avc1.4d001f",)


def test_stream_inf_codecs_are_split():
    playlist = hlsparse.parse(
        '#EXTM3U\n'
        '#EXT-X-STREAM-INF:BANDWIDTH=1280000,CODECS="avc1.4d001f,mp4a.40.2"\n'
        'http://example.com/low.m3u8\n'
    )
    (variant,) = playlist.variants
    assert variant.bandwidth == 1280000
    assert variant.codecs == ("avc1.4d001f", "mp4a.40.2")
    assert variant.uri == "http://example.com/low.m3u8"


def test_simple_multivariant_playlist():
    playlist = hlsparse.parse(playlists.SIMPLE_MULTIVARIANT_PLAYLIST)
    (variant,) = playlist.variants
    assert variant.codecs == ("avc1.4d001f",)
    assert variant.resolution is None
    assert playlist.renditions == ()


def test_session_data_session_key_and_start():
    playlist = hlsparse.parse(playlists.MULTIVARIANT_WITH_SESSION_DATA)
    (data,) = playlist.session_data
    assert data.data_id == "com.example.title"
    assert data.value == "Big Buck Bunny"
    assert data.language == "en"
    (key,) = playlist.session_keys
    assert key == Key("SAMPLE-AES", "skd://key", keyformat="com.apple.streamingkeydelivery",
                      keyformatversions="1")
    assert playlist.start == Start(-12.5, precise=True)
    (variant,) = playlist.variants
    assert variant.closed_captions == "NONE"
    assert variant.attributes["X-VENDOR-SCORE"] == 0.75


def test_keys_persist_until_replaced():
    playlist = hlsparse.parse(playlists.PLAYLIST_WITH_KEYS)
    segments = playlist.segments
    assert playlist.media_sequence == 7794
    assert segments[0].key is None
    assert segments[1].key == Key(
        method="AES-128",
        uri="https://priv.example.com/key.php?r=52",
        iv="0x9c7db8778570d05c3177c349fd9236aa",
    )
    assert segments[2].key is segments[1].key
    assert segments[3].key.uri == "https://priv.example.com/key.php?r=53"
    assert segments[3].key.iv is None


def test_method_none_clears_the_key():
    playlist = hlsparse.parse(playlists.PLAYLIST_WITH_KEYS)
    assert playlist.segments[4].key is None


def test_map_discontinuity_and_dates():
    playlist = hlsparse.parse(playlists.PLAYLIST_WITH_DISCONTINUITY_AND_DATES)
    assert playlist.version == 7
    assert playlist.playlist_type is PlaylistType.EVENT
    assert playlist.discontinuity_sequence == 3
    assert not playlist.is_ended

    first, second, third = playlist.segments
    init = InitSection("init.mp4", ByteRange(720, 0))
    assert first.init_section == second.init_section == third.init_section == init
    assert first.title == "first"
    assert first.program_date_time == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)
    assert not first.discontinuity
    assert second.program_date_time is None
    assert second.title is None
    assert third.discontinuity
    assert third.title == "after the break"
    assert third.program_date_time == datetime(2024, 3, 1, 12, 0, 0, 500000, tzinfo=timezone.utc)


def test_byte_range_offsets_follow_previous_segment():
    playlist = hlsparse.parse(playlists.PLAYLIST_WITH_IMPLICIT_BYTERANGE_OFFSETS)
    assert playlist.playlist_type is PlaylistType.VOD
    assert [segment.byte_range for segment in playlist.segments] == [
        ByteRange(1000, 0),
        ByteRange(2000, 1000),
        ByteRange(500, 3000),
    ]


def test_byte_range_without_offset_needs_a_previous_sub_range():
    content = "#EXTM3U\n#EXT-X-TARGETDURATION:10\n#EXTINF:10,\n#EXT-X-BYTERANGE:500\nmovie.ts\n"
    with pytest.raises(StructuralError) as excinfo:
        hlsparse.parse(content)
    assert excinfo.value.lineno == 5


def test_crlf_and_bom():
    playlist = hlsparse.parse(playlists.PLAYLIST_WITH_CRLF_AND_BOM)
    assert playlist.target_duration == 4
    assert playlist.segments == (Segment(4.0, "seg0.ts"),)


def test_unknown_tags_are_passed_to_custom_tags_parser():
    seen = []
    playlist = hlsparse.parse(playlists.PLAYLIST_WITH_UNKNOWN_TAGS, custom_tags_parser=seen.append)
    assert len(playlist.segments) == 2
    assert seen == [
        Tag("EXT-X-VENDOR-MARKER", 'ID=42,LABEL="ad break"'),
        Tag("EXT-X-CUE-OUT-CONT"),
    ]
    assert seen[0].lineno == 3


def test_unknown_tags_are_logged(caplog):
    caplog.set_level(logging.DEBUG, logger="hlsparse")
    hlsparse.parse(playlists.PLAYLIST_WITH_UNKNOWN_TAGS)
    assert "skipping unknown tag EXT-X-VENDOR-MARKER on line 3" in caplog.text


def test_iter_tags_drops_comments_and_blank_lines():
    items = list(hlsparse.iter_tags(playlists.PLAYLIST_WITH_UNKNOWN_TAGS))
    assert items[0] == Tag("EXTM3U")
    assert items[1] == Tag("EXT-X-TARGETDURATION", 10)
    assert UriLine("seg0.ts") in items
    assert len(items) == 8


def test_playlist_kind_inferred_from_hints():
    playlist = hlsparse.parse("#EXTM3U\n#EXT-X-TARGETDURATION:10\n#EXT-X-ENDLIST\n")
    assert isinstance(playlist, MediaPlaylist)
    assert playlist.segments == ()

    playlist = hlsparse.parse('#EXTM3U\n#EXT-X-SESSION-DATA:DATA-ID="a",VALUE="b"\n')
    assert isinstance(playlist, MultivariantPlaylist)
    assert playlist.variants == ()


def test_playlist_kind_cannot_be_determined():
    with pytest.raises(StructuralError, match="cannot determine playlist type"):
        hlsparse.parse("#EXTM3U\n#EXT-X-VERSION:3\n")


def test_ambiguous_playlist():
    with pytest.raises(StructuralError, match="ambiguous playlist type") as excinfo:
        hlsparse.parse(playlists.AMBIGUOUS_PLAYLIST)
    assert excinfo.value.lineno == 5


def test_media_tag_in_media_playlist_is_ambiguous():
    content = '#EXTM3U\n#EXTINF:10,\na.ts\n#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="a",NAME="A"\n'
    with pytest.raises(StructuralError):
        hlsparse.parse(content)


def test_missing_header():
    with pytest.raises(FormatError):
        hlsparse.parse("#EXT-X-TARGETDURATION:10\n#EXTINF:10,\na.ts\n")


def test_bad_target_duration():
    with pytest.raises(PlaylistValueError) as excinfo:
        hlsparse.parse("#EXTM3U\n#EXT-X-TARGETDURATION:abc\n")
    assert excinfo.value.tag == "EXT-X-TARGETDURATION"
    assert excinfo.value.lineno == 2


def test_unterminated_quoted_string():
    with pytest.raises(PlaylistSyntaxError):
        hlsparse.parse('#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1,CODECS="avc1\nlow.m3u8\n')


def test_orphan_uri():
    with pytest.raises(StructuralError, match="unexpected URI") as excinfo:
        hlsparse.parse("#EXTM3U\n#EXT-X-TARGETDURATION:10\nstray.ts\n")
    assert excinfo.value.lineno == 3
    assert excinfo.value.line == "stray.ts"


@pytest.mark.parametrize("content", [
    "#EXTM3U\n#EXT-X-TARGETDURATION:10\n#EXTINF:10,\n#EXTINF:10,\na.ts\n",
    "#EXTM3U\n#EXT-X-TARGETDURATION:10\n#EXTINF:10,\n",
    "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\n#EXT-X-STREAM-INF:BANDWIDTH=2\nlow.m3u8\n",
    "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\n",
])
def test_tag_without_uri(content):
    with pytest.raises(StructuralError, match="is not followed by a URI"):
        hlsparse.parse(content)


@pytest.mark.parametrize("tag", ["EXT-X-VERSION:3", "EXT-X-TARGETDURATION:10"])
def test_duplicate_header_tags(tag):
    with pytest.raises(StructuralError, match="duplicate"):
        hlsparse.parse("#EXTM3U\n#%s\n#%s\n#EXTINF:1,\na.ts\n" % (tag, tag))


@pytest.mark.parametrize("tag, message", [
    ('#EXT-X-KEY:URI="k"', "EXT-X-KEY is missing required attribute METHOD"),
    ('#EXT-X-MAP:BYTERANGE="1@0"', "EXT-X-MAP is missing required attribute URI"),
    ("#EXT-X-START:PRECISE=YES", "EXT-X-START is missing required attribute TIME-OFFSET"),
])
def test_missing_required_attribute_is_a_diagnostic(tag, message):
    content = "#EXTM3U\n#EXT-X-TARGETDURATION:10\n%s\n#EXTINF:5,\nseg.ts\n" % tag
    playlist, errors = hlsparse.parse_with_diagnostics(content)
    assert len(playlist.segments) == 1
    assert [str(error) for error in errors] == [message]
    with pytest.raises(ValidationError, match=message):
        hlsparse.parse(content, strict=True)


def test_key_without_method_still_applies_to_segments():
    playlist = hlsparse.parse('#EXTM3U\n#EXT-X-TARGETDURATION:10\n#EXT-X-KEY:URI="k"\n#EXTINF:5,\nseg.ts\n')
    assert playlist.segments[0].key == Key(method=None, uri="k")


def test_session_key_with_method_none_is_kept():
    playlist = hlsparse.parse(
        "#EXTM3U\n#EXT-X-SESSION-KEY:METHOD=NONE\n#EXT-X-STREAM-INF:BANDWIDTH=1\nlow.m3u8\n"
    )
    assert playlist.session_keys == (Key("NONE"),)


def test_missing_extinf_comma_in_strict_mode():
    content = "#EXTM3U\n#EXT-X-TARGETDURATION:10\n#EXTINF:10\na.ts\n"
    assert hlsparse.parse(content).segments[0].duration == 10.0
    with pytest.raises(PlaylistSyntaxError):
        hlsparse.parse(content, strict=True)


def test_parse_with_diagnostics_returns_issues():
    playlist, errors = hlsparse.parse_with_diagnostics("#EXTM3U\n#EXTINF:10,\na.ts\n")
    assert len(playlist.segments) == 1
    assert [str(error) for error in errors] == ["media playlist has no EXT-X-TARGETDURATION"]


def test_lenient_parse_returns_playlist_with_issues():
    playlist = hlsparse.parse(playlists.MULTIVARIANT_WITH_VALIDATION_ISSUES)
    assert len(playlist.variants) == 2
    assert playlist.renditions[0].type == "COMMENTARY"


def test_strict_parse_raises_first_issue():
    with pytest.raises(ValidationError, match="unknown TYPE COMMENTARY"):
        hlsparse.parse(playlists.MULTIVARIANT_WITH_VALIDATION_ISSUES, strict=True)


def test_parses_are_independent():
    first = hlsparse.parse(playlists.PLAYLIST_WITH_KEYS)
    second = hlsparse.parse(playlists.SIMPLE_PLAYLIST)
    assert second.segments[0].key is None
    assert first == hlsparse.parse(playlists.PLAYLIST_WITH_KEYS)
