"""
Semantic checks run after a playlist is assembled.

Nothing here raises: every issue found becomes a ``ValidationError`` in the
returned list, so callers can decide how strict to be.
"""

from __future__ import annotations

import logging

from hlsparse import protocol
from hlsparse.errors import ValidationError
from hlsparse.model import (
    Key,
    MediaPlaylist,
    MultivariantPlaylist,
    Playlist,
    RenditionType,
    Start,
)

logger = logging.getLogger(__name__)


def _missing(tag: str, name: str) -> ValidationError:
    return ValidationError("%s is missing required attribute %s" % (tag, name))


def _check_key(key: Key, where: str) -> list[ValidationError]:
    if key.method is None:
        return [_missing(where, "METHOD")]
    if key.method == "NONE":
        # only a session key can still hold NONE here
        return [ValidationError("%s must not use METHOD=NONE" % where)]
    if key.uri is None:
        return [ValidationError("%s with METHOD=%s has no URI" % (where, key.method))]
    return []


def _check_start(start: Start | None) -> list[ValidationError]:
    if start is not None and start.time_offset is None:
        return [_missing(protocol.ext_x_start, "TIME-OFFSET")]
    return []


def _round_half_up(duration: float) -> int:
    return int(duration + 0.5)


def validate_media_playlist(playlist: MediaPlaylist) -> list[ValidationError]:
    errors = []
    if playlist.target_duration is None:
        errors.append(ValidationError("media playlist has no %s" % protocol.ext_x_targetduration))
    errors.extend(_check_start(playlist.start))

    checked_keys = set()
    checked_maps = set()
    for index, segment in enumerate(playlist.segments):
        if (playlist.target_duration is not None
                and _round_half_up(segment.duration) > playlist.target_duration):
            errors.append(ValidationError(
                "segment %d (%s) lasts %ss, longer than the target duration of %ds"
                % (index, segment.uri, segment.duration, playlist.target_duration)
            ))
        if segment.key is not None and segment.key not in checked_keys:
            checked_keys.add(segment.key)
            errors.extend(_check_key(segment.key, protocol.ext_x_key))
        if segment.init_section is not None and segment.init_section not in checked_maps:
            checked_maps.add(segment.init_section)
            if segment.init_section.uri is None:
                errors.append(_missing(protocol.ext_x_map, "URI"))
    return errors


def validate_multivariant_playlist(playlist: MultivariantPlaylist) -> list[ValidationError]:
    errors = []
    groups = set()
    for rendition in playlist.renditions:
        if not isinstance(rendition.type, RenditionType):
            errors.append(ValidationError(
                "%s has unknown TYPE %s" % (protocol.ext_x_media, rendition.type)
                if rendition.type is not None else
                "%s is missing required attribute TYPE" % protocol.ext_x_media
            ))
        for name, value in (("GROUP-ID", rendition.group_id), ("NAME", rendition.name)):
            if value is None:
                errors.append(ValidationError("%s is missing required attribute %s" % (protocol.ext_x_media, name)))
        if rendition.type == RenditionType.CLOSED_CAPTIONS and rendition.uri is not None:
            errors.append(ValidationError("CLOSED-CAPTIONS rendition %s must not have a URI" % rendition.name))
        groups.add((rendition.type, rendition.group_id))

    for variant in playlist.variants:
        if variant.bandwidth is None:
            errors.append(ValidationError(
                "%s for %s is missing required attribute BANDWIDTH" % (protocol.ext_x_stream_inf, variant.uri)
            ))
        for rendition_type, group_id in (
            (RenditionType.AUDIO, variant.audio),
            (RenditionType.VIDEO, variant.video),
            (RenditionType.SUBTITLES, variant.subtitles),
        ):
            if group_id is not None and (rendition_type, group_id) not in groups:
                errors.append(ValidationError(
                    "%s for %s references undefined %s group %s"
                    % (protocol.ext_x_stream_inf, variant.uri, rendition_type.value, group_id)
                ))

    for stream in playlist.i_frame_variants:
        if stream.bandwidth is None:
            errors.append(ValidationError(
                "%s is missing required attribute BANDWIDTH" % protocol.ext_x_i_frame_stream_inf
            ))
        if stream.uri is None:
            errors.append(ValidationError("%s is missing required attribute URI" % protocol.ext_x_i_frame_stream_inf))

    for data in playlist.session_data:
        if data.data_id is None:
            errors.append(ValidationError("%s is missing required attribute DATA-ID" % protocol.ext_x_session_data))

    for key in playlist.session_keys:
        errors.extend(_check_key(key, protocol.ext_x_session_key))
    errors.extend(_check_start(playlist.start))
    return errors


def validate(playlist: Playlist) -> list[ValidationError]:
    """Return every semantic issue found in ``playlist``."""
    if isinstance(playlist, MultivariantPlaylist):
        errors = validate_multivariant_playlist(playlist)
    else:
        errors = validate_media_playlist(playlist)
    for error in errors:
        logger.debug("validation: %s", error)
    return errors
