from __future__ import annotations

import logging
from typing import Iterator, Union

from hlsparse.assembler import CustomTagsParser, assemble
from hlsparse.lexer import TagLine, UriLine, iter_lines
from hlsparse.model import Playlist
from hlsparse.tags import Tag, parse_tag
from hlsparse.validator import validate

logger = logging.getLogger(__name__)


def iter_tags(content: str | bytes, strict: bool = False) -> Iterator[Union[Tag, UriLine]]:
    """
    Yield a parsed ``Tag`` for every tag line and the ``UriLine`` itself for
    every URI line; comments and blank lines are dropped.
    """
    for line in iter_lines(content):
        if isinstance(line, TagLine):
            yield parse_tag(line.name, line.body, line.lineno, strict)
        elif isinstance(line, UriLine):
            yield line


def parse_with_diagnostics(content: str | bytes, strict: bool = False,
                           custom_tags_parser: CustomTagsParser | None = None):
    '''
    Given a M3U8 playlist content returns the playlist and the list of
    ``ValidationError`` found in it.

    Hard errors (``ParseError`` subclasses) are raised, not returned.
    '''
    playlist = assemble(iter_tags(content, strict), custom_tags_parser)
    return playlist, validate(playlist)


def parse(content: str | bytes, strict: bool = False,
          custom_tags_parser: CustomTagsParser | None = None) -> Playlist:
    '''
    Given a M3U8 playlist content returns a ``MediaPlaylist`` or a
    ``MultivariantPlaylist``.

    With ``strict`` the first validation issue is raised as a
    ``ValidationError``; otherwise issues are only logged at debug level.
    '''
    playlist, errors = parse_with_diagnostics(content, strict, custom_tags_parser)
    if errors:
        if strict:
            raise errors[0]
        logger.debug("playlist parsed with %d validation issues", len(errors))
    return playlist
