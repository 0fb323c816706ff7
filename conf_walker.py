"""Loading of feed definitions from the configuration directory."""

import os
from pathlib import Path
from typing import Dict, Iterator, Union
from urllib.parse import urlsplit

from errors import (
    ConfDirError,
    DuplicateFeedError,
    InvalidFilenameError,
    InvalidUrlError,
)
from logging_config import get_logger

logger = get_logger(__name__)


def walk_conf_dir(conf_dir: Union[str, Path]) -> Dict[str, str]:
    """
    Read every feed definition in the configuration directory.

    Each regular file directly inside conf_dir defines one feed: the file name
    is the feed name and the file contents, stripped of surrounding whitespace,
    is the feed URL. Subdirectories are ignored.

    Args:
        conf_dir: Directory holding the feed definition files

    Returns:
        Dict mapping feed name to feed URL, ordered by feed name

    Raises:
        ConfDirError: If the directory or one of its files can't be read
        InvalidFilenameError: If a file name is not valid utf-8
        InvalidUrlError: If a file does not contain an absolute URL
        DuplicateFeedError: If a feed name is defined more than once

    Examples:
        A directory holding a file "news" with the contents
        "https://example.com/feed.xml" yields
        {"news": "https://example.com/feed.xml"}
    """
    feed_urls = {}

    for entry in _walk_files_in_dir(conf_dir):
        feed_name = _decode_filename(entry.name)

        try:
            contents = Path(entry.path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfDirError(str(e)).with_data(f"feed[{feed_name}]")

        feed_url = validate_feed_url(contents.strip())

        if feed_name in feed_urls:
            raise DuplicateFeedError(feed_name)
        feed_urls[feed_name] = feed_url
        logger.debug("loaded feed[%s] -> %s", feed_name, feed_url)

    return dict(sorted(feed_urls.items()))


def validate_feed_url(url: str) -> str:
    """
    Check that a feed URL is absolute.

    Args:
        url: The candidate URL

    Returns:
        The URL unchanged

    Raises:
        InvalidUrlError: If the URL has no scheme or no host

    Examples:
        >>> validate_feed_url("https://example.com/feed.xml")
        "https://example.com/feed.xml"
        >>> validate_feed_url("example.com/feed.xml")
        InvalidUrlError: relative URL without a base for example.com/feed.xml
    """
    if not url:
        raise InvalidUrlError("empty host", url)

    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise InvalidUrlError(str(e), url)

    if not parts.scheme:
        raise InvalidUrlError("relative URL without a base", url)
    if not parts.netloc:
        raise InvalidUrlError("empty host", url)

    return url


def _walk_files_in_dir(conf_dir: Union[str, Path]) -> Iterator[os.DirEntry]:
    """Yield the regular files directly inside conf_dir."""
    try:
        entries = list(os.scandir(conf_dir))
    except OSError as e:
        raise ConfDirError(str(e)).with_data(f"conf_dir[{conf_dir}]")

    for entry in entries:
        try:
            if entry.is_file():
                yield entry
        except OSError:
            # Entries that vanish or can't be stat'ed are not feed files
            continue


def _decode_filename(filename: str) -> str:
    """Reject file names that only survived decoding through surrogate escapes."""
    try:
        filename.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidFilenameError(filename)
    return filename
