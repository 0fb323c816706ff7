"""Cache management functionality for per-feed Parquet files."""

import os
from typing import List, Optional, Union
from pathlib import Path
import polars
import config
from errors import CacheDirError, CacheWriteError, InvalidCacheError
from feed_parser import Feed
from logging_config import get_logger

logger = get_logger(__name__)

CACHE_SCHEMA = {
    "link": polars.Utf8,
    "title": polars.Utf8,
    "published": polars.Utf8,
}


def read_cached_feed(
    feed_name: str, cache_dir: Optional[Union[str, Path]] = None
) -> Optional[polars.DataFrame]:
    """
    Return the cached items of a feed from the previous run.

    Args:
        feed_name: Name of the feed
        cache_dir: Cache directory, defaults to config.CACHE_PATH

    Returns:
        Polars DataFrame with the cached items, or None if the feed has never
        been cached

    Raises:
        InvalidCacheError: If the cache file exists but can't be decoded
    """
    cache_path = get_feed_cache_path(feed_name, cache_dir)

    # If cache file doesn't exist, this is the feed's first run
    if not cache_path.exists():
        logger.debug("cache file not found for %s", feed_name)
        return None

    try:
        cached_df = polars.read_parquet(cache_path)
    except Exception as e:
        logger.debug("error reading cache file %s: %s", cache_path, e)
        raise InvalidCacheError(feed_name).with_data(str(cache_path))

    if "link" not in cached_df.columns:
        raise InvalidCacheError(feed_name).with_data(str(cache_path))

    logger.debug("cache file found for %s", feed_name)
    return cached_df


def store_feed(
    feed_name: str, feed: Feed, cache_dir: Optional[Union[str, Path]] = None
) -> None:
    """
    Replace the cached items of a feed with the items of a fresh fetch.

    Args:
        feed_name: Name of the feed
        feed: The freshly fetched feed
        cache_dir: Cache directory, defaults to config.CACHE_PATH

    Raises:
        CacheWriteError: If the cache file can't be written
    """
    cache_path = get_feed_cache_path(feed_name, cache_dir)
    feed_df = feed_to_frame(feed)

    logger.debug("writing cache for feed[%s] to %s", feed_name, cache_path)

    # Write beside the live file and swap it in, readers never see a partial file
    tmp_path = cache_path.with_name(f".{cache_path.name}.tmp")
    try:
        feed_df.write_parquet(tmp_path)
        os.replace(tmp_path, cache_path)
    except Exception as e:
        tmp_path.unlink(missing_ok=True)
        raise CacheWriteError(
            f"Failed to write cache file {cache_path}: {e}"
        ).with_data(f"feed[{feed_name}]")


def feed_to_frame(feed: Feed) -> polars.DataFrame:
    """
    Convert a feed into the tabular layout stored in the cache.

    Args:
        feed: Parsed feed

    Returns:
        Polars DataFrame with columns link, title and published, one row per
        distinct link in document order
    """
    rows = [
        {"link": item.link, "title": item.title, "published": item.published}
        for item in feed.items
    ]
    feed_df = polars.DataFrame(rows, schema=CACHE_SCHEMA)

    return feed_df.unique(subset=["link"], keep="first", maintain_order=True)


def find_new_links(cached_df: polars.DataFrame, feed: Feed) -> List[str]:
    """
    Return the links of a feed that are absent from its cached items.

    Args:
        cached_df: Items cached on the previous run
        feed: The freshly fetched feed

    Returns:
        Sorted list of links present in feed but not in cached_df

    Examples:
        With "https://a.example/1" cached and a feed holding
        "https://a.example/1" and "https://a.example/2", the result is
        ["https://a.example/2"]
    """
    new_df = feed_to_frame(feed)
    cached_links = cached_df.select(polars.col("link").cast(polars.Utf8))

    new_links_df = new_df.join(cached_links, on="link", how="anti")

    return sorted(new_links_df["link"].to_list())


def get_feed_cache_path(
    feed_name: str, cache_dir: Optional[Union[str, Path]] = None
) -> Path:
    """
    Get the cache file path for a specific feed.

    Args:
        feed_name: Name of the feed, as defined by its configuration file name
        cache_dir: Cache directory, defaults to config.CACHE_PATH

    Returns:
        Path to the Parquet cache file for this feed

    Examples:
        >>> get_feed_cache_path("news", "/tmp/cache")
        Path("/tmp/cache/news.parquet")
    """
    if cache_dir is None:
        cache_dir = config.CACHE_PATH

    return Path(cache_dir) / f"{feed_name}.parquet"


def ensure_cache_directory(cache_dir: Optional[Union[str, Path]] = None) -> Path:
    """
    Ensure the cache directory exists, creating it if necessary.

    Creates the full directory path including any parent directories.

    Args:
        cache_dir: Cache directory, defaults to config.CACHE_PATH

    Returns:
        The cache directory path

    Raises:
        CacheDirError: If the path exists and is not a directory, or can't be
            created
    """
    if cache_dir is None:
        cache_dir = config.CACHE_PATH
    cache_dir = Path(cache_dir)

    if cache_dir.is_dir():
        return cache_dir

    if cache_dir.exists():
        raise CacheDirError(
            f"cache directory path exists and is not a directory: {cache_dir}"
        )

    logger.debug("creating cache directory at %s", cache_dir)
    try:
        cache_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise CacheDirError(str(e)).with_data(str(cache_dir))

    return cache_dir
