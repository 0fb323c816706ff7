"""Main API interface and command line entry point for the feed checker."""

import argparse
import functools
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import cache_manager
import config
import conf_walker
import feed_fetcher
from errors import RssCheckerError
from feed_parser import Feed
from logging_config import LOG_LEVELS, get_logger, setup_logging

logger = get_logger(__name__)


def get_new_links(
    feed_name: str,
    feed_url: str,
    cache_dir: Optional[Union[str, Path]] = None,
    fetcher: Callable[[str, str], Feed] = feed_fetcher.fetch_feed,
) -> List[str]:
    """
    Fetch a feed, report the links that are new since the last run and cache it.

    This function orchestrates the handling of a single feed:
    1. Check cache using cache_manager.read_cached_feed()
    2. Fetch the current feed using fetcher
    3. Compare links using cache_manager.find_new_links()
    4. Store the fetched feed using cache_manager.store_feed()

    A feed seen for the first time only seeds the cache and reports nothing.

    Args:
        feed_name: Name of the feed
        feed_url: URL of the feed
        cache_dir: Cache directory, defaults to config.CACHE_PATH
        fetcher: Callable that takes (feed_name: str, url: str) -> Feed

    Returns:
        Sorted list of links that were not present in the cached feed

    Raises:
        InvalidCacheError: If the feed's cache file can't be decoded; the feed
            is not fetched in that case
        FeedFetchError: If the feed can't be retrieved; the cache is untouched
        FeedParseError: If the feed is neither RSS nor Atom
    """
    # Step 1: Check cache for the previous run's items
    cached_df = cache_manager.read_cached_feed(feed_name, cache_dir)

    # Step 2: Fetch the current feed
    new_feed = fetcher(feed_name, feed_url)

    # Step 3: Compare against the cache, a first run has nothing to compare to
    if cached_df is None:
        new_links = []
    else:
        new_links = cache_manager.find_new_links(cached_df, new_feed)

    # Step 4: Replace the cache with the fetched feed
    cache_manager.store_feed(feed_name, new_feed, cache_dir)

    logger.info("feed[%s]: %d new links", feed_name, len(new_links))
    return new_links


def check_for_new_links(
    feed_mappings: Dict[str, str],
    cache_dir: Optional[Union[str, Path]] = None,
    fetcher: Callable[[str, str], Feed] = feed_fetcher.fetch_feed,
    max_workers: Optional[int] = None,
    show_progress: bool = False,
) -> List[str]:
    """
    Check every feed concurrently and collect the new links of all of them.

    Feeds that fail are logged and skipped.

    Args:
        feed_mappings: Dict mapping feed name to feed URL
        cache_dir: Cache directory, defaults to config.CACHE_PATH
        fetcher: Callable that takes (feed_name: str, url: str) -> Feed
        max_workers: Number of feeds checked at once
        show_progress: Whether to draw a progress bar on stderr

    Returns:
        Sorted list of distinct new links across all feeds
    """
    checker = functools.partial(get_new_links, cache_dir=cache_dir, fetcher=fetcher)

    results = feed_fetcher.check_feeds(
        feed_mappings, checker, max_workers=max_workers, show_progress=show_progress
    )

    new_unique_links = set()
    for feed_name, result in results.items():
        if isinstance(result, Exception):
            logger.error("[%s]: %s", feed_name, result)
        else:
            new_unique_links.update(result)

    return sorted(new_unique_links)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser, taking defaults from config."""
    parser = argparse.ArgumentParser(
        prog=config.APP_NAME,
        description="A rss feed checker",
    )
    parser.add_argument(
        "--conf-path",
        type=Path,
        default=config.CONF_PATH,
        required=config.CONF_PATH is None,
        help="the directory path to source configuration files "
        "[env: RSS_CHECKER_CONF_PATH]",
    )
    parser.add_argument(
        "--cache-path",
        type=Path,
        default=config.CACHE_PATH,
        help="the directory path to store all cache files "
        "[env: RSS_CHECKER_CACHE_PATH] (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        choices=list(LOG_LEVELS),
        default=config.LOG_LEVEL,
        help="the log level [env: RSS_CHECKER_LOG_LEVEL] (default: %(default)s)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=config.MAX_WORKERS,
        help="number of feeds fetched at once [env: RSS_CHECKER_WORKERS] "
        "(default: %(default)s)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=config.HTTP_TIMEOUT,
        help="HTTP timeout in seconds [env: RSS_CHECKER_HTTP_TIMEOUT] "
        "(default: %(default)s)",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="show a progress bar on stderr",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {config.APP_VERSION}",
    )
    return parser


def cli_main(argv: Optional[List[str]] = None) -> int:
    """
    Run the feed checker and print every new link on its own line.

    Args:
        argv: Command line arguments, defaults to sys.argv[1:]

    Returns:
        Process exit status: 0 on success (even when individual feeds failed),
        1 when the cache directory or the configuration can't be used
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.log_level not in LOG_LEVELS:
        parser.error(
            f"invalid log level '{args.log_level}' "
            f"(choose from {', '.join(LOG_LEVELS)})"
        )
    if args.workers < 1:
        parser.error("--workers must be at least 1")
    if args.timeout <= 0:
        parser.error("--timeout must be greater than 0")

    setup_logging(args.log_level)

    # create the cache directory pathing
    try:
        cache_dir = cache_manager.ensure_cache_directory(args.cache_path)
    except RssCheckerError as e:
        logger.error("%s", e)
        return 1

    try:
        feed_mappings = conf_walker.walk_conf_dir(args.conf_path)
    except RssCheckerError as e:
        logger.error("%s", e)
        return 1

    fetcher = functools.partial(feed_fetcher.fetch_feed, timeout=args.timeout)
    new_links = check_for_new_links(
        feed_mappings,
        cache_dir=cache_dir,
        fetcher=fetcher,
        max_workers=args.workers,
        show_progress=args.progress,
    )

    for new_link in new_links:
        print(new_link)

    return 0


if __name__ == "__main__":
    sys.exit(cli_main())
