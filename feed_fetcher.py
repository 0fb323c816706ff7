"""Feed retrieval and concurrent feed checking with progress tracking."""

import concurrent.futures
from typing import Callable, Dict, List, Optional, Union

import requests
from tqdm import tqdm

import config
from errors import FeedFetchError
from feed_parser import Feed, parse_feed
from logging_config import get_logger

logger = get_logger(__name__)

# Either the new links of a feed or the error that stopped it
FeedResult = Union[List[str], Exception]


def fetch_feed(
    feed_name: str,
    url: str,
    timeout: Optional[float] = None,
    session: Optional[requests.Session] = None,
) -> Feed:
    """
    Download and parse a feed.

    Args:
        feed_name: Name of the feed, used as error context
        url: Feed URL
        timeout: Request timeout in seconds, defaults to config.HTTP_TIMEOUT
        session: Optional requests session to issue the request with

    Returns:
        The parsed Feed

    Raises:
        FeedFetchError: If the request fails or the server answers with an
            error status
        FeedParseError: If the body is neither RSS nor Atom
    """
    if timeout is None:
        timeout = float(config.HTTP_TIMEOUT)
    http = session if session is not None else requests

    logger.debug("fetching feed[%s] from %s", feed_name, url)
    try:
        response = http.get(
            url, headers={"User-Agent": config.USER_AGENT}, timeout=timeout
        )
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise FeedFetchError(str(e)).with_data(f"feed[{feed_name}]")

    return parse_feed(response.content, feed_name)


def check_feeds(
    feed_mappings: Dict[str, str],
    checker: Callable[[str, str], List[str]],
    max_workers: Optional[int] = None,
    show_progress: bool = False,
) -> Dict[str, FeedResult]:
    """
    Run a checker over every feed concurrently.

    Args:
        feed_mappings: Dict mapping feed name to feed URL
        checker: Callable that takes (feed_name: str, url: str) -> List[str]
        max_workers: Size of the thread pool, defaults to config.MAX_WORKERS
        show_progress: Whether to draw a progress bar on stderr

    Returns:
        Dict mapping each feed name to either the list returned by checker or
        the exception it raised, ordered like feed_mappings
    """
    if not feed_mappings:
        return {}

    if max_workers is None:
        max_workers = int(config.MAX_WORKERS)
    max_workers = max(1, min(max_workers, len(feed_mappings)))

    results: Dict[str, FeedResult] = {}
    failed_feeds = 0

    with tqdm(
        total=len(feed_mappings),
        desc="Checking feeds",
        unit="feed",
        disable=not show_progress,
    ) as pbar:
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_name = {
                executor.submit(checker, feed_name, url): feed_name
                for feed_name, url in feed_mappings.items()
            }

            for future in concurrent.futures.as_completed(future_to_name):
                feed_name = future_to_name[future]
                try:
                    results[feed_name] = future.result()
                except Exception as e:
                    # One feed failing never stops the others
                    results[feed_name] = e
                    failed_feeds += 1

                postfix = {"Feed": feed_name}
                if failed_feeds:
                    postfix["Errors"] = failed_feeds
                pbar.set_postfix(postfix)
                pbar.update(1)

    if failed_feeds:
        logger.warning("%d out of %d feeds failed", failed_feeds, len(feed_mappings))

    return {feed_name: results[feed_name] for feed_name in feed_mappings}
