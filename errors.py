"""Exception types raised by the feed checker."""

from typing import Optional


class RssCheckerError(Exception):
    """
    Base class for all feed checker errors.

    An error may carry an optional context string (for example ``feed[news]``)
    which is appended to the message when the error is rendered.
    """

    def __init__(self, message: str, data: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.data = data

    def with_data(self, data: str) -> "RssCheckerError":
        """
        Enrich the error with additional context and return it.

        Args:
            data: Context describing where the error happened

        Returns:
            The same error instance, so it can be used in a raise statement

        Examples:
            >>> str(FeedFetchError("timed out").with_data("feed[news]"))
            "timed out: feed[news]"
        """
        self.data = data
        return self

    def __str__(self) -> str:
        if self.data is not None:
            return f"{self.message}: {self.data}"
        return self.message


class InvalidUrlError(RssCheckerError):
    """Raised when a feed definition does not hold an absolute URL."""

    def __init__(self, reason: str, url: str):
        super().__init__(f"{reason} for {url}")
        self.reason = reason
        self.url = url


class DuplicateFeedError(RssCheckerError):
    """Raised when the same feed name is defined more than once."""

    def __init__(self, feed_name: str):
        super().__init__(f"feed {feed_name} is defined more than once")
        self.feed_name = feed_name


class InvalidFilenameError(RssCheckerError):
    """Raised when a configuration file name is not valid utf-8."""

    def __init__(self, filename: str):
        super().__init__(f"filename must be representable as utf-8: {filename!r}")
        self.filename = filename


class ConfDirError(RssCheckerError):
    """Raised when the configuration directory or one of its files can't be read."""

    pass


class FeedFetchError(RssCheckerError):
    """Raised when a feed can't be retrieved over HTTP."""

    pass


class FeedParseError(RssCheckerError):
    """Raised when a document is neither an RSS nor an Atom feed."""

    def __init__(self, feed_name: str):
        super().__init__(f"feed {feed_name} is neither atom or rss")
        self.feed_name = feed_name


class InvalidCacheError(RssCheckerError):
    """Raised when a feed's cache file exists but can't be decoded."""

    def __init__(self, feed_name: str):
        super().__init__(f"cache for feed {feed_name} is invalid")
        self.feed_name = feed_name


class CacheDirError(RssCheckerError):
    """Raised when the cache directory can't be used or created."""

    pass


class CacheWriteError(RssCheckerError):
    """Raised when a feed's cache file can't be written."""

    pass
