"""
Unit tests for cache_manager module.
"""

import pytest
import tempfile
from pathlib import Path
from unittest.mock import patch
import polars
from cache_manager import (
    ensure_cache_directory,
    feed_to_frame,
    find_new_links,
    get_feed_cache_path,
    read_cached_feed,
    store_feed,
)
from errors import CacheDirError, CacheWriteError, InvalidCacheError
from feed_parser import Feed, FeedItem


def make_feed(*links):
    return Feed(kind="rss", items=[FeedItem(link=link, title=link) for link in links])


class TestCacheFileOperations:
    """Test cases for basic cache file operations."""

    def test_get_feed_cache_path_default(self):
        """Test path generation from the configured cache directory."""
        with patch("config.CACHE_PATH", Path("/tmp/test_cache")):
            result = get_feed_cache_path("news")
            expected = Path("/tmp/test_cache/news.parquet")
            assert result == expected

    def test_get_feed_cache_path_explicit(self):
        """Test path generation with an explicit cache directory."""
        result = get_feed_cache_path("blog.example", "/var/cache/feeds")
        expected = Path("/var/cache/feeds/blog.example.parquet")
        assert result == expected

    def test_ensure_cache_directory_creates_parents(self):
        """Test that ensure_cache_directory creates parent directories."""
        with tempfile.TemporaryDirectory() as temp_dir:
            test_cache_dir = Path(temp_dir) / "parent" / "child" / "cache"

            with patch("config.CACHE_PATH", test_cache_dir):
                # No directories should exist initially
                assert not test_cache_dir.exists()

                result = ensure_cache_directory()

                assert result == test_cache_dir
                assert test_cache_dir.is_dir()

    def test_ensure_cache_directory_existing_directory(self):
        """Test that ensure_cache_directory works with existing directory."""
        with tempfile.TemporaryDirectory() as temp_dir:
            test_cache_dir = Path(temp_dir) / "existing_cache"
            test_cache_dir.mkdir()

            # Should not raise error
            ensure_cache_directory(test_cache_dir)

            assert test_cache_dir.is_dir()

    def test_ensure_cache_directory_path_is_file(self):
        """Test that a file in place of the cache directory is rejected."""
        with tempfile.TemporaryDirectory() as temp_dir:
            test_cache_path = Path(temp_dir) / "cache"
            test_cache_path.write_text("not a directory")

            with pytest.raises(CacheDirError, match="is not a directory"):
                ensure_cache_directory(test_cache_path)

    def test_ensure_cache_directory_creation_fails(self):
        """Test that a directory that can't be created is reported."""
        with tempfile.TemporaryDirectory() as temp_dir:
            blocking_file = Path(temp_dir) / "parent"
            blocking_file.write_text("not a directory")
            test_cache_dir = blocking_file / "cache"

            with pytest.raises(CacheDirError) as exc_info:
                ensure_cache_directory(test_cache_dir)

            assert exc_info.value.data == str(test_cache_dir)


class TestFeedFrames:
    """Test cases for converting feeds to cache frames."""

    def test_feed_to_frame_columns(self):
        """Test the layout of the cached items."""
        feed = Feed(
            kind="rss",
            items=[
                FeedItem(link="https://example.com/1", title="One", published="today")
            ],
        )

        result = feed_to_frame(feed)

        assert result.columns == ["link", "title", "published"]
        assert result.row(0) == ("https://example.com/1", "One", "today")

    def test_feed_to_frame_removes_duplicate_links(self):
        """Test that a link listed twice is stored once, keeping order."""
        feed = make_feed(
            "https://example.com/2", "https://example.com/1", "https://example.com/2"
        )

        result = feed_to_frame(feed)

        assert result["link"].to_list() == [
            "https://example.com/2",
            "https://example.com/1",
        ]

    def test_feed_to_frame_empty_feed(self):
        """Test that a feed without items gives an empty frame with the schema."""
        result = feed_to_frame(Feed(kind="atom"))

        assert result.height == 0
        assert result.schema["link"] == polars.Utf8


class TestCacheReadWrite:
    """Test cases for reading and writing feed caches."""

    def test_read_cached_feed_no_cache_file(self):
        """Test behavior when cache file doesn't exist."""
        with tempfile.TemporaryDirectory() as temp_dir:
            assert read_cached_feed("news", temp_dir) is None

    def test_store_then_read_cached_feed(self):
        """Test that stored items are read back."""
        with tempfile.TemporaryDirectory() as temp_dir:
            store_feed("news", make_feed("https://example.com/1"), temp_dir)

            assert (Path(temp_dir) / "news.parquet").exists()

            result = read_cached_feed("news", temp_dir)
            assert result["link"].to_list() == ["https://example.com/1"]

    def test_store_feed_replaces_previous_items(self):
        """Test that the cache keeps only the most recent fetch."""
        with tempfile.TemporaryDirectory() as temp_dir:
            store_feed("news", make_feed("https://example.com/1"), temp_dir)
            store_feed("news", make_feed("https://example.com/2"), temp_dir)

            result = read_cached_feed("news", temp_dir)
            assert result["link"].to_list() == ["https://example.com/2"]

    def test_store_feed_uses_configured_directory(self):
        """Test that the configured cache directory is used by default."""
        with tempfile.TemporaryDirectory() as temp_dir:
            with patch("config.CACHE_PATH", Path(temp_dir)):
                store_feed("news", make_feed("https://example.com/1"))

                assert read_cached_feed("news") is not None

    def test_read_cached_feed_corrupt_file(self):
        """Test that an undecodable cache file is reported."""
        with tempfile.TemporaryDirectory() as temp_dir:
            cache_path = Path(temp_dir) / "news.parquet"
            cache_path.write_text("<rss>not parquet</rss>")

            with pytest.raises(InvalidCacheError) as exc_info:
                read_cached_feed("news", temp_dir)

            assert exc_info.value.feed_name == "news"
            assert str(cache_path) in str(exc_info.value)

    def test_read_cached_feed_without_link_column(self):
        """Test that a parquet file of another layout is reported."""
        with tempfile.TemporaryDirectory() as temp_dir:
            cache_path = Path(temp_dir) / "news.parquet"
            polars.DataFrame({"id": [1, 2]}).write_parquet(cache_path)

            with pytest.raises(InvalidCacheError):
                read_cached_feed("news", temp_dir)

    def test_store_feed_missing_directory(self):
        """Test that a failing write carries the feed name."""
        with tempfile.TemporaryDirectory() as temp_dir:
            missing_dir = Path(temp_dir) / "missing"

            with pytest.raises(CacheWriteError, match=r"feed\[news\]"):
                store_feed("news", make_feed("https://example.com/1"), missing_dir)

    def test_store_feed_leaves_no_temp_file(self):
        """Test that only the cache file remains after a write."""
        with tempfile.TemporaryDirectory() as temp_dir:
            store_feed("news", make_feed("https://example.com/1"), temp_dir)

            assert sorted(p.name for p in Path(temp_dir).iterdir()) == ["news.parquet"]

    def test_store_feed_failed_write_keeps_previous_cache(self):
        """Test that an interrupted write leaves the previous cache readable."""
        with tempfile.TemporaryDirectory() as temp_dir:
            store_feed("news", make_feed("https://example.com/1"), temp_dir)

            with patch(
                "polars.DataFrame.write_parquet", side_effect=OSError("disk full")
            ):
                with pytest.raises(CacheWriteError, match="disk full"):
                    store_feed("news", make_feed("https://example.com/2"), temp_dir)

            result = read_cached_feed("news", temp_dir)
            assert result["link"].to_list() == ["https://example.com/1"]
            assert sorted(p.name for p in Path(temp_dir).iterdir()) == ["news.parquet"]


class TestFindNewLinks:
    """Test cases for comparing a fetch against the cache."""

    def test_find_new_links(self):
        cached_df = feed_to_frame(make_feed("https://a.example/1"))
        feed = make_feed("https://a.example/1", "https://a.example/2")

        assert find_new_links(cached_df, feed) == ["https://a.example/2"]

    def test_find_new_links_nothing_new(self):
        cached_df = feed_to_frame(make_feed("https://a.example/1", "https://a.example/2"))
        feed = make_feed("https://a.example/2")

        assert find_new_links(cached_df, feed) == []

    def test_find_new_links_is_sorted_and_unique(self):
        """Test that new links are deduplicated and sorted."""
        cached_df = feed_to_frame(make_feed())
        feed = make_feed("https://c.example/", "https://a.example/", "https://c.example/")

        assert find_new_links(cached_df, feed) == [
            "https://a.example/",
            "https://c.example/",
        ]

    def test_find_new_links_against_read_cache(self):
        """Test comparison against a cache read back from disk."""
        with tempfile.TemporaryDirectory() as temp_dir:
            store_feed("news", make_feed("https://a.example/1"), temp_dir)
            cached_df = read_cached_feed("news", temp_dir)

            feed = make_feed("https://a.example/3", "https://a.example/1")

            assert find_new_links(cached_df, feed) == ["https://a.example/3"]
