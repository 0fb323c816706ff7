"""Configuration settings for the feed checker."""

import os
import pathlib

APP_NAME = "rss_checker"
APP_VERSION = "0.1.0"

# Directory holding one file per feed: the file name is the feed name and the
# file body is the feed URL.
_conf_path = os.environ.get("RSS_CHECKER_CONF_PATH")
CONF_PATH = pathlib.Path(_conf_path) if _conf_path else None

# Relative so that running from /opt/rss_checker lands on the image's volume
CACHE_PATH = pathlib.Path(
    os.environ.get("RSS_CHECKER_CACHE_PATH", f".{APP_NAME}/cache")
)

LOG_LEVEL = os.environ.get("RSS_CHECKER_LOG_LEVEL", "error")

# Kept as strings, the command line parser converts and validates them.
# Seconds
HTTP_TIMEOUT = os.environ.get("RSS_CHECKER_HTTP_TIMEOUT", "30")

MAX_WORKERS = os.environ.get("RSS_CHECKER_WORKERS", "8")

USER_AGENT = f"{APP_NAME}/{APP_VERSION}"
