"""
Feed document parsing.

This module turns RSS 2.0, RSS 1.0/0.90 (RDF) and Atom documents into a
common Feed structure and extracts the item links the checker compares
between runs.
"""

import xml.etree.ElementTree as ET  # nosec B405 - expat resolves no external entities and caps entity expansion
from dataclasses import dataclass, field
from typing import List, Optional, Union
from urllib.parse import urlsplit, urlunsplit

from errors import FeedParseError

ATOM_NS = "http://www.w3.org/2005/Atom"
RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"

# RSS 1.0 and RSS 0.90 place channel and items directly under <rdf:RDF>
RDF_ITEM_NAMESPACES = (
    "http://purl.org/rss/1.0/",
    "http://my.netscape.com/rdf/simple/0.9/",
)

FEED_KIND_RSS = "rss"
FEED_KIND_ATOM = "atom"


@dataclass
class FeedItem:
    """A single linked item of a feed."""

    link: str
    title: Optional[str] = None
    published: Optional[str] = None


@dataclass
class Feed:
    """A parsed feed: its kind ("rss" or "atom"), title and linked items."""

    kind: str
    title: Optional[str] = None
    items: List[FeedItem] = field(default_factory=list)

    def links(self) -> List[str]:
        """Return the normalized item links in document order."""
        return [item.link for item in self.items]


def parse_feed(content: Union[bytes, str], feed_name: str) -> Feed:
    """
    Parse an RSS 2.0, RSS 1.0/0.90 or Atom document.

    Args:
        content: The raw document
        feed_name: Name of the feed, used in error messages

    Returns:
        The parsed Feed

    Raises:
        FeedParseError: If the document is not well-formed XML or is neither
            an RSS nor an Atom feed
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError:
        raise FeedParseError(feed_name)

    if root.tag == "rss" and root.find("channel") is not None:
        return _parse_rss(root)
    if root.tag == f"{{{ATOM_NS}}}feed":
        return _parse_atom(root)
    if root.tag == f"{{{RDF_NS}}}RDF":
        return _parse_rdf(root, feed_name)

    raise FeedParseError(feed_name)


def normalize_link(link: Optional[str]) -> Optional[str]:
    """
    Normalize an absolute URL, or return None if it isn't one.

    The scheme and host are lower-cased and an empty http(s) path becomes "/",
    so that the same link spelled slightly differently compares equal across
    runs.

    Args:
        link: Candidate link text

    Returns:
        The normalized link, or None when link is not an absolute URL

    Examples:
        >>> normalize_link("HTTPS://Example.COM")
        "https://example.com/"
        >>> normalize_link("/posts/1")
        None
    """
    if not link:
        return None

    link = link.strip()
    try:
        parts = urlsplit(link)
    except ValueError:
        return None

    if not parts.scheme or not parts.netloc:
        return None

    # Keep userinfo as written, only the host part is case-insensitive
    userinfo, sep, hostport = parts.netloc.rpartition("@")
    netloc = f"{userinfo}{sep}{hostport.lower()}"

    scheme = parts.scheme.lower()
    path = parts.path
    if not path and scheme in ("http", "https"):
        path = "/"

    return urlunsplit((scheme, netloc, path, parts.query, parts.fragment))


def _text(element: Optional[ET.Element]) -> Optional[str]:
    if element is None or element.text is None:
        return None
    return element.text.strip()


def _parse_rss(root: ET.Element) -> Feed:
    channel = root.find("channel")
    feed = Feed(kind=FEED_KIND_RSS, title=_text(channel.find("title")))

    for item in channel.findall("item"):
        link = normalize_link(_text(item.find("link")))
        if link is None:
            continue
        feed.items.append(
            FeedItem(
                link=link,
                title=_text(item.find("title")),
                published=_text(item.find("pubDate")),
            )
        )

    return feed


def _parse_atom(root: ET.Element) -> Feed:
    feed = Feed(kind=FEED_KIND_ATOM, title=_text(root.find(f"{{{ATOM_NS}}}title")))

    for entry in root.findall(f"{{{ATOM_NS}}}entry"):
        title = _text(entry.find(f"{{{ATOM_NS}}}title"))
        published = _text(entry.find(f"{{{ATOM_NS}}}published")) or _text(
            entry.find(f"{{{ATOM_NS}}}updated")
        )

        # Every link of an entry counts, not only rel="alternate"
        for link_element in entry.findall(f"{{{ATOM_NS}}}link"):
            link = normalize_link(link_element.get("href"))
            if link is None:
                continue
            feed.items.append(FeedItem(link=link, title=title, published=published))

    return feed


def _parse_rdf(root: ET.Element, feed_name: str) -> Feed:
    for namespace in RDF_ITEM_NAMESPACES:
        channel = root.find(f"{{{namespace}}}channel")
        items = root.findall(f"{{{namespace}}}item")
        if channel is None and not items:
            continue

        feed = Feed(
            kind=FEED_KIND_RSS,
            title=_text(channel.find(f"{{{namespace}}}title"))
            if channel is not None
            else None,
        )
        for item in items:
            link = normalize_link(_text(item.find(f"{{{namespace}}}link")))
            if link is None:
                continue
            feed.items.append(
                FeedItem(link=link, title=_text(item.find(f"{{{namespace}}}title")))
            )
        return feed

    raise FeedParseError(feed_name)
