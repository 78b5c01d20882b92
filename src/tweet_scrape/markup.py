"""Helpers shared by the tweet and profile extractors.

Markup may be handed in as a parsed document (BeautifulSoup), a single parsed
element (Tag) or a raw HTML string. `to_node` turns each of them into a Tag
that selectors can run against.
"""

import re
from datetime import datetime, timezone

from bs4 import BeautifulSoup, NavigableString, Tag

from .errors import ConversionError, NotFoundError

# e.g. "1:26 PM - 25 Sep 2016"
TWITTER_TIME_FORMAT = "%I:%M %p - %d %b %Y"

# indentation between tags; single spaces between inline tags are kept
_BETWEEN_TAGS_RE = re.compile(r">\s*\n\s*<")

Markup = BeautifulSoup | Tag | str


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def _from_document(document: BeautifulSoup) -> Tag:
    return document


def _from_node(node: Tag) -> Tag:
    return node


def _from_string(html: str) -> Tag:
    return parse_html(html)


def to_node(fragment: Markup) -> Tag:
    """Normalize a document, element or HTML string into a traversable Tag."""
    # BeautifulSoup subclasses Tag, so it must be checked first
    if isinstance(fragment, BeautifulSoup):
        return _from_document(fragment)
    if isinstance(fragment, Tag):
        return _from_node(fragment)
    # parsed text nodes are str subclasses but are not markup
    if isinstance(fragment, str) and not isinstance(fragment, NavigableString):
        return _from_string(fragment)
    raise ConversionError(
        f"Cannot convert {type(fragment).__name__} to a markup node"
    )


def select_all(fragment: Markup, selector: str) -> list[Tag]:
    """Return every element matching `selector`, including the node itself."""
    node = to_node(fragment)
    matches = node.select(selector)
    if not isinstance(node, BeautifulSoup) and node.css.match(selector):
        matches.insert(0, node)
    return matches


def select_first(fragment: Markup, selector: str) -> Tag | None:
    node = to_node(fragment)
    if not isinstance(node, BeautifulSoup) and node.css.match(selector):
        return node
    return node.select_one(selector)


def require_first(fragment: Markup, selector: str) -> Tag:
    """Like select_first but raises NotFoundError when nothing matches."""
    found = select_first(fragment, selector)
    if found is None:
        raise NotFoundError(f"No element matches {selector!r}")
    return found


def attr(node: Tag | None, name: str, default: str | None = None) -> str | None:
    """Return an attribute value, or `default` when the node or value is absent."""
    if node is None:
        return default
    value = node.get(name)
    if value is None:
        return default
    if isinstance(value, list):  # multi-valued attributes such as class
        return " ".join(value)
    return value


def int_attr(node: Tag | None, name: str, default: int = 0) -> int:
    """Return an integer attribute, or `default` when absent or not numeric."""
    value = attr(node, name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def has_class(node: Tag, name: str) -> bool:
    return name in (node.get("class") or [])


def minify_html(html: str) -> str:
    """Strip line breaks and indentation between tags."""
    return _BETWEEN_TAGS_RE.sub("><", html.strip())


def outer_html(node: Tag) -> str:
    return minify_html(str(node))


def twitter_time_to_date(text: str) -> datetime:
    """Parse a timestamp of the form "1:26 PM - 25 Sep 2016" as UTC."""
    try:
        parsed = datetime.strptime(text, TWITTER_TIME_FORMAT)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Unparsable date '{text}'") from e
    return parsed.replace(tzinfo=timezone.utc)
