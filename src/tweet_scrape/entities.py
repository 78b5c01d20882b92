"""Rebuild tweet and bio text with placeholder-indexed entities.

Only the direct children of the matched element are walked, in document
order. Entities are replaced in the text by `${<kind><index>}` where the
index points into the list for that kind:

    ${:0}  urls                       ${#0}  hashtags (lower-cased)
    ${$0}  cashtags (upper-cased)     ${@0}  usernames / user_ids

Literal `${` in the source text is escaped as `\\${`, and a trailing
backslash becomes `\\ ` so it cannot escape the placeholder that follows.
"""

import logging

from bs4 import Comment, NavigableString, Tag

from .markup import Markup, has_class, select_first
from .models import BioContent, Content

logger = logging.getLogger(__name__)

# Elements whose text is kept as-is (search term highlighting)
TEXT_TAGS = {"strong", "b", "em"}


def _escape_text(chunk: str) -> str:
    chunk = chunk.replace("${", "\\${")
    if chunk.endswith("\\"):
        chunk = chunk[:-1] + "\\ "
    return chunk


def _parse_entities(fragment: Markup, selector: str) -> Content:
    content = Content()
    parent = select_first(fragment, selector)
    if parent is None:
        logger.debug("No element matches %r; returning empty content", selector)
        return content

    text_parts: list[str] = []

    for node in parent.children:
        if isinstance(node, Comment):
            continue

        if isinstance(node, NavigableString):
            text_parts.append(_escape_text(str(node)))
            continue

        if not isinstance(node, Tag):
            continue

        if node.name in TEXT_TAGS:
            text_parts.append(_escape_text(node.get_text()))

        elif node.name == "img":
            # emojis are rendered as images with the character in alt
            if has_class(node, "Emoji"):
                text_parts.append(node.get("alt", ""))

        elif node.name == "a":
            if has_class(node, "twitter-hashtag"):
                text_parts.append("${#%d}" % len(content.hashtags))
                content.hashtags.append(node.get_text()[1:].lower())

            elif has_class(node, "twitter-atreply"):
                text_parts.append("${@%d}" % len(content.user_ids))
                content.user_ids.append(node.get("data-mentioned-user-id", ""))
                content.usernames.append(node.get_text()[1:])

            elif has_class(node, "twitter-cashtag"):
                text_parts.append("${$%d}" % len(content.cashtags))
                content.cashtags.append(node.get_text()[1:].upper())

            # hidden links belong to cards and media, not the visible text
            elif has_class(node, "twitter-timeline-link") and not has_class(
                node, "u-hidden"
            ):
                text_parts.append("${:%d}" % len(content.urls))
                content.urls.append(
                    node.get("data-expanded-url") or node.get("href", "")
                )

    content.text = "".join(text_parts)
    return content


def extract_content(fragment: Markup, selector: str) -> Content:
    """Extract text and entities from the first element matching `selector`."""
    return _parse_entities(fragment, selector)


def extract_bio_content(fragment: Markup, selector: str) -> BioContent:
    """Extract a bio; mention ids are dropped since bios render them as '0'."""
    content = _parse_entities(fragment, selector)
    return BioContent(
        text=content.text,
        urls=content.urls,
        hashtags=content.hashtags,
        cashtags=content.cashtags,
        usernames=content.usernames,
    )
