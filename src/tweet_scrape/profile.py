"""Parse profile markup into Profile and FullProfile objects.

Two sources render a profile:
    /i/profiles/popup   hover card, not rate-limited, lookup by id or handle
    /<username>         full page, adds join date, location, website, colour
"""

import logging
import re
from datetime import datetime, timezone

import tinycss2

from .entities import extract_bio_content
from .errors import NotFoundError
from .markup import Markup, attr, int_attr, outer_html, require_first, twitter_time_to_date
from .models import FullProfile, Profile, ProfileStats

logger = logging.getLogger(__name__)

POPUP_SELECTOR = ".profile-card"
PAGE_SELECTOR = "#page-container"

# background-image: url('https://pbs.twimg.com/profile_banners/123/456/web')
_BANNER_RE = re.compile(r"url\(['\"]?(.+)/[^/]+?['\"]?\)")

# Largest banner size known to exist for old and new accounts
BANNER_SIZE = "1500x500"


def _avatar_url(src: str | None) -> str | None:
    if not src or "default_profile" in src:
        return None
    # "_bigger" is actually a small thumbnail; dropping it gives the original
    return src.replace("_bigger", "")


def _banner_from_style(style: str | None) -> str | None:
    if not style:
        return None
    match = _BANNER_RE.search(style)
    if not match:
        return None
    return f"{match.group(1)}/{BANNER_SIZE}"


def _link_color(stylesheet: str) -> str | None:
    """Return the first declaration value of the rule targeting plain `a`."""
    rules = tinycss2.parse_stylesheet(stylesheet, skip_comments=True, skip_whitespace=True)
    for rule in rules:
        if rule.type != "qualified-rule":
            continue
        selectors = tinycss2.serialize(rule.prelude).split(",")
        if "a" not in [s.strip() for s in selectors]:
            continue
        declarations = tinycss2.parse_declaration_list(
            rule.content, skip_comments=True, skip_whitespace=True
        )
        for declaration in declarations:
            if declaration.type == "declaration":
                return tinycss2.serialize(declaration.value).strip().upper()
    return None


def parse_profile(fragment: Markup) -> Profile:
    """Parse the hover-card profile returned by /i/profiles/popup."""
    card = require_first(fragment, POPUP_SELECTOR)
    actions = card.select_one(".user-actions")
    if actions is None:
        raise NotFoundError("Profile card has no .user-actions element")

    stats = card.select(".ProfileCardStats-statValue")
    counts = [int_attr(el, "data-count") for el in stats[:3]]
    counts += [0] * (3 - len(counts))

    bg = card.select_one(".ProfileCard-bg")
    avatar = card.select_one(".ProfileCard-avatarLink > img")

    return Profile(
        user_id=attr(actions, "data-user-id", ""),
        name=attr(actions, "data-name", ""),
        username=attr(actions, "data-screen-name", ""),
        is_protected=attr(actions, "data-protected") == "true",
        bio=extract_bio_content(card, ".bio"),
        last_updated=datetime.now(timezone.utc),
        html=outer_html(card),
        stats=ProfileStats(
            tweet_count=counts[0],
            following_count=counts[1],
            followers_count=counts[2],
        ),
        avatar_url=_avatar_url(attr(avatar, "src")),
        banner_url=_banner_from_style(attr(bg, "style")),
    )


def parse_full_profile(fragment: Markup) -> FullProfile:
    """Parse the profile page served at twitter.com/<username>."""
    page = require_first(fragment, PAGE_SELECTOR)

    nav = page.select_one(".ProfileNav")
    if nav is None:
        raise NotFoundError("Profile page has no .ProfileNav element")

    join_date = attr(page.select_one(".ProfileHeaderCard-joinDateText"), "title")
    geo_el = page.select_one(".ProfileHeaderCard-locationText")
    geo = geo_el.get_text().strip() if geo_el else ""
    website = attr(page.select_one(".ProfileHeaderCard-urlText > a"), "title")

    color = None
    style_el = page.select_one('style[id^="user-style-"]')
    if style_el is not None:
        color = _link_color(style_el.get_text())

    def count(item: str) -> int:
        return int_attr(page.select_one(f".ProfileNav-item--{item} [data-count]"), "data-count")

    handle = page.select_one(".ProfileHeaderCard-screennameLink > span.username > b")
    name = page.select_one(".ProfileHeaderCard-nameLink")

    return FullProfile(
        user_id=attr(nav, "data-user-id", ""),
        name=name.get_text() if name else "",
        username=handle.get_text() if handle else "",
        is_protected=page.select_one(".ProfileHeaderCard-badges > a > .Icon--protected") is not None,
        bio=extract_bio_content(page, ".ProfileHeaderCard-bio"),
        last_updated=datetime.now(timezone.utc),
        html=outer_html(page),
        stats=ProfileStats(
            tweet_count=count("tweets"),
            following_count=count("following"),
            followers_count=count("followers"),
        ),
        avatar_url=_avatar_url(attr(page.select_one(".ProfileAvatar-image"), "src")),
        banner_url=attr(page.select_one(".ProfileCanopy-headerBg > img"), "src"),
        joined_at=twitter_time_to_date(join_date) if join_date else None,
        geo=geo or None,
        website_url=website or None,
        color=color,
    )
