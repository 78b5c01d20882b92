"""Sanity checks for scraped tweets and profiles.

These are used by the `--strict` CLI flag as a stream `valid` predicate and
by tests. Each check returns a list of problems rather than raising, so a
caller can log why a tweet was rejected.
"""

import re
from datetime import datetime, timezone

from .models import BioContent, Content, Profile, Tweet

_ID_RE = re.compile(r"^[0-9]+$")
_USERNAME_RE = re.compile(r"^\w{1,15}$")
_HASHTAG_RE = re.compile(r"^\w*[^\W\d]\w*$")
_CASHTAG_RE = re.compile(r"^[A-Z][A-Z_]{0,5}$")
_PLACEHOLDER_RE = re.compile(r"(?<!\\)\$\{([:#$@])(\d+)\}")

# 21/03/2006, the date of the first tweet
FIRST_TWEET_AT = datetime(2006, 3, 21, tzinfo=timezone.utc)


def valid_id(value: str | None) -> bool:
    """Return whether `value` looks like a tweet or user id."""
    return bool(value) and _ID_RE.match(value) is not None


def _entity_lists(content: BioContent) -> dict[str, list[str]]:
    return {
        ":": content.urls,
        "#": content.hashtags,
        "$": content.cashtags,
        "@": content.usernames,
    }


def content_problems(content: BioContent) -> list[str]:
    problems = []
    lists = _entity_lists(content)

    for kind, index in _PLACEHOLDER_RE.findall(content.text):
        if int(index) >= len(lists[kind]):
            problems.append(f"placeholder ${{{kind}{index}}} has no entity")

    if isinstance(content, Content) and len(content.user_ids) != len(content.usernames):
        problems.append("mention ids and usernames differ in length")

    problems += [f"bad username {u!r}" for u in content.usernames if not _USERNAME_RE.match(u)]
    problems += [f"bad hashtag {h!r}" for h in content.hashtags if not _HASHTAG_RE.match(h) or h != h.lower()]
    problems += [f"bad cashtag {c!r}" for c in content.cashtags if not _CASHTAG_RE.match(c)]
    return problems


def tweet_problems(tweet: Tweet) -> list[str]:
    """Return a list of reasons why `tweet` looks malformed (empty if fine)."""
    problems = []
    if not valid_id(tweet.tweet_id):
        problems.append(f"bad tweet id {tweet.tweet_id!r}")
    if not valid_id(tweet.user_id):
        problems.append(f"bad user id {tweet.user_id!r}")
    if not _USERNAME_RE.match(tweet.username or ""):
        problems.append(f"bad username {tweet.username!r}")
    if not FIRST_TWEET_AT <= tweet.timestamp <= datetime.now(timezone.utc):
        problems.append(f"timestamp out of range: {tweet.timestamp.isoformat()}")
    if tweet.quoted_tweet_id is not None and not valid_id(tweet.quoted_tweet_id):
        problems.append(f"bad quoted tweet id {tweet.quoted_tweet_id!r}")
    for name, value in vars(tweet.stats).items():
        if value < 0:
            problems.append(f"negative {name}")
    problems += content_problems(tweet.content)
    return problems


def profile_problems(profile: Profile) -> list[str]:
    problems = []
    if not valid_id(profile.user_id):
        problems.append(f"bad user id {profile.user_id!r}")
    if not _USERNAME_RE.match(profile.username or ""):
        problems.append(f"bad username {profile.username!r}")
    for name, value in vars(profile.stats).items():
        if value < 0:
            problems.append(f"negative {name}")
    problems += content_problems(profile.bio)
    return problems


def is_valid_tweet(tweet: Tweet) -> bool:
    return not tweet_problems(tweet)
