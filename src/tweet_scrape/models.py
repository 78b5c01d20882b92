"""Data models for scraped tweets, profiles and feed pages."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class PageResponse:
    """One page of the internal timeline feed.

    `min_position` and `max_position` are opaque cursors. Which one moves the
    run forward depends on the pagination direction.
    """

    items_html: str = ""
    min_position: str | None = None
    max_position: str | None = None
    new_latent_count: int | None = None


@dataclass
class BioContent:
    """Text with `${<kind><index>}` placeholders plus the entities they index.

    Kinds: `:` urls, `#` hashtags, `$` cashtags, `@` usernames.
    """

    text: str = ""
    urls: list[str] = field(default_factory=list)
    hashtags: list[str] = field(default_factory=list)
    cashtags: list[str] = field(default_factory=list)
    usernames: list[str] = field(default_factory=list)


@dataclass
class Content(BioContent):
    user_ids: list[str] = field(default_factory=list)  # parallel to usernames


@dataclass
class TweetStats:
    reply_count: int = 0
    retweet_count: int = 0
    like_count: int = 0


@dataclass
class Tweet:
    tweet_id: str
    user_id: str
    username: str  # screen_name without @
    timestamp: datetime
    content: Content
    html: str
    last_updated: datetime
    stats: TweetStats = field(default_factory=TweetStats)
    conversation_id: str | None = None
    quoted_tweet_id: str | None = None


@dataclass
class ProfileStats:
    tweet_count: int = 0
    following_count: int = 0
    followers_count: int = 0


@dataclass
class Profile:
    """Profile as shown in the hover card (`/i/profiles/popup`)."""

    user_id: str
    name: str
    username: str
    is_protected: bool
    bio: BioContent
    last_updated: datetime
    html: str
    stats: ProfileStats = field(default_factory=ProfileStats)
    avatar_url: str | None = None
    banner_url: str | None = None


@dataclass
class FullProfile(Profile):
    """Profile scraped from the full profile page."""

    joined_at: datetime | None = None
    geo: str | None = None
    website_url: str | None = None
    color: str | None = None  # hex with '#'
