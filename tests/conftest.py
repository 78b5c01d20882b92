"""Shared test fixtures."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from tweet_scrape.models import Content, PageResponse, Tweet, TweetStats

FIXTURES_DIR = Path(__file__).parent / "fixtures"

# 2018-11-28T09:00:00Z
BASE_TIME_MS = 1543395600000


def tweet_html(tweet_id: int | str, text: str = "hello", promoted: bool = False) -> str:
    """Markup for one timeline tweet as the feed renders it."""
    classes = "tweet js-stream-tweet" + (" promoted-tweet" if promoted else "")
    return (
        f'<li class="js-stream-item stream-item">'
        f'<div class="{classes}" data-tweet-id="{tweet_id}" data-user-id="783214" '
        f'data-screen-name="testuser">'
        f'<span class="_timestamp" data-time-ms="{BASE_TIME_MS}"></span>'
        f'<p class="tweet-text">{text}</p>'
        f"</div></li>"
    )


def items_html(ids) -> str:
    return "".join(tweet_html(i) for i in ids)


class FakeFetcher:
    """In-memory Fetcher that replays canned pages and records each call.

    Items in `pages` may be PageResponse objects or exceptions to raise.
    Once the list is exhausted the last entry is replayed.
    """

    def __init__(self, pages):
        self.pages = list(pages)
        self.calls: list[tuple[str, dict]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def fetch_page(self, path: str, params: dict) -> PageResponse:
        self.calls.append((path, dict(params)))
        page = self.pages[min(len(self.calls), len(self.pages)) - 1]
        if isinstance(page, Exception):
            raise page
        return page


@pytest.fixture
def timeline_items_html() -> str:
    return (FIXTURES_DIR / "timeline_items.html").read_text(encoding="utf-8")


@pytest.fixture
def profile_popup_html() -> str:
    return (FIXTURES_DIR / "profile_popup.html").read_text(encoding="utf-8")


@pytest.fixture
def full_profile_html() -> str:
    return (FIXTURES_DIR / "full_profile.html").read_text(encoding="utf-8")


@pytest.fixture
def three_page_feed() -> FakeFetcher:
    """20 tweets, then 15 tweets, then an empty page repeating the cursor."""
    return FakeFetcher(
        [
            PageResponse(
                items_html=items_html(range(1000, 980, -1)),
                min_position="C1",
                max_position="M1",
                new_latent_count=20,
            ),
            PageResponse(
                items_html=items_html(range(980, 965, -1)),
                min_position="C2",
                max_position="M2",
                new_latent_count=15,
            ),
            PageResponse(
                items_html="",
                min_position="C2",
                max_position="M3",
                new_latent_count=0,
            ),
        ]
    )


@pytest.fixture
def sample_tweets() -> list[Tweet]:
    """A couple of Tweet objects for output and validation tests."""
    now = datetime(2025, 2, 10, 18, 30, 0, tzinfo=timezone.utc)
    return [
        Tweet(
            tweet_id="1234567890",
            user_id="111",
            username="testuser",
            timestamp=now,
            content=Content(
                text="Reading ${:0} with ${@0} ${#0}",
                urls=["https://example.com/article"],
                hashtags=["python"],
                usernames=["friend"],
                user_ids=["222"],
            ),
            html='<div class="tweet"></div>',
            last_updated=now,
            stats=TweetStats(reply_count=1, retweet_count=2, like_count=3),
        ),
        Tweet(
            tweet_id="9876543210",
            user_id="333",
            username="trader",
            timestamp=now,
            content=Content(text="Buying ${$0}, costs \\${5}", cashtags=["AAPL"]),
            html='<div class="tweet"></div>',
            last_updated=now,
            quoted_tweet_id="1234567890",
        ),
    ]
