"""Parse rendered tweet markup into Tweet model objects.

A tweet element carries its scalar fields as data attributes:

    <div class="tweet" data-tweet-id data-user-id data-screen-name
         data-conversation-id>
      <span class="_timestamp" data-time-ms="...">
      <p class="tweet-text">...</p>
      <a class="QuoteTweet-link" data-conversation-id="...">   (quotes only)
      <span class="ProfileTweet-action--reply">
        <span data-tweet-stat-count="3">
"""

import logging
from datetime import datetime, timezone

from .entities import extract_content
from .errors import NotFoundError
from .markup import Markup, attr, int_attr, outer_html, require_first
from .models import Tweet, TweetStats

logger = logging.getLogger(__name__)

TWEET_SELECTOR = ".tweet"
TEXT_SELECTOR = ".tweet-text"

STAT_SELECTORS = {
    "reply_count": ".ProfileTweet-action--reply [data-tweet-stat-count]",
    "retweet_count": ".ProfileTweet-action--retweet [data-tweet-stat-count]",
    "like_count": ".ProfileTweet-action--favorite [data-tweet-stat-count]",
}


def _required(node, name: str) -> str:
    value = attr(node, name)
    if not value:
        raise NotFoundError(f"Tweet element has no {name} attribute")
    return value


def _parse_timestamp(tweet_el) -> datetime:
    ms = _required(tweet_el.select_one("span._timestamp"), "data-time-ms")
    try:
        return datetime.fromtimestamp(int(ms) / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError) as e:
        raise NotFoundError(f"Tweet element has an unusable data-time-ms: '{ms}'") from e


def _quoted_tweet_id(tweet_el) -> str | None:
    """Return the id of the quoted tweet, or None when there is no quote."""
    return attr(tweet_el.select_one(".QuoteTweet-link"), "data-conversation-id")


def _parse_stats(tweet_el) -> TweetStats:
    counts = {
        name: int_attr(tweet_el.select_one(selector), "data-tweet-stat-count")
        for name, selector in STAT_SELECTORS.items()
    }
    return TweetStats(**counts)


def parse_tweet(fragment: Markup, selector: str = TWEET_SELECTOR) -> Tweet:
    """Parse the first tweet matching `selector` in `fragment`.

    Raises NotFoundError when no element matches or a required attribute
    (id, user id, screen name, timestamp) is missing or unusable.
    """
    tweet_el = require_first(fragment, selector)

    tweet_id = _required(tweet_el, "data-tweet-id")
    conversation_id = attr(tweet_el, "data-conversation-id")

    tweet = Tweet(
        tweet_id=tweet_id,
        user_id=_required(tweet_el, "data-user-id"),
        username=_required(tweet_el, "data-screen-name"),
        timestamp=_parse_timestamp(tweet_el),
        content=extract_content(tweet_el, TEXT_SELECTOR),
        html=outer_html(tweet_el),
        last_updated=datetime.now(timezone.utc),
        stats=_parse_stats(tweet_el),
        conversation_id=conversation_id,
        quoted_tweet_id=_quoted_tweet_id(tweet_el),
    )
    logger.debug("Parsed tweet %s by @%s", tweet.tweet_id, tweet.username)
    return tweet


def parse_tweets(fragments: list[Markup], selector: str = TWEET_SELECTOR) -> list[Tweet]:
    """Parse several tweet fragments, skipping ones that cannot be parsed."""
    tweets = []
    for fragment in fragments:
        try:
            tweets.append(parse_tweet(fragment, selector))
        except NotFoundError as e:
            logger.warning("Skipping malformed tweet: %s", e)
    return tweets
