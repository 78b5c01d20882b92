"""Convert Tweet and Profile objects to JSON-ready dicts, JSON Lines and CSV."""

import csv
import io
import json
from dataclasses import asdict
from datetime import datetime
from typing import TextIO

from .models import Profile, Tweet

CSV_COLUMNS = [
    "tweet_id",
    "user_id",
    "username",
    "timestamp",
    "text",
    "urls",
    "hashtags",
    "cashtags",
    "mentions",
    "mention_ids",
    "conversation_id",
    "quoted_tweet_id",
    "reply_count",
    "retweet_count",
    "like_count",
]


def _jsonable(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


def tweet_to_dict(tweet: Tweet, include_html: bool = False) -> dict:
    data = _jsonable(asdict(tweet))
    if not include_html:
        data.pop("html")
    return data


def profile_to_dict(profile: Profile, include_html: bool = False) -> dict:
    data = _jsonable(asdict(profile))
    if not include_html:
        data.pop("html")
    return data


def tweets_to_jsonl(tweets, output: TextIO, include_html: bool = False) -> int:
    """Write one JSON object per line; returns the number written.

    `tweets` may be a lazy iterator, each tweet is written as it arrives.
    """
    written = 0
    for tweet in tweets:
        output.write(json.dumps(tweet_to_dict(tweet, include_html), ensure_ascii=False))
        output.write("\n")
        written += 1
    return written


def tweets_to_csv(tweets, output: TextIO | None = None) -> str:
    """Convert tweets to CSV format.

    Args:
        tweets: Iterable of Tweet objects to convert.
        output: Optional file-like object to write to. If None, returns CSV as string.

    Returns:
        CSV content as a string (also written to output if provided).
    """
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_COLUMNS, quoting=csv.QUOTE_MINIMAL)
    writer.writeheader()

    for t in tweets:
        writer.writerow(
            {
                "tweet_id": t.tweet_id,
                "user_id": t.user_id,
                "username": t.username,
                "timestamp": t.timestamp.isoformat(),
                "text": t.content.text,
                "urls": "|".join(t.content.urls),
                "hashtags": "|".join(t.content.hashtags),
                "cashtags": "|".join(t.content.cashtags),
                "mentions": "|".join(t.content.usernames),
                "mention_ids": "|".join(t.content.user_ids),
                "conversation_id": t.conversation_id or "",
                "quoted_tweet_id": t.quoted_tweet_id or "",
                "reply_count": t.stats.reply_count,
                "retweet_count": t.stats.retweet_count,
                "like_count": t.stats.like_count,
            }
        )

    result = buf.getvalue()
    if output is not None:
        output.write(result)
    return result
