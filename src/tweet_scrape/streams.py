"""Higher-level tweet streams built on top of the paginator.

The paginator itself never retries and never filters. The functions here add
the consumer-side policies:

    limit                    stop after this many tweets (invalid ones count)
    until_id                 stop once tweets are no newer than this id
    valid / on_invalid       drop invalid tweets; stop after
                             max_consecutive_invalid of them in a row
    max_retries              on a FetchError, resume from the last captured
                             cursor; stop after max_retries failures in a row

Reaching max_consecutive_invalid or max_retries ends the stream normally.
With max_retries=0 fetch errors propagate to the caller.
"""

import itertools
import logging
import time
from collections.abc import Callable, Iterable, Iterator

from .errors import ConfigurationError, FetchError
from .models import Tweet
from .paginator import Paginator
from .validation import valid_id

logger = logging.getLogger(__name__)

SEARCH_PATH = "/search/timeline"
TIMELINE_PATH = "/profiles/show/{username}/timeline/tweets"


class TweetStream:
    """Lazy iterable of tweets with retry, limit and validity policies.

    A retry starts a new paginator from where the failed one stopped.
    `get_min()`/`get_max()` combine the cursors of all those runs and, like
    the paginator's, are meaningful once iteration has finished.
    """

    def __init__(
        self,
        fetcher,
        path: str,
        params: dict | None = None,
        *,
        initial_min: str | None = None,
        initial_max: str | None = None,
        limit: int | None = None,
        until_id: str | None = None,
        valid: Callable[[Tweet], bool] | None = None,
        on_invalid: Callable[[Tweet], None] | None = None,
        max_consecutive_invalid: int = 100,
        max_retries: int = 0,
        on_caught_error: Callable[[Exception], None] | None = None,
        retry_delay: float = 0,
    ):
        if until_id is not None and not valid_id(until_id):
            raise ConfigurationError(f"Invalid tweet id for until_id: '{until_id}'")
        if max_consecutive_invalid < 1:
            raise ConfigurationError("max_consecutive_invalid must be at least 1")

        self._fetcher = fetcher
        self._path = path
        self._params = params
        self.limit = limit
        self.until_id = until_id
        self.valid = valid
        self.on_invalid = on_invalid
        self.max_consecutive_invalid = max_consecutive_invalid
        self.max_retries = max_retries
        self.on_caught_error = on_caught_error
        self.retry_delay = retry_delay

        # raises ConfigurationError before any request is made
        self.runs: list[Paginator] = [self._paginator(initial_min, initial_max)]

    def _paginator(self, initial_min: str | None, initial_max: str | None) -> Paginator:
        return Paginator(
            self._fetcher,
            self._path,
            params=self._params,
            initial_min=initial_min,
            initial_max=initial_max,
        )

    def _resume(self, failed: Paginator) -> Paginator:
        """Start a paginator that continues where `failed` stopped."""
        if failed.ascending:
            cursor = failed.get_max() or failed.initial_cursor
            return self._paginator(cursor, None)
        cursor = failed.get_min() or failed.initial_cursor or None
        return self._paginator(None, cursor)

    def _with_retries(self) -> Iterator[Tweet]:
        paginator = self.runs[-1]
        failures = 0

        while True:
            try:
                for tweet in paginator:
                    failures = 0
                    yield tweet
                return
            except FetchError as e:
                if self.max_retries <= 0:
                    raise
                failures += 1
                if self.on_caught_error:
                    self.on_caught_error(e)
                if failures > self.max_retries:
                    logger.warning(
                        "Giving up after %d consecutive failures: %s",
                        self.max_retries,
                        e,
                    )
                    return
                logger.warning(
                    "Fetch failed (%d/%d), resuming from last cursor: %s",
                    failures,
                    self.max_retries,
                    e,
                )
                if self.retry_delay > 0:
                    time.sleep(self.retry_delay)
                paginator = self._resume(paginator)
                self.runs.append(paginator)

    def _reached_until(self, tweet: Tweet) -> bool:
        # ids that are not numeric cannot be ordered against the cutoff
        if self.until_id is None or not valid_id(tweet.tweet_id):
            return False
        return int(tweet.tweet_id) <= int(self.until_id)

    def _apply_policies(self, tweets: Iterable[Tweet]) -> Iterator[Tweet]:
        if self.limit is not None:
            tweets = itertools.islice(tweets, self.limit)

        invalid_run = 0
        for tweet in tweets:
            if self._reached_until(tweet):
                logger.info(
                    "Reached tweet %s (until %s). Stopping.", tweet.tweet_id, self.until_id
                )
                return

            if self.valid is not None and not self.valid(tweet):
                invalid_run += 1
                if self.on_invalid:
                    self.on_invalid(tweet)
                if invalid_run >= self.max_consecutive_invalid:
                    logger.info(
                        "Stopping after %d consecutive invalid tweets.", invalid_run
                    )
                    return
                continue

            invalid_run = 0
            yield tweet

    def __iter__(self) -> Iterator[Tweet]:
        del self.runs[1:]
        return self._apply_policies(self._with_retries())

    def _first(self, getter: str) -> str | None:
        for run in self.runs:
            value = getattr(run, getter)()
            if value is not None:
                return value
        return None

    def _last(self, getter: str) -> str | None:
        for run in reversed(self.runs):
            value = getattr(run, getter)()
            if value is not None:
                return value
        return None

    @property
    def ascending(self) -> bool:
        return self.runs[0].ascending

    def get_min(self) -> str | None:
        return self._first("get_min") if self.ascending else self._last("get_min")

    def get_max(self) -> str | None:
        return self._last("get_max") if self.ascending else self._first("get_max")


def scrape_stream(fetcher, path: str, params: dict | None = None, **options) -> TweetStream:
    """Stream tweets from `path`; see TweetStream for the keyword options."""
    return TweetStream(fetcher, path, params, **options)


def search(
    fetcher,
    query: str,
    latest: bool = True,
    from_id: str | None = None,
    **options,
) -> TweetStream:
    """Stream tweets matching a search query, newest first.

    `from_id` only returns tweets older than that id. Other keyword options
    are passed to TweetStream.
    """
    if from_id is not None:
        if not valid_id(from_id):
            raise ConfigurationError(f"Invalid tweet id for from_id: '{from_id}'")
        query = f"{query} max_id:{int(from_id) - 1}"

    params = {"q": query}
    if latest:
        params["f"] = "tweets"
    return scrape_stream(fetcher, SEARCH_PATH, params, **options)


def timeline(
    fetcher,
    username: str,
    after: str | None = None,
    before: str | None = None,
    **options,
) -> TweetStream:
    """Stream tweets from a user's timeline.

    The timeline cursors are tweet ids: `after` walks towards newer tweets,
    `before` walks towards older ones. They cannot be used together.
    """
    # min and max position are plain tweet ids for timelines
    if after is not None and not valid_id(after):
        raise ConfigurationError(f"Invalid tweet id for after: '{after}'")
    if before is not None and not valid_id(before):
        raise ConfigurationError(f"Invalid tweet id for before: '{before}'")

    path = TIMELINE_PATH.format(username=username)
    return scrape_stream(fetcher, path, initial_min=after, initial_max=before, **options)


def latest(tweets: Iterable[Tweet], n: int) -> list[Tweet]:
    """Collect at most the first `n` tweets, then stop pulling."""
    return list(itertools.islice(tweets, n))
