"""Cursor pagination over the internal timeline feed.

A run walks in one of two directions:

    descending (default)  request max_position=<cursor>, advance with the
                          response's min_position (towards older tweets)
    ascending             request min_position=<cursor>, advance with the
                          response's max_position (towards newer tweets)

Ascending is selected by passing `initial_min`. Both bounds are exclusive.

Pages are fetched strictly one at a time and only while the caller keeps
iterating. Every page's tweets are yielded in document order before the next
page is requested. A run stops when the next cursor is absent, when it equals
the end cursor captured before the current page (the search feed echoes its
last cursor forever), or when `is_exhausted(page)` is true. By default that
means the page reports `new_latent_count == 0`; `has_more_items` is not used
since it reads false during fast scraping even when more tweets exist.

The min/max cursors seen by the run are readable through `get_min()` and
`get_max()`. They are only meaningful once iteration has finished or failed.
"""

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Protocol

from .errors import ConfigurationError
from .markup import parse_html
from .models import PageResponse, Tweet
from .parser import TWEET_SELECTOR, parse_tweet

logger = logging.getLogger(__name__)

CURSOR_FIELDS = ("min_position", "max_position")

# Cursors ending with this marker mean there is no more data
SENTINEL_SUFFIX = "--"

ITEM_SELECTOR = f"{TWEET_SELECTOR}:not(.promoted-tweet)"


class Fetcher(Protocol):
    def fetch_page(self, path: str, params: dict) -> PageResponse: ...


def no_new_items(page: PageResponse) -> bool:
    """Default exhaustion check: the page reports zero new items."""
    return page.new_latent_count == 0


def normalize_cursor(cursor: str | None) -> str | None:
    """Return None for missing, empty and sentinel cursors."""
    if not cursor or cursor.endswith(SENTINEL_SUFFIX):
        return None
    return cursor


def normalize_path(path: str) -> str:
    return path if path.startswith("/") else "/" + path


@dataclass
class CursorState:
    """Mutable cursor bookkeeping owned by a single run."""

    cursor: str = ""
    start_position: str | None = None
    end_position: str | None = None
    started: bool = False
    pages: int = 0


class Paginator:
    """Lazy iterable of tweets from a cursor-paginated markup feed."""

    def __init__(
        self,
        fetcher: Fetcher,
        path: str,
        params: dict | None = None,
        initial_min: str | None = None,
        initial_max: str | None = None,
        is_exhausted: Callable[[PageResponse], bool] | None = None,
        item_selector: str = ITEM_SELECTOR,
    ):
        params = dict(params or {})

        if initial_min is not None and initial_max is not None:
            raise ConfigurationError(
                "initial_min and initial_max must not be set together"
            )
        forbidden = [name for name in CURSOR_FIELDS if name in params]
        if forbidden:
            raise ConfigurationError(
                f"{' and '.join(forbidden)} must not be set in params; "
                "use initial_min or initial_max instead"
            )

        self._fetcher = fetcher
        self.path = normalize_path(path)
        self.params = params
        self.ascending = initial_min is not None
        self.initial_cursor = (initial_min if self.ascending else initial_max) or ""
        self._is_exhausted = is_exhausted or no_new_items
        self._item_selector = item_selector
        self.state = CursorState(cursor=self.initial_cursor)

    @property
    def direction(self) -> str:
        return "ascending" if self.ascending else "descending"

    def _page_params(self, cursor: str) -> dict:
        active, inactive = (
            ("min_position", "max_position")
            if self.ascending
            else ("max_position", "min_position")
        )
        return {**self.params, active: cursor, inactive: ""}

    def _fetch(self, cursor: str) -> PageResponse:
        logger.debug(
            "Requesting %s (%s, cursor=%r)", self.path, self.direction, cursor
        )
        page = self._fetcher.fetch_page(self.path, self._page_params(cursor))

        # the far end moves on every successful response
        forward = page.max_position if self.ascending else page.min_position
        self.state.end_position = forward or self.state.end_position
        self.state.pages += 1
        return page

    def _next_cursor(self, page: PageResponse, previous_end: str | None) -> str | None:
        """Return the cursor for the next request, or None to stop."""
        next_cursor = page.max_position if self.ascending else page.min_position

        if normalize_cursor(next_cursor) is None:
            logger.info("No further cursor after page %d. Pagination complete.", self.state.pages)
            return None
        if next_cursor == previous_end:
            logger.info(
                "Cursor repeated after page %d. Pagination complete.", self.state.pages
            )
            return None
        if self._is_exhausted(page):
            logger.info("Page %d reports no new items. Pagination complete.", self.state.pages)
            return None
        return next_cursor

    def _items(self, page: PageResponse) -> Iterator[Tweet]:
        if not page.items_html:
            return
        document = parse_html(page.items_html)
        for element in document.select(self._item_selector):
            yield parse_tweet(element, self._item_selector)

    def _run(self) -> Iterator[Tweet]:
        self.state = CursorState(cursor=self.initial_cursor)
        cursor: str | None = self.initial_cursor

        while cursor is not None:
            previous_end = self.state.end_position
            page = self._fetch(cursor)

            if not self.state.started:
                backward = page.min_position if self.ascending else page.max_position
                self.state.start_position = backward
                self.state.started = True

            cursor = self._next_cursor(page, previous_end)
            self.state.cursor = cursor or self.state.cursor
            yield from self._items(page)

    def __iter__(self) -> Iterator[Tweet]:
        return self._run()

    def _start_cursor(self) -> str | None:
        return normalize_cursor(self.state.start_position)

    def _end_cursor(self) -> str | None:
        return normalize_cursor(self.state.end_position)

    def get_min(self) -> str | None:
        """Cursor at the older end of the tweets seen so far."""
        return self._start_cursor() if self.ascending else self._end_cursor()

    def get_max(self) -> str | None:
        """Cursor at the newer end of the tweets seen so far."""
        return self._end_cursor() if self.ascending else self._start_cursor()


def paginate(
    fetcher: Fetcher,
    path: str,
    params: dict | None = None,
    initial_min: str | None = None,
    initial_max: str | None = None,
    is_exhausted: Callable[[PageResponse], bool] | None = None,
) -> Paginator:
    """Create a lazy tweet paginator for `path`.

    Raises ConfigurationError immediately, before any request, when both
    initial cursors are given or when `params` sets a cursor field.
    """
    return Paginator(
        fetcher,
        path,
        params=params,
        initial_min=initial_min,
        initial_max=initial_max,
        is_exhausted=is_exhausted,
    )
