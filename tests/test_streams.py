"""Tests for consumer-side stream policies."""

from unittest.mock import patch

import pytest

from conftest import FakeFetcher, items_html, tweet_html
from tweet_scrape.errors import ConfigurationError, FetchError, PageNotFoundError
from tweet_scrape.models import PageResponse
from tweet_scrape.streams import TweetStream, latest, scrape_stream, search, timeline


def _ids(tweets):
    return [t.tweet_id for t in tweets]


@pytest.fixture
def long_feed():
    """Three pages of five tweets each, ids 15 down to 1."""
    return FakeFetcher(
        [
            PageResponse(items_html=items_html(range(15, 10, -1)), min_position="11", max_position="15", new_latent_count=5),
            PageResponse(items_html=items_html(range(10, 5, -1)), min_position="6", max_position="10", new_latent_count=5),
            PageResponse(items_html=items_html(range(5, 0, -1)), min_position=None, max_position="5", new_latent_count=5),
        ]
    )


class TestLimit:
    def test_stops_pulling_at_limit(self, long_feed):
        tweets = list(scrape_stream(long_feed, "/search/timeline", limit=7))
        assert _ids(tweets) == ["15", "14", "13", "12", "11", "10", "9"]
        assert long_feed.call_count == 2

    def test_latest_helper(self, long_feed):
        tweets = latest(scrape_stream(long_feed, "/search/timeline"), 3)
        assert _ids(tweets) == ["15", "14", "13"]
        assert long_feed.call_count == 1


class TestUntilId:
    def test_stops_at_until_id(self, long_feed):
        tweets = list(scrape_stream(long_feed, "/search/timeline", until_id="8"))
        assert _ids(tweets)[-1] == "9"
        assert long_feed.call_count == 2

    def test_non_numeric_tweet_id_passes_cutoff(self):
        fetcher = FakeFetcher(
            [PageResponse(items_html=items_html(["abc", 5, 4, 3]), min_position=None, max_position="5", new_latent_count=4)]
        )
        tweets = list(scrape_stream(fetcher, "/search/timeline", until_id="4"))
        assert _ids(tweets) == ["abc", "5"]

    def test_rejects_non_numeric(self, long_feed):
        with pytest.raises(ConfigurationError):
            scrape_stream(long_feed, "/search/timeline", until_id="abc")
        assert long_feed.call_count == 0


class TestValidity:
    def test_filters_invalid(self, long_feed):
        rejected = []
        stream = scrape_stream(
            long_feed,
            "/search/timeline",
            valid=lambda t: int(t.tweet_id) % 2 == 0,
            on_invalid=rejected.append,
        )
        tweets = list(stream)
        assert _ids(tweets) == ["14", "12", "10", "8", "6", "4", "2"]
        assert len(rejected) == 8

    def test_consecutive_invalid_completes_normally(self, long_feed):
        stream = scrape_stream(
            long_feed,
            "/search/timeline",
            valid=lambda t: int(t.tweet_id) > 12,
            max_consecutive_invalid=3,
        )
        assert _ids(stream) == ["15", "14", "13"]
        assert long_feed.call_count == 2

    def test_counter_resets_on_valid(self, long_feed):
        # never three invalid in a row, so the whole feed is read
        stream = scrape_stream(
            long_feed,
            "/search/timeline",
            valid=lambda t: int(t.tweet_id) % 3 == 0,
            max_consecutive_invalid=3,
        )
        assert _ids(stream) == ["15", "12", "9", "6", "3"]
        assert long_feed.call_count == 3

    def test_limit_counts_invalid(self, long_feed):
        stream = scrape_stream(
            long_feed, "/search/timeline", limit=4, valid=lambda t: t.tweet_id != "14"
        )
        assert _ids(stream) == ["15", "13", "12"]


class TestRetries:
    def test_errors_propagate_without_retries(self, long_feed):
        long_feed.pages[1] = PageNotFoundError("gone", 404)
        with pytest.raises(PageNotFoundError):
            list(scrape_stream(long_feed, "/search/timeline"))

    def test_resumes_from_last_cursor(self, long_feed):
        long_feed.pages.insert(1, FetchError("flaky", 503))
        caught = []

        stream = scrape_stream(long_feed, "/search/timeline", max_retries=2, on_caught_error=caught.append)
        tweets = list(stream)

        assert _ids(tweets) == [str(i) for i in range(15, 0, -1)]
        assert len(caught) == 1
        # the retry asks for the page after the last good one
        assert long_feed.calls[2][1]["max_position"] == "11"
        assert stream.get_max() == "15"
        assert stream.get_min() == "6"

    def test_gives_up_quietly_after_max_retries(self):
        fetcher = FakeFetcher(
            [
                PageResponse(items_html=tweet_html(2), min_position="2", max_position="2", new_latent_count=1),
                FetchError("down", 503),
            ]
        )
        stream = scrape_stream(fetcher, "/search/timeline", max_retries=2)

        assert _ids(stream) == ["2"]
        # one good page, the failure, then two retries
        assert fetcher.call_count == 4

    def test_failure_count_resets_after_success(self):
        fetcher = FakeFetcher(
            [
                PageResponse(items_html=tweet_html(9), min_position="9", max_position="9", new_latent_count=1),
                FetchError("flaky", 503),
                PageResponse(items_html=tweet_html(8), min_position="8", max_position="8", new_latent_count=1),
                FetchError("flaky", 503),
                PageResponse(items_html=tweet_html(7), min_position=None, max_position="7", new_latent_count=1),
            ]
        )
        caught = []
        stream = scrape_stream(fetcher, "/search/timeline", max_retries=1, on_caught_error=caught.append)

        assert _ids(stream) == ["9", "8", "7"]
        assert len(caught) == 2
        assert fetcher.call_count == 5

    @patch("tweet_scrape.streams.time.sleep")
    def test_retry_delay(self, mock_sleep, long_feed):
        long_feed.pages.insert(1, FetchError("flaky", 503))
        list(scrape_stream(long_feed, "/search/timeline", max_retries=1, retry_delay=1.5))
        mock_sleep.assert_called_once_with(1.5)


class TestSearch:
    def test_params(self, long_feed):
        list(search(long_feed, "python", limit=1))
        path, params = long_feed.calls[0]
        assert path == "/search/timeline"
        assert params["q"] == "python"
        assert params["f"] == "tweets"

    def test_top_tweets_have_no_filter(self, long_feed):
        list(search(long_feed, "python", latest=False, limit=1))
        assert "f" not in long_feed.calls[0][1]

    def test_from_id(self, long_feed):
        list(search(long_feed, "python", from_id="100", limit=1))
        assert long_feed.calls[0][1]["q"] == "python max_id:99"

    def test_bad_from_id(self, long_feed):
        with pytest.raises(ConfigurationError):
            search(long_feed, "python", from_id="abc")


class TestTimeline:
    def test_path_and_default_direction(self, long_feed):
        stream = timeline(long_feed, "testuser")
        assert isinstance(stream, TweetStream)
        list(stream)
        assert long_feed.calls[0][0] == "/profiles/show/testuser/timeline/tweets"
        assert stream.ascending is False

    def test_after_walks_ascending(self, long_feed):
        stream = timeline(long_feed, "testuser", after="100", limit=1)
        list(stream)
        assert long_feed.calls[0][1] == {"min_position": "100", "max_position": ""}
        assert stream.ascending is True

    def test_before(self, long_feed):
        list(timeline(long_feed, "testuser", before="100", limit=1))
        assert long_feed.calls[0][1] == {"max_position": "100", "min_position": ""}

    def test_after_and_before_conflict(self, long_feed):
        with pytest.raises(ConfigurationError):
            timeline(long_feed, "testuser", after="1", before="2")
        assert long_feed.call_count == 0

    @pytest.mark.parametrize("key", ["after", "before"])
    def test_invalid_ids(self, long_feed, key):
        with pytest.raises(ConfigurationError):
            timeline(long_feed, "testuser", **{key: "not-an-id"})
