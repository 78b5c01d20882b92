"""HTTP client for Twitter's server-rendered web endpoints.

Timeline and search pages come from the internal `/i/...` endpoints, which
return JSON of the form:

    {"items_html": "...", "min_position": "...", "max_position": "...",
     "new_latent_count": 20, "has_more_items": true}

Single tweets and full profiles are scraped from the regular HTML pages.
No authentication is needed. The base URL and user agent can be overridden
with environment variables:
    TWEET_SCRAPE_BASE_URL
    TWEET_SCRAPE_USER_AGENT
"""

import logging
import os
import time

import httpx

from .errors import FetchError, PageNotFoundError, RateLimitedError
from .markup import parse_html
from .models import FullProfile, PageResponse, Profile, Tweet
from .paginator import normalize_path
from .parser import parse_tweet
from .profile import parse_full_profile, parse_profile

logger = logging.getLogger(__name__)

BASE_URL = os.environ.get("TWEET_SCRAPE_BASE_URL", "https://twitter.com")

USER_AGENT = os.environ.get(
    "TWEET_SCRAPE_USER_AGENT",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36",
)


class TwitterClient:
    """Fetcher for the internal markup feed plus single-page lookups."""

    def __init__(
        self,
        base_url: str | None = None,
        user_agent: str | None = None,
        timeout: float = 30.0,
        capture_raw: bool = False,
    ):
        self._base_url = (base_url or BASE_URL).rstrip("/")
        self._capture_raw = capture_raw
        self.raw_responses: list[dict] = []
        self._client = httpx.Client(
            headers={
                "User-Agent": user_agent or USER_AGENT,
                "accept-language": "en",
                "x-requested-with": "XMLHttpRequest",
            },
            timeout=timeout,
            follow_redirects=True,
        )

    def _get(self, url: str, params: dict | None = None) -> httpx.Response:
        params = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            response = self._client.get(url, params=params)
        except httpx.HTTPError as e:
            raise FetchError(f"Request to {url} failed: {e}") from e

        if response.status_code == 429:
            reset_time = response.headers.get("x-rate-limit-reset")
            wait_msg = ""
            if reset_time:
                wait_seconds = int(reset_time) - int(time.time())
                if wait_seconds > 0:
                    wait_msg = f" Retry in {wait_seconds}s."
            raise RateLimitedError(f"Rate limited by Twitter.{wait_msg}", 429)

        if response.status_code == 404:
            raise PageNotFoundError(
                f"Not found (404): {url}. The user or tweet may not exist, "
                "or the endpoint path is wrong.",
                404,
            )

        if response.status_code >= 400:
            raise FetchError(
                f"Request to {url} failed with status {response.status_code}",
                response.status_code,
            )
        return response

    def _get_json(self, url: str, params: dict | None = None) -> dict:
        response = self._get(url, params)
        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(
                f"Expected JSON from {url}, got {response.headers.get('content-type', 'unknown')}",
                response.status_code,
            ) from e

        if self._capture_raw:
            self.raw_responses.append(data)
        return data

    def fetch_page(self, path: str, params: dict) -> PageResponse:
        """Fetch one page of an internal `/i/...` timeline feed."""
        url = f"{self._base_url}/i{normalize_path(path)}"
        return self._parse_page_response(self._get_json(url, params))

    @staticmethod
    def _parse_page_response(data: dict) -> PageResponse:
        return PageResponse(
            items_html=data.get("items_html") or "",
            min_position=data.get("min_position"),
            max_position=data.get("max_position"),
            new_latent_count=data.get("new_latent_count"),
        )

    def get_tweet(self, tweet_id: str) -> Tweet:
        """Scrape a single tweet from its permalink page."""
        response = self._get(f"{self._base_url}/i/web/status/{tweet_id}")
        return parse_tweet(response.text, ".permalink-tweet")

    def get_profile(
        self, username: str | None = None, user_id: str | None = None
    ) -> Profile:
        """Scrape the hover-card profile by handle or by user id (not both)."""
        if bool(username) == bool(user_id):
            raise ValueError("Either username or user_id must be given, but not both")
        params = {"screen_name": username} if username else {"user_id": user_id}
        data = self._get_json(f"{self._base_url}/i/profiles/popup", params)
        return parse_profile(data.get("html", ""))

    def get_full_profile(self, username: str) -> FullProfile:
        """Scrape the full profile page. This page is rate-limited."""
        if not username:
            raise ValueError("username must be given")
        response = self._get(f"{self._base_url}/{username}")
        return parse_full_profile(response.text)

    def get_screen_name(self, user_id: str) -> str:
        """Resolve a user id to the current screen name."""
        response = self._get(
            f"{self._base_url}/intent/user", {"user_id": user_id}
        )
        nickname = parse_html(response.text).select_one("span.nickname")
        return nickname.get_text().lstrip("@") if nickname else ""

    def get_user_id(self, screen_name: str) -> str | None:
        """Resolve a screen name to its numeric user id."""
        response = self._get(f"{self._base_url}/{screen_name}")
        nav = parse_html(response.text).select_one("div.ProfileNav")
        return nav.get("data-user-id") if nav else None

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
