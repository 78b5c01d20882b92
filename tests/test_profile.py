"""Tests for profile parsing."""

from datetime import datetime, timezone

import pytest

from tweet_scrape.errors import NotFoundError
from tweet_scrape.models import BioContent
from tweet_scrape.profile import parse_full_profile, parse_profile
from tweet_scrape.validation import profile_problems


class TestParseProfile:
    def test_identity_fields(self, profile_popup_html):
        p = parse_profile(profile_popup_html)
        assert p.user_id == "783214"
        assert p.username == "testuser"
        assert p.name == "Test User"
        assert p.is_protected is False

    def test_image_urls(self, profile_popup_html):
        p = parse_profile(profile_popup_html)
        assert p.avatar_url == "https://pbs.twimg.com/profile_images/1111/photo.jpg"
        assert p.banner_url == "https://pbs.twimg.com/profile_banners/783214/1542830427/1500x500"

    def test_default_avatar_is_none(self, profile_popup_html):
        html = profile_popup_html.replace(
            "profile_images/1111/photo_bigger.jpg", "sticky/default_profile_images/default_profile_bigger.png"
        )
        assert parse_profile(html).avatar_url is None

    def test_stats(self, profile_popup_html):
        stats = parse_profile(profile_popup_html).stats
        assert stats.tweet_count == 12000
        assert stats.following_count == 340
        assert stats.followers_count == 56000

    def test_bio(self, profile_popup_html):
        bio = parse_profile(profile_popup_html).bio
        assert bio == BioContent(
            text="Working at ${@0} on ${#0}",
            hashtags=["opensource"],
            usernames=["Company"],
        )

    def test_passes_validation(self, profile_popup_html):
        assert profile_problems(parse_profile(profile_popup_html)) == []

    def test_missing_card_raises(self):
        with pytest.raises(NotFoundError):
            parse_profile("<div>nope</div>")


class TestParseFullProfile:
    def test_fields(self, full_profile_html):
        p = parse_full_profile(full_profile_html)
        assert p.user_id == "783214"
        assert p.username == "testuser"
        assert p.name == "Test User"
        assert p.is_protected is True
        assert p.geo == "Melbourne, Australia"
        assert p.website_url == "https://example.com"
        assert p.color == "#1B95E0"
        assert p.joined_at == datetime(2018, 2, 17, 4, 51, tzinfo=timezone.utc)

    def test_images(self, full_profile_html):
        p = parse_full_profile(full_profile_html)
        assert p.banner_url == "https://pbs.twimg.com/profile_banners/783214/1542830427/1500x500"
        assert p.avatar_url == "https://pbs.twimg.com/profile_images/1111/photo_400x400.jpg"

    def test_stats_and_bio(self, full_profile_html):
        p = parse_full_profile(full_profile_html)
        assert (p.stats.tweet_count, p.stats.following_count, p.stats.followers_count) == (1500, 200, 3000)
        assert p.bio.text == "Ticker fan ${$0}"
        assert p.bio.cashtags == ["TSLA"]

    def test_color_ignores_comments_and_at_rules(self, full_profile_html):
        html = full_profile_html.replace(
            "  a, .u-textUserColor {",
            "  /* a { color: #ff0000; } */\n"
            "  @media print { a { color: #000000; } }\n"
            "  a, .u-textUserColor {",
        )
        assert parse_full_profile(html).color == "#1B95E0"

    def test_color_absent_without_link_rule(self, full_profile_html):
        html = full_profile_html.replace("  a, .u-textUserColor {", "  .u-textUserColor {")
        assert parse_full_profile(html).color is None

    def test_optional_fields_absent(self, full_profile_html):
        html = full_profile_html.replace("  Melbourne, Australia ", "  ").replace(
            'title="https://example.com"', ""
        )
        p = parse_full_profile(html)
        assert p.geo is None
        assert p.website_url is None
