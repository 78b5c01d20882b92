"""Tests for config loading and saving."""

from pathlib import Path

import pytest

from tweet_scrape.config import AppConfig, load_config, save_config
from tweet_scrape.errors import ConfigurationError


def test_missing_file_gives_defaults(tmp_path):
    assert load_config(tmp_path / "absent.toml") == AppConfig()


def test_round_trip(tmp_path):
    path = tmp_path / "config.toml"
    config = AppConfig(
        fetch_delay=2.5,
        max_retries=3,
        timeout=10.0,
        user_agent="test-agent",
        output_format="csv",
        state_dir=Path("state"),
    )
    save_config(config, path)
    assert load_config(path) == config


def test_partial_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[fetch]\nmax_retries = 2\n")
    config = load_config(path)
    assert config.max_retries == 2
    assert config.output_format == "jsonl"


@pytest.mark.parametrize(
    "text",
    [
        '[output]\nformat = "xml"\n',
        "[fetch]\nmax_retries = -1\n",
        "this is not toml",
    ],
)
def test_invalid_config(tmp_path, text):
    path = tmp_path / "config.toml"
    path.write_text(text)
    with pytest.raises(ConfigurationError):
        load_config(path)
