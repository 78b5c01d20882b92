"""Configuration loading and saving.

Config file location: ~/.config/tweet-scrape/config.toml

Schema:
    [fetch]
    delay = 0.0          # seconds to wait before retrying a failed page
    max_retries = 0      # consecutive fetch failures tolerated per run
    timeout = 30.0
    user_agent = "..."   # optional

    [output]
    format = "jsonl"     # or "csv"

    [state]
    state_dir = ".state"

Every key is optional; a missing file means all defaults.
"""

import tomllib
from dataclasses import dataclass
from pathlib import Path

import tomli_w

from .errors import ConfigurationError

CONFIG_DIR = Path.home() / ".config" / "tweet-scrape"
CONFIG_FILE = CONFIG_DIR / "config.toml"

OUTPUT_FORMATS = ("jsonl", "csv")


@dataclass
class AppConfig:
    fetch_delay: float = 0.0
    max_retries: int = 0
    timeout: float = 30.0
    user_agent: str | None = None
    output_format: str = "jsonl"
    state_dir: Path = Path(".state")


def load_config(config_path: Path = CONFIG_FILE) -> AppConfig:
    """Load and validate config from a TOML file, or defaults if it is absent."""
    if not config_path.exists():
        return AppConfig()

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid config file {config_path}: {e}") from e

    fetch_data = data.get("fetch", {})
    output_data = data.get("output", {})
    state_data = data.get("state", {})

    output_format = output_data.get("format", "jsonl")
    if output_format not in OUTPUT_FORMATS:
        raise ConfigurationError(
            f"output.format must be one of {', '.join(OUTPUT_FORMATS)}, "
            f"got {output_format!r}"
        )

    max_retries = int(fetch_data.get("max_retries", 0))
    if max_retries < 0:
        raise ConfigurationError("fetch.max_retries must not be negative")

    return AppConfig(
        fetch_delay=float(fetch_data.get("delay", 0.0)),
        max_retries=max_retries,
        timeout=float(fetch_data.get("timeout", 30.0)),
        user_agent=fetch_data.get("user_agent"),
        output_format=output_format,
        state_dir=Path(state_data.get("state_dir", ".state")),
    )


def save_config(config: AppConfig, config_path: Path = CONFIG_FILE) -> None:
    """Write config to a TOML file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "fetch": {
            "delay": config.fetch_delay,
            "max_retries": config.max_retries,
            "timeout": config.timeout,
        },
        "output": {
            "format": config.output_format,
        },
        "state": {
            "state_dir": str(config.state_dir),
        },
    }

    if config.user_agent:
        data["fetch"]["user_agent"] = config.user_agent

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)


def config_exists(config_path: Path = CONFIG_FILE) -> bool:
    """Check if config file exists."""
    return config_path.exists()
