"""Remember feed cursors between runs to support incremental scraping.

State is stored in .state/cursors.json as a JSON object keyed by feed:
    {
        "timeline:jack": {
            "min": "1064437357359726592",
            "max": "1067373627266555904",
            "last_fetch": "2025-01-15T14:30:00+00:00"
        }
    }

Stored cursors only let a later run continue past the newest tweet seen.
Tweets are not de-duplicated across runs.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


class CursorStore:
    def __init__(self, state_dir: Path = Path(".state")):
        self.state_dir = state_dir
        self.state_file = state_dir / "cursors.json"
        self._feeds: dict[str, dict] = {}
        self._load()

    def _load(self) -> None:
        """Load state from disk."""
        if self.state_file.exists():
            self._feeds = json.loads(self.state_file.read_text())
            logger.info("Loaded cursors for %d feeds from state", len(self._feeds))
        else:
            logger.info("No existing state found. Starting fresh.")

    def save(self) -> None:
        """Persist state to disk."""
        self.state_dir.mkdir(parents=True, exist_ok=True)
        self.state_file.write_text(json.dumps(self._feeds, indent=2, sort_keys=True))

    def get(self, feed: str) -> dict | None:
        return self._feeds.get(feed)

    def last_max(self, feed: str) -> str | None:
        """The newest cursor seen for `feed`, if any."""
        entry = self._feeds.get(feed)
        return entry.get("max") if entry else None

    def update(self, feed: str, min_cursor: str | None, max_cursor: str | None) -> None:
        """Record the cursors of a finished run, keeping previous values
        where the run did not produce any."""
        entry = self._feeds.setdefault(feed, {})
        if min_cursor is not None and "min" not in entry:
            entry["min"] = min_cursor
        if max_cursor is not None:
            entry["max"] = max_cursor
        entry["last_fetch"] = datetime.now(timezone.utc).isoformat()

    @property
    def feeds(self) -> list[str]:
        return sorted(self._feeds)

    def reset(self, feed: str | None = None) -> None:
        """Forget one feed, or everything when `feed` is None."""
        if feed is None:
            self._feeds.clear()
            if self.state_file.exists():
                self.state_file.unlink()
        else:
            self._feeds.pop(feed, None)
