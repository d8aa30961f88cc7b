"""Price source boundary — a shared quote table and a polling thread.

The fetcher itself is external: PriceThread calls whatever fetch() it is
given and pushes the merged quotes to a callback (usually
PlacementEngine.set_prices).
"""

from __future__ import annotations

import json
import os
import threading
from collections.abc import Callable


class PriceBook:
    """Thread-safe asset_id -> {"usd", "usd_24h_change"} table.

    get() returns None for assets without a quote; the ledger treats that
    as zero value and zero change.
    """

    def __init__(self, quotes: dict[str, dict] | None = None):
        self._lock = threading.Lock()
        self._quotes: dict[str, dict] = {}
        if quotes:
            self.update(quotes)

    def get(self, asset_id: str, default=None) -> dict | None:
        with self._lock:
            quote = self._quotes.get(asset_id)
            return dict(quote) if quote is not None else default

    def update(self, quotes: dict[str, dict]) -> bool:
        """Merge new quotes. Returns True if anything changed."""
        changed = False
        with self._lock:
            for asset_id, quote in quotes.items():
                clean = _normalize(quote)
                if clean is None:
                    continue
                if self._quotes.get(asset_id) != clean:
                    self._quotes[asset_id] = clean
                    changed = True
        return changed

    def as_dict(self) -> dict[str, dict]:
        with self._lock:
            return {k: dict(v) for k, v in self._quotes.items()}

    def __contains__(self, asset_id) -> bool:
        with self._lock:
            return asset_id in self._quotes

    def __len__(self) -> int:
        with self._lock:
            return len(self._quotes)


def _normalize(quote) -> dict | None:
    if not isinstance(quote, dict) or "usd" not in quote:
        return None
    try:
        return {
            "usd": float(quote["usd"]),
            "usd_24h_change": float(quote.get("usd_24h_change") or 0),
        }
    except (TypeError, ValueError):
        return None


def read_quotes_file(path: str) -> dict:
    """Fetch hook that reads quotes another process writes as JSON.

    Raises OSError or ValueError when the file is missing or malformed;
    PriceThread keeps the previous quotes in that case.
    """
    with open(os.path.expanduser(path)) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"quotes file {path} must hold a JSON object")
    return data


class PriceThread(threading.Thread):
    """Background thread that refreshes a PriceBook at a fixed interval.

    Calls on_change with the book when any quote differs. A failing fetch
    keeps the previous quotes.
    """

    def __init__(self, book: PriceBook, fetch: Callable[[], dict],
                 interval: float = 60.0,
                 on_change: Callable | None = None):
        super().__init__(daemon=True)
        self.book = book
        self.fetch = fetch
        self.interval = interval
        self.on_change = on_change
        self.last_error: Exception | None = None
        self._stop_event = threading.Event()

    def stop(self):
        """Signal the price thread to stop."""
        self._stop_event.set()

    def poll_once(self) -> bool:
        try:
            quotes = self.fetch() or {}
        except Exception as e:  # keep stale quotes
            self.last_error = e
            return False
        self.last_error = None
        changed = self.book.update(quotes)
        if changed and self.on_change:
            self.on_change(self.book)
        return changed

    def run(self):
        while not self._stop_event.is_set():
            self.poll_once()
            self._stop_event.wait(self.interval)
