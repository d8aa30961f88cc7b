"""Persistent portfolio records.

Stores a JSON list of {asset_id, quantity, timestamp} records, one per Add
batch, by default in ~/.cryptostack/portfolio.json. Restoring re-runs Add for
every usable record, so blocks and grid are always rebuilt from scratch.
"""

from __future__ import annotations

import json
import math
import os
import threading
from collections.abc import Iterable

from cryptostack.errors import InvalidHoldingError

DEFAULT_PATH = "~/.cryptostack/portfolio.json"


class PortfolioStore:
    def __init__(self, path: str = DEFAULT_PATH):
        self.path = os.path.expanduser(path)
        self._lock = threading.Lock()

    def load(self) -> list:
        """Raw decoded payload, or [] when missing or unreadable."""
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, ValueError):
            return []
        return data if isinstance(data, list) else []

    def load_records(self) -> list[dict]:
        """Only the well-formed records, malformed entries dropped."""
        return [r for r in (clean_record(raw) for raw in self.load()) if r]

    def save(self, records: Iterable[dict]) -> None:
        with self._lock:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump(list(records), f, indent=2)

    def delete(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass


def clean_record(raw) -> dict | None:
    """Return a normalized record, or None if it cannot be restored."""
    if not isinstance(raw, dict):
        return None
    asset_id = raw.get("asset_id")
    quantity = raw.get("quantity")
    timestamp = raw.get("timestamp", 0)
    if not isinstance(asset_id, str) or not asset_id:
        return None
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
        return None
    if not math.isfinite(quantity) or quantity <= 0:
        return None
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        timestamp = 0
    return {"asset_id": asset_id, "quantity": float(quantity), "timestamp": float(timestamp)}


def records_from_blocks(blocks: Iterable) -> list[dict]:
    """One record per Add batch still alive, quantities summed over replicas."""
    batches: dict[int, dict] = {}
    for block in blocks:
        rec = batches.get(block.batch_id)
        if rec is None:
            batches[block.batch_id] = {
                "asset_id": block.asset_id,
                "quantity": block.quantity,
                "timestamp": block.created_at,
            }
        else:
            rec["quantity"] += block.quantity
    return list(batches.values())


def aggregate_records(records: Iterable[dict]) -> list[dict]:
    """Merge records by asset, keeping the earliest timestamp."""
    merged: dict[str, dict] = {}
    for rec in records:
        cur = merged.get(rec["asset_id"])
        if cur is None:
            merged[rec["asset_id"]] = dict(rec)
        else:
            cur["quantity"] += rec["quantity"]
            cur["timestamp"] = min(cur["timestamp"], rec["timestamp"])
    return list(merged.values())


def restore(engine, records: Iterable, aggregate: bool = False) -> int:
    """Clear the engine and re-add every usable record.

    Returns how many records were restored. Entries that fail to validate
    are skipped and the rest still load.
    """
    cleaned = [r for r in (clean_record(raw) for raw in records) if r]
    if aggregate:
        cleaned = aggregate_records(cleaned)
    engine.clear()
    restored = 0
    for rec in cleaned:
        try:
            engine.add(rec["asset_id"], rec["quantity"], created_at=rec["timestamp"])
        except InvalidHoldingError:
            continue
        restored += 1
    return restored
