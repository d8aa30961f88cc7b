"""Portfolio ledger — holdings and metrics derived from the live blocks.

Everything here is recomputed from its inputs on each call. Nothing is kept
between calls, so removals and reorganizations can never leave stale totals.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from cryptostack.catalog import MAX_CATALOG_ASSETS

RISK_LOW = "Low"
RISK_MEDIUM = "Medium"
RISK_HIGH = "High"


@dataclass(frozen=True)
class Holding:
    asset_id: str
    quantity: float
    blocks: int


@dataclass(frozen=True)
class Metrics:
    total_value: float = 0.0
    asset_count: int = 0
    diversification_pct: float = 0.0
    risk_level: str = RISK_LOW
    risk_score: float = 0.0
    holdings: tuple[Holding, ...] = field(default_factory=tuple)


def _quote(prices: Mapping | None, asset_id: str) -> tuple[float, float]:
    """Return (usd, usd_24h_change), both 0 when the price is missing."""
    quote = prices.get(asset_id) if prices is not None else None
    if not quote:
        return 0.0, 0.0
    return float(quote.get("usd") or 0), float(quote.get("usd_24h_change") or 0)


def risk_level(score: float) -> str:
    if score < 2:
        return RISK_LOW
    if score < 4:
        return RISK_MEDIUM
    return RISK_HIGH


def holdings(blocks: Iterable) -> list[Holding]:
    """Sum attributed quantity per asset, in first-seen order."""
    totals: dict[str, float] = {}
    counts: dict[str, int] = {}
    for block in blocks:
        totals[block.asset_id] = totals.get(block.asset_id, 0.0) + block.quantity
        counts[block.asset_id] = counts.get(block.asset_id, 0) + 1
    return [Holding(asset, qty, counts[asset]) for asset, qty in totals.items()]


def recompute(blocks: Iterable, prices: Mapping | None) -> Metrics:
    """Compute portfolio metrics for the given blocks and price mapping.

    prices maps asset id -> {"usd": float, "usd_24h_change": float}; absent
    assets add zero value and zero change but still count as held assets.
    """
    blocks = list(blocks)
    total_value = 0.0
    weighted_change = 0.0
    for block in blocks:
        usd, change = _quote(prices, block.asset_id)
        value = block.quantity * usd
        total_value += value
        weighted_change += abs(change) * value

    held = holdings(blocks)
    asset_count = len(held)
    diversification = min(asset_count / MAX_CATALOG_ASSETS * 100, 100.0)
    score = weighted_change / total_value if total_value > 0 else 0.0

    return Metrics(
        total_value=total_value,
        asset_count=asset_count,
        diversification_pct=diversification,
        risk_level=risk_level(score),
        risk_score=score,
        holdings=tuple(held),
    )


def asset_detail(block, prices: Mapping | None) -> dict:
    """Per-block detail: quantity, price, 24h change and value."""
    usd, change = _quote(prices, block.asset_id)
    return {
        "asset_id": block.asset_id,
        "quantity": block.quantity,
        "price": usd,
        "change_24h": change,
        "value": block.quantity * usd,
    }
