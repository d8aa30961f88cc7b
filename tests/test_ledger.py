"""Tests for the portfolio ledger."""

from types import SimpleNamespace

import pytest

from cryptostack.ledger import asset_detail, holdings, recompute, risk_level

PRICES = {
    "bitcoin": {"usd": 45000, "usd_24h_change": 2.5},
    "ethereum": {"usd": 2500, "usd_24h_change": 3.1},
    "solana": {"usd": 100, "usd_24h_change": -1.2},
    "shiba-inu": {"usd": 0.000009, "usd_24h_change": 5.3},
}


def blk(asset_id, quantity):
    return SimpleNamespace(asset_id=asset_id, quantity=quantity)


def test_empty_portfolio():
    m = recompute([], PRICES)
    assert m.total_value == 0
    assert m.asset_count == 0
    assert m.diversification_pct == 0
    assert m.risk_level == "Low"


def test_total_value_and_weighted_risk():
    m = recompute([blk("bitcoin", 1), blk("ethereum", 1)], PRICES)
    assert m.total_value == pytest.approx(47500)
    assert m.risk_score == pytest.approx((2.5 * 45000 + 3.1 * 2500) / 47500)
    assert m.risk_level == "Medium"
    assert m.asset_count == 2
    assert m.diversification_pct == pytest.approx(200 / 7)


def test_negative_change_uses_magnitude():
    assert recompute([blk("solana", 3)], PRICES).risk_level == "Low"
    assert recompute([blk("shiba-inu", 1e6)], PRICES).risk_level == "High"


def test_missing_price_counts_asset_but_no_value():
    m = recompute([blk("bitcoin", 1), blk("unlisted", 100)], PRICES)
    assert m.total_value == pytest.approx(45000)
    assert m.asset_count == 2
    assert m.risk_score == pytest.approx(2.5)


def test_no_prices_at_all():
    m = recompute([blk("bitcoin", 1)], None)
    assert m.total_value == 0
    assert m.risk_level == "Low"
    assert m.asset_count == 1


def test_diversification_caps_at_100():
    blocks = [blk(f"coin-{i}", 1) for i in range(12)]
    assert recompute(blocks, {}).diversification_pct == 100


def test_risk_thresholds():
    assert risk_level(0) == "Low"
    assert risk_level(1.99) == "Low"
    assert risk_level(2) == "Medium"
    assert risk_level(3.99) == "Medium"
    assert risk_level(4) == "High"


def test_holdings_sum_replicas():
    result = holdings([blk("dogecoin", 0.1)] * 5 + [blk("bitcoin", 0.5)])
    assert [h.asset_id for h in result] == ["dogecoin", "bitcoin"]
    assert result[0].quantity == pytest.approx(0.5)
    assert result[0].blocks == 5


def test_recompute_is_idempotent():
    blocks = [blk("bitcoin", 1), blk("solana", 2)]
    assert recompute(blocks, PRICES) == recompute(blocks, PRICES)


def test_asset_detail():
    d = asset_detail(blk("ethereum", 2), PRICES)
    assert d["value"] == pytest.approx(5000)
    assert d["change_24h"] == 3.1
    assert asset_detail(blk("nope", 2), PRICES)["value"] == 0
