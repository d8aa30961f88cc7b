"""Tests for portfolio persistence and restore."""

import json

import pytest

from cryptostack.engine import PlacementEngine
from cryptostack.store import (
    PortfolioStore,
    aggregate_records,
    clean_record,
    records_from_blocks,
    restore,
)


def test_save_and_load_records(tmp_path):
    store = PortfolioStore(str(tmp_path / "sub" / "portfolio.json"))
    records = [{"asset_id": "bitcoin", "quantity": 1.0, "timestamp": 10.0}]
    store.save(records)
    assert store.load_records() == records


def test_missing_file_loads_empty(tmp_path):
    store = PortfolioStore(str(tmp_path / "none.json"))
    assert store.load() == []
    assert store.load_records() == []


def test_corrupt_file_loads_empty(tmp_path):
    path = tmp_path / "portfolio.json"
    path.write_text("{not json")
    assert PortfolioStore(str(path)).load() == []
    path.write_text(json.dumps({"asset_id": "bitcoin"}))
    assert PortfolioStore(str(path)).load() == []


def test_malformed_entries_are_dropped(tmp_path):
    path = tmp_path / "portfolio.json"
    path.write_text(json.dumps([
        {"asset_id": "bitcoin", "quantity": 1, "timestamp": 5},
        {"asset_id": "ethereum", "quantity": -2},
        {"asset_id": "", "quantity": 1},
        {"quantity": 1},
        "garbage",
        {"asset_id": "solana", "quantity": "3"},
        {"asset_id": "dogecoin", "quantity": 2, "timestamp": "yesterday"},
    ]))
    records = PortfolioStore(str(path)).load_records()
    assert [r["asset_id"] for r in records] == ["bitcoin", "dogecoin"]
    assert records[1]["timestamp"] == 0


def test_delete(tmp_path):
    store = PortfolioStore(str(tmp_path / "p.json"))
    store.save([])
    store.delete()
    store.delete()
    assert store.load() == []


def test_clean_record_rejects_bool_quantity():
    assert clean_record({"asset_id": "bitcoin", "quantity": True}) is None


def test_restore_rebuilds_from_empty():
    engine = PlacementEngine(20, 30)
    engine.add("cardano", 5)
    records = [
        {"asset_id": "bitcoin", "quantity": 1, "timestamp": 1},
        {"asset_id": "Bad Id", "quantity": 1, "timestamp": 2},
        {"nope": True},
        {"asset_id": "dogecoin", "quantity": 0.5, "timestamp": 3},
    ]
    assert restore(engine, records) == 2
    assert {b.asset_id for b in engine.blocks.values()} == {"bitcoin", "dogecoin"}
    assert len(engine.blocks) == 8


def test_restore_aggregates_by_asset():
    engine = PlacementEngine(20, 30)
    records = [
        {"asset_id": "dogecoin", "quantity": 0.25, "timestamp": 9},
        {"asset_id": "dogecoin", "quantity": 0.25, "timestamp": 4},
    ]
    assert restore(engine, records, aggregate=True) == 1
    assert len(engine.blocks) == 5
    assert {b.created_at for b in engine.blocks.values()} == {4}


def test_records_from_blocks_one_per_batch():
    engine = PlacementEngine(20, 30)
    engine.add("bitcoin", 1, created_at=100)
    engine.add("bitcoin", 2, created_at=200)
    recs = records_from_blocks(engine.snapshot().blocks)
    assert [r["timestamp"] for r in recs] == [100, 200]
    assert recs[0]["quantity"] == pytest.approx(1)
    assert recs[1]["quantity"] == pytest.approx(2)


def test_save_restore_roundtrip_after_removal(tmp_path):
    engine = PlacementEngine(20, 30)
    ids = engine.add("bitcoin", 1)
    engine.run_until_settled()
    engine.remove(ids[0])

    store = PortfolioStore(str(tmp_path / "p.json"))
    store.save(records_from_blocks(engine.snapshot().blocks))

    fresh = PlacementEngine(20, 30)
    restore(fresh, store.load())
    fresh.run_until_settled()
    total = sum(b.quantity for b in fresh.blocks.values())
    assert total == pytest.approx(2 / 3)


def test_aggregate_records_keeps_earliest_timestamp():
    merged = aggregate_records([
        {"asset_id": "a", "quantity": 1.0, "timestamp": 5.0},
        {"asset_id": "b", "quantity": 1.0, "timestamp": 1.0},
        {"asset_id": "a", "quantity": 2.0, "timestamp": 3.0},
    ])
    assert merged == [
        {"asset_id": "a", "quantity": 3.0, "timestamp": 3.0},
        {"asset_id": "b", "quantity": 1.0, "timestamp": 1.0},
    ]


def test_directory_path_loads_empty(tmp_path):
    store = PortfolioStore(str(tmp_path))
    assert store.load() == []
    assert store.load_records() == []


def test_restore_huge_quantity_record():
    engine = PlacementEngine(20, 30)
    records = [{"asset_id": "shiba-inu", "quantity": 1e308, "timestamp": 1}]
    assert restore(engine, records) == 1
    assert len(engine.blocks) == 10
