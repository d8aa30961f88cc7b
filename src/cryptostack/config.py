"""Config loader — YAML to dataclasses."""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from cryptostack.errors import ConfigError


@dataclass
class GridConfig:
    viewport: tuple[int, int] = (480, 720)
    cell_size: int = 24
    width: int | None = None
    height: int | None = None

    def dimensions(self) -> tuple[int, int]:
        """Grid size in cells: explicit width/height win over the viewport."""
        w = self.width if self.width is not None else self.viewport[0] // self.cell_size
        h = self.height if self.height is not None else self.viewport[1] // self.cell_size
        return max(1, int(w)), max(1, int(h))


@dataclass
class ClockConfig:
    tick_interval: float = 0.05
    stagger_ticks: int = 3


@dataclass
class SpawnConfig:
    jitter: int = 0
    seed: int | None = None


@dataclass
class StoreConfig:
    path: str = "~/.cryptostack/portfolio.json"


@dataclass
class RenderConfig:
    font_path: str | None = None


@dataclass
class FeedConfig:
    path: str | None = None  # JSON quotes file written by an external fetcher
    interval: float = 60.0


@dataclass
class AppConfig:
    grid: GridConfig = field(default_factory=GridConfig)
    clock: ClockConfig = field(default_factory=ClockConfig)
    spawn: SpawnConfig = field(default_factory=SpawnConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)
    prices: dict[str, dict] = field(default_factory=dict)


def load_config(path: Path) -> AppConfig:
    """Load config from YAML file."""
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"config {path} must be a mapping")

    try:
        grid_raw = dict(raw.get("grid") or {})
        if "viewport" in grid_raw:
            grid_raw["viewport"] = tuple(grid_raw["viewport"])
        grid = GridConfig(**grid_raw)
        clock = ClockConfig(**(raw.get("clock") or {}))
        spawn = SpawnConfig(**(raw.get("spawn") or {}))
        store = StoreConfig(**(raw.get("store") or {}))
        render = RenderConfig(**(raw.get("render") or {}))
        feed = FeedConfig(**(raw.get("feed") or {}))
    except TypeError as e:
        raise ConfigError(f"invalid config {path}: {e}") from e

    if grid.cell_size <= 0:
        raise ConfigError("grid.cell_size must be positive")
    if clock.tick_interval <= 0:
        raise ConfigError("clock.tick_interval must be positive")
    if feed.interval <= 0:
        raise ConfigError("feed.interval must be positive")

    prices = {
        str(asset): dict(quote)
        for asset, quote in (raw.get("prices") or {}).items()
        if isinstance(quote, dict)
    }
    return AppConfig(grid=grid, clock=clock, spawn=spawn, store=store,
                     render=render, feed=feed, prices=prices)
