"""Shape catalog — asset + quantity to block shape, look and replica count.

Pure lookups, no state. Unknown assets get the default 2x2 block.
"""

import math
from dataclasses import dataclass

Mask = tuple[tuple[bool, ...], ...]


@dataclass(frozen=True)
class Visual:
    color: str
    outline: str
    symbol: str
    label: str


@dataclass(frozen=True)
class ShapeDescriptor:
    mask: Mask
    visual: Visual
    replica_count: int


def _mask(*rows: str) -> Mask:
    """Build a mask from rows like "#.#" ('#' = occupied)."""
    return tuple(tuple(ch == "#" for ch in row) for row in rows)


# -- shape rules -----------------------------------------------------------
# replica_count = min(base + floor(quantity * scale), cap)
SHAPES = {
    "bitcoin": {
        "name": "Bitcoin", "mask": _mask("####", "####", "####", "####"),
        "color": "#F7931A", "outline": "#ff9500", "symbol": "₿",
        "base": 2, "scale": 1.0, "cap": 3,
    },
    "ethereum": {
        "name": "Ethereum", "mask": _mask("###", "###"),
        "color": "#627EEA", "outline": "#7c9ff5", "symbol": "Ξ",
        "base": 1, "scale": 1.0, "cap": 4,
    },
    "solana": {
        "name": "Solana", "mask": _mask(".#.", "###", "###"),
        "color": "#14F195", "outline": "#00ff88", "symbol": "◎",
        "base": 1, "scale": 0.2, "cap": 5,
    },
    "binancecoin": {
        "name": "Binance Coin", "mask": _mask(".#.", "###", ".#."),
        "color": "#F3BA2F", "outline": "#ffd700", "symbol": "◆",
        "base": 1, "scale": 0.5, "cap": 4,
    },
    "cardano": {
        "name": "Cardano", "mask": _mask(".##.", "####", ".##."),
        "color": "#0033AD", "outline": "#3399ff", "symbol": "₳",
        "base": 1, "scale": 0.001, "cap": 5,
    },
    "dogecoin": {
        "name": "Dogecoin", "mask": _mask("#"),
        "color": "#C2A633", "outline": "#FFD700", "symbol": "D",
        "base": 4, "scale": 2.0, "cap": 10,
    },
    "shiba-inu": {
        "name": "Shiba Inu", "mask": _mask("#"),
        "color": "#FF1493", "outline": "#ff69b4", "symbol": "S",
        "base": 4, "scale": 2.0, "cap": 10,
    },
}

DEFAULT_MASK = _mask("##", "##")
DEFAULT_COLOR = "#6b7280"
DEFAULT_OUTLINE = "#9ca3af"

MAX_CATALOG_ASSETS = len(SHAPES)


def catalog_assets() -> list[str]:
    return list(SHAPES)


def display_name(asset_id: str) -> str:
    rule = SHAPES.get(asset_id)
    return rule["name"] if rule else asset_id


def replica_count(asset_id: str, quantity: float) -> int:
    rule = SHAPES.get(asset_id)
    if rule is None:
        return 1
    scaled = quantity * rule["scale"]
    if scaled >= rule["cap"]:
        return rule["cap"]
    return max(1, min(rule["base"] + math.floor(scaled), rule["cap"]))


def describe(asset_id: str, quantity: float) -> ShapeDescriptor:
    """Return the mask, visual and replica count for one Add request.

    Deterministic: the same (asset_id, quantity) always yields the same
    descriptor.
    """
    rule = SHAPES.get(asset_id)
    if rule is None:
        label = asset_id[:4].upper() if asset_id else "?"
        visual = Visual(DEFAULT_COLOR, DEFAULT_OUTLINE, label[:1], label)
        return ShapeDescriptor(DEFAULT_MASK, visual, 1)

    visual = Visual(rule["color"], rule["outline"], rule["symbol"], rule["name"])
    return ShapeDescriptor(rule["mask"], visual, replica_count(asset_id, quantity))
