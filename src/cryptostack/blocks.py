"""Block entity — one placed unit of an asset holding."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from cryptostack.catalog import Mask, Visual


@dataclass(frozen=True)
class BlockView:
    """Read-only copy of a block for the ledger and renderers."""

    id: int
    asset_id: str
    quantity: float
    x: int
    y: int
    mask: Mask
    visual: Visual
    settled: bool
    overflow: bool
    batch_id: int
    created_at: float


@dataclass
class Block:
    id: int
    asset_id: str
    quantity: float  # attributed: submitted quantity / replica count
    mask: Mask
    visual: Visual
    x: int
    y: int
    batch_id: int
    created_at: float
    start_tick: int = 0
    settled: bool = False
    overflow: bool = False  # pinned top-center, not written to the grid

    @property
    def width(self) -> int:
        return len(self.mask[0]) if self.mask else 0

    @property
    def height(self) -> int:
        return len(self.mask)

    def cells(self, dx: int = 0, dy: int = 0) -> Iterator[tuple[int, int]]:
        """Yield absolute (x, y) of every set mask cell, offset by (dx, dy)."""
        for r, row in enumerate(self.mask):
            for c, filled in enumerate(row):
                if filled:
                    yield self.x + dx + c, self.y + dy + r

    def view(self) -> BlockView:
        return BlockView(
            id=self.id,
            asset_id=self.asset_id,
            quantity=self.quantity,
            x=self.x,
            y=self.y,
            mask=self.mask,
            visual=self.visual,
            settled=self.settled,
            overflow=self.overflow,
            batch_id=self.batch_id,
            created_at=self.created_at,
        )
