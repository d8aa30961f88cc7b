"""Placement engine — falling blocks, settlement and reorganization.

The engine owns the occupancy grid and every block. Blocks are spawned above
the grid (y < 0) and fall one row per tick until they collide with the floor
or a settled block, at which point they are written into the grid. After a
removal the whole layout is rebuilt with a greedy leftmost-fit pass.

All grid reads and writes happen under one lock, so descents driven from a
timer thread and add/remove calls from elsewhere never interleave. on_change
is always called after the lock is released.
"""

from __future__ import annotations

import math
import random
import re
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from cryptostack.blocks import Block, BlockView
from cryptostack.catalog import describe
from cryptostack.errors import BlockNotFoundError, InvalidHoldingError
from cryptostack.grid import OccupancyGrid
from cryptostack.ledger import Metrics, asset_detail, recompute

ASSET_ID_RE = re.compile(r"^[a-z0-9][a-z0-9-]*$")


@dataclass(frozen=True)
class Snapshot:
    """Everything a renderer needs after a mutation."""

    width: int
    height: int
    tick: int
    blocks: tuple[BlockView, ...]
    metrics: Metrics


def validate_holding(asset_id, quantity) -> tuple[str, float]:
    """Check an add request. Raises InvalidHoldingError on bad input."""
    if not isinstance(asset_id, str) or not ASSET_ID_RE.match(asset_id):
        raise InvalidHoldingError(f"malformed asset id: {asset_id!r}")
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
        raise InvalidHoldingError(f"quantity must be a number, got {quantity!r}")
    if not math.isfinite(quantity) or quantity <= 0:
        raise InvalidHoldingError(f"quantity must be positive, got {quantity!r}")
    return asset_id, float(quantity)


class PlacementEngine:
    def __init__(self, width: int, height: int,
                 prices: Mapping | None = None,
                 stagger_ticks: int = 3,
                 jitter: int = 0,
                 seed: int | None = None,
                 on_change: Callable[[Snapshot], None] | None = None):
        self.grid = OccupancyGrid(width, height)
        self.blocks: dict[int, Block] = {}  # insertion order = creation order
        self.prices: Mapping = prices if prices is not None else {}
        self.stagger_ticks = max(0, stagger_ticks)
        self.jitter = max(0, jitter)
        self.on_change = on_change
        self.lock = threading.Lock()
        self.tick_count = 0
        self._next_id = 1
        self._next_batch = 1
        self._rng = random.Random(seed)

    @property
    def width(self) -> int:
        return self.grid.width

    @property
    def height(self) -> int:
        return self.grid.height

    # -- user intents ------------------------------------------------------

    def add(self, asset_id: str, quantity: float,
            created_at: float | None = None) -> list[int]:
        """Spawn the blocks for one holding above the grid.

        Returns the new block ids. Replicas share the quantity evenly and
        start falling stagger_ticks apart.
        """
        asset_id, quantity = validate_holding(asset_id, quantity)
        shape = describe(asset_id, quantity)
        share = quantity / shape.replica_count
        created_at = time.time() if created_at is None else created_at

        with self.lock:
            batch_id = self._next_batch
            self._next_batch += 1
            ids = []
            for i in range(shape.replica_count):
                block = Block(
                    id=self._next_id,
                    asset_id=asset_id,
                    quantity=share,
                    mask=shape.mask,
                    visual=shape.visual,
                    x=0,
                    y=-len(shape.mask),
                    batch_id=batch_id,
                    created_at=created_at,
                    start_tick=self.tick_count + i * self.stagger_ticks,
                )
                block.x = self._spawn_x(block.width)
                self._next_id += 1
                self.blocks[block.id] = block
                ids.append(block.id)

        self._emit()
        return ids

    def remove(self, block_id: int) -> None:
        """Delete a block and compact the remaining layout."""
        with self.lock:
            block = self.blocks.pop(block_id, None)
            if block is None:
                raise BlockNotFoundError(block_id)
            self.grid.release(block_id)
            self._reorganize()
        self._emit()

    def reorganize(self) -> None:
        with self.lock:
            self._reorganize()
        self._emit()

    def clear(self) -> None:
        with self.lock:
            self.blocks.clear()
            self.grid.clear()
        self._emit()

    def set_prices(self, prices: Mapping) -> None:
        """Swap in a fresh price mapping and re-emit metrics."""
        with self.lock:
            self.prices = prices
        self._emit()

    # -- descent -----------------------------------------------------------

    def tick(self) -> list[int]:
        """Advance every started, falling block by one row.

        Blocks are stepped in creation order; a block that settles is
        visible to the blocks stepped after it in the same tick. Returns
        the ids that settled.
        """
        with self.lock:
            self.tick_count += 1
            moved = False
            settled = []
            for block in self.blocks.values():
                if block.settled or block.start_tick >= self.tick_count:
                    continue
                if self.can_move(block, 0, 1):
                    block.y += 1
                    moved = True
                else:
                    self._settle(block)
                    settled.append(block.id)
        if moved or settled:
            self._emit()
        return settled

    def falling(self) -> list[int]:
        with self.lock:
            return [b.id for b in self.blocks.values() if not b.settled]

    def run_until_settled(self, max_ticks: int = 100_000) -> int:
        """Tick until no block is falling. Returns the ticks used."""
        ticks = 0
        while ticks < max_ticks and self.falling():
            self.tick()
            ticks += 1
        return ticks

    def can_move(self, block: Block, dx: int, dy: int) -> bool:
        """Collision test for moving block by (dx, dy).

        Side walls and the floor always block. Rows above the grid never
        collide; inside the grid a cell owned by another block does.
        """
        for x, y in block.cells(dx, dy):
            if x < 0 or x >= self.grid.width or y >= self.grid.height:
                return False
            if y >= 0:
                owner = self.grid.get(x, y)
                if owner is not None and owner != block.id:
                    return False
        return True

    def _settle(self, block: Block) -> None:
        if self._within_walls(block):
            # Falling blocks may overlap each other; lift onto the stack.
            while not self.can_move(block, 0, 0):
                block.y -= 1
        if all(self.grid.in_bounds(x, y) for x, y in block.cells()):
            block.settled = True
            block.overflow = False
            self.grid.commit(block)
        else:
            self._pin(block)

    # -- reorganization ----------------------------------------------------

    def _reorganize(self) -> None:
        self.grid.clear()
        for block in self.blocks.values():
            self._place(block)

    def _place(self, block: Block) -> None:
        """Greedy leftmost fit: first column whose drop lands inside the grid."""
        for x in range(0, self.grid.width - block.width + 1):
            block.x = x
            block.y = -block.height
            while self.can_move(block, 0, 1):
                block.y += 1
            if block.y >= 0:
                block.settled = True
                block.overflow = False
                self.grid.commit(block)
                return
        self._pin(block)

    def _pin(self, block: Block) -> None:
        """Overflow fallback: top-center, settled, never written to the grid."""
        block.x = max(0, (self.grid.width - block.width) // 2)
        block.y = 0
        block.settled = True
        block.overflow = True

    # -- helpers -----------------------------------------------------------

    def _spawn_x(self, block_width: int) -> int:
        center = (self.grid.width - block_width) // 2
        if self.jitter:
            center += self._rng.randint(-self.jitter, self.jitter)
        return max(0, min(center, self.grid.width - block_width))

    def _within_walls(self, block: Block) -> bool:
        return all(0 <= x < self.grid.width for x, _ in block.cells())

    def get(self, block_id: int) -> BlockView:
        with self.lock:
            block = self.blocks.get(block_id)
            if block is None:
                raise BlockNotFoundError(block_id)
            return block.view()

    def detail(self, block_id: int) -> dict:
        """Quantity, price, 24h change and value of one block."""
        view = self.get(block_id)
        return asset_detail(view, self.prices)

    def snapshot(self) -> Snapshot:
        with self.lock:
            views = tuple(b.view() for b in self.blocks.values())
            prices = self.prices
            tick = self.tick_count
        return Snapshot(
            width=self.grid.width,
            height=self.grid.height,
            tick=tick,
            blocks=views,
            metrics=recompute(views, prices),
        )

    def _emit(self) -> None:
        if self.on_change:
            self.on_change(self.snapshot())
