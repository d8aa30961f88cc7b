"""Occupancy grid — which settled block owns each cell."""

from __future__ import annotations

from collections.abc import Iterator


class OccupancyGrid:
    """Fixed width x height cell array of block ids (None = empty).

    Only settled blocks are ever written here. Collision rules live in the
    placement engine; this class just reads, writes and clears.
    """

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"grid must be at least 1x1, got {width}x{height}")
        self.width = width
        self.height = height
        self._cells: list[list[int | None]] = [[None] * width for _ in range(height)]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> int | None:
        return self._cells[y][x]

    def set(self, x: int, y: int, block_id: int) -> None:
        self._cells[y][x] = block_id

    def clear_cell(self, x: int, y: int) -> None:
        self._cells[y][x] = None

    def clear(self) -> None:
        for row in self._cells:
            for x in range(self.width):
                row[x] = None

    def commit(self, block) -> None:
        """Write every cell covered by a settled block's mask."""
        for x, y in block.cells():
            self._cells[y][x] = block.id

    def release(self, block_id: int) -> int:
        """Clear all cells owned by block_id. Returns the number cleared."""
        cleared = 0
        for row in self._cells:
            for x, owner in enumerate(row):
                if owner == block_id:
                    row[x] = None
                    cleared += 1
        return cleared

    def cells(self) -> Iterator[tuple[int, int, int]]:
        """Yield (x, y, block_id) for every owned cell."""
        for y, row in enumerate(self._cells):
            for x, owner in enumerate(row):
                if owner is not None:
                    yield x, y, owner

    def rows(self) -> list[list[int | None]]:
        return [list(row) for row in self._cells]

    def __eq__(self, other) -> bool:
        if not isinstance(other, OccupancyGrid):
            return NotImplemented
        return self._cells == other._cells
