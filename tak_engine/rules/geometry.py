"""Board geometry helpers: bounds, directions and movement paths."""

from __future__ import annotations

from typing import Iterator, List

from ..models import Direction, Offset, Position

ORTHOGONAL_OFFSETS = tuple(d.offset for d in Direction)


class BoardGeometry:
    """Coordinate arithmetic for a square board."""

    @staticmethod
    def is_orthogonal_unit(offset: Offset) -> bool:
        """True for the four unit vectors; rejects zero and diagonals."""
        return abs(offset.dr) + abs(offset.dc) == 1

    @staticmethod
    def step(position: Position, offset: Offset, distance: int = 1) -> Position:
        return Position(
            row=position.row + offset.dr * distance,
            col=position.col + offset.dc * distance,
        )

    @staticmethod
    def path(origin: Position, offset: Offset, length: int) -> List[Position]:
        """Cells visited by a stack move, excluding the origin."""
        return [BoardGeometry.step(origin, offset, i) for i in range(1, length + 1)]

    @staticmethod
    def distance_to_edge(position: Position, offset: Offset, size: int) -> int:
        """Number of in-bounds cells past ``position`` along ``offset``."""
        if offset.dr > 0:
            return size - 1 - position.row
        if offset.dr < 0:
            return position.row
        if offset.dc > 0:
            return size - 1 - position.col
        if offset.dc < 0:
            return position.col
        return 0

    @staticmethod
    def neighbors(row: int, col: int, size: int) -> Iterator[tuple[int, int]]:
        for offset in ORTHOGONAL_OFFSETS:
            r, c = row + offset.dr, col + offset.dc
            if 0 <= r < size and 0 <= c < size:
                yield r, c
