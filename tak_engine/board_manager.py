"""Board-level helpers for the Tak engine.

Boards are immutable ``BoardState`` values holding a flat, row-major tuple
of cells. Every helper here is side-effect-free: callers pass a board in
and receive derived views or new value objects. Updates go through
:meth:`BoardManager.with_cells`, which rebuilds only the touched cells so
successive boards share every untouched cell tuple.

Game-rule legality is not checked here; see ``tak_engine.rules``.
"""
from __future__ import annotations

import hashlib
from typing import Iterator, Mapping

from .errors import InsufficientPiecesError, OutOfBoundsError
from .models import BoardState, Cell, GameState, Piece, Player, Position

__all__ = ["BoardManager"]


class BoardManager:
    """Structural operations on ``BoardState`` and its cells."""

    @staticmethod
    def empty_board(size: int) -> BoardState:
        """Return a ``size`` x ``size`` board with every cell empty."""
        return BoardState(size=size, cells=((),) * (size * size))

    @staticmethod
    def is_valid_position(position: Position, size: int) -> bool:
        return 0 <= position.row < size and 0 <= position.col < size

    @staticmethod
    def index(board: BoardState, row: int, col: int) -> int:
        """Flat index of ``(row, col)``; raises ``OutOfBoundsError``."""
        size = board.size
        if not (0 <= row < size and 0 <= col < size):
            raise OutOfBoundsError(
                "Cell coordinates outside the board",
                row=row,
                col=col,
                size=size,
            )
        return row * size + col

    @staticmethod
    def cell_at(board: BoardState, row: int, col: int) -> Cell:
        return board.cells[BoardManager.index(board, row, col)]

    @staticmethod
    def cell_at_position(board: BoardState, position: Position) -> Cell:
        return BoardManager.cell_at(board, position.row, position.col)

    @staticmethod
    def top_piece(cell: Cell) -> Piece | None:
        """Return the topmost piece or ``None`` if the cell is empty."""
        return cell[-1] if cell else None

    @staticmethod
    def controller(cell: Cell) -> Player | None:
        top = BoardManager.top_piece(cell)
        return top.owner if top is not None else None

    @staticmethod
    def place_on_top(cell: Cell, piece: Piece) -> Cell:
        return cell + (piece,)

    @staticmethod
    def remove_top(cell: Cell, n: int) -> tuple[Cell, Cell]:
        """Split off the top ``n`` pieces.

        Returns ``(popped, remaining)``; ``popped`` keeps bottom-to-top order.
        """
        if n < 0 or n > len(cell):
            raise InsufficientPiecesError(
                "Cannot remove more pieces than the cell holds",
                requested=n,
                available=len(cell),
            )
        split = len(cell) - n
        return cell[split:], cell[:split]

    @staticmethod
    def with_cells(board: BoardState, updates: Mapping[int, Cell]) -> BoardState:
        """Copy-on-write update keyed by flat index."""
        if not updates:
            return board
        cells = list(board.cells)
        for idx, cell in updates.items():
            cells[idx] = cell
        return board.model_copy(update={"cells": tuple(cells)})

    @staticmethod
    def iter_positions(size: int) -> Iterator[Position]:
        for row in range(size):
            for col in range(size):
                yield Position(row=row, col=col)

    @staticmethod
    def empty_positions(board: BoardState) -> list[Position]:
        size = board.size
        return [
            Position(row=idx // size, col=idx % size)
            for idx, cell in enumerate(board.cells)
            if not cell
        ]

    @staticmethod
    def is_full(board: BoardState) -> bool:
        return all(board.cells)

    @staticmethod
    def count_pieces(board: BoardState, owner: Player) -> int:
        """Pieces owned by ``owner`` anywhere on the board, buried or not."""
        return sum(
            1 for cell in board.cells for piece in cell if piece.owner is owner
        )

    @staticmethod
    def hash_game_state(state: GameState) -> str:
        """
        Canonical fingerprint of a GameState used by tests and replay
        tooling to detect state changes. Covers the board, reserves, side to
        move, ply and status; excludes ids, timestamps and history.
        """
        parts = [
            str(state.board_size),
            state.current_player.value,
            str(state.ply),
            state.phase.value,
            state.game_status.value,
            f"{state.white_reserve.flat}/{state.white_reserve.capstone}",
            f"{state.black_reserve.flat}/{state.black_reserve.capstone}",
        ]
        for cell in state.board.cells:
            parts.append(
                "".join(f"{p.owner.value[0]}{p.kind.value[0]}" for p in cell)
            )
        return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()
