"""Shared rule constants and small helpers used across the rules modules."""

from __future__ import annotations

from typing import Dict

from ..errors import ConfigurationError
from ..models import GamePhase, GameState, PieceKind, PieceReserve, Player

# board size -> (flat stones, capstones) per player
PIECE_ALLOTMENTS: Dict[int, tuple[int, int]] = {
    3: (10, 0),
    4: (15, 0),
    5: (21, 1),
    6: (30, 1),
    7: (40, 2),
    8: (50, 2),
}

SUPPORTED_BOARD_SIZES = tuple(sorted(PIECE_ALLOTMENTS))

# Plies played with the opponent's pieces before normal play begins.
OPENING_PLIES = 2


def starting_reserve(board_size: int) -> PieceReserve:
    """Return the full per-player reserve for ``board_size``."""
    if board_size not in PIECE_ALLOTMENTS:
        raise ConfigurationError(
            f"Board size must be one of {SUPPORTED_BOARD_SIZES}",
            context={"board_size": board_size},
        )
    flat, capstone = PIECE_ALLOTMENTS[board_size]
    return PieceReserve(flat=flat, capstone=capstone)


def carry_limit(board_size: int) -> int:
    return board_size


def effective_owner(state: GameState, acting_player: Player) -> Player:
    """Owner of a piece placed by ``acting_player`` in ``state``.

    During the opening each player places one of the opponent's pieces.
    """
    if state.phase == GamePhase.OPENING:
        return acting_player.opponent()
    return acting_player


def reserve_available(reserve: PieceReserve, kind: PieceKind) -> int:
    """Pieces left for ``kind``; flats and walls share the flat reserve."""
    if kind == PieceKind.CAPSTONE:
        return reserve.capstone
    return reserve.flat


def take_from_reserve(reserve: PieceReserve, kind: PieceKind) -> PieceReserve:
    if kind == PieceKind.CAPSTONE:
        return reserve.model_copy(update={"capstone": reserve.capstone - 1})
    return reserve.model_copy(update={"flat": reserve.flat - 1})


def phase_for_ply(ply: int) -> GamePhase:
    return GamePhase.OPENING if ply < OPENING_PLIES else GamePhase.NORMAL
