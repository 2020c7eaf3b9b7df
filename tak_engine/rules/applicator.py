"""Move application.

``MoveApplicator.apply`` derives the successor ``GameState`` of an already
validated command. It never rejects: a command the validator would refuse
is a programming error and, with strict invariants enabled, raises
``InvalidStateError``.
"""

from __future__ import annotations

import logging

from ..board_manager import BoardManager
from ..errors import InvalidStateError
from ..models import (
    Cell,
    GameState,
    MoveStackCommand,
    Piece,
    PieceKind,
    PlaceCommand,
    Player,
)
from .core import effective_owner, phase_for_ply, take_from_reserve
from .geometry import BoardGeometry
from .validator import MoveValidator

logger = logging.getLogger(__name__)


class MoveApplicator:
    """Builds the next state from a validated command."""

    @staticmethod
    def apply(
        state: GameState,
        acting_player: Player,
        command: PlaceCommand | MoveStackCommand,
        *,
        strict: bool = True,
    ) -> GameState:
        """
        Apply ``command`` for ``acting_player`` and return the new state.

        The returned state has the ply advanced, the phase updated and the
        turn passed to the opponent. ``state`` itself is never modified.

        Args:
            state: The current game state.
            acting_player: The player issuing the command.
            command: A command already accepted by ``MoveValidator``.
            strict: Re-run validation first and fail loudly on rejection.
        """
        if strict:
            verdict = MoveValidator.validate(state, acting_player, command)
            if not verdict.valid:
                raise InvalidStateError(
                    "apply called with a command the validator rejects",
                    context={
                        "reason": verdict.reason.value if verdict.reason else None,
                        "ply": state.ply,
                    },
                )

        if isinstance(command, PlaceCommand):
            update = MoveApplicator._apply_place(state, acting_player, command)
        else:
            update = MoveApplicator._apply_move_stack(state, command)

        next_ply = state.ply + 1
        update.update(
            ply=next_ply,
            phase=phase_for_ply(next_ply),
            current_player=acting_player.opponent(),
        )
        return state.model_copy(update=update)

    @staticmethod
    def _apply_place(
        state: GameState, acting_player: Player, command: PlaceCommand
    ) -> dict:
        """Push the new piece and charge the reserve of its owner."""
        board = state.board
        owner = effective_owner(state, acting_player)
        piece = Piece(owner=owner, kind=command.piece_kind)

        idx = BoardManager.index(board, command.position.row, command.position.col)
        new_cell = BoardManager.place_on_top(board.cells[idx], piece)

        update = {"board": BoardManager.with_cells(board, {idx: new_cell})}
        update.update(
            state.reserve_update(
                owner, take_from_reserve(state.reserve_for(owner), command.piece_kind)
            )
        )
        logger.debug(
            "placed %s %s at %s (ply %d)",
            owner.value,
            command.piece_kind.value,
            command.position.to_key(),
            state.ply,
        )
        return update

    @staticmethod
    def _apply_move_stack(state: GameState, command: MoveStackCommand) -> dict:
        """Lift the carried slice and drop it cell by cell along the path.

        Pieces leave the carried slice from its bottom, so the lowest carried
        piece lands first and relative order is preserved on every cell.
        """
        board = state.board
        origin_idx = BoardManager.index(board, command.origin.row, command.origin.col)
        carried, remaining = BoardManager.remove_top(board.cells[origin_idx], command.count)

        updates: dict[int, Cell] = {origin_idx: remaining}
        path = BoardGeometry.path(command.origin, command.direction, len(command.drops))
        offset = 0
        for pos, drop in zip(path, command.drops):
            idx = BoardManager.index(board, pos.row, pos.col)
            target = updates.get(idx, board.cells[idx])
            top = BoardManager.top_piece(target)
            if top is not None and top.kind == PieceKind.STANDING:
                flattened = Piece(owner=top.owner, kind=PieceKind.FLAT)
                target = target[:-1] + (flattened,)
            for piece in carried[offset:offset + drop]:
                target = BoardManager.place_on_top(target, piece)
            offset += drop
            updates[idx] = target

        if offset != len(carried):
            raise InvalidStateError(
                "Drop pattern did not release every carried piece",
                context={"carried": len(carried), "dropped": offset},
            )

        logger.debug(
            "moved %d from %s along (%d,%d) drops=%s",
            command.count,
            command.origin.to_key(),
            command.direction.dr,
            command.direction.dc,
            list(command.drops),
        )
        return {"board": BoardManager.with_cells(board, updates)}
