"""Move validation.

``MoveValidator.validate`` is pure: it inspects a ``GameState`` and a
command and reports whether the command is legal for ``acting_player``.
Checks run in a fixed order and the first failure is reported.
"""

from __future__ import annotations

from ..board_manager import BoardManager
from ..models import (
    GamePhase,
    GameState,
    GameStatus,
    MoveStackCommand,
    PieceKind,
    PlaceCommand,
    Player,
    RejectionReason,
    ValidationResult,
)
from .core import carry_limit, effective_owner, reserve_available
from .geometry import BoardGeometry


class MoveValidator:
    """Legality checks for placement and stack-move commands."""

    @staticmethod
    def validate(
        state: GameState, acting_player: Player, command: PlaceCommand | MoveStackCommand
    ) -> ValidationResult:
        if state.game_status != GameStatus.ACTIVE:
            return ValidationResult.reject(
                RejectionReason.GAME_NOT_ACTIVE,
                f"Game is {state.game_status.value}, not active",
            )
        if acting_player != state.current_player:
            return ValidationResult.reject(
                RejectionReason.NOT_YOUR_TURN,
                f"It is {state.current_player.value}'s turn",
            )

        if isinstance(command, PlaceCommand):
            return MoveValidator._validate_place(state, acting_player, command)
        return MoveValidator._validate_move_stack(state, acting_player, command)

    @staticmethod
    def _validate_place(
        state: GameState, acting_player: Player, command: PlaceCommand
    ) -> ValidationResult:
        board = state.board
        pos = command.position
        if not BoardManager.is_valid_position(pos, board.size):
            return ValidationResult.reject(
                RejectionReason.OUT_OF_BOUNDS, "Placement is off the board"
            )
        if BoardManager.cell_at_position(board, pos):
            return ValidationResult.reject(
                RejectionReason.CELL_OCCUPIED, "Position already occupied"
            )
        if state.ply == 0 and command.piece_kind != PieceKind.FLAT:
            return ValidationResult.reject(
                RejectionReason.OPENING_MUST_BE_FLAT,
                "First move must be a flat piece",
            )

        owner = effective_owner(state, acting_player)
        if reserve_available(state.reserve_for(owner), command.piece_kind) <= 0:
            label = "capstones" if command.piece_kind == PieceKind.CAPSTONE else "flat pieces"
            return ValidationResult.reject(
                RejectionReason.NO_PIECES_REMAINING,
                f"No {label} remaining for {owner.value}",
            )
        return ValidationResult.ok()

    @staticmethod
    def _validate_move_stack(
        state: GameState, acting_player: Player, command: MoveStackCommand
    ) -> ValidationResult:
        board = state.board
        origin = command.origin

        if not BoardManager.is_valid_position(origin, board.size):
            return ValidationResult.reject(
                RejectionReason.NO_PIECES_TO_MOVE, "Origin is off the board"
            )
        origin_cell = BoardManager.cell_at_position(board, origin)
        if not origin_cell:
            return ValidationResult.reject(
                RejectionReason.NO_PIECES_TO_MOVE, "No pieces to move"
            )
        if BoardManager.controller(origin_cell) != acting_player:
            return ValidationResult.reject(
                RejectionReason.NOT_CONTROLLER, "You don't control this stack"
            )
        if state.phase != GamePhase.NORMAL:
            return ValidationResult.reject(
                RejectionReason.OPENING_NO_MOVEMENT,
                "Stacks cannot move during the opening",
            )

        limit = min(len(origin_cell), carry_limit(board.size))
        if not 1 <= command.count <= limit:
            return ValidationResult.reject(
                RejectionReason.INVALID_CARRY_COUNT,
                f"Carry count must be between 1 and {limit}",
            )
        if not BoardGeometry.is_orthogonal_unit(command.direction):
            return ValidationResult.reject(
                RejectionReason.NOT_STRAIGHT_LINE, "Move must be in straight line"
            )

        drop_error = MoveValidator._check_drop_pattern(command)
        if drop_error is not None:
            return ValidationResult.reject(RejectionReason.BAD_DROP_PATTERN, drop_error)

        return MoveValidator._check_path(state, command, origin_cell)

    @staticmethod
    def _check_drop_pattern(command: MoveStackCommand) -> str | None:
        drops = command.drops
        if not drops:
            return "Drop pattern must not be empty"
        if any(d < 1 for d in drops):
            return "Every drop must leave at least one piece"
        if sum(drops) != command.count:
            return "Drop pattern must sum to stack size"
        if command.destination is not None:
            dr = command.destination.row - command.origin.row
            dc = command.destination.col - command.origin.col
            expected = BoardGeometry.step(command.origin, command.direction, len(drops))
            if abs(dr) + abs(dc) != len(drops) or expected != command.destination:
                return "Drop pattern length must match distance"
        return None

    @staticmethod
    def _check_path(
        state: GameState, command: MoveStackCommand, origin_cell
    ) -> ValidationResult:
        board = state.board
        path = BoardGeometry.path(command.origin, command.direction, len(command.drops))
        last = len(path) - 1
        carried, _ = BoardManager.remove_top(origin_cell, command.count)

        for i, pos in enumerate(path):
            if not BoardManager.is_valid_position(pos, board.size):
                return ValidationResult.reject(
                    RejectionReason.OUT_OF_BOUNDS, "Move goes off board"
                )
            top = BoardManager.top_piece(BoardManager.cell_at_position(board, pos))
            if top is None:
                continue
            if top.kind == PieceKind.CAPSTONE:
                return ValidationResult.reject(
                    RejectionReason.BLOCKED_BY_CAPSTONE, "Cannot move onto capstone"
                )
            if top.kind == PieceKind.STANDING:
                flattens = (
                    i == last
                    and command.drops[i] == 1
                    and carried[-1].kind == PieceKind.CAPSTONE
                )
                if not flattens:
                    return ValidationResult.reject(
                        RejectionReason.BLOCKED_BY_WALL,
                        "Can only flatten wall with single capstone",
                    )
        return ValidationResult.ok()
