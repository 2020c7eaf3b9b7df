"""
Tak Engine Error Hierarchy

Unified exception hierarchy for consistent error handling across the engine.
All custom exceptions inherit from TakError for easy catching and filtering.

Usage:
    from tak_engine.errors import MoveRejectedError

    try:
        result = GameEngine.submit_command(state, Player.WHITE, command)
    except MoveRejectedError as e:
        logger.info(f"Rejected move: {e.reason.value}")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import RejectionReason

__all__ = [
    "ConfigurationError",
    "GameLifecycleError",
    "InsufficientPiecesError",
    "InvalidStateError",
    "MoveRejectedError",
    "NotationError",
    "OutOfBoundsError",
    "RulesViolationError",
    "StaleStateError",
    "TakError",
    "TakValidationError",
]


class TakError(Exception):
    """Root of every error the engine raises.

    ``recoverable`` separates caller mistakes (retry with another command
    or a fresh state) from invariant breaches, where the engine itself is
    wrong. ``context`` holds JSON-safe details and ``to_dict`` is the
    payload a host relays to its clients.
    """
    code: str = "TAK_ERROR"
    recoverable: bool = False

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context: dict[str, Any] = dict(context) if context else {}

    def __str__(self) -> str:
        if not self.context:
            return f"[{self.code}] {self.message}"
        details = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"[{self.code}] {self.message} ({details})"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "recoverable": self.recoverable,
        }
        if self.context:
            payload["context"] = dict(self.context)
        return payload


# =============================================================================
# Game Rules Errors
# =============================================================================


class RulesViolationError(TakError):
    """Invalid move per game rules.

    User-facing and recoverable: the caller re-prompts and no state
    changes. ``reason`` is the typed rejection reason reported by the
    move validator.
    """
    code: str = "RULES_VIOLATION"
    recoverable: bool = True

    def __init__(
        self,
        message: str,
        reason: RejectionReason | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.reason = reason
        if reason is not None:
            self.context["reason"] = reason.value

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["reason"] = self.reason.value if self.reason is not None else None
        return payload


class MoveRejectedError(RulesViolationError):
    """A submitted command was rejected by the move validator."""
    code: str = "MOVE_REJECTED"


class GameLifecycleError(TakError):
    """Operation not allowed in the game's current status.

    Raised when admitting a player to a game that is not waiting, or
    resigning from a game that is not active.
    """
    code: str = "GAME_LIFECYCLE"
    recoverable: bool = True

    def __init__(
        self,
        message: str,
        status: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if status:
            self.context["status"] = status


class StaleStateError(TakError):
    """Command submitted against an out-of-date state version."""
    code: str = "STALE_STATE"
    recoverable: bool = True

    def __init__(
        self,
        message: str,
        expected_version: int | None = None,
        actual_version: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if expected_version is not None:
            self.context["expected_version"] = expected_version
        if actual_version is not None:
            self.context["actual_version"] = actual_version


# =============================================================================
# Invariant Errors (programming errors, never user input)
# =============================================================================


class InvalidStateError(TakError):
    """Corrupted or unexpected game state.

    Raised when the engine reaches a configuration that should not be
    possible through validated play, e.g. applying a command that the
    validator would reject.
    """
    code: str = "INVALID_STATE"


class OutOfBoundsError(InvalidStateError):
    """Board coordinates outside ``[0, size)``."""
    code: str = "OUT_OF_BOUNDS"

    def __init__(
        self,
        message: str,
        row: int | None = None,
        col: int | None = None,
        size: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if row is not None:
            self.context["row"] = row
        if col is not None:
            self.context["col"] = col
        if size is not None:
            self.context["size"] = size


class InsufficientPiecesError(InvalidStateError):
    """Attempted to pop more pieces than a cell holds."""
    code: str = "INSUFFICIENT_PIECES"

    def __init__(
        self,
        message: str,
        requested: int | None = None,
        available: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if requested is not None:
            self.context["requested"] = requested
        if available is not None:
            self.context["available"] = available


# =============================================================================
# Validation Errors
# =============================================================================


class TakValidationError(TakError):
    """Bad caller-supplied input outside of move legality.

    Distinct from ``pydantic.ValidationError``: model construction errors
    are translated into subclasses of this at the engine boundary.
    """
    code: str = "VALIDATION_ERROR"
    recoverable: bool = True


class ConfigurationError(TakValidationError):
    """Invalid configuration (board size, komi, environment settings)."""
    code: str = "CONFIGURATION_ERROR"


class NotationError(TakValidationError):
    """Move notation that cannot be parsed or rendered."""
    code: str = "NOTATION_ERROR"

    def __init__(
        self,
        message: str,
        notation: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        if notation is not None:
            self.context["notation"] = notation
