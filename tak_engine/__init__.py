"""Tak rules engine.

This package holds the authoritative rules of Tak: board state, move
legality, move application, road and flat win detection and the game
lifecycle. It performs no I/O; hosts pass states in and receive new
states back.

Usage:

    from tak_engine import GameEngine, Player, PlaceCommand, Position

    state = GameEngine.admit_second_player(GameEngine.start_game(5))
    result = GameEngine.submit_command(
        state, Player.WHITE, PlaceCommand(position=Position(row=2, col=2))
    )

Layout:
- models.py: pydantic value types (GameState, commands, outcomes)
- board_manager.py: structural board helpers
- rules/: validator, applicator and victory detector
- game_engine.py: lifecycle and command sequencing
- notation.py: square and move notation
- config.py / metrics.py / core/logging_config.py: ambient settings,
  prometheus counters and logging setup
"""

from .errors import (
    GameLifecycleError,
    InvalidStateError,
    MoveRejectedError,
    StaleStateError,
    TakError,
)
from .game_engine import GameEngine
from .models import (
    CommandResult,
    Direction,
    GameState,
    GameStatus,
    MoveStackCommand,
    Outcome,
    OutcomeKind,
    PieceKind,
    PlaceCommand,
    Player,
    Position,
    RejectionReason,
    WinReason,
)

__version__ = "0.1.0"

__all__ = [
    "CommandResult",
    "Direction",
    "GameEngine",
    "GameLifecycleError",
    "GameState",
    "GameStatus",
    "InvalidStateError",
    "MoveRejectedError",
    "MoveStackCommand",
    "Outcome",
    "OutcomeKind",
    "PieceKind",
    "PlaceCommand",
    "Player",
    "Position",
    "RejectionReason",
    "StaleStateError",
    "TakError",
    "WinReason",
]
