"""Prometheus metrics for the Tak engine.

Counters and a latency histogram recorded by ``GameEngine`` so a host
service can scrape game and command telemetry from the default
registry. Label values are low-cardinality enum values and board sizes.
"""

from __future__ import annotations

from typing import Final, Optional

from prometheus_client import Counter, Histogram

from .models import Command, Outcome, PlaceCommand, RejectionReason

TAK_GAMES_STARTED: Final[Counter] = Counter(
    "tak_games_started_total",
    "Total games created, labeled by board_size.",
    labelnames=("board_size",),
)

TAK_COMMANDS: Final[Counter] = Counter(
    "tak_commands_total",
    "Total submitted commands, labeled by command type and result.",
    labelnames=("command_type", "result"),
)

TAK_REJECTIONS: Final[Counter] = Counter(
    "tak_command_rejections_total",
    "Total rejected commands, labeled by rejection reason.",
    labelnames=("reason",),
)

TAK_GAME_OUTCOMES: Final[Counter] = Counter(
    "tak_game_outcomes_total",
    "Total finished games, labeled by board_size, winner and reason.",
    labelnames=("board_size", "winner", "reason"),
)

TAK_WARNINGS: Final[Counter] = Counter(
    "tak_warnings_total",
    "Total Tak advisories raised after accepted commands, labeled by player.",
    labelnames=("player",),
)

TAK_COMMAND_LATENCY: Final[Histogram] = Histogram(
    "tak_command_latency_seconds",
    "Time spent validating, applying and evaluating a command.",
    labelnames=("command_type",),
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1),
)


def _command_type(command: Command) -> str:
    return "place" if isinstance(command, PlaceCommand) else "move"


def record_game_started(board_size: int) -> None:
    TAK_GAMES_STARTED.labels(str(board_size)).inc()


def record_command(
    command: Command,
    accepted: bool,
    duration_seconds: float,
    reason: Optional[RejectionReason] = None,
    outcome: Optional[Outcome] = None,
) -> None:
    """Record one submitted command.

    Args:
        command: The command as submitted.
        accepted: Whether the engine applied it.
        duration_seconds: Wall time spent inside ``submit_command``.
        reason: Rejection reason when ``accepted`` is False.
        outcome: Board evaluation when ``accepted`` is True; its Tak
            threats feed the warnings counter.
    """
    command_type = _command_type(command)
    TAK_COMMANDS.labels(command_type, "accepted" if accepted else "rejected").inc()
    TAK_COMMAND_LATENCY.labels(command_type).observe(duration_seconds)
    if reason is not None:
        TAK_REJECTIONS.labels(reason.value).inc()
    if outcome is not None:
        for player in outcome.tak_threats:
            TAK_WARNINGS.labels(player.value).inc()


def record_game_outcome(
    board_size: int,
    winner: Optional[str],
    reason: str,
) -> None:
    """Record a finished game; ``winner`` is None for a draw."""
    TAK_GAME_OUTCOMES.labels(str(board_size), winner or "draw", reason).inc()
