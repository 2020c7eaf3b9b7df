"""Game state machine and public entry points for the Tak engine.

``GameEngine`` owns the lifecycle of a game (waiting, active, finished)
and sequences every command through the rules layer:

1. ``MoveValidator`` decides legality and reports a typed reason.
2. ``MoveApplicator`` builds the successor state.
3. ``VictoryDetector`` evaluates roads, flat counts and Tak threats.

Every operation returns a new ``GameState``; states handed to callers
are never modified afterwards. Nothing here performs I/O or blocks, so
hosts are free to serialise access however they like; ``expected_version``
gives them an optimistic concurrency check.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from . import metrics
from .board_manager import BoardManager
from .config import EngineConfig, get_engine_config
from .core.logging_config import configure_logging
from .errors import (
    ConfigurationError,
    GameLifecycleError,
    InvalidStateError,
    MoveRejectedError,
    StaleStateError,
)
from .models import (
    Command,
    CommandResult,
    Direction,
    GameOutcome,
    GameState,
    GameStatus,
    MoveRecord,
    MoveStackCommand,
    OutcomeSummary,
    PieceKind,
    PlaceCommand,
    Player,
    WinReason,
)
from .notation import format_command, parse_command
from .rules.applicator import MoveApplicator
from .rules.core import carry_limit, starting_reserve
from .rules.geometry import BoardGeometry
from .rules.validator import MoveValidator
from .rules.victory import VictoryDetector

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _drop_patterns(count: int, max_cells: int) -> Iterator[Tuple[int, ...]]:
    """All ways to split ``count`` pieces over 1..max_cells cells, each >= 1."""
    if count == 0:
        yield ()
        return
    if max_cells == 0:
        return
    for first in range(1, count + 1):
        for rest in _drop_patterns(count - first, max_cells - 1):
            yield (first,) + rest


class GameEngine:
    """Entry points for creating and advancing Tak games."""

    @staticmethod
    def komi_from_points(points: float) -> int:
        """Convert a komi in points (multiples of 0.5) to half-point ticks."""
        ticks = points * 2
        if ticks < 0 or ticks != int(ticks):
            raise ConfigurationError(
                "Komi must be a non-negative multiple of 0.5",
                context={"komi": points},
            )
        return int(ticks)

    @staticmethod
    def start_game(
        board_size: int,
        komi: Optional[int] = None,
        game_id: Optional[str] = None,
        config: Optional[EngineConfig] = None,
    ) -> GameState:
        """
        Create a game waiting for its second player.

        Args:
            board_size: Side length, 3 to 8.
            komi: Half-point ticks added to White's flat tally. Defaults to
                the configured ``default_komi``.
            game_id: Optional identifier; a random one is generated otherwise.
            config: Overrides the environment config.

        Raises:
            ConfigurationError: unsupported board size, or a komi that is
                negative or not an integer number of half points.
        """
        config = config or get_engine_config()
        configure_logging(config)
        reserve = starting_reserve(board_size)
        komi = config.default_komi if komi is None else komi
        if isinstance(komi, bool) or not isinstance(komi, int):
            raise ConfigurationError(
                "Komi is counted in integer half-point ticks; "
                "convert points with GameEngine.komi_from_points",
                context={"komi": komi},
            )
        if komi < 0:
            raise ConfigurationError("Komi must not be negative", context={"komi": komi})

        fields = dict(
            board_size=board_size,
            board=BoardManager.empty_board(board_size),
            white_reserve=reserve,
            black_reserve=reserve,
            komi=komi,
        )
        if game_id is not None:
            fields["id"] = game_id
        state = GameState(**fields)

        metrics.record_game_started(board_size)
        logger.info("game %s created (size=%d, komi=%d)", state.id, board_size, komi)
        return state

    @staticmethod
    def admit_second_player(state: GameState) -> GameState:
        """Activate a waiting game."""
        if state.game_status != GameStatus.WAITING:
            raise GameLifecycleError(
                "Game is not waiting for a player", status=state.game_status.value
            )
        logger.info("game %s started", state.id)
        return state.model_copy(
            update={"game_status": GameStatus.ACTIVE, "version": state.version + 1}
        )

    @staticmethod
    def submit_command(
        state: GameState,
        acting_player: Player,
        command: Command,
        expected_version: Optional[int] = None,
        config: Optional[EngineConfig] = None,
    ) -> CommandResult:
        """
        Validate, apply and evaluate ``command`` for ``acting_player``.

        Returns:
            The successor state and the board evaluation. On a terminal
            outcome the state is finished and the turn stays with the mover.

        Raises:
            StaleStateError: ``expected_version`` differs from ``state.version``.
            MoveRejectedError: the command is illegal; ``reason`` says why.
        """
        if expected_version is not None and expected_version != state.version:
            raise StaleStateError(
                "State has moved on since it was read",
                expected_version=expected_version,
                actual_version=state.version,
            )

        config = config or get_engine_config()
        started = time.perf_counter()

        verdict = MoveValidator.validate(state, acting_player, command)
        if not verdict.valid:
            metrics.record_command(
                command, False, time.perf_counter() - started, reason=verdict.reason
            )
            logger.debug(
                "game %s: rejected %s from %s (%s)",
                state.id,
                command.type,
                acting_player.value,
                verdict.reason.value,
            )
            raise MoveRejectedError(
                verdict.message or "Move rejected",
                reason=verdict.reason,
                context={"game_id": state.id, "ply": state.ply},
            )

        next_state = MoveApplicator.apply(
            state, acting_player, command, strict=config.strict_invariants
        )
        outcome = VictoryDetector.evaluate(
            next_state.board,
            next_state.white_reserve,
            next_state.black_reserve,
            mover=acting_player,
            komi=state.komi,
            detect_tak=config.tak_warnings_enabled,
        )

        record = MoveRecord(
            move_number=len(state.move_history) + 1,
            player=acting_player,
            command=command,
            notation=format_command(command),
        )
        update = {
            "move_history": state.move_history + (record,),
            "version": state.version + 1,
            "last_move_at": _now(),
        }
        if outcome.is_terminal:
            update.update(
                game_status=GameStatus.FINISHED,
                outcome=GameOutcome(winner=outcome.winner, reason=outcome.reason),
                current_player=acting_player,
            )
        next_state = next_state.model_copy(update=update)

        if config.strict_invariants:
            GameEngine._check_reserve_conservation(next_state)

        metrics.record_command(
            command, True, time.perf_counter() - started, outcome=outcome
        )
        if outcome.is_terminal:
            GameEngine._log_game_end(next_state)
        return CommandResult(state=next_state, outcome=outcome)

    @staticmethod
    def resign(state: GameState, acting_player: Player) -> GameState:
        """Finish an active game in favour of ``acting_player``'s opponent."""
        if state.game_status != GameStatus.ACTIVE:
            raise GameLifecycleError(
                "Only an active game can be resigned", status=state.game_status.value
            )
        finished = state.model_copy(
            update={
                "game_status": GameStatus.FINISHED,
                "outcome": GameOutcome(
                    winner=acting_player.opponent(), reason=WinReason.RESIGNATION
                ),
                "version": state.version + 1,
                "last_move_at": _now(),
            }
        )
        GameEngine._log_game_end(finished)
        return finished

    @staticmethod
    def describe_outcome(state: GameState) -> OutcomeSummary:
        outcome = state.outcome
        return OutcomeSummary(
            status=state.game_status,
            winner=outcome.winner if outcome else None,
            reason=outcome.reason if outcome else None,
            is_draw=outcome is not None and outcome.winner is None,
            komi_points=state.komi / 2,
        )

    @staticmethod
    def get_valid_commands(state: GameState) -> List[Command]:
        """Every legal command for the side to move, placements first."""
        if state.game_status != GameStatus.ACTIVE:
            return []
        player = state.current_player
        board = state.board
        candidates: List[Command] = []

        for pos in BoardManager.empty_positions(board):
            for kind in PieceKind:
                candidates.append(PlaceCommand(position=pos, piece_kind=kind))

        for pos in BoardManager.iter_positions(board.size):
            cell = BoardManager.cell_at_position(board, pos)
            if BoardManager.controller(cell) != player:
                continue
            max_carry = min(len(cell), carry_limit(board.size))
            for direction in Direction:
                reach = BoardGeometry.distance_to_edge(pos, direction.offset, board.size)
                if reach == 0:
                    continue
                for count in range(1, max_carry + 1):
                    for drops in _drop_patterns(count, reach):
                        candidates.append(
                            MoveStackCommand.along(pos, direction, count, drops)
                        )

        return [
            c for c in candidates if MoveValidator.validate(state, player, c).valid
        ]

    @staticmethod
    def replay(
        board_size: int,
        moves: Iterable[Union[Command, str]],
        komi: Optional[int] = None,
        config: Optional[EngineConfig] = None,
    ) -> GameState:
        """Rebuild a game from its command sequence, White moving first.

        ``moves`` may mix command objects and notation strings. A move that
        the rules reject raises ``MoveRejectedError``.
        """
        state = GameEngine.admit_second_player(
            GameEngine.start_game(board_size, komi=komi, config=config)
        )
        for move in moves:
            command = parse_command(move) if isinstance(move, str) else move
            state = GameEngine.submit_command(
                state, state.current_player, command, config=config
            ).state
        return state

    @staticmethod
    def _check_reserve_conservation(state: GameState) -> None:
        """Pieces on board plus reserve must equal the starting allotment."""
        allotment = starting_reserve(state.board_size).total
        for player in Player:
            on_board = BoardManager.count_pieces(state.board, player)
            in_hand = state.reserve_for(player).total
            if on_board + in_hand != allotment:
                raise InvalidStateError(
                    "Piece conservation violated",
                    context={
                        "player": player.value,
                        "on_board": on_board,
                        "in_reserve": in_hand,
                        "allotment": allotment,
                    },
                )

    @staticmethod
    def _log_game_end(state: GameState) -> None:
        outcome = state.outcome
        winner = outcome.winner.value if outcome.winner else None
        metrics.record_game_outcome(state.board_size, winner, outcome.reason.value)
        logger.info(
            "game %s finished: %s (%s) after %d plies",
            state.id,
            winner or "draw",
            outcome.reason.value,
            state.ply,
        )
