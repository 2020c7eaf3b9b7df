"""Tests for tak_engine/game_engine.py: lifecycle, command flow and full games."""

import random

import pytest

from tak_engine.board_manager import BoardManager
from tak_engine.config import EngineConfig
from tak_engine.errors import (
    ConfigurationError,
    GameLifecycleError,
    MoveRejectedError,
    StaleStateError,
)
from tak_engine.game_engine import GameEngine
from tak_engine.models import (
    Direction,
    GamePhase,
    GameStatus,
    MoveStackCommand,
    OutcomeKind,
    PieceKind,
    PlaceCommand,
    Player,
    Position,
    RejectionReason,
    WinReason,
)
from tak_engine.rules.core import starting_reserve

ROAD_GAME_3X3 = ["a1", "a3", "b3", "b1", "b2", "a2", "c1", "c2", "c3"]
DRAW_GAME_3X3 = ["b1", "a1", "c1", "a2", "a3", "c2", "c3", "b3", "Sb2"]


def place(row, col, kind=PieceKind.FLAT):
    return PlaceCommand(position=Position(row=row, col=col), piece_kind=kind)


def new_game(size=5, komi=None):
    return GameEngine.admit_second_player(GameEngine.start_game(size, komi=komi))


def play(state, *commands):
    for command in commands:
        state = GameEngine.submit_command(state, state.current_player, command).state
    return state


class TestLifecycle:
    @pytest.mark.parametrize("size", [3, 4, 5, 6, 7, 8])
    def test_start_game(self, size):
        state = GameEngine.start_game(size)
        expected = starting_reserve(size)
        assert state.game_status == GameStatus.WAITING
        assert state.board_size == size
        assert BoardManager.is_full(state.board) is False
        assert len(BoardManager.empty_positions(state.board)) == size * size
        assert state.white_reserve == expected
        assert state.black_reserve == expected
        assert state.current_player == Player.WHITE
        assert state.ply == 0
        assert state.phase == GamePhase.OPENING
        assert state.version == 0

    @pytest.mark.parametrize("size", [2, 9, 0])
    def test_unsupported_board_size(self, size):
        with pytest.raises(ConfigurationError):
            GameEngine.start_game(size)

    def test_negative_komi_rejected(self):
        with pytest.raises(ConfigurationError):
            GameEngine.start_game(5, komi=-1)

    @pytest.mark.parametrize("komi", [2.5, 2.0, "4", True])
    def test_non_integer_komi_rejected(self, komi):
        with pytest.raises(ConfigurationError) as exc_info:
            GameEngine.start_game(5, komi=komi)
        assert "komi_from_points" in exc_info.value.message
        assert exc_info.value.context["komi"] == komi

    def test_point_komi_accepted_after_conversion(self):
        state = GameEngine.start_game(5, komi=GameEngine.komi_from_points(2.5))
        assert state.komi == 5

    def test_default_komi_from_config(self):
        state = GameEngine.start_game(5, config=EngineConfig(default_komi=4))
        assert state.komi == 4
        assert GameEngine.start_game(5, komi=1, config=EngineConfig(default_komi=4)).komi == 1

    def test_game_id(self):
        assert GameEngine.start_game(5, game_id="g-1").id == "g-1"
        assert GameEngine.start_game(5).id != GameEngine.start_game(5).id

    def test_komi_from_points(self):
        assert GameEngine.komi_from_points(2.5) == 5
        assert GameEngine.komi_from_points(0) == 0
        with pytest.raises(ConfigurationError):
            GameEngine.komi_from_points(0.3)
        with pytest.raises(ConfigurationError):
            GameEngine.komi_from_points(-1)

    def test_admit_second_player(self):
        waiting = GameEngine.start_game(5)
        active = GameEngine.admit_second_player(waiting)
        assert active.game_status == GameStatus.ACTIVE
        assert waiting.game_status == GameStatus.WAITING
        with pytest.raises(GameLifecycleError):
            GameEngine.admit_second_player(active)

    def test_commands_rejected_before_game_starts(self):
        waiting = GameEngine.start_game(5)
        with pytest.raises(MoveRejectedError) as exc_info:
            GameEngine.submit_command(waiting, Player.WHITE, place(0, 0))
        assert exc_info.value.reason == RejectionReason.GAME_NOT_ACTIVE

    def test_resign(self):
        state = play(new_game(), place(0, 0))
        finished = GameEngine.resign(state, Player.WHITE)
        assert finished.game_status == GameStatus.FINISHED
        assert finished.outcome.winner == Player.BLACK
        assert finished.outcome.reason == WinReason.RESIGNATION
        assert finished.board == state.board
        assert finished.version == state.version + 1

    def test_resign_requires_active_game(self):
        with pytest.raises(GameLifecycleError):
            GameEngine.resign(GameEngine.start_game(5), Player.WHITE)
        finished = GameEngine.resign(new_game(), Player.BLACK)
        with pytest.raises(GameLifecycleError):
            GameEngine.resign(finished, Player.WHITE)


class TestSubmitCommand:
    def test_opening_sequence(self):
        state = new_game(5)
        state = GameEngine.submit_command(state, Player.WHITE, place(2, 2)).state
        assert BoardManager.controller(BoardManager.cell_at(state.board, 2, 2)) == Player.BLACK
        assert state.black_reserve.flat == 20

        state = GameEngine.submit_command(state, Player.BLACK, place(1, 2)).state
        assert BoardManager.controller(BoardManager.cell_at(state.board, 1, 2)) == Player.WHITE
        assert state.white_reserve.flat == 20
        assert state.phase == GamePhase.NORMAL

        result = GameEngine.submit_command(
            state, Player.WHITE, place(2, 3, PieceKind.CAPSTONE)
        )
        assert result.state.white_reserve.capstone == 0
        assert result.outcome.kind == OutcomeKind.CONTINUE
        assert result.state.current_player == Player.BLACK

    def test_rejection_leaves_state_alone(self):
        state = play(new_game(), place(0, 0))
        snapshot = BoardManager.hash_game_state(state)
        with pytest.raises(MoveRejectedError) as exc_info:
            GameEngine.submit_command(state, Player.BLACK, place(0, 0))
        assert exc_info.value.reason == RejectionReason.CELL_OCCUPIED
        assert exc_info.value.context["reason"] == "cell_occupied"
        assert BoardManager.hash_game_state(state) == snapshot
        assert state.version == 2

    def test_wrong_player(self):
        with pytest.raises(MoveRejectedError) as exc_info:
            GameEngine.submit_command(new_game(), Player.BLACK, place(0, 0))
        assert exc_info.value.reason == RejectionReason.NOT_YOUR_TURN

    def test_first_move_wall_rejected(self):
        with pytest.raises(MoveRejectedError) as exc_info:
            GameEngine.submit_command(new_game(), Player.WHITE, place(0, 0, PieceKind.STANDING))
        assert exc_info.value.reason == RejectionReason.OPENING_MUST_BE_FLAT

    def test_stale_version(self):
        state = new_game()
        with pytest.raises(StaleStateError) as exc_info:
            GameEngine.submit_command(state, Player.WHITE, place(0, 0), expected_version=0)
        assert exc_info.value.context["actual_version"] == 1
        result = GameEngine.submit_command(
            state, Player.WHITE, place(0, 0), expected_version=state.version
        )
        assert result.state.version == state.version + 1

    def test_history_and_versions(self):
        state = new_game()
        assert state.version == 1
        state = play(state, place(0, 0), place(4, 4), place(2, 2, PieceKind.CAPSTONE))
        assert state.version == 4
        assert [r.notation for r in state.move_history] == ["a1", "e5", "Cc3"]
        assert [r.move_number for r in state.move_history] == [1, 2, 3]
        assert [r.player for r in state.move_history] == [Player.WHITE, Player.BLACK, Player.WHITE]
        assert state.last_move_at is not None

    def test_previous_states_are_not_modified(self):
        first = new_game()
        second = play(first, place(0, 0))
        third = play(second, place(1, 1))
        assert first.board.cells[0] == ()
        assert second.board.cells[6] == ()
        assert len(second.move_history) == 1
        assert len(third.move_history) == 2

    def test_capstone_flattens_wall(self):
        state = play(
            new_game(5),
            place(0, 0),
            place(4, 4),
            place(2, 2, PieceKind.CAPSTONE),
            place(2, 3, PieceKind.STANDING),
        )
        result = GameEngine.submit_command(
            state,
            Player.WHITE,
            MoveStackCommand.along(Position(row=2, col=2), Direction.RIGHT),
        )
        cell = BoardManager.cell_at(result.state.board, 2, 3)
        assert [(p.owner, p.kind) for p in cell] == [
            (Player.BLACK, PieceKind.FLAT),
            (Player.WHITE, PieceKind.CAPSTONE),
        ]
        assert result.outcome.kind == OutcomeKind.CONTINUE
        assert result.state.move_history[-1].notation == "c3>"

    def test_wall_cannot_be_passed(self):
        state = play(
            new_game(5),
            place(0, 0),
            place(4, 4),
            place(2, 2),
            place(2, 3, PieceKind.STANDING),
        )
        with pytest.raises(MoveRejectedError) as exc_info:
            GameEngine.submit_command(
                state,
                Player.WHITE,
                MoveStackCommand.along(Position(row=2, col=2), Direction.RIGHT),
            )
        assert exc_info.value.reason == RejectionReason.BLOCKED_BY_WALL

    def test_tak_warning_reported(self):
        # White holds b1 and b2; black holds a3 and c3.
        state = play(new_game(3), place(2, 0), place(0, 1), place(1, 1))
        result = GameEngine.submit_command(state, Player.BLACK, place(2, 2))
        assert result.outcome.kind == OutcomeKind.CONTINUE
        assert set(result.outcome.tak_threats) == {Player.WHITE, Player.BLACK}

    def test_tak_warning_can_be_disabled(self):
        state = play(new_game(3), place(2, 0), place(0, 1), place(1, 1))
        result = GameEngine.submit_command(
            state, Player.BLACK, place(2, 2),
            config=EngineConfig(tak_warnings_enabled=False),
        )
        assert result.outcome.tak_threats == ()


class TestFullGames:
    def test_road_win_on_full_board(self):
        state = GameEngine.replay(3, ROAD_GAME_3X3[:-1])
        assert state.game_status == GameStatus.ACTIVE
        result = GameEngine.submit_command(state, Player.WHITE, place(2, 2))

        assert result.outcome.kind == OutcomeKind.WIN
        assert result.outcome.winner == Player.WHITE
        assert result.outcome.reason == WinReason.ROAD
        final = result.state
        assert final.game_status == GameStatus.FINISHED
        assert final.current_player == Player.WHITE
        assert final.outcome.winner == Player.WHITE

        with pytest.raises(MoveRejectedError) as exc_info:
            GameEngine.submit_command(final, Player.WHITE, place(0, 0))
        assert exc_info.value.reason == RejectionReason.GAME_NOT_ACTIVE

    def test_flat_draw(self):
        final = GameEngine.replay(3, DRAW_GAME_3X3)
        assert final.game_status == GameStatus.FINISHED
        assert final.outcome.winner is None
        assert final.outcome.reason == WinReason.FLAT

        summary = GameEngine.describe_outcome(final)
        assert summary.is_draw
        assert summary.winner is None
        assert summary.komi_points == 0

    def test_komi_breaks_the_draw(self):
        final = GameEngine.replay(3, DRAW_GAME_3X3, komi=GameEngine.komi_from_points(0.5))
        assert final.outcome.winner == Player.WHITE
        assert final.outcome.reason == WinReason.FLAT
        summary = GameEngine.describe_outcome(final)
        assert not summary.is_draw
        assert summary.komi_points == 0.5

    def test_replay_records_notation(self):
        final = GameEngine.replay(3, ROAD_GAME_3X3)
        assert [r.notation for r in final.move_history] == ROAD_GAME_3X3
        assert final.outcome.reason == WinReason.ROAD

    def test_replay_rejects_illegal_sequence(self):
        with pytest.raises(MoveRejectedError):
            GameEngine.replay(3, ["a1", "a1"])

    def test_describe_active_game(self):
        summary = GameEngine.describe_outcome(new_game())
        assert summary.status == GameStatus.ACTIVE
        assert summary.winner is None
        assert summary.reason is None
        assert not summary.is_draw


class TestValidCommands:
    def test_first_ply_only_flats(self):
        commands = GameEngine.get_valid_commands(new_game(5))
        assert len(commands) == 25
        assert all(isinstance(c, PlaceCommand) for c in commands)
        assert {c.piece_kind for c in commands} == {PieceKind.FLAT}

    def test_second_ply_placements_only(self):
        state = play(new_game(5), place(0, 0))
        commands = GameEngine.get_valid_commands(state)
        assert all(isinstance(c, PlaceCommand) for c in commands)
        assert len(commands) == 24 * 3

    def test_includes_stack_moves(self):
        state = play(new_game(3), place(0, 0), place(2, 2))
        commands = GameEngine.get_valid_commands(state)
        moves = [c for c in commands if isinstance(c, MoveStackCommand)]
        # White controls c3 (row 2, col 2): it can step left or down.
        assert len(moves) == 2
        assert all(c.origin == Position(row=2, col=2) for c in moves)

    def test_finished_game_has_none(self):
        assert GameEngine.get_valid_commands(GameEngine.replay(3, ROAD_GAME_3X3)) == []

    def test_every_listed_command_is_accepted(self):
        state = play(new_game(4), place(0, 0), place(3, 3), place(1, 1), place(1, 2))
        for command in GameEngine.get_valid_commands(state):
            GameEngine.submit_command(state, state.current_player, command)


class TestRandomPlayouts:
    @pytest.mark.parametrize("seed", [1, 7, 42])
    def test_pieces_are_conserved(self, seed):
        rng = random.Random(seed)
        config = EngineConfig(strict_invariants=True, tak_warnings_enabled=False)
        state = GameEngine.admit_second_player(GameEngine.start_game(4, config=config))
        allotment = starting_reserve(4).total

        for _ in range(120):
            if state.game_status != GameStatus.ACTIVE:
                break
            command = rng.choice(GameEngine.get_valid_commands(state))
            state = GameEngine.submit_command(
                state, state.current_player, command, config=config
            ).state
            for player in Player:
                on_board = BoardManager.count_pieces(state.board, player)
                assert on_board + state.reserve_for(player).total == allotment

        assert state.ply == len(state.move_history)
