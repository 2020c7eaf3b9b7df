"""
Shared pytest fixtures for tak_engine tests.

Boards are described as ``{(row, col): "WF BS WC"}`` where each token is
an owner letter (W/B) followed by a kind letter (F flat, S wall,
C capstone), listed bottom to top.
"""

from typing import Callable, Dict, Optional, Tuple

import pytest

from tak_engine.board_manager import BoardManager
from tak_engine.config import EngineConfig, reset_engine_config
from tak_engine.models import (
    BoardState,
    GamePhase,
    GameState,
    GameStatus,
    Piece,
    PieceKind,
    PieceReserve,
    Player,
)
from tak_engine.rules.core import phase_for_ply, starting_reserve

Stacks = Dict[Tuple[int, int], str]

_OWNERS = {"W": Player.WHITE, "B": Player.BLACK}
_KINDS = {"F": PieceKind.FLAT, "S": PieceKind.STANDING, "C": PieceKind.CAPSTONE}


def parse_stack(text: str) -> Tuple[Piece, ...]:
    return tuple(
        Piece(owner=_OWNERS[token[0]], kind=_KINDS[token[1]]) for token in text.split()
    )


def remaining_reserve(board: BoardState, player: Player) -> PieceReserve:
    """Starting allotment minus what ``player`` owns on ``board``."""
    full = starting_reserve(board.size)
    flats = caps = 0
    for cell in board.cells:
        for piece in cell:
            if piece.owner is player:
                if piece.kind == PieceKind.CAPSTONE:
                    caps += 1
                else:
                    flats += 1
    return PieceReserve(flat=full.flat - flats, capstone=full.capstone - caps)


# =============================================================================
# AMBIENT ISOLATION
# =============================================================================


@pytest.fixture(autouse=True)
def _clean_engine_env(monkeypatch):
    """Keep TAK_* variables from the host out of the cached engine config."""
    for name in (
        "TAK_DEFAULT_KOMI",
        "TAK_WARNINGS_ENABLED",
        "TAK_STRICT_INVARIANTS",
        "TAK_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_engine_config()
    yield
    reset_engine_config()


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig()


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def board_factory() -> Callable[..., BoardState]:
    """Factory for boards built from a stacks mapping."""

    def _create_board(size: int = 5, stacks: Optional[Stacks] = None) -> BoardState:
        board = BoardManager.empty_board(size)
        updates = {
            BoardManager.index(board, r, c): parse_stack(text)
            for (r, c), text in (stacks or {}).items()
        }
        return BoardManager.with_cells(board, updates)

    return _create_board


@pytest.fixture
def state_factory(board_factory) -> Callable[..., GameState]:
    """Factory for active game states.

    Reserves default to the allotment minus the pieces already on the
    board, so generated states satisfy piece conservation.
    """

    def _create_state(
        size: int = 5,
        stacks: Optional[Stacks] = None,
        current_player: Player = Player.WHITE,
        ply: int = 2,
        status: GameStatus = GameStatus.ACTIVE,
        komi: int = 0,
        white_reserve: Optional[PieceReserve] = None,
        black_reserve: Optional[PieceReserve] = None,
        phase: Optional[GamePhase] = None,
    ) -> GameState:
        board = board_factory(size, stacks)
        return GameState(
            board_size=size,
            board=board,
            white_reserve=white_reserve or remaining_reserve(board, Player.WHITE),
            black_reserve=black_reserve or remaining_reserve(board, Player.BLACK),
            current_player=current_player,
            ply=ply,
            phase=phase or phase_for_ply(ply),
            game_status=status,
            komi=komi,
        )

    return _create_state
