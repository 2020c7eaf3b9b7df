"""
Pydantic Models for Tak Game State
Field aliases mirror the external game record schema (camelCase).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field


class Player(str, Enum):
    """Player colour. White moves first."""
    WHITE = "white"
    BLACK = "black"

    def opponent(self) -> "Player":
        return Player.BLACK if self is Player.WHITE else Player.WHITE


class PieceKind(str, Enum):
    """Piece kind enumeration"""
    FLAT = "flat"
    STANDING = "wall"
    CAPSTONE = "capstone"


class GamePhase(str, Enum):
    """Game phase enumeration"""
    OPENING = "opening"
    NORMAL = "normal"


class GameStatus(str, Enum):
    """Game status enumeration"""
    WAITING = "waiting"
    ACTIVE = "active"
    FINISHED = "finished"


class WinReason(str, Enum):
    """How a finished game was decided"""
    ROAD = "road"
    FLAT = "flat"
    RESIGNATION = "resign"


class OutcomeKind(str, Enum):
    """Result of evaluating a board after a move"""
    CONTINUE = "continue"
    WIN = "win"
    DRAW = "draw"


class RejectionReason(str, Enum):
    """Typed reasons the move validator rejects a command."""
    GAME_NOT_ACTIVE = "game_not_active"
    NOT_YOUR_TURN = "not_your_turn"
    OUT_OF_BOUNDS = "out_of_bounds"
    CELL_OCCUPIED = "cell_occupied"
    NO_PIECES_REMAINING = "no_pieces_remaining"
    OPENING_MUST_BE_FLAT = "opening_must_be_flat"
    OPENING_NO_MOVEMENT = "opening_no_movement"
    NO_PIECES_TO_MOVE = "no_pieces_to_move"
    NOT_CONTROLLER = "not_controller"
    INVALID_CARRY_COUNT = "invalid_carry_count"
    NOT_STRAIGHT_LINE = "not_straight_line"
    BAD_DROP_PATTERN = "bad_drop_pattern"
    BLOCKED_BY_CAPSTONE = "blocked_by_capstone"
    BLOCKED_BY_WALL = "blocked_by_wall"


class Position(BaseModel):
    """Board position; row 0 is rank 1, col 0 is file a."""
    row: int
    col: int

    class Config:
        frozen = True

    def to_key(self) -> str:
        """Convert position to string key"""
        return f"{self.row},{self.col}"


class Offset(BaseModel):
    """Direction vector for stack movement."""
    dr: int
    dc: int

    class Config:
        frozen = True


class Direction(str, Enum):
    """Orthogonal directions, valued by their notation symbol."""
    UP = "+"
    DOWN = "-"
    LEFT = "<"
    RIGHT = ">"

    @property
    def offset(self) -> Offset:
        return _DIRECTION_OFFSETS[self]


_DIRECTION_OFFSETS: Dict[Direction, Offset] = {
    Direction.UP: Offset(dr=1, dc=0),
    Direction.DOWN: Offset(dr=-1, dc=0),
    Direction.LEFT: Offset(dr=0, dc=-1),
    Direction.RIGHT: Offset(dr=0, dc=1),
}


class Piece(BaseModel):
    """A single stone. ``owner`` is the colour controlling it."""
    owner: Player
    kind: PieceKind

    class Config:
        frozen = True


# Bottom to top; an empty tuple is an unoccupied cell.
Cell = Tuple[Piece, ...]


class PieceReserve(BaseModel):
    """Pieces a player still has in hand. Walls draw on ``flat``."""
    flat: int
    capstone: int

    class Config:
        frozen = True

    @property
    def total(self) -> int:
        return self.flat + self.capstone


class BoardState(BaseModel):
    """Square grid of cells stored row-major (``row * size + col``)."""
    size: int
    cells: Tuple[Cell, ...]

    class Config:
        frozen = True


class PlaceCommand(BaseModel):
    """Place a new piece from reserve onto an empty cell."""
    type: Literal["place"] = "place"
    position: Position
    piece_kind: PieceKind = Field(PieceKind.FLAT, alias="pieceKind")

    class Config:
        populate_by_name = True
        frozen = True


class MoveStackCommand(BaseModel):
    """Lift ``count`` pieces from ``origin`` and drop them along a line.

    ``drops[i]`` pieces are left on the i-th cell past the origin. When
    ``destination`` is given it must agree with ``direction`` and the
    length of ``drops``.
    """
    type: Literal["move"] = "move"
    origin: Position = Field(alias="from")
    direction: Offset
    count: int = Field(alias="stackSize")
    drops: Tuple[int, ...] = Field(alias="dropPattern")
    destination: Optional[Position] = Field(None, alias="to")

    class Config:
        populate_by_name = True
        frozen = True

    @classmethod
    def along(
        cls,
        origin: Position,
        direction: Direction,
        count: int = 1,
        drops: Optional[Tuple[int, ...]] = None,
    ) -> "MoveStackCommand":
        """Build a move from a direction; drops default to one full drop."""
        return cls(
            origin=origin,
            direction=direction.offset,
            count=count,
            drops=tuple(drops) if drops is not None else (count,),
        )

    @classmethod
    def towards(
        cls,
        origin: Position,
        destination: Position,
        count: int,
        drops: Tuple[int, ...],
    ) -> "MoveStackCommand":
        """Build a move from origin/destination squares.

        The direction is the sign of each coordinate delta, so a diagonal
        or zero-length request yields a vector the validator rejects.
        """
        dr = destination.row - origin.row
        dc = destination.col - origin.col
        return cls(
            origin=origin,
            direction=Offset(dr=_sign(dr), dc=_sign(dc)),
            count=count,
            drops=tuple(drops),
            destination=destination,
        )


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


Command = Union[PlaceCommand, MoveStackCommand]


class MoveRecord(BaseModel):
    """History entry for an accepted command."""
    move_number: int = Field(alias="moveNumber")
    player: Player
    command: Union[PlaceCommand, MoveStackCommand]
    notation: str

    class Config:
        populate_by_name = True
        frozen = True


class GameOutcome(BaseModel):
    """Terminal result. ``winner`` is None for a draw."""
    winner: Optional[Player] = None
    reason: WinReason

    class Config:
        frozen = True


class Outcome(BaseModel):
    """Evaluation of a board right after a move."""
    kind: OutcomeKind
    winner: Optional[Player] = None
    reason: Optional[WinReason] = None
    tak_threats: Tuple[Player, ...] = Field(default=(), alias="takThreats")
    flat_counts: Optional[Dict[Player, int]] = Field(None, alias="flatCounts")

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def is_terminal(self) -> bool:
        return self.kind != OutcomeKind.CONTINUE


class GameState(BaseModel):
    """Complete game state. Every transition yields a new instance."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    board_size: int = Field(alias="boardSize")
    board: BoardState
    white_reserve: PieceReserve = Field(alias="whitePieces")
    black_reserve: PieceReserve = Field(alias="blackPieces")
    current_player: Player = Field(Player.WHITE, alias="currentPlayer")
    ply: int = Field(0, alias="moveCount")
    phase: GamePhase = Field(GamePhase.OPENING, alias="currentPhase")
    game_status: GameStatus = Field(GameStatus.WAITING, alias="gameStatus")
    outcome: Optional[GameOutcome] = None
    # Half-point ticks added to White's flat tally.
    komi: int = 0
    move_history: Tuple[MoveRecord, ...] = Field(default=(), alias="moveHistory")
    version: int = 0
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="createdAt"
    )
    last_move_at: Optional[datetime] = Field(None, alias="lastMoveAt")

    class Config:
        populate_by_name = True
        frozen = True

    def reserve_for(self, player: Player) -> PieceReserve:
        return self.white_reserve if player is Player.WHITE else self.black_reserve

    def reserve_update(self, player: Player, reserve: PieceReserve) -> dict:
        """``model_copy`` update fragment replacing one player's reserve."""
        if player is Player.WHITE:
            return {"white_reserve": reserve}
        return {"black_reserve": reserve}


class CommandResult(BaseModel):
    """Successful ``submit_command`` result."""
    state: GameState
    outcome: Outcome

    class Config:
        frozen = True


class ValidationResult(BaseModel):
    """Validator verdict; ``reason`` is set only when ``valid`` is False."""
    valid: bool
    reason: Optional[RejectionReason] = None
    message: Optional[str] = None

    class Config:
        frozen = True

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def reject(cls, reason: RejectionReason, message: str) -> "ValidationResult":
        return cls(valid=False, reason=reason, message=message)


class OutcomeSummary(BaseModel):
    """Read-only projection of a game's result for display layers."""
    status: GameStatus
    winner: Optional[Player] = None
    reason: Optional[WinReason] = None
    is_draw: bool = Field(False, alias="isDraw")
    komi_points: float = Field(0.0, alias="komiPoints")

    class Config:
        populate_by_name = True
        frozen = True
