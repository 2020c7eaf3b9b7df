"""Road and flat win detection.

Road search is a single iterative flood fill parameterised by axis: it
seeds from every qualifying cell on one edge and succeeds when the fill
reaches the opposite edge. Only flat and capstone tops are road cells;
walls never carry a road. Adjacency is orthogonal only.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..board_manager import BoardManager
from ..models import (
    BoardState,
    Outcome,
    OutcomeKind,
    PieceKind,
    PieceReserve,
    Player,
    WinReason,
)
from .geometry import BoardGeometry

logger = logging.getLogger(__name__)

ROAD_KINDS = frozenset({PieceKind.FLAT, PieceKind.CAPSTONE})


class RoadAxis(str, Enum):
    """VERTICAL joins row 0 to the last row; HORIZONTAL joins the columns."""
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


def _road_mask(board: BoardState, player: Player) -> List[bool]:
    mask = []
    for cell in board.cells:
        top = cell[-1] if cell else None
        mask.append(top is not None and top.owner is player and top.kind in ROAD_KINDS)
    return mask


def _connects(mask: List[bool], size: int, axis: RoadAxis) -> bool:
    if axis == RoadAxis.VERTICAL:
        seeds = [(0, c) for c in range(size)]
    else:
        seeds = [(r, 0) for r in range(size)]

    visited = [False] * (size * size)
    stack: List[Tuple[int, int]] = []
    for r, c in seeds:
        idx = r * size + c
        if mask[idx]:
            visited[idx] = True
            stack.append((r, c))

    far = size - 1
    while stack:
        r, c = stack.pop()
        if (r if axis == RoadAxis.VERTICAL else c) == far:
            return True
        for nr, nc in BoardGeometry.neighbors(r, c, size):
            nidx = nr * size + nc
            if mask[nidx] and not visited[nidx]:
                visited[nidx] = True
                stack.append((nr, nc))
    return False


class VictoryDetector:
    """Evaluates a board for road wins, flat wins and Tak threats."""

    @staticmethod
    def has_road(
        board: BoardState, player: Player, axis: Optional[RoadAxis] = None
    ) -> bool:
        """True if ``player`` has a road along ``axis`` (either axis if None)."""
        mask = _road_mask(board, player)
        axes = (axis,) if axis is not None else (RoadAxis.VERTICAL, RoadAxis.HORIZONTAL)
        return any(_connects(mask, board.size, a) for a in axes)

    @staticmethod
    def road_players(board: BoardState) -> List[Player]:
        return [p for p in Player if VictoryDetector.has_road(board, p)]

    @staticmethod
    def flat_counts(board: BoardState) -> Dict[Player, int]:
        """Flat-topped stacks per player; walls and capstones don't count."""
        counts = {Player.WHITE: 0, Player.BLACK: 0}
        for cell in board.cells:
            if cell and cell[-1].kind == PieceKind.FLAT:
                counts[cell[-1].owner] += 1
        return counts

    @staticmethod
    def tak_threats(board: BoardState) -> Tuple[Player, ...]:
        """Players one flat placement away from a road.

        Each empty cell is tried with a hypothetical flat for each player;
        the simulated board is discarded.
        """
        empties = [idx for idx, cell in enumerate(board.cells) if not cell]
        threats = []
        for player in Player:
            if VictoryDetector.has_road(board, player):
                continue
            mask = _road_mask(board, player)
            for idx in empties:
                mask[idx] = True
                found = any(
                    _connects(mask, board.size, a)
                    for a in (RoadAxis.VERTICAL, RoadAxis.HORIZONTAL)
                )
                mask[idx] = False
                if found:
                    threats.append(player)
                    break
        return tuple(threats)

    @staticmethod
    def evaluate(
        board: BoardState,
        white_reserve: PieceReserve,
        black_reserve: PieceReserve,
        mover: Player,
        komi: int = 0,
        detect_tak: bool = True,
    ) -> Outcome:
        """
        Decide whether the move just made by ``mover`` ended the game.

        Road wins take precedence over flat wins. When both players have a
        road the mover wins. A flat count is held only when the board is
        full or some player's reserve is exhausted; ``komi`` is in
        half-point ticks added to White's tally.
        """
        roads = VictoryDetector.road_players(board)
        if roads:
            winner = mover if len(roads) == 2 else roads[0]
            logger.debug("road win for %s (roads=%s)", winner.value, [p.value for p in roads])
            return Outcome(kind=OutcomeKind.WIN, winner=winner, reason=WinReason.ROAD)

        if (
            BoardManager.is_full(board)
            or white_reserve.total == 0
            or black_reserve.total == 0
        ):
            counts = VictoryDetector.flat_counts(board)
            white_score = counts[Player.WHITE] * 2 + komi
            black_score = counts[Player.BLACK] * 2
            if white_score == black_score:
                return Outcome(
                    kind=OutcomeKind.DRAW, reason=WinReason.FLAT, flat_counts=counts
                )
            winner = Player.WHITE if white_score > black_score else Player.BLACK
            return Outcome(
                kind=OutcomeKind.WIN,
                winner=winner,
                reason=WinReason.FLAT,
                flat_counts=counts,
            )

        threats = VictoryDetector.tak_threats(board) if detect_tak else ()
        return Outcome(kind=OutcomeKind.CONTINUE, tak_threats=threats)
