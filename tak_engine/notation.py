"""Move notation.

Squares are named by file letter and rank number: ``a1`` is row 0,
col 0. Placements are ``[C|S]<square>``; stack moves are
``[count]<square><direction>[drops]`` where the count is omitted for a
single piece and the drops are omitted when the whole carry is dropped
on one cell.

    >>> format_command(MoveStackCommand.along(Position(row=0, col=0), Direction.UP, 3, (1, 2)))
    '3a1+12'
"""

from __future__ import annotations

import re

from .errors import NotationError
from .models import (
    Command,
    Direction,
    MoveStackCommand,
    Offset,
    PieceKind,
    PlaceCommand,
    Position,
)

FILES = "abcdefgh"

_KIND_PREFIX = {PieceKind.FLAT: "", PieceKind.STANDING: "S", PieceKind.CAPSTONE: "C"}
_PREFIX_KIND = {"": PieceKind.FLAT, "F": PieceKind.FLAT, "S": PieceKind.STANDING, "C": PieceKind.CAPSTONE}

_SQUARE_RE = re.compile(r"^([a-h])([1-8])$")
_PLACE_RE = re.compile(r"^([FSC]?)([a-h][1-8])$")
_MOVE_RE = re.compile(r"^([1-8]?)([a-h][1-8])([+\-<>])([1-8]*)$")


def square_name(position: Position) -> str:
    if not (0 <= position.col < len(FILES)) or position.row < 0:
        raise NotationError(
            "Position cannot be named", context={"position": position.to_key()}
        )
    return f"{FILES[position.col]}{position.row + 1}"


def parse_square(text: str) -> Position:
    match = _SQUARE_RE.match(text.strip())
    if match is None:
        raise NotationError("Malformed square", notation=text)
    return Position(row=int(match.group(2)) - 1, col=FILES.index(match.group(1)))


def _direction_symbol(offset: Offset) -> str:
    # Sign-based so a non-unit vector still renders; the validator rejects it.
    if offset.dr > 0:
        return Direction.UP.value
    if offset.dr < 0:
        return Direction.DOWN.value
    if offset.dc > 0:
        return Direction.RIGHT.value
    return Direction.LEFT.value


def format_command(command: Command) -> str:
    """Render a command in Tak notation."""
    if isinstance(command, PlaceCommand):
        return _KIND_PREFIX[command.piece_kind] + square_name(command.position)

    count = str(command.count) if command.count > 1 else ""
    drops = command.drops
    trailing = ""
    if len(drops) > 1 or (drops and drops[0] != command.count):
        trailing = "".join(str(d) for d in drops)
    return f"{count}{square_name(command.origin)}{_direction_symbol(command.direction)}{trailing}"


def parse_command(text: str) -> Command:
    """Parse Tak notation into a command.

    Raises:
        NotationError: if ``text`` is not a placement or stack move.
    """
    raw = text.strip()
    match = _MOVE_RE.match(raw)
    if match is not None:
        count_text, square, symbol, drops_text = match.groups()
        count = int(count_text) if count_text else 1
        drops = tuple(int(ch) for ch in drops_text) if drops_text else (count,)
        if sum(drops) != count:
            raise NotationError("Drops must sum to the carried count", notation=text)
        return MoveStackCommand.along(parse_square(square), Direction(symbol), count, drops)

    match = _PLACE_RE.match(raw)
    if match is not None:
        prefix, square = match.groups()
        return PlaceCommand(position=parse_square(square), piece_kind=_PREFIX_KIND[prefix])

    raise NotationError("Unrecognised move notation", notation=text)
