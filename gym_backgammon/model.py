'''
Board model shared by every backgammon variant.

Positions are denormalized (board-absolute) unless stated otherwise:

    Position: |12 13 14 15 16 17| |18 19 20 21 22 23|
              |                 | |                 |
              |                 | |                 |
    Position: |11 10 09 08 07 06| |05 04 03 02 01 00|

A piece is always in exactly one place: on one of the 24 points, on the
bar of its side (BAR) or borne off (OFF). Negative integers never describe
where a piece is; rules produce them while checking moves that leave the board.
'''

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, List, Optional, Tuple, Union

import numpy as np

from gym_backgammon.errors import InternalInconsistencyError

logger = logging.getLogger(__name__)

POINT_COUNT = 24
HOME_SIZE = 6
PIECES_PER_SIDE = 15

BAR = 'bar'
OFF = 'off'

Position = Union[int, str]


class PieceType(IntEnum):
    WHITE = 0
    BLACK = 1

    @property
    def opponent(self) -> 'PieceType':
        return PieceType.BLACK if self is PieceType.WHITE else PieceType.WHITE


class MoveActionType(str, Enum):
    MOVE = 'move'
    HIT = 'hit'
    PLACE = 'place'
    BEAR = 'bear'


@dataclass(frozen=True)
class Piece:
    """Immutable piece identity. Where the piece is lives in State."""
    type: PieceType
    id: int


@dataclass
class MoveAction:
    """
    One atomic change of the board.

    - MOVE:  piece goes from point `from_pos` to point `to_pos`
    - HIT:   opponent blot at `from_pos` goes to its bar
    - PLACE: piece leaves the bar (`from_pos == BAR`) for point `to_pos`
    - BEAR:  piece at `from_pos` is borne off
    """
    type: MoveActionType
    piece: Piece
    from_pos: Position
    to_pos: Optional[int] = None

    def to_dict(self):
        return {
            'type': self.type.value,
            'piece': {'id': self.piece.id, 'type': self.piece.type.name.lower()},
            'from': self.from_pos,
            'to': self.to_pos,
        }


class State:
    """
    Positional data of one game: 24 point stacks, a bar and a borne-off
    area per side. The last piece of a point list is the top piece.
    """

    def __init__(self):
        self.points: List[List[Piece]] = [[] for _ in range(POINT_COUNT)]
        self.bar: Dict[PieceType, List[Piece]] = {t: [] for t in PieceType}
        self.off: Dict[PieceType, List[Piece]] = {t: [] for t in PieceType}
        self._positions: Dict[Piece, Position] = {}
        self._next_id = 0

    def clear(self):
        """Remove all pieces."""
        self.points = [[] for _ in range(POINT_COUNT)]
        self.bar = {t: [] for t in PieceType}
        self.off = {t: [] for t in PieceType}
        self._positions = {}
        self._next_id = 0

    def add_piece(self, piece_type: PieceType, position: Position) -> Piece:
        """Create a new piece of `piece_type` at `position` and return it."""
        piece = Piece(PieceType(piece_type), self._next_id)
        self._next_id += 1
        self._push(piece, position)
        return piece

    def get_piece_pos(self, piece: Piece) -> Position:
        """Return the current position of a piece: 0..23, BAR or OFF."""
        try:
            return self._positions[piece]
        except KeyError:
            raise InternalInconsistencyError(
                "Piece is not on this board", context={'piece': piece.id}
            ) from None

    def get_top_piece(self, position: int) -> Optional[Piece]:
        stack = self.points[position]
        return stack[-1] if stack else None

    def count_at(self, position: int) -> int:
        return len(self.points[position])

    def get_movable_piece(self, position: Position, piece_type: PieceType) -> Optional[Piece]:
        """
        Return the piece a player of `piece_type` would pick up at `position`:
        the top of the point (if it belongs to them) or the last piece on their bar.
        """
        if position == BAR:
            bar = self.bar[piece_type]
            return bar[-1] if bar else None
        if not isinstance(position, (int, np.integer)) or not 0 <= position < POINT_COUNT:
            return None
        top = self.get_top_piece(int(position))
        if top is not None and top.type == piece_type:
            return top
        return None

    def pieces_on_points(self, piece_type: PieceType) -> List[Tuple[int, Piece]]:
        """All (position, piece) pairs of one side on the 24 points, top pieces included."""
        return [
            (position, piece)
            for position, stack in enumerate(self.points)
            for piece in stack
            if piece.type == piece_type
        ]

    def has_pieces_on_bar(self, piece_type: PieceType) -> bool:
        return len(self.bar[piece_type]) > 0

    def count_off(self, piece_type: PieceType) -> int:
        return len(self.off[piece_type])

    def count_pieces(self, piece_type: PieceType) -> int:
        """Pieces of one side across points, bar and borne-off area."""
        on_points = len(self.pieces_on_points(piece_type))
        return on_points + len(self.bar[piece_type]) + len(self.off[piece_type])

    def board_counts(self) -> np.ndarray:
        """
        Piece counts as a (2, 24) int32 array, one row per PieceType.
        Stacks shared by both sides (tapa) count towards both rows.
        """
        counts = np.zeros((2, POINT_COUNT), dtype=np.int32)
        for position, stack in enumerate(self.points):
            for piece in stack:
                counts[piece.type, position] += 1
        return counts

    def to_dict(self):
        """JSON friendly snapshot used by observers that replay actions."""
        return {
            'points': [[(p.id, p.type.name.lower()) for p in stack] for stack in self.points],
            'bar': {t.name.lower(): [p.id for p in self.bar[t]] for t in PieceType},
            'off': {t.name.lower(): [p.id for p in self.off[t]] for t in PieceType},
        }

    def apply_actions(self, actions: List[MoveAction]):
        """
        Apply an action list in order. Either every action is applied or,
        if one of them does not fit the current state, none is.
        """
        saved = (
            [list(stack) for stack in self.points],
            {t: list(self.bar[t]) for t in PieceType},
            {t: list(self.off[t]) for t in PieceType},
            dict(self._positions),
        )
        try:
            for action in actions:
                self._apply_action(action)
        except InternalInconsistencyError:
            self.points, self.bar, self.off, self._positions = saved
            logger.error(f"Rolled back action list {[a.to_dict() for a in actions]}")
            raise

    def _apply_action(self, action: MoveAction):
        piece = action.piece
        current = self.get_piece_pos(piece)
        if current != action.from_pos:
            raise InternalInconsistencyError(
                "Action source does not match piece position",
                context={'piece': piece.id, 'expected': action.from_pos, 'actual': current},
            )

        if action.type == MoveActionType.MOVE:
            if not isinstance(current, int):
                raise InternalInconsistencyError("MOVE requires a piece on a point",
                                                 context={'piece': piece.id})
            self._pull(piece, current)
            self._push(piece, self._checked_point(action.to_pos))
        elif action.type == MoveActionType.HIT:
            if not isinstance(current, int):
                raise InternalInconsistencyError("HIT requires a piece on a point",
                                                 context={'piece': piece.id})
            self._pull(piece, current)
            self._push(piece, BAR)
        elif action.type == MoveActionType.PLACE:
            if current != BAR:
                raise InternalInconsistencyError("PLACE requires a piece on the bar",
                                                 context={'piece': piece.id})
            self._pull(piece, BAR)
            self._push(piece, self._checked_point(action.to_pos))
        elif action.type == MoveActionType.BEAR:
            if not isinstance(current, int):
                raise InternalInconsistencyError("BEAR requires a piece on a point",
                                                 context={'piece': piece.id})
            self._pull(piece, current)
            self._push(piece, OFF)
        else:
            raise InternalInconsistencyError(f"Unknown action type {action.type}")

    def _checked_point(self, position) -> int:
        if not isinstance(position, int) or not 0 <= position < POINT_COUNT:
            raise InternalInconsistencyError("Destination is not a board point",
                                             context={'to': position})
        return position

    def _container(self, piece: Piece, position: Position) -> List[Piece]:
        if position == BAR:
            return self.bar[piece.type]
        if position == OFF:
            return self.off[piece.type]
        return self.points[position]

    def _pull(self, piece: Piece, position: Position):
        container = self._container(piece, position)
        try:
            container.remove(piece)
        except ValueError:
            raise InternalInconsistencyError(
                "Piece missing from its position", context={'piece': piece.id, 'position': position}
            ) from None
        del self._positions[piece]

    def _push(self, piece: Piece, position: Position):
        if isinstance(position, int) and not 0 <= position < POINT_COUNT:
            raise InternalInconsistencyError("Position outside board", context={'position': position})
        self._container(piece, position).append(piece)
        self._positions[piece] = position


class TurnPhase(str, Enum):
    AWAITING_ROLL = 'awaiting_roll'
    MOVES_PENDING = 'moves_pending'
    FINISHED = 'finished'


class TurnEnd(str, Enum):
    MOVES_EXHAUSTED = 'moves_exhausted'
    FORFEITED = 'forfeited'
    TRANSFERRED = 'transferred'


@dataclass
class Game:
    """
    Per-game turn data. Rules never keep any of this themselves; it is
    passed explicitly to the hooks that need it.
    """
    rule_name: str
    state: State = field(default_factory=State)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    turn_player: PieceType = PieceType.WHITE
    phase: TurnPhase = TurnPhase.AWAITING_ROLL
    dice: List[int] = field(default_factory=list)
    # Step values still to be played this turn
    moves: List[int] = field(default_factory=list)
    turn_started: bool = False
    transferred: bool = False
    last_turn_end: Optional[TurnEnd] = None
    turn_number: int = 1
    rolls: Dict[PieceType, int] = field(default_factory=lambda: {t: 0 for t in PieceType})
    winner: Optional[PieceType] = None
    history: List[MoveAction] = field(default_factory=list)

    @property
    def is_over(self) -> bool:
        return self.phase == TurnPhase.FINISHED
