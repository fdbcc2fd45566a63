"""
Abstract rule and the helper algorithms shared by the variants.

A Rule holds variant metadata only. Everything that changes during a game
lives in State (positions) or Game (dice, pending moves, turn flags) and is
passed in on every call, so one Rule instance can serve any number of games.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from gym_backgammon.model import (
    BAR,
    HOME_SIZE,
    OFF,
    PIECES_PER_SIDE,
    POINT_COUNT,
    Game,
    MoveAction,
    MoveActionType,
    Piece,
    PieceType,
    Position,
    State,
)

logger = logging.getLogger(__name__)


class Occupancy(Enum):
    EMPTY = 'empty'
    OWN = 'own'
    BLOT = 'blot'        # exactly one piece, owned by the opponent
    BLOCKED = 'blocked'  # opponent owns the top and there is more than one piece


def occupancy(state: State, position: int, piece_type: PieceType) -> Occupancy:
    """Classify a destination point from the point of view of `piece_type`."""
    top = state.get_top_piece(position)
    if top is None:
        return Occupancy.EMPTY
    if top.type == piece_type:
        return Occupancy.OWN
    if state.count_at(position) == 1:
        return Occupancy.BLOT
    return Occupancy.BLOCKED


def mirror_pos(position: int) -> int:
    """Mirror a position across the board (0 <-> 23). Negative values are kept."""
    if position < 0:
        return position
    return POINT_COUNT - 1 - position


def rotate_pos(position: int, offset: int = POINT_COUNT // 2) -> int:
    """Rotate a position by `offset` points. Negative values are kept."""
    if position < 0:
        return position
    if position >= offset:
        return position - offset
    return position + POINT_COUNT - offset


@dataclass
class MoveResult:
    """
    Outcome of a legality check. An empty action list means the move is not
    allowed; `fault` is set only when the check itself failed.
    """
    actions: List[MoveAction] = field(default_factory=list)
    fault: Optional[str] = None

    @property
    def legal(self) -> bool:
        return len(self.actions) > 0


class Rule:
    """
    Base class of all variants.

    Descendants set the metadata attributes and implement `reset_state`,
    `inc_pos`, `norm_pos` and `denorm_pos`. The shared move algorithm in
    `compute_move_actions` is customised through `can_move_piece`,
    `landing_actions` and `enter_actions`.
    """

    # Rule name, matching the class name (eg. 'RuleBgCasual')
    name = 'Rule'
    # Short title describing rule specifics
    title = ''
    description = ''
    # Countries where the variant is played, separated by '|'
    country = ''
    # Two character ISO codes, same order as `country`
    country_code = ''
    allowed_actions: List[MoveActionType] = []
    piece_count = PIECES_PER_SIDE
    # Doubling cube policy. None of the shipped variants use the cube.
    allows_doubling = False

    def metadata(self) -> Dict:
        return {
            'name': self.name,
            'title': self.title,
            'description': self.description,
            'country': self.country,
            'countryCode': self.country_code,
            'allowedActions': [a.value for a in self.allowed_actions],
            'allowsDoubling': self.allows_doubling,
        }

    def reset_state(self, state: State):
        raise NotImplementedError

    def place(self, state: State, number: int, piece_type: PieceType, position: int):
        """Place `number` new pieces of one side on a denormalized position."""
        for _ in range(number):
            state.add_piece(piece_type, position)

    def inc_pos(self, position: int, piece_type: PieceType, steps: int) -> int:
        """Return the denormalized position `steps` points closer to home."""
        raise NotImplementedError

    def norm_pos(self, position: int, piece_type: PieceType) -> int:
        """Denormalized -> player-relative position (0 = first home point)."""
        raise NotImplementedError

    def denorm_pos(self, position: int, piece_type: PieceType) -> int:
        """Inverse of `norm_pos`."""
        raise NotImplementedError

    def all_pieces_are_home(self, state: State, piece_type: PieceType) -> bool:
        if state.has_pieces_on_bar(piece_type):
            return False
        for position, _ in state.pieces_on_points(piece_type):
            if self.norm_pos(position, piece_type) >= HOME_SIZE:
                return False
        return True

    def count_at_higher_pos(self, state: State, position: int, piece_type: PieceType) -> int:
        """Count pieces of one side at normalized positions strictly above `position`."""
        return sum(
            1 for pos, _ in state.pieces_on_points(piece_type)
            if self.norm_pos(pos, piece_type) > position
        )

    def expand_roll(self, game: Game, dice: List[int]) -> List[int]:
        """Turn a roll into the list of step values to play. Doubles play four times."""
        if len(dice) == 2 and dice[0] == dice[1]:
            return [dice[0]] * 4
        return list(dice)

    def mark_as_played(self, game: Game, move: int):
        """Consume one pending step value. The turn counts as started from now on."""
        game.turn_started = True
        game.moves.remove(move)

    def get_winner(self, state: State) -> Optional[PieceType]:
        for piece_type in PieceType:
            if state.count_off(piece_type) >= self.piece_count:
                return piece_type
        return None

    def evaluate_move(self, state: State, piece: Piece, steps: int) -> MoveResult:
        """
        Check whether `piece` may move `steps` points and build the actions.

        Errors raised while checking (eg. a piece that is not on this board)
        are logged and reported as a fault with no actions; they never reach
        the caller.
        """
        try:
            actions = self.compute_move_actions(state, piece, steps)
            for action in actions:
                if action.type not in self.allowed_actions:
                    raise ValueError(f"{self.name} does not allow {action.type.value} actions")
        except Exception as e:
            logger.warning(f"{self.name}: move check failed for piece {piece} steps {steps}: {e}",
                           exc_info=True)
            return MoveResult(actions=[], fault=str(e))
        return MoveResult(actions=actions)

    def get_move_actions(self, state: State, piece: Piece, steps: int) -> List[MoveAction]:
        """
        Return the ordered actions that moving `piece` by `steps` produces, or an
        empty list if the move is not allowed. Never raises and never changes state.
        """
        return self.evaluate_move(state, piece, steps).actions

    def compute_move_actions(self, state: State, piece: Piece, steps: int) -> List[MoveAction]:
        if not 1 <= steps <= 6:
            return []

        position = state.get_piece_pos(piece)
        if position == OFF:
            return []
        if not self.can_move_piece(state, piece, position):
            return []
        if position == BAR:
            return self.enter_actions(state, piece, steps)

        destination = self.inc_pos(position, piece.type, steps)
        norm_destination = self.norm_pos(destination, piece.type)

        if norm_destination >= 0:
            return self.landing_actions(state, piece, position, destination)

        # Leaving the board is only possible once every piece is home
        if not self.all_pieces_are_home(state, piece.type):
            return []
        if norm_destination == -1:
            return [MoveAction(MoveActionType.BEAR, piece, position)]
        # More steps than needed: only the furthest piece may be borne off
        norm_source = self.norm_pos(position, piece.type)
        if self.count_at_higher_pos(state, norm_source, piece.type) == 0:
            return [MoveAction(MoveActionType.BEAR, piece, position)]
        return []

    def can_move_piece(self, state: State, piece: Piece, position: Position) -> bool:
        return True

    def enter_actions(self, state: State, piece: Piece, steps: int) -> List[MoveAction]:
        """Actions for a piece entering from the bar. Variants without hitting have no bar."""
        return []

    def landing_actions(self, state: State, piece: Piece, position: int,
                        destination: int) -> List[MoveAction]:
        """Default landing: empty or own points only, any opponent piece blocks."""
        if occupancy(state, destination, piece.type) in (Occupancy.EMPTY, Occupancy.OWN):
            return [MoveAction(MoveActionType.MOVE, piece, position, destination)]
        return []
