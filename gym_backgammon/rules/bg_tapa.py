from typing import List

from gym_backgammon.model import MoveAction, MoveActionType, Piece, PieceType, Position, State
from gym_backgammon.rules.base import Occupancy, occupancy
from gym_backgammon.rules.bg_casual import RuleBgCasual
from gym_backgammon.rules.registry import register


class RuleBgTapa(RuleBgCasual):
    """
    Tapa, played in Bulgaria.

    Board and directions are those of standard backgammon, but every piece
    starts on the player's farthest point. Landing on an opponent blot pins it
    (tapa): the blot stays under the arriving piece and cannot move until it
    is on top of its stack again. Nothing is ever sent to the bar.
    """

    name = 'RuleBgTapa'
    title = 'Tapa'
    description = 'Bulgarian variant where blots are pinned instead of hit.'
    country = 'Bulgaria'
    country_code = 'bg'
    allowed_actions = [
        MoveActionType.MOVE,
        MoveActionType.BEAR,
    ]

    def reset_state(self, state: State):
        """
        Position: |12 13 14 15 16 17| |18 19 20 21 22 23|
                  |                 | |              15b|
                  |                 | |                 |
                  |                 | |              15w|
        Position: |11 10 09 08 07 06| |05 04 03 02 01 00|
        """
        state.clear()

        self.place(state, 15, PieceType.WHITE, 0)
        self.place(state, 15, PieceType.BLACK, 23)

    def can_move_piece(self, state: State, piece: Piece, position: Position) -> bool:
        # Pinned pieces are not on top of their stack
        return isinstance(position, int) and state.get_top_piece(position) == piece

    def enter_actions(self, state: State, piece: Piece, steps: int) -> List[MoveAction]:
        return []

    def landing_actions(self, state: State, piece: Piece, position: int,
                        destination: int) -> List[MoveAction]:
        if occupancy(state, destination, piece.type) == Occupancy.BLOCKED:
            return []
        # Landing on a blot pins it under the moved piece
        return [MoveAction(MoveActionType.MOVE, piece, position, destination)]


rule = register(RuleBgTapa())
