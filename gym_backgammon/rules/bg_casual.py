from typing import List

from gym_backgammon.model import (
    BAR,
    POINT_COUNT,
    MoveAction,
    MoveActionType,
    Piece,
    PieceType,
    Position,
    State,
)
from gym_backgammon.rules.base import Occupancy, Rule, mirror_pos, occupancy
from gym_backgammon.rules.registry import register


class RuleBgCasual(Rule):
    """
    Standard backgammon without the doubling cube.

    Players move in opposite directions: White towards position 23, Black
    towards position 0. A single opponent piece (blot) can be hit and sent
    to the bar; pieces on the bar must enter before anything else moves.
    """

    name = 'RuleBgCasual'
    title = 'Backgammon (casual)'
    description = 'Simplified rules of standard backgammon, played without the doubling cube.'
    country = 'World'
    country_code = 'xw'
    allowed_actions = [
        MoveActionType.MOVE,
        MoveActionType.HIT,
        MoveActionType.PLACE,
        MoveActionType.BEAR,
    ]

    def reset_state(self, state: State):
        """
        Position: |12 13 14 15 16 17| |18 19 20 21 22 23|
                  |5b          3w   | |5w             2b|
                  |                 | |                 |
                  |5w          3b   | |5b             2w|
        Position: |11 10 09 08 07 06| |05 04 03 02 01 00|
        """
        state.clear()

        self.place(state, 2, PieceType.WHITE, 0)
        self.place(state, 5, PieceType.WHITE, 11)
        self.place(state, 3, PieceType.WHITE, 16)
        self.place(state, 5, PieceType.WHITE, 18)

        self.place(state, 2, PieceType.BLACK, 23)
        self.place(state, 5, PieceType.BLACK, 12)
        self.place(state, 3, PieceType.BLACK, 7)
        self.place(state, 5, PieceType.BLACK, 5)

    def inc_pos(self, position: int, piece_type: PieceType, steps: int) -> int:
        if piece_type == PieceType.WHITE:
            new_position = position + steps
            if new_position >= POINT_COUNT:
                # Past the home edge: -1 is exactly off the board
                new_position = POINT_COUNT - 1 - new_position
            return new_position
        return position - steps

    def norm_pos(self, position: int, piece_type: PieceType) -> int:
        if piece_type == PieceType.WHITE:
            return mirror_pos(position)
        return position

    def denorm_pos(self, position: int, piece_type: PieceType) -> int:
        if piece_type == PieceType.WHITE:
            return mirror_pos(position)
        return position

    def can_move_piece(self, state: State, piece: Piece, position: Position) -> bool:
        # Pieces on the bar must be placed first
        return position == BAR or not state.has_pieces_on_bar(piece.type)

    def enter_actions(self, state: State, piece: Piece, steps: int) -> List[MoveAction]:
        # Entering lands in the opponent's home, counted from its far edge
        destination = self.denorm_pos(POINT_COUNT - steps, piece.type)
        return self._land(state, piece, MoveActionType.PLACE, BAR, destination)

    def landing_actions(self, state: State, piece: Piece, position: int,
                        destination: int) -> List[MoveAction]:
        return self._land(state, piece, MoveActionType.MOVE, position, destination)

    def _land(self, state, piece, action_type, source, destination):
        kind = occupancy(state, destination, piece.type)
        if kind == Occupancy.BLOCKED:
            return []
        actions = []
        if kind == Occupancy.BLOT:
            blot = state.get_top_piece(destination)
            actions.append(MoveAction(MoveActionType.HIT, blot, destination))
        actions.append(MoveAction(action_type, piece, source, destination))
        return actions


rule = register(RuleBgCasual())
