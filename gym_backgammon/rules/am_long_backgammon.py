from gym_backgammon.model import MoveActionType, PieceType, State
from gym_backgammon.rules.base import Rule, rotate_pos
from gym_backgammon.rules.registry import register


class RuleAmLongBackgammon(Rule):
    """
    Long backgammon as played in Armenia.

    Both players start with all pieces on one point and move in the same
    direction. There is no hitting: a single opponent piece already blocks
    a point.
    """

    name = 'RuleAmLongBackgammon'
    title = 'Long Backgammon'
    description = 'One of the less popular variants of backgammon in Armenia.'
    country = 'Armenia'
    country_code = 'am'
    allowed_actions = [
        MoveActionType.MOVE,
        MoveActionType.BEAR,
    ]

    def reset_state(self, state: State):
        """
        Position: |12 13 14 15 16 17| |18 19 20 21 22 23|
                  |                 | |              15w| <-
                  |                 | |                 |
               -> |15b              | |                 |
        Position: |11 10 09 08 07 06| |05 04 03 02 01 00|
        """
        state.clear()

        self.place(state, 15, PieceType.WHITE, 23)
        self.place(state, 15, PieceType.BLACK, 11)

    def inc_pos(self, position: int, piece_type: PieceType, steps: int) -> int:
        new_position = position - steps
        if piece_type == PieceType.BLACK:
            if position < 12 and new_position < 0:
                # Wrap from point 0 to point 23
                new_position = 24 + new_position
            elif position >= 12 and new_position <= 11:
                # Past Black's home edge: -1 is exactly off the board
                new_position = new_position - 12
        return new_position

    def norm_pos(self, position: int, piece_type: PieceType) -> int:
        if piece_type == PieceType.BLACK:
            return rotate_pos(position)
        return position

    def denorm_pos(self, position: int, piece_type: PieceType) -> int:
        if piece_type == PieceType.BLACK:
            return rotate_pos(position)
        return position


rule = register(RuleAmLongBackgammon())
