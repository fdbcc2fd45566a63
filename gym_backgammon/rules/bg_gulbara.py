from typing import List

from gym_backgammon.model import Game, MoveActionType
from gym_backgammon.rules.am_long_backgammon import RuleAmLongBackgammon
from gym_backgammon.rules.registry import register

# Rolls of a side before doubles start cascading
CASCADE_AFTER_ROLLS = 2


class RuleBgGulbara(RuleAmLongBackgammon):
    """
    Gul bara (rose-out), played in Bulgaria.

    Same board and movement as long backgammon. From a player's third roll
    on, a double is played four times and then every higher double is played
    as well, up to double six (eg. 4-4 gives 4, 4, 4, 4, 5, 5, 5, 5, 6, 6, 6, 6).
    """

    name = 'RuleBgGulbara'
    title = 'Gul bara'
    description = 'Bulgarian variant with no hitting, where doubles cascade up to double six.'
    country = 'Bulgaria'
    country_code = 'bg'
    allowed_actions = [
        MoveActionType.MOVE,
        MoveActionType.BEAR,
    ]

    def expand_roll(self, game: Game, dice: List[int]) -> List[int]:
        moves = super().expand_roll(game, dice)
        is_double = len(dice) == 2 and dice[0] == dice[1]
        # `rolls` already includes the roll being expanded
        if is_double and game.rolls[game.turn_player] > CASCADE_AFTER_ROLLS:
            for value in range(dice[0] + 1, 7):
                moves.extend([value] * 4)
        return moves


rule = register(RuleBgGulbara())
