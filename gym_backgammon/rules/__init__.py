from gym_backgammon.rules.base import MoveResult, Occupancy, Rule, occupancy
from gym_backgammon.rules.registry import RULES, get_rule, load_rules, register
