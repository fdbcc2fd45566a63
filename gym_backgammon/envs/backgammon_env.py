import gymnasium as gym
import numpy as np
from gymnasium import spaces

from gym_backgammon.controller import TurnController
from gym_backgammon.model import BAR, PIECES_PER_SIDE, POINT_COUNT, PieceType, TurnPhase
from gym_backgammon.rules import get_rule

"""
Backgammon Environment - Behavior Notes
=======================================

1. Rules: any registered variant can be played (`rule_name`), the rule engine
   decides legality and the turn controller handles turn transitions.

2. Perspective: the board is NOT rotated. Observations always list White's
   counts first; obs[57] tells whose turn it is.

3. Dice: rolled automatically whenever the side to move has to roll. Turns
   without a playable move are forfeited (or transferred to the opponent) by
   the controller, and the environment keeps rolling until someone can move.

4. Action Format: (source, die_index) where source is a point 0..23 or 24 for
   the bar, and die_index is the step value minus one.

5. Game Termination: the game ends when a side bears off all its pieces.
"""

BAR_ACTION = POINT_COUNT
MAX_PENDING_SHOWN = 4
MAX_PENDING = 24


class BackgammonEnv(gym.Env):
    """
    Gymnasium environment over the backgammon rule engine. The agent plays
    both sides; the reward goes to the side that just moved.
    """

    metadata = {"render_modes": ["human"]}

    def __init__(self, rule_name='RuleBgCasual', render_mode=None, max_steps=1000, debug=False,
                 max_roll_attempts=100):
        super().__init__()
        self.rule = get_rule(rule_name)
        self.render_mode = render_mode
        self.max_steps = max_steps
        self.debug = debug
        self.max_roll_attempts = max_roll_attempts

        self.action_space = spaces.Tuple((
            spaces.Discrete(POINT_COUNT + 1),  # 0..23 points, 24 = bar
            spaces.Discrete(6)                 # step value - 1
        ))

        # obs[0:24] white counts, obs[24:48] black counts, obs[48:50] bar, obs[50:52] borne off,
        # obs[52:56] first pending moves, obs[56] number of pending moves, obs[57] side to move
        low = np.zeros(2 * POINT_COUNT + 10, dtype=np.float32)
        high = np.array(
            [PIECES_PER_SIDE] * (2 * POINT_COUNT) + [PIECES_PER_SIDE] * 4
            + [6] * MAX_PENDING_SHOWN + [MAX_PENDING, 1],
            dtype=np.float32,
        )
        self.observation_space = spaces.Box(low=low, high=high, dtype=np.float32)

        self.controller = None
        self.steps = 0

    def reset(self, seed=None, options=None):
        super().reset(seed=seed)
        game_seed = int(self.np_random.integers(0, 2**31 - 1))
        self.controller = TurnController(self.rule, seed=game_seed)
        self.steps = 0
        self._roll_until_playable()
        return self._get_obs(), self._get_info()

    def step(self, action):
        source, steps = self._decode_action(action)
        mover = self.controller.turn_player
        actions = self.controller.move_from(source, steps)
        self.steps += 1
        truncated = self.steps >= self.max_steps

        if not actions:
            if self.debug:
                print(f"DEBUG step: Invalid move {action}, legal: {self.legal_actions()}")
            # Penalty but keep playing
            return self._get_obs(), -0.1, False, truncated, self._get_info(invalid_move=True)

        info_actions = [a.to_dict() for a in actions]
        if self.controller.game.is_over:
            return (self._get_obs(), 1.0, True, False,
                    self._get_info(won=True, winner=mover.name.lower(), actions=info_actions))

        rolls = self._roll_until_playable()
        if self.controller.game.phase != TurnPhase.MOVES_PENDING:
            truncated = True
        return (self._get_obs(), 0.0, False, truncated,
                self._get_info(actions=info_actions, rolls=rolls))

    def legal_actions(self):
        """Actions accepted by `step` in the current position."""
        legal = []
        for piece, steps, _ in self.controller.legal_moves():
            position = self.controller.state.get_piece_pos(piece)
            source = BAR_ACTION if position == BAR else position
            legal.append((source, steps - 1))
        return legal

    def _roll_until_playable(self):
        rolls = 0
        while (self.controller.game.phase == TurnPhase.AWAITING_ROLL
               and rolls < self.max_roll_attempts):
            self.controller.roll()
            rolls += 1
            if self.debug:
                print(f"DEBUG: {self.controller.turn_player.name} moves {self.controller.game.moves}")
        return rolls

    def _decode_action(self, action):
        source, die_index = action
        source = int(source)
        position = BAR if source == BAR_ACTION else source
        return position, int(die_index) + 1

    def _get_obs(self):
        state = self.controller.state
        game = self.controller.game
        obs = np.zeros(self.observation_space.shape, dtype=np.float32)
        obs[:2 * POINT_COUNT] = state.board_counts().reshape(-1)
        base = 2 * POINT_COUNT
        obs[base] = len(state.bar[PieceType.WHITE])
        obs[base + 1] = len(state.bar[PieceType.BLACK])
        obs[base + 2] = state.count_off(PieceType.WHITE)
        obs[base + 3] = state.count_off(PieceType.BLACK)
        shown = game.moves[:MAX_PENDING_SHOWN]
        obs[base + 4:base + 4 + len(shown)] = shown
        obs[base + 8] = min(len(game.moves), MAX_PENDING)
        obs[base + 9] = int(game.turn_player)
        return obs

    def _get_info(self, **extra):
        game = self.controller.game
        info = {
            "dice": list(game.dice),
            "moves": list(game.moves),
            "current_player": game.turn_player.name.lower(),
        }
        info.update(extra)
        return info

    def render(self):
        if self.render_mode == "human":
            counts = self.controller.state.board_counts()
            signed = counts[PieceType.WHITE] - counts[PieceType.BLACK]
            for i in range(POINT_COUNT):
                print(f"{signed[i]:>3}", end=" ")
                if (i + 1) % 6 == 0:
                    print()
            state = self.controller.state
            print(f"Bar: White={len(state.bar[PieceType.WHITE])}, Black={len(state.bar[PieceType.BLACK])}")
            print(f"Borne off: White={state.count_off(PieceType.WHITE)}, "
                  f"Black={state.count_off(PieceType.BLACK)}")
            print(f"Moves left: {self.controller.game.moves}, To move: {self.controller.turn_player.name}\n")

    def close(self):
        pass
