from gymnasium.envs.registration import register

register(
    id='Backgammon-v0',
    entry_point='gym_backgammon.envs:BackgammonEnv',
    max_episode_steps=1000,
)
