from gym_backgammon.envs.backgammon_env import BackgammonEnv
