import logging
from typing import Dict, List, Optional

from gym_backgammon.config import EngineConfig, configure_logging
from gym_backgammon.controller import TurnController
from gym_backgammon.errors import ConfigurationError
from gym_backgammon.rules import load_rules

logger = logging.getLogger(__name__)


class BackgammonEngine:
    """
    Entry point for a server: loads the configured rules once and keeps one
    TurnController per running game.
    """

    def __init__(self, config: Optional[EngineConfig] = None, setup_logging: bool = False):
        self.config = config or EngineConfig.from_env()
        if setup_logging:
            configure_logging(self.config.log_level)
        # Fails here, at startup, if a configured rule does not exist
        self.rules = load_rules(self.config.selectable_rules)
        self.games: Dict[str, TurnController] = {}

    def rule_list(self) -> List[Dict]:
        """Metadata of the selectable rules, for a lobby to display."""
        return [rule.metadata() for rule in self.rules.values()]

    def create_game(self, rule_name: Optional[str] = None, seed: Optional[int] = None,
                    game_id: Optional[str] = None) -> TurnController:
        rule_name = rule_name or self.config.default_rule
        if rule_name not in self.rules:
            raise ConfigurationError(f"Rule {rule_name} is not selectable",
                                     context={'selectable': list(self.rules)})
        controller = TurnController(self.rules[rule_name], game_id=game_id, seed=seed)
        self.games[controller.game.id] = controller
        logger.info(f"Created game {controller.game.id} with {rule_name}")
        return controller

    def get_game(self, game_id: str) -> Optional[TurnController]:
        return self.games.get(game_id)

    def end_game(self, game_id: str):
        """Forget a game; its state is discarded."""
        if self.games.pop(game_id, None) is not None:
            logger.info(f"Game {game_id} removed")
