import logging
import os
from dataclasses import dataclass, field
from typing import List

from gym_backgammon.errors import ConfigurationError

DEFAULT_RULE = 'RuleBgCasual'
SELECTABLE_RULES = [
    'RuleBgCasual',
    'RuleAmLongBackgammon',
    'RuleBgGulbara',
    'RuleBgTapa',
]

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass
class EngineConfig:
    default_rule: str = DEFAULT_RULE
    # Rules offered to players, in display order
    selectable_rules: List[str] = field(default_factory=lambda: list(SELECTABLE_RULES))
    log_level: str = 'INFO'

    def __post_init__(self):
        if not self.selectable_rules:
            raise ConfigurationError("At least one selectable rule is required")
        if self.default_rule not in self.selectable_rules:
            raise ConfigurationError(
                f"Default rule {self.default_rule} is not selectable",
                context={'selectable': self.selectable_rules},
            )

    @classmethod
    def from_env(cls) -> 'EngineConfig':
        """Read BACKGAMMON_DEFAULT_RULE, BACKGAMMON_SELECTABLE_RULES and BACKGAMMON_LOG_LEVEL."""
        selectable = os.getenv('BACKGAMMON_SELECTABLE_RULES')
        return cls(
            default_rule=os.getenv('BACKGAMMON_DEFAULT_RULE', DEFAULT_RULE),
            selectable_rules=(
                [name.strip() for name in selectable.split(',') if name.strip()]
                if selectable is not None else list(SELECTABLE_RULES)
            ),
            log_level=os.getenv('BACKGAMMON_LOG_LEVEL', 'INFO'),
        )


def configure_logging(level='INFO'):
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO),
                        format=LOG_FORMAT)
