"""
Name -> rule singleton mapping.

Variant modules register their instance when imported. `load_rules` imports
the built-in variants and checks a configured selection against them, so an
unknown name fails at startup instead of at move time.
"""

import importlib
import logging
from typing import Dict, Iterable

from gym_backgammon.errors import ConfigurationError

logger = logging.getLogger(__name__)

BUILTIN_RULE_MODULES = [
    'gym_backgammon.rules.bg_casual',
    'gym_backgammon.rules.am_long_backgammon',
    'gym_backgammon.rules.bg_gulbara',
    'gym_backgammon.rules.bg_tapa',
]

RULES: Dict[str, 'Rule'] = {}


def register(rule):
    """Register a rule instance under its name and return it."""
    if rule.name in RULES and RULES[rule.name] is not rule:
        raise ConfigurationError(f"Rule {rule.name} is already registered")
    RULES[rule.name] = rule
    return rule


def import_builtin_rules():
    for module in BUILTIN_RULE_MODULES:
        importlib.import_module(module)


def get_rule(name: str):
    import_builtin_rules()
    try:
        return RULES[name]
    except KeyError:
        raise ConfigurationError(f"Unknown rule {name}", context={'known': sorted(RULES)}) from None


def load_rules(names: Iterable[str]) -> Dict[str, 'Rule']:
    """Return the selected rules, in the configured order."""
    import_builtin_rules()
    names = list(names)
    missing = [name for name in names if name not in RULES]
    if missing:
        raise ConfigurationError(
            f"Selectable rules are not registered: {', '.join(missing)}",
            context={'known': sorted(RULES)},
        )
    logger.info(f"Loaded rules: {names}")
    return {name: RULES[name] for name in names}
