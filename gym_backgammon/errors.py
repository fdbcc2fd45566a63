"""
Backgammon engine error hierarchy.

Illegal moves are not errors: they are reported as an empty action list.
The exceptions below cover misconfiguration, out-of-order requests and
states that should be impossible to reach through normal play.
"""

from typing import Any, Dict, Optional

__all__ = [
    "BackgammonError",
    "ConfigurationError",
    "GameBusyError",
    "InternalInconsistencyError",
    "TurnOrderError",
]


class BackgammonError(Exception):
    """Base exception for all engine errors.

    Attributes:
        code: Machine-readable error code
        message: Human-readable description
        context: Additional data for diagnostics
    """
    code: str = "BACKGAMMON_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ConfigurationError(BackgammonError):
    """Unknown rule name or invalid engine configuration.

    Raised at startup or when a game is created, never at move time.
    """
    code: str = "CONFIGURATION"


class InternalInconsistencyError(BackgammonError):
    """Board state does not match what an operation expects.

    Examples are a piece that is not on the board it belongs to, or an
    action list that cannot be applied to the current state.
    """
    code: str = "INTERNAL_INCONSISTENCY"


class TurnOrderError(BackgammonError):
    """A request arrived in the wrong phase of the turn (eg. moving before rolling)."""
    code: str = "TURN_ORDER"


class GameBusyError(BackgammonError):
    """Another request for the same game is still being applied."""
    code: str = "GAME_BUSY"
