"""
Battleplan Error Hierarchy

Exceptions raised at the edges of the decision engine. The engine itself
never uses exceptions for decision control flow: malformed snapshot fields
are coerced to empty/zero values and illegal plans or actions are repaired.
These errors cover the places where a caller asserts validity and is wrong.

Usage:
    from battleplan_ai.errors import InvalidSquareError

    try:
        square = Square.from_code(code)
    except InvalidSquareError as e:
        logger.warning("Bad square: %s", e.message)
"""

from typing import Any

__all__ = [
    "BattleplanError",
    "ConfigurationError",
    "DecisionError",
    "InvalidRequestError",
    "InvalidSquareError",
]


class BattleplanError(Exception):
    """Base exception for all Battleplan errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "BATTLEPLAN_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
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

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class InvalidSquareError(BattleplanError):
    """Square code that is not on the 8x8 board.

    Raised only by strict parsers; lenient snapshot ingestion maps bad
    codes to ``None`` instead.
    """
    code: str = "INVALID_SQUARE"

    def __init__(self, square: Any, context: dict[str, Any] | None = None):
        super().__init__(f"Invalid square code: {square!r}", context=context)
        self.square = square
        self.context.setdefault("square", square)


class InvalidRequestError(BattleplanError):
    """Decision request that cannot be routed (unknown kind or side)."""
    code: str = "INVALID_REQUEST"


class ConfigurationError(BattleplanError):
    """Invalid engine configuration (usually an unparsable env variable)."""
    code: str = "CONFIGURATION_ERROR"

    def __init__(
        self,
        message: str,
        variable: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.variable = variable
        if variable:
            self.context["variable"] = variable


class DecisionError(BattleplanError):
    """Decision pipeline produced no result it could stand behind."""
    code: str = "DECISION_ERROR"
