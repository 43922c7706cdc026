"""Exceptions for condition construction and transformation."""

from typing import Any


class ConditionError(Exception):
    """Base class for all condition-related errors."""
    pass


class ConditionIntegrityError(ConditionError):
    """Raised when a condition tree is malformed at the boundary."""
    pass


class InvariantViolation(ConditionError):
    """Raised when a transformation stage receives input breaking its precondition."""

    def __init__(self, message: str, stage: str, condition: Any | None = None):
        self.stage = stage
        self.condition = condition
        detail = f"[{stage}] {message}"
        if condition is not None:
            detail = f"{detail} (node: {condition!r})"
        super().__init__(detail)
