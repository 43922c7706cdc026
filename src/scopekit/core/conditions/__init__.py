"""Condition algebra engine.

Normalizes, content-addresses, factors and subtracts permission condition
trees.
"""

from .exceptions import (
    ConditionError,
    ConditionIntegrityError,
    InvariantViolation,
)
from .hoist import hoist_condition
from .identity import (
    condition_address,
    condition_id,
    flatten_condition,
)
from .integrity import (
    check_condition_integrity,
    check_root_condition_integrity,
)
from .model import Condition, Operator, ParameterType
from .normalize import merge_conditions, normalize_condition
from .push_down import push_down_or
from .schemas import dump_condition, parse_condition
from .subtract import can_subtract, subtract_condition

__all__ = [
    "Condition",
    "Operator",
    "ParameterType",
    "normalize_condition",
    "push_down_or",
    "subtract_condition",
    "can_subtract",
    "hoist_condition",
    "merge_conditions",
    "condition_id",
    "condition_address",
    "flatten_condition",
    "check_condition_integrity",
    "check_root_condition_integrity",
    "parse_condition",
    "dump_condition",
    "ConditionError",
    "ConditionIntegrityError",
    "InvariantViolation",
]
