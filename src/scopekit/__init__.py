"""scopekit - condition algebra for scoped smart-account permissions.

Canonicalizes, content-addresses, factors and subtracts the condition
trees that scope which calls a role may make, and with which arguments.
"""

__version__ = "0.1.0"

from scopekit.core.conditions import (
    Condition,
    Operator,
    ParameterType,
    condition_address,
    condition_id,
    normalize_condition,
    subtract_condition,
)

__all__ = [
    "Condition",
    "Operator",
    "ParameterType",
    "condition_address",
    "condition_id",
    "normalize_condition",
    "subtract_condition",
    "__version__",
]
