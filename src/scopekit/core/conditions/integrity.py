"""Condition integrity checks.

Validates raw condition trees handed over by the authoring layer before
they enter normalization or get encoded for deployment.
"""

from .exceptions import ConditionIntegrityError
from .model import (
    Condition,
    Operator,
    ParameterType,
    has_comp_value,
)

_ANY_VALUE = (
    ParameterType.STATIC,
    ParameterType.DYNAMIC,
    ParameterType.TUPLE,
    ParameterType.ARRAY,
)

COMPATIBLE_TYPES: dict[Operator, tuple[ParameterType, ...]] = {
    Operator.PASS: _ANY_VALUE + (ParameterType.CALLDATA, ParameterType.ABI_ENCODED),
    Operator.AND: (ParameterType.NONE,),
    Operator.OR: (ParameterType.NONE,),
    Operator.NOR: (ParameterType.NONE,),
    Operator.XOR: (ParameterType.NONE,),
    Operator.MATCHES: (
        ParameterType.CALLDATA,
        ParameterType.ABI_ENCODED,
        ParameterType.TUPLE,
        ParameterType.ARRAY,
    ),
    Operator.ARRAY_SOME: (ParameterType.ARRAY,),
    Operator.ARRAY_EVERY: (ParameterType.ARRAY,),
    Operator.ARRAY_SUBSET: (ParameterType.ARRAY,),
    Operator.EQUAL_TO_AVATAR: (ParameterType.STATIC,),
    Operator.EQUAL_TO: _ANY_VALUE,
    Operator.GREATER_THAN: (ParameterType.STATIC,),
    Operator.LESS_THAN: (ParameterType.STATIC,),
    Operator.SIGNED_INT_GREATER_THAN: (ParameterType.STATIC,),
    Operator.SIGNED_INT_LESS_THAN: (ParameterType.STATIC,),
    Operator.BITMASK: (ParameterType.STATIC, ParameterType.DYNAMIC),
    Operator.CUSTOM: _ANY_VALUE,
    Operator.WITHIN_ALLOWANCE: (ParameterType.STATIC,),
    Operator.ETHER_WITHIN_ALLOWANCE: (ParameterType.NONE,),
    Operator.CALL_WITHIN_ALLOWANCE: (ParameterType.NONE,),
}


def check_root_condition_integrity(condition: Condition) -> None:
    """Validate a condition that scopes a whole function call.

    Raises:
        ConditionIntegrityError: If the tree is malformed or not rooted in calldata.
    """
    root_type = _check_consistent_children_types(condition)
    if root_type != ParameterType.CALLDATA:
        raise ConditionIntegrityError(
            f"Root param type must be `CALLDATA`, got `{root_type.name}`"
        )
    _check_integrity_recursive(condition)


def check_condition_integrity(condition: Condition) -> None:
    """Validate a condition tree.

    Raises:
        ConditionIntegrityError: If any node violates the integrity rules.
    """
    _check_consistent_children_types(condition)
    _check_integrity_recursive(condition)


def check_parameter_type_compatibility(left: ParameterType, right: ParameterType) -> None:
    """Check that a logical branch of type ``right`` may follow one of type ``left``."""
    if right == ParameterType.NONE or right == left:
        return

    if right == ParameterType.DYNAMIC and left in (
        ParameterType.CALLDATA,
        ParameterType.ABI_ENCODED,
    ):
        return

    if left == ParameterType.DYNAMIC and right in (
        ParameterType.CALLDATA,
        ParameterType.ABI_ENCODED,
    ):
        raise ConditionIntegrityError(
            f"Mixed children types: `{right.name}` must appear before `{left.name}`"
        )

    raise ConditionIntegrityError(
        f"Inconsistent children types (`{left.name}` and `{right.name}`)"
    )


def _check_consistent_children_types(condition: Condition) -> ParameterType:
    """Return the effective type of a node, checking logical branches agree on it.

    Since logical branches address the very same value, declaring
    incompatible param types makes no sense.
    """
    if condition.param_type != ParameterType.NONE:
        return condition.param_type

    if not condition.children:
        return ParameterType.NONE

    first, *rest = condition.children
    expected = _check_consistent_children_types(first)
    for child in rest:
        check_parameter_type_compatibility(expected, _check_consistent_children_types(child))
    return expected


def _check_integrity_recursive(condition: Condition) -> None:
    for child in condition.children:
        _check_integrity_recursive(child)

    _check_param_type_integrity(condition)
    _check_comp_value_integrity(condition)
    _check_children_integrity(condition)


def _check_param_type_integrity(condition: Condition) -> None:
    if condition.param_type not in COMPATIBLE_TYPES[condition.operator]:
        raise ConditionIntegrityError(
            f"`{condition.operator.name}` condition not supported for paramType "
            f"`{condition.param_type.name}`"
        )


def _check_comp_value_integrity(condition: Condition) -> None:
    if has_comp_value(condition.operator) and not condition.comp_value:
        raise ConditionIntegrityError(
            f"`{condition.operator.name}` condition must have a compValue"
        )
    if not has_comp_value(condition.operator) and condition.comp_value:
        raise ConditionIntegrityError(
            f"`{condition.operator.name}` condition cannot have a compValue"
        )


def _check_children_integrity(condition: Condition) -> None:
    if condition.param_type in (ParameterType.TUPLE, ParameterType.ARRAY) and not condition.children:
        raise ConditionIntegrityError(
            f"Condition on `{condition.param_type.name}` params must have children to "
            f"describe the type structure, found violation in "
            f"`{condition.operator.name}` condition"
        )

    if condition.operator in (Operator.ARRAY_SOME, Operator.ARRAY_EVERY):
        if len(condition.children) != 1:
            raise ConditionIntegrityError(
                f"`{condition.operator.name}` conditions must have exactly one child"
            )

