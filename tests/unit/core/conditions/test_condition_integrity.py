"""Tests for condition integrity checks."""

import pytest

from scopekit.core.conditions.builders import (
    eq,
    ether_within_allowance,
    every,
    matches,
    or_,
    pass_,
)
from scopekit.core.conditions.exceptions import ConditionIntegrityError
from scopekit.core.conditions.integrity import (
    check_condition_integrity,
    check_parameter_type_compatibility,
    check_root_condition_integrity,
)
from scopekit.core.conditions.model import Condition, Operator, ParameterType

ALLOWANCE_KEY = b"\x00" * 31 + b"\x01"


class TestRootIntegrity:
    """Test validation of whole-call conditions."""

    def test_valid_calldata_root(self):
        """Test that a well-formed calldata condition passes."""
        check_root_condition_integrity(
            matches(eq(1), pass_(), ether_within_allowance(ALLOWANCE_KEY))
        )

    def test_logical_root_resolves_to_calldata(self):
        """Test that a logical root takes the type of its branches."""
        check_root_condition_integrity(or_(matches(eq(1)), matches(eq(2))))

    def test_non_calldata_root(self):
        """Test that roots must scope calldata."""
        with pytest.raises(ConditionIntegrityError, match="Root param type must be `CALLDATA`"):
            check_root_condition_integrity(matches(eq(1), param_type=ParameterType.TUPLE))


class TestChildrenTypes:
    """Test that logical branches agree on the type they constrain."""

    def test_dynamic_may_follow_encoded(self):
        """Test that Dynamic branches may follow AbiEncoded ones."""
        check_condition_integrity(
            or_(matches(eq(1), param_type=ParameterType.ABI_ENCODED), pass_(ParameterType.DYNAMIC))
        )

    def test_encoded_must_not_follow_dynamic(self):
        """Test that AbiEncoded branches must come before Dynamic ones."""
        condition = or_(
            pass_(ParameterType.DYNAMIC), matches(eq(1), param_type=ParameterType.ABI_ENCODED)
        )
        with pytest.raises(ConditionIntegrityError, match="Mixed children types"):
            check_condition_integrity(condition)

    def test_inconsistent_types(self):
        """Test that unrelated branch types are rejected."""
        with pytest.raises(ConditionIntegrityError, match="Inconsistent children types"):
            check_condition_integrity(or_(eq(1), pass_(ParameterType.DYNAMIC)))

    def test_compatibility_ignores_untyped(self):
        """Test that untyped branches are compatible with anything."""
        check_parameter_type_compatibility(ParameterType.STATIC, ParameterType.NONE)
        check_parameter_type_compatibility(ParameterType.STATIC, ParameterType.STATIC)


class TestNodeIntegrity:
    """Test per-node rules."""

    def test_unsupported_param_type(self):
        """Test that operators are restricted to compatible param types."""
        condition = Condition(ParameterType.DYNAMIC, Operator.GREATER_THAN, b"\x00" * 32)
        with pytest.raises(ConditionIntegrityError, match="not supported for paramType"):
            check_condition_integrity(condition)

    def test_missing_comp_value(self):
        """Test that comparisons need an operand."""
        with pytest.raises(ConditionIntegrityError, match="must have a compValue"):
            check_condition_integrity(Condition(ParameterType.STATIC, Operator.EQUAL_TO))

    def test_unexpected_comp_value(self):
        """Test that non-comparisons reject an operand."""
        condition = Condition(ParameterType.STATIC, Operator.PASS, b"\x01")
        with pytest.raises(ConditionIntegrityError, match="cannot have a compValue"):
            check_condition_integrity(condition)

    def test_tuple_needs_structure(self):
        """Test that tuples describe their components."""
        with pytest.raises(ConditionIntegrityError, match="must have children"):
            check_condition_integrity(pass_(ParameterType.TUPLE))

    def test_array_some_single_child(self):
        """Test that ArraySome takes exactly one element condition."""
        condition = Condition(ParameterType.ARRAY, Operator.ARRAY_SOME, children=(eq(1), eq(2)))
        with pytest.raises(ConditionIntegrityError, match="exactly one child"):
            check_condition_integrity(condition)

    def test_nested_violation_is_found(self):
        """Test that checks descend into the tree."""
        condition = matches(every(Condition(ParameterType.STATIC, Operator.LESS_THAN)))
        with pytest.raises(ConditionIntegrityError, match="`LESS_THAN` condition must have a compValue"):
            check_condition_integrity(condition)
