"""Tests for OR push-down."""

import pytest

from scopekit.core.conditions.builders import and_, eq, matches, or_
from scopekit.core.conditions.exceptions import InvariantViolation
from scopekit.core.conditions.model import Condition, Operator, ParameterType
from scopekit.core.conditions.push_down import push_down_or

C1, C2, C3, C4, C5, C10 = (eq(i) for i in (1, 2, 3, 4, 5, 10))


class TestPreconditions:
    """Test inputs push-down does not touch or rejects."""

    def test_non_or_is_unchanged(self):
        """Test that only Or nodes are rewritten."""
        condition = and_(matches(C1, C2), matches(C1, C3))
        assert push_down_or(condition) is condition

    def test_single_branch_or_is_rejected(self):
        """Test that an Or with one branch violates the stage precondition."""
        with pytest.raises(InvariantViolation, match="push_down_or") as exc_info:
            push_down_or(or_(matches(C1)))
        assert exc_info.value.stage == "push_down_or"

    def test_mixed_param_types(self):
        """Test that branches on different encodings are left alone."""
        condition = or_(matches(C1, C2), matches(C1, C3, param_type=ParameterType.ABI_ENCODED))
        assert push_down_or(condition) is condition

    def test_array_branches(self):
        """Test that alternation over array elements is never collapsed."""
        condition = or_(
            Condition(ParameterType.ARRAY, Operator.MATCHES, children=(C1, C2)),
            Condition(ParameterType.ARRAY, Operator.MATCHES, children=(C1, C3)),
        )
        assert push_down_or(condition) is condition

    def test_mixed_operators(self):
        """Test that And and Matches branches are not mixed."""
        condition = or_(and_(C1, C2), matches(C1, C3))
        assert push_down_or(condition) is condition


class TestMatchesHinge:
    """Test positional hinge detection."""

    def test_single_hinge(self):
        """Test that the Or moves to the one differing position."""
        result = push_down_or(or_(matches(C1, C2, C5), matches(C1, C3, C5)))
        assert result == matches(C1, or_(C2, C3), C5)

    def test_three_branches(self):
        """Test that all branches contribute to the hinge Or in order."""
        result = push_down_or(or_(matches(C1, C2), matches(C1, C3), matches(C1, C4)))
        assert result == matches(C1, or_(C2, C3, C4))

    def test_two_differences(self):
        """Test that more than one differing position aborts."""
        condition = or_(matches(C1, C2), matches(C3, C4))
        assert push_down_or(condition) is condition

    def test_different_hinges_across_pairs(self):
        """Test that every branch must differ from the first at the same position."""
        condition = or_(matches(C1, C2), matches(C3, C2), matches(C1, C4))
        assert push_down_or(condition) is condition

    def test_swapped_values(self):
        """Test that swapping values between positions is not a hinge."""
        condition = or_(matches(C1, C2), matches(C2, C1))
        assert push_down_or(condition) is condition

    def test_identical_branches(self):
        """Test that branches without a difference have no hinge."""
        condition = or_(matches(C1, C2), matches(C1, C2))
        assert push_down_or(condition) is condition

    def test_missing_position(self):
        """Test that a position missing from a branch cannot be the hinge."""
        condition = or_(matches(C1), matches(C1, C2))
        assert push_down_or(condition) is condition


class TestAndHinge:
    """Test set-based hinge detection."""

    def test_single_unique_child(self):
        """Test that the first branch is the template and the Or replaces its unique child."""
        result = push_down_or(or_(and_(C1, C2, C3), and_(C3, C1, C10)))
        assert result == and_(C1, or_(C2, C10), C3)

    def test_zero_vs_one_unique(self):
        """Test that a subset relation between branches aborts."""
        condition = or_(and_(C1, C2), and_(C1, C2, C3))
        assert push_down_or(condition) is condition

    def test_one_vs_two_unique(self):
        """Test that a branch with two unique children aborts."""
        condition = or_(and_(C1, C2), and_(C1, C3, C4))
        assert push_down_or(condition) is condition

    def test_no_common_children(self):
        """Test that branches sharing nothing are left alone."""
        condition = or_(and_(C1, C2), and_(C3, C4))
        assert push_down_or(condition) is condition


class TestNormalizeCallback:
    """Test re-normalization of the rewritten node."""

    def test_callback_receives_rewritten_node(self):
        """Test that the rewritten node is passed through the callback."""
        seen = []

        def normalize(condition):
            seen.append(condition)
            return condition

        result = push_down_or(or_(matches(C1, C2), matches(C1, C3)), normalize)

        assert seen == [matches(C1, or_(C2, C3))]
        assert result is seen[0]

    def test_callback_not_called_without_hinge(self):
        """Test that no-ops skip the callback."""
        seen = []
        push_down_or(or_(matches(C1, C2), matches(C3, C4)), seen.append)
        assert seen == []
