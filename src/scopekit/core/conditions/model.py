"""Condition tree value type.

A condition mirrors the ABI-decoded structure of a call. Each node carries
a parameter type (how its slice of calldata is encoded), an operator (its
role in the tree) and, for comparison operators, an opaque ``comp_value``.

Nodes are immutable. Every transformation builds new nodes, so a subtree
may safely be shared between several parents.
"""

import hashlib
from dataclasses import dataclass, field, replace
from enum import IntEnum
from functools import cached_property
from typing import Iterable

from .exceptions import ConditionIntegrityError


class ParameterType(IntEnum):
    """How the value addressed by a node is ABI-encoded."""

    NONE = 0
    STATIC = 1
    DYNAMIC = 2
    TUPLE = 3
    ARRAY = 4
    CALLDATA = 5
    ABI_ENCODED = 6


class Operator(IntEnum):
    """Role of a node in the condition tree."""

    # 00: always passes
    PASS = 0
    # 01-04: logical
    AND = 1
    OR = 2
    NOR = 3
    XOR = 4
    # 05-14: complex
    MATCHES = 5
    ARRAY_SOME = 6
    ARRAY_EVERY = 7
    ARRAY_SUBSET = 8
    # 15-31: comparison
    EQUAL_TO_AVATAR = 15
    EQUAL_TO = 16
    GREATER_THAN = 17
    LESS_THAN = 18
    SIGNED_INT_GREATER_THAN = 19
    SIGNED_INT_LESS_THAN = 20
    BITMASK = 21
    CUSTOM = 22
    WITHIN_ALLOWANCE = 28
    ETHER_WITHIN_ALLOWANCE = 29
    CALL_WITHIN_ALLOWANCE = 30


LOGICAL_OPERATORS = frozenset({Operator.AND, Operator.OR, Operator.NOR, Operator.XOR})

# And/Or/Nor children form a set; Xor depends on how many branches hold.
BRANCHING_OPERATORS = frozenset({Operator.AND, Operator.OR, Operator.NOR})

CHILDREN_REQUIRED_OPERATORS = LOGICAL_OPERATORS | {
    Operator.MATCHES,
    Operator.ARRAY_SOME,
    Operator.ARRAY_EVERY,
    Operator.ARRAY_SUBSET,
}

GLOBAL_ALLOWANCE_OPERATORS = frozenset(
    {Operator.ETHER_WITHIN_ALLOWANCE, Operator.CALL_WITHIN_ALLOWANCE}
)

COMPLEX_PARAM_TYPES = frozenset(
    {
        ParameterType.TUPLE,
        ParameterType.ARRAY,
        ParameterType.CALLDATA,
        ParameterType.ABI_ENCODED,
    }
)

ENCODED_PARAM_TYPES = frozenset({ParameterType.CALLDATA, ParameterType.ABI_ENCODED})


@dataclass(frozen=True)
class Condition:
    """A node of a condition tree.

    Attributes:
        param_type: Encoding of the value this node constrains.
        operator: Role of the node.
        comp_value: Opaque comparison operand, only on comparison operators.
        children: Sub-conditions. Positional for complex nodes, a set for
            And/Or/Nor.
    """

    param_type: ParameterType
    operator: Operator
    comp_value: bytes | None = None
    children: tuple["Condition", ...] = field(default=())

    def __post_init__(self) -> None:
        """Coerce field types and reject structurally impossible nodes."""
        object.__setattr__(self, "param_type", ParameterType(self.param_type))
        object.__setattr__(self, "operator", Operator(self.operator))
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))
        if self.comp_value is not None and not isinstance(self.comp_value, bytes):
            if not isinstance(self.comp_value, (bytearray, memoryview)):
                raise ConditionIntegrityError(
                    f"compValue must be bytes, got `{type(self.comp_value).__name__}`"
                )
            object.__setattr__(self, "comp_value", bytes(self.comp_value))

        if self.operator in CHILDREN_REQUIRED_OPERATORS and not self.children:
            raise ConditionIntegrityError(
                f"`{self.operator.name}` condition must have children"
            )
        if (
            self.children
            and self.operator not in CHILDREN_REQUIRED_OPERATORS
            and self.param_type not in COMPLEX_PARAM_TYPES
        ):
            raise ConditionIntegrityError(
                f"`{self.operator.name}` condition on `{self.param_type.name}` "
                "type param must not have children"
            )

    @cached_property
    def id(self) -> str:
        """Content hash of this subtree, memoised on the node.

        Child order is part of the hash. Canonical ordering of logical
        branches is what makes equivalent trees hash identically.
        """
        h = hashlib.sha256()
        h.update(bytes((self.param_type, self.operator)))
        comp_value = self.comp_value or b""
        h.update(len(comp_value).to_bytes(4, "big"))
        h.update(comp_value)
        h.update(len(self.children).to_bytes(4, "big"))
        for child in self.children:
            h.update(bytes.fromhex(child.id[2:]))
        return "0x" + h.hexdigest()

    def with_children(self, children: Iterable["Condition"]) -> "Condition":
        """Return a copy of this node with the given children.

        Returns the node itself when every child is the very same object.
        """
        children = tuple(children)
        if len(children) == len(self.children) and all(
            a is b for a, b in zip(children, self.children)
        ):
            return self
        return replace(self, children=children)

    def __repr__(self) -> str:
        parts = [self.operator.name, self.param_type.name]
        if self.comp_value is not None:
            parts.append("0x" + self.comp_value.hex())
        if self.children:
            parts.append("[" + ", ".join(repr(c) for c in self.children) + "]")
        return f"Condition({' '.join(parts)})"


def is_logical(condition: Condition) -> bool:
    """Check whether the node is an And/Or/Nor/Xor."""
    return condition.operator in LOGICAL_OPERATORS


def is_complex(condition: Condition) -> bool:
    """Check whether the node addresses a value with ABI components."""
    return condition.param_type in COMPLEX_PARAM_TYPES


def is_global_allowance(condition: Condition) -> bool:
    """Check whether the node is an allowance that applies to the whole call."""
    return condition.operator in GLOBAL_ALLOWANCE_OPERATORS


def has_comp_value(operator: Operator) -> bool:
    """Check whether the operator takes a comparison operand."""
    return operator >= Operator.EQUAL_TO


def is_dynamic(condition: Condition) -> bool:
    """Check whether the value addressed by the node is dynamically sized."""
    if condition.param_type == ParameterType.STATIC:
        return False
    if condition.param_type in (ParameterType.DYNAMIC, ParameterType.ARRAY):
        return True
    return any(is_dynamic(child) for child in condition.children)
