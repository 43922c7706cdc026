"""Condition normalization.

Transforms a condition's structure without altering its semantics. The
result is a canonical form: semantically equivalent conditions come out
structurally identical, so they share one id and one storage address.

Each stage takes a node whose children are already normalized and returns
either the very same node (nothing to do) or a new one.
"""

from dataclasses import replace
from typing import Iterable

from scopekit.core.config import get_settings
from scopekit.core.logging import get_logger

from .exceptions import InvariantViolation
from .model import (
    BRANCHING_OPERATORS,
    ENCODED_PARAM_TYPES,
    Condition,
    Operator,
    ParameterType,
    is_dynamic,
    is_global_allowance,
)
from .push_down import push_down_or
from .type_tree import pad_to_match_type_tree

logger = get_logger(__name__)

FLATTENABLE_OPERATORS = frozenset({Operator.AND, Operator.OR})


def normalize_condition(condition: Condition, push_down: bool | None = None) -> Condition:
    """Normalize a condition tree bottom-up.

    Args:
        condition: Raw condition tree.
        push_down: Whether to factor Or branches into their single differing
            position. Defaults to the ``push_down_or`` setting.

    Returns:
        The canonical condition. Idempotent: normalizing the result again
        yields the same tree.
    """
    if push_down is None:
        push_down = get_settings().push_down_or
    return _normalize(condition, push_down)


def _normalize(condition: Condition, push_down: bool) -> Condition:
    children = [_normalize(child, push_down) for child in condition.children]
    result = condition.with_children(children)

    result = clean_empty_fields(result)
    result = prune_trailing_pass(result)
    result = pad_to_match_type_tree(result)

    result = flatten_nested_branches(result)
    result = dedupe_children(result)
    result = unwrap_single_child(result)

    if push_down:
        result = push_down_or(result, lambda c: _normalize(c, True))
    result = sort_children_canonical(result)

    return result


def merge_conditions(conditions: Iterable[Condition]) -> Condition:
    """Combine alternative conditions into one canonical condition.

    Builds an Or of all inputs and normalizes it, so variants differing in a
    single position collapse into one condition with an Or at that position.

    Raises:
        InvariantViolation: If no condition is given.
    """
    conditions = list(conditions)
    if not conditions:
        raise InvariantViolation("nothing to merge", stage="merge_conditions")
    if len(conditions) == 1:
        return normalize_condition(conditions[0], push_down=True)

    merged = normalize_condition(
        Condition(param_type=ParameterType.NONE, operator=Operator.OR, children=conditions),
        push_down=True,
    )
    logger.debug("Merged conditions", inputs=len(conditions), result=merged.id)
    return merged


def clean_empty_fields(condition: Condition) -> Condition:
    """Treat an empty comp_value as unset."""
    if condition.comp_value == b"":
        return replace(condition, comp_value=None)
    return condition


def prune_trailing_pass(condition: Condition) -> Condition:
    """Remove trailing Pass nodes from Matches on calldata, ABI-encoded blobs and dynamic tuples.

    Static tuples are never pruned: dropping a static field would shift the
    word offsets of the fields after it. Global allowances are kept and moved
    to the end.
    """
    if condition.operator != Operator.MATCHES or not condition.children:
        return condition

    is_dynamic_tuple = condition.param_type == ParameterType.TUPLE and is_dynamic(condition)
    can_prune = condition.param_type in ENCODED_PARAM_TYPES or is_dynamic_tuple
    if not can_prune:
        return condition

    tail = [c for c in condition.children if is_global_allowance(c)]
    prunable = [c for c in condition.children if not is_global_allowance(c)]
    if not prunable:
        return condition

    # The first child is always kept so children never become empty. Tuples
    # additionally keep everything up to their first dynamic child so they
    # stay dynamic.
    keep_until = 0
    if is_dynamic_tuple:
        keep_until = next(i for i, c in enumerate(prunable) if is_dynamic(c))

    pruned = prunable[: keep_until + 1]
    for i in range(len(prunable) - 1, keep_until, -1):
        if prunable[i].operator != Operator.PASS:
            pruned = prunable[: i + 1]
            break

    return condition.with_children(pruned + tail)


def flatten_nested_branches(condition: Condition) -> Condition:
    """Splice nested And into And and nested Or into Or."""
    if condition.operator not in FLATTENABLE_OPERATORS:
        return condition

    if not any(c.operator == condition.operator for c in condition.children):
        return condition

    children: list[Condition] = []
    for child in condition.children:
        if child.operator == condition.operator:
            children.extend(child.children)
        else:
            children.append(child)
    return condition.with_children(children)


def dedupe_children(condition: Condition) -> Condition:
    """Remove duplicate branches from And/Or/Nor, keeping first occurrences."""
    if condition.operator not in BRANCHING_OPERATORS:
        return condition

    seen: set[str] = set()
    children = []
    for child in condition.children:
        if child.id in seen:
            continue
        seen.add(child.id)
        children.append(child)

    if len(children) == len(condition.children):
        return condition
    return condition.with_children(children)


def unwrap_single_child(condition: Condition) -> Condition:
    """Replace And/Or with their only branch.

    Nor is never unwrapped: Nor(x) means "x does not hold".
    """
    if condition.operator in FLATTENABLE_OPERATORS and len(condition.children) == 1:
        return condition.children[0]
    return condition


def sort_children_canonical(condition: Condition) -> Condition:
    """Enforce a canonical order on And/Or/Nor branches.

    Branches are sorted by id. Branches on calldata or ABI-encoded blobs
    always come first.
    """
    if condition.operator not in BRANCHING_OPERATORS:
        return condition

    children = sorted(
        condition.children,
        key=lambda c: (c.param_type not in ENCODED_PARAM_TYPES, int(c.id, 16)),
    )
    return condition.with_children(children)

