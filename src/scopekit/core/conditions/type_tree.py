"""Type trees and Pass padding.

A type tree is the ABI shape a condition constrains, stripped of every
comparison. Before the branches of a logical group can be compared
position by position, shorter branches are padded with ``Pass`` nodes so
that all of them describe the same shape.
"""

import hashlib
from dataclasses import dataclass
from functools import reduce

from .exceptions import InvariantViolation
from .model import (
    Condition,
    Operator,
    ParameterType,
    is_complex,
    is_global_allowance,
    is_logical,
)


@dataclass(frozen=True)
class TypeTree:
    """ABI shape of a condition."""

    param_type: ParameterType
    children: tuple["TypeTree", ...] = ()


def create_type_tree(condition: Condition) -> TypeTree:
    """Derive the type tree of a condition.

    Logical nodes merge the shapes of their branches. Array nodes collapse
    all their elements into a single element shape. Global allowances are
    not part of the ABI layout and are skipped.
    """
    if is_logical(condition):
        return reduce(merge_type_trees, (create_type_tree(c) for c in condition.children))

    positional = [c for c in condition.children if not is_global_allowance(c)]

    if condition.param_type == ParameterType.ARRAY:
        if not positional:
            return TypeTree(condition.param_type)
        element = reduce(merge_type_trees, (create_type_tree(c) for c in positional))
        return TypeTree(condition.param_type, (element,))

    if is_complex(condition):
        return TypeTree(
            condition.param_type, tuple(create_type_tree(c) for c in positional)
        )

    return TypeTree(condition.param_type)


def merge_type_trees(left: TypeTree, right: TypeTree) -> TypeTree:
    """Combine two shapes, keeping the wider one at every position."""
    param_type = left.param_type if left.param_type != ParameterType.NONE else right.param_type
    size = max(len(left.children), len(right.children))
    children = []
    for i in range(size):
        if i >= len(left.children):
            children.append(right.children[i])
        elif i >= len(right.children):
            children.append(left.children[i])
        else:
            children.append(merge_type_trees(left.children[i], right.children[i]))
    return TypeTree(param_type, tuple(children))


def type_tree_id(type_tree: TypeTree) -> str:
    """Stable hash of a type tree."""
    h = hashlib.sha256()
    h.update(bytes((type_tree.param_type,)))
    h.update(len(type_tree.children).to_bytes(4, "big"))
    for child in type_tree.children:
        h.update(bytes.fromhex(type_tree_id(child)[2:]))
    return "0x" + h.hexdigest()


def _is_paddable(condition: Condition) -> bool:
    return is_logical(condition) or is_complex(condition)


def pad_to_match_type_tree(condition: Condition) -> Condition:
    """Pad the branches of a logical or Array node to a common shape.

    Runs inside normalization, where children are already normalized, so
    only logical and Array nodes need attention. Every paddable child is
    extended with the shape of every other one. Padding is cumulative: no
    single branch is guaranteed to be the widest at every depth.
    """
    if not is_logical(condition) and condition.param_type != ParameterType.ARRAY:
        return condition

    paddable = [i for i, child in enumerate(condition.children) if _is_paddable(child)]
    tree_ids = {type_tree_id(create_type_tree(condition.children[i])) for i in paddable}
    if len(tree_ids) <= 1:
        return condition

    next_children = list(condition.children)
    for i in paddable:
        for j in paddable:
            if i == j:
                continue
            next_children[i] = extend_with_pass_nodes(
                next_children[i], create_type_tree(next_children[j])
            )

    return condition.with_children(next_children)


def extend_with_pass_nodes(condition: Condition | None, type_tree: TypeTree) -> Condition:
    """Pad a condition with Pass nodes so it covers ``type_tree``.

    Missing positions are filled with Pass subtrees. Positions the condition
    has beyond ``type_tree`` are kept. Nothing is ever removed.
    """
    if condition is None:
        return pass_node_for(type_tree)

    if is_logical(condition):
        children = [extend_with_pass_nodes(c, type_tree) for c in condition.children]
        return condition.with_children(children)

    if not is_complex(condition) or condition.param_type != type_tree.param_type:
        return condition

    positional = [c for c in condition.children if not is_global_allowance(c)]
    tail = [c for c in condition.children if is_global_allowance(c)]

    if condition.param_type == ParameterType.ARRAY:
        if not type_tree.children:
            return condition
        element = type_tree.children[0]
        padded = [extend_with_pass_nodes(c, element) for c in positional]
    else:
        padded = [
            extend_with_pass_nodes(
                positional[i] if i < len(positional) else None, child_tree
            )
            for i, child_tree in enumerate(type_tree.children)
        ]
        padded.extend(positional[len(padded):])

    return condition.with_children(padded + tail)


def pass_node_for(type_tree: TypeTree) -> Condition:
    """Build a Pass subtree describing ``type_tree``."""
    if type_tree.param_type == ParameterType.NONE:
        raise InvariantViolation(
            "cannot build a Pass node for an untyped position",
            stage="pad_to_match_type_tree",
        )
    return Condition(
        param_type=type_tree.param_type,
        operator=Operator.PASS,
        children=tuple(pass_node_for(child) for child in type_tree.children),
    )

