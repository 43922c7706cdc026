"""OR push-down.

Factors an Or of near-identical branches into a single branch carrying an
Or only at the one position where the branches differ (the hinge)::

    Or(Matches(a, x, c), Matches(a, y, c))  ->  Matches(a, Or(x, y), c)
"""

from typing import Callable

from scopekit.core.logging import get_logger

from .exceptions import InvariantViolation
from .model import Condition, Operator, ParameterType

logger = get_logger(__name__)


def push_down_or(
    condition: Condition,
    normalize: Callable[[Condition], Condition] | None = None,
) -> Condition:
    """Push an Or node down to the single position where its branches differ.

    Args:
        condition: Node to rewrite. Anything but an Or is returned as is.
        normalize: Applied to the rewritten node, so that Or/And nodes
            introduced at the hinge get flattened and sorted.

    Returns:
        The rewritten node, or ``condition`` itself when there is no valid
        hinge.

    Raises:
        InvariantViolation: If the Or has fewer than two branches.
    """
    if condition.operator != Operator.OR:
        return condition

    children = condition.children
    if len(children) < 2:
        logger.error("Or with fewer than two branches reached push-down", node=repr(condition))
        raise InvariantViolation(
            "Or must have more than one child", stage="push_down_or", condition=condition
        )

    if len({c.param_type for c in children}) != 1:
        logger.debug("Push-down refused", reason="mixed param types")
        return condition

    # alternation over array elements never collapses
    if children[0].param_type == ParameterType.ARRAY:
        logger.debug("Push-down refused", reason="array branches")
        return condition

    if all(c.operator == Operator.MATCHES for c in children):
        hinge_indices = _find_matches_hinge_indices(children)
    elif all(c.operator == Operator.AND for c in children):
        hinge_indices = _find_and_hinge_indices(children)
    else:
        logger.debug("Push-down refused", reason="branches are not uniformly And or Matches")
        return condition

    if hinge_indices is None:
        logger.debug("Push-down refused", reason="no single hinge")
        return condition

    first = children[0]
    hinge = hinge_indices[0]
    alternatives = Condition(
        param_type=ParameterType.NONE,
        operator=Operator.OR,
        children=tuple(c.children[i] for c, i in zip(children, hinge_indices)),
    )
    rewritten = first.with_children(
        alternatives if i == hinge else child for i, child in enumerate(first.children)
    )
    logger.debug(
        "Pushed down Or",
        operator=first.operator.name,
        hinge=hinge,
        branches=len(children),
    )

    return normalize(rewritten) if normalize else rewritten


def _find_matches_hinge_indices(conditions: tuple[Condition, ...]) -> list[int] | None:
    """Find the one position at which all Matches branches differ.

    Every branch is compared to the first one position by position, so
    the same value at different positions counts as two differences.
    """
    first, *others = conditions
    left = first.children

    hinge: int | None = None
    for other in others:
        right = other.children
        for i in range(max(len(left), len(right))):
            left_id = left[i].id if i < len(left) else None
            right_id = right[i].id if i < len(right) else None
            if left_id == right_id:
                continue
            if hinge is None:
                hinge = i
            elif hinge != i:
                return None

    if hinge is None:
        return None

    # a missing position cannot carry an Or branch
    if any(hinge >= len(c.children) for c in conditions):
        return None

    return [hinge] * len(conditions)


def _find_and_hinge_indices(conditions: tuple[Condition, ...]) -> list[int] | None:
    """Find, per And branch, the index of its one child not shared by all others.

    And children form a set, so the differing child may sit at a different
    position in each branch. Every branch must have exactly one such child.
    """
    all_ids = [[c.id for c in condition.children] for condition in conditions]
    first_ids, *rest_ids = all_ids
    common = set(first_ids).intersection(*rest_ids)

    unique_ids = [[i for i in ids if i not in common] for ids in all_ids]
    if not all(len(unique) == 1 for unique in unique_ids):
        return None

    return [ids.index(unique[0]) for ids, unique in zip(all_ids, unique_ids)]
