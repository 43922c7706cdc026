"""Condition subtraction.

Removes one independently satisfiable path (a fragment) from a condition,
leaving the smallest condition that still allows everything else. This is
OR push-down in reverse: where push-down factors an alternation in,
subtraction takes one branch of that alternation back out.

Subtraction never fails. When the fragment cannot be located the original
condition object is returned, so callers detect a no-op by identity.
"""

from scopekit.core.logging import get_logger

from .model import Condition, Operator

logger = get_logger(__name__)


def subtract_condition(condition: Condition, fragment: Condition) -> Condition | None:
    """Subtract ``fragment`` from ``condition``.

    Both trees are expected to be normalized.

    Returns:
        The remainder, ``None`` if nothing remains, or ``condition`` itself
        if the fragment could not be subtracted.
    """
    if condition.id == fragment.id:
        return None

    if condition.operator == Operator.OR:
        if fragment.operator == Operator.OR:
            return _subtract_or_from_or(condition, fragment)
        return _subtract_from_or(condition, fragment)

    if (
        condition.operator != fragment.operator
        or condition.param_type != fragment.param_type
        or not condition.children
        or len(condition.children) != len(fragment.children)
    ):
        return condition

    if condition.operator == Operator.AND:
        return _subtract_from_and(condition, fragment)
    if condition.operator == Operator.MATCHES:
        return _subtract_from_matches(condition, fragment)
    return condition


def can_subtract(condition: Condition, fragment: Condition) -> bool:
    """Check whether subtracting ``fragment`` changes ``condition``."""
    return subtract_condition(condition, fragment) is not condition


def _subtract_or_from_or(condition: Condition, fragment: Condition) -> Condition | None:
    """Remove every branch of ``fragment`` from ``condition``, all or nothing."""
    condition_ids = {c.id for c in condition.children}
    fragment_ids = {c.id for c in fragment.children}
    if not fragment_ids <= condition_ids:
        return condition

    remaining = [c for c in condition.children if c.id not in fragment_ids]
    logger.debug("Subtracted Or branches", removed=len(fragment_ids), remaining=len(remaining))
    return _collapse(condition, remaining)


def _subtract_from_or(condition: Condition, fragment: Condition) -> Condition | None:
    """Subtract ``fragment`` from every branch, dropping branches that vanish."""
    results = [subtract_condition(child, fragment) for child in condition.children]
    if all(r is c for r, c in zip(results, condition.children)):
        return condition

    remaining = [r for r in results if r is not None]
    logger.debug("Subtracted from Or", remaining=len(remaining))
    return _collapse(condition, remaining)


def _subtract_from_and(condition: Condition, fragment: Condition) -> Condition:
    condition_ids = [c.id for c in condition.children]
    fragment_ids = [c.id for c in fragment.children]

    condition_only = [i for i, id_ in enumerate(condition_ids) if id_ not in fragment_ids]
    fragment_only = [i for i, id_ in enumerate(fragment_ids) if id_ not in condition_ids]
    if len(condition_only) != 1 or len(fragment_only) != 1:
        return condition

    return _replace_at_hinge(
        condition, condition_only[0], fragment.children[fragment_only[0]]
    )


def _subtract_from_matches(condition: Condition, fragment: Condition) -> Condition:
    differing = [
        i
        for i, (child, other) in enumerate(zip(condition.children, fragment.children))
        if child.id != other.id
    ]
    if len(differing) != 1:
        return condition

    index = differing[0]
    return _replace_at_hinge(condition, index, fragment.children[index])


def _replace_at_hinge(condition: Condition, index: int, fragment: Condition) -> Condition:
    """Subtract at one child position; only a partial remainder is a valid result."""
    child = condition.children[index]
    remainder = subtract_condition(child, fragment)
    if remainder is None or remainder is child:
        return condition

    logger.debug("Subtracted at hinge", operator=condition.operator.name, hinge=index)
    return condition.with_children(
        remainder if i == index else c for i, c in enumerate(condition.children)
    )


def _collapse(condition: Condition, remaining: list[Condition]) -> Condition | None:
    if not remaining:
        return None
    if len(remaining) == 1:
        return remaining[0]
    return condition.with_children(remaining)
