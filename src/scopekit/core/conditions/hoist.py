"""Hoisting logical nodes out of Matches.

The inverse of OR push-down: ``Matches(a, Or(x, y))`` becomes
``Or(Matches(a, x), Matches(a, y))``. Fully hoisted trees spell out every
independently satisfiable path at the top, which is the shape subtraction
works best on.
"""

from scopekit.core.logging import get_logger

from .model import Condition, Operator, ParameterType
from .normalize import normalize_condition

logger = get_logger(__name__)

HOISTABLE_OPERATORS = frozenset({Operator.AND, Operator.OR})

Path = tuple[int, ...]


def hoist_condition(condition: Condition) -> Condition:
    """Lift And/Or nodes above their Matches parents until none is left to lift.

    The tree is normalized without push-down between steps, so that a lift
    is never undone.
    """
    while True:
        condition = normalize_condition(condition, push_down=False)

        for path in _all_paths(condition):
            hoisted = _try_hoist_node(condition, path)
            if hoisted is not None:
                logger.debug("Hoisted logical node", path=list(path))
                condition = hoisted
                break
        else:
            return condition


def _try_hoist_node(root: Condition, path: Path) -> Condition | None:
    if not path:
        return None

    target = _node_at_path(root, path)
    if target.param_type != ParameterType.NONE or target.operator not in HOISTABLE_OPERATORS:
        return None

    parent_path = path[:-1]
    parent = _node_at_path(root, parent_path)
    if parent.operator != Operator.MATCHES:
        return None

    index = path[-1]
    branches = tuple(
        parent.with_children(
            branch if i == index else child for i, child in enumerate(parent.children)
        )
        for branch in target.children
    )
    lifted = Condition(
        param_type=ParameterType.NONE, operator=target.operator, children=branches
    )
    return _replace_node(root, parent_path, lifted)


def _replace_node(root: Condition, path: Path, replacement: Condition) -> Condition:
    if not path:
        return replacement
    index, *rest = path
    child = _replace_node(root.children[index], tuple(rest), replacement)
    return root.with_children(
        child if i == index else c for i, c in enumerate(root.children)
    )


def _node_at_path(root: Condition, path: Path) -> Condition:
    node = root
    for index in path:
        node = node.children[index]
    return node


def _all_paths(root: Condition) -> list[Path]:
    """Paths of every node, deepest and rightmost first."""
    paths: list[Path] = []

    def visit(node: Condition, path: Path) -> None:
        paths.append(path)
        for i, child in enumerate(node.children):
            visit(child, path + (i,))

    visit(root, ())
    paths.reverse()
    return paths
