# Nil-check tracking: recognize `x != nil` / `nil != x` in if conditions and
# remember x as checked for the rest of the run.

from __future__ import annotations

import logging
from typing import Optional

from tree_sitter import Node as TSNode

from nilseeker.context import FileContext, get_source_span

logger = logging.getLogger(__name__)

# Names believed non-nil. Flat for the whole unit: entries are only ever set to
# True, never removed, and are not tied to the block that established them.
CheckedVars = dict[str, bool]


def is_nil_literal(context: FileContext, node: Optional[TSNode]) -> bool:
    """True for the predeclared `nil`."""
    if node is None:
        return False
    if node.type == "nil":
        return True
    return node.type == "identifier" and get_source_span(context, node) == "nil"


def is_variable(context: FileContext, node: Optional[TSNode]) -> bool:
    """True for a plain identifier other than `nil`."""
    return node is not None and node.type == "identifier" and not is_nil_literal(context, node)


def guarded_name(context: FileContext, condition: Optional[TSNode]) -> Optional[str]:
    """
    Return the variable name guarded by `condition`, or None.

    Only `x != nil` and `nil != x` count. `!(x == nil)`, `x != nil && ok`,
    `(x != nil)`, helper predicates and type assertions do not.
    """
    if condition is None or condition.type != "binary_expression":
        return None
    operator = condition.child_by_field_name("operator")
    if operator is None or operator.type != "!=":
        return None
    left = condition.child_by_field_name("left")
    right = condition.child_by_field_name("right")

    ident: Optional[TSNode] = None
    if is_nil_literal(context, left) and is_variable(context, right):
        ident = right
    if is_nil_literal(context, right) and is_variable(context, left):
        ident = left
    if ident is None:
        return None
    return get_source_span(context, ident)


def track_nil_checks(context: FileContext, node: TSNode, checked_vars: CheckedVars) -> Optional[str]:
    """Mark the variable guarded by an if_statement's condition. Body and else are not inspected."""
    name = guarded_name(context, node.child_by_field_name("condition"))
    if name is not None:
        checked_vars[name] = True
        logger.debug("Nil check on %s at line %d", name, node.start_point[0] + 1)
    return name
