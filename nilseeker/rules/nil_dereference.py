# Nil dereference detection: flag selectors, explicit dereferences and indexing
# of possibly nil pointers, slices and maps that no earlier `x != nil` guarded.

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from tree_sitter import Node as TSNode

from nilseeker.context import FileContext, get_source_span
from nilseeker.findings.emitter import DiagnosticEmitter
from nilseeker.findings.models import Finding
from nilseeker.rules.base import Rule
from nilseeker.rules.nil_checks import CheckedVars, is_variable, track_nil_checks
from nilseeker.types import Kind, TypeInfo

logger = logging.getLogger(__name__)

# Node types the rule visits. Go's `=` and `:=` are both assignments.
NODE_FILTER = (
    "selector_expression",  # field access / method value: obj.field, obj.Method()
    "unary_expression",  # explicit dereference: *ptr (other operators ignored)
    "index_expression",  # slice/map indexing: s[i], m[k]
    "call_expression",
    "assignment_statement",
    "short_var_declaration",
    "if_statement",  # nil checks
)


def check_selector_expr(
    context: FileContext,
    types: TypeInfo,
    emitter: DiagnosticEmitter,
    node: TSNode,
    checked_vars: CheckedVars,
) -> None:
    """Flag x.f when x has pointer type and is not a checked variable."""
    operand = node.child_by_field_name("operand")
    kind = types.underlying_kind(operand)
    if kind is None:
        return
    if kind is not Kind.POINTER:
        return

    if is_variable(context, operand):
        name = get_source_span(context, operand)
        if not checked_vars.get(name, False):
            emitter.reportf(node, "potential nil pointer dereference: %s may be nil", name)
    else:
        # call results, nested selectors and the like cannot be checked by name
        emitter.report(node, "potential nil pointer dereference in selector expression")


def check_star_expr(
    context: FileContext,
    types: TypeInfo,
    emitter: DiagnosticEmitter,
    node: TSNode,
    checked_vars: CheckedVars,
) -> None:
    """Flag *x unless x is a checked variable. The syntax already says x is a pointer."""
    operator = node.child_by_field_name("operator")
    if operator is None or operator.type != "*":
        return
    operand = node.child_by_field_name("operand")
    if is_variable(context, operand):
        name = get_source_span(context, operand)
        if not checked_vars.get(name, False):
            emitter.reportf(node, "explicit dereference of possibly nil pointer: %s", name)
    else:
        emitter.report(node, "explicit dereference of possibly nil pointer")


def check_index_expr(
    context: FileContext,
    types: TypeInfo,
    emitter: DiagnosticEmitter,
    node: TSNode,
    checked_vars: CheckedVars,
) -> None:
    """Flag s[i] / m[k] on a slice or map that is not a checked variable. Arrays are exempt."""
    operand = node.child_by_field_name("operand")
    kind = types.underlying_kind(operand)
    if kind not in (Kind.SLICE, Kind.MAP):
        return

    if is_variable(context, operand):
        name = get_source_span(context, operand)
        if not checked_vars.get(name, False):
            emitter.reportf(node, "indexing potentially nil %s: %s", kind.value, name)
    else:
        emitter.reportf(node, "indexing potentially nil %s", kind.value)


def ignore_node(
    context: FileContext,
    types: TypeInfo,
    emitter: DiagnosticEmitter,
    node: TSNode,
    checked_vars: CheckedVars,
) -> None:
    """Calls and assignments are visited but produce nothing."""
    return None


def check_if_stmt(
    context: FileContext,
    types: TypeInfo,
    emitter: DiagnosticEmitter,
    node: TSNode,
    checked_vars: CheckedVars,
) -> None:
    track_nil_checks(context, node, checked_vars)


Handler = Callable[[FileContext, TypeInfo, DiagnosticEmitter, TSNode, CheckedVars], None]

HANDLERS: dict[str, Handler] = {
    "selector_expression": check_selector_expr,
    "unary_expression": check_star_expr,
    "index_expression": check_index_expr,
    "call_expression": ignore_node,
    "assignment_statement": ignore_node,
    "short_var_declaration": ignore_node,
    "if_statement": check_if_stmt,
}


def visit_node(
    context: FileContext,
    types: TypeInfo,
    emitter: DiagnosticEmitter,
    node: TSNode,
    checked_vars: CheckedVars,
) -> None:
    """Route one visited node to its handler; unregistered types are ignored."""
    handler = HANDLERS.get(node.type, ignore_node)
    handler(context, types, emitter, node, checked_vars)


class NilDereferenceRule(Rule):
    """Flags likely nil dereferences not preceded by an `x != nil` check."""

    id = "nilseeker"
    name = "Potential nil dereference"
    doc = "Detects potential nil pointer dereferences"
    requires = ("inspect", "types")

    def run(
        self,
        context: Any,
        config: Any,
        sink: Optional[Callable[[Finding], Any]] = None,
    ) -> list[Any]:
        inspector = self.prerequisite(context, "inspect")
        types = self.prerequisite(context, "types")

        findings: list[Finding] = []

        def deliver(finding: Finding) -> None:
            findings.append(finding)
            if sink is not None:
                sink(finding)

        emitter = DiagnosticEmitter(context, self.id, deliver)

        # One flat set for the whole unit; no scoping and no control flow.
        checked_vars: CheckedVars = {}

        inspector.preorder(
            NODE_FILTER,
            lambda node: visit_node(context, types, emitter, node, checked_vars),
        )
        logger.debug(
            "%s: %d finding(s) in %s, %d checked name(s)",
            self.id,
            len(findings),
            context.path,
            len(checked_vars),
        )
        return findings
