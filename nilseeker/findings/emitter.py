# Diagnostic emission: turn (node, message) into a Finding and hand it to the sink at once.

from __future__ import annotations

import logging
from typing import Any, Callable

from tree_sitter import Node as TSNode

from nilseeker.context import FileContext, get_line_col, get_source_span
from nilseeker.findings.models import Finding, Location

logger = logging.getLogger(__name__)

Sink = Callable[[Finding], Any]


class DiagnosticEmitter:
    """
    Reports findings for one rule run over one FileContext.

    Every call to report() produces exactly one Finding, positioned at the
    start of the node, and passes it to sink before returning. Nothing is
    buffered, merged, or filtered.
    """

    def __init__(self, context: FileContext, rule_id: str, sink: Sink) -> None:
        self.context = context
        self.rule_id = rule_id
        self.sink = sink

    def report(self, node: TSNode, message: str) -> Finding:
        line, col = get_line_col(node)
        end_row, end_col = node.end_point
        finding = Finding(
            rule_id=self.rule_id,
            message=message,
            location=Location(
                path=self.context.path,
                line=line,
                column=col,
                end_line=end_row + 1,
                end_column=end_col + 1,
                snippet=get_source_span(self.context, node),
            ),
        )
        logger.debug("%s:%d:%d: %s", self.context.path, line, col, message)
        self.sink(finding)
        return finding

    def reportf(self, node: TSNode, fmt: str, *args: Any) -> Finding:
        """printf-style report(): reportf(node, "bad %s", name)."""
        return self.report(node, fmt % args if args else fmt)
