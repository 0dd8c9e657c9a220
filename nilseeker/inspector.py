"""
Tree inspection: a node-type filtered preorder walk over one syntax tree.

Rules that only care about a handful of node types ride on an Inspector
instead of writing their own recursive walk. The Inspector is built once per
compilation unit by the "inspect" prerequisite (see nilseeker.passes).

Typical usage:
    inspector = Inspector(context.root_node)
    inspector.preorder(("selector_expression", "if_statement"), visit)
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator

from tree_sitter import Node as TSNode

logger = logging.getLogger(__name__)


def walk(node: TSNode) -> Iterator[TSNode]:
    """
    Yield node and every descendant in document order (DFS).

    Uses an explicit stack: generated Go (long `a + b + ...` chains, deep
    composite literals) nests deeper than the interpreter recursion limit.
    """
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


class Inspector:
    """Preorder traversal of a tree, restricted to a set of node types."""

    def __init__(self, root: TSNode) -> None:
        self.root = root

    def nodes(self, node_types: Iterable[str]) -> Iterator[TSNode]:
        """Yield the nodes whose type is in node_types, in preorder."""
        wanted = frozenset(node_types)
        for node in walk(self.root):
            if node.type in wanted:
                yield node

    def preorder(self, node_types: Iterable[str], fn: Callable[[TSNode], None]) -> int:
        """
        Call fn once for every node whose type is in node_types.

        Parents are visited before their children and siblings left to right,
        so fn sees nodes in source order. Returns the number of visited nodes.
        """
        visited = 0
        for node in self.nodes(node_types):
            fn(node)
            visited += 1
        logger.debug("Inspector visited %d node(s) under %s", visited, self.root.type)
        return visited
