# Per-file analysis context: one Go compilation unit (path, source, syntax tree)
# plus the cache of prerequisite pass results computed for it.
# Unreadable files are logged and skipped; files with syntax errors still get a
# context, and rules run over whatever tree-sitter recovered.

import logging
from pathlib import Path
from typing import Any, Optional

from tree_sitter import Node as TSNode
from tree_sitter import Parser, Tree

from nilseeker.inspector import walk
from nilseeker.parser import create_parser, parse_bytes

logger = logging.getLogger(__name__)

FUNCTION_NODE_TYPES = frozenset({"function_declaration", "method_declaration"})


def count_tree_stats(root: TSNode) -> tuple[int, int]:
    """Return (total node count, function/method declaration count) for the tree."""
    nodes = 0
    functions = 0
    for node in walk(root):
        nodes += 1
        if node.type in FUNCTION_NODE_TYPES:
            functions += 1
    return nodes, functions


class FileContext:
    """
    Per-unit state for one analysis run: path, raw source bytes, and tree.

    ``source`` is kept as bytes because tree-sitter node ranges are byte
    offsets; text is decoded per node with get_source_span().
    ``has_parse_errors`` mirrors ``tree.root_node.has_error``.
    ``results`` holds prerequisite pass results (see nilseeker.passes), keyed
    by pass name. It belongs to this unit only and is never shared.
    """

    def __init__(
        self,
        path: Path,
        source: bytes,
        tree: Tree,
        *,
        has_parse_errors: bool = False,
    ) -> None:
        self.path = path
        self.source = source
        self.tree = tree
        self.has_parse_errors = has_parse_errors
        self.results: dict[str, Any] = {}

    @property
    def root_node(self) -> TSNode:
        """Convenience access to the tree root (source_file)."""
        return self.tree.root_node


def get_source_span(context: FileContext, node: TSNode) -> str:
    """
    Return the substring of context.source for the given node's byte range.

    Decodes with errors="replace" so bad UTF-8 does not crash.
    """
    return context.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def get_line_col(node: TSNode, one_based: bool = True) -> tuple[int, int]:
    """
    Return (line, column) for the node's start position.

    Tree-sitter uses 0-based (row, col) with byte columns, so a tab counts as
    one column and a multi-byte rune as several, which is what go/token
    reports too. If one_based=True (default), returns 1-based line and
    column, as go vet prints them.
    """
    row, col = node.start_point
    if one_based:
        return row + 1, col + 1
    return row, col


def create_context(
    path: Path,
    parser: Optional[Parser] = None,
) -> Optional[FileContext]:
    """
    Read a Go file and parse it into a FileContext.

    - Unreadable file (permission, missing): returns None and logs error.
    - Malformed Go (syntax errors): still returns a FileContext with the tree
      and sets has_parse_errors=True; logs a warning.
    - Success: returns FileContext and logs node and function counts.
    """
    if parser is None:
        parser = create_parser()

    try:
        source = path.read_bytes()
    except OSError as e:
        logger.error("Failed to read file %s: %s", path, e)
        return None

    tree = parse_bytes(source, parser=parser)
    has_errors = tree.root_node.has_error
    if has_errors:
        logger.warning("File %s parsed with syntax errors; tree may be incomplete", path)

    node_count, func_count = count_tree_stats(tree.root_node)
    logger.info(
        "Parsed %s: %d nodes, %d function(s)%s",
        path,
        node_count,
        func_count,
        " (with parse errors)" if has_errors else "",
    )

    return FileContext(
        path=path,
        source=source,
        tree=tree,
        has_parse_errors=has_errors,
    )
