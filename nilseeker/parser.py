# Tree-sitter Go grammar setup: turn Go source bytes into a concrete syntax tree.
#
# Go sources are UTF-8 and tree-sitter works on bytes, so node offsets and
# columns are byte positions, the same unit go/token reports. A file with
# syntax errors still parses: tree-sitter inserts ERROR/MISSING nodes and
# sets has_error on the affected ancestors instead of failing.

import logging
from typing import Optional

import tree_sitter
from tree_sitter import Language
from tree_sitter_go import language as _go_language_capsule

logger = logging.getLogger(__name__)

# tree-sitter-go ships its grammar as a PyCapsule; Language wraps it once per process
_GO_LANGUAGE = Language(_go_language_capsule())


def get_go_language() -> Language:
    """Return the shared tree-sitter Language for Go."""
    return _GO_LANGUAGE


def create_parser() -> tree_sitter.Parser:
    """
    Create a Parser bound to the Go grammar.

    Parsers are cheap but stateful; the driver creates one and reuses it for
    every file of a run.
    """
    return tree_sitter.Parser(_GO_LANGUAGE)


def parse_bytes(
    source: bytes,
    parser: Optional[tree_sitter.Parser] = None,
) -> tree_sitter.Tree:
    """
    Parse one Go compilation unit.

    Args:
        source: raw file contents. Not decoded first, so invalid UTF-8 in
            string literals or comments does not stop the parse.
        parser: parser to reuse; a new one is created if None.

    Returns:
        The tree, always rooted at a ``source_file`` node. When the input is
        not valid Go, ``tree.root_node.has_error`` is True and a warning is
        logged; the rest of the tree is still usable.
    """
    if parser is None:
        parser = create_parser()
    tree = parser.parse(source)
    if tree.root_node.has_error:
        logger.warning(
            "Parse completed with errors: root=%s",
            tree.root_node.type,
        )
    else:
        logger.debug(
            "Parse succeeded: root=%s",
            tree.root_node.type,
        )
    return tree
