"""Tests for the preorder node inspector."""

import logging

from nilseeker.context import get_source_span, FileContext
from nilseeker.inspector import Inspector, walk
from nilseeker.parser import create_parser, parse_bytes
from pathlib import Path


SOURCE = b"""package main

func f(a *A) {
    if a != nil {
        g(a.b.c)
    }
    h()
}
"""


def _ctx() -> FileContext:
    tree = parse_bytes(SOURCE, parser=create_parser())
    return FileContext(path=Path("inspect.go"), source=SOURCE, tree=tree)


def test_preorder_visits_filtered_nodes_in_document_order():
    ctx = _ctx()
    seen: list[tuple[str, str]] = []
    count = Inspector(ctx.root_node).preorder(
        ("if_statement", "call_expression", "selector_expression"),
        lambda n: seen.append((n.type, get_source_span(ctx, n).split("\n")[0])),
    )
    assert count == 5
    assert seen == [
        ("if_statement", "if a != nil {"),
        ("call_expression", "g(a.b.c)"),
        ("selector_expression", "a.b.c"),
        ("selector_expression", "a.b"),
        ("call_expression", "h()"),
    ]


def test_nodes_matches_preorder():
    ctx = _ctx()
    inspector = Inspector(ctx.root_node)
    visited: list = []
    inspector.preorder(["selector_expression"], visited.append)
    assert [n.start_byte for n in inspector.nodes(["selector_expression"])] == [
        n.start_byte for n in visited
    ]


def test_preorder_with_no_matching_types(caplog):
    ctx = _ctx()
    calls: list = []
    with caplog.at_level(logging.DEBUG, logger="nilseeker.inspector"):
        count = Inspector(ctx.root_node).preorder(("index_expression",), calls.append)
    assert count == 0
    assert calls == []
    assert "visited 0 node(s)" in caplog.text


def test_walk_handles_deep_trees():
    chain = " + ".join(["x"] * 5000)
    tree = parse_bytes(f"package main\n\nvar y = {chain}\n".encode())
    nodes = list(walk(tree.root_node))
    assert nodes[0].type == "source_file"
    assert sum(1 for n in nodes if n.type == "binary_expression") == 4999
