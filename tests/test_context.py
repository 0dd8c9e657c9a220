"""Tests for nilseeker.context: FileContext, create_context, node/function counts."""

from pathlib import Path

from nilseeker.context import (
    FileContext,
    count_tree_stats,
    create_context,
    get_line_col,
    get_source_span,
)
from nilseeker.parser import create_parser, parse_bytes


def test_count_tree_stats():
    parser = create_parser()
    tree = parse_bytes(b"package main\n\nfunc main() {}\n\nfunc (t T) M() {}\n", parser=parser)
    nodes, funcs = count_tree_stats(tree.root_node)
    assert nodes >= 1
    assert funcs == 2


def test_create_context_sample_go(tmp_path):
    go_file = tmp_path / "main.go"
    go_file.write_bytes(b"package main\n\nfunc main() {}\n")
    ctx = create_context(go_file)
    assert ctx is not None
    assert ctx.path == go_file
    assert ctx.source == b"package main\n\nfunc main() {}\n"
    assert ctx.root_node.type == "source_file"
    assert ctx.has_parse_errors is False
    assert ctx.results == {}


def test_create_context_nonexistent():
    assert create_context(Path("/nonexistent/file.go")) is None


def test_create_context_malformed_still_returns_context(tmp_path, caplog):
    go_file = tmp_path / "bad.go"
    go_file.write_bytes(b"package main\n\nfunc main( {\n")
    ctx = create_context(go_file)
    assert ctx is not None
    assert ctx.has_parse_errors is True
    assert "syntax errors" in caplog.text


def test_get_source_span():
    source = b"package main\n\nvar x = 42\n"
    tree = parse_bytes(source)
    ctx = FileContext(path=Path("x.go"), source=source, tree=tree)
    assert get_source_span(ctx, ctx.root_node).startswith("package main")


def test_get_line_col():
    tree = parse_bytes(b"package main\n\nvar x = 1\n")
    var_decl = tree.root_node.named_children[-1]
    assert get_line_col(var_decl) == (3, 1)
    assert get_line_col(var_decl, one_based=False) == (2, 0)


def test_create_context_deeply_nested_expression(tmp_path):
    go_file = tmp_path / "generated.go"
    chain = " + ".join(["1"] * 3000)
    go_file.write_bytes(f"package main\n\nvar total = {chain}\n\nfunc main() {{}}\n".encode())
    ctx = create_context(go_file)
    assert ctx is not None
    nodes, funcs = count_tree_stats(ctx.root_node)
    assert nodes > 3000
    assert funcs == 1
