"""Tests for tree-sitter Go parser wrapper."""

import logging
from pathlib import Path

from nilseeker.parser import create_parser, get_go_language, parse_bytes


def test_get_go_language_returns_language():
    """get_go_language() returns a tree-sitter Language object."""
    lang = get_go_language()
    assert lang is not None
    assert lang


def test_create_parser_returns_parser():
    """create_parser() returns a configured Parser."""
    parser = create_parser()
    assert parser is not None
    assert parser.language is not None


def test_parse_bytes_success(caplog):
    """Parsing valid Go source succeeds and logs."""
    source = b"package main\n\nfunc main() {}\n"
    parser = create_parser()
    with caplog.at_level(logging.DEBUG):
        tree = parse_bytes(source, parser=parser)
    assert tree is not None
    assert not tree.root_node.has_error
    assert tree.root_node.type == "source_file"
    assert "Parse succeeded" in caplog.text


def test_parse_bytes_invalid_go_logs_failure(caplog):
    """Parsing invalid Go logs a warning and still returns a tree."""
    source = b"package main\n\nfunc main( {\n"
    with caplog.at_level(logging.WARNING):
        tree = parse_bytes(source)
    assert tree is not None
    assert tree.root_node.has_error
    assert "Parse completed with errors" in caplog.text


def test_parse_sample_go():
    """The bundled Go sample parses without errors."""
    sample_path = Path(__file__).parent / "sample.go"
    assert sample_path.exists(), "tests/sample.go must exist"
    tree = parse_bytes(sample_path.read_bytes())
    assert not tree.root_node.has_error
    assert tree.root_node.type == "source_file"


def test_parse_bytes_columns_are_bytes():
    """Columns count UTF-8 bytes, not characters."""
    source = 'package main\n\nvar s = "é"; var p *int\n'.encode()
    tree = parse_bytes(source)
    second = tree.root_node.named_children[-1]
    assert second.type == "var_declaration"
    # `var s = "é"; ` is 13 characters but 14 bytes
    assert second.start_point == (2, 14)
