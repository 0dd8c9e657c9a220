"""Tests for Finding/Location models and the diagnostic emitter."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from nilseeker.context import FileContext
from nilseeker.findings.emitter import DiagnosticEmitter
from nilseeker.findings.models import Finding, Location
from nilseeker.inspector import Inspector
from nilseeker.parser import create_parser, parse_bytes

SOURCE = b"package main\n\nfunc f(p *T) {\n    _ = p.x\n}\n"


def _ctx() -> FileContext:
    tree = parse_bytes(SOURCE, parser=create_parser())
    return FileContext(path=Path("emit.go"), source=SOURCE, tree=tree)


def _selector(ctx: FileContext):
    return next(Inspector(ctx.root_node).nodes(("selector_expression",)))


def test_location_rejects_zero_line():
    with pytest.raises(ValidationError):
        Location(path=Path("a.go"), line=0, column=1)


def test_finding_format_plain():
    finding = Finding(
        rule_id="nilseeker",
        message="explicit dereference of possibly nil pointer: p",
        location=Location(path=Path("a.go"), line=3, column=7),
    )
    assert finding.format_plain() == "a.go:3:7: explicit dereference of possibly nil pointer: p"


def test_finding_is_immutable():
    finding = Finding(
        rule_id="nilseeker",
        message="m",
        location=Location(path=Path("a.go"), line=1, column=1),
    )
    with pytest.raises(ValidationError):
        finding.message = "other"


def test_report_hands_finding_to_sink_immediately():
    ctx = _ctx()
    received: list[Finding] = []
    emitter = DiagnosticEmitter(ctx, "nilseeker", received.append)
    node = _selector(ctx)

    first = emitter.report(node, "first")
    assert received == [first]
    second = emitter.report(node, "first")
    assert received == [first, second]

    loc = first.location
    assert loc.path == Path("emit.go")
    assert (loc.line, loc.column) == (4, 9)
    assert (loc.end_line, loc.end_column) == (4, 12)
    assert loc.snippet == "p.x"
    assert first.rule_id == "nilseeker"


def test_reportf_formats_message():
    ctx = _ctx()
    received: list[Finding] = []
    emitter = DiagnosticEmitter(ctx, "nilseeker", received.append)
    node = _selector(ctx)
    emitter.reportf(node, "indexing potentially nil %s: %s", "map", "m")
    emitter.reportf(node, "100% literal")
    assert [f.message for f in received] == ["indexing potentially nil map: m", "100% literal"]
