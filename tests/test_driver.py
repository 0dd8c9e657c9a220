"""Tests for the host-side driver."""

import logging

from nilseeker.config import Config, get_default_config, get_enabled_rules
from nilseeker.driver import analyze_paths, run_rule
from nilseeker.context import create_context
from nilseeker.findings.emitter import DiagnosticEmitter
from nilseeker.rules.base import Rule
from nilseeker.rules.nil_dereference import NilDereferenceRule

UNGUARDED = b"package main\n\ntype T struct{ F int }\n\nfunc f(p *T) int {\n    return p.F\n}\n"
GUARDED = b"package main\n\ntype T struct{ F int }\n\nfunc f(p *T) int {\n    if p != nil {\n        return p.F\n    }\n    return 0\n}\n"


class _Boom(Rule):
    id = "boom"
    name = "Always fails"
    requires = ()

    def run(self, context, config, sink=None):
        raise RuntimeError("boom")


class _ReportsThenFails(Rule):
    id = "half"
    name = "Reports one finding, then fails"
    requires = ()

    def __init__(self, streamed):
        self.streamed = streamed
        self.delivered_before_return = None

    def run(self, context, config, sink=None):
        emitter = DiagnosticEmitter(context, self.id, sink)
        emitter.report(context.root_node, "first")
        self.delivered_before_return = len(self.streamed)
        raise RuntimeError("half")


def test_default_config():
    config = get_default_config()
    assert [r.id for r in get_enabled_rules(config)] == ["nilseeker"]
    assert config.include_tests is True
    assert config.ignore_dirs is None
    assert [r.id for r in get_enabled_rules()] == ["nilseeker"]


def test_run_rule_builds_prerequisites(tmp_path):
    path = tmp_path / "a.go"
    path.write_bytes(UNGUARDED)
    ctx = create_context(path)
    findings = run_rule(NilDereferenceRule(), ctx, None)
    assert set(ctx.results) == {"inspect", "types"}
    assert [f.message for f in findings] == ["potential nil pointer dereference: p may be nil"]


def test_analyze_paths_streams_findings(tmp_path):
    a = tmp_path / "a.go"
    b = tmp_path / "b.go"
    a.write_bytes(UNGUARDED)
    b.write_bytes(GUARDED)
    streamed: list = []
    result = analyze_paths([a, b], get_default_config(), on_finding=streamed.append)
    assert result.files == [a, b]
    assert len(result.findings) == 1
    assert streamed == result.findings
    assert result.findings[0].location.path == a


def test_guard_in_one_file_does_not_cover_another(tmp_path):
    a = tmp_path / "a.go"
    b = tmp_path / "b.go"
    a.write_bytes(GUARDED)
    b.write_bytes(UNGUARDED)
    result = analyze_paths([a, b], get_default_config())
    assert [f.location.path for f in result.findings] == [b]


def test_failing_rule_is_logged_and_run_continues(tmp_path, caplog):
    a = tmp_path / "a.go"
    a.write_bytes(UNGUARDED)
    config = Config(rules=[_Boom(), NilDereferenceRule()])
    with caplog.at_level(logging.ERROR):
        result = analyze_paths([a], config)
    assert "Rule boom failed" in caplog.text
    assert len(result.findings) == 1


def test_unreadable_file_skipped(tmp_path):
    result = analyze_paths([tmp_path / "missing.go"], get_default_config())
    assert result.files == []
    assert result.findings == []


def test_findings_stream_before_rule_returns(tmp_path):
    a = tmp_path / "a.go"
    a.write_bytes(UNGUARDED)
    streamed: list = []
    rule = _ReportsThenFails(streamed)
    result = analyze_paths([a], Config(rules=[rule]), on_finding=streamed.append)
    assert rule.delivered_before_return == 1
    assert [f.message for f in streamed] == ["first"]
    assert result.findings == streamed


def test_run_rule_passes_sink_through(tmp_path):
    path = tmp_path / "a.go"
    path.write_bytes(UNGUARDED)
    ctx = create_context(path)
    received: list = []
    findings = run_rule(NilDereferenceRule(), ctx, None, sink=received.append)
    assert received == findings
    assert len(received) == 1


def test_deeply_nested_expression_keeps_other_findings(tmp_path, caplog):
    """Generated code with a very long `+` chain still gets analyzed."""
    chain = " + ".join(["1"] * 1600)
    source = (
        "package main\n\n"
        "type T struct{ F int }\n\n"
        "func f() {\n"
        f"    x := {chain}\n"
        "    _ = x\n"
        "    var p *T\n"
        "    _ = p.F\n"
        "}\n"
    )
    a = tmp_path / "generated.go"
    a.write_text(source)
    with caplog.at_level(logging.ERROR):
        result = analyze_paths([a], get_default_config())
    assert "failed" not in caplog.text
    assert [f.message for f in result.findings] == [
        "potential nil pointer dereference: p may be nil"
    ]
    assert result.findings[0].location.line == 9
