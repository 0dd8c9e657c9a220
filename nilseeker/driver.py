from __future__ import annotations

"""
Host-side analysis driver: run the enabled rules over a set of Go files.

Each file is one independent run: its own FileContext, its own prerequisite
results and its own rule state. A rule that raises on one file is logged and
the remaining files are still analyzed.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

from nilseeker.config import Config, get_enabled_rules
from nilseeker.context import FileContext, create_context
from nilseeker.findings.models import Finding
from nilseeker.parser import create_parser
from nilseeker.passes import result_of
from nilseeker.rules.base import Rule

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Files that were analyzed and everything reported on them, in order."""

    files: List[Path] = field(default_factory=list)
    findings: List[Finding] = field(default_factory=list)


def run_rule(
    rule: Rule,
    context: FileContext,
    config: Optional[Config],
    sink: Optional[Callable[[Finding], Any]] = None,
) -> list[Finding]:
    """Build the rule's prerequisites for this unit, then run it with sink."""
    for name in rule.requires:
        result_of(context, name)
    findings = rule.run(context, config, sink=sink)
    logger.debug("Rule %s reported %d finding(s) on %s", rule.id, len(findings), context.path)
    return findings


def analyze_paths(
    paths: Sequence[Path],
    config: Config,
    on_finding: Optional[Callable[[Finding], Any]] = None,
) -> AnalysisResult:
    """
    Analyze each path with every enabled rule.

    on_finding, if given, receives each finding the moment a rule reports it,
    while the rule is still walking the file. Findings reported before a rule
    fails are kept.
    """
    rules = list(get_enabled_rules(config))
    parser = create_parser()
    result = AnalysisResult()

    def deliver(finding: Finding) -> None:
        result.findings.append(finding)
        if on_finding is not None:
            on_finding(finding)

    for path in paths:
        ctx = create_context(path, parser=parser)
        if ctx is None:
            # unreadable; already logged by create_context
            continue
        result.files.append(path)
        for rule in rules:
            try:
                run_rule(rule, ctx, config, sink=deliver)
            except Exception:
                logger.exception("Rule %s failed on %s", rule.id, path)

    logger.info(
        "Analyzed %d file(s): %d finding(s)",
        len(result.files),
        len(result.findings),
    )
    return result
