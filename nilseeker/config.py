from __future__ import annotations

"""
Scanner configuration: which rules are enabled and which files they see.

The detector itself reads nothing from here; these settings belong to the
host side (file discovery and the CLI).
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from nilseeker.rules.base import Rule
from nilseeker.rules.nil_dereference import NilDereferenceRule


@dataclass
class Config:
    """
    Scanner configuration.

    include_tests mirrors the Go checker's -test flag (on by default).
    ignore_dirs=None means traversal.DEFAULT_IGNORE_DIRS.
    """

    rules: Sequence[Rule] = field(default_factory=list)
    include_tests: bool = True
    ignore_dirs: Optional[Set[str]] = None


def get_default_config() -> Config:
    """Return the default configuration with all implemented rules."""
    rules: List[Rule] = [
        NilDereferenceRule(),
    ]
    return Config(rules=rules)


def get_enabled_rules(config: Config | None = None) -> Sequence[Rule]:
    """Return the list of enabled rules from the given config (or default config)."""
    if config is None:
        config = get_default_config()
    return config.rules
