# Rule interface (abstract base class): defines the contract all detectors implement.
# The host driver registers a rule by id, builds the prerequisites it lists in
# `requires`, then calls run() once per compilation unit.

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Sequence

from nilseeker.passes import result_of


class Rule(ABC):
    """
    Abstract base class for all analysis rules.

    Subclasses must define:
    - id: str — stable identifier (e.g. "nilseeker")
    - name: str — human-readable rule name
    - doc: str — one-line description
    - requires: Sequence[str] — prerequisite pass names (see nilseeker.passes)
    - run(context, config, sink=None) -> list[Finding] — analyze one unit and return findings

    A rule that cannot complete raises; the driver decides what to do with it.
    """

    id: str
    name: str
    doc: str = ""
    requires: Sequence[str] = ("inspect",)

    def prerequisite(self, context: Any, name: str) -> Any:
        """Result of a prerequisite pass this rule declared in `requires`."""
        if name not in self.requires:
            raise KeyError(f"Rule {self.id!r} does not require {name!r}")
        return result_of(context, name)

    @abstractmethod
    def run(
        self,
        context: Any,
        config: Any,
        sink: Optional[Callable[[Any], Any]] = None,
    ) -> list[Any]:
        """
        Analyze one unit and return any findings.

        Args:
            context: FileContext (path, source bytes, tree, prerequisite results).
            config: Config, or None when the rule is run directly.
            sink: If given, called with each Finding as soon as it is reported,
                before run() returns.

        Returns:
            List of Finding objects in the order they were reported.
        """
        ...
