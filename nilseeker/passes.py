# Prerequisite passes: results a rule needs before it runs, computed once per unit
# and cached on the FileContext (context.results), like go/analysis ResultOf.

from __future__ import annotations

import logging
from typing import Any, Callable

from nilseeker.context import FileContext
from nilseeker.inspector import Inspector
from nilseeker.types import TypeInfo

logger = logging.getLogger(__name__)


def _inspect(context: FileContext) -> Inspector:
    return Inspector(context.root_node)


def _types(context: FileContext) -> TypeInfo:
    return TypeInfo(context)


PREREQUISITES: dict[str, Callable[[FileContext], Any]] = {
    "inspect": _inspect,
    "types": _types,
}


def result_of(context: FileContext, name: str) -> Any:
    """
    Return the result of prerequisite pass `name` for this unit, building it once.

    Raises:
        KeyError: if no prerequisite with that name is registered.
    """
    if name in context.results:
        return context.results[name]
    if name not in PREREQUISITES:
        raise KeyError(f"Unknown prerequisite pass: {name!r}")
    logger.debug("Running prerequisite %r for %s", name, context.path)
    result = PREREQUISITES[name](context)
    context.results[name] = result
    return result
