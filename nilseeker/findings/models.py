# Pydantic data models for diagnostics: Finding and Location.

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class Location(BaseModel):
    """Where in the source a finding was reported (file, line, column)."""

    path: Path
    line: int = Field(..., ge=1, description="1-based line number")
    column: int = Field(..., ge=1, description="1-based column number")
    end_line: Optional[int] = Field(None, ge=1)
    end_column: Optional[int] = Field(None, ge=1)
    snippet: Optional[str] = None

    model_config = {"arbitrary_types_allowed": True, "frozen": True}


class Finding(BaseModel):
    """A single diagnostic reported by a rule (e.g. nil dereference at line 42)."""

    rule_id: str
    message: str
    location: Location

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    def format_plain(self) -> str:
        """Render as ``path:line:col: message``, the go vet layout."""
        loc = self.location
        return f"{loc.path}:{loc.line}:{loc.column}: {self.message}"
