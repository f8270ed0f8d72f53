"""Source positions and spans used by tokens, AST nodes and diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, order=True)
class Position:
    """A point in source text.

    ``line`` is 1-based, ``column`` is 0-based within the line and ``index``
    is the absolute 0-based offset into the source.
    """

    index: int
    line: int
    column: int

    def to_dict(self) -> dict[str, Any]:
        """Serialize the position to a JSON-compatible mapping."""
        return {"index": self.index, "line": self.line, "column": self.column}


@dataclass(frozen=True)
class SourceSpan:
    """Represents a half-open source range ``[start, end)``."""

    file: str
    start: Position
    end: Position

    @property
    def line(self) -> int:
        return self.start.line

    @property
    def column(self) -> int:
        return self.start.column

    def merge(self, other: SourceSpan) -> SourceSpan:
        """Return the span from the start of ``self`` to the end of ``other``."""
        return SourceSpan(file=self.file, start=self.start, end=other.end)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the span to a JSON-compatible mapping."""
        return {
            "file": self.file,
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
        }
