"""fuzzypatch core: shared data models."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class LineType(Enum):
    CONTEXT = "context"
    ADD = "add"
    DELETE = "delete"


@dataclass(frozen=True)
class LineMetrics:
    """Nesting depth of (), [] and {} after scanning a line."""

    parentheses: int = 0
    square: int = 0
    curly: int = 0

    def is_trivial(self) -> bool:
        return self.parentheses == 0 and self.square == 0 and self.curly == 0


def measure_brackets(text: str, start: LineMetrics = LineMetrics()) -> LineMetrics:
    """Scan ``text`` left-to-right from ``start``; each counter is clamped at zero."""
    paren, square, curly = start.parentheses, start.square, start.curly
    for ch in text:
        if ch == "(":
            paren += 1
        elif ch == ")":
            paren = max(0, paren - 1)
        elif ch == "[":
            square += 1
        elif ch == "]":
            square = max(0, square - 1)
        elif ch == "{":
            curly += 1
        elif ch == "}":
            curly = max(0, curly - 1)
    return LineMetrics(paren, square, curly)


@dataclass(eq=False)
class LineRecord:
    """
    One line of a source, patch or new-version text.

    Records are owned by the list they were parsed into; ``previous``/``next``
    point at neighbors in that list and ``match`` points into the other
    sequence. Equality and hashing are by identity.

    ``metrics`` is the running bracket depth after this line. It is for
    diagnostics only (``str(record)`` in debug logs); linking measures each
    line on its own.
    """

    index: int
    text: Optional[str]
    kind: LineType = LineType.CONTEXT
    previous: Optional["LineRecord"] = field(default=None, repr=False)
    next: Optional["LineRecord"] = field(default=None, repr=False)
    match: Optional["LineRecord"] = field(default=None, repr=False)
    metrics: LineMetrics = field(default_factory=LineMetrics)

    def link(self, other: "LineRecord") -> None:
        self.match = other
        other.match = self

    def __str__(self) -> str:
        marker = {LineType.CONTEXT: " ", LineType.ADD: "+", LineType.DELETE: "-"}[self.kind]
        m = self.metrics
        return f"{self.index:>5}: {marker} {self.text} ({m.parentheses})[{m.square}]{{{m.curly}}}"


def chain(lines: List[LineRecord]) -> List[LineRecord]:
    """Set previous/next references along ``lines`` and return it."""
    for i, line in enumerate(lines):
        line.previous = lines[i - 1] if i > 0 else None
        line.next = lines[i + 1] if i < len(lines) - 1 else None
    return lines


def compute_metrics(lines: Iterable[LineRecord]) -> None:
    # Running depth across the whole sequence.
    depth = LineMetrics()
    for line in lines:
        if line.text is not None:
            depth = measure_brackets(line.text, depth)
        line.metrics = depth


class Severity(Enum):
    ERROR = "error"


@dataclass(frozen=True)
class ValidationError:
    message: str
    line: Optional[int] = None
    column: Optional[int] = None
    severity: Severity = Severity.ERROR


@dataclass
class ApplyResult:
    success: bool
    overall_message: str
    text: str = ""
    summary: Dict[str, Any] = field(default_factory=dict)
    logs: List[Dict[str, Any]] = field(default_factory=list)

    def add_log(self, level: str, message: str, **fields: Any) -> None:
        entry = {"ts": time.time(), "level": level, "message": message}
        entry.update(fields)
        self.logs.append(entry)
