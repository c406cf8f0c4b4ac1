"""Review comment data model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ReviewComment:
    """A reviewer annotation on an inclusive, 1-based line range."""

    id: int
    file: str
    start_line: int
    end_line: int
    code_context: str
    comment: str
