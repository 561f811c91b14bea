"""Exception taxonomy for the prioritization engine."""

from __future__ import annotations


class PrioritizationError(Exception):
    """Base class for all errors raised by the prioritization engine."""


class ValidationError(PrioritizationError, ValueError):
    """An input field is outside its declared range or enumeration.

    Raised synchronously when a request is built.  Values are never clamped
    on the way in.

    Args:
        field: Dotted name of the offending field.
        message: Human-readable description of the problem.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class InsufficientDataError(PrioritizationError):
    """A dimension scorer has no measurements at all for its section.

    Never surfaced to callers: the analyzer scores the dimension at its
    neutral midpoint and reports lower confidence instead.
    """


class TagConflictError(PrioritizationError):
    """Two sources assert contradictory tags in the same category.

    Never fatal: the aggregator keeps both tags, re-weights their
    confidences and records this error's message as an audit note.
    """

    def __init__(self, first: str, second: str, category: str) -> None:
        super().__init__(
            f"conflicting {category} tags {first!r} and {second!r}"
        )
        self.first = first
        self.second = second
        self.category = category
