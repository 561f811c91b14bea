"""Abstract base class for all emotional dimension scorers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

from prioritization.errors import InsufficientDataError
from prioritization.models import EmotionalDimension, clamp_score

# Score given to a sub-signal that was not measured.
NEUTRAL = 50.0


def ensure_exhaustive(table: dict[Any, Any], enum_cls: type[Enum]) -> dict[Any, Any]:
    """Fail at import time if *table* does not cover every member of *enum_cls*."""
    missing = [m.value for m in enum_cls if m not in table]
    if missing:
        raise TypeError(f"{enum_cls.__name__} lookup is missing {missing}")
    return table


@dataclass(frozen=True)
class DimensionScore:
    """A clamped dimension score plus how much of its input was measured.

    Attributes:
        value: Score in [0, 100].
        present: Counted sub-fields that were measured.
        counted: Counted sub-fields in total.
    """

    value: float
    present: int
    counted: int


class DimensionScorer(ABC):
    """Scores one emotional dimension from its factor section.

    The :class:`~prioritization.analyzer.EmotionalProfileAnalyzer` calls each
    scorer in turn.  Missing sub-fields are scored at :data:`NEUTRAL` (or half
    of their capped contribution) by the concrete scorer; this base class
    tracks how many were present so the analyzer can report confidence.

    Attributes:
        dimension: The dimension this scorer produces.
        counted_fields: Sub-fields that count toward confidence.
        optional_fields: Refinements that never count toward confidence.
    """

    dimension: EmotionalDimension
    counted_fields: tuple[str, ...] = ()
    optional_fields: tuple[str, ...] = ()

    def score(self, factors: Any) -> DimensionScore:
        """Return the clamped score for *factors*.

        Raises:
            InsufficientDataError: If no sub-field at all was measured.
        """
        present = sum(1 for name in self.counted_fields if getattr(factors, name) is not None)
        has_optional = any(getattr(factors, name) is not None for name in self.optional_fields)
        if present == 0 and not has_optional:
            raise InsufficientDataError(f"no {self.dimension.value} measurements")
        return DimensionScore(
            value=clamp_score(self._compute(factors)),
            present=present,
            counted=len(self.counted_fields),
        )

    @abstractmethod
    def _compute(self, factors: Any) -> float:
        """Return the unclamped score for *factors*."""
