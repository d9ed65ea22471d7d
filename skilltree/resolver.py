"""Resolve free-text prerequisite references to trick ids.

A reference may be an exact trick name, a trick id, or a misspelled name typed in
by hand. Resolution tries those in that order and gives up rather than guess when
the closest name is too far away.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Set, Tuple

import numpy as np

from .models import TrickRecord


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FuzzyMatchConfig:
    """Thresholds for accepting the closest name as a match.

    A candidate at edit distance ``d`` from a normalized reference of length ``n``
    is accepted when ``d <= max_distance`` or ``d / (n + 1) < max_ratio``.
    """

    max_distance: int = 2
    max_ratio: float = 0.2

    def accepts(self, distance: int, ref_length: int) -> bool:
        return (
            distance <= self.max_distance
            or distance / (ref_length + 1) < self.max_ratio
        )


def normalize_name(text: str) -> str:
    """Lowercase, collapse whitespace runs to one space, trim."""
    return " ".join(text.lower().split())


def levenshtein(a: str, b: str) -> int:
    """Edit distance with unit cost insert/delete/substitute."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = np.arange(len(b) + 1, dtype=np.int64)
    for i, char_a in enumerate(a, start=1):
        current = np.empty_like(previous)
        current[0] = i
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current[j] = min(
                previous[j] + 1,  # deletion
                current[j - 1] + 1,  # insertion
                previous[j - 1] + cost,  # substitution
            )
        previous = current
    return int(previous[-1])


@dataclass
class ResolverIndex:
    """Name and id lookups for one category's tricks."""

    names: Dict[str, str] = field(default_factory=dict)
    ids: Set[str] = field(default_factory=set)

    @classmethod
    def from_tricks(cls, tricks: Iterable[TrickRecord]) -> "ResolverIndex":
        index = cls()
        for trick in tricks:
            index.ids.add(trick.id)
            # First-seen name wins on duplicates
            index.names.setdefault(normalize_name(trick.name), trick.id)
        return index

    def closest_name(self, normalized_ref: str) -> Tuple[Optional[str], float]:
        """Return the indexed name nearest to ``normalized_ref`` and its distance.

        Ties keep the earliest indexed name.
        """
        best_name = None
        best_distance = float("inf")
        for name in self.names:
            distance = levenshtein(name, normalized_ref)
            if distance < best_distance:
                best_name, best_distance = name, distance
        return best_name, best_distance


def resolve(
    ref: str,
    index: ResolverIndex,
    config: FuzzyMatchConfig = FuzzyMatchConfig(),
) -> Optional[str]:
    """Map a raw prerequisite reference to a trick id, or None if unresolvable."""
    normalized = normalize_name(ref)
    if not normalized:
        return None

    trick_id = index.names.get(normalized)
    if trick_id is not None:
        return trick_id

    trimmed = ref.strip()
    if trimmed in index.ids:
        logger.debug("Matched prerequisite as direct id: %r", trimmed)
        return trimmed

    best_name, distance = index.closest_name(normalized)
    if best_name is not None and config.accepts(int(distance), len(normalized)):
        logger.debug(
            "Fuzzy matched %r to %r with distance %d", ref, best_name, distance
        )
        return index.names[best_name]

    return None
