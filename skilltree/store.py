"""Data store collaborators.

The engine only talks to the ``TrickStore`` protocol. ``InMemoryTrickStore`` is a
complete implementation backed by plain lists, loadable from CSV files.
"""

import logging
from typing import Dict, Iterable, List, Optional, Protocol, Set

import pandas as pd

from .models import Category, TrickRecord


logger = logging.getLogger(__name__)

PREREQUISITE_SEPARATOR = ";"


class TrickStore(Protocol):
    """What the engine needs from the hosted data store."""

    def list_categories(self) -> List[Category]: ...

    def get_category_by_id(self, category_id: str) -> Optional[Category]: ...

    def list_tricks(self, category_id: str) -> List[TrickRecord]: ...

    def list_completed_trick_ids(self, user_id: str) -> List[str]: ...

    def set_completed(self, user_id: str, trick_id: str, value: bool) -> bool: ...


def difficulty_sort_key(trick: TrickRecord):
    """Ascending difficulty with unrated tricks first."""
    if trick.difficulty_level is None:
        return (0, 0)
    return (1, trick.difficulty_level)


class InMemoryTrickStore:
    """TrickStore over in-memory lists."""

    def __init__(
        self,
        categories: Iterable[Category] = (),
        tricks: Iterable[TrickRecord] = (),
        completions: Optional[Dict[str, Iterable[str]]] = None,
    ):
        self.categories = list(categories)
        self.tricks = list(tricks)
        self.completions: Dict[str, Set[str]] = {
            user: set(ids) for user, ids in (completions or {}).items()
        }

    def list_categories(self) -> List[Category]:
        return list(self.categories)

    def get_category_by_id(self, category_id: str) -> Optional[Category]:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def list_tricks(self, category_id: str) -> List[TrickRecord]:
        matching = [t for t in self.tricks if t.category_id == category_id]
        return sorted(matching, key=difficulty_sort_key)

    def list_completed_trick_ids(self, user_id: str) -> List[str]:
        return sorted(self.completions.get(user_id, set()))

    def set_completed(self, user_id: str, trick_id: str, value: bool) -> bool:
        completed = self.completions.setdefault(user_id, set())
        if value:
            completed.add(trick_id)
        else:
            completed.discard(trick_id)
        return True

    @classmethod
    def from_csv(
        cls,
        categories_path: str,
        tricks_path: str,
        completions_path: Optional[str] = None,
        encoding: str = "utf-8",
    ) -> "InMemoryTrickStore":
        """Load categories, tricks and optional user completions from CSV files."""
        categories_df = pd.read_csv(categories_path, dtype=str, encoding=encoding)
        tricks_df = pd.read_csv(tricks_path, dtype=str, encoding=encoding)

        categories = [
            Category(
                id=row["CATEGORY_ID"],
                name=row["CATEGORY_NAME"],
                slug=row["SLUG"],
                color=_optional(row.get("COLOR_HEX")),
            )
            for _, row in categories_df.iterrows()
        ]
        tricks = [trick_from_row(row) for _, row in tricks_df.iterrows()]

        completions: Dict[str, Set[str]] = {}
        if completions_path is not None:
            completions_df = pd.read_csv(completions_path, dtype=str, encoding=encoding)
            for user_id, group in completions_df.groupby("USER_ID"):
                completions[user_id] = set(group["TRICK_ID"])

        logger.info(
            "Loaded %d categories and %d tricks from CSV", len(categories), len(tricks)
        )
        return cls(categories, tricks, completions)


def _optional(value) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    value = str(value).strip()
    return value or None


def split_prerequisites(value) -> List[str]:
    """Split a PREREQUISITES cell; empty cells have no prerequisites."""
    text = _optional(value)
    if text is None:
        return []
    return [part for part in text.split(PREREQUISITE_SEPARATOR) if part.strip()]


def trick_from_row(row: pd.Series) -> TrickRecord:
    level = _optional(row.get("DIFFICULTY_LEVEL"))
    return TrickRecord(
        id=row["TRICK_ID"],
        name=row["TRICK_NAME"],
        category_id=row["CATEGORY_ID"],
        prerequisite_refs=tuple(split_prerequisites(row.get("PREREQUISITES"))),
        difficulty_level=int(float(level)) if level is not None else None,
    )
