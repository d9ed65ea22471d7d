"""Shared fixtures for skill tree tests."""

from pathlib import Path

import pytest

from skilltree.models import Category, TrickRecord
from skilltree.store import InMemoryTrickStore


DATA_DIR = Path(__file__).resolve().parents[1] / "data"


class FlakyStore(InMemoryTrickStore):
    """Store whose writes fail for selected trick ids."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.reject_ids = set()
        self.raise_ids = set()
        self.raise_on_list = False
        self.writes = []

    def list_tricks(self, category_id):
        if self.raise_on_list:
            raise ConnectionError("store unavailable")
        return super().list_tricks(category_id)

    def set_completed(self, user_id, trick_id, value):
        self.writes.append((user_id, trick_id, value))
        if trick_id in self.raise_ids:
            raise TimeoutError("write timed out")
        if trick_id in self.reject_ids:
            return False
        return super().set_completed(user_id, trick_id, value)


def trick(trick_id, name=None, refs=(), category_id="cat-1", level=None):
    return TrickRecord(
        id=trick_id,
        name=name or trick_id,
        category_id=category_id,
        prerequisite_refs=tuple(refs),
        difficulty_level=level,
    )


@pytest.fixture()
def scenario_tricks():
    """A (no prereqs), B <- "a", C <- "B", D <- "Bb" (typo)."""
    return [
        trick("A"),
        trick("B", refs=["a"]),
        trick("C", refs=["B"]),
        trick("D", refs=["Bb"]),
    ]


@pytest.fixture()
def category():
    return Category(id="cat-1", name="Trampoline", slug="trampoline", color="#123456")


@pytest.fixture()
def flaky_store(category):
    tricks = [
        trick("seat", "Seat Drop", level=1),
        trick("back", "Back Drop", refs=["Seat Drop"], level=2),
        trick("flip", "Back Flip", refs=["Back Drop"], level=4),
        trick("swivel", "Swivel Hips", refs=["seat drop"], level=3),
        trick("bounce", "Straight Bounce"),
    ]
    return FlakyStore(
        categories=[category],
        tricks=tricks,
        completions={"user-1": {"seat"}},
    )


@pytest.fixture()
def data_store():
    """Store loaded from the CSV files shipped in data/."""
    return InMemoryTrickStore.from_csv(
        str(DATA_DIR / "categories.csv"),
        str(DATA_DIR / "tricks.csv"),
        str(DATA_DIR / "completions.csv"),
    )
