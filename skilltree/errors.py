"""Error taxonomy for the skill tree engine.

Exceptions are raised inside the engine and converted to ``Result`` objects at
every public operation, so callers branch on ``result.ok`` instead of catching.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, Sequence, TypeVar


T = TypeVar("T")

UNRESOLVED_REFERENCE = "unresolved_reference"
DROPPED_EDGE = "dropped_edge"


class SkillTreeError(Exception):
    """Base exception for skill tree operations."""
    pass


class CategoryNotFoundError(SkillTreeError):
    """Raised when a category id or slug is not in the category list."""
    def __init__(self, category_id: str):
        self.category_id = category_id
        super().__init__(f"Category not found: {category_id}")


class TrickNotFoundError(SkillTreeError):
    """Raised when a trick id is not part of the active graph."""
    def __init__(self, trick_id: str):
        self.trick_id = trick_id
        super().__init__(f"Trick not found: {trick_id}")


class LoadError(SkillTreeError):
    """Raised when the upstream category/trick fetch fails."""
    def __init__(self, category_id: str, reason: str = ""):
        self.category_id = category_id
        self.reason = reason
        message = f"Failed to load categories or tricks for '{category_id}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class CyclicDependencyError(SkillTreeError):
    """Raised when prerequisite edges form a cycle and cannot be ranked."""
    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        path = " -> ".join(self.cycle + self.cycle[:1])
        super().__init__(f"Cyclic prerequisite dependency: {path}")


class InvalidOrientationError(SkillTreeError, ValueError):
    """Raised when a layout orientation is neither vertical nor horizontal."""
    def __init__(self, orientation: str):
        self.orientation = orientation
        super().__init__(f"Unknown orientation: {orientation!r}")


class PersistenceError(SkillTreeError):
    """Raised when a completion write is rejected by the store."""
    def __init__(self, trick_id: str, value: bool, reason: str = ""):
        self.trick_id = trick_id
        self.value = value
        self.reason = reason
        message = f"Failed to update trick status for '{trick_id}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class SessionStateError(SkillTreeError):
    """Raised when an operation is not valid in the session's current state."""
    def __init__(self, state: str, operation: str):
        self.state = state
        self.operation = operation
        super().__init__(f"Cannot {operation} while session is {state}")


@dataclass(frozen=True)
class StructuralWarning:
    """Non-fatal problem found while building a graph."""

    kind: str
    trick_id: str
    ref: str
    message: str


@dataclass
class Result(Generic[T]):
    """Success/failure outcome of a public engine operation."""

    value: Optional[T] = None
    error: Optional[SkillTreeError] = None
    warnings: List[StructuralWarning] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None, warnings=None) -> "Result":
        return cls(value=value, warnings=list(warnings or []))

    @classmethod
    def failure(cls, error: SkillTreeError, warnings=None) -> "Result":
        return cls(error=error, warnings=list(warnings or []))
