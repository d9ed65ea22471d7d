"""Skill tree view session for one category and one user.

The session owns every piece of mutable view state (tricks, completion set,
positioned graph, navigation cursor) and walks the view through
``EMPTY -> LOADING -> READY`` (or ``ERROR``). All public operations return
``Result`` objects; store failures never propagate as exceptions.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .errors import (
    InvalidOrientationError,
    LoadError,
    PersistenceError,
    Result,
    SessionStateError,
    SkillTreeError,
    TrickNotFoundError,
)
from .graph_builder import GraphBuilder, find_category
from .layered_layout import LayeredLayout, LayoutConfig
from .models import (
    HORIZONTAL,
    ORIENTATIONS,
    VERTICAL,
    Category,
    GraphNode,
    SkillGraph,
    TrickRecord,
    ViewportIntent,
)
from .navigation import CompletionState, NavigationController, ToggleIntent, ViewportConfig
from .resolver import FuzzyMatchConfig
from .store import TrickStore


logger = logging.getLogger(__name__)

LEARNED_MESSAGE = "Awesome! You learned a new trick! Keep it up!"
UNSAVED_MESSAGE = (
    "Awesome! You learned a new trick! Create an account to save your progress."
)
REMOVED_MESSAGE = "Trick removed from learned tricks"


class ViewState(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class ToggleOutcome:
    """What a toggle did, for the caller's notification layer."""

    trick_id: str
    completed: bool
    persisted: bool
    message: str


def display_title(slug: Optional[str]) -> str:
    """'freestyle-trampoline' -> 'Freestyle Trampoline Skill Tree'."""
    if not slug:
        return "Skill Tree"
    words = slug.replace("-", " ").split()
    return " ".join(word[:1].upper() + word[1:] for word in words) + " Skill Tree"


class SkillTreeSession:
    """
    Explicit lifecycle around the resolver, builder, layout and navigator.

    Call ``init(category_id, user_id)`` to activate a category and ``dispose()``
    to drop all state. Layout results are memoized per (tricks, orientation)
    since completion changes never move nodes.
    """

    def __init__(
        self,
        store: TrickStore,
        layout_config: LayoutConfig = LayoutConfig(),
        viewport_config: ViewportConfig = ViewportConfig(),
        fuzzy_config: FuzzyMatchConfig = FuzzyMatchConfig(),
    ):
        self.store = store
        self.fuzzy_config = fuzzy_config
        self.viewport_config = viewport_config
        self._layout = LayeredLayout(layout_config)
        self._positions: Dict[Tuple, Dict[str, GraphNode]] = {}
        self.completion = CompletionState()
        self.navigator = NavigationController(viewport_config)
        self._reset()

    def _reset(self) -> None:
        self.state = ViewState.EMPTY
        self.category: Optional[Category] = None
        self.category_key: Optional[str] = None
        self.user_id: Optional[str] = None
        self.orientation = HORIZONTAL
        self.tricks: Tuple[TrickRecord, ...] = ()
        self.graph: Optional[SkillGraph] = None
        self.warnings: List = []
        self.error: Optional[SkillTreeError] = None
        self._pending: List[ToggleIntent] = []
        self.completion.reset()
        self.navigator.activate()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(
        self,
        category_id: str,
        user_id: Optional[str] = None,
        orientation: str = HORIZONTAL,
    ) -> Result:
        """Load a category for a user and lay it out."""
        if orientation not in ORIENTATIONS:
            return Result.failure(InvalidOrientationError(orientation))

        # Positions are only reused within one loaded category
        self._positions.clear()
        self._reset()
        self.state = ViewState.LOADING
        self.category_key = category_id
        self.user_id = user_id
        self.orientation = orientation
        self.navigator.is_mobile = orientation == VERTICAL

        try:
            category = self._fetch_category(category_id)
            tricks = self.store.list_tricks(category.id)
            completed = (
                self.store.list_completed_trick_ids(user_id) if user_id else []
            )
        except SkillTreeError as exc:
            return self._fail(exc)
        except Exception as exc:
            logger.exception("Error fetching categories or tricks")
            return self._fail(LoadError(category_id, str(exc)))

        self.category = category
        self.tricks = tuple(tricks)
        self.completion.reset(completed)

        result = self._refresh()
        if not result.ok:
            return self._fail(result.error, result.warnings)
        self.state = ViewState.READY
        logger.info(
            "Skill tree ready for %s: %d tricks, %d edges, %d warnings",
            category.slug,
            len(self.graph.nodes),
            len(self.graph.edges),
            len(result.warnings),
        )
        return result

    def retry(self) -> Result:
        """Reload with the last category/user, the only way out of ERROR."""
        if self.category_key is None:
            return Result.failure(SessionStateError(self.state.value, "retry"))
        return self.init(self.category_key, self.user_id, self.orientation)

    def dispose(self) -> None:
        self._positions.clear()
        self._reset()

    def _fetch_category(self, key: str) -> Category:
        category = self.store.get_category_by_id(key)
        if category is None:
            category = find_category(self.store.list_categories(), key)
        return category

    def _fail(self, error: SkillTreeError, warnings=None) -> Result:
        logger.error("Skill tree unavailable: %s", error)
        self.state = ViewState.ERROR
        self.error = error
        self.graph = None
        self.navigator.update((), frozenset())
        return Result.failure(error, warnings)

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def _refresh(self) -> Result:
        """Rebuild the annotated graph and re-derive navigation."""
        builder = GraphBuilder([self.category], self.fuzzy_config)
        completed = self.completion.completed
        result = builder.build(self.tricks, completed, self.category.id)
        if not result.ok:
            return result

        try:
            graph = self._positioned(result.value)
        except SkillTreeError as exc:
            return Result.failure(exc, result.warnings)

        self.graph = graph
        self.warnings = result.warnings
        self.navigator.update(graph.node_order, completed)
        return Result.success(graph, result.warnings)

    def _positioned(self, graph: SkillGraph) -> SkillGraph:
        key = (self.tricks, self.orientation)
        cached = self._positions.get(key)
        if cached is None:
            positioned = self._layout.position(graph.nodes, graph.edges, self.orientation)
            cached = {node.id: node for node in positioned}
            self._positions[key] = cached

        nodes = [replace(cached[node.id], completed=node.completed) for node in graph.nodes]
        return replace(graph, nodes=nodes, orientation=self.orientation)

    def set_orientation(self, orientation: str) -> Result:
        if self.state != ViewState.READY:
            return Result.failure(SessionStateError(self.state.value, "change orientation"))
        if orientation not in ORIENTATIONS:
            return Result.failure(InvalidOrientationError(orientation))
        self.orientation = orientation
        self.navigator.is_mobile = orientation == VERTICAL
        return self._refresh()

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def toggle(self, trick_id: str) -> Result:
        """Flip a trick optimistically, persist it, and roll back on failure."""
        if self.state != ViewState.READY:
            return Result.failure(SessionStateError(self.state.value, "toggle"))
        if self.graph.node(trick_id) is None:
            return Result.failure(TrickNotFoundError(trick_id))

        intent = self.begin_toggle(trick_id)
        if self.user_id is None:
            self._pending.remove(intent)
            message = UNSAVED_MESSAGE if intent.value else REMOVED_MESSAGE
            return Result.success(
                ToggleOutcome(trick_id, intent.value, persisted=False, message=message)
            )

        reason = ""
        try:
            succeeded = bool(self.store.set_completed(self.user_id, trick_id, intent.value))
        except Exception as exc:
            logger.exception("Failed to toggle can-do status for %s", trick_id)
            succeeded, reason = False, str(exc)
        return self.settle_toggle(intent, succeeded, reason)

    def begin_toggle(self, trick_id: str) -> ToggleIntent:
        """Apply the local flip now; the returned intent is settled later."""
        intent = self.completion.toggle(trick_id)
        self._pending.append(intent)
        self._refresh()
        return intent

    def settle_toggle(
        self, intent: ToggleIntent, succeeded: bool, reason: str = ""
    ) -> Result:
        """Finish a pending toggle. Failure reverts only that trick."""
        if intent not in self._pending:
            return Result.failure(SessionStateError(self.state.value, "settle a stale toggle"))
        self._pending.remove(intent)

        if succeeded:
            message = LEARNED_MESSAGE if intent.value else REMOVED_MESSAGE
            return Result.success(
                ToggleOutcome(intent.trick_id, intent.value, persisted=True, message=message)
            )

        self.completion.rollback(intent)
        self._refresh()
        error = PersistenceError(intent.trick_id, intent.value, reason)
        logger.error("%s; local state rolled back", error)
        return Result.failure(error)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    @property
    def title(self) -> str:
        return display_title(self.category.slug if self.category else None)

    @property
    def progress(self) -> Tuple[int, int]:
        return self.navigator.progress

    def incomplete_order(self) -> Tuple[str, ...]:
        return self.navigator.incomplete_order()

    def focus_next(self) -> Optional[ViewportIntent]:
        return self.navigator.focus_next()

    def focus_previous(self) -> Optional[ViewportIntent]:
        return self.navigator.focus_previous()

    def auto_focus_initial(self) -> Optional[ViewportIntent]:
        if self.state != ViewState.READY:
            return None
        return self.navigator.auto_focus_initial()
