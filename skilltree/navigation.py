import logging
from dataclasses import dataclass
from typing import AbstractSet, FrozenSet, Iterable, Optional, Sequence, Tuple

from .models import ViewportIntent


logger = logging.getLogger(__name__)

FIT = "fit"
CENTER = "center"


@dataclass(frozen=True)
class ViewportConfig:
    """Padding and animation timing for viewport intents."""

    center_padding: float = 0.6
    center_duration_ms: int = 1000
    fit_padding_desktop: float = 5.0
    fit_padding_mobile: float = 2.0
    fit_duration_ms: int = 800
    mobile_breakpoint: int = 768


@dataclass(frozen=True)
class ToggleIntent:
    """Pending write produced by an optimistic toggle."""

    trick_id: str
    value: bool
    previous: bool


class CompletionState:
    """The set of trick ids the current user can perform."""

    def __init__(self, completed: Iterable[str] = ()):
        self._completed = set(completed)

    def __contains__(self, trick_id: str) -> bool:
        return trick_id in self._completed

    def __len__(self) -> int:
        return len(self._completed)

    @property
    def completed(self) -> FrozenSet[str]:
        return frozenset(self._completed)

    def reset(self, completed: Iterable[str] = ()) -> None:
        self._completed = set(completed)

    def toggle(self, trick_id: str) -> ToggleIntent:
        """Flip membership immediately and describe the write to persist."""
        previous = trick_id in self._completed
        self._set(trick_id, not previous)
        return ToggleIntent(trick_id=trick_id, value=not previous, previous=previous)

    def rollback(self, intent: ToggleIntent) -> None:
        """Undo one failed toggle; other tricks are left untouched."""
        self._set(intent.trick_id, intent.previous)

    def _set(self, trick_id: str, value: bool) -> None:
        if value:
            self._completed.add(trick_id)
        else:
            self._completed.discard(trick_id)


class NavigationController:
    """
    Cyclic "next unlearned trick" navigation over the published node order.

    The controller never looks at layout internals: callers hand it the node
    order exactly as the positioned node collection lists it, together with the
    current completion set, whenever either changes.
    """

    def __init__(self, config: ViewportConfig = ViewportConfig(), is_mobile: bool = False):
        self.config = config
        self.is_mobile = is_mobile
        self._node_order: Tuple[str, ...] = ()
        self._incomplete: Tuple[str, ...] = ()
        self._completed_count = 0
        self.focus_index = 0
        self.initial_focus_done = False

    def activate(self) -> None:
        """Start a fresh category view; autofocus may run again."""
        self._node_order = ()
        self._incomplete = ()
        self._completed_count = 0
        self.focus_index = 0
        self.initial_focus_done = False

    def update(self, node_order: Sequence[str], completion: AbstractSet[str]) -> None:
        """Recompute the incomplete order and clamp the focus index."""
        self._node_order = tuple(node_order)
        self._incomplete = tuple(n for n in self._node_order if n not in completion)
        self._completed_count = len(self._node_order) - len(self._incomplete)

        if not self._incomplete:
            self.focus_index = 0
        elif self.focus_index >= len(self._incomplete):
            self.focus_index = len(self._incomplete) - 1

    def incomplete_order(self) -> Tuple[str, ...]:
        """Ids of incomplete nodes, in render order."""
        return self._incomplete

    @property
    def focused_node_id(self) -> Optional[str]:
        if not self._incomplete:
            return None
        return self._incomplete[self.focus_index]

    @property
    def progress(self) -> Tuple[int, int]:
        """(completed, total) over the current node collection."""
        return self._completed_count, len(self._node_order)

    def _center_intent(self) -> ViewportIntent:
        return ViewportIntent(
            kind=CENTER,
            node_id=self.focused_node_id,
            padding=self.config.center_padding,
            duration_ms=self.config.center_duration_ms,
        )

    def focus_next(self) -> Optional[ViewportIntent]:
        if not self._incomplete:
            return None
        self.focus_index = (self.focus_index + 1) % len(self._incomplete)
        return self._center_intent()

    def focus_previous(self) -> Optional[ViewportIntent]:
        if not self._incomplete:
            return None
        self.focus_index = (self.focus_index - 1) % len(self._incomplete)
        return self._center_intent()

    def auto_focus_initial(self) -> Optional[ViewportIntent]:
        """
        Fit the viewport to the first incomplete node, once per activation.

        With every node completed the whole graph is fitted instead. An empty
        node collection is a no-op and leaves autofocus pending.
        """
        if self.initial_focus_done or not self._node_order:
            return None

        padding = (
            self.config.fit_padding_mobile
            if self.is_mobile
            else self.config.fit_padding_desktop
        )
        self.initial_focus_done = True
        self.focus_index = 0
        target = self._incomplete[0] if self._incomplete else None
        logger.debug("Initial focus on %s", target or "whole graph")
        return ViewportIntent(
            kind=FIT,
            node_id=target,
            padding=padding,
            duration_ms=self.config.fit_duration_ms,
        )
