import logging
import threading
from typing import Dict, Optional, Tuple

import plotly.graph_objects as go
from dash import Input, Output, ctx
from dash.exceptions import PreventUpdate

from .figure import FigureBuilder
from .layered_layout import orientation_for_viewport
from .layout import AUTO_ORIENTATION
from .models import ViewportIntent
from .session import SkillTreeSession, ViewState


logger = logging.getLogger(__name__)

Rendered = Tuple[go.Figure, str, str, str]


class CallbackRegistrar:
    """
    Wires Dash inputs to a SkillTreeSession and renders its output.

    The viewer is single-user: every browser client drives the same session for
    the configured ``user_id``. Flask serves callbacks on several threads, so
    each event runs under ``self._lock`` and sees the session in a settled state.
    """

    def __init__(
        self,
        app,
        session: SkillTreeSession,
        figure_builder: FigureBuilder,
        user_id: Optional[str] = None,
    ):
        self.app = app
        self.session = session
        self.figure_builder = figure_builder
        self.user_id = user_id
        self._last_intent: Optional[ViewportIntent] = None
        self._lock = threading.Lock()

    def _extract_node_id(self, click_data: Optional[Dict]) -> Optional[str]:
        point = (click_data or {}).get("points", [{}])[0]
        node_id = point.get("customdata")
        return None if node_id in [None, "__background__", "RESET"] else node_id

    def _resolve_orientation(self, choice: Optional[str], viewport_width: Optional[float]) -> str:
        if choice in (None, AUTO_ORIENTATION):
            return orientation_for_viewport(
                viewport_width or 1280,
                self.session.viewport_config.mobile_breakpoint,
            )
        return choice

    def render(self, status: str = "") -> Rendered:
        session = self.session
        if session.state != ViewState.READY:
            message = str(session.error) if session.error else "No tricks loaded"
            return go.Figure(), session.title, "", message

        completed, total = session.progress
        figure = self.figure_builder.build_figure(
            session.graph,
            intent=self._last_intent,
            focused=session.navigator.focused_node_id,
        )
        if not status and session.warnings:
            status = f"{len(session.warnings)} prerequisite reference(s) could not be linked"
        if not status and total == 0:
            status = "No tricks found in this category."
        return figure, session.title, f"Completed: {completed} / {total}", status

    def on_view_change(
        self, category: Optional[str], orientation_choice: Optional[str], viewport_width=None
    ) -> Rendered:
        """Load a category, or re-orient the one already loaded."""
        if not category:
            raise PreventUpdate
        orientation = self._resolve_orientation(orientation_choice, viewport_width)
        session = self.session

        if session.state == ViewState.READY and session.category_key == category:
            if orientation != session.orientation:
                session.set_orientation(orientation)
            return self.render()

        result = session.init(category, self.user_id, orientation)
        if not result.ok:
            logger.warning("Could not load skill tree %s: %s", category, result.error)
            self._last_intent = None
            return self.render()
        self._last_intent = session.auto_focus_initial()
        return self.render()

    def on_navigate(self, forward: bool) -> Rendered:
        intent = self.session.focus_next() if forward else self.session.focus_previous()
        if intent is not None:
            self._last_intent = intent
        return self.render()

    def on_node_click(self, click_data: Optional[Dict]) -> Rendered:
        node_id = self._extract_node_id(click_data)
        if node_id is None:
            raise PreventUpdate
        result = self.session.toggle(node_id)
        if result.ok:
            return self.render(result.value.message)
        return self.render(str(result.error))

    def dispatch(
        self, triggered, category, orientation, viewport_width, click_data
    ) -> Rendered:
        """Route one Dash event to its handler while holding the session lock."""
        with self._lock:
            if triggered == "prev-button":
                return self.on_navigate(forward=False)
            if triggered == "next-button":
                return self.on_navigate(forward=True)
            if triggered == "skill-tree-graph":
                return self.on_node_click(click_data)
            return self.on_view_change(category, orientation, viewport_width)

    def register_callbacks(self):
        self.app.clientside_callback(
            "function(_) { return window.innerWidth; }",
            Output("viewport-width", "data"),
            Input("skill-tree-graph", "id"),
        )

        @self.app.callback(
            Output("skill-tree-graph", "figure"),
            Output("tree-title", "children"),
            Output("progress-text", "children"),
            Output("status-text", "children"),
            Input("category-selector", "value"),
            Input("orientation-toggle", "value"),
            Input("viewport-width", "data"),
            Input("prev-button", "n_clicks"),
            Input("next-button", "n_clicks"),
            Input("skill-tree-graph", "clickData"),
        )
        def update_tree(category, orientation, viewport_width, _prev, _next, click_data):
            return self.dispatch(
                ctx.triggered_id, category, orientation, viewport_width, click_data
            )
