from typing import Dict, List

from dash import dcc, html

from .models import HORIZONTAL, VERTICAL
from .store import TrickStore


AUTO_ORIENTATION = "auto"


class LayoutBuilder:
    """
    Constructs the Dash layout for the skill tree viewer.

    The sidebar picks the category and orientation; the header carries the
    previous/next buttons that walk the unlearned tricks.
    """

    def __init__(self, store: TrickStore):
        self.store = store
        self.config = {
            "sidebar_width": "250px",
            "graph_height": "85vh",
        }

    def category_options(self) -> List[Dict[str, str]]:
        return [
            {"label": category.name, "value": category.slug}
            for category in self.store.list_categories()
        ]

    def create_layout(self) -> html.Div:
        return html.Div(
            children=[
                self._build_header(),
                self._build_main_area(),
                dcc.Store(id="viewport-width", data=1280),
            ],
            style={"height": "100vh", "display": "flex", "flexDirection": "column"},
        )

    def _build_header(self) -> html.Div:
        """Title flanked by previous/next unlearned trick buttons."""
        button_style = {
            "fontSize": "22px",
            "padding": "4px 12px",
            "border": "1px solid #ccc",
            "borderRadius": "6px",
            "backgroundColor": "#fff",
            "cursor": "pointer",
        }
        return html.Div(
            [
                html.Button(
                    "◀",
                    id="prev-button",
                    n_clicks=0,
                    title="Previous unlearned trick",
                    style=button_style,
                ),
                html.H2(
                    "Skill Tree",
                    id="tree-title",
                    style={"margin": "0 16px", "fontWeight": "600", "color": "#333"},
                ),
                html.Button(
                    "▶",
                    id="next-button",
                    n_clicks=0,
                    title="Next unlearned trick",
                    style=button_style,
                ),
            ],
            style={
                "display": "flex",
                "alignItems": "center",
                "justifyContent": "center",
                "marginTop": "12px",
                "marginBottom": "12px",
            },
        )

    def _build_main_area(self) -> html.Div:
        return html.Div(
            children=[self._build_sidebar(), self._build_graph_area()],
            style={
                "display": "flex",
                "flexDirection": "row",
                "width": "100%",
                "flex": 1,
            },
        )

    def _build_sidebar(self) -> html.Div:
        options = self.category_options()
        return html.Div(
            id="sidebar-container",
            children=[
                html.Div(
                    [
                        html.Label("Category:", className="sidebar-label"),
                        dcc.Dropdown(
                            id="category-selector",
                            options=options,
                            value=options[0]["value"] if options else None,
                            clearable=False,
                        ),
                    ],
                    className="control-group",
                ),
                html.Div(
                    [
                        html.Label("Orientation:", className="sidebar-label"),
                        dcc.RadioItems(
                            id="orientation-toggle",
                            options=[
                                {"label": " Auto", "value": AUTO_ORIENTATION},
                                {"label": " Left to right", "value": HORIZONTAL},
                                {"label": " Top to bottom", "value": VERTICAL},
                            ],
                            value=AUTO_ORIENTATION,
                        ),
                    ],
                    className="control-group",
                ),
                self._build_legend(),
            ],
            style={
                "width": self.config["sidebar_width"],
                "padding": "12px 16px",
                "borderRight": "1px solid #e0e0e0",
                "backgroundColor": "#fafafa",
                "flexShrink": 0,
            },
        )

    def _build_legend(self) -> html.Div:
        return html.Div(
            [
                html.Label("Legend", className="sidebar-label"),
                html.Div("Green: completed"),
                html.Div("White: not completed"),
                html.Div("Dashed: prerequisite still to learn"),
                html.Div(id="progress-text", style={"marginTop": "8px", "fontWeight": "600"}),
                html.Div(id="status-text", style={"marginTop": "8px", "color": "#b45309"}),
            ],
            className="control-group",
        )

    def _build_graph_area(self) -> html.Div:
        return html.Div(
            dcc.Graph(
                id="skill-tree-graph",
                config={"displayModeBar": False},
                style={"height": self.config["graph_height"]},
            ),
            style={"flex": 1, "padding": "8px"},
        )
