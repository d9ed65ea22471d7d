import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
import plotly.graph_objects as go

from .models import VERTICAL, GraphNode, SkillGraph, ViewportIntent


@dataclass
class FigureStyle:
    """Colours and stroke widths for the skill tree figure."""

    completed_fill: str = "#36b32b"
    completed_border: str = "#32792c"
    incomplete_fill: str = "#ffffff"
    focus_border: str = "#FFD700"
    satisfied_edge: str = "#22c55e"
    pending_edge: str = "#9ca3af"
    edge_width: float = 2.0
    corner_radius: float = 8.0
    max_line_length: int = 18
    curve_steepness: float = 12.0


class FigureBuilder:
    """
    Draws a positioned SkillGraph as a Plotly figure.

    Nodes are rounded rectangles anchored at their centers; edges are S-curves
    with arrowheads, solid green when satisfied and dashed grey otherwise. The
    screen y axis grows downward so vertical layouts read top to bottom.
    """

    def __init__(self, style: FigureStyle = FigureStyle()):
        self.style = style

    def _wrap_label(self, text: str) -> str:
        """Greedy word wrap joined with <br> for Plotly annotations."""
        lines: List[str] = []
        current = ""
        for word in text.split():
            candidate = f"{current} {word}" if current else word
            if len(candidate) <= self.style.max_line_length or not current:
                current = candidate
            else:
                lines.append(current)
                current = word
        if current:
            lines.append(current)
        return "<br>".join(lines) or text

    def _rounded_rect_path(
        self, x0: float, y0: float, x1: float, y1: float, r: float
    ) -> str:
        """Generate SVG path for rounded rectangle."""
        return (
            f"M{x0+r},{y0} H{x1-r} Q{x1},{y0} {x1},{y0+r} "
            f"V{y1-r} Q{x1},{y1} {x1-r},{y1} H{x0+r} Q{x0},{y1} {x0},{y1-r} "
            f"V{y0+r} Q{x0},{y0} {x0+r},{y0} Z"
        )

    def _generate_s_curve(
        self,
        source: GraphNode,
        target: GraphNode,
        vertical: bool,
        resolution: int = 40,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """S-curve leaving the source's far side and entering the target's near side."""
        t = np.linspace(0, 1, resolution)
        s = 1 / (1 + np.exp(-self.style.curve_steepness * (t - 0.5)))

        if vertical:
            x0, y0 = source.x, source.y + source.height / 2
            x1, y1 = target.x, target.y - target.height / 2
            return x0 + (x1 - x0) * s, y0 + (y1 - y0) * t

        x0, y0 = source.x + source.width / 2, source.y
        x1, y1 = target.x - target.width / 2, target.y
        return x0 + (x1 - x0) * t, y0 + (y1 - y0) * s

    def _create_arrow_shape(
        self, edge_x: np.ndarray, edge_y: np.ndarray, color: str
    ) -> Dict:
        """Triangular arrowhead aligned with the end of the curve."""
        if len(edge_x) < 2:
            return {}

        tip_x, tip_y = edge_x[-1], edge_y[-1]
        num_points = min(5, len(edge_x))
        base_x = np.mean(edge_x[-num_points:-1])
        base_y = np.mean(edge_y[-num_points:-1])

        dx, dy = tip_x - base_x, tip_y - base_y
        length = (dx**2 + dy**2) ** 0.5
        if length == 0:
            return {}
        dx, dy = dx / length, dy / length
        px, py = -dy, dx

        arrow_length, arrow_width = 14.0, 7.0
        bx, by = tip_x - dx * arrow_length, tip_y - dy * arrow_length
        return dict(
            type="path",
            path=(
                f"M {bx + px * arrow_width},{by + py * arrow_width} "
                f"L {tip_x},{tip_y} "
                f"L {bx - px * arrow_width},{by - py * arrow_width} Z"
            ),
            fillcolor=color,
            line=dict(color=color, width=1),
            layer="above",
        )

    def _create_edge_traces(
        self, graph: SkillGraph
    ) -> Tuple[List[go.Scatter], List[Dict]]:
        nodes = {node.id: node for node in graph.nodes}
        vertical = graph.orientation == VERTICAL
        traces, arrows = [], []

        for edge in graph.edges:
            source, target = nodes[edge.source_id], nodes[edge.target_id]
            edge_x, edge_y = self._generate_s_curve(source, target, vertical)
            color = self.style.satisfied_edge if edge.satisfied else self.style.pending_edge
            traces.append(
                go.Scatter(
                    x=edge_x,
                    y=edge_y,
                    mode="lines",
                    line=dict(
                        width=self.style.edge_width,
                        color=color,
                        dash="solid" if edge.satisfied else "dash",
                    ),
                    hoverinfo="text",
                    text=f"<b>{source.label}  ➔  {target.label}</b>",
                    showlegend=False,
                )
            )
            arrows.append(self._create_arrow_shape(edge_x, edge_y, color))

        return traces, [a for a in arrows if a]

    def _create_node_shapes_and_annotations(
        self, graph: SkillGraph, focused: Optional[str]
    ) -> Tuple[List[Dict], List[Dict]]:
        shapes, annotations = [], []
        for node in graph.nodes:
            x0, y0 = node.top_left
            x1, y1 = x0 + node.width, y0 + node.height

            if node.completed:
                fill, border = self.style.completed_fill, self.style.completed_border
            else:
                fill, border = self.style.incomplete_fill, graph.color
            if node.id == focused:
                border = self.style.focus_border

            shapes.append(
                dict(
                    type="path",
                    path=self._rounded_rect_path(x0, y0, x1, y1, self.style.corner_radius),
                    fillcolor=fill,
                    line=dict(color=border, width=3),
                    layer="above",
                )
            )
            annotations.append(
                dict(
                    x=node.x,
                    y=node.y,
                    text=self._wrap_label(node.label),
                    font=dict(
                        size=12,
                        color="white" if node.completed else "black",
                        family="Inter, sans-serif",
                    ),
                    showarrow=False,
                    yanchor="middle",
                )
            )
        return shapes, annotations

    def _create_interactive_node_trace(self, graph: SkillGraph) -> go.Scatter:
        """Transparent markers carrying node ids in customdata for click events."""
        return go.Scatter(
            x=[node.x for node in graph.nodes],
            y=[node.y for node in graph.nodes],
            mode="markers",
            text=[node.label for node in graph.nodes],
            customdata=[node.id for node in graph.nodes],
            hoverinfo="text",
            marker=dict(symbol="square", size=40, color="rgba(0,0,0,0)"),
            showlegend=False,
        )

    def graph_bounds(self, graph: SkillGraph) -> Tuple[float, float, float, float]:
        """(x_min, x_max, y_min, y_max) over all node rectangles."""
        if not graph.nodes:
            return 0.0, 1.0, 0.0, 1.0
        return (
            min(n.x - n.width / 2 for n in graph.nodes),
            max(n.x + n.width / 2 for n in graph.nodes),
            min(n.y - n.height / 2 for n in graph.nodes),
            max(n.y + n.height / 2 for n in graph.nodes),
        )

    def viewport_ranges(
        self, graph: SkillGraph, intent: Optional[ViewportIntent]
    ) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        """
        Translate a viewport intent into axis ranges.

        Padding is a multiple of the target's own size added on each side; a
        missing intent or a ``node_id`` of None frames the whole graph.
        """
        node = graph.node(intent.node_id) if intent and intent.node_id else None
        if node is None:
            x_min, x_max, y_min, y_max = self.graph_bounds(graph)
            padding = 0.05
        else:
            x_min, x_max = node.x - node.width / 2, node.x + node.width / 2
            y_min, y_max = node.y - node.height / 2, node.y + node.height / 2
            padding = intent.padding

        pad_x = (x_max - x_min) * padding
        pad_y = (y_max - y_min) * padding
        return (x_min - pad_x, x_max + pad_x), (y_min - pad_y, y_max + pad_y)

    def build_figure(
        self,
        graph: SkillGraph,
        intent: Optional[ViewportIntent] = None,
        focused: Optional[str] = None,
    ) -> go.Figure:
        """
        Build the complete Plotly figure for a positioned graph.

        Args:
            graph: Positioned SkillGraph
            intent: Viewport intent to frame, whole graph when None
            focused: Node id to outline as the current navigation focus

        Returns:
            Plotly Figure object
        """
        edge_traces, arrow_shapes = self._create_edge_traces(graph)
        node_shapes, node_annotations = self._create_node_shapes_and_annotations(
            graph, focused
        )
        interactive_trace = self._create_interactive_node_trace(graph)
        (x_min, x_max), (y_min, y_max) = self.viewport_ranges(graph, intent)

        fig = go.Figure(data=edge_traces + [interactive_trace])
        fig.update_layout(
            clickmode="event+select",
            datarevision=int(time.time() * 1000),
            transition=dict(duration=intent.duration_ms if intent else 0),
            margin=dict(l=20, r=20, t=20, b=20),
            plot_bgcolor="white",
            hovermode="closest",
            xaxis=dict(
                showgrid=False,
                zeroline=False,
                showticklabels=False,
                range=[x_min, x_max],
            ),
            yaxis=dict(
                showgrid=False,
                zeroline=False,
                showticklabels=False,
                # Screen coordinates: y grows downward
                range=[y_max, y_min],
                scaleanchor="x",
            ),
            shapes=node_shapes + arrow_shapes,
            annotations=node_annotations,
        )
        return fig
