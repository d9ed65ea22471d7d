from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import networkx as nx


DEFAULT_CATEGORY_COLOR = "#3b82f6"

VERTICAL = "vertical"
HORIZONTAL = "horizontal"
ORIENTATIONS = (VERTICAL, HORIZONTAL)


@dataclass(frozen=True)
class Category:
    """Data class for a trick category (one skill tree per category)."""

    id: str
    name: str
    slug: str
    color: Optional[str] = None


@dataclass(frozen=True)
class TrickRecord:
    """A trick as supplied by the data store. Read-only to the engine."""

    id: str
    name: str
    category_id: str
    prerequisite_refs: Tuple[str, ...] = ()
    difficulty_level: Optional[int] = None

    def __post_init__(self):
        # Lists from CSV/JSON rows become tuples so records stay hashable.
        object.__setattr__(self, "prerequisite_refs", tuple(self.prerequisite_refs))


@dataclass(frozen=True)
class ResolvedEdge:
    """Directed prerequisite edge, source must be learned before target."""

    source_id: str
    target_id: str
    satisfied: bool = False

    @property
    def key(self) -> str:
        return f"{self.source_id}->{self.target_id}"


@dataclass
class GraphNode:
    """A trick placed in the layered layout. x/y are the node center."""

    id: str
    label: str
    completed: bool = False
    difficulty_level: Optional[int] = None
    rank: int = 0
    order: int = 0
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def top_left(self) -> Tuple[float, float]:
        """Translate the center anchor to a top-left anchor."""
        return self.x - self.width / 2, self.y - self.height / 2

    def to_dict(self) -> Dict:
        left, top = self.top_left
        return {
            "id": self.id,
            "label": self.label,
            "completed": self.completed,
            "difficulty_level": self.difficulty_level,
            "rank": self.rank,
            "order": self.order,
            "x": self.x,
            "y": self.y,
            "left": left,
            "top": top,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class ViewportIntent:
    """Request for the rendering layer to move its viewport.

    ``kind`` is ``"fit"`` or ``"center"``. A ``node_id`` of None asks for the
    whole graph to be fitted.
    """

    kind: str
    node_id: Optional[str]
    padding: float
    duration_ms: int


@dataclass
class SkillGraph:
    """Node/edge collection for one category, positioned once laid out."""

    category: Optional[Category] = None
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[ResolvedEdge] = field(default_factory=list)
    orientation: Optional[str] = None

    @property
    def color(self) -> str:
        if self.category is not None and self.category.color:
            return self.category.color
        return DEFAULT_CATEGORY_COLOR

    @property
    def node_order(self) -> Tuple[str, ...]:
        """Published render order of the node collection."""
        return tuple(node.id for node in self.nodes)

    @property
    def is_positioned(self) -> bool:
        return self.orientation is not None

    def node(self, node_id: str) -> Optional[GraphNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_networkx(self) -> nx.DiGraph:
        G = nx.DiGraph()
        for node in self.nodes:
            G.add_node(node.id, label=node.label, completed=node.completed)
        for edge in self.edges:
            G.add_edge(edge.source_id, edge.target_id, satisfied=edge.satisfied)
        return G

    def to_dict(self) -> Dict:
        return {
            "category_id": self.category.id if self.category else None,
            "orientation": self.orientation,
            "nodes": [node.to_dict() for node in self.nodes],
            "links": [
                {
                    "source": edge.source_id,
                    "target": edge.target_id,
                    "satisfied": edge.satisfied,
                }
                for edge in self.edges
            ],
        }
