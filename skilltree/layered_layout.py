"""Layered (Sugiyama-style) layout for prerequisite graphs.

Phases:
  1. Rank assignment    longest path from any source
  2. Ordering in ranks  median heuristic with alternating sweeps
  3. Coordinates        rank on one screen axis, order on the other

Rank and order never depend on orientation; orientation only decides which
screen axis each of them is mapped to. Everything is deterministic, so the same
input always lays out to the same positions.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Sequence, Set, Tuple

import networkx as nx
import numpy as np

from .errors import CyclicDependencyError, InvalidOrientationError
from .models import (
    HORIZONTAL,
    ORIENTATIONS,
    VERTICAL,
    GraphNode,
    ResolvedEdge,
    SkillGraph,
)


logger = logging.getLogger(__name__)

DUMMY_PREFIX = "__dummy_"


@dataclass(frozen=True)
class LayoutConfig:
    """Node size and spacing for coordinate assignment."""

    node_width: float = 160.0
    node_height: float = 80.0
    nodesep: float = 50.0  # gap between neighbours in the same rank
    ranksep: float = 150.0  # gap between consecutive ranks
    max_sweeps: int = 24


def orientation_for_viewport(viewport_width: float, breakpoint: float = 768) -> str:
    """Top-to-bottom on narrow viewports, left-to-right otherwise."""
    return VERTICAL if viewport_width < breakpoint else HORIZONTAL


def _build_digraph(node_ids: Sequence[str], edges: Iterable[ResolvedEdge]) -> nx.DiGraph:
    G = nx.DiGraph()
    G.add_nodes_from(node_ids)
    for edge in edges:
        if edge.source_id not in G or edge.target_id not in G:
            logger.warning("Dropping edge with unknown endpoint: %s", edge.key)
            continue
        G.add_edge(edge.source_id, edge.target_id)
    return G


def assign_ranks(G: nx.DiGraph) -> Dict[str, int]:
    """rank(t) = max(rank(s) + 1 for each edge s->t), 0 for sources."""
    try:
        topo = list(nx.topological_sort(G))
    except nx.NetworkXUnfeasible:
        cycle = [u for u, _ in nx.find_cycle(G)]
        raise CyclicDependencyError(cycle)

    ranks: Dict[str, int] = {}
    for node in topo:
        ranks[node] = max((ranks[p] + 1 for p in G.predecessors(node)), default=0)
    return ranks


def _dummy_name(G: nx.DiGraph, taken: Set[str], edge_index: int, step: int) -> str:
    """Generated id that collides with neither a real node nor another dummy."""
    name = f"{DUMMY_PREFIX}{edge_index}_{step}"
    suffix = 0
    while name in G or name in taken:
        suffix += 1
        name = f"{DUMMY_PREFIX}{edge_index}_{step}_{suffix}"
    return name


def insert_dummy_nodes(
    G: nx.DiGraph, ranks: Dict[str, int]
) -> Tuple[nx.DiGraph, Dict[str, int], Set[str]]:
    """
    Split edges spanning several ranks so every edge joins adjacent ranks.

    Returns the augmented graph, ranks for real and dummy nodes, and the set of
    dummy ids. Real ids are opaque, so dummies are told apart by membership in
    that set and never by their name.
    """
    augmented = nx.DiGraph()
    augmented.add_nodes_from(G.nodes)
    layers = dict(ranks)
    dummies: Set[str] = set()

    for edge_index, (src, tgt) in enumerate(G.edges()):
        span = layers[tgt] - layers[src]
        if span <= 1:
            augmented.add_edge(src, tgt)
            continue

        previous = src
        for step in range(1, span):
            dummy = _dummy_name(G, dummies, edge_index, step)
            dummies.add(dummy)
            layers[dummy] = layers[src] + step
            augmented.add_edge(previous, dummy)
            previous = dummy
        augmented.add_edge(previous, tgt)

    return augmented, layers, dummies


def count_crossings(ordering: List[List[str]], G: nx.DiGraph) -> int:
    """Count pairwise edge inversions between consecutive ranks."""
    total = 0
    for r in range(len(ordering) - 1):
        lower = {node: i for i, node in enumerate(ordering[r + 1])}
        segments = []
        for i, node in enumerate(ordering[r]):
            for succ in G.successors(node):
                if succ in lower:
                    segments.append((i, lower[succ]))
        for a in range(len(segments)):
            for b in range(a + 1, len(segments)):
                (s1, t1), (s2, t2) = segments[a], segments[b]
                if (s1 - s2) * (t1 - t2) < 0:
                    total += 1
    return total


def _sort_rank(
    rank_nodes: List[str], neighbours: Dict[str, List[str]], positions: Dict[str, int]
) -> List[str]:
    """Reorder one rank by the median (then mean) of neighbour positions."""
    keys = {}
    for current, node in enumerate(rank_nodes):
        adjacent = [positions[n] for n in neighbours[node] if n in positions]
        if adjacent:
            keys[node] = (float(np.median(adjacent)), float(np.mean(adjacent)), current)
        else:
            # Nodes with no neighbours in the adjacent rank hold their slot
            keys[node] = (float(current), float(current), current)
    return sorted(rank_nodes, key=lambda n: keys[n])


def order_within_ranks(
    G: nx.DiGraph,
    layers: Dict[str, int],
    input_order: Sequence[str],
    max_sweeps: int = 24,
) -> List[List[str]]:
    """
    Order nodes inside each rank to reduce edge crossings.

    Starts from input order (dummy nodes after real ones), then alternates
    downward and upward median sweeps until the order stops changing or the
    sweep budget runs out. The ordering with the fewest crossings wins; ties
    keep the earlier one.
    """
    rank_count = max(layers.values(), default=-1) + 1
    ordering: List[List[str]] = [[] for _ in range(rank_count)]
    seen = set()
    real = set(input_order)
    for node in list(input_order) + sorted(n for n in layers if n not in real):
        if node in layers and node not in seen:
            ordering[layers[node]].append(node)
            seen.add(node)

    predecessors = {n: list(G.predecessors(n)) for n in G.nodes}
    successors = {n: list(G.successors(n)) for n in G.nodes}

    best = [list(rank) for rank in ordering]
    best_crossings = count_crossings(best, G)
    unchanged = 0

    for sweep in range(max_sweeps):
        # Stable once a downward and an upward sweep both leave it alone
        if best_crossings == 0 or unchanged >= 2:
            break
        previous = [list(rank) for rank in ordering]
        if sweep % 2 == 0:
            for r in range(1, rank_count):
                positions = {n: i for i, n in enumerate(ordering[r - 1])}
                ordering[r] = _sort_rank(ordering[r], predecessors, positions)
        else:
            for r in range(rank_count - 2, -1, -1):
                positions = {n: i for i, n in enumerate(ordering[r + 1])}
                ordering[r] = _sort_rank(ordering[r], successors, positions)

        crossings = count_crossings(ordering, G)
        if crossings < best_crossings:
            best = [list(rank) for rank in ordering]
            best_crossings = crossings
        unchanged = unchanged + 1 if ordering == previous else 0

    return best


def _rank_offsets(count: int, extent: float, gap: float, span: float) -> np.ndarray:
    """Centers of ``count`` nodes laid along an axis and centered in ``span``."""
    used = count * extent + (count - 1) * gap
    start = (span - used) / 2
    return start + extent / 2 + np.arange(count) * (extent + gap)


class LayeredLayout:
    """
    Positions a SkillGraph with a rank-based hierarchical layout.

    Vertical orientation maps rank to y (top to bottom) and order to x;
    horizontal maps rank to x (left to right) and order to y.
    """

    def __init__(self, config: LayoutConfig = LayoutConfig()):
        self.config = config

    def _axis_extents(self, orientation: str) -> Tuple[float, float]:
        """(rank-axis extent, order-axis extent) of one node."""
        if orientation == VERTICAL:
            return self.config.node_height, self.config.node_width
        return self.config.node_width, self.config.node_height

    def position(
        self, nodes: Sequence[GraphNode], edges: Sequence[ResolvedEdge], orientation: str
    ) -> List[GraphNode]:
        """Return positioned copies of ``nodes`` in their original order."""
        if orientation not in ORIENTATIONS:
            raise InvalidOrientationError(orientation)
        if not nodes:
            return []

        node_ids = [node.id for node in nodes]
        G = _build_digraph(node_ids, edges)
        ranks = assign_ranks(G)
        augmented, layers, dummies = insert_dummy_nodes(G, ranks)
        ordering = order_within_ranks(
            augmented, layers, node_ids, self.config.max_sweeps
        )
        real_ordering = [[n for n in rank if n not in dummies] for rank in ordering]

        rank_extent, order_extent = self._axis_extents(orientation)
        widest = max(len(rank) for rank in real_ordering)
        span = widest * order_extent + (widest - 1) * self.config.nodesep

        placed: Dict[str, Tuple[int, int, float, float]] = {}
        for rank, rank_nodes in enumerate(real_ordering):
            rank_coord = rank * (rank_extent + self.config.ranksep) + rank_extent / 2
            offsets = _rank_offsets(
                len(rank_nodes), order_extent, self.config.nodesep, span
            )
            for order, (node_id, order_coord) in enumerate(zip(rank_nodes, offsets)):
                placed[node_id] = (rank, order, rank_coord, float(order_coord))

        positioned = []
        for node in nodes:
            rank, order, rank_coord, order_coord = placed[node.id]
            if orientation == VERTICAL:
                x, y = order_coord, rank_coord
            else:
                x, y = rank_coord, order_coord
            positioned.append(
                replace(
                    node,
                    rank=rank,
                    order=order,
                    x=float(x),
                    y=float(y),
                    width=self.config.node_width,
                    height=self.config.node_height,
                )
            )
        return positioned

    def layout(self, graph: SkillGraph, orientation: str) -> SkillGraph:
        """Positioned copy of ``graph``; the node collection keeps its order."""
        return replace(
            graph,
            nodes=self.position(graph.nodes, graph.edges, orientation),
            edges=list(graph.edges),
            orientation=orientation,
        )


def layout(
    nodes: Sequence[GraphNode],
    edges: Sequence[ResolvedEdge],
    orientation: str = HORIZONTAL,
    node_size: Tuple[float, float] = (160.0, 80.0),
    spacing: Tuple[float, float] = (50.0, 150.0),
) -> List[GraphNode]:
    """Functional entry point: ``spacing`` is ``(nodesep, ranksep)``."""
    config = LayoutConfig(
        node_width=node_size[0],
        node_height=node_size[1],
        nodesep=spacing[0],
        ranksep=spacing[1],
    )
    return LayeredLayout(config).position(nodes, edges, orientation)
