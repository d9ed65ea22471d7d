import logging
from typing import AbstractSet, Dict, List, Optional, Sequence, Tuple

import networkx as nx

from .errors import (
    DROPPED_EDGE,
    UNRESOLVED_REFERENCE,
    CategoryNotFoundError,
    CyclicDependencyError,
    Result,
    SkillTreeError,
    StructuralWarning,
)
from .models import Category, GraphNode, ResolvedEdge, SkillGraph, TrickRecord
from .resolver import FuzzyMatchConfig, ResolverIndex, resolve


logger = logging.getLogger(__name__)


def find_category(categories: Sequence[Category], key: str) -> Category:
    """Look a category up by id, falling back to slug."""
    for category in categories:
        if category.id == key:
            return category
    for category in categories:
        if category.slug == key:
            return category
    raise CategoryNotFoundError(key)


class GraphBuilder:
    """
    Turns a flat trick list into a deduplicated prerequisite DAG.

    Prerequisite references are resolved through a per-category ResolverIndex.
    References that cannot be resolved, and references that point a trick at
    itself, are reported as StructuralWarnings and the graph is built without
    them. Edges whose endpoints are both completed are marked satisfied.
    """

    def __init__(
        self,
        categories: Optional[Sequence[Category]] = None,
        fuzzy_config: FuzzyMatchConfig = FuzzyMatchConfig(),
    ):
        self.categories = list(categories) if categories is not None else None
        self.fuzzy_config = fuzzy_config

    def build(
        self,
        tricks: Sequence[TrickRecord],
        completion: AbstractSet[str] = frozenset(),
        category_id: Optional[str] = None,
    ) -> Result:
        """
        Build the node/edge set for one category.

        Args:
            tricks: Trick records, in the order nodes should be published
            completion: Ids of tricks the user can already perform
            category_id: Category id or slug; required to be known when given

        Returns:
            Result wrapping a SkillGraph (unpositioned) plus any warnings
        """
        warnings: List[StructuralWarning] = []
        try:
            category = self._resolve_category(tricks, category_id)
            if category is not None:
                tricks = [t for t in tricks if t.category_id == category.id]
            nodes = self._create_nodes(tricks, completion)
            edges = self._create_edges(tricks, completion, warnings)
            self._check_acyclic(nodes, edges)
        except SkillTreeError as exc:
            logger.error("Graph build failed: %s", exc)
            return Result.failure(exc, warnings)

        return Result.success(
            SkillGraph(category=category, nodes=nodes, edges=edges), warnings
        )

    def _resolve_category(
        self, tricks: Sequence[TrickRecord], category_id: Optional[str]
    ) -> Optional[Category]:
        """Validate category references against the known category list."""
        if self.categories is None:
            return None

        category = None
        if category_id is not None:
            category = find_category(self.categories, category_id)

        known_ids = {c.id for c in self.categories}
        for trick in tricks:
            if trick.category_id not in known_ids:
                raise CategoryNotFoundError(trick.category_id)
        return category

    def _create_nodes(
        self, tricks: Sequence[TrickRecord], completion: AbstractSet[str]
    ) -> List[GraphNode]:
        """One unpositioned node per trick, in input order."""
        return [
            GraphNode(
                id=trick.id,
                label=trick.name,
                completed=trick.id in completion,
                difficulty_level=trick.difficulty_level,
            )
            for trick in tricks
        ]

    def _create_edges(
        self,
        tricks: Sequence[TrickRecord],
        completion: AbstractSet[str],
        warnings: List[StructuralWarning],
    ) -> List[ResolvedEdge]:
        """Resolve every prerequisite reference into a unique edge."""
        index = ResolverIndex.from_tricks(tricks)
        edges: Dict[str, ResolvedEdge] = {}

        for trick in tricks:
            for ref in trick.prerequisite_refs:
                source_id = resolve(ref, index, self.fuzzy_config)
                if source_id is None:
                    warnings.append(
                        self._warn(
                            UNRESOLVED_REFERENCE,
                            trick,
                            ref,
                            f'Prerequisite "{ref}" not found for trick "{trick.name}"',
                        )
                    )
                    continue

                if source_id == trick.id:
                    warnings.append(
                        self._warn(
                            DROPPED_EDGE,
                            trick,
                            ref,
                            f'Prerequisite "{ref}" of "{trick.name}" resolves to itself',
                        )
                    )
                    continue

                edge = ResolvedEdge(
                    source_id=source_id,
                    target_id=trick.id,
                    satisfied=source_id in completion and trick.id in completion,
                )
                # Later refs to an already linked prerequisite are discarded
                edges.setdefault(edge.key, edge)

        return list(edges.values())

    def _warn(
        self, kind: str, trick: TrickRecord, ref: str, message: str
    ) -> StructuralWarning:
        logger.warning(message)
        return StructuralWarning(kind=kind, trick_id=trick.id, ref=ref, message=message)

    def _check_acyclic(
        self, nodes: List[GraphNode], edges: List[ResolvedEdge]
    ) -> None:
        """Raise CyclicDependencyError if the edges close a loop."""
        G = nx.DiGraph()
        G.add_nodes_from(node.id for node in nodes)
        G.add_edges_from((edge.source_id, edge.target_id) for edge in edges)
        try:
            cycle_edges: List[Tuple[str, str]] = nx.find_cycle(G)
        except nx.NetworkXNoCycle:
            return
        raise CyclicDependencyError([u for u, _ in cycle_edges])
