from .errors import Result, StructuralWarning
from .graph_builder import GraphBuilder
from .layered_layout import LayeredLayout, LayoutConfig, layout
from .models import Category, GraphNode, ResolvedEdge, SkillGraph, TrickRecord, ViewportIntent
from .navigation import CompletionState, NavigationController, ViewportConfig
from .resolver import FuzzyMatchConfig, ResolverIndex, resolve
from .session import SkillTreeSession, ViewState

__all__ = [
    "Category",
    "CompletionState",
    "FuzzyMatchConfig",
    "GraphBuilder",
    "GraphNode",
    "LayeredLayout",
    "LayoutConfig",
    "NavigationController",
    "ResolvedEdge",
    "ResolverIndex",
    "Result",
    "SkillGraph",
    "SkillTreeSession",
    "StructuralWarning",
    "TrickRecord",
    "ViewState",
    "ViewportConfig",
    "ViewportIntent",
    "layout",
    "resolve",
]
