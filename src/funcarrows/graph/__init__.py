"""
funcarrows Graph - connector edges and trigger classification.
"""

from funcarrows.graph.classifier import Classification, Grammar, classify, is_propagator_of_kind
from funcarrows.graph.edges import (
    Edge,
    Graph,
    connectors_from_node,
    connectors_to_node,
    get_edge,
    get_graph,
    sibling_connectors,
    sort_graph,
)

__all__ = [
    "Classification",
    "Grammar",
    "classify",
    "is_propagator_of_kind",
    "Edge",
    "Graph",
    "connectors_from_node",
    "connectors_to_node",
    "get_edge",
    "get_graph",
    "sibling_connectors",
    "sort_graph",
]
