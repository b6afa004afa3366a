"""
Graph extraction - derives directed edges from connector bindings.

A connector becomes an edge when exactly two bindings attach it to shapes.
The binding on the END terminal names the target; the other names the
source.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from funcarrows.core.config import get_config
from funcarrows.core.types import Terminal
from funcarrows.document.host import Host
from funcarrows.document.model import Shape


@dataclass(frozen=True)
class Edge:
    """A connector resolved to a direction."""
    connector_id: str
    from_id: str
    to_id: str
    text: str = ""

    @property
    def is_self_loop(self) -> bool:
        return self.from_id == self.to_id


@dataclass
class Graph:
    """Edges derived from a set of shapes and the nodes they touch."""
    nodes: List[str] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)


def _connector_type(connector_type: Optional[str]) -> str:
    return connector_type or get_config().propagation.connector_type


def get_edge(host: Host, shape: Optional[Shape], connector_type: Optional[str] = None) -> Optional[Edge]:
    """
    Resolve a connector shape to an edge.

    Returns:
        The edge, or None if ``shape`` is missing, is not a connector, or
        does not have exactly two bindings
    """
    if shape is None or shape.type != _connector_type(connector_type):
        return None
    bindings = host.get_bindings_involving_shape(shape.id)
    if len(bindings) != 2:
        return None
    first, second = bindings
    if first.terminal == Terminal.END:
        return Edge(shape.id, from_id=second.to_id, to_id=first.to_id, text=shape.text)
    return Edge(shape.id, from_id=first.to_id, to_id=second.to_id, text=shape.text)


def get_graph(host: Host, shapes: Sequence[Shape], connector_type: Optional[str] = None) -> Graph:
    """Collect the edges among ``shapes`` and the nodes they touch."""
    graph = Graph()
    seen = set()
    for shape in shapes:
        edge = get_edge(host, shape, connector_type)
        if edge is None:
            continue
        graph.edges.append(edge)
        for node_id in (edge.from_id, edge.to_id):
            if node_id not in seen:
                seen.add(node_id)
                graph.nodes.append(node_id)
    return graph


def sort_graph(graph: Graph) -> Tuple[List[str], List[str]]:
    """
    Split a graph's nodes into pure sources and pure sinks.

    Returns:
        (start_nodes, end_nodes); nodes that are both a source and a
        target appear in neither list
    """
    targets = {e.to_id for e in graph.edges}
    sources = {e.from_id for e in graph.edges}
    start_nodes = [n for n in graph.nodes if n in sources and n not in targets]
    end_nodes = [n for n in graph.nodes if n in targets and n not in sources]
    return start_nodes, end_nodes


def connectors_from_node(host: Host, node_id: str, connector_type: Optional[str] = None) -> List[str]:
    """Ids of connectors whose start is bound to ``node_id``."""
    bindings = host.get_bindings_to_shape(node_id, _connector_type(connector_type))
    return [b.from_id for b in bindings if b.terminal == Terminal.START]


def connectors_to_node(host: Host, node_id: str, connector_type: Optional[str] = None) -> List[str]:
    """Ids of connectors whose end is bound to ``node_id``."""
    bindings = host.get_bindings_to_shape(node_id, _connector_type(connector_type))
    return [b.from_id for b in bindings if b.terminal == Terminal.END]


def sibling_connectors(host: Host, connector: Shape, connector_type: Optional[str] = None) -> List[str]:
    """Ids of the other connectors that start at the same node as ``connector``."""
    connector_type = _connector_type(connector_type)
    if connector.type != connector_type:
        return []
    bindings = host.get_bindings_involving_shape(connector.id)
    if len(bindings) != 2:
        return []
    start_id = next((b.to_id for b in bindings if b.terminal == Terminal.START), None)
    if start_id is None:
        return []
    return [
        b.from_id
        for b in host.get_bindings_to_shape(start_id, connector_type)
        if b.terminal == Terminal.START and b.from_id != connector.id
    ]
