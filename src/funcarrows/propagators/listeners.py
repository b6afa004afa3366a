"""
Listener Registry - the connectors a propagator tracks and the nodes they touch.
"""

from typing import Dict, FrozenSet, Iterator, List, Set

from funcarrows.graph.edges import Edge


class ListenerRegistry:
    """
    Active connectors (in registration order) and watched nodes.

    Watched nodes are the union of the endpoints of the active connectors;
    they let propagators discard unrelated mutations without a lookup.
    """

    def __init__(self):
        self._edges: Dict[str, Edge] = {}
        self._watched: Set[str] = set()

    def __len__(self) -> int:
        return len(self._edges)

    def __iter__(self) -> Iterator[str]:
        # Snapshot: propagation may deregister while iterating
        return iter(list(self._edges))

    @property
    def active_connectors(self) -> List[str]:
        return list(self._edges)

    @property
    def watched_nodes(self) -> FrozenSet[str]:
        return frozenset(self._watched)

    def add(self, connector_id: str, edge: Edge) -> None:
        previous = self._edges.get(connector_id)
        self._edges[connector_id] = edge
        if previous is not None and (previous.from_id, previous.to_id) != (edge.from_id, edge.to_id):
            self._recompute()
        else:
            self._watched.add(edge.from_id)
            self._watched.add(edge.to_id)

    def remove(self, connector_id: str) -> bool:
        """Stop tracking a connector; returns whether it was tracked."""
        if self._edges.pop(connector_id, None) is None:
            return False
        self._recompute()
        return True

    def is_active(self, connector_id: str) -> bool:
        return connector_id in self._edges

    def is_watched(self, node_id: str) -> bool:
        return node_id in self._watched

    def clear(self) -> None:
        self._edges.clear()
        self._watched.clear()

    def _recompute(self) -> None:
        self._watched = {node for e in self._edges.values() for node in (e.from_id, e.to_id)}
