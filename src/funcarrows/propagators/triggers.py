"""
Trigger-kind propagators.

    ""      ChangePropagator   source node mutated
    click   ClickPropagator    pointer down on the source node
    tick    TickPropagator     every frame
    geo     SpatialPropagator  any non-connector shape mutated
"""

import logging

from funcarrows.core.types import TriggerKind
from funcarrows.document.model import Shape, UIEvent
from funcarrows.graph.edges import connectors_from_node
from funcarrows.propagators.base import Propagator

logger = logging.getLogger(__name__)


class ChangePropagator(Propagator):
    """Runs a node's outgoing connectors whenever the node changes."""

    kind = TriggerKind.CHANGE

    def after_change(self, shape: Shape) -> None:
        if not self.listeners.is_watched(shape.id):
            return
        for connector_id in connectors_from_node(self.host, shape.id, self._connector_type):
            if not self.listeners.is_active(connector_id):
                continue
            bindings = self.host.get_bindings_involving_shape(connector_id)
            if len(bindings) != 2:
                continue
            # A connector bound to one node at both ends would re-trigger itself on every write
            if bindings[0].to_id == bindings[1].to_id:
                continue
            self.propagate(connector_id)


class ClickPropagator(Propagator):
    """Runs a node's outgoing connectors when the node is clicked."""

    kind = TriggerKind.CLICK

    def on_event(self, event: UIEvent) -> None:
        if not event.is_pointer_down:
            return
        target_types = set(self._config.propagation.click_target_types)
        target = self.host.get_shape_at_point(
            self.host.current_page_point,
            lambda shape: shape.type in target_types,
        )
        if target is None or not self.listeners.is_watched(target.id):
            return

        visited = set()
        for connector_id in connectors_from_node(self.host, target.id, self._connector_type):
            if self.listeners.is_active(connector_id) and connector_id not in visited:
                visited.add(connector_id)
                self.propagate(connector_id)


class TickPropagator(Propagator):
    """Runs every tracked connector once per frame, in registration order."""

    kind = TriggerKind.TICK
    validate_on_change = True

    def on_tick(self) -> None:
        for connector_id in self.listeners:
            # An earlier run in this frame may have untracked it
            if self.listeners.is_active(connector_id):
                self.propagate(connector_id)


class SpatialPropagator(Propagator):
    """
    Runs every tracked connector after any non-connector mutation.

    Programs can read any shape through ``G``, so the mutated shape is not
    matched against the connector endpoints.
    """

    kind = TriggerKind.SPATIAL

    def after_change(self, shape: Shape) -> None:
        if shape.type == self._connector_type:
            return
        for connector_id in self.listeners:
            if self.listeners.is_active(connector_id):
                self.propagate(connector_id)


DEFAULT_PROPAGATORS = (ChangePropagator, ClickPropagator, TickPropagator, SpatialPropagator)
