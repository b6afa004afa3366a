"""
Propagator Registry - wires propagators to a host document.

The engine owns the state shared by all propagators (cascade guard, frame
timer, spatial index) and routes host notifications to them:

    after change         group -> each child; connector -> re-classify
    binding create/del   re-classify the owning connector
    shape delete         forget the connector
    event / tick         forwarded as-is
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Type

from funcarrows.core.config import FuncArrowsConfig, get_config
from funcarrows.core.delta_time import DeltaTime
from funcarrows.core.types import TriggerKind
from funcarrows.document.host import Host
from funcarrows.document.model import Binding, Shape, UIEvent
from funcarrows.geometry.queries import Geo
from funcarrows.geometry.spatial_index import SpatialIndex
from funcarrows.propagators.base import PropagationGuard, Propagator
from funcarrows.propagators.triggers import DEFAULT_PROPAGATORS

logger = logging.getLogger(__name__)


class PropagatorEngine:
    """A set of propagators subscribed to one host."""

    def __init__(
        self,
        host: Host,
        classes: Sequence[Type[Propagator]] = DEFAULT_PROPAGATORS,
        config: Optional[FuncArrowsConfig] = None,
    ):
        """
        Initialize the engine. Call ``start()`` to scan and subscribe.

        Args:
            host: Document the propagators run against
            classes: Propagator classes to instantiate, one per trigger kind
            config: Configuration, defaults to the global configuration
        """
        self._config = config or get_config()
        propagation = self._config.propagation
        self.host = host
        self.guard = PropagationGuard(propagation.max_cascade_depth)
        self.delta_time = DeltaTime(self._config.timing.max_delta_ms)
        self.spatial_index = SpatialIndex(self._config.spatial.cell_size)
        self.geo = Geo(
            host,
            self.spatial_index,
            connector_type=propagation.connector_type,
            closed_shape_types=propagation.closed_shape_types,
        )
        self._connector_type = propagation.connector_type
        self._group_type = propagation.group_type

        kinds = [cls.kind for cls in classes]
        duplicates = {k for k in kinds if kinds.count(k) > 1}
        if duplicates:
            raise ValueError(f"Duplicate propagator kinds: {sorted(k.name for k in duplicates)}")

        self._propagators: List[Propagator] = [
            cls(host, config=self._config, guard=self.guard, geo=self.geo, delta_time=self.delta_time)
            for cls in classes
        ]
        self._unsubscribers: List[Callable[[], None]] = []

    @property
    def propagators(self) -> List[Propagator]:
        return list(self._propagators)

    @property
    def is_running(self) -> bool:
        return bool(self._unsubscribers)

    def get(self, kind: TriggerKind) -> Optional[Propagator]:
        """Propagator for a trigger kind, if registered."""
        for propagator in self._propagators:
            if propagator.kind == kind:
                return propagator
        return None

    def status(self) -> Dict[str, List[str]]:
        """Tracked connector ids per trigger kind."""
        return {p.kind.name.lower(): p.listeners.active_connectors for p in self._propagators}

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Index the page, classify every connector and subscribe to the host."""
        if self.is_running:
            logger.warning("Propagator engine already started")
            return

        shapes = self.host.get_current_page_shapes()
        for shape in shapes:
            self._index_shape(shape)
        for propagator in self._propagators:
            for shape in shapes:
                if shape.type == self._connector_type:
                    propagator.on_connector_change(shape)

        self._unsubscribers = [
            self.host.on_after_create_shape(self._on_create_shape),
            self.host.on_after_change(self._on_after_change),
            self.host.on_after_delete_shape(self._on_delete_shape),
            self.host.on_after_create_binding(self._on_binding_change),
            self.host.on_after_delete_binding(self._on_binding_change),
            self.host.on_event(self._on_event),
            self.host.on_tick(self._on_tick),
        ]
        logger.info(f"Propagators started: {self.status()}")

    def dispose(self) -> None:
        """Unsubscribe from the host and drop all tracking state."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        for propagator in self._propagators:
            propagator.listeners.clear()
            propagator.cache.clear()
        self.spatial_index.clear()
        logger.info("Propagators disposed")

    # -------------------------------------------------------------------------
    # Host notifications
    # -------------------------------------------------------------------------

    def _index_shape(self, shape: Shape) -> None:
        bounds = self.host.get_shape_page_bounds(shape.id)
        if bounds is None:
            self.spatial_index.remove(shape.id)
        else:
            self.spatial_index.insert(shape.id, bounds)
        for child_id in self.host.get_sorted_child_ids(shape.id):
            child = self.host.get_shape(child_id)
            if child is not None:
                self._index_shape(child)

    def _on_create_shape(self, shape: Shape) -> None:
        self._index_shape(shape)

    def _on_after_change(self, shape: Shape) -> None:
        # Index first so queries made by the propagators below see the change
        self._index_shape(shape)

        if shape.type == self._group_type:
            for child_id in self.host.get_sorted_child_ids(shape.id):
                child = self.host.get_shape(child_id)
                if child is None:
                    continue
                for propagator in self._propagators:
                    propagator.after_change(child)
            return

        for propagator in self._propagators:
            propagator.after_change(shape)
            if shape.type == self._connector_type:
                propagator.on_connector_change(shape)

    def _on_delete_shape(self, shape: Shape) -> None:
        self.spatial_index.remove(shape.id)
        if shape.type == self._connector_type:
            for propagator in self._propagators:
                propagator.on_connector_delete(shape.id)

    def _on_binding_change(self, binding: Binding) -> None:
        if binding.type != self._connector_type:
            return
        connector = self.host.get_shape(binding.from_id)
        if connector is None or connector.type != self._connector_type:
            return
        for propagator in self._propagators:
            propagator.on_connector_change(connector)

    def _on_event(self, event: UIEvent) -> None:
        for propagator in self._propagators:
            propagator.on_event(event)

    def _on_tick(self) -> None:
        self.delta_time.tick()
        for propagator in self._propagators:
            propagator.on_tick()


def register_propagators(
    host: Host,
    classes: Sequence[Type[Propagator]] = DEFAULT_PROPAGATORS,
    config: Optional[FuncArrowsConfig] = None,
) -> PropagatorEngine:
    """
    Instantiate propagators, scan the current page and subscribe to the host.

    Returns:
        The running engine; call ``dispose()`` to detach it
    """
    engine = PropagatorEngine(host, classes, config)
    engine.start()
    return engine
