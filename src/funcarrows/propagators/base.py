"""
Propagator Base - tracking and execution shared by every trigger kind.

A propagator owns one trigger kind. It keeps the set of connectors whose
text classifies as that kind, compiles and caches their programs, and runs
them when its trigger fires. Subclasses only decide *when* to run.

Connector lifecycle:

    untracked -> tracked -> [executing] -> tracked
    tracked -> untracked   (deleted, unbound, or text no longer matches)

A run packs both endpoints, executes the program, merges the returned
record onto the target snapshot and writes it back in a single host
update. Any failure leaves every node untouched and turns the connector's
marker to ERROR.
"""

import logging
from abc import ABC
from typing import Any, Dict, List, Optional

from funcarrows.core.config import FuncArrowsConfig, get_config
from funcarrows.core.delta_time import DeltaTime
from funcarrows.core.types import ErrorMarker, TriggerKind
from funcarrows.document.host import Host, HostError
from funcarrows.document.model import Shape, UIEvent
from funcarrows.geometry.queries import Geo, shape_id_of
from funcarrows.graph.classifier import is_propagator_of_kind
from funcarrows.graph.edges import Edge, get_edge
from funcarrows.program.errors import ProgramError, ProgramRuntimeError
from funcarrows.program.values import Namespace, NativeFunction
from funcarrows.propagators.cache import ProgramCache
from funcarrows.propagators.listeners import ListenerRegistry
from funcarrows.propagators.snapshot import pack_shape, unpack_shape, unpack_to_record

logger = logging.getLogger(__name__)


class CascadeDepthError(ProgramRuntimeError):
    """A mutation cascade nested more propagations than allowed."""


class PropagationGuard:
    """
    Stack of the connectors currently executing.

    Shared by all propagators of an engine. A connector already on the
    stack is not run again within the same cascade, which terminates
    cycles such as A -> B -> C -> A.
    """

    def __init__(self, max_depth: int = 64):
        self._max_depth = max_depth
        self._stack: List[str] = []

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def is_running(self, connector_id: str) -> bool:
        return connector_id in self._stack

    def enter(self, connector_id: str) -> None:
        """
        Push a connector.

        Raises:
            CascadeDepthError: If the cascade is already at max depth
        """
        if len(self._stack) >= self._max_depth:
            raise CascadeDepthError(
                f"Cascade depth {self._max_depth} exceeded at {connector_id} "
                f"(path: {' -> '.join(self._stack[-3:])} ...)"
            )
        self._stack.append(connector_id)

    def exit(self, connector_id: str) -> None:
        if self._stack and self._stack[-1] == connector_id:
            self._stack.pop()
        elif connector_id in self._stack:
            self._stack.remove(connector_id)


def build_host_view(host: Host) -> Namespace:
    """Read-only view of the host exposed to programs as ``editor``."""

    def get_shape(ref: Any) -> Optional[Dict[str, Any]]:
        shape_id = shape_id_of(ref)
        shape = host.get_shape(shape_id) if shape_id else None
        return None if shape is None else pack_shape(shape)

    def get_bounds(ref: Any) -> Optional[Dict[str, Any]]:
        shape_id = shape_id_of(ref)
        bounds = host.get_shape_page_bounds(shape_id) if shape_id else None
        return None if bounds is None else bounds.to_record()

    return Namespace("editor", {
        "getShape": get_shape,
        "getShapePageBounds": get_bounds,
        "getCurrentPageShapes": lambda: [pack_shape(s) for s in host.get_current_page_shapes()],
        "getShapesInView": lambda: [pack_shape(s) for s in host.get_shapes_in_view()],
        "getCurrentPagePoint": lambda: host.current_page_point.to_record(),
    })


class Propagator(ABC):
    """
    Base class for trigger-kind propagators.

    Subclasses set ``kind`` and override whichever of ``after_change``,
    ``on_event`` and ``on_tick`` their trigger needs.
    """

    kind: TriggerKind = TriggerKind.CHANGE

    # Run once on registration and only track the connector if that succeeds
    validate_on_change: bool = False

    def __init__(
        self,
        host: Host,
        config: Optional[FuncArrowsConfig] = None,
        guard: Optional[PropagationGuard] = None,
        geo: Optional[Geo] = None,
        delta_time: Optional[DeltaTime] = None,
    ):
        self._config = config or get_config()
        propagation = self._config.propagation
        self.host = host
        self.guard = guard or PropagationGuard(propagation.max_cascade_depth)
        self.geo = geo or Geo(
            host,
            connector_type=propagation.connector_type,
            closed_shape_types=propagation.closed_shape_types,
        )
        self.delta_time = delta_time or DeltaTime(self._config.timing.max_delta_ms)
        self.listeners = ListenerRegistry()
        self.cache = ProgramCache(self.kind, max_steps=propagation.max_program_steps)

        self._connector_type = propagation.connector_type
        self._host_view = build_host_view(host)
        self._geo_namespace = Namespace("G", self.geo.as_members(pack_shape))
        self._bounds = NativeFunction("bounds", self._bounds_of)
        self._unpack = NativeFunction("_unpack", unpack_to_record)

    @property
    def name(self) -> str:
        return type(self).__name__

    def _bounds_of(self, ref: Any) -> Optional[Dict[str, Any]]:
        shape_id = shape_id_of(ref)
        bounds = self.host.get_shape_page_bounds(shape_id) if shape_id else None
        return None if bounds is None else bounds.to_record()

    # -------------------------------------------------------------------------
    # Tracking
    # -------------------------------------------------------------------------

    def on_connector_change(self, connector: Shape) -> None:
        """
        Re-derive and re-classify a connector after any change to it.

        Notifications caused by the connector's own run (such as its marker
        update) are ignored while it is executing.
        """
        if connector.type != self._connector_type:
            return
        if self.guard.is_running(connector.id):
            return

        edge = get_edge(self.host, connector, self._connector_type)
        if edge is None or not is_propagator_of_kind(edge.text, self.kind):
            self._untrack(connector.id)
            return

        unchanged = self.listeners.is_active(connector.id) and self.cache.is_current(connector.id, edge.text)
        self.cache.ensure(self.host, edge)
        if self.validate_on_change and not unchanged:
            if not self.propagate(connector.id):
                logger.info(f"{self.name}: not tracking {connector.id}, first run failed")
                self._untrack(connector.id)
                return

        if not self.listeners.is_active(connector.id):
            logger.debug(f"{self.name}: tracking {connector.id} ({edge.from_id} -> {edge.to_id})")
        self.listeners.add(connector.id, edge)

    def on_connector_delete(self, connector_id: str) -> None:
        self._untrack(connector_id)

    def _untrack(self, connector_id: str) -> None:
        if self.listeners.remove(connector_id):
            logger.debug(f"{self.name}: stopped tracking {connector_id}")
        self.cache.delete(connector_id)

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def propagate(self, connector_id: str) -> bool:
        """
        Run a connector's program and write the result onto its target.

        Returns:
            True if the program ran (and its patch, if any, was applied);
            False on failure, when the connector has no edge, or when it is
            already running further up the cascade
        """
        if self.guard.is_running(connector_id):
            logger.debug(f"{self.name}: skipping {connector_id}, already running in this cascade")
            return False

        edge = get_edge(self.host, self.host.get_shape(connector_id), self._connector_type)
        if edge is None:
            return False

        try:
            self.guard.enter(connector_id)
        except CascadeDepthError as e:
            logger.error(f"{self.name}: {e}")
            self._set_marker(connector_id, ErrorMarker.ERROR)
            return False

        try:
            try:
                self._run(edge)
            except Exception as e:
                logger.error(f"{self.name}: program on {connector_id} failed: {e}")
                self._set_marker(connector_id, ErrorMarker.ERROR)
                return False
            self._set_marker(connector_id, ErrorMarker.OK)
            return True
        finally:
            self.guard.exit(connector_id)

    def _run(self, edge: Edge) -> None:
        from_shape = self.host.get_shape(edge.from_id)
        to_shape = self.host.get_shape(edge.to_id)
        if from_shape is None or to_shape is None:
            raise HostError(f"Endpoint of {edge.connector_id} not found")
        from_snapshot = pack_shape(from_shape)
        to_snapshot = pack_shape(to_shape)

        program = self.cache.get(self.host, edge)
        if program is None:
            raise ProgramError(f"Program on {edge.connector_id} does not compile")

        result = program(
            self._host_view,
            from_snapshot,
            to_snapshot,
            self._geo_namespace,
            self._bounds,
            self.delta_time.dt,
            self._unpack,
        )
        if result is None:
            return
        if not isinstance(result, dict):
            raise ProgramRuntimeError(f"Program must return a record or null, got {type(result).__name__}")

        merged = {**to_snapshot, **result}
        # Writes only ever land on the target
        merged["id"] = to_shape.id
        merged["type"] = to_shape.type
        self.host.update_shape(unpack_shape(merged))

    def _set_marker(self, connector_id: str, marker: ErrorMarker) -> None:
        try:
            self.host.set_connector_marker(connector_id, marker)
        except HostError as e:
            logger.warning(f"{self.name}: could not mark {connector_id}: {e}")

    # -------------------------------------------------------------------------
    # Trigger hooks
    # -------------------------------------------------------------------------

    def after_change(self, shape: Shape) -> None:
        """Called after every shape mutation."""

    def on_event(self, event: UIEvent) -> None:
        """Called for every UI input event."""

    def on_tick(self) -> None:
        """Called once per frame."""
