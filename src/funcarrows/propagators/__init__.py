"""
funcarrows Propagators - run connector programs when their trigger fires.
"""

from funcarrows.propagators.base import CascadeDepthError, PropagationGuard, Propagator
from funcarrows.propagators.cache import COMPILE_FAILED, ProgramCache
from funcarrows.propagators.listeners import ListenerRegistry
from funcarrows.propagators.registry import PropagatorEngine, register_propagators
from funcarrows.propagators.snapshot import pack_shape, unpack_shape
from funcarrows.propagators.triggers import (
    DEFAULT_PROPAGATORS,
    ChangePropagator,
    ClickPropagator,
    SpatialPropagator,
    TickPropagator,
)

__all__ = [
    "CascadeDepthError",
    "PropagationGuard",
    "Propagator",
    "COMPILE_FAILED",
    "ProgramCache",
    "ListenerRegistry",
    "PropagatorEngine",
    "register_propagators",
    "pack_shape",
    "unpack_shape",
    "DEFAULT_PROPAGATORS",
    "ChangePropagator",
    "ClickPropagator",
    "SpatialPropagator",
    "TickPropagator",
]
