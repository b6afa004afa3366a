"""
funcarrows Core - configuration, shared enums and frame timing.

Nothing here depends on the document or the propagators, so every other
package can import it.
"""

from funcarrows.core.config import FuncArrowsConfig, get_config, set_config
from funcarrows.core.delta_time import DeltaTime
from funcarrows.core.frame_clock import FrameClock
from funcarrows.core.types import ErrorMarker, Terminal, TriggerKind

__all__ = [
    "FuncArrowsConfig",
    "get_config",
    "set_config",
    "DeltaTime",
    "FrameClock",
    "ErrorMarker",
    "Terminal",
    "TriggerKind",
]
