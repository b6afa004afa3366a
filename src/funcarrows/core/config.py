"""
Centralized Configuration for funcarrows.

This module provides a single source of truth for the engine's tunables:
frame pacing, propagation limits, shape-type filters and the spatial index.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class TimingConfig:
    """Timing-related configuration values."""

    # Frame clock interval (milliseconds), roughly one animation frame
    frame_interval_ms: int = 16

    # Delta time is clamped to [0, max_delta_ms] so a stalled clock
    # resuming does not produce a huge step
    max_delta_ms: float = 100.0


@dataclass
class PropagationConfig:
    """Propagation-related configuration values."""

    # Nested propagations allowed within one mutation cascade
    max_cascade_depth: int = 64

    # Interpreter steps a single program run may take
    max_program_steps: int = 10000

    # Shape types
    connector_type: str = "arrow"
    group_type: str = "group"
    click_target_types: List[str] = field(default_factory=lambda: ["geo"])
    closed_shape_types: List[str] = field(default_factory=lambda: ["geo"])

    # Marker colors written onto connectors
    ok_color: str = "black"
    error_color: str = "orange"


@dataclass
class SpatialConfig:
    """Spatial index configuration values."""

    # Grid cell edge length in page units
    cell_size: float = 256.0


@dataclass
class PathConfig:
    """Path-related configuration values."""

    user_config_dir: Path = field(default_factory=lambda: Path.home() / ".funcarrows")

    # File extensions
    scene_extension: str = ".funcarrows"


@dataclass
class FuncArrowsConfig:
    """Main configuration container for funcarrows."""

    timing: TimingConfig = field(default_factory=TimingConfig)
    propagation: PropagationConfig = field(default_factory=PropagationConfig)
    spatial: SpatialConfig = field(default_factory=SpatialConfig)
    paths: PathConfig = field(default_factory=PathConfig)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "timing": {
                "frame_interval_ms": self.timing.frame_interval_ms,
                "max_delta_ms": self.timing.max_delta_ms,
            },
            "propagation": {
                "max_cascade_depth": self.propagation.max_cascade_depth,
                "max_program_steps": self.propagation.max_program_steps,
                "connector_type": self.propagation.connector_type,
                "group_type": self.propagation.group_type,
                "click_target_types": list(self.propagation.click_target_types),
                "closed_shape_types": list(self.propagation.closed_shape_types),
                "ok_color": self.propagation.ok_color,
                "error_color": self.propagation.error_color,
            },
            "spatial": {
                "cell_size": self.spatial.cell_size,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FuncArrowsConfig":
        """Create configuration from dictionary."""
        config = cls()

        for section in ("timing", "propagation", "spatial"):
            if section not in data:
                continue
            target = getattr(config, section)
            for key, value in data[section].items():
                if hasattr(target, key):
                    setattr(target, key, value)
                else:
                    logger.warning(f"Ignoring unknown config key: {section}.{key}")

        return config

    def save(self, path: Optional[Path] = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = self.paths.user_config_dir / "config.json"

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Configuration saved to {path}")

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "FuncArrowsConfig":
        """Load configuration from file, using defaults if not found."""
        config = cls()

        if path is None:
            path = config.paths.user_config_dir / "config.json"

        if path.exists():
            try:
                with open(path) as f:
                    data = json.load(f)
                config = cls.from_dict(data)
                logger.info(f"Configuration loaded from {path}")
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load configuration from {path}: {e}")
                logger.info("Using default configuration")

        return config


# Global configuration instance - lazy loaded
_config: Optional[FuncArrowsConfig] = None


def get_config() -> FuncArrowsConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = FuncArrowsConfig.load()
    return _config


def set_config(config: Optional[FuncArrowsConfig]) -> None:
    """Set the global configuration instance (None resets to lazy load)."""
    global _config
    _config = config
