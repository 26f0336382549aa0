"""
Configuration schema for the editing session.

Immutable settings passed to CDSPSession at construction. Loaded from YAML
and validated at startup.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict

import supervision as sv
import yaml

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


@dataclass(frozen=True)
class CDSPConfig:
    """
    Session configuration.

    Options (option: effect):
        hit_color: color of the hovered candidate preview
        choose_color: color of chosen geometries in the preview
        line_width: stroke width applied to preview symbols
        zoom: zoom at which intersections are computed when no
            zoom provider is given to the session
        epsilon: tolerance for coordinate / screen point equality
            (0.0 keeps exact equality)
        identify_tolerance: hit-test tolerance (coordinate units) used by
            layers created by the session and the CLI
        multi_crossing_cuts: let a straight cut crossing the boundary an
            even number (> 2) of times split the polygon into several
            children instead of leaving it unchanged
        log_level: structured logger level
    """

    hit_color: str = "#ffa400"
    choose_color: str = "#00bcd4"
    line_width: int = 4
    zoom: float = 0
    epsilon: float = 0.0
    identify_tolerance: float = 0.0
    multi_crossing_cuts: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate configuration."""
        for name in ("hit_color", "choose_color"):
            value = getattr(self, name)
            try:
                color = sv.Color.from_hex(value)
            except (ValueError, TypeError, AttributeError) as e:
                raise ValueError(f"{name} must be a hex color, got {value!r}") from e
            object.__setattr__(self, name, color.as_hex())

        if self.line_width <= 0:
            raise ValueError(
                f"line_width must be > 0, got {self.line_width}"
            )

        if not -5 <= self.zoom <= 30:
            raise ValueError(
                f"zoom must be in [-5, 30], got {self.zoom}"
            )

        if self.epsilon < 0:
            raise ValueError(
                f"epsilon must be >= 0, got {self.epsilon}"
            )

        if self.identify_tolerance < 0:
            raise ValueError(
                f"identify_tolerance must be >= 0, got {self.identify_tolerance}"
            )

        if str(self.log_level).upper() not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log_level: {self.log_level}. "
                f"Must be one of {sorted(LOG_LEVELS)}"
            )
        object.__setattr__(self, "log_level", str(self.log_level).upper())

    @property
    def hit_sv_color(self) -> sv.Color:
        return sv.Color.from_hex(self.hit_color)

    @property
    def choose_sv_color(self) -> sv.Color:
        return sv.Color.from_hex(self.choose_color)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CDSPConfig":
        """
        Build from a dict, rejecting unknown keys.

        Raises:
            ValueError: If keys are unknown or values invalid
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(
                f"Unknown config option(s): {', '.join(sorted(unknown))}. "
                f"Known options: {', '.join(sorted(known))}"
            )
        return cls(**data)

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "CDSPConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            hit_color: "#ffa400"
            choose_color: "#00bcd4"
            line_width: 4
            zoom: 12
            epsilon: 0.0
            multi_crossing_cuts: false
            log_level: "INFO"
        """
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {yaml_path}")
        return cls.from_dict(data)
