"""Configuration loader.

Reads road generation settings from YAML files.  A configuration file
has up to three sections::

    road:
      name: Mesh Road
      width: 10.0
      thickness: 0.1
      profile: basic          # or "extended"
      hitbox_depth: 0.5
      direction_policy: averaged   # or "endpoint"
      untangle_joints: false
      up: [0.0, 1.0, 0.0]
    smoothing:
      method: average         # or "simplify"
      average_window: 10
      tolerance: 1.0
    terrain:
      neighbor_radius: 1
      vertical_extent: null
      restrict_to_footprint: true

Configuration files live in the `configs/` directory at the project
root.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml


def load_config(path: str) -> Dict[str, Any]:
    """Load a YAML configuration file into a dictionary.

    Parameters
    ----------
    path : str
        Path to the YAML configuration file.

    Returns
    -------
    dict
        Parsed configuration dictionary.  Returns an empty dict if the
        file does not exist or is empty.
    """
    cfg_path = Path(path)
    if not cfg_path.is_file():
        return {}
    with open(cfg_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{cfg_path} must contain a mapping at the top level")
    return data


@dataclass
class RoadSettings:
    """Typed view over a road configuration."""

    road_name: str = "Mesh Road"
    """Name of the road; used to label the generated mesh."""

    width: float = 10.0
    """Width of the road from the left edge to the right edge."""

    thickness: float = 0.1
    """Height of the road slab."""

    profile: str = "basic"
    """Cross-section profile, ``"basic"`` or ``"extended"``."""

    hitbox_depth: float = 0.5
    """Extra depth of the collision hull below the render hull
    (extended profile only)."""

    direction_policy: str = "averaged"
    """How section directions are chosen, ``"averaged"`` or ``"endpoint"``."""

    untangle_joints: bool = False
    """Swap folded sides between neighbouring sections."""

    up: Tuple[float, float, float] = (0.0, 1.0, 0.0)
    """Local up axis of the road object."""

    smoothing_method: str = "average"
    """Path smoothing method, ``"average"`` or ``"simplify"``."""

    average_window: int = 10
    """Number of points to average when smoothing road points."""

    simplify_tolerance: float = 1.0
    """Perpendicular distance below which points are dropped by the
    simplification method."""

    neighbor_radius: int = 1
    """Radius (in grid cells) of the smoothing ring around the road."""

    vertical_extent: Optional[float] = None
    """Length of the terrain rays; ``None`` uses twice the terrain height."""

    restrict_to_footprint: bool = True
    """Only cast rays under the mesh bounding box."""

    extra: Dict[str, Any] = field(default_factory=dict)
    """Unrecognised top-level sections, kept for host tools."""

    def __post_init__(self):
        if self.width < 0:
            raise ValueError("width must be non-negative")
        if self.thickness < 0:
            raise ValueError("thickness must be non-negative")
        if self.profile not in ("basic", "extended"):
            raise ValueError(f"unknown profile: {self.profile!r}")
        if self.direction_policy not in ("averaged", "endpoint"):
            raise ValueError(f"unknown direction policy: {self.direction_policy!r}")
        if self.smoothing_method not in ("average", "simplify"):
            raise ValueError(f"unknown smoothing method: {self.smoothing_method!r}")
        if self.average_window < 1:
            raise ValueError("average_window must be >= 1")
        if self.simplify_tolerance < 0:
            raise ValueError("simplify_tolerance must be non-negative")
        if self.neighbor_radius < 0:
            raise ValueError("neighbor_radius must be non-negative")
        if len(self.up) != 3:
            raise ValueError("up must have three components")

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "RoadSettings":
        """Build settings from a dictionary returned by `load_config`.

        Missing sections and keys fall back to the defaults; unknown
        keys inside known sections are ignored.
        """
        road = cfg.get("road") or {}
        smoothing = cfg.get("smoothing") or {}
        terrain = cfg.get("terrain") or {}
        defaults = cls()
        extent = terrain.get("vertical_extent", defaults.vertical_extent)
        return cls(
            road_name=str(road.get("name", defaults.road_name)),
            width=float(road.get("width", defaults.width)),
            thickness=float(road.get("thickness", defaults.thickness)),
            profile=str(road.get("profile", defaults.profile)).lower(),
            hitbox_depth=float(road.get("hitbox_depth", defaults.hitbox_depth)),
            direction_policy=str(road.get("direction_policy", defaults.direction_policy)).lower(),
            untangle_joints=bool(road.get("untangle_joints", defaults.untangle_joints)),
            up=tuple(float(v) for v in road.get("up", defaults.up)),
            smoothing_method=str(smoothing.get("method", defaults.smoothing_method)).lower(),
            average_window=int(smoothing.get("average_window", defaults.average_window)),
            simplify_tolerance=float(smoothing.get("tolerance", defaults.simplify_tolerance)),
            neighbor_radius=int(terrain.get("neighbor_radius", defaults.neighbor_radius)),
            vertical_extent=None if extent is None else float(extent),
            restrict_to_footprint=bool(terrain.get("restrict_to_footprint", defaults.restrict_to_footprint)),
            extra={k: v for k, v in cfg.items() if k not in ("road", "smoothing", "terrain")},
        )
