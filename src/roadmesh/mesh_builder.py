"""Road mesh construction from a centre line.

`RoadMeshBuilder` places one cross section at every centre-line
point, flattens the section corners into a vertex buffer, asks the
triangulator for the index buffer and computes smooth per-vertex
normals.  The result is a `RoadMesh`, which a host renderer or
collider can consume directly.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..smoothing.path_smoother import dedupe_consecutive
from .cross_section import (
    CrossSection,
    CrossSectionProfile,
    build_cross_section,
    swap_left_sides,
    swap_right_sides,
)
from .triangulator import triangulate


class DirectionPolicy(Enum):
    """How the facing direction of each cross section is chosen."""

    ENDPOINT = "endpoint"
    """Direction towards the next point; the last point reuses the
    previous segment.  Leaves a visible kink at every joint."""

    AVERAGED = "averaged"
    """Bisector of the incoming and outgoing segments at interior
    points; the ends use their single segment."""


def _unit_rows(v: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(v, axis=1, keepdims=True)
    if np.any(norms < 1e-12):
        raise ValueError("zero-length segment; collapse duplicate points first")
    return v / norms


def section_directions(points: np.ndarray, policy: DirectionPolicy = DirectionPolicy.AVERAGED) -> np.ndarray:
    """Facing direction of the cross section at every centre-line point.

    Parameters
    ----------
    points : numpy.ndarray
        Centre line of shape (N, 3), N >= 2, without consecutive
        duplicates.
    policy : DirectionPolicy
        Direction policy.

    Returns
    -------
    numpy.ndarray
        Unit directions of shape (N, 3).
    """
    points = np.asarray(points, dtype=float)
    if len(points) < 2:
        raise ValueError("at least two points are needed to define directions")
    segments = _unit_rows(np.diff(points, axis=0))

    if policy is DirectionPolicy.ENDPOINT:
        return np.vstack([segments, segments[-1:]])

    directions = np.empty_like(points)
    directions[0] = segments[0]
    directions[-1] = segments[-1]
    if len(points) > 2:
        bisectors = segments[:-1] + segments[1:]
        norms = np.linalg.norm(bisectors, axis=1, keepdims=True)
        # The path doubles back on itself: no bisector exists, so the
        # section faces along the outgoing segment.
        reversed_ = norms[:, 0] < 1e-9
        safe = np.where(norms < 1e-9, 1.0, norms)
        interior = bisectors / safe
        interior[reversed_] = segments[1:][reversed_]
        directions[1:-1] = interior
    return directions


def compute_vertex_normals(vertices: np.ndarray, triangles: np.ndarray) -> np.ndarray:
    """Smooth vertex normals: area-weighted mean of adjacent face normals.

    Face normals follow ``cross(b - a, c - a)``.  Vertices that belong
    to no triangle get a zero normal.
    """
    normals = np.zeros_like(vertices, dtype=float)
    if len(triangles) == 0:
        return normals
    a = vertices[triangles[:, 0]]
    b = vertices[triangles[:, 1]]
    c = vertices[triangles[:, 2]]
    face_normals = np.cross(b - a, c - a)
    for k in range(3):
        np.add.at(normals, triangles[:, k], face_normals)
    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    return np.divide(normals, lengths, out=np.zeros_like(normals), where=lengths > 0)


@dataclass
class RoadMesh:
    """Vertex and index buffers of a generated road."""

    name: str
    vertices: np.ndarray
    """Array of shape (4n, 3): TL, TR, BL, BR of each section."""

    triangles: np.ndarray
    """Integer array of shape (T, 3)."""

    normals: np.ndarray
    """Unit vertex normals of shape (4n, 3)."""

    collision_vertices: Optional[np.ndarray] = None
    """Separate collision hull (extended profile); shares `triangles`."""

    @classmethod
    def empty(cls, name: str) -> "RoadMesh":
        return cls(
            name=name,
            vertices=np.zeros((0, 3)),
            triangles=np.zeros((0, 3), dtype=np.int32),
            normals=np.zeros((0, 3)),
        )

    @property
    def section_count(self) -> int:
        return len(self.vertices) // 4

    @property
    def is_empty(self) -> bool:
        return len(self.vertices) == 0

    def index_buffer(self) -> np.ndarray:
        """Flat index buffer, three entries per triangle."""
        return self.triangles.ravel()

    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """Axis-aligned bounding box ``(min, max)`` over all vertices."""
        if self.is_empty:
            raise ValueError("empty mesh has no bounds")
        points = self.vertices
        if self.collision_vertices is not None:
            points = np.vstack([points, self.collision_vertices])
        return points.min(axis=0), points.max(axis=0)

    def section_outlines(self) -> List[Dict[str, Tuple[np.ndarray, np.ndarray]]]:
        """Edge segments of every cross section, for debug drawing."""
        outlines = []
        for i in range(0, len(self.vertices), 4):
            tl, tr, bl, br = self.vertices[i:i + 4]
            outlines.append({
                "top": (tl, tr),
                "bottom": (bl, br),
                "left": (tl, bl),
                "right": (tr, br),
            })
        return outlines


@dataclass
class RoadMeshBuilder:
    """Build road meshes from centre lines."""

    width: float = 10.0
    """Width of the road."""

    thickness: float = 0.1
    """Thickness of the road slab."""

    up: Tuple[float, float, float] = (0.0, 1.0, 0.0)
    """Local up axis of the road object."""

    direction_policy: DirectionPolicy = DirectionPolicy.AVERAGED
    profile: CrossSectionProfile = CrossSectionProfile.BASIC

    hitbox_depth: float = 0.5
    """Collision hull depth below the slab (extended profile only)."""

    untangle_joints: bool = False
    """Swap side points between neighbouring sections whose side edge
    runs against the direction of travel."""

    name: str = "Mesh Road"
    dedupe_eps: float = field(default=1e-9, repr=False)

    def sections(self, points) -> List[CrossSection]:
        """Cross sections along a centre line.

        Consecutive duplicate points are collapsed first.  Fewer than
        two distinct points give no sections.
        """
        centre = dedupe_consecutive(points, self.dedupe_eps)
        if len(centre) < 2:
            return []
        directions = section_directions(centre, self.direction_policy)
        sections = [
            build_cross_section(
                p, d, self.up, self.width, self.thickness,
                profile=self.profile, hitbox_depth=self.hitbox_depth,
            )
            for p, d in zip(centre, directions)
        ]
        if self.untangle_joints:
            untangle_sections(sections)
        return sections

    def build(self, points) -> RoadMesh:
        """Generate the road mesh for a centre line.

        Parameters
        ----------
        points : array_like
            Centre line of shape (N, 3) in road-local coordinates.

        Returns
        -------
        RoadMesh
            Mesh with ``4 * n`` vertices and ``(n - 1) * 8 + 4``
            triangles for ``n`` sections; empty for fewer than two
            distinct points.
        """
        sections = self.sections(points)
        if not sections:
            return RoadMesh.empty(self.name)

        vertices = np.vstack([s.render_corners() for s in sections])
        triangles = triangulate(len(sections))
        collision = None
        if self.profile is CrossSectionProfile.EXTENDED:
            collision = np.vstack([s.collision_corners() for s in sections])
        return RoadMesh(
            name=self.name,
            vertices=vertices,
            triangles=triangles,
            normals=compute_vertex_normals(vertices, triangles),
            collision_vertices=collision,
        )


def untangle_sections(sections: List[CrossSection]) -> int:
    """Fix sides that fold back on the inside of tight turns.

    When the edge from one section's side to the next runs against the
    direction of travel, the two sections exchange that side.  Returns
    the number of swaps made.
    """
    swaps = 0
    for a, b in zip(sections[:-1], sections[1:]):
        travel = b.center - a.center
        if np.dot(b.left_edge_point() - a.left_edge_point(), travel) < 0:
            swap_left_sides(a, b)
            swaps += 1
        if np.dot(b.right_edge_point() - a.right_edge_point(), travel) < 0:
            swap_right_sides(a, b)
            swaps += 1
    return swaps
