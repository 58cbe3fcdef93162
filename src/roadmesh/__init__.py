"""Road mesh generation.

This package turns a centre line into a closed road mesh: cross
sections perpendicular to the line, a triangulated tube connecting
them, and smooth vertex normals.  `Road` ties the geometry to host
capabilities (coordinate frame and mesh sink) and to terrain fitting.
"""

from .cross_section import (
    CrossSection,
    CrossSectionProfile,
    DegenerateDirectionError,
    build_cross_section,
    swap_left_sides,
    swap_right_sides,
)
from .triangulator import triangulate, triangle_count
from .mesh_builder import (
    RoadMesh,
    RoadMeshBuilder,
    DirectionPolicy,
    section_directions,
    compute_vertex_normals,
    untangle_sections,
)
from .frames import CoordinateFrame, IdentityFrame, AffineFrame, MeshSink, InMemoryMeshSink
from .road import Road

__all__ = [
    "CrossSection",
    "CrossSectionProfile",
    "DegenerateDirectionError",
    "build_cross_section",
    "swap_left_sides",
    "swap_right_sides",
    "triangulate",
    "triangle_count",
    "RoadMesh",
    "RoadMeshBuilder",
    "DirectionPolicy",
    "section_directions",
    "compute_vertex_normals",
    "untangle_sections",
    "CoordinateFrame",
    "IdentityFrame",
    "AffineFrame",
    "MeshSink",
    "InMemoryMeshSink",
    "Road",
]
