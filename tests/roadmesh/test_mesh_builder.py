"""Unit tests for road mesh construction."""

import numpy as np
import pytest

from src.roadmesh.cross_section import CrossSectionProfile
from src.roadmesh.mesh_builder import (
    DirectionPolicy,
    RoadMesh,
    RoadMeshBuilder,
    compute_vertex_normals,
    section_directions,
    untangle_sections,
)

STRAIGHT = np.array([[0.0, 0.0, 0.0], [10.0, 0.0, 0.0], [20.0, 0.0, 0.0]])
CORNER = np.array([[0.0, 0.0, 0.0], [10.0, 0.0, 0.0], [10.0, 0.0, 10.0]])


def face_normals(mesh: RoadMesh) -> np.ndarray:
    v = mesh.vertices
    t = mesh.triangles
    return np.cross(v[t[:, 1]] - v[t[:, 0]], v[t[:, 2]] - v[t[:, 0]])


class TestSectionDirections:
    """Test suite for the direction policies."""

    def test_averaged_bisects_corner(self):
        directions = section_directions(CORNER, DirectionPolicy.AVERAGED)

        assert np.allclose(directions[0], [1.0, 0.0, 0.0])
        assert np.allclose(directions[1], [np.sqrt(0.5), 0.0, np.sqrt(0.5)])
        assert np.allclose(directions[2], [0.0, 0.0, 1.0])

    def test_averaged_ignores_segment_length(self):
        """Both segments weigh equally regardless of their length."""
        points = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 0.0, 100.0]])

        directions = section_directions(points, DirectionPolicy.AVERAGED)

        assert np.allclose(directions[1], [np.sqrt(0.5), 0.0, np.sqrt(0.5)])

    def test_endpoint_policy(self):
        directions = section_directions(CORNER, DirectionPolicy.ENDPOINT)

        assert np.allclose(directions[0], [1.0, 0.0, 0.0])
        assert np.allclose(directions[1], [0.0, 0.0, 1.0])
        assert np.allclose(directions[2], [0.0, 0.0, 1.0])

    def test_reversal_falls_back_to_outgoing(self):
        """A path doubling back uses the outgoing segment instead of NaN."""
        points = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 0.0]])

        directions = section_directions(points, DirectionPolicy.AVERAGED)

        assert np.all(np.isfinite(directions))
        assert np.allclose(directions[1], [-1.0, 0.0, 0.0])

    def test_zero_length_segment_rejected(self):
        points = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])

        with pytest.raises(ValueError):
            section_directions(points)

    def test_unit_length(self):
        rng = np.random.default_rng(3)
        points = np.cumsum(rng.uniform(0.5, 1.5, (30, 3)), axis=0)

        directions = section_directions(points)

        assert np.allclose(np.linalg.norm(directions, axis=1), 1.0)


class TestRoadMeshBuilder:
    """Test suite for RoadMeshBuilder."""

    def test_buffer_sizes(self):
        mesh = RoadMeshBuilder(width=4.0, thickness=1.0).build(STRAIGHT)

        assert mesh.vertices.shape == (12, 3)
        assert mesh.triangles.shape == (20, 3)
        assert mesh.normals.shape == (12, 3)
        assert mesh.index_buffer().shape == (60,)
        assert mesh.section_count == 3

    def test_vertex_order(self):
        """Vertices are TL, TR, BL, BR per section, in section order."""
        mesh = RoadMeshBuilder(width=4.0, thickness=1.0).build(STRAIGHT)

        assert np.allclose(mesh.vertices[0], [0.0, 0.5, 2.0])
        assert np.allclose(mesh.vertices[1], [0.0, 0.5, -2.0])
        assert np.allclose(mesh.vertices[2], [0.0, -0.5, 2.0])
        assert np.allclose(mesh.vertices[3], [0.0, -0.5, -2.0])
        assert np.allclose(mesh.vertices[4], [10.0, 0.5, 2.0])

    def test_generate_is_idempotent(self):
        builder = RoadMeshBuilder()
        points = np.array([[0.0, 0.0, 0.0], [3.0, 0.2, 1.0], [7.0, 0.1, 4.0], [9.0, 0.0, 9.0]])

        a = builder.build(points)
        b = builder.build(points)

        assert a.vertices.tobytes() == b.vertices.tobytes()
        assert a.triangles.tobytes() == b.triangles.tobytes()
        assert a.normals.tobytes() == b.normals.tobytes()

    def test_empty_path(self):
        mesh = RoadMeshBuilder().build(np.zeros((0, 3)))

        assert mesh.is_empty
        assert mesh.vertices.shape == (0, 3)
        assert mesh.triangles.shape == (0, 3)

    def test_single_point(self):
        """One point defines no direction and gives an empty mesh."""
        mesh = RoadMeshBuilder().build([[1.0, 2.0, 3.0]])

        assert mesh.is_empty

    def test_duplicate_points_collapsed(self):
        points = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, 0.0], [10.0, 0.0, 0.0], [10.0, 0.0, 0.0]])

        mesh = RoadMeshBuilder().build(points)

        assert mesh.section_count == 2
        assert np.all(np.isfinite(mesh.vertices))
        assert np.all(np.isfinite(mesh.normals))

    def test_only_duplicates(self):
        mesh = RoadMeshBuilder().build([[1.0, 0.0, 1.0]] * 5)

        assert mesh.is_empty

    def test_winding_faces_outward(self):
        """Quads face up, down, left (+z) and right (-z); caps face along x."""
        mesh = RoadMeshBuilder(width=4.0, thickness=1.0).build(STRAIGHT)
        normals = face_normals(mesh)
        segments = normals[:16].reshape(2, 4, 2, 3)

        assert np.all(segments[:, 0, :, 1] > 0)  # top
        assert np.all(segments[:, 1, :, 1] < 0)  # bottom
        assert np.all(segments[:, 2, :, 2] > 0)  # left
        assert np.all(segments[:, 3, :, 2] < 0)  # right
        assert np.all(normals[16:18, 0] < 0)     # front cap
        assert np.all(normals[18:20, 0] > 0)     # back cap

    def test_vertex_normals(self):
        mesh = RoadMeshBuilder(width=4.0, thickness=1.0).build(STRAIGHT)

        assert np.allclose(np.linalg.norm(mesh.normals, axis=1), 1.0)
        # Top vertices lean upwards, bottom vertices downwards
        assert np.all(mesh.normals[0::4, 1] > 0)
        assert np.all(mesh.normals[2::4, 1] < 0)

    def test_basic_profile_has_no_collision_hull(self):
        mesh = RoadMeshBuilder().build(STRAIGHT)

        assert mesh.collision_vertices is None

    def test_extended_profile_collision_hull(self):
        builder = RoadMeshBuilder(
            width=4.0, thickness=1.0, profile=CrossSectionProfile.EXTENDED, hitbox_depth=2.0
        )

        mesh = builder.build(STRAIGHT)

        assert mesh.collision_vertices.shape == mesh.vertices.shape
        assert np.allclose(mesh.collision_vertices[0::4], mesh.vertices[0::4])
        assert np.allclose(mesh.collision_vertices[2::4, 1], -2.5)

    def test_custom_up_axis(self):
        """With z up the road spans y for its width."""
        mesh = RoadMeshBuilder(width=2.0, thickness=1.0, up=(0.0, 0.0, 1.0)).build(STRAIGHT)

        assert np.allclose(np.abs(mesh.vertices[0]), [0.0, 1.0, 0.5])

    def test_bounds_and_outlines(self):
        mesh = RoadMeshBuilder(width=4.0, thickness=1.0).build(STRAIGHT)

        lo, hi = mesh.bounds()
        outlines = mesh.section_outlines()

        assert np.allclose(lo, [0.0, -0.5, -2.0])
        assert np.allclose(hi, [20.0, 0.5, 2.0])
        assert len(outlines) == 3
        top_left, top_right = outlines[0]["top"]
        assert np.allclose(top_left, mesh.vertices[0])
        assert np.allclose(top_right, mesh.vertices[1])

    def test_empty_mesh_has_no_bounds(self):
        with pytest.raises(ValueError):
            RoadMesh.empty("road").bounds()


class TestUntangle:
    """Test suite for folding fixes at tight joints."""

    def test_straight_road_needs_no_swaps(self):
        sections = RoadMeshBuilder(width=4.0).sections(STRAIGHT)

        assert untangle_sections(sections) == 0

    def test_tight_turn_swaps_inner_side(self):
        """A turn much tighter than the road width folds the inner side."""
        points = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 0.0, 1.0]])
        sections = RoadMeshBuilder(width=10.0).sections(points)
        second_left = sections[1].top_left.copy()
        first_right = sections[0].top_right.copy()

        swaps = untangle_sections(sections)

        assert swaps > 0
        assert np.array_equal(sections[0].top_left, second_left)
        assert np.array_equal(sections[0].top_right, first_right)

    def test_builder_option(self):
        points = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 0.0, 1.0]])

        plain = RoadMeshBuilder(width=10.0).build(points)
        untangled = RoadMeshBuilder(width=10.0, untangle_joints=True).build(points)

        assert untangled.vertices.shape == plain.vertices.shape
        assert not np.array_equal(untangled.vertices, plain.vertices)


class TestComputeVertexNormals:
    """Test suite for smooth vertex normals."""

    def test_single_triangle(self):
        vertices = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, 1.0], [1.0, 0.0, 0.0]])
        triangles = np.array([[0, 1, 2]])

        normals = compute_vertex_normals(vertices, triangles)

        assert np.allclose(normals, [[0.0, 1.0, 0.0]] * 3)

    def test_unused_vertex_gets_zero(self):
        vertices = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, 1.0], [1.0, 0.0, 0.0], [5.0, 5.0, 5.0]])
        triangles = np.array([[0, 1, 2]])

        normals = compute_vertex_normals(vertices, triangles)

        assert np.allclose(normals[3], 0.0)
