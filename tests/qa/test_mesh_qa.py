"""Unit tests for road mesh QA."""

import numpy as np
import pytest

from src.qa.mesh_qa import MeshQA, designed_outward_normals
from src.roadmesh.cross_section import CrossSectionProfile
from src.roadmesh.mesh_builder import RoadMesh, RoadMeshBuilder


@pytest.fixture
def curved_mesh():
    t = np.linspace(0.0, np.pi, 25)
    points = np.column_stack([30.0 * np.sin(t), 2.0 * t, 30.0 * (1.0 - np.cos(t))])
    return RoadMeshBuilder(width=6.0, thickness=0.5).build(points)


class TestMeshQA:
    """Test suite for MeshQA."""

    def test_generated_mesh_passes(self, curved_mesh):
        results = MeshQA().run(curved_mesh)

        assert results == {
            "vertex_count_ok": True,
            "triangle_count_ok": True,
            "index_bound_ok": True,
            "winding_ok": True,
            "normals_ok": True,
        }

    def test_extended_profile_passes(self):
        builder = RoadMeshBuilder(profile=CrossSectionProfile.EXTENDED)
        mesh = builder.build([[0.0, 0.0, 0.0], [10.0, 1.0, 0.0], [20.0, 1.0, 8.0]])

        assert all(MeshQA().run(mesh).values())

    def test_empty_mesh_passes(self):
        assert all(MeshQA().run(RoadMesh.empty("road")).values())

    def test_flipped_triangle_fails_winding(self, curved_mesh):
        curved_mesh.triangles[5] = curved_mesh.triangles[5][::-1]

        results = MeshQA().run(curved_mesh)

        assert not results["winding_ok"]
        assert results["triangle_count_ok"]

    def test_index_out_of_range(self, curved_mesh):
        curved_mesh.triangles[0, 0] = len(curved_mesh.vertices)

        results = MeshQA().run(curved_mesh)

        assert not results["index_bound_ok"]
        assert not results["winding_ok"]

    def test_missing_triangles(self, curved_mesh):
        curved_mesh.triangles = curved_mesh.triangles[:-2]

        results = MeshQA().run(curved_mesh)

        assert not results["triangle_count_ok"]
        assert not results["winding_ok"]

    def test_bad_normals(self, curved_mesh):
        curved_mesh.normals[3] = [0.0, 0.0, 0.0]

        assert not MeshQA().run(curved_mesh)["normals_ok"]

    def test_zero_width_road_skips_degenerate_faces(self):
        mesh = RoadMeshBuilder(width=0.0, thickness=1.0).build([[0.0, 0.0, 0.0], [5.0, 0.0, 0.0]])

        assert MeshQA().test_winding(mesh)

    def test_designed_normals_on_straight_road(self):
        mesh = RoadMeshBuilder(width=4.0, thickness=1.0).build([[0.0, 0.0, 0.0], [10.0, 0.0, 0.0]])

        outward = designed_outward_normals(mesh.vertices)

        assert outward.shape == (12, 3)
        assert outward[0, 1] > 0  # top
        assert outward[2, 1] < 0  # bottom
        assert outward[4, 2] > 0  # left
        assert outward[6, 2] < 0  # right
        assert outward[8, 0] < 0  # front cap
        assert outward[10, 0] > 0  # back cap
