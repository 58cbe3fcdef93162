"""Quality assurance checks for generated road meshes.

`MeshQA` collects structural tests on a `RoadMesh`.  Each test returns
a boolean; `run` aggregates them into a dictionary of QA flags, the
same shape the pipeline reports in its summary.
"""

from dataclasses import dataclass
from typing import Dict

import numpy as np

from ..roadmesh.mesh_builder import RoadMesh
from ..roadmesh.triangulator import triangle_count


def designed_outward_normals(vertices: np.ndarray) -> np.ndarray:
    """Outward direction of every triangle in the standard tube layout.

    Segment quads face the section's up, down, left or right side
    (averaged over the two sections they join); the caps face against
    and along the direction of travel.  The result has one row per
    triangle, in triangulator order.
    """
    corners = vertices.reshape(-1, 4, 3)
    tl, tr, bl, br = corners[:, 0], corners[:, 1], corners[:, 2], corners[:, 3]
    up = (tl + tr - bl - br) / 2.0
    left = (tl + bl - tr - br) / 2.0
    seg_up = up[:-1] + up[1:]
    seg_left = left[:-1] + left[1:]
    per_quad = np.stack([seg_up, -seg_up, seg_left, -seg_left], axis=1).reshape(-1, 3)
    centres = corners.mean(axis=1)
    front = centres[0] - centres[1]
    back = centres[-1] - centres[-2]
    return np.vstack([np.repeat(per_quad, 2, axis=0), front, front, back, back])


@dataclass
class MeshQA:
    """Run structural tests on road meshes."""

    normal_tolerance: float = 1e-6
    """Allowed deviation of vertex normal lengths from 1."""

    area_epsilon: float = 1e-12
    """Triangles with a smaller doubled area, or whose side has no
    extent (e.g. zero-width roads), are skipped by the winding test."""

    def test_vertex_count(self, mesh: RoadMesh) -> bool:
        """Four vertices per section, and matching normals."""
        return len(mesh.vertices) % 4 == 0 and len(mesh.normals) == len(mesh.vertices)

    def test_triangle_count(self, mesh: RoadMesh) -> bool:
        """Triangle count follows ``(n - 1) * 8 + 4``."""
        return len(mesh.triangles) == triangle_count(mesh.section_count)

    def test_index_bound(self, mesh: RoadMesh) -> bool:
        """Every index addresses an existing vertex."""
        if len(mesh.triangles) == 0:
            return True
        return bool(mesh.triangles.min() >= 0 and mesh.triangles.max() < len(mesh.vertices))

    def test_winding(self, mesh: RoadMesh) -> bool:
        """Every triangle faces away from the tube interior.

        The face normal ``cross(b - a, c - a)`` must point along the
        outward direction its quad was designed to face.  Only valid
        for meshes that pass the count and index tests.
        """
        if len(mesh.triangles) == 0:
            return True
        v = mesh.vertices
        tris = mesh.triangles
        a, b, c = v[tris[:, 0]], v[tris[:, 1]], v[tris[:, 2]]
        normals = np.cross(b - a, c - a)
        outward = designed_outward_normals(v)
        considered = (
            (np.linalg.norm(normals, axis=1) > self.area_epsilon)
            & (np.linalg.norm(outward, axis=1) > self.area_epsilon)
        )
        facing = np.einsum("ij,ij->i", normals, outward)
        return bool(np.all(facing[considered] > 0))

    def test_normals(self, mesh: RoadMesh) -> bool:
        """Vertex normals are finite unit vectors."""
        if len(mesh.normals) == 0:
            return True
        if not np.all(np.isfinite(mesh.normals)):
            return False
        lengths = np.linalg.norm(mesh.normals, axis=1)
        return bool(np.all(np.abs(lengths - 1.0) <= self.normal_tolerance))

    def run(self, mesh: RoadMesh) -> Dict[str, bool]:
        """Run all QA tests on a mesh.

        Parameters
        ----------
        mesh : RoadMesh
            Generated road mesh.

        Returns
        -------
        dict
            Mapping from test names to boolean pass/fail values.
        """
        results = {
            "vertex_count_ok": self.test_vertex_count(mesh),
            "triangle_count_ok": self.test_triangle_count(mesh),
            "index_bound_ok": self.test_index_bound(mesh),
        }
        # The winding test relies on the standard buffer layout.
        structural = all(results.values())
        results["winding_ok"] = structural and self.test_winding(mesh)
        results["normals_ok"] = self.test_normals(mesh)
        return results
