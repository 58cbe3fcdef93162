"""Quality assurance for generated road meshes."""

from .mesh_qa import MeshQA

__all__ = ["MeshQA"]
