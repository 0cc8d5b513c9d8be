"""
trimesh implementation of the mesh-reader abstraction layer.

This is the **only** file in hydrostat that imports trimesh outside tests.
"""

from __future__ import annotations

import sys

try:
    import trimesh
except ImportError as e:
    print(f"ERROR: {e}", file=sys.stderr)
    print("This module requires trimesh (pip install trimesh)", file=sys.stderr)
    raise

from .geometry import Mesh


def _as_single_mesh(loaded) -> trimesh.Trimesh:
    """Collapse a Scene (multi-body files such as OBJ/GLB) into one Trimesh."""
    if isinstance(loaded, trimesh.Scene):
        geometries = [g for g in loaded.dump() if isinstance(g, trimesh.Trimesh)]
        if not geometries:
            raise ValueError("mesh file contains no triangle geometry")
        return trimesh.util.concatenate(geometries)
    if not isinstance(loaded, trimesh.Trimesh):
        raise ValueError(f"mesh file holds {type(loaded).__name__}, not a triangle mesh")
    return loaded


class TrimeshReader:
    """MeshReader implemented on top of trimesh.load."""

    def read(self, path: str) -> Mesh:
        tm = _as_single_mesh(trimesh.load(path, process=False))
        return Mesh.from_arrays(
            vertices=tm.vertices,
            indices=tm.faces,
        )
