"""
Mesh model and mesh-reader abstraction layer for hydrostat.

A Mesh is an immutable triangle soup in the object's local frame.  Indexed
and flat storage are normalised once, at construction, into a single
(m, 3) array of vertex offsets so that every integrator walks triangles the
same way.

Mesh decoding (STL, OBJ, ...) lives behind the MeshReader protocol so the
rest of the library never imports a specific file-format library directly.

Auto-detection: the first call to get_reader() lazily imports the trimesh
reader.  Use set_reader() to override (e.g. for tests or alternative
readers).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import numpy as np


# Import-unit scale factors (file units -> metres).
UNIT_SCALES = {
    "m": 1.0,
    "mm": 0.001,
    "cm": 0.01,
    "in": 0.0254,
    "ft": 0.3048,
}

# Fraction of the below-origin depth a centred mesh is raised on import.
SPAWN_LIFT = 0.5


@dataclass(frozen=True, eq=False)
class Mesh:
    """Closed triangle mesh in local coordinates.

    Attributes:
        vertices: (n, 3) float64 vertex positions
        indices: flat int array of triangle-vertex offsets, or None when the
                 vertices are consumed in consecutive triples
        triangles: (m, 3) vertex offsets per triangle, derived at construction

    Equality is identity: solver pose state is keyed to a particular mesh
    object, not to its contents.
    """

    vertices: np.ndarray
    indices: np.ndarray | None = None
    triangles: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        vertices = np.array(self.vertices, dtype=np.float64)
        if vertices.size % 3:
            raise ValueError(f"vertex data has {vertices.size} values, not a multiple of 3")
        vertices = vertices.reshape(-1, 3)
        vertices.setflags(write=False)

        if self.indices is None:
            if len(vertices) % 3:
                raise ValueError(
                    f"flat mesh needs a multiple of 3 vertices, got {len(vertices)}")
            indices = None
            triangles = np.arange(len(vertices), dtype=np.intp).reshape(-1, 3)
        else:
            indices = np.array(self.indices, dtype=np.intp).ravel()
            if len(indices) % 3:
                raise ValueError(
                    f"index count must be a multiple of 3, got {len(indices)}")
            if len(indices) and (indices.min() < 0 or indices.max() >= len(vertices)):
                raise ValueError(
                    f"index out of range for {len(vertices)} vertices")
            indices.setflags(write=False)
            triangles = indices.reshape(-1, 3)

        triangles.setflags(write=False)

        object.__setattr__(self, "vertices", vertices)
        object.__setattr__(self, "indices", indices)
        object.__setattr__(self, "triangles", triangles)

    @classmethod
    def from_arrays(cls, vertices, indices=None) -> Mesh:
        """Build a mesh from any array-likes (lists, tuples, numpy arrays)."""
        return cls(vertices=vertices, indices=indices)

    @property
    def triangle_count(self) -> int:
        return len(self.triangles)

    @property
    def is_indexed(self) -> bool:
        return self.indices is not None

    def triangle_vertices(self, vertices: np.ndarray | None = None) -> np.ndarray:
        """Gather an (m, 3, 3) array of triangle corners.

        *vertices* may be a transformed copy of self.vertices (same length);
        defaults to the local-frame vertices.
        """
        if vertices is None:
            vertices = self.vertices
        return vertices[self.triangles]

    def scaled(self, factor: float) -> Mesh:
        """Return a copy with every vertex multiplied by *factor*."""
        return Mesh(vertices=self.vertices * factor, indices=self.indices)

    def translated(self, offset) -> Mesh:
        """Return a copy with every vertex shifted by *offset* (x, y, z)."""
        return Mesh(vertices=self.vertices + np.asarray(offset, dtype=np.float64),
                    indices=self.indices)

    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        """Axis-aligned bounding box as (min, max) corners."""
        if not len(self.vertices):
            return np.zeros(3), np.zeros(3)
        return self.vertices.min(axis=0), self.vertices.max(axis=0)

    def centered(self) -> Mesh:
        """Return a copy whose bounding-box centre sits at the origin."""
        lo, hi = self.bounds()
        return self.translated(-(lo + hi) / 2.0)


@runtime_checkable
class MeshReader(Protocol):
    """File I/O, called once per mesh import."""

    def read(self, path: str) -> Mesh:
        """Decode a mesh file into a Mesh in file units."""
        ...


# ---------------------------------------------------------------------------
# Module-level registry
# ---------------------------------------------------------------------------

_reader: MeshReader | None = None


def _auto_detect() -> MeshReader:
    """Try to import known readers in priority order."""
    # trimesh
    try:
        from .geometry_trimesh import TrimeshReader
        return TrimeshReader()
    except ImportError:
        pass

    raise RuntimeError(
        "No mesh reader available. Install trimesh (pip install trimesh) "
        "or call set_reader() with a custom implementation."
    )


def set_reader(reader: MeshReader | None) -> None:
    """Explicitly set the mesh reader (None re-enables auto-detection)."""
    global _reader
    _reader = reader


def get_reader() -> MeshReader:
    """Return the active MeshReader, auto-detecting if needed."""
    global _reader
    if _reader is None:
        _reader = _auto_detect()
    return _reader


def load_mesh(path: str, units: str = "m", center: bool = False) -> Mesh:
    """
    Read a mesh file and scale it from *units* to metres.

    With *center*, the bounding-box centre is moved to the origin and the
    mesh is then raised by SPAWN_LIFT times its depth below the origin.
    """
    if units not in UNIT_SCALES:
        raise ValueError(
            f"Unknown units {units!r}; expected one of {', '.join(UNIT_SCALES)}")
    mesh = get_reader().read(path)
    factor = UNIT_SCALES[units]
    if factor != 1.0:
        mesh = mesh.scaled(factor)
    if center:
        mesh = mesh.centered()
        lo, _ = mesh.bounds()
        mesh = mesh.translated((0.0, 0.0, -lo[2] * SPAWN_LIFT))
    return mesh
