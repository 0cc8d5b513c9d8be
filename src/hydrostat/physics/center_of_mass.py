#!/usr/bin/env python3
"""
Center of mass (Center of Gravity) computation for hydrostatic analysis.

This module provides functions to compute the volume and centroid of a
closed triangle mesh, the physical properties of a uniformly dense body,
and the combined center of gravity (CoG) of that body plus any external
point loads.

Volume integration uses the divergence theorem: the mesh is decomposed into
signed tetrahedra spanned by the coordinate origin and each triangle.
Outward-facing winding gives positive volume; the sign of the sum is an
artifact of winding and is discarded.  Open meshes are not detected and
silently give a wrong volume.

Usage:
    from hydrostat.physics.center_of_mass import (
        compute_physical_properties, combine_center_of_gravity, ExternalLoad)

    base = compute_physical_properties(mesh, density=200.0)
    loads = [ExternalLoad(mass=80.0, position=(0.0, 0.5, 0.3))]
    total_mass, cog_local = combine_center_of_gravity(base, loads)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Iterable

import numpy as np

from .geometry import Mesh


# Physical constants
GRAVITY_M_S2 = 9.81  # m/s²
DEFAULT_MATERIAL_DENSITY_KG_M3 = 200.0  # light wood / foam

# Below this absolute volume the centroid is undefined and reported as origin.
VOLUME_EPSILON = 1e-12


@dataclass(frozen=True)
class MeshIntegral:
    """Volume and centroid of a closed mesh."""
    volume: float
    centroid: np.ndarray


@dataclass(frozen=True)
class PhysicalProperties:
    """Derived properties of the base body (recomputed on mesh/density change)."""
    mass: float
    density: float
    volume: float
    cog: np.ndarray  # local frame


@dataclass(frozen=True)
class ExternalLoad:
    """
    A rigid load carried by the floating body.

    The solver treats every load as a point mass at *position* (local frame,
    relative to the mesh origin).  *rotation*, *mesh* and *scale* describe
    how the load is drawn and do not enter the force balance.
    """
    mass: float
    position: tuple
    rotation: tuple | None = None
    mesh: Mesh | None = None
    scale: float = 1.0
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self):
        object.__setattr__(self, "position", tuple(float(c) for c in self.position))
        if self.rotation is not None:
            object.__setattr__(self, "rotation", tuple(float(c) for c in self.rotation))

    def with_changes(self, **changes) -> ExternalLoad:
        """Return an edited copy that keeps this load's id."""
        changes.pop("id", None)
        return replace(self, **changes)


def _signed_tetrahedra(p1: np.ndarray, p2: np.ndarray, p3: np.ndarray):
    """Signed volume and centroid of each origin-apex tetrahedron.

    p1, p2, p3 are (m, 3) arrays of triangle corners.
    """
    volumes = np.einsum("ij,ij->i", p1, np.cross(p2, p3)) / 6.0
    centroids = (p1 + p2 + p3) / 4.0
    return volumes, centroids


def integrate_mesh(mesh: Mesh) -> MeshIntegral:
    """
    Compute the enclosed volume and centroid of a closed mesh.

    Args:
        mesh: Closed, consistently wound mesh in local coordinates

    Returns:
        MeshIntegral with |signed volume| and the volume-weighted centroid
        (origin when the volume is numerically zero)
    """
    if mesh.triangle_count == 0:
        return MeshIntegral(volume=0.0, centroid=np.zeros(3))

    tris = mesh.triangle_vertices()
    volumes, centroids = _signed_tetrahedra(tris[:, 0], tris[:, 1], tris[:, 2])

    total = float(volumes.sum())
    if abs(total) < VOLUME_EPSILON:
        return MeshIntegral(volume=0.0, centroid=np.zeros(3))

    moment = volumes @ centroids
    return MeshIntegral(volume=abs(total), centroid=moment / total)


def compute_physical_properties(mesh: Mesh,
                                density: float = DEFAULT_MATERIAL_DENSITY_KG_M3) -> PhysicalProperties:
    """Mass, volume and local CoG of a body of uniform *density* (kg/m³)."""
    integral = integrate_mesh(mesh)
    return PhysicalProperties(
        mass=integral.volume * density,
        density=density,
        volume=integral.volume,
        cog=integral.centroid,
    )


def combine_center_of_gravity(base: PhysicalProperties,
                              loads: Iterable[ExternalLoad] = ()) -> tuple[float, np.ndarray]:
    """
    Combine the base body with external point loads.

    Returns:
        (total_mass, cog_local) where cog_local is the mass-weighted centroid
        in the mesh frame.  With zero total mass the CoG is the origin.
    """
    total_mass = base.mass
    moment = np.asarray(base.cog, dtype=float) * base.mass

    for load in loads:
        total_mass += load.mass
        moment = moment + np.asarray(load.position, dtype=float) * load.mass

    if abs(total_mass) < VOLUME_EPSILON:
        return total_mass, np.zeros(3)

    return total_mass, moment / total_mass


def _xyz(v) -> dict:
    return {"x": round(float(v[0]), 4), "y": round(float(v[1]), 4), "z": round(float(v[2]), 4)}


def compute_center_of_gravity(base: PhysicalProperties,
                              loads: Iterable[ExternalLoad] = (),
                              gravity: float = GRAVITY_M_S2) -> dict:
    """
    Compute the combined center of gravity as a report.

    Args:
        base: Properties of the base body
        loads: External point loads
        gravity: Gravitational acceleration in m/s²

    Returns:
        Dictionary with:
        - CoG: {"x", "y", "z"} combined center of gravity (local frame, m)
        - total_mass_kg: Total mass in kg
        - weight_N: Weight force in Newtons
        - components: Per-component breakdown, heaviest first
    """
    loads = tuple(loads)
    total_mass, cog = combine_center_of_gravity(base, loads)

    components = [{
        "label": "base",
        "mass_kg": round(base.mass, 4),
        "volume_m3": round(base.volume, 6),
        "CoG": _xyz(base.cog),
    }]
    for load in loads:
        components.append({
            "label": load.id,
            "mass_kg": round(load.mass, 4),
            "CoG": _xyz(load.position),
        })

    return {
        "CoG": _xyz(cog),
        "total_mass_kg": round(total_mass, 4),
        "weight_N": round(total_mass * gravity, 2),
        "component_count": len(components),
        "components": sorted(components, key=lambda x: x["mass_kg"], reverse=True),
    }
