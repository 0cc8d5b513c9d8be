#!/usr/bin/env python3
"""
Center of buoyancy computation for hydrostatic analysis.

This module provides functions to compute the center of buoyancy (CoB) of a
mesh given a particular pose (vertical displacement z, pitch angle, roll
angle).

The water plane is assumed to be at z=0 in the world frame. The mesh is
transformed according to the pose and every triangle is clipped against the
plane; the submerged part of each triangle contributes a signed tetrahedron
(apex at the world origin) to the submerged volume and its first moment.
The centroid of the submerged volume is the center of buoyancy.

Coordinate system:
    X, Y: horizontal
    Z: vertical (up is positive)

    Pitch: rotation about the local X axis
    Roll: rotation about the local Y axis

    World matrix: T(0, 0, z) * Rx(pitch) * Ry(roll), about the mesh origin

Usage:
    from hydrostat.physics.center_of_buoyancy import compute_center_of_buoyancy

    result = compute_center_of_buoyancy(
        mesh,
        z_displacement=-0.1,  # m below water
        pitch=0.02,           # rad
        roll=0.0              # rad
    )
    # result = {
    #     "CoB": {"x": ..., "y": ..., "z": ...},  # in m, world frame
    #     "submerged_volume_m3": ...,
    #     "submerged_volume_liters": ...,
    #     "buoyancy_force_N": ...
    # }
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .center_of_mass import GRAVITY_M_S2, _signed_tetrahedra
from .geometry import Mesh


# Physical constants
SALTWATER_DENSITY_KG_M3 = 1025.0  # kg/m³

# Accumulated |volume| below this is treated as "nothing submerged".
CLIP_EPSILON = 1e-5


# =============================================================================
# WINDING TABLES
# =============================================================================
# A partially submerged triangle (a, b, c) is described relative to its odd
# vertex k (the only one under water, or the only one above it) using five
# slots:
#
#   0: v[k]   1: v[k+1]   2: v[k+2]   3: cut(v[k], v[k+1])   4: cut(v[k], v[k+2])
#
# (indices mod 3, cut = intersection of that edge with z=0).  Each entry
# lists the sub-triangles, as slot triples, whose signed volume replaces
# the input triangle's.  Every output is wound the same way as (a, b, c).
# =============================================================================

# One vertex under water: the small triangle {v[k], cut1, cut2}.
ONE_UNDER_WINDING = {
    0: ((0, 3, 4),),
    1: ((4, 0, 3),),
    2: ((3, 4, 0),),
}

# Two vertices under water: quad cut1 -> v[k+1] -> v[k+2] -> cut2, split in two.
TWO_UNDER_WINDING = {
    0: ((3, 1, 2), (3, 2, 4)),
    1: ((2, 4, 3), (2, 3, 1)),
    2: ((1, 2, 4), (1, 4, 3)),
}


@dataclass(frozen=True)
class SubmergedProperties:
    """Submerged volume and its centroid (world frame)."""
    volume: float
    centroid: np.ndarray


def pose_matrix(z_displacement: float, pitch: float, roll: float) -> np.ndarray:
    """
    Create the 4×4 world matrix for a pose.

    Rotation about local X (pitch) then local Y (roll), about the mesh
    origin, followed by a vertical translation:

        M = T(0, 0, z) * Rx(pitch) * Ry(roll)
    """
    cos_p = math.cos(pitch)
    sin_p = math.sin(pitch)
    cos_r = math.cos(roll)
    sin_r = math.sin(roll)

    return np.array([
        [cos_r,           0.0,     sin_r,          0.0],
        [sin_p * sin_r,   cos_p,   -sin_p * cos_r, 0.0],
        [-cos_p * sin_r,  sin_p,   cos_p * cos_r,  z_displacement],
        [0.0,             0.0,     0.0,            1.0],
    ])


def transform_points(points: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Apply a 4×4 affine matrix to an (n, 3) array of points."""
    points = np.asarray(points, dtype=float)
    return points @ matrix[:3, :3].T + matrix[:3, 3]


def transform_point(point, matrix: np.ndarray) -> np.ndarray:
    """Apply a 4×4 affine matrix to a single point."""
    return transform_points(np.asarray(point, dtype=float).reshape(1, 3), matrix)[0]


def _cut(p: np.ndarray, q: np.ndarray) -> np.ndarray:
    """Intersections of edges p -> q with the plane z=0 (z forced to exactly 0)."""
    t = -p[:, 2] / (q[:, 2] - p[:, 2])
    cut = p + t[:, None] * (q - p)
    cut[:, 2] = 0.0
    return cut


def clip_submerged(mesh: Mesh, world_matrix: np.ndarray) -> SubmergedProperties:
    """
    Compute the submerged portion of a mesh below the plane z=0.

    Args:
        mesh: Closed mesh in local coordinates
        world_matrix: 4×4 local-to-world transform (e.g. from pose_matrix)

    Returns:
        SubmergedProperties with |submerged volume| and the world-frame CoB.
        Volume and centroid are zero when less than CLIP_EPSILON is under
        water.
    """
    if mesh.triangle_count == 0:
        return SubmergedProperties(volume=0.0, centroid=np.zeros(3))

    tris = mesh.triangle_vertices(transform_points(mesh.vertices, world_matrix))
    under = tris[:, :, 2] < 0.0
    count_under = under.sum(axis=1)

    total_volume = 0.0
    moment = np.zeros(3)

    def accumulate(p1, p2, p3):
        nonlocal total_volume, moment
        volumes, centroids = _signed_tetrahedra(p1, p2, p3)
        total_volume += float(volumes.sum())
        moment = moment + volumes @ centroids

    # Fully submerged
    full = tris[count_under == 3]
    if len(full):
        accumulate(full[:, 0], full[:, 1], full[:, 2])

    # Partially submerged, dispatched on the odd vertex
    for n_under, table in ((1, ONE_UNDER_WINDING), (2, TWO_UNDER_WINDING)):
        for k, sub_triangles in table.items():
            odd = under[:, k] if n_under == 1 else ~under[:, k]
            selected = tris[(count_under == n_under) & odd]
            if not len(selected):
                continue

            pivot = selected[:, k]
            nxt = selected[:, (k + 1) % 3]
            prv = selected[:, (k + 2) % 3]
            slots = (pivot, nxt, prv, _cut(pivot, nxt), _cut(pivot, prv))

            for i, j, m in sub_triangles:
                accumulate(slots[i], slots[j], slots[m])

    if abs(total_volume) < CLIP_EPSILON:
        return SubmergedProperties(volume=0.0, centroid=np.zeros(3))

    return SubmergedProperties(volume=abs(total_volume), centroid=moment / total_volume)


def compute_center_of_buoyancy(mesh: Mesh, z_displacement: float = 0.0,
                               pitch: float = 0.0, roll: float = 0.0,
                               fluid_density: float = SALTWATER_DENSITY_KG_M3,
                               gravity: float = GRAVITY_M_S2) -> dict:
    """
    Compute the center of buoyancy for a mesh at a given pose.

    Args:
        mesh: Mesh in local coordinates (metres)
        z_displacement: Vertical displacement in m (negative = sink)
        pitch: Rotation about local X in radians
        roll: Rotation about local Y in radians
        fluid_density: Fluid density in kg/m³
        gravity: Gravitational acceleration in m/s²

    Returns:
        Dictionary with:
        - CoB: {"x", "y", "z"} center of buoyancy in m (world frame)
        - submerged_volume_m3: Submerged volume in m³
        - submerged_volume_liters: Submerged volume in liters
        - buoyancy_force_N: Buoyancy force in Newtons
        - displacement_kg: Fluid displaced in kg
        - pose: The input pose parameters
    """
    submerged = clip_submerged(mesh, pose_matrix(z_displacement, pitch, roll))

    displacement_kg = submerged.volume * fluid_density
    cob = submerged.centroid

    return {
        "CoB": {
            "x": round(float(cob[0]), 4),
            "y": round(float(cob[1]), 4),
            "z": round(float(cob[2]), 4)
        },
        "submerged_volume_m3": round(submerged.volume, 6),
        "submerged_volume_liters": round(submerged.volume * 1000.0, 3),
        "buoyancy_force_N": round(displacement_kg * gravity, 2),
        "displacement_kg": round(displacement_kg, 2),
        "pose": {
            "z_offset_m": z_displacement,
            "pitch_rad": pitch,
            "roll_rad": roll
        }
    }
