# Physics computation library for hydrostatics analysis
#
# This library provides reusable functions for computing:
# - Mesh volume and centroid (divergence theorem)
# - Center of Gravity (CoG) - mass-weighted centroid incl. external loads
# - Center of Buoyancy (CoB) - centroid of the volume below z=0
#
# These functions are designed to be called every tick by the
# buoyancy equilibrium solver.

from .center_of_buoyancy import (
    clip_submerged,
    compute_center_of_buoyancy,
    pose_matrix,
    transform_point,
    transform_points,
    SubmergedProperties,
    ONE_UNDER_WINDING,
    TWO_UNDER_WINDING,
)

from .center_of_mass import (
    integrate_mesh,
    compute_physical_properties,
    combine_center_of_gravity,
    compute_center_of_gravity,
    ExternalLoad,
    MeshIntegral,
    PhysicalProperties,
)

from .geometry import (
    Mesh,
    UNIT_SCALES,
    load_mesh,
    set_reader,
    get_reader,
)

__all__ = [
    # Center of Buoyancy
    'clip_submerged',
    'compute_center_of_buoyancy',
    'pose_matrix',
    'transform_point',
    'transform_points',
    'SubmergedProperties',
    'ONE_UNDER_WINDING',
    'TWO_UNDER_WINDING',
    # Center of Gravity
    'integrate_mesh',
    'compute_physical_properties',
    'combine_center_of_gravity',
    'compute_center_of_gravity',
    'ExternalLoad',
    'MeshIntegral',
    'PhysicalProperties',
    # Geometry
    'Mesh',
    'UNIT_SCALES',
    'load_mesh',
    'set_reader',
    'get_reader',
]
