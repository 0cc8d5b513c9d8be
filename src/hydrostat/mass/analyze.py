#!/usr/bin/env python3
"""
Mass analysis - computes mass, volume and load breakdown for a floating mesh.
"""

from hydrostat.physics.center_of_buoyancy import SALTWATER_DENSITY_KG_M3
from hydrostat.physics.center_of_mass import (
    DEFAULT_MATERIAL_DENSITY_KG_M3,
    combine_center_of_gravity,
    compute_physical_properties,
)


def _xyz(v) -> dict:
    return {'x': round(float(v[0]), 4), 'y': round(float(v[1]), 4), 'z': round(float(v[2]), 4)}


def analyze_mass(mesh, material_density: float = DEFAULT_MATERIAL_DENSITY_KG_M3,
                 loads=(), material_name: str = 'default',
                 fluid_density: float = SALTWATER_DENSITY_KG_M3) -> dict:
    """
    Analyze mass properties of a mesh plus external loads.

    Args:
        mesh: Closed mesh in local coordinates (metres)
        material_density: Density of the base body in kg/m³
        loads: External point loads
        material_name: Label for the base material
        fluid_density: Fluid density used for the flotation check

    Returns:
        Dictionary with mass analysis results
    """
    loads = tuple(loads)
    base = compute_physical_properties(mesh, material_density)
    total_mass, cog_local = combine_center_of_gravity(base, loads)

    components = [{
        'name': 'base',
        'mass_kg': round(base.mass, 2),
        'volume_m3': round(base.volume, 6),
        'material': material_name,
        'CoG': _xyz(base.cog),
    }]
    for load in loads:
        components.append({
            'name': load.id,
            'mass_kg': round(load.mass, 2),
            'position': _xyz(load.position),
        })

    # Fluid volume that must be displaced to carry the total mass; more than
    # the body's own volume means it sinks.
    required_displacement = total_mass / fluid_density if fluid_density > 0 else float('inf')

    return {
        'validator': 'mass',
        'material': {
            'name': material_name,
            'density_kg_m3': material_density,
        },
        'base_volume_m3': round(base.volume, 6),
        'base_volume_liters': round(base.volume * 1000.0, 2),
        'base_mass_kg': round(base.mass, 2),
        'base_cog_local': _xyz(base.cog),
        'load_mass_kg': round(sum(load.mass for load in loads), 2),
        'total_mass_kg': round(total_mass, 2),
        'cog_local': _xyz(cog_local),
        'fluid_density_kg_m3': fluid_density,
        'required_displacement_m3': round(required_displacement, 6),
        'can_float': required_displacement <= base.volume,
        'components': sorted(components, key=lambda x: x['mass_kg'], reverse=True),
        'component_count': len(components),
    }
