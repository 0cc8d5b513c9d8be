"""
Command-line configuration helpers shared by the hydrostat CLIs.

Configuration comes from argparse flags plus small JSON side files:

    materials.json   {"materials": {"foam": {"name": "Foam", "density_kg_m3": 200}}}
    loads.json       {"loads": [{"mass_kg": 80, "position": [0, 0.5, 0.3]}]}

Both may also be passed inline as a JSON string.
"""

from __future__ import annotations

import json
import os

from hydrostat.physics.center_of_buoyancy import SALTWATER_DENSITY_KG_M3
from hydrostat.physics.center_of_mass import (
    DEFAULT_MATERIAL_DENSITY_KG_M3,
    GRAVITY_M_S2,
    ExternalLoad,
)
from hydrostat.physics.geometry import UNIT_SCALES


def load_json_arg(value: str):
    """Parse *value* as a path to a JSON file, or else as inline JSON."""
    if os.path.isfile(value):
        with open(value, 'r') as f:
            return json.load(f)
    return json.loads(value)


def loads_from_config(data) -> list[ExternalLoad]:
    """
    Build ExternalLoad objects from a loads document.

    Accepts {"loads": [...]} or a bare list.  Each entry needs "mass_kg" and
    "position"; "rotation", "scale" and "id" are optional.
    """
    entries = data.get('loads', []) if isinstance(data, dict) else data
    loads = []
    for entry in entries:
        kwargs = {
            'mass': float(entry['mass_kg']),
            'position': tuple(entry['position']),
            'rotation': tuple(entry['rotation']) if entry.get('rotation') is not None else None,
            'scale': float(entry.get('scale', 1.0)),
        }
        if entry.get('id'):
            kwargs['id'] = str(entry['id'])
        loads.append(ExternalLoad(**kwargs))
    return loads


def material_density(materials: dict | None, material_key: str | None,
                     density: float | None) -> tuple[float, str]:
    """
    Resolve the base material density.

    An explicit *density* wins; otherwise *material_key* is looked up in the
    materials document; otherwise the default material density is used.

    Returns:
        (density_kg_m3, material_name)

    Raises:
        KeyError: if *material_key* is not in the materials document
    """
    if density is not None:
        return density, 'custom'
    if material_key:
        if not materials or material_key not in materials.get('materials', {}):
            raise KeyError(f"Material not found: {material_key}")
        mat = materials['materials'][material_key]
        return float(mat['density_kg_m3']), mat.get('name', material_key)
    return DEFAULT_MATERIAL_DENSITY_KG_M3, 'default'


def add_mesh_arguments(parser) -> None:
    """Mesh, material and load flags common to every CLI."""
    parser.add_argument('--mesh', required=True,
                        help='Path to mesh file (STL, OBJ, PLY, ...)')
    parser.add_argument('--units', default='m', choices=sorted(UNIT_SCALES),
                        help='Units of the mesh file (default: m)')
    parser.add_argument('--center', action='store_true',
                        help='Centre the mesh on the origin and raise it by half its depth')
    parser.add_argument('--materials',
                        help='Path to materials JSON file or inline JSON string')
    parser.add_argument('--material',
                        help='Material key in the materials file')
    parser.add_argument('--density', type=float,
                        help=f'Material density in kg/m³ (default: {DEFAULT_MATERIAL_DENSITY_KG_M3})')
    parser.add_argument('--loads',
                        help='Path to loads JSON file or inline JSON string')


def add_fluid_arguments(parser) -> None:
    parser.add_argument('--fluid-density', type=float, default=SALTWATER_DENSITY_KG_M3,
                        help=f'Fluid density in kg/m³ (default: {SALTWATER_DENSITY_KG_M3})')
    parser.add_argument('--gravity', type=float, default=GRAVITY_M_S2,
                        help=f'Gravitational acceleration in m/s² (default: {GRAVITY_M_S2})')
