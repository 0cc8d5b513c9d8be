#!/usr/bin/env python3
"""
Physics computation CLI - computes center of gravity and center of buoyancy.

Usage:
    # Compute volume, mass and center of gravity
    python -m hydrostat.physics cog --mesh hull.stl --density 200 \
                              --loads loads.json \
                              --output artifact/hull.cog.json

    # Compute center of buoyancy at a specific pose
    python -m hydrostat.physics cob --mesh hull.stl \
                              --z -0.1 --pitch 2.0 --roll 0.5 \
                              --output artifact/hull.cob.json
"""

import sys
import os
import json
import math
import argparse

from hydrostat.config import (add_fluid_arguments, add_mesh_arguments, load_json_arg,
                              loads_from_config, material_density)
from hydrostat.physics.center_of_mass import (GRAVITY_M_S2, compute_physical_properties,
                                              compute_center_of_gravity)
from hydrostat.physics.center_of_buoyancy import compute_center_of_buoyancy
from hydrostat.physics.geometry import UNIT_SCALES, load_mesh


def _check_mesh(path):
    if not os.path.exists(path):
        print(f"ERROR: Mesh file not found: {path}", file=sys.stderr)
        sys.exit(1)


def _write(result, path):
    os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
    with open(path, 'w') as f:
        json.dump(result, f, indent=2)


def cmd_cog(args):
    """Compute center of gravity."""
    _check_mesh(args.mesh)
    print(f"Computing center of gravity: {args.mesh}")

    materials = load_json_arg(args.materials) if args.materials else None
    try:
        density, material_name = material_density(materials, args.material, args.density)
    except KeyError as e:
        print(f"ERROR: {e.args[0]}", file=sys.stderr)
        sys.exit(1)
    print(f"  Material: {material_name} ({density:.1f} kg/m³)")

    loads = loads_from_config(load_json_arg(args.loads)) if args.loads else []

    mesh = load_mesh(args.mesh, units=args.units, center=args.center)
    base = compute_physical_properties(mesh, density)
    result = compute_center_of_gravity(base, loads, gravity=args.gravity)
    result['volume_m3'] = round(base.volume, 6)

    # Add validator field for pipeline compatibility
    result['validator'] = 'cog'
    _write(result, args.output)

    print(f"✓ Center of gravity computed")
    print(f"  CoG: ({result['CoG']['x']:.3f}, {result['CoG']['y']:.3f}, {result['CoG']['z']:.3f}) m")
    print(f"  Volume: {result['volume_m3']:.6f} m³")
    print(f"  Total mass: {result['total_mass_kg']:.2f} kg")
    print(f"  Weight: {result['weight_N']:.2f} N")
    print(f"  Components: {result['component_count']}")
    print(f"  Output: {args.output}")


def cmd_cob(args):
    """Compute center of buoyancy."""
    _check_mesh(args.mesh)
    print(f"Computing center of buoyancy: {args.mesh}")
    print(f"  Pose: z={args.z} m, pitch={args.pitch}°, roll={args.roll}°")

    mesh = load_mesh(args.mesh, units=args.units, center=args.center)

    result = compute_center_of_buoyancy(
        mesh,
        z_displacement=args.z,
        pitch=math.radians(args.pitch),
        roll=math.radians(args.roll),
        fluid_density=args.fluid_density,
        gravity=args.gravity,
    )

    # Add validator field for pipeline compatibility
    result['validator'] = 'cob'
    _write(result, args.output)

    print(f"✓ Center of buoyancy computed")
    print(f"  CoB: ({result['CoB']['x']:.3f}, {result['CoB']['y']:.3f}, {result['CoB']['z']:.3f}) m")
    print(f"  Submerged volume: {result['submerged_volume_liters']:.2f} liters")
    print(f"  Buoyancy force: {result['buoyancy_force_N']:.2f} N")
    print(f"  Displacement: {result['displacement_kg']:.2f} kg")
    print(f"  Output: {args.output}")


def main():
    parser = argparse.ArgumentParser(
        description='Physics computations for hydrostatic analysis',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # CoG subcommand
    cog_parser = subparsers.add_parser('cog', help='Compute volume, mass and center of gravity')
    add_mesh_arguments(cog_parser)
    cog_parser.add_argument('--gravity', type=float, default=GRAVITY_M_S2,
                            help=f'Gravity in m/s² (default: {GRAVITY_M_S2})')
    cog_parser.add_argument('--output', required=True, help='Path to output JSON file')

    # CoB subcommand
    cob_parser = subparsers.add_parser('cob', help='Compute center of buoyancy')
    cob_parser.add_argument('--mesh', required=True, help='Path to mesh file')
    cob_parser.add_argument('--units', default='m', choices=sorted(UNIT_SCALES),
                            help='Units of the mesh file (default: m)')
    cob_parser.add_argument('--center', action='store_true',
                            help='Centre the mesh on the origin and raise it by half its depth')
    cob_parser.add_argument('--z', type=float, default=0.0, help='Z displacement in m (negative = sink)')
    cob_parser.add_argument('--pitch', type=float, default=0.0, help='Rotation about X in degrees')
    cob_parser.add_argument('--roll', type=float, default=0.0, help='Rotation about Y in degrees')
    add_fluid_arguments(cob_parser)
    cob_parser.add_argument('--output', required=True, help='Path to output JSON file')

    args = parser.parse_args()

    if args.command == 'cog':
        cmd_cog(args)
    elif args.command == 'cob':
        cmd_cob(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
