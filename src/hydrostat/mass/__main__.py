#!/usr/bin/env python3
"""
Mass analysis validator - computes mass, volume and load breakdown of a mesh.
Outputs JSON artifact for downstream validators.
"""

import sys
import os
import json
import argparse

from hydrostat.config import (add_fluid_arguments, add_mesh_arguments, load_json_arg,
                              loads_from_config, material_density)
from hydrostat.physics.geometry import load_mesh

from .analyze import analyze_mass


def main():
    parser = argparse.ArgumentParser(description='Analyze mass properties of a floating mesh')
    add_mesh_arguments(parser)
    add_fluid_arguments(parser)
    parser.add_argument('--output', required=True, help='Path to output JSON artifact')

    args = parser.parse_args()

    if not os.path.exists(args.mesh):
        print(f"ERROR: Mesh file not found: {args.mesh}", file=sys.stderr)
        sys.exit(1)

    materials = load_json_arg(args.materials) if args.materials else None
    try:
        density, material_name = material_density(materials, args.material, args.density)
    except KeyError as e:
        print(f"ERROR: {e.args[0]}", file=sys.stderr)
        sys.exit(1)

    loads = loads_from_config(load_json_arg(args.loads)) if args.loads else []

    print(f"Analyzing mass properties: {args.mesh}")
    mesh = load_mesh(args.mesh, units=args.units, center=args.center)
    result = analyze_mass(mesh, density, loads, material_name=material_name,
                          fluid_density=args.fluid_density)

    # Write JSON output
    os.makedirs(os.path.dirname(args.output) or '.', exist_ok=True)
    with open(args.output, 'w') as f:
        json.dump(result, f, indent=2)

    print(f"✓ Mass analysis complete")
    print(f"  Volume: {result['base_volume_liters']:.2f} liters")
    print(f"  Total mass: {result['total_mass_kg']:.2f} kg")
    print(f"  Floats: {'yes' if result['can_float'] else 'NO'}")
    print(f"  Components: {result['component_count']}")
    print(f"  Output: {args.output}")


if __name__ == "__main__":
    main()
