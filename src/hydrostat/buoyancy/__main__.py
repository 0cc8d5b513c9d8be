#!/usr/bin/env python3
"""
Buoyancy equilibrium solver - floats a mesh to its equilibrium pose.

Ticks the real-time controller offline until:
1. Force equilibrium: buoyancy force = weight
2. Moment equilibrium: CoB is directly below CoG (no pitch/roll moments)

Usage:
    python -m hydrostat.buoyancy \
        --mesh hull.stl --units mm \
        --materials materials.json --material foam \
        --loads loads.json \
        --output artifact/hull.buoyancy.json \
        --output-png artifact/hull.buoyancy.png
"""

import sys
import os
import json
import argparse

from hydrostat.config import (add_fluid_arguments, add_mesh_arguments, load_json_arg,
                              loads_from_config, material_density)
from hydrostat.physics.center_of_mass import compute_physical_properties
from hydrostat.physics.geometry import load_mesh

from .solve import solve_equilibrium, plot_convergence, DEFAULT_MAX_TICKS, DEFAULT_TOLERANCE


def main():
    parser = argparse.ArgumentParser(
        description='Find buoyancy equilibrium pose of a floating mesh',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    add_mesh_arguments(parser)
    add_fluid_arguments(parser)
    parser.add_argument('--output', required=True,
                        help='Path to output JSON file')
    parser.add_argument('--output-png',
                        help='Path to output PNG convergence plot (optional)')
    parser.add_argument('--max-ticks', type=int, default=DEFAULT_MAX_TICKS,
                        help=f'Maximum solver ticks (default: {DEFAULT_MAX_TICKS})')
    parser.add_argument('--tolerance', type=float, default=DEFAULT_TOLERANCE,
                        help=f'Convergence tolerance (default: {DEFAULT_TOLERANCE})')
    parser.add_argument('--quiet', action='store_true',
                        help='Suppress progress output')

    args = parser.parse_args()

    if not os.path.exists(args.mesh):
        print(f"ERROR: Mesh file not found: {args.mesh}", file=sys.stderr)
        sys.exit(1)

    verbose = not args.quiet

    materials = load_json_arg(args.materials) if args.materials else None
    try:
        density, material_name = material_density(materials, args.material, args.density)
    except KeyError as e:
        print(f"ERROR: {e.args[0]}", file=sys.stderr)
        sys.exit(1)

    loads = loads_from_config(load_json_arg(args.loads)) if args.loads else []

    if verbose:
        print(f"Solving buoyancy equilibrium: {args.mesh}")
        print(f"  Material: {material_name} ({density:.1f} kg/m³)")
        print(f"  Fluid density: {args.fluid_density:.1f} kg/m³")

    mesh = load_mesh(args.mesh, units=args.units, center=args.center)
    base = compute_physical_properties(mesh, density)

    if verbose:
        print(f"  Triangles: {mesh.triangle_count}")
        print(f"  Volume: {base.volume:.6f} m³, mass: {base.mass:.2f} kg")
        print(f"  External loads: {len(loads)}")
        print("  Running equilibrium solver...")

    result = solve_equilibrium(
        mesh,
        base,
        loads,
        fluid_density=args.fluid_density,
        gravity=args.gravity,
        max_ticks=args.max_ticks,
        tolerance=args.tolerance,
        verbose=verbose
    )

    # Add validator field
    result['validator'] = 'buoyancy'

    # Write output
    os.makedirs(os.path.dirname(args.output) or '.', exist_ok=True)
    with open(args.output, 'w') as f:
        json.dump(result, f, indent=2)

    if verbose and 'equilibrium' in result:
        print(f"✓ Buoyancy equilibrium {'found' if result['converged'] else 'NOT CONVERGED'}")
        eq = result['equilibrium']
        print(f"  Equilibrium pose:")
        print(f"    z offset: {eq['z_offset_m']:.4f} m")
        print(f"    pitch: {eq['pitch_deg']:.4f}°")
        print(f"    roll: {eq['roll_deg']:.4f}°")
        cog_w = result['center_of_gravity_world']
        cob = result['center_of_buoyancy']
        print(f"  CoG (world): ({cog_w['x']:.3f}, {cog_w['y']:.3f}, {cog_w['z']:.3f}) m")
        print(f"  CoB (world): ({cob['x']:.3f}, {cob['y']:.3f}, {cob['z']:.3f}) m")
        print(f"  Submerged volume: {result['submerged_volume_m3']:.6f} m³ "
              f"of {result['total_volume_m3']:.6f} m³")
        print(f"  Buoyancy force: {result['buoyancy_force_N']:.2f} N")
        if not result['stable']:
            print("  WARNING: Unstable / sinking. Check mass vs density.")
        print(f"  Output: {args.output}")

    if args.output_png:
        plot_convergence(result, args.output_png)

    # Exit with error if not converged
    if not result['converged']:
        sys.exit(1)


if __name__ == "__main__":
    main()
