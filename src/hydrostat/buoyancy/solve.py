#!/usr/bin/env python3
"""
Buoyancy equilibrium solver - floats a mesh to its equilibrium pose.

A damped proportional controller refines the pose (z, pitch, roll) a few
iterations per tick so that:
1. Force equilibrium: buoyancy force = weight
2. Moment equilibrium: CoB is directly below CoG (no pitch/roll moments)

The controller gains, clamps and damping factors below are convergence-rate
tuning constants, not physical parameters.  The clamps assume metre-scale
meshes; there is no adaptive scaling.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

import numpy as np

from hydrostat.physics.center_of_buoyancy import (
    SALTWATER_DENSITY_KG_M3,
    clip_submerged,
    pose_matrix,
    transform_point,
)
from hydrostat.physics.center_of_mass import (
    GRAVITY_M_S2,
    VOLUME_EPSILON,
    ExternalLoad,
    PhysicalProperties,
    combine_center_of_gravity,
)
from hydrostat.physics.geometry import Mesh


# Controller parameters
INNER_ITERATIONS = 5        # pose updates per tick
HEAVE_GAIN = 5e-5           # m per N of net vertical force
ROTATION_GAIN = 0.02        # rad per m of horizontal CoG/CoB offset
HEAVE_STEP_LIMIT = 0.5      # m, before damping
ROTATION_STEP_LIMIT = 0.05  # rad, before damping
DAMPING_TRANSLATION = 0.1
DAMPING_ROTATION = 0.05

# Offline driver parameters
DEFAULT_MAX_TICKS = 2000
DEFAULT_TOLERANCE = 1e-4

# Displaced mass more than this fraction away from total mass flags the
# body as unstable or sinking.
STABILITY_TOLERANCE = 0.1


@dataclass
class Pose:
    """Solver state for one floating object: heave (m), pitch and roll (rad)."""
    z: float = 0.0
    rx: float = 0.0
    ry: float = 0.0

    def matrix(self) -> np.ndarray:
        return pose_matrix(self.z, self.rx, self.ry)

    def reset(self) -> None:
        self.z = 0.0
        self.rx = 0.0
        self.ry = 0.0


@dataclass(frozen=True)
class SolverResult:
    """Snapshot emitted once per tick."""
    displacement: float
    pitch: float
    roll: float
    submerged_volume: float
    cob: np.ndarray           # world frame
    total_mass: float
    combined_cog: np.ndarray  # world frame

    def to_dict(self) -> dict:
        return {
            "displacement_m": round(self.displacement, 6),
            "pitch_rad": round(self.pitch, 6),
            "roll_rad": round(self.roll, 6),
            "submerged_volume_m3": round(self.submerged_volume, 6),
            "CoB": _xyz(self.cob),
            "total_mass_kg": round(self.total_mass, 4),
            "CoG": _xyz(self.combined_cog),
        }


def _xyz(v) -> dict:
    return {"x": round(float(v[0]), 4), "y": round(float(v[1]), 4), "z": round(float(v[2]), 4)}


def _clamp(value: float, limit: float) -> float:
    return max(-limit, min(limit, value))


def step_equilibrium(pose: Pose, mesh: Mesh | None, base: PhysicalProperties,
                     loads: Iterable[ExternalLoad] = (),
                     fluid_density: float = SALTWATER_DENSITY_KG_M3,
                     gravity: float = GRAVITY_M_S2) -> SolverResult | None:
    """
    Advance *pose* by one tick (INNER_ITERATIONS controller updates).

    Args:
        pose: Pose to update in place
        mesh: Mesh of the floating body, or None if not loaded yet
        base: Physical properties of the base body
        loads: External point loads (snapshotted for the whole tick)
        fluid_density: Fluid density in kg/m³
        gravity: Gravitational acceleration in m/s²

    Returns:
        SolverResult for the final inner iteration, or None when the tick is
        skipped (no mesh, degenerate volume, no mass); the pose is then left
        untouched.
    """
    if mesh is None or mesh.triangle_count == 0 or base.volume < VOLUME_EPSILON:
        return None

    total_mass, cog_local = combine_center_of_gravity(base, tuple(loads))
    if total_mass <= 0.0:
        return None

    weight_force = total_mass * gravity

    for _ in range(INNER_ITERATIONS):
        matrix = pose.matrix()
        submerged = clip_submerged(mesh, matrix)
        cob_world = submerged.centroid

        # Heave
        buoyancy_force = submerged.volume * fluid_density * gravity
        net_force_z = buoyancy_force - weight_force
        heave_step = _clamp(net_force_z * HEAVE_GAIN, HEAVE_STEP_LIMIT)
        pose.z += heave_step * DAMPING_TRANSLATION

        # Righting: drive the horizontal CoG/CoB offset to zero
        cog_world = transform_point(cog_local, matrix)
        dx = cog_world[0] - cob_world[0]
        dy = cog_world[1] - cob_world[1]

        pitch_step = _clamp(dy * ROTATION_GAIN, ROTATION_STEP_LIMIT)
        roll_step = _clamp(dx * ROTATION_GAIN, ROTATION_STEP_LIMIT)
        pose.rx -= pitch_step * DAMPING_ROTATION
        pose.ry += roll_step * DAMPING_ROTATION

    return SolverResult(
        displacement=pose.z,
        pitch=pose.rx,
        roll=pose.ry,
        submerged_volume=submerged.volume,
        cob=cob_world,
        total_mass=total_mass,
        combined_cog=cog_world,
    )


class EquilibriumSolver:
    """
    Per-object solver that owns a Pose keyed to mesh identity.

    Attaching a different mesh object resets the pose to zero; re-attaching
    the same mesh keeps it.
    """

    def __init__(self, mesh: Mesh | None = None):
        self.mesh = None
        self.pose = Pose()
        self.result = None
        if mesh is not None:
            self.attach(mesh)

    def attach(self, mesh: Mesh) -> None:
        if mesh is not self.mesh:
            self.mesh = mesh
            self.pose.reset()
            self.result = None

    def detach(self) -> None:
        self.mesh = None
        self.pose.reset()
        self.result = None

    def tick(self, base: PhysicalProperties, loads: Iterable[ExternalLoad] = (),
             fluid_density: float = SALTWATER_DENSITY_KG_M3,
             gravity: float = GRAVITY_M_S2) -> SolverResult | None:
        """Run one tick; returns None (and keeps the last result) if skipped."""
        result = step_equilibrium(self.pose, self.mesh, base, tuple(loads),
                                  fluid_density=fluid_density, gravity=gravity)
        if result is not None:
            self.result = result
        return result


def compute_residuals(result: SolverResult, fluid_density: float,
                      gravity: float = GRAVITY_M_S2) -> np.ndarray:
    """
    Compute equilibrium residuals for a tick result.

    Returns array of [force_residual, pitch_moment, roll_moment]:
    - force_residual: (buoyancy - weight) / weight  [normalized]
    - pitch_moment: CoB_y - CoG_y  [m]
    - roll_moment: CoB_x - CoG_x  [m]

    At equilibrium, all residuals should be zero.
    """
    weight_N = result.total_mass * gravity
    buoyancy_N = result.submerged_volume * fluid_density * gravity

    force_residual = (buoyancy_N - weight_N) / weight_N if weight_N > 0 else 0.0
    pitch_moment = result.cob[1] - result.combined_cog[1]
    roll_moment = result.cob[0] - result.combined_cog[0]

    return np.array([force_residual, pitch_moment, roll_moment])


def is_stable(submerged_volume: float, total_mass: float,
              fluid_density: float = SALTWATER_DENSITY_KG_M3) -> bool:
    """True when the displaced fluid mass is within STABILITY_TOLERANCE of *total_mass*."""
    return abs(submerged_volume * fluid_density - total_mass) <= STABILITY_TOLERANCE * total_mass


def solve_equilibrium(mesh: Mesh, base: PhysicalProperties,
                      loads: Iterable[ExternalLoad] = (),
                      fluid_density: float = SALTWATER_DENSITY_KG_M3,
                      gravity: float = GRAVITY_M_S2,
                      max_ticks: int = DEFAULT_MAX_TICKS,
                      tolerance: float = DEFAULT_TOLERANCE,
                      verbose: bool = True) -> dict:
    """
    Tick the solver until the residuals settle (offline use).

    Args:
        mesh: Mesh of the floating body (metres)
        base: Physical properties of the base body
        loads: External point loads
        fluid_density: Fluid density in kg/m³
        gravity: Gravitational acceleration in m/s²
        max_ticks: Maximum number of ticks
        tolerance: Convergence tolerance for the residual norm
        verbose: Print progress information

    Returns:
        Dictionary with equilibrium results
    """
    loads = tuple(loads)
    solver = EquilibriumSolver(mesh)

    history = []
    converged = False
    residuals = np.zeros(3)

    for tick in range(max_ticks):
        result = solver.tick(base, loads, fluid_density=fluid_density, gravity=gravity)
        if result is None:
            if verbose:
                print("  Degenerate mesh (zero volume), nothing to solve")
            break

        residuals = compute_residuals(result, fluid_density, gravity)
        residual_norm = float(np.linalg.norm(residuals))

        history.append({
            'tick': tick,
            'z_m': round(result.displacement, 6),
            'pitch_rad': round(result.pitch, 6),
            'roll_rad': round(result.roll, 6),
            'residual_norm': round(residual_norm, 8),
            'force_residual': round(float(residuals[0]), 8),
            'pitch_residual': round(float(residuals[1]), 8),
            'roll_residual': round(float(residuals[2]), 8),
            'submerged_volume_m3': round(result.submerged_volume, 6),
        })

        if verbose and tick % 100 == 0:
            print(f"  Tick {tick}: z={result.displacement:.4f}m, "
                  f"pitch={math.degrees(result.pitch):.3f}°, "
                  f"roll={math.degrees(result.roll):.3f}°, |r|={residual_norm:.6f} "
                  f"[F:{residuals[0]:.4f}, P:{residuals[1]:.4f}, R:{residuals[2]:.4f}]")

        if residual_norm < tolerance:
            converged = True
            if verbose:
                print(f"  Converged after {tick + 1} ticks")
            break

    result = solver.result
    if result is None:
        return {
            'converged': False,
            'ticks': 0,
            'error': 'Degenerate mesh (zero volume)',
            'history': [],
        }

    return {
        'converged': converged,
        'stable': is_stable(result.submerged_volume, result.total_mass, fluid_density),
        'ticks': len(history),
        'equilibrium': {
            'z_offset_m': round(result.displacement, 6),
            'pitch_rad': round(result.pitch, 6),
            'roll_rad': round(result.roll, 6),
            'pitch_deg': round(math.degrees(result.pitch), 4),
            'roll_deg': round(math.degrees(result.roll), 4),
        },
        'center_of_gravity_world': _xyz(result.combined_cog),
        'center_of_buoyancy': _xyz(result.cob),
        'total_mass_kg': round(result.total_mass, 4),
        'weight_N': round(result.total_mass * gravity, 2),
        'buoyancy_force_N': round(result.submerged_volume * fluid_density * gravity, 2),
        'submerged_volume_m3': round(result.submerged_volume, 6),
        'total_volume_m3': round(base.volume, 6),
        'final_residuals': {
            'force': round(float(residuals[0]), 8),
            'pitch_moment': round(float(residuals[1]), 8),
            'roll_moment': round(float(residuals[2]), 8),
            'norm': round(float(np.linalg.norm(residuals)), 8),
        },
        'history': history,
    }


def plot_convergence(report: dict, output_path: str):
    """
    Generate a PNG plot of the solver history.

    Args:
        report: Result from solve_equilibrium
        output_path: Path for output PNG file
    """
    import matplotlib
    matplotlib.use('Agg')  # Non-interactive backend
    import matplotlib.pyplot as plt

    history = report.get('history', [])
    if not history:
        print("Warning: No solver history to plot")
        return

    ticks = [h['tick'] for h in history]
    z_values = [h['z_m'] for h in history]
    pitch_values = [math.degrees(h['pitch_rad']) for h in history]
    roll_values = [math.degrees(h['roll_rad']) for h in history]
    residual_values = [max(h['residual_norm'], 1e-12) for h in history]

    fig, (ax1, ax2, ax3) = plt.subplots(3, 1, figsize=(10, 9), sharex=True)

    ax1.plot(ticks, z_values, '-', color='#2563eb', linewidth=2)
    ax1.set_ylabel('Heave z (m)', fontsize=12)
    ax1.axhline(y=0, color='gray', linestyle='--', alpha=0.5)
    ax1.grid(True, alpha=0.3)

    ax2.plot(ticks, pitch_values, '-', color='#dc2626', linewidth=1.5, label='Pitch')
    ax2.plot(ticks, roll_values, '--', color='#16a34a', linewidth=1.5, label='Roll')
    ax2.set_ylabel('Angle (degrees)', fontsize=12)
    ax2.axhline(y=0, color='gray', linestyle='--', alpha=0.5)
    ax2.legend(loc='upper right')
    ax2.grid(True, alpha=0.3)

    ax3.semilogy(ticks, residual_values, '-', color='#7c3aed', linewidth=1.5)
    ax3.set_xlabel('Tick', fontsize=12)
    ax3.set_ylabel('Residual norm', fontsize=12)
    ax3.grid(True, alpha=0.3)

    status = 'converged' if report.get('converged') else 'NOT converged'
    mass = report.get('total_mass_kg', 0.0)
    fig.suptitle(f'Equilibrium solve ({status}) - Mass: {mass:.1f} kg', fontsize=14)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)

    print(f"✓ Convergence plot saved to {output_path}")
