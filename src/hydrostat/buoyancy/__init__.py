"""Buoyancy equilibrium solver for floating meshes."""

from .solve import (
    EquilibriumSolver,
    Pose,
    SolverResult,
    is_stable,
    solve_equilibrium,
    step_equilibrium,
)

__all__ = [
    "EquilibriumSolver",
    "Pose",
    "SolverResult",
    "is_stable",
    "solve_equilibrium",
    "step_equilibrium",
]
