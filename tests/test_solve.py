import math

import numpy as np
import pytest

from hydrostat.buoyancy.solve import (
    DAMPING_TRANSLATION,
    HEAVE_STEP_LIMIT,
    INNER_ITERATIONS,
    EquilibriumSolver,
    Pose,
    compute_residuals,
    is_stable,
    plot_convergence,
    solve_equilibrium,
    step_equilibrium,
)
from hydrostat.physics.center_of_mass import ExternalLoad, PhysicalProperties, compute_physical_properties
from hydrostat.physics.geometry import Mesh

from conftest import make_box


FLUID = 1025.0


def run(solver, base, loads=(), ticks=100, fluid_density=FLUID):
    result = None
    for _ in range(ticks):
        result = solver.tick(base, loads, fluid_density=fluid_density)
    return result


class TestStepEquilibrium:

    def test_skips_without_mesh(self, unit_cube):
        pose = Pose(z=0.1, rx=0.2, ry=0.3)
        base = compute_physical_properties(unit_cube, 200.0)
        assert step_equilibrium(pose, None, base) is None
        assert pose == Pose(z=0.1, rx=0.2, ry=0.3)

    def test_skips_degenerate_volume(self, unit_cube):
        pose = Pose()
        base = PhysicalProperties(mass=0.0, density=200.0, volume=0.0, cog=np.zeros(3))
        assert step_equilibrium(pose, unit_cube, base) is None
        assert pose == Pose()

    def test_skips_empty_mesh(self, unit_cube):
        base = compute_physical_properties(unit_cube, 200.0)
        assert step_equilibrium(Pose(), Mesh.from_arrays(np.zeros((0, 3))), base) is None

    def test_result_snapshot(self, unit_cube):
        pose = Pose()
        base = compute_physical_properties(unit_cube, 200.0)
        loads = [ExternalLoad(mass=50.0, position=(0.0, 0.0, 0.0))]
        result = step_equilibrium(pose, unit_cube, base, loads, fluid_density=FLUID)
        assert result.displacement == pose.z
        assert result.pitch == pose.rx
        assert result.roll == pose.ry
        assert result.total_mass == pytest.approx(250.0)
        assert 0.0 < result.submerged_volume <= 1.0
        assert result.to_dict()["total_mass_kg"] == 250.0

    def test_heave_step_is_clamped(self, unit_cube):
        pose = Pose()
        base = compute_physical_properties(unit_cube, 1e6)
        step_equilibrium(pose, unit_cube, base, fluid_density=FLUID)
        expected = -HEAVE_STEP_LIMIT * DAMPING_TRANSLATION * INNER_ITERATIONS
        assert pose.z == pytest.approx(expected)

    def test_light_body_rises(self, unit_cube):
        pose = Pose()
        base = compute_physical_properties(unit_cube, 200.0)
        step_equilibrium(pose, unit_cube, base, fluid_density=FLUID)
        assert pose.z > 0


class TestEquilibriumSolver:

    def test_attach_resets_pose_for_new_mesh(self, unit_cube):
        solver = EquilibriumSolver(unit_cube)
        base = compute_physical_properties(unit_cube, 200.0)
        run(solver, base, ticks=5)
        assert solver.pose.z != 0.0

        solver.attach(unit_cube)
        assert solver.pose.z != 0.0

        solver.attach(make_box())
        assert solver.pose == Pose()
        assert solver.result is None

    def test_detach(self, unit_cube):
        solver = EquilibriumSolver(unit_cube)
        base = compute_physical_properties(unit_cube, 200.0)
        run(solver, base, ticks=3)
        solver.detach()
        assert solver.mesh is None
        assert solver.pose == Pose()
        assert solver.tick(base) is None

    def test_floating_raft_draft(self, raft):
        base = compute_physical_properties(raft, 200.0)
        solver = EquilibriumSolver(raft)
        result = run(solver, base, ticks=300)

        draft = 0.5 * 200.0 / FLUID
        assert result.displacement == pytest.approx(0.25 - draft, abs=1e-4)
        assert result.submerged_volume * FLUID == pytest.approx(result.total_mass, rel=1e-4)
        assert result.pitch == pytest.approx(0.0, abs=1e-9)
        assert result.roll == pytest.approx(0.0, abs=1e-9)
        assert result.cob[2] == pytest.approx(-draft / 2.0, abs=1e-4)

    def test_neutral_density_settles(self, unit_cube):
        base = compute_physical_properties(unit_cube, FLUID)
        solver = EquilibriumSolver(unit_cube)
        result = run(solver, base, ticks=300)

        assert result.submerged_volume * FLUID == pytest.approx(result.total_mass, rel=1e-3)
        assert result.combined_cog[0] == pytest.approx(result.cob[0], abs=1e-6)
        assert result.combined_cog[1] == pytest.approx(result.cob[1], abs=1e-6)

    def test_heavy_body_sinks_monotonically(self, unit_cube):
        base = compute_physical_properties(unit_cube, 2000.0)
        solver = EquilibriumSolver(unit_cube)

        previous = solver.pose.z
        for _ in range(60):
            result = solver.tick(base, fluid_density=FLUID)
            assert result.displacement < previous
            assert all(math.isfinite(v) for v in (result.displacement, result.pitch, result.roll))
            previous = result.displacement

        assert result.submerged_volume == pytest.approx(1.0)
        assert result.displacement < -0.5

    def test_load_ahead_pitches_bow_down(self, raft):
        base = compute_physical_properties(raft, 200.0)
        loads = [ExternalLoad(mass=50.0, position=(0.0, 0.5, 0.0))]
        solver = EquilibriumSolver(raft)
        result = run(solver, base, loads, ticks=1000)

        assert result.pitch < 0
        assert result.roll == pytest.approx(0.0, abs=1e-9)
        assert result.cob[1] > 0
        assert result.combined_cog[1] == pytest.approx(result.cob[1], abs=1e-3)
        assert result.submerged_volume * FLUID == pytest.approx(450.0, rel=1e-3)

    def test_load_to_starboard_rolls(self, raft):
        base = compute_physical_properties(raft, 200.0)
        loads = [ExternalLoad(mass=50.0, position=(0.5, 0.0, 0.0))]
        solver = EquilibriumSolver(raft)
        result = run(solver, base, loads, ticks=1000)

        assert result.roll > 0
        assert result.pitch == pytest.approx(0.0, abs=1e-9)
        assert result.combined_cog[0] == pytest.approx(result.cob[0], abs=1e-3)

    def test_removed_load_leaves_no_trace(self, raft):
        base = compute_physical_properties(raft, 200.0)
        load = ExternalLoad(mass=60.0, position=(0.3, 0.6, 0.1))

        reference = EquilibriumSolver(raft)
        run(reference, base, ticks=1200)

        solver = EquilibriumSolver(raft)
        run(solver, base, ticks=100)
        run(solver, base, [load], ticks=100)
        assert abs(solver.pose.rx) > 1e-3
        run(solver, base, ticks=1000)

        assert solver.pose.z == pytest.approx(reference.pose.z, abs=1e-4)
        assert solver.pose.rx == pytest.approx(reference.pose.rx, abs=1e-4)
        assert solver.pose.ry == pytest.approx(reference.pose.ry, abs=1e-4)

    def test_load_list_is_snapshotted(self, raft):
        base = compute_physical_properties(raft, 200.0)

        def shrinking():
            yield ExternalLoad(mass=50.0, position=(0.0, 0.0, 0.0))

        solver = EquilibriumSolver(raft)
        result = solver.tick(base, shrinking(), fluid_density=FLUID)
        assert result.total_mass == pytest.approx(450.0)


class TestSolveEquilibrium:

    def test_converges(self, raft):
        base = compute_physical_properties(raft, 200.0)
        report = solve_equilibrium(raft, base, fluid_density=FLUID, verbose=False)

        assert report["converged"]
        assert report["ticks"] == len(report["history"])
        assert report["equilibrium"]["z_offset_m"] == pytest.approx(0.25 - 0.5 * 200.0 / FLUID, abs=1e-3)
        assert report["total_mass_kg"] == pytest.approx(400.0)
        assert report["final_residuals"]["norm"] < 1e-4
        assert report["stable"]

    def test_too_heavy_does_not_converge(self, unit_cube):
        base = compute_physical_properties(unit_cube, 2000.0)
        report = solve_equilibrium(unit_cube, base, fluid_density=FLUID, max_ticks=50, verbose=False)

        assert not report["converged"]
        assert report["ticks"] == 50
        assert report["submerged_volume_m3"] == pytest.approx(1.0)
        assert not report["stable"]
        zs = [h["z_m"] for h in report["history"]]
        assert all(b < a for a, b in zip(zs, zs[1:]))

    def test_degenerate_mesh(self):
        tri = [[0, 0, 0], [1, 0, 0], [0, 1, 0]]
        mesh = Mesh.from_arrays(tri + tri[::-1])
        base = compute_physical_properties(mesh, 200.0)
        report = solve_equilibrium(mesh, base, verbose=False)
        assert not report["converged"]
        assert report["ticks"] == 0

    def test_verbose_progress(self, raft, capsys):
        base = compute_physical_properties(raft, 200.0)
        solve_equilibrium(raft, base, fluid_density=FLUID, verbose=True)
        out = capsys.readouterr().out
        assert "Tick 0:" in out
        assert "Converged after" in out

    def test_residuals(self, raft):
        base = compute_physical_properties(raft, 200.0)
        result = step_equilibrium(Pose(), raft, base, fluid_density=FLUID)
        residuals = compute_residuals(result, FLUID)
        assert residuals.shape == (3,)
        assert residuals[0] > 0  # half-submerged raft is too buoyant

    def test_plot_convergence(self, raft, tmp_path):
        base = compute_physical_properties(raft, 200.0)
        report = solve_equilibrium(raft, base, fluid_density=FLUID, verbose=False)
        path = tmp_path / "convergence.png"
        plot_convergence(report, str(path))
        assert path.exists()
        assert path.stat().st_size > 0


@pytest.mark.parametrize("submerged, expected", [
    (1.00, True),
    (1.05, True),
    (0.95, True),
    (1.20, False),
    (0.85, False),
    (0.0, False),
])
def test_is_stable_within_ten_percent(submerged, expected):
    assert is_stable(submerged, 1000.0, fluid_density=1000.0) is expected


def test_off_centre_raft_settles_level_once_centred():
    # Mesh origin far from the hull: the zero pose rotates about a distant point.
    shifted = make_box(2.0, 2.0, 0.5, center=(5.0, 3.0, 10.0)).centered()
    base = compute_physical_properties(shifted, 200.0)
    solver = EquilibriumSolver(shifted)
    for _ in range(100):
        solver.tick(base, fluid_density=FLUID)

    assert abs(solver.pose.rx) < 1e-6
    assert abs(solver.pose.ry) < 1e-6
    np.testing.assert_allclose(base.cog, [0.0, 0.0, 0.0], atol=1e-9)
