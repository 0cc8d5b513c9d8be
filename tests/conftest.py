import numpy as np
import pytest
import trimesh

from hydrostat.physics.geometry import Mesh


# Outward-wound box faces over the corner numbering
#   0 (-,-,-)  1 (+,-,-)  2 (+,+,-)  3 (-,+,-)
#   4 (-,-,+)  5 (+,-,+)  6 (+,+,+)  7 (-,+,+)
BOX_FACES = [
    [0, 2, 1], [0, 3, 2],  # bottom
    [4, 5, 6], [4, 6, 7],  # top
    [0, 1, 5], [0, 5, 4],  # front (-y)
    [2, 3, 7], [2, 7, 6],  # back (+y)
    [0, 4, 7], [0, 7, 3],  # left (-x)
    [1, 2, 6], [1, 6, 5],  # right (+x)
]


def make_box(sx=1.0, sy=1.0, sz=1.0, center=(0.0, 0.0, 0.0)) -> Mesh:
    hx, hy, hz = sx / 2.0, sy / 2.0, sz / 2.0
    corners = np.array([
        [-hx, -hy, -hz], [hx, -hy, -hz], [hx, hy, -hz], [-hx, hy, -hz],
        [-hx, -hy, hz], [hx, -hy, hz], [hx, hy, hz], [-hx, hy, hz],
    ]) + np.asarray(center)
    return Mesh.from_arrays(corners, BOX_FACES)


def make_sphere(radius=1.0, subdivisions=3, center=(0.0, 0.0, 0.0)) -> Mesh:
    tm = trimesh.creation.icosphere(subdivisions=subdivisions, radius=radius)
    return Mesh.from_arrays(tm.vertices + np.asarray(center), tm.faces)


@pytest.fixture
def unit_cube():
    return make_box()


@pytest.fixture
def cube2():
    """Cube of side 2 centered at the origin."""
    return make_box(2.0, 2.0, 2.0)


@pytest.fixture
def raft():
    """Wide, shallow 2 x 2 x 0.5 box; very stable in pitch and roll."""
    return make_box(2.0, 2.0, 0.5)


@pytest.fixture
def box_stl(tmp_path):
    """Raft written to an STL file in millimetres."""
    mesh = make_box(2000.0, 2000.0, 500.0)
    path = tmp_path / "raft.stl"
    trimesh.Trimesh(vertices=np.array(mesh.vertices), faces=np.array(mesh.triangles),
                    process=False).export(str(path))
    return path
