import numpy as np
import pytest

from dtfeio.options import UserOptions
from dtfeio.text_output import (
    TextOutputError,
    write_text_file,
    write_text_grid_index,
)
from dtfeio.vector import PVector


def test_scalar_values_one_per_line(tmp_path):
    path = tmp_path / "out.txt"
    write_text_file([1.5, 2.0, 0.25], path, "density", UserOptions())
    assert path.read_text() == "1.5\n2\n0.25\n"


def test_vector_values_tab_separated(tmp_path):
    path = tmp_path / "out.txt"
    data = [PVector([1.0, 2.0]), PVector([3.0, 4.0])]
    write_text_file(data, path, "velocity", UserOptions())
    assert path.read_text() == "1\t2\t\n3\t4\t\n"


def test_write_round_trip(tmp_path):
    path = tmp_path / "out.txt"
    data = np.array([[0.5, -1.25, 3.0], [7.0, 8.5, -2.0]])
    write_text_file(data, path, "velocity", UserOptions())
    np.testing.assert_allclose(np.loadtxt(path), data)


def test_rejects_deeper_data(tmp_path):
    with pytest.raises(TextOutputError):
        write_text_file(np.zeros((2, 2, 2)), tmp_path / "o", "x", UserOptions())


def test_grid_index_3d_order(tmp_path):
    path = tmp_path / "grid.txt"
    options = UserOptions(grid_size=[2, 1, 2])
    write_text_grid_index([10.0, 11.0, 12.0, 13.0], path, "density", options)
    lines = path.read_text().splitlines()
    assert lines[0] == "0\t0\t0\t10"
    assert lines[1] == "0\t0\t1\t11"
    assert lines[3] == "1\t0\t1\t13"
    assert len(lines) == 4


def test_grid_index_2d_vectors(tmp_path):
    path = tmp_path / "grid.txt"
    options = UserOptions(
        dimensions=2,
        box_coordinates=[0.0] * 4,
        region=[0.0, 1.0, 0.0, 1.0],
        grid_size=[2, 2],
    )
    data = [[float(i), float(-i)] for i in range(4)]
    write_text_grid_index(data, path, "velocity", options)
    table = np.loadtxt(path)
    np.testing.assert_allclose(table[:, :2], [[0, 0], [0, 1], [1, 0], [1, 1]])
    np.testing.assert_allclose(table[:, 2:], data)


def test_grid_index_rejects_user_sampling(tmp_path):
    options = UserOptions(user_defined_sampling=True, grid_size=[1, 1, 1])
    with pytest.raises(TextOutputError, match="user defined"):
        write_text_grid_index([1.0], tmp_path / "g", "density", options)


def test_grid_index_rejects_short_data(tmp_path):
    options = UserOptions(grid_size=[2, 2, 2])
    with pytest.raises(TextOutputError):
        write_text_grid_index([1.0, 2.0], tmp_path / "g", "density", options)