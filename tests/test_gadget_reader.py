import struct

import numpy as np
import pytest

from dtfeio.gadget_binary import initialize_gadget
from dtfeio.gadget_header import GadgetFormatError, GadgetHeader
from dtfeio.gadget_reader import read_gadget_data, read_gadget_file
from dtfeio.options import UserOptions
from dtfeio.particles import ReadData

POS = np.arange(15, dtype=np.float64).reshape(5, 3)
VEL = -POS
GAS_MASSES = [2.0, 3.0]
MASS_TABLE = [0.0, 0.5, 0.0, 0.0, 0.0, 0.0]
NPART = [2, 3, 0, 0, 0, 0]


def _build(
    npart,
    mass,
    positions,
    velocities,
    variable_masses=(),
    energies=None,
    order="<",
    file_type=1,
    real_size=4,
    num_files=1,
):
    byteorder = "little" if order == "<" else "big"
    count = sum(npart)

    def block(label, payload):
        marker = struct.pack(order + "i", len(payload))
        body = marker + payload + marker
        if file_type == 2:
            label_block = (
                struct.pack(order + "i", 8)
                + label.ljust(4)
                + struct.pack(order + "i", len(body))
                + struct.pack(order + "i", 8)
            )
            body = label_block + body
        return body

    real = f"{order}f{real_size}"
    header = GadgetHeader(
        npart=npart, mass=mass, box_size=100.0, num_files=num_files
    ).to_bytes(byteorder)
    data = block(b"HEAD", header)
    data += block(b"POS", np.asarray(positions, dtype=real).tobytes())
    data += block(b"VEL", np.asarray(velocities, dtype=real).tobytes())
    data += block(b"ID", np.arange(count, dtype=order + "i4").tobytes())
    if any(m == 0.0 and n for m, n in zip(mass, npart)):
        data += block(b"MASS", np.asarray(variable_masses, dtype=real).tobytes())
    if energies is not None:
        data += block(b"U", np.asarray(energies, dtype=order + "f4").tobytes())
    return data


def _write(path, **kwargs):
    path.write_bytes(_build(NPART, MASS_TABLE, POS, VEL, GAS_MASSES, **kwargs))
    return path


def test_reads_positions_velocities_and_weights(tmp_path):
    path = _write(tmp_path / "snap")
    data = read_gadget_file(path, UserOptions())
    np.testing.assert_array_equal(data.positions, POS)
    np.testing.assert_array_equal(data.velocities, VEL)
    np.testing.assert_array_equal(data.weights, GAS_MASSES + [0.5, 0.5, 0.5])


def test_box_is_taken_from_header(tmp_path):
    path = _write(tmp_path / "snap")
    options = UserOptions()
    read_gadget_file(path, options)
    assert options.box_coordinates == [0.0, 100.0] * 3


def test_big_endian_matches_little_endian(tmp_path):
    little = read_gadget_file(_write(tmp_path / "little"), UserOptions())
    big = read_gadget_file(_write(tmp_path / "big", order=">"), UserOptions())
    np.testing.assert_array_equal(little.positions, big.positions)
    np.testing.assert_array_equal(little.velocities, big.velocities)
    np.testing.assert_array_equal(little.weights, big.weights)


def test_format_two_file(tmp_path):
    path = _write(tmp_path / "snap2", file_type=2)
    data = read_gadget_file(path, UserOptions())
    np.testing.assert_array_equal(data.positions, POS)
    np.testing.assert_array_equal(data.weights, GAS_MASSES + [0.5, 0.5, 0.5])


def test_deselected_species_are_skipped(tmp_path):
    path = _write(tmp_path / "snap")
    options = UserOptions(read_particle_species=[False, True, False, False, False, False])
    data = read_gadget_file(path, options)
    np.testing.assert_array_equal(data.positions, POS[2:])
    np.testing.assert_array_equal(data.velocities, VEL[2:])
    np.testing.assert_array_equal(data.weights, [0.5, 0.5, 0.5])


def test_double_precision_values(tmp_path):
    npart = [0, 5, 0, 0, 0, 0]
    path = tmp_path / "snapd"
    path.write_bytes(_build(npart, MASS_TABLE, POS, VEL, real_size=8))
    data = read_gadget_file(path, UserOptions())
    np.testing.assert_array_equal(data.positions, POS)
    np.testing.assert_array_equal(data.velocities, VEL)


def test_internal_energy_is_mass_weighted(tmp_path):
    energies = [10.0, 20.0]
    path = _write(tmp_path / "snap", energies=energies)
    options = UserOptions(read_particle_data=[True, True, True, True])
    data = read_gadget_file(path, options)
    np.testing.assert_array_equal(
        data.scalars[:2, 0], data.weights[:2] * np.asarray(energies, dtype=np.float32)
    )
    np.testing.assert_array_equal(data.scalars[2:, 0], [0.0, 0.0, 0.0])


def test_multiple_files_are_concatenated(tmp_path):
    npart = [0, 2, 0, 0, 0, 0]
    mass = [0.0, 1.5, 0.0, 0.0, 0.0, 0.0]
    first, second = POS[:2], POS[2:4]
    (tmp_path / "snap.0").write_bytes(_build(npart, mass, first, -first, num_files=2))
    (tmp_path / "snap.1").write_bytes(_build(npart, mass, second, -second, num_files=2))
    data = read_gadget_file(str(tmp_path / "snap.%d"), UserOptions())
    np.testing.assert_array_equal(data.positions, POS[:4])
    np.testing.assert_array_equal(data.weights, [1.5] * 4)


def test_read_gadget_data_returns_running_count(tmp_path):
    path = _write(tmp_path / "snap")
    options = UserOptions()
    read_data = ReadData()
    layout = initialize_gadget(path, read_data, options)
    assert read_gadget_data(path, read_data, options, layout, 0) == 5
    np.testing.assert_array_equal(read_data.positions, POS)


def test_corrupt_position_marker(tmp_path):
    raw = bytearray(_build(NPART, MASS_TABLE, POS, VEL, GAS_MASSES))
    end = 4 + 256 + 4 + 4 + POS.size * 4
    raw[end : end + 4] = struct.pack("<i", 1)
    path = tmp_path / "bad"
    path.write_bytes(bytes(raw))
    with pytest.raises(GadgetFormatError, match="position"):
        read_gadget_file(path, UserOptions())