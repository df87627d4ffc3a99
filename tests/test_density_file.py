import struct

import numpy as np
import pytest

from dtfeio.density_file import (
    FILL_SIZE,
    HEADER_SIZE,
    DensityHeader,
    DensityMethod,
    FieldFileType,
    read_density_file,
    write_density_file,
)
from dtfeio.gadget_header import GadgetHeader
from dtfeio.options import UserOptions
from dtfeio.vector import PVector


def test_header_is_1024_bytes():
    assert len(DensityHeader().to_bytes()) == HEADER_SIZE == 1024
    assert FILL_SIZE == 760


def test_defaults():
    header = DensityHeader()
    assert header.method is DensityMethod.UNKNOWN
    assert header.file_type is FieldFileType.UNKNOWN
    assert header.file_id == 1
    assert header.index_density_file == -1
    assert header.density_file_grid == [1, 1, 1]


def test_bytes_round_trip():
    header = DensityHeader(
        grid_size=[4, 5, 6],
        total_grid=120,
        file_type=FieldFileType.VELOCITY_SHEAR,
        box=[0.0, 1.0, 2.0, 3.0, 4.0, 5.0],
        npart_total=[1, 2, 3, 4, 5, 6],
        mass=[0.5, 0.0, 0.0, 0.0, 0.0, 0.0],
        time=0.25,
        method=DensityMethod.TSC,
        fill=b"run",
    )
    assert DensityHeader.from_bytes(header.to_bytes()) == header


def test_unknown_method_round_trips():
    decoded = DensityHeader.from_bytes(DensityHeader().to_bytes())
    assert decoded.method is DensityMethod.UNKNOWN
    assert decoded.file_type is FieldFileType.UNKNOWN


def test_from_bytes_too_short():
    with pytest.raises(ValueError):
        DensityHeader.from_bytes(b"\0" * 100)


@pytest.mark.parametrize(
    "variable, expected",
    [
        ("density", FieldFileType.DENSITY),
        ("velocity gradient", FieldFileType.VELOCITY_GRADIENT),
        ("velocity divergence", FieldFileType.VELOCITY_DIVERGENCE),
        ("velocity shear", FieldFileType.VELOCITY_SHEAR),
        ("velocity vorticity", FieldFileType.VELOCITY_VORTICITY),
        ("velocity standard deviation", FieldFileType.VELOCITY_STD),
        ("velocity", FieldFileType.VELOCITY),
        ("scalar", FieldFileType.SCALAR_FIELD),
        ("scalar gradient", FieldFileType.SCALAR_FIELD),
        ("something", FieldFileType.UNKNOWN),
    ],
)
def test_file_type_from_variable_name(variable, expected):
    header = DensityHeader()
    header.update_from_options(UserOptions(), variable)
    assert header.file_type is expected


def test_update_grid_box_and_fill():
    options = UserOptions(
        grid_size=[2, 3, 4],
        box_coordinates=[0.0, 10.0, 0.0, 20.0, 0.0, 30.0],
        program_options="DTFE input output",
        tsc=False,
    )
    header = DensityHeader()
    header.update_from_options(options, "density")
    assert header.grid_size == [2, 3, 4]
    assert header.total_grid == 24
    assert header.box == options.box_coordinates
    assert header.remarks == "DTFE input output ;  "
    assert header.method is DensityMethod.DTFE


def test_update_with_region_fraction():
    options = UserOptions(
        box_coordinates=[0.0, 10.0, 0.0, 20.0, 0.0, 30.0],
        region=[0.0, 0.5, 0.0, 0.5, 0.0, 0.5],
        region_on=True,
    )
    header = DensityHeader()
    header.update_from_options(options, "density")
    assert header.box == options.region_in_box_units()


def test_update_partition_and_method():
    options = UserOptions(part_no=3, partition=[2, 2, 1], dtfe=False, sph=True)
    header = DensityHeader()
    header.update_from_options(options, "density")
    assert header.index_density_file == 3
    assert header.density_file_grid == [2, 2, 1]
    assert header.method is DensityMethod.SPH


def test_format_mentions_method_and_type():
    header = DensityHeader(method=DensityMethod.DTFE, file_type=FieldFileType.DENSITY)
    text = header.format()
    assert "method          = DTFE" in text
    assert "the file stores a density field" in text


def _write_gadget(path, header):
    with open(path, "wb") as handle:
        handle.write(struct.pack("<i", 256))
        handle.write(header.to_bytes("little"))
        handle.write(struct.pack("<i", 256))


def test_copy_gadget_header_info(tmp_path):
    gadget = GadgetHeader(
        npart_total=[0, 8, 0, 0, 0, 0],
        mass=[0.0, 2.0, 0.0, 0.0, 0.0, 0.0],
        time=0.5,
        redshift=1.0,
        box_size=100.0,
        omega0=0.3,
        omega_lambda=0.7,
        hubble_param=0.7,
    )
    path = tmp_path / "snap"
    _write_gadget(path, gadget)
    options = UserOptions(input_filename=str(path), input_file_type=102)
    header = DensityHeader()
    header.copy_gadget_header_info(options)
    assert header.npart_total == gadget.npart_total
    assert header.mass == gadget.mass
    assert header.box_size == gadget.box_size
    assert header.hubble_param == gadget.hubble_param


def test_copy_gadget_header_info_missing_file(tmp_path):
    options = UserOptions(input_filename=str(tmp_path / "absent"), input_file_type=101)
    header = DensityHeader()
    header.copy_gadget_header_info(options)
    assert header == DensityHeader()


def test_write_and_read_scalar_field(tmp_path):
    options = UserOptions(grid_size=[2, 2, 1])
    path = tmp_path / "field.bin"
    data = [1.5, 2.5, 3.5, 4.5]
    written = write_density_file(data, path, "density", options)
    raw = path.read_bytes()
    assert struct.unpack("=Q", raw[:8])[0] == HEADER_SIZE
    assert len(raw) == 8 + HEADER_SIZE + 8 + 8 + 4 * len(data) + 8
    header, values = read_density_file(path)
    assert header == written
    assert header.file_type is FieldFileType.DENSITY
    np.testing.assert_array_equal(values, np.array(data, dtype=np.float32))


def test_write_and_read_vector_field(tmp_path):
    options = UserOptions(grid_size=[2, 1, 1])
    path = tmp_path / "velocity.bin"
    data = [PVector([1.0, 2.0, 3.0]), PVector([4.0, 5.0, 6.0])]
    write_density_file(data, path, "velocity", options)
    header, values = read_density_file(path)
    assert header.file_type is FieldFileType.VELOCITY
    assert values.shape == (2, 3)
    np.testing.assert_array_equal(values[1], [4.0, 5.0, 6.0])


def test_read_corrupt_file(tmp_path):
    path = tmp_path / "bad.bin"
    path.write_bytes(struct.pack("=Q", 12) + b"\0" * 20)
    with pytest.raises(ValueError):
        read_density_file(path)


def test_read_mismatched_data_marker(tmp_path):
    path = tmp_path / "field.bin"
    write_density_file([1.0, 2.0], path, "density", UserOptions(grid_size=[2, 1, 1]))
    raw = bytearray(path.read_bytes())
    raw[-8:] = struct.pack("=Q", 99)
    path.write_bytes(bytes(raw))
    with pytest.raises(ValueError):
        read_density_file(path)