"""Binary field files with a 1024-byte header describing how the field was made."""

from __future__ import annotations

import logging
import math
import os
import struct
from dataclasses import dataclass, field
from enum import IntEnum
from os import PathLike
from typing import Any, Iterable

import numpy as np

from dtfeio.gadget_header import (
    HEADER_SIZE as GADGET_HEADER_SIZE,
    GadgetFormatError,
    GadgetHeader,
    detect_snapshot_type,
    snapshot_filename,
)
from dtfeio.options import UserOptions
from dtfeio.vector import PVector

log = logging.getLogger(__name__)

HEADER_SIZE = 1024
FILL_SIZE = 1024 - 13 * 8 - 8 * 18 - 8 * 2
_FORMAT = struct.Struct(f"=3QQii3ii6d6Q6d6dQ{FILL_SIZE}sQ")
_SIZE = struct.Struct("=Q")
_SIZE_MASK = 2**64 - 1
_GADGET_MARKER = 4
_GADGET_LABEL = 16


class DensityMethod(IntEnum):
    """Method used to compute the field."""

    DTFE = 1
    TSC = 2
    SPH = 3
    UNKNOWN = -1


class FieldFileType(IntEnum):
    """Kind of field stored in the file."""

    DENSITY = 1
    VELOCITY = 11
    VELOCITY_GRADIENT = 12
    VELOCITY_DIVERGENCE = 13
    VELOCITY_SHEAR = 14
    VELOCITY_VORTICITY = 15
    VELOCITY_STD = 16
    SCALAR_FIELD = 20
    SCALAR_FIELD_GRADIENT = 21
    UNKNOWN = -1


_METHOD_NAMES = {
    DensityMethod.DTFE: "DTFE",
    DensityMethod.TSC: "TSC",
    DensityMethod.SPH: "SPH",
}

_FILE_TYPE_NAMES = {
    FieldFileType.DENSITY: "the file stores a density field",
    FieldFileType.VELOCITY: "the file stores a velocity field",
    FieldFileType.VELOCITY_GRADIENT: "the file stores the gradient of a velocity field",
    FieldFileType.VELOCITY_DIVERGENCE: "the file stores a velocity divergence",
    FieldFileType.VELOCITY_SHEAR: "the file stores a velocity shear",
    FieldFileType.VELOCITY_VORTICITY: "the file stores a velocity vorticity",
    FieldFileType.SCALAR_FIELD: "the file stores a scalar field",
    FieldFileType.SCALAR_FIELD_GRADIENT: "the file stores the gradient of a scalar field",
}

# Checked in this order: the first name contained in the variable name wins.
_FILE_TYPE_KEYS = (
    ("density", FieldFileType.DENSITY),
    ("velocity gradient", FieldFileType.VELOCITY_GRADIENT),
    ("velocity divergence", FieldFileType.VELOCITY_DIVERGENCE),
    ("velocity shear", FieldFileType.VELOCITY_SHEAR),
    ("velocity vorticity", FieldFileType.VELOCITY_VORTICITY),
    ("velocity standard deviation", FieldFileType.VELOCITY_STD),
    ("velocity", FieldFileType.VELOCITY),
    ("scalar", FieldFileType.SCALAR_FIELD),
    ("scalar gradient", FieldFileType.SCALAR_FIELD_GRADIENT),
)


def _fmt(value: float) -> str:
    return f"{value:g}"


def _join(values: Iterable[Any]) -> str:
    return "  ".join(str(v) if isinstance(v, int) else _fmt(v) for v in values)


def _method_from(value: int) -> DensityMethod:
    if value == _SIZE_MASK:
        return DensityMethod.UNKNOWN
    try:
        return DensityMethod(value)
    except ValueError:
        return DensityMethod.UNKNOWN


def _file_type_from(value: int) -> FieldFileType:
    try:
        return FieldFileType(value)
    except ValueError:
        return FieldFileType.UNKNOWN


@dataclass
class DensityHeader:
    """Header of a binary field file."""

    grid_size: list[int] = field(default_factory=lambda: [0, 0, 0])
    total_grid: int = 0
    file_type: FieldFileType = FieldFileType.UNKNOWN
    no_density_files: int = 1
    density_file_grid: list[int] = field(default_factory=lambda: [1, 1, 1])
    index_density_file: int = -1
    box: list[float] = field(default_factory=lambda: [0.0] * 6)
    npart_total: list[int] = field(default_factory=lambda: [0] * 6)
    mass: list[float] = field(default_factory=lambda: [0.0] * 6)
    time: float = -1.0
    redshift: float = -1.0
    box_size: float = -1.0
    omega0: float = -1.0
    omega_lambda: float = -1.0
    hubble_param: float = -1.0
    method: DensityMethod = DensityMethod.UNKNOWN
    fill: bytes = bytes(FILL_SIZE)
    file_id: int = 1

    def __post_init__(self) -> None:
        for name, size in (
            ("grid_size", 3),
            ("density_file_grid", 3),
            ("box", 6),
            ("npart_total", 6),
            ("mass", 6),
        ):
            values = list(getattr(self, name))
            if len(values) != size:
                raise ValueError(f"'{name}' must have {size} entries, not {len(values)}")
            setattr(self, name, values)
        if len(self.fill) > FILL_SIZE:
            raise ValueError(f"'fill' can hold at most {FILL_SIZE} bytes")
        self.fill = bytes(self.fill).ljust(FILL_SIZE, b"\0")
        self.file_type = _file_type_from(int(self.file_type))
        self.method = _method_from(int(self.method))

    @property
    def remarks(self) -> str:
        """The text stored in the fill area, up to the first null byte."""
        return self.fill.split(b"\0", 1)[0].decode("utf-8", errors="replace")

    def update_from_options(self, options: UserOptions, variable_name: str) -> None:
        """Fill in grid, box, method and field type from the run options."""
        dims = options.dimensions
        region = (
            options.region_in_box_units()
            if options.region_on
            else list(options.region)
        )
        for i in range(dims):
            self.grid_size[i] = int(options.grid_size[i])
        if options.part_no >= 0:
            for i in range(dims):
                self.density_file_grid[i] = int(options.partition[i])
        for i in range(2 * dims):
            self.box[i] = float(region[i] if options.region_on else options.box_coordinates[i])
        if dims == 2:
            self.grid_size[2] = 1
            if options.part_no >= 0:
                self.density_file_grid[2] = 1
            self.box[4] = 0.0
            self.box[5] = 1.0
        self.total_grid = math.prod(self.grid_size)

        text = (options.program_options + " ;  ").encode("utf-8")
        self.fill = text[:FILL_SIZE].ljust(FILL_SIZE, b"\0")

        if options.part_no >= 0:
            self.index_density_file = options.part_no
        if options.dtfe:
            self.method = DensityMethod.DTFE
        elif options.tsc:
            self.method = DensityMethod.TSC
        elif options.sph:
            self.method = DensityMethod.SPH

        for key, file_type in _FILE_TYPE_KEYS:
            if key in variable_name:
                self.file_type = file_type
                break

    def copy_gadget_header_info(self, options: UserOptions) -> None:
        """Copy the snapshot properties from the Gadget input file, if it can be read.

        Only binary Gadget snapshots (input types 101 and 102) are inspected;
        for other input types, or a missing or unrecognised file, the header
        is left unchanged.
        """
        name = snapshot_filename(options.input_filename, 0, False)
        if not os.path.exists(name):
            return
        if options.input_file_type not in (101, 102):
            return
        with open(name, "rb") as handle:
            raw = handle.read(_GADGET_MARKER)
            if len(raw) < _GADGET_MARKER:
                return
            try:
                file_type, swapped = detect_snapshot_type(int.from_bytes(raw, "little"))
            except GadgetFormatError:
                return
            offset = _GADGET_LABEL if file_type == 2 else 0
            handle.seek(offset + _GADGET_MARKER, os.SEEK_SET)
            data = handle.read(GADGET_HEADER_SIZE)
        if len(data) < GADGET_HEADER_SIZE:
            return
        gadget = GadgetHeader.from_bytes(data, "big" if swapped else "little")
        self.npart_total = list(gadget.npart_total)
        self.mass = list(gadget.mass)
        self.time = gadget.time
        self.redshift = gadget.redshift
        self.box_size = gadget.box_size
        self.omega0 = gadget.omega0
        self.omega_lambda = gadget.omega_lambda
        self.hubble_param = gadget.hubble_param

    def format(self) -> str:
        """Return a human readable description of the header."""
        method = _METHOD_NAMES.get(self.method, "unknown")
        file_type = _FILE_TYPE_NAMES.get(self.file_type, "unknown file type")
        lines = [
            "\nThe header of the density file contains the following info:\n"
            "1) Information about the actual density computations:\n",
            f"gridSize      = {_join(self.grid_size)}\n",
            f"totalGrid     = {self.total_grid}\n",
            f"file type     = {file_type}\n",
            f"# density file= {self.no_density_files}\n",
        ]
        if self.no_density_files > 1:
            lines.append(f"file grid size= {_join(self.density_file_grid)}\n")
            lines.append(f"file index    = {self.index_density_file}\n")
        lines.append(f"box coords    = {_join(self.box)}\n")
        lines.append(
            "\n2) Information about the snapshot file used to compute the density:\n"
            f"npartTotal[6] =  {_join(self.npart_total)}\n"
            f"mass[6]       =  {_join(self.mass)}\n"
            f"time          =  {_fmt(self.time)}\n"
            f"redshift      =  {_fmt(self.redshift)}\n"
            f"BoxSize       =  {_fmt(self.box_size)}\n"
            f"Omega0        =  {_fmt(self.omega0)}\n"
            f"OmegaLambda   =  {_fmt(self.omega_lambda)}\n"
            f"HubbleParam   =  {_fmt(self.hubble_param)}\n"
        )
        lines.append(
            "\n3) Information about files and additional remarks:\n"
            f"method          = {method}\n"
            f"fill            = {self.remarks}\n\n"
        )
        return "".join(lines)

    def to_bytes(self) -> bytes:
        """Encode the header as 1024 bytes in the machine's byte order."""
        return _FORMAT.pack(
            *(int(v) & _SIZE_MASK for v in self.grid_size),
            int(self.total_grid) & _SIZE_MASK,
            int(self.file_type),
            int(self.no_density_files),
            *(int(v) for v in self.density_file_grid),
            int(self.index_density_file),
            *(float(v) for v in self.box),
            *(int(v) & _SIZE_MASK for v in self.npart_total),
            *(float(v) for v in self.mass),
            float(self.time),
            float(self.redshift),
            float(self.box_size),
            float(self.omega0),
            float(self.omega_lambda),
            float(self.hubble_param),
            int(self.method) & _SIZE_MASK,
            self.fill,
            int(self.file_id) & _SIZE_MASK,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> DensityHeader:
        """Decode a header from its 1024 bytes."""
        if len(data) < HEADER_SIZE:
            raise ValueError(
                f"a density file header needs {HEADER_SIZE} bytes, got {len(data)}"
            )
        v = _FORMAT.unpack(bytes(data[:HEADER_SIZE]))
        return cls(
            grid_size=list(v[0:3]),
            total_grid=v[3],
            file_type=_file_type_from(v[4]),
            no_density_files=v[5],
            density_file_grid=list(v[6:9]),
            index_density_file=v[9],
            box=list(v[10:16]),
            npart_total=list(v[16:22]),
            mass=list(v[22:28]),
            time=v[28],
            redshift=v[29],
            box_size=v[30],
            omega0=v[31],
            omega_lambda=v[32],
            hubble_param=v[33],
            method=_method_from(v[34]),
            fill=v[35],
            file_id=v[36],
        )


def _as_array(data: Iterable[Any]) -> np.ndarray:
    items = [list(item) if isinstance(item, PVector) else item for item in data]
    return np.ascontiguousarray(np.asarray(items, dtype=np.float32))


def write_density_file(
    data: Iterable[Any],
    filename: str | PathLike[str],
    variable_name: str,
    options: UserOptions,
) -> DensityHeader:
    """Write a field to a binary file preceded by its header; return the header."""
    header = DensityHeader()
    header.update_from_options(options, variable_name)
    header.copy_gadget_header_info(options)

    name = str(filename)
    log.info("Writing the %s to the file '%s' ...", variable_name, name)
    array = _as_array(data)
    payload = array.tobytes()
    with open(name, "wb") as handle:
        handle.write(_SIZE.pack(HEADER_SIZE))
        handle.write(header.to_bytes())
        handle.write(_SIZE.pack(HEADER_SIZE))
        handle.write(_SIZE.pack(len(payload)))
        handle.write(payload)
        handle.write(_SIZE.pack(len(payload)))
    log.info("Done.")
    return header


def _read_exact(handle: Any, nbytes: int, name: str) -> bytes:
    data = handle.read(nbytes)
    if len(data) < nbytes:
        raise ValueError(f"Unexpected end of the density file '{name}'.")
    return data


def read_density_file(filename: str | PathLike[str]) -> tuple[DensityHeader, np.ndarray]:
    """Read a binary field file; return its header and the field values.

    The values come back one per grid cell, or one row of components per
    cell when the file holds several components per cell.
    """
    name = str(filename)
    with open(name, "rb") as handle:
        before = _SIZE.unpack(_read_exact(handle, _SIZE.size, name))[0]
        if before != HEADER_SIZE:
            raise ValueError(
                f"The density file '{name}' does not start with a {HEADER_SIZE}-byte header."
            )
        header = DensityHeader.from_bytes(_read_exact(handle, HEADER_SIZE, name))
        after = _SIZE.unpack(_read_exact(handle, _SIZE.size, name))[0]
        if after != before:
            raise ValueError(
                f"The integers before and after the header of the density file "
                f"'{name}' did not match. The file is corrupt."
            )
        nbytes = _SIZE.unpack(_read_exact(handle, _SIZE.size, name))[0]
        payload = _read_exact(handle, nbytes, name)
        trailer = _SIZE.unpack(_read_exact(handle, _SIZE.size, name))[0]
        if trailer != nbytes:
            raise ValueError(
                f"The integers before and after the data block of the density file "
                f"'{name}' did not match. The file is corrupt."
            )
    values = np.frombuffer(payload, dtype=np.float32).copy()
    cells = header.total_grid
    if cells > 0 and len(values) != cells and len(values) % cells == 0:
        values = values.reshape(cells, len(values) // cells)
    return header, values