"""Probing Gadget binary snapshots: format, byte order, data sizes and particle counts."""

from __future__ import annotations

import logging
import os
import struct
import sys
from dataclasses import dataclass, field
from os import PathLike
from typing import BinaryIO

from dtfeio.gadget_header import (
    HEADER_SIZE,
    GadgetFormatError,
    GadgetHeader,
    detect_snapshot_type,
    snapshot_filename,
)
from dtfeio.options import PARTICLE_SPECIES, UserOptions
from dtfeio.particles import ReadData

log = logging.getLogger(__name__)

_MARKER_SIZE = 4
_BLOCK_LABEL_SIZE = 16
_COMPONENTS = 3


@dataclass
class SnapshotLayout:
    """How the data of a Gadget binary snapshot is laid out on disk."""

    file_type: int = 1
    byteorder: str = "little"
    bytes_pos: int = 4
    bytes_vel: int = 4
    num_files: int = 1
    header: GadgetHeader = field(default_factory=GadgetHeader)
    species_counts: list[int] = field(
        default_factory=lambda: [0] * PARTICLE_SPECIES
    )

    @property
    def offset(self) -> int:
        """Bytes of block label in front of every data block (format 2 only)."""
        return _BLOCK_LABEL_SIZE if self.file_type == 2 else 0

    @property
    def swap_endian(self) -> bool:
        """True if the file's byte order differs from this machine's."""
        return self.byteorder != sys.byteorder

    @property
    def particle_count(self) -> int:
        """Total number of particles selected for reading."""
        return sum(self.species_counts)


def _read_int(handle: BinaryIO, byteorder: str, filename: str) -> int:
    raw = handle.read(_MARKER_SIZE)
    if len(raw) < _MARKER_SIZE:
        raise GadgetFormatError(
            f"Unexpected end of the GADGET snapshot file '{filename}'. "
            "The GADGET snapshot file is corrupt."
        )
    prefix = "<" if byteorder == "little" else ">"
    return struct.unpack(prefix + "i", raw)[0]


def _read_header(handle: BinaryIO, layout: SnapshotLayout, filename: str) -> GadgetHeader:
    before = _read_int(handle, layout.byteorder, filename)
    raw = handle.read(HEADER_SIZE)
    if len(raw) < HEADER_SIZE:
        raise GadgetFormatError(
            f"Unexpected end of the GADGET snapshot file '{filename}' while "
            "reading its header. The GADGET snapshot file is corrupt."
        )
    after = _read_int(handle, layout.byteorder, filename)
    if before != after or before != HEADER_SIZE:
        raise GadgetFormatError(
            "There was an error while reading the header of the GADGET snapshot "
            f"file '{filename}'. The integers before and after the header do not "
            f"match the value {HEADER_SIZE}. The GADGET snapshot file is corrupt."
        )
    return GadgetHeader.from_bytes(raw, layout.byteorder)


def count_gadget_particles(
    root: str | PathLike[str], num_files: int, layout: SnapshotLayout
) -> list[int]:
    """Return the number of particles of each species over all snapshot files."""
    totals = [0] * PARTICLE_SPECIES
    for number in range(num_files):
        name = snapshot_filename(str(root), number)
        with open(name, "rb") as handle:
            handle.seek(layout.offset, os.SEEK_SET)
            header = _read_header(handle, layout, name)
        totals = [total + count for total, count in zip(totals, header.npart)]
    log.info(
        "The data is in %d files and contains the following number of "
        "particles: %s .",
        num_files,
        " + ".join(str(count) for count in totals),
    )
    return totals


def initialize_gadget(
    filename: str | PathLike[str], read_data: ReadData, options: UserOptions
) -> SnapshotLayout:
    """Inspect a single- or multi-file snapshot and prepare ``read_data``.

    Detects the file format and byte order, the sizes of the position and
    velocity values, sets the box from the header unless the user gave one,
    counts the selected particles and allocates the requested arrays.
    """
    root = str(filename)
    single_file = os.path.exists(root)
    first = root if single_file else snapshot_filename(root, 0)

    with open(first, "rb") as handle:
        raw = handle.read(_MARKER_SIZE)
        if len(raw) < _MARKER_SIZE:
            raise GadgetFormatError(
                f"The GADGET snapshot file '{first}' is too short to hold a header."
            )
        file_type, swapped = detect_snapshot_type(int.from_bytes(raw, "little"))
        layout = SnapshotLayout(
            file_type=file_type, byteorder="big" if swapped else "little"
        )
        if layout.swap_endian:
            log.info(
                "Detected that the input data file has a different endianness "
                "than the current system. The data will be converted."
            )

        handle.seek(layout.offset, os.SEEK_SET)
        header = _read_header(handle, layout, first)

        handle.seek(layout.offset, os.SEEK_CUR)
        position_bytes = _read_int(handle, layout.byteorder, first)
        handle.seek(position_bytes + _MARKER_SIZE + layout.offset, os.SEEK_CUR)
        velocity_bytes = _read_int(handle, layout.byteorder, first)

    particles_here = sum(header.npart)
    if particles_here <= 0:
        raise GadgetFormatError(
            f"The GADGET snapshot file '{first}' contains no particles, so the "
            "size of its data values cannot be determined."
        )
    layout.bytes_pos = position_bytes // (_COMPONENTS * particles_here)
    layout.bytes_vel = velocity_bytes // (_COMPONENTS * particles_here)
    log.info(
        "Number of bytes for position and velocity data: %d and %d, respectively.",
        layout.bytes_pos,
        layout.bytes_vel,
    )

    if not options.user_given_box_coordinates:
        for axis in range(options.dimensions):
            options.box_coordinates[2 * axis] = 0.0
            options.box_coordinates[2 * axis + 1] = header.box_size
    else:
        log.info(
            "The box coordinates were set by the user; the box length in the "
            "Gadget file is ignored."
        )

    if single_file:
        header.num_files = 1
        totals = list(header.npart)
    else:
        totals = count_gadget_particles(root, header.num_files, layout)
    layout.header = header
    layout.num_files = header.num_files
    layout.species_counts = [
        count if wanted else 0
        for count, wanted in zip(totals, options.read_particle_species)
    ]
    total = layout.particle_count
    log.info(
        "Reading %d particle data from the input file. These particles are made "
        "from the particle species: %s .",
        total,
        " + ".join(str(count) for count in layout.species_counts),
    )

    flags = list(options.read_particle_data) + [False] * 3
    if flags[0]:
        read_data.allocate_positions(total)
    if flags[1]:
        read_data.allocate_weights(total)
    if flags[2]:
        read_data.allocate_velocities(total)
    if options.scalar_count() > 0:
        read_data.allocate_scalars(total)

    if not flags[0]:
        raise ValueError(
            "The program needs the particle position information to be able to "
            "interpolate the fields on a grid. Please add '1' to the integer "
            "number giving the data blocks to be read from the input Gadget snapshot."
        )
    if not flags[1]:
        log.warning(
            "You selected not to read the Gadget particle masses. All particles "
            "will be treated as having the same weight (mass)."
        )
    if total <= 0:
        raise ValueError(
            "Please select again the particle species that you would like to read "
            "from the Gadget file. There are no particles in the current selection!"
        )
    return layout