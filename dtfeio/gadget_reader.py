"""Reading the particle data blocks of Gadget binary snapshots."""

from __future__ import annotations

import logging
import os
import struct
from os import PathLike
from typing import BinaryIO, Sequence

import numpy as np

from dtfeio.gadget_binary import SnapshotLayout, initialize_gadget
from dtfeio.gadget_header import (
    HEADER_SIZE,
    GadgetFormatError,
    GadgetHeader,
    snapshot_filename,
)
from dtfeio.options import UserOptions
from dtfeio.particles import ReadData

log = logging.getLogger(__name__)

_MARKER_SIZE = 4
_COMPONENTS = 3
_ENERGY_BYTES = 4


class _BlockReader:
    """Reads the delimited data blocks of one snapshot file."""

    def __init__(self, handle: BinaryIO, layout: SnapshotLayout, filename: str) -> None:
        self.handle = handle
        self.layout = layout
        self.filename = filename
        self.prefix = "<" if layout.byteorder == "little" else ">"

    def raw(self, nbytes: int) -> bytes:
        data = self.handle.read(nbytes)
        if len(data) < nbytes:
            raise GadgetFormatError(
                f"Unexpected end of the GADGET snapshot file '{self.filename}'. "
                "The GADGET snapshot file is corrupt."
            )
        return data

    def _marker(self) -> int:
        return struct.unpack(self.prefix + "i", self.raw(_MARKER_SIZE))[0]

    def begin(self) -> int:
        """Skip the block label (format 2) and return the leading block marker."""
        self.handle.seek(self.layout.offset, os.SEEK_CUR)
        return self._marker()

    def end(self, name: str, before: int) -> None:
        """Read the trailing block marker and check it against the leading one."""
        after = self._marker()
        if before != after:
            raise GadgetFormatError(
                f"The integers before and after the particle {name} data block in "
                f"the GADGET file '{self.filename}' did not match. The GADGET "
                "snapshot file is corrupt."
            )

    def skip(self, nbytes: int) -> None:
        self.handle.seek(nbytes, os.SEEK_CUR)

    def values(self, count: int, nbytes: int) -> np.ndarray:
        if nbytes not in (4, 8):
            raise GadgetFormatError(
                f"Cannot read {nbytes}-byte real values from the GADGET snapshot "
                f"file '{self.filename}'; only 4 and 8 byte values are supported."
            )
        dtype = np.dtype(f"{self.prefix}f{nbytes}")
        return np.frombuffer(self.raw(count * nbytes), dtype=dtype)


def _read_vector_block(
    blocks: _BlockReader,
    name: str,
    target: np.ndarray | None,
    npart: Sequence[int],
    species: Sequence[bool],
    nbytes: int,
    start: int,
) -> None:
    before = blocks.begin()
    if target is None:
        log.debug("skipping the %s block", name)
        blocks.skip(sum(npart) * nbytes * _COMPONENTS)
    else:
        log.debug("reading the %s of the particles", name)
        row = start
        for count, wanted in zip(npart, species):
            if count == 0:
                continue
            if not wanted:
                blocks.skip(count * nbytes * _COMPONENTS)
                continue
            values = blocks.values(count * _COMPONENTS, nbytes)
            target[row : row + count] = values.reshape(count, _COMPONENTS)
            row += count
    blocks.end(name, before)


def _read_mass_block(
    blocks: _BlockReader,
    header: GadgetHeader,
    weights: np.ndarray | None,
    species: Sequence[bool],
    nbytes: int,
    start: int,
) -> None:
    present = any(
        mass == 0.0 and count != 0 for mass, count in zip(header.mass, header.npart)
    )
    before = blocks.begin() if present else 0
    row = start
    for count, mass, wanted in zip(header.npart, header.mass, species):
        if count == 0:
            continue
        variable = mass == 0.0
        if weights is None or not wanted:
            if variable:
                blocks.skip(count * nbytes)
            continue
        if variable:
            weights[row : row + count] = blocks.values(count, nbytes)
        else:
            weights[row : row + count] = mass
        row += count
    if present:
        blocks.end("mass", before)


def _read_internal_energy(
    blocks: _BlockReader, read_data: ReadData, count: int, start: int
) -> None:
    before = blocks.begin()
    energy = blocks.values(count, _ENERGY_BYTES)
    if read_data.has("weights"):
        weights = read_data.weights[start : start + count]
    else:
        weights = np.ones(count, dtype=read_data.dtype)
    # The energy is given per unit mass, so weigh it by the particle mass.
    values = weights * energy
    read_data.scalars[start : start + count, 0] = values
    log.info(
        "reading internal energy of the particles (mean energy: %g)... Done.",
        float(values.mean()) if count else 0.0,
    )
    blocks.end("internal energy U", before)


def read_gadget_data(
    filename: str | PathLike[str],
    read_data: ReadData,
    options: UserOptions,
    layout: SnapshotLayout,
    particles_read: int = 0,
) -> int:
    """Read the data of one snapshot file into ``read_data``.

    The particles of this file are stored starting at row ``particles_read``.
    Returns the number of particles read so far, this file included.
    """
    name = str(filename)
    flags = list(options.read_particle_data) + [False] * 4
    species = list(options.read_particle_species)

    with open(name, "rb") as handle:
        blocks = _BlockReader(handle, layout, name)

        before = blocks.begin()
        header = GadgetHeader.from_bytes(blocks.raw(HEADER_SIZE), layout.byteorder)
        blocks.end("header", before)
        if before != HEADER_SIZE:
            raise GadgetFormatError(
                "The integers before and after the header do not match the value "
                f"{HEADER_SIZE}. The GADGET snapshot file is corrupt."
            )
        npart = header.npart

        _read_vector_block(
            blocks,
            "position",
            read_data.positions if flags[0] else None,
            npart,
            species,
            layout.bytes_pos,
            particles_read,
        )
        velocities = (
            read_data.velocities if flags[2] and read_data.has("velocities") else None
        )
        _read_vector_block(
            blocks, "velocity", velocities, npart, species, layout.bytes_vel, particles_read
        )

        before = blocks.begin()
        blocks.skip(before)
        blocks.end("id", before)

        _read_mass_block(
            blocks,
            header,
            read_data.weights if flags[1] else None,
            species,
            layout.bytes_pos,
            particles_read,
        )

        if flags[3] and npart[0] > 0 and species[0]:
            _read_internal_energy(blocks, read_data, npart[0], particles_read)

    return particles_read + sum(
        count for count, wanted in zip(npart, species) if wanted
    )


def read_gadget_file(filename: str | PathLike[str], options: UserOptions) -> ReadData:
    """Read a Gadget binary snapshot stored in one or several files."""
    root = str(filename)
    read_data = ReadData()
    layout = initialize_gadget(root, read_data, options)
    single_file = os.path.exists(root)

    particles_read = 0
    for number in range(layout.num_files):
        name = root if single_file else snapshot_filename(root, number)
        log.info(
            "Reading GADGET snapshot file '%s' which is file %d of %d files...",
            name,
            number + 1,
            layout.num_files,
        )
        particles_read = read_gadget_data(name, read_data, options, layout, particles_read)
    return read_data