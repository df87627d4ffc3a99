"""Reading Gadget snapshots together with modified-gravity force files."""

from __future__ import annotations

import logging
import os
import struct
from os import PathLike

import numpy as np

from dtfeio.gadget_binary import initialize_gadget
from dtfeio.gadget_header import GadgetFormatError, snapshot_filename
from dtfeio.gadget_reader import read_gadget_data
from dtfeio.options import UserOptions
from dtfeio.particles import ReadData

log = logging.getLogger(__name__)

_MARKER = struct.Struct("=i")
_DOUBLE = np.dtype("=f8")


def read_forces(
    filename: str | PathLike[str],
    read_data: ReadData,
    count: int,
    n_scalars: int,
    particles_read: int = 0,
) -> int:
    """Read ``count`` particles' force components into the scalar array.

    The file holds one delimited block of ``count * n_scalars`` doubles.
    Returns the number of particles read so far, this file included.
    """
    name = str(filename)
    if n_scalars > read_data.scalar_components:
        raise ValueError(
            f"The file requires {n_scalars} scalar components, more than the "
            f"{read_data.scalar_components} the particle data can hold."
        )
    log.info("reading force data from file '%s' ...", name)
    nbytes = count * n_scalars * _DOUBLE.itemsize
    with open(name, "rb") as handle:
        raw = handle.read(_MARKER.size + nbytes + _MARKER.size)
    if len(raw) < _MARKER.size + nbytes + _MARKER.size:
        raise GadgetFormatError(
            f"Unexpected end of the force file '{name}'. The file is corrupt."
        )
    before = _MARKER.unpack_from(raw, 0)[0]
    after = _MARKER.unpack_from(raw, _MARKER.size + nbytes)[0]
    if before != after:
        raise GadgetFormatError(
            "The integers before and after the particle 'MOG forces' data block in "
            f"the GADGET file '{name}' did not match. The GADGET snapshot file is "
            "corrupt."
        )
    data = np.frombuffer(raw, dtype=_DOUBLE, count=count * n_scalars, offset=_MARKER.size)
    read_data.scalars[particles_read : particles_read + count, :n_scalars] = data.reshape(
        count, n_scalars
    )
    log.info("Done.")
    return particles_read + count


def read_gadget_file_mog(filename: str | PathLike[str], options: UserOptions) -> ReadData:
    """Read a Gadget snapshot and the matching force files.

    ``options.additional_options`` holds the force file root (with a file
    number placeholder; file ``i`` of the snapshot pairs with force file
    ``i + 1``) and the number of force components per particle.
    """
    if len(options.additional_options) < 2:
        raise ValueError(
            "Reading modified gravity forces needs two additional options: the "
            "root name of the force files and the number of force components."
        )
    forces_root = options.additional_options[0]
    try:
        n_scalars = int(options.additional_options[1])
    except ValueError:
        raise ValueError(
            "The number of force components must be an integer, not "
            f"{options.additional_options[1]!r}."
        ) from None

    root = str(filename)
    read_data = ReadData()
    layout = initialize_gadget(root, read_data, options)

    if n_scalars > read_data.scalar_components:
        raise ValueError(
            f"The file required number of scalar components = {n_scalars} is larger "
            f"than the one available = {read_data.scalar_components}!"
        )
    if n_scalars > 0 and not read_data.has("scalars"):
        read_data.allocate_scalars(read_data.number_of_particles())

    single_file = os.path.exists(root)
    particles_read = 0
    forces_read = 0
    for number in range(layout.num_files):
        name = root if single_file else snapshot_filename(root, number)
        log.info(
            "Reading GADGET snapshot file '%s' which is file %d of %d files...",
            name,
            number + 1,
            layout.num_files,
        )
        particles_read = read_gadget_data(name, read_data, options, layout, particles_read)
        if n_scalars > 0:
            forces_name = snapshot_filename(forces_root, number + 1)
            forces_read = read_forces(
                forces_name,
                read_data,
                particles_read - forces_read,
                n_scalars,
                forces_read,
            )
    return read_data