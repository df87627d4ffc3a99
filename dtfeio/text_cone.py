"""Writing fields sampled on a redshift cone grid to text files."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from os import PathLike
from typing import Any

import numpy as np

from dtfeio.options import UserOptions
from dtfeio.text_output import TextOutputError, _as_array, _format, _write_value
from dtfeio.text_sampling import _cell_centres, _grid

log = logging.getLogger(__name__)

# Conversion of the cone angles from degrees to radians.
_DEGREE = 3.14 / 180.0


def _cone_cells(options: UserOptions) -> np.ndarray:
    dims = options.dimensions
    if dims not in (2, 3):
        raise TextOutputError(f"Redshift cones exist only in 2 or 3 dimensions, not {dims}.")
    cone = [float(v) for v in options.redshift_cone[: 2 * dims]]
    if len(cone) != 2 * dims:
        raise TextOutputError(
            f"The redshift cone must give {2 * dims} boundaries, not {len(cone)}."
        )
    return _cell_centres(cone, _grid(options))


def _to_cartesian(cells: np.ndarray, options: UserOptions) -> np.ndarray:
    dims = options.dimensions
    origin = np.asarray([float(v) for v in options.origin_position[:dims]])
    if len(origin) != dims:
        raise TextOutputError(f"The cone origin must have {dims} coordinates.")
    r = cells[:, 0]
    theta = cells[:, 1] * _DEGREE
    if dims == 2:
        offsets = np.stack([r * np.cos(theta), r * np.sin(theta)], axis=1)
    else:
        phi = cells[:, 2] * _DEGREE
        offsets = np.stack(
            [
                r * np.sin(theta) * np.cos(phi),
                r * np.sin(theta) * np.sin(phi),
                r * np.cos(theta),
            ],
            axis=1,
        )
    return origin + offsets


def cone_positions(options: UserOptions) -> np.ndarray:
    """Return the Cartesian positions of the redshift cone grid cell centres.

    The cone is given by ``options.redshift_cone`` as (r, theta[, phi])
    boundaries, angles in degrees, around ``options.origin_position``.
    """
    return _to_cartesian(_cone_cells(options), options)


def write_text_redshift_cone(
    data: Iterable[Any],
    filename: str | PathLike[str],
    variable_name: str,
    options: UserOptions,
) -> None:
    """Write one line per redshift cone cell: its position and then the field value.

    In 3D the position is Cartesian. In 2D a single-component field is
    written with the cell's (r, theta) and a multi-component one with (x, y).
    """
    name = str(filename)
    log.info("Writing the %s to the text file '%s' ...", variable_name, name)
    if options.user_defined_sampling:
        raise TextOutputError(
            "You cannot use the function 'writeTextFile_redshiftConePosition' to write "
            "the data to a text file when using user defined coordinates since the "
            "program doesn't know how to compute the redshift cone coordinates."
        )
    if not options.redshift_cone_on:
        raise TextOutputError(
            "The function 'writeTextFile_redshiftConePosition' can be used to write "
            "the data to a text file only when using redshift cone coordinates since "
            "it writes the redshift cone coordinates in the file too."
        )
    array = _as_array(data)
    cells = _cone_cells(options)
    if len(array) < len(cells):
        raise TextOutputError(
            f"The grid has {len(cells)} cells but only {len(array)} values were given."
        )
    if options.dimensions == 2 and array.ndim == 1:
        positions = cells
    else:
        positions = _to_cartesian(cells, options)
    with open(name, "w", encoding="utf-8") as handle:
        for position, value in zip(positions, array):
            handle.write("".join(_format(x) + "\t" for x in position))
            _write_value(handle, value)
    log.info("Done.")