"""Writing fields on a regular grid to text files together with the cell positions."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from os import PathLike
from typing import Any

import numpy as np

from dtfeio.options import UserOptions
from dtfeio.text_output import TextOutputError, _as_array, _format, _write_value

log = logging.getLogger(__name__)


def _cell_centres(bounds: Sequence[float], grid: Sequence[int]) -> np.ndarray:
    """Return the centres of the cells of a regular grid, in grid index order."""
    axes = [
        bounds[2 * axis]
        + (bounds[2 * axis + 1] - bounds[2 * axis]) / cells * (np.arange(cells) + 0.5)
        for axis, cells in enumerate(grid)
    ]
    mesh = np.meshgrid(*axes, indexing="ij")
    return np.stack([m.reshape(-1) for m in mesh], axis=1)


def _grid(options: UserOptions) -> list[int]:
    grid = [int(n) for n in options.grid_size[: options.dimensions]]
    if any(n <= 0 for n in grid):
        raise TextOutputError(f"The grid size must be positive along every axis: {grid}.")
    return grid


def sampling_positions(options: UserOptions) -> np.ndarray:
    """Return the coordinates of the grid cell centres inside ``options.region``.

    The result has one row per cell, ordered like the field values (the last
    axis varies fastest), and one column per spatial dimension.
    """
    dims = options.dimensions
    bounds = [float(v) for v in options.region[: 2 * dims]]
    if len(bounds) != 2 * dims:
        raise TextOutputError(
            f"The region must give {2 * dims} boundaries, not {len(bounds)}."
        )
    return _cell_centres(bounds, _grid(options))


def write_text_sampling_positions(
    data: Iterable[Any],
    filename: str | PathLike[str],
    variable_name: str,
    options: UserOptions,
) -> None:
    """Write one line per grid cell: its centre coordinates and then the field value."""
    name = str(filename)
    log.info("Writing the %s to the text file '%s' ...", variable_name, name)
    if options.user_defined_sampling or options.redshift_cone_on:
        raise TextOutputError(
            "You cannot use the function 'writeTextFile_samplingPosition' to write the "
            "data to a text file when using redshift cone or user defined coordinates "
            "since the sampling coordinates are incorrect in this case."
        )
    array = _as_array(data)
    positions = sampling_positions(options)
    if len(array) < len(positions):
        raise TextOutputError(
            f"The grid has {len(positions)} cells but only {len(array)} values were given."
        )
    with open(name, "w", encoding="utf-8") as handle:
        for position, value in zip(positions, array):
            handle.write("".join(_format(x) + "\t" for x in position))
            _write_value(handle, value)
    log.info("Done.")