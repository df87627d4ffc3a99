"""Reading particle data and sampling points from text files."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from itertools import islice
from os import PathLike
from pathlib import Path

import numpy as np

from dtfeio.options import UserOptions
from dtfeio.particles import ReadData

log = logging.getLogger(__name__)


def _tokens(filename: str | PathLike[str]) -> Iterator[str]:
    with open(filename, encoding="utf-8") as handle:
        for line in handle:
            yield from line.split()


def _read_count(tokens: Iterator[str], filename: str, what: str) -> int:
    token = next(tokens, None)
    if token is None:
        raise ValueError(f"Could not read the number of {what} from '{filename}'.")
    try:
        count = int(token)
    except ValueError:
        raise ValueError(
            f"Could not read the number of {what} from '{filename}': {token!r}."
        ) from None
    if count < 0:
        raise ValueError(f"The number of {what} in '{filename}' is negative: {count}.")
    return count


def _read_floats(tokens: Iterator[str], count: int, filename: str) -> np.ndarray:
    values = list(islice(tokens, count))
    if len(values) != count:
        raise ValueError(
            f"Unexpected end of file while reading from '{filename}': expected "
            f"{count} more values, found {len(values)}."
        )
    try:
        return np.array([float(v) for v in values], dtype=np.float64)
    except ValueError as error:
        raise ValueError(f"Could not read from '{filename}': {error}") from None


def _read_header(tokens: Iterator[str], filename: str, options: UserOptions) -> int:
    count = _read_count(tokens, filename, "particles")
    box = _read_floats(tokens, 2 * options.dimensions, filename)
    options.box_coordinates[:] = [float(v) for v in box]
    return count


def _read_positions(filename: str, options: UserOptions) -> ReadData:
    tokens = _tokens(filename)
    count = _read_header(tokens, filename, options)
    read_data = ReadData(dimensions=options.dimensions)
    positions = read_data.allocate_positions(count)
    dim = options.dimensions
    positions[:] = _read_floats(tokens, count * dim, filename).reshape(count, dim)
    return read_data


def read_text_file(filename: str | PathLike[str], options: UserOptions) -> ReadData:
    """Read particle positions and weights from a text file.

    The file holds the particle count, the box boundaries
    (xMin xMax yMin yMax ...) and then one line per particle with its
    coordinates followed by its weight. Velocities and scalars are allocated
    and left at zero.
    """
    name = str(filename)
    log.info("Reading the input data from the text file '%s' ...", name)
    tokens = _tokens(name)
    count = _read_header(tokens, name, options)
    dim = options.dimensions
    read_data = ReadData(dimensions=dim)
    positions = read_data.allocate_positions(count)
    read_data.allocate_velocities(count)
    weights = read_data.allocate_weights(count)
    read_data.allocate_scalars(count)
    block = _read_floats(tokens, count * (dim + 1), name).reshape(count, dim + 1)
    positions[:] = block[:, :dim]
    weights[:] = block[:, dim]
    log.info("Done.")
    return read_data


def read_text_positions(filename: str | PathLike[str], options: UserOptions) -> ReadData:
    """Read only particle positions from a text file that holds nothing else."""
    name = str(filename)
    log.info("Reading the particle position data from the text file '%s' ...", name)
    read_data = _read_positions(name, options)
    log.info("Done.")
    return read_data


def read_text_with_sampling(
    filename: str | PathLike[str], options: UserOptions
) -> ReadData:
    """Read particle positions and user defined sampling points.

    The sampling file is the first entry of ``options.additional_options``;
    it holds the number of points and then, per point, its coordinates
    followed by the cell size along each axis.
    """
    name = str(filename)
    if not options.additional_options:
        raise ValueError(
            "The name of the file giving the user defined sampling points must be "
            "supplied as the first additional option."
        )
    log.info("Reading the particle position data from the text file '%s' ...", name)
    read_data = _read_positions(name, options)
    log.info("Done.")

    sampling_name = str(Path(options.additional_options[0]))
    log.info("Reading the user defined sampling points from '%s' ...", sampling_name)
    tokens = _tokens(sampling_name)
    count = _read_count(tokens, sampling_name, "sampling points")
    dim = options.dimensions
    samples, delta = read_data.allocate_sampling(count)
    block = _read_floats(tokens, count * 2 * dim, sampling_name).reshape(count, 2 * dim)
    samples[:] = block[:, :dim]
    delta[:] = block[:, dim:]
    log.info("Done.")
    return read_data