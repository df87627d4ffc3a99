"""Writing interpolated fields to text files."""

from __future__ import annotations

import itertools
import logging
import math
from collections.abc import Iterable
from os import PathLike
from typing import Any, TextIO

import numpy as np

from dtfeio.options import UserOptions
from dtfeio.vector import PVector

log = logging.getLogger(__name__)


class TextOutputError(ValueError):
    """The data cannot be written in the requested text layout."""


def _as_array(data: Iterable[Any]) -> np.ndarray:
    items = [list(item) if isinstance(item, PVector) else item for item in data]
    array = np.asarray(items, dtype=np.float64)
    if array.ndim not in (1, 2):
        raise TextOutputError(
            "The data to write must hold one value or one vector per sampling point."
        )
    return array


def _format(value: float) -> str:
    return f"{float(value):g}"


def _write_value(handle: TextIO, value: Any) -> None:
    if np.ndim(value) == 0:
        handle.write(_format(value) + "\n")
    else:
        handle.write("".join(_format(v) + "\t" for v in value) + "\n")


def write_text_file(
    data: Iterable[Any],
    filename: str | PathLike[str],
    variable_name: str,
    options: UserOptions,
) -> None:
    """Write one line per sampling point with its field components tab separated."""
    name = str(filename)
    log.info("Writing the %s to the text file '%s' ...", variable_name, name)
    array = _as_array(data)
    with open(name, "w", encoding="utf-8") as handle:
        for value in array:
            _write_value(handle, value)
    log.info("Done.")


def write_text_grid_index(
    data: Iterable[Any],
    filename: str | PathLike[str],
    variable_name: str,
    options: UserOptions,
) -> None:
    """Write one line per grid cell: its grid indices and then the field value."""
    name = str(filename)
    log.info("Writing the %s to the text file '%s' ...", variable_name, name)
    if options.user_defined_sampling:
        raise TextOutputError(
            "You cannot use the function 'writeTextFile_gridIndex' to write the data "
            "to a text file when using user defined coordinates since there are no "
            "grid indices associated to each sampling point."
        )
    array = _as_array(data)
    grid = [int(n) for n in options.grid_size[: options.dimensions]]
    cells = math.prod(grid)
    if len(array) < cells:
        raise TextOutputError(
            f"The grid has {cells} cells but only {len(array)} values were given."
        )
    with open(name, "w", encoding="utf-8") as handle:
        for index, cell in enumerate(itertools.product(*(range(n) for n in grid))):
            handle.write("".join(f"{i}\t" for i in cell))
            _write_value(handle, array[index])
    log.info("Done.")