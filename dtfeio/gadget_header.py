"""The 256-byte header of Gadget snapshot files."""

from __future__ import annotations

import os
import struct
import sys
from dataclasses import dataclass, field

HEADER_SIZE = 256
_FIELDS = "6i6d2d2i6i2i4d"
_FILL_SIZE = HEADER_SIZE - struct.calcsize("<" + _FIELDS)
_FORMAT = _FIELDS + f"{_FILL_SIZE}s"

_PREFIXES = {"little": "<", "big": ">", "<": "<", ">": ">", "=": "=", "native": "="}


class GadgetFormatError(ValueError):
    """The data does not look like a valid Gadget snapshot."""


def _prefix(byteorder: str) -> str:
    try:
        return _PREFIXES[byteorder]
    except KeyError:
        raise ValueError(f"unknown byte order {byteorder!r}") from None


def _fmt(value: float) -> str:
    return f"{value:g}"


def _join(values) -> str:
    return "  ".join(str(v) if isinstance(v, int) else _fmt(v) for v in values)


@dataclass
class GadgetHeader:
    """Header of a Gadget snapshot file."""

    npart: list[int] = field(default_factory=lambda: [0] * 6)
    mass: list[float] = field(default_factory=lambda: [0.0] * 6)
    time: float = 0.0
    redshift: float = 0.0
    flag_sfr: int = 0
    flag_feedback: int = 0
    npart_total: list[int] = field(default_factory=lambda: [0] * 6)
    flag_cooling: int = 0
    num_files: int = 0
    box_size: float = 0.0
    omega0: float = 0.0
    omega_lambda: float = 0.0
    hubble_param: float = 0.0
    fill: bytes = bytes(_FILL_SIZE)

    def __post_init__(self) -> None:
        for name in ("npart", "mass", "npart_total"):
            values = list(getattr(self, name))
            if len(values) != 6:
                raise ValueError(f"'{name}' must have 6 entries, not {len(values)}")
            setattr(self, name, values)
        if len(self.fill) > _FILL_SIZE:
            raise ValueError(f"'fill' can hold at most {_FILL_SIZE} bytes")
        self.fill = bytes(self.fill).ljust(_FILL_SIZE, b"\0")

    @classmethod
    def from_bytes(cls, data: bytes, byteorder: str = sys.byteorder) -> GadgetHeader:
        """Decode a header from its 256 bytes written in ``byteorder``."""
        if len(data) < HEADER_SIZE:
            raise GadgetFormatError(
                f"a Gadget header needs {HEADER_SIZE} bytes, got {len(data)}"
            )
        v = struct.unpack(_prefix(byteorder) + _FORMAT, bytes(data[:HEADER_SIZE]))
        return cls(
            npart=list(v[0:6]),
            mass=list(v[6:12]),
            time=v[12],
            redshift=v[13],
            flag_sfr=v[14],
            flag_feedback=v[15],
            npart_total=list(v[16:22]),
            flag_cooling=v[22],
            num_files=v[23],
            box_size=v[24],
            omega0=v[25],
            omega_lambda=v[26],
            hubble_param=v[27],
            fill=v[28],
        )

    def to_bytes(self, byteorder: str = sys.byteorder) -> bytes:
        """Encode the header as 256 bytes in ``byteorder``."""
        return struct.pack(
            _prefix(byteorder) + _FORMAT,
            *self.npart,
            *self.mass,
            self.time,
            self.redshift,
            self.flag_sfr,
            self.flag_feedback,
            *self.npart_total,
            self.flag_cooling,
            self.num_files,
            self.box_size,
            self.omega0,
            self.omega_lambda,
            self.hubble_param,
            self.fill,
        )

    def format(self) -> str:
        """Return a human readable description of the header."""
        return (
            "\nThe header of the Gadget file contains the following info:\n"
            f"npart[6]     =  {_join(self.npart)}\n"
            f"mass[6]      =  {_join(self.mass)}\n"
            f"time         =  {_fmt(self.time)}\n"
            f"redshift     =  {_fmt(self.redshift)}\n"
            f"flag_sfr     =  {self.flag_sfr}\n"
            f"flag_feedback=  {self.flag_feedback}\n"
            f"npartTotal[6]=  {_join(self.npart_total)}  \n"
            f"flag_cooling =  {self.flag_cooling}\n"
            f"num_files    =  {self.num_files}\n"
            f"BoxSize      =  {_fmt(self.box_size)}\n"
            f"Omega0       =  {_fmt(self.omega0)}\n"
            f"OmegaLambda  =  {_fmt(self.omega_lambda)}\n"
            f"h            =  {_fmt(self.hubble_param)}\n\n"
        )


def snapshot_filename(root: str, number: int, check_exists: bool = True) -> str:
    """Return the name of file ``number`` of a snapshot.

    A multi-file snapshot root holds a ``%i``, ``%d`` or ``%s`` placeholder for
    the file number; a root without one names a single file.
    """
    name = root % number if "%" in root else root
    if check_exists and not os.path.exists(name):
        raise FileNotFoundError(
            "The program could not open the input GADGET snapshot file/files: "
            f"'{name}'. It cannot find the file/files."
        )
    return name


def _byteswap32(value: int) -> int:
    return int.from_bytes((value & 0xFFFFFFFF).to_bytes(4, "little"), "big")


def detect_snapshot_type(buffer_value: int) -> tuple[int, bool]:
    """Identify the snapshot format from the first 4-byte block marker.

    Returns ``(file_type, swap_endian)``: the Gadget format (1 or 2) and
    whether the file's byte order differs from the one used to decode the
    marker.
    """
    for swap, value in ((False, buffer_value), (True, _byteswap32(buffer_value))):
        if value == 8:
            return 2, swap
        if value == 256:
            return 1, swap
    raise GadgetFormatError(
        "Unknown file type for the input Gadget snapshot. Tried Gadget snapshots "
        "type 1 and 2 as well as changing endianness, but none worked. Check that "
        "you inserted the correct input file."
    )