"""Run-time options shared by the input and output routines."""

from __future__ import annotations

from dataclasses import dataclass, field

from dtfeio.particles import DIMENSIONS

DEFAULT_INPUT_FILE_TYPE = 105
DEFAULT_OUTPUT_FILE_TYPE = 101
DEFAULT_MPC_UNIT = 1000.0
PARTICLE_SPECIES = 6


@dataclass
class UserOptions:
    """Settings that control how particle data is read and fields are written."""

    input_filename: str = ""
    input_file_type: int = DEFAULT_INPUT_FILE_TYPE
    output_file_type: int = DEFAULT_OUTPUT_FILE_TYPE
    mpc_unit: float = DEFAULT_MPC_UNIT
    verbose_level: int = 1
    dimensions: int = DIMENSIONS
    box_coordinates: list[float] = field(
        default_factory=lambda: [0.0] * (2 * DIMENSIONS)
    )
    user_given_box_coordinates: bool = False
    region: list[float] = field(default_factory=lambda: [0.0, 1.0] * DIMENSIONS)
    region_on: bool = False
    region_mpc_on: bool = False
    grid_size: list[int] = field(default_factory=lambda: [128] * DIMENSIONS)
    partition: list[int] = field(default_factory=lambda: [1] * DIMENSIONS)
    part_no: int = -1
    program_options: str = ""
    dtfe: bool = True
    tsc: bool = False
    sph: bool = False
    read_particle_data: list[bool] = field(default_factory=lambda: [True, True, True])
    read_particle_species: list[bool] = field(
        default_factory=lambda: [True] * PARTICLE_SPECIES
    )
    additional_options: list[str] = field(default_factory=list)
    user_defined_sampling: bool = False
    redshift_cone_on: bool = False
    redshift_cone: list[float] = field(
        default_factory=lambda: [0.0] * (2 * DIMENSIONS)
    )
    origin_position: list[float] = field(default_factory=lambda: [0.0] * DIMENSIONS)

    def __post_init__(self) -> None:
        if len(self.read_particle_species) != PARTICLE_SPECIES:
            raise ValueError(
                f"'read_particle_species' must have {PARTICLE_SPECIES} entries, "
                f"not {len(self.read_particle_species)}"
            )
        if len(self.box_coordinates) != 2 * self.dimensions:
            raise ValueError(
                f"'box_coordinates' must have {2 * self.dimensions} entries"
            )
        if len(self.region) != 2 * self.dimensions:
            raise ValueError(f"'region' must have {2 * self.dimensions} entries")

    def scalar_count(self) -> int:
        """Number of scalar data blocks requested beyond position, mass and velocity."""
        return sum(1 for flag in self.read_particle_data[3:] if flag)

    def region_in_box_units(self) -> list[float]:
        """Return the region boundaries in the coordinates of the data box.

        A region given as fractions of the box is scaled to the box extent
        along each axis; a region already in box units is returned as is.
        """
        if self.region_mpc_on:
            return list(self.region)
        result = []
        for i, fraction in enumerate(self.region):
            low = self.box_coordinates[2 * (i // 2)]
            high = self.box_coordinates[2 * (i // 2) + 1]
            result.append(low + fraction * (high - low))
        return result