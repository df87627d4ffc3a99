"""Particle records, sample points and the buffers filled by the input readers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import numpy as np

from dtfeio.vector import PVector

DIMENSIONS = 3
VELOCITY_COMPONENTS = DIMENSIONS
SCALAR_COMPONENTS = 1


def _as_vector(value: Any) -> PVector:
    return value if isinstance(value, PVector) else PVector(value)


@dataclass
class ParticleData:
    """A point with its position, weight, density, velocity and scalar data."""

    position: PVector = field(default_factory=lambda: PVector.zero(DIMENSIONS))
    weight: float = 1.0
    density: float = 0.0
    velocity: PVector = field(
        default_factory=lambda: PVector.zero(VELOCITY_COMPONENTS)
    )
    scalar: PVector = field(default_factory=lambda: PVector.zero(SCALAR_COMPONENTS))

    def __post_init__(self) -> None:
        self.position = _as_vector(self.position)
        self.velocity = _as_vector(self.velocity)
        self.scalar = _as_vector(self.scalar)


@dataclass
class SamplePoint:
    """A user supplied sampling position and the grid cell size around it."""

    position: PVector = field(default_factory=lambda: PVector.zero(DIMENSIONS))
    delta: PVector = field(default_factory=lambda: PVector.zero(DIMENSIONS))

    def __post_init__(self) -> None:
        self.position = _as_vector(self.position)
        self.delta = _as_vector(self.delta)


class ReadData:
    """Arrays of particle data filled by the input readers.

    Every particle array must be allocated for the same number of particles.
    """

    def __init__(
        self,
        dimensions: int = DIMENSIONS,
        scalar_components: int = SCALAR_COMPONENTS,
        dtype: Any = np.float32,
    ) -> None:
        self.dimensions = dimensions
        self.scalar_components = scalar_components
        self.dtype = np.dtype(dtype)
        self._arrays: dict[str, np.ndarray] = {}
        self._count: int | None = None

    def _allocate(self, name: str, count: int, width: int | None) -> np.ndarray:
        if count < 0:
            raise ValueError(f"cannot allocate {name} for {count} particles")
        if self._count is not None and count != self._count:
            raise ValueError(
                f"cannot allocate {name} for {count} particles: the other "
                f"particle data was allocated for {self._count} particles"
            )
        shape = (count,) if width is None else (count, width)
        array = np.zeros(shape, dtype=self.dtype)
        self._arrays[name] = array
        self._count = count
        return array

    def _get(self, name: str) -> np.ndarray:
        try:
            return self._arrays[name]
        except KeyError:
            raise LookupError(f"no memory was allocated for the {name}") from None

    def allocate_positions(self, count: int) -> np.ndarray:
        """Allocate and return a (count, dimensions) position array."""
        return self._allocate("positions", count, self.dimensions)

    def allocate_weights(self, count: int) -> np.ndarray:
        """Allocate and return a (count,) weight array."""
        return self._allocate("weights", count, None)

    def allocate_velocities(self, count: int) -> np.ndarray:
        """Allocate and return a (count, dimensions) velocity array."""
        return self._allocate("velocities", count, self.dimensions)

    def allocate_scalars(self, count: int) -> np.ndarray:
        """Allocate and return a (count, scalar_components) scalar array."""
        return self._allocate("scalars", count, self.scalar_components)

    def allocate_sampling(self, count: int) -> tuple[np.ndarray, np.ndarray]:
        """Allocate the sampling point positions and their cell sizes."""
        if count < 0:
            raise ValueError(f"cannot allocate {count} sampling points")
        sampling = np.zeros((count, self.dimensions), dtype=self.dtype)
        delta = np.zeros((count, self.dimensions), dtype=self.dtype)
        self._arrays["sampling"] = sampling
        self._arrays["delta"] = delta
        return sampling, delta

    @property
    def positions(self) -> np.ndarray:
        return self._get("positions")

    @property
    def weights(self) -> np.ndarray:
        return self._get("weights")

    @property
    def velocities(self) -> np.ndarray:
        return self._get("velocities")

    @property
    def scalars(self) -> np.ndarray:
        return self._get("scalars")

    @property
    def sampling(self) -> np.ndarray:
        return self._get("sampling")

    @property
    def delta(self) -> np.ndarray:
        return self._get("delta")

    def has(self, name: str) -> bool:
        """Return True if the named array has been allocated."""
        return name in self._arrays

    def number_of_particles(self) -> int:
        """Return the number of particles the arrays were allocated for."""
        return self._count or 0


class _Positioned(Protocol):
    position: Any


def particle_sort_key(particle: _Positioned) -> tuple[float, ...]:
    """Key that orders particles by x, then y, then z."""
    return tuple(particle.position)


def compare_particles(p1: _Positioned, p2: _Positioned) -> bool:
    """Return True if ``p1`` comes before ``p2`` in position order."""
    return particle_sort_key(p1) < particle_sort_key(p2)


def same_particle(p1: _Positioned, p2: _Positioned) -> bool:
    """Return True if the two particles sit at exactly the same position."""
    return particle_sort_key(p1) == particle_sort_key(p2)