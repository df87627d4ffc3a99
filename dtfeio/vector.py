"""Fixed-size physical vectors and the small matrix products used with them."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence


class PVector:
    """A physical vector whose components are indexed like array entries."""

    __slots__ = ("_x",)

    def __init__(self, components: Iterable[float] = ()) -> None:
        self._x = list(components)

    @classmethod
    def zero(cls, size: int) -> PVector:
        """Return a null vector with ``size`` components."""
        if size < 0:
            raise ValueError(f"a vector cannot have {size} components")
        return cls([0.0] * size)

    def __getitem__(self, index: int) -> float:
        return self._x[index]

    def __setitem__(self, index: int, value: float) -> None:
        self._x[index] = value

    def __len__(self) -> int:
        return len(self._x)

    def __iter__(self) -> Iterator[float]:
        return iter(self._x)

    def __repr__(self) -> str:
        return f"PVector({self._x!r})"

    def _components_of(self, other: object) -> list[float] | None:
        if not isinstance(other, PVector):
            return None
        if len(other) != len(self):
            raise ValueError(
                f"vector sizes differ: {len(self)} and {len(other)}"
            )
        return other._x

    def __add__(self, other: PVector) -> PVector:
        values = self._components_of(other)
        if values is None:
            return NotImplemented
        return PVector(a + b for a, b in zip(self._x, values))

    def __iadd__(self, other: PVector) -> PVector:
        values = self._components_of(other)
        if values is None:
            return NotImplemented
        self._x = [a + b for a, b in zip(self._x, values)]
        return self

    def __sub__(self, other: PVector) -> PVector:
        values = self._components_of(other)
        if values is None:
            return NotImplemented
        return PVector(a - b for a, b in zip(self._x, values))

    def __isub__(self, other: PVector) -> PVector:
        values = self._components_of(other)
        if values is None:
            return NotImplemented
        self._x = [a - b for a, b in zip(self._x, values)]
        return self

    def __mul__(self, scalar: float) -> PVector:
        if isinstance(scalar, PVector):
            return NotImplemented
        return PVector(a * scalar for a in self._x)

    __rmul__ = __mul__

    def __imul__(self, scalar: float) -> PVector:
        if isinstance(scalar, PVector):
            return NotImplemented
        self._x = [a * scalar for a in self._x]
        return self

    def __truediv__(self, scalar: float) -> PVector:
        if isinstance(scalar, PVector):
            return NotImplemented
        return PVector(a / scalar for a in self._x)

    def __itruediv__(self, scalar: float) -> PVector:
        if isinstance(scalar, PVector):
            return NotImplemented
        self._x = [a / scalar for a in self._x]
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PVector):
            return NotImplemented
        return len(self) == len(other) and all(
            a == b for a, b in zip(self._x, other._x)
        )

    __hash__ = None  # type: ignore[assignment]


def matrix_multiply(
    m1: Sequence[Sequence[float]], m2: Sequence[Sequence[float]]
) -> list[list[float]]:
    """Return the matrix product ``m1 @ m2`` as a list of rows."""
    rows1 = [list(row) for row in m1]
    rows2 = [list(row) for row in m2]
    inner = len(rows2)
    if any(len(row) != inner for row in rows1):
        raise ValueError("the columns of the first matrix must match the rows of the second")
    width = len(rows2[0]) if rows2 else 0
    if any(len(row) != width for row in rows2):
        raise ValueError("the second matrix has rows of different lengths")
    columns = list(zip(*rows2))
    return [
        [sum(a * b for a, b in zip(row, column)) for column in columns]
        for row in rows1
    ]


def matrix_vector_multiply(
    matrix: Sequence[Sequence[float]], vector: Iterable[float]
) -> PVector:
    """Return the product of a square matrix and a vector."""
    values = list(vector)
    rows = [list(row) for row in matrix]
    if any(len(row) != len(values) for row in rows):
        raise ValueError("the matrix columns must match the vector size")
    return PVector(sum(a * b for a, b in zip(row, values)) for row in rows)