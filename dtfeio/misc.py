"""Consistency checks, option-set checks and small numeric helpers."""

from __future__ import annotations

from collections.abc import Container, MutableSequence, Sequence
from typing import Any, TypeVar

T = TypeVar("T")


class ConsistencyError(ValueError):
    """A program variable or option combination failed a consistency check."""


def interval_check(target: T, min_value: T, max_value: T, name: str) -> T:
    """Return ``target`` if it lies in ``[min_value, max_value]``, else raise."""
    if target < min_value or target > max_value:  # type: ignore[operator]
        raise ConsistencyError(
            "Some program variable failed a consistency check. The variable "
            f"{name} has the value {target}, but it should be between "
            f"{min_value} to {max_value} ."
        )
    return target


def lower_bound_check(target: T, min_value: T, name: str) -> T:
    """Return ``target`` if it is at least ``min_value``, else raise."""
    if target < min_value:  # type: ignore[operator]
        raise ConsistencyError(
            "Some program variable failed a consistency check. The variable "
            f"{name} has the value {target}, but it should be larger or equal "
            f"than {min_value} ."
        )
    return target


def upper_bound_check(target: T, max_value: T, name: str) -> T:
    """Return ``target`` if it is at most ``max_value``, else raise."""
    if target > max_value:  # type: ignore[operator]
        raise ConsistencyError(
            "Some program variables failed a consistency check. The variable "
            f"{name} has the value {target}, but it should be smaller or equal "
            f"than {max_value} ."
        )
    return target


# In the following checks ``given`` holds the names of the options that the
# user supplied explicitly (options left at their defaults are not in it).


def conflicting_options(given: Container[str], opt1: str, opt2: str) -> None:
    """Raise if ``opt1`` and ``opt2`` were both given."""
    if opt1 in given and opt2 in given:
        raise ConsistencyError(f"Conflicting options '{opt1}' and '{opt2}'!")


def option_dependency(
    given: Container[str], for_what: str, required_option: str
) -> None:
    """Raise if ``for_what`` was given without ``required_option``."""
    if for_what in given and required_option not in given:
        raise ConsistencyError(
            f"Option '{for_what}' requires option '{required_option}'!"
        )


def superfluous_options(given: Container[str], opt1: str, opt2: str) -> None:
    """Raise if ``opt1`` was given while ``opt2`` was not."""
    if opt1 in given and opt2 not in given:
        raise ConsistencyError(
            f"The option '{opt1}' can be used only in the presence of '{opt2}'. "
            f"It does not make sense to use '{opt1}' otherwise!"
        )


def superfluous_unless(
    given: Container[str], opt1: str, options_on: bool, options_name: str
) -> None:
    """Raise if ``opt1`` was given while the options it depends on are off."""
    if opt1 in given and not options_on:
        raise ConsistencyError(
            f"The option '{opt1}' can be used only in the presence of option/s: "
            f"{options_name}. It does not make sense to use '{opt1}' otherwise!"
        )


def minimum(values: Sequence[T]) -> T:
    """Return the smallest element of a non-empty sequence."""
    if not values:
        raise ValueError("cannot take the minimum of an empty sequence")
    result = values[0]
    for value in values[1:]:
        if result > value:  # type: ignore[operator]
            result = value
    return result


def maximum(values: Sequence[T]) -> T:
    """Return the largest element of a non-empty sequence."""
    if not values:
        raise ValueError("cannot take the maximum of an empty sequence")
    result = values[0]
    for value in values[1:]:
        if result < value:  # type: ignore[operator]
            result = value
    return result


def quicksort(values: MutableSequence[Any], lo: int = 0, hi: int | None = None) -> None:
    """Sort ``values[lo..hi]`` (both ends included) in place in increasing order."""
    if hi is None:
        hi = len(values) - 1
    pending = [(lo, hi)]
    while pending:
        start, stop = pending.pop()
        if start >= stop:
            continue
        pivot = values[stop]
        i = left = start
        right = stop
        while True:
            if values[i] > pivot:
                if i == left:
                    values[right] = values[i]
                right -= 1
                i = right
            else:
                if i == right:
                    values[left] = values[i]
                left += 1
                i = left
            if left == right:
                break
        values[i] = pivot
        pending.append((start, i - 1))
        pending.append((i + 1, stop))


def _root_candidate(value: int, power: int) -> tuple[int, float]:
    lower_bound_check(value, 1, "'input' in function 'rootN'")
    lower_bound_check(power, 0, "'rootPower' in function 'rootN'")
    if power == 0:
        return 1, 0.0
    # Taking the root of value-1 gives a number just below the wanted integer.
    approx = (value - 1.0) ** (1.0 / power)
    return int(approx) + 1, approx


def root_n(value: int, power: int) -> int:
    """Return the integer ``r`` with ``r**power == value``, or raise."""
    result, approx = _root_candidate(value, power)
    if result**power == value:
        return result
    raise ConsistencyError(
        f"The first argument of the function 'rootN' is {value} which cannot be "
        f"written as {result}^{power}={approx}."
    )


def is_root_n(value: int, power: int) -> bool:
    """Return True if ``value`` is an exact integer ``power``-th power."""
    result, _ = _root_candidate(value, power)
    return result**power == value