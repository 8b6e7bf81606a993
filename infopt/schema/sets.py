"""
Infinite sets characterizing parameters.

IntervalSet: closed interval [lower_bound, upper_bound] (bounds may be infinite)
DistributionSet: support of a frozen scipy.stats distribution
"""

import math
from dataclasses import dataclass
from typing import Any, Sequence, Union

import numpy as np
from scipy.stats.distributions import rv_frozen

from ..errors import DisjointBounds


@dataclass(frozen=True)
class IntervalSet:
    """Closed interval domain."""

    lower_bound: float
    upper_bound: float

    def __post_init__(self):
        object.__setattr__(self, "lower_bound", float(self.lower_bound))
        object.__setattr__(self, "upper_bound", float(self.upper_bound))
        if self.lower_bound > self.upper_bound:
            raise ValueError(
                f"Invalid interval: lower ({self.lower_bound}) > upper ({self.upper_bound})"
            )

    def has_lower_bound(self) -> bool:
        return not math.isinf(self.lower_bound)

    def has_upper_bound(self) -> bool:
        return not math.isinf(self.upper_bound)

    def is_point(self) -> bool:
        return self.lower_bound == self.upper_bound

    def contains(self, value: float) -> bool:
        return self.lower_bound <= value <= self.upper_bound

    def is_subset_of(self, other: "InfiniteSet") -> bool:
        """Check containment in another set's bounds."""
        return (other.lower_bound <= self.lower_bound
                and self.upper_bound <= other.upper_bound)

    def overlaps(self, other: "IntervalSet") -> bool:
        return not (self.lower_bound > other.upper_bound
                    or self.upper_bound < other.lower_bound)

    def intersect(self, other: "IntervalSet") -> "IntervalSet":
        """
        Intersection of two intervals.

        Raises:
            DisjointBounds: If the intervals do not overlap
        """
        if not self.overlaps(other):
            raise DisjointBounds(
                f"Intervals [{self.lower_bound}, {self.upper_bound}] and "
                f"[{other.lower_bound}, {other.upper_bound}] do not overlap."
            )
        return IntervalSet(max(self.lower_bound, other.lower_bound),
                           min(self.upper_bound, other.upper_bound))

    def __str__(self) -> str:
        if self.is_point():
            return f"= {self.lower_bound:g}"
        return f"∈ [{self.lower_bound:g}, {self.upper_bound:g}]"


class DistributionSet:
    """
    Domain defined by a univariate probability distribution.

    Wraps a frozen scipy.stats distribution, e.g. ``DistributionSet(norm(0, 1))``.
    Bounds are the distribution's support.
    """

    def __init__(self, distribution: Any):
        if not isinstance(distribution, rv_frozen):
            raise TypeError(
                f"Expected a frozen scipy.stats distribution, got {type(distribution).__name__}"
            )
        self.distribution = distribution

    @property
    def lower_bound(self) -> float:
        return float(self.distribution.support()[0])

    @property
    def upper_bound(self) -> float:
        return float(self.distribution.support()[1])

    def has_lower_bound(self) -> bool:
        return not math.isinf(self.lower_bound)

    def has_upper_bound(self) -> bool:
        return not math.isinf(self.upper_bound)

    def contains(self, value: float) -> bool:
        return self.lower_bound <= value <= self.upper_bound

    def __eq__(self, other):
        if not isinstance(other, DistributionSet):
            return NotImplemented
        return self.distribution is other.distribution

    def __hash__(self):
        return id(self.distribution)

    def __repr__(self) -> str:
        dist_name = getattr(getattr(self.distribution, "dist", None), "name", "distribution")
        return f"DistributionSet({dist_name})"


InfiniteSet = Union[IntervalSet, DistributionSet]


def supports_in_set(values: Union[float, Sequence[float], np.ndarray], domain: InfiniteSet) -> bool:
    """Check that every support value lies in the domain."""
    arr = np.atleast_1d(np.asarray(values, dtype=float))
    if arr.size == 0:
        return True
    return bool(np.all((arr >= domain.lower_bound) & (arr <= domain.upper_bound)))


def as_interval(value: Any) -> IntervalSet:
    """Accept an IntervalSet or a (lower, upper) pair."""
    if isinstance(value, IntervalSet):
        return value
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return IntervalSet(value[0], value[1])
    raise TypeError(f"Expected IntervalSet or (lower, upper) pair, got {value!r}")

