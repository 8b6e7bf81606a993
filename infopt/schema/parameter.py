"""Infinite parameter payload."""

from dataclasses import dataclass, field, replace
from typing import Iterable, Tuple

import numpy as np

from .sets import InfiniteSet


def unique_supports(values: Iterable[float], decimals: int = 12) -> Tuple[float, ...]:
    """Sorted, de-duplicated support tuple (values equal after rounding collapse)."""
    arr = np.asarray(list(values), dtype=float).ravel()
    if arr.size == 0:
        return ()
    rounded = np.round(arr, decimals)
    _, first = np.unique(rounded, return_index=True)
    return tuple(float(v) for v in np.sort(arr[first]))


@dataclass(frozen=True)
class InfOptParameter:
    """
    Infinite parameter: a domain plus the supports accumulated for it.

    Supports are always kept sorted and unique. The payload is immutable;
    support accumulation replaces the stored payload.
    """

    set: InfiniteSet
    supports: Tuple[float, ...] = field(default_factory=tuple)
    independent: bool = False

    def __post_init__(self):
        object.__setattr__(self, "supports", unique_supports(self.supports))

    def with_supports(self, supports: Iterable[float], decimals: int = 12) -> "InfOptParameter":
        return replace(self, supports=unique_supports(supports, decimals))

    def with_added_supports(self, supports: Iterable[float], decimals: int = 12) -> "InfOptParameter":
        merged = list(self.supports) + list(np.atleast_1d(np.asarray(list(supports), dtype=float)))
        return replace(self, supports=unique_supports(merged, decimals))
