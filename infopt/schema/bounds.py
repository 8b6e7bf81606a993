"""
Parameter sub-domain bounds.

ParameterBounds maps parameter references to IntervalSets. Array-valued keys
are exploded into one entry per parameter, so these are equivalent:

    ParameterBounds({(x1, x2): (0, 1)})
    ParameterBounds({x1: IntervalSet(0, 1), x2: IntervalSet(0, 1)})

Equality is plain mapping equality; insertion order does not matter.
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterator, Optional

import numpy as np

from .refs import VariableRef
from .sets import IntervalSet, as_interval


class ParameterBounds(Mapping):
    """Immutable mapping parameter -> IntervalSet."""

    def __init__(self, intervals: Optional[Mapping] = None):
        self._intervals: Dict[VariableRef, IntervalSet] = {}
        for key, value in (intervals or {}).items():
            interval = as_interval(value)
            if isinstance(key, VariableRef):
                self._intervals[key] = interval
            else:
                for ref in np.asarray(key, dtype=object).ravel():
                    self._intervals[ref] = interval

    def __getitem__(self, pref: VariableRef) -> IntervalSet:
        return self._intervals[pref]

    def __iter__(self) -> Iterator[VariableRef]:
        return iter(self._intervals)

    def __len__(self) -> int:
        return len(self._intervals)

    def __hash__(self):
        return hash(frozenset(self._intervals.items()))

    def with_bound(self, pref: Any, interval: Any) -> "ParameterBounds":
        """Copy with pref (or each parameter of an array) set to interval."""
        updated = dict(self._intervals)
        updated.update(ParameterBounds({pref: interval})._intervals)
        return ParameterBounds(updated)

    def without(self, pref: Any) -> "ParameterBounds":
        """Copy with pref (or each parameter of an array) removed."""
        drop = set(ParameterBounds({pref: IntervalSet(0, 0)}))
        return ParameterBounds({k: v for k, v in self._intervals.items() if k not in drop})

    def map_keys(self, mapping: Callable[[VariableRef], VariableRef]) -> "ParameterBounds":
        return ParameterBounds({mapping(k): v for k, v in self._intervals.items()})

    def format(self, name_of: Callable[[VariableRef], str]) -> str:
        """Render as ``t ∈ [0, 2], x = 1``."""
        return ", ".join(f"{name_of(k)} {v}" for k, v in self._intervals.items())

    def __repr__(self) -> str:
        return f"ParameterBounds({self._intervals!r})"
