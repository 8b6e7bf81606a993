"""
Measure payloads.

A measure is an integral abstraction: an expression plus measure data
describing the discrete integration rule (coefficients, supports, weight).

DiscreteMeasureData: rule over one scalar parameter
MultiDiscreteMeasureData: rule over a vector of parameters; supports are a
    2D array with one row per parameter and one column per support point
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple, Union

import numpy as np

from ..errors import ShapeMismatch
from ..settings import default_weight
from .expressions import Expression
from .refs import VariableRef


@dataclass(frozen=True, eq=False)
class DiscreteMeasureData:
    """Integration rule over a single parameter."""

    parameter_ref: VariableRef
    coefficients: Any
    supports: Any
    name: str = "measure"
    weight_function: Callable[[Any], float] = default_weight

    def __post_init__(self):
        coefficients = np.asarray(self.coefficients, dtype=float).ravel()
        supports = np.asarray(self.supports, dtype=float).ravel()
        if coefficients.shape != supports.shape:
            raise ShapeMismatch(
                f"Measure data has {coefficients.size} coefficients but {supports.size} supports."
            )
        object.__setattr__(self, "coefficients", coefficients)
        object.__setattr__(self, "supports", supports)

    @property
    def parameter_refs(self) -> Tuple[VariableRef, ...]:
        return (self.parameter_ref,)

    def support_values(self) -> Dict[VariableRef, np.ndarray]:
        """Support values of each integrated parameter."""
        return {self.parameter_ref: self.supports}

    def remap(self, mapping) -> "DiscreteMeasureData":
        return DiscreteMeasureData(mapping(self.parameter_ref), self.coefficients,
                                   self.supports, self.name, self.weight_function)


@dataclass(frozen=True, eq=False)
class MultiDiscreteMeasureData:
    """Integration rule over a vector of parameters."""

    parameter_refs: Tuple[VariableRef, ...]
    coefficients: Any
    supports: Any
    name: str = "measure"
    weight_function: Callable[[Any], float] = default_weight

    def __post_init__(self):
        prefs = tuple(np.asarray(self.parameter_refs, dtype=object).ravel())
        coefficients = np.asarray(self.coefficients, dtype=float).ravel()
        supports = np.asarray(self.supports, dtype=float)
        if supports.ndim == 1:
            supports = supports.reshape(len(prefs), -1) if prefs else supports.reshape(0, -1)
        if supports.ndim != 2 or supports.shape[0] != len(prefs):
            raise ShapeMismatch(
                f"Supports need one row per parameter ({len(prefs)}), got shape {supports.shape}."
            )
        if supports.shape[1] != coefficients.size:
            raise ShapeMismatch(
                f"Measure data has {coefficients.size} coefficients but {supports.shape[1]} supports."
            )
        object.__setattr__(self, "parameter_refs", prefs)
        object.__setattr__(self, "coefficients", coefficients)
        object.__setattr__(self, "supports", supports)

    def support_values(self) -> Dict[VariableRef, np.ndarray]:
        return {pref: self.supports[i] for i, pref in enumerate(self.parameter_refs)}

    def remap(self, mapping) -> "MultiDiscreteMeasureData":
        return MultiDiscreteMeasureData(tuple(mapping(p) for p in self.parameter_refs),
                                        self.coefficients, self.supports,
                                        self.name, self.weight_function)


AbstractMeasureData = Union[DiscreteMeasureData, MultiDiscreteMeasureData]


@dataclass(frozen=True, eq=False)
class Measure:
    """Integral of func under data."""

    func: Expression
    data: AbstractMeasureData
