"""
Constraint payloads.

A constraint is a scalar relation func-in-set. BoundedScalarConstraint also
carries sub-domain bounds: ``bounds`` is the effective restriction (the user's
bounds intersected with those of any bounded hold variables in func) and
``orig_bounds`` is what the user specified, kept so the effective bounds can
be recomputed when hold-variable bounds change later.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from .bounds import ParameterBounds
from .expressions import Expression, split_constant


# =============================================================================
# Constraint Sets
# =============================================================================

@dataclass(frozen=True)
class LessThan:
    upper: float

    def shift(self, offset: float) -> "LessThan":
        return LessThan(self.upper + offset)

    def __str__(self) -> str:
        return f"≤ {self.upper:g}"


@dataclass(frozen=True)
class GreaterThan:
    lower: float

    def shift(self, offset: float) -> "GreaterThan":
        return GreaterThan(self.lower + offset)

    def __str__(self) -> str:
        return f"≥ {self.lower:g}"


@dataclass(frozen=True)
class EqualTo:
    value: float

    def shift(self, offset: float) -> "EqualTo":
        return EqualTo(self.value + offset)

    def __str__(self) -> str:
        return f"= {self.value:g}"


@dataclass(frozen=True)
class Interval:
    lower: float
    upper: float

    def __post_init__(self):
        if self.lower > self.upper:
            raise ValueError(f"Invalid interval: lower ({self.lower}) > upper ({self.upper})")

    def shift(self, offset: float) -> "Interval":
        return Interval(self.lower + offset, self.upper + offset)

    def __str__(self) -> str:
        return f"∈ [{self.lower:g}, {self.upper:g}]"


@dataclass(frozen=True)
class Integer:
    def shift(self, offset: float) -> "Integer":
        return self

    def __str__(self) -> str:
        return "integer"


@dataclass(frozen=True)
class ZeroOne:
    def shift(self, offset: float) -> "ZeroOne":
        return self

    def __str__(self) -> str:
        return "binary"


ConstraintSet = Union[LessThan, GreaterThan, EqualTo, Interval, Integer, ZeroOne]

# Sets whose right-hand side is a single number
SCALAR_SETS = (LessThan, GreaterThan, EqualTo)


# =============================================================================
# Constraints
# =============================================================================

@dataclass(frozen=True, eq=False)
class ScalarConstraint:
    func: Expression
    set: ConstraintSet


@dataclass(frozen=True, eq=False)
class BoundedScalarConstraint:
    func: Expression
    set: ConstraintSet
    bounds: ParameterBounds
    orig_bounds: ParameterBounds = field(default_factory=ParameterBounds)


InfOptConstraint = Union[ScalarConstraint, BoundedScalarConstraint]


def build_constraint(func: Expression,
                     set: ConstraintSet,
                     parameter_bounds: Optional[ParameterBounds] = None) -> InfOptConstraint:
    """
    Build a constraint, moving any constant in func to the set.

    ``2x + 3 <= 5`` is stored as ``2x <= 2``. With parameter_bounds the result
    is bounded and its original bounds are the given bounds.
    """
    func, constant = split_constant(func)
    set = set.shift(-constant)
    if parameter_bounds:
        if not isinstance(parameter_bounds, ParameterBounds):
            parameter_bounds = ParameterBounds(parameter_bounds)
        return BoundedScalarConstraint(func, set, parameter_bounds, parameter_bounds)
    return ScalarConstraint(func, set)
