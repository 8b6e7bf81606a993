"""
InfOpt - model graph for infinite-dimensional optimization.

Tracks parameters, infinite/point/hold variables, measures and constraints
as one mutually referential graph, and keeps it consistent under arbitrary
add / update / delete sequences:

    from infopt import *

    model = InfiniteModel()
    t = model.add_parameter(InfOptParameter(IntervalSet(0, 10)), name="t")
    g = model.add_variable(InfiniteVariable(ParameterTuple(t)), name="g")
    x = model.add_variable(HoldVariable(parameter_bounds={t: (0, 2)}), name="x")

    c = model.add_constraint(build_constraint(x + g, LessThan(5)))
    # c is bounded to t in [0, 2]

    model.delete(g)          # c becomes x <= 5
"""

__version__ = "0.1.0"

from .errors import (
    InfOptError,
    InvalidReference,
    NotFound,
    AmbiguousName,
    BoundViolation,
    DisjointBounds,
    ShapeMismatch,
    DuplicateGroup,
    DependencyConflict,
    InvalidExpression,
    InvalidVariableInfo,
)
from .settings import MeasureDefaults, ModelSettings
from .schema import (
    RefKind,
    ConstraintKind,
    VariableRef,
    ConstraintRef,
    IntervalSet,
    DistributionSet,
    AffExpr,
    QuadExpr,
    ParameterBounds,
    InfOptParameter,
    VariableInfo,
    ParameterTuple,
    InfiniteVariable,
    PointVariable,
    HoldVariable,
    ReducedInfo,
    DiscreteMeasureData,
    MultiDiscreteMeasureData,
    Measure,
    LessThan,
    GreaterThan,
    EqualTo,
    Interval,
    Integer,
    ZeroOne,
    ScalarConstraint,
    BoundedScalarConstraint,
    build_constraint,
)
from .objective import ObjectiveSense
from .cascade import DeletionCascade, DeletionStage
from .model import InfiniteModel

__all__ = [
    # Errors
    "InfOptError",
    "InvalidReference",
    "NotFound",
    "AmbiguousName",
    "BoundViolation",
    "DisjointBounds",
    "ShapeMismatch",
    "DuplicateGroup",
    "DependencyConflict",
    "InvalidExpression",
    "InvalidVariableInfo",
    # Settings
    "MeasureDefaults",
    "ModelSettings",
    # Schema
    "RefKind",
    "ConstraintKind",
    "VariableRef",
    "ConstraintRef",
    "IntervalSet",
    "DistributionSet",
    "AffExpr",
    "QuadExpr",
    "ParameterBounds",
    "InfOptParameter",
    "VariableInfo",
    "ParameterTuple",
    "InfiniteVariable",
    "PointVariable",
    "HoldVariable",
    "ReducedInfo",
    "DiscreteMeasureData",
    "MultiDiscreteMeasureData",
    "Measure",
    "LessThan",
    "GreaterThan",
    "EqualTo",
    "Interval",
    "Integer",
    "ZeroOne",
    "ScalarConstraint",
    "BoundedScalarConstraint",
    "build_constraint",
    # Model
    "ObjectiveSense",
    "DeletionCascade",
    "DeletionStage",
    "InfiniteModel",
]
