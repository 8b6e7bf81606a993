"""
InfOpt Schema - Immutable payloads stored in an InfiniteModel.

References:
- VariableRef / ConstraintRef: opaque (model_id, index, kind) handles

Domains:
- IntervalSet, DistributionSet

Payloads:
- InfOptParameter
- InfiniteVariable, PointVariable, HoldVariable (shared VariableInfo)
- ReducedInfo
- Measure with DiscreteMeasureData / MultiDiscreteMeasureData
- ScalarConstraint, BoundedScalarConstraint

Expressions:
- AffExpr, QuadExpr built by arithmetic on references
"""

from .refs import (
    RefKind,
    ConstraintKind,
    VariableRef,
    ConstraintRef,
)

from .sets import (
    IntervalSet,
    DistributionSet,
    InfiniteSet,
    supports_in_set,
)

from .expressions import (
    AffExpr,
    QuadExpr,
    UnorderedPair,
    Expression,
    all_function_variables,
    remove_variable,
    map_variables,
    function_string,
)

from .bounds import ParameterBounds

from .parameter import InfOptParameter

from .variable import (
    VariableInfo,
    ParameterTuple,
    InfiniteVariable,
    PointVariable,
    HoldVariable,
    InfOptVariable,
    ReducedInfo,
)

from .measure import (
    DiscreteMeasureData,
    MultiDiscreteMeasureData,
    Measure,
)

from .constraint import (
    LessThan,
    GreaterThan,
    EqualTo,
    Interval,
    Integer,
    ZeroOne,
    ScalarConstraint,
    BoundedScalarConstraint,
    InfOptConstraint,
    build_constraint,
)

__all__ = [
    # References
    "RefKind",
    "ConstraintKind",
    "VariableRef",
    "ConstraintRef",
    # Sets
    "IntervalSet",
    "DistributionSet",
    "InfiniteSet",
    "supports_in_set",
    # Expressions
    "AffExpr",
    "QuadExpr",
    "UnorderedPair",
    "Expression",
    "all_function_variables",
    "remove_variable",
    "map_variables",
    "function_string",
    # Payloads
    "ParameterBounds",
    "InfOptParameter",
    "VariableInfo",
    "ParameterTuple",
    "InfiniteVariable",
    "PointVariable",
    "HoldVariable",
    "InfOptVariable",
    "ReducedInfo",
    "DiscreteMeasureData",
    "MultiDiscreteMeasureData",
    "Measure",
    # Constraints
    "LessThan",
    "GreaterThan",
    "EqualTo",
    "Interval",
    "Integer",
    "ZeroOne",
    "ScalarConstraint",
    "BoundedScalarConstraint",
    "InfOptConstraint",
    "build_constraint",
]
