"""
Opaque handles to entities owned by an InfiniteModel.

A reference is (model_id, index, kind). It never holds the model itself, so
a handle can outlive its model or be compared across models without keeping
anything alive; validity is always checked against the model it is used with.

Variable-like kinds:
- PARAMETER: infinite parameter
- INFINITE: infinite variable, depends on parameters
- POINT: infinite variable evaluated at a support tuple
- HOLD: finite variable, optionally restricted to a sub-domain
- REDUCED: infinite variable with some slots fixed (internal)
- MEASURE: integral of an expression

Constraint kinds (resolved from the constraint expression):
- INFINITE, MEASURE, FINITE
"""

from dataclasses import dataclass
from enum import Enum


class RefKind(str, Enum):
    """Kinds of variable-like references."""
    PARAMETER = "parameter"
    INFINITE = "infinite"
    POINT = "point"
    HOLD = "hold"
    REDUCED = "reduced"
    MEASURE = "measure"


# Kinds stored in the variable store
DECISION_KINDS = frozenset({RefKind.INFINITE, RefKind.POINT, RefKind.HOLD})

# Kinds that make an expression depend on parameters
INFINITE_KINDS = frozenset({RefKind.PARAMETER, RefKind.INFINITE, RefKind.REDUCED})


class ConstraintKind(str, Enum):
    """Kinds of constraint references."""
    INFINITE = "infinite"
    MEASURE = "measure"
    FINITE = "finite"


class ExpressionOperators:
    """Arithmetic that builds AffExpr/QuadExpr values from references and expressions."""

    __slots__ = ()

    def __add__(self, other):
        from .expressions import add
        return add(self, other)

    def __radd__(self, other):
        from .expressions import add
        return add(other, self)

    def __sub__(self, other):
        from .expressions import add, negate
        return add(self, negate(other))

    def __rsub__(self, other):
        from .expressions import add, negate
        return add(other, negate(self))

    def __mul__(self, other):
        from .expressions import multiply
        return multiply(self, other)

    def __rmul__(self, other):
        from .expressions import multiply
        return multiply(other, self)

    def __truediv__(self, other):
        from .expressions import multiply
        return multiply(self, 1.0 / other)

    def __neg__(self):
        from .expressions import negate
        return negate(self)

    def __pos__(self):
        return self


@dataclass(frozen=True)
class VariableRef(ExpressionOperators):
    """Handle to a parameter, variable, reduced variable or measure."""

    model_id: int
    index: int
    kind: RefKind

    @property
    def is_parameter(self) -> bool:
        return self.kind == RefKind.PARAMETER

    @property
    def is_decision_variable(self) -> bool:
        return self.kind in DECISION_KINDS

    @property
    def is_infinite(self) -> bool:
        return self.kind in INFINITE_KINDS

    def __repr__(self) -> str:
        return f"VariableRef({self.kind.value}, model={self.model_id}, index={self.index})"


@dataclass(frozen=True)
class ConstraintRef:
    """Handle to a constraint."""

    model_id: int
    index: int
    kind: ConstraintKind

    def __repr__(self) -> str:
        return f"ConstraintRef({self.kind.value}, model={self.model_id}, index={self.index})"
