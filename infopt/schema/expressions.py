"""
Affine and quadratic expressions over model references.

Expressions are plain values built by arithmetic on references:

    expr = 2 * x + g - 3          # AffExpr
    quad = x * g + expr           # QuadExpr

The model stores its own copies of expressions; rewriting during deletion
works on those copies and never touches an expression the caller still holds.
"""

import numbers
from typing import Callable, Dict, List, Optional, Tuple, Union

from ..errors import InvalidExpression
from .refs import ExpressionOperators, VariableRef


class UnorderedPair:
    """Pair of references where (a, b) == (b, a)."""

    __slots__ = ("a", "b")

    def __init__(self, a: VariableRef, b: VariableRef):
        self.a = a
        self.b = b

    def __contains__(self, ref) -> bool:
        return ref == self.a or ref == self.b

    def __iter__(self):
        yield self.a
        yield self.b

    def __eq__(self, other):
        if not isinstance(other, UnorderedPair):
            return NotImplemented
        return ((self.a == other.a and self.b == other.b)
                or (self.a == other.b and self.b == other.a))

    def __hash__(self):
        return hash(frozenset((self.a, self.b)))

    def __repr__(self) -> str:
        return f"UnorderedPair({self.a!r}, {self.b!r})"


class AffExpr(ExpressionOperators):
    """sum(coef * ref) + constant"""

    def __init__(self, terms: Optional[Dict[VariableRef, float]] = None, constant: float = 0.0):
        self.terms: Dict[VariableRef, float] = {}
        for ref, coef in (terms or {}).items():
            self.add_term(ref, coef)
        self.constant = float(constant)

    def add_term(self, ref: VariableRef, coef: float):
        self.terms[ref] = self.terms.get(ref, 0.0) + float(coef)

    def coefficient(self, ref: VariableRef) -> float:
        return self.terms.get(ref, 0.0)

    def copy(self) -> "AffExpr":
        return AffExpr(self.terms, self.constant)

    def is_zero(self) -> bool:
        return not self.terms and self.constant == 0.0

    def __eq__(self, other):
        if isinstance(other, VariableRef):
            return self == _as_aff(other)
        if not isinstance(other, AffExpr):
            return NotImplemented
        return self.terms == other.terms and self.constant == other.constant

    __hash__ = None

    def __repr__(self) -> str:
        return f"AffExpr({self.terms!r}, constant={self.constant})"


class QuadExpr(ExpressionOperators):
    """sum(coef * ref_a * ref_b) + affine part"""

    def __init__(self, aff: Optional[AffExpr] = None,
                 terms: Optional[Dict[UnorderedPair, float]] = None):
        self.aff = aff.copy() if aff is not None else AffExpr()
        self.terms: Dict[UnorderedPair, float] = {}
        for pair, coef in (terms or {}).items():
            self.add_term(pair, coef)

    def add_term(self, pair: UnorderedPair, coef: float):
        self.terms[pair] = self.terms.get(pair, 0.0) + float(coef)

    @property
    def constant(self) -> float:
        return self.aff.constant

    def copy(self) -> "QuadExpr":
        return QuadExpr(self.aff, self.terms)

    def is_zero(self) -> bool:
        return not self.terms and self.aff.is_zero()

    def __eq__(self, other):
        if not isinstance(other, QuadExpr):
            return NotImplemented
        return self.aff == other.aff and self.terms == other.terms

    __hash__ = None

    def __repr__(self) -> str:
        return f"QuadExpr({self.terms!r}, aff={self.aff!r})"


Expression = Union[VariableRef, AffExpr, QuadExpr]


# =============================================================================
# Arithmetic
# =============================================================================

def _is_number(value) -> bool:
    return isinstance(value, numbers.Real)


def _as_aff(value) -> AffExpr:
    if _is_number(value):
        return AffExpr(constant=value)
    if isinstance(value, VariableRef):
        return AffExpr({value: 1.0})
    if isinstance(value, AffExpr):
        return value.copy()
    raise InvalidExpression(f"Cannot use {type(value).__name__} in an affine expression")


def _as_quad(value) -> QuadExpr:
    if isinstance(value, QuadExpr):
        return value.copy()
    return QuadExpr(_as_aff(value))


def add(a, b) -> Union[AffExpr, QuadExpr]:
    if isinstance(a, QuadExpr) or isinstance(b, QuadExpr):
        result = _as_quad(a)
        other = _as_quad(b)
        for ref, coef in other.aff.terms.items():
            result.aff.add_term(ref, coef)
        result.aff.constant += other.aff.constant
        for pair, coef in other.terms.items():
            result.add_term(pair, coef)
        return result
    result = _as_aff(a)
    other = _as_aff(b)
    for ref, coef in other.terms.items():
        result.add_term(ref, coef)
    result.constant += other.constant
    return result


def _scale(value, factor: float) -> Union[AffExpr, QuadExpr]:
    if isinstance(value, QuadExpr):
        return QuadExpr(_scale(value.aff, factor),
                        {pair: coef * factor for pair, coef in value.terms.items()})
    aff = _as_aff(value)
    return AffExpr({ref: coef * factor for ref, coef in aff.terms.items()},
                   aff.constant * factor)


def negate(value) -> Union[AffExpr, QuadExpr, float]:
    if _is_number(value):
        return -value
    return _scale(value, -1.0)


def multiply(a, b) -> Union[AffExpr, QuadExpr]:
    if _is_number(b):
        return _scale(a, float(b))
    if _is_number(a):
        return _scale(b, float(a))
    if isinstance(a, QuadExpr) or isinstance(b, QuadExpr):
        raise InvalidExpression("Products of quadratic expressions are not supported")
    left = _as_aff(a)
    right = _as_aff(b)
    result = QuadExpr()
    for ref_l, coef_l in left.terms.items():
        for ref_r, coef_r in right.terms.items():
            result.add_term(UnorderedPair(ref_l, ref_r), coef_l * coef_r)
    if right.constant != 0.0:
        for ref, coef in left.terms.items():
            result.aff.add_term(ref, coef * right.constant)
    if left.constant != 0.0:
        for ref, coef in right.terms.items():
            result.aff.add_term(ref, coef * left.constant)
    result.aff.constant = left.constant * right.constant
    return result


# =============================================================================
# Inspection and rewriting
# =============================================================================

def copy_function(func: Expression) -> Expression:
    if isinstance(func, VariableRef):
        return func
    if isinstance(func, (AffExpr, QuadExpr)):
        return func.copy()
    raise InvalidExpression(f"Unsupported expression type {type(func).__name__}")


def all_function_variables(func: Expression) -> List[VariableRef]:
    """Unique references appearing in an expression, in first-seen order."""
    if isinstance(func, VariableRef):
        return [func]
    seen: Dict[VariableRef, None] = {}
    if isinstance(func, AffExpr):
        for ref in func.terms:
            seen[ref] = None
    elif isinstance(func, QuadExpr):
        for pair in func.terms:
            for ref in pair:
                seen[ref] = None
        for ref in func.aff.terms:
            seen[ref] = None
    else:
        raise InvalidExpression(f"Unsupported expression type {type(func).__name__}")
    return list(seen)


def remove_variable(func: Expression, vref: VariableRef) -> Expression:
    """
    Remove every term involving vref.

    Affine and quadratic expressions are modified in place. A bare reference
    equal to vref becomes the zero expression. Returns the resulting expression.
    """
    if isinstance(func, VariableRef):
        return AffExpr() if func == vref else func
    if isinstance(func, AffExpr):
        func.terms.pop(vref, None)
        return func
    if isinstance(func, QuadExpr):
        func.aff.terms.pop(vref, None)
        for pair in [p for p in func.terms if vref in p]:
            del func.terms[pair]
        return func
    raise InvalidExpression(f"Unsupported expression type {type(func).__name__}")


def map_variables(func: Expression, mapping: Callable[[VariableRef], VariableRef]) -> Expression:
    """Return a copy of func with every reference replaced by mapping(ref)."""
    if isinstance(func, VariableRef):
        return mapping(func)
    if isinstance(func, AffExpr):
        return AffExpr({mapping(ref): coef for ref, coef in func.terms.items()}, func.constant)
    if isinstance(func, QuadExpr):
        return QuadExpr(map_variables(func.aff, mapping),
                        {UnorderedPair(mapping(p.a), mapping(p.b)): coef
                         for p, coef in func.terms.items()})
    raise InvalidExpression(f"Unsupported expression type {type(func).__name__}")


def function_constant(func: Expression) -> float:
    if isinstance(func, VariableRef):
        return 0.0
    return func.constant


def split_constant(func: Expression) -> Tuple[Expression, float]:
    """Copy of func with a zero constant, and the constant that was removed."""
    func = copy_function(func)
    constant = function_constant(func)
    if isinstance(func, AffExpr):
        func.constant = 0.0
    elif isinstance(func, QuadExpr):
        func.aff.constant = 0.0
    return func, constant


def coefficient(func: Expression, vref: VariableRef) -> float:
    if isinstance(func, VariableRef):
        return 1.0 if func == vref else 0.0
    if isinstance(func, AffExpr):
        return func.coefficient(vref)
    return func.aff.coefficient(vref)


def function_string(func: Expression, name_of: Callable[[VariableRef], str]) -> str:
    """Render an expression, e.g. ``2 x + g(t) - 3``."""
    if isinstance(func, VariableRef):
        return name_of(func)
    pieces: List[Tuple[float, str]] = []
    aff = func
    if isinstance(func, QuadExpr):
        for pair, coef in func.terms.items():
            if pair.a == pair.b:
                pieces.append((coef, f"{name_of(pair.a)}²"))
            else:
                pieces.append((coef, f"{name_of(pair.a)}*{name_of(pair.b)}"))
        aff = func.aff
    for ref, coef in aff.terms.items():
        pieces.append((coef, name_of(ref)))
    if aff.constant != 0.0 or not pieces:
        pieces.append((aff.constant, ""))

    out = ""
    for coef, text in pieces:
        magnitude = abs(coef)
        body = text if (magnitude == 1.0 and text) else f"{magnitude:g} {text}".strip()
        if not out:
            out = f"-{body}" if coef < 0 else body
        else:
            out += f" - {body}" if coef < 0 else f" + {body}"
    return out
