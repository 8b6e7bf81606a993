"""
Constraint operations.

A constraint's reference kind follows its expression: INFINITE if it holds
parameters, infinite or reduced variables; MEASURE if it holds measures;
FINITE otherwise.

When the model has bounded hold variables, a new constraint is restricted to
their sub-domains (looking through measures), so ``x + g <= 5`` with x
bounded to t in [0, 2] is stored as a bounded constraint over t in [0, 2].
"""

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, List, Optional, Tuple, Type

from .bounds_engine import (
    check_bounds,
    collect_hold_bounds,
    intersect_bounds,
    rebuild_constraint,
    record_point_supports,
    tighten_constraint,
)
from .errors import DependencyConflict, InvalidExpression
from .schema.bounds import ParameterBounds
from .schema.constraint import (
    SCALAR_SETS,
    BoundedScalarConstraint,
    EqualTo,
    GreaterThan,
    InfOptConstraint,
    LessThan,
    ScalarConstraint,
)
from .schema.expressions import (
    AffExpr,
    Expression,
    QuadExpr,
    all_function_variables,
    coefficient,
    copy_function,
)
from .schema.refs import INFINITE_KINDS, ConstraintKind, ConstraintRef, RefKind, VariableRef
from .schema.sets import IntervalSet

if TYPE_CHECKING:
    from .model import InfiniteModel

logger = logging.getLogger(__name__)


def constraint_kind(func: Expression) -> ConstraintKind:
    kinds = {vref.kind for vref in all_function_variables(func)}
    if kinds & INFINITE_KINDS:
        return ConstraintKind.INFINITE
    if RefKind.MEASURE in kinds:
        return ConstraintKind.MEASURE
    return ConstraintKind.FINITE


def constraint_ref(model: "InfiniteModel", index: int) -> ConstraintRef:
    func = model.constraints.get(index).func
    return ConstraintRef(model.model_id, index, constraint_kind(func))


def _constr(model: "InfiniteModel", cref: ConstraintRef) -> InfOptConstraint:
    model.check_valid(cref)
    if not isinstance(cref, ConstraintRef):
        raise TypeError(f"Expected a ConstraintRef, got {cref!r}")
    return model.constraints.get(cref.index)


# =============================================================================
# Cross-references
# =============================================================================

def _relation_for(model: "InfiniteModel", vref: VariableRef):
    if vref.kind == RefKind.PARAMETER:
        return model.xrefs.param_to_constrs
    if vref.kind == RefKind.MEASURE:
        return model.xrefs.meas_to_constrs
    if vref.kind == RefKind.REDUCED:
        return model.xrefs.reduced_to_constrs
    return model.xrefs.var_to_constrs


def link_reference(model: "InfiniteModel", cindex: int, vref: VariableRef):
    _relation_for(model, vref).link(vref.index, cindex)
    if vref.kind == RefKind.MEASURE:
        model.xrefs.constr_to_meas.link(cindex, vref.index)


def unlink_reference(model: "InfiniteModel", cindex: int, vref: VariableRef):
    _relation_for(model, vref).unlink(vref.index, cindex)
    if vref.kind == RefKind.MEASURE:
        model.xrefs.constr_to_meas.unlink(cindex, vref.index)


# =============================================================================
# Definition
# =============================================================================

def _check_function(model: "InfiniteModel", func: Expression):
    vrefs = all_function_variables(func)
    for vref in vrefs:
        model.check_valid(vref)
    if vrefs and all(vref.kind == RefKind.PARAMETER for vref in vrefs):
        raise InvalidExpression("Constraints cannot contain only parameters.")


def add_constraint(model: "InfiniteModel", constraint: InfOptConstraint, name: str = "") -> ConstraintRef:
    """
    Add a constraint and return its reference.

    Raises:
        InvalidReference: If func references entities not live in model
        InvalidExpression: If func contains only parameters
        BoundViolation: If attached bounds exceed a parameter domain
        DisjointBounds: If hold-variable bounds empty the constraint's sub-domain
    """
    if not isinstance(constraint, (ScalarConstraint, BoundedScalarConstraint)):
        raise TypeError(f"Expected a scalar constraint, got {type(constraint).__name__}")
    _check_function(model, constraint.func)
    constraint = replace(constraint, func=copy_function(constraint.func))
    if isinstance(constraint, BoundedScalarConstraint):
        bounds = ParameterBounds(constraint.bounds)
        # Bounds given without orig_bounds are the user's bounds
        orig = ParameterBounds(constraint.orig_bounds) if constraint.orig_bounds else bounds
        constraint = replace(constraint, bounds=bounds, orig_bounds=orig)
        check_bounds(model, constraint.bounds)
        check_bounds(model, constraint.orig_bounds)
    if model.has_hold_bounds:
        constraint = tighten_constraint(model, constraint)

    if isinstance(constraint, BoundedScalarConstraint):
        record_point_supports(model, constraint.bounds)
    index = model.constraints.add(constraint, name)
    for vref in all_function_variables(constraint.func):
        link_reference(model, index, vref)
    model.constr_in_var_info[index] = False
    model.ready_to_optimize = False
    return constraint_ref(model, index)


def unlink_constraint(model: "InfiniteModel", cindex: int):
    """Remove every cross-reference held by a constraint."""
    constraint = model.constraints.get(cindex)
    for vref in all_function_variables(constraint.func):
        unlink_reference(model, cindex, vref)
    model.xrefs.constr_to_meas.discard_owner(cindex)


def purge_constraint(model: "InfiniteModel", cindex: int):
    model.constr_in_var_info.pop(cindex, None)
    model.constraints.remove(cindex)
    model.ready_to_optimize = False


def remove_constraint(model: "InfiniteModel", cindex: int):
    """Unlink and purge a constraint record (no usage checks)."""
    unlink_constraint(model, cindex)
    purge_constraint(model, cindex)


def constraint_object(model: "InfiniteModel", cref: ConstraintRef) -> InfOptConstraint:
    return _constr(model, cref)


def is_info_constraint(model: "InfiniteModel", cref: ConstraintRef) -> bool:
    _constr(model, cref)
    return model.constr_in_var_info.get(cref.index, False)


# =============================================================================
# Sub-domain Bounds
# =============================================================================

def has_parameter_bounds(model: "InfiniteModel", cref: ConstraintRef) -> bool:
    return isinstance(_constr(model, cref), BoundedScalarConstraint)


def parameter_bounds(model: "InfiniteModel", cref: ConstraintRef) -> ParameterBounds:
    """Effective sub-domain bounds (empty if unbounded)."""
    constraint = _constr(model, cref)
    if isinstance(constraint, BoundedScalarConstraint):
        return constraint.bounds
    return ParameterBounds()


def _store_bounds(model: "InfiniteModel", cindex: int, constraint: InfOptConstraint,
                  bounds: ParameterBounds, orig: ParameterBounds):
    if bounds:
        updated = BoundedScalarConstraint(constraint.func, constraint.set, bounds, orig)
    else:
        updated = ScalarConstraint(constraint.func, constraint.set)
    model.constraints.replace(cindex, updated)
    model.ready_to_optimize = False


def set_parameter_bounds(model: "InfiniteModel", cref: ConstraintRef, bounds, force: bool = False):
    """
    Assign sub-domain bounds to a constraint.

    Raises:
        DependencyConflict: If the constraint already has bounds and force is False
        BoundViolation: If bounds exceed a parameter domain
        DisjointBounds: If bounds do not overlap its hold variables' bounds
    """
    constraint = _constr(model, cref)
    if not isinstance(bounds, ParameterBounds):
        bounds = ParameterBounds(bounds)
    if isinstance(constraint, BoundedScalarConstraint) and not force:
        raise DependencyConflict(
            f"Constraint {model.name(cref)!r} already has parameter bounds. Consider "
            "adding more using `add_parameter_bound` or overwriting them with `force=True`."
        )
    check_bounds(model, bounds)
    effective = collect_hold_bounds(model, constraint.func, bounds)
    record_point_supports(model, bounds)
    _store_bounds(model, cref.index, constraint, effective, bounds)


def add_parameter_bound(model: "InfiniteModel", cref: ConstraintRef, pref,
                        lower: float, upper: float):
    """Intersect the constraint's sub-domain with pref in [lower, upper]."""
    constraint = _constr(model, cref)
    new = ParameterBounds({pref: IntervalSet(lower, upper)})
    check_bounds(model, new)
    if isinstance(constraint, BoundedScalarConstraint):
        effective = intersect_bounds(constraint.bounds, new)
        orig = intersect_bounds(constraint.orig_bounds, new)
    else:
        effective = collect_hold_bounds(model, constraint.func, new)
        orig = new
    record_point_supports(model, new)
    _store_bounds(model, cref.index, constraint, effective, orig)


def delete_parameter_bound(model: "InfiniteModel", cref: ConstraintRef, pref):
    """Drop pref from the user bounds; hold-variable restrictions remain."""
    constraint = _constr(model, cref)
    if not isinstance(constraint, BoundedScalarConstraint) or pref not in constraint.orig_bounds:
        return
    orig = constraint.orig_bounds.without(pref)
    rebuilt = rebuild_constraint(model, replace(constraint, orig_bounds=orig))
    model.constraints.replace(cref.index, rebuilt)
    model.ready_to_optimize = False


def delete_parameter_bounds(model: "InfiniteModel", cref: ConstraintRef):
    """Drop all user bounds; hold-variable restrictions remain."""
    constraint = _constr(model, cref)
    if not isinstance(constraint, BoundedScalarConstraint):
        return
    rebuilt = rebuild_constraint(model, ScalarConstraint(constraint.func, constraint.set))
    model.constraints.replace(cref.index, rebuilt)
    model.ready_to_optimize = False


# =============================================================================
# Right-hand Side and Coefficients
# =============================================================================

def normalized_rhs(model: "InfiniteModel", cref: ConstraintRef) -> float:
    constraint = _constr(model, cref)
    if isinstance(constraint.set, LessThan):
        return constraint.set.upper
    if isinstance(constraint.set, GreaterThan):
        return constraint.set.lower
    if isinstance(constraint.set, EqualTo):
        return constraint.set.value
    raise InvalidExpression(f"Constraint set {constraint.set} has no scalar right-hand side.")


def set_normalized_rhs(model: "InfiniteModel", cref: ConstraintRef, value: float):
    constraint = _constr(model, cref)
    current = normalized_rhs(model, cref)
    new_set = constraint.set.shift(float(value) - current)
    model.constraints.replace(cref.index, replace(constraint, set=new_set))
    model.ready_to_optimize = False


def add_to_function_constant(model: "InfiniteModel", cref: ConstraintRef, value: float):
    """Equivalent to adding value to the left-hand side."""
    constraint = _constr(model, cref)
    if not isinstance(constraint.set, SCALAR_SETS):
        raise InvalidExpression(f"Constraint set {constraint.set} has no scalar right-hand side.")
    model.constraints.replace(cref.index, replace(constraint, set=constraint.set.shift(-float(value))))
    model.ready_to_optimize = False


def normalized_coefficient(model: "InfiniteModel", cref: ConstraintRef, vref: VariableRef) -> float:
    constraint = _constr(model, cref)
    return coefficient(constraint.func, vref)


def set_normalized_coefficient(model: "InfiniteModel", cref: ConstraintRef,
                               vref: VariableRef, value: float):
    """
    Set the linear coefficient of vref; a zero value removes the term.

    Cross-references and hold-variable sub-domains follow the new expression.
    """
    constraint = _constr(model, cref)
    model.check_valid(vref)
    func = constraint.func
    if isinstance(func, VariableRef):
        func = AffExpr({func: 1.0})
    else:
        func = func.copy()
    aff = func.aff if isinstance(func, QuadExpr) else func
    if value == 0:
        aff.terms.pop(vref, None)
    else:
        aff.terms[vref] = float(value)

    before = set(all_function_variables(constraint.func))
    after = set(all_function_variables(func))
    if after and all(v.kind == RefKind.PARAMETER for v in after):
        raise InvalidExpression("Constraints cannot contain only parameters.")
    updated = replace(constraint, func=func)
    if model.has_hold_bounds or isinstance(constraint, BoundedScalarConstraint):
        updated = rebuild_constraint(model, updated)

    model.constraints.replace(cref.index, updated)
    for added in after - before:
        link_reference(model, cref.index, added)
    for removed in before - after:
        unlink_reference(model, cref.index, removed)
    model.ready_to_optimize = False


# =============================================================================
# Iteration
# =============================================================================

def all_constraints(model: "InfiniteModel",
                    kind: Optional[ConstraintKind] = None,
                    set_type: Optional[Type] = None) -> List[ConstraintRef]:
    """Constraint references sorted by index, optionally filtered."""
    refs = []
    for index, constraint in model.constraints.items():
        cref = ConstraintRef(model.model_id, index, constraint_kind(constraint.func))
        if kind is not None and cref.kind != kind:
            continue
        if set_type is not None and not isinstance(constraint.set, set_type):
            continue
        refs.append(cref)
    return refs


def num_constraints(model: "InfiniteModel",
                    kind: Optional[ConstraintKind] = None,
                    set_type: Optional[Type] = None) -> int:
    if kind is None and set_type is None:
        return len(model.constraints)
    return len(all_constraints(model, kind, set_type))


def list_of_constraint_types(model: "InfiniteModel") -> List[Tuple[ConstraintKind, Type]]:
    seen = []
    for _, constraint in model.constraints.items():
        entry = (constraint_kind(constraint.func), type(constraint.set))
        if entry not in seen:
            seen.append(entry)
    return seen
