"""
Sub-domain bound engine.

Validates ParameterBounds against parameter domains, intersects bound sets,
records point bounds (lower == upper) as parameter supports, and propagates
hold-variable bounds into the constraints that use them, looking through
measures since a measure hides the variables of its expression.

Validation functions are pure; callers run them against the current state
(plus any pending changes passed as ``overrides``) before writing anything.

Used by:
- hold variable bound assignment (variables.set_parameter_bounds, ...)
- constraint bound assignment (constraints.set_parameter_bounds, ...)
- constraint addition when the model has bounded hold variables
"""

import logging
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

from .errors import BoundViolation, DisjointBounds
from .parameters import add_supports
from .schema.bounds import ParameterBounds
from .schema.constraint import BoundedScalarConstraint, InfOptConstraint, ScalarConstraint
from .schema.expressions import Expression, all_function_variables
from .schema.refs import RefKind, VariableRef
from .schema.sets import supports_in_set

if TYPE_CHECKING:
    from .model import InfiniteModel

logger = logging.getLogger(__name__)

# Pending hold-variable bounds: variable index -> bounds
Overrides = Dict[int, ParameterBounds]


# =============================================================================
# Validation and Intersection
# =============================================================================

def check_bounds(model: "InfiniteModel", bounds: ParameterBounds):
    """
    Check every interval against its parameter's domain.

    Raises:
        InvalidReference: If a key is not a live parameter of model
        BoundViolation: If an interval exceeds the parameter's domain
    """
    for pref, interval in bounds.items():
        model.check_valid(pref, RefKind.PARAMETER)
        domain = model.parameters.get(pref.index).set
        if not interval.is_subset_of(domain):
            raise BoundViolation(
                f"Bounds [{interval.lower_bound}, {interval.upper_bound}] on "
                f"{model.name(pref)!r} exceed its domain "
                f"[{domain.lower_bound}, {domain.upper_bound}]."
            )


def intersect_bounds(bounds1: ParameterBounds, bounds2: ParameterBounds) -> ParameterBounds:
    """
    Parameter-wise intersection; keys in only one map are kept as they are.

    Raises:
        DisjointBounds: If two intervals for the same parameter do not overlap
    """
    merged = dict(bounds1.items())
    for pref, interval in bounds2.items():
        if pref in merged:
            try:
                merged[pref] = merged[pref].intersect(interval)
            except DisjointBounds as e:
                raise DisjointBounds(f"Sub-domains of {pref!r} do not overlap: {e}") from None
        else:
            merged[pref] = interval
    return ParameterBounds(merged)


def record_point_supports(model: "InfiniteModel", bounds: ParameterBounds):
    """Add the value of every single-point interval as a parameter support."""
    for pref, interval in bounds.items():
        if interval.is_point():
            add_supports(model, pref, [interval.lower_bound])


def validate_with_supports(model: "InfiniteModel", bounds: ParameterBounds):
    """check_bounds, then record point intervals as supports."""
    check_bounds(model, bounds)
    record_point_supports(model, bounds)


# =============================================================================
# Measures
# =============================================================================

def measure_data_in_bounds(data, bounds: ParameterBounds) -> bool:
    """Check that measure supports lie inside bounds for every bounded parameter."""
    for pref, values in data.support_values().items():
        if pref in bounds and not supports_in_set(values, bounds[pref]):
            return False
    return True


def check_measure_bounds(model: "InfiniteModel", mindex: int, bounds: ParameterBounds):
    """
    Raises:
        BoundViolation: If the measure's data is not contained in bounds
    """
    data = model.measures.get(mindex).data
    if not measure_data_in_bounds(data, bounds):
        raise BoundViolation(
            f"Measure {model.measures.names.name(mindex)!r} has supports outside the "
            f"sub-domain bounds; an existing integral's domain cannot be restricted."
        )


def hold_variables_in(model: "InfiniteModel", func: Expression) -> Iterator[VariableRef]:
    """Hold variables referenced by func, including inside nested measures."""
    for vref in all_function_variables(func):
        if vref.kind == RefKind.HOLD:
            yield vref
        elif vref.kind == RefKind.MEASURE:
            yield from hold_variables_in(model, model.measures.get(vref.index).func)


def dependent_measures(model: "InfiniteModel", vref: VariableRef) -> List[int]:
    """Measures using vref, directly or through other measures."""
    if vref.kind == RefKind.MEASURE:
        pending = model.xrefs.meas_to_meas.dependents(vref.index)
    else:
        pending = model.xrefs.var_to_meas.dependents(vref.index)
    found: List[int] = []
    while pending:
        mindex = pending.pop(0)
        if mindex in found:
            continue
        found.append(mindex)
        pending.extend(model.xrefs.meas_to_meas.dependents(mindex))
    return found


def dependent_constraints(model: "InfiniteModel", vref: VariableRef) -> List[int]:
    """Constraints using a variable directly or through measures."""
    found = set(model.xrefs.var_to_constrs.dependents(vref.index))
    for mindex in dependent_measures(model, vref):
        found.update(model.xrefs.meas_to_constrs.dependents(mindex))
    return sorted(found)


# =============================================================================
# Hold Variable Propagation
# =============================================================================

def hold_bounds(model: "InfiniteModel", vref: VariableRef,
                overrides: Optional[Overrides] = None) -> ParameterBounds:
    if overrides and vref.index in overrides:
        return overrides[vref.index]
    return model.variables.get(vref.index).parameter_bounds


def collect_hold_bounds(model: "InfiniteModel",
                        func: Expression,
                        start: Optional[ParameterBounds] = None,
                        overrides: Optional[Overrides] = None) -> ParameterBounds:
    """
    Intersect start with the bounds of every hold variable in func.

    Raises:
        DisjointBounds: If the combined sub-domain is empty
    """
    bounds = start if start is not None else ParameterBounds()
    for vref in hold_variables_in(model, func):
        var_bounds = hold_bounds(model, vref, overrides)
        if var_bounds:
            bounds = intersect_bounds(bounds, var_bounds)
    return bounds


def tighten_constraint(model: "InfiniteModel", constraint: InfOptConstraint) -> InfOptConstraint:
    """Restrict a new constraint to the sub-domains of its hold variables."""
    if isinstance(constraint, BoundedScalarConstraint):
        bounds = collect_hold_bounds(model, constraint.func, constraint.bounds)
        return BoundedScalarConstraint(constraint.func, constraint.set, bounds,
                                       constraint.orig_bounds)
    bounds = collect_hold_bounds(model, constraint.func)
    if not bounds:
        return constraint
    logger.debug(f"Constraint tightened to hold variable bounds {bounds!r}")
    return BoundedScalarConstraint(constraint.func, constraint.set, bounds, ParameterBounds())


def rebuild_constraint(model: "InfiniteModel",
                       constraint: InfOptConstraint,
                       overrides: Optional[Overrides] = None) -> InfOptConstraint:
    """Recompute effective bounds from the user's original bounds."""
    if isinstance(constraint, BoundedScalarConstraint):
        orig = constraint.orig_bounds
    else:
        orig = ParameterBounds()
    bounds = collect_hold_bounds(model, constraint.func, orig, overrides)
    if not bounds:
        return ScalarConstraint(constraint.func, constraint.set)
    return BoundedScalarConstraint(constraint.func, constraint.set, bounds, orig)
