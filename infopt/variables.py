"""
Variable operations.

Adding a variable validates its payload in full before anything is written:
- infinite: every slot holds live parameters of one group, no group twice
- point: values match the parent's parameter tuple and lie in the domains;
  numeric info is merged from the parent once, at creation
- hold: sub-domain bounds lie inside the parameter domains

Then the payload is stored, parameter/point relations are linked, supports
recorded, the name set and info constraints created.

Naming:
- infinite: ``g(t, x)`` built from the given root; empty root -> ``noname``
- point: given name, else ``g(0.5, [0, 1])``
- hold: as given
"""

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Dict, List, Tuple, Union

from .bounds_engine import (
    check_bounds,
    check_measure_bounds,
    dependent_constraints,
    dependent_measures,
    rebuild_constraint,
    record_point_supports,
)
from .errors import BoundViolation, DependencyConflict, DuplicateGroup, ShapeMismatch
from .parameters import add_supports
from .schema.bounds import ParameterBounds
from .schema.refs import RefKind, VariableRef
from .schema.sets import IntervalSet
from .schema.variable import (
    HoldVariable,
    InfiniteVariable,
    ParameterTuple,
    PointVariable,
    ReducedInfo,
    VariableInfo,
)
from . import variable_info as _info

if TYPE_CHECKING:
    from .model import InfiniteModel

logger = logging.getLogger(__name__)

DECISION = (RefKind.INFINITE, RefKind.POINT, RefKind.HOLD)


def variable_kind(payload: Any) -> RefKind:
    """Reference kind for a variable payload."""
    if isinstance(payload, InfiniteVariable):
        return RefKind.INFINITE
    if isinstance(payload, PointVariable):
        return RefKind.POINT
    if isinstance(payload, HoldVariable):
        return RefKind.HOLD
    raise TypeError(f"Unknown variable type {type(payload).__name__}")


def _var(model: "InfiniteModel", vref: VariableRef, *kinds: RefKind):
    model.check_valid(vref, *(kinds or DECISION))
    return model.variables.get(vref.index)


# =============================================================================
# Naming
# =============================================================================

def _root_name(name: str) -> str:
    return name.split("(", 1)[0]


def _remove_name_index(name: str) -> str:
    return name.split("[", 1)[0]


def _format_value(value: Union[float, Tuple[float, ...]]) -> str:
    if isinstance(value, tuple):
        if len(value) > 4:
            return f"[{value[0]:g}, ..., {value[-1]:g}]"
        return "[" + ", ".join(f"{v:g}" for v in value) + "]"
    return f"{value:g}"


def _slot_name(model: "InfiniteModel", prefs: ParameterTuple, i: int) -> str:
    slot = prefs.slot(i)
    if prefs.is_array(i):
        return _remove_name_index(model.parameters.names.name(slot[0].index))
    return model.parameters.names.name(slot[0].index)


def _infinite_name(model: "InfiniteModel", root: str, prefs: ParameterTuple) -> str:
    root = _root_name(root) or "noname"
    slots = ", ".join(_slot_name(model, prefs, i) for i in range(len(prefs)))
    return f"{root}({slots})"


def _point_default_name(model: "InfiniteModel", var: PointVariable) -> str:
    root = _root_name(model.variables.names.name(var.infinite_variable_ref.index))
    values = ", ".join(_format_value(v) for v in var.parameter_values)
    return f"{root}({values})"


def set_variable_name(model: "InfiniteModel", vref: VariableRef, name: str):
    var = _var(model, vref)
    if isinstance(var, InfiniteVariable):
        name = _infinite_name(model, name, var.parameter_refs)
    elif isinstance(var, PointVariable) and not name:
        name = _point_default_name(model, var)
    model.variables.names.set_name(vref.index, name)


def reduced_name(model: "InfiniteModel", rvref: VariableRef) -> str:
    info = reduced_info(model, rvref)
    ivar = model.variables.get(info.infinite_variable_ref.index)
    root = _root_name(model.variables.names.name(info.infinite_variable_ref.index))
    pieces = []
    for i in range(len(ivar.parameter_refs)):
        if i in info.eval_supports:
            pieces.append(_format_value(info.eval_supports[i]))
        else:
            pieces.append(_slot_name(model, ivar.parameter_refs, i))
    return f"{root}({', '.join(pieces)})"


# =============================================================================
# Validation
# =============================================================================

def _check_parameter_tuple(model: "InfiniteModel", prefs: ParameterTuple):
    """
    Raises:
        InvalidReference: If a slot holds something other than a live parameter
        DuplicateGroup: If a slot mixes groups or a group appears twice
    """
    seen_groups: List[int] = []
    for i in range(len(prefs)):
        slot = prefs.slot(i)
        for pref in slot:
            model.check_valid(pref, RefKind.PARAMETER)
        if len(set(slot)) != len(slot):
            raise DuplicateGroup(f"Slot {i} repeats a parameter.")
        groups = {model.param_group_ids[pref.index] for pref in slot}
        if len(groups) > 1:
            raise DuplicateGroup(f"Slot {i} mixes parameters from different groups.")
        group = groups.pop()
        if group in seen_groups:
            raise DuplicateGroup(
                f"Cannot double specify a parameter group (slot {i} repeats group {group})."
            )
        seen_groups.append(group)


def _check_values_in_domain(model: "InfiniteModel", pairs):
    for pref, value in pairs:
        domain = model.parameters.get(pref.index).set
        if not domain.contains(value):
            raise BoundViolation(
                f"Value {value} violates the domain of parameter {model.name(pref)!r}."
            )


def _update_point_info(info: VariableInfo, parent: VariableInfo) -> VariableInfo:
    """Fill unset point info from the infinite variable (one-time snapshot)."""
    changes: Dict[str, Any] = {}
    if not info.has_fix:
        if parent.has_lower_bound and not info.has_lower_bound:
            changes.update(has_lower_bound=True, lower_bound=parent.lower_bound)
        if parent.has_upper_bound and not info.has_upper_bound:
            changes.update(has_upper_bound=True, upper_bound=parent.upper_bound)
    if (parent.has_fix and not info.has_fix
            and not info.has_lower_bound and not info.has_upper_bound):
        changes.update(has_fix=True, fixed_value=parent.fixed_value)
    if parent.has_start and not info.has_start:
        changes.update(has_start=True, start=parent.start)
    if parent.binary and not info.integer:
        changes.update(binary=True)
    elif parent.integer and not info.binary:
        changes.update(integer=True)
    return info.update(**changes) if changes else info


# =============================================================================
# Definition
# =============================================================================

def add_variable(model: "InfiniteModel", var, name: str = "") -> VariableRef:
    """
    Add a variable payload and return its reference.

    Raises:
        InvalidReference, DuplicateGroup, ShapeMismatch, BoundViolation
    """
    if isinstance(var, InfiniteVariable):
        _check_parameter_tuple(model, var.parameter_refs)
        kind = RefKind.INFINITE
    elif isinstance(var, PointVariable):
        parent = _var(model, var.infinite_variable_ref, RefKind.INFINITE)
        values = parent.parameter_refs.normalize_values(var.parameter_values)
        pairs = parent.parameter_refs.pair_values(values)
        _check_values_in_domain(model, pairs)
        var = PointVariable(var.infinite_variable_ref, values,
                            _update_point_info(var.info, parent.info))
        kind = RefKind.POINT
    elif isinstance(var, HoldVariable):
        check_bounds(model, var.parameter_bounds)
        kind = RefKind.HOLD
    else:
        raise TypeError(f"Unknown variable type {type(var).__name__}")

    index = model.variables.add(var)
    vref = model.make_variable_ref(index, kind)
    if kind == RefKind.INFINITE:
        for pref in var.parameter_refs.parameters():
            model.xrefs.param_to_vars.link(pref.index, index)
    elif kind == RefKind.POINT:
        for pref, value in pairs:
            add_supports(model, pref, [value])
        model.xrefs.infinite_to_points.link(var.infinite_variable_ref.index, index)
    else:
        record_point_supports(model, var.parameter_bounds)
        if var.parameter_bounds:
            model.has_hold_bounds = True
    set_variable_name(model, vref, name)
    _info.add_info_constraints(model, vref, var.info)
    model.ready_to_optimize = False
    logger.debug(f"Added {kind.value} variable {model.name(vref)!r} (index {index})")
    return vref


def add_reduced_variable(model: "InfiniteModel",
                         ivref: VariableRef,
                         eval_supports: Dict[int, Any]) -> VariableRef:
    """
    Add a partial evaluation of an infinite variable.

    Args:
        ivref: Infinite variable
        eval_supports: slot index -> value (array for vector slots)

    Raises:
        ShapeMismatch: If a slot index or value shape is invalid
        BoundViolation: If a value lies outside its parameter's domain
    """
    ivar = _var(model, ivref, RefKind.INFINITE)
    prefs = ivar.parameter_refs
    normalized = {}
    for slot, value in sorted(eval_supports.items()):
        if not 0 <= slot < len(prefs):
            raise ShapeMismatch(f"Slot {slot} out of range for {len(prefs)} parameter slots.")
        single = ParameterTuple([prefs[slot]])
        values = single.normalize_values((value,))
        _check_values_in_domain(model, single.pair_values(values))
        normalized[slot] = values[0]
    index = model.reduced_variables.add(ReducedInfo(ivref, normalized))
    model.xrefs.infinite_to_reduced.link(ivref.index, index)
    model.ready_to_optimize = False
    return model.make_variable_ref(index, RefKind.REDUCED)


# =============================================================================
# Queries
# =============================================================================

def variable_object(model: "InfiniteModel", vref: VariableRef):
    return _var(model, vref)


def reduced_info(model: "InfiniteModel", rvref: VariableRef) -> ReducedInfo:
    model.check_valid(rvref, RefKind.REDUCED)
    return model.reduced_variables.get(rvref.index)


def eval_supports(model: "InfiniteModel", rvref: VariableRef) -> Dict[int, Any]:
    return dict(reduced_info(model, rvref).eval_supports)


def infinite_variable_ref(model: "InfiniteModel", vref: VariableRef) -> VariableRef:
    if vref.kind == RefKind.REDUCED:
        return reduced_info(model, vref).infinite_variable_ref
    return _var(model, vref, RefKind.POINT).infinite_variable_ref


def parameter_values(model: "InfiniteModel", pvref: VariableRef) -> Tuple:
    return _var(model, pvref, RefKind.POINT).parameter_values


def raw_parameter_refs(model: "InfiniteModel", vref: VariableRef) -> ParameterTuple:
    if vref.kind == RefKind.REDUCED:
        info = reduced_info(model, vref)
        parent = model.variables.get(info.infinite_variable_ref.index)
        return parent.parameter_refs.without_slots(info.eval_supports)
    return _var(model, vref, RefKind.INFINITE).parameter_refs


def parameter_refs(model: "InfiniteModel", vref: VariableRef) -> Tuple:
    """Parameter slots as given (references or tuples of references)."""
    return tuple(raw_parameter_refs(model, vref))


def parameter_list(model: "InfiniteModel", vref: VariableRef) -> List[VariableRef]:
    return raw_parameter_refs(model, vref).parameters()


def parameter_bounds(model: "InfiniteModel", hvref: VariableRef) -> ParameterBounds:
    return _var(model, hvref, RefKind.HOLD).parameter_bounds


def has_parameter_bounds(model: "InfiniteModel", hvref: VariableRef) -> bool:
    return bool(parameter_bounds(model, hvref))


# =============================================================================
# Usage
# =============================================================================

def used_by_constraint(model: "InfiniteModel", vref: VariableRef) -> bool:
    model.check_valid(vref, *DECISION, RefKind.REDUCED)
    if vref.kind == RefKind.REDUCED:
        return model.xrefs.reduced_to_constrs.has(vref.index)
    return model.xrefs.var_to_constrs.has(vref.index)


def used_by_measure(model: "InfiniteModel", vref: VariableRef) -> bool:
    model.check_valid(vref, *DECISION, RefKind.REDUCED)
    if vref.kind == RefKind.REDUCED:
        return model.xrefs.reduced_to_meas.has(vref.index)
    return model.xrefs.var_to_meas.has(vref.index)


def used_by_objective(model: "InfiniteModel", vref: VariableRef) -> bool:
    model.check_valid(vref, *DECISION)
    return model.variables.in_objective.get(vref.index, False)


def used_by_point_variable(model: "InfiniteModel", ivref: VariableRef) -> bool:
    model.check_valid(ivref, RefKind.INFINITE)
    return model.xrefs.infinite_to_points.has(ivref.index)


def used_by_reduced_variable(model: "InfiniteModel", ivref: VariableRef) -> bool:
    model.check_valid(ivref, RefKind.INFINITE)
    return model.xrefs.infinite_to_reduced.has(ivref.index)


def is_used(model: "InfiniteModel", vref: VariableRef) -> bool:
    """
    Check whether a variable is used anywhere.

    An infinite variable also counts as used when one of its point variables
    is used, or one of its reduced variables is used by a measure or constraint.
    """
    if used_by_measure(model, vref) or used_by_constraint(model, vref):
        return True
    if vref.kind == RefKind.REDUCED:
        return False
    if vref.kind != RefKind.INFINITE:
        return used_by_objective(model, vref)
    for pindex in model.xrefs.infinite_to_points.dependents(vref.index):
        if is_used(model, model.make_variable_ref(pindex, RefKind.POINT)):
            return True
    for rindex in model.xrefs.infinite_to_reduced.dependents(vref.index):
        if (model.xrefs.reduced_to_constrs.has(rindex)
                or model.xrefs.reduced_to_meas.has(rindex)):
            return True
    return False


# =============================================================================
# Parameter Tuple Mutation
# =============================================================================

def set_parameter_refs(model: "InfiniteModel", ivref: VariableRef, prefs):
    """
    Replace the parameter tuple of an infinite variable.

    Raises:
        DependencyConflict: If point or reduced variables depend on ivref
    """
    ivar = _var(model, ivref, RefKind.INFINITE)
    if not isinstance(prefs, ParameterTuple):
        prefs = ParameterTuple(prefs)
    _check_parameter_tuple(model, prefs)
    if used_by_point_variable(model, ivref) or used_by_reduced_variable(model, ivref):
        raise DependencyConflict(
            f"Cannot modify parameter dependencies of {model.name(ivref)!r} "
            "because it is used by point or reduced variables."
        )
    for pref in ivar.parameter_refs.parameters():
        model.xrefs.param_to_vars.unlink(pref.index, ivref.index)
    for pref in prefs.parameters():
        model.xrefs.param_to_vars.link(pref.index, ivref.index)
    model.variables.replace(ivref.index, replace(ivar, parameter_refs=prefs))
    set_variable_name(model, ivref, model.variables.names.name(ivref.index))
    model.ready_to_optimize = False


def add_parameter_ref(model: "InfiniteModel", ivref: VariableRef, pref):
    """Append a parameter slot (reference or array of references)."""
    ivar = _var(model, ivref, RefKind.INFINITE)
    set_parameter_refs(model, ivref, ivar.parameter_refs.append(pref))


# =============================================================================
# Hold Variable Sub-domains
# =============================================================================

def _apply_hold_bounds(model: "InfiniteModel", hvref: VariableRef, bounds: ParameterBounds):
    var = model.variables.get(hvref.index)
    check_bounds(model, bounds)
    for mindex in dependent_measures(model, hvref):
        check_measure_bounds(model, mindex, bounds)
    overrides = {hvref.index: bounds}
    updates = {
        cindex: rebuild_constraint(model, model.constraints.get(cindex), overrides)
        for cindex in dependent_constraints(model, hvref)
    }

    record_point_supports(model, bounds)
    model.variables.replace(hvref.index, replace(var, parameter_bounds=bounds))
    for cindex, constraint in updates.items():
        model.constraints.replace(cindex, constraint)
    if bounds:
        model.has_hold_bounds = True
    model.ready_to_optimize = False
    logger.debug(f"Hold variable {hvref.index} bounds set; {len(updates)} constraints updated")


def set_parameter_bounds(model: "InfiniteModel", hvref: VariableRef, bounds, force: bool = False):
    """
    Assign sub-domain bounds to a hold variable.

    Raises:
        DependencyConflict: If bounds already exist and force is False
        BoundViolation: If bounds exceed a domain or exclude a dependent measure
        DisjointBounds: If a dependent constraint's sub-domain becomes empty
    """
    var = _var(model, hvref, RefKind.HOLD)
    if not isinstance(bounds, ParameterBounds):
        bounds = ParameterBounds(bounds)
    if var.parameter_bounds and not force:
        raise DependencyConflict(
            f"{model.name(hvref)!r} already has parameter bounds. Consider adding "
            "more using `add_parameter_bound` or overwriting them with `force=True`."
        )
    _apply_hold_bounds(model, hvref, bounds)


def add_parameter_bound(model: "InfiniteModel", hvref: VariableRef, pref,
                        lower: float, upper: float):
    """Set (or overwrite) the interval of one parameter in a hold variable's bounds."""
    var = _var(model, hvref, RefKind.HOLD)
    _apply_hold_bounds(model, hvref, var.parameter_bounds.with_bound(pref, IntervalSet(lower, upper)))


def delete_parameter_bound(model: "InfiniteModel", hvref: VariableRef, pref):
    var = _var(model, hvref, RefKind.HOLD)
    remaining = var.parameter_bounds.without(pref)
    if remaining != var.parameter_bounds:
        _apply_hold_bounds(model, hvref, remaining)


def delete_parameter_bounds(model: "InfiniteModel", hvref: VariableRef):
    var = _var(model, hvref, RefKind.HOLD)
    if var.parameter_bounds:
        _apply_hold_bounds(model, hvref, ParameterBounds())
