"""
Infinite parameter operations.

Parameters are added with a group id (new, or shared with an existing vector
parameter), accumulate supports over the model's life, and can only be
deleted while unused (see cascade.DeletionCascade.delete_parameter).
"""

import logging
from typing import TYPE_CHECKING, Iterable, List, Optional

import numpy as np

from .errors import BoundViolation, DependencyConflict, NotFound
from .schema.bounds import ParameterBounds
from .schema.constraint import BoundedScalarConstraint
from .schema.parameter import InfOptParameter
from .schema.refs import RefKind, VariableRef
from .schema.sets import InfiniteSet, supports_in_set
from .schema.variable import HoldVariable, InfiniteVariable, PointVariable

if TYPE_CHECKING:
    from .model import InfiniteModel

logger = logging.getLogger(__name__)


def _param(model: "InfiniteModel", pref: VariableRef) -> InfOptParameter:
    model.check_valid(pref, RefKind.PARAMETER)
    return model.parameters.get(pref.index)


# =============================================================================
# Definition
# =============================================================================

def add_parameter(model: "InfiniteModel",
                  param: InfOptParameter,
                  name: str = "",
                  group_id: Optional[int] = None) -> VariableRef:
    """
    Add a parameter and return its reference.

    Args:
        param: Parameter payload
        name: Display name
        group_id: Join an existing group (vector parameter); new group if None

    Raises:
        BoundViolation: If initial supports lie outside the domain
        NotFound: If group_id is not a group of this model
    """
    if not isinstance(param, InfOptParameter):
        raise TypeError(f"Expected InfOptParameter, got {type(param).__name__}")
    if not supports_in_set(param.supports, param.set):
        raise BoundViolation(f"Supports of parameter {name!r} violate its domain.")
    if group_id is None:
        group_id = model.new_group_id()
    elif group_id not in set(model.param_group_ids.values()):
        raise NotFound(
            f"No parameter group {group_id}. Available: {sorted(set(model.param_group_ids.values()))}"
        )
    index = model.parameters.add(param, name)
    model.param_group_ids[index] = group_id
    model.ready_to_optimize = False
    logger.debug(f"Added parameter {name!r} (index {index}, group {group_id})")
    return model.make_variable_ref(index, RefKind.PARAMETER)


def add_parameters(model: "InfiniteModel",
                   set: InfiniteSet,
                   count: int,
                   name: str = "",
                   supports: Iterable[float] = (),
                   independent: bool = False) -> List[VariableRef]:
    """Add a vector parameter: count parameters sharing one group id, named name[i]."""
    if count <= 0:
        raise ValueError(f"Invalid count: {count}")
    param = InfOptParameter(set, tuple(supports), independent)
    first = add_parameter(model, param, f"{name}[0]" if name else "")
    group = model.param_group_ids[first.index]
    refs = [first]
    for i in range(1, count):
        refs.append(add_parameter(model, param, f"{name}[{i}]" if name else "", group_id=group))
    return refs


def group_id(model: "InfiniteModel", pref: VariableRef) -> int:
    model.check_valid(pref, RefKind.PARAMETER)
    return model.param_group_ids[pref.index]


def parameter(model: "InfiniteModel", pref: VariableRef) -> InfOptParameter:
    return _param(model, pref)


def infinite_set(model: "InfiniteModel", pref: VariableRef) -> InfiniteSet:
    return _param(model, pref).set


def set_infinite_set(model: "InfiniteModel", pref: VariableRef, new_set: InfiniteSet):
    """
    Replace the domain of a parameter.

    Raises:
        BoundViolation: If supports, point values, or sub-domain bounds that
            use the parameter fall outside the new domain
    """
    param = _param(model, pref)
    if not supports_in_set(param.supports, new_set):
        raise BoundViolation("Existing supports violate the new domain.")
    for bounds in _bounds_using(model, pref):
        if not bounds[pref].is_subset_of(new_set):
            raise BoundViolation(f"Sub-domain bounds {bounds[pref]} violate the new domain.")
    for value in _point_values_for(model, pref):
        if not new_set.contains(value):
            raise BoundViolation(f"Point variable value {value} violates the new domain.")
    model.parameters.replace(pref.index, InfOptParameter(new_set, param.supports, param.independent))
    model.ready_to_optimize = False


def is_independent(model: "InfiniteModel", pref: VariableRef) -> bool:
    return _param(model, pref).independent


def set_independent(model: "InfiniteModel", pref: VariableRef, independent: bool = True):
    param = _param(model, pref)
    model.parameters.replace(pref.index, InfOptParameter(param.set, param.supports, independent))


# =============================================================================
# Supports
# =============================================================================

def supports(model: "InfiniteModel", pref: VariableRef) -> np.ndarray:
    return np.asarray(_param(model, pref).supports, dtype=float)


def num_supports(model: "InfiniteModel", pref: VariableRef) -> int:
    return len(_param(model, pref).supports)


def has_supports(model: "InfiniteModel", pref: VariableRef) -> bool:
    return num_supports(model, pref) > 0


def add_supports(model: "InfiniteModel", pref: VariableRef, values: Iterable[float]):
    """
    Merge values into the parameter's supports.

    Raises:
        BoundViolation: If any value lies outside the parameter's domain
    """
    param = _param(model, pref)
    values = np.atleast_1d(np.asarray(values, dtype=float))
    if not supports_in_set(values, param.set):
        raise BoundViolation(
            f"Supports {values.tolist()} violate the domain of {model.name(pref)!r}."
        )
    model.parameters.replace(
        pref.index, param.with_added_supports(values, model.settings.support_decimals)
    )
    model.ready_to_optimize = False


def set_supports(model: "InfiniteModel", pref: VariableRef, values: Iterable[float]):
    """
    Replace the parameter's supports.

    Values at which point variables are evaluated are kept.
    """
    param = _param(model, pref)
    values = np.atleast_1d(np.asarray(values, dtype=float))
    if not supports_in_set(values, param.set):
        raise BoundViolation(
            f"Supports {values.tolist()} violate the domain of {model.name(pref)!r}."
        )
    values = np.concatenate([values, np.asarray(_point_values_for(model, pref), dtype=float)])
    model.parameters.replace(pref.index, param.with_supports(values, model.settings.support_decimals))
    model.ready_to_optimize = False


def delete_supports(model: "InfiniteModel", pref: VariableRef):
    """
    Remove all supports.

    Raises:
        DependencyConflict: If point variables are evaluated at this parameter
    """
    param = _param(model, pref)
    if _point_values_for(model, pref):
        raise DependencyConflict(
            f"Cannot delete supports of {model.name(pref)!r}; point variables depend on them."
        )
    model.parameters.replace(pref.index, param.with_supports(()))
    model.ready_to_optimize = False


# =============================================================================
# Usage
# =============================================================================

def used_by_variable(model: "InfiniteModel", pref: VariableRef) -> bool:
    model.check_valid(pref, RefKind.PARAMETER)
    return model.xrefs.param_to_vars.has(pref.index)


def used_by_measure(model: "InfiniteModel", pref: VariableRef) -> bool:
    model.check_valid(pref, RefKind.PARAMETER)
    return model.xrefs.param_to_meas.has(pref.index)


def used_by_constraint(model: "InfiniteModel", pref: VariableRef) -> bool:
    model.check_valid(pref, RefKind.PARAMETER)
    return model.xrefs.param_to_constrs.has(pref.index)


def used_in_bounds(model: "InfiniteModel", pref: VariableRef) -> bool:
    """Check whether any hold variable or constraint bounds restrict pref."""
    model.check_valid(pref, RefKind.PARAMETER)
    return bool(_bounds_using(model, pref))


def is_used(model: "InfiniteModel", pref: VariableRef) -> bool:
    return (used_by_variable(model, pref) or used_by_measure(model, pref)
            or used_by_constraint(model, pref) or used_in_bounds(model, pref))


def _bounds_using(model: "InfiniteModel", pref: VariableRef) -> List[ParameterBounds]:
    found = []
    for _, var in model.variables.items():
        if isinstance(var, HoldVariable) and pref in var.parameter_bounds:
            found.append(var.parameter_bounds)
    for _, constr in model.constraints.items():
        if isinstance(constr, BoundedScalarConstraint):
            if pref in constr.bounds:
                found.append(constr.bounds)
            if pref in constr.orig_bounds:
                found.append(constr.orig_bounds)
    return found


def _point_values_for(model: "InfiniteModel", pref: VariableRef) -> List[float]:
    values = []
    for vindex in model.xrefs.param_to_vars.dependents(pref.index):
        ivar = model.variables.get(vindex)
        if not isinstance(ivar, InfiniteVariable):
            continue
        for pindex in model.xrefs.infinite_to_points.dependents(vindex):
            pvar: PointVariable = model.variables.get(pindex)
            for param_ref, value in ivar.parameter_refs.pair_values(pvar.parameter_values):
                if param_ref == pref:
                    values.append(value)
    return values
