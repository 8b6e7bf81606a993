"""
Variable info: bounds, fixed value, start value, binary and integer flags.

Numeric info lives twice: in the variable payload's VariableInfo and as an
info constraint (``x >= lb``, ``x <= ub``, ``x == v``, ``x in ZeroOne``,
``x in Integer``) recorded in model.info_constraints. Every operation here
keeps both in step.
"""

import logging
import math
from dataclasses import replace
from typing import TYPE_CHECKING, Optional

from .errors import DependencyConflict, NotFound
from .schema.constraint import EqualTo, GreaterThan, Integer, LessThan, ScalarConstraint, ZeroOne
from .schema.refs import ConstraintRef, RefKind, VariableRef
from .schema.variable import VariableInfo
from . import constraints as _constraints

if TYPE_CHECKING:
    from .model import InfiniteModel

logger = logging.getLogger(__name__)

DECISION = (RefKind.INFINITE, RefKind.POINT, RefKind.HOLD)

_INFO_LABELS = {
    "lower": "a lower bound",
    "upper": "an upper bound",
    "fix": "a fixed value",
    "binary": "a binary constraint",
    "integer": "an integer constraint",
}


def _info(model: "InfiniteModel", vref: VariableRef) -> VariableInfo:
    model.check_valid(vref, *DECISION)
    return model.variables.get(vref.index).info


def _set_info(model: "InfiniteModel", vref: VariableRef, info: VariableInfo):
    var = model.variables.get(vref.index)
    model.variables.replace(vref.index, replace(var, info=info))
    model.ready_to_optimize = False


def _add_info_constraint(model: "InfiniteModel", vref: VariableRef, kind: str, set):
    cref = _constraints.add_constraint(model, ScalarConstraint(vref, set))
    model.constr_in_var_info[cref.index] = True
    model.info_constraints[kind][vref.index] = cref.index


def _update_info_constraint(model: "InfiniteModel", vref: VariableRef, kind: str, set):
    cindex = model.info_constraints[kind].get(vref.index)
    if cindex is None:
        _add_info_constraint(model, vref, kind, set)
    else:
        constraint = model.constraints.get(cindex)
        model.constraints.replace(cindex, replace(constraint, set=set))


def _delete_info_constraint(model: "InfiniteModel", vref: VariableRef, kind: str):
    cindex = model.info_constraints[kind].pop(vref.index, None)
    if cindex is not None:
        _constraints.remove_constraint(model, cindex)


def _info_ref(model: "InfiniteModel", vref: VariableRef, kind: str) -> ConstraintRef:
    model.check_valid(vref, *DECISION)
    cindex = model.info_constraints[kind].get(vref.index)
    if cindex is None:
        raise NotFound(f"Variable {model.name(vref)!r} does not have {_INFO_LABELS[kind]}.")
    return _constraints.constraint_ref(model, cindex)


def add_info_constraints(model: "InfiniteModel", vref: VariableRef, info: VariableInfo):
    """Create the info constraints of a newly added variable."""
    if info.has_lower_bound:
        _add_info_constraint(model, vref, "lower", GreaterThan(info.lower_bound))
    if info.has_upper_bound:
        _add_info_constraint(model, vref, "upper", LessThan(info.upper_bound))
    if info.has_fix:
        _add_info_constraint(model, vref, "fix", EqualTo(info.fixed_value))
    if info.binary:
        _add_info_constraint(model, vref, "binary", ZeroOne())
    elif info.integer:
        _add_info_constraint(model, vref, "integer", Integer())


def info_constraint_deleted(model: "InfiniteModel", cindex: int):
    """Clear the info flag owned by an info constraint deleted directly."""
    for kind, owners in model.info_constraints.items():
        for vindex, owned in list(owners.items()):
            if owned != cindex:
                continue
            del owners[vindex]
            var = model.variables.get(vindex)
            info = var.info
            if kind == "lower":
                info = info.update(has_lower_bound=False, lower_bound=0.0)
            elif kind == "upper":
                info = info.update(has_upper_bound=False, upper_bound=0.0)
            elif kind == "fix":
                info = info.update(has_fix=False, fixed_value=0.0)
            elif kind == "binary":
                info = info.update(binary=False)
            else:
                info = info.update(integer=False)
            model.variables.replace(vindex, replace(var, info=info))
            logger.debug(f"Cleared {kind} info of variable {vindex}")
            return


# =============================================================================
# Lower / Upper Bounds
# =============================================================================

def has_lower_bound(model: "InfiniteModel", vref: VariableRef) -> bool:
    return _info(model, vref).has_lower_bound


def lower_bound(model: "InfiniteModel", vref: VariableRef) -> float:
    info = _info(model, vref)
    if not info.has_lower_bound:
        raise NotFound(f"Variable {model.name(vref)!r} does not have a lower bound.")
    return info.lower_bound


def set_lower_bound(model: "InfiniteModel", vref: VariableRef, value: float):
    info = _info(model, vref)
    if info.has_fix:
        raise DependencyConflict(f"Unable to set lower bound of fixed variable {model.name(vref)!r}.")
    info = info.update(has_lower_bound=True, lower_bound=float(value))
    _update_info_constraint(model, vref, "lower", GreaterThan(float(value)))
    _set_info(model, vref, info)


def delete_lower_bound(model: "InfiniteModel", vref: VariableRef):
    lower_bound(model, vref)
    _delete_info_constraint(model, vref, "lower")
    _set_info(model, vref, _info(model, vref).update(has_lower_bound=False, lower_bound=0.0))


def lower_bound_ref(model: "InfiniteModel", vref: VariableRef) -> ConstraintRef:
    return _info_ref(model, vref, "lower")


def has_upper_bound(model: "InfiniteModel", vref: VariableRef) -> bool:
    return _info(model, vref).has_upper_bound


def upper_bound(model: "InfiniteModel", vref: VariableRef) -> float:
    info = _info(model, vref)
    if not info.has_upper_bound:
        raise NotFound(f"Variable {model.name(vref)!r} does not have an upper bound.")
    return info.upper_bound


def set_upper_bound(model: "InfiniteModel", vref: VariableRef, value: float):
    info = _info(model, vref)
    if info.has_fix:
        raise DependencyConflict(f"Unable to set upper bound of fixed variable {model.name(vref)!r}.")
    info = info.update(has_upper_bound=True, upper_bound=float(value))
    _update_info_constraint(model, vref, "upper", LessThan(float(value)))
    _set_info(model, vref, info)


def delete_upper_bound(model: "InfiniteModel", vref: VariableRef):
    upper_bound(model, vref)
    _delete_info_constraint(model, vref, "upper")
    _set_info(model, vref, _info(model, vref).update(has_upper_bound=False, upper_bound=0.0))


def upper_bound_ref(model: "InfiniteModel", vref: VariableRef) -> ConstraintRef:
    return _info_ref(model, vref, "upper")


# =============================================================================
# Fixing
# =============================================================================

def is_fixed(model: "InfiniteModel", vref: VariableRef) -> bool:
    return _info(model, vref).has_fix


def fix_value(model: "InfiniteModel", vref: VariableRef) -> float:
    info = _info(model, vref)
    if not info.has_fix:
        raise NotFound(f"Variable {model.name(vref)!r} is not fixed.")
    return info.fixed_value


def fix(model: "InfiniteModel", vref: VariableRef, value: float, force: bool = False):
    """
    Fix a variable to value.

    Raises:
        DependencyConflict: If the variable has bounds and force is False
    """
    info = _info(model, vref)
    if (info.has_lower_bound or info.has_upper_bound) and not force:
        raise DependencyConflict(
            f"Unable to fix {model.name(vref)!r} to {value} because it has existing "
            "variable bounds. Consider calling `fix(..., force=True)`."
        )
    if info.has_lower_bound:
        delete_lower_bound(model, vref)
    if info.has_upper_bound:
        delete_upper_bound(model, vref)
    info = _info(model, vref).update(has_fix=True, fixed_value=float(value))
    _update_info_constraint(model, vref, "fix", EqualTo(float(value)))
    _set_info(model, vref, info)


def unfix(model: "InfiniteModel", vref: VariableRef):
    fix_value(model, vref)
    _delete_info_constraint(model, vref, "fix")
    _set_info(model, vref, _info(model, vref).update(has_fix=False, fixed_value=0.0))


def fix_ref(model: "InfiniteModel", vref: VariableRef) -> ConstraintRef:
    return _info_ref(model, vref, "fix")


# =============================================================================
# Start Value
# =============================================================================

def start_value(model: "InfiniteModel", vref: VariableRef) -> Optional[float]:
    info = _info(model, vref)
    return info.start if info.has_start else None


def set_start_value(model: "InfiniteModel", vref: VariableRef, value: Optional[float]):
    info = _info(model, vref)
    if value is None:
        info = info.update(has_start=False, start=math.nan)
    else:
        info = info.update(has_start=True, start=float(value))
    _set_info(model, vref, info)


# =============================================================================
# Integrality
# =============================================================================

def is_binary(model: "InfiniteModel", vref: VariableRef) -> bool:
    return _info(model, vref).binary


def set_binary(model: "InfiniteModel", vref: VariableRef):
    info = _info(model, vref)
    if info.binary:
        return
    if info.integer:
        raise DependencyConflict(
            f"Cannot set {model.name(vref)!r} as binary since it is already integer."
        )
    _add_info_constraint(model, vref, "binary", ZeroOne())
    _set_info(model, vref, info.update(binary=True))


def unset_binary(model: "InfiniteModel", vref: VariableRef):
    binary_ref(model, vref)
    _delete_info_constraint(model, vref, "binary")
    _set_info(model, vref, _info(model, vref).update(binary=False))


def binary_ref(model: "InfiniteModel", vref: VariableRef) -> ConstraintRef:
    return _info_ref(model, vref, "binary")


def is_integer(model: "InfiniteModel", vref: VariableRef) -> bool:
    return _info(model, vref).integer


def set_integer(model: "InfiniteModel", vref: VariableRef):
    info = _info(model, vref)
    if info.integer:
        return
    if info.binary:
        raise DependencyConflict(
            f"Cannot set {model.name(vref)!r} as integer since it is already binary."
        )
    _add_info_constraint(model, vref, "integer", Integer())
    _set_info(model, vref, info.update(integer=True))


def unset_integer(model: "InfiniteModel", vref: VariableRef):
    integer_ref(model, vref)
    _delete_info_constraint(model, vref, "integer")
    _set_info(model, vref, _info(model, vref).update(integer=False))


def integer_ref(model: "InfiniteModel", vref: VariableRef) -> ConstraintRef:
    return _info_ref(model, vref, "integer")
