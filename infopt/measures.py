"""
Measure operations.

A measure is named after its data and expression, e.g. ``integral(2 g(t))``,
and renamed whenever a deletion rewrites its expression. Adding a measure
links every reference in its expression plus the integrated parameters,
and (with ``record_measure_supports``) merges the data's support points into
the parameters' supports.
"""

import logging
from typing import TYPE_CHECKING

from .bounds_engine import hold_bounds, hold_variables_in, measure_data_in_bounds
from .errors import BoundViolation
from .parameters import add_supports
from .schema.expressions import Expression, all_function_variables, copy_function, function_string
from .schema.measure import Measure
from .schema.refs import RefKind, VariableRef
from .schema.sets import supports_in_set

if TYPE_CHECKING:
    from .model import InfiniteModel

logger = logging.getLogger(__name__)


def make_measure_name(model: "InfiniteModel", measure: Measure) -> str:
    prefix = measure.data.name or model.settings.measure_defaults.name
    return f"{prefix}({function_string(measure.func, model.name)})"


def _relation_for(model: "InfiniteModel", vref: VariableRef):
    if vref.kind == RefKind.PARAMETER:
        return model.xrefs.param_to_meas
    if vref.kind == RefKind.MEASURE:
        return model.xrefs.meas_to_meas
    if vref.kind == RefKind.REDUCED:
        return model.xrefs.reduced_to_meas
    return model.xrefs.var_to_meas


def link_reference(model: "InfiniteModel", mindex: int, vref: VariableRef):
    _relation_for(model, vref).link(vref.index, mindex)


def unlink_reference(model: "InfiniteModel", mindex: int, vref: VariableRef):
    _relation_for(model, vref).unlink(vref.index, mindex)


def add_measure(model: "InfiniteModel", measure: Measure) -> VariableRef:
    """
    Add a measure and return its reference.

    Raises:
        InvalidReference: If the expression or data references dead entities
        BoundViolation: If data supports lie outside a parameter domain or
            outside the sub-domain of a bounded hold variable in the expression
    """
    if not isinstance(measure, Measure):
        raise TypeError(f"Expected Measure, got {type(measure).__name__}")
    data = measure.data
    vrefs = all_function_variables(measure.func)
    for vref in vrefs:
        model.check_valid(vref)
    for pref, values in data.support_values().items():
        model.check_valid(pref, RefKind.PARAMETER)
        if not supports_in_set(values, model.parameters.get(pref.index).set):
            raise BoundViolation(
                f"Measure supports violate the domain of parameter {model.name(pref)!r}."
            )
    for hvref in hold_variables_in(model, measure.func):
        bounds = hold_bounds(model, hvref)
        if bounds and not measure_data_in_bounds(data, bounds):
            raise BoundViolation(
                f"Measure data lies outside the sub-domain of hold variable {model.name(hvref)!r}."
            )

    measure = Measure(copy_function(measure.func), data)
    index = model.measures.add(measure, make_measure_name(model, measure))
    for vref in vrefs:
        link_reference(model, index, vref)
    for pref in data.parameter_refs:
        model.xrefs.param_to_meas.link(pref.index, index)
    if model.settings.record_measure_supports:
        for pref, values in data.support_values().items():
            add_supports(model, pref, values)
    model.ready_to_optimize = False
    logger.debug(f"Added measure {model.measures.names.name(index)!r} (index {index})")
    return model.make_variable_ref(index, RefKind.MEASURE)


def _measure(model: "InfiniteModel", mref: VariableRef) -> Measure:
    model.check_valid(mref, RefKind.MEASURE)
    return model.measures.get(mref.index)


def measure_function(model: "InfiniteModel", mref: VariableRef) -> Expression:
    return copy_function(_measure(model, mref).func)


def measure_data(model: "InfiniteModel", mref: VariableRef):
    return _measure(model, mref).data


def used_by_constraint(model: "InfiniteModel", mref: VariableRef) -> bool:
    model.check_valid(mref, RefKind.MEASURE)
    return model.xrefs.meas_to_constrs.has(mref.index)


def used_by_measure(model: "InfiniteModel", mref: VariableRef) -> bool:
    model.check_valid(mref, RefKind.MEASURE)
    return model.xrefs.meas_to_meas.has(mref.index)


def used_by_objective(model: "InfiniteModel", mref: VariableRef) -> bool:
    model.check_valid(mref, RefKind.MEASURE)
    return model.measures.in_objective.get(mref.index, False)


def is_used(model: "InfiniteModel", mref: VariableRef) -> bool:
    return (used_by_constraint(model, mref) or used_by_measure(model, mref)
            or used_by_objective(model, mref))


def has_variable(model: "InfiniteModel", func: Expression, vref: VariableRef) -> bool:
    """Check whether func uses vref, searching inside measures."""
    for ref in all_function_variables(func):
        if ref == vref:
            return True
        if ref.kind == RefKind.MEASURE and has_variable(model, model.measures.get(ref.index).func, vref):
            return True
    return False
