"""
Re-homing entities into another model.

References are bound to one model, so composing sub-models means copying
each entity into the target with a fresh index and rewriting every reference
it holds. Entities are copied in index order, which guarantees that anything
an entity refers to has already been copied.
"""

import logging
from typing import TYPE_CHECKING, Dict, Union

from .errors import InvalidReference
from .schema.constraint import BoundedScalarConstraint, ScalarConstraint
from .schema.expressions import map_variables
from .schema.measure import Measure
from .schema.refs import ConstraintRef, RefKind, VariableRef
from .schema.variable import HoldVariable, InfiniteVariable, PointVariable
from . import constraints as _constraints
from . import measures as _measures
from . import parameters as _parameters
from . import variables as _variables

if TYPE_CHECKING:
    from .model import InfiniteModel

logger = logging.getLogger(__name__)

Ref = Union[VariableRef, ConstraintRef]


def transfer_entities(source: "InfiniteModel", target: "InfiniteModel") -> Dict[Ref, Ref]:
    """
    Copy all parameters, variables, reduced variables, measures and
    constraints of source into target.

    Parameters that share a group in source share a (fresh) group in target.
    Info constraints are recreated from variable info. The objective is not
    copied.

    Returns:
        Mapping from each source reference to its target reference
    """
    if source is target:
        raise ValueError("Cannot transfer a model into itself.")
    mapping: Dict[Ref, Ref] = {}

    def remap(ref: VariableRef) -> VariableRef:
        try:
            return mapping[ref]
        except KeyError:
            raise InvalidReference(f"{ref!r} is not part of the transferred model.", ref) from None

    # Parameters
    groups: Dict[int, int] = {}
    for index, param in source.parameters.items():
        old_group = source.param_group_ids[index]
        new = _parameters.add_parameter(target, param, source.parameters.names.name(index),
                                        groups.get(old_group))
        groups.setdefault(old_group, target.param_group_ids[new.index])
        mapping[source.make_variable_ref(index, RefKind.PARAMETER)] = new

    # Variables
    for index, var in source.variables.items():
        name = source.variables.names.name(index)
        if isinstance(var, InfiniteVariable):
            old = source.make_variable_ref(index, RefKind.INFINITE)
            copied = InfiniteVariable(var.parameter_refs.map(remap), var.info)
        elif isinstance(var, PointVariable):
            old = source.make_variable_ref(index, RefKind.POINT)
            copied = PointVariable(remap(var.infinite_variable_ref), var.parameter_values, var.info)
        else:
            old = source.make_variable_ref(index, RefKind.HOLD)
            copied = HoldVariable(var.info, var.parameter_bounds.map_keys(remap))
        mapping[old] = _variables.add_variable(target, copied, name)

    # Reduced variables
    for index, info in source.reduced_variables.items():
        old = source.make_variable_ref(index, RefKind.REDUCED)
        mapping[old] = _variables.add_reduced_variable(
            target, remap(info.infinite_variable_ref), dict(info.eval_supports)
        )

    # Measures
    for index, measure in source.measures.items():
        old = source.make_variable_ref(index, RefKind.MEASURE)
        new = _measures.add_measure(
            target, Measure(map_variables(measure.func, remap), measure.data.remap(remap))
        )
        target.measures.names.set_name(new.index, source.measures.names.name(index))
        mapping[old] = new

    # Constraints (info constraints were recreated with their variables)
    for index, constraint in source.constraints.items():
        old = _constraints.constraint_ref(source, index)
        if source.constr_in_var_info.get(index, False):
            continue
        func = map_variables(constraint.func, remap)
        if isinstance(constraint, BoundedScalarConstraint) and constraint.orig_bounds:
            orig = constraint.orig_bounds.map_keys(remap)
            copied = BoundedScalarConstraint(func, constraint.set, orig, orig)
        else:
            copied = ScalarConstraint(func, constraint.set)
        mapping[old] = _constraints.add_constraint(target, copied,
                                                   source.constraints.names.name(index))
    for kind, owners in source.info_constraints.items():
        for vindex, cindex in owners.items():
            kind_ref = _variables.variable_kind(source.variables.get(vindex))
            new_var = mapping[source.make_variable_ref(vindex, kind_ref)]
            new_cindex = target.info_constraints[kind][new_var.index]
            mapping[_constraints.constraint_ref(source, cindex)] = \
                _constraints.constraint_ref(target, new_cindex)

    logger.debug(f"Transferred {len(mapping)} entities from model {source.model_id} "
                 f"to model {target.model_id}")
    return mapping

