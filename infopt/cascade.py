"""
Deletion cascade coordinator.

Each deletion walks the stages

    REQUESTED -> VALIDATING_USAGE -> REWRITING_DEPENDENTS
              -> UNLINKING_CROSS_REFS -> PURGED

recorded in ``DeletionCascade.history``. Dependents are always snapshotted
before the relation holding them is modified.

By kind:
- variable: info constraints deleted; measures, constraints and objective
  rewritten without it (measures renamed); an infinite variable also takes
  its point and reduced variables with it
- reduced variable: dependents rewritten, unlinked from its parent
- measure: dependent measures, constraints and objective rewritten
- constraint: unlinked from everything its expression references
- parameter: only while unused; otherwise DependencyConflict
"""

import logging
from dataclasses import replace
from enum import Enum
from typing import TYPE_CHECKING, Iterable, List, Optional, Set, Tuple, Union

from .bounds_engine import dependent_constraints, dependent_measures, rebuild_constraint
from .errors import DependencyConflict
from .schema.constraint import BoundedScalarConstraint
from .schema.expressions import all_function_variables, copy_function, remove_variable
from .schema.measure import Measure
from .schema.refs import ConstraintRef, RefKind, VariableRef
from .schema.variable import HoldVariable, InfiniteVariable, PointVariable
from . import constraints as _constraints
from . import measures as _measures
from . import parameters as _parameters
from . import variable_info as _info
from . import variables as _variables

if TYPE_CHECKING:
    from .model import InfiniteModel

logger = logging.getLogger(__name__)

Ref = Union[VariableRef, ConstraintRef]


class DeletionStage(str, Enum):
    REQUESTED = "requested"
    VALIDATING_USAGE = "validating_usage"
    REWRITING_DEPENDENTS = "rewriting_dependents"
    UNLINKING_CROSS_REFS = "unlinking_cross_refs"
    PURGED = "purged"


class DeletionCascade:
    """
    Coordinator for one deletion request and everything it drags along.

    Example:
        cascade = DeletionCascade(model)
        cascade.delete(g)
        cascade.deleted      # [point variable of g, ..., g]
    """

    def __init__(self, model: "InfiniteModel"):
        self.model = model
        self.stage: Optional[DeletionStage] = None
        self.history: List[Tuple[Ref, DeletionStage]] = []
        self.deleted: List[Ref] = []

    def _advance(self, ref: Ref, stage: DeletionStage):
        self.stage = stage
        self.history.append((ref, stage))
        logger.debug(f"Deleting {ref!r}: {stage.value}")

    def delete(self, ref: Ref):
        """
        Delete ref and cascade to dependents.

        Raises:
            InvalidReference: If ref is not live in the model (nothing changes)
            DependencyConflict: If ref is a parameter still in use
        """
        self.model.check_valid(ref)
        self._advance(ref, DeletionStage.REQUESTED)
        if isinstance(ref, ConstraintRef):
            self._delete_constraint(ref)
        elif ref.kind == RefKind.PARAMETER:
            self._delete_parameter(ref)
        elif ref.kind == RefKind.MEASURE:
            self._delete_measure(ref)
        elif ref.kind == RefKind.REDUCED:
            self._delete_reduced(ref)
        else:
            self._delete_variable(ref)
        self.deleted.append(ref)

    # =========================================================================
    # Rewriting
    # =========================================================================

    def _rewrite_measure(self, mindex: int, vref: VariableRef):
        model = self.model
        measure = model.measures.get(mindex)
        updated = Measure(remove_variable(copy_function(measure.func), vref), measure.data)
        model.measures.replace(mindex, updated)
        model.measures.names.set_name(mindex, _measures.make_measure_name(model, updated))

    def _rewrite_constraint(self, cindex: int, vref: VariableRef):
        model = self.model
        constraint = model.constraints.get(cindex)
        func = remove_variable(copy_function(constraint.func), vref)
        model.constraints.replace(cindex, replace(constraint, func=func))

    def _rewrite_objective(self, vref: VariableRef):
        model = self.model
        model.objective_function = remove_variable(copy_function(model.objective_function), vref)

    def _refresh_bounds(self, cindices: Iterable[int]):
        """Recompute sub-domains of constraints that lost a bounded hold variable."""
        model = self.model
        for cindex in cindices:
            if cindex not in model.constraints:
                continue
            constraint = model.constraints.get(cindex)
            if isinstance(constraint, BoundedScalarConstraint):
                model.constraints.replace(cindex, rebuild_constraint(model, constraint))

    def _rewrite_dependents(self, vref: VariableRef, meas_relation, constr_relation):
        """Strip vref from every measure / constraint listed for it, then drop the lists."""
        for mindex in meas_relation.dependents(vref.index):
            self._rewrite_measure(mindex, vref)
        meas_relation.discard_owner(vref.index)
        for cindex in constr_relation.dependents(vref.index):
            self._rewrite_constraint(cindex, vref)
            if vref.kind == RefKind.MEASURE:
                self.model.xrefs.constr_to_meas.unlink(cindex, vref.index)
        constr_relation.discard_owner(vref.index)

    # =========================================================================
    # Variables
    # =========================================================================

    def _delete_variable(self, vref: VariableRef):
        model = self.model
        xrefs = model.xrefs
        vindex = vref.index
        var = model.variables.get(vindex)

        self._advance(vref, DeletionStage.VALIDATING_USAGE)
        if _variables.is_used(model, vref):
            model.ready_to_optimize = False
        affected: List[int] = []
        if isinstance(var, HoldVariable) and var.parameter_bounds:
            affected = dependent_constraints(model, vref)

        self._advance(vref, DeletionStage.REWRITING_DEPENDENTS)
        for kind in list(model.info_constraints):
            cindex = model.info_constraints[kind].get(vindex)
            if cindex is not None:
                self.delete(_constraints.constraint_ref(model, cindex))
        self._rewrite_dependents(vref, xrefs.var_to_meas, xrefs.var_to_constrs)
        if model.variables.in_objective.get(vindex, False):
            self._rewrite_objective(vref)
        self._refresh_bounds(affected)

        self._advance(vref, DeletionStage.UNLINKING_CROSS_REFS)
        if isinstance(var, InfiniteVariable):
            for pref in var.parameter_refs.parameters():
                xrefs.param_to_vars.unlink(pref.index, vindex)
            for pindex in xrefs.infinite_to_points.dependents(vindex):
                self.delete(model.make_variable_ref(pindex, RefKind.POINT))
            for rindex in xrefs.infinite_to_reduced.dependents(vindex):
                self.delete(model.make_variable_ref(rindex, RefKind.REDUCED))
            xrefs.infinite_to_points.discard_owner(vindex)
            xrefs.infinite_to_reduced.discard_owner(vindex)
        elif isinstance(var, PointVariable):
            xrefs.infinite_to_points.unlink(var.infinite_variable_ref.index, vindex)

        self._advance(vref, DeletionStage.PURGED)
        for owners in model.info_constraints.values():
            owners.pop(vindex, None)
        model.variables.remove(vindex)

    def _delete_reduced(self, rvref: VariableRef):
        model = self.model
        xrefs = model.xrefs
        rindex = rvref.index
        info = model.reduced_variables.get(rindex)

        self._advance(rvref, DeletionStage.VALIDATING_USAGE)
        if _variables.is_used(model, rvref):
            model.ready_to_optimize = False

        self._advance(rvref, DeletionStage.REWRITING_DEPENDENTS)
        self._rewrite_dependents(rvref, xrefs.reduced_to_meas, xrefs.reduced_to_constrs)

        self._advance(rvref, DeletionStage.UNLINKING_CROSS_REFS)
        xrefs.infinite_to_reduced.unlink(info.infinite_variable_ref.index, rindex)

        self._advance(rvref, DeletionStage.PURGED)
        model.reduced_variables.remove(rindex)

    # =========================================================================
    # Measures
    # =========================================================================

    def _delete_measure(self, mref: VariableRef):
        model = self.model
        xrefs = model.xrefs
        mindex = mref.index

        self._advance(mref, DeletionStage.VALIDATING_USAGE)
        if _measures.is_used(model, mref):
            model.ready_to_optimize = False
        affected: Set[int] = set(xrefs.meas_to_constrs.dependents(mindex))
        for dependent in dependent_measures(model, mref):
            affected.update(xrefs.meas_to_constrs.dependents(dependent))

        self._advance(mref, DeletionStage.REWRITING_DEPENDENTS)
        self._rewrite_dependents(mref, xrefs.meas_to_meas, xrefs.meas_to_constrs)
        if model.measures.in_objective.get(mindex, False):
            self._rewrite_objective(mref)
        self._refresh_bounds(sorted(affected))

        self._advance(mref, DeletionStage.UNLINKING_CROSS_REFS)
        measure = model.measures.get(mindex)
        for vref in all_function_variables(measure.func):
            _measures.unlink_reference(model, mindex, vref)
        for pref in measure.data.parameter_refs:
            xrefs.param_to_meas.unlink(pref.index, mindex)

        self._advance(mref, DeletionStage.PURGED)
        model.measures.remove(mindex)

    # =========================================================================
    # Constraints
    # =========================================================================

    def _delete_constraint(self, cref: ConstraintRef):
        model = self.model
        self._advance(cref, DeletionStage.VALIDATING_USAGE)
        self._advance(cref, DeletionStage.REWRITING_DEPENDENTS)
        self._advance(cref, DeletionStage.UNLINKING_CROSS_REFS)
        if model.constr_in_var_info.get(cref.index, False):
            _info.info_constraint_deleted(model, cref.index)
        _constraints.unlink_constraint(model, cref.index)
        self._advance(cref, DeletionStage.PURGED)
        _constraints.purge_constraint(model, cref.index)

    # =========================================================================
    # Parameters
    # =========================================================================

    def _delete_parameter(self, pref: VariableRef):
        model = self.model
        self._advance(pref, DeletionStage.VALIDATING_USAGE)
        if _parameters.is_used(model, pref):
            raise DependencyConflict(
                f"Cannot delete parameter {model.name(pref)!r} while it is in use."
            )
        self._advance(pref, DeletionStage.REWRITING_DEPENDENTS)
        self._advance(pref, DeletionStage.UNLINKING_CROSS_REFS)
        self._advance(pref, DeletionStage.PURGED)
        model.param_group_ids.pop(pref.index, None)
        model.parameters.remove(pref.index)
        model.ready_to_optimize = False
