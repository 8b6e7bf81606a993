"""
InfiniteModel - the container that owns every entity.

The model aggregates:
- one EntityStore per entity kind (parameters, variables, reduced variables,
  measures, constraints), each with its own name registry
- the CrossReferenceIndex (dependency graph)
- parameter group ids, variable-info constraint maps, objective
- the ready_to_optimize flag, cleared by every structural change

Entities are addressed by VariableRef / ConstraintRef handles. Every public
operation checks that a handle belongs to this model and is still live
before doing anything else.

Example:
    model = InfiniteModel()
    t = model.add_parameter(InfOptParameter(IntervalSet(0, 10)), name="t")
    g = model.add_variable(InfiniteVariable(ParameterTuple(t)), name="g")
    g5 = model.add_variable(PointVariable(g, 5.0))
    model.delete(g)          # also deletes g5
"""

import itertools
import logging
from typing import Any, Dict, List, Optional, Union

from .errors import InfOptError, InvalidReference
from .graph import CrossReferenceIndex, EntityStore
from .objective import ObjectiveSense
from .schema import (
    AffExpr,
    ConstraintRef,
    InfOptParameter,
    RefKind,
    VariableRef,
)
from .settings import MeasureDefaults, ModelSettings
from . import constraints as _constraints
from . import measures as _measures
from . import objective as _objective
from . import parameters as _parameters
from . import variables as _variables
from .variables import variable_kind
from .cascade import DeletionCascade

logger = logging.getLogger(__name__)

_MODEL_IDS = itertools.count(1)

# Kinds of variable-info constraints
INFO_KINDS = ("lower", "upper", "fix", "binary", "integer")

Ref = Union[VariableRef, ConstraintRef]


class InfiniteModel:
    """
    Model graph for infinite-dimensional optimization.

    Not safe for concurrent mutation; callers sharing a model across threads
    must serialize access.
    """

    def __init__(self, settings: Optional[ModelSettings] = None):
        self.model_id = next(_MODEL_IDS)
        self.settings = settings or ModelSettings()

        # Entity stores
        self.parameters: EntityStore = EntityStore("parameter")
        self.variables: EntityStore = EntityStore("variable")
        self.reduced_variables: EntityStore = EntityStore("reduced variable")
        self.measures: EntityStore = EntityStore("measure")
        self.constraints: EntityStore = EntityStore("constraint")

        # Parameter groups
        self.param_group_ids: Dict[int, int] = {}
        self._next_group_id = 0

        # Variable info constraints: kind -> variable index -> constraint index
        self.info_constraints: Dict[str, Dict[int, int]] = {kind: {} for kind in INFO_KINDS}
        self.constr_in_var_info: Dict[int, bool] = {}

        self.xrefs = CrossReferenceIndex()
        self.has_hold_bounds = False

        # Objective
        self.objective_sense = ObjectiveSense.FEASIBILITY
        self.objective_function = AffExpr()

        self.ready_to_optimize = False
        self.ext: Dict[str, Any] = {}

    def __repr__(self) -> str:
        return (f"InfiniteModel(id={self.model_id}, parameters={len(self.parameters)}, "
                f"variables={len(self.variables)}, measures={len(self.measures)}, "
                f"constraints={len(self.constraints)})")

    # =========================================================================
    # Validity
    # =========================================================================

    def store_for(self, kind: RefKind) -> EntityStore:
        if kind == RefKind.PARAMETER:
            return self.parameters
        if kind == RefKind.MEASURE:
            return self.measures
        if kind == RefKind.REDUCED:
            return self.reduced_variables
        return self.variables

    def is_valid(self, ref: Ref) -> bool:
        """Check that ref belongs to this model and is live."""
        if ref.model_id != self.model_id:
            return False
        if isinstance(ref, ConstraintRef):
            return ref.index in self.constraints
        store = self.store_for(ref.kind)
        if ref.index not in store:
            return False
        if ref.is_decision_variable:
            return variable_kind(store.get(ref.index)) == ref.kind
        return True

    def check_valid(self, ref: Ref, *kinds: RefKind):
        """
        Raise InvalidReference unless ref is live in this model.

        If kinds are given, ref must also be of one of them.
        """
        if not isinstance(ref, (VariableRef, ConstraintRef)):
            raise InvalidReference(f"Expected a model reference, got {ref!r}", ref)
        if not self.is_valid(ref):
            raise InvalidReference(f"{ref!r} does not belong to model {self.model_id}.", ref)
        # Constraint and variable kinds share string values
        if kinds and (not isinstance(ref, VariableRef) or ref.kind not in kinds):
            expected = ", ".join(k.value for k in kinds)
            raise InvalidReference(f"Expected a {expected} reference, got {ref!r}.", ref)

    def make_variable_ref(self, index: int, kind: RefKind) -> VariableRef:
        return VariableRef(self.model_id, index, kind)

    def new_group_id(self) -> int:
        self._next_group_id += 1
        return self._next_group_id

    def set_optimizer_model_ready(self, ready: bool):
        self.ready_to_optimize = ready

    # =========================================================================
    # Add
    # =========================================================================

    def add_parameter(self, param: InfOptParameter, name: str = "",
                      group_id: Optional[int] = None) -> VariableRef:
        return _parameters.add_parameter(self, param, name, group_id)

    def add_parameters(self, set, count: int, name: str = "",
                       supports=(), independent: bool = False) -> List[VariableRef]:
        return _parameters.add_parameters(self, set, count, name, supports, independent)

    def add_variable(self, variable, name: str = "") -> VariableRef:
        return _variables.add_variable(self, variable, name)

    def add_reduced_variable(self, ivref: VariableRef, eval_supports: Dict[int, Any]) -> VariableRef:
        return _variables.add_reduced_variable(self, ivref, eval_supports)

    def add_measure(self, measure) -> VariableRef:
        return _measures.add_measure(self, measure)

    def add_constraint(self, constraint, name: str = "") -> ConstraintRef:
        return _constraints.add_constraint(self, constraint, name)

    # =========================================================================
    # Delete
    # =========================================================================

    def delete(self, ref: Ref) -> DeletionCascade:
        """Delete an entity and cascade to its dependents."""
        cascade = DeletionCascade(self)
        cascade.delete(ref)
        return cascade

    # =========================================================================
    # Names
    # =========================================================================

    def name(self, ref: Ref) -> str:
        self.check_valid(ref)
        if isinstance(ref, ConstraintRef):
            return self.constraints.names.name(ref.index)
        if ref.kind == RefKind.REDUCED:
            return _variables.reduced_name(self, ref)
        return self.store_for(ref.kind).names.name(ref.index)

    def set_name(self, ref: Ref, name: str):
        self.check_valid(ref)
        if isinstance(ref, ConstraintRef):
            self.constraints.names.set_name(ref.index, name)
        elif ref.kind == RefKind.REDUCED:
            raise InfOptError("Reduced variable names are derived from their infinite variable.")
        elif ref.is_decision_variable:
            _variables.set_variable_name(self, ref, name)
        else:
            self.store_for(ref.kind).names.set_name(ref.index, name)

    def parameter_by_name(self, name: str) -> Optional[VariableRef]:
        index = self.parameters.names.find(name)
        return None if index is None else self.make_variable_ref(index, RefKind.PARAMETER)

    def variable_by_name(self, name: str) -> Optional[VariableRef]:
        """Variable carrying name; None if none, AmbiguousName if several."""
        index = self.variables.names.find(name)
        if index is None:
            return None
        return self.make_variable_ref(index, variable_kind(self.variables.get(index)))

    def measure_by_name(self, name: str) -> Optional[VariableRef]:
        index = self.measures.names.find(name)
        return None if index is None else self.make_variable_ref(index, RefKind.MEASURE)

    def constraint_by_name(self, name: str) -> Optional[ConstraintRef]:
        index = self.constraints.names.find(name)
        return None if index is None else _constraints.constraint_ref(self, index)

    # =========================================================================
    # Iteration (sorted by index)
    # =========================================================================

    def all_parameters(self) -> List[VariableRef]:
        return [self.make_variable_ref(i, RefKind.PARAMETER) for i in self.parameters.indices()]

    def all_variables(self) -> List[VariableRef]:
        return [self.make_variable_ref(i, variable_kind(v)) for i, v in self.variables.items()]

    def all_measures(self) -> List[VariableRef]:
        return [self.make_variable_ref(i, RefKind.MEASURE) for i in self.measures.indices()]

    def all_constraints(self, kind=None, set_type=None) -> List[ConstraintRef]:
        return _constraints.all_constraints(self, kind, set_type)

    def num_parameters(self) -> int:
        return len(self.parameters)

    def num_variables(self) -> int:
        return len(self.variables)

    def num_measures(self) -> int:
        return len(self.measures)

    def num_constraints(self, kind=None, set_type=None) -> int:
        return _constraints.num_constraints(self, kind, set_type)

    # =========================================================================
    # Objective
    # =========================================================================

    def set_objective(self, sense: ObjectiveSense, func):
        _objective.set_objective(self, sense, func)

    # =========================================================================
    # Settings
    # =========================================================================

    def integral_defaults(self) -> Dict[str, Any]:
        return self.settings.measure_defaults.model_dump()

    def set_integral_defaults(self, **kwargs):
        """Update integral defaults; invalid values leave them unchanged."""
        current = self.settings.measure_defaults.model_dump()
        current.update(kwargs)
        self.settings.measure_defaults = MeasureDefaults(**current)

    # =========================================================================
    # Re-home
    # =========================================================================

    def transfer_from(self, source: "InfiniteModel") -> Dict[Ref, Ref]:
        """Copy every entity of source into this model with fresh indices."""
        from .transfer import transfer_entities
        return transfer_entities(source, self)
