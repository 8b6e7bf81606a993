"""
Objective of an InfiniteModel.

The objective must be finite: it may reference hold variables, point
variables and measures, never parameters or infinite/reduced variables.
Referenced variables and measures carry an in_objective flag in their store.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING

from .errors import InvalidExpression
from .schema.expressions import Expression, all_function_variables, copy_function
from .schema.refs import INFINITE_KINDS, RefKind

if TYPE_CHECKING:
    from .model import InfiniteModel

logger = logging.getLogger(__name__)


class ObjectiveSense(str, Enum):
    MIN = "min"
    MAX = "max"
    FEASIBILITY = "feasibility"


def _set_objective_flags(model: "InfiniteModel", func: Expression, value: bool):
    for vref in all_function_variables(func):
        store = model.store_for(vref.kind)
        if vref.index in store:
            store.in_objective[vref.index] = value


def set_objective(model: "InfiniteModel", sense: ObjectiveSense, func: Expression):
    """
    Set objective sense and function.

    Raises:
        InvalidReference: If func references entities of another model
        InvalidExpression: If func depends on infinite parameters
    """
    sense = ObjectiveSense(sense)
    refs = all_function_variables(func)
    for vref in refs:
        model.check_valid(vref)
        if vref.kind in INFINITE_KINDS:
            raise InvalidExpression(
                "Objective must be finite; use a measure to reduce infinite terms."
            )
    _set_objective_flags(model, model.objective_function, False)
    model.objective_sense = sense
    model.objective_function = copy_function(func)
    _set_objective_flags(model, model.objective_function, True)
    model.ready_to_optimize = False
    logger.debug(f"Objective set ({sense.value}) with {len(refs)} references")


def set_objective_function(model: "InfiniteModel", func: Expression):
    set_objective(model, model.objective_sense, func)


def set_objective_sense(model: "InfiniteModel", sense: ObjectiveSense):
    model.objective_sense = ObjectiveSense(sense)
    model.ready_to_optimize = False


def objective_function(model: "InfiniteModel") -> Expression:
    return copy_function(model.objective_function)


def objective_sense(model: "InfiniteModel") -> ObjectiveSense:
    return model.objective_sense


def used_by_objective(model: "InfiniteModel", vref) -> bool:
    model.check_valid(vref, RefKind.INFINITE, RefKind.POINT, RefKind.HOLD, RefKind.MEASURE)
    return model.store_for(vref.kind).in_objective.get(vref.index, False)
