"""
Cross-reference index: the dependency graph between entities.

Each Relation maps an owner index to the list of indices that depend on it.
A missing key means "no dependents"; unlink drops the key as soon as its
list empties, so used-by checks are a single key test.
"""

import logging
from typing import Dict, Iterator, List, Tuple

logger = logging.getLogger(__name__)


class Relation:
    """One owner -> dependents adjacency map."""

    def __init__(self, name: str):
        self.name = name
        self._map: Dict[int, List[int]] = {}

    def link(self, owner: int, dependent: int) -> bool:
        """Add dependent under owner; returns False if already linked."""
        dependents = self._map.setdefault(owner, [])
        if dependent in dependents:
            return False
        dependents.append(dependent)
        return True

    def unlink(self, owner: int, dependent: int) -> bool:
        """Remove dependent from owner; returns False if not linked."""
        dependents = self._map.get(owner)
        if dependents is None or dependent not in dependents:
            return False
        dependents.remove(dependent)
        if not dependents:
            del self._map[owner]
        return True

    def dependents(self, owner: int) -> List[int]:
        """Snapshot of owner's dependents (empty if none)."""
        return list(self._map.get(owner, ()))

    def has(self, owner: int) -> bool:
        return owner in self._map

    def contains(self, owner: int, dependent: int) -> bool:
        return dependent in self._map.get(owner, ())

    def discard_owner(self, owner: int) -> List[int]:
        return self._map.pop(owner, [])

    def owners(self) -> List[int]:
        return list(self._map)

    def items(self) -> Iterator[Tuple[int, List[int]]]:
        for owner, dependents in self._map.items():
            yield owner, list(dependents)

    def __len__(self) -> int:
        return len(self._map)

    def __repr__(self) -> str:
        return f"Relation({self.name!r}, {self._map!r})"


class CrossReferenceIndex:
    """
    All relations of a model, by name.

    Parameter owners: param_to_vars, param_to_meas, param_to_constrs
    Variable owners: var_to_meas, var_to_constrs, infinite_to_points,
        infinite_to_reduced
    Measure owners: meas_to_meas, meas_to_constrs
    Constraint owners: constr_to_meas
    Reduced variable owners: reduced_to_meas, reduced_to_constrs
    """

    RELATIONS = (
        "param_to_vars",
        "param_to_meas",
        "param_to_constrs",
        "var_to_meas",
        "var_to_constrs",
        "infinite_to_points",
        "infinite_to_reduced",
        "meas_to_meas",
        "meas_to_constrs",
        "constr_to_meas",
        "reduced_to_meas",
        "reduced_to_constrs",
    )

    def __init__(self):
        self._relations: Dict[str, Relation] = {name: Relation(name) for name in self.RELATIONS}

    def __getattr__(self, name: str) -> Relation:
        relations = self.__dict__.get("_relations", {})
        if name in relations:
            return relations[name]
        raise AttributeError(f"No relation {name!r}. Available: {list(self.RELATIONS)}")

    def relation(self, name: str) -> Relation:
        return getattr(self, name)

    def all_relations(self) -> List[Relation]:
        return list(self._relations.values())
