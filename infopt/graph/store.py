"""
Entity store: index -> immutable payload for one entity kind.

Indices are assigned as next_index + 1 and never reused. Payloads are never
mutated in place; changing an entity replaces its payload at the same index.
Removing a record does not touch cross-references; the deletion cascade
unlinks those first.
"""

import logging
from typing import Dict, Generic, Iterator, List, Tuple, TypeVar

from ..errors import NotFound
from .names import NameRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EntityStore(Generic[T]):
    """Records of one entity kind plus their per-entity auxiliary maps."""

    def __init__(self, kind: str):
        self.kind = kind
        self._records: Dict[int, T] = {}
        self._next_index = 0
        self.names = NameRegistry(kind)
        self.in_objective: Dict[int, bool] = {}

    @property
    def next_index(self) -> int:
        """Last index handed out."""
        return self._next_index

    def add(self, payload: T, name: str = "") -> int:
        self._next_index += 1
        index = self._next_index
        self._records[index] = payload
        self.in_objective[index] = False
        self.names.set_name(index, name)
        logger.debug(f"Added {self.kind} {index}")
        return index

    def get(self, index: int) -> T:
        try:
            return self._records[index]
        except KeyError:
            raise NotFound(f"No {self.kind} with index {index}.") from None

    def __contains__(self, index: int) -> bool:
        return index in self._records

    def __len__(self) -> int:
        return len(self._records)

    def replace(self, index: int, payload: T):
        if index not in self._records:
            raise NotFound(f"No {self.kind} with index {index}.")
        self._records[index] = payload

    def remove(self, index: int) -> T:
        payload = self.get(index)
        del self._records[index]
        self.in_objective.pop(index, None)
        self.names.remove(index)
        logger.debug(f"Removed {self.kind} {index}")
        return payload

    def indices(self) -> List[int]:
        return sorted(self._records)

    def items(self) -> Iterator[Tuple[int, T]]:
        for index in sorted(self._records):
            yield index, self._records[index]
