"""
Model graph bookkeeping.

- EntityStore: monotonic index -> payload records
- CrossReferenceIndex / Relation: dependency adjacency maps
- NameRegistry: lazily rebuilt name -> index lookup
"""

from .names import AMBIGUOUS, NameRegistry
from .store import EntityStore
from .xref import CrossReferenceIndex, Relation

__all__ = [
    "AMBIGUOUS",
    "NameRegistry",
    "EntityStore",
    "CrossReferenceIndex",
    "Relation",
]
