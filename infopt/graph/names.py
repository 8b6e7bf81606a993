"""
Name registry with a lazily built reverse index.

Renames only invalidate the reverse map; it is rebuilt on the next lookup by
scanning the current names. A name shared by several entities maps to the
AMBIGUOUS sentinel and its lookup raises AmbiguousName.
"""

import logging
from typing import Dict, Optional

from ..errors import AmbiguousName, NotFound

logger = logging.getLogger(__name__)

AMBIGUOUS = -1


class NameRegistry:
    """Index -> name slots plus the cached name -> index map."""

    def __init__(self, kind: str):
        self.kind = kind
        self._names: Dict[int, str] = {}
        # None means "not built"; {} is a built map for a store without names
        self._lookup: Optional[Dict[str, int]] = None

    @property
    def is_built(self) -> bool:
        return self._lookup is not None

    def name(self, index: int) -> str:
        return self._names.get(index, "")

    def set_name(self, index: int, name: str):
        self._names[index] = name
        self._lookup = None

    def remove(self, index: int):
        if self._names.pop(index, None) is not None:
            self._lookup = None

    def invalidate(self):
        self._lookup = None

    def _build(self) -> Dict[str, int]:
        lookup: Dict[str, int] = {}
        for index in sorted(self._names):
            name = self._names[index]
            if name in lookup:
                lookup[name] = AMBIGUOUS
            else:
                lookup[name] = index
        logger.debug(f"Rebuilt {self.kind} name index ({len(lookup)} names)")
        return lookup

    def find(self, name: str) -> Optional[int]:
        """
        Index carrying name, or None.

        Raises:
            AmbiguousName: If more than one entity carries the name
        """
        if self._lookup is None:
            self._lookup = self._build()
        index = self._lookup.get(name)
        if index == AMBIGUOUS:
            raise AmbiguousName(
                f"Multiple {self.kind}s have the name {name!r}.", name
            )
        return index

    def lookup(self, name: str) -> int:
        """Index carrying name; raises NotFound / AmbiguousName."""
        index = self.find(name)
        if index is None:
            raise NotFound(f"No {self.kind} named {name!r}.")
        return index
