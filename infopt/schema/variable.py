"""
Variable payloads.

Three variants share one VariableInfo shape:
- InfiniteVariable: depends on an ordered tuple of parameter slots
- PointVariable: an infinite variable evaluated at fixed values
- HoldVariable: finite variable with optional sub-domain bounds

ReducedInfo describes the internal partial evaluation of an infinite variable.
"""

import math
import numbers
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..errors import InvalidExpression, InvalidVariableInfo, ShapeMismatch
from .bounds import ParameterBounds
from .refs import VariableRef


# =============================================================================
# Variable Info
# =============================================================================

@dataclass(frozen=True)
class VariableInfo:
    """
    Numeric information common to every variable variant.

    At most one of {fixed value, lower/upper bounds} may be active, and
    binary/integer are mutually exclusive.
    """

    has_lower_bound: bool = False
    lower_bound: float = 0.0
    has_upper_bound: bool = False
    upper_bound: float = 0.0
    has_fix: bool = False
    fixed_value: float = 0.0
    has_start: bool = False
    start: float = math.nan
    binary: bool = False
    integer: bool = False

    def __post_init__(self):
        if self.has_fix and (self.has_lower_bound or self.has_upper_bound):
            raise InvalidVariableInfo("A variable cannot be both fixed and bounded.")
        if self.binary and self.integer:
            raise InvalidVariableInfo("A variable cannot be both binary and integer.")
        if (self.has_lower_bound and self.has_upper_bound
                and self.lower_bound > self.upper_bound):
            raise InvalidVariableInfo(
                f"Lower bound ({self.lower_bound}) exceeds upper bound ({self.upper_bound})."
            )

    @classmethod
    def create(cls,
               lower: Optional[float] = None,
               upper: Optional[float] = None,
               fix: Optional[float] = None,
               start: Optional[float] = None,
               binary: bool = False,
               integer: bool = False) -> "VariableInfo":
        """Build info from optional values."""
        return cls(
            has_lower_bound=lower is not None,
            lower_bound=float(lower) if lower is not None else 0.0,
            has_upper_bound=upper is not None,
            upper_bound=float(upper) if upper is not None else 0.0,
            has_fix=fix is not None,
            fixed_value=float(fix) if fix is not None else 0.0,
            has_start=start is not None,
            start=float(start) if start is not None else math.nan,
            binary=binary,
            integer=integer,
        )

    def update(self, **changes) -> "VariableInfo":
        return replace(self, **changes)


# =============================================================================
# Parameter Tuple
# =============================================================================

ParameterValues = Tuple[Union[float, Tuple[float, ...]], ...]


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (tuple, list, np.ndarray))


class ParameterTuple:
    """
    Ordered parameter slots of an infinite variable.

    Each slot is either a single parameter reference or an array of
    references (a vector parameter). Indexing returns the slot as given:
    a reference or a tuple of references.
    """

    def __init__(self, slots: Union[VariableRef, Sequence[Any]]):
        if isinstance(slots, VariableRef):
            slots = (slots,)
        normalized: List[Tuple[VariableRef, ...]] = []
        arrays: List[bool] = []
        for slot in slots:
            if isinstance(slot, VariableRef):
                normalized.append((slot,))
                arrays.append(False)
            elif _is_sequence(slot):
                refs = tuple(np.asarray(slot, dtype=object).ravel())
                if not refs:
                    raise ShapeMismatch("Parameter slots cannot be empty arrays.")
                for ref in refs:
                    if not isinstance(ref, VariableRef):
                        raise InvalidExpression(f"Expected parameter references, got {ref!r}")
                normalized.append(refs)
                arrays.append(True)
            else:
                raise InvalidExpression(f"Expected parameter references, got {slot!r}")
        self._slots: Tuple[Tuple[VariableRef, ...], ...] = tuple(normalized)
        self._arrays: Tuple[bool, ...] = tuple(arrays)

    @classmethod
    def _from_parts(cls, slots, arrays) -> "ParameterTuple":
        new = cls(())
        new._slots = tuple(slots)
        new._arrays = tuple(arrays)
        return new

    def __len__(self) -> int:
        return len(self._slots)

    def __getitem__(self, i: int) -> Union[VariableRef, Tuple[VariableRef, ...]]:
        return self._slots[i] if self._arrays[i] else self._slots[i][0]

    def __iter__(self) -> Iterator[Union[VariableRef, Tuple[VariableRef, ...]]]:
        for i in range(len(self)):
            yield self[i]

    def slot(self, i: int) -> Tuple[VariableRef, ...]:
        return self._slots[i]

    def is_array(self, i: int) -> bool:
        return self._arrays[i]

    def parameters(self) -> List[VariableRef]:
        """All parameter references, flattened in slot order."""
        return [ref for slot in self._slots for ref in slot]

    def __contains__(self, ref) -> bool:
        return any(ref in slot for slot in self._slots)

    def append(self, slot: Union[VariableRef, Sequence[VariableRef]]) -> "ParameterTuple":
        extra = ParameterTuple((slot,))
        return ParameterTuple._from_parts(self._slots + extra._slots,
                                          self._arrays + extra._arrays)

    def without_slots(self, indices) -> "ParameterTuple":
        keep = [i for i in range(len(self)) if i not in set(indices)]
        return ParameterTuple._from_parts([self._slots[i] for i in keep],
                                          [self._arrays[i] for i in keep])

    def map(self, mapping) -> "ParameterTuple":
        return ParameterTuple._from_parts(
            [tuple(mapping(ref) for ref in slot) for slot in self._slots],
            self._arrays,
        )

    def normalize_values(self, values: Any) -> ParameterValues:
        """
        Check values against the slot shape and return them as nested floats.

        Raises:
            ShapeMismatch: If nesting or lengths differ from the slots
        """
        if not _is_sequence(values):
            values = (values,)
        if len(values) != len(self._slots):
            raise ShapeMismatch(
                f"Expected {len(self._slots)} parameter values, got {len(values)}."
            )
        normalized: List[Union[float, Tuple[float, ...]]] = []
        for i, value in enumerate(values):
            if self._arrays[i]:
                if not _is_sequence(value):
                    raise ShapeMismatch(f"Slot {i} expects an array of {len(self._slots[i])} values.")
                arr = np.asarray(value, dtype=float).ravel()
                if arr.size != len(self._slots[i]):
                    raise ShapeMismatch(
                        f"Slot {i} expects {len(self._slots[i])} values, got {arr.size}."
                    )
                normalized.append(tuple(float(v) for v in arr))
            else:
                if not isinstance(value, numbers.Real):
                    raise ShapeMismatch(f"Slot {i} expects a single value, got {value!r}.")
                normalized.append(float(value))
        return tuple(normalized)

    def pair_values(self, values: ParameterValues) -> List[Tuple[VariableRef, float]]:
        """(parameter, value) pairs for normalized values."""
        pairs = []
        for i, value in enumerate(values):
            if self._arrays[i]:
                pairs.extend(zip(self._slots[i], value))
            else:
                pairs.append((self._slots[i][0], value))
        return pairs

    def __eq__(self, other):
        if not isinstance(other, ParameterTuple):
            return NotImplemented
        return self._slots == other._slots and self._arrays == other._arrays

    def __hash__(self):
        return hash((self._slots, self._arrays))

    def __repr__(self) -> str:
        return f"ParameterTuple({list(self)!r})"


# =============================================================================
# Variable Variants
# =============================================================================

@dataclass(frozen=True)
class InfiniteVariable:
    """Variable indexed by one or more infinite parameters."""

    parameter_refs: ParameterTuple
    info: VariableInfo = field(default_factory=VariableInfo)

    def __post_init__(self):
        if not isinstance(self.parameter_refs, ParameterTuple):
            object.__setattr__(self, "parameter_refs", ParameterTuple(self.parameter_refs))


@dataclass(frozen=True)
class PointVariable:
    """An infinite variable evaluated at concrete parameter values."""

    infinite_variable_ref: VariableRef
    parameter_values: Any
    info: VariableInfo = field(default_factory=VariableInfo)


@dataclass(frozen=True)
class HoldVariable:
    """Finite variable, optionally restricted to a parameter sub-domain."""

    info: VariableInfo = field(default_factory=VariableInfo)
    parameter_bounds: ParameterBounds = field(default_factory=ParameterBounds)

    def __post_init__(self):
        if not isinstance(self.parameter_bounds, ParameterBounds):
            object.__setattr__(self, "parameter_bounds", ParameterBounds(self.parameter_bounds))


InfOptVariable = Union[InfiniteVariable, PointVariable, HoldVariable]


@dataclass(frozen=True)
class ReducedInfo:
    """Infinite variable with some parameter slots fixed to support values."""

    infinite_variable_ref: VariableRef
    eval_supports: Dict[int, Any]
