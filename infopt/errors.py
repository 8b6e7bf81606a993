"""
Error taxonomy for the model graph.

Every write path validates before it mutates, so when any of these is raised
the model is left exactly as it was before the call. Each error also derives
from the nearest builtin so callers can catch ``LookupError`` / ``ValueError``.

- InvalidReference: handle belongs to another model or was deleted
- NotFound / AmbiguousName: name lookups
- BoundViolation / DisjointBounds: sub-domain bounds
- ShapeMismatch / DuplicateGroup: parameter tuples and point values
- DependencyConflict: change rejected because dependents exist
"""

from typing import Any, Optional


class InfOptError(Exception):
    """Base class for all model graph errors."""
    pass


class InvalidReference(InfOptError, LookupError):
    """Exception raised when a reference is not valid for the model it is used with."""

    def __init__(self, message: str, ref: Optional[Any] = None):
        self.ref = ref
        super().__init__(message)


class NotFound(InfOptError, LookupError):
    """No entity carries the requested name (or index)."""
    pass


class AmbiguousName(InfOptError, LookupError):
    """More than one entity carries the requested name."""

    def __init__(self, message: str, name: str):
        self.name = name
        super().__init__(message)


class BoundViolation(InfOptError, ValueError):
    """A value or interval lies outside a parameter's domain."""
    pass


class DisjointBounds(InfOptError, ValueError):
    """Intersecting two sub-domains produced an empty interval."""
    pass


class ShapeMismatch(InfOptError, ValueError):
    """Values do not match the shape of a parameter tuple."""
    pass


class DuplicateGroup(InfOptError, ValueError):
    """A parameter tuple repeats or mixes parameter groups."""
    pass


class DependencyConflict(InfOptError, RuntimeError):
    """A structural change was rejected because of existing state."""
    pass


class InvalidExpression(InfOptError, ValueError):
    """An expression is structurally unusable where it was given."""
    pass


class InvalidVariableInfo(InfOptError, ValueError):
    """VariableInfo combines incompatible settings."""
    pass
