"""
Tests for schema payloads.

Tests cover:
- IntervalSet / DistributionSet domains
- ParameterBounds construction, equality and copies
- Support de-duplication on InfOptParameter
- VariableInfo consistency rules
- ParameterTuple slots and value normalization
- Measure data shape checks
- Constraint construction
"""

import math

import numpy as np
import pytest
from scipy import stats

from infopt.errors import DisjointBounds, InvalidVariableInfo, ShapeMismatch
from infopt.schema import (
    AffExpr,
    BoundedScalarConstraint,
    DiscreteMeasureData,
    DistributionSet,
    InfOptParameter,
    IntervalSet,
    LessThan,
    MultiDiscreteMeasureData,
    ParameterBounds,
    ParameterTuple,
    RefKind,
    ScalarConstraint,
    VariableInfo,
    VariableRef,
    build_constraint,
    supports_in_set,
)
from infopt.schema.constraint import EqualTo, GreaterThan, Interval
from infopt.schema.parameter import unique_supports


def make_param_ref(index):
    """Helper to create a parameter reference without a model."""
    return VariableRef(1, index, RefKind.PARAMETER)


# =============================================================================
# Sets
# =============================================================================

class TestIntervalSet:
    """Tests for IntervalSet."""

    def test_invalid_order(self):
        """Should reject lower > upper."""
        with pytest.raises(ValueError, match="Invalid interval"):
            IntervalSet(2, 1)

    def test_subset_and_contains(self):
        """Should compare against other domains by their bounds."""
        domain = IntervalSet(0, 10)
        assert IntervalSet(0, 2).is_subset_of(domain)
        assert not IntervalSet(3, 12).is_subset_of(domain)
        assert domain.contains(10)
        assert not domain.contains(-0.1)

    def test_infinite_bounds(self):
        """Should report missing finite bounds."""
        half = IntervalSet(0, math.inf)
        assert half.has_lower_bound()
        assert not half.has_upper_bound()

    def test_intersect(self):
        """Should return the overlap."""
        assert IntervalSet(0, 5).intersect(IntervalSet(3, 8)) == IntervalSet(3, 5)

    def test_intersect_disjoint(self):
        """Should raise DisjointBounds for non-overlapping intervals."""
        with pytest.raises(DisjointBounds):
            IntervalSet(0, 1).intersect(IntervalSet(2, 3))

    def test_point(self):
        """Should render single points with an equals sign."""
        assert IntervalSet(1, 1).is_point()
        assert str(IntervalSet(1, 1)) == "= 1"
        assert str(IntervalSet(0, 2)) == "∈ [0, 2]"


class TestDistributionSet:
    """Tests for DistributionSet."""

    def test_bounds_from_support(self):
        """Should take bounds from the distribution support."""
        domain = DistributionSet(stats.uniform(0, 2))
        assert domain.lower_bound == 0.0
        assert domain.upper_bound == 2.0
        assert domain.contains(1.5)

    def test_unbounded_distribution(self):
        """Should report infinite support of a normal distribution."""
        domain = DistributionSet(stats.norm(0, 1))
        assert not domain.has_lower_bound()
        assert not domain.has_upper_bound()

    def test_requires_distribution(self):
        """Should reject objects without a support method."""
        with pytest.raises(TypeError):
            DistributionSet([0, 1])

    def test_requires_frozen_distribution(self):
        """Should reject unfrozen distributions and look-alike objects."""
        class Lookalike:
            def support(self):
                return (0.0, 1.0)

        with pytest.raises(TypeError):
            DistributionSet(stats.norm)
        with pytest.raises(TypeError):
            DistributionSet(Lookalike())

    def test_supports_in_set(self):
        """Should check every value against the domain bounds."""
        domain = DistributionSet(stats.uniform(0, 2))
        assert supports_in_set([0.0, 0.5, 2.0], domain)
        assert not supports_in_set(np.array([0.5, 2.5]), domain)
        assert supports_in_set([], domain)


# =============================================================================
# ParameterBounds
# =============================================================================

class TestParameterBounds:
    """Tests for ParameterBounds."""

    def test_pairs_become_intervals(self):
        """Should convert (lower, upper) pairs to IntervalSet."""
        t = make_param_ref(1)
        bounds = ParameterBounds({t: (0, 2)})
        assert bounds[t] == IntervalSet(0, 2)

    def test_array_key_exploded(self):
        """Should give each parameter of an array key its own entry."""
        x1, x2 = make_param_ref(2), make_param_ref(3)
        bounds = ParameterBounds({(x1, x2): (0, 1)})

        assert len(bounds) == 2
        assert bounds == ParameterBounds({x1: IntervalSet(0, 1), x2: IntervalSet(0, 1)})

    def test_equality_ignores_order(self):
        """Should compare as plain mappings."""
        t, s = make_param_ref(1), make_param_ref(2)
        a = ParameterBounds({t: (0, 1), s: (2, 3)})
        b = ParameterBounds({s: (2, 3), t: (0, 1)})

        assert a == b
        assert hash(a) == hash(b)
        assert a != ParameterBounds({t: (0, 1)})

    def test_copies_leave_original(self):
        """Should return new bounds from with_bound / without."""
        t, s = make_param_ref(1), make_param_ref(2)
        bounds = ParameterBounds({t: (0, 1)})

        added = bounds.with_bound(s, (2, 3))
        assert s in added
        assert s not in bounds
        assert added.without(t) == ParameterBounds({s: (2, 3)})

    def test_empty_is_falsy(self):
        """Should be falsy when empty."""
        assert not ParameterBounds()

    def test_format(self):
        """Should render name and interval per parameter."""
        t = make_param_ref(1)
        bounds = ParameterBounds({t: (0, 2)})
        assert bounds.format(lambda ref: "t") == "t ∈ [0, 2]"

    def test_invalid_value(self):
        """Should reject values that are not intervals."""
        with pytest.raises(TypeError):
            ParameterBounds({make_param_ref(1): 3.0})


# =============================================================================
# Parameters and Variables
# =============================================================================

class TestInfOptParameter:
    """Tests for support handling on parameters."""

    def test_supports_sorted_unique(self):
        """Should sort supports and collapse values equal after rounding."""
        assert unique_supports([3, 1, 1.0000000000001, 2]) == (1.0, 2.0, 3.0)

    def test_payload_normalizes_supports(self):
        """Should normalize supports given at construction."""
        param = InfOptParameter(IntervalSet(0, 1), supports=(1, 0, 1))
        assert param.supports == (0.0, 1.0)

    def test_with_added_supports(self):
        """Should merge into a new payload."""
        param = InfOptParameter(IntervalSet(0, 1), supports=(0.5,))
        merged = param.with_added_supports([0.25, 0.5])

        assert merged.supports == (0.25, 0.5)
        assert param.supports == (0.5,)


class TestVariableInfo:
    """Tests for VariableInfo."""

    def test_create(self):
        """Should set flags for given values."""
        info = VariableInfo.create(lower=0, upper=1, start=0.5)
        assert info.has_lower_bound and info.has_upper_bound
        assert info.has_start and info.start == 0.5
        assert not info.has_fix

    def test_default_start_is_nan(self):
        """Should leave start unset."""
        assert math.isnan(VariableInfo().start)

    def test_fixed_and_bounded(self):
        """Should reject fixed together with bounds."""
        with pytest.raises(InvalidVariableInfo, match="fixed and bounded"):
            VariableInfo.create(lower=0, fix=1)

    def test_binary_and_integer(self):
        """Should reject binary together with integer."""
        with pytest.raises(InvalidVariableInfo):
            VariableInfo.create(binary=True, integer=True)

    def test_crossed_bounds(self):
        """Should reject lower > upper."""
        with pytest.raises(InvalidVariableInfo):
            VariableInfo.create(lower=2, upper=1)


class TestParameterTuple:
    """Tests for ParameterTuple."""

    def test_single_reference(self):
        """Should wrap a bare reference into one slot."""
        t = make_param_ref(1)
        prefs = ParameterTuple(t)
        assert len(prefs) == 1
        assert prefs[0] == t
        assert not prefs.is_array(0)

    def test_array_slot(self):
        """Should keep array slots as tuples."""
        t, x1, x2 = make_param_ref(1), make_param_ref(2), make_param_ref(3)
        prefs = ParameterTuple([t, [x1, x2]])

        assert prefs[1] == (x1, x2)
        assert prefs.is_array(1)
        assert prefs.parameters() == [t, x1, x2]
        assert x2 in prefs

    def test_normalize_values(self):
        """Should return nested floats matching the slot shape."""
        t, x1, x2 = make_param_ref(1), make_param_ref(2), make_param_ref(3)
        prefs = ParameterTuple([t, (x1, x2)])

        values = prefs.normalize_values((0.5, [0, 1]))
        assert values == (0.5, (0.0, 1.0))
        assert prefs.pair_values(values) == [(t, 0.5), (x1, 0.0), (x2, 1.0)]

    @pytest.mark.parametrize("values", [
        (0.5,),
        (0.5, [0, 1, 2]),
        ([0.5], [0, 1]),
        (0.5, 1.0),
    ])
    def test_shape_mismatch(self, values):
        """Should reject values not matching the slot shape."""
        t, x1, x2 = make_param_ref(1), make_param_ref(2), make_param_ref(3)
        prefs = ParameterTuple([t, (x1, x2)])
        with pytest.raises(ShapeMismatch):
            prefs.normalize_values(values)

    def test_append_and_without(self):
        """Should return new tuples for added / removed slots."""
        t, s = make_param_ref(1), make_param_ref(2)
        prefs = ParameterTuple(t)
        extended = prefs.append(s)

        assert len(extended) == 2
        assert len(prefs) == 1
        assert extended.without_slots([0]) == ParameterTuple(s)


# =============================================================================
# Measure Data
# =============================================================================

class TestMeasureData:
    """Tests for measure data shape checks."""

    def test_discrete_shapes(self):
        """Should require one coefficient per support."""
        t = make_param_ref(1)
        data = DiscreteMeasureData(t, [0.5, 0.5], [0, 1])
        assert data.parameter_refs == (t,)
        np.testing.assert_allclose(data.support_values()[t], [0.0, 1.0])

        with pytest.raises(ShapeMismatch):
            DiscreteMeasureData(t, [0.5, 0.5], [0, 1, 2])

    def test_multi_shapes(self):
        """Should require one support row per parameter."""
        x1, x2 = make_param_ref(2), make_param_ref(3)
        data = MultiDiscreteMeasureData((x1, x2), [1, 1], [[0, 1], [0.5, 0.5]])
        np.testing.assert_allclose(data.support_values()[x2], [0.5, 0.5])

        with pytest.raises(ShapeMismatch):
            MultiDiscreteMeasureData((x1, x2), [1, 1], [[0, 1], [0, 1], [0, 1]])
        with pytest.raises(ShapeMismatch):
            MultiDiscreteMeasureData((x1, x2), [1, 1, 1], [[0, 1], [0, 1]])

    def test_remap(self):
        """Should rebuild data with mapped parameters."""
        t, s = make_param_ref(1), make_param_ref(2)
        data = DiscreteMeasureData(t, [1.0], [0.5], name="expect")
        remapped = data.remap(lambda ref: s)
        assert remapped.parameter_ref == s
        assert remapped.name == "expect"


# =============================================================================
# Constraints
# =============================================================================

class TestBuildConstraint:
    """Tests for build_constraint."""

    def test_constant_moved_to_set(self):
        """Should store 2x + 3 <= 5 as 2x <= 2."""
        x = VariableRef(1, 1, RefKind.HOLD)
        constraint = build_constraint(2 * x + 3, LessThan(5))

        assert isinstance(constraint, ScalarConstraint)
        assert constraint.func == AffExpr({x: 2.0})
        assert constraint.set == LessThan(2.0)

    def test_bounded(self):
        """Should keep given bounds as both effective and original bounds."""
        x = VariableRef(1, 1, RefKind.HOLD)
        t = make_param_ref(1)
        constraint = build_constraint(x, GreaterThan(0), {t: (0, 1)})

        assert isinstance(constraint, BoundedScalarConstraint)
        assert constraint.bounds == constraint.orig_bounds == ParameterBounds({t: (0, 1)})

    def test_set_shift(self):
        """Should shift every scalar set by the offset."""
        assert EqualTo(1).shift(2) == EqualTo(3)
        assert Interval(0, 1).shift(-1) == Interval(-1, 0)
        with pytest.raises(ValueError):
            Interval(1, 0)
