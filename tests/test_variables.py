"""
Tests for variable operations.

Tests cover:
- Infinite variable parameter tuple validation and naming
- Point variable value checks, naming and info inheritance
- Reduced variables
- Parameter tuple mutation
"""

import pytest

from infopt import (
    BoundViolation,
    DependencyConflict,
    DuplicateGroup,
    HoldVariable,
    InfiniteModel,
    InfiniteVariable,
    InfOptError,
    InfOptParameter,
    IntervalSet,
    InvalidReference,
    ParameterTuple,
    PointVariable,
    RefKind,
    ShapeMismatch,
    VariableInfo,
    VariableRef,
)
from infopt import variable_info, variables


def make_model():
    """Helper to create a model with t in [0, 10] and x in [0, 1]^2."""
    model = InfiniteModel()
    t = model.add_parameter(InfOptParameter(IntervalSet(0, 10)), name="t")
    x = model.add_parameters(IntervalSet(0, 1), 2, name="x")
    return model, t, x


class TestInfiniteVariable:
    """Tests for infinite variables."""

    def test_name_from_parameters(self):
        """Should build the name from the parameter names."""
        model, t, x = make_model()
        g = model.add_variable(InfiniteVariable(ParameterTuple(t)), name="g")
        h = model.add_variable(InfiniteVariable(ParameterTuple([t, x])), name="h")

        assert model.name(g) == "g(t)"
        assert model.name(h) == "h(t, x)"
        assert g.kind == RefKind.INFINITE

    def test_noname(self):
        """Should fall back to noname for an empty root."""
        model, t, _ = make_model()
        g = model.add_variable(InfiniteVariable(ParameterTuple(t)))
        assert model.name(g) == "noname(t)"

    def test_rename_keeps_parameters(self):
        """Should strip a given parameter list and rebuild it."""
        model, t, _ = make_model()
        g = model.add_variable(InfiniteVariable(ParameterTuple(t)), name="g")
        model.set_name(g, "q(whatever)")
        assert model.name(g) == "q(t)"

    def test_links_parameters(self):
        """Should link every parameter to the variable."""
        model, t, x = make_model()
        h = model.add_variable(InfiniteVariable(ParameterTuple([t, x])), name="h")
        for pref in [t, *x]:
            assert model.xrefs.param_to_vars.dependents(pref.index) == [h.index]

    def test_group_specified_twice(self):
        """Should reject a parameter group appearing in two slots."""
        model, t, _ = make_model()
        with pytest.raises(DuplicateGroup, match="double specify"):
            model.add_variable(InfiniteVariable(ParameterTuple([t, t])))
        assert model.num_variables() == 0

    def test_vector_split_across_slots(self):
        """Should reject vector parameter elements given as separate slots."""
        model, _, x = make_model()
        with pytest.raises(DuplicateGroup):
            model.add_variable(InfiniteVariable(ParameterTuple([x[0], x[1]])))

    def test_slot_mixes_groups(self):
        """Should reject an array slot spanning groups."""
        model, t, x = make_model()
        with pytest.raises(DuplicateGroup, match="mixes"):
            model.add_variable(InfiniteVariable(ParameterTuple([(t, x[0])])))

    def test_slot_repeats_parameter(self):
        """Should reject the same parameter twice in one slot."""
        model, _, x = make_model()
        with pytest.raises(DuplicateGroup, match="repeats"):
            model.add_variable(InfiniteVariable(ParameterTuple([(x[0], x[0])])))

    def test_foreign_parameter(self):
        """Should reject parameters of another model."""
        model, _, _ = make_model()
        _, other_t, _ = make_model()
        with pytest.raises(InvalidReference):
            model.add_variable(InfiniteVariable(ParameterTuple(other_t)))
        assert model.num_variables() == 0

    def test_non_parameter_slot(self):
        """Should reject variables in a parameter slot."""
        model, t, _ = make_model()
        hold = model.add_variable(HoldVariable(), name="z")
        with pytest.raises(InvalidReference):
            model.add_variable(InfiniteVariable(ParameterTuple(hold)))


class TestPointVariable:
    """Tests for point variables."""

    def test_default_name(self):
        """Should name the point after its values."""
        model, t, x = make_model()
        g = model.add_variable(InfiniteVariable(ParameterTuple(t)), name="g")
        h = model.add_variable(InfiniteVariable(ParameterTuple([t, x])), name="h")

        g5 = model.add_variable(PointVariable(g, 5.0))
        hp = model.add_variable(PointVariable(h, (0.5, [0, 1])))

        assert model.name(g5) == "g(5)"
        assert model.name(hp) == "h(0.5, [0, 1])"
        assert variables.parameter_values(model, hp) == (0.5, (0.0, 1.0))
        assert variables.infinite_variable_ref(model, hp) == h

    def test_given_name(self):
        """Should keep an explicit name."""
        model, t, _ = make_model()
        g = model.add_variable(InfiniteVariable(ParameterTuple(t)), name="g")
        g0 = model.add_variable(PointVariable(g, 0.0), name="g_start")
        assert model.name(g0) == "g_start"

    def test_value_outside_domain(self):
        """Should reject values outside the parameter domain."""
        model, t, _ = make_model()
        g = model.add_variable(InfiniteVariable(ParameterTuple(t)), name="g")
        with pytest.raises(BoundViolation):
            model.add_variable(PointVariable(g, 11.0))
        assert model.num_variables() == 1

    def test_wrong_shape(self):
        """Should reject values not matching the parameter tuple."""
        model, t, x = make_model()
        h = model.add_variable(InfiniteVariable(ParameterTuple([t, x])), name="h")
        with pytest.raises(ShapeMismatch):
            model.add_variable(PointVariable(h, (0.5, [0, 1, 1])))
        with pytest.raises(ShapeMismatch):
            model.add_variable(PointVariable(h, 0.5))

    def test_parent_must_be_infinite(self):
        """Should reject a hold variable as parent."""
        model, _, _ = make_model()
        z = model.add_variable(HoldVariable(), name="z")
        with pytest.raises(InvalidReference):
            model.add_variable(PointVariable(z, 1.0))

    def test_inherits_parent_info(self):
        """Should copy unset bounds and start from the parent once."""
        model, t, _ = make_model()
        info = VariableInfo.create(lower=0, upper=4, start=1)
        g = model.add_variable(InfiniteVariable(ParameterTuple(t), info), name="g")
        g5 = model.add_variable(PointVariable(g, 5.0, VariableInfo.create(upper=2)))

        assert variable_info.lower_bound(model, g5) == 0.0
        assert variable_info.upper_bound(model, g5) == 2.0
        assert variable_info.start_value(model, g5) == 1.0
        assert variable_info.has_lower_bound(model, g5)

        variable_info.set_lower_bound(model, g, -1)
        assert variable_info.lower_bound(model, g5) == 0.0

    def test_fixed_point_skips_parent_bounds(self):
        """Should not add parent bounds to a fixed point variable."""
        model, t, _ = make_model()
        g = model.add_variable(
            InfiniteVariable(ParameterTuple(t), VariableInfo.create(lower=0)), name="g"
        )
        g5 = model.add_variable(PointVariable(g, 5.0, VariableInfo.create(fix=3)))

        assert variable_info.is_fixed(model, g5)
        assert not variable_info.has_lower_bound(model, g5)

    def test_links_parent(self):
        """Should record the point under its infinite variable."""
        model, t, _ = make_model()
        g = model.add_variable(InfiniteVariable(ParameterTuple(t)), name="g")
        g5 = model.add_variable(PointVariable(g, 5.0))
        assert variables.used_by_point_variable(model, g)
        assert model.xrefs.infinite_to_points.dependents(g.index) == [g5.index]


class TestHoldVariable:
    """Tests for hold variables."""

    def test_plain(self):
        """Should add an unbounded hold variable."""
        model, _, _ = make_model()
        z = model.add_variable(HoldVariable(), name="z")
        assert z.kind == RefKind.HOLD
        assert not variables.has_parameter_bounds(model, z)
        assert not model.has_hold_bounds

    def test_bounded(self):
        """Should store bounds and flag the model."""
        model, t, _ = make_model()
        z = model.add_variable(HoldVariable(parameter_bounds={t: (0, 2)}), name="z")
        assert variables.parameter_bounds(model, z)[t] == IntervalSet(0, 2)
        assert model.has_hold_bounds

    def test_variable_object(self):
        """Should return the stored payload of decision variables only."""
        model, t, _ = make_model()
        z = model.add_variable(HoldVariable(VariableInfo.create(upper=3)), name="z")
        var = variables.variable_object(model, z)
        assert isinstance(var, HoldVariable)
        assert var.info.upper_bound == 3.0
        with pytest.raises(InvalidReference):
            variables.variable_object(model, t)

    def test_kind_must_match(self):
        """Should reject a reference whose kind does not match the payload."""
        model, _, _ = make_model()
        z = model.add_variable(HoldVariable(), name="z")
        wrong = VariableRef(model.model_id, z.index, RefKind.INFINITE)
        assert not model.is_valid(wrong)
        with pytest.raises(InvalidReference):
            model.name(wrong)


class TestReducedVariable:
    """Tests for reduced variables."""

    def test_add_reduced(self):
        """Should drop evaluated slots from the parameter list."""
        model, t, x = make_model()
        h = model.add_variable(InfiniteVariable(ParameterTuple([t, x])), name="h")
        r = model.add_reduced_variable(h, {1: [0, 1]})

        assert r.kind == RefKind.REDUCED
        assert model.name(r) == "h(t, [0, 1])"
        assert variables.parameter_list(model, r) == [t]
        assert variables.eval_supports(model, r) == {1: (0.0, 1.0)}
        assert variables.infinite_variable_ref(model, r) == h
        assert variables.used_by_reduced_variable(model, h)

    def test_bad_slot(self):
        """Should reject slot indices outside the tuple."""
        model, t, _ = make_model()
        g = model.add_variable(InfiniteVariable(ParameterTuple(t)), name="g")
        with pytest.raises(ShapeMismatch):
            model.add_reduced_variable(g, {2: 0.5})

    def test_value_outside_domain(self):
        """Should reject evaluation values outside the domain."""
        model, t, _ = make_model()
        g = model.add_variable(InfiniteVariable(ParameterTuple(t)), name="g")
        with pytest.raises(BoundViolation):
            model.add_reduced_variable(g, {0: 20})
        assert len(model.reduced_variables) == 0

    def test_reduced_name_fixed(self):
        """Should refuse to rename a reduced variable."""
        model, t, x = make_model()
        h = model.add_variable(InfiniteVariable(ParameterTuple([t, x])), name="h")
        r = model.add_reduced_variable(h, {0: 1})
        with pytest.raises(InfOptError):
            model.set_name(r, "r")


class TestParameterRefMutation:
    """Tests for changing an infinite variable's parameters."""

    def test_set_parameter_refs(self):
        """Should relink parameters and rebuild the name."""
        model, t, x = make_model()
        g = model.add_variable(InfiniteVariable(ParameterTuple(t)), name="g")
        variables.set_parameter_refs(model, g, [x])

        assert model.name(g) == "g(x)"
        assert not model.xrefs.param_to_vars.has(t.index)
        assert model.xrefs.param_to_vars.dependents(x[0].index) == [g.index]

    def test_add_parameter_ref(self):
        """Should append a slot."""
        model, t, x = make_model()
        g = model.add_variable(InfiniteVariable(ParameterTuple(t)), name="g")
        variables.add_parameter_ref(model, g, x)

        assert model.name(g) == "g(t, x)"
        assert variables.parameter_list(model, g) == [t, *x]

    def test_blocked_by_point_variable(self):
        """Should refuse while point variables depend on the tuple."""
        model, t, x = make_model()
        g = model.add_variable(InfiniteVariable(ParameterTuple(t)), name="g")
        model.add_variable(PointVariable(g, 1.0))

        with pytest.raises(DependencyConflict):
            variables.set_parameter_refs(model, g, [x])
        assert variables.parameter_list(model, g) == [t]

    def test_invalid_tuple(self):
        """Should validate the new tuple like a new variable."""
        model, t, _ = make_model()
        g = model.add_variable(InfiniteVariable(ParameterTuple(t)), name="g")
        with pytest.raises(DuplicateGroup):
            variables.add_parameter_ref(model, g, t)
