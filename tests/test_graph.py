"""
Tests for graph bookkeeping: EntityStore, Relation / CrossReferenceIndex,
NameRegistry.

Tests cover:
- Monotonic indices that are never reused
- Payload replacement at a stable index
- Relation link de-duplication and key removal on empty
- Lazy name index with ambiguity sentinel
"""

import pytest

from infopt.errors import AmbiguousName, NotFound
from infopt.graph import AMBIGUOUS, CrossReferenceIndex, EntityStore, NameRegistry, Relation


# =============================================================================
# EntityStore
# =============================================================================

class TestEntityStore:
    """Tests for EntityStore."""

    def test_add_assigns_increasing_indices(self):
        """Should hand out next_index + 1."""
        store = EntityStore("variable")
        assert store.add("a") == 1
        assert store.add("b") == 2
        assert store.next_index == 2

    def test_indices_never_reused(self):
        """Should not reuse an index after removal."""
        store = EntityStore("variable")
        first = store.add("a")
        second = store.add("b")
        store.remove(second)
        third = store.add("c")

        assert third == 3
        assert first in store
        assert second not in store

    def test_get_missing_raises_not_found(self):
        """Should raise NotFound for absent index."""
        store = EntityStore("measure")
        with pytest.raises(NotFound, match="No measure with index 4"):
            store.get(4)

    def test_replace_keeps_index(self):
        """Should replace payload without changing the index."""
        store = EntityStore("variable")
        index = store.add("old", name="x")
        store.replace(index, "new")

        assert store.get(index) == "new"
        assert store.names.name(index) == "x"
        assert store.indices() == [index]

    def test_replace_missing_raises(self):
        """Should refuse to replace an absent record."""
        store = EntityStore("variable")
        with pytest.raises(NotFound):
            store.replace(1, "x")

    def test_remove_purges_auxiliary_maps(self):
        """Should drop name and objective flag with the record."""
        store = EntityStore("variable")
        index = store.add("a", name="x")
        store.in_objective[index] = True
        store.remove(index)

        assert index not in store.in_objective
        assert store.names.name(index) == ""
        assert store.names.find("x") is None

    def test_items_sorted(self):
        """Should iterate in index order."""
        store = EntityStore("constraint")
        for payload in ["a", "b", "c"]:
            store.add(payload)
        store.remove(2)

        assert list(store.items()) == [(1, "a"), (3, "c")]
        assert len(store) == 2


# =============================================================================
# Relation
# =============================================================================

class TestRelation:
    """Tests for Relation."""

    def test_link_deduplicates(self):
        """Should not append a dependent twice."""
        rel = Relation("var_to_constrs")
        assert rel.link(1, 10)
        assert not rel.link(1, 10)
        assert rel.dependents(1) == [10]

    def test_unlink_removes_empty_key(self):
        """Should delete the owner key when its list empties."""
        rel = Relation("var_to_constrs")
        rel.link(1, 10)
        rel.link(1, 11)

        rel.unlink(1, 10)
        assert rel.has(1)
        rel.unlink(1, 11)
        assert not rel.has(1)
        assert rel.owners() == []

    def test_unlink_missing_pair(self):
        """Should report False for a pair that was never linked."""
        rel = Relation("var_to_meas")
        assert not rel.unlink(3, 4)

    def test_dependents_is_snapshot(self):
        """Should return a copy safe to iterate while mutating."""
        rel = Relation("infinite_to_points")
        rel.link(1, 2)
        rel.link(1, 3)

        for dependent in rel.dependents(1):
            rel.unlink(1, dependent)
        assert not rel.has(1)

    def test_dependents_absent_owner(self):
        """Should return an empty list for unknown owners."""
        assert Relation("x").dependents(99) == []

    def test_discard_owner(self):
        """Should drop an owner with all of its dependents."""
        rel = Relation("meas_to_constrs")
        rel.link(5, 1)
        rel.link(5, 2)
        assert rel.discard_owner(5) == [1, 2]
        assert not rel.has(5)


class TestCrossReferenceIndex:
    """Tests for CrossReferenceIndex."""

    def test_all_relations_present(self):
        """Should expose every named relation."""
        xrefs = CrossReferenceIndex()
        for name in CrossReferenceIndex.RELATIONS:
            assert isinstance(getattr(xrefs, name), Relation)
        assert len(xrefs.all_relations()) == len(CrossReferenceIndex.RELATIONS)

    def test_unknown_relation(self):
        """Should list available relations for unknown names."""
        xrefs = CrossReferenceIndex()
        with pytest.raises(AttributeError, match="Available"):
            xrefs.relation("var_to_objective")


# =============================================================================
# NameRegistry
# =============================================================================

class TestNameRegistry:
    """Tests for NameRegistry."""

    def test_not_built_until_lookup(self):
        """Should build lazily on first lookup."""
        names = NameRegistry("variable")
        names.set_name(1, "x")
        assert not names.is_built

        assert names.lookup("x") == 1
        assert names.is_built

    def test_rename_invalidates(self):
        """Should drop the cached map on every rename."""
        names = NameRegistry("variable")
        names.set_name(1, "x")
        names.lookup("x")

        names.set_name(1, "y")
        assert not names.is_built
        assert names.find("x") is None
        assert names.lookup("y") == 1

    def test_empty_registry_builds_empty_map(self):
        """Should distinguish built-empty from not built."""
        names = NameRegistry("constraint")
        assert names.find("c") is None
        assert names.is_built

    def test_ambiguous_name(self):
        """Should mark shared names ambiguous."""
        names = NameRegistry("variable")
        names.set_name(1, "x")
        names.set_name(2, "x")

        with pytest.raises(AmbiguousName, match="Multiple variables"):
            names.lookup("x")
        assert names._lookup["x"] == AMBIGUOUS

    def test_ambiguity_resolves_after_rename(self):
        """Should return the remaining holder once the clash is renamed away."""
        names = NameRegistry("variable")
        names.set_name(1, "x")
        names.set_name(2, "x")
        names.set_name(1, "z")

        assert names.lookup("x") == 2

    def test_lookup_missing(self):
        """Should raise NotFound for unknown names."""
        names = NameRegistry("parameter")
        with pytest.raises(NotFound, match="No parameter named 'q'"):
            names.lookup("q")
