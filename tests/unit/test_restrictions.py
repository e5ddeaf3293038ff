"""
Unit tests for the restriction collector.

Tests cover:
- Restrictions inherited through named superclasses
- Union and intersection expressions
- Cyclic subclass chains
- Direct versus inherited restrictions
- Class-independent lookup of restrictions on a property
"""

import pytest
from rdflib import URIRef

from onto_schema_core.restrictions import RestrictionCollector

TEST = "http://example.org/test#"


def uri(name: str) -> URIRef:
    return URIRef(TEST + name)


class TestCollect:
    """Test collect() over the lattice ontology."""

    @pytest.mark.unit
    def test_direct_restriction(self, lattice_model):
        """Test that a restriction on the class itself is collected."""
        found = RestrictionCollector(lattice_model).collect(uri("Base"), uri("id"))
        assert len(found) == 1
        assert next(iter(found)).cardinality == 1

    @pytest.mark.unit
    def test_inherited_through_superclass_chain(self, lattice_model):
        """Test that restrictions two levels up are collected."""
        collector = RestrictionCollector(lattice_model)
        assert len(collector.collect(uri("Leaf"), uri("id"))) == 1
        assert len(collector.collect(uri("Leaf"), uri("tag"))) == 1

    @pytest.mark.unit
    def test_union_operands_all_apply(self, lattice_model):
        """Test that every operand of a union contributes its restriction."""
        found = RestrictionCollector(lattice_model).collect(uri("Leaf"), uri("note"))
        assert sorted(r.max_cardinality for r in found) == [1, 3]

    @pytest.mark.unit
    def test_intersection_definition(self, lattice_model):
        """Test that a class defined by intersection collects from every operand."""
        collector = RestrictionCollector(lattice_model)
        assert len(collector.collect(uri("Combo"), uri("extra"))) == 1
        assert len(collector.collect(uri("Combo"), uri("id"))) == 1

    @pytest.mark.unit
    def test_cycle_terminates(self, lattice_model):
        """Test that a cyclic subclass chain terminates and still finds restrictions."""
        found = RestrictionCollector(lattice_model).collect(uri("Loop1"), uri("ring"))
        assert len(found) == 1

    @pytest.mark.unit
    def test_no_restrictions(self, lattice_model):
        """Test that a class without restrictions yields an empty set."""
        assert RestrictionCollector(lattice_model).collect(uri("Lonely"), uri("id")) == frozenset()

    @pytest.mark.unit
    def test_unknown_class(self, lattice_model):
        """Test that an unknown class yields an empty set."""
        assert RestrictionCollector(lattice_model).collect(uri("Nope"), uri("id")) == frozenset()

    @pytest.mark.unit
    def test_unrelated_property(self, lattice_model):
        """Test that restrictions on other properties are not collected."""
        assert RestrictionCollector(lattice_model).collect(uri("Base"), uri("tag")) == frozenset()


class TestRestrictedProperties:
    """Test restricted_properties() and direct flags."""

    @pytest.mark.unit
    def test_all_properties_sorted(self, lattice_model):
        """Test that inherited and union properties are listed by local name."""
        properties = RestrictionCollector(lattice_model).restricted_properties(uri("Leaf"))
        assert properties == [uri("id"), uri("note"), uri("tag")]

    @pytest.mark.unit
    def test_direct_only(self, lattice_model):
        """Test that direct_only drops restrictions reached through named superclasses."""
        properties = RestrictionCollector(lattice_model).restricted_properties(uri("Leaf"), direct_only=True)
        assert properties == [uri("note")]

    @pytest.mark.unit
    def test_direct_flags(self, lattice_model):
        """Test the direct flag on collect_all results."""
        items = RestrictionCollector(lattice_model).collect_all(uri("Middle"))
        flags = {item.restriction.on_property: item.direct for item in items}
        assert flags == {uri("tag"): True, uri("id"): False}


class TestReferring:
    """Test class-independent restriction lookup."""

    @pytest.mark.unit
    def test_referring(self, lattice_model):
        """Test that every restriction on a property is returned regardless of class."""
        referring = RestrictionCollector(lattice_model).referring(uri("note"))
        assert len(referring) == 2
        assert all(r.on_property == uri("note") for r in referring)
