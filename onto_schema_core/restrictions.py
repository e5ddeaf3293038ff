"""Collect the restrictions that constrain a property for a given class.

Restrictions are rarely attached to the class that uses them. They sit on
superclasses, inside union or intersection expressions, or on restriction
nodes several levels up the lattice. The collector walks that lattice
depth-first with an explicit visited set so cyclic ``rdfs:subClassOf``
chains terminate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Set

from rdflib import URIRef
from rdflib.term import Node

from .ontology import ClassExpression, OntologyClass, OntologyModel, Restriction, local_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectedRestriction:
    """A restriction plus whether it was reached without crossing a named class."""

    restriction: Restriction
    direct: bool


class RestrictionCollector:
    """Walks the superclass/union/intersection lattice of a class."""

    def __init__(self, model: OntologyModel) -> None:
        self.model = model

    def collect(self, class_uri: URIRef, property_uri: URIRef) -> FrozenSet[Restriction]:
        """Return every restriction on ``property_uri`` that applies to ``class_uri``."""
        return frozenset(
            item.restriction
            for item in self.collect_all(class_uri)
            if item.restriction.on_property == property_uri
        )

    def collect_all(self, class_uri: URIRef) -> List[CollectedRestriction]:
        """Return every restriction in the lattice of ``class_uri``, in walk order."""
        found: List[CollectedRestriction] = []
        visited: Set[Node] = {class_uri}
        ontology_class = self.model.get_class(class_uri)
        if ontology_class is None:
            return found
        for child in self._children(ontology_class):
            self._visit(child, not isinstance(child, URIRef), visited, found)
        return found

    def restricted_properties(self, class_uri: URIRef, direct_only: bool = False) -> List[URIRef]:
        """Properties with at least one restriction in the lattice, sorted by local name.

        Args:
            class_uri: Class whose lattice is walked
            direct_only: Only keep restrictions reached without crossing a named superclass

        Returns:
            Property URIs ordered by local name, then URI
        """
        properties: Set[URIRef] = set()
        for item in self.collect_all(class_uri):
            if item.direct or not direct_only:
                properties.add(item.restriction.on_property)
        return sorted(properties, key=_property_sort_key)

    def referring(self, property_uri: URIRef) -> List[Restriction]:
        """All restrictions in the graph on ``property_uri`` regardless of class."""
        return sorted(
            (r for r in self.model.restrictions.values() if r.on_property == property_uri),
            key=lambda r: str(r.node),
        )

    def _children(self, entry) -> List[Node]:
        if isinstance(entry, ClassExpression):
            return list(entry.operands)
        if isinstance(entry, OntologyClass):
            return list(entry.superclasses) + list(entry.union_of) + list(entry.intersection_of)
        return []

    def _visit(
        self,
        node: Node,
        direct: bool,
        visited: Set[Node],
        found: List[CollectedRestriction],
    ) -> None:
        if node in visited:
            return
        visited.add(node)

        entry = self.model.node(node)
        if entry is None:
            logger.debug(f"Superclass node {node} is not a known class expression")
            return
        if isinstance(entry, Restriction):
            found.append(CollectedRestriction(entry, direct))
            return

        # Unions are existential: a restriction in any branch applies.
        # Intersections are conjunctive: every operand contributes on its own.
        for child in self._children(entry):
            self._visit(child, direct and not isinstance(child, URIRef), visited, found)


def _property_sort_key(uri: URIRef) -> tuple:
    return (local_name(uri), str(uri))
