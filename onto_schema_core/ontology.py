"""Read-only ontology arena built from an rdflib graph.

The loaded graph is flattened once into plain frozen dataclasses addressed
by their RDF node (``URIRef`` for named terms, ``BNode`` for anonymous
class expressions and restrictions). Nothing in this package mutates the
model after :meth:`OntologyModel.from_graph` returns, so it can be shared
between emitters without locking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Set, Tuple, Union

from rdflib import BNode, Graph, Literal, Namespace, OWL, RDF, RDFS, URIRef
from rdflib.collection import Collection
from rdflib.term import Node
from rdflib.util import guess_format

logger = logging.getLogger(__name__)

VS = Namespace("http://www.w3.org/2003/06/sw-vocab-status/ns#")

CLASS_TYPES = (OWL.Class, RDFS.Class)
PROPERTY_TYPES = (
    OWL.ObjectProperty,
    OWL.DatatypeProperty,
    OWL.AnnotationProperty,
    OWL.FunctionalProperty,
    RDF.Property,
)
# Never structural bases or enumeration owners
TRIVIAL_CLASSES: FrozenSet[URIRef] = frozenset({
    OWL.Thing,
    OWL.NamedIndividual,
    RDFS.Resource,
    RDFS.Class,
    RDFS.Container,
    OWL.Class,
})


def local_name(uri: Union[str, URIRef]) -> str:
    """Return the fragment or last path segment of ``uri``."""
    text = str(uri)
    for separator in ("#", "/", ":"):
        if separator in text:
            candidate = text.rsplit(separator, 1)[1]
            if candidate:
                return candidate
    return text


def namespace_of(uri: Union[str, URIRef]) -> str:
    """Return ``uri`` without its local name (separator kept)."""
    text = str(uri)
    return text[: len(text) - len(local_name(text))]


@dataclass(frozen=True)
class Individual:
    """Named instance of a class; only used to model enumeration members."""

    uri: URIRef
    local_name: str
    comment: Optional[str] = None
    types: Tuple[URIRef, ...] = ()


@dataclass(frozen=True)
class OntologyClass:
    """Named OWL class and its direct superclass edges."""

    uri: URIRef
    local_name: str
    label: Optional[str] = None
    comment: Optional[str] = None
    superclasses: Tuple[Node, ...] = ()
    union_of: Tuple[Node, ...] = ()
    intersection_of: Tuple[Node, ...] = ()
    one_of: Tuple[URIRef, ...] = ()
    individuals: Tuple[Individual, ...] = ()
    deprecated: bool = False

    @property
    def is_enumeration(self) -> bool:
        return bool(self.individuals)

    @property
    def named_superclasses(self) -> Tuple[URIRef, ...]:
        return tuple(sc for sc in self.superclasses if isinstance(sc, URIRef))


@dataclass(frozen=True)
class ClassExpression:
    """Anonymous union or intersection over other class nodes."""

    node: Node
    kind: str  # "union" or "intersection"
    operands: Tuple[Node, ...] = ()


@dataclass(frozen=True)
class Restriction:
    """An ``owl:Restriction`` attached to a class through a superclass edge."""

    node: Node
    on_property: URIRef
    value_type: Optional[URIRef] = None
    cardinality: Optional[int] = None
    min_cardinality: Optional[int] = None
    max_cardinality: Optional[int] = None
    has_value: Optional[URIRef] = None

    @property
    def has_cardinality(self) -> bool:
        return any(
            value is not None
            for value in (self.cardinality, self.min_cardinality, self.max_cardinality)
        )


@dataclass(frozen=True)
class OntologyProperty:
    """Object, datatype or annotation property."""

    uri: URIRef
    local_name: str
    label: Optional[str] = None
    comment: Optional[str] = None
    ranges: Tuple[URIRef, ...] = ()
    domains: Tuple[URIRef, ...] = ()
    kind: str = "property"
    deprecated: bool = False


ClassNode = Union[OntologyClass, ClassExpression, Restriction]


@dataclass
class OntologyModel:
    """Immutable arena of the ontology's classes, properties and restrictions."""

    graph: Graph
    ontology_uri: Optional[URIRef] = None
    ontology_label: Optional[str] = None
    ontology_comment: Optional[str] = None
    classes: Dict[URIRef, OntologyClass] = field(default_factory=dict)
    expressions: Dict[Node, ClassExpression] = field(default_factory=dict)
    restrictions: Dict[Node, Restriction] = field(default_factory=dict)
    properties: Dict[URIRef, OntologyProperty] = field(default_factory=dict)
    individuals: Dict[URIRef, Individual] = field(default_factory=dict)
    prefixes: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Union[str, Path], rdf_format: Optional[str] = None) -> "OntologyModel":
        """Parse an ontology document and build the arena.

        Args:
            path: Path to the ontology document
            rdf_format: rdflib parser name; guessed from the extension when omitted

        Returns:
            Loaded OntologyModel
        """
        path = Path(path)
        rdf_format = rdf_format or guess_format(str(path)) or "xml"
        graph = Graph()
        logger.info(f"Parsing ontology {path} as {rdf_format}")
        graph.parse(str(path), format=rdf_format)
        return cls.from_graph(graph)

    @classmethod
    def from_graph(cls, graph: Graph) -> "OntologyModel":
        """Flatten an rdflib graph into the arena."""
        model = cls(graph=graph)
        model.prefixes = {prefix: str(ns) for prefix, ns in graph.namespaces() if prefix}
        model._read_ontology_header()
        model._read_restrictions()
        model._read_expressions()
        model._read_properties()
        model._read_classes()
        logger.info(
            f"Loaded ontology with {len(model.classes)} classes, "
            f"{len(model.properties)} properties, {len(model.restrictions)} restrictions"
        )
        return model

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def node(self, node: Node) -> Optional[ClassNode]:
        """Return the arena entry for a class node, if any."""
        if node in self.restrictions:
            return self.restrictions[node]
        if node in self.expressions:
            return self.expressions[node]
        return self.classes.get(node)

    def get_class(self, uri: URIRef) -> Optional[OntologyClass]:
        return self.classes.get(uri)

    def get_property(self, uri: URIRef) -> Optional[OntologyProperty]:
        return self.properties.get(uri)

    def find_class(self, name: str, namespace: Optional[str] = None) -> Optional[OntologyClass]:
        """Locate a class by full URI or by local name.

        A local name is first looked up in ``namespace`` (or the ontology
        namespace) and then across all classes; an ambiguous local name
        yields ``None``.
        """
        uri = URIRef(name)
        if uri in self.classes:
            return self.classes[uri]
        for ns in (namespace, self.default_namespace):
            if ns and URIRef(ns + name) in self.classes:
                return self.classes[URIRef(ns + name)]
        matches = [c for c in self.classes.values() if c.local_name == name]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            logger.warning(f"Class name {name} is ambiguous: {[str(m.uri) for m in matches]}")
        return None

    @property
    def default_namespace(self) -> Optional[str]:
        if self.ontology_uri is None:
            return None
        text = str(self.ontology_uri)
        return text if text.endswith(("#", "/")) else text + "#"

    def superclass_closure(self, uri: URIRef) -> Set[URIRef]:
        """All named superclasses of ``uri`` (transitive, excluding itself)."""
        superclasses: Set[URIRef] = set()
        to_process = {uri}
        processed: Set[URIRef] = set()

        while to_process:
            current = to_process.pop()
            if current in processed:
                continue
            processed.add(current)
            ontology_class = self.classes.get(current)
            if ontology_class is None:
                continue
            for sup in ontology_class.named_superclasses:
                if sup not in processed:
                    superclasses.add(sup)
                    to_process.add(sup)

        superclasses.discard(uri)
        return superclasses

    def properties_with_domain(self, uri: URIRef) -> List[OntologyProperty]:
        return [p for p in self.properties.values() if uri in p.domains]

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _literal(self, subject: Node, predicate: URIRef) -> Optional[str]:
        values = [o for o in self.graph.objects(subject, predicate) if isinstance(o, Literal)]
        if not values:
            return None
        # Prefer untagged or English literals, then lexical order for stability
        values.sort(key=lambda lit: (lit.language not in (None, "en"), str(lit)))
        return str(values[0])

    def _int(self, subject: Node, *predicates: URIRef) -> Optional[int]:
        for predicate in predicates:
            value = self.graph.value(subject, predicate)
            if isinstance(value, Literal):
                try:
                    return int(value.toPython())
                except (TypeError, ValueError):
                    logger.warning(f"Ignoring non-integer cardinality {value!r} on {subject}")
        return None

    def _list(self, head: Optional[Node]) -> Tuple[Node, ...]:
        if head is None:
            return ()
        return tuple(Collection(self.graph, head))

    def _deprecated(self, subject: Node) -> bool:
        flag = self.graph.value(subject, OWL.deprecated)
        if isinstance(flag, Literal) and flag.toPython() in (True, "true"):
            return True
        status = self.graph.value(subject, VS.term_status)
        return isinstance(status, Literal) and str(status).lower() == "deprecated"

    def _read_ontology_header(self) -> None:
        ontologies = sorted(
            (s for s in self.graph.subjects(RDF.type, OWL.Ontology) if isinstance(s, URIRef)),
            key=str,
        )
        if len(ontologies) > 1:
            logger.warning(f"Multiple ontology declarations, using {ontologies[0]}")
        if ontologies:
            self.ontology_uri = ontologies[0]
            self.ontology_label = self._literal(ontologies[0], RDFS.label)
            self.ontology_comment = self._literal(ontologies[0], RDFS.comment)

    def _read_restrictions(self) -> None:
        for node in set(self.graph.subjects(RDF.type, OWL.Restriction)) | set(
            self.graph.subjects(OWL.onProperty, None)
        ):
            on_property = self.graph.value(node, OWL.onProperty)
            if not isinstance(on_property, URIRef):
                logger.debug(f"Skipping restriction {node} without a named property")
                continue
            value_type = None
            for predicate in (OWL.onClass, OWL.onDataRange, OWL.allValuesFrom, OWL.someValuesFrom):
                candidate = self.graph.value(node, predicate)
                if isinstance(candidate, URIRef):
                    value_type = candidate
                    break
            has_value = self.graph.value(node, OWL.hasValue)
            self.restrictions[node] = Restriction(
                node=node,
                on_property=on_property,
                value_type=value_type,
                cardinality=self._int(node, OWL.qualifiedCardinality, OWL.cardinality),
                min_cardinality=self._int(node, OWL.minQualifiedCardinality, OWL.minCardinality),
                max_cardinality=self._int(node, OWL.maxQualifiedCardinality, OWL.maxCardinality),
                has_value=has_value if isinstance(has_value, URIRef) else None,
            )

    def _read_expressions(self) -> None:
        for predicate, kind in ((OWL.unionOf, "union"), (OWL.intersectionOf, "intersection")):
            for node, head in self.graph.subject_objects(predicate):
                if isinstance(node, BNode) and node not in self.restrictions:
                    self.expressions[node] = ClassExpression(
                        node=node, kind=kind, operands=self._list(head)
                    )

    def _read_properties(self) -> None:
        uris: Set[URIRef] = set()
        for property_type in PROPERTY_TYPES:
            uris.update(s for s in self.graph.subjects(RDF.type, property_type) if isinstance(s, URIRef))
        uris.update(r.on_property for r in self.restrictions.values())
        for uri in sorted(uris, key=str):
            kinds = set(self.graph.objects(uri, RDF.type))
            if OWL.ObjectProperty in kinds:
                kind = "object"
            elif OWL.DatatypeProperty in kinds:
                kind = "datatype"
            elif OWL.AnnotationProperty in kinds:
                kind = "annotation"
            else:
                kind = "property"
            self.properties[uri] = OntologyProperty(
                uri=uri,
                local_name=local_name(uri),
                label=self._literal(uri, RDFS.label),
                comment=self._literal(uri, RDFS.comment),
                ranges=tuple(sorted(
                    (r for r in self.graph.objects(uri, RDFS.range) if isinstance(r, URIRef)), key=str
                )),
                domains=tuple(sorted(
                    (d for d in self.graph.objects(uri, RDFS.domain) if isinstance(d, URIRef)), key=str
                )),
                kind=kind,
                deprecated=self._deprecated(uri),
            )

    def _class_uris(self) -> Set[URIRef]:
        uris: Set[URIRef] = set()
        for class_type in CLASS_TYPES:
            uris.update(s for s in self.graph.subjects(RDF.type, class_type) if isinstance(s, URIRef))
        for s, o in self.graph.subject_objects(RDFS.subClassOf):
            uris.update(n for n in (s, o) if isinstance(n, URIRef))
        for restriction in self.restrictions.values():
            if restriction.value_type is not None and not _is_datatype(restriction.value_type):
                uris.add(restriction.value_type)
        for expression in self.expressions.values():
            uris.update(n for n in expression.operands if isinstance(n, URIRef))
        for ontology_property in self.properties.values():
            uris.update(r for r in ontology_property.ranges if not _is_datatype(r))
        return {u for u in uris if u not in TRIVIAL_CLASSES}

    def _one_of(self, uri: URIRef) -> Tuple[URIRef, ...]:
        heads = list(self.graph.objects(uri, OWL.oneOf))
        for equivalent in self.graph.objects(uri, OWL.equivalentClass):
            if isinstance(equivalent, BNode):
                heads.extend(self.graph.objects(equivalent, OWL.oneOf))
        members: List[URIRef] = []
        for head in heads:
            members.extend(n for n in self._list(head) if isinstance(n, URIRef) and n not in members)
        return tuple(members)

    def _read_classes(self) -> None:
        for uri in sorted(self._class_uris(), key=str):
            superclasses = list(self.graph.objects(uri, RDFS.subClassOf))
            superclasses.extend(
                eq for eq in self.graph.objects(uri, OWL.equivalentClass)
                if isinstance(eq, BNode) and (eq in self.restrictions or eq in self.expressions)
            )
            superclasses = [sc for sc in superclasses if sc != uri and sc not in TRIVIAL_CLASSES]
            superclasses.sort(key=lambda n: (isinstance(n, URIRef), str(n)))

            one_of = self._one_of(uri)
            members = list(one_of)
            typed = sorted(
                (s for s in self.graph.subjects(RDF.type, uri) if isinstance(s, URIRef)), key=str
            )
            members.extend(s for s in typed if s not in members)
            individuals = tuple(self._individual(member) for member in members)

            self.classes[uri] = OntologyClass(
                uri=uri,
                local_name=local_name(uri),
                label=self._literal(uri, RDFS.label),
                comment=self._literal(uri, RDFS.comment),
                superclasses=tuple(superclasses),
                union_of=self._list(self.graph.value(uri, OWL.unionOf)),
                intersection_of=self._list(self.graph.value(uri, OWL.intersectionOf)),
                one_of=one_of,
                individuals=individuals,
                deprecated=self._deprecated(uri),
            )

    def _individual(self, uri: URIRef) -> Individual:
        if uri not in self.individuals:
            self.individuals[uri] = Individual(
                uri=uri,
                local_name=local_name(uri),
                comment=self._literal(uri, RDFS.comment),
                types=tuple(sorted(
                    (t for t in self.graph.objects(uri, RDF.type)
                     if isinstance(t, URIRef) and t not in TRIVIAL_CLASSES),
                    key=str,
                )),
            )
        return self.individuals[uri]

    def individual(self, uri: URIRef) -> Optional[Individual]:
        """Look up a named individual, including ones outside any enumeration class."""
        if uri in self.individuals:
            return self.individuals[uri]
        types = [t for t in self.graph.objects(uri, RDF.type) if isinstance(t, URIRef)]
        if not types:
            return None
        return Individual(
            uri=uri,
            local_name=local_name(uri),
            comment=self._literal(uri, RDFS.comment),
            types=tuple(sorted((t for t in types if t not in TRIVIAL_CLASSES), key=str)),
        )


def _is_datatype(uri: URIRef) -> bool:
    return str(uri).startswith(("http://www.w3.org/2001/XMLSchema#", str(RDFS.Literal)))

