"""Type and cardinality resolution for a (class, property) pair.

The resolver turns the restrictions collected for a property into a
:class:`PropertyProfile`: one resolved value type, a multiplicity, and a
required flag. Emitters never look at restrictions themselves; they only
render profiles.

Cardinality combination rules:

* the largest minimum, the smallest maximum and the largest absolute
  cardinality win when several restrictions apply;
* a property is list-valued when the absolute or maximum cardinality is
  above one, or when any minimum cardinality is stated at all (ontologies
  in this family only state a minimum on collection properties);
* a property is required when a minimum or absolute cardinality above zero
  is stated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from rdflib import RDF, RDFS, URIRef, XSD

from onto_schema_orchestrator.errors import (
    AmbiguousTypeError,
    MissingTypeError,
    UnknownDatatypeError,
)

from .enums import EnumInfo, EnumResolver
from .naming import TEXT_FALLBACK_PROPERTIES, collection_name, wire_name
from .ontology import OntologyClass, OntologyModel, OntologyProperty, Restriction, local_name
from .restrictions import RestrictionCollector

logger = logging.getLogger(__name__)

PRIMITIVE_KINDS = ("boolean", "integer", "number", "string")

XSD_KINDS: Dict[URIRef, str] = {
    XSD.boolean: "boolean",
    XSD.integer: "integer",
    XSD.int: "integer",
    XSD.long: "integer",
    XSD.short: "integer",
    XSD.byte: "integer",
    XSD.nonNegativeInteger: "integer",
    XSD.positiveInteger: "integer",
    XSD.nonPositiveInteger: "integer",
    XSD.negativeInteger: "integer",
    XSD.unsignedLong: "integer",
    XSD.unsignedInt: "integer",
    XSD.unsignedShort: "integer",
    XSD.unsignedByte: "integer",
    XSD.decimal: "number",
    XSD.float: "number",
    XSD.double: "number",
    XSD.string: "string",
    XSD.normalizedString: "string",
    XSD.token: "string",
    XSD.language: "string",
    XSD.Name: "string",
    XSD.NCName: "string",
    XSD.NMTOKEN: "string",
    XSD.anyURI: "string",
    XSD.dateTime: "string",
    XSD.dateTimeStamp: "string",
    XSD.date: "string",
    XSD.time: "string",
    XSD.duration: "string",
    XSD.gYear: "string",
    XSD.gYearMonth: "string",
    XSD.hexBinary: "string",
    XSD.base64Binary: "string",
    RDFS.Literal: "string",
    RDF.PlainLiteral: "string",
    RDF.langString: "string",
}

_DATATYPE_NAMESPACES = (str(XSD), str(RDF))


# ============================================================================
# Resolved types
# ============================================================================

@dataclass(frozen=True)
class PrimitiveType:
    kind: str
    datatype: URIRef = XSD.string


@dataclass(frozen=True)
class EnumType:
    """String enumeration; ``class_uri`` is ``None`` for property-scoped enums."""

    symbols: Tuple[str, ...]
    class_uri: Optional[URIRef] = None
    documentation: Tuple[Optional[str], ...] = field(default=(), compare=False)


@dataclass(frozen=True)
class ReferenceType:
    """Object identified by an opaque string (element id, license expression)."""

    class_uri: URIRef
    role: str


@dataclass(frozen=True)
class ObjectType:
    """Structural object expanded inline or referenced by its named type."""

    class_uri: URIRef


ResolvedType = Union[PrimitiveType, EnumType, ReferenceType, ObjectType]


@dataclass(frozen=True)
class Multiplicity:
    is_list: bool = False
    min_items: Optional[int] = None
    max_items: Optional[int] = None


SCALAR = Multiplicity()


@dataclass(frozen=True)
class PropertyProfile:
    """Everything an emitter needs to render one property of one class."""

    property: URIRef
    name: str
    resolved_type: ResolvedType
    required: bool = False
    multiplicity: Multiplicity = SCALAR
    description: Optional[str] = None
    deprecated: bool = False
    declared_locally: bool = True
    synthetic: bool = False
    collection_name: Optional[str] = None
    identifier: bool = False

    @property
    def is_list(self) -> bool:
        return self.multiplicity.is_list

    @property
    def enum_values(self) -> Tuple[str, ...]:
        if isinstance(self.resolved_type, EnumType):
            return self.resolved_type.symbols
        return ()

    @property
    def mandatory(self) -> bool:
        """Required and not deprecated; both emitters count presence by this flag."""
        return self.required and not self.deprecated

    @property
    def json_name(self) -> str:
        return self.collection_name or self.name

    @property
    def min_occurs(self) -> int:
        if not self.mandatory:
            return 0
        if self.is_list:
            return self.multiplicity.min_items or 1
        return 1

    @property
    def max_occurs(self) -> Optional[str]:
        if not self.is_list:
            return None
        if self.multiplicity.max_items is None:
            return "unbounded"
        return str(self.multiplicity.max_items)


@dataclass(frozen=True)
class ClassProfile:
    """A class in scope with its resolved properties sorted by local name."""

    ontology_class: OntologyClass
    properties: Tuple[PropertyProfile, ...] = ()
    bases: Tuple[URIRef, ...] = ()
    is_abstract: bool = False

    @property
    def uri(self) -> URIRef:
        return self.ontology_class.uri

    @property
    def name(self) -> str:
        return self.ontology_class.local_name

    @property
    def local_properties(self) -> Tuple[PropertyProfile, ...]:
        return tuple(p for p in self.properties if p.declared_locally)


@dataclass(frozen=True)
class PropertyUsage:
    """Class-independent view of how a property is restricted across the graph."""

    property: URIRef
    is_list: bool
    is_single: bool
    type_uri: Optional[URIRef] = None


# ============================================================================
# Resolution
# ============================================================================

def is_datatype(uri: URIRef) -> bool:
    return uri in XSD_KINDS or str(uri).startswith(_DATATYPE_NAMESPACES)


def combine_cardinalities(restrictions: Iterable[Restriction]) -> Tuple[Multiplicity, bool]:
    """Fold the cardinalities of several restrictions into (multiplicity, required)."""
    minimums: List[int] = []
    maximums: List[int] = []
    absolutes: List[int] = []
    for restriction in restrictions:
        if restriction.min_cardinality is not None:
            minimums.append(restriction.min_cardinality)
        if restriction.max_cardinality is not None:
            maximums.append(restriction.max_cardinality)
        if restriction.cardinality is not None:
            absolutes.append(restriction.cardinality)

    min_card = max(minimums) if minimums else None
    max_card = min(maximums) if maximums else None
    abs_card = max(absolutes) if absolutes else None

    required = (min_card or 0) > 0 or (abs_card or 0) > 0
    is_list = (abs_card or 0) > 1 or (max_card or 0) > 1 or bool(minimums)
    if not is_list:
        return SCALAR, required
    if abs_card is not None:
        return Multiplicity(True, abs_card, abs_card), required
    return Multiplicity(True, min_card if min_card else None, max_card), required


class PropertyResolver:
    """Resolves properties against collected restrictions and declared ranges.

    Args:
        model: Loaded ontology
        enums: Enum resolver holding the symbol registry
        reference_classes: Class URI to role text; objects of these classes or
            their subclasses are rendered as opaque string references
        structural_properties: Property local names that stay structural even
            when their class is a reference class
        renames: Local name to wire name table
        text_properties: Local names of untyped properties that fall back to text
    """

    def __init__(
        self,
        model: OntologyModel,
        enums: EnumResolver,
        collector: Optional[RestrictionCollector] = None,
        reference_classes: Optional[Mapping[URIRef, str]] = None,
        structural_properties: Iterable[str] = (),
        renames: Optional[Mapping[str, str]] = None,
        text_properties: Iterable[str] = TEXT_FALLBACK_PROPERTIES,
    ) -> None:
        self.model = model
        self.enums = enums
        self.collector = collector or RestrictionCollector(model)
        self.reference_classes = dict(reference_classes or {})
        self.structural_properties = frozenset(structural_properties)
        self.renames = renames
        self.text_properties = frozenset(text_properties)

    def resolve(
        self,
        class_uri: URIRef,
        property_uri: URIRef,
        restrictions: Optional[FrozenSet[Restriction]] = None,
        declared_locally: bool = True,
    ) -> PropertyProfile:
        """Resolve one property of one class.

        Args:
            class_uri: Class the property belongs to
            property_uri: Property to resolve
            restrictions: Pre-collected restrictions; collected when omitted
            declared_locally: Whether the class itself declares the property

        Returns:
            A fresh PropertyProfile

        Raises:
            AmbiguousTypeError: If more than one value type applies
            MissingTypeError: If no value type can be found
            UnknownDatatypeError: If the value type is an unmapped datatype
        """
        if restrictions is None:
            restrictions = self.collector.collect(class_uri, property_uri)
        ontology_property = self._property(property_uri)

        resolved = self._resolve_type(class_uri, ontology_property, restrictions)
        multiplicity, required = combine_cardinalities(restrictions)
        name = wire_name(ontology_property.local_name, self.renames)
        return PropertyProfile(
            property=property_uri,
            name=name,
            resolved_type=resolved,
            required=required,
            multiplicity=multiplicity,
            description=ontology_property.comment,
            deprecated=ontology_property.deprecated,
            declared_locally=declared_locally,
            collection_name=collection_name(name) if multiplicity.is_list else None,
        )

    def usage(self, property_uri: URIRef) -> PropertyUsage:
        """Summarise every restriction on ``property_uri`` regardless of class."""
        restrictions = self.collector.referring(property_uri)
        flags = [combine_cardinalities([r])[0].is_list for r in restrictions]
        try:
            type_uri = self._value_type(None, self._property(property_uri), frozenset(restrictions))
        except AmbiguousTypeError:
            logger.debug(f"No single type for property {property_uri} across classes")
            type_uri = None
        return PropertyUsage(
            property=property_uri,
            is_list=any(flags),
            is_single=not flags or not all(flags),
            type_uri=type_uri,
        )

    def reference_role(self, class_uri: URIRef) -> Optional[str]:
        """Role text when ``class_uri`` is or specialises a reference class."""
        if class_uri in self.reference_classes:
            return self.reference_classes[class_uri]
        for superclass in sorted(self.model.superclass_closure(class_uri), key=str):
            if superclass in self.reference_classes:
                return self.reference_classes[superclass]
        return None

    def _property(self, property_uri: URIRef) -> OntologyProperty:
        ontology_property = self.model.get_property(property_uri)
        if ontology_property is None:
            return OntologyProperty(uri=property_uri, local_name=local_name(property_uri))
        return ontology_property

    def _value_type(
        self,
        class_uri: Optional[URIRef],
        ontology_property: OntologyProperty,
        restrictions: FrozenSet[Restriction],
    ) -> Optional[URIRef]:
        candidates = set()
        for restriction in restrictions:
            if restriction.value_type is not None:
                candidates.add(restriction.value_type)
            if restriction.has_value is not None:
                individual = self.model.individual(restriction.has_value)
                if individual is not None:
                    candidates.update(individual.types)
        if len(candidates) > 1:
            raise AmbiguousTypeError(
                _str(class_uri), str(ontology_property.uri), sorted(str(c) for c in candidates)
            )
        if candidates:
            return next(iter(candidates))

        ranges = list(ontology_property.ranges)
        specific = [r for r in ranges if r != RDFS.Literal]
        if len(specific) > 1:
            raise AmbiguousTypeError(_str(class_uri), str(ontology_property.uri), [str(r) for r in specific])
        if specific:
            return specific[0]
        if ranges:
            return RDFS.Literal

        if ontology_property.local_name in self.text_properties:
            return XSD.string
        return None

    def _resolve_type(
        self,
        class_uri: URIRef,
        ontology_property: OntologyProperty,
        restrictions: FrozenSet[Restriction],
    ) -> ResolvedType:
        type_uri = self._value_type(class_uri, ontology_property, restrictions)

        if type_uri is not None and not is_datatype(type_uri):
            info = self.enums.classify(type_uri)
            if info is not None:
                return _enum_type(info)

        scoped = self._has_value_enum(restrictions)
        if scoped is not None:
            return scoped

        if type_uri is None:
            raise MissingTypeError(str(class_uri), str(ontology_property.uri))

        if is_datatype(type_uri):
            kind = XSD_KINDS.get(type_uri)
            if kind is None:
                raise UnknownDatatypeError(str(class_uri), str(ontology_property.uri), str(type_uri))
            return PrimitiveType(kind, type_uri)

        role = self.reference_role(type_uri)
        if role is not None and ontology_property.local_name not in self.structural_properties:
            return ReferenceType(type_uri, role)
        return ObjectType(type_uri)

    def _has_value_enum(self, restrictions: FrozenSet[Restriction]) -> Optional[EnumType]:
        symbols: List[str] = []
        documentation: List[Optional[str]] = []
        for restriction in sorted(restrictions, key=lambda r: str(r.has_value or "")):
            if restriction.has_value is None:
                continue
            symbol = self.enums.symbol_for(restriction.has_value)
            if symbol is not None and symbol not in symbols:
                symbols.append(symbol)
                individual = self.model.individual(restriction.has_value)
                documentation.append(individual.comment if individual else None)
        if not symbols:
            return None
        return EnumType(tuple(symbols), None, tuple(documentation))


def _enum_type(info: EnumInfo) -> EnumType:
    return EnumType(
        symbols=info.symbols,
        class_uri=info.class_uri,
        documentation=tuple(member.individual.comment for member in info.members),
    )


def _str(uri: Optional[URIRef]) -> Optional[str]:
    return str(uri) if uri is not None else None
