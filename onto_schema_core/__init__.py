"""Ontology model and property resolution for onto-schema."""

from .enums import EnumInfo, EnumResolver, SymbolRegistry
from .ontology import OntologyModel, local_name
from .restrictions import RestrictionCollector
from .resolver import (
    ClassProfile,
    EnumType,
    Multiplicity,
    ObjectType,
    PrimitiveType,
    PropertyProfile,
    PropertyResolver,
    ReferenceType,
    ResolvedType,
)

__all__ = [
    "ClassProfile",
    "EnumInfo",
    "EnumResolver",
    "EnumType",
    "Multiplicity",
    "ObjectType",
    "OntologyModel",
    "PrimitiveType",
    "PropertyProfile",
    "PropertyResolver",
    "ReferenceType",
    "ResolvedType",
    "RestrictionCollector",
    "SymbolRegistry",
    "local_name",
]
