"""
JSON Schema (draft-07) emitter.

Structural classes are expanded inline from the root down; a class that is
already being expanded higher up the path is cut to a plain object.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from rdflib import URIRef

from onto_schema_core.ontology import local_name
from onto_schema_core.resolver import (
    ClassProfile,
    EnumType,
    ObjectType,
    PrimitiveType,
    PropertyProfile,
    ReferenceType,
    ResolvedType,
)
from onto_schema_orchestrator.assembler import ResolvedSchema

from .base import SchemaEmitter

logger = logging.getLogger(__name__)

DRAFT_07 = "http://json-schema.org/draft-07/schema#"


def reference_description(resolved: ReferenceType, comment: Optional[str] = None) -> str:
    """Description for a string reference, e.g. ``SPDX ID for Package``."""
    text = f"{resolved.role} for {local_name(resolved.class_uri)}"
    if comment:
        text += f". {comment}"
    return text


class JsonSchemaEmitter(SchemaEmitter):
    """Render a ResolvedSchema as a draft-07 JSON Schema document."""

    FORMAT = "json"
    SCOPE = "reachable"
    EXTENSION = ".json"

    def build(self, schema: ResolvedSchema) -> Dict[str, Any]:
        """Build the root schema object.

        Args:
            schema: Resolved schema in ``reachable`` scope

        Returns:
            JSON-compatible dictionary
        """
        document: Dict[str, Any] = {"$schema": DRAFT_07}
        if schema.schema_id:
            document["$id"] = schema.schema_id
        document["title"] = schema.title
        if schema.root.ontology_class.comment:
            document["description"] = schema.root.ontology_class.comment
        document["type"] = "object"

        properties, required = self._properties(schema, schema.root, (schema.root.uri,))
        document["properties"] = properties
        if required:
            document["required"] = required
        document["additionalProperties"] = False

        logger.info(f"Built JSON schema with {len(properties)} top-level properties")
        return document

    def serialize(self, document: Dict[str, Any]) -> str:
        return json.dumps(document, indent=self.indent, ensure_ascii=False) + "\n"

    def _properties(
        self,
        schema: ResolvedSchema,
        profile: ClassProfile,
        path: Tuple[URIRef, ...],
    ) -> Tuple[Dict[str, Any], List[str]]:
        properties: Dict[str, Any] = {}
        required: List[str] = []
        for prop in profile.properties:
            if self._hoisted(schema, prop):
                continue
            properties[prop.json_name] = self._property(schema, prop, path)
            if prop.mandatory:
                required.append(prop.json_name)
        return properties, required

    def _hoisted(self, schema: ResolvedSchema, prop: PropertyProfile) -> bool:
        resolved = prop.resolved_type
        return (
            not prop.synthetic
            and isinstance(resolved, (ObjectType, ReferenceType))
            and resolved.class_uri in schema.hoisted
        )

    def _property(self, schema: ResolvedSchema, prop: PropertyProfile, path: Tuple[URIRef, ...]) -> Dict[str, Any]:
        if not prop.is_list:
            return self._value(schema, prop, path, prop.description)

        array: Dict[str, Any] = {"type": "array"}
        if prop.description and not isinstance(prop.resolved_type, ReferenceType):
            array["description"] = prop.description
            array["items"] = self._value(schema, prop, path, None)
        else:
            array["items"] = self._value(schema, prop, path, prop.description)
        if prop.multiplicity.min_items is not None:
            array["minItems"] = prop.multiplicity.min_items
        if prop.multiplicity.max_items is not None:
            array["maxItems"] = prop.multiplicity.max_items
        return array

    def _value(
        self,
        schema: ResolvedSchema,
        prop: PropertyProfile,
        path: Tuple[URIRef, ...],
        description: Optional[str],
    ) -> Dict[str, Any]:
        resolved: ResolvedType = prop.resolved_type
        if isinstance(resolved, PrimitiveType):
            value: Dict[str, Any] = {"type": resolved.kind}
        elif isinstance(resolved, EnumType):
            value = {"type": "string", "enum": list(resolved.symbols)}
        elif isinstance(resolved, ReferenceType):
            return {"type": "string", "description": reference_description(resolved, description)}
        elif isinstance(resolved, ObjectType):
            # The class comment replaces the property description
            return self._object(schema, resolved.class_uri, path, closed=prop.synthetic and prop.is_list)
        else:
            raise TypeError(f"Unsupported resolved type {resolved!r}")
        if description:
            value["description"] = description
        return value

    def _object(
        self,
        schema: ResolvedSchema,
        class_uri: URIRef,
        path: Tuple[URIRef, ...],
        closed: bool = False,
    ) -> Dict[str, Any]:
        profile = schema.class_profile(class_uri)
        if profile is None or class_uri in path:
            # Cycle or class outside the schema
            return {"type": "object"}

        value: Dict[str, Any] = {"type": "object"}
        if profile.ontology_class.comment:
            value["description"] = profile.ontology_class.comment
        properties, required = self._properties(schema, profile, path + (class_uri,))
        value["properties"] = properties
        if required:
            value["required"] = required
        if closed:
            value["additionalProperties"] = False
        return value
