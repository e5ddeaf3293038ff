"""
JSON-LD context emitter.

Maps the JSON keys produced by the JSON Schema emitter back to ontology
IRIs. List-valued properties are keyed by their collection name and carry
``@container: @set``; a property used both ways gets both entries.
"""

import json
import logging
from typing import Any, Dict, Optional, Set

from rdflib import URIRef

from onto_schema_core.naming import collection_name, wire_name
from onto_schema_core.ontology import local_name, namespace_of
from onto_schema_orchestrator.assembler import ResolvedSchema

from .base import SchemaEmitter

logger = logging.getLogger(__name__)


class JsonLdContextEmitter(SchemaEmitter):
    """Render a ResolvedSchema as a JSON-LD ``@context`` document."""

    FORMAT = "context"
    SCOPE = "reachable"
    EXTENSION = ".jsonld"

    def build(self, schema: ResolvedSchema) -> Dict[str, Any]:
        prefixes = self._prefixes(schema)
        used: Set[str] = set()

        def compact(uri: str) -> str:
            for namespace, prefix in prefixes.items():
                if uri.startswith(namespace) and len(uri) > len(namespace):
                    used.add(prefix)
                    return f"{prefix}:{uri[len(namespace):]}"
            return uri

        entries: Dict[str, Any] = {}
        root = schema.root
        entries[schema.config.document_element] = {
            "@type": compact(str(root.uri)),
            "@id": compact(namespace_of(root.uri) + root.name[:1].lower() + root.name[1:]),
        }
        for profile in schema.classes:
            for prop in profile.properties:
                if prop.synthetic and prop.identifier:
                    entries[prop.name] = "@id"

        renames = schema.config.renamed_properties
        for usage in sorted(schema.usages, key=lambda u: compact(str(u.property))):
            namespace = namespace_of(usage.property)
            name = wire_name(local_name(usage.property), renames)
            type_id = self._type_id(usage.type_uri, compact)
            if usage.is_list:
                list_name = collection_name(name)
                entry: Dict[str, Any] = {"@id": compact(namespace + list_name)}
                if type_id:
                    entry["@type"] = type_id
                entry["@container"] = "@set"
                entries[list_name] = entry
            if usage.is_single:
                entry = {"@id": compact(namespace + name)}
                if type_id:
                    entry["@type"] = type_id
                entries[name] = entry

        context: Dict[str, Any] = {
            prefix: namespace
            for namespace, prefix in sorted(prefixes.items(), key=lambda item: item[1])
            if prefix in used
        }
        context.update(entries)
        logger.info(f"Built JSON-LD context with {len(entries)} terms")
        return {"@context": context}

    def serialize(self, document: Dict[str, Any]) -> str:
        return json.dumps(document, indent=self.indent, ensure_ascii=False) + "\n"

    def _prefixes(self, schema: ResolvedSchema) -> Dict[str, str]:
        """Namespace to prefix, longest namespace first so compaction picks the most specific."""
        prefixes: Dict[str, str] = {}
        for prefix, namespace in sorted(schema.model.prefixes.items()):
            prefixes.setdefault(namespace, prefix)
        default = schema.model.default_namespace or namespace_of(schema.root.uri)
        if default not in prefixes:
            prefixes[default] = schema.config.prefix
        return dict(sorted(prefixes.items(), key=lambda item: -len(item[0])))

    def _type_id(self, type_uri: Optional[URIRef], compact) -> Optional[str]:
        if type_uri is None:
            return None
        return compact(str(type_uri))
