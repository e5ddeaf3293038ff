"""
XML Schema emitter.

One named simple type per enumeration class, one named complex type per
structural class and a single top-level document element. Local
properties of a class are the particles of one ``xs:all`` group; inherited
properties come from ``xs:extension`` of the single structural base.
Repeating particles inside ``xs:all`` require XSD 1.1, which the schema
declares through ``vc:minVersion``.
"""

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional

import xmlschema
from rdflib import XSD

from onto_schema_core.enums import EnumInfo
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
from onto_schema_orchestrator.errors import AmbiguousBaseTypeError, FatalGenerationError

from .base import SchemaEmitter

logger = logging.getLogger(__name__)

XS = "http://www.w3.org/2001/XMLSchema"
VC = "http://www.w3.org/2007/XMLSchema-versioning"

ET.register_namespace("xs", XS)
ET.register_namespace("vc", VC)


def _xs(tag: str) -> str:
    return f"{{{XS}}}{tag}"


class XsdEmitter(SchemaEmitter):
    """Render a ResolvedSchema as an XSD 1.1 document."""

    FORMAT = "xsd"
    SCOPE = "all"
    EXTENSION = ".xsd"

    def build(self, schema: ResolvedSchema) -> ET.Element:
        """Build the ``xs:schema`` element.

        Args:
            schema: Resolved schema, normally in ``all`` scope

        Returns:
            Root element of the XSD document

        Raises:
            AmbiguousBaseTypeError: If a class has more than one structural base
        """
        self.prefix = schema.config.prefix
        root = ET.Element(_xs("schema"))
        root.set(f"xmlns:{self.prefix}", schema.target_namespace)
        root.set("targetNamespace", schema.target_namespace)
        root.set("elementFormDefault", "qualified")
        root.set(f"{{{VC}}}minVersion", "1.1")
        self._documentation(root, schema.model.ontology_comment)

        for info in schema.enums:
            self._enum_type(root, info)
        for profile in schema.classes:
            self._complex_type(root, schema, profile)

        ET.SubElement(
            root,
            _xs("element"),
            name=schema.config.document_element,
            type=self._qname(schema.root.name),
        )
        logger.info(
            f"Built XSD with {len(schema.enums)} simple types and {len(schema.classes)} complex types"
        )
        return root

    def serialize(self, document: ET.Element) -> str:
        ET.indent(document, space=" " * self.indent)
        text = ET.tostring(document, encoding="UTF-8", xml_declaration=True).decode("utf-8") + "\n"
        if self.config.get("validate", False):
            self.check(text)
        return text

    def check(self, text: str) -> xmlschema.XMLSchema11:
        """Load the generated document as an XSD 1.1 schema.

        Raises:
            FatalGenerationError: If xmlschema rejects the document
        """
        try:
            return xmlschema.XMLSchema11(text)
        except xmlschema.XMLSchemaException as e:
            raise FatalGenerationError(
                "Generated XSD is not a valid XSD 1.1 schema", {"reason": str(e).splitlines()[0]}
            ) from e

    def _qname(self, name: str) -> str:
        return f"{self.prefix}:{name}"

    def _documentation(self, parent: ET.Element, text: Optional[str]) -> None:
        if not text:
            return
        annotation = ET.SubElement(parent, _xs("annotation"))
        documentation = ET.SubElement(annotation, _xs("documentation"))
        documentation.text = text

    def _enum_type(self, parent: ET.Element, info: EnumInfo) -> None:
        simple_type = ET.SubElement(parent, _xs("simpleType"), name=info.local_name)
        self._documentation(simple_type, info.comment)
        self._enumeration(
            simple_type,
            [member.symbol for member in info.members],
            [member.individual.comment for member in info.members],
        )

    def _enumeration(self, simple_type: ET.Element, symbols: List[str], comments: List[Optional[str]]) -> None:
        restriction = ET.SubElement(simple_type, _xs("restriction"), base="xs:string")
        for index, symbol in enumerate(symbols):
            facet = ET.SubElement(restriction, _xs("enumeration"), value=symbol)
            if index < len(comments):
                self._documentation(facet, comments[index])

    def _complex_type(self, parent: ET.Element, schema: ResolvedSchema, profile: ClassProfile) -> None:
        complex_type = ET.SubElement(parent, _xs("complexType"), name=profile.name)
        if profile.is_abstract:
            complex_type.set("abstract", "true")
        self._documentation(complex_type, profile.ontology_class.comment)

        if len(profile.bases) > 1:
            raise AmbiguousBaseTypeError(str(profile.uri), [str(base) for base in profile.bases])

        container = complex_type
        if profile.bases:
            content = ET.SubElement(complex_type, _xs("complexContent"))
            container = ET.SubElement(
                content, _xs("extension"), base=self._qname(local_name(profile.bases[0]))
            )

        local = profile.local_properties
        if local:
            group = ET.SubElement(container, _xs("all"))
            for prop in local:
                self._element(group, schema, prop)

    def _element(self, group: ET.Element, schema: ResolvedSchema, prop: PropertyProfile) -> None:
        element = ET.SubElement(group, _xs("element"), name=prop.name)
        resolved: ResolvedType = prop.resolved_type
        inline = None
        if isinstance(resolved, PrimitiveType):
            element.set("type", _datatype(resolved))
        elif isinstance(resolved, EnumType):
            if resolved.class_uri is not None:
                element.set("type", self._qname(local_name(resolved.class_uri)))
            else:
                inline = resolved
        elif isinstance(resolved, ReferenceType):
            element.set("type", "xs:string")
        elif isinstance(resolved, ObjectType):
            element.set("type", self._qname(local_name(resolved.class_uri)))
        else:
            raise TypeError(f"Unsupported resolved type {resolved!r}")

        element.set("minOccurs", str(prop.min_occurs))
        if prop.max_occurs is not None:
            element.set("maxOccurs", prop.max_occurs)

        self._documentation(element, prop.description)
        if inline is not None:
            simple_type = ET.SubElement(element, _xs("simpleType"))
            self._enumeration(simple_type, list(inline.symbols), list(inline.documentation))


def _datatype(resolved: PrimitiveType) -> str:
    if str(resolved.datatype).startswith(str(XSD)):
        return f"xs:{local_name(resolved.datatype)}"
    return "xs:string"
