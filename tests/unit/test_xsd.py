"""
Unit tests for the XSD emitter.

Tests cover:
- The Widget schema loaded by xmlschema as XSD 1.1
- Simple types for enumerations and inline property enumerations
- Complex type extension, abstract classes and ambiguous bases
- Occurrence bounds agreeing with the JSON Schema
"""

import xml.etree.ElementTree as ET

import pytest
import xmlschema

from onto_schema_core.enums import SymbolRegistry
from onto_schema_emitters import JsonSchemaEmitter, XsdEmitter
from onto_schema_orchestrator.assembler import DocumentAssembler
from onto_schema_orchestrator.errors import AmbiguousBaseTypeError, FatalGenerationError
from onto_schema_orchestrator.models import GeneratorConfig

XS = "{http://www.w3.org/2001/XMLSchema}"
VC = "{http://www.w3.org/2007/XMLSchema-versioning}"


def emit(model, config, registry=None, emitter_config=None) -> str:
    schema = DocumentAssembler(model, config, registry).assemble(scope=XsdEmitter.SCOPE)
    return XsdEmitter(emitter_config).emit(schema)


def parse(text: str) -> ET.Element:
    return ET.fromstring(text.encode("utf-8"))


def complex_type(root: ET.Element, name: str) -> ET.Element:
    return root.find(f"{XS}complexType[@name='{name}']")


def elements(parent: ET.Element) -> dict:
    return {e.get("name"): e for e in parent.iter(f"{XS}element")}


# ============================================================================
# Widget
# ============================================================================

class TestWidgetXsd:
    """Test the XSD for the Widget ontology."""

    @pytest.fixture
    def text(self, widget_model, widget_config, widget_registry):
        return emit(widget_model, widget_config, widget_registry)

    @pytest.mark.unit
    def test_loads_as_xsd_11(self, text):
        """Test that xmlschema accepts the generated document."""
        schema = xmlschema.XMLSchema11(text)
        assert schema.target_namespace == "http://example.org/widget"

    @pytest.mark.unit
    def test_instance_validates(self, text):
        """Test that an instance with unordered, repeated elements validates."""
        schema = xmlschema.XMLSchema11(text)
        instance = (
            '<tns:Document xmlns:tns="http://example.org/widget">'
            "<tns:colors>RED</tns:colors>"
            "<tns:part><tns:serial>A1</tns:serial></tns:part>"
            "<tns:name>w</tns:name>"
            "<tns:colors>BLUE</tns:colors>"
            "</tns:Document>"
        )
        assert schema.is_valid(instance)
        assert not schema.is_valid(instance.replace("BLUE", "PURPLE"))

    @pytest.mark.unit
    def test_schema_attributes(self, text):
        """Test namespace, version and documentation of the schema element."""
        root = parse(text)
        assert root.get("targetNamespace") == "http://example.org/widget"
        assert root.get("elementFormDefault") == "qualified"
        assert root.get(f"{VC}minVersion") == "1.1"
        assert root.find(f"{XS}annotation/{XS}documentation").text == "A small ontology describing widgets."
        assert 'xmlns:tns="http://example.org/widget"' in text

    @pytest.mark.unit
    def test_enum_simple_type(self, text):
        """Test that enumeration members keep their order and comments."""
        simple_type = parse(text).find(f"{XS}simpleType[@name='Color']")
        facets = simple_type.findall(f"{XS}restriction/{XS}enumeration")
        assert [f.get("value") for f in facets] == ["RED", "GREEN", "BLUE"]
        assert facets[0].find(f"{XS}annotation/{XS}documentation").text == "Red."
        assert facets[1].find(f"{XS}annotation") is None

    @pytest.mark.unit
    def test_widget_complex_type(self, text):
        """Test element types and occurrence bounds of the root type."""
        widget = complex_type(parse(text), "Widget")
        by_name = elements(widget.find(f"{XS}all"))
        assert by_name["colors"].attrib == {
            "name": "colors", "type": "tns:Color", "minOccurs": "0", "maxOccurs": "unbounded"
        }
        assert by_name["name"].get("type") == "xs:string"
        assert by_name["name"].get("minOccurs") == "1"
        assert by_name["name"].get("maxOccurs") is None
        assert by_name["part"].get("type") == "tns:Part"

    @pytest.mark.unit
    def test_document_element(self, text):
        """Test the single top-level element."""
        top = parse(text).findall(f"{XS}element")
        assert [(e.get("name"), e.get("type")) for e in top] == [("Document", "tns:Widget")]

    @pytest.mark.unit
    def test_custom_prefix_and_element(self, widget_model, widget_registry):
        """Test that the prefix and document element come from configuration."""
        config = GeneratorConfig(root_class="Widget", prefix="w", document_element="WidgetDocument")
        text = emit(widget_model, config, widget_registry)
        top = parse(text).find(f"{XS}element")
        assert top.get("name") == "WidgetDocument"
        assert top.get("type") == "w:Widget"
        xmlschema.XMLSchema11(text)

    @pytest.mark.unit
    def test_validate_option(self, widget_model, widget_config, widget_registry):
        """Test that the validate option checks the output with xmlschema."""
        text = emit(widget_model, widget_config, widget_registry, {"validate": True})
        assert text.startswith("<?xml")

    @pytest.mark.unit
    def test_check_rejects_invalid_schema(self):
        """Test that an invalid schema is reported as a fatal error."""
        broken = (
            '<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema">'
            '<xs:element name="a" type="xs:noSuchType"/>'
            "</xs:schema>"
        )
        with pytest.raises(FatalGenerationError):
            XsdEmitter().check(broken)


# ============================================================================
# Occurrence agreement
# ============================================================================

class TestOccurrenceAgreement:
    """Test that JSON required lists and XSD minOccurs agree."""

    @pytest.mark.unit
    def test_required_matches_min_occurs(self, widget_model, widget_config, widget_registry):
        """Test presence counts per root property."""
        schema = DocumentAssembler(widget_model, widget_config, widget_registry).assemble(scope="all")
        document = JsonSchemaEmitter().build(schema)
        widget = complex_type(XsdEmitter().build(schema), "Widget")
        xsd_required = {
            e.get("name") for e in widget.iter(f"{XS}element") if int(e.get("minOccurs")) > 0
        }
        assert xsd_required == set(document["required"])

    @pytest.mark.unit
    def test_lists_match_max_occurs(self, document_model, document_config):
        """Test that array-valued root keys are exactly the repeatable XSD particles."""
        schema = DocumentAssembler(
            document_model, document_config, SymbolRegistry(derive=True)
        ).assemble(scope="all")
        document = JsonSchemaEmitter().build(schema)
        root = complex_type(XsdEmitter().build(schema), "Document")
        arrays = {name for name, value in document["properties"].items() if value.get("type") == "array"}
        repeated = {e.get("name") for e in root.iter(f"{XS}element") if e.get("maxOccurs") is not None}
        assert repeated == arrays == {"packages", "relationships"}

    @pytest.mark.unit
    def test_widget_lists_match_max_occurs(self, widget_model, widget_config, widget_registry):
        """Test list agreement and the particle count of the Widget type."""
        schema = DocumentAssembler(widget_model, widget_config, widget_registry).assemble(scope="all")
        document = JsonSchemaEmitter().build(schema)
        widget = complex_type(XsdEmitter().build(schema), "Widget")
        arrays = {name for name, value in document["properties"].items() if value.get("type") == "array"}
        repeated = {e.get("name") for e in widget.iter(f"{XS}element") if e.get("maxOccurs") is not None}
        assert repeated == arrays == {"colors"}
        assert len(elements(widget)) == 3


# ============================================================================
# Inheritance
# ============================================================================

class TestInheritanceXsd:
    """Test extension, abstract types and ambiguous bases."""

    @pytest.fixture
    def root(self, lattice_model):
        return parse(emit(lattice_model, GeneratorConfig(root_class="Leaf")))

    @pytest.mark.unit
    def test_extension_of_single_base(self, root):
        """Test that a subclass extends its base with only local properties."""
        extension = complex_type(root, "Leaf").find(f"{XS}complexContent/{XS}extension")
        assert extension.get("base") == "tns:Middle"
        assert list(elements(extension)) == ["note"]

    @pytest.mark.unit
    def test_list_property_bounds(self, root):
        """Test that a stated minimum gives a repeating, required particle."""
        extension = complex_type(root, "Middle").find(f"{XS}complexContent/{XS}extension")
        tag = elements(extension)["tag"]
        assert extension.get("base") == "tns:Base"
        assert tag.get("minOccurs") == "1"
        assert tag.get("maxOccurs") == "unbounded"

    @pytest.mark.unit
    def test_class_without_base(self, root):
        """Test that a base class holds its properties directly."""
        base = complex_type(root, "Base")
        assert base.find(f"{XS}complexContent") is None
        assert list(elements(base.find(f"{XS}all"))) == ["id"]

    @pytest.mark.unit
    def test_abstract_class(self, root):
        """Test that a class without properties is abstract and empty."""
        lonely = complex_type(root, "Lonely")
        assert lonely.get("abstract") == "true"
        assert len(lonely) == 0

    @pytest.mark.unit
    def test_ambiguous_base(self, make_model):
        """Test that more than one structural base is fatal."""
        model = make_model("""
:A a owl:Class ;
    rdfs:subClassOf [ a owl:Restriction ; owl:onProperty :a ; owl:cardinality "1"^^xsd:nonNegativeInteger ] .
:B a owl:Class ;
    rdfs:subClassOf [ a owl:Restriction ; owl:onProperty :b ; owl:cardinality "1"^^xsd:nonNegativeInteger ] .
:AB a owl:Class ; rdfs:subClassOf :A , :B .
:a a owl:DatatypeProperty ; rdfs:range xsd:string .
:b a owl:DatatypeProperty ; rdfs:range xsd:string .
""")
        with pytest.raises(AmbiguousBaseTypeError) as exc_info:
            emit(model, GeneratorConfig(root_class="AB"))
        assert len(exc_info.value.details["bases"]) == 2

    @pytest.mark.unit
    def test_reachable_scope_emits_base_chain(self, lattice_model):
        """Test that every extension base is defined when only the root is requested."""
        schema = DocumentAssembler(lattice_model, GeneratorConfig(root_class="Leaf")).assemble(scope="reachable")
        text = XsdEmitter().emit(schema)
        root = parse(text)
        assert complex_type(root, "Leaf").find(f"{XS}complexContent/{XS}extension").get("base") == "tns:Middle"
        assert complex_type(root, "Middle").find(f"{XS}complexContent/{XS}extension").get("base") == "tns:Base"
        assert list(elements(complex_type(root, "Base"))) == ["id"]
        assert complex_type(root, "Lonely") is None
        xmlschema.XMLSchema11(text)


# ============================================================================
# Document ontology
# ============================================================================

class TestDocumentXsd:
    """Test collections, references and property-scoped enumerations."""

    @pytest.fixture
    def root(self, document_model, document_config):
        return parse(emit(document_model, document_config, SymbolRegistry(derive=True)))

    @pytest.mark.unit
    def test_collections_are_repeating_elements(self, root):
        """Test that collections become optional repeating particles of the root type."""
        document = elements(complex_type(root, "Document"))
        assert document["packages"].get("type") == "tns:Package"
        assert document["packages"].get("minOccurs") == "0"
        assert document["packages"].get("maxOccurs") == "unbounded"
        assert "spdxVersion" in document

    @pytest.mark.unit
    def test_hoisted_class_kept_nested(self, root):
        """Test that nested properties of a hoisted class stay in the XSD."""
        element = elements(complex_type(root, "Element"))
        assert element["relationship"].get("type") == "tns:Relationship"

    @pytest.mark.unit
    def test_reference_is_string(self, root):
        """Test that reference-typed properties are plain strings."""
        relationship = elements(complex_type(root, "Relationship"))
        assert relationship["relatedElement"].get("type") == "xs:string"
        assert relationship["relationshipType"].get("type") == "tns:RelationshipType"

    @pytest.mark.unit
    def test_synthetic_identifier_on_declaring_class(self, root):
        """Test that the identifier is declared once and inherited by extension."""
        assert "SPDXID" in elements(complex_type(root, "Element"))
        package = complex_type(root, "Package")
        assert "SPDXID" not in elements(package)
        assert package.find(f"{XS}complexContent/{XS}extension").get("base") == "tns:Element"

    @pytest.mark.unit
    def test_datatype_kept(self, root):
        """Test that XSD datatypes are kept rather than widened."""
        checksum = elements(complex_type(root, "Checksum"))
        assert checksum["checksumValue"].get("type") == "xs:hexBinary"

    @pytest.mark.unit
    def test_inline_property_enum(self, make_model):
        """Test that has-value enumerations are emitted inline."""
        model = make_model("""
:Checksum a owl:Class ;
    rdfs:subClassOf [ a owl:Restriction ; owl:onProperty :algorithm ; owl:cardinality "1"^^xsd:nonNegativeInteger ] ,
        [ a owl:Class ; owl:unionOf (
            [ a owl:Restriction ; owl:onProperty :algorithm ; owl:hasValue :checksumAlgorithm_sha1 ]
            [ a owl:Restriction ; owl:onProperty :algorithm ; owl:hasValue :checksumAlgorithm_md5 ]
        ) ] .
:algorithm a owl:ObjectProperty .
:checksumAlgorithm_sha1 a owl:NamedIndividual ; rdfs:comment "SHA-1" .
:checksumAlgorithm_md5 a owl:NamedIndividual .
""")
        text = emit(model, GeneratorConfig(root_class="Checksum"), SymbolRegistry(derive=True))
        algorithm = elements(complex_type(parse(text), "Checksum"))["algorithm"]
        assert algorithm.get("type") is None
        facets = algorithm.findall(f"{XS}simpleType/{XS}restriction/{XS}enumeration")
        assert [f.get("value") for f in facets] == ["MD5", "SHA1"]
        assert facets[1].find(f"{XS}annotation/{XS}documentation").text == "SHA-1"
        xmlschema.XMLSchema11(text)
