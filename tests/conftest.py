"""
Pytest configuration and shared fixtures for onto-schema tests.

This module provides fixtures for:
- Temporary directories and file management
- Sample ontologies (the Widget ontology, a restriction lattice)
- Building models from inline Turtle snippets
- Symbol registries and generator configurations
"""

from pathlib import Path
from typing import Callable

import pytest
import structlog
from rdflib import Graph

from onto_schema_core.enums import SymbolRegistry
from onto_schema_core.ontology import OntologyModel
from onto_schema_orchestrator.models import GeneratorConfig


TURTLE_PREFIXES = """
@prefix : <http://example.org/test#> .
@prefix owl: <http://www.w3.org/2002/07/owl#> .
@prefix rdf: <http://www.w3.org/1999/02/22-rdf-syntax-ns#> .
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
@prefix xsd: <http://www.w3.org/2001/XMLSchema#> .
@prefix vs: <http://www.w3.org/2003/06/sw-vocab-status/ns#> .
"""


# ============================================================================
# Path and Directory Fixtures
# ============================================================================

@pytest.fixture
def temp_dir(tmp_path):
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo structlog configuration made by CLI tests so later tests don't log to a closed capture stream."""
    yield
    structlog.reset_defaults()


# ============================================================================
# Inline Ontology Fixtures
# ============================================================================

@pytest.fixture
def make_model() -> Callable[[str], OntologyModel]:
    """Provide a factory building an OntologyModel from a Turtle body.

    The body is prefixed with the ``:`` (http://example.org/test#), owl,
    rdf, rdfs, xsd and vs prefixes and an ontology header.
    """
    def build(body: str, header: bool = True) -> OntologyModel:
        text = TURTLE_PREFIXES
        if header:
            text += '<http://example.org/test> a owl:Ontology ; rdfs:label "Test" .\n'
        graph = Graph()
        graph.parse(data=text + body, format="turtle")
        return OntologyModel.from_graph(graph)

    return build


@pytest.fixture
def lattice_model(make_model) -> OntologyModel:
    """Ontology exercising superclass chains, unions, intersections and cycles."""
    return make_model("""
:Base a owl:Class ;
    rdfs:subClassOf [ a owl:Restriction ; owl:onProperty :id ; owl:cardinality "1"^^xsd:nonNegativeInteger ] .

:Middle a owl:Class ;
    rdfs:subClassOf :Base ,
        [ a owl:Restriction ; owl:onProperty :tag ; owl:minCardinality "1"^^xsd:nonNegativeInteger ] .

:Leaf a owl:Class ;
    rdfs:subClassOf :Middle ,
        [ a owl:Class ; owl:unionOf (
            [ a owl:Restriction ; owl:onProperty :note ; owl:maxCardinality "1"^^xsd:nonNegativeInteger ]
            [ a owl:Restriction ; owl:onProperty :note ; owl:maxCardinality "3"^^xsd:nonNegativeInteger ]
        ) ] .

:Combo a owl:Class ;
    owl:intersectionOf ( :Base
        [ a owl:Restriction ; owl:onProperty :extra ; owl:cardinality "2"^^xsd:nonNegativeInteger ] ) .

:Loop1 a owl:Class ; rdfs:subClassOf :Loop2 .
:Loop2 a owl:Class ;
    rdfs:subClassOf :Loop1 ,
        [ a owl:Restriction ; owl:onProperty :ring ; owl:cardinality "1"^^xsd:nonNegativeInteger ] .

:Lonely a owl:Class .

:id a owl:DatatypeProperty ; rdfs:range xsd:string .
:tag a owl:DatatypeProperty ; rdfs:range xsd:string .
:note a owl:DatatypeProperty ; rdfs:range xsd:string .
:extra a owl:DatatypeProperty ; rdfs:range xsd:boolean .
:ring a owl:DatatypeProperty ; rdfs:range xsd:integer .
""")


@pytest.fixture
def document_model(make_model) -> OntologyModel:
    """SPDX-shaped ontology: a document root, elements, hoisted relationships."""
    return make_model("""
:Document a owl:Class ;
    rdfs:comment "An exchange document." ;
    rdfs:subClassOf
        [ a owl:Restriction ; owl:onProperty :name ; owl:cardinality "1"^^xsd:nonNegativeInteger ] ,
        [ a owl:Restriction ; owl:onProperty :specVersion ; owl:cardinality "1"^^xsd:nonNegativeInteger ] ,
        [ a owl:Restriction ; owl:onProperty :status ; owl:maxCardinality "1"^^xsd:nonNegativeInteger ] .

:Element a owl:Class ;
    rdfs:comment "Anything with an identifier." ;
    rdfs:subClassOf
        [ a owl:Restriction ; owl:onProperty :relationship ; owl:onClass :Relationship ;
          owl:minQualifiedCardinality "0"^^xsd:nonNegativeInteger ] .

:Package a owl:Class ;
    rdfs:comment "A software package." ;
    rdfs:subClassOf :Element ,
        [ a owl:Restriction ; owl:onProperty :version ; owl:maxCardinality "1"^^xsd:nonNegativeInteger ] ,
        [ a owl:Restriction ; owl:onProperty :checksum ; owl:onClass :Checksum ;
          owl:minQualifiedCardinality "1"^^xsd:nonNegativeInteger ] .

:Checksum a owl:Class ;
    rdfs:subClassOf
        [ a owl:Restriction ; owl:onProperty :checksumValue ; owl:cardinality "1"^^xsd:nonNegativeInteger ] .

:Relationship a owl:Class ;
    rdfs:comment "A relation between two elements." ;
    rdfs:subClassOf
        [ a owl:Restriction ; owl:onProperty :relatedElement ; owl:onClass :Element ;
          owl:qualifiedCardinality "1"^^xsd:nonNegativeInteger ] ,
        [ a owl:Restriction ; owl:onProperty :relationshipType ; owl:cardinality "1"^^xsd:nonNegativeInteger ] .

:RelationshipType a owl:Class .
:relationshipType_describes a owl:NamedIndividual , :RelationshipType .
:relationshipType_contains a owl:NamedIndividual , :RelationshipType .

:name a owl:DatatypeProperty ; rdfs:range xsd:string ; rdfs:comment "Document name." .
:specVersion a owl:DatatypeProperty ; rdfs:range xsd:string .
:status a owl:AnnotationProperty ; rdfs:range xsd:string .
:version a owl:DatatypeProperty ; rdfs:range xsd:string ; vs:term_status "deprecated" .
:checksum a owl:ObjectProperty ; rdfs:range :Checksum .
:checksumValue a owl:DatatypeProperty ; rdfs:range xsd:hexBinary .
:relationship a owl:ObjectProperty ; rdfs:range :Relationship .
:relatedElement a owl:ObjectProperty ; rdfs:range :Element ; rdfs:comment "The other element." .
:relationshipType a owl:ObjectProperty ; rdfs:range :RelationshipType .
""")


@pytest.fixture
def document_config() -> GeneratorConfig:
    """Configuration for document_model with collections, synthetic ids and references."""
    return GeneratorConfig.model_validate({
        "root_class": "Document",
        "title": "Test Document",
        "prefix": "doc",
        "collections": [
            {"class_name": "Package"},
            {"class_name": "Relationship", "hoist": True},
        ],
        "synthetic_properties": [
            {"name": "SPDXID", "class_name": "Element", "identifier": True, "description": "Element id."},
            {"name": "documentNamespace"},
        ],
        "reference_classes": [{"class_name": "Element", "role": "SPDX ID"}],
        "skipped_properties": ["status"],
    })


# ============================================================================
# Widget Ontology Fixtures
# ============================================================================

@pytest.fixture
def widget_turtle() -> str:
    """Provide the Widget ontology in Turtle."""
    return """
@prefix : <http://example.org/widget#> .
@prefix owl: <http://www.w3.org/2002/07/owl#> .
@prefix rdf: <http://www.w3.org/1999/02/22-rdf-syntax-ns#> .
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
@prefix xsd: <http://www.w3.org/2001/XMLSchema#> .

<http://example.org/widget> a owl:Ontology ;
    rdfs:label "Widget" ;
    rdfs:comment "A small ontology describing widgets." .

:Widget a owl:Class ;
    rdfs:comment "A configurable widget." ;
    rdfs:subClassOf
        [ a owl:Restriction ; owl:onProperty :name ; owl:cardinality "1"^^xsd:nonNegativeInteger ] ,
        [ a owl:Restriction ; owl:onProperty :colors ; owl:minCardinality "0"^^xsd:nonNegativeInteger ] ,
        [ a owl:Restriction ; owl:onProperty :part ; owl:onClass :Part ;
          owl:qualifiedCardinality "1"^^xsd:nonNegativeInteger ] .

:Part a owl:Class ;
    rdfs:comment "A replaceable part of a widget." ;
    rdfs:subClassOf
        [ a owl:Restriction ; owl:onProperty :serial ; owl:cardinality "1"^^xsd:nonNegativeInteger ] .

:Color a owl:Class ;
    rdfs:comment "Colors a widget can have." ;
    owl:equivalentClass [ a owl:Class ; owl:oneOf ( :RED :GREEN :BLUE ) ] .

:RED a owl:NamedIndividual , :Color ; rdfs:comment "Red." .
:GREEN a owl:NamedIndividual , :Color .
:BLUE a owl:NamedIndividual , :Color .

:name a owl:DatatypeProperty ; rdfs:range xsd:string ; rdfs:comment "Display name." .
:colors a owl:ObjectProperty ; rdfs:range :Color .
:part a owl:ObjectProperty ; rdfs:range :Part .
:serial a owl:DatatypeProperty ; rdfs:range xsd:string .
"""


@pytest.fixture
def widget_file(temp_dir, widget_turtle) -> Path:
    """Write the Widget ontology to a temporary Turtle file."""
    path = temp_dir / "widget.ttl"
    path.write_text(widget_turtle)
    return path


@pytest.fixture
def widget_model(widget_turtle) -> OntologyModel:
    """Provide the loaded Widget ontology."""
    graph = Graph()
    graph.parse(data=widget_turtle, format="turtle")
    return OntologyModel.from_graph(graph)


@pytest.fixture
def widget_registry() -> SymbolRegistry:
    """Provide symbols for the three Widget colors."""
    return SymbolRegistry({
        "http://example.org/widget#RED": "RED",
        "http://example.org/widget#GREEN": "GREEN",
        "http://example.org/widget#BLUE": "BLUE",
    })


@pytest.fixture
def widget_symbols_file(temp_dir) -> Path:
    """Write the Widget symbol table to a temporary YAML file."""
    path = temp_dir / "symbols.yaml"
    path.write_text(
        '"http://example.org/widget#RED": RED\n'
        '"http://example.org/widget#GREEN": GREEN\n'
        '"http://example.org/widget#BLUE": BLUE\n'
    )
    return path


@pytest.fixture
def widget_config() -> GeneratorConfig:
    """Provide a configuration rooted at Widget."""
    return GeneratorConfig(root_class="Widget")


# ============================================================================
# Pytest Configuration Hooks
# ============================================================================

def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        # Auto-mark tests based on path
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        # Auto-mark based on test name
        if "xsd" in item.nodeid.lower():
            item.add_marker(pytest.mark.xsd)
        if "json_schema" in item.nodeid.lower():
            item.add_marker(pytest.mark.jsonschema)
        if "property" in item.nodeid.lower() or "hypothesis" in item.nodeid.lower():
            item.add_marker(pytest.mark.property)
