"""Pydantic models for generator configuration."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from onto_schema_core.naming import DEFAULT_RENAMES, TEXT_FALLBACK_PROPERTIES, collection_name
from onto_schema_core.ontology import VS
from onto_schema_core.resolver import PRIMITIVE_KINDS
from onto_schema_orchestrator.errors import ConfigurationError

_NCNAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.\-]*$")


class CollectionConfig(BaseModel):
    """A top-level collection injected into the root class (``packages``, ``files``, ...)."""

    model_config = ConfigDict(extra="forbid")

    class_name: str = Field(..., description="Local name or URI of the collected class")
    name: Optional[str] = Field(default=None, description="Key in the root object; derived from the class name when omitted")
    hoist: bool = Field(default=False, description="Omit the class wherever it occurs as a nested property")
    description: Optional[str] = Field(default=None, description="Description of the collection property")

    @property
    def key(self) -> str:
        if self.name:
            return self.name
        simple = self.class_name.rsplit("#", 1)[-1].rsplit("/", 1)[-1]
        return collection_name(simple[:1].lower() + simple[1:])


class SyntheticPropertyConfig(BaseModel):
    """A property that exists in the generated schemas but not in the ontology."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., description="Wire name of the property")
    class_name: Optional[str] = Field(default=None, description="Declaring class; the root class when omitted")
    kind: str = Field(default="string", description="Primitive kind: boolean, integer, number or string")
    description: Optional[str] = Field(default=None, description="Description emitted with the property")
    required: bool = Field(default=True, description="Whether the property is required")
    is_list: bool = Field(default=False, description="Whether the property holds a list of values")
    identifier: bool = Field(default=False, description="Whether the property identifies its object (JSON-LD @id)")

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, v: str) -> str:
        """Ensure kind is a primitive kind."""
        if v not in PRIMITIVE_KINDS:
            raise ValueError(f"Unsupported kind: {v}. Valid options: {set(PRIMITIVE_KINDS)}")
        return v


class ReferenceClassConfig(BaseModel):
    """A class whose instances are referenced by an opaque string."""

    model_config = ConfigDict(extra="forbid")

    class_name: str = Field(..., description="Local name or URI of the reference base class")
    role: str = Field(..., description="Description prefix, e.g. 'SPDX ID'")


class GeneratorConfig(BaseModel):
    """Complete generator configuration with validation."""

    model_config = ConfigDict(extra="forbid")

    root_class: str = Field(default="Document", description="Local name or URI of the root class")
    namespace: Optional[str] = Field(default=None, description="Namespace used to resolve local class names")
    title: Optional[str] = Field(default=None, description="Schema title; the ontology label when omitted")
    schema_id: Optional[str] = Field(default=None, description="JSON Schema $id; the ontology URI when omitted")
    document_element: str = Field(default="Document", description="Name of the top-level XSD element")
    prefix: str = Field(default="tns", description="Prefix bound to the target namespace")
    collections: List[CollectionConfig] = Field(default_factory=list, description="Top-level collections")
    synthetic_properties: List[SyntheticPropertyConfig] = Field(
        default_factory=list,
        description="Properties injected into the generated schemas"
    )
    reference_classes: List[ReferenceClassConfig] = Field(
        default_factory=list,
        description="Classes rendered as string references"
    )
    structural_properties: List[str] = Field(
        default_factory=list,
        description="Properties kept structural even when typed by a reference class"
    )
    mandatory_properties: List[str] = Field(
        default_factory=list,
        description="Properties whose resolution failure aborts generation"
    )
    skipped_properties: List[str] = Field(
        default_factory=lambda: [str(VS.term_status)],
        description="Properties never emitted (local names or URIs)"
    )
    renamed_properties: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_RENAMES),
        description="Property local name to wire name"
    )
    text_properties: List[str] = Field(
        default_factory=lambda: sorted(TEXT_FALLBACK_PROPERTIES),
        description="Untyped properties emitted as strings"
    )

    @field_validator("root_class")
    @classmethod
    def validate_root_class(cls, v: str) -> str:
        """Ensure root class is not empty."""
        if not v or not v.strip():
            raise ValueError("Root class cannot be empty")
        return v.strip()

    @field_validator("document_element", "prefix")
    @classmethod
    def validate_xml_name(cls, v: str) -> str:
        """Ensure the document element and prefix are valid XML names."""
        if not _NCNAME.match(v):
            raise ValueError(f"'{v}' is not a valid XML name")
        return v

    @model_validator(mode="after")
    def validate_unique_keys(self) -> "GeneratorConfig":
        """Ensure collection and synthetic names on the root do not collide."""
        keys = [c.key for c in self.collections]
        keys.extend(p.name for p in self.synthetic_properties if p.class_name in (None, self.root_class))
        duplicates = {k for k in keys if keys.count(k) > 1}
        if duplicates:
            raise ValueError(f"Duplicate root property names: {sorted(duplicates)}")
        return self

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "GeneratorConfig":
        """Load and validate configuration from a YAML file.

        Raises:
            ConfigurationError: If the file cannot be read or fails validation
        """
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read configuration {path}: {e}") from e
        try:
            return cls.model_validate(data or {})
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration {path}",
                errors=[err["msg"] for err in e.errors()],
            ) from e
