"""Document assembly: decide which classes and properties a schema contains.

The assembler is the only place that knows about the root class, the
top-level collections and the synthetic properties from configuration.
It produces a :class:`ResolvedSchema` that every emitter renders without
further resolution.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

import structlog
from rdflib import URIRef, XSD

from onto_schema_core.enums import EnumInfo, EnumResolver, SymbolRegistry
from onto_schema_core.ontology import OntologyClass, OntologyModel, local_name
from onto_schema_core.resolver import (
    ClassProfile,
    EnumType,
    Multiplicity,
    ObjectType,
    PrimitiveType,
    PropertyProfile,
    PropertyResolver,
    PropertyUsage,
)
from onto_schema_core.restrictions import RestrictionCollector
from onto_schema_orchestrator.errors import (
    ConfigurationError,
    MandatoryPropertyError,
    MissingClassError,
    ResolutionError,
)
from onto_schema_orchestrator.models import GeneratorConfig, SyntheticPropertyConfig

logger = structlog.get_logger(__name__)

SCOPES = ("reachable", "all")

_KIND_DATATYPES = {
    "boolean": XSD.boolean,
    "integer": XSD.integer,
    "number": XSD.decimal,
    "string": XSD.string,
}


@dataclass
class GenerationReport:
    """Errors and warnings collected while assembling a schema."""

    errors: List[ResolutionError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "errors": [error.to_dict() for error in self.errors],
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class ResolvedSchema:
    """Everything the emitters render, resolved once."""

    model: OntologyModel
    config: GeneratorConfig
    root: ClassProfile
    classes: Tuple[ClassProfile, ...]
    enums: Tuple[EnumInfo, ...]
    hoisted: FrozenSet[URIRef]
    report: GenerationReport
    scope: str = "reachable"
    usages: Tuple[PropertyUsage, ...] = ()

    def class_profile(self, uri: URIRef) -> Optional[ClassProfile]:
        for profile in self.classes:
            if profile.uri == uri:
                return profile
        return None

    @property
    def title(self) -> str:
        return self.config.title or self.model.ontology_label or self.root.name

    @property
    def schema_id(self) -> Optional[str]:
        if self.config.schema_id:
            return self.config.schema_id
        return str(self.model.ontology_uri) if self.model.ontology_uri is not None else None

    @property
    def target_namespace(self) -> str:
        namespace = (
            self.config.namespace
            or (str(self.model.ontology_uri) if self.model.ontology_uri is not None else None)
            or str(self.root.uri)[: -len(self.root.name)]
        )
        return namespace.rstrip("#/")


class DocumentAssembler:
    """Builds a ResolvedSchema from an ontology, a configuration and a symbol registry.

    Example:
        >>> model = OntologyModel.load("spdx.owl")
        >>> assembler = DocumentAssembler(model, GeneratorConfig(root_class="SpdxDocument"))
        >>> schema = assembler.assemble(scope="reachable")
    """

    def __init__(
        self,
        model: OntologyModel,
        config: Optional[GeneratorConfig] = None,
        registry: Optional[SymbolRegistry] = None,
    ) -> None:
        self.model = model
        self.config = config or GeneratorConfig()
        self.enums = EnumResolver(model, registry or SymbolRegistry())
        self.collector = RestrictionCollector(model)
        self.resolver = PropertyResolver(
            model,
            self.enums,
            collector=self.collector,
            reference_classes=self._reference_classes(),
            structural_properties=self.config.structural_properties,
            renames=self.config.renamed_properties,
            text_properties=self.config.text_properties,
        )
        self._property_cache: Dict[URIRef, Set[URIRef]] = {}
        self._reported: Set[Tuple[str, Optional[str], Optional[str]]] = set()
        self._report = GenerationReport()

    def assemble(self, scope: str = "reachable") -> ResolvedSchema:
        """Resolve every class in scope.

        Args:
            scope: ``reachable`` for the root, the collections and every class
                reachable through structural properties; ``all`` for every
                named class of the ontology

        Returns:
            ResolvedSchema ready for emission

        Raises:
            MissingClassError: If the root, a collection or a synthetic property class is missing
            MandatoryPropertyError: If a mandatory property cannot be resolved
        """
        if scope not in SCOPES:
            raise ConfigurationError(f"Unknown scope '{scope}'. Valid options: {SCOPES}", config_key="scope")
        self._report = GenerationReport()
        self._reported = set()

        root = self._locate(self.config.root_class, "root")
        collections = [
            (collection, self._locate(collection.class_name, "collection").uri)
            for collection in self.config.collections
        ]
        hoisted = frozenset(uri for collection, uri in collections if collection.hoist)
        synthetic = self._synthetic_by_class(root.uri)

        logger.info("assembling_schema", root=str(root.uri), scope=scope, collections=len(collections))

        pending: Deque[URIRef] = deque([root.uri])
        pending.extend(uri for _, uri in collections)
        if scope == "all":
            pending.extend(sorted(self.model.classes, key=lambda u: (local_name(u), str(u))))

        profiles: Dict[URIRef, ClassProfile] = {}
        while pending:
            uri = pending.popleft()
            if uri in profiles or uri not in self.model.classes:
                continue
            if uri != root.uri and self.enums.classify(uri) is not None:
                continue
            profile = self._class_profile(
                uri, synthetic, collections if uri == root.uri else ()
            )
            profiles[uri] = profile
            pending.extend(profile.bases)
            for prop in profile.properties:
                if isinstance(prop.resolved_type, ObjectType):
                    pending.append(prop.resolved_type.class_uri)

        enums = self._enums(profiles.values(), scope)
        usages = tuple(
            self.resolver.usage(uri)
            for uri in sorted(self.model.properties, key=str)
            if not self._matches(uri, self.config.skipped_properties)
        )
        self._report.warnings.extend(self.enums.warnings)
        self._log_report(len(profiles), len(enums))

        return ResolvedSchema(
            model=self.model,
            config=self.config,
            root=profiles[root.uri],
            classes=tuple(profiles.values()),
            enums=tuple(enums),
            hoisted=hoisted,
            report=self._report,
            scope=scope,
            usages=usages,
        )

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def _locate(self, name: str, role: str) -> OntologyClass:
        ontology_class = self.model.find_class(name, self.config.namespace)
        if ontology_class is None:
            raise MissingClassError(name, role=role)
        return ontology_class

    def _reference_classes(self) -> Dict[URIRef, str]:
        roles: Dict[URIRef, str] = {}
        for reference in self.config.reference_classes:
            ontology_class = self.model.find_class(reference.class_name, self.config.namespace)
            if ontology_class is None:
                logger.warning("reference_class_not_found", class_name=reference.class_name)
                continue
            roles[ontology_class.uri] = reference.role
        return roles

    def _class_profile(
        self,
        uri: URIRef,
        synthetic: Dict[URIRef, List[SyntheticPropertyConfig]],
        collections: Iterable,
    ) -> ClassProfile:
        ontology_class = self.model.classes[uri]
        inherited = self._inherited_properties(uri)

        by_name: Dict[str, PropertyProfile] = {}
        for property_uri in sorted(self._own_properties(uri), key=lambda u: (local_name(u), str(u))):
            if self._matches(property_uri, self.config.skipped_properties):
                continue
            try:
                profile = self.resolver.resolve(
                    uri, property_uri, declared_locally=property_uri not in inherited
                )
            except ResolutionError as e:
                if self._matches(property_uri, self.config.mandatory_properties):
                    raise MandatoryPropertyError(
                        f"Mandatory property {property_uri} cannot be resolved",
                        class_uri=str(uri),
                        property_uri=str(property_uri),
                        cause=e.message,
                    ) from e
                self._record(e)
                continue
            kept = by_name.get(profile.json_name)
            if kept is not None:
                self._collision(uri, profile.json_name, kept, profile)
                continue
            by_name[profile.json_name] = profile

        closure = self.model.superclass_closure(uri)
        for declaring, configs in synthetic.items():
            if declaring != uri and declaring not in closure:
                continue
            for config in configs:
                profile = self._synthetic_profile(config, declared_locally=declaring == uri)
                by_name[profile.json_name] = profile

        for collection, class_uri in collections:
            collected = self.model.classes[class_uri]
            key = collection.key
            if key in by_name:
                logger.debug("collection_replaces_property", name=key)
            by_name[key] = PropertyProfile(
                property=self._synthetic_uri(key),
                name=key,
                resolved_type=ObjectType(class_uri),
                required=False,
                multiplicity=Multiplicity(is_list=True),
                description=collection.description or collected.comment,
                synthetic=True,
                collection_name=key,
            )

        properties = tuple(sorted(by_name.values(), key=lambda p: (local_name(p.property), str(p.property))))
        bases = tuple(
            base for base in ontology_class.named_superclasses
            if base in self.model.classes and self.enums.classify(base) is None
        )
        return ClassProfile(
            ontology_class=ontology_class,
            properties=properties,
            bases=bases,
            is_abstract=not properties,
        )

    def _own_properties(self, uri: URIRef) -> Set[URIRef]:
        """Restricted properties in the lattice plus properties whose domain is the class or a superclass."""
        if uri not in self._property_cache:
            properties = set(self.collector.restricted_properties(uri))
            for owner in {uri} | self.model.superclass_closure(uri):
                properties.update(p.uri for p in self.model.properties_with_domain(owner))
            self._property_cache[uri] = properties
        return self._property_cache[uri]

    def _inherited_properties(self, uri: URIRef) -> Set[URIRef]:
        inherited: Set[URIRef] = set()
        for superclass in self.model.superclass_closure(uri):
            inherited |= self._own_properties(superclass)
        return inherited

    # ------------------------------------------------------------------
    # Synthetic properties
    # ------------------------------------------------------------------

    def _synthetic_by_class(self, root: URIRef) -> Dict[URIRef, List[SyntheticPropertyConfig]]:
        by_class: Dict[URIRef, List[SyntheticPropertyConfig]] = {}
        for config in self.config.synthetic_properties:
            declaring = root if config.class_name is None else self._locate(config.class_name, "synthetic").uri
            by_class.setdefault(declaring, []).append(config)
        return by_class

    def _synthetic_uri(self, name: str) -> URIRef:
        namespace = self.config.namespace or self.model.default_namespace or ""
        return URIRef(namespace + name)

    def _synthetic_profile(self, config: SyntheticPropertyConfig, declared_locally: bool) -> PropertyProfile:
        multiplicity = Multiplicity(is_list=True, min_items=1 if config.required else None) if config.is_list else Multiplicity()
        return PropertyProfile(
            property=self._synthetic_uri(config.name),
            name=config.name,
            resolved_type=PrimitiveType(config.kind, _KIND_DATATYPES[config.kind]),
            required=config.required,
            multiplicity=multiplicity,
            description=config.description,
            declared_locally=declared_locally,
            synthetic=True,
            collection_name=config.name if config.is_list else None,
            identifier=config.identifier,
        )

    # ------------------------------------------------------------------
    # Enumerations and reporting
    # ------------------------------------------------------------------

    def _enums(self, profiles: Iterable[ClassProfile], scope: str) -> List[EnumInfo]:
        if scope == "all":
            infos = {info.class_uri: info for info in self.enums.enumerations()}
        else:
            infos = {}
            for profile in profiles:
                for prop in profile.properties:
                    resolved = prop.resolved_type
                    if isinstance(resolved, EnumType) and resolved.class_uri is not None:
                        info = self.enums.classify(resolved.class_uri)
                        if info is not None:
                            infos[info.class_uri] = info
        return sorted(infos.values(), key=lambda i: (i.local_name, str(i.class_uri)))

    def _matches(self, property_uri: URIRef, names: Iterable[str]) -> bool:
        return any(name in (str(property_uri), local_name(property_uri)) for name in names)

    def _record(self, error: ResolutionError) -> None:
        key = (error.__class__.__name__, error.class_uri, error.property_uri)
        if key in self._reported:
            return
        self._reported.add(key)
        self._report.errors.append(error)

    def _collision(self, class_uri: URIRef, name: str, kept: PropertyProfile, dropped: PropertyProfile) -> None:
        logger.warning(
            "property_name_collision",
            class_uri=str(class_uri),
            name=name,
            kept=str(kept.property),
            dropped=str(dropped.property),
        )
        self._report.warnings.append(
            f"{local_name(class_uri)}: {dropped.property} dropped, '{name}' already names {kept.property}"
        )

    def _log_report(self, class_count: int, enum_count: int) -> None:
        for error in self._report.errors:
            logger.warning("property_skipped", **error.to_dict())
        logger.info(
            "schema_assembled",
            classes=class_count,
            enums=enum_count,
            errors=len(self._report.errors),
            warnings=len(self._report.warnings),
        )
