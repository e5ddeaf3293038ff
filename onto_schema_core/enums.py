"""Enumeration classes and the symbols their individuals map to.

The symbol registry is always passed in explicitly; nothing here keeps
module-level state. Individuals without a registered symbol are dropped
from the enumeration with a single warning each.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Set, Tuple, Union

import yaml
from rdflib import URIRef

from onto_schema_orchestrator.errors import ConfigurationError

from .ontology import Individual, OntologyModel, local_name

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class SymbolRegistry:
    """Maps individual URIs to the symbols emitted in enumerations.

    Keys are full individual URIs; a bare local name is accepted as a
    fallback key. With ``derive=True`` individuals missing from the table
    get a symbol built from their local name, so ``relationshipType_describes``
    becomes ``DESCRIBES`` and ``relationshipType_containedBy`` becomes
    ``CONTAINED_BY``.
    """

    def __init__(self, symbols: Optional[Mapping[str, str]] = None, derive: bool = False) -> None:
        self._symbols: Dict[str, str] = {}
        for key, symbol in (symbols or {}).items():
            if not isinstance(symbol, str) or not symbol.strip():
                raise ConfigurationError(
                    f"Symbol for {key} must be a non-empty string", config_key=str(key)
                )
            self._symbols[str(key)] = symbol.strip()
        self.derive = derive

    @classmethod
    def from_yaml(cls, path: Union[str, Path], derive: bool = False) -> "SymbolRegistry":
        """Load a ``uri: SYMBOL`` mapping from a YAML file.

        Raises:
            ConfigurationError: If the file cannot be read or is not a mapping
        """
        path = Path(path)
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read symbol table {path}: {e}", config_key="symbols") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Symbol table {path} must be a mapping", config_key="symbols")
        logger.info(f"Loaded {len(data)} enumeration symbols from {path}")
        return cls(data, derive=derive)

    def symbol_for(self, uri: Union[str, URIRef]) -> Optional[str]:
        """Return the symbol registered for an individual, or ``None``."""
        key = str(uri)
        if key in self._symbols:
            return self._symbols[key]
        name = local_name(key)
        if name in self._symbols:
            return self._symbols[name]
        if self.derive:
            return derive_symbol(name)
        return None


def derive_symbol(name: str) -> str:
    """Upper snake-case symbol from the part of a local name after its first underscore."""
    suffix = name.split("_", 1)[1] if "_" in name else name
    suffix = suffix.replace("-", "_").replace(".", "_")
    return _CAMEL_BOUNDARY.sub("_", suffix).upper()


@dataclass(frozen=True)
class EnumMember:
    individual: Individual
    symbol: str


@dataclass(frozen=True)
class EnumInfo:
    """Resolved enumeration class: members in traversal order plus what was dropped."""

    class_uri: URIRef
    local_name: str
    comment: Optional[str]
    members: Tuple[EnumMember, ...]
    dropped: Tuple[URIRef, ...] = ()

    @property
    def symbols(self) -> Tuple[str, ...]:
        return tuple(member.symbol for member in self.members)


class EnumResolver:
    """Classifies value types as enumerations against an injected registry."""

    def __init__(self, model: OntologyModel, registry: SymbolRegistry) -> None:
        self.model = model
        self.registry = registry
        self._cache: Dict[URIRef, Optional[EnumInfo]] = {}
        self._warned: Set[URIRef] = set()
        self.warnings: List[str] = []

    def classify(self, type_uri: URIRef) -> Optional[EnumInfo]:
        """Return the enumeration info for ``type_uri``.

        ``None`` when the class has no individuals or none of them maps to
        a registered symbol. Results are memoised per class.
        """
        if type_uri in self._cache:
            return self._cache[type_uri]

        info = None
        ontology_class = self.model.get_class(type_uri)
        if ontology_class is not None and ontology_class.is_enumeration:
            members: List[EnumMember] = []
            dropped: List[URIRef] = []
            for individual in ontology_class.individuals:
                symbol = self.symbol_for(individual.uri)
                if symbol is None:
                    dropped.append(individual.uri)
                else:
                    members.append(EnumMember(individual, symbol))
            if members:
                info = EnumInfo(
                    class_uri=ontology_class.uri,
                    local_name=ontology_class.local_name,
                    comment=ontology_class.comment,
                    members=tuple(members),
                    dropped=tuple(dropped),
                )
            else:
                logger.debug(f"Class {type_uri} has individuals but no registered symbols")
        self._cache[type_uri] = info
        return info

    def symbol_for(self, individual_uri: URIRef) -> Optional[str]:
        """Registered symbol for one individual; warns once per unmapped individual."""
        symbol = self.registry.symbol_for(individual_uri)
        if symbol is None and individual_uri not in self._warned:
            self._warned.add(individual_uri)
            message = f"No symbol registered for individual {individual_uri}; dropping it"
            self.warnings.append(message)
            logger.warning(message)
        return symbol

    def enumerations(self) -> List[EnumInfo]:
        """Every enumeration class of the model that resolves to at least one symbol."""
        infos = []
        for uri in sorted(self.model.classes, key=str):
            info = self.classify(uri)
            if info is not None:
                infos.append(info)
        return infos
