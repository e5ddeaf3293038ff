"""Custom exception hierarchy for onto-schema."""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class OntoSchemaError(Exception):
    """Base exception for all onto-schema errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Initialize error with message and optional details.

        Args:
            message: Human-readable error message
            details: Additional context about the error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of error."""
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# Configuration Errors

class ConfigurationError(OntoSchemaError):
    """Raised when generator configuration or a symbol table is invalid."""

    def __init__(self, message: str, config_key: Optional[str] = None, errors: Optional[list] = None) -> None:
        details = {}
        if config_key:
            details["config_key"] = config_key
        if errors:
            details["validation_errors"] = errors
        super().__init__(message, details)


# Fatal Generation Errors

class FatalGenerationError(OntoSchemaError):
    """Base class for errors that abort schema generation."""
    pass


class MissingClassError(FatalGenerationError):
    """Raised when the root or a collection class is not in the ontology."""

    def __init__(self, class_name: str, role: str = "root") -> None:
        super().__init__(
            f"Class '{class_name}' not found in ontology",
            {"class_name": class_name, "role": role},
        )


class AmbiguousBaseTypeError(FatalGenerationError):
    """Raised when a class has more than one eligible structural base."""

    def __init__(self, class_uri: str, bases: List[str]) -> None:
        super().__init__(
            f"Ambiguous superclasses for {class_uri}",
            {"class_uri": class_uri, "bases": bases},
        )


class MandatoryPropertyError(FatalGenerationError):
    """Raised when a mandatory identifier property cannot be resolved."""

    def __init__(self, message: str, class_uri: str, property_uri: str, cause: Optional[str] = None) -> None:
        details = {"class_uri": class_uri, "property_uri": property_uri}
        if cause:
            details["cause"] = cause
        super().__init__(message, details)


# Resource Errors

class ResourceError(OntoSchemaError):
    """Base class for input and output file errors."""
    pass


class OntologyLoadError(ResourceError):
    """Raised when the ontology document cannot be read or parsed."""

    def __init__(self, message: str, file_path: str, rdf_format: Optional[str] = None) -> None:
        details = {"file_path": file_path}
        if rdf_format:
            details["rdf_format"] = rdf_format
        super().__init__(message, details)


class OutputExistsError(ResourceError):
    """Raised when the output file already exists."""

    def __init__(self, file_path: str) -> None:
        super().__init__(f"Output file {file_path} already exists", {"file_path": file_path})


class OutputWriteError(ResourceError):
    """Raised when the generated document cannot be written."""

    def __init__(self, message: str, file_path: str) -> None:
        super().__init__(message, {"file_path": file_path})


# Resolution Errors (per property, collected)

class ResolutionError(OntoSchemaError):
    """Base class for errors resolving a single (class, property) pair."""

    def __init__(self, message: str, class_uri: Optional[str] = None, property_uri: Optional[str] = None, **kwargs: Any) -> None:
        details = {}
        if class_uri:
            details["class_uri"] = class_uri
        if property_uri:
            details["property_uri"] = property_uri
        details.update(kwargs)
        super().__init__(message, details)

    @property
    def class_uri(self) -> Optional[str]:
        return self.details.get("class_uri")

    @property
    def property_uri(self) -> Optional[str]:
        return self.details.get("property_uri")


class AmbiguousTypeError(ResolutionError):
    """Raised when restrictions or ranges name more than one value type."""

    def __init__(self, class_uri: Optional[str], property_uri: str, candidates: List[str]) -> None:
        super().__init__(
            f"Ambiguous types for property {property_uri}",
            class_uri=class_uri,
            property_uri=property_uri,
            candidates=candidates,
        )


class MissingTypeError(ResolutionError):
    """Raised when no value type can be determined for a property."""

    def __init__(self, class_uri: Optional[str], property_uri: str) -> None:
        super().__init__(f"No type for property {property_uri}", class_uri=class_uri, property_uri=property_uri)


class UnknownDatatypeError(ResolutionError):
    """Raised when a property is typed by an XSD datatype without a mapping."""

    def __init__(self, class_uri: Optional[str], property_uri: str, datatype: str) -> None:
        super().__init__(
            f"Unknown datatype {datatype} for property {property_uri}",
            class_uri=class_uri,
            property_uri=property_uri,
            datatype=datatype,
        )
