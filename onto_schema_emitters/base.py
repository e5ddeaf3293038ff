"""
Abstract base class for schema emitters with plugin architecture.

This module provides a plugin system for registering and using different
schema emitters (JSON Schema, XSD, JSON-LD context) with a shared file
writer. Emitters only render a ResolvedSchema; all resolution happens
before they are called.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

import logging

from onto_schema_orchestrator.assembler import ResolvedSchema
from onto_schema_orchestrator.errors import OutputExistsError, OutputWriteError

logger = logging.getLogger(__name__)


class EmitterRegistry:
    """Registry for emitter plugins."""

    _emitters: Dict[str, Type['SchemaEmitter']] = {}

    @classmethod
    def register(cls, output_format: str, emitter_class: Type['SchemaEmitter']) -> None:
        """Register an emitter for an output format.

        Args:
            output_format: The output format identifier (e.g., 'json', 'xsd', 'context')
            emitter_class: The emitter class to register
        """
        cls._emitters[output_format.lower()] = emitter_class
        logger.debug(f"Registered emitter for output format: {output_format}")

    @classmethod
    def get_emitter(cls, output_format: str) -> Optional[Type['SchemaEmitter']]:
        """Get an emitter class for an output format.

        Args:
            output_format: The output format identifier

        Returns:
            The emitter class or None if not found
        """
        return cls._emitters.get(output_format.lower())

    @classmethod
    def list_emitters(cls) -> List[str]:
        """List all registered output formats.

        Returns:
            List of registered output formats
        """
        return list(cls._emitters.keys())


class SchemaEmitter(ABC):
    """Abstract base class for schema emitters.

    Subclasses must implement:
    - build(): Render the ResolvedSchema into a document object
    - serialize(): Turn the document object into text

    Subclasses declare FORMAT (registry key), SCOPE (the assembler scope
    they need) and EXTENSION (default output file extension).
    """

    FORMAT: Optional[str] = None
    SCOPE = "reachable"
    EXTENSION = ".txt"

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize emitter with optional configuration.

        Args:
            config: Optional configuration dictionary with emitter-specific settings
        """
        self.config = config or {}
        self.indent = self.config.get('indent', 2)

    def __init_subclass__(cls, **kwargs):
        """Automatically register emitter subclasses."""
        super().__init_subclass__(**kwargs)
        output_format = getattr(cls, 'FORMAT', None)
        if output_format:
            EmitterRegistry.register(output_format, cls)

    @abstractmethod
    def build(self, schema: ResolvedSchema) -> Any:
        """Render the schema into an in-memory document.

        Args:
            schema: Resolved schema produced by the DocumentAssembler

        Returns:
            Format-specific document object
        """
        pass

    @abstractmethod
    def serialize(self, document: Any) -> str:
        """Serialize a document produced by build()."""
        pass

    def emit(self, schema: ResolvedSchema) -> str:
        """Render the schema to text."""
        return self.serialize(self.build(schema))

    def write(self, schema: ResolvedSchema, output_path: str) -> str:
        """Render the schema and write it to a new file.

        Args:
            schema: Resolved schema to render
            output_path: Path to the output file; must not exist yet

        Returns:
            Path to the written file

        Raises:
            OutputExistsError: If the output file already exists
            OutputWriteError: If the file cannot be written
        """
        output_file = Path(output_path)
        if output_file.exists():
            raise OutputExistsError(str(output_file))

        text = self.emit(schema)
        try:
            output_file.parent.mkdir(parents=True, exist_ok=True)
            with open(output_file, 'x', encoding='utf-8') as f:
                f.write(text)
        except FileExistsError as e:
            raise OutputExistsError(str(output_file)) from e
        except OSError as e:
            raise OutputWriteError(f"Cannot write {output_file}: {e}", str(output_file)) from e

        logger.info(f"Wrote {self.FORMAT} schema to {output_file}")
        return str(output_file)


def get_emitter(output_format: str, config: Optional[Dict[str, Any]] = None) -> Optional[SchemaEmitter]:
    """Factory function to get an emitter instance for an output format.

    Args:
        output_format: The output format identifier (e.g., 'json', 'xsd', 'context')
        config: Optional configuration for the emitter

    Returns:
        Initialized emitter instance or None if format not found
    """
    emitter_class = EmitterRegistry.get_emitter(output_format)
    if emitter_class:
        return emitter_class(config)
    return None
