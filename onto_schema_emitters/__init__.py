"""Schema emitters; importing this package registers every emitter."""

from .base import EmitterRegistry, SchemaEmitter, get_emitter
from .json_schema import JsonSchemaEmitter
from .jsonld_context import JsonLdContextEmitter
from .xsd import XsdEmitter

__all__ = [
    "EmitterRegistry",
    "JsonLdContextEmitter",
    "JsonSchemaEmitter",
    "SchemaEmitter",
    "XsdEmitter",
    "get_emitter",
]
