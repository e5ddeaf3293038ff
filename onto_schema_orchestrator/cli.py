"""Command line entry point: ontology in, one schema document out."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from onto_schema_core.enums import SymbolRegistry
from onto_schema_core.ontology import OntologyModel
from onto_schema_emitters import EmitterRegistry, get_emitter
from onto_schema_orchestrator.assembler import SCOPES, DocumentAssembler
from onto_schema_orchestrator.errors import (
    ConfigurationError,
    OntoSchemaError,
    OntologyLoadError,
    OutputExistsError,
)
from onto_schema_orchestrator.models import GeneratorConfig

logger = structlog.get_logger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog and stdlib logging to write to stderr."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer() if sys.stderr.isatty() else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="onto-schema",
        description="Generate a JSON Schema, XSD or JSON-LD context from an OWL ontology",
    )
    parser.add_argument("format", choices=sorted(EmitterRegistry.list_emitters()), help="Output format")
    parser.add_argument("input", type=str, help="Path to the ontology document")
    parser.add_argument("output", type=str, help="Output file (must not exist) or directory to write <input stem><extension> into")
    parser.add_argument("--config", type=str, default=None, help="Generator configuration YAML")
    parser.add_argument("--root-class", type=str, default=None, help="Root class local name or URI")
    parser.add_argument("--symbols", type=str, default=None, help="YAML mapping of individual URIs to enum symbols")
    parser.add_argument(
        "--derive-symbols",
        action="store_true",
        help="Derive enum symbols from individual local names when not in the symbol table"
    )
    parser.add_argument("--input-format", type=str, default=None, help="rdflib parser name (default: guessed)")
    parser.add_argument("--scope", choices=SCOPES, default=None, help="Override the class scope of the output format")
    parser.add_argument(
        "--validate-output",
        action="store_true",
        help="Load a generated XSD with xmlschema before writing it"
    )
    parser.add_argument("--log-level", type=str, default="WARNING", help="Logging level (default: WARNING)")
    return parser


def load_ontology(path: Path, rdf_format: Optional[str] = None) -> OntologyModel:
    """Load the ontology, wrapping parser failures in OntologyLoadError."""
    if not path.is_file():
        raise OntologyLoadError(f"Ontology file not found: {path}", str(path), rdf_format)
    try:
        return OntologyModel.load(path, rdf_format=rdf_format)
    except Exception as e:
        raise OntologyLoadError(f"Cannot parse ontology {path}: {e}", str(path), rdf_format) from e


def output_path(output: Path, input_path: Path, extension: str) -> Path:
    """Name the output after the input when OUTPUT is an existing directory."""
    if output.is_dir():
        return output / (input_path.stem + extension)
    return output


def generate(args: argparse.Namespace) -> str:
    """Run one generation from parsed arguments and return the output path."""
    config = GeneratorConfig.from_yaml(args.config) if args.config else GeneratorConfig()
    if args.root_class:
        config = config.model_copy(update={"root_class": args.root_class})

    if args.symbols:
        registry = SymbolRegistry.from_yaml(args.symbols, derive=args.derive_symbols)
    else:
        registry = SymbolRegistry(derive=args.derive_symbols)

    emitter = get_emitter(args.format, {"validate": args.validate_output})
    if emitter is None:
        raise ConfigurationError(f"No emitter registered for format '{args.format}'", config_key="format")

    output = output_path(Path(args.output), Path(args.input), emitter.EXTENSION)
    if output.exists():
        raise OutputExistsError(str(output))

    model = load_ontology(Path(args.input), args.input_format)
    schema = DocumentAssembler(model, config, registry).assemble(scope=args.scope or emitter.SCOPE)
    written = emitter.write(schema, str(output))
    logger.info(
        "schema_written",
        output=written,
        output_format=args.format,
        skipped_properties=len(schema.report.errors),
    )
    return written


def main(argv: Optional[List[str]] = None) -> int:
    """Console entry point; returns the process exit status."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        generate(args)
    except OntoSchemaError as e:
        logger.error("generation_failed", **e.to_dict())
        print(f"onto-schema: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    sys.exit(main())
