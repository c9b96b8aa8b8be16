"""Document parser -- load, validate, normalize schemas, resolve ``$ref`` pointers.

This sub-package is responsible for the first half of the specgen pipeline:
turning a raw OpenAPI 3.1 document (JSON or YAML, local file or remote URL)
into a :class:`~specgen.models.SchemaRegistry`, the circular-property side
table, and a list of :class:`~specgen.models.ParsedOperation`.

Typical usage::

    from specgen.parser import load_spec, validate_document, build_registry

    document = validate_document(load_spec("openapi.yaml"))
    registry = build_registry(document)
    resolved, circular = resolve_registry(registry)
    operations = extract_operations(document)

Sub-modules:

* :mod:`~specgen.parser.loader` -- I/O layer (URL, file, stdin) plus format
  detection.
* :mod:`~specgen.parser.validator` -- minimal structural validation.
* :mod:`~specgen.parser.schema_parser` -- raw schema dicts to normalized
  schema nodes.
* :mod:`~specgen.parser.resolver` -- ``$ref`` resolution with cycle
  detection.
* :mod:`~specgen.parser.extractor` -- operations, parameters, bodies and
  responses.
* :mod:`~specgen.parser.security` / :mod:`~specgen.parser.servers` --
  security schemes and server URLs.
"""

from specgen.parser.extractor import extract_operations
from specgen.parser.loader import load_spec
from specgen.parser.resolver import (
    CircularPropertySet,
    ReferenceResolver,
    parse_ref,
    resolve_registry,
)
from specgen.parser.schema_parser import build_registry, parse_schema
from specgen.parser.security import parse_security
from specgen.parser.servers import parse_servers
from specgen.parser.validator import validate_document

__all__ = [
    "CircularPropertySet",
    "ReferenceResolver",
    "build_registry",
    "extract_operations",
    "load_spec",
    "parse_ref",
    "parse_schema",
    "parse_security",
    "parse_servers",
    "resolve_registry",
    "validate_document",
]
