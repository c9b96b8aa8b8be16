"""Assemble the complete module body for a document.

:func:`generate_api` runs the whole compilation pipeline on a decoded
document:

1. :func:`~specgen.parser.validator.validate_document`
2. :func:`~specgen.parser.schema_parser.build_registry`
3. :func:`~specgen.parser.resolver.resolve_registry` -- fails on dangling
   references and produces the circular-property side table
4. :func:`~specgen.parser.security.parse_security` and
   :func:`~specgen.parser.servers.parse_servers`
5. :func:`~specgen.parser.extractor.extract_operations`
6. :func:`~specgen.generator.toposort.sort_schemas` and
   :func:`~specgen.generator.schema_codegen.compile_named_schema`
7. :func:`~specgen.generator.groups.generate_group_code` per group
8. the ``HttpApi.make(...)`` declaration

Every stage is fail-fast: the first error propagates and no partial module
is produced.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from specgen.generator.groups import generate_group_code, group_operations, group_variable
from specgen.generator.schema_codegen import compile_named_schema, escape_comment, schema_identifier
from specgen.generator.toposort import sort_schemas
from specgen.models import APIInfo, GeneratedApi, ParsedOperation, SchemaRegistry
from specgen.parser.extractor import extract_operations
from specgen.parser.resolver import ReferenceResolver, resolve_registry
from specgen.parser.schema_parser import build_registry
from specgen.parser.security import parse_security
from specgen.parser.servers import generate_servers_doc, parse_servers
from specgen.parser.validator import validate_document

logger = logging.getLogger(__name__)

IMPORTS = (
    'import * as HttpApi from "@effect/platform/HttpApi"',
    'import * as HttpApiEndpoint from "@effect/platform/HttpApiEndpoint"',
    'import * as HttpApiGroup from "@effect/platform/HttpApiGroup"',
    'import * as HttpApiSchema from "@effect/platform/HttpApiSchema"',
    'import * as Schema from "effect/Schema"',
)

_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")


def api_name(title: str) -> str:
    """Derive the API identifier from the document title.

    Non-alphanumeric characters are removed. A title with none left becomes
    ``Api``; one starting with a digit is prefixed with ``_``.
    """
    name = _NON_ALNUM_RE.sub("", title)
    if not name:
        return "Api"
    if name[0].isdigit():
        return f"_{name}"
    return name


def generate_api(document: dict[str, Any]) -> GeneratedApi:
    """Compile a decoded OpenAPI document into a TypeScript module body.

    Args:
        document: The decoded document.

    Returns:
        The module body (imports, schemas, endpoints, groups and the API
        declaration) with the names needed for the export block.

    Raises:
        DocumentValidationError: If the document shape is invalid.
        ReferenceResolutionError: For a dangling or malformed ``$ref``.
        SchemaGenerationError: For a schema that cannot be compiled.
        SecurityParseError: For a malformed security scheme.
    """
    validate_document(document)
    info = APIInfo(
        title=document["info"]["title"],
        version=document["info"]["version"],
        description=document["info"].get("description"),
    )

    registry = build_registry(document)
    _, circular = resolve_registry(registry)
    parse_security(document)
    servers = parse_servers(document)
    operations = extract_operations(document)
    _check_operation_references(operations, registry)

    logger.info(
        "Compiling %d schema(s) and %d operation(s) from %s v%s",
        len(registry),
        len(operations),
        info.title,
        info.version,
    )
    if circular:
        logger.debug("Circular properties found: %d", len(circular))

    lines: list[str] = [*IMPORTS, ""]

    identifiers: list[str] = []
    ordered = sort_schemas(registry, circular)
    if ordered:
        lines.append("// Schema definitions from components/schemas")
        for name, node in ordered:
            lines.append(compile_named_schema(name, node, circular))
            identifiers.append(schema_identifier(name))
        lines.append("")

    servers_doc = generate_servers_doc(servers)
    if servers_doc:
        lines.append(servers_doc)
        lines.append("")

    groups = group_operations(operations)
    for group in groups:
        lines.append(generate_group_code(group))
        lines.append("")

    name = api_name(info.title)
    if info.description:
        lines.append("/**")
        lines.extend(f" * {escape_comment(line)}".rstrip() for line in info.description.splitlines())
        lines.append(" *")
        lines.append(f" * @version {info.version}")
        lines.append(" */")

    api_code = f'const {name} = HttpApi.make("{name}")'
    for group in groups:
        api_code += f"\n  .add({group_variable(group)})"
    lines.append(api_code)

    return GeneratedApi(
        code="\n".join(lines) + "\n",
        api_name=name,
        schema_identifiers=identifiers,
        info=info,
    )


def _check_operation_references(
    operations: list[ParsedOperation], registry: SchemaRegistry
) -> None:
    """Fail fast on dangling references in parameter, body and response schemas."""
    resolver = ReferenceResolver(registry)
    for operation in operations:
        params = (
            operation.path_parameters
            + operation.query_parameters
            + operation.header_parameters
            + operation.cookie_parameters
        )
        for param in params:
            resolver.resolve(param.node)
        if operation.request_body is not None:
            resolver.resolve(operation.request_body.node)
        for response in operation.responses:
            resolver.resolve(response.node)
