"""Inspect commands -- examine what the compiler sees in a document.

Provides the ``specgen inspect`` sub-command group with read-only commands
for viewing the schemas (in declaration order, with circular properties),
the operations and their groups, security schemes, and general API info.
Every sub-command takes the document (file path, URL or ``-``) as its
argument and presents the data as a table or, with ``--json``, as JSON.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import typer

from specgen.exceptions import SpecgenError
from specgen.models import (
    ArraySchema,
    CombinatorSchema,
    EnumSchema,
    NullableSchema,
    ObjectSchema,
    PrimitiveSchema,
    ReferenceSchema,
    SchemaNode,
)
from specgen.output import OutputFormat, error, get_output, info

if TYPE_CHECKING:
    from specgen.parser.resolver import CircularPropertySet

inspect_app = typer.Typer(no_args_is_help=True)


def _load_validated(source: str) -> dict[str, Any]:
    """Load and validate *source*, exiting with the error's code on failure."""
    from specgen.commands.generate import load_document
    from specgen.config import resolve_config
    from specgen.parser import validate_document

    try:
        return validate_document(load_document(source, resolve_config()))
    except SpecgenError as exc:
        error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None


def describe_node(node: SchemaNode) -> str:
    """Return a short kind label for a schema node (``object``, ``array<User>``, ...)."""
    if isinstance(node, ReferenceSchema):
        return f"$ref {node.ref.rsplit('/', 1)[-1]}"
    if isinstance(node, CombinatorSchema):
        return node.combinator.value
    if isinstance(node, EnumSchema):
        return "const" if node.is_const else "enum"
    if isinstance(node, NullableSchema):
        return f"{describe_node(node.inner)} | null"
    if isinstance(node, PrimitiveSchema):
        return f"{node.type} ({node.format})" if node.format else node.type
    if isinstance(node, ArraySchema):
        return f"array<{describe_node(node.items)}>" if node.items is not None else "array"
    if isinstance(node, ObjectSchema):
        return "record" if not node.properties and node.additional_properties else "object"
    return "unknown"


@inspect_app.command("schemas")
def inspect_schemas(
    spec: str = typer.Argument(..., help="OpenAPI document: file path, URL, or '-'."),
) -> None:
    """List named schemas in declaration order.

    Schemas are shown in the order they are emitted (dependencies first),
    with the places where a reference cycle closes and is therefore
    generated with ``Schema.suspend``.

    Example::

        specgen inspect schemas openapi.yaml
    """
    from specgen.generator.schema_codegen import schema_identifier
    from specgen.generator.toposort import sort_schemas
    from specgen.parser import build_registry, resolve_registry

    document = _load_validated(spec)
    try:
        registry = build_registry(document)
        _, circular = resolve_registry(registry)
    except SpecgenError as exc:
        error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None

    if not len(registry):
        info("No schemas defined in this document.")
        return

    headers = ["Schema", "Identifier", "Kind", "Circular"]
    rows: list[list[str]] = []
    for name, node in sort_schemas(registry, circular):
        cyclic = sorted(_circular_paths(node, circular))
        rows.append([
            name,
            schema_identifier(name),
            describe_node(node),
            ", ".join(cyclic) if cyclic else "-",
        ])

    get_output().print_table(headers, rows, title=f"Schemas ({len(rows)})")


@inspect_app.command("paths")
def inspect_paths(
    spec: str = typer.Argument(..., help="OpenAPI document: file path, URL, or '-'."),
) -> None:
    """List all operations with their group.

    Example::

        specgen inspect paths openapi.yaml
    """
    from specgen.generator.groups import group_operations
    from specgen.parser import extract_operations

    document = _load_validated(spec)
    try:
        operations = extract_operations(document)
    except SpecgenError as exc:
        error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None

    if not operations:
        info("No operations defined in this document.")
        return

    headers = ["Method", "Path", "Operation", "Group", "Deprecated"]
    rows: list[list[str]] = []
    for group in group_operations(operations):
        for op in group.operations:
            rows.append([
                op.method.value.upper(),
                op.path,
                op.operation_id,
                group.name,
                "Yes" if op.deprecated else "",
            ])

    get_output().print_table(
        headers, rows, title=f"{document['info']['title']} -- Operations ({len(rows)})"
    )


@inspect_app.command("info")
def inspect_info(
    spec: str = typer.Argument(..., help="OpenAPI document: file path, URL, or '-'."),
) -> None:
    """Show API info: title, version, servers and security schemes.

    Example::

        specgen inspect info openapi.yaml
        specgen --json inspect info openapi.yaml
    """
    from specgen.generator.api import api_name
    from specgen.parser import parse_security, parse_servers

    document = _load_validated(spec)
    try:
        security = parse_security(document)
    except SpecgenError as exc:
        error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None
    servers = parse_servers(document)

    data: dict[str, Any] = {
        "title": document["info"]["title"],
        "version": document["info"]["version"],
        "openapi_version": document["openapi"],
        "api_name": api_name(document["info"]["title"]),
        "description": document["info"].get("description") or "-",
        "servers": [s.url for s in servers.servers],
        "base_path": servers.path_prefix or "-",
        "security_schemes": {name: s.type for name, s in security.schemes.items()},
    }

    output = get_output()
    if output.format == OutputFormat.JSON:
        output.print_json(data)
        return

    rows = [
        [key, ", ".join(value) if isinstance(value, list) else _format_value(value)]
        for key, value in data.items()
    ]
    output.print_table(["Field", "Value"], rows, title="API Info")


def _format_value(value: Any) -> str:
    if isinstance(value, dict):
        return ", ".join(f"{k} ({v})" for k, v in value.items()) or "-"
    return str(value)


def _circular_paths(
    node: SchemaNode, circular: CircularPropertySet, prefix: str = ""
) -> list[str]:
    """Collect the paths inside *node* where a reference cycle is suspended.

    Properties are dotted (``parent.children``), array items add ``[]`` and
    record values add ``*``. A suspended reference at the top of the schema
    is reported as ``(root)``.
    """
    found: list[str] = []
    if isinstance(node, ReferenceSchema):
        if circular.is_deferred_reference(node):
            found.append(prefix[:-1] or "(root)")
    elif isinstance(node, ObjectSchema):
        cyclic = circular.properties_of(node)
        for name, prop in node.properties.items():
            path = f"{prefix}{name}"
            if name in cyclic:
                found.append(path)
            found.extend(_circular_paths(prop.node, circular, f"{path}."))
        additional = node.additional_properties
        if not isinstance(additional, (bool, type(None))):
            found.extend(_circular_paths(additional, circular, f"{prefix}*."))
    elif isinstance(node, ArraySchema) and node.items is not None:
        found.extend(_circular_paths(node.items, circular, f"{prefix[:-1]}[]."))
    elif isinstance(node, CombinatorSchema):
        for member in node.members:
            found.extend(_circular_paths(member, circular, prefix))
    elif isinstance(node, NullableSchema):
        found.extend(_circular_paths(node.inner, circular, prefix))
    return found
