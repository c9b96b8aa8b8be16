"""Group operations by tag and emit one ``HttpApiGroup`` per group."""

from __future__ import annotations

import json
import logging

from specgen.generator.endpoint import generate_endpoint
from specgen.generator.identifier import sanitize_camel
from specgen.models import OperationGroup, ParsedOperation

logger = logging.getLogger(__name__)

DEFAULT_GROUP = "default"


def group_operations(operations: list[ParsedOperation]) -> list[OperationGroup]:
    """Group operations by their first tag.

    Untagged operations go to the ``default`` group. Groups are ordered by
    first appearance and keep their operations in input order. Tags that
    sanitize to the same identifier (``Pets`` and ``pets``) stay separate
    groups; later ones get a numeric suffix (``pets2``) and a warning.
    """
    grouped: dict[str, list[ParsedOperation]] = {}
    for operation in operations:
        name = operation.tags[0] if operation.tags else DEFAULT_GROUP
        grouped.setdefault(name, []).append(operation)

    groups: list[OperationGroup] = []
    taken: set[str] = set()
    for name, ops in grouped.items():
        base = identifier = sanitize_camel(name)
        suffix = 2
        while identifier in taken:
            identifier = f"{base}{suffix}"
            suffix += 1
        if identifier != base:
            logger.warning(
                'Group identifier for tag "%s" collides with another tag; using "%s"',
                name,
                identifier,
            )
        taken.add(identifier)
        groups.append(OperationGroup(name=name, identifier=identifier, operations=ops))
    return groups


def group_variable(group: OperationGroup) -> str:
    """Return the ``<camelName>Group`` variable a group is bound to."""
    return f"{group.identifier}Group"


def generate_group_code(group: OperationGroup) -> str:
    """Emit the endpoint declarations of *group* followed by the group itself.

    Path parameter declarations are emitted once per variable name even
    when several endpoints of the group would declare the same one.

    Raises:
        SchemaGenerationError: If an endpoint schema cannot be compiled.
    """
    lines: list[str] = []
    declared: set[str] = set()
    endpoint_vars: list[str] = []

    for operation in group.operations:
        endpoint = generate_endpoint(operation)

        for variable, declaration in zip(
            endpoint.path_param_variables, endpoint.path_param_declarations
        ):
            if variable in declared:
                continue
            declared.add(variable)
            lines.append(declaration)

        if endpoint.doc_comment:
            lines.append(endpoint.doc_comment)
        lines.append(f"const {endpoint.identifier} = {endpoint.endpoint_code}")
        lines.append("")
        endpoint_vars.append(endpoint.identifier)

    group_code = f"const {group_variable(group)} = HttpApiGroup.make({json.dumps(group.name)})"
    for variable in endpoint_vars:
        group_code += f"\n  .add({variable})"
    lines.append(group_code)

    return "\n".join(lines)
