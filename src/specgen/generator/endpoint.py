"""Generate one ``HttpApiEndpoint`` declaration per operation.

An endpoint is built as a chain on the method constructor::

    const getUser = HttpApiEndpoint.get('getUser')`/users/${getUser_idParam}`
      .setUrlParams(Schema.Struct({ ... }))
      .setHeaders(Schema.Struct({ ... }))
      .setCookies(Schema.Struct({ ... }))
      .setPayload(<body>)
      .addSuccess(<200 body>)
      .addSuccess(<201 body>, { status: 201 })
      .addError(<404 body>, { status: 404 })

Path parameters are declared separately as
``const <operationId>_<name>Param = HttpApiSchema.param(...)`` and
interpolated into a template-literal path. Every parameter schema goes
through :func:`~specgen.generator.schema_codegen.compile_param_schema`
because parameters arrive as strings.
"""

from __future__ import annotations

import json
import re
from typing import Optional

from specgen.generator.identifier import sanitize_camel
from specgen.generator.schema_codegen import (
    compile_param_schema,
    compile_schema,
    escape_comment,
    needs_quoting,
    property_key,
)
from specgen.models import GeneratedEndpoint, HTTPMethod, Parameter, ParsedOperation
from specgen.parser.security import format_requirements

METHOD_CONSTRUCTORS: dict[HTTPMethod, str] = {
    HTTPMethod.GET: "get",
    HTTPMethod.POST: "post",
    HTTPMethod.PUT: "put",
    HTTPMethod.PATCH: "patch",
    HTTPMethod.DELETE: "del",
    HTTPMethod.HEAD: "head",
    HTTPMethod.OPTIONS: "options",
}
"""``HttpApiEndpoint`` constructor per method (``delete`` is a reserved word)."""

_PATH_TEMPLATE_RE = re.compile(r"\{([^{}]+)\}")
_PARAM_NAME_RE = re.compile(r"^[A-Za-z0-9_$]+$")


def endpoint_identifier(operation_id: str) -> str:
    """Return the variable an endpoint is bound to.

    The ``operationId`` is used as-is when it is a valid, non-reserved
    identifier; otherwise it is camelCased (with a warning).
    """
    if not needs_quoting(operation_id):
        return operation_id
    identifier = sanitize_camel(operation_id)
    if needs_quoting(identifier):
        identifier = f"{identifier}Endpoint"
    return identifier


def path_param_variable(endpoint: str, param: Parameter) -> str:
    """Return ``<endpoint>_<paramName>Param`` for a path parameter."""
    name = param.name if _PARAM_NAME_RE.match(param.name) else sanitize_camel(param.name)
    return f"{endpoint}_{name}Param"


def generate_endpoint(operation: ParsedOperation) -> GeneratedEndpoint:
    """Generate the declaration pieces for *operation*.

    Args:
        operation: The extracted operation.

    Returns:
        Path parameter declarations, an optional JSDoc block, and the
        endpoint expression.

    Raises:
        SchemaGenerationError: If a parameter, body or response schema
            cannot be compiled.
    """
    identifier = endpoint_identifier(operation.operation_id)
    declarations: list[str] = []
    declared_variables: list[str] = []
    variables: dict[str, str] = {}
    for param in operation.path_parameters:
        variable = path_param_variable(identifier, param)
        code = compile_param_schema(param.node)
        declarations.append(
            f"const {variable} = HttpApiSchema.param({_quote(param.name)}, {code})"
        )
        declared_variables.append(variable)
        variables[param.name] = variable

    constructor = METHOD_CONSTRUCTORS[operation.method]
    op_name = _quote(operation.operation_id)
    if variables:
        def substitute(match: re.Match) -> str:
            variable = variables.get(match.group(1))
            return f"${{{variable}}}" if variable else match.group(0)

        template = _PATH_TEMPLATE_RE.sub(substitute, operation.path.replace("`", "\\`"))
        code = f"HttpApiEndpoint.{constructor}({op_name})`{template}`"
    else:
        code = f"HttpApiEndpoint.{constructor}({op_name}, {_quote(operation.path)})"

    if operation.query_parameters:
        code += _params_struct("setUrlParams", operation.query_parameters, quote_keys=False)
    if operation.header_parameters:
        code += _params_struct("setHeaders", operation.header_parameters, quote_keys=True)
    if operation.cookie_parameters:
        code += _params_struct("setCookies", operation.cookie_parameters, quote_keys=True)

    if operation.request_body is not None:
        code += f"\n  .setPayload({compile_schema(operation.request_body.node)})"

    for response in operation.responses:
        response_code = compile_schema(response.node)
        status = int(response.status_code)
        if response.status_code.startswith("2"):
            if status == 200:
                code += f"\n  .addSuccess({response_code})"
            else:
                code += f"\n  .addSuccess({response_code}, {{ status: {status} }})"
        else:
            code += f"\n  .addError({response_code}, {{ status: {status} }})"

    return GeneratedEndpoint(
        identifier=identifier,
        path_param_declarations=declarations,
        path_param_variables=declared_variables,
        doc_comment=generate_doc_comment(operation),
        endpoint_code=code,
    )


def generate_doc_comment(operation: ParsedOperation) -> Optional[str]:
    """Build the JSDoc block for an endpoint, or ``None`` when there is nothing to say.

    Includes the summary, the description when it differs from the summary,
    a ``@deprecated`` tag, and one ``@security`` line per alternative
    security requirement.
    """
    sections: list[list[str]] = []
    if operation.summary:
        sections.append(operation.summary.splitlines())
    if operation.description and operation.description != operation.summary:
        sections.append(operation.description.splitlines())
    if operation.deprecated:
        sections.append(
            ["@deprecated This endpoint is deprecated and may be removed in a future version."]
        )
    security = format_requirements(operation.security)
    if security:
        sections.append([f"@security {line}" for line in security])

    if not sections:
        return None

    lines = ["/**"]
    for index, section in enumerate(sections):
        if index:
            lines.append(" *")
        lines.extend(f" * {escape_comment(line)}".rstrip() for line in section)
    lines.append(" */")
    return "\n".join(lines)


def _params_struct(method: str, params: list[Parameter], quote_keys: bool) -> str:
    entries: list[str] = []
    for param in params:
        schema = compile_param_schema(param.node)
        if not param.required:
            schema = f"Schema.optional({schema})"
        key = json.dumps(param.name) if quote_keys else property_key(param.name)
        entries.append(f"{key}: {schema}")
    return f"\n  .{method}(Schema.Struct({{\n    " + ",\n    ".join(entries) + "\n  }))"


def _quote(value: str) -> str:
    """Single-quoted TypeScript string literal."""
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"
