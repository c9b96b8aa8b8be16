"""Extract operations, parameters, bodies and responses from the ``paths`` object.

This module walks every path + HTTP method combination of a validated
document and builds one :class:`~specgen.models.ParsedOperation` per
operation. Parameter, request-body and response schemas are normalized with
:func:`~specgen.parser.schema_parser.parse_schema`; named-schema references
inside them are left for the code generator.

The public entry point is :func:`extract_operations`. Internally it delegates
to private helpers that each handle one part of the *Operation Object*:

* ``_merge_parameters`` -- path-level parameters provide defaults and
  operation-level parameters override them when they share the same
  ``name`` and ``in`` values.
* ``_extract_parameters`` -- converts raw parameter dicts, partitioned by
  location.
* ``_extract_request_body`` / ``_extract_responses`` -- keep only the
  ``application/json`` content entry.

Anomalies that do not prevent generation (non-JSON content types, wildcard
status codes, unknown parameter locations) are logged as warnings and the
offending entry is skipped.

``$ref`` pointers to ``#/components/parameters``, ``#/components/requestBodies``
and ``#/components/responses`` are followed when the referenced component
exists.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from specgen.exceptions import ReferenceResolutionError, SchemaGenerationError
from specgen.models import (
    HTTPMethod,
    OperationResponse,
    Parameter,
    ParameterLocation,
    ParsedOperation,
    PrimitiveSchema,
    RequestBody,
)
from specgen.parser.schema_parser import parse_schema
from specgen.parser.security import parse_security_requirements

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"

_STATUS_CODE_RE = re.compile(r"^\d+$")
_COMPONENT_REF_RE = re.compile(r"^#/components/(parameters|requestBodies|responses)/(.+)$")


def extract_operations(document: dict[str, Any]) -> list[ParsedOperation]:
    """Build a :class:`~specgen.models.ParsedOperation` for every operation.

    Operations are returned in document order: paths as declared, and
    methods in the order ``get, post, put, patch, delete, head, options``
    within each path.

    Security follows the override rule: an operation-level ``security``
    array replaces the document-level one, and an explicit empty array
    means "no auth required".

    Args:
        document: A document that passed
            :func:`~specgen.parser.validator.validate_document`.

    Returns:
        The extracted operations.

    Raises:
        SchemaGenerationError: If a parameter, body or response schema is
            malformed.
        ReferenceResolutionError: If a component ``$ref`` cannot be followed.
        SecurityParseError: If a ``security`` array is malformed.
    """
    paths = document.get("paths") or {}
    global_security = parse_security_requirements(document.get("security"))
    operations: list[ParsedOperation] = []

    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue

        # Path-level parameters apply to all operations under this path
        path_params = _as_list(path_item.get("parameters"))

        for method in HTTPMethod:
            operation = path_item.get(method.value)
            if not isinstance(operation, dict):
                continue

            operation_id = operation["operationId"]
            where = f"operation '{operation_id}' ({method.value.upper()} {path})"

            merged = _merge_parameters(
                [_deref(document, p) for p in path_params],
                [_deref(document, p) for p in _as_list(operation.get("parameters"))],
            )
            by_location = _extract_parameters(merged, where)

            op_security = operation.get("security")
            if op_security is not None:
                security = parse_security_requirements(op_security)
            else:
                security = global_security

            operations.append(
                ParsedOperation(
                    operation_id=operation_id,
                    method=method,
                    path=path,
                    summary=operation.get("summary"),
                    description=operation.get("description"),
                    deprecated=operation.get("deprecated") is True,
                    tags=[str(tag) for tag in _as_list(operation.get("tags"))],
                    path_parameters=by_location[ParameterLocation.PATH],
                    query_parameters=by_location[ParameterLocation.QUERY],
                    header_parameters=by_location[ParameterLocation.HEADER],
                    cookie_parameters=by_location[ParameterLocation.COOKIE],
                    request_body=_extract_request_body(
                        document, operation.get("requestBody"), where
                    ),
                    responses=_extract_responses(
                        document, operation.get("responses") or {}, where
                    ),
                    security=security,
                )
            )

    return operations


def _merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    ``(name, in)`` key. Path-level parameters keep their position ahead of
    operation-level ones.
    """
    op_keys = {(p.get("name"), p.get("in")) for p in op_params}
    merged = [p for p in path_params if (p.get("name"), p.get("in")) not in op_keys]
    merged.extend(op_params)
    return merged


def _extract_parameters(
    params_list: list[dict[str, Any]], where: str
) -> dict[ParameterLocation, list[Parameter]]:
    """Convert raw parameter dicts into :class:`~specgen.models.Parameter` lists.

    Path parameters are always required regardless of the ``required``
    field. A parameter without a ``schema`` is treated as a string.
    """
    result: dict[ParameterLocation, list[Parameter]] = {
        location: [] for location in ParameterLocation
    }

    for param in params_list:
        name = param.get("name")
        raw_location = param.get("in")

        try:
            location = ParameterLocation(raw_location)
        except ValueError:
            logger.warning(
                "Skipping parameter '%s' of %s: unsupported location '%s'",
                name,
                where,
                raw_location,
            )
            continue

        if not isinstance(name, str) or not name:
            logger.warning("Skipping unnamed %s parameter of %s", location.value, where)
            continue

        if "schema" in param:
            try:
                node = parse_schema(param["schema"])
            except SchemaGenerationError as exc:
                raise SchemaGenerationError(
                    f"Parameter '{name}' of {where}: {exc.message}"
                ) from exc
        else:
            node = PrimitiveSchema(type="string")

        result[location].append(
            Parameter(
                name=name,
                location=location,
                required=location == ParameterLocation.PATH or param.get("required") is True,
                description=param.get("description"),
                deprecated=param.get("deprecated") is True,
                node=node,
            )
        )

    return result


def _extract_request_body(
    document: dict[str, Any], body: Any, where: str
) -> Optional[RequestBody]:
    if body is None:
        return None
    body = _deref(document, body)

    schema = _json_schema(body.get("content"), f"{where} request body")
    if schema is None:
        return None

    try:
        node = parse_schema(schema)
    except SchemaGenerationError as exc:
        raise SchemaGenerationError(f"Request body of {where}: {exc.message}") from exc

    return RequestBody(
        node=node,
        required=body.get("required") is True,
        description=body.get("description"),
    )


def _extract_responses(
    document: dict[str, Any], responses: dict[Any, Any], where: str
) -> list[OperationResponse]:
    result: list[OperationResponse] = []

    for raw_status, response in responses.items():
        status_code = str(raw_status)
        if not _STATUS_CODE_RE.match(status_code):
            logger.warning(
                "Skipping status code '%s' for %s: only numeric status codes are supported",
                status_code,
                where,
            )
            continue

        response = _deref(document, response)
        schema = _json_schema(response.get("content"), f"{where} response {status_code}")
        if schema is None:
            continue

        try:
            node = parse_schema(schema)
        except SchemaGenerationError as exc:
            raise SchemaGenerationError(
                f"Response {status_code} of {where}: {exc.message}"
            ) from exc

        result.append(
            OperationResponse(
                status_code=status_code,
                node=node,
                description=response.get("description"),
            )
        )

    return result


def _json_schema(content: Any, where: str) -> Optional[Any]:
    """Return the ``application/json`` schema of a content map, warning about the rest."""
    if not isinstance(content, dict) or not content:
        return None

    ignored = [content_type for content_type in content if content_type != JSON_CONTENT_TYPE]
    if ignored:
        logger.warning(
            "%s has non-JSON content types that will be ignored: %s",
            where[:1].upper() + where[1:],
            ", ".join(ignored),
        )

    media = content.get(JSON_CONTENT_TYPE)
    if not isinstance(media, dict) or "schema" not in media:
        return None
    return media["schema"]


def _deref(document: dict[str, Any], obj: Any) -> dict[str, Any]:
    """Follow a component ``$ref`` on a parameter, request body or response."""
    if not isinstance(obj, dict):
        raise SchemaGenerationError(f"Expected an object, got {type(obj).__name__}")
    if "$ref" not in obj:
        return obj

    ref = str(obj["$ref"])
    match = _COMPONENT_REF_RE.match(ref)
    if match is None:
        raise ReferenceResolutionError(f"Invalid $ref format: {ref}")

    section, name = match.groups()
    components = document.get("components") or {}
    target = (components.get(section) or {}).get(name)
    if not isinstance(target, dict):
        raise ReferenceResolutionError(f"Component not found: {ref}")
    return _deref(document, target)


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else []
