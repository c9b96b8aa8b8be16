"""Structural checks run on a decoded document before any compilation.

Only what code generation depends on is validated: the OpenAPI version, the
``info`` title and version, the ``paths`` object, and the presence and
uniqueness of every ``operationId``. Everything else is left to the stages
that consume it.
"""

from __future__ import annotations

from typing import Any

from specgen.exceptions import DocumentValidationError
from specgen.models import HTTPMethod

SUPPORTED_VERSION_PREFIX = "3.1"


def validate_document(document: Any) -> dict[str, Any]:
    """Check that *document* has the minimal shape needed for generation.

    Args:
        document: The decoded JSON/YAML document.

    Returns:
        The same document, typed as a dict, for convenient chaining.

    Raises:
        DocumentValidationError: If the document is not an object, ``openapi``
            is missing or not ``3.1.x``, ``info.title``/``info.version`` are
            missing, ``paths`` is not an object, or an operation lacks an
            ``operationId`` or reuses one.
    """
    if not isinstance(document, dict):
        raise DocumentValidationError("OpenAPI document must be an object")

    if "swagger" in document:
        raise DocumentValidationError(
            f"Swagger {document['swagger']} is not supported. Only OpenAPI 3.1.x is supported."
        )

    version = document.get("openapi")
    if not isinstance(version, str):
        raise DocumentValidationError("Missing required field: openapi")
    if not version.startswith(SUPPORTED_VERSION_PREFIX):
        raise DocumentValidationError(
            f"Unsupported OpenAPI version: {version}. Only OpenAPI 3.1.x is supported."
        )

    info = document.get("info")
    if not isinstance(info, dict):
        raise DocumentValidationError("Missing or invalid required field: info")
    if not isinstance(info.get("title"), str):
        raise DocumentValidationError("Missing required field: info.title")
    if not isinstance(info.get("version"), str):
        raise DocumentValidationError("Missing required field: info.version")

    paths = document.get("paths")
    if not isinstance(paths, dict):
        raise DocumentValidationError("Missing or invalid required field: paths")

    _check_operation_ids(paths)
    return document


def _check_operation_ids(paths: dict[str, Any]) -> None:
    seen: dict[str, str] = {}

    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue

        for method in HTTPMethod:
            operation = path_item.get(method.value)
            if not isinstance(operation, dict):
                continue

            where = f"{method.value.upper()} {path}"
            operation_id = operation.get("operationId")
            if not isinstance(operation_id, str) or not operation_id:
                raise DocumentValidationError(
                    f"Missing required field operationId for operation: {where}"
                )
            if operation_id in seen:
                raise DocumentValidationError(
                    f"Duplicate operationId '{operation_id}': used by {seen[operation_id]} and {where}"
                )
            seen[operation_id] = where
