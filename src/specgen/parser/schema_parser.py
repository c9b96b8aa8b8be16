"""Normalize raw JSON-Schema dicts into :data:`~specgen.models.SchemaNode` trees.

OpenAPI 3.0 and 3.1 spell the same ideas in several ways: ``nullable: true``
versus a ``type`` array containing ``"null"``, ``exclusiveMinimum`` as a
boolean modifier versus a number, ``const`` versus a one-element ``enum``.
:func:`parse_schema` maps every spelling onto one of the frozen node classes
in :mod:`specgen.models` so the resolver and the code generator only ever see
one shape per concept.

Keywords are inspected in a fixed priority order and the first match wins:
``$ref``, ``allOf``, ``oneOf``, ``anyOf``, ``const``, ``enum``,
``nullable: true``, a ``type`` array, and finally the scalar ``type``.

Structural problems that only matter once code is generated (an array
without ``items``, an unsupported ``type``, an empty combinator list) are
preserved here and reported by
:func:`~specgen.generator.schema_codegen.compile_schema`.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ValidationError

from specgen.exceptions import DocumentValidationError, SchemaGenerationError
from specgen.models import (
    ArraySchema,
    CombinatorKind,
    CombinatorSchema,
    EnumSchema,
    NullableSchema,
    ObjectProperty,
    ObjectSchema,
    PrimitiveSchema,
    ReferenceSchema,
    SchemaNode,
    SchemaRegistry,
    UnknownSchema,
)

_COMBINATOR_KEYS = (CombinatorKind.ALL_OF, CombinatorKind.ONE_OF, CombinatorKind.ANY_OF)


def build_registry(document: dict[str, Any]) -> SchemaRegistry:
    """Parse ``components.schemas`` into a :class:`~specgen.models.SchemaRegistry`.

    Entries keep the order in which the document declares them.

    Args:
        document: The decoded OpenAPI document.

    Returns:
        The registry; empty when the document has no ``components.schemas``.

    Raises:
        DocumentValidationError: If ``components`` or ``components.schemas``
            is not a mapping.
        SchemaGenerationError: If an entry is not a schema object.
    """
    components = document.get("components") or {}
    if not isinstance(components, dict):
        raise DocumentValidationError("Invalid field: components must be an object")

    raw_schemas = components.get("schemas") or {}
    if not isinstance(raw_schemas, dict):
        raise DocumentValidationError("Invalid field: components.schemas must be an object")

    schemas: dict[str, SchemaNode] = {}
    for name, raw in raw_schemas.items():
        try:
            schemas[str(name)] = parse_schema(raw)
        except SchemaGenerationError as exc:
            raise SchemaGenerationError(f"Schema '{name}': {exc.message}") from exc

    return SchemaRegistry(schemas=schemas)


def parse_schema(raw: Any) -> SchemaNode:
    """Normalize one raw schema dict (recursively) into a schema node.

    Args:
        raw: A schema object from the document. The boolean schema ``true``
            is accepted as "anything".

    Returns:
        The normalized node. The input is never modified.

    Raises:
        SchemaGenerationError: If *raw* (or a nested schema) is not an
            object, a combinator or ``enum`` is not a list, or a keyword has
            a value of the wrong type.
    """
    if raw is True:
        return UnknownSchema()
    if not isinstance(raw, dict):
        raise SchemaGenerationError(
            f"Schema must be an object, got {type(raw).__name__}"
        )

    common = _common_fields(raw)

    if "$ref" in raw:
        return _build(ReferenceSchema, ref=str(raw["$ref"]), **common)

    for kind in _COMBINATOR_KEYS:
        if kind.value in raw:
            members = raw[kind.value]
            if not isinstance(members, list):
                raise SchemaGenerationError(f"{kind.value} must be a list of schemas")
            return _build(
                CombinatorSchema,
                combinator=kind,
                members=[parse_schema(member) for member in members],
                **common,
            )

    if "const" in raw:
        return _build(EnumSchema, values=[raw["const"]], is_const=True, **common)

    if "enum" in raw:
        values = raw["enum"]
        if not isinstance(values, list):
            raise SchemaGenerationError("enum must be a list of values")
        return _build(EnumSchema, values=list(values), **common)

    if raw.get("nullable") is True:
        # The description stays on the wrapper only.
        base = {
            key: value
            for key, value in raw.items()
            if key not in ("nullable", "description")
        }
        return _build(NullableSchema, inner=parse_schema(base), **common)

    type_value = raw.get("type")
    if isinstance(type_value, list):
        return _parse_type_array(raw, type_value, common)

    if type_value == "array" or (type_value is None and "items" in raw):
        return _parse_array(raw, common)

    if type_value == "object" or (
        type_value is None and ("properties" in raw or "additionalProperties" in raw)
    ):
        return _parse_object(raw, common)

    if type_value is None:
        return _build(UnknownSchema, **common)

    return _build(
        PrimitiveSchema,
        type=str(type_value),
        format=raw.get("format"),
        min_length=raw.get("minLength"),
        max_length=raw.get("maxLength"),
        pattern=raw.get("pattern"),
        minimum=raw.get("minimum"),
        maximum=raw.get("maximum"),
        exclusive_minimum=raw.get("exclusiveMinimum"),
        exclusive_maximum=raw.get("exclusiveMaximum"),
        multiple_of=raw.get("multipleOf"),
        **common,
    )


def _parse_type_array(
    raw: dict[str, Any], types: list[Any], common: dict[str, Any]
) -> SchemaNode:
    """Handle OpenAPI 3.1 ``type: [...]``, e.g. ``["string", "null"]``."""
    non_null = [t for t in types if t != "null"]
    is_nullable = len(non_null) != len(types)

    if not non_null:
        return _build(PrimitiveSchema, type="null", **common)

    # The description is attached exactly once, to the outermost node.
    stripped = {key: value for key, value in raw.items() if key != "description"}

    if len(non_null) == 1:
        source = stripped if is_nullable else raw
        inner = parse_schema({**source, "type": non_null[0]})
    else:
        inner = _build(
            CombinatorSchema,
            combinator=CombinatorKind.ANY_OF,
            members=[parse_schema({**stripped, "type": t}) for t in non_null],
            description=None if is_nullable else raw.get("description"),
        )

    if not is_nullable:
        return inner
    return _build(NullableSchema, inner=inner, **common)


def _parse_array(raw: dict[str, Any], common: dict[str, Any]) -> ArraySchema:
    items = parse_schema(raw["items"]) if "items" in raw else None
    return _build(
        ArraySchema,
        items=items,
        min_items=raw.get("minItems"),
        max_items=raw.get("maxItems"),
        unique_items=raw.get("uniqueItems") is True,
        **common,
    )


def _parse_object(raw: dict[str, Any], common: dict[str, Any]) -> ObjectSchema:
    raw_properties = raw.get("properties") or {}
    if not isinstance(raw_properties, dict):
        raise SchemaGenerationError("properties must be an object")

    required = raw.get("required") or []
    if not isinstance(required, list):
        raise SchemaGenerationError("required must be a list of property names")
    required_names = {str(name) for name in required}

    properties: dict[str, ObjectProperty] = {}
    for prop_name, prop_raw in raw_properties.items():
        try:
            node = parse_schema(prop_raw)
        except SchemaGenerationError as exc:
            raise SchemaGenerationError(
                f"Property '{prop_name}': {exc.message}"
            ) from exc
        properties[str(prop_name)] = ObjectProperty(
            node=node, required=str(prop_name) in required_names
        )

    additional = raw.get("additionalProperties")
    if isinstance(additional, dict):
        additional = parse_schema(additional)
    elif additional is not None and not isinstance(additional, bool):
        raise SchemaGenerationError("additionalProperties must be a boolean or a schema")

    return _build(
        ObjectSchema,
        properties=properties,
        additional_properties=additional,
        **common,
    )


def _common_fields(raw: dict[str, Any]) -> dict[str, Any]:
    return {
        "description": raw.get("description"),
        "deprecated": raw.get("deprecated") is True,
    }


def _build(model: type[BaseModel], **fields: Any) -> Any:
    """Instantiate a node model, reporting bad keyword values as generation errors."""
    try:
        return model(**fields)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise SchemaGenerationError(f"Invalid {model.__name__}: {problems}") from exc
