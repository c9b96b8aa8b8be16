"""Compile schema nodes into Effect ``Schema`` expressions.

:func:`compile_schema` is a pure recursive translation from a
:data:`~specgen.models.SchemaNode` to TypeScript source text. It never
mutates its input and raises :class:`~specgen.exceptions.SchemaGenerationError`
on the first node it cannot translate.

Translation summary:

============================  ==================================================
Node                          Expression
============================  ==================================================
``$ref``                      ``<Name>Schema``
``allOf``                     ``Schema.extend(A, B)`` folded left
``oneOf`` / ``anyOf``         ``Schema.Union(A, B, ...)``
``enum`` / ``const``          ``Schema.Union(Schema.Literal(..), ...)`` / literal
nullable                      ``Schema.Union(X, Schema.Null)``
string (+ format)             ``Schema.String``, ``Schema.UUID``, ...
number / integer              ``Schema.Number`` / ``Schema.Int``
array                         ``Schema.Array(X)``
object                        ``Schema.Struct({...})`` (+ ``Schema.Record``)
============================  ==================================================

Constraints are appended with ``.pipe(...)`` and descriptions with
``.annotations({ description: '...' })``.

Properties that close a reference cycle (see
:class:`~specgen.parser.resolver.CircularPropertySet`) are compiled in
*deferred* mode: every reference inside them becomes
``Schema.suspend(() => <Name>Schema)`` so the generated module never reads
a ``const`` before it is initialized. A cycle that closes outside any
property, such as a record value or array item naming its own schema, has
its closing reference suspended the same way.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional, Union

from specgen.exceptions import SchemaGenerationError
from specgen.generator.identifier import sanitize_pascal
from specgen.models import (
    ArraySchema,
    CombinatorKind,
    CombinatorSchema,
    EnumSchema,
    NullableSchema,
    ObjectSchema,
    PrimitiveSchema,
    ReferenceSchema,
    SchemaNode,
    UnknownSchema,
)
from specgen.parser.resolver import CircularPropertySet, parse_ref

STRING_FORMATS: dict[str, str] = {
    "uuid": "Schema.UUID",
    "date-time": "Schema.DateTimeUtc",
    "date": "Schema.DateFromString",
    "uri": "Schema.URL",
    "url": "Schema.URL",
}
"""String formats with a dedicated Effect schema. ``email`` is handled separately."""

# Simplified RFC 5322 address pattern, already escaped for a single-quoted literal.
EMAIL_PATTERN = "^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\\\\.[a-zA-Z]{2,}$"

UNIQUE_ITEMS_FILTER = (
    "Schema.filter((items) => new Set(items).size === items.length, "
    "{ message: () => 'Array items must be unique' })"
)

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_$][a-zA-Z0-9_$]*$")

RESERVED_WORDS = frozenset(
    {
        "await", "break", "case", "catch", "class", "const", "continue",
        "debugger", "default", "delete", "do", "else", "enum", "export",
        "extends", "finally", "for", "function", "if", "implements", "import",
        "in", "instanceof", "interface", "let", "new", "package", "private",
        "protected", "public", "return", "static", "super", "switch", "this",
        "throw", "try", "typeof", "var", "void", "while", "with", "yield",
    }
)

_DESCRIPTION_ESCAPES = (
    ("\\", "\\\\"),
    ("'", "\\'"),
    ("`", "\\`"),
    ("$", "\\$"),
    ("\n", "\\n"),
    ("\r", "\\r"),
    ("\t", "\\t"),
)


# --- Public API ---


def compile_schema(
    node: SchemaNode,
    circular: Optional[CircularPropertySet] = None,
    deferred: bool = False,
) -> str:
    """Compile *node* into an Effect ``Schema`` expression.

    Args:
        node: The (unresolved) schema node. References compile to the
            identifier of the named schema rather than being inlined.
        circular: Circular-property side table from
            :func:`~specgen.parser.resolver.resolve_registry`. Properties it
            lists for an object node are compiled in deferred mode.
        deferred: Wrap every reference in ``Schema.suspend``. Used for
            properties that close a reference cycle.

    Returns:
        The expression text.

    Raises:
        SchemaGenerationError: For an array without ``items``, an
            unsupported ``type``, an empty combinator or ``enum``, or an enum
            value that cannot be written as a literal.
        ReferenceResolutionError: For a ``$ref`` that is not a
            ``#/components/schemas/<name>`` pointer.
    """
    code = _compile_node(node, circular, deferred)
    return annotate(code, node.description)


def compile_param_schema(node: SchemaNode) -> str:
    """Compile the schema of a path, query, header or cookie parameter.

    Parameters travel as strings, so ``integer`` and ``number`` compile to
    ``Schema.NumberFromString`` (with the usual numeric constraints) and
    ``boolean`` to ``Schema.BooleanFromString``. Every other node uses
    :func:`compile_schema`.
    """
    if isinstance(node, PrimitiveSchema):
        if node.type in ("integer", "number"):
            code = _pipe("Schema.NumberFromString", _numeric_filters(node))
            return annotate(code, node.description)
        if node.type == "boolean":
            return annotate("Schema.BooleanFromString", node.description)
    return compile_schema(node)


def compile_named_schema(
    name: str,
    node: SchemaNode,
    circular: Optional[CircularPropertySet] = None,
) -> str:
    """Compile a registry entry into an exported ``const`` declaration.

    A JSDoc block is emitted above the declaration when the schema has a
    description or is deprecated.

    Example::

        >>> print(compile_named_schema("Tag", parse_schema({"type": "string"})))
        export const TagSchema = Schema.String
    """
    code = compile_schema(node, circular)
    lines: list[str] = []

    if node.description or node.deprecated:
        lines.append("/**")
        if node.description:
            lines.extend(f" * {line}" for line in escape_comment(node.description).splitlines())
        if node.deprecated:
            if node.description:
                lines.append(" *")
            lines.append(
                " * @deprecated This schema is deprecated and may be removed in a future version."
            )
        lines.append(" */")

    lines.append(f"export const {schema_identifier(name, warn=True)} = {code}")
    return "\n".join(lines)


def schema_identifier(name: str, warn: bool = False) -> str:
    """Return the ``<PascalName>Schema`` identifier a named schema is bound to.

    Args:
        name: The schema name as written in the document.
        warn: Log a warning when *name* had to be sanitized. Only the
            declaration site sets this, so each renamed schema is reported
            once rather than at every reference.
    """
    return f"{sanitize_pascal(name, warn=warn)}Schema"


def needs_quoting(name: str) -> bool:
    """Return True when *name* must be quoted as an object-literal key."""
    return name in RESERVED_WORDS or _IDENTIFIER_RE.match(name) is None


def property_key(name: str) -> str:
    """Return *name* as an object-literal key, double-quoted when necessary."""
    return json.dumps(name) if needs_quoting(name) else name


def escape_description(text: str) -> str:
    """Escape *text* for a single-quoted TypeScript string literal."""
    for char, replacement in _DESCRIPTION_ESCAPES:
        text = text.replace(char, replacement)
    return text


def escape_comment(text: str) -> str:
    """Escape *text* for use inside a ``/** ... */`` block."""
    return text.replace("*/", "*\\/")


def annotate(code: str, description: Optional[str]) -> str:
    """Append a description annotation to *code* when *description* is set."""
    if not description:
        return code
    return f"{code}.annotations({{ description: '{escape_description(description)}' }})"


def format_number(value: Union[int, float]) -> str:
    """Render a numeric keyword value as a TypeScript number literal.

    Integral floats (``1.0``, common after YAML decoding) are written
    without the fractional part.
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


# --- Node compilation ---


def _compile_node(
    node: SchemaNode, circular: Optional[CircularPropertySet], deferred: bool
) -> str:
    if isinstance(node, ReferenceSchema):
        identifier = schema_identifier(parse_ref(node.ref))
        if deferred or (circular is not None and circular.is_deferred_reference(node)):
            return f"Schema.suspend(() => {identifier})"
        return identifier

    if isinstance(node, CombinatorSchema):
        return _compile_combinator(node, circular, deferred)

    if isinstance(node, EnumSchema):
        return _compile_enum(node)

    if isinstance(node, NullableSchema):
        inner = compile_schema(node.inner, circular, deferred)
        return f"Schema.Union({inner}, Schema.Null)"

    if isinstance(node, PrimitiveSchema):
        return _compile_primitive(node)

    if isinstance(node, ArraySchema):
        return _compile_array(node, circular, deferred)

    if isinstance(node, ObjectSchema):
        return _compile_object(node, circular, deferred)

    if isinstance(node, UnknownSchema):
        return "Schema.Unknown"

    raise SchemaGenerationError(f"Unsupported schema node: {type(node).__name__}")


def _compile_combinator(
    node: CombinatorSchema, circular: Optional[CircularPropertySet], deferred: bool
) -> str:
    if not node.members:
        raise SchemaGenerationError(
            f"{node.combinator.value} must have at least one schema"
        )

    members = [compile_schema(member, circular, deferred) for member in node.members]

    if node.combinator == CombinatorKind.ALL_OF:
        code = members[0]
        for member in members[1:]:
            code = f"Schema.extend({code}, {member})"
        return code

    # oneOf and anyOf share the union construct.
    return f"Schema.Union({', '.join(members)})"


def _compile_enum(node: EnumSchema) -> str:
    if not node.values:
        raise SchemaGenerationError("enum must have at least one value")

    literals = [_literal(value) for value in node.values]
    if node.is_const:
        return literals[0]
    return f"Schema.Union({', '.join(literals)})"


def _literal(value: Any) -> str:
    if value is None:
        return "Schema.Literal(null)"
    if isinstance(value, bool):
        return f"Schema.Literal({'true' if value else 'false'})"
    if isinstance(value, (int, float)):
        return f"Schema.Literal({format_number(value)})"
    if isinstance(value, str):
        return f"Schema.Literal({json.dumps(value)})"
    raise SchemaGenerationError(
        f"Unsupported enum value {value!r}: only strings, numbers, booleans and null "
        "can be literals"
    )


def _compile_primitive(node: PrimitiveSchema) -> str:
    if node.type == "string":
        return _compile_string(node)
    if node.type == "number":
        return _pipe("Schema.Number", _numeric_filters(node))
    if node.type == "integer":
        return _pipe("Schema.Int", _numeric_filters(node))
    if node.type == "boolean":
        return "Schema.Boolean"
    if node.type == "null":
        return "Schema.Null"
    raise SchemaGenerationError(f"Unsupported schema type: {node.type}")


def _compile_string(node: PrimitiveSchema) -> str:
    if node.format in STRING_FORMATS:
        return STRING_FORMATS[node.format]

    length_filters = []
    if node.min_length is not None:
        length_filters.append(f"Schema.minLength({node.min_length})")
    if node.max_length is not None:
        length_filters.append(f"Schema.maxLength({node.max_length})")

    if node.format == "email":
        email = f"Schema.pattern(new RegExp('{EMAIL_PATTERN}'))"
        return _pipe("Schema.String", [email, *length_filters])

    filters = list(length_filters)
    if node.pattern is not None:
        escaped = node.pattern.replace("\\", "\\\\").replace("'", "\\'")
        filters.append(f"Schema.pattern(new RegExp('{escaped}'))")
    return _pipe("Schema.String", filters)


def _numeric_filters(node: PrimitiveSchema) -> list[str]:
    """Lower bound, upper bound, then ``multipleOf``.

    A numeric ``exclusiveMinimum``/``exclusiveMaximum`` (3.1 form) wins over
    ``minimum``/``maximum`` combined with the boolean 3.0 form.
    """
    filters: list[str] = []

    if _is_number(node.exclusive_minimum):
        filters.append(f"Schema.greaterThan({format_number(node.exclusive_minimum)})")
    elif node.minimum is not None:
        if node.exclusive_minimum is True:
            filters.append(f"Schema.greaterThan({format_number(node.minimum)})")
        else:
            filters.append(f"Schema.greaterThanOrEqualTo({format_number(node.minimum)})")

    if _is_number(node.exclusive_maximum):
        filters.append(f"Schema.lessThan({format_number(node.exclusive_maximum)})")
    elif node.maximum is not None:
        if node.exclusive_maximum is True:
            filters.append(f"Schema.lessThan({format_number(node.maximum)})")
        else:
            filters.append(f"Schema.lessThanOrEqualTo({format_number(node.maximum)})")

    if node.multiple_of is not None:
        filters.append(f"Schema.multipleOf({format_number(node.multiple_of)})")

    return filters


def _compile_array(
    node: ArraySchema, circular: Optional[CircularPropertySet], deferred: bool
) -> str:
    if node.items is None:
        raise SchemaGenerationError("array type must have an 'items' schema")

    items = compile_schema(node.items, circular, deferred)
    filters: list[str] = []
    if node.min_items is not None:
        filters.append(f"Schema.minItems({node.min_items})")
    if node.max_items is not None:
        filters.append(f"Schema.maxItems({node.max_items})")
    if node.unique_items:
        filters.append(UNIQUE_ITEMS_FILTER)
    return _pipe(f"Schema.Array({items})", filters)


def _compile_object(
    node: ObjectSchema, circular: Optional[CircularPropertySet], deferred: bool
) -> str:
    record: Optional[str] = None
    additional = node.additional_properties
    if additional is True:
        record = "Schema.Record({ key: Schema.String, value: Schema.Unknown })"
    elif additional is not None and additional is not False:
        value = compile_schema(additional, circular, deferred)
        record = f"Schema.Record({{ key: Schema.String, value: {value} }})"

    if not node.properties:
        return record or "Schema.Struct({})"

    cyclic = circular.properties_of(node) if circular is not None else frozenset()
    entries: list[str] = []
    for name, prop in node.properties.items():
        code = compile_schema(prop.node, circular, deferred or name in cyclic)
        if not prop.required:
            code = f"Schema.optional({code})"

        entry = f"{property_key(name)}: {code}"
        if prop.node.description:
            entry = f"/** {escape_comment(prop.node.description)} */\n  {entry}"
        entries.append(entry)

    struct = "Schema.Struct({\n  " + ",\n  ".join(entries) + "\n})"
    if record is not None:
        return f"Schema.extend({struct}, {record})"
    return struct


# --- Helpers ---


def _pipe(base: str, filters: list[str]) -> str:
    if not filters:
        return base
    return f"{base}.pipe({', '.join(filters)})"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
