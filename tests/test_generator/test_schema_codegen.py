"""Tests for specgen.generator.schema_codegen."""

from __future__ import annotations

import logging

import pytest

from specgen.exceptions import ReferenceResolutionError, SchemaGenerationError
from specgen.generator.schema_codegen import (
    EMAIL_PATTERN,
    UNIQUE_ITEMS_FILTER,
    annotate,
    compile_named_schema,
    compile_param_schema,
    compile_schema,
    escape_comment,
    escape_description,
    format_number,
    property_key,
    schema_identifier,
)
from specgen.parser.resolver import resolve_registry
from specgen.parser.schema_parser import parse_schema


def _compile(raw) -> str:
    return compile_schema(parse_schema(raw))


def _ref(name: str) -> dict:
    return {"$ref": f"#/components/schemas/{name}"}


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


class TestStrings:
    def test_plain_string(self) -> None:
        assert _compile({"type": "string"}) == "Schema.String"

    @pytest.mark.parametrize(
        ("fmt", "expected"),
        [
            ("uuid", "Schema.UUID"),
            ("date-time", "Schema.DateTimeUtc"),
            ("date", "Schema.DateFromString"),
            ("uri", "Schema.URL"),
            ("url", "Schema.URL"),
        ],
    )
    def test_formats(self, fmt: str, expected: str) -> None:
        assert _compile({"type": "string", "format": fmt}) == expected

    def test_format_ignores_length_constraints(self) -> None:
        assert _compile({"type": "string", "format": "uuid", "maxLength": 36}) == "Schema.UUID"

    def test_unknown_format_is_plain_string(self) -> None:
        assert _compile({"type": "string", "format": "hostname"}) == "Schema.String"

    def test_email(self) -> None:
        assert _compile({"type": "string", "format": "email", "maxLength": 254}) == (
            f"Schema.String.pipe(Schema.pattern(new RegExp('{EMAIL_PATTERN}')), "
            "Schema.maxLength(254))"
        )

    def test_length_and_pattern(self) -> None:
        code = _compile({"type": "string", "minLength": 2, "maxLength": 8, "pattern": "^[a-z]+\\d$"})
        assert code == (
            "Schema.String.pipe(Schema.minLength(2), Schema.maxLength(8), "
            "Schema.pattern(new RegExp('^[a-z]+\\\\d$')))"
        )

    def test_pattern_quote_is_escaped(self) -> None:
        assert _compile({"type": "string", "pattern": "^it's$"}) == (
            "Schema.String.pipe(Schema.pattern(new RegExp('^it\\'s$')))"
        )


class TestNumbers:
    def test_number_and_integer(self) -> None:
        assert _compile({"type": "number"}) == "Schema.Number"
        assert _compile({"type": "integer"}) == "Schema.Int"

    def test_inclusive_bounds_and_multiple(self) -> None:
        code = _compile({"type": "integer", "minimum": 1, "maximum": 10, "multipleOf": 2})
        assert code == (
            "Schema.Int.pipe(Schema.greaterThanOrEqualTo(1), "
            "Schema.lessThanOrEqualTo(10), Schema.multipleOf(2))"
        )

    def test_numeric_exclusive_bounds(self) -> None:
        code = _compile({"type": "number", "exclusiveMinimum": 0, "exclusiveMaximum": 1.5})
        assert code == "Schema.Number.pipe(Schema.greaterThan(0), Schema.lessThan(1.5))"

    def test_boolean_exclusive_modifiers(self) -> None:
        code = _compile(
            {
                "type": "number",
                "minimum": 0,
                "exclusiveMinimum": True,
                "maximum": 100,
                "exclusiveMaximum": False,
            }
        )
        assert code == "Schema.Number.pipe(Schema.greaterThan(0), Schema.lessThanOrEqualTo(100))"

    def test_numeric_exclusive_wins_over_minimum(self) -> None:
        code = _compile({"type": "number", "minimum": 0, "exclusiveMinimum": 5})
        assert code == "Schema.Number.pipe(Schema.greaterThan(5))"

    def test_integral_float_written_as_int(self) -> None:
        assert format_number(3.0) == "3"
        assert format_number(2.5) == "2.5"
        assert format_number(7) == "7"


class TestOtherPrimitives:
    def test_boolean_and_null(self) -> None:
        assert _compile({"type": "boolean"}) == "Schema.Boolean"
        assert _compile({"type": "null"}) == "Schema.Null"

    def test_unknown(self) -> None:
        assert _compile({}) == "Schema.Unknown"

    def test_unsupported_type_raises(self) -> None:
        with pytest.raises(SchemaGenerationError, match="Unsupported schema type: file"):
            _compile({"type": "file"})


# ---------------------------------------------------------------------------
# Enums, nullable, combinators
# ---------------------------------------------------------------------------


class TestEnums:
    def test_string_enum_is_union_of_literals(self) -> None:
        assert _compile({"type": "string", "enum": ["available", "sold"]}) == (
            'Schema.Union(Schema.Literal("available"), Schema.Literal("sold"))'
        )

    def test_mixed_literals(self) -> None:
        assert _compile({"enum": [1, 2.5, True, None]}) == (
            "Schema.Union(Schema.Literal(1), Schema.Literal(2.5), "
            "Schema.Literal(true), Schema.Literal(null))"
        )

    def test_single_value_enum_is_still_a_union(self) -> None:
        assert _compile({"enum": ["only"]}) == 'Schema.Union(Schema.Literal("only"))'

    def test_const(self) -> None:
        assert _compile({"const": "v1"}) == 'Schema.Literal("v1")'

    def test_string_literal_escaping(self) -> None:
        assert _compile({"const": 'say "hi"'}) == 'Schema.Literal("say \\"hi\\"")'

    def test_empty_enum_raises(self) -> None:
        with pytest.raises(SchemaGenerationError, match="enum must have at least one value"):
            _compile({"enum": []})

    def test_object_value_raises(self) -> None:
        with pytest.raises(SchemaGenerationError, match="Unsupported enum value"):
            _compile({"enum": [{"a": 1}]})


class TestNullable:
    def test_nullable_union(self) -> None:
        assert _compile({"type": ["string", "null"]}) == "Schema.Union(Schema.String, Schema.Null)"

    def test_ref_and_combinator_take_priority_over_nullable(self) -> None:
        assert _compile({"allOf": [_ref("Pet")], "nullable": True}) == "PetSchema"
        assert _compile({**_ref("Pet"), "nullable": True}) == "PetSchema"

    def test_nullable_keyword(self) -> None:
        assert _compile({"type": "integer", "nullable": True}) == "Schema.Union(Schema.Int, Schema.Null)"

    def test_multi_type_array(self) -> None:
        assert _compile({"type": ["string", "integer", "null"]}) == (
            "Schema.Union(Schema.Union(Schema.String, Schema.Int), Schema.Null)"
        )


class TestCombinators:
    def test_all_of_folds_left(self) -> None:
        code = _compile({"allOf": [_ref("A"), _ref("B"), _ref("C")]})
        assert code == "Schema.extend(Schema.extend(ASchema, BSchema), CSchema)"

    def test_single_all_of_member(self) -> None:
        assert _compile({"allOf": [_ref("A")]}) == "ASchema"

    def test_one_of_is_union(self) -> None:
        assert _compile({"oneOf": [_ref("Cat"), _ref("Dog")]}) == "Schema.Union(CatSchema, DogSchema)"

    def test_one_of_and_any_of_compile_identically(self) -> None:
        """oneOf's exactly-one semantics are not enforced; both become a plain union."""
        members = [{"type": "string"}, {"type": "integer"}]
        assert _compile({"oneOf": members}) == _compile({"anyOf": members})

    @pytest.mark.parametrize("keyword", ["allOf", "oneOf", "anyOf"])
    def test_empty_combinator_raises(self, keyword: str) -> None:
        with pytest.raises(SchemaGenerationError, match=f"{keyword} must have at least one schema"):
            _compile({keyword: []})


# ---------------------------------------------------------------------------
# Arrays and objects
# ---------------------------------------------------------------------------


class TestArrays:
    def test_array(self) -> None:
        assert _compile({"type": "array", "items": {"type": "string"}}) == "Schema.Array(Schema.String)"

    def test_array_constraints(self) -> None:
        code = _compile(
            {"type": "array", "items": {"type": "integer"}, "minItems": 1, "maxItems": 5, "uniqueItems": True}
        )
        assert code == (
            f"Schema.Array(Schema.Int).pipe(Schema.minItems(1), Schema.maxItems(5), {UNIQUE_ITEMS_FILTER})"
        )

    def test_array_without_items_raises(self) -> None:
        with pytest.raises(SchemaGenerationError) as exc_info:
            _compile({"type": "array"})
        assert "array" in exc_info.value.message
        assert "items" in exc_info.value.message


class TestObjects:
    def test_struct_with_required_and_optional(self) -> None:
        code = _compile(
            {
                "type": "object",
                "required": ["id"],
                "properties": {"id": {"type": "integer"}, "name": {"type": "string"}},
            }
        )
        assert code == (
            "Schema.Struct({\n"
            "  id: Schema.Int,\n"
            "  name: Schema.optional(Schema.String)\n"
            "})"
        )

    def test_empty_object(self) -> None:
        assert _compile({"type": "object"}) == "Schema.Struct({})"

    def test_quoted_keys(self) -> None:
        code = _compile(
            {
                "type": "object",
                "required": ["content-type", "default"],
                "properties": {"content-type": {"type": "string"}, "default": {"type": "string"}},
            }
        )
        assert '"content-type": Schema.String' in code
        assert '"default": Schema.String' in code

    def test_property_description_comment(self) -> None:
        code = _compile(
            {
                "type": "object",
                "required": ["age"],
                "properties": {"age": {"type": "integer", "description": "Age in years"}},
            }
        )
        assert code == (
            "Schema.Struct({\n"
            "  /** Age in years */\n"
            "  age: Schema.Int.annotations({ description: 'Age in years' })\n"
            "})"
        )

    def test_typed_record(self) -> None:
        assert _compile({"type": "object", "additionalProperties": {"type": "integer"}}) == (
            "Schema.Record({ key: Schema.String, value: Schema.Int })"
        )

    def test_open_record(self) -> None:
        assert _compile({"type": "object", "additionalProperties": True}) == (
            "Schema.Record({ key: Schema.String, value: Schema.Unknown })"
        )

    def test_closed_object_ignores_false(self) -> None:
        assert _compile({"type": "object", "additionalProperties": False}) == "Schema.Struct({})"

    def test_struct_with_record(self) -> None:
        code = _compile(
            {
                "type": "object",
                "required": ["id"],
                "properties": {"id": {"type": "string"}},
                "additionalProperties": {"type": "string"},
            }
        )
        assert code == (
            "Schema.extend(Schema.Struct({\n  id: Schema.String\n}), "
            "Schema.Record({ key: Schema.String, value: Schema.String }))"
        )


# ---------------------------------------------------------------------------
# References and cycles
# ---------------------------------------------------------------------------


class TestReferences:
    def test_reference_uses_identifier(self) -> None:
        assert _compile(_ref("User")) == "UserSchema"

    def test_reference_name_is_sanitized(self) -> None:
        assert _compile(_ref("user-profile")) == "UserProfileSchema"

    def test_malformed_reference_raises(self) -> None:
        with pytest.raises(ReferenceResolutionError, match="Invalid \\$ref format"):
            _compile({"$ref": "#/definitions/User"})

    def test_deferred_mode_suspends(self) -> None:
        node = parse_schema({"type": "array", "items": _ref("User")})
        assert compile_schema(node, deferred=True) == (
            "Schema.Array(Schema.suspend(() => UserSchema))"
        )

    def test_circular_property_is_suspended(self, make_registry) -> None:
        registry = make_registry(
            {
                "Category": {
                    "type": "object",
                    "required": ["name"],
                    "properties": {
                        "name": {"type": "string"},
                        "parent": _ref("Category"),
                        "children": {"type": "array", "items": _ref("Category")},
                    },
                }
            }
        )
        _, circular = resolve_registry(registry)

        code = compile_schema(registry.get("Category"), circular)

        assert code == (
            "Schema.Struct({\n"
            "  name: Schema.String,\n"
            "  parent: Schema.optional(Schema.suspend(() => CategorySchema)),\n"
            "  children: Schema.optional(Schema.Array(Schema.suspend(() => CategorySchema)))\n"
            "})"
        )

    def test_cycle_through_record_value_is_suspended(self, make_registry) -> None:
        registry = make_registry(
            {"JsonMap": {"type": "object", "additionalProperties": _ref("JsonMap")}}
        )
        _, circular = resolve_registry(registry)

        assert compile_schema(registry.get("JsonMap"), circular) == (
            "Schema.Record({ key: Schema.String, value: Schema.suspend(() => JsonMapSchema) })"
        )

    def test_cycle_through_top_level_array_is_suspended(self, make_registry) -> None:
        registry = make_registry({"Tree": {"type": "array", "items": _ref("Tree")}})
        _, circular = resolve_registry(registry)

        assert compile_schema(registry.get("Tree"), circular) == (
            "Schema.Array(Schema.suspend(() => TreeSchema))"
        )

    def test_record_value_outside_cycle_is_direct(self, make_registry) -> None:
        registry = make_registry(
            {
                "Tag": {"type": "string"},
                "Tags": {"type": "object", "additionalProperties": _ref("Tag")},
            }
        )
        _, circular = resolve_registry(registry)
        assert compile_schema(registry.get("Tags"), circular) == (
            "Schema.Record({ key: Schema.String, value: TagSchema })"
        )

    def test_non_circular_reference_is_direct(self, make_registry) -> None:
        registry = make_registry(
            {
                "User": {"type": "object", "properties": {"id": {"type": "string"}}},
                "Post": {"type": "object", "required": ["author"], "properties": {"author": _ref("User")}},
            }
        )
        _, circular = resolve_registry(registry)
        assert "author: UserSchema" in compile_schema(registry.get("Post"), circular)


# ---------------------------------------------------------------------------
# Annotations and named schemas
# ---------------------------------------------------------------------------


class TestAnnotations:
    def test_description_annotation(self) -> None:
        assert _compile({"type": "string", "description": "A name"}) == (
            "Schema.String.annotations({ description: 'A name' })"
        )

    def test_description_escaping(self) -> None:
        assert escape_description("it's `${x}`\\\n\t") == "it\\'s \\`\\${x}\\`\\\\\\n\\t"

    def test_annotate_without_description(self) -> None:
        assert annotate("Schema.String", None) == "Schema.String"

    def test_nullable_description_on_outer_node_only(self) -> None:
        code = _compile({"type": ["string", "null"], "description": "Nick"})
        assert code == (
            "Schema.Union(Schema.String, Schema.Null).annotations({ description: 'Nick' })"
        )

    def test_comment_terminator_escaped(self) -> None:
        assert escape_comment("a */ b") == "a *\\/ b"


class TestNamedSchemas:
    def test_plain_declaration(self) -> None:
        assert compile_named_schema("Tag", parse_schema({"type": "string"})) == (
            "export const TagSchema = Schema.String"
        )

    def test_jsdoc_for_description_and_deprecation(self) -> None:
        node = parse_schema({"type": "string", "description": "Old tag", "deprecated": True})
        assert compile_named_schema("Tag", node) == (
            "/**\n"
            " * Old tag\n"
            " *\n"
            " * @deprecated This schema is deprecated and may be removed in a future version.\n"
            " */\n"
            "export const TagSchema = Schema.String.annotations({ description: 'Old tag' })"
        )

    def test_identifier(self) -> None:
        assert schema_identifier("pet") == "PetSchema"

    def test_renamed_schema_is_reported_once(self, make_registry, caplog) -> None:
        registry = make_registry(
            {
                "user-profile": {"type": "object", "properties": {"id": {"type": "string"}}},
                "Team": {
                    "type": "object",
                    "properties": {
                        "owner": _ref("user-profile"),
                        "members": {"type": "array", "items": _ref("user-profile")},
                    },
                },
            }
        )
        with caplog.at_level(logging.WARNING, logger="specgen"):
            for name, node in registry.items():
                compile_named_schema(name, node)

        warnings = [r.getMessage() for r in caplog.records]
        assert warnings == ['Identifier sanitized: "user-profile" -> "UserProfile"']

    def test_property_key(self) -> None:
        assert property_key("name") == "name"
        assert property_key("x-rate") == '"x-rate"'
        assert property_key("class") == '"class"'
        assert property_key("$meta") == "$meta"


# ---------------------------------------------------------------------------
# Parameter schemas
# ---------------------------------------------------------------------------


class TestParamSchemas:
    def test_integer_from_string(self) -> None:
        node = parse_schema({"type": "integer", "minimum": 0})
        assert compile_param_schema(node) == (
            "Schema.NumberFromString.pipe(Schema.greaterThanOrEqualTo(0))"
        )

    def test_boolean_from_string(self) -> None:
        assert compile_param_schema(parse_schema({"type": "boolean"})) == "Schema.BooleanFromString"

    def test_string_unchanged(self) -> None:
        assert compile_param_schema(parse_schema({"type": "string", "format": "uuid"})) == "Schema.UUID"

    def test_reference_unchanged(self) -> None:
        assert compile_param_schema(parse_schema(_ref("Status"))) == "StatusSchema"
