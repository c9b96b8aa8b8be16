"""Tests for specgen.generator.groups."""

from __future__ import annotations

import logging

from specgen.generator.groups import (
    DEFAULT_GROUP,
    generate_group_code,
    group_operations,
    group_variable,
)
from specgen.models import HTTPMethod, Parameter, ParameterLocation, ParsedOperation


def _op(operation_id: str, tags: list[str] | None = None, **kwargs) -> ParsedOperation:
    return ParsedOperation(
        operation_id=operation_id,
        method=kwargs.pop("method", HTTPMethod.GET),
        path=kwargs.pop("path", f"/{operation_id}"),
        tags=tags or [],
        **kwargs,
    )


class TestGroupOperations:
    def test_groups_by_first_tag_in_order_of_appearance(self) -> None:
        groups = group_operations(
            [
                _op("a", ["users", "admin"]),
                _op("b", ["posts"]),
                _op("c", ["users"]),
            ]
        )
        assert [g.name for g in groups] == ["users", "posts"]
        assert [op.operation_id for op in groups[0].operations] == ["a", "c"]

    def test_untagged_go_to_default(self) -> None:
        (group,) = group_operations([_op("a"), _op("b")])
        assert group.name == DEFAULT_GROUP
        assert group.identifier == "default"

    def test_identifier_is_camel_case(self) -> None:
        (group,) = group_operations([_op("a", ["User Accounts"])])
        assert group.identifier == "userAccounts"
        assert group_variable(group) == "userAccountsGroup"

    def test_empty(self) -> None:
        assert group_operations([]) == []

    def test_colliding_identifiers_get_suffix(self, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="specgen"):
            groups = group_operations(
                [_op("a", ["Pets"]), _op("b", ["pets"]), _op("c", ["pets!"])]
            )

        assert [g.name for g in groups] == ["Pets", "pets", "pets!"]
        assert [group_variable(g) for g in groups] == ["petsGroup", "pets2Group", "pets3Group"]
        assert 'Group identifier for tag "pets" collides with another tag; using "pets2"' in caplog.text
        assert 'Group identifier for tag "pets!" collides with another tag; using "pets3"' in caplog.text


class TestGenerateGroupCode:
    def test_group_code(self) -> None:
        (group,) = group_operations(
            [
                _op("listPosts", ["posts"], summary="List posts"),
                _op("createPost", ["posts"], method=HTTPMethod.POST, path="/posts"),
            ]
        )
        assert generate_group_code(group) == (
            "/**\n"
            " * List posts\n"
            " */\n"
            "const listPosts = HttpApiEndpoint.get('listPosts', '/listPosts')\n"
            "\n"
            "const createPost = HttpApiEndpoint.post('createPost', '/posts')\n"
            "\n"
            'const postsGroup = HttpApiGroup.make("posts")\n'
            "  .add(listPosts)\n"
            "  .add(createPost)"
        )

    def test_path_param_declarations_precede_endpoint(self) -> None:
        (group,) = group_operations(
            [
                _op(
                    "getUser",
                    ["users"],
                    path="/users/{id}",
                    path_parameters=[
                        Parameter(name="id", location=ParameterLocation.PATH, required=True)
                    ],
                )
            ]
        )
        code = generate_group_code(group)
        declaration = "const getUser_idParam = HttpApiSchema.param('id', Schema.String)"
        assert code.index(declaration) < code.index("const getUser = ")
        assert code.count(declaration) == 1
