"""Resolve ``$ref`` pointers between named schemas and detect reference cycles.

Only local component references of the exact form
``#/components/schemas/<name>`` are supported; anything else (external files,
URLs, pointers into other sections) raises
:class:`~specgen.exceptions.ReferenceResolutionError`.

Resolution substitutes each reference with the schema it names, recursing
through object properties, array items, combinator members, nullable inner
schemas and ``additionalProperties``. A reference back to a name that is
already on the current resolution path is a cycle: the reference node is
returned unchanged and the nearest enclosing object property is recorded in a
:class:`CircularPropertySet`; with no enclosing property, the reference node
itself is recorded. That side table is the only channel through which the
code generator learns that a property or reference must be emitted lazily.

Cycle detection is shallow on purpose: reusing the same schema in several
non-cyclic positions is not a cycle, and each occurrence is resolved normally.

Typical usage::

    registry = build_registry(document)
    resolved, circular = resolve_registry(registry)
    circular.properties_of(registry.get("User"))   # frozenset({"friends"})
"""

from __future__ import annotations

import re
from typing import Iterator, Optional

from specgen.exceptions import ReferenceResolutionError
from specgen.models import (
    ArraySchema,
    CombinatorSchema,
    NullableSchema,
    ObjectProperty,
    ObjectSchema,
    ReferenceSchema,
    SchemaNode,
    SchemaRegistry,
)

_SCHEMA_REF_RE = re.compile(r"^#/components/schemas/(.+)$")

# (owning object node, property name) a cyclic reference is attributed to.
_Owner = Optional[tuple[ObjectSchema, str]]


def parse_ref(ref: str) -> str:
    """Return the schema name addressed by a ``$ref`` string.

    Handles RFC 6901 JSON Pointer escaping (``~1`` for ``/``, ``~0`` for ``~``).

    Args:
        ref: The ``$ref`` value, e.g. ``"#/components/schemas/User"``.

    Returns:
        The schema name, e.g. ``"User"``.

    Raises:
        ReferenceResolutionError: If *ref* does not have the
            ``#/components/schemas/<name>`` shape.
    """
    match = _SCHEMA_REF_RE.match(ref)
    if match is None:
        raise ReferenceResolutionError(
            f"Invalid $ref format: {ref}. "
            "Only local references of the form #/components/schemas/<name> are supported."
        )
    return match.group(1).replace("~1", "/").replace("~0", "~")


def iter_reference_names(
    node: SchemaNode, circular: Optional[CircularPropertySet] = None
) -> Iterator[str]:
    """Yield the name of every well-formed schema reference inside *node*.

    Walks properties, items, combinator members, nullable inner schemas and
    ``additionalProperties``. Malformed references are skipped; use
    :func:`parse_ref` where they must be rejected.

    Args:
        node: The schema to walk.
        circular: When given, references the code generator emits lazily
            are skipped: everything under a circular property, and every
            reference recorded with :meth:`CircularPropertySet.mark_reference`.
    """
    if isinstance(node, ReferenceSchema):
        if circular is not None and circular.is_deferred_reference(node):
            return
        match = _SCHEMA_REF_RE.match(node.ref)
        if match is not None:
            yield match.group(1).replace("~1", "/").replace("~0", "~")
    elif isinstance(node, ObjectSchema):
        deferred = circular.properties_of(node) if circular is not None else frozenset()
        for name, prop in node.properties.items():
            if name not in deferred:
                yield from iter_reference_names(prop.node, circular)
        if isinstance(node.additional_properties, (bool, type(None))):
            return
        yield from iter_reference_names(node.additional_properties, circular)
    elif isinstance(node, ArraySchema):
        if node.items is not None:
            yield from iter_reference_names(node.items, circular)
    elif isinstance(node, CombinatorSchema):
        for member in node.members:
            yield from iter_reference_names(member, circular)
    elif isinstance(node, NullableSchema):
        yield from iter_reference_names(node.inner, circular)


class CircularPropertySet:
    """Side table of the places where a reference cycle closes.

    Most cycles close inside an object property, recorded against the
    owning :class:`~specgen.models.ObjectSchema` node. A cycle with no
    enclosing property (through ``additionalProperties`` or a top-level
    array, say) is recorded against the closing
    :class:`~specgen.models.ReferenceSchema` node instead. Both are keyed by
    node identity, so the parsed nodes themselves stay immutable. Entries
    are only ever added.
    """

    def __init__(self) -> None:
        self._properties: dict[int, set[str]] = {}
        # Holds the nodes so their ids stay valid for the table's lifetime.
        self._owners: dict[int, ObjectSchema] = {}
        self._references: dict[int, ReferenceSchema] = {}

    def mark(self, owner: ObjectSchema, prop_name: str) -> None:
        key = id(owner)
        self._owners[key] = owner
        self._properties.setdefault(key, set()).add(prop_name)

    def mark_reference(self, node: ReferenceSchema) -> None:
        self._references[id(node)] = node

    def properties_of(self, node: SchemaNode) -> frozenset[str]:
        """Return the circular property names recorded for *node* (may be empty)."""
        return frozenset(self._properties.get(id(node), ()))

    def is_deferred_reference(self, node: SchemaNode) -> bool:
        """Whether *node* is a reference that closes a cycle outside any property."""
        return id(node) in self._references

    def __len__(self) -> int:
        return sum(len(names) for names in self._properties.values()) + len(self._references)

    def __bool__(self) -> bool:
        return bool(self._properties) or bool(self._references)


class ReferenceResolver:
    """Resolution context: the registry, the cycle side table, and a result cache.

    The visited-name set is passed down the call stack rather than stored
    on the instance, so one resolver can resolve many roots.

    Args:
        registry: Named schemas references are looked up in.
        circular: Side table to record cyclic properties into. A fresh one
            is created when omitted.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        circular: Optional[CircularPropertySet] = None,
    ) -> None:
        self.registry = registry
        self.circular = circular if circular is not None else CircularPropertySet()
        # Only object targets are cached: every cycle found inside an object
        # is attributed to a node inside it, never to the caller's property.
        self._cache: dict[tuple[str, frozenset[str]], SchemaNode] = {}

    def resolve(
        self, node: SchemaNode, visited: frozenset[str] = frozenset()
    ) -> SchemaNode:
        """Return *node* with every non-cyclic reference substituted.

        Args:
            node: The schema to resolve.
            visited: Names already on the resolution path. A reference to
                one of them is left in place and recorded as circular.

        Raises:
            ReferenceResolutionError: For a malformed ``$ref`` or one naming
                a schema absent from the registry.
        """
        return self._resolve(node, visited, None)

    def _resolve(
        self, node: SchemaNode, visited: frozenset[str], owner: _Owner
    ) -> SchemaNode:
        if isinstance(node, ReferenceSchema):
            return self._resolve_reference(node, visited, owner)

        if isinstance(node, ObjectSchema):
            properties = {
                name: ObjectProperty(
                    node=self._resolve(prop.node, visited, (node, name)),
                    required=prop.required,
                )
                for name, prop in node.properties.items()
            }
            additional = node.additional_properties
            if not isinstance(additional, (bool, type(None))):
                additional = self._resolve(additional, visited, None)
            return node.model_copy(
                update={"properties": properties, "additional_properties": additional}
            )

        if isinstance(node, ArraySchema):
            if node.items is None:
                return node
            return node.model_copy(
                update={"items": self._resolve(node.items, visited, owner)}
            )

        if isinstance(node, CombinatorSchema):
            members = [self._resolve(member, visited, owner) for member in node.members]
            return node.model_copy(update={"members": members})

        if isinstance(node, NullableSchema):
            return node.model_copy(
                update={"inner": self._resolve(node.inner, visited, owner)}
            )

        return node

    def _resolve_reference(
        self, node: ReferenceSchema, visited: frozenset[str], owner: _Owner
    ) -> SchemaNode:
        name = parse_ref(node.ref)

        if name in visited:
            # Reference back to an ancestor: keep it and flag the property,
            # or the reference itself when no property encloses it.
            if owner is not None:
                self.circular.mark(*owner)
            else:
                self.circular.mark_reference(node)
            return node

        target = self.registry.get(name)
        if target is None:
            raise ReferenceResolutionError(f"Schema not found: {name} (from $ref '{node.ref}')")

        key = (name, visited)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        resolved = self._resolve(target, visited | {name}, owner)
        if isinstance(target, ObjectSchema):
            self._cache[key] = resolved
        return resolved


def resolve_registry(
    registry: SchemaRegistry,
) -> tuple[dict[str, SchemaNode], CircularPropertySet]:
    """Resolve every registry entry and collect all cyclic properties.

    Each entry is resolved with its own name already on the path, so a
    schema that refers back to itself (directly or through other schemas)
    gets the closing property recorded.

    Returns:
        ``(resolved, circular)``: resolved nodes keyed by schema name in
        registry order, and the populated side table.

    Raises:
        ReferenceResolutionError: For the first malformed or dangling
            reference encountered.
    """
    resolver = ReferenceResolver(registry)
    resolved: dict[str, SchemaNode] = {}
    for name, node in registry.items():
        resolved[name] = resolver.resolve(node, frozenset({name}))
    return resolved, resolver.circular
