"""Order named schemas so every schema is declared after the ones it uses.

Generated modules bind each schema to a ``const``, so a schema expression may
only mention identifiers that were declared above it. :func:`sort_schemas`
produces that order from the strongly connected components of the reference
graph (Tarjan's algorithm), which come out dependencies first.

References the generator emits lazily do not constrain the order. Given the
:class:`~specgen.parser.resolver.CircularPropertySet` produced by the
resolver, those edges are left out of the graph, so every remaining edge is
a direct ``const`` read and is honored even when the schemas involved also
take part in a cycle. A cycle left in the graph (always the case without the
side table) never makes the sort fail: members of one component are emitted
in the order the walk first reached them.
"""

from __future__ import annotations

from typing import Optional

from specgen.models import SchemaNode, SchemaRegistry
from specgen.parser.resolver import CircularPropertySet, iter_reference_names


def collect_dependencies(
    node: SchemaNode,
    registry: SchemaRegistry,
    circular: Optional[CircularPropertySet] = None,
) -> list[str]:
    """Return the registry names *node* refers to, deduplicated, in first-seen order.

    References to names missing from *registry* are ignored; they cannot
    influence declaration order. With *circular*, references that are
    emitted inside ``Schema.suspend`` are ignored too.
    """
    seen: dict[str, None] = {}
    for name in iter_reference_names(node, circular):
        if name in registry:
            seen.setdefault(name, None)
    return list(seen)


def sort_schemas(
    registry: SchemaRegistry,
    circular: Optional[CircularPropertySet] = None,
) -> list[tuple[str, SchemaNode]]:
    """Return registry entries with dependencies ahead of their dependents.

    Entries are visited in registry (insertion) order, so the result is
    deterministic for a given document.

    Args:
        registry: The named schemas to order.
        circular: Cycle side table from
            :func:`~specgen.parser.resolver.resolve_registry`. References it
            defers are not treated as ordering constraints.

    Returns:
        ``(name, node)`` pairs. For every edge ``A -> B`` (``A`` refers to
        ``B``) outside a cycle, ``B`` comes first.
    """
    nodes = dict(registry.items())
    ordered: list[tuple[str, SchemaNode]] = []
    index: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    stack: list[str] = []
    on_stack: set[str] = set()

    def visit(name: str) -> None:
        index[name] = lowlink[name] = len(index)
        stack.append(name)
        on_stack.add(name)

        for dependency in collect_dependencies(nodes[name], registry, circular):
            if dependency not in index:
                visit(dependency)
                lowlink[name] = min(lowlink[name], lowlink[dependency])
            elif dependency in on_stack:
                lowlink[name] = min(lowlink[name], index[dependency])

        if lowlink[name] != index[name]:
            return

        component: list[str] = []
        while True:
            member = stack.pop()
            on_stack.discard(member)
            component.append(member)
            if member == name:
                break
        for member in sorted(component, key=index.__getitem__):
            ordered.append((member, nodes[member]))

    for name in nodes:
        if name not in index:
            visit(name)

    return ordered
