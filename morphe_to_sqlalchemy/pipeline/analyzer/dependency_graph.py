"""
Dependency graph builder and circular dependency detector.

The graph is an adjacency map keyed by type name; no node holds a
reference to another node, only names to look up. Cycles are reported as
diagnostics and never block compilation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from ..registry.nodes import EntityDeclaration, FieldDeclaration, ModelDeclaration, RelationDeclaration
from .relation_classifier import PolymorphicOwnerIndex, classify_relation, referenced_names


class DependencyGraph:
    """Immutable mapping from type name to the names it directly references."""

    def __init__(self, edges: Mapping[str, tuple[str, ...]]):
        self._edges = MappingProxyType(dict(edges))

    @property
    def nodes(self) -> list[str]:
        """Node names in sorted order."""
        return sorted(self._edges)

    def edges(self, node: str) -> tuple[str, ...]:
        """Referenced names of a node in builder order, empty for unknown nodes."""
        return self._edges.get(node, ())

    def as_dict(self) -> dict[str, list[str]]:
        return {node: list(deps) for node, deps in self._edges.items()}

    def __contains__(self, node: str) -> bool:
        return node in self._edges

    def __len__(self) -> int:
        return len(self._edges)


def build_dependency_graph(
    declarations: Mapping[str, ModelDeclaration],
    owner_index: PolymorphicOwnerIndex | None = None,
) -> DependencyGraph:
    """
    Build the dependency graph of a set of model-shaped declarations.

    Relations are visited in sorted name order. Union members each count as
    an edge, resolved "through" owners and single (aliased) targets as one;
    unresolved targets add nothing. Self and duplicate edges are dropped.

    Args:
        declarations: Models, or entities projected to models
        owner_index: Lookup for "through" relations (built from declarations if omitted)

    Returns:
        The dependency graph
    """
    if owner_index is None:
        owner_index = PolymorphicOwnerIndex(declarations)

    edges: dict[str, tuple[str, ...]] = {}
    for type_name in sorted(declarations):
        decl = declarations[type_name]
        deps: dict[str, None] = {}  # Ordered set
        for relation_name in sorted(decl.relations):
            shape = classify_relation(decl.relations[relation_name], type_name, owner_index)
            for target in referenced_names(shape, type_name):
                deps.setdefault(target, None)
        edges[type_name] = tuple(deps)

    return DependencyGraph(edges)


def project_entities_to_models(entities: Mapping[str, EntityDeclaration]) -> dict[str, ModelDeclaration]:
    """Convert entities to model-shaped declarations so graph logic can be shared."""
    models = {}
    for name, entity in entities.items():
        models[name] = ModelDeclaration(
            name=entity.name,
            fields={
                field_name: FieldDeclaration(name=field_name, type=f.type, attributes=list(f.attributes))
                for field_name, f in entity.fields.items()
            },
            relations={
                relation_name: RelationDeclaration(
                    name=relation_name,
                    relation_type=r.relation_type,
                    aliased=r.aliased,
                    for_set=list(r.for_set),
                    through=r.through,
                )
                for relation_name, r in entity.relations.items()
            },
            source_path=entity.source_path,
        )
    return models


@dataclass(frozen=True)
class Cycle:
    """A circular dependency in canonical form.

    `nodes` starts at the lexicographically smallest name and does not
    repeat the closing node.
    """

    nodes: tuple[str, ...] = ()

    @classmethod
    def from_path(cls, path: list[str] | tuple[str, ...]) -> Cycle:
        return cls(canonicalize_cycle(path))

    def __str__(self) -> str:
        if not self.nodes:
            return ""
        return " -> ".join(self.nodes + (self.nodes[0],))


def canonicalize_cycle(path: list[str] | tuple[str, ...]) -> tuple[str, ...]:
    """
    Rotate a closed walk so it starts at its smallest node.

    Args:
        path: Cycle nodes, optionally closed by repeating the first node

    Returns:
        The rotated node tuple without the closing repeat
    """
    nodes = list(path)
    if len(nodes) > 1 and nodes[0] == nodes[-1]:
        nodes = nodes[:-1]
    if not nodes:
        return ()
    start = nodes.index(min(nodes))
    return tuple(nodes[start:] + nodes[:start])


def detect_circular_dependencies(graph: DependencyGraph) -> list[Cycle]:
    """
    Find the circular dependencies of a graph.

    Depth-first search from every node in sorted order with a global
    visited set, so each subtree is explored once. An edge into a node that
    is still on the current path closes a cycle.

    Args:
        graph: The dependency graph

    Returns:
        Distinct cycles in the order they were first found
    """
    visited: set[str] = set()
    on_path: set[str] = set()
    path: list[str] = []
    found: dict[tuple[str, ...], Cycle] = {}

    for start in graph.nodes:
        if start in visited:
            continue

        visited.add(start)
        on_path.add(start)
        path.append(start)
        stack = [(start, iter(graph.edges(start)))]

        while stack:
            node, neighbors = stack[-1]
            neighbor = next(neighbors, None)
            if neighbor is None:
                stack.pop()
                path.pop()
                on_path.discard(node)
                continue

            if neighbor not in visited:
                visited.add(neighbor)
                on_path.add(neighbor)
                path.append(neighbor)
                stack.append((neighbor, iter(graph.edges(neighbor))))
            elif neighbor in on_path:
                cycle_path = path[path.index(neighbor) :] + [neighbor]
                cycle = Cycle.from_path(cycle_path)
                found.setdefault(cycle.nodes, cycle)

    return list(found.values())
