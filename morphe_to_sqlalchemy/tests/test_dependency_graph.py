"""
Dependency graph and cycle detection tests.
"""

from __future__ import annotations

import pytest

from morphe_to_sqlalchemy.pipeline.analyzer.dependency_graph import (
    Cycle,
    DependencyGraph,
    build_dependency_graph,
    canonicalize_cycle,
    detect_circular_dependencies,
    project_entities_to_models,
)
from morphe_to_sqlalchemy.pipeline.registry import (
    EntityDeclaration,
    FieldDeclaration,
    ModelDeclaration,
    RelationDeclaration,
    RelationType,
)


def relation(name, relation_type="ForOne", **kwargs):
    return RelationDeclaration(name=name, relation_type=RelationType(relation_type), **kwargs)


def models(**relations_by_model):
    """Build model declarations from name=[relations] keyword arguments."""
    return {
        name: ModelDeclaration(name=name, relations={r.name: r for r in relations})
        for name, relations in relations_by_model.items()
    }


class TestBuildDependencyGraph:
    def test_edges_follow_relation_name_order(self):
        graph = build_dependency_graph(models(A=[relation("C"), relation("B")], B=[], C=[]))
        assert graph.edges("A") == ("B", "C")
        assert graph.nodes == ["A", "B", "C"]

    def test_alias_is_the_edge(self):
        graph = build_dependency_graph(models(A=[relation("Owner", aliased="B")], B=[]))
        assert graph.edges("A") == ("B",)

    def test_union_members_are_edges(self):
        graph = build_dependency_graph(
            models(A=[relation("Parent", "ForOnePoly", for_set=["C", "B"])], B=[], C=[])
        )
        assert graph.edges("A") == ("C", "B")

    def test_through_owner_is_an_edge(self):
        graph = build_dependency_graph(
            models(
                Comment=[relation("commentable", "HasManyPoly")],
                Note=[relation("notes", "HasOnePoly", through="commentable")],
            )
        )
        assert graph.edges("Note") == ("Comment",)
        assert graph.edges("Comment") == ()

    def test_self_and_duplicate_edges_are_dropped(self):
        graph = build_dependency_graph(
            models(
                A=[relation("A"), relation("B"), relation("Bs", "HasMany", aliased="B")],
                B=[],
            )
        )
        assert graph.edges("A") == ("B",)

    def test_unresolved_targets_add_no_edge(self):
        graph = build_dependency_graph(models(A=[relation("Anything", "ForOnePoly")]))
        assert graph.edges("A") == ()

    def test_unknown_node_has_no_edges(self):
        graph = DependencyGraph({"A": ("B",)})
        assert graph.edges("Z") == ()
        assert "A" in graph
        assert len(graph) == 1
        assert graph.as_dict() == {"A": ["B"]}


class TestCycles:
    def test_canonical_rotation(self):
        assert canonicalize_cycle(["B", "C", "A", "B"]) == ("A", "B", "C")
        assert canonicalize_cycle(["C", "A", "B"]) == ("A", "B", "C")
        assert canonicalize_cycle([]) == ()

    def test_rotations_are_equal(self):
        assert Cycle.from_path(["B", "A", "B"]) == Cycle.from_path(["A", "B", "A"])

    def test_cycle_rendering(self):
        assert str(Cycle.from_path(["C", "A", "B", "C"])) == "A -> B -> C -> A"

    def test_three_node_cycle_reported_once(self):
        graph = build_dependency_graph(models(A=[relation("B")], B=[relation("C")], C=[relation("A")]))
        cycles = detect_circular_dependencies(graph)
        assert cycles == [Cycle(("A", "B", "C"))]

    def test_dag_has_no_cycle(self):
        graph = build_dependency_graph(models(A=[relation("B"), relation("C")], B=[relation("C")], C=[]))
        assert detect_circular_dependencies(graph) == []

    def test_cycles_in_discovery_order(self):
        graph = build_dependency_graph(
            models(A=[relation("B")], B=[relation("A"), relation("C")], C=[relation("B")])
        )
        cycles = detect_circular_dependencies(graph)
        assert [str(c) for c in cycles] == ["A -> B -> A", "B -> C -> B"]

    def test_detection_is_deterministic(self):
        decls = models(Person=[relation("Company")], Company=[relation("Person", "HasMany")])
        first = detect_circular_dependencies(build_dependency_graph(decls))
        second = detect_circular_dependencies(build_dependency_graph(dict(reversed(list(decls.items())))))
        assert first == second == [Cycle(("Company", "Person"))]


def test_project_entities_to_models():
    entity = EntityDeclaration(
        name="Person",
        fields={"Email": FieldDeclaration(name="Email", type="Person.ContactInfo.Email")},
        relations={"Company": relation("Company")},
    )
    projected = project_entities_to_models({"Person": entity})
    assert isinstance(projected["Person"], ModelDeclaration)
    assert projected["Person"].relations["Company"].relation_type == RelationType.FOR_ONE
    assert projected["Person"].fields["Email"].type == "Person.ContactInfo.Email"

    # The projection is a copy
    projected["Person"].relations.clear()
    assert "Company" in entity.relations


if __name__ == "__main__":
    pytest.main([__file__])
