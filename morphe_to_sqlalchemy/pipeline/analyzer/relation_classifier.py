"""
Relation classifier.

Maps a relation declaration to its canonical shape: cardinality, direction,
polymorphism, target and the key fields it adds to the declaring type.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..registry.nodes import Cardinality, Direction, RelationDeclaration
from .ir_nodes import RelationShape, SingleTarget, UnionTarget, UnresolvedTarget


class PolymorphicOwnerIndex:
    """Finds the type that declares a polymorphic relation of a given name.

    Built once over every declaration in scope (all models, or all entities)
    and searched in sorted type-name order, so the owner found for a name is
    stable across runs. A name missing from the index is looked up in
    ``fallback`` (the model index, for entities).
    """

    def __init__(self, declarations: Mapping[str, object], fallback: PolymorphicOwnerIndex | None = None):
        self._owners: dict[str, list[str]] = {}
        self._fallback = fallback
        for type_name in sorted(declarations):
            relations = getattr(declarations[type_name], "relations", {})
            for relation_name in sorted(relations):
                if relations[relation_name].relation_type.is_polymorphic:
                    self._owners.setdefault(relation_name, []).append(type_name)

    def find_owner(self, relation_name: str, exclude: str = "") -> str | None:
        """First type declaring a polymorphic relation named relation_name, other than exclude."""
        for owner in self._owners.get(relation_name, ()):
            if owner != exclude:
                return owner
        if self._fallback is not None:
            # exclude names a type of this index, not of the fallback
            return self._fallback.find_owner(relation_name)
        return None


def classify_relation(
    relation: RelationDeclaration,
    owner_name: str,
    owner_index: PolymorphicOwnerIndex,
) -> RelationShape:
    """
    Classify a relation declaration.

    Args:
        relation: The declaration to classify
        owner_name: Name of the declaring type
        owner_index: Lookup for resolving "through" references

    Returns:
        The relation's shape. An unresolvable "through" yields an
        UnresolvedTarget with through_unresolved set; it is never raised.
    """
    relation_type = relation.relation_type
    direction = relation_type.direction
    cardinality = relation_type.cardinality
    is_polymorphic = relation_type.is_polymorphic
    owning_one = direction == Direction.OWNING and cardinality == Cardinality.ONE

    through_unresolved = False
    if not is_polymorphic:
        target = SingleTarget(relation.target_name)
    elif relation.for_set:
        target = UnionTarget(tuple(relation.for_set))
    elif relation.through:
        # A relation cannot be its own indirection
        exclude = owner_name if relation.through == relation.name else ""
        owner = owner_index.find_owner(relation.through, exclude=exclude)
        if owner is None:
            target = UnresolvedTarget()
            through_unresolved = True
        else:
            target = SingleTarget(owner)
    else:
        # Polymorphic with neither candidates nor indirection: open type
        target = UnresolvedTarget()

    is_union = isinstance(target, UnionTarget)
    return RelationShape(
        cardinality=cardinality,
        direction=direction,
        is_polymorphic=is_polymorphic,
        target=target,
        adds_foreign_key_field=owning_one and not (is_polymorphic and is_union),
        adds_type_discriminator_field=owning_one and is_polymorphic,
        through_unresolved=through_unresolved,
    )


def referenced_names(shape: RelationShape, owner_name: str) -> list[str]:
    """Type names a relation shape depends on, excluding the owner itself."""
    if isinstance(shape.target, UnionTarget):
        names = list(shape.target.names)
    elif isinstance(shape.target, SingleTarget):
        names = [shape.target.name]
    else:
        names = []
    return [name for name in names if name and name != owner_name]
