"""
Import tracker that computes the cross-unit references of an IR unit.
"""

from __future__ import annotations

from ..registry.nodes import TypeCategory, TypeKey
from ..registry.registry import Registry
from .ir_nodes import (
    ArrayType,
    FieldRole,
    ImportPlan,
    IRUnit,
    ReferenceType,
    ResolvedType,
    ScalarKind,
    ScalarType,
    UnionType,
    UnknownType,
    WrapperKind,
)

# Lookup order for names found in data fields: enums first, they are the common case
_DATA_LOOKUP_ORDER = (
    TypeCategory.ENUM,
    TypeCategory.STRUCTURE,
    TypeCategory.MODEL,
    TypeCategory.ENTITY,
)


class ImportTracker:
    """Tracks which wrappers, scalar kinds and declared types a unit refers to.

    Enum references are always direct: enums cannot depend on anything, so
    importing them can never close a cycle. Every other cross-unit reference
    is deferred by convention, whether or not it actually sits on a cycle.
    """

    def __init__(self, registry: Registry):
        self.registry = registry

    def track(self, unit: IRUnit) -> ImportPlan:
        """
        Compute the import plan of one unit.

        Args:
            unit: The compiled unit

        Returns:
            ImportPlan with sorted, deduplicated lists per category
        """
        wrappers: set[WrapperKind] = set()
        scalars: set[ScalarKind] = set()
        references: set[TypeKey] = set()

        for field in unit.fields:
            if field.nullable:
                wrappers.add(WrapperKind.OPTIONAL)
            if field.choices:
                wrappers.add(WrapperKind.LITERAL)
            prefer = unit.category if field.role == FieldRole.NAVIGATION else None
            self._walk(field.resolved_type, unit, prefer, wrappers, scalars, references)

        for loader in unit.relation_loaders:
            wrappers.add(WrapperKind.ARRAY if loader.is_many else WrapperKind.OPTIONAL)
            self._walk(loader.target, unit, unit.category, wrappers, scalars, references)

        if unit.enum_value_kind is not None:
            scalars.add(unit.enum_value_kind)

        direct = sorted(ref for ref in references if ref.category == TypeCategory.ENUM)
        deferred = sorted(ref for ref in references if ref.category != TypeCategory.ENUM)

        return ImportPlan(
            wrappers=tuple(sorted(wrappers, key=lambda w: w.value)),
            scalar_kinds=tuple(sorted(scalars, key=lambda s: s.value)),
            direct_references=tuple(direct),
            deferred_references=tuple(deferred),
        )

    def _walk(
        self,
        resolved_type: ResolvedType,
        unit: IRUnit,
        prefer: TypeCategory | None,
        wrappers: set[WrapperKind],
        scalars: set[ScalarKind],
        references: set[TypeKey],
    ) -> None:
        """Collect everything a (possibly nested) type needs."""
        if isinstance(resolved_type, ScalarType):
            scalars.add(resolved_type.kind)
        elif isinstance(resolved_type, ArrayType):
            wrappers.add(WrapperKind.ARRAY)
            if resolved_type.element is not None:
                self._walk(resolved_type.element, unit, prefer, wrappers, scalars, references)
        elif isinstance(resolved_type, UnionType):
            wrappers.add(WrapperKind.UNION)
            for name in resolved_type.names:
                self._add_reference(name, unit, prefer, references)
        elif isinstance(resolved_type, UnknownType):
            wrappers.add(WrapperKind.ANY)
        elif isinstance(resolved_type, ReferenceType):
            self._add_reference(resolved_type.name, unit, prefer, references)

    def _add_reference(
        self,
        name: str,
        unit: IRUnit,
        prefer: TypeCategory | None,
        references: set[TypeKey],
    ) -> None:
        category = self.classify(name, prefer)
        if category is None:
            # Not declared anywhere: nothing to import
            return
        key = TypeKey(category, name)
        if key != unit.key:
            references.add(key)

    def classify(self, name: str, prefer: TypeCategory | None = None) -> TypeCategory | None:
        """
        Find the category that declares a name.

        Args:
            name: Referenced type name
            prefer: Category to try first (e.g. entities for entity relations)

        Returns:
            The declaring category, or None if the name is not declared
        """
        order = _DATA_LOOKUP_ORDER
        if prefer is not None:
            order = (prefer,) + tuple(c for c in _DATA_LOOKUP_ORDER if c != prefer)
        for category in order:
            if self.registry.contains(category, name):
                return category
        return None
