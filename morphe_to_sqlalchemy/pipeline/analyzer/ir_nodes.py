"""
IR (Intermediate Representation) node definitions.

These nodes represent the compiled registry, ready for emission. Every
relation is classified, every entity path is resolved and every field
type is mapped. IR nodes are immutable once built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..registry.nodes import Cardinality, Direction, IdentifierGroup, TypeCategory, TypeKey


class ScalarKind(str, Enum):
    """Target-neutral scalar kinds."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    DATE = "date"


@dataclass(frozen=True)
class ScalarType:
    kind: ScalarKind = ScalarKind.STRING


@dataclass(frozen=True)
class ReferenceType:
    """A named reference to an enum or another declared type."""

    name: str = ""


@dataclass(frozen=True)
class ArrayType:
    element: ResolvedType | None = None


@dataclass(frozen=True)
class UnionType:
    names: tuple[str, ...] = ()


@dataclass(frozen=True)
class UnknownType:
    """An open type, emitted as Any."""


ResolvedType = ScalarType | ReferenceType | ArrayType | UnionType | UnknownType


@dataclass(frozen=True)
class SingleTarget:
    name: str = ""


@dataclass(frozen=True)
class UnionTarget:
    names: tuple[str, ...] = ()


@dataclass(frozen=True)
class UnresolvedTarget:
    pass


RelationTarget = SingleTarget | UnionTarget | UnresolvedTarget


@dataclass(frozen=True)
class RelationShape:
    """Canonical description of one relation declaration."""

    cardinality: Cardinality = Cardinality.ONE
    direction: Direction = Direction.OWNING
    is_polymorphic: bool = False
    target: RelationTarget = field(default_factory=UnresolvedTarget)

    # Whether the owning type gets a <relation>_id key field
    adds_foreign_key_field: bool = False

    # Whether the owning type gets a <relation>_type/<relation>_id pair
    adds_type_discriminator_field: bool = False

    # A "through" reference named no polymorphic relation in scope
    through_unresolved: bool = False

    @property
    def is_many(self) -> bool:
        return self.cardinality == Cardinality.MANY


class FieldRole(str, Enum):
    """Why a field exists on an IR unit."""

    DATA = "data"  # Declared field
    FOREIGN_KEY = "foreign_key"  # <relation>_id of an owning relation
    DISCRIMINATOR = "discriminator"  # <relation>_type of a polymorphic relation
    POLYMORPHIC_ID = "polymorphic_id"  # <relation>_id paired with a discriminator
    NAVIGATION = "navigation"  # The related object(s)


@dataclass(frozen=True)
class ResolvedField:
    """A field of an IR unit with its fully resolved type."""

    name: str = ""
    resolved_type: ResolvedType = field(default_factory=UnknownType)
    role: FieldRole = FieldRole.DATA
    nullable: bool = False

    # Declared Morphe type (e.g. "AutoIncrement") or entity path, "" for generated fields
    schema_type: str = ""

    # Relation that generated this field, "" for data fields
    relation_name: str = ""

    # Allowed discriminator values of a polymorphic relation
    choices: tuple[str, ...] = ()

    # Generated by a polymorphic relation
    polymorphic: bool = False


@dataclass(frozen=True)
class RelationLoader:
    """A lazy loader of an entity relation."""

    relation_name: str = ""
    target: ResolvedType = field(default_factory=UnknownType)
    is_many: bool = False


@dataclass(frozen=True)
class EnumEntry:
    name: str = ""
    value: object = None


@dataclass(frozen=True)
class IRUnit:
    """One compiled schema type."""

    name: str = ""
    category: TypeCategory = TypeCategory.MODEL
    fields: tuple[ResolvedField, ...] = ()
    identifiers: tuple[IdentifierGroup, ...] = ()
    relation_loaders: tuple[RelationLoader, ...] = ()

    # Enums only
    enum_value_kind: ScalarKind | None = None
    enum_entries: tuple[EnumEntry, ...] = ()

    @property
    def key(self) -> TypeKey:
        return TypeKey(self.category, self.name)

    def identifier_fields(self, group_name: str = "primary") -> tuple[str, ...]:
        for group in self.identifiers:
            if group.name == group_name:
                return tuple(group.fields)
        return ()


class WrapperKind(str, Enum):
    """Type constructors a generated file needs support for."""

    ARRAY = "array"
    OPTIONAL = "optional"
    UNION = "union"
    ANY = "any"
    LITERAL = "literal"


@dataclass(frozen=True)
class ImportPlan:
    """Cross-unit references of one IR unit, partitioned by category.

    Deferred references must only be imported for type checking, they
    would otherwise risk an import cycle.
    """

    wrappers: tuple[WrapperKind, ...] = ()
    scalar_kinds: tuple[ScalarKind, ...] = ()
    direct_references: tuple[TypeKey, ...] = ()
    deferred_references: tuple[TypeKey, ...] = ()

    def references(self, category: TypeCategory, deferred: bool = False) -> list[str]:
        refs = self.deferred_references if deferred else self.direct_references
        return [ref.name for ref in refs if ref.category == category]


class DiagnosticKind(str, Enum):
    CYCLE_DETECTED = "CycleDetected"
    UNRESOLVED_THROUGH = "UnresolvedThrough"


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind = DiagnosticKind.CYCLE_DETECTED
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.detail}"


@dataclass
class CompilationResult:
    """Everything one compile call produces."""

    units: dict[TypeKey, IRUnit] = field(default_factory=dict)
    import_plans: dict[TypeKey, ImportPlan] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def ordered_units(self, category: TypeCategory) -> list[IRUnit]:
        """Units of one category sorted by name."""
        return [self.units[key] for key in sorted(k for k in self.units if k.category == category)]

    def import_plan(self, unit: IRUnit) -> ImportPlan:
        return self.import_plans.get(unit.key, ImportPlan())
