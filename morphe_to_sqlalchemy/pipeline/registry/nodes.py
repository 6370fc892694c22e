"""
Declaration nodes for a Morphe schema registry.

These nodes mirror the YAML documents of a registry before any
relation classification, path resolution or type mapping happens.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class TypeCategory(str, Enum):
    """Category of a declared schema type."""

    ENUM = "enums"
    MODEL = "models"
    STRUCTURE = "structures"
    ENTITY = "entities"


# Fixed compilation order: enums cannot depend on anything, entities need models
CATEGORY_ORDER = (
    TypeCategory.ENUM,
    TypeCategory.MODEL,
    TypeCategory.STRUCTURE,
    TypeCategory.ENTITY,
)


@dataclass(frozen=True, order=True)
class TypeKey:
    """Stable key of a declared type: category plus name."""

    category: TypeCategory
    name: str

    def __str__(self) -> str:
        return f"{self.category.value}/{self.name}"


class Cardinality(str, Enum):
    ONE = "one"
    MANY = "many"


class Direction(str, Enum):
    """Which side of a relation holds the reference."""

    OWNING = "for"  # Declaring type holds the foreign key
    OWNED = "has"  # Declaring type is referenced by another type


class RelationType(str, Enum):
    """The closed set of Morphe relation tags.

    Every tag is a combination of direction, cardinality and polymorphism.
    """

    FOR_ONE = "ForOne"
    FOR_MANY = "ForMany"
    HAS_ONE = "HasOne"
    HAS_MANY = "HasMany"
    FOR_ONE_POLY = "ForOnePoly"
    FOR_MANY_POLY = "ForManyPoly"
    HAS_ONE_POLY = "HasOnePoly"
    HAS_MANY_POLY = "HasManyPoly"

    @property
    def direction(self) -> Direction:
        return Direction.OWNING if self.value.startswith("For") else Direction.OWNED

    @property
    def cardinality(self) -> Cardinality:
        return Cardinality.MANY if "Many" in self.value else Cardinality.ONE

    @property
    def is_polymorphic(self) -> bool:
        return self.value.endswith("Poly")


@dataclass
class FieldDeclaration:
    """A field of a model, structure or entity.

    For entities, `type` holds a dotted path such as "Person.ContactInfo.Email".
    """

    name: str = ""
    type: str = ""
    attributes: list[str] = field(default_factory=list)


@dataclass
class RelationDeclaration:
    """A relation declared on a model or entity."""

    name: str = ""
    relation_type: RelationType = RelationType.FOR_ONE

    # Overrides the relation name as the inferred target type name
    aliased: str = ""

    # Candidate target types, only meaningful for polymorphic relations
    for_set: list[str] = field(default_factory=list)

    # Name of another polymorphic relation owning this association
    through: str = ""

    @property
    def target_name(self) -> str:
        """Inferred target type name (alias wins over the relation name)."""
        return self.aliased or self.name


@dataclass
class IdentifierGroup:
    """A named, ordered set of fields forming a unique or primary key."""

    name: str = ""
    fields: list[str] = field(default_factory=list)


@dataclass
class EnumDeclaration:
    name: str = ""
    value_type: str = "String"
    entries: dict[str, object] = field(default_factory=dict)
    source_path: str = ""


@dataclass
class ModelDeclaration:
    name: str = ""
    fields: dict[str, FieldDeclaration] = field(default_factory=dict)
    relations: dict[str, RelationDeclaration] = field(default_factory=dict)
    identifiers: dict[str, IdentifierGroup] = field(default_factory=dict)
    source_path: str = ""


@dataclass
class StructureDeclaration:
    name: str = ""
    fields: dict[str, FieldDeclaration] = field(default_factory=dict)
    source_path: str = ""


@dataclass
class EntityDeclaration:
    name: str = ""
    fields: dict[str, FieldDeclaration] = field(default_factory=dict)
    relations: dict[str, RelationDeclaration] = field(default_factory=dict)
    identifiers: dict[str, IdentifierGroup] = field(default_factory=dict)
    source_path: str = ""


SchemaDeclaration = EnumDeclaration | ModelDeclaration | StructureDeclaration | EntityDeclaration
