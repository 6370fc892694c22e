"""
Read-only registry of declared schema types.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from ..errors import NotFoundError
from .nodes import (
    EntityDeclaration,
    EnumDeclaration,
    ModelDeclaration,
    SchemaDeclaration,
    StructureDeclaration,
    TypeCategory,
)

_CATEGORY_LABELS = {
    TypeCategory.ENUM: "enum",
    TypeCategory.MODEL: "model",
    TypeCategory.STRUCTURE: "structure",
    TypeCategory.ENTITY: "entity",
}


class Registry:
    """Holds every declaration of one schema registry, keyed by category and name.

    The registry is never mutated during a compile call; the accessors hand
    out read-only mapping views.
    """

    def __init__(
        self,
        enums: Mapping[str, EnumDeclaration] | None = None,
        models: Mapping[str, ModelDeclaration] | None = None,
        structures: Mapping[str, StructureDeclaration] | None = None,
        entities: Mapping[str, EntityDeclaration] | None = None,
    ):
        self._declarations: dict[TypeCategory, dict[str, SchemaDeclaration]] = {
            TypeCategory.ENUM: dict(enums or {}),
            TypeCategory.MODEL: dict(models or {}),
            TypeCategory.STRUCTURE: dict(structures or {}),
            TypeCategory.ENTITY: dict(entities or {}),
        }

    def get_all(self, category: TypeCategory) -> Mapping[str, SchemaDeclaration]:
        return MappingProxyType(self._declarations[category])

    def get_all_enums(self) -> Mapping[str, EnumDeclaration]:
        return self.get_all(TypeCategory.ENUM)

    def get_all_models(self) -> Mapping[str, ModelDeclaration]:
        return self.get_all(TypeCategory.MODEL)

    def get_all_structures(self) -> Mapping[str, StructureDeclaration]:
        return self.get_all(TypeCategory.STRUCTURE)

    def get_all_entities(self) -> Mapping[str, EntityDeclaration]:
        return self.get_all(TypeCategory.ENTITY)

    def get(self, category: TypeCategory, name: str) -> SchemaDeclaration:
        """
        Look up one declaration.

        Raises:
            NotFoundError: If no declaration of that category has the name
        """
        try:
            return self._declarations[category][name]
        except KeyError:
            raise NotFoundError(_CATEGORY_LABELS[category], name) from None

    def get_enum(self, name: str) -> EnumDeclaration:
        return self.get(TypeCategory.ENUM, name)

    def get_model(self, name: str) -> ModelDeclaration:
        return self.get(TypeCategory.MODEL, name)

    def get_structure(self, name: str) -> StructureDeclaration:
        return self.get(TypeCategory.STRUCTURE, name)

    def get_entity(self, name: str) -> EntityDeclaration:
        return self.get(TypeCategory.ENTITY, name)

    def contains(self, category: TypeCategory, name: str) -> bool:
        return name in self._declarations[category]

    def has_enums(self) -> bool:
        return bool(self._declarations[TypeCategory.ENUM])

    def has_models(self) -> bool:
        return bool(self._declarations[TypeCategory.MODEL])

    def has_structures(self) -> bool:
        return bool(self._declarations[TypeCategory.STRUCTURE])

    def has_entities(self) -> bool:
        return bool(self._declarations[TypeCategory.ENTITY])

    def __len__(self) -> int:
        return sum(len(decls) for decls in self._declarations.values())
