"""
Registry module.

Contains the declaration nodes, the read-only registry and the YAML loader.
"""

from __future__ import annotations

from .loader import load_registry, parse_registry
from .nodes import (
    CATEGORY_ORDER,
    Cardinality,
    Direction,
    EntityDeclaration,
    EnumDeclaration,
    FieldDeclaration,
    IdentifierGroup,
    ModelDeclaration,
    RelationDeclaration,
    RelationType,
    StructureDeclaration,
    TypeCategory,
    TypeKey,
)
from .registry import Registry

__all__ = [
    "CATEGORY_ORDER",
    "Cardinality",
    "Direction",
    "EntityDeclaration",
    "EnumDeclaration",
    "FieldDeclaration",
    "IdentifierGroup",
    "ModelDeclaration",
    "RelationDeclaration",
    "RelationType",
    "StructureDeclaration",
    "TypeCategory",
    "TypeKey",
    "Registry",
    "load_registry",
    "parse_registry",
]
