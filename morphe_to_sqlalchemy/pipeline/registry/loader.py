"""
Registry loader that builds declaration nodes from Morphe YAML documents.

A registry directory holds one subdirectory per category (enums, models,
structures, entities); each YAML document inside declares one type.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from ..errors import RegistryLoadError
from .nodes import (
    EntityDeclaration,
    EnumDeclaration,
    FieldDeclaration,
    IdentifierGroup,
    ModelDeclaration,
    RelationDeclaration,
    RelationType,
    StructureDeclaration,
    TypeCategory,
)
from .registry import Registry

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


def load_registry(path: Path | str) -> Registry:
    """
    Load a registry from a directory of YAML documents.

    Args:
        path: Registry root containing enums/, models/, structures/ and entities/

    Returns:
        A Registry with every declaration found

    Raises:
        RegistryLoadError: If the root is missing or a document is invalid
    """
    root = Path(path)
    if not root.is_dir():
        raise RegistryLoadError(f"Registry directory not found: {root}")

    documents: dict[str, list[tuple[str, Any]]] = {}
    for category in TypeCategory:
        category_dir = root / category.value
        if not category_dir.is_dir():
            continue
        files = sorted(p for p in category_dir.iterdir() if p.suffix in YAML_SUFFIXES)
        logger.debug("Loading %d %s documents from %s", len(files), category.value, category_dir)
        documents[category.value] = [(str(p), _read_yaml(p)) for p in files]

    return _build_registry(documents)


def parse_registry(data: dict[str, list[dict[str, Any]]]) -> Registry:
    """
    Build a registry from in-memory documents.

    Args:
        data: Mapping of category name ("enums", "models", ...) to a list of
            documents shaped like the YAML files

    Returns:
        A Registry with every declaration
    """
    documents = {}
    for category, docs in data.items():
        documents[category] = [(f"<{category}[{i}]>", doc) for i, doc in enumerate(docs)]
    return _build_registry(documents)


def _read_yaml(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RegistryLoadError(f"Cannot read registry document {path}: {exc}") from exc
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise RegistryLoadError(f"Invalid YAML in {path}: {exc}") from exc


def _build_registry(documents: dict[str, list[tuple[str, Any]]]) -> Registry:
    declarations: dict[TypeCategory, dict[str, Any]] = {category: {} for category in TypeCategory}

    for category_name, docs in documents.items():
        try:
            category = TypeCategory(category_name)
        except ValueError:
            raise RegistryLoadError(f"Unknown registry category: {category_name}") from None

        parse = _PARSERS[category]
        for source, doc in docs:
            if not isinstance(doc, dict):
                raise RegistryLoadError(f"{source}: document must be a YAML mapping")
            decl = parse(doc, source)
            if decl.name in declarations[category]:
                raise RegistryLoadError(f"{source}: duplicate {category.value} name '{decl.name}'")
            declarations[category][decl.name] = decl

    return Registry(
        enums=declarations[TypeCategory.ENUM],
        models=declarations[TypeCategory.MODEL],
        structures=declarations[TypeCategory.STRUCTURE],
        entities=declarations[TypeCategory.ENTITY],
    )


def _require_name(doc: dict[str, Any], source: str) -> str:
    name = doc.get("name")
    if not isinstance(name, str) or not name:
        raise RegistryLoadError(f"{source}: missing required field 'name'")
    return name


def _require_mapping(doc: dict[str, Any], key: str, source: str) -> dict[str, Any]:
    value = doc.get(key) or {}
    if not isinstance(value, dict):
        raise RegistryLoadError(f"{source}: '{key}' must be a mapping")
    return value


def _parse_enum(doc: dict[str, Any], source: str) -> EnumDeclaration:
    name = _require_name(doc, source)
    entries = _require_mapping(doc, "entries", source)
    return EnumDeclaration(
        name=name,
        value_type=str(doc.get("type") or "String"),
        entries=dict(entries),
        source_path=source,
    )


def _parse_fields(doc: dict[str, Any], source: str) -> dict[str, FieldDeclaration]:
    fields = {}
    for field_name, raw in _require_mapping(doc, "fields", source).items():
        # Shorthand: "Email: String"
        if isinstance(raw, str):
            fields[field_name] = FieldDeclaration(name=field_name, type=raw)
            continue
        if not isinstance(raw, dict) or not isinstance(raw.get("type"), str):
            raise RegistryLoadError(f"{source}: field '{field_name}' needs a string 'type'")
        attributes = raw.get("attributes") or []
        if not isinstance(attributes, list):
            raise RegistryLoadError(f"{source}: attributes of field '{field_name}' must be a list")
        fields[field_name] = FieldDeclaration(
            name=field_name,
            type=raw["type"],
            attributes=[str(a) for a in attributes],
        )
    return fields


def _parse_relations(doc: dict[str, Any], source: str) -> dict[str, RelationDeclaration]:
    relations = {}
    for relation_name, raw in _require_mapping(doc, "related", source).items():
        if not isinstance(raw, dict):
            raise RegistryLoadError(f"{source}: relation '{relation_name}' must be a mapping")
        try:
            relation_type = RelationType(raw.get("type"))
        except ValueError:
            raise RegistryLoadError(f"{source}: relation '{relation_name}' has unknown type {raw.get('type')!r}") from None

        for_set = raw.get("for") or []
        if isinstance(for_set, str):
            for_set = [for_set]
        relations[relation_name] = RelationDeclaration(
            name=relation_name,
            relation_type=relation_type,
            aliased=str(raw.get("aliased") or ""),
            for_set=[str(target) for target in for_set],
            through=str(raw.get("through") or ""),
        )
    return relations


def _parse_identifiers(doc: dict[str, Any], source: str) -> dict[str, IdentifierGroup]:
    identifiers = {}
    for group_name, raw in _require_mapping(doc, "identifiers", source).items():
        # A single field may be given as a plain string
        if isinstance(raw, str):
            raw = [raw]
        elif isinstance(raw, dict):
            raw = raw.get("fields") or []
        if not isinstance(raw, list):
            raise RegistryLoadError(f"{source}: identifier '{group_name}' must list field names")
        identifiers[group_name] = IdentifierGroup(name=group_name, fields=[str(f) for f in raw])
    return identifiers


def _parse_model(doc: dict[str, Any], source: str) -> ModelDeclaration:
    return ModelDeclaration(
        name=_require_name(doc, source),
        fields=_parse_fields(doc, source),
        relations=_parse_relations(doc, source),
        identifiers=_parse_identifiers(doc, source),
        source_path=source,
    )


def _parse_structure(doc: dict[str, Any], source: str) -> StructureDeclaration:
    return StructureDeclaration(
        name=_require_name(doc, source),
        fields=_parse_fields(doc, source),
        source_path=source,
    )


def _parse_entity(doc: dict[str, Any], source: str) -> EntityDeclaration:
    return EntityDeclaration(
        name=_require_name(doc, source),
        fields=_parse_fields(doc, source),
        relations=_parse_relations(doc, source),
        identifiers=_parse_identifiers(doc, source),
        source_path=source,
    )


_PARSERS = {
    TypeCategory.ENUM: _parse_enum,
    TypeCategory.MODEL: _parse_model,
    TypeCategory.STRUCTURE: _parse_structure,
    TypeCategory.ENTITY: _parse_entity,
}
