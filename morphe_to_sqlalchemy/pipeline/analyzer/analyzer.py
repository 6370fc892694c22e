"""
Schema compiler that transforms a registry into IR.

Phase 2 of the pipeline: detect circular dependencies, classify relations,
resolve entity field paths, map field types and build one IR unit (plus its
import plan) per declared type.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor

from ..errors import MissingModelsForEntitiesError, PathResolutionError, TypeCompilationError
from ..registry.nodes import (
    EntityDeclaration,
    EnumDeclaration,
    IdentifierGroup,
    ModelDeclaration,
    RelationDeclaration,
    StructureDeclaration,
    TypeCategory,
)
from ..registry.registry import Registry
from .dependency_graph import build_dependency_graph, detect_circular_dependencies, project_entities_to_models
from .field_path_resolver import FieldPathResolver
from .import_tracker import ImportTracker
from .ir_nodes import (
    ArrayType,
    CompilationResult,
    Diagnostic,
    DiagnosticKind,
    EnumEntry,
    FieldRole,
    IRUnit,
    ReferenceType,
    RelationLoader,
    RelationShape,
    ResolvedField,
    ResolvedType,
    ScalarKind,
    ScalarType,
    SingleTarget,
    UnionTarget,
    UnionType,
    UnknownType,
)
from .relation_classifier import PolymorphicOwnerIndex, classify_relation
from .type_mapper import map_enum_value_type, map_field_type

logger = logging.getLogger(__name__)


def discriminator_field_name(relation_name: str) -> str:
    return f"{relation_name}_type"


def key_field_name(relation_name: str) -> str:
    return f"{relation_name}_id"


def navigation_type(shape: RelationShape) -> ResolvedType:
    """Type of the navigation field of a relation, wrapped in an array for many."""
    if isinstance(shape.target, SingleTarget):
        target: ResolvedType = ReferenceType(shape.target.name)
    elif isinstance(shape.target, UnionTarget):
        target = UnionType(shape.target.names)
    else:
        target = UnknownType()
    if shape.is_many:
        return ArrayType(target)
    return target


class _UnitBuild:
    """Result of compiling one declaration before assembly."""

    def __init__(self, unit: IRUnit, diagnostics: list[Diagnostic]):
        self.unit = unit
        self.diagnostics = diagnostics


class SchemaCompiler:
    """Compiles a registry into IR units, import plans and diagnostics."""

    def __init__(self, max_workers: int = 1):
        """
        Initialize the compiler.

        Args:
            max_workers: Threads used to compile the types of one category.
                Output order never depends on it.
        """
        self.max_workers = max(1, max_workers)

    def compile(self, registry: Registry) -> CompilationResult:
        """
        Compile a whole registry.

        Categories are processed in the fixed order enums, models,
        structures, entities.

        Args:
            registry: The registry to compile (read only)

        Returns:
            CompilationResult with units, import plans and ordered diagnostics

        Raises:
            MissingModelsForEntitiesError: If entities are declared without models
            TypeCompilationError: If an entity field path cannot be resolved
        """
        if registry.has_entities() and not registry.has_models():
            raise MissingModelsForEntitiesError(sorted(registry.get_all_entities()))

        result = CompilationResult()
        tracker = ImportTracker(registry)
        model_index = PolymorphicOwnerIndex(registry.get_all_models())

        if registry.has_enums():
            logger.info("Compiling enums...")
            self._compile_category(registry.get_all_enums(), self._compile_enum, tracker, result)

        if registry.has_models():
            models = registry.get_all_models()
            model_keys = self._primary_key_types(models, lambda decl, name: map_field_type(decl.fields[name].type))
            self._report_cycles("models", models, model_index, result)
            logger.info("Compiling models...")
            self._compile_category(
                models,
                lambda decl: self._compile_model(decl, model_index, model_keys),
                tracker,
                result,
            )

        if registry.has_structures():
            logger.info("Compiling structures...")
            self._compile_category(registry.get_all_structures(), self._compile_structure, tracker, result)

        if registry.has_entities():
            entities = registry.get_all_entities()
            # Through owners not declared on an entity are looked up on models
            entity_index = PolymorphicOwnerIndex(entities, fallback=model_index)
            self._report_cycles("entities", project_entities_to_models(entities), entity_index, result)
            logger.info("Compiling entities...")
            resolver = FieldPathResolver(registry)
            entity_keys = self._primary_key_types(
                entities, lambda decl, name: self._resolve_entity_field(resolver, decl, name)
            )
            self._compile_category(
                entities,
                lambda decl: self._compile_entity(decl, entity_index, resolver, entity_keys),
                tracker,
                result,
            )

        return result

    def _compile_category(
        self,
        declarations: Mapping[str, object],
        compile_one: Callable[[object], _UnitBuild],
        tracker: ImportTracker,
        result: CompilationResult,
    ) -> None:
        """Compile every declaration of one category and assemble in name order."""
        names = sorted(declarations)
        ordered = [declarations[name] for name in names]

        if self.max_workers > 1 and len(ordered) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                builds = list(pool.map(compile_one, ordered))
        else:
            builds = [compile_one(decl) for decl in ordered]

        for build in builds:
            unit = build.unit
            result.units[unit.key] = unit
            result.import_plans[unit.key] = tracker.track(unit)
            for diagnostic in build.diagnostics:
                logger.warning("%s", diagnostic)
                result.diagnostics.append(diagnostic)

    def _report_cycles(
        self,
        label: str,
        declarations: Mapping[str, ModelDeclaration],
        owner_index: PolymorphicOwnerIndex,
        result: CompilationResult,
    ) -> None:
        graph = build_dependency_graph(declarations, owner_index)
        cycles = detect_circular_dependencies(graph)
        if not cycles:
            return

        logger.warning("Circular dependencies detected in %s:", label)
        for cycle in cycles:
            logger.warning("  - %s", cycle)
            result.diagnostics.append(Diagnostic(DiagnosticKind.CYCLE_DETECTED, f"{label}: {cycle}"))
        logger.warning("Note: using TYPE_CHECKING imports to handle circular dependencies")

    # ------------------------------------------------------------------
    # Per-category compilation
    # ------------------------------------------------------------------

    def _compile_enum(self, decl: EnumDeclaration) -> _UnitBuild:
        entries = tuple(EnumEntry(name=name, value=decl.entries[name]) for name in sorted(decl.entries))
        unit = IRUnit(
            name=decl.name,
            category=TypeCategory.ENUM,
            enum_value_kind=map_enum_value_type(decl.value_type),
            enum_entries=entries,
        )
        return _UnitBuild(unit, [])

    def _compile_model(
        self,
        decl: ModelDeclaration,
        owner_index: PolymorphicOwnerIndex,
        key_types: Mapping[str, ResolvedType],
    ) -> _UnitBuild:
        fields = self._data_fields(decl.fields)
        diagnostics: list[Diagnostic] = []

        shapes = self._classify_all(decl.name, decl.relations, owner_index, diagnostics)

        # All key fields first, then all navigation fields
        for relation, shape in shapes:
            fields.extend(self._key_fields(relation, shape, key_types))
        for relation, shape in shapes:
            fields.append(self._navigation_field(relation, shape))

        unit = IRUnit(
            name=decl.name,
            category=TypeCategory.MODEL,
            fields=tuple(fields),
            identifiers=self._identifiers(decl.identifiers),
        )
        return _UnitBuild(unit, diagnostics)

    def _compile_structure(self, decl: StructureDeclaration) -> _UnitBuild:
        unit = IRUnit(
            name=decl.name,
            category=TypeCategory.STRUCTURE,
            fields=tuple(self._data_fields(decl.fields)),
        )
        return _UnitBuild(unit, [])

    def _compile_entity(
        self,
        decl: EntityDeclaration,
        owner_index: PolymorphicOwnerIndex,
        resolver: FieldPathResolver,
        key_types: Mapping[str, ResolvedType],
    ) -> _UnitBuild:
        fields: list[ResolvedField] = []
        for field_name in sorted(decl.fields):
            field_decl = decl.fields[field_name]
            fields.append(
                ResolvedField(
                    name=field_name,
                    resolved_type=self._resolve_entity_field(resolver, decl, field_name),
                    role=FieldRole.DATA,
                    schema_type=field_decl.type,
                )
            )

        diagnostics: list[Diagnostic] = []
        loaders = []
        for relation, shape in self._classify_all(decl.name, decl.relations, owner_index, diagnostics):
            # Key fields directly precede the navigation field of their relation
            fields.extend(self._key_fields(relation, shape, key_types))
            nav = self._navigation_field(relation, shape)
            fields.append(nav)
            target = nav.resolved_type.element if isinstance(nav.resolved_type, ArrayType) else nav.resolved_type
            loaders.append(RelationLoader(relation_name=relation.name, target=target, is_many=shape.is_many))

        unit = IRUnit(
            name=decl.name,
            category=TypeCategory.ENTITY,
            fields=tuple(fields),
            identifiers=self._identifiers(decl.identifiers),
            relation_loaders=tuple(loaders),
        )
        return _UnitBuild(unit, diagnostics)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _data_fields(self, field_decls: Mapping[str, object]) -> list[ResolvedField]:
        fields = []
        for field_name in sorted(field_decls):
            field_decl = field_decls[field_name]
            fields.append(
                ResolvedField(
                    name=field_name,
                    resolved_type=map_field_type(field_decl.type),
                    role=FieldRole.DATA,
                    schema_type=field_decl.type,
                )
            )
        return fields

    def _classify_all(
        self,
        owner_name: str,
        relations: Mapping[str, RelationDeclaration],
        owner_index: PolymorphicOwnerIndex,
        diagnostics: list[Diagnostic],
    ) -> list[tuple[RelationDeclaration, RelationShape]]:
        shapes = []
        for relation_name in sorted(relations):
            relation = relations[relation_name]
            shape = classify_relation(relation, owner_name, owner_index)
            if shape.through_unresolved:
                diagnostics.append(
                    Diagnostic(
                        DiagnosticKind.UNRESOLVED_THROUGH,
                        f"{owner_name}.{relation_name}: polymorphic relation '{relation.through}' not found",
                    )
                )
            shapes.append((relation, shape))
        return shapes

    @staticmethod
    def _resolve_entity_field(resolver: FieldPathResolver, decl: EntityDeclaration, field_name: str) -> ResolvedType:
        try:
            return resolver.resolve(decl.fields[field_name].type)
        except PathResolutionError as exc:
            raise TypeCompilationError(decl.name, field_name, exc) from exc

    def _primary_key_types(
        self,
        declarations: Mapping[str, ModelDeclaration | EntityDeclaration],
        resolve_field: Callable[[ModelDeclaration | EntityDeclaration, str], ResolvedType],
    ) -> dict[str, ResolvedType]:
        """Scalar type of each single-field primary key, by type name."""
        key_types: dict[str, ResolvedType] = {}
        for type_name in sorted(declarations):
            decl = declarations[type_name]
            group = decl.identifiers.get("primary")
            if group is None or len(group.fields) != 1 or group.fields[0] not in decl.fields:
                continue
            resolved_type = resolve_field(decl, group.fields[0])
            if isinstance(resolved_type, ScalarType):
                key_types[type_name] = resolved_type
        return key_types

    def _key_fields(
        self,
        relation: RelationDeclaration,
        shape: RelationShape,
        key_types: Mapping[str, ResolvedType],
    ) -> list[ResolvedField]:
        """Generated fields a relation adds to its owner, discriminator first.

        A foreign key takes the type of the target's primary key, string when
        the target has no single scalar primary key.
        """
        if shape.adds_type_discriminator_field:
            choices = shape.target.names if isinstance(shape.target, UnionTarget) else ()
            return [
                ResolvedField(
                    name=discriminator_field_name(relation.name),
                    resolved_type=ScalarType(ScalarKind.STRING),
                    role=FieldRole.DISCRIMINATOR,
                    nullable=True,
                    relation_name=relation.name,
                    choices=choices,
                    polymorphic=True,
                ),
                ResolvedField(
                    name=key_field_name(relation.name),
                    resolved_type=ScalarType(ScalarKind.STRING),
                    role=FieldRole.POLYMORPHIC_ID,
                    nullable=True,
                    relation_name=relation.name,
                    polymorphic=True,
                ),
            ]
        if shape.adds_foreign_key_field:
            return [
                ResolvedField(
                    name=key_field_name(relation.name),
                    resolved_type=key_types.get(relation.target_name, ScalarType(ScalarKind.STRING)),
                    role=FieldRole.FOREIGN_KEY,
                    nullable=True,
                    relation_name=relation.name,
                    schema_type=relation.target_name,
                )
            ]
        return []

    def _navigation_field(self, relation: RelationDeclaration, shape: RelationShape) -> ResolvedField:
        return ResolvedField(
            name=relation.name,
            resolved_type=navigation_type(shape),
            role=FieldRole.NAVIGATION,
            nullable=not shape.is_many,
            relation_name=relation.name,
            polymorphic=shape.is_polymorphic,
        )

    def _identifiers(self, identifiers: Mapping[str, IdentifierGroup]) -> tuple[IdentifierGroup, ...]:
        return tuple(
            IdentifierGroup(name=name, fields=list(identifiers[name].fields)) for name in sorted(identifiers)
        )


def compile_registry(registry: Registry, max_workers: int = 1) -> CompilationResult:
    """
    Compile a registry into IR.

    Args:
        registry: The registry to compile
        max_workers: Threads per category (1 compiles sequentially)

    Returns:
        CompilationResult with one IR unit per declared type
    """
    return SchemaCompiler(max_workers=max_workers).compile(registry)
