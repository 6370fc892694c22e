"""
Analyzer module.

Contains relation classification, dependency graph and cycle detection,
field path resolution, type mapping, import tracking and IR building.
"""

from __future__ import annotations

from .analyzer import SchemaCompiler, compile_registry
from .dependency_graph import (
    Cycle,
    DependencyGraph,
    build_dependency_graph,
    canonicalize_cycle,
    detect_circular_dependencies,
    project_entities_to_models,
)
from .field_path_resolver import FieldPathResolver
from .import_tracker import ImportTracker
from .ir_nodes import (
    ArrayType,
    CompilationResult,
    Diagnostic,
    DiagnosticKind,
    FieldRole,
    ImportPlan,
    IRUnit,
    ReferenceType,
    RelationShape,
    ResolvedField,
    ScalarKind,
    ScalarType,
    SingleTarget,
    UnionTarget,
    UnionType,
    UnknownType,
    UnresolvedTarget,
    WrapperKind,
)
from .relation_classifier import PolymorphicOwnerIndex, classify_relation
from .type_mapper import map_field_type

__all__ = [
    "SchemaCompiler",
    "compile_registry",
    "Cycle",
    "DependencyGraph",
    "build_dependency_graph",
    "canonicalize_cycle",
    "detect_circular_dependencies",
    "project_entities_to_models",
    "FieldPathResolver",
    "ImportTracker",
    "ArrayType",
    "CompilationResult",
    "Diagnostic",
    "DiagnosticKind",
    "FieldRole",
    "ImportPlan",
    "IRUnit",
    "ReferenceType",
    "RelationShape",
    "ResolvedField",
    "ScalarKind",
    "ScalarType",
    "SingleTarget",
    "UnionTarget",
    "UnionType",
    "UnknownType",
    "UnresolvedTarget",
    "WrapperKind",
    "PolymorphicOwnerIndex",
    "classify_relation",
    "map_field_type",
]
