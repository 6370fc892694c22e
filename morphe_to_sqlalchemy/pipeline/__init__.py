"""
Pipeline - Morphe registry to SQLAlchemy types generator.

This module provides a multi-phase architecture for generating Python
code from a Morphe schema registry:

1. Phase 1 (Registry): Load YAML declarations into a registry
2. Phase 2 (Analyzer): Classify relations, resolve paths and build IR
3. Phase 3 (Backend): Render IR with jinja2 templates
4. Phase 4 (Writer): Validate and write files atomically
"""

from __future__ import annotations

from .analyzer import CompilationResult, SchemaCompiler, compile_registry
from .config import (
    CodeGeneratorConfig,
    EntityConfig,
    EnumConfig,
    OutputConfig,
    OutputMode,
    SQLAlchemyConfig,
    StructureConfig,
)
from .errors import (
    CompilationError,
    ConfigError,
    MissingModelsForEntitiesError,
    MorpheCompileError,
    NotFoundError,
    OutputError,
    PathResolutionError,
    RegistryLoadError,
    TypeCompilationError,
)
from .generator import PipelineGenerator
from .registry import Registry, load_registry, parse_registry
from .writer import AtomicWriter, OutputWriter

__all__ = [
    "PipelineGenerator",
    "SchemaCompiler",
    "CompilationResult",
    "compile_registry",
    "CodeGeneratorConfig",
    "SQLAlchemyConfig",
    "EnumConfig",
    "StructureConfig",
    "EntityConfig",
    "OutputConfig",
    "OutputMode",
    "Registry",
    "load_registry",
    "parse_registry",
    "AtomicWriter",
    "OutputWriter",
    "MorpheCompileError",
    "NotFoundError",
    "RegistryLoadError",
    "ConfigError",
    "OutputError",
    "CompilationError",
    "MissingModelsForEntitiesError",
    "PathResolutionError",
    "TypeCompilationError",
]
