"""
Error types raised by the compilation pipeline.
"""

from __future__ import annotations

from enum import Enum


class MorpheCompileError(Exception):
    """Base class for all errors raised by morphe_to_sqlalchemy."""


class NotFoundError(MorpheCompileError, KeyError):
    """Raised when a registry lookup names a type that is not declared."""

    def __init__(self, category: str, name: str):
        self.category = category
        self.name = name
        super().__init__(f"{category} not found: {name}")

    def __str__(self) -> str:
        # KeyError quotes its argument, keep the plain message
        return self.args[0]


class RegistryLoadError(MorpheCompileError):
    """Raised when registry documents cannot be read or are malformed."""


class ConfigError(MorpheCompileError, ValueError):
    """Raised when a configuration value is invalid."""


class OutputError(MorpheCompileError):
    """Raised when generated code cannot be validated or written."""


class CompilationError(MorpheCompileError):
    """Base class for errors that abort a compile call."""


class MissingModelsForEntitiesError(CompilationError):
    """Raised when entities are declared but the registry has no models."""

    def __init__(self, entity_names: list[str]):
        self.entity_names = entity_names
        super().__init__(f"entities compilation requires models to be declared (entities: {', '.join(entity_names)})")


class PathErrorKind(str, Enum):
    """Failure kinds of entity field path resolution."""

    MALFORMED_PATH = "MalformedPath"
    UNKNOWN_ROOT_TYPE = "UnknownRootType"
    UNKNOWN_RELATION = "UnknownRelation"
    UNSUPPORTED_POLYMORPHIC_HOP = "UnsupportedPolymorphicHop"
    UNKNOWN_TARGET_TYPE = "UnknownTargetType"
    UNKNOWN_FIELD = "UnknownField"


class PathResolutionError(CompilationError):
    """Raised when a dotted field path cannot be resolved.

    Attributes:
        kind: What went wrong
        path: The full dotted path
        resolved_segment: The furthest segment that did resolve ("" if none)
    """

    def __init__(self, kind: PathErrorKind, path: str, resolved_segment: str, message: str):
        self.kind = kind
        self.path = path
        self.resolved_segment = resolved_segment
        super().__init__(f"{kind.value}: {message} (path '{path}')")


class TypeCompilationError(CompilationError):
    """Wraps a failure that aborted the compilation of one declared type."""

    def __init__(self, type_name: str, field_name: str, cause: Exception):
        self.type_name = type_name
        self.field_name = field_name
        self.cause = cause
        super().__init__(f"failed to compile {type_name}.{field_name}: {cause}")
