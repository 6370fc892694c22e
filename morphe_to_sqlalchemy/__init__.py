"""Morphe to SQLAlchemy Generator

A Python package for generating SQLAlchemy models, enums, structures and
entity classes from a Morphe schema registry.
"""

__version__ = "0.1.0"

from .pipeline import (
    CodeGeneratorConfig,
    MorpheCompileError,
    PipelineGenerator,
    Registry,
    compile_registry,
    load_registry,
)

__all__ = [
    "PipelineGenerator",
    "CodeGeneratorConfig",
    "MorpheCompileError",
    "Registry",
    "compile_registry",
    "load_registry",
]
