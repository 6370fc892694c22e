"""
Configuration for the code generator pipeline.

Accepts the JSON keys of the Morphe plugin format (camelCase) as well as
their snake_case spelling.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from enum import Enum

from .errors import ConfigError

LAZY_LOADING_STYLES = ("async", "sync", "property")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")
_PYTHON_VERSION = re.compile(r"^3\.\d+$")


def _normalize_key(key: str) -> str:
    """Convert a camelCase JSON key to its snake_case attribute name."""
    return _CAMEL_BOUNDARY.sub(r"_\1", key).lower()


def _apply(target: object, d: dict) -> None:
    """Set the known keys of d on a dataclass instance, ignoring the rest."""
    names = {f.name for f in fields(target)}
    for k, v in d.items():
        name = _normalize_key(k)
        if name in names:
            setattr(target, name, v)


class OutputMode(str, Enum):
    """Output mode for file generation.

    Controls behavior when an output file already exists.
    """

    FORCE = "force"  # Default: overwrite generated files
    ERROR_IF_EXISTS = "error"  # Raise an error if a file exists


@dataclass
class OutputConfig:
    """Configuration for output file handling.

    Attributes:
        mode: How to handle existing output files
        validate_before_write: Whether to parse generated code before writing
    """

    mode: OutputMode = OutputMode.FORCE
    validate_before_write: bool = True


@dataclass
class SQLAlchemyConfig:
    """SQLAlchemy specific options."""

    # Generate declarative models deriving from a shared Base
    use_declarative: bool = True

    # Generate entities as dataclasses
    use_dataclass: bool = False

    # Annotate entity fields and loader return types
    add_type_hints: bool = True

    # Write an __init__.py manifest per category
    generate_init: bool = True

    indent_size: int = 4

    # Target Python version, e.g. "3.11"
    python_version: str = "3.8"

    table_name_prefix: str = ""
    table_name_suffix: str = ""

    @property
    def python_version_tuple(self) -> tuple[int, int]:
        major, minor = self.python_version.split(".")
        return int(major), int(minor)

    def table_name(self, snake_name: str) -> str:
        return f"{self.table_name_prefix}{snake_name}{self.table_name_suffix}"


@dataclass
class EnumConfig:
    # Generate a __str__ method returning the member value
    generate_str_method: bool = False

    # Derive string enums from StrEnum (Python 3.11+)
    use_str_enum: bool = False


@dataclass
class StructureConfig:
    # Generate structures as dataclasses instead of plain classes
    use_dataclass: bool = True

    # Add __slots__ for memory efficiency
    generate_slots: bool = False


@dataclass
class EntityConfig:
    # How relation loaders are generated: "async", "sync" or "property"
    lazy_loading_style: str = "async"


@dataclass
class CodeGeneratorConfig:
    """Configuration options for code generation."""

    sqlalchemy: SQLAlchemyConfig = field(default_factory=SQLAlchemyConfig)
    enums: EnumConfig = field(default_factory=EnumConfig)
    structures: StructureConfig = field(default_factory=StructureConfig)
    entities: EntityConfig = field(default_factory=EntityConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Threads used to compile the types of one category
    max_workers: int = 1

    # Add generation comment at top of file
    add_generation_comment: bool = True

    def validate(self) -> None:
        """
        Check option values.

        Raises:
            ConfigError: If an option has an invalid value
        """
        style = self.entities.lazy_loading_style
        if style not in LAZY_LOADING_STYLES:
            raise ConfigError(f"invalid lazy loading style: {style} (must be 'async', 'sync', or 'property')")
        if not isinstance(self.sqlalchemy.indent_size, int) or self.sqlalchemy.indent_size <= 0:
            raise ConfigError(f"indent size must be a positive integer, got {self.sqlalchemy.indent_size!r}")
        if not _PYTHON_VERSION.match(str(self.sqlalchemy.python_version)):
            raise ConfigError(f"invalid python version: {self.sqlalchemy.python_version} (expected e.g. '3.11')")
        if not isinstance(self.max_workers, int) or self.max_workers < 1:
            raise ConfigError(f"max workers must be a positive integer, got {self.max_workers!r}")

    @staticmethod
    def from_dict(d: dict) -> CodeGeneratorConfig:
        """
        Create a config from a dictionary.

        SQLAlchemy options may sit at the top level (plugin format) or under
        a "sqlalchemy" key. Unknown keys are ignored.
        """
        config = CodeGeneratorConfig()
        sections = {
            "sqlalchemy": config.sqlalchemy,
            "enums": config.enums,
            "structures": config.structures,
            "entities": config.entities,
        }
        sqlalchemy_names = {f.name for f in fields(config.sqlalchemy)}

        for k, v in d.items():
            name = _normalize_key(k)
            if name in sections:
                if not isinstance(v, dict):
                    raise ConfigError(f"'{k}' must be an object")
                _apply(sections[name], v)
            elif name == "output":
                if not isinstance(v, dict):
                    raise ConfigError("'output' must be an object")
                mode = v.get("mode", OutputMode.FORCE)
                try:
                    mode = OutputMode(mode)
                except ValueError:
                    raise ConfigError(f"invalid output mode: {mode}") from None
                config.output = OutputConfig(
                    mode=mode,
                    validate_before_write=v.get("validate_before_write", v.get("validateBeforeWrite", True)),
                )
            elif name in sqlalchemy_names:
                setattr(config.sqlalchemy, name, v)
            elif name in ("max_workers", "add_generation_comment"):
                setattr(config, name, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "sqlalchemy": {
                "use_declarative": self.sqlalchemy.use_declarative,
                "use_dataclass": self.sqlalchemy.use_dataclass,
                "add_type_hints": self.sqlalchemy.add_type_hints,
                "generate_init": self.sqlalchemy.generate_init,
                "indent_size": self.sqlalchemy.indent_size,
                "python_version": self.sqlalchemy.python_version,
                "table_name_prefix": self.sqlalchemy.table_name_prefix,
                "table_name_suffix": self.sqlalchemy.table_name_suffix,
            },
            "enums": {
                "generate_str_method": self.enums.generate_str_method,
                "use_str_enum": self.enums.use_str_enum,
            },
            "structures": {
                "use_dataclass": self.structures.use_dataclass,
                "generate_slots": self.structures.generate_slots,
            },
            "entities": {
                "lazy_loading_style": self.entities.lazy_loading_style,
            },
            "output": {
                "mode": self.output.mode.value,
                "validate_before_write": self.output.validate_before_write,
            },
            "max_workers": self.max_workers,
            "add_generation_comment": self.add_generation_comment,
        }
