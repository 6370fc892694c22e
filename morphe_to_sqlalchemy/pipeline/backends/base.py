"""
Base class for code generation backends.

Defines the interface that all target backends must implement.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

import jinja2

from ...utils import python_name
from ..analyzer.ir_nodes import CompilationResult, IRUnit, ResolvedType
from ..config import CodeGeneratorConfig
from ..registry.nodes import CATEGORY_ORDER, TypeCategory, TypeKey


class CodeBackend(ABC):
    """Abstract base class for code generation backends."""

    # Type mapping from scalar kinds to target types
    TYPE_MAP: dict[str, str] = {}

    # Template directory name
    TEMPLATE_DIR: str = ""

    # File extension
    FILE_EXTENSION: str = ""

    def __init__(self, config: CodeGeneratorConfig, generation_comment: str | None = None):
        """
        Initialize the backend.

        Args:
            config: Code generation configuration
            generation_comment: Text of the header comment (None to omit it)
        """
        self.config = config
        self.generation_comment = generation_comment if config.add_generation_comment else None
        self._setup_templates()

    def _setup_templates(self) -> None:
        """Set up Jinja2 templates."""
        template_dir = Path(__file__).parent.parent.parent / "templates" / self.TEMPLATE_DIR
        self.jinja_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            lstrip_blocks=True,
            trim_blocks=True,
            keep_trailing_newline=True,
        )
        # Module names of exported types
        self.jinja_env.filters["python_name"] = python_name

    def generate(self, result: CompilationResult) -> dict[str, str]:
        """
        Generate all files of a compilation result.

        Args:
            result: The compiled registry

        Returns:
            Mapping of relative file path to file content, in category order
        """
        files: dict[str, str] = {}
        for category in CATEGORY_ORDER:
            units = result.ordered_units(category)
            if not units:
                continue
            for path, content in self.category_files(category, units, result).items():
                files[path] = content
            for unit in units:
                files[self.unit_path(unit.key)] = self.render_unit(unit, result)
            if self.config.sqlalchemy.generate_init:
                files[f"{category.value}/__init__.{self.FILE_EXTENSION}"] = self.render_manifest(category, units)
        return files

    def unit_path(self, key: TypeKey) -> str:
        """Relative path of the file generated for a type."""
        return f"{key.category.value}/{self.module_name(key.name)}.{self.FILE_EXTENSION}"

    def module_name(self, type_name: str) -> str:
        return python_name(type_name)

    def category_files(
        self,
        category: TypeCategory,
        units: list[IRUnit],
        result: CompilationResult,
    ) -> dict[str, str]:
        """Extra files a category needs besides one file per type."""
        return {}

    @abstractmethod
    def render_unit(self, unit: IRUnit, result: CompilationResult) -> str:
        """
        Render the file of one IR unit.

        Args:
            unit: The unit to render
            result: The whole compilation result, for cross-unit lookups

        Returns:
            Generated code as a string
        """

    @abstractmethod
    def render_manifest(self, category: TypeCategory, units: list[IRUnit]) -> str:
        """
        Render the package manifest re-exporting every type of a category.

        Args:
            category: The category
            units: Units of the category in name order

        Returns:
            Generated code as a string
        """

    @abstractmethod
    def translate_type(self, resolved_type: ResolvedType) -> str:
        """
        Translate an IR type to a target type string.

        Args:
            resolved_type: The resolved type

        Returns:
            Target type string
        """
