"""
Pipeline generator tying the phases together.

1. Registry: declarations loaded from YAML (or built in memory)
2. Analyzer: relation classification, path resolution, IR and import plans
3. Backend: IR rendered to Python source with jinja2 templates
4. Writer: files validated and written atomically
"""

from __future__ import annotations

import logging
from pathlib import Path

from .analyzer.analyzer import SchemaCompiler
from .analyzer.ir_nodes import CompilationResult
from .backends import SQLAlchemyBackend
from .config import CodeGeneratorConfig
from .registry.registry import Registry
from .writer import OutputWriter

logger = logging.getLogger(__name__)

DEFAULT_GENERATION_COMMENT = "Code generated by morphe_to_sqlalchemy. DO NOT EDIT."


class PipelineGenerator:
    """Generates SQLAlchemy types from a Morphe registry."""

    def __init__(
        self,
        registry: Registry,
        config: CodeGeneratorConfig | None = None,
        generation_comment: str = DEFAULT_GENERATION_COMMENT,
    ):
        """
        Initialize the generator.

        Args:
            registry: The registry to generate from
            config: Code generation configuration (validated here)
            generation_comment: Header comment of generated files

        Raises:
            ConfigError: If the configuration is invalid
        """
        self.registry = registry
        self.config = config or CodeGeneratorConfig()
        self.config.validate()
        self.generation_comment = generation_comment
        self._result: CompilationResult | None = None

    def compile(self) -> CompilationResult:
        """Compile the registry once, later calls reuse the result."""
        if self._result is None:
            compiler = SchemaCompiler(max_workers=self.config.max_workers)
            self._result = compiler.compile(self.registry)
        return self._result

    @property
    def diagnostics(self):
        return self.compile().diagnostics

    def generate(self) -> dict[str, str]:
        """
        Generate every file.

        Returns:
            Mapping of relative path (e.g. "models/person.py") to content
        """
        result = self.compile()
        backend = SQLAlchemyBackend(self.config, self.generation_comment)
        files = backend.generate(result)
        logger.info("Generated %d files", len(files))
        return files

    def write(self, output_dir: Path | str) -> list[Path]:
        """
        Generate and write every file below output_dir.

        Returns:
            The written paths
        """
        writer = OutputWriter(output_dir, self.config.output)
        return writer.write_all(self.generate())
