"""
End to end generation tests.
"""

from __future__ import annotations

import ast

import pytest

from morphe_to_sqlalchemy import PipelineGenerator, load_registry
from morphe_to_sqlalchemy.pipeline import CodeGeneratorConfig, ConfigError
from morphe_to_sqlalchemy.pipeline.generator import DEFAULT_GENERATION_COMMENT


class TestPipelineGenerator:
    def test_write(self, company_registry, tmp_path):
        written = PipelineGenerator(company_registry).write(tmp_path)
        assert tmp_path / "models" / "person.py" in written
        for path in written:
            content = path.read_text()
            assert content.startswith(f"# {DEFAULT_GENERATION_COMMENT}\n")
            ast.parse(content)

    def test_compile_is_cached(self, company_registry):
        generator = PipelineGenerator(company_registry)
        assert generator.compile() is generator.compile()
        assert len(generator.diagnostics) == 3

    def test_invalid_config_rejected_up_front(self, company_registry):
        config = CodeGeneratorConfig.from_dict({"entities": {"lazyLoadingStyle": "eager"}})
        with pytest.raises(ConfigError):
            PipelineGenerator(company_registry, config)

    def test_output_is_deterministic(self, registry_dir):
        first = PipelineGenerator(load_registry(registry_dir)).generate()
        second = PipelineGenerator(load_registry(registry_dir)).generate()
        assert first == second
        assert list(first) == list(second)

    def test_worker_count_does_not_change_output(self, company_registry):
        sequential = PipelineGenerator(company_registry).generate()
        parallel = PipelineGenerator(company_registry, CodeGeneratorConfig(max_workers=4)).generate()
        assert parallel == sequential


if __name__ == "__main__":
    pytest.main([__file__])
