#!/usr/bin/env python3

import json

import pytest
from click.testing import CliRunner

from morphe_to_sqlalchemy.cli_utils import PROGRAM_NAME, reconstruct_command_line
from morphe_to_sqlalchemy.morphe_to_sqlalchemy import (
    EXIT_COMPILE_FAILED,
    EXIT_INPUT_PATH_ERROR,
    EXIT_INVALID_CONFIG,
    EXIT_OUTPUT_PATH_ERROR,
    EXIT_SUCCESS,
    _load_config,
    morphe_to_sqlalchemy,
)
from morphe_to_sqlalchemy.pipeline.errors import ConfigError


def write_registry(root, documents):
    """Write {"models/a.yaml": "..."} documents below root."""
    for relative, text in documents.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
    return root


class TestCli:
    """Test the command line entry point"""

    def test_generate(self, registry_dir, tmp_path):
        output = tmp_path / "out"
        result = CliRunner().invoke(morphe_to_sqlalchemy, [str(registry_dir), str(output)])
        assert result.exit_code == EXIT_SUCCESS, result.output
        content = (output / "models" / "person.py").read_text()
        assert content.startswith(f"# Code generated by {PROGRAM_NAME} company ")
        assert content.splitlines()[0].endswith(". DO NOT EDIT.")
        assert (output / "entities" / "__init__.py").exists()

    def test_no_force_refuses_existing_output(self, registry_dir, tmp_path):
        output = tmp_path / "out"
        runner = CliRunner()
        assert runner.invoke(morphe_to_sqlalchemy, [str(registry_dir), str(output)]).exit_code == EXIT_SUCCESS

        result = runner.invoke(morphe_to_sqlalchemy, ["--no-force", str(registry_dir), str(output)])
        assert result.exit_code == EXIT_OUTPUT_PATH_ERROR
        assert "already exists" in result.output

        # Forcing overwrites again
        result = runner.invoke(morphe_to_sqlalchemy, ["--force", str(registry_dir), str(output)])
        assert result.exit_code == EXIT_SUCCESS

    def test_config_file(self, registry_dir, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"tableNamePrefix": "app_", "entities": {"lazyLoadingStyle": "sync"}}))
        output = tmp_path / "out"
        result = CliRunner().invoke(morphe_to_sqlalchemy, ["-c", str(config), str(registry_dir), str(output)])
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert '__tablename__ = "app_person"' in (output / "models" / "person.py").read_text()
        assert "async def" not in (output / "entities" / "person.py").read_text()

    @pytest.mark.parametrize(
        "text",
        [
            json.dumps({"entities": {"lazyLoadingStyle": "eager"}}),
            json.dumps({"output": {"mode": "append"}}),
            json.dumps(["not", "an", "object"]),
            "{not json",
        ],
    )
    def test_invalid_config(self, registry_dir, tmp_path, text):
        config = tmp_path / "config.json"
        config.write_text(text)
        result = CliRunner().invoke(morphe_to_sqlalchemy, ["-c", str(config), str(registry_dir), str(tmp_path / "out")])
        assert result.exit_code == EXIT_INVALID_CONFIG
        assert "Invalid configuration" in result.output
        assert not (tmp_path / "out").exists()

    def test_undecodable_config(self, registry_dir, tmp_path):
        config = tmp_path / "config.json"
        config.write_bytes(b"\xff\xfe{")
        result = CliRunner().invoke(morphe_to_sqlalchemy, ["-c", str(config), str(registry_dir), str(tmp_path / "out")])
        assert result.exit_code == EXIT_INVALID_CONFIG
        assert "Invalid configuration" in result.output

    def test_unreadable_config_is_a_config_error(self, tmp_path):
        with pytest.raises(ConfigError, match="cannot read"):
            _load_config(str(tmp_path))

    def test_unresolvable_entity_path(self, tmp_path):
        registry = write_registry(
            tmp_path / "registry",
            {
                "models/person.yaml": "name: Person\nfields:\n  Name: String\n",
                "entities/person.yaml": "name: Person\nfields:\n  Age:\n    type: Person.Age\n",
            },
        )
        result = CliRunner().invoke(morphe_to_sqlalchemy, [str(registry), str(tmp_path / "out")])
        assert result.exit_code == EXIT_COMPILE_FAILED
        assert "UnknownField" in result.output
        assert not (tmp_path / "out").exists()

    def test_entities_without_models(self, tmp_path):
        registry = write_registry(tmp_path / "registry", {"entities/person.yaml": "name: Person\n"})
        result = CliRunner().invoke(morphe_to_sqlalchemy, [str(registry), str(tmp_path / "out")])
        assert result.exit_code == EXIT_COMPILE_FAILED
        assert "requires models" in result.output

    def test_malformed_registry(self, tmp_path):
        registry = write_registry(tmp_path / "registry", {"models/person.yaml": "name: [unclosed\n"})
        result = CliRunner().invoke(morphe_to_sqlalchemy, [str(registry), str(tmp_path / "out")])
        assert result.exit_code == EXIT_INPUT_PATH_ERROR

    def test_missing_registry_is_a_usage_error(self, tmp_path):
        result = CliRunner().invoke(morphe_to_sqlalchemy, [str(tmp_path / "missing"), str(tmp_path / "out")])
        assert result.exit_code == 2


class TestCliUtils:
    """Test cases for CLI utilities"""

    def test_reconstruct_command_line_without_context(self):
        """Without an active Click context only the program name is returned"""
        assert reconstruct_command_line(morphe_to_sqlalchemy) == PROGRAM_NAME

    def test_reconstruct_command_line_in_context(self, registry_dir, tmp_path):
        """Existing paths are shown by name and default options are skipped"""
        output = tmp_path / "generated"
        ctx = morphe_to_sqlalchemy.make_context(PROGRAM_NAME, ["--no-force", str(registry_dir), str(output)])
        with ctx:
            result = reconstruct_command_line(morphe_to_sqlalchemy)
        assert result.startswith(f"{PROGRAM_NAME} company ")
        assert result.endswith("generated --no-force")


if __name__ == "__main__":
    pytest.main([__file__])
