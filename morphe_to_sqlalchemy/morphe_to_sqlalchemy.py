import json
import logging
import sys
from typing import NoReturn

import click

from .cli_utils import reconstruct_command_line
from .pipeline import (
    CodeGeneratorConfig,
    CompilationError,
    ConfigError,
    OutputError,
    OutputMode,
    PipelineGenerator,
    RegistryLoadError,
    load_registry,
)

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_COMPILE_FAILED = 1
EXIT_INVALID_CONFIG = 4
EXIT_INPUT_PATH_ERROR = 12
EXIT_OUTPUT_PATH_ERROR = 13


def _fail(message: str, code: int) -> NoReturn:
    click.echo(message, err=True)
    sys.exit(code)


def _load_config(path: str | None) -> CodeGeneratorConfig:
    if path is None:
        return CodeGeneratorConfig()
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON in {path}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    return CodeGeneratorConfig.from_dict(data)


@click.command()
@click.option("--config", "-c", default=None, type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log progress information")
@click.option(
    "--force/--no-force",
    default=None,
    help="Overwrite existing files (default), or fail if any output file exists",
)
@click.argument("registry", type=click.Path(exists=True, file_okay=False, resolve_path=True))
@click.argument("output", type=click.Path(file_okay=False, resolve_path=True))
def morphe_to_sqlalchemy(config, verbose, force, registry, output):
    """Generate SQLAlchemy types from the Morphe registry in REGISTRY into OUTPUT."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        generator_config = _load_config(config)
        if force is not None:
            generator_config.output.mode = OutputMode.FORCE if force else OutputMode.ERROR_IF_EXISTS
        generator_config.validate()
    except ConfigError as exc:
        _fail(f"Invalid configuration: {exc}", EXIT_INVALID_CONFIG)

    logger.info("Processing Morphe registry from: '%s'", registry)
    logger.info("Output SQLAlchemy types to: '%s'", output)

    try:
        registry_obj = load_registry(registry)
    except RegistryLoadError as exc:
        _fail(f"Cannot load registry: {exc}", EXIT_INPUT_PATH_ERROR)

    comment = f"Code generated by {reconstruct_command_line(morphe_to_sqlalchemy)}. DO NOT EDIT."
    generator = PipelineGenerator(registry_obj, generator_config, generation_comment=comment)

    try:
        generator.compile()
    except CompilationError as exc:
        _fail(f"Compilation failed: {exc}", EXIT_COMPILE_FAILED)

    try:
        written = generator.write(output)
    except (OutputError, OSError) as exc:
        _fail(f"Cannot write output: {exc}", EXIT_OUTPUT_PATH_ERROR)

    logger.info("Compilation completed successfully (%d files)", len(written))
