"""
CLI utilities for command line reconstruction and introspection.
"""

from pathlib import Path

import click

PROGRAM_NAME = "morphe_to_sqlalchemy"


def reconstruct_command_line(click_command: click.Command) -> str:
    """
    Reconstruct command line from current Click context using introspection.

    Used for the generation comment at the top of generated files.

    Args:
        click_command: Click command object for introspection

    Returns:
        Reconstructed command line string
    """
    try:
        ctx = click.get_current_context()
        cli_args = ctx.params
    except RuntimeError:
        # No active context, return basic command
        return PROGRAM_NAME

    if not cli_args:
        return PROGRAM_NAME

    arguments = []
    options = []

    for param in click_command.params:
        param_name = param.name
        if param_name not in cli_args:
            continue

        value = cli_args[param_name]

        if isinstance(param, click.Option):
            # Skip defaults, they add nothing to the comment
            if value == param.default:
                continue
            if param.is_flag:
                if param.secondary_opts and not value:
                    options.append(param.secondary_opts[0])
                elif value:
                    options.append(param.opts[0])
                continue

        if value is None:
            continue

        # Paths are shown by name only so the comment does not depend on the machine
        if isinstance(value, (str, Path)):
            path_obj = Path(str(value))
            formatted_value = path_obj.name if path_obj.exists() else str(value)
        else:
            formatted_value = str(value)

        if isinstance(param, click.Argument):
            arguments.append(formatted_value)
        elif isinstance(param, click.Option):
            flag = param.opts[0] if param.opts else f"--{param_name}"
            options.extend([flag, formatted_value])

    return " ".join([PROGRAM_NAME] + arguments + options)
