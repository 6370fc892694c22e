"""
Writes generated files below an output directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import OutputConfig, OutputMode
from .atomic_writer import AtomicWriter

logger = logging.getLogger(__name__)


class OutputWriter:
    """Writes a set of generated files according to the output configuration."""

    def __init__(self, output_dir: Path | str, config: OutputConfig | None = None, writer: AtomicWriter | None = None):
        self.output_dir = Path(output_dir)
        self.config = config or OutputConfig()
        self.writer = writer or AtomicWriter()

    def write_all(self, files: dict[str, str]) -> list[Path]:
        """
        Write every generated file.

        In ERROR_IF_EXISTS mode all targets are checked before anything is
        written, so a refused run leaves the output directory untouched.

        Args:
            files: Mapping of path relative to the output directory to content

        Returns:
            Written paths in input order

        Raises:
            FileExistsError: If a target exists in ERROR_IF_EXISTS mode
            OutputError: If generated code fails validation
        """
        targets = [(self.output_dir / relative, content) for relative, content in files.items()]

        if self.config.mode == OutputMode.ERROR_IF_EXISTS:
            for path, _ in targets:
                if path.exists():
                    raise FileExistsError(f"Output file already exists: {path}. Use force mode to overwrite.")

        written = []
        for path, content in targets:
            logger.debug("Writing %s", path)
            if self.config.mode == OutputMode.ERROR_IF_EXISTS:
                self.writer.write_if_not_exists(path, content, validate=self.config.validate_before_write)
            else:
                self.writer.write(path, content, validate=self.config.validate_before_write)
            written.append(path)

        logger.info("Wrote %d files to %s", len(written), self.output_dir)
        return written
