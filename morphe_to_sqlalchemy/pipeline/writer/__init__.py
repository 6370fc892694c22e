"""
Writer module.

Validates generated code and writes it atomically to the output directory.
"""

from __future__ import annotations

from .atomic_writer import AtomicWriter
from .output_writer import OutputWriter

__all__ = [
    "AtomicWriter",
    "OutputWriter",
]
