"""
Code generation backends.

Contains target specific code generators.
"""

from __future__ import annotations

from .base import CodeBackend
from .sqlalchemy_backend import SQLAlchemyBackend

__all__ = [
    "CodeBackend",
    "SQLAlchemyBackend",
]
