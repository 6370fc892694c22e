from __future__ import annotations

from pathlib import Path

import pytest

from morphe_to_sqlalchemy.pipeline.analyzer import compile_registry
from morphe_to_sqlalchemy.pipeline.registry import load_registry, parse_registry

REGISTRY_DIR = Path(__file__).parent / "test_data" / "registry" / "company"


@pytest.fixture
def registry_dir() -> Path:
    return REGISTRY_DIR


@pytest.fixture
def company_registry():
    return load_registry(REGISTRY_DIR)


@pytest.fixture
def company_result(company_registry):
    return compile_registry(company_registry)


@pytest.fixture
def staff_registry():
    """Self reference on Person and two keys from Order to Person."""
    return parse_registry(
        {
            "models": [
                {
                    "name": "Person",
                    "fields": {"ID": "AutoIncrement", "Name": "String"},
                    "identifiers": {"primary": "ID"},
                    "related": {
                        "Manager": {"type": "ForOne", "aliased": "Person"},
                        "Reports": {"type": "HasMany", "aliased": "Person"},
                        "Purchases": {"type": "HasMany", "aliased": "Order"},
                    },
                },
                {
                    "name": "Order",
                    "fields": {"ID": "AutoIncrement"},
                    "identifiers": {"primary": "ID"},
                    "related": {
                        "Buyer": {"type": "ForOne", "aliased": "Person"},
                        "Seller": {"type": "ForOne", "aliased": "Person"},
                    },
                },
            ]
        }
    )
