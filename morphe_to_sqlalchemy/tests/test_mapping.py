"""
Mapping tests.

Write the generated package to disk, import it and configure the SQLAlchemy
mappers with SQLAlchemy warnings raised as errors.
"""

from __future__ import annotations

import importlib
import sys
import warnings

import pytest

from morphe_to_sqlalchemy.pipeline.analyzer import compile_registry
from morphe_to_sqlalchemy.pipeline.backends import SQLAlchemyBackend
from morphe_to_sqlalchemy.pipeline.config import CodeGeneratorConfig

orm = pytest.importorskip("sqlalchemy.orm")
sa_exc = pytest.importorskip("sqlalchemy.exc")

CATEGORIES = ("enums", "models", "structures", "entities")


@pytest.fixture
def import_generated(tmp_path, monkeypatch):
    """Write a compiled registry as a package under tmp_path and import its categories."""
    packages = []

    def load(result, package):
        root = tmp_path / package
        root.mkdir()
        (root / "__init__.py").write_text("")
        for path, content in SQLAlchemyBackend(CodeGeneratorConfig()).generate(result).items():
            target = root / path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")

        monkeypatch.syspath_prepend(str(tmp_path))
        packages.append(package)
        return {
            category: importlib.import_module(f"{package}.{category}")
            for category in CATEGORIES
            if (root / category).is_dir()
        }

    yield load

    for name in list(sys.modules):
        if any(name == package or name.startswith(f"{package}.") for package in packages):
            del sys.modules[name]


def configure_mappers():
    with warnings.catch_warnings():
        warnings.simplefilter("error", sa_exc.SAWarning)
        orm.configure_mappers()


def test_company_package_maps_cleanly(company_result, import_generated):
    modules = import_generated(company_result, "generated_company")
    assert set(modules) == set(CATEGORIES)
    configure_mappers()

    models = modules["models"]
    company = models.Company(name="Acme")
    person = models.Person(first_name="Ada")
    person.company = company
    assert company.person == [person]

    contact = models.ContactInfo(email="ada@example.com")
    contact.person = person
    assert person.contact_info is contact


def test_self_reference_and_shared_target_map_cleanly(staff_registry, import_generated):
    models = import_generated(compile_registry(staff_registry), "generated_staff")["models"]
    configure_mappers()

    boss = models.Person(name="Grace")
    worker = models.Person(name="Alan")
    worker.manager = boss
    assert boss.reports == [worker]

    order = models.Order()
    order.buyer = worker
    order.seller = boss
    assert worker.purchases == [order]
    assert boss.purchases == []
