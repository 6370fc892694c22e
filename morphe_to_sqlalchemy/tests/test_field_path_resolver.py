"""
Entity field path resolution tests.
"""

from __future__ import annotations

import pytest

from morphe_to_sqlalchemy.pipeline.analyzer.field_path_resolver import FieldPathResolver
from morphe_to_sqlalchemy.pipeline.analyzer.ir_nodes import ReferenceType, ScalarKind, ScalarType
from morphe_to_sqlalchemy.pipeline.errors import CompilationError, PathErrorKind, PathResolutionError
from morphe_to_sqlalchemy.pipeline.registry import parse_registry


@pytest.fixture
def resolver():
    registry = parse_registry(
        {
            "enums": [{"name": "Nationality", "entries": {"US": "American"}}],
            "models": [
                {
                    "name": "Person",
                    "fields": {"ID": "AutoIncrement", "Name": "String", "Nationality": "Nationality"},
                    "related": {
                        "ContactInfo": {"type": "ForOne"},
                        "Boss": {"type": "ForOne", "aliased": "Person"},
                        "Employer": {"type": "ForOne", "aliased": "Company"},
                        "Tag": {"type": "ForOnePoly", "for": ["Person"]},
                    },
                },
                {"name": "ContactInfo", "fields": {"Email": "String", "Verified": "Boolean"}},
            ],
        }
    )
    return FieldPathResolver(registry)


class TestResolve:
    def test_direct_field(self, resolver):
        assert resolver.resolve("Person.Name") == ScalarType(ScalarKind.STRING)

    def test_relation_hop(self, resolver):
        assert resolver.resolve("Person.ContactInfo.Email") == ScalarType(ScalarKind.STRING)

    def test_alias_applied_at_every_hop(self, resolver):
        assert resolver.resolve("Person.Boss.Boss.ContactInfo.Verified") == ScalarType(ScalarKind.BOOLEAN)

    def test_enum_field_is_a_reference(self, resolver):
        assert resolver.resolve("Person.Nationality") == ReferenceType("Nationality")

    def test_aliased_relation_target(self):
        registry = parse_registry(
            {
                "models": [
                    {"name": "Person", "related": {"ContactInfo": {"type": "ForOne", "aliased": "Contact"}}},
                    {"name": "Contact", "fields": {"email": "String"}},
                ]
            }
        )
        assert FieldPathResolver(registry).resolve("Person.ContactInfo.email") == ScalarType(ScalarKind.STRING)


class TestResolveErrors:
    @pytest.mark.parametrize(
        "path,kind,resolved",
        [
            ("Person", PathErrorKind.MALFORMED_PATH, ""),
            ("Person.", PathErrorKind.MALFORMED_PATH, ""),
            ("Person..Name", PathErrorKind.MALFORMED_PATH, ""),
            ("Ghost.Name", PathErrorKind.UNKNOWN_ROOT_TYPE, ""),
            ("Person.Missing.Email", PathErrorKind.UNKNOWN_RELATION, "Person"),
            ("Person.Tag.Name", PathErrorKind.UNSUPPORTED_POLYMORPHIC_HOP, "Person"),
            ("Person.Employer.Name", PathErrorKind.UNKNOWN_TARGET_TYPE, "Person"),
            ("Person.ContactInfo.Phone", PathErrorKind.UNKNOWN_FIELD, "Person.ContactInfo"),
            ("Person.Boss.Age", PathErrorKind.UNKNOWN_FIELD, "Person.Boss"),
        ],
    )
    def test_error_kinds(self, resolver, path, kind, resolved):
        with pytest.raises(PathResolutionError) as exc_info:
            resolver.resolve(path)
        assert exc_info.value.kind == kind
        assert exc_info.value.path == path
        assert exc_info.value.resolved_segment == resolved

    def test_path_errors_are_compilation_errors(self, resolver):
        with pytest.raises(CompilationError, match="UnknownField"):
            resolver.resolve("Person.Age")


if __name__ == "__main__":
    pytest.main([__file__])
