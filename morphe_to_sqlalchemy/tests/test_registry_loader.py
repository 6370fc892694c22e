"""
Registry loading tests.
"""

from __future__ import annotations

import pytest

from morphe_to_sqlalchemy.pipeline.errors import NotFoundError, RegistryLoadError
from morphe_to_sqlalchemy.pipeline.registry import (
    RelationType,
    TypeCategory,
    load_registry,
    parse_registry,
)


def write_document(root, category, filename, text):
    directory = root / category
    directory.mkdir(parents=True, exist_ok=True)
    (directory / filename).write_text(text)


class TestLoadRegistry:
    def test_counts(self, company_registry):
        assert len(company_registry.get_all_enums()) == 2
        assert len(company_registry.get_all_models()) == 5
        assert len(company_registry.get_all_structures()) == 1
        assert len(company_registry.get_all_entities()) == 2
        assert len(company_registry) == 10

    def test_model_declaration(self, company_registry):
        person = company_registry.get_model("Person")
        assert person.fields["ID"].type == "AutoIncrement"
        assert person.fields["ID"].attributes == ["immutable", "mandatory"]
        assert person.identifiers["primary"].fields == ["ID"]
        assert person.identifiers["name"].fields == ["FirstName", "LastName"]
        assert person.relations["Company"].relation_type == RelationType.FOR_ONE
        assert person.source_path.endswith("person.yaml")

    def test_polymorphic_relations(self, company_registry):
        commentable = company_registry.get_model("Comment").relations["Commentable"]
        assert commentable.relation_type == RelationType.FOR_ONE_POLY
        assert commentable.for_set == ["Person", "Company"]

        note = company_registry.get_model("Note").relations["Commentable"]
        assert note.through == "Commentable"

    def test_field_shorthand(self, company_registry):
        assert company_registry.get_structure("Address").fields["Country"].type == "Nationality"

    def test_enum_declaration(self, company_registry):
        priority = company_registry.get_enum("Priority")
        assert priority.value_type == "Integer"
        assert priority.entries == {"Low": 1, "Medium": 2, "High": 3}

    def test_entity_paths(self, company_registry):
        person = company_registry.get_entity("Person")
        assert person.fields["Email"].type == "Person.ContactInfo.Email"

    def test_missing_directory(self, tmp_path):
        with pytest.raises(RegistryLoadError, match="not found"):
            load_registry(tmp_path / "missing")

    def test_missing_categories_are_empty(self, tmp_path):
        write_document(tmp_path, "models", "a.yaml", "name: A\n")
        registry = load_registry(tmp_path)
        assert list(registry.get_all_models()) == ["A"]
        assert not registry.has_enums()
        assert not registry.has_entities()

    def test_non_yaml_files_are_ignored(self, tmp_path):
        write_document(tmp_path, "models", "a.yml", "name: A\n")
        write_document(tmp_path, "models", "README.md", "# not a model\n")
        assert list(load_registry(tmp_path).get_all_models()) == ["A"]

    def test_duplicate_names(self, tmp_path):
        write_document(tmp_path, "models", "a.yaml", "name: A\n")
        write_document(tmp_path, "models", "b.yaml", "name: A\n")
        with pytest.raises(RegistryLoadError, match="duplicate"):
            load_registry(tmp_path)

    def test_same_name_in_two_categories(self, tmp_path):
        write_document(tmp_path, "models", "person.yaml", "name: Person\n")
        write_document(tmp_path, "entities", "person.yaml", "name: Person\n")
        registry = load_registry(tmp_path)
        assert registry.contains(TypeCategory.MODEL, "Person")
        assert registry.contains(TypeCategory.ENTITY, "Person")

    def test_invalid_yaml(self, tmp_path):
        write_document(tmp_path, "models", "a.yaml", "name: [unclosed\n")
        with pytest.raises(RegistryLoadError, match="Invalid YAML"):
            load_registry(tmp_path)

    @pytest.mark.parametrize(
        "text,message",
        [
            ("- A\n- B\n", "must be a YAML mapping"),
            ("fields: {}\n", "missing required field 'name'"),
            ("name: A\nrelated:\n  B:\n    type: BelongsTo\n", "unknown type"),
            ("name: A\nfields:\n  X:\n    attributes: []\n", "needs a string 'type'"),
            ("name: A\nfields: [X]\n", "'fields' must be a mapping"),
        ],
    )
    def test_malformed_documents(self, tmp_path, text, message):
        write_document(tmp_path, "models", "a.yaml", text)
        with pytest.raises(RegistryLoadError, match=message):
            load_registry(tmp_path)


class TestParseRegistry:
    def test_single_candidate_as_string(self):
        registry = parse_registry(
            {"models": [{"name": "Tag", "related": {"Target": {"type": "ForOnePoly", "for": "Post"}}}]}
        )
        assert registry.get_model("Tag").relations["Target"].for_set == ["Post"]

    def test_unknown_category(self):
        with pytest.raises(RegistryLoadError, match="Unknown registry category"):
            parse_registry({"widgets": [{"name": "A"}]})

    def test_enum_defaults_to_string(self):
        registry = parse_registry({"enums": [{"name": "Color", "entries": {"Red": "red"}}]})
        assert registry.get_enum("Color").value_type == "String"


class TestRegistryLookups:
    def test_not_found(self, company_registry):
        with pytest.raises(NotFoundError) as exc_info:
            company_registry.get_model("Ghost")
        assert str(exc_info.value) == "model not found: Ghost"
        assert exc_info.value.category == "model"

    def test_not_found_is_a_key_error(self, company_registry):
        with pytest.raises(KeyError):
            company_registry.get_entity("Comment")

    def test_views_are_read_only(self, company_registry):
        with pytest.raises(TypeError):
            company_registry.get_all_models()["Ghost"] = None


if __name__ == "__main__":
    pytest.main([__file__])
