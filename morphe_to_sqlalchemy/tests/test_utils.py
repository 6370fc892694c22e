#!/usr/bin/env python3

import pytest

from morphe_to_sqlalchemy.utils import (
    pluralize,
    python_name,
    sanitize_python_identifier,
    to_snake_case,
    to_upper_snake_case,
)


class TestSnakeCase:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("ContactInfo", "contact_info"),
            ("TaxID", "tax_id"),
            ("ID", "id"),
            ("XMLParser", "xml_parser"),
            ("firstName", "first_name"),
            ("Company_id", "company_id"),
            ("Address1Line", "address1_line"),
            ("already_snake", "already_snake"),
        ],
    )
    def test_to_snake_case(self, text, expected):
        assert to_snake_case(text) == expected

    def test_to_upper_snake_case(self):
        assert to_upper_snake_case("InProgress") == "IN_PROGRESS"
        assert to_upper_snake_case("US") == "US"


class TestSanitize:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("class", "class_"),
            ("from", "from_"),
            ("None", "None_"),
            ("id", "id_"),
            ("type", "type_"),
            ("1st", "_1st"),
            ("name", "name"),
        ],
    )
    def test_sanitize_python_identifier(self, name, expected):
        assert sanitize_python_identifier(name) == expected

    def test_python_name_converts_then_sanitizes(self):
        assert python_name("ID") == "id_"
        assert python_name("From") == "from_"
        assert python_name("FirstName") == "first_name"


def test_pluralize():
    assert pluralize("person") == "persons"
    assert pluralize("address") == "address"
