"""
Utility functions for the Morphe to SQLAlchemy generator.
"""

import keyword

# Reserved words: a generated name equal to one of these gets a trailing underscore
PYTHON_KEYWORDS = frozenset(keyword.kwlist)

# Builtins that commonly clash with schema field names
PYTHON_BUILTINS = frozenset(
    {
        "bool",
        "bytes",
        "dict",
        "float",
        "int",
        "list",
        "set",
        "str",
        "tuple",
        "filter",
        "format",
        "id",
        "input",
        "len",
        "map",
        "open",
        "print",
        "range",
        "type",
        "zip",
    }
)


def to_snake_case(text: str) -> str:
    """Convert PascalCase or camelCase text to snake_case.

    An underscore goes before an uppercase letter that follows a lowercase
    letter, or that starts a new word after an acronym.

    Examples:
        "ContactInfo" -> "contact_info"
        "TaxID" -> "tax_id"
        "XMLParser" -> "xml_parser"
        "ID" -> "id"

    Args:
        text: The text to convert

    Returns:
        snake_case string
    """
    result = []
    for i, char in enumerate(text):
        if i > 0 and char.isupper() and text[i - 1] != "_":
            prev_is_lower = text[i - 1].islower()
            next_is_lower = i + 1 < len(text) and text[i + 1].islower()
            if prev_is_lower or next_is_lower:
                result.append("_")
        result.append(char)
    return "".join(result).lower()


def to_upper_snake_case(text: str) -> str:
    """Convert a name to an UPPER_SNAKE_CASE enum member name."""
    return to_snake_case(text).upper()


def sanitize_python_identifier(name: str) -> str:
    """Make a name safe to use as a Python identifier.

    Keywords and common builtins get a trailing underscore, names starting
    with a digit get a leading one.

    Args:
        name: Candidate identifier

    Returns:
        A name that does not shadow a keyword or builtin
    """
    if name in PYTHON_KEYWORDS or name in PYTHON_BUILTINS:
        return name + "_"
    if name and name[0].isdigit():
        return "_" + name
    return name


def python_name(name: str) -> str:
    """snake_case and sanitize a schema name for use as an attribute or module name."""
    return sanitize_python_identifier(to_snake_case(name))


def pluralize(name: str) -> str:
    """Naive plural used for many-relation field and loader names."""
    if name.endswith("s"):
        return name
    return name + "s"
