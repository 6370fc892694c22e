"""
Type mapper from Morphe field types to resolved IR types.
"""

from __future__ import annotations

from .ir_nodes import ReferenceType, ResolvedType, ScalarKind, ScalarType

# Morphe scalar field types. Anything else names an enum or another type.
FIELD_TYPE_MAP: dict[str, ScalarKind] = {
    # String-like
    "String": ScalarKind.STRING,
    "UUID": ScalarKind.STRING,
    "Protected": ScalarKind.STRING,
    "Sealed": ScalarKind.STRING,
    # Numeric
    "Integer": ScalarKind.INTEGER,
    "AutoIncrement": ScalarKind.INTEGER,
    "Float": ScalarKind.FLOAT,
    "Boolean": ScalarKind.BOOLEAN,
    # Date/time
    "Time": ScalarKind.DATETIME,
    "Date": ScalarKind.DATE,
}

ENUM_VALUE_TYPE_MAP: dict[str, ScalarKind] = {
    "String": ScalarKind.STRING,
    "Integer": ScalarKind.INTEGER,
    "Float": ScalarKind.FLOAT,
}

AUTO_INCREMENT_TYPE = "AutoIncrement"


def map_field_type(field_type: str) -> ResolvedType:
    """
    Map a Morphe field type to its unwrapped resolved type.

    Unknown types are not an error: they are assumed to name an enum (or
    another declared type) and become a named reference. Optionality and
    collections are decided by the caller.

    Args:
        field_type: The declared Morphe type, e.g. "String" or "Nationality"

    Returns:
        ScalarType for known scalar kinds, ReferenceType otherwise
    """
    kind = FIELD_TYPE_MAP.get(field_type)
    if kind is not None:
        return ScalarType(kind)
    return ReferenceType(field_type)


def map_enum_value_type(value_type: str) -> ScalarKind:
    """Map an enum's declared value type, defaulting to string."""
    return ENUM_VALUE_TYPE_MAP.get(value_type, ScalarKind.STRING)
