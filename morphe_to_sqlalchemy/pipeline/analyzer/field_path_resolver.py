"""
Field path resolver for entity fields.

An entity field points into the model graph with a dotted path such as
"Person.ContactInfo.Email": the first segment names a model, each middle
segment a relation on the current model, and the last segment a field.
"""

from __future__ import annotations

from ..errors import NotFoundError, PathErrorKind, PathResolutionError
from ..registry.registry import Registry
from .ir_nodes import ResolvedType
from .type_mapper import map_field_type


class FieldPathResolver:
    """Resolves dotted field paths by walking model relations."""

    def __init__(self, registry: Registry):
        self.registry = registry

    def resolve(self, path: str) -> ResolvedType:
        """
        Resolve a dotted path to the type of its terminal field.

        Only non-polymorphic relations can be traversed. Aliases are applied
        at every hop.

        Args:
            path: Dotted path of at least two segments

        Returns:
            The mapped type of the terminal field

        Raises:
            PathResolutionError: With the failure kind and the furthest
                segment that resolved
        """
        segments = path.split(".")
        if len(segments) < 2 or not all(segments):
            raise PathResolutionError(
                PathErrorKind.MALFORMED_PATH,
                path,
                "",
                "a field path needs a model and a field separated by '.'",
            )

        root = segments[0]
        try:
            model = self.registry.get_model(root)
        except NotFoundError:
            raise PathResolutionError(
                PathErrorKind.UNKNOWN_ROOT_TYPE,
                path,
                "",
                f"model {root} not found",
            ) from None

        resolved = root
        for segment in segments[1:-1]:
            relation = model.relations.get(segment)
            if relation is None:
                raise PathResolutionError(
                    PathErrorKind.UNKNOWN_RELATION,
                    path,
                    resolved,
                    f"relation {segment} not found in model {model.name}",
                )
            if relation.relation_type.is_polymorphic:
                raise PathResolutionError(
                    PathErrorKind.UNSUPPORTED_POLYMORPHIC_HOP,
                    path,
                    resolved,
                    f"relation {segment} of model {model.name} is polymorphic and cannot be traversed",
                )

            target_name = relation.target_name
            try:
                model = self.registry.get_model(target_name)
            except NotFoundError:
                raise PathResolutionError(
                    PathErrorKind.UNKNOWN_TARGET_TYPE,
                    path,
                    resolved,
                    f"related model {target_name} not found",
                ) from None
            resolved = f"{resolved}.{segment}"

        field_name = segments[-1]
        field_decl = model.fields.get(field_name)
        if field_decl is None:
            raise PathResolutionError(
                PathErrorKind.UNKNOWN_FIELD,
                path,
                resolved,
                f"field {field_name} not found in model {model.name}",
            )

        return map_field_type(field_decl.type)
