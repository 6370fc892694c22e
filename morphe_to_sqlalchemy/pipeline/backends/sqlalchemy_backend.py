"""
SQLAlchemy code generation backend.

Generates Python enums, SQLAlchemy declarative models, structure classes
and entity DTO classes from IR.
"""

from __future__ import annotations

import collections
import json
from typing import Any

from ...utils import pluralize, python_name, sanitize_python_identifier, to_snake_case, to_upper_snake_case
from ..analyzer.ir_nodes import (
    ArrayType,
    CompilationResult,
    FieldRole,
    ImportPlan,
    IRUnit,
    ReferenceType,
    RelationLoader,
    ResolvedField,
    ResolvedType,
    ScalarKind,
    ScalarType,
    UnionType,
    WrapperKind,
)
from ..analyzer.type_mapper import AUTO_INCREMENT_TYPE
from ..config import CodeGeneratorConfig
from ..errors import OutputError
from ..registry.nodes import TypeCategory, TypeKey
from .base import CodeBackend

# Standard library modules, grouped before third party imports
STDLIB_MODULES = {"dataclasses", "datetime", "enum", "typing"}


def mapped_target(field: ResolvedField, result: CompilationResult) -> str | None:
    """Model a navigation field can be mapped to with relationship(), None otherwise."""
    if field.role != FieldRole.NAVIGATION or field.polymorphic:
        # Polymorphic targets are discriminated by the <relation>_type/<relation>_id columns
        return None
    target = field.resolved_type
    if isinstance(target, ArrayType):
        target = target.element
    if not isinstance(target, ReferenceType) or TypeKey(TypeCategory.MODEL, target.name) not in result.units:
        return None
    return target.name


def pair_inverse_relations(result: CompilationResult) -> dict[tuple[str, str], str]:
    """
    Pair the two sides of each foreign key between models.

    A navigation without a foreign key column of its own is joined through a
    foreign key declared on its target pointing back at it. Navigations are
    paired one to one, in model then field order, so two foreign keys to the
    same model never share an inverse.

    Args:
        result: The compiled registry

    Returns:
        Map from (model name, relation name) to the relation name of the other
        side, filled for both sides of every pair
    """
    holders: dict[tuple[str, str], list[str]] = {}
    navigations: list[tuple[str, str, str]] = []
    for unit in result.ordered_units(TypeCategory.MODEL):
        keyed = {f.relation_name for f in unit.fields if f.role == FieldRole.FOREIGN_KEY}
        for field in unit.fields:
            target = mapped_target(field, result)
            if target is None:
                continue
            if field.relation_name in keyed:
                holders.setdefault((unit.name, target), []).append(field.relation_name)
            else:
                navigations.append((unit.name, field.relation_name, target))

    inverses: dict[tuple[str, str], str] = {}
    for model_name, relation_name, target in navigations:
        for holder in holders.get((target, model_name), ()):
            if (target, holder) not in inverses:
                inverses[(model_name, relation_name)] = holder
                inverses[(target, holder)] = relation_name
                break
    return inverses


class SQLAlchemyBackend(CodeBackend):
    """SQLAlchemy code generation backend."""

    TEMPLATE_DIR = "sqlalchemy"
    FILE_EXTENSION = "py"

    TYPE_MAP = {
        ScalarKind.STRING: "str",
        ScalarKind.INTEGER: "int",
        ScalarKind.FLOAT: "float",
        ScalarKind.BOOLEAN: "bool",
        ScalarKind.DATETIME: "datetime",
        ScalarKind.DATE: "date",
    }

    COLUMN_TYPE_MAP = {
        ScalarKind.STRING: "String",
        ScalarKind.INTEGER: "Integer",
        ScalarKind.FLOAT: "Float",
        ScalarKind.BOOLEAN: "Boolean",
        ScalarKind.DATETIME: "DateTime",
        ScalarKind.DATE: "Date",
    }

    WRAPPER_IMPORTS = {
        WrapperKind.ARRAY: "List",
        WrapperKind.OPTIONAL: "Optional",
        WrapperKind.UNION: "Union",
        WrapperKind.ANY: "Any",
        WrapperKind.LITERAL: "Literal",
    }

    SCALAR_IMPORTS = {
        ScalarKind.DATETIME: ("datetime", "datetime"),
        ScalarKind.DATE: ("datetime", "date"),
    }

    def __init__(self, config: CodeGeneratorConfig, generation_comment: str | None = None):
        super().__init__(config, generation_comment)
        self.python_imports: set[tuple[str, str]] = set()
        self.type_checking_imports: set[tuple[str, str]] = set()
        self.inverse_relations: dict[tuple[str, str], str] = {}
        self._paired_result: CompilationResult | None = None

        indent = " " * config.sqlalchemy.indent_size
        self.indents = {"i": indent, "i2": indent * 2, "i3": indent * 3, "i4": indent * 4}

        self.prefix_template = self.jinja_env.get_template("prefix.py.jinja2")
        self.templates = {
            TypeCategory.ENUM: self.jinja_env.get_template("enum.py.jinja2"),
            TypeCategory.MODEL: self.jinja_env.get_template("model.py.jinja2"),
            TypeCategory.STRUCTURE: self.jinja_env.get_template("structure.py.jinja2"),
            TypeCategory.ENTITY: self.jinja_env.get_template("entity.py.jinja2"),
        }
        self.base_template = self.jinja_env.get_template("base.py.jinja2")
        self.init_template = self.jinja_env.get_template("init.py.jinja2")

    # ------------------------------------------------------------------
    # CodeBackend interface
    # ------------------------------------------------------------------

    def category_files(
        self,
        category: TypeCategory,
        units: list[IRUnit],
        result: CompilationResult,
    ) -> dict[str, str]:
        if category == TypeCategory.MODEL and self.config.sqlalchemy.use_declarative:
            content = self.base_template.render(generation_comment=self.generation_comment)
            return {f"{category.value}/base.py": content}
        return {}

    def render_unit(self, unit: IRUnit, result: CompilationResult) -> str:
        """Render the module of one unit: prefix (comment and imports) then the class."""
        # Reset import tracking
        self.python_imports = set()
        self.type_checking_imports = set()

        plan = result.import_plan(unit)
        if unit.category == TypeCategory.ENUM:
            context = self._enum_context(unit)
        elif unit.category == TypeCategory.MODEL:
            context = self._model_context(unit, plan, result)
        elif unit.category == TypeCategory.STRUCTURE:
            context = self._structure_context(unit, plan)
        else:
            context = self._entity_context(unit, plan)

        body = self.templates[unit.category].render(name=unit.name, **self.indents, **context)
        prefix = self.prefix_template.render(
            generation_comment=self.generation_comment,
            imports=self._assemble_imports(),
            type_checking_imports=self._assemble_type_checking_imports(),
            **self.indents,
        )
        return self._join(prefix, body)

    def render_manifest(self, category: TypeCategory, units: list[IRUnit]) -> str:
        # Each name is imported from the module python_name(name)
        exports = [unit.name for unit in units]
        if category == TypeCategory.MODEL and self.config.sqlalchemy.use_declarative:
            exports.insert(0, "Base")
        return self.init_template.render(
            generation_comment=self.generation_comment,
            exports=exports,
            **self.indents,
        )

    def translate_type(self, resolved_type: ResolvedType | None) -> str:
        """Translate an IR type to a Python annotation."""
        if isinstance(resolved_type, ScalarType):
            return self.TYPE_MAP[resolved_type.kind]
        if isinstance(resolved_type, ReferenceType):
            return resolved_type.name
        if isinstance(resolved_type, ArrayType):
            return f"List[{self.translate_type(resolved_type.element)}]"
        if isinstance(resolved_type, UnionType) and resolved_type.names:
            return f"Union[{', '.join(resolved_type.names)}]"
        return "Any"

    # ------------------------------------------------------------------
    # Per-category contexts
    # ------------------------------------------------------------------

    def _enum_context(self, unit: IRUnit) -> dict[str, Any]:
        use_str_enum = (
            self.config.enums.use_str_enum
            and unit.enum_value_kind == ScalarKind.STRING
            and self.config.sqlalchemy.python_version_tuple >= (3, 11)
        )
        base = "StrEnum" if use_str_enum else "Enum"
        self.python_imports.add(("enum", base))

        members = []
        for entry in unit.enum_entries:
            members.append(
                {
                    "name": sanitize_python_identifier(to_upper_snake_case(entry.name)),
                    "value": self._format_enum_value(unit, entry.name, entry.value),
                }
            )
        return {
            "base": base,
            "members": members,
            "str_method": self.config.enums.generate_str_method,
        }

    def _model_context(self, unit: IRUnit, plan: ImportPlan, result: CompilationResult) -> dict[str, Any]:
        sqlalchemy = self.config.sqlalchemy
        if not sqlalchemy.use_declarative:
            # Plain annotated classes, no ORM mapping
            self._add_plan_imports(unit, plan, annotated=True)
            fields = [self._field_line(f, use_dataclass=False) for f in unit.fields]
            return {"declarative": False, "fields": fields}

        self._add_plan_imports(unit, plan, annotated=False)
        self.python_imports.add((".base", "Base"))
        self.python_imports.add(("sqlalchemy", "Column"))
        if result is not self._paired_result:
            self.inverse_relations = pair_inverse_relations(result)
            self._paired_result = result

        primary = unit.identifier_fields("primary")
        foreign_keys = {f.relation_name: f for f in unit.fields if f.role == FieldRole.FOREIGN_KEY}

        columns = []
        relationships = []
        for field in unit.fields:
            if field.role == FieldRole.NAVIGATION:
                line = self._relationship_line(unit, field, foreign_keys.get(field.relation_name), result)
                if line:
                    relationships.append(line)
            else:
                columns.append(self._column_line(field, field.name in primary, result))

        return {
            "declarative": True,
            "table_name": sqlalchemy.table_name(to_snake_case(unit.name)),
            "columns": columns,
            "relationships": relationships,
        }

    def _structure_context(self, unit: IRUnit, plan: ImportPlan) -> dict[str, Any]:
        structures = self.config.structures
        self._add_plan_imports(unit, plan, annotated=True)

        decorator = ""
        slots = ""
        if structures.use_dataclass:
            self.python_imports.add(("dataclasses", "dataclass"))
            decorator = "@dataclass"
        if structures.generate_slots and unit.fields:
            if structures.use_dataclass and self.config.sqlalchemy.python_version_tuple >= (3, 10):
                decorator = "@dataclass(slots=True)"
            else:
                slots = self._format_slots([python_name(f.name) for f in unit.fields])

        return {
            "decorator": decorator,
            "slots": slots,
            "fields": [self._field_line(f, use_dataclass=structures.use_dataclass) for f in unit.fields],
        }

    def _entity_context(self, unit: IRUnit, plan: ImportPlan) -> dict[str, Any]:
        sqlalchemy = self.config.sqlalchemy
        self._add_plan_imports(unit, plan, annotated=sqlalchemy.add_type_hints)

        decorator = ""
        if sqlalchemy.use_dataclass:
            self.python_imports.add(("dataclasses", "dataclass"))
            decorator = "@dataclass"

        identifier_of = {}
        for group in unit.identifiers:
            for field_name in group.fields:
                identifier_of.setdefault(field_name, group.name)

        fields = []
        for field in unit.fields:
            attr = self._entity_attribute(field)
            group = identifier_of.get(field.name) if field.role == FieldRole.DATA else None
            fields.append(
                {
                    "comment": f"{group} identifier" if group else "",
                    "line": self._field_line(
                        field,
                        use_dataclass=sqlalchemy.use_dataclass,
                        annotate=sqlalchemy.add_type_hints,
                        attr=attr,
                    ),
                }
            )

        return {
            "decorator": decorator,
            "identifiers": ", ".join(g.name for g in unit.identifiers) or "none",
            "relationships": ", ".join(loader.relation_name for loader in unit.relation_loaders) or "none",
            "fields": fields,
            "get_id": self._get_id(unit),
            "loaders": [self._loader(loader) for loader in unit.relation_loaders],
        }

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    def _annotation(self, field: ResolvedField) -> str:
        if field.choices:
            annotation = "Literal[" + ", ".join(json.dumps(choice) for choice in field.choices) + "]"
        else:
            annotation = self.translate_type(field.resolved_type)
        if field.nullable:
            annotation = f"Optional[{annotation}]"
        return annotation

    def _field_line(
        self,
        field: ResolvedField,
        use_dataclass: bool,
        annotate: bool = True,
        attr: str | None = None,
    ) -> str:
        """Render one attribute of a structure, entity or plain model."""
        attr = attr or python_name(field.name)
        if not annotate:
            return f"{attr} = None"
        annotation = self._annotation(field)
        if field.nullable:
            return f"{attr}: {annotation} = None"
        if isinstance(field.resolved_type, ArrayType) and use_dataclass:
            self.python_imports.add(("dataclasses", "field"))
            return f"{attr}: {annotation} = field(default_factory=list)"
        return f"{attr}: {annotation}"

    def _entity_attribute(self, field: ResolvedField) -> str:
        if field.role == FieldRole.NAVIGATION and isinstance(field.resolved_type, ArrayType):
            return sanitize_python_identifier(pluralize(to_snake_case(field.name)))
        return python_name(field.name)

    def _column_line(self, field: ResolvedField, is_primary: bool, result: CompilationResult) -> str:
        attr = python_name(field.name)
        column_name = to_snake_case(field.name)

        args = []
        if attr != column_name:
            # Attribute renamed to avoid a keyword or builtin, keep the column name
            args.append(json.dumps(column_name))

        if field.role == FieldRole.FOREIGN_KEY:
            column_type, table, key_column = self._foreign_key_target(field, result)
            args.append(column_type)
            args.append(f"ForeignKey('{table}.{key_column}')")
            self.python_imports.add(("sqlalchemy", "ForeignKey"))
        else:
            args.append(self._column_type(field.resolved_type, result))

        if is_primary:
            args.append("primary_key=True")
            if field.schema_type == AUTO_INCREMENT_TYPE:
                args.append("autoincrement=True")
        else:
            args.append(f"nullable={field.nullable}")

        return f"{attr} = Column({', '.join(args)})"

    def _column_type(self, resolved_type: ResolvedType, result: CompilationResult) -> str:
        if isinstance(resolved_type, ScalarType):
            column_type = self.COLUMN_TYPE_MAP[resolved_type.kind]
        elif isinstance(resolved_type, ReferenceType) and TypeKey(TypeCategory.ENUM, resolved_type.name) in result.units:
            self.python_imports.add(("sqlalchemy", "Enum"))
            return f"Enum({resolved_type.name})"
        elif isinstance(resolved_type, ReferenceType) and any(
            TypeKey(category, resolved_type.name) in result.units
            for category in (TypeCategory.STRUCTURE, TypeCategory.MODEL, TypeCategory.ENTITY)
        ):
            # Nested declared types are stored as documents
            column_type = "JSON"
        else:
            column_type = "String"
        self.python_imports.add(("sqlalchemy", column_type))
        return column_type

    def _foreign_key_target(self, field: ResolvedField, result: CompilationResult) -> tuple[str, str, str]:
        """Column type, table and column referenced by a foreign key field.

        The column type follows the target's single-field primary key when
        there is one, the IR type of the key field otherwise.
        """
        target_name = field.schema_type
        table = self.config.sqlalchemy.table_name(to_snake_case(target_name))
        target = result.units.get(TypeKey(TypeCategory.MODEL, target_name))

        primary = target.identifier_fields("primary") if target else ()
        if len(primary) == 1:
            for target_field in target.fields:
                if target_field.name == primary[0] and isinstance(target_field.resolved_type, ScalarType):
                    column_type = self.COLUMN_TYPE_MAP[target_field.resolved_type.kind]
                    self.python_imports.add(("sqlalchemy", column_type))
                    return column_type, table, to_snake_case(primary[0])

        column_type = self._column_type(field.resolved_type, result)
        return column_type, table, "id"

    def _relationship_line(
        self,
        unit: IRUnit,
        field: ResolvedField,
        foreign_key: ResolvedField | None,
        result: CompilationResult,
    ) -> str | None:
        """Render the relationship() of a navigation field, None when it cannot be mapped.

        The side holding the foreign key names its column. The other side is
        only mapped when the target holds a foreign key back to this model.
        Paired sides point at each other with back_populates.
        """
        target = mapped_target(field, result)
        if target is None:
            return None
        inverse = self.inverse_relations.get((unit.name, field.relation_name))
        if foreign_key is None and inverse is None:
            return None

        self.python_imports.add(("sqlalchemy.orm", "relationship"))
        args = [json.dumps(target)]
        if foreign_key is not None:
            args.append(f"foreign_keys=[{python_name(foreign_key.name)}]")
            primary = unit.identifier_fields("primary")
            if target == unit.name and len(primary) == 1:
                # Self reference, the key column points at this table's primary key
                args.append(f"remote_side=[{python_name(primary[0])}]")
        else:
            target_unit = result.units[TypeKey(TypeCategory.MODEL, target)]
            back_keys = {f.relation_name: f for f in target_unit.fields if f.role == FieldRole.FOREIGN_KEY}
            joins = [f for f in back_keys.values() if f.schema_type == unit.name]
            joins += [f for f in unit.fields if f.role == FieldRole.FOREIGN_KEY and f.schema_type == target]
            if len(joins) > 1:
                # More than one key joins the two tables
                column = f"{target}.{python_name(back_keys[inverse].name)}"
                args.append(f"foreign_keys={json.dumps(column)}")
            if not isinstance(field.resolved_type, ArrayType):
                args.append("uselist=False")
        if inverse is not None:
            args.append(f"back_populates={json.dumps(python_name(inverse))}")
        return f"{python_name(field.name)} = relationship({', '.join(args)})"

    # ------------------------------------------------------------------
    # Entity methods
    # ------------------------------------------------------------------

    def _get_id(self, unit: IRUnit) -> dict[str, str] | None:
        primary = unit.identifier_fields("primary")
        by_name = {f.name: f for f in unit.fields}
        if not primary or any(name not in by_name for name in primary):
            return None

        if len(primary) == 1:
            annotation = self.translate_type(by_name[primary[0]].resolved_type)
            expression = f"self.{python_name(primary[0])}"
        else:
            annotation = "tuple"
            expression = "(" + ", ".join(f"self.{python_name(name)}" for name in primary) + ")"

        returns = f" -> {annotation}" if self.config.sqlalchemy.add_type_hints else ""
        return {"returns": returns, "expression": expression}

    def _loader(self, loader: RelationLoader) -> dict[str, str]:
        style = self.config.entities.lazy_loading_style
        snake = to_snake_case(loader.relation_name)
        target = self.translate_type(loader.target)

        if loader.is_many:
            name = f"load_{pluralize(snake)}"
            returns = f"List[{target}]"
            default = "[]"
            noun = "entities"
        else:
            name = f"load_{snake}"
            returns = f"Optional[{target}]"
            default = "None"
            noun = "entity"

        return {
            "name": name,
            "relation": loader.relation_name,
            "noun": noun,
            "prefix": "async " if style == "async" else "",
            "decorator": "@property" if style == "property" else "",
            "returns": f" -> {returns}" if self.config.sqlalchemy.add_type_hints else "",
            "default": default,
        }

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def _add_plan_imports(self, unit: IRUnit, plan: ImportPlan, annotated: bool) -> None:
        """Turn an import plan into import statements.

        Enum references are imported directly, every other reference only
        under TYPE_CHECKING.
        """
        self.python_imports.add(("__future__", "annotations"))

        if annotated:
            for wrapper in plan.wrappers:
                self.python_imports.add(("typing", self.WRAPPER_IMPORTS[wrapper]))
            for kind in plan.scalar_kinds:
                if kind in self.SCALAR_IMPORTS:
                    self.python_imports.add(self.SCALAR_IMPORTS[kind])

        for ref in plan.direct_references:
            self.python_imports.add((self._reference_module(unit.category, ref), ref.name))

        if plan.deferred_references:
            self.python_imports.add(("typing", "TYPE_CHECKING"))
            for ref in plan.deferred_references:
                self.type_checking_imports.add((self._reference_module(unit.category, ref), ref.name))

    def _reference_module(self, from_category: TypeCategory, ref: TypeKey) -> str:
        module = self.module_name(ref.name)
        if ref.category == from_category:
            return f".{module}"
        return f"..{ref.category.value}.{module}"

    def _assemble_imports(self) -> list[str]:
        """Assemble Python import statements, one blank line between groups."""
        # Group imports by module
        import_groups: dict[str, set[str]] = collections.defaultdict(set)
        for module, name in self.python_imports:
            import_groups[module].add(name)

        future = [m for m in import_groups if m == "__future__"]
        stdlib = sorted(m for m in import_groups if m in STDLIB_MODULES)
        local = sorted(m for m in import_groups if m.startswith("."))
        third_party = sorted(m for m in import_groups if m not in STDLIB_MODULES and m != "__future__" and not m.startswith("."))

        assembled: list[str] = []
        for group in (future, stdlib, third_party, local):
            if not group:
                continue
            if assembled:
                assembled.append("")
            for module in group:
                assembled.append(f"from {module} import {', '.join(sorted(import_groups[module]))}")
        return assembled

    def _assemble_type_checking_imports(self) -> list[str]:
        return [f"from {module} import {name}" for module, name in sorted(self.type_checking_imports)]

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    def _format_enum_value(self, unit: IRUnit, entry_name: str, value: object) -> str:
        try:
            if unit.enum_value_kind == ScalarKind.INTEGER:
                return str(int(value))
            if unit.enum_value_kind == ScalarKind.FLOAT:
                return repr(float(value))
        except (TypeError, ValueError) as exc:
            raise OutputError(f"enum {unit.name}: entry {entry_name} has invalid value {value!r}") from exc
        return json.dumps(str(value), ensure_ascii=False)

    @staticmethod
    def _format_slots(names: list[str]) -> str:
        quoted = [json.dumps(name) for name in names]
        if len(quoted) == 1:
            return f"({quoted[0]},)"
        return f"({', '.join(quoted)})"

    @staticmethod
    def _join(prefix: str, body: str) -> str:
        """Two blank lines between the imports and the first class."""
        prefix = prefix.strip("\n")
        body = body.strip("\n") + "\n"
        if not prefix:
            return body
        return f"{prefix}\n\n\n{body}"
