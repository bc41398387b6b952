# File: zodgen/crud.py
"""
zodgen - CRUD Schema Generator
===============================
Derives five argument schemas per model::

    Create<M>ArgsSchema    runtime schema minus generated fields, plus defaults
    Update<M>ArgsSchema    partial, identifier re-required, non-empty refinement
    List<M>sArgsSchema     pagination + sorting + where / filters
    Get<M>ArgsSchema       identifier only
    Delete<M>ArgsSchema    identifier only

The source schema for Create/Update/List is the Runtime layer schema when
the layer family is generated, the base schema otherwise.  Business rules
come from ``@crud.*`` directives (see ``zodgen.crud_annotations``).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from zodgen.brands import BrandRegistry
from zodgen.crud_annotations import FieldRules, ModelCrudRules, parse_model_rules
from zodgen.fields import EmittedField
from zodgen.layers import Layer, LayerGenerator
from zodgen.models import FieldDefinition, GeneratedFile, GeneratorConfig, ModelDefinition
from zodgen.schemas import ZOD_IMPORT, BaseSchemaGenerator, schema_name
from zodgen.utils import (
    GENERATED_HEADER,
    build_barrel,
    build_import_block,
    jsdoc_block,
    relative_module,
    to_pascal_case,
    ts_key,
    ts_literal,
    ts_member,
    ts_string,
    ts_string_array,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.crud")

DEFAULT_UPDATE_MESSAGE: str = "At least one field must be provided for update"

_ENUM_SHAPE_RE: re.Pattern[str] = re.compile(r"^\s*enum\(\s*\[(.*)\]\s*\)\s*$", re.DOTALL)
_QUOTED_ITEM_RE: re.Pattern[str] = re.compile(r"\"([^\"]*)\"|'([^']*)'")
_RANGE_SUFFIXES: Tuple[str, ...] = ("_gte", "_lte", "_gt", "_lt")

OPERATIONS: Tuple[str, ...] = ("Create", "Update", "List", "Get", "Delete")


def crud_schema_name(operation: str, model_name: str) -> str:
    """``("List", "User")`` → ``ListUsersArgsSchema``."""
    plural: str = "s" if operation == "List" else ""
    return f"{operation}{model_name}{plural}ArgsSchema"


def _type_name(schema: str) -> str:
    return schema[: -len("Schema")] if schema.endswith("Schema") else schema


def render_default(value: Any) -> str:
    """Schema-level default for a rule value."""
    if value is None:
        return ".nullable().default(null)"
    if value == "now()":
        return ".default(() => new Date())"
    return f".default({ts_literal(value)})"


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class CrudSchemaSet:
    """Everything emitted for one model's CRUD file."""

    model_name: str
    source_schema: str
    option_constants: List[str] = field(default_factory=list)
    schemas: Dict[str, List[str]] = field(default_factory=dict)
    create_omitted: List[str] = field(default_factory=list)
    update_omitted: List[str] = field(default_factory=list)
    uses_brands: bool = False


# ---------------------------------------------------------------------------
# Per-model builder
# ---------------------------------------------------------------------------


class _ModelCrudBuilder:
    """Builds one ``CrudSchemaSet``; holds the per-model lookups."""

    def __init__(
        self,
        config: GeneratorConfig,
        model: ModelDefinition,
        entries: List[Tuple[FieldDefinition, EmittedField]],
        source_schema: str,
        registry: Optional[BrandRegistry],
        warnings: List[str],
    ) -> None:
        self.config: GeneratorConfig = config
        self.model: ModelDefinition = model
        self.entries: List[Tuple[FieldDefinition, EmittedField]] = entries
        self.source: str = source_schema
        self.registry: Optional[BrandRegistry] = registry
        self.rules: ModelCrudRules = parse_model_rules(model)
        self.warnings: List[str] = warnings
        self.result = CrudSchemaSet(model_name=model.name, source_schema=source_schema)
        self.create_omit_keys: Set[str] = set()
        self.create_defaults: Dict[str, Any] = {}

    # -- lookups ------------------------------------------------------------

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def _entry_for(self, name: str) -> Optional[Tuple[FieldDefinition, EmittedField]]:
        for field_def, entry in self.entries:
            if name in (field_def.name, entry.key, field_def.storage_name):
                return field_def, entry
        return None

    def _resolve_keys(self, names: List[str], directive: str) -> List[str]:
        """Emitted keys for *names*; unknown names are reported and dropped."""
        keys: List[str] = []
        for name in names:
            found = self._entry_for(name)
            if found is None:
                self._warn(
                    f"Unknown field '{name}' in @crud.{directive} on model "
                    f"'{self.model.name}'; ignoring it."
                )
                continue
            if found[1].key not in keys:
                keys.append(found[1].key)
        return keys

    def _shape(self, key: str, schema: Optional[str] = None) -> str:
        return ts_member(f"{schema or self.source}.shape", key)

    def _id_entries(self) -> List[Tuple[FieldDefinition, EmittedField]]:
        return [(f, e) for f, e in self.entries if f.is_id]

    def _id_expression(self, field_def: FieldDefinition, entry: EmittedField) -> str:
        brand: Optional[str] = (
            self.registry.field_brand(self.model, field_def) if self.registry else None
        )
        if brand is not None:
            self.result.uses_brands = True
            return f"brands.{brand}"
        return self._shape(entry.key)

    def _is_timestamp(self, field_def: FieldDefinition, entry: EmittedField) -> bool:
        names: List[str] = self.config.crud.timestamp_field_names
        return entry.key in names or field_def.storage_name in names

    # -- create -------------------------------------------------------------

    def create_omission_reason(
        self, field_def: FieldDefinition, entry: EmittedField
    ) -> Optional[str]:
        field_rules: FieldRules = self.rules.field_rules(field_def.name)
        if "create" in field_rules.omit_from:
            return "@crud.omit"
        if entry.key in self.create_omit_keys:
            return "@crud.create.omit"
        if field_def.is_relation:
            return "relation"
        if field_def.is_id and field_def.has_default_value:
            return "generated identifier"
        if field_def.is_updated_at:
            return "update timestamp"
        if field_def.default_function == "now":
            return "now() default"
        if field_def.has_default_value and self._is_timestamp(field_def, entry):
            return "timestamp name with default"
        return None

    def _create_default(self, field_def: FieldDefinition, entry: EmittedField) -> Optional[str]:
        field_rules: FieldRules = self.rules.field_rules(field_def.name)
        if field_rules.has_default:
            return render_default(field_rules.default)
        if entry.key in self.create_defaults:
            return render_default(self.create_defaults[entry.key])
        return None

    def _refine_placeholder(self, message: str) -> List[str]:
        return [
            "  .refine(",
            "    (data) => {",
            f"      // {message}",
            "      return true; // TODO: implement this check",
            "    },",
            f"    {{ message: {ts_string(message)} }},",
            "  )",
        ]

    def _resolve_create_rules(self) -> None:
        """Key the create omit and default rules by emitted field key."""
        self.create_omit_keys = set(self._resolve_keys(self.rules.create.omit, "create.omit"))
        self.create_defaults = {}
        for name, value in self.rules.create.defaults.items():
            keys: List[str] = self._resolve_keys([name], "create.defaults")
            if keys:
                self.create_defaults[keys[0]] = value

    def build_create(self, composed: bool) -> List[str]:
        name: str = crud_schema_name("Create", self.model.name)
        self._resolve_create_rules()

        kept: List[Tuple[FieldDefinition, EmittedField]] = []
        for field_def, entry in self.entries:
            reason: Optional[str] = self.create_omission_reason(field_def, entry)
            if reason is None:
                kept.append((field_def, entry))
            else:
                logger.debug("Create %s: omitting %s (%s).", self.model.name, entry.key, reason)
                self.result.create_omitted.append(entry.key)

        doc: List[str] = [f"Arguments for creating a {self.model.name}."]
        if self.result.create_omitted:
            doc.append(f"Omits: {', '.join(self.result.create_omitted)}.")
        lines: List[str] = jsdoc_block(doc)

        if composed:
            lines.append(f"export const {name} = {self.source}")
            if self.result.create_omitted:
                lines.append("  .omit({")
                lines.extend(f"    {ts_key(k)}: true," for k in self.result.create_omitted)
                lines.append("  })")
            defaulted: List[str] = []
            for field_def, entry in kept:
                default: Optional[str] = self._create_default(field_def, entry)
                if default is not None:
                    defaulted.append(f"    {ts_key(entry.key)}: {self._shape(entry.key)}{default},")
            if defaulted:
                lines.append("  .extend({")
                lines.extend(defaulted)
                lines.append("  })")
        else:
            lines.append(f"export const {name} = z")
            lines.append("  .object({")
            for field_def, entry in kept:
                target: Optional[str] = self.model.foreign_key_target(field_def.name)
                if target is not None:
                    lines.append(f"    // Foreign key to {target}")
                default = self._create_default(field_def, entry)
                lines.append(
                    f"    {ts_key(entry.key)}: {self._shape(entry.key)}{default or ''},"
                )
            lines.append("  })")

        if self.rules.create.refine:
            lines.extend(self._refine_placeholder(self.rules.create.refine))
        lines[-1] += ";"
        lines.append(f"export type {_type_name(name)} = z.infer<typeof {name}>;")
        return lines

    # -- update -------------------------------------------------------------

    def build_update(self) -> List[str]:
        name: str = crud_schema_name("Update", self.model.name)
        ids: List[Tuple[FieldDefinition, EmittedField]] = self._id_entries()
        id_keys: List[str] = [e.key for _, e in ids]

        omitted: List[str] = [e.key for f, e in self.entries if self._is_timestamp(f, e)]
        omitted += self._resolve_keys(self.rules.update.omit, "update.omit")
        omitted += self._resolve_keys(self.rules.update.immutable, "update.immutable")
        omitted += [
            e.key
            for f, e in self.entries
            if "update" in self.rules.field_rules(f.name).omit_from
        ]
        unique: List[str] = []
        for key in omitted:
            if key not in unique and key not in id_keys:
                unique.append(key)
        self.result.update_omitted = unique

        lines: List[str] = jsdoc_block(
            [
                f"Arguments for updating a {self.model.name}.",
                "Every field is optional but at least one must be provided.",
            ]
        )
        lines.append(f"export const {name} = {self.source}")
        if unique:
            lines.append("  .omit({")
            lines.extend(f"    {ts_key(k)}: true," for k in unique)
            lines.append("  })")
        lines.append("  .partial()")

        message: str = self.rules.update.refine or DEFAULT_UPDATE_MESSAGE
        if ids:
            lines.append("  .extend({")
            for field_def, entry in ids:
                lines.append(f"    {ts_key(entry.key)}: {self._id_expression(field_def, entry)},")
            lines.append("  })")
            pattern: str = ", ".join(
                key if ts_key(key) == key else f"{ts_string(key)}: _id{index}"
                for index, key in enumerate(id_keys)
            )
            predicate: str = (
                f"({{ {pattern}, ...updateData }}) => Object.keys(updateData).length > 0"
            )
        else:
            predicate = "(data) => Object.keys(data).length > 0"
        lines.append("  .refine(")
        lines.append(f"    {predicate},")
        lines.append(f"    {{ message: {ts_string(message)} }},")
        lines.append("  );")
        lines.append(f"export type {_type_name(name)} = z.infer<typeof {name}>;")
        return lines

    # -- list ---------------------------------------------------------------

    def _custom_filter_expression(self, filter_name: str) -> str:
        shape: Optional[str] = self.rules.list.custom_filter_types.get(filter_name)
        if shape is not None:
            if _ENUM_SHAPE_RE.match(shape):
                return f"z.enum({to_pascal_case(filter_name)}Options).optional()"
            return shape
        if filter_name.endswith("_contains"):
            subject: str = filter_name[: -len("_contains")]
            return (
                "z.string().optional()"
                f".describe({ts_string(f'Filter by {subject} containing text')})"
            )
        if filter_name.endswith(_RANGE_SUFFIXES):
            return 'z.string().optional().describe("ISO date string for filtering")'
        return "z.string().optional()"

    def build_where(self) -> List[str]:
        name: str = f"List{self.model.name}sWhereArgsSchema"
        lines: List[str] = [f"export const {name} = z"]
        lines.append("  .object({")
        for key in self._resolve_keys(self.rules.list.filters, "list.filters"):
            lines.append(f"    {ts_key(key)}: {self._shape(key)}.optional(),")

        custom: List[str] = list(self.rules.list.custom_filters)
        custom += [n for n in self.rules.list.custom_filter_types if n not in custom]
        for filter_name in custom:
            lines.append(
                f"    {ts_key(filter_name)}: {self._custom_filter_expression(filter_name)},"
            )

        if self.rules.list.json_filters:
            lines.append("    // JSON path filters")
            for json_filter in self.rules.list.json_filters:
                lines.append(f"    // TODO: JSON filter {ts_literal(json_filter)}")
        lines.append("  })")
        lines.append("  .optional();")
        return lines

    def build_list(self) -> List[str]:
        name: str = crud_schema_name("List", self.model.name)
        list_rules = self.rules.list
        strategy: str = str(list_rules.pagination or _enum_value(self.config.crud.pagination_strategy))
        max_size: int = list_rules.max_page_size or self.config.crud.max_page_size

        lines: List[str] = []
        if list_rules.has_where:
            lines.extend(self.build_where())
            lines.append("")

        lines.extend(
            jsdoc_block([f"Arguments for listing {self.model.name}s: pagination, sorting, filters."])
        )
        lines.append(f"export const {name} = z.object({{")
        if strategy in ("offset", "both"):
            lines.append("  // Offset pagination")
            lines.append("  offset: z.number().int().nonnegative().optional(),")
            lines.append(f"  limit: z.number().int().positive().max({max_size}).optional(),")
        if strategy in ("cursor", "both"):
            ids = self._id_entries()
            cursor: str = (
                f"{self._shape(ids[0][1].key)}.optional()" if len(ids) == 1 else "z.string().optional()"
            )
            lines.append("  // Cursor pagination")
            lines.append(f"  cursor: {cursor},")
            lines.append(f"  take: z.number().int().positive().max({max_size}).optional(),")

        lines.append("  // Sorting")
        if list_rules.order_by:
            options: List[str] = []
            for sort_field in list_rules.order_by:
                options += [f"{sort_field}_asc", f"{sort_field}_desc"]
            order: str = f"  orderBy: z.enum({ts_string_array(options)})"
            if list_rules.default_order in options:
                order += f".default({ts_string(list_rules.default_order or '')}),"
            else:
                if list_rules.default_order:
                    self._warn(
                        f"@crud.list.defaultOrder '{list_rules.default_order}' on model "
                        f"'{self.model.name}' is not a declared sort option; ignoring it."
                    )
                order += ".optional(),"
            lines.append(order)
        else:
            lines.append("  sortBy: z.string().optional(),")
            lines.append('  sortOrder: z.enum(["asc", "desc"]).optional(),')

        lines.append("  // Filtering")
        if list_rules.has_where:
            lines.append(f"  where: List{self.model.name}sWhereArgsSchema,")
        else:
            lines.append(f"  filters: {self.source}.partial().optional(),")
        if self.rules.org_scoped:
            lines.append("  // Organization scoped: callers filter by the current organization.")
        lines.append("});")
        lines.append(f"export type {_type_name(name)} = z.infer<typeof {name}>;")
        return lines

    # -- get / delete -------------------------------------------------------

    def build_identifier(self, operation: str) -> List[str]:
        name: str = crud_schema_name(operation, self.model.name)
        verb: str = "fetching" if operation == "Get" else "deleting"
        lines: List[str] = jsdoc_block([f"Arguments for {verb} a single {self.model.name}."])
        ids = self._id_entries()
        if ids:
            lines.append(f"export const {name} = {schema_name(self.model.name)}.pick({{")
            lines.extend(f"  {ts_key(e.key)}: true," for _, e in ids)
            lines.append("});")
        else:
            lines.append(f"export const {name} = z.object({{}});")
        lines.append(f"export type {_type_name(name)} = z.infer<typeof {name}>;")
        return lines

    # -- enum constants -----------------------------------------------------

    def build_option_constants(self) -> List[str]:
        constants: Dict[str, List[str]] = {}
        for enum_name, values in self.rules.enums.items():
            base: str = enum_name[: -len("Enum")] if enum_name.endswith("Enum") else enum_name
            constants[base] = values
        for filter_name, shape in self.rules.list.custom_filter_types.items():
            match = _ENUM_SHAPE_RE.match(shape)
            if match is None:
                continue
            base = to_pascal_case(filter_name)
            values = [a or b for a, b in _QUOTED_ITEM_RE.findall(match.group(1))]
            if base in constants and constants[base] != values:
                self._warn(
                    f"Option set '{base}Options' on model '{self.model.name}' is "
                    f"declared twice with different values; keeping the first."
                )
                continue
            constants[base] = values

        lines: List[str] = []
        for base, values in constants.items():
            lines.append(f"export const {base}Options = {ts_string_array(values)} as const;")
            lines.append(f"export type {base} = (typeof {base}Options)[number];")
        return lines

    # -- assembly -----------------------------------------------------------

    def build(self, composed: bool) -> CrudSchemaSet:
        self.result.option_constants = self.build_option_constants()
        self.result.schemas = {
            "Create": self.build_create(composed),
            "Update": self.build_update(),
            "List": self.build_list(),
            "Get": self.build_identifier("Get"),
            "Delete": self.build_identifier("Delete"),
        }
        return self.result


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class CrudSchemaGenerator:
    """
    Builds the CRUD family.

    *layers* and *registry* are optional collaborators: without layers the
    base schema is the source, without a registry no brand is substituted.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        base: BaseSchemaGenerator,
        layers: Optional[LayerGenerator] = None,
        registry: Optional[BrandRegistry] = None,
    ) -> None:
        self._config: GeneratorConfig = config
        self._base: BaseSchemaGenerator = base
        self._layers: Optional[LayerGenerator] = layers
        self._registry: Optional[BrandRegistry] = registry
        self.warnings: List[str] = []

    @property
    def directory(self) -> str:
        return self._config.crud.output_dir

    def eligible_models(self) -> List[ModelDefinition]:
        return sorted(
            (m for m in self._base.datamodel.models if self._config.crud.includes(m.name)),
            key=lambda m: m.name,
        )

    def build(self, model: ModelDefinition) -> CrudSchemaSet:
        composed: bool = self._layers is not None
        source: str = (
            f"{model.name}{Layer.RUNTIME.value}Schema" if composed else schema_name(model.name)
        )
        builder = _ModelCrudBuilder(
            self._config,
            model,
            self._base.emitted_fields(model),
            source,
            self._registry,
            self.warnings,
        )
        return builder.build(composed)

    def generate_model(self, model: ModelDefinition) -> GeneratedFile:
        crud_set: CrudSchemaSet = self.build(model)

        imports: Dict[str, Set[str]] = {
            relative_module(self.directory, self._config.zod_schemas_dir): {
                schema_name(model.name)
            }
        }
        if self._layers is not None:
            imports[relative_module(self.directory, self._config.layers_dir)] = {
                crud_set.source_schema
            }

        lines: List[str] = [GENERATED_HEADER, ZOD_IMPORT]
        if crud_set.uses_brands:
            lines.append(
                "import * as brands from "
                f"{ts_string(relative_module(self.directory, self._config.brands_dir))};"
            )
        lines.append(build_import_block(imports))
        lines.append("")

        if crud_set.option_constants:
            lines.extend(crud_set.option_constants)
            lines.append("")
        for operation in OPERATIONS:
            lines.extend(crud_set.schemas[operation])
            lines.append("")

        return GeneratedFile(
            family="crud",
            relative_path=f"{self.directory}/{model.name}.schema.ts",
            content="\n".join(lines),
        )

    def generate_index(self, models: List[ModelDefinition]) -> GeneratedFile:
        return GeneratedFile(
            family="crud",
            relative_path=f"{self.directory}/index.ts",
            content=GENERATED_HEADER + "\n" + build_barrel(f"{m.name}.schema" for m in models),
        )

    def generate_all(self) -> List[GeneratedFile]:
        models: List[ModelDefinition] = self.eligible_models()
        files: List[GeneratedFile] = [self.generate_model(m) for m in models]
        if self._config.crud.generate_index:
            files.append(self.generate_index(models))
        logger.info("CRUD schemas: %d models.", len(models))
        return files


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CrudSchemaGenerator",
    "CrudSchemaSet",
    "DEFAULT_UPDATE_MESSAGE",
    "OPERATIONS",
    "crud_schema_name",
    "render_default",
]

logger.debug("zodgen.crud loaded — %d public symbols.", len(__all__))
