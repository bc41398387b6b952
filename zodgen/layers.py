# File: zodgen/layers.py
"""
zodgen - Layer Generator
=========================
Derives three representations of every model from its base schema:

    Database   ``UserDBSchema = UserSchema``           values as stored
    Runtime    ``UserSchema.extend({...})``             values as used in-process
    External   ``UserSchema.extend({...})``             values as serialised (suffix ``API``)

Only fields whose declared type needs a different representation in a
layer are listed in that layer's ``extend`` block.  The Runtime layer
substitutes a registered brand for a branded field instead of the
generic transform.  Each model file ends with the pairwise conversion
functions and one composed DB→API function.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from zodgen.brands import BrandRegistry
from zodgen.fields import EmittedField
from zodgen.models import FieldDefinition, GeneratedFile, GeneratorConfig, ModelDefinition
from zodgen.schemas import ZOD_IMPORT, BaseSchemaGenerator, schema_name
from zodgen.utils import (
    GENERATED_HEADER,
    build_barrel,
    jsdoc_block,
    lower_first,
    relative_module,
    ts_key,
    ts_member,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.layers")

TRANSFORM_UTILS_MODULE: str = "transform-utils"

# Runtime: numeric/text storage of large integers becomes a native bigint
_RUNTIME_TRANSFORMS: Dict[str, str] = {
    "BigInt": "z.coerce.bigint()",
}

# External: values that do not survive JSON become strings
_EXTERNAL_TRANSFORMS: Dict[str, str] = {
    "BigInt": "z.union([z.bigint(), z.number(), z.string()]).transform((val) => String(val))",
    "Decimal": "z.union([z.string(), z.number()]).transform((val) => String(val))",
}


class Layer(str, Enum):
    """The three fixed layers, valued by the suffix used in emitted names."""

    DATABASE = "DB"
    RUNTIME = "Runtime"
    EXTERNAL = "API"

    @property
    def description(self) -> str:
        return _LAYER_DESCRIPTIONS[self]


_LAYER_DESCRIPTIONS: Dict[Layer, str] = {
    Layer.DATABASE: "Database layer: values as stored.",
    Layer.RUNTIME: "Runtime layer: values parsed for application use.",
    Layer.EXTERNAL: "External layer: JSON-serialisable values for API consumers.",
}


@dataclass(slots=True)
class FieldOverride:
    """One ``extend`` entry of a non-identity layer."""

    key: str
    expression: str
    brand: Optional[str] = None


@dataclass(slots=True)
class LayerSchema:
    """A (model, layer) pair and its overrides relative to the base schema."""

    model_name: str
    layer: Layer
    overrides: List[FieldOverride] = field(default_factory=list)

    @property
    def schema_name(self) -> str:
        return f"{self.model_name}{self.layer.value}Schema"

    @property
    def type_name(self) -> str:
        return f"{self.model_name}{self.layer.value}"

    @property
    def is_identity(self) -> bool:
        return not self.overrides

    def render(self) -> List[str]:
        base: str = schema_name(self.model_name)
        lines: List[str] = jsdoc_block([self.layer.description])
        if self.is_identity:
            lines.append(f"export const {self.schema_name} = {base};")
        else:
            lines.append(f"export const {self.schema_name} = {base}.extend({{")
            for override in self.overrides:
                lines.append(f"  {ts_key(override.key)}: {override.expression},")
            lines.append("});")
        lines.append(f"export type {self.type_name} = z.infer<typeof {self.schema_name}>;")
        return lines


# ---------------------------------------------------------------------------
# Override builders
# ---------------------------------------------------------------------------


def _shape_source(model_name: str, entry: EmittedField) -> str:
    """Base shape member with the outer ``.nullish()`` peeled off."""
    source: str = ts_member(f"{schema_name(model_name)}.shape", entry.key)
    if entry.outer_nullish:
        source += ".unwrap().unwrap()"
    return source


def _rewrap(expression: str, field_def: FieldDefinition, entry: EmittedField) -> str:
    if entry.outer_nullish or field_def.is_nullable:
        return expression + ".nullish()"
    return expression


def runtime_override(
    model: ModelDefinition,
    field_def: FieldDefinition,
    entry: EmittedField,
    registry: Optional[BrandRegistry],
) -> Optional[FieldOverride]:
    """Runtime ``extend`` entry for one field, or None when it passes through."""
    brand: Optional[str] = registry.field_brand(model, field_def) if registry else None
    if brand is not None:
        expression: str = f"brands.{brand}"
        if field_def.is_list:
            expression = f"z.array({expression})"
        return FieldOverride(
            key=entry.key, expression=_rewrap(expression, field_def, entry), brand=brand
        )

    transform: Optional[str] = _RUNTIME_TRANSFORMS.get(field_def.type)
    if transform is None:
        return None
    if field_def.is_list:
        transform = f"z.array({transform})"
    piped: str = f"{_shape_source(model.name, entry)}.pipe({transform})"
    return FieldOverride(key=entry.key, expression=_rewrap(piped, field_def, entry))


def external_override(
    field_def: FieldDefinition,
    entry: EmittedField,
) -> Optional[FieldOverride]:
    """
    External ``extend`` entry for one field, or None when it passes through.

    The expression parses Runtime values, so it stands alone rather than
    piping from the base shape.
    """
    transform: Optional[str] = _EXTERNAL_TRANSFORMS.get(field_def.type)
    if transform is None:
        return None
    if field_def.is_list:
        transform = f"z.array({transform})"
    return FieldOverride(key=entry.key, expression=_rewrap(transform, field_def, entry))


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class LayerGenerator:
    """
    Builds the layer family on top of a ``BaseSchemaGenerator``.

    *registry* is None when the brand family is not generated; brand
    substitution is then skipped entirely.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        base: BaseSchemaGenerator,
        registry: Optional[BrandRegistry] = None,
    ) -> None:
        self._config: GeneratorConfig = config
        self._base: BaseSchemaGenerator = base
        self._registry: Optional[BrandRegistry] = registry
        self._layers: Dict[str, List[LayerSchema]] = {}

    def build_layers(self, model: ModelDefinition) -> List[LayerSchema]:
        """The Database, Runtime and External schemas of *model*, in that order."""
        cached = self._layers.get(model.name)
        if cached is not None:
            return cached

        database = LayerSchema(model.name, Layer.DATABASE)
        runtime = LayerSchema(model.name, Layer.RUNTIME)
        external = LayerSchema(model.name, Layer.EXTERNAL)

        for field_def, entry in self._base.emitted_fields(model):
            override: Optional[FieldOverride] = runtime_override(
                model, field_def, entry, self._registry
            )
            if override is not None:
                runtime.overrides.append(override)
            override = external_override(field_def, entry)
            if override is not None:
                external.overrides.append(override)

        layers: List[LayerSchema] = [database, runtime, external]
        self._layers[model.name] = layers
        logger.debug(
            "Layers for %s: runtime=%d overrides, external=%d overrides.",
            model.name,
            len(runtime.overrides),
            len(external.overrides),
        )
        return layers

    # -----------------------------------------------------------------
    # Files
    # -----------------------------------------------------------------

    def generate_model(self, model: ModelDefinition) -> GeneratedFile:
        layers: List[LayerSchema] = self.build_layers(model)
        uses_brands: bool = any(o.brand for layer in layers for o in layer.overrides)

        lines: List[str] = [
            GENERATED_HEADER,
            ZOD_IMPORT,
            f"import {{ {schema_name(model.name)} }} from "
            f'"{relative_module(self._config.layers_dir, self._config.zod_schemas_dir)}";',
        ]
        if uses_brands:
            lines.append(
                "import * as brands from "
                f'"{relative_module(self._config.layers_dir, self._config.brands_dir)}";'
            )
        lines.append("")

        for layer in layers:
            lines.extend(layer.render())
            lines.append("")

        lines.extend(_conversion_functions(model.name))
        return GeneratedFile(
            family="layers",
            relative_path=f"{self._config.layers_dir}/{model_module(model.name)}.ts",
            content="\n".join(lines),
        )

    def generate_transform_utils(self) -> GeneratedFile:
        lines: List[str] = [GENERATED_HEADER, ZOD_IMPORT, ""]
        lines.extend(jsdoc_block(["Storage boolean (0/1) to boolean."]))
        lines.append(
            "export const sqliteBoolean = z.number().transform((val) => val === 1)"
            ".pipe(z.boolean());"
        )
        lines.append("")
        lines.extend(jsdoc_block(["Storage timestamp string to Date."]))
        lines.append(
            "export const sqliteDateTime = z.string().transform((val) => new Date(val))"
            ".pipe(z.date());"
        )
        lines.append("")
        lines.extend(jsdoc_block(["Date to ISO-8601 string for external consumers."]))
        lines.append(
            "export const apiDateTime = z.date().transform((val) => val.toISOString())"
            ".pipe(z.iso.datetime());"
        )
        lines.append("")
        return GeneratedFile(
            family="layers",
            relative_path=f"{self._config.layers_dir}/{TRANSFORM_UTILS_MODULE}.ts",
            content="\n".join(lines),
        )

    def generate_index(self) -> GeneratedFile:
        modules: List[str] = [model_module(m.name) for m in self._base.datamodel.models]
        modules.append(TRANSFORM_UTILS_MODULE)
        return GeneratedFile(
            family="layers",
            relative_path=f"{self._config.layers_dir}/index.ts",
            content=GENERATED_HEADER + "\n" + build_barrel(modules),
        )

    def generate_all(self) -> List[GeneratedFile]:
        models: List[ModelDefinition] = sorted(
            self._base.datamodel.models, key=lambda m: m.name
        )
        files: List[GeneratedFile] = [self.generate_model(m) for m in models]
        files.append(self.generate_transform_utils())
        files.append(self.generate_index())
        logger.info("Layer schemas: %d models.", len(models))
        return files


def model_module(model_name: str) -> str:
    """``UserProfile`` → ``userprofile.schemas``."""
    return f"{model_name.lower()}.schemas"


def _conversion_functions(model_name: str) -> List[str]:
    prefix: str = lower_first(model_name)
    db: str = f"{model_name}{Layer.DATABASE.value}"
    runtime: str = f"{model_name}{Layer.RUNTIME.value}"
    external: str = f"{model_name}{Layer.EXTERNAL.value}"

    lines: List[str] = jsdoc_block(["Database representation to runtime values."])
    lines.append(f"export function {prefix}DBToRuntime(data: {db}): {runtime} {{")
    lines.append(f"  return {runtime}Schema.parse(data);")
    lines.append("}")
    lines.append("")
    lines.extend(jsdoc_block(["Runtime values to the external representation."]))
    lines.append(f"export function {prefix}RuntimeToAPI(data: {runtime}): {external} {{")
    lines.append(f"  return {external}Schema.parse(data);")
    lines.append("}")
    lines.append("")
    lines.extend(jsdoc_block(["Database representation straight to the external one."]))
    lines.append(f"export function {prefix}DBToAPI(data: {db}): {external} {{")
    lines.append(f"  return {prefix}RuntimeToAPI({prefix}DBToRuntime(data));")
    lines.append("}")
    lines.append("")
    return lines


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FieldOverride",
    "Layer",
    "LayerGenerator",
    "LayerSchema",
    "TRANSFORM_UTILS_MODULE",
    "external_override",
    "model_module",
    "runtime_override",
]

logger.debug("zodgen.layers loaded — %d public symbols.", len(__all__))
