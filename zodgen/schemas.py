# File: zodgen/schemas.py
"""
zodgen - Base Schema Generator
===============================
Emits the base schema family:

    schemas/User.ts     export const UserSchema = z.object({...});
    schemas/enums.ts    enum constant objects referenced by z.nativeEnum
    schemas/index.ts    barrel re-exporting all of the above

Relation and unsupported fields never appear in a base schema.  Models are
emitted in name order so the family is byte-stable across runs.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set, Tuple

from zodgen.annotations import strip_directives
from zodgen.fields import EmittedField, FieldSchemaEmitter
from zodgen.models import (
    Datamodel,
    EnumDefinition,
    FieldDefinition,
    FieldKind,
    GeneratedFile,
    GeneratorConfig,
    ModelDefinition,
)
from zodgen.utils import (
    GENERATED_HEADER,
    build_barrel,
    build_import_block,
    jsdoc_block,
    merge_import_dicts,
    ts_key,
    ts_string,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.schemas")

ZOD_IMPORT: str = 'import { z } from "zod/v4";'

_EMITTED_KINDS = (FieldKind.SCALAR.value, FieldKind.ENUM.value)


def schema_name(model_name: str) -> str:
    """``User`` → ``UserSchema``."""
    return f"{model_name}Schema"


class BaseSchemaGenerator:
    """
    Builds base schema files for every model of a datamodel.

    Warnings raised while emitting fields (unknown enums, unresolvable
    external overrides) are collected on ``warnings`` rather than raised.
    """

    def __init__(self, config: GeneratorConfig, datamodel: Datamodel) -> None:
        self._config: GeneratorConfig = config
        self._datamodel: Datamodel = datamodel
        self._emitter: FieldSchemaEmitter = FieldSchemaEmitter(config, datamodel)
        self._emitted: Dict[str, List[Tuple[FieldDefinition, EmittedField]]] = {}
        self.warnings: List[str] = []

    @property
    def directory(self) -> str:
        return self._config.zod_schemas_dir

    @property
    def datamodel(self) -> Datamodel:
        return self._datamodel

    # -----------------------------------------------------------------
    # Per model
    # -----------------------------------------------------------------

    def emitted_fields(
        self, model: ModelDefinition
    ) -> List[Tuple[FieldDefinition, EmittedField]]:
        """
        ``(field, emitted entry)`` for every field in *model*'s schema.

        Computed once per model; the layer and CRUD passes read the same
        entries the base file was rendered from.
        """
        cached = self._emitted.get(model.name)
        if cached is not None:
            return cached

        pairs: List[Tuple[FieldDefinition, EmittedField]] = []
        for field_def in model.fields:
            if field_def.kind not in _EMITTED_KINDS:
                logger.debug(
                    "Skipping %s field %s.%s.", field_def.kind, model.name, field_def.name
                )
                continue
            entry: EmittedField = self._emitter.emit(field_def)
            self.warnings.extend(entry.warnings)
            pairs.append((field_def, entry))

        self._emitted[model.name] = pairs
        return pairs

    def generate_model(self, model: ModelDefinition) -> GeneratedFile:
        emitted: List[EmittedField] = [entry for _, entry in self.emitted_fields(model)]
        imports: Dict[str, Set[str]] = merge_import_dicts(*(e.imports for e in emitted))

        lines: List[str] = [GENERATED_HEADER, ZOD_IMPORT]
        extra_imports: str = build_import_block(imports)
        if extra_imports:
            lines.append(extra_imports)
        lines.append("")

        lines.extend(jsdoc_block(strip_directives(model.documentation)))
        lines.append(f"export const {schema_name(model.name)} = z.object({{")
        for entry in emitted:
            lines.extend(entry.render("  "))
        lines.append("});")
        lines.append("")

        logger.debug("Base schema for %s: %d fields.", model.name, len(emitted))
        return GeneratedFile(
            family="schemas",
            relative_path=f"{self.directory}/{model.name}.ts",
            content="\n".join(lines),
        )

    # -----------------------------------------------------------------
    # Shared files
    # -----------------------------------------------------------------

    def generate_enums(self) -> Optional[GeneratedFile]:
        """The enum constants file, or None when the datamodel has no enums."""
        if not self._datamodel.enums:
            return None

        lines: List[str] = [GENERATED_HEADER, ""]
        for enum_def in self._datamodel.enums:
            lines.extend(_render_enum(enum_def))
            lines.append("")

        return GeneratedFile(
            family="schemas",
            relative_path=f"{self.directory}/{self._config.enum_file_name}",
            content="\n".join(lines),
        )

    def generate_index(self) -> GeneratedFile:
        modules: List[str] = [m.name for m in self._datamodel.models]
        if self._datamodel.enums:
            modules.append(self._config.enum_file_name[: -len(".ts")])
        return GeneratedFile(
            family="schemas",
            relative_path=f"{self.directory}/index.ts",
            content=GENERATED_HEADER + "\n" + build_barrel(modules),
        )

    def generate_all(self) -> List[GeneratedFile]:
        files: List[GeneratedFile] = [
            self.generate_model(model)
            for model in sorted(self._datamodel.models, key=lambda m: m.name)
        ]
        enum_file: Optional[GeneratedFile] = self.generate_enums()
        if enum_file is not None:
            files.append(enum_file)
        files.append(self.generate_index())
        logger.info(
            "Base schemas: %d models, %d enums.",
            len(self._datamodel.models),
            len(self._datamodel.enums),
        )
        return files


def _render_enum(enum_def: EnumDefinition) -> List[str]:
    lines: List[str] = jsdoc_block(strip_directives(enum_def.documentation))
    lines.append(f"export const {enum_def.name} = {{")
    for value in enum_def.values:
        lines.append(f"  {ts_key(value)}: {ts_string(value)},")
    lines.append("} as const;")
    lines.append(
        f"export type {enum_def.name} = (typeof {enum_def.name})"
        f"[keyof typeof {enum_def.name}];"
    )
    return lines


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "BaseSchemaGenerator",
    "ZOD_IMPORT",
    "schema_name",
]

logger.debug("zodgen.schemas loaded — %d public symbols.", len(__all__))
