# File: zodgen/fields.py
"""
zodgen - Field Schema Emitter
==============================
Builds the Zod expression for a single field.  Order of operations:

    1. external schema override (``@kyselyType``)  → JSON-aware preprocess
    2. enum field                                  → ``z.nativeEnum(Enum)``
    3. scalar field                                → annotation / type map
    4. list wrapping                               → ``.array()``
    5. nullability                                 → ``.nullish()`` exactly once
    6. description                                 → ``.describe("...")``

Step 3 either lets a top-level validator (``@zod.email()``) replace the
base primitive, or starts from the type mapper and appends inferred
default validators followed by the annotation's own chain.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from zodgen.annotations import (
    TOP_LEVEL_VALIDATOR_RE,
    ZodAnnotation,
    parse_annotation,
    strip_directives,
)
from zodgen.models import Datamodel, FieldDefinition, FieldKind, GeneratorConfig
from zodgen.type_mapper import zod_base_expression
from zodgen.utils import jsdoc_block, to_camel_case, ts_key, ts_string

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.fields")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

NULLISH: str = ".nullish()"

_IMPORT_REF_RE: re.Pattern[str] = re.compile(r"import\(['\"]([^'\"]+)['\"]\)\.(\w+)")
_TOP_LEVEL_PARTS_RE: re.Pattern[str] = re.compile(r"^\.(\w+)\((.*)\)$", re.DOTALL)

_JSON_PREPROCESS: str = (
    "(val) => { if (typeof val === \"string\") { try { return JSON.parse(val); } "
    "catch { return val; } } return val; }"
)

_CUID_DEFAULTS: Tuple[str, ...] = ("cuid", "cuid2")
_UUID_DEFAULTS: Tuple[str, ...] = ("uuid",)


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class EmittedField:
    """One rendered ``key: expression,`` entry and what it needs."""

    key: str
    expression: str
    doc_lines: List[str] = field(default_factory=list)
    imports: Dict[str, Set[str]] = field(default_factory=dict)
    outer_nullish: bool = False
    warnings: List[str] = field(default_factory=list)

    def render(self, indent: str = "  ") -> List[str]:
        lines: List[str] = jsdoc_block(self.doc_lines, indent)
        lines.append(f"{indent}{ts_key(self.key)}: {self.expression},")
        return lines


# ---------------------------------------------------------------------------
# Helpers shared with other passes
# ---------------------------------------------------------------------------


def field_key(field_def: FieldDefinition, camel_case: bool) -> str:
    """Object key emitted for *field_def*: storage name, optionally camelCased."""
    name: str = field_def.storage_name
    return to_camel_case(name) if camel_case else name


def as_nullish(validator: str) -> str:
    """Rewrite ``.nullable()`` to the null-or-absent ``.nullish()``."""
    return validator.replace(".nullable()", NULLISH)


def chainable_validators(annotation: Optional[ZodAnnotation]) -> List[str]:
    """Annotation validators that chain onto a base, nullability rewritten."""
    if annotation is None:
        return []
    return [
        as_nullish(v)
        for v in annotation.validators
        if not TOP_LEVEL_VALIDATOR_RE.match(v)
    ]


def top_level_base(annotation: ZodAnnotation) -> Optional[str]:
    """``z.email()`` for an annotation whose first validator is ``.email()``."""
    if not annotation.first_is_top_level:
        return None
    match = _TOP_LEVEL_PARTS_RE.match(annotation.validators[0])
    if match is None:
        return None
    return f"z.{match.group(1)}({match.group(2)})"


def enum_module(config: GeneratorConfig) -> str:
    """Import specifier of the enum constants file, relative to a base file."""
    return "./" + config.enum_file_name[: -len(".ts")]


# ---------------------------------------------------------------------------
# Emitter
# ---------------------------------------------------------------------------


class FieldSchemaEmitter:
    """
    Emits field expressions for one datamodel under one configuration.

    Usage::

        emitter = FieldSchemaEmitter(config, datamodel)
        emitted = emitter.emit(field_def)
        lines.extend(emitted.render())
    """

    def __init__(self, config: GeneratorConfig, datamodel: Datamodel) -> None:
        self._config: GeneratorConfig = config
        self._datamodel: Datamodel = datamodel

    def emit(self, field_def: FieldDefinition) -> EmittedField:
        annotation: Optional[ZodAnnotation] = parse_annotation(field_def.documentation)
        result: EmittedField = EmittedField(
            key=field_key(field_def, self._config.camel_case),
            expression="",
            doc_lines=strip_directives(field_def.documentation),
        )

        chain_declares_nullish: bool = False
        chain_emitted: bool = False
        if annotation is not None and annotation.type_override:
            expression: str = self._override_expression(annotation.type_override, result)
        elif field_def.kind == FieldKind.ENUM.value:
            expression = self._enum_expression(field_def, result)
        elif field_def.kind == FieldKind.SCALAR.value:
            expression = self.scalar_chain(field_def, annotation)
            chain_emitted = True
            chain_declares_nullish = (
                annotation is not None
                and annotation.declares_nullability
                and not field_def.is_list
                and as_nullish(annotation.validators[-1]) == NULLISH
            )
        else:
            expression = "z.unknown()"

        if field_def.is_list:
            expression += ".array()"

        declared: bool = (
            chain_emitted
            and annotation is not None
            and annotation.declares_nullability
        )
        if field_def.is_nullable and not declared:
            expression += NULLISH
            result.outer_nullish = True
        else:
            result.outer_nullish = chain_declares_nullish

        if annotation is not None and annotation.description is not None:
            expression += f".describe({ts_string(annotation.description)})"

        result.expression = expression
        return result

    # -----------------------------------------------------------------
    # Scalars
    # -----------------------------------------------------------------

    def scalar_chain(
        self,
        field_def: FieldDefinition,
        annotation: Optional[ZodAnnotation],
    ) -> str:
        """
        Base primitive plus validators for a scalar field, brand marker
        last; no list, nullability or description handling.
        """
        brand_marker: str = annotation.brand_marker if annotation else ""

        if annotation is not None:
            base: Optional[str] = top_level_base(annotation)
            if base is not None:
                rest: List[str] = chainable_validators(
                    ZodAnnotation(validators=annotation.validators[1:])
                )
                return base + "".join(rest) + brand_marker

        expression: str = zod_base_expression(
            self._datamodel.provider, field_def.type
        )
        if self._config.use_default_validators:
            expression += self._default_validators(field_def, annotation)
        return expression + "".join(chainable_validators(annotation)) + brand_marker

    @staticmethod
    def _default_validators(
        field_def: FieldDefinition,
        annotation: Optional[ZodAnnotation],
    ) -> str:
        def present(*names: str) -> bool:
            return annotation is not None and annotation.has_validator(*names)

        default_fn: Optional[str] = field_def.default_function
        if field_def.type == "String":
            if default_fn in _CUID_DEFAULTS and not present("cuid", "cuid2"):
                return ".cuid2()"
            if default_fn in _UUID_DEFAULTS and not present("uuid"):
                return ".uuid()"
        elif field_def.type == "Int" and not present("int"):
            return ".int()"
        return ""

    # -----------------------------------------------------------------
    # Enums
    # -----------------------------------------------------------------

    def _enum_expression(self, field_def: FieldDefinition, result: EmittedField) -> str:
        if self._datamodel.get_enum(field_def.type) is None:
            message: str = (
                f"Field '{field_def.name}' references unknown enum "
                f"'{field_def.type}'; emitting z.unknown()."
            )
            logger.warning(message)
            result.warnings.append(message)
            return "z.unknown()"
        result.imports.setdefault(enum_module(self._config), set()).add(field_def.type)
        return f"z.nativeEnum({field_def.type})"

    # -----------------------------------------------------------------
    # External schema overrides
    # -----------------------------------------------------------------

    def _override_expression(self, override: str, result: EmittedField) -> str:
        schemas: List[str] = []
        for member in (part.strip() for part in override.split("|")):
            if member == "null":
                continue
            match = _IMPORT_REF_RE.search(member)
            if match is None:
                logger.debug("Ignoring non-import override member %r.", member)
                continue
            module_path, type_name = match.group(1), match.group(2)
            schema_name: str = f"{type_name}Schema"
            if schema_name not in schemas:
                schemas.append(schema_name)
            result.imports.setdefault(module_path, set()).add(schema_name)

        if not schemas:
            message: str = (
                f"External type override '{override}' names no importable "
                f"schema; emitting z.unknown()."
            )
            logger.warning(message)
            result.warnings.append(message)
            return "z.unknown()"

        target: str = schemas[0] if len(schemas) == 1 else f"z.union([{', '.join(schemas)}])"
        return f"z.preprocess({_JSON_PREPROCESS}, {target})"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "EmittedField",
    "FieldSchemaEmitter",
    "NULLISH",
    "as_nullish",
    "chainable_validators",
    "enum_module",
    "field_key",
    "top_level_base",
]

logger.debug("zodgen.fields loaded — %d public symbols.", len(__all__))
