# File: zodgen/validators.py
"""
zodgen - Datamodel & Configuration Validators
==============================================
Pydantic handles per-field structure of the input; this module adds the
**cross-entity semantic checks** that need the whole datamodel at once:
name collisions in emitted TypeScript, unresolvable enum and relation
references, brand conflicts and CRUD include/exclude lists.

Every check is a pure function returning a ``ValidationResult``;
``validate_full`` runs them all.  Unresolvable references are warnings
(generation falls back to ``z.unknown()``), collisions are errors.

Usage:
    from zodgen.validators import validate_full
    result = validate_full(datamodel, config)
    if not result.is_valid:
        print(result.format_report())
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, FrozenSet, List, Optional, Set

from zodgen.brands import BrandRegistry
from zodgen.fields import field_key
from zodgen.models import (
    SCALAR_TYPES,
    Datamodel,
    FieldKind,
    GeneratorConfig,
    ModelDefinition,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationError:
    """One finding: level, stable code, message and free-form context."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Ordered collection of ``ValidationError`` findings."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("warning", code, message, context))

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def has_warnings(self) -> bool:
        return any(e.is_warning for e in self._items)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> Set[str]:
        return {e.code for e in self._items}

    def summary(self) -> str:
        return (
            f"Validation: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are no errors."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {"error": "✗", "warning": "⚠", "info": "ℹ"}.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            for k, v in item.context.items():
                lines.append(f"       {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Naming rules
# ---------------------------------------------------------------------------

_TS_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_PASCAL_CASE_RE: re.Pattern[str] = re.compile(r"^[A-Z][A-Za-z0-9]*$")

# Names that cannot be bound with ``export const``
_TS_RESERVED_WORDS: FrozenSet[str] = frozenset(
    {
        "break", "case", "catch", "class", "const", "continue", "debugger",
        "default", "delete", "do", "else", "enum", "export", "extends",
        "false", "finally", "for", "function", "if", "import", "in",
        "instanceof", "new", "null", "return", "super", "switch", "this",
        "throw", "true", "try", "typeof", "var", "void", "while", "with",
        "let", "static", "yield", "await", "implements", "interface",
        "package", "private", "protected", "public", "z",
    }
)


def _check_identifier(
    result: ValidationResult, kind: str, name: str, ctx: Dict[str, Any]
) -> bool:
    upper: str = kind.upper()
    if not _TS_IDENTIFIER_RE.match(name):
        result.add_error(
            f"INVALID_{upper}_NAME",
            f"{kind.capitalize()} name '{name}' is not a valid TypeScript identifier.",
            ctx,
        )
        return False
    if name in _TS_RESERVED_WORDS:
        result.add_error(
            f"{upper}_NAME_RESERVED",
            f"{kind.capitalize()} name '{name}' is reserved in generated TypeScript.",
            ctx,
        )
        return False
    return True


# ---------------------------------------------------------------------------
# Individual validators
# ---------------------------------------------------------------------------


def validate_model_names(datamodel: Datamodel) -> ValidationResult:
    """Duplicate, invalid or reserved model and enum names."""
    result: ValidationResult = ValidationResult()
    seen: Set[str] = set()

    for model in datamodel.models:
        ctx: Dict[str, Any] = {"model": model.name}
        if model.name in seen:
            result.add_error(
                "DUPLICATE_MODEL_NAME",
                f"Model '{model.name}' is defined more than once.",
                ctx,
            )
        seen.add(model.name)
        if not _check_identifier(result, "model", model.name, ctx):
            continue
        if not _PASCAL_CASE_RE.match(model.name):
            result.add_warning(
                "MODEL_NAME_NOT_PASCAL_CASE",
                f"Model name '{model.name}' is not PascalCase; generated "
                f"schema names will look odd.",
                ctx,
            )

    enum_names: Set[str] = set()
    for enum_def in datamodel.enums:
        ctx = {"enum": enum_def.name}
        if enum_def.name in enum_names:
            result.add_error(
                "DUPLICATE_ENUM_NAME",
                f"Enum '{enum_def.name}' is defined more than once.",
                ctx,
            )
        enum_names.add(enum_def.name)
        _check_identifier(result, "enum", enum_def.name, ctx)

    logger.debug(
        "validate_model_names: %d models, %d enums, %d issue(s).",
        len(datamodel.models),
        len(datamodel.enums),
        len(result),
    )
    return result


def validate_field_names(datamodel: Datamodel, config: GeneratorConfig) -> ValidationResult:
    """Duplicate field names, and distinct fields that emit the same object key."""
    result: ValidationResult = ValidationResult()

    for model in datamodel.models:
        names: Set[str] = set()
        keys: Dict[str, str] = {}
        for field_def in model.fields:
            ctx: Dict[str, Any] = {"model": model.name, "field": field_def.name}
            if field_def.name in names:
                result.add_error(
                    "DUPLICATE_FIELD_NAME",
                    f"Field '{model.name}.{field_def.name}' is defined more than once.",
                    ctx,
                )
                continue
            names.add(field_def.name)

            if field_def.kind not in (FieldKind.SCALAR.value, FieldKind.ENUM.value):
                continue
            key: str = field_key(field_def, config.camel_case)
            if key in keys:
                result.add_error(
                    "DUPLICATE_FIELD_KEY",
                    f"Fields '{keys[key]}' and '{field_def.name}' of model "
                    f"'{model.name}' both emit the key '{key}'.",
                    {**ctx, "key": key},
                )
            keys[key] = field_def.name

            if field_def.kind == FieldKind.SCALAR.value and field_def.type not in SCALAR_TYPES:
                result.add_warning(
                    "UNKNOWN_SCALAR_TYPE",
                    f"Field '{model.name}.{field_def.name}' has unknown scalar type "
                    f"'{field_def.type}'; it will be emitted as z.unknown().",
                    {**ctx, "type": field_def.type},
                )
    return result


def validate_enum_references(datamodel: Datamodel) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    for model in datamodel.models:
        for field_def in model.fields:
            if field_def.kind != FieldKind.ENUM.value:
                continue
            if datamodel.get_enum(field_def.type) is None:
                result.add_warning(
                    "UNKNOWN_ENUM_REFERENCE",
                    f"Field '{model.name}.{field_def.name}' references unknown enum "
                    f"'{field_def.type}'; it will be emitted as z.unknown().",
                    {"model": model.name, "field": field_def.name, "enum": field_def.type},
                )
    return result


def validate_relations(datamodel: Datamodel) -> ValidationResult:
    """Relation targets must be models; foreign-key fields must exist locally."""
    result: ValidationResult = ValidationResult()
    for model in datamodel.models:
        for field_def in model.fields:
            if not field_def.is_relation:
                continue
            ctx: Dict[str, Any] = {"model": model.name, "field": field_def.name}
            if datamodel.get_model(field_def.type) is None:
                result.add_warning(
                    "UNKNOWN_RELATION_TARGET",
                    f"Relation '{model.name}.{field_def.name}' points at unknown "
                    f"model '{field_def.type}'.",
                    {**ctx, "target": field_def.type},
                )
            for local in field_def.relation_from_fields:
                if model.get_field(local) is None:
                    result.add_warning(
                        "UNKNOWN_RELATION_FIELD",
                        f"Relation '{model.name}.{field_def.name}' names foreign-key "
                        f"field '{local}', which '{model.name}' does not declare.",
                        {**ctx, "foreign_key": local},
                    )
    return result


def validate_brands(datamodel: Datamodel, config: GeneratorConfig) -> ValidationResult:
    """
    Brand names must be identifiers and each must resolve to one chain.

    Conflicts are errors under ``strict_brands`` and warnings otherwise.
    """
    result: ValidationResult = ValidationResult()
    registry: BrandRegistry = BrandRegistry.from_datamodel(datamodel, strict=False)

    for brand in registry:
        if not _TS_IDENTIFIER_RE.match(brand.name) or brand.name in _TS_RESERVED_WORDS:
            result.add_error(
                "INVALID_BRAND_NAME",
                f"Brand '{brand.name}' cannot be exported as a TypeScript constant.",
                {"brand": brand.name, "sites": list(brand.sites)},
            )

    for conflict in registry.conflicts:
        ctx: Dict[str, Any] = {
            "brand": conflict.brand,
            "sites": [conflict.kept_site, conflict.rejected_site],
        }
        if config.strict_brands:
            result.add_error("BRAND_CONFLICT", conflict.describe(), ctx)
        else:
            result.add_warning("BRAND_CONFLICT", conflict.describe(), ctx)
    return result


def validate_crud_models(datamodel: Datamodel, config: GeneratorConfig) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    if not config.generate_crud_schemas:
        return result

    known: Set[str] = set(datamodel.model_names)
    for list_name, names in (
        ("include_models", config.crud.include_models),
        ("exclude_models", config.crud.exclude_models),
    ):
        for name in names:
            if name not in known:
                result.add_warning(
                    "CRUD_UNKNOWN_MODEL",
                    f"crud.{list_name} names '{name}', which is not a model.",
                    {"model": name, "option": list_name},
                )

    for model in datamodel.models:
        if config.crud.includes(model.name) and not model.id_fields:
            result.add_info(
                "CRUD_MODEL_WITHOUT_ID",
                f"Model '{model.name}' has no identifier; its Get/Delete schemas "
                f"will be empty objects.",
                {"model": model.name},
            )
    return result


def _model_summary(model: ModelDefinition) -> str:
    return f"{model.name}({len(model.fields)})"


# ---------------------------------------------------------------------------
# Aggregate entry points
# ---------------------------------------------------------------------------


def validate_datamodel(datamodel: Datamodel, config: GeneratorConfig) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    result.merge(validate_model_names(datamodel))
    result.merge(validate_field_names(datamodel, config))
    result.merge(validate_enum_references(datamodel))
    result.merge(validate_relations(datamodel))
    return result


def validate_config(config: GeneratorConfig) -> ValidationResult:
    """Non-fatal configuration notes; fatal combinations fail in pydantic."""
    result: ValidationResult = ValidationResult()
    if config.generate_three_layers and not config.generate_brand_registry:
        result.add_info(
            "LAYERS_WITHOUT_BRANDS",
            "Layer schemas are generated without the brand registry; "
            "no brand substitution will happen.",
        )
    if config.generate_crud_schemas and not config.generate_three_layers:
        result.add_info(
            "CRUD_WITHOUT_LAYERS",
            "CRUD schemas are built from the base schemas because layer "
            "schemas are disabled.",
        )
    return result


def validate_full(datamodel: Datamodel, config: GeneratorConfig) -> ValidationResult:
    """
    **Master validation entry point.**

    Runs every datamodel, config and cross-cutting check.  ``generator.py``
    and ``cli.py`` call this before any generation pass.
    """
    logger.info(
        "Starting validation: %s",
        ", ".join(_model_summary(m) for m in datamodel.models),
    )

    result: ValidationResult = ValidationResult()
    result.merge(validate_datamodel(datamodel, config))
    result.merge(validate_config(config))
    result.merge(validate_brands(datamodel, config))
    result.merge(validate_crud_models(datamodel, config))

    if result.has_errors:
        logger.error("Validation FAILED. %s", result.summary())
    else:
        logger.info("Validation PASSED. %s", result.summary())
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationError",
    "ValidationResult",
    "validate_brands",
    "validate_config",
    "validate_crud_models",
    "validate_datamodel",
    "validate_enum_references",
    "validate_field_names",
    "validate_full",
    "validate_model_names",
    "validate_relations",
]

logger.debug("zodgen.validators loaded — %d public symbols.", len(__all__))
