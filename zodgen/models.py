# File: zodgen/models.py
"""
zodgen - Core Data Models
==========================
Pydantic V2 models describing the annotated data model that drives
generation, plus the generator configuration.  These models are the single
source of truth for the pipeline:

    Datamodel Parsing → Validation → Brand / Base / Layer / CRUD passes → Export

Everything here is immutable input for the duration of a run; derived
artifacts (annotations, brands, layer overrides, CRUD sets) are rebuilt from
scratch on every generation.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.models")

# ---------------------------------------------------------------------------
# Enums: fixed sets used across the entire project
# ---------------------------------------------------------------------------


class DatabaseProvider(str, Enum):
    """Target database engines understood by the type mapper."""

    POSTGRESQL = "postgresql"
    COCKROACHDB = "cockroachdb"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    SQLSERVER = "sqlserver"


class FieldKind(str, Enum):
    """What a field's declared ``type`` refers to."""

    SCALAR = "scalar"
    ENUM = "enum"
    OBJECT = "object"
    UNSUPPORTED = "unsupported"


class PaginationStrategy(str, Enum):
    """Pagination fields emitted on List schemas."""

    OFFSET = "offset"
    CURSOR = "cursor"
    BOTH = "both"


# Scalar type names accepted in field declarations
SCALAR_TYPES: FrozenSet[str] = frozenset(
    {
        "String",
        "Boolean",
        "Int",
        "BigInt",
        "Float",
        "Decimal",
        "DateTime",
        "Json",
        "Bytes",
    }
)


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Data model elements
# ---------------------------------------------------------------------------


class EnumDefinition(BaseModel):
    """A named enumeration whose values are emitted as a constant object."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Enum type name.")
    values: List[str] = Field(..., min_length=1, description="Ordered enum values.")
    documentation: Optional[str] = Field(
        default=None, description="Free-text documentation."
    )

    @field_validator("values")
    @classmethod
    def _unique_values(cls, v: List[str]) -> List[str]:
        if len(v) != len(set(v)):
            dupes: List[str] = sorted({x for x in v if v.count(x) > 1})
            raise ValueError(f"Duplicate enum values detected: {dupes}")
        return v


class DefaultFunction(BaseModel):
    """Named default-value generator, e.g. ``cuid()``, ``uuid()`` or ``now()``."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Generator function name.")
    args: List[Any] = Field(default_factory=list, description="Function arguments.")


class FieldDefinition(BaseModel):
    """
    One field of a model.

    ``kind`` says how ``type`` is interpreted: a scalar name, an enum name,
    or (for ``object``) the name of another model reached through a relation.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Field name.")
    type: str = Field(..., min_length=1, description="Declared type name.")
    kind: FieldKind = Field(default=FieldKind.SCALAR, description="Field kind.")
    is_required: bool = Field(default=True, description="False when nullable.")
    is_list: bool = Field(default=False, description="List-valued field?")
    is_id: bool = Field(default=False, description="Part of the primary key?")
    is_unique: bool = Field(default=False, description="Has a unique constraint?")
    is_updated_at: bool = Field(
        default=False, description="Auto-maintained update timestamp?"
    )
    has_default_value: bool = Field(default=False, description="Has a default?")
    default: Optional[Union[DefaultFunction, bool, int, float, str, List[Any]]] = Field(
        default=None, description="Literal default or named generator."
    )
    db_name: Optional[str] = Field(
        default=None, description="Storage column name override."
    )
    documentation: Optional[str] = Field(
        default=None, description="Free-text documentation with annotations."
    )
    relation_from_fields: List[str] = Field(
        default_factory=list,
        description="Local scalar fields holding the foreign key (object fields).",
    )
    relation_to_fields: List[str] = Field(
        default_factory=list,
        description="Referenced fields on the target model (object fields).",
    )

    @field_validator("kind", mode="before")
    @classmethod
    def _relation_alias(cls, v: Any) -> Any:
        if v == "relation":
            return FieldKind.OBJECT.value
        return v

    @model_validator(mode="after")
    def _default_implies_flag(self) -> "FieldDefinition":
        if self.default is not None and not self.has_default_value:
            object.__setattr__(self, "has_default_value", True)
        return self

    @computed_field  # type: ignore[misc]
    @property
    def storage_name(self) -> str:
        return self.db_name or self.name

    @computed_field  # type: ignore[misc]
    @property
    def default_function(self) -> Optional[str]:
        """Name of the default generator, or None for literal/no default."""
        if isinstance(self.default, DefaultFunction):
            return self.default.name
        return None

    @property
    def is_nullable(self) -> bool:
        return not self.is_required

    @property
    def is_relation(self) -> bool:
        return self.kind == FieldKind.OBJECT.value

    def __repr__(self) -> str:
        return f"<Field {self.name}: {self.type} ({self.kind})>"


class ModelDefinition(BaseModel):
    """A model: an ordered list of fields plus optional documentation."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Model name.")
    db_name: Optional[str] = Field(
        default=None, description="Storage table name override."
    )
    documentation: Optional[str] = Field(
        default=None, description="Model-level documentation with annotations."
    )
    fields: List[FieldDefinition] = Field(
        default_factory=list, description="Ordered fields."
    )

    _field_map: Dict[str, FieldDefinition] = {}

    @model_validator(mode="after")
    def _build_field_map(self) -> "ModelDefinition":
        object.__setattr__(self, "_field_map", {f.name: f for f in self.fields})
        return self

    def get_field(self, name: str) -> Optional[FieldDefinition]:
        """O(1) field lookup by name."""
        return self._field_map.get(name)

    @property
    def id_fields(self) -> List[FieldDefinition]:
        return [f for f in self.fields if f.is_id]

    @property
    def scalar_fields(self) -> List[FieldDefinition]:
        """Fields that appear in emitted object schemas."""
        return [
            f
            for f in self.fields
            if f.kind in (FieldKind.SCALAR.value, FieldKind.ENUM.value)
        ]

    def foreign_key_target(self, field_name: str) -> Optional[str]:
        """Return the model referenced through *field_name*, if it holds a FK."""
        for candidate in self.fields:
            if candidate.is_relation and field_name in candidate.relation_from_fields:
                return candidate.type
        return None

    def __repr__(self) -> str:
        return f"<Model {self.name} ({len(self.fields)} fields)>"


class Datamodel(BaseModel):
    """
    The root input: every model and enum plus the target engine.

    Invariant: ``_model_map`` / ``_enum_map`` are O(1) lookup caches built
    once at construction.
    """

    model_config = _SHARED_CONFIG

    provider: DatabaseProvider = Field(
        default=DatabaseProvider.POSTGRESQL, description="Target database engine."
    )
    models: List[ModelDefinition] = Field(
        ..., min_length=1, description="All models, in declaration order."
    )
    enums: List[EnumDefinition] = Field(
        default_factory=list, description="All enums, in declaration order."
    )
    source_file: Optional[str] = Field(
        default=None, description="File the datamodel was loaded from."
    )

    _model_map: Dict[str, ModelDefinition] = {}
    _enum_map: Dict[str, EnumDefinition] = {}

    @model_validator(mode="after")
    def _build_maps(self) -> "Datamodel":
        object.__setattr__(self, "_model_map", {m.name: m for m in self.models})
        object.__setattr__(self, "_enum_map", {e.name: e for e in self.enums})
        return self

    def get_model(self, name: str) -> Optional[ModelDefinition]:
        return self._model_map.get(name)

    def get_enum(self, name: str) -> Optional[EnumDefinition]:
        return self._enum_map.get(name)

    @property
    def model_names(self) -> List[str]:
        return [m.name for m in self.models]

    @property
    def total_fields(self) -> int:
        return sum(len(m.fields) for m in self.models)


# ---------------------------------------------------------------------------
# Generator configuration
# ---------------------------------------------------------------------------


class CrudConfig(BaseModel):
    """Settings for the CRUD schema family."""

    model_config = _SHARED_CONFIG

    output_dir: str = Field(default="crud", min_length=1, description="Family directory.")
    include_models: List[str] = Field(
        default_factory=list, description="Only these models (takes precedence)."
    )
    exclude_models: List[str] = Field(
        default_factory=list, description="Skip these models."
    )
    pagination_strategy: PaginationStrategy = Field(
        default=PaginationStrategy.OFFSET, description="Default pagination fields."
    )
    max_page_size: int = Field(
        default=100, ge=1, le=10000, description="Upper bound for limit/take."
    )
    generate_index: bool = Field(default=True, description="Write crud/index.ts.")
    timestamp_field_names: List[str] = Field(
        default_factory=lambda: ["created_at", "createdAt", "updated_at", "updatedAt"],
        description="Storage names treated as auto-maintained timestamps.",
    )

    def includes(self, model_name: str) -> bool:
        """Apply the include/exclude lists to *model_name*."""
        if self.include_models:
            return model_name in self.include_models
        return model_name not in self.exclude_models


class GeneratorConfig(BaseModel):
    """
    Master configuration controlling which artifact families are emitted
    and where they go.
    """

    model_config = _SHARED_CONFIG

    # -- Naming -------------------------------------------------------------
    camel_case: bool = Field(
        default=False, description="Emit field keys in camelCase."
    )

    # -- Base schemas -------------------------------------------------------
    generate_zod_schemas: bool = Field(
        default=True, description="Emit the base schema family."
    )
    zod_schemas_dir: str = Field(
        default="schemas", min_length=1, description="Base family directory."
    )
    enum_file_name: str = Field(
        default="enums.ts", min_length=4, description="Enum constants file name."
    )
    use_default_validators: bool = Field(
        default=True,
        description="Inject cuid2/uuid/int validators inferred from defaults.",
    )

    # -- Brands -------------------------------------------------------------
    generate_brand_registry: bool = Field(
        default=False, description="Emit the brand registry family."
    )
    brands_dir: str = Field(default="brands", min_length=1, description="Brand directory.")
    strict_brands: bool = Field(
        default=True, description="Fail the run on conflicting brand declarations."
    )

    # -- Layers -------------------------------------------------------------
    generate_three_layers: bool = Field(
        default=False, description="Emit Database/Runtime/External layer schemas."
    )
    layers_dir: str = Field(default="layers", min_length=1, description="Layer directory.")

    # -- CRUD ---------------------------------------------------------------
    generate_crud_schemas: bool = Field(
        default=False, description="Emit Create/Update/List/Get/Delete schemas."
    )
    crud: CrudConfig = Field(default_factory=CrudConfig, description="CRUD settings.")

    # -- Output -------------------------------------------------------------
    write_manifest: bool = Field(
        default=False, description="Write zodgen-manifest.json at the output root."
    )
    concurrent_writes: bool = Field(
        default=True, description="Write files on a thread pool."
    )

    @property
    def family_dirs(self) -> Dict[str, str]:
        """Enabled family name → output directory."""
        dirs: Dict[str, str] = {}
        if self.generate_zod_schemas:
            dirs["schemas"] = self.zod_schemas_dir
        if self.generate_brand_registry:
            dirs["brands"] = self.brands_dir
        if self.generate_three_layers:
            dirs["layers"] = self.layers_dir
        if self.generate_crud_schemas:
            dirs["crud"] = self.crud.output_dir
        return dirs

    @model_validator(mode="after")
    def _validate_family_combination(self) -> "GeneratorConfig":
        if not self.generate_zod_schemas:
            dependants: List[str] = []
            if self.generate_three_layers:
                dependants.append("generate_three_layers")
            if self.generate_crud_schemas:
                dependants.append("generate_crud_schemas")
            if dependants:
                raise ValueError(
                    f"{', '.join(dependants)} require generate_zod_schemas: "
                    f"the generated files import the base schemas."
                )

        seen: Dict[str, str] = {}
        for family, directory in self.family_dirs.items():
            key: str = directory.strip("/").lower()
            if key in seen:
                raise ValueError(
                    f"Families '{seen[key]}' and '{family}' share the output "
                    f"directory '{directory}'; each family directory is cleared "
                    f"before writing."
                )
            seen[key] = family

        if not self.enum_file_name.endswith(".ts"):
            raise ValueError(
                f"enum_file_name must end with '.ts', got '{self.enum_file_name}'."
            )
        return self


# ---------------------------------------------------------------------------
# Generated output container
# ---------------------------------------------------------------------------


class GeneratedFile(BaseModel):
    """A single emitted source file awaiting export."""

    model_config = _SHARED_CONFIG

    family: str = Field(..., description="Artifact family (schemas/brands/layers/crud).")
    relative_path: str = Field(..., min_length=1, description="Path under the output root.")
    content: str = Field(..., description="Full file text.")

    @computed_field  # type: ignore[misc]
    @property
    def line_count(self) -> int:
        return self.content.count("\n") + 1 if self.content else 0


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SCALAR_TYPES",
    "CrudConfig",
    "Datamodel",
    "DatabaseProvider",
    "DefaultFunction",
    "EnumDefinition",
    "FieldDefinition",
    "FieldKind",
    "GeneratedFile",
    "GeneratorConfig",
    "ModelDefinition",
    "PaginationStrategy",
]

logger.debug("zodgen.models loaded — %d public symbols.", len(__all__))
