# File: zodgen/__init__.py
"""
zodgen — Zod Schema Generator
==============================

Turns an annotated datamodel (JSON/YAML) into TypeScript source files that
define Zod v4 validation schemas: one base schema per model, an optional
registry of branded types, optional Database/Runtime/External layer
schemas, and optional Create/Update/List/Get/Delete operation schemas.

Architecture overview::

    ┌──────────────┐     ┌───────────────┐     ┌────────────────────┐
    │  CLI / Entry │────▶│  ZodGenerator  │────▶│ schemas / brands   │
    │   (cli.py)   │     │ (generator.py) │     │ layers / crud      │
    └──────────────┘     └───────┬───────┘     └────────────────────┘
                                 │
                    ┌────────────┼────────────┐
                    ▼            ▼            ▼
             ┌──────────┐ ┌───────────┐ ┌───────────┐
             │validators│ │  models   │ │ exporters │
             └──────────┘ └───────────┘ └───────────┘

Usage::

    # As a library
    from zodgen import ZodGenerator
    report = ZodGenerator().generate_from_file(Path("datamodel.yaml"), Path("./out"))

    # From the command line
    python -m zodgen --schema datamodel.yaml --output ./out --crud -v
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from zodgen.annotations import ZodAnnotation, parse_annotation
from zodgen.brands import BrandConflictError, BrandRegistry, BrandRegistryGenerator
from zodgen.crud import CrudSchemaGenerator
from zodgen.exporters import ExportManifest, ExportResult, SchemaExporter
from zodgen.fields import FieldSchemaEmitter
from zodgen.generator import (
    GenerationReport,
    ZodGenerator,
    generate_files,
    load_datamodel_file,
    parse_raw_datamodel,
)
from zodgen.layers import Layer, LayerGenerator
from zodgen.models import (
    CrudConfig,
    Datamodel,
    DatabaseProvider,
    EnumDefinition,
    FieldDefinition,
    FieldKind,
    GeneratedFile,
    GeneratorConfig,
    ModelDefinition,
    PaginationStrategy,
)
from zodgen.schemas import BaseSchemaGenerator
from zodgen.type_mapper import zod_primitive
from zodgen.validators import ValidationResult, validate_full

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    "__version__",
    "__license__",
    # Orchestrator
    "ZodGenerator",
    "GenerationReport",
    "generate_files",
    "load_datamodel_file",
    "parse_raw_datamodel",
    # Models
    "CrudConfig",
    "Datamodel",
    "DatabaseProvider",
    "EnumDefinition",
    "FieldDefinition",
    "FieldKind",
    "GeneratedFile",
    "GeneratorConfig",
    "ModelDefinition",
    "PaginationStrategy",
    # Components
    "ZodAnnotation",
    "parse_annotation",
    "zod_primitive",
    "FieldSchemaEmitter",
    "BaseSchemaGenerator",
    "BrandConflictError",
    "BrandRegistry",
    "BrandRegistryGenerator",
    "Layer",
    "LayerGenerator",
    "CrudSchemaGenerator",
    # Validation
    "ValidationResult",
    "validate_full",
    # Export
    "ExportManifest",
    "ExportResult",
    "SchemaExporter",
]
