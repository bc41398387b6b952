# File: zodgen/generator.py
"""
zodgen - Master Generation Pipeline (Orchestrator)
===================================================

Connects every phase together:

    Datamodel Input → Validation → Brand / Base / Layer / CRUD → Export

The ``ZodGenerator`` class provides both a programmatic API and the
backend for the CLI.

Workflow::

    1. Load the datamodel from a JSON/YAML file (or accept in-memory objects).
    2. Parse into ``Datamodel`` + ``GeneratorConfig`` (models.py).
    3. Run full validation (validators.py).
    4. Build the brand registry (brands.py).
    5. Render the enabled families in memory (schemas, brands, layers, crud).
    6. Hand every file to ``SchemaExporter`` (exporters.py).
    7. Return a ``GenerationReport`` with metrics and status.

Generation is all-or-nothing in memory: if any step before export fails,
nothing is written.  Export errors are per file.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError as PydanticValidationError

from zodgen.brands import BrandConflictError, BrandRegistry, BrandRegistryGenerator
from zodgen.crud import CrudSchemaGenerator
from zodgen.exporters import ExportManifest, ExportResult, SchemaExporter
from zodgen.layers import LayerGenerator
from zodgen.models import Datamodel, GeneratedFile, GeneratorConfig
from zodgen.schemas import BaseSchemaGenerator
from zodgen.utils import Timer, count_lines
from zodgen.validators import ValidationResult, validate_full

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.generator")

_CONFIG_KEYS: Tuple[str, ...] = ("config", "generator_config")

EXIT_SUCCESS: int = 0
EXIT_VALIDATION: int = 1
EXIT_GENERATION: int = 2
EXIT_EXPORT: int = 3
EXIT_INPUT: int = 4


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Report produced by ``ZodGenerator.generate()``.

    ``files`` holds the rendered files even on a dry run, so callers can
    inspect output without touching the filesystem.
    """

    success: bool = False
    source_file: str = ""
    output_directory: str = ""
    provider: str = ""
    dry_run: bool = False

    # Metrics
    total_models: int = 0
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_elapsed_seconds: float = 0.0

    # Sub-reports
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    input_errors: List[str] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    generation_warnings: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)

    files: List[GeneratedFile] = field(default_factory=list)
    manifest: Optional[ExportManifest] = None

    @property
    def exit_code(self) -> int:
        """CLI exit status for the first failing stage."""
        if self.input_errors:
            return EXIT_INPUT
        if self.validation_errors:
            return EXIT_VALIDATION
        if self.generation_errors:
            return EXIT_GENERATION
        if self.export_errors:
            return EXIT_EXPORT
        return EXIT_SUCCESS

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        if self.dry_run:
            status += " (dry run)"
        lines.append(f"{'='*60}")
        lines.append("  zodgen — Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Source:           {self.source_file or '<in-memory>'}")
        lines.append(f"  Output:           {self.output_directory}")
        lines.append(f"  Provider:         {self.provider}")
        lines.append(f"  Models processed: {self.total_models}")
        lines.append(f"  Files generated:  {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        sections: Tuple[Tuple[str, str, List[str]], ...] = (
            ("Input Errors", "✗", self.input_errors),
            ("Validation Errors", "✗", self.validation_errors),
            ("Validation Warnings", "⚠", self.validation_warnings),
            ("Generation Errors", "✗", self.generation_errors),
            ("Generation Warnings", "⚠", self.generation_warnings),
            ("Export Errors", "✗", self.export_errors),
        )
        for title, icon, items in sections:
            if not items:
                continue
            lines.append(f"{'─'*60}")
            lines.append(f"  {title} ({len(items)}):")
            for item in items:
                lines.append(f"    {icon} {item}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Datamodel loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a JSON object at top level, got {type(data).__name__}."
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}."
        )
    return data


def load_datamodel_file(path: Path) -> Dict[str, Any]:
    """
    Load a datamodel file (JSON or YAML), dispatching on the extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Datamodel file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Datamodel path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    # YAML is a superset of JSON
    logger.info("Unknown extension '%s' — parsing as YAML.", suffix)
    return _load_yaml_file(path)


def _merge_overrides(target: Dict[str, Any], overrides: Dict[str, Any]) -> None:
    """Recursive dict update; nested mappings (``crud``) are merged, not replaced."""
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_overrides(target[key], value)
        else:
            target[key] = value


def apply_overrides(
    raw: Dict[str, Any],
    config_overrides: Optional[Dict[str, Any]] = None,
    provider: Optional[str] = None,
) -> None:
    """Merge CLI-level overrides into a raw input mapping, in place."""
    if config_overrides:
        config_key: str = next((k for k in _CONFIG_KEYS if k in raw), "config")
        if not isinstance(raw.get(config_key), dict):
            raw[config_key] = {}
        _merge_overrides(raw[config_key], config_overrides)
    if provider is not None:
        body: Any = raw.get("datamodel", raw)
        if isinstance(body, dict):
            body["provider"] = provider


def parse_raw_datamodel(raw: Dict[str, Any]) -> Tuple[Datamodel, GeneratorConfig]:
    """
    Parse a raw dictionary (from JSON/YAML) into validated pydantic models.

    Expected top-level keys:
        - ``provider`` (or ``datasource.provider``), ``models``, ``enums``;
          these may also be nested under ``datamodel``.
        - ``config`` or ``generator_config``: the generator settings.

    Raises:
        ValueError: If required keys are missing or validation fails.
    """
    body: Any = raw.get("datamodel", raw)
    if not isinstance(body, dict) or "models" not in body:
        raise ValueError(
            "Cannot find a datamodel in input. Expected a top-level 'models' list "
            "(optionally nested under 'datamodel')."
        )

    datamodel_data: Dict[str, Any] = {
        "models": body["models"],
        "enums": body.get("enums") or [],
    }
    provider: Any = body.get("provider")
    if provider is None and isinstance(body.get("datasource"), dict):
        provider = body["datasource"].get("provider")
    if provider is not None:
        datamodel_data["provider"] = provider
    if raw.get("source_file"):
        datamodel_data["source_file"] = raw["source_file"]

    config_data: Optional[Dict[str, Any]] = None
    for key in _CONFIG_KEYS:
        if key in raw:
            config_data = raw[key] or {}
            break
    if config_data is None:
        logger.info("No generator config found in input — using defaults.")
        config_data = {}

    try:
        datamodel: Datamodel = Datamodel.model_validate(datamodel_data)
    except PydanticValidationError as exc:
        raise ValueError(f"Datamodel validation failed: {exc}") from exc

    try:
        config: GeneratorConfig = GeneratorConfig.model_validate(config_data)
    except PydanticValidationError as exc:
        raise ValueError(f"Config validation failed: {exc}") from exc

    return datamodel, config


# ---------------------------------------------------------------------------
# In-memory generation
# ---------------------------------------------------------------------------


def generate_files(
    datamodel: Datamodel,
    config: GeneratorConfig,
    warnings: Optional[List[str]] = None,
) -> List[GeneratedFile]:
    """
    Render every enabled family for *datamodel*, without touching disk.

    Family order is fixed (schemas, brands, layers, crud) and each family
    orders its own files, so the result is identical across runs.

    Raises:
        BrandConflictError: Two sites declare one brand with different
            chains and ``config.strict_brands`` is set.
    """
    registry: BrandRegistry = BrandRegistry.from_datamodel(
        datamodel, strict=config.strict_brands
    )
    active_registry: Optional[BrandRegistry] = (
        registry if config.generate_brand_registry else None
    )

    files: List[GeneratedFile] = []
    collected: List[str] = []

    base: Optional[BaseSchemaGenerator] = None
    if config.generate_zod_schemas:
        base = BaseSchemaGenerator(config, datamodel)
        files.extend(base.generate_all())
        collected.extend(base.warnings)

    if config.generate_brand_registry:
        files.extend(BrandRegistryGenerator(config, registry).generate_all())

    layers: Optional[LayerGenerator] = None
    if config.generate_three_layers and base is not None:
        layers = LayerGenerator(config, base, active_registry)
        files.extend(layers.generate_all())

    if config.generate_crud_schemas and base is not None:
        crud = CrudSchemaGenerator(config, base, layers, active_registry)
        files.extend(crud.generate_all())
        collected.extend(crud.warnings)

    collected.extend(conflict.describe() for conflict in registry.conflicts)
    if warnings is not None:
        warnings.extend(collected)
    return files


# ---------------------------------------------------------------------------
# ZodGenerator: master orchestrator
# ---------------------------------------------------------------------------


class ZodGenerator:
    """
    Master pipeline orchestrator.

    Usage::

        generator = ZodGenerator()

        # From a file
        report = generator.generate_from_file(
            schema_path=Path("datamodel.yaml"),
            output_dir=Path("./src/generated"),
        )

        # From in-memory objects
        report = generator.generate(datamodel, config, Path("./src/generated"))

        print(report.summary())

    The generator is reusable — create once, call generate() many times.
    """

    def __init__(
        self,
        *,
        fail_on_warnings: bool = False,
        clean_output: bool = True,
    ) -> None:
        """
        Args:
            fail_on_warnings: Treat validation warnings as errors.
            clean_output: Clear each enabled family directory before writing.
        """
        self._fail_on_warnings: bool = fail_on_warnings
        self._clean_output: bool = clean_output

        logger.debug(
            "ZodGenerator initialised: fail_on_warnings=%s, clean=%s.",
            fail_on_warnings,
            clean_output,
        )

    # -----------------------------------------------------------------
    # Public: generate from file
    # -----------------------------------------------------------------

    def generate_from_file(
        self,
        schema_path: Path,
        output_dir: Path,
        *,
        config_overrides: Optional[Dict[str, Any]] = None,
        provider: Optional[str] = None,
        dry_run: bool = False,
    ) -> GenerationReport:
        """
        Full pipeline: load file → parse → validate → generate → export.

        Args:
            schema_path: Path to a JSON/YAML datamodel file.
            output_dir: Root directory for every family.
            config_overrides: Values merged over the file's config mapping.
            provider: Overrides the file's provider.
            dry_run: Render and report, but write nothing.
        """
        report: GenerationReport = GenerationReport(dry_run=dry_run)
        report.source_file = str(schema_path)
        report.output_directory = str(output_dir.resolve())
        pipeline_start: float = time.perf_counter()

        # Step 1: Load file
        with Timer("load_datamodel") as t_load:
            try:
                raw_data: Dict[str, Any] = load_datamodel_file(schema_path)
            except (FileNotFoundError, ValueError) as exc:
                return self._input_failure(report, "Load Datamodel", t_load, exc, pipeline_start)

        logger.info("Loaded datamodel file: %s (%d top-level keys).", schema_path, len(raw_data))
        report.step_metrics.append(GenerationStepMetric(
            step_name="Load Datamodel",
            success=True,
            elapsed_seconds=t_load.elapsed,
            detail=f"from {schema_path.name}",
        ))

        # Step 2: Parse raw data
        with Timer("parse_datamodel") as t_parse:
            try:
                apply_overrides(raw_data, config_overrides, provider)
                raw_data.setdefault("source_file", str(schema_path))
                datamodel, config = parse_raw_datamodel(raw_data)
            except ValueError as exc:
                return self._input_failure(report, "Parse Datamodel", t_parse, exc, pipeline_start)

        logger.info(
            "Parsed datamodel: %d models, %d enums, provider=%s.",
            len(datamodel.models),
            len(datamodel.enums),
            datamodel.provider,
        )
        report.step_metrics.append(GenerationStepMetric(
            step_name="Parse Datamodel",
            success=True,
            elapsed_seconds=t_parse.elapsed,
            detail=f"{len(datamodel.models)} models parsed",
        ))

        return self._run_pipeline(datamodel, config, output_dir, report, pipeline_start)

    # -----------------------------------------------------------------
    # Public: generate from in-memory objects
    # -----------------------------------------------------------------

    def generate(
        self,
        datamodel: Datamodel,
        config: GeneratorConfig,
        output_dir: Path,
        *,
        dry_run: bool = False,
    ) -> GenerationReport:
        """Full pipeline from pre-parsed datamodel and config objects."""
        report: GenerationReport = GenerationReport(dry_run=dry_run)
        report.source_file = datamodel.source_file or ""
        report.output_directory = str(output_dir.resolve())
        return self._run_pipeline(
            datamodel, config, output_dir, report, time.perf_counter()
        )

    # -----------------------------------------------------------------
    # Internal: master pipeline
    # -----------------------------------------------------------------

    def _run_pipeline(
        self,
        datamodel: Datamodel,
        config: GeneratorConfig,
        output_dir: Path,
        report: GenerationReport,
        pipeline_start: float,
    ) -> GenerationReport:
        report.provider = str(datamodel.provider)
        report.total_models = len(datamodel.models)

        if not self._step_validate(datamodel, config, report):
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        files: List[GeneratedFile] = self._step_generate(datamodel, config, report)
        if report.generation_errors:
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        if report.dry_run:
            logger.info("Dry run: %d files rendered, nothing written.", len(files))
        else:
            self._step_export(files, config, output_dir, report)

        return self._finalise_report(report, time.perf_counter() - pipeline_start)

    def _input_failure(
        self,
        report: GenerationReport,
        step_name: str,
        timer: Timer,
        exc: Exception,
        pipeline_start: float,
    ) -> GenerationReport:
        logger.error("%s failed: %s", step_name, exc)
        report.input_errors.append(str(exc))
        report.step_metrics.append(GenerationStepMetric(
            step_name=step_name,
            success=False,
            elapsed_seconds=timer.elapsed,
            detail=str(exc).splitlines()[0] if str(exc) else type(exc).__name__,
        ))
        return self._finalise_report(report, time.perf_counter() - pipeline_start)

    # -----------------------------------------------------------------
    # Pipeline step: Validation
    # -----------------------------------------------------------------

    def _step_validate(
        self,
        datamodel: Datamodel,
        config: GeneratorConfig,
        report: GenerationReport,
    ) -> bool:
        """Return True when generation may proceed."""
        with Timer("validation") as t:
            result: ValidationResult = validate_full(datamodel, config)

        report.validation_errors.extend(str(e) for e in result.errors)
        report.validation_warnings.extend(str(w) for w in result.warnings)

        if result.has_errors:
            detail: str = f"{len(result.errors)} error(s)"
        elif result.has_warnings:
            detail = f"{len(result.warnings)} warning(s)"
        else:
            detail = "all checks passed"

        proceed: bool = result.is_valid and not (
            self._fail_on_warnings and result.has_warnings
        )
        if result.is_valid and not proceed:
            report.validation_errors.append(
                f"{len(result.warnings)} warning(s) treated as errors (--fail-on-warnings)."
            )

        report.step_metrics.append(GenerationStepMetric(
            step_name="Validate Datamodel",
            success=proceed,
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))

        for err in result.errors:
            logger.error("  ✗ %s", err)
        for warn in result.warnings:
            logger.warning("  ⚠ %s", warn)
        return proceed

    # -----------------------------------------------------------------
    # Pipeline step: Code generation
    # -----------------------------------------------------------------

    def _step_generate(
        self,
        datamodel: Datamodel,
        config: GeneratorConfig,
        report: GenerationReport,
    ) -> List[GeneratedFile]:
        files: List[GeneratedFile] = []
        warnings: List[str] = []

        with Timer("code_generation") as t:
            try:
                files = generate_files(datamodel, config, warnings)
            except BrandConflictError as exc:
                report.generation_errors.append(str(exc))
                logger.error("Generation aborted: %s", exc)

        report.generation_warnings.extend(warnings)
        report.files = files
        report.total_files = len(files)
        report.total_lines = sum(count_lines(f.content) for f in files)
        report.total_bytes = sum(len(f.content.encode("utf-8")) for f in files)

        families: List[str] = sorted({f.family for f in files})
        detail_str: str = (
            f"{len(files)} files, ~{report.total_lines:,} lines, "
            f"families: {', '.join(families) or 'none'}"
        )
        report.step_metrics.append(GenerationStepMetric(
            step_name="Code Generation",
            success=not report.generation_errors,
            elapsed_seconds=t.elapsed,
            detail=detail_str,
        ))
        if not report.generation_errors:
            logger.info("Code generation complete: %s in %.3fs.", detail_str, t.elapsed)
        return files

    # -----------------------------------------------------------------
    # Pipeline step: Export
    # -----------------------------------------------------------------

    def _step_export(
        self,
        files: List[GeneratedFile],
        config: GeneratorConfig,
        output_dir: Path,
        report: GenerationReport,
    ) -> None:
        with Timer("export") as t:
            exporter: SchemaExporter = SchemaExporter(
                config,
                output_dir,
                clean_before_export=self._clean_output,
            )
            export_result: ExportResult = exporter.export(files)

        report.total_files = export_result.manifest.total_files
        report.total_bytes = export_result.manifest.total_bytes
        report.total_lines = export_result.manifest.total_lines
        report.export_errors.extend(export_result.errors)
        report.manifest = export_result.manifest

        report.step_metrics.append(GenerationStepMetric(
            step_name="Export to Filesystem",
            success=export_result.success,
            elapsed_seconds=t.elapsed,
            detail=(
                f"{export_result.manifest.total_files} files, "
                f"{export_result.manifest.total_bytes:,} bytes"
            ),
        ))

    # -----------------------------------------------------------------
    # Internal: finalise report
    # -----------------------------------------------------------------

    def _finalise_report(
        self,
        report: GenerationReport,
        total_elapsed: float,
    ) -> GenerationReport:
        report.total_elapsed_seconds = total_elapsed
        report.success = report.exit_code == EXIT_SUCCESS
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "EXIT_EXPORT",
    "EXIT_GENERATION",
    "EXIT_INPUT",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION",
    "GenerationReport",
    "GenerationStepMetric",
    "ZodGenerator",
    "apply_overrides",
    "generate_files",
    "load_datamodel_file",
    "parse_raw_datamodel",
]

logger.debug("zodgen.generator loaded — %d public symbols.", len(__all__))
