# File: zodgen/exporters.py
"""
zodgen - Output Assembler
==========================

Responsible for:
    1. Clearing each enabled family directory before it is rewritten.
    2. Writing every generated file atomically (temp file, then rename).
    3. Recording a per-file error without aborting the rest of the batch.
    4. Optionally writing ``zodgen-manifest.json`` with checksums.

Files never share a path, so they may be written concurrently; the
assembler joins every write before it reports.  The manifest carries no
timestamp so two runs over the same input produce identical trees.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from zodgen.models import GeneratedFile, GeneratorConfig
from zodgen.utils import Timer, clean_directory, count_lines, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.exporters")

MANIFEST_FILE_NAME: str = "zodgen-manifest.json"

_MAX_WRITE_WORKERS: int = 8


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    family: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """Every exported file, serialisable to JSON for reproducibility checks."""

    generator_version: str = ""
    families: List[str] = field(default_factory=list)
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    files: List[FileRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generator_version": self.generator_version,
            "families": list(self.families),
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "files": [
                {
                    "relative_path": f.relative_path,
                    "family": f.family,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False) + "\n"


@dataclass(frozen=True, slots=True)
class ExportResult:
    """
    Final result returned by ``SchemaExporter.export()``.

    ``success`` is False as soon as one file could not be written.
    """

    success: bool
    manifest: ExportManifest
    errors: Tuple[str, ...]
    warnings: Tuple[str, ...]
    elapsed_seconds: float

    @property
    def files_written(self) -> int:
        return self.manifest.total_files


# ---------------------------------------------------------------------------
# SchemaExporter class
# ---------------------------------------------------------------------------


class SchemaExporter:
    """
    Writes generated files under an output root.

    Usage::

        exporter = SchemaExporter(config, output_dir=Path("./src/generated"))
        result = exporter.export(files)
        print(result.manifest.to_json())

    Thread-safety: NOT thread-safe.  Use one exporter per output directory.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        output_dir: Path,
        *,
        clean_before_export: bool = True,
        atomic_writes: bool = True,
    ) -> None:
        """
        Args:
            config: Generator configuration (family directories, manifest,
                concurrency).
            output_dir: Root directory for every family.
            clean_before_export: Clear each enabled family directory first.
            atomic_writes: Use the write-to-temp + rename pattern.
        """
        self._config: GeneratorConfig = config
        self._output_dir: Path = output_dir.resolve()
        self._clean_before_export: bool = clean_before_export
        self._atomic_writes: bool = atomic_writes

        self._errors: List[str] = []
        self._warnings: List[str] = []
        self._file_records: List[FileRecord] = []

        logger.debug(
            "SchemaExporter initialised: output_dir=%s, atomic=%s, concurrent=%s.",
            self._output_dir,
            self._atomic_writes,
            self._config.concurrent_writes,
        )

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def export(self, files: Sequence[GeneratedFile]) -> ExportResult:
        """Write *files* and return the outcome; never raises for I/O errors."""
        with Timer("export") as timer:
            try:
                self._output_dir.mkdir(parents=True, exist_ok=True)
                failed_families: Set[str] = self._pre_export_cleanup()
                self._write_generated_files(
                    [f for f in files if f.family not in failed_families]
                )
                if self._config.write_manifest:
                    self._write_manifest_file()
            except OSError as exc:
                error_msg: str = f"Fatal export error: {type(exc).__name__}: {exc}"
                self._errors.append(error_msg)
                logger.error(error_msg, exc_info=True)

        manifest: ExportManifest = self._build_manifest()
        success: bool = len(self._errors) == 0

        result: ExportResult = ExportResult(
            success=success,
            manifest=manifest,
            errors=tuple(self._errors),
            warnings=tuple(self._warnings),
            elapsed_seconds=timer.elapsed,
        )

        if success:
            logger.info(
                "Export completed successfully: %d files, %d bytes, %.3fs.",
                manifest.total_files,
                manifest.total_bytes,
                timer.elapsed,
            )
        else:
            logger.error(
                "Export completed with %d error(s) in %.3fs.",
                len(self._errors),
                timer.elapsed,
            )
        return result

    # -----------------------------------------------------------------
    # Internal: directory management
    # -----------------------------------------------------------------

    def _pre_export_cleanup(self) -> Set[str]:
        """
        Clear every enabled family directory; other content is left alone.

        Returns the families whose directory could not be cleared.  Each
        failure is recorded as an error and that family is not written.
        """
        failed: Set[str] = set()
        if not self._clean_before_export:
            return failed

        for family, directory in sorted(self._config.family_dirs.items()):
            family_path: Path = self._output_dir / directory
            try:
                clean_directory(family_path)
                logger.debug("Cleared %s directory: %s", family, family_path)
            except OSError as exc:
                error_msg: str = (
                    f"Could not clear {family_path}: {type(exc).__name__}: {exc}; "
                    f"skipping the {family} family."
                )
                self._errors.append(error_msg)
                logger.error(error_msg)
                failed.add(family)
        return failed

    def _resolve_target(self, relative_path: str) -> Path:
        target: Path = (self._output_dir / relative_path).resolve()
        if self._output_dir not in target.parents:
            raise ValueError(f"path escapes the output directory: {relative_path}")
        return target

    # -----------------------------------------------------------------
    # Internal: file writing
    # -----------------------------------------------------------------

    def _write_generated_files(self, files: Sequence[GeneratedFile]) -> None:
        outcomes: List[Tuple[GeneratedFile, Optional[FileRecord], Optional[str]]]
        if self._config.concurrent_writes and len(files) > 1:
            workers: int = min(_MAX_WRITE_WORKERS, len(files))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="zodgen-write") as pool:
                outcomes = list(pool.map(self._write_guarded, files))
        else:
            outcomes = [self._write_guarded(f) for f in files]

        for generated, record, error in outcomes:
            if record is not None:
                self._file_records.append(record)
            if error is not None:
                self._errors.append(error)
                logger.error(error)

        logger.info(
            "Wrote %d of %d generated files to %s.",
            len(self._file_records),
            len(files),
            self._output_dir,
        )

    def _write_guarded(
        self, generated: GeneratedFile
    ) -> Tuple[GeneratedFile, Optional[FileRecord], Optional[str]]:
        """Write one file, turning any failure into an error message."""
        try:
            return generated, self._write_single_file(generated), None
        except (OSError, ValueError) as exc:
            return (
                generated,
                None,
                f"Failed to write {generated.relative_path}: {type(exc).__name__}: {exc}",
            )

    def _write_single_file(self, generated: GeneratedFile) -> FileRecord:
        target: Path = self._resolve_target(generated.relative_path)
        size_bytes: int = write_file(target, generated.content, atomic=self._atomic_writes)
        logger.debug("Wrote file: %s (%d bytes).", generated.relative_path, size_bytes)
        return FileRecord(
            relative_path=generated.relative_path,
            family=generated.family,
            size_bytes=size_bytes,
            line_count=count_lines(generated.content),
            sha256=sha256_hex(generated.content),
        )

    # -----------------------------------------------------------------
    # Internal: manifest
    # -----------------------------------------------------------------

    def _build_manifest(self) -> ExportManifest:
        import zodgen

        records: List[FileRecord] = sorted(
            self._file_records, key=lambda r: r.relative_path
        )
        return ExportManifest(
            generator_version=zodgen.__version__,
            families=sorted(self._config.family_dirs),
            total_files=len(records),
            total_bytes=sum(r.size_bytes for r in records),
            total_lines=sum(r.line_count for r in records),
            files=records,
        )

    def _write_manifest_file(self) -> None:
        manifest: ExportManifest = self._build_manifest()
        manifest_path: Path = self._output_dir / MANIFEST_FILE_NAME
        try:
            write_file(manifest_path, manifest.to_json(), atomic=self._atomic_writes)
            logger.debug("Wrote manifest to %s.", manifest_path)
        except OSError as exc:
            self._warnings.append(f"Could not write manifest: {exc}")
            logger.warning("Failed to write manifest: %s", exc)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ExportManifest",
    "ExportResult",
    "FileRecord",
    "MANIFEST_FILE_NAME",
    "SchemaExporter",
]

logger.debug("zodgen.exporters loaded — %d public symbols.", len(__all__))
