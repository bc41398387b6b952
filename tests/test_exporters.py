"""
tests/test_exporters.py
Unit tests for zodgen.exporters: family directory cleanup, atomic writes,
per-file errors and the manifest.
"""

from __future__ import annotations

import json
import pathlib
from typing import List

import pytest

import zodgen.exporters
from zodgen.exporters import MANIFEST_FILE_NAME, ExportResult, SchemaExporter
from zodgen.models import GeneratedFile, GeneratorConfig
from zodgen.utils import sha256_hex


def _files() -> List[GeneratedFile]:
    return [
        GeneratedFile(family="schemas", relative_path="schemas/User.ts", content="export const a = 1;\n"),
        GeneratedFile(family="schemas", relative_path="schemas/index.ts", content="export * from './User';\n"),
    ]


class TestSchemaExporter:
    def test_writes_files(self, output_dir: pathlib.Path) -> None:
        result: ExportResult = SchemaExporter(GeneratorConfig(), output_dir).export(_files())
        assert result.success
        assert result.files_written == 2
        assert (output_dir / "schemas" / "User.ts").read_text(encoding="utf-8") == "export const a = 1;\n"
        assert not (output_dir / MANIFEST_FILE_NAME).exists()

    def test_manifest_records(self, output_dir: pathlib.Path) -> None:
        config = GeneratorConfig(write_manifest=True)
        result = SchemaExporter(config, output_dir).export(_files())
        data = json.loads((output_dir / MANIFEST_FILE_NAME).read_text(encoding="utf-8"))
        assert data["families"] == ["schemas"]
        assert data["total_files"] == 2
        assert [f["relative_path"] for f in data["files"]] == ["schemas/User.ts", "schemas/index.ts"]
        assert data["files"][0]["sha256"] == sha256_hex("export const a = 1;\n")
        assert "timestamp" not in json.dumps(data)
        assert result.manifest.total_bytes == sum(f["size_bytes"] for f in data["files"])

    def test_stale_family_files_removed(self, output_dir: pathlib.Path) -> None:
        stale = output_dir / "schemas" / "Old.ts"
        stale.parent.mkdir(parents=True)
        stale.write_text("stale", encoding="utf-8")
        unrelated = output_dir / "handwritten" / "keep.ts"
        unrelated.parent.mkdir(parents=True)
        unrelated.write_text("keep", encoding="utf-8")

        SchemaExporter(GeneratorConfig(), output_dir).export(_files())
        assert not stale.exists()
        assert unrelated.read_text(encoding="utf-8") == "keep"

    def test_no_cleanup(self, output_dir: pathlib.Path) -> None:
        stale = output_dir / "schemas" / "Old.ts"
        stale.parent.mkdir(parents=True)
        stale.write_text("stale", encoding="utf-8")
        SchemaExporter(GeneratorConfig(), output_dir, clean_before_export=False).export(_files())
        assert stale.exists()

    def test_path_escape_is_an_error(self, output_dir: pathlib.Path) -> None:
        files = _files() + [GeneratedFile(family="schemas", relative_path="../evil.ts", content="x")]
        result = SchemaExporter(GeneratorConfig(), output_dir).export(files)
        assert not result.success
        assert len(result.errors) == 1
        assert "../evil.ts" in result.errors[0]
        assert result.files_written == 2
        assert not (output_dir.parent / "evil.ts").exists()

    def test_output_root_is_a_file(self, tmp_path: pathlib.Path) -> None:
        target = tmp_path / "occupied"
        target.write_text("", encoding="utf-8")
        result = SchemaExporter(GeneratorConfig(), target).export(_files())
        assert not result.success
        assert result.errors[0].startswith("Fatal export error")

    def test_sequential_and_concurrent_agree(self, tmp_path: pathlib.Path) -> None:
        files = [
            GeneratedFile(family="schemas", relative_path=f"schemas/M{i}.ts", content=f"// {i}\n")
            for i in range(12)
        ]
        sequential = SchemaExporter(
            GeneratorConfig(concurrent_writes=False, write_manifest=True), tmp_path / "seq"
        ).export(files)
        concurrent = SchemaExporter(
            GeneratorConfig(concurrent_writes=True, write_manifest=True), tmp_path / "conc"
        ).export(files)
        assert sequential.manifest.to_json() == concurrent.manifest.to_json()
        assert (tmp_path / "seq" / MANIFEST_FILE_NAME).read_bytes() == (
            tmp_path / "conc" / MANIFEST_FILE_NAME
        ).read_bytes()

    def test_clear_failure_fails_the_export(
        self, output_dir: pathlib.Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        stale = output_dir / "schemas" / "Stale.ts"
        stale.parent.mkdir(parents=True)
        stale.write_text("stale", encoding="utf-8")

        def _refuse(path: pathlib.Path) -> None:
            raise PermissionError(f"permission denied: {path}")

        monkeypatch.setattr(zodgen.exporters, "clean_directory", _refuse)
        result = SchemaExporter(GeneratorConfig(), output_dir).export(_files())
        assert not result.success
        assert len(result.errors) == 1
        assert "Could not clear" in result.errors[0]
        assert result.files_written == 0
        assert not (output_dir / "schemas" / "User.ts").exists()
        assert stale.read_text(encoding="utf-8") == "stale"
