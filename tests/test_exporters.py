"""
tests/test_exporters.py
Tests for apig.exporters: skeleton assembly, atomic writes and manifests.
"""

from __future__ import annotations

import json
import pathlib

import pytest

from apig.errors import OutputError
from apig.exporters import (
    SKELETON_MANIFEST,
    ExportManifest,
    FileRecord,
    ProjectExporter,
    assemble_skeleton,
)
from apig.models import Detail
from conftest import read_golden


EXPECTED_SKELETON = [
    "README.md",
    ".gitignore",
    "main.go",
    "db/db.go",
    "db/pagination.go",
    "router/router.go",
    "middleware/set_db.go",
    "server/server.go",
    "helper/field.go",
    "helper/field_test.go",
    "version/version.go",
    "version/version_test.go",
    "controllers/.gitkeep",
    "models/.gitkeep",
]


def _snapshot(root: pathlib.Path) -> dict:
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


# ===========================================================================
# Skeleton assembly
# ===========================================================================


class TestAssembleSkeleton:
    def test_manifest_targets(self) -> None:
        assert [e.target for e in SKELETON_MANIFEST] == EXPECTED_SKELETON

    def test_every_entry_written(self, user_detail: Detail, out_dir: pathlib.Path) -> None:
        manifest = assemble_skeleton(user_detail, out_dir)
        assert manifest.relative_paths == EXPECTED_SKELETON
        for rel in EXPECTED_SKELETON:
            assert (out_dir / rel).is_file(), rel

    def test_placeholders_are_empty(self, user_detail: Detail, out_dir: pathlib.Path) -> None:
        assemble_skeleton(user_detail, out_dir)
        assert (out_dir / "controllers" / ".gitkeep").read_bytes() == b""
        assert (out_dir / "models" / ".gitkeep").read_bytes() == b""

    def test_db_go_matches_golden(self, user_detail: Detail, out_dir: pathlib.Path) -> None:
        assemble_skeleton(user_detail, out_dir)
        assert (out_dir / "db" / "db.go").read_text(encoding="utf-8") == read_golden("db/db.go")

    def test_identity_substituted(self, user_detail: Detail, out_dir: pathlib.Path) -> None:
        assemble_skeleton(user_detail, out_dir)
        main_go = (out_dir / "main.go").read_text(encoding="utf-8")
        assert '"github.com/wantedly/api-server/db"' in main_go
        assert '"github.com/wantedly/api-server/server"' in main_go
        assert (out_dir / ".gitignore").read_text(encoding="utf-8").startswith("/api-server\n")
        version_go = (out_dir / "version" / "version.go").read_text(encoding="utf-8")
        assert 'const Project = "github.com/wantedly/api-server"' in version_go

    def test_static_files_copied_verbatim(
        self, user_detail: Detail, out_dir: pathlib.Path, renderer
    ) -> None:
        assemble_skeleton(user_detail, out_dir)
        for source, target in [
            ("skeleton/db/pagination.go", "db/pagination.go"),
            ("skeleton/helper/field_test.go", "helper/field_test.go"),
            ("skeleton/middleware/set_db.go", "middleware/set_db.go"),
        ]:
            assert (out_dir / target).read_bytes() == renderer.source(source)

    def test_idempotent(self, user_detail: Detail, out_dir: pathlib.Path) -> None:
        assemble_skeleton(user_detail, out_dir)
        first = _snapshot(out_dir)
        assemble_skeleton(user_detail, out_dir)
        assert _snapshot(out_dir) == first

    def test_foreign_files_kept(self, user_detail: Detail, out_dir: pathlib.Path) -> None:
        out_dir.mkdir(parents=True)
        (out_dir / "notes.txt").write_text("mine")
        assemble_skeleton(user_detail, out_dir)
        assert (out_dir / "notes.txt").read_text() == "mine"

    def test_output_dir_not_creatable(self, user_detail: Detail, tmp_path: pathlib.Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")
        with pytest.raises(OutputError) as exc_info:
            assemble_skeleton(user_detail, blocker / "project")
        assert "blocker" in exc_info.value.path
        assert isinstance(exc_info.value.__cause__, OSError)


# ===========================================================================
# ProjectExporter
# ===========================================================================


class TestProjectExporter:
    def test_write_artifact_record(self, out_dir: pathlib.Path) -> None:
        exporter = ProjectExporter(out_dir, project_name="api-server")
        record = exporter.write_artifact("docs/a.apib", "line one\nline two\n")
        assert record.relative_path == "docs/a.apib"
        assert record.size_bytes == len("line one\nline two\n")
        assert record.line_count == 2
        assert (out_dir / "docs" / "a.apib").read_text() == "line one\nline two\n"

    def test_rewrite_keeps_position(self, out_dir: pathlib.Path) -> None:
        exporter = ProjectExporter(out_dir)
        exporter.write_artifact("a.txt", "1")
        exporter.write_artifact("b.txt", "2")
        exporter.write_artifact("a.txt", "one")
        assert exporter.manifest.relative_paths == ["a.txt", "b.txt"]
        assert exporter.manifest.files[0].size_bytes == 3

    def test_write_failure_wrapped(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "docs").write_text("file in the way")
        exporter = ProjectExporter(tmp_path)
        with pytest.raises(OutputError):
            exporter.write_artifact("docs/index.apib", "x")
        assert exporter.manifest.total_files == 0


class TestExportManifest:
    def test_totals_and_json(self) -> None:
        manifest = ExportManifest(project_name="p", output_directory="/tmp/p")
        manifest.add(FileRecord("a", "/tmp/p/a", 10, 2, "x"))
        manifest.add(FileRecord("b", "/tmp/p/b", 5, 1, "y"))
        assert manifest.total_files == 2
        assert manifest.total_bytes == 15
        assert manifest.total_lines == 3
        data = json.loads(manifest.to_json())
        assert data["total_files"] == 2
        assert [f["relative_path"] for f in data["files"]] == ["a", "b"]
