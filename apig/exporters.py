# File: apig/exporters.py
"""
apig - Project Exporter (File-System Manager)
==============================================

Responsible for:
    1. Creating the output directory safely.
    2. Writing generated files atomically (write-to-temp then rename).
    3. Assembling the fixed project skeleton from the bundled resources.
    4. Recording every written file in an export manifest with checksums.

Every write is atomic on its own; a failure mid-run leaves earlier files in
place and raises ``OutputError`` immediately.  Re-running on the same
directory is always safe: manifest files are overwritten with identical
content and nothing outside the manifest is touched.

Complexity: O(F) where F = total number of output files.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from apig.errors import OutputError
from apig.models import Detail
from apig.templates import SkeletonContext, TemplateRenderer, skeleton_context
from apig.utils import Timer, count_lines, ensure_directory, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("apig.exporters")


# ---------------------------------------------------------------------------
# Skeleton manifest
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SkeletonEntry:
    """
    One file of the project skeleton.

    ``source`` is relative to the template directory; ``None`` marks an
    empty placeholder.  Sources ending in ``.j2`` are rendered with the
    project identity, anything else is copied byte-for-byte.
    """

    source: Optional[str]
    target: str

    @property
    def is_template(self) -> bool:
        return self.source is not None and self.source.endswith(".j2")


SKELETON_MANIFEST: Tuple[SkeletonEntry, ...] = (
    SkeletonEntry("skeleton/README.md.j2", "README.md"),
    SkeletonEntry("skeleton/gitignore.j2", ".gitignore"),
    SkeletonEntry("skeleton/main.go.j2", "main.go"),
    SkeletonEntry("skeleton/db/db.go.j2", "db/db.go"),
    SkeletonEntry("skeleton/db/pagination.go", "db/pagination.go"),
    SkeletonEntry("skeleton/router/router.go", "router/router.go"),
    SkeletonEntry("skeleton/middleware/set_db.go", "middleware/set_db.go"),
    SkeletonEntry("skeleton/server/server.go.j2", "server/server.go"),
    SkeletonEntry("skeleton/helper/field.go", "helper/field.go"),
    SkeletonEntry("skeleton/helper/field_test.go", "helper/field_test.go"),
    SkeletonEntry("skeleton/version/version.go.j2", "version/version.go"),
    SkeletonEntry("skeleton/version/version_test.go", "version/version_test.go"),
    SkeletonEntry(None, "controllers/.gitkeep"),
    SkeletonEntry(None, "models/.gitkeep"),
)


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    absolute_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """
    Ordered record of the files written by one exporter.

    A file written twice keeps its first position and its latest record.
    Serialisable to JSON for reproducibility checks.
    """

    project_name: str = ""
    output_directory: str = ""
    files: List[FileRecord] = field(default_factory=list)

    @property
    def total_files(self) -> int:
        return len(self.files)

    @property
    def total_bytes(self) -> int:
        return sum(f.size_bytes for f in self.files)

    @property
    def total_lines(self) -> int:
        return sum(f.line_count for f in self.files)

    @property
    def relative_paths(self) -> List[str]:
        return [f.relative_path for f in self.files]

    def add(self, record: FileRecord) -> None:
        for i, existing in enumerate(self.files):
            if existing.relative_path == record.relative_path:
                self.files[i] = record
                return
        self.files.append(record)

    def to_dict(self) -> Dict[str, Any]:
        """Convert manifest to a JSON-serialisable dictionary."""
        return {
            "project_name": self.project_name,
            "output_directory": self.output_directory,
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "files": [
                {
                    "relative_path": f.relative_path,
                    "absolute_path": f.absolute_path,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        """Serialise manifest to pretty-printed JSON."""
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


# ---------------------------------------------------------------------------
# ProjectExporter class
# ---------------------------------------------------------------------------


class ProjectExporter:
    """
    Writes generated files under one output directory.

    Usage::

        exporter = ProjectExporter(Path("./api-server"))
        exporter.assemble_skeleton(detail)
        exporter.write_artifact("controllers/user.go", text)
        print(exporter.manifest.to_json())

    Thread-safety: NOT thread-safe.  Use one exporter per output directory.
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        renderer: Optional[TemplateRenderer] = None,
        *,
        project_name: str = "",
    ) -> None:
        self._output_dir: Path = Path(output_dir)
        self._renderer: TemplateRenderer = renderer or TemplateRenderer()
        self.manifest: ExportManifest = ExportManifest(
            project_name=project_name,
            output_directory=str(self._output_dir),
        )

        logger.debug("ProjectExporter initialised: output_dir=%s.", self._output_dir)

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    @property
    def renderer(self) -> TemplateRenderer:
        return self._renderer

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def prepare_output_dir(self) -> Path:
        """Create the output directory if absent."""
        try:
            ensure_directory(self._output_dir)
        except OSError as exc:
            raise OutputError(
                self._output_dir, f"cannot create output directory: {exc}"
            ) from exc
        return self._output_dir

    def write_artifact(self, relative_path: str, content: Union[str, bytes]) -> FileRecord:
        """
        Atomically write *content* to ``output_dir / relative_path``.

        Parent directories are created as needed.  Either the full content
        is written or the target is left untouched.

        Raises:
            OutputError: A directory or the file could not be written.
        """
        data: bytes = content.encode("utf-8") if isinstance(content, str) else content
        full_path: Path = self._output_dir / relative_path

        try:
            size_bytes: int = write_file(full_path, data)
        except OSError as exc:
            raise OutputError(full_path, f"cannot write file: {exc}") from exc

        record: FileRecord = FileRecord(
            relative_path=relative_path,
            absolute_path=str(full_path),
            size_bytes=size_bytes,
            line_count=count_lines(data.decode("utf-8", errors="replace")),
            sha256=sha256_hex(data),
        )
        self.manifest.add(record)

        logger.debug(
            "Wrote file: %s (%d bytes, %d lines).",
            relative_path,
            record.size_bytes,
            record.line_count,
        )
        return record

    def assemble_skeleton(self, detail: Detail) -> ExportManifest:
        """
        Materialise every ``SKELETON_MANIFEST`` entry under the output directory.

        Template entries are rendered with the project identity of *detail*;
        static entries are copied verbatim; placeholders are written empty.
        Existing manifest files are overwritten, nothing else is removed.

        Returns:
            The exporter's manifest, including the skeleton files.

        Raises:
            OutputError: The output tree could not be created or written.
            TemplateError: A bundled skeleton template failed to render.
        """
        context: SkeletonContext = skeleton_context(detail)

        with Timer("skeleton") as timer:
            self.prepare_output_dir()
            for entry in SKELETON_MANIFEST:
                self.write_artifact(entry.target, self._skeleton_content(entry, context))

        logger.info(
            "Skeleton assembled under %s: %d files in %.3fs.",
            self._output_dir,
            len(SKELETON_MANIFEST),
            timer.elapsed,
        )
        return self.manifest

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    def _skeleton_content(self, entry: SkeletonEntry, context: SkeletonContext) -> bytes:
        if entry.source is None:
            return b""
        if entry.is_template:
            text: str = self._renderer.render(
                entry.source, context, model_name=context.project
            )
            return text.encode("utf-8")
        return self._renderer.source(entry.source)


def assemble_skeleton(
    detail: Detail,
    out_dir: Union[str, Path],
    renderer: Optional[TemplateRenderer] = None,
) -> ExportManifest:
    """Convenience wrapper: assemble the skeleton of *detail* into *out_dir*."""
    exporter: ProjectExporter = ProjectExporter(
        out_dir, renderer, project_name=detail.project
    )
    return exporter.assemble_skeleton(detail)


__all__: List[str] = [
    "SKELETON_MANIFEST",
    "ExportManifest",
    "FileRecord",
    "ProjectExporter",
    "SkeletonEntry",
    "assemble_skeleton",
]
