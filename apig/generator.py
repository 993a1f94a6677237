# File: apig/generator.py
"""
apig - Generation Pipeline (Orchestrator)
==========================================

Connects every phase together:

    Model Input → Validation → Skeleton → Per-Model Artifacts → Aggregates

Workflow::

    1. Load the model description from a JSON/YAML file (or accept a
       ``Detail`` built in memory).
    2. Parse into a ``Detail`` (models.py).
    3. Run the validation pipeline (validators.py); nothing is written if
       it reports an error.
    4. Assemble the fixed project skeleton (exporters.py).
    5. For every model, in declaration order, render its controller, route
       fragment, migration and documentation page (templates.py).
    6. Render the aggregates: router index, README, documentation index.
    7. Return a ``GenerationReport`` with metrics.

Error handling strategy:
    - The first failure stops the run and propagates unchanged
      (``InputError``, ``TemplateError``, ``OutputError``).
    - Files already written stay in place; there is no rollback.
    - Each individual file write is atomic.

Complexity: O(M × F) where M = models, F = fields per model.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import yaml
from pydantic import ValidationError

from apig.errors import InputError
from apig.exporters import ExportManifest, ProjectExporter
from apig.models import Detail, ModelInfo
from apig.templates import (
    APIB_INDEX_TEMPLATE,
    APIB_MODEL_TEMPLATE,
    CONTROLLER_TEMPLATE,
    MIGRATION_TEMPLATE,
    README_TEMPLATE,
    ROUTER_INDEX_TEMPLATE,
    ROUTER_TEMPLATE,
    TemplateContext,
    TemplateRenderer,
    apib_index_context,
    apib_model_context,
    controller_context,
    migration_context,
    readme_context,
    router_context,
    router_index_context,
)
from apig.utils import Timer, model_names
from apig.validators import ValidationResult, ensure_model_ready, ensure_valid

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("apig.generator")

PathLike = Union[str, Path]


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
    Report produced by ``ProjectGenerator.generate()`` on success.

    Failures are raised, never recorded here.
    """

    success: bool = False
    project_name: str = ""
    output_directory: str = ""

    # Metrics
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_models_processed: int = 0
    total_elapsed_seconds: float = 0.0

    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)

    manifest: Optional[ExportManifest] = None

    @property
    def written_paths(self) -> List[str]:
        return self.manifest.relative_paths if self.manifest else []

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'='*60}")
        lines.append("  apig Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Project:          {self.project_name}")
        lines.append(f"  Output:           {self.output_directory}")
        lines.append(f"  Models processed: {self.total_models_processed}")
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

        if self.validation_warnings:
            lines.append(f"{'─'*60}")
            lines.append(f"  Validation Warnings ({len(self.validation_warnings)}):")
            for warn in self.validation_warnings:
                lines.append(f"    ⚠ {warn}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Input loader helpers
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


def load_detail_file(path: PathLike) -> Dict[str, Any]:
    """
    Load a model description file (JSON or YAML).

    Dispatches based on file extension; unknown extensions are tried as
    JSON first, then YAML.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Model file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Model path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    logger.info("Unknown extension '%s', trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except ValueError:
        return _load_yaml_file(path)


def _format_pydantic_errors(exc: ValidationError) -> List[str]:
    issues: List[str] = []
    for err in exc.errors():
        location: str = ".".join(str(part) for part in err.get("loc", ()))
        issues.append(f"{location or '<root>'}: {err.get('msg', '')}")
    return issues


def parse_raw_detail(
    raw: Dict[str, Any],
    overrides: Optional[Dict[str, Any]] = None,
) -> Detail:
    """
    Build a ``Detail`` from a raw dictionary (from JSON/YAML).

    Expected top-level keys: ``vcs``, ``user``, ``project``, optional
    ``import_dir`` and ``models``.  Non-``None`` values in *overrides*
    replace the corresponding top-level keys.

    Raises:
        InputError: The data does not describe a valid ``Detail``.
    """
    data: Dict[str, Any] = dict(raw)
    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value

    try:
        detail: Detail = Detail.model_validate(data)
    except ValidationError as exc:
        raise InputError(
            "Model description is invalid.", issues=_format_pydantic_errors(exc)
        ) from exc

    logger.info(
        "Parsed project %s: %d models.", detail.import_dir, len(detail.models)
    )
    return detail


# ---------------------------------------------------------------------------
# Per-model artifact generators
# ---------------------------------------------------------------------------


def _exporter_for(
    out_dir: PathLike,
    renderer: Optional[TemplateRenderer],
    exporter: Optional[ProjectExporter],
) -> ProjectExporter:
    if exporter is not None:
        return exporter
    return ProjectExporter(out_dir, renderer)


def _emit_model_artifact(
    template_id: str,
    build_context: Callable[[Detail, ModelInfo], TemplateContext],
    target: str,
    detail: Detail,
    out_dir: PathLike,
    renderer: Optional[TemplateRenderer],
    exporter: Optional[ProjectExporter],
) -> Path:
    model: ModelInfo = ensure_model_ready(detail)
    exporter = _exporter_for(out_dir, renderer, exporter)

    text: str = exporter.renderer.render(
        template_id, build_context(detail, model), model_name=model.name
    )
    relative_path: str = target.format(file_name=model_names(model.name).file_name)
    exporter.write_artifact(relative_path, text)
    return exporter.output_dir / relative_path


def generate_controller(
    detail: Detail,
    out_dir: PathLike,
    renderer: Optional[TemplateRenderer] = None,
    *,
    exporter: Optional[ProjectExporter] = None,
) -> Path:
    """Write ``controllers/<file_name>.go`` with the CRUD handlers of ``detail.model``."""
    return _emit_model_artifact(
        CONTROLLER_TEMPLATE,
        controller_context,
        "controllers/{file_name}.go",
        detail,
        out_dir,
        renderer,
        exporter,
    )


def generate_router(
    detail: Detail,
    out_dir: PathLike,
    renderer: Optional[TemplateRenderer] = None,
    *,
    exporter: Optional[ProjectExporter] = None,
) -> Path:
    """Write ``router/<file_name>.go``, the route group of ``detail.model``."""
    return _emit_model_artifact(
        ROUTER_TEMPLATE,
        router_context,
        "router/{file_name}.go",
        detail,
        out_dir,
        renderer,
        exporter,
    )


def generate_migration(
    detail: Detail,
    out_dir: PathLike,
    renderer: Optional[TemplateRenderer] = None,
    *,
    exporter: Optional[ProjectExporter] = None,
) -> Path:
    """
    Write ``db/<file_name>.go``: the table struct of ``detail.model`` and
    its registration with the migration list of ``db/db.go``.
    """
    return _emit_model_artifact(
        MIGRATION_TEMPLATE,
        migration_context,
        "db/{file_name}.go",
        detail,
        out_dir,
        renderer,
        exporter,
    )


def generate_apib_model(
    detail: Detail,
    out_dir: PathLike,
    renderer: Optional[TemplateRenderer] = None,
    *,
    exporter: Optional[ProjectExporter] = None,
) -> Path:
    """Write ``docs/<file_name>.apib``, the API Blueprint page of ``detail.model``."""
    return _emit_model_artifact(
        APIB_MODEL_TEMPLATE,
        apib_model_context,
        "docs/{file_name}.apib",
        detail,
        out_dir,
        renderer,
        exporter,
    )


MODEL_GENERATORS: Sequence[Callable[..., Path]] = (
    generate_controller,
    generate_router,
    generate_migration,
    generate_apib_model,
)


# ---------------------------------------------------------------------------
# Aggregate generators
# ---------------------------------------------------------------------------


def _emit_aggregate(
    template_id: str,
    context: TemplateContext,
    relative_path: str,
    exporter: ProjectExporter,
) -> Path:
    text: str = exporter.renderer.render(template_id, context)
    exporter.write_artifact(relative_path, text)
    return exporter.output_dir / relative_path


def generate_router_index(
    detail: Detail,
    out_dir: PathLike,
    renderer: Optional[TemplateRenderer] = None,
    *,
    exporter: Optional[ProjectExporter] = None,
) -> Path:
    """Write ``router/router.go`` mounting the route group of every model."""
    return _emit_aggregate(
        ROUTER_INDEX_TEMPLATE,
        router_index_context(detail),
        "router/router.go",
        _exporter_for(out_dir, renderer, exporter),
    )


def generate_readme(
    models: Sequence[ModelInfo],
    out_dir: PathLike,
    renderer: Optional[TemplateRenderer] = None,
    *,
    exporter: Optional[ProjectExporter] = None,
) -> Path:
    """Write ``README.md`` listing the endpoints of every model."""
    return _emit_aggregate(
        README_TEMPLATE,
        readme_context(list(models)),
        "README.md",
        _exporter_for(out_dir, renderer, exporter),
    )


def generate_apib_index(
    detail: Detail,
    out_dir: PathLike,
    renderer: Optional[TemplateRenderer] = None,
    *,
    exporter: Optional[ProjectExporter] = None,
) -> Path:
    """Write ``docs/index.apib`` including the page of every model."""
    return _emit_aggregate(
        APIB_INDEX_TEMPLATE,
        apib_index_context(detail),
        "docs/index.apib",
        _exporter_for(out_dir, renderer, exporter),
    )


def generate_skeleton(
    detail: Detail,
    out_dir: PathLike,
    renderer: Optional[TemplateRenderer] = None,
    *,
    exporter: Optional[ProjectExporter] = None,
) -> ExportManifest:
    """Assemble the fixed project skeleton under *out_dir*."""
    return _exporter_for(out_dir, renderer, exporter).assemble_skeleton(detail)


# ---------------------------------------------------------------------------
# ProjectGenerator: master orchestrator
# ---------------------------------------------------------------------------


class ProjectGenerator:
    """
    Master pipeline orchestrator.

    Usage::

        generator = ProjectGenerator()

        # From a file
        report = generator.generate_from_file(Path("models.yaml"), Path("./api-server"))

        # From an in-memory Detail
        report = generator.generate(detail, Path("./api-server"))

        print(report.summary())

    The generator is reusable: create once, call generate() many times.
    """

    def __init__(self, renderer: Optional[TemplateRenderer] = None) -> None:
        self._renderer: TemplateRenderer = renderer or TemplateRenderer()
        logger.debug(
            "ProjectGenerator initialised: templates=%s.", self._renderer.template_dir
        )

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def generate_from_file(
        self,
        path: PathLike,
        out_dir: PathLike,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> GenerationReport:
        """
        Full pipeline: load file → parse → validate → generate.

        Raises:
            FileNotFoundError, ValueError: The file is missing or unparsable.
            InputError, TemplateError, OutputError: As for ``generate()``.
        """
        with Timer("load") as t_load:
            raw: Dict[str, Any] = load_detail_file(path)
            detail: Detail = parse_raw_detail(raw, overrides)

        report: GenerationReport = self.generate(detail, out_dir)
        report.step_metrics.insert(0, GenerationStepMetric(
            step_name="Load Model File",
            elapsed_seconds=t_load.elapsed,
            detail=f"from {Path(path).name}",
        ))
        report.total_elapsed_seconds += t_load.elapsed
        return report

    def generate(self, detail: Detail, out_dir: PathLike) -> GenerationReport:
        """
        Generate the whole project for *detail* under *out_dir*.

        Stops at the first error and re-raises it unchanged.

        Raises:
            InputError: *detail* is invalid; no file has been written.
            TemplateError: A template failed to render.
            OutputError: The output tree could not be written.
        """
        pipeline_start: float = time.perf_counter()
        out_path: Path = Path(out_dir)
        report: GenerationReport = GenerationReport(
            project_name=detail.project,
            output_directory=str(out_path),
        )

        # --- Step: Validation ---
        with Timer("validation") as t:
            result: ValidationResult = ensure_valid(detail)
        report.validation_warnings.extend(str(w) for w in result.warnings)
        report.step_metrics.append(GenerationStepMetric(
            step_name="Validate Detail",
            elapsed_seconds=t.elapsed,
            detail=f"{len(result.warnings)} warning(s)" if result.warnings else "all checks passed",
        ))

        exporter: ProjectExporter = ProjectExporter(
            out_path, self._renderer, project_name=detail.project
        )

        # --- Step: Skeleton ---
        with Timer("skeleton") as t:
            generate_skeleton(detail, out_path, exporter=exporter)
        report.step_metrics.append(GenerationStepMetric(
            step_name="Assemble Skeleton",
            elapsed_seconds=t.elapsed,
            detail=f"{exporter.manifest.total_files} files",
        ))

        # --- Step: Per-model artifacts ---
        for model in detail.models:
            current: Detail = detail.for_model(model)
            with Timer(model.name) as t:
                for generate_artifact in MODEL_GENERATORS:
                    generate_artifact(current, out_path, exporter=exporter)
            report.total_models_processed += 1
            report.step_metrics.append(GenerationStepMetric(
                step_name=f"Model {model.name}",
                elapsed_seconds=t.elapsed,
                detail=f"{len(MODEL_GENERATORS)} files",
            ))
            logger.info("Generated %s in %.3fs.", model.name, t.elapsed)

        # --- Step: Aggregates ---
        with Timer("aggregates") as t:
            generate_router_index(detail, out_path, exporter=exporter)
            generate_readme(detail.models, out_path, exporter=exporter)
            generate_apib_index(detail, out_path, exporter=exporter)
        report.step_metrics.append(GenerationStepMetric(
            step_name="Aggregates",
            elapsed_seconds=t.elapsed,
            detail="router index, README, docs index",
        ))

        manifest: ExportManifest = exporter.manifest
        report.manifest = manifest
        report.total_files = manifest.total_files
        report.total_bytes = manifest.total_bytes
        report.total_lines = manifest.total_lines
        report.total_elapsed_seconds = time.perf_counter() - pipeline_start
        report.success = True

        logger.info(
            "Generation complete: %d files, %d models, %.3fs.",
            report.total_files,
            report.total_models_processed,
            report.total_elapsed_seconds,
        )
        return report


def generate_project(
    detail: Detail,
    out_dir: PathLike,
    renderer: Optional[TemplateRenderer] = None,
) -> GenerationReport:
    """Generate the complete project for *detail*; see ``ProjectGenerator.generate``."""
    return ProjectGenerator(renderer).generate(detail, out_dir)


def generate_from_file(
    path: PathLike,
    out_dir: PathLike,
    overrides: Optional[Dict[str, Any]] = None,
) -> GenerationReport:
    """Load *path*, apply *overrides* and generate the project into *out_dir*."""
    return ProjectGenerator().generate_from_file(path, out_dir, overrides)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MODEL_GENERATORS",
    "GenerationReport",
    "GenerationStepMetric",
    "ProjectGenerator",
    "generate_apib_index",
    "generate_apib_model",
    "generate_controller",
    "generate_from_file",
    "generate_migration",
    "generate_project",
    "generate_readme",
    "generate_router",
    "generate_router_index",
    "generate_skeleton",
    "load_detail_file",
    "parse_raw_detail",
]

logger.debug("apig.generator loaded.")
