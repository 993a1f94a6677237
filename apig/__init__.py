# File: apig/__init__.py
"""
apig - Go REST API Server Generator
====================================

Turns a description of data models (JSON/YAML or in-memory ``Detail``)
into the skeleton of a Go CRUD server built on gin and gorm: controllers,
route groups, table migrations, pagination helpers, API Blueprint docs and
a README.

Architecture overview::

    ┌──────────────┐     ┌──────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ ProjectGenerator │────▶│ TemplateRenderer │
    │   (cli.py)   │     │  (generator.py)  │     │  (templates.py)  │
    └──────────────┘     └────────┬─────────┘     └──────────────────┘
                                  │
                    ┌─────────────┼─────────────┐
                    ▼             ▼             ▼
             ┌──────────┐  ┌───────────┐  ┌───────────┐
             │validators│  │  models   │  │ exporters │
             │  (.py)   │  │  (.py)    │  │  (.py)    │
             └──────────┘  └───────────┘  └───────────┘

Usage::

    # As a library
    from apig import Detail, generate_project
    report = generate_project(detail, "./api-server")

    # From the command line
    apig gen -f models.yaml -o ./api-server -v
"""

from __future__ import annotations

__version__: str = "0.1.0"
__license__: str = "MIT"

from apig.errors import ApigError, InputError, OutputError, TemplateError
from apig.models import (
    Association,
    AssociationKind,
    Detail,
    FieldInfo,
    FieldKind,
    FieldType,
    ModelInfo,
)
from apig.validators import ValidationResult, ensure_valid, validate_detail
from apig.utils import ModelNames, Timer, model_names, to_plural, to_snake_case
from apig.templates import TemplateRenderer
from apig.exporters import ExportManifest, ProjectExporter, assemble_skeleton
from apig.generator import (
    GenerationReport,
    ProjectGenerator,
    generate_apib_index,
    generate_apib_model,
    generate_controller,
    generate_from_file,
    generate_migration,
    generate_project,
    generate_readme,
    generate_router,
    generate_router_index,
    generate_skeleton,
    load_detail_file,
    parse_raw_detail,
)

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Orchestrator
    "ProjectGenerator",
    "GenerationReport",
    "generate_project",
    "generate_from_file",
    "load_detail_file",
    "parse_raw_detail",
    # Generators
    "generate_skeleton",
    "generate_controller",
    "generate_router",
    "generate_migration",
    "generate_apib_model",
    "generate_router_index",
    "generate_readme",
    "generate_apib_index",
    # Models
    "Association",
    "AssociationKind",
    "Detail",
    "FieldInfo",
    "FieldKind",
    "FieldType",
    "ModelInfo",
    # Errors
    "ApigError",
    "InputError",
    "OutputError",
    "TemplateError",
    # Validation
    "ValidationResult",
    "ensure_valid",
    "validate_detail",
    # Rendering & export
    "TemplateRenderer",
    "ProjectExporter",
    "ExportManifest",
    "assemble_skeleton",
    # Utilities
    "ModelNames",
    "Timer",
    "model_names",
    "to_plural",
    "to_snake_case",
]
