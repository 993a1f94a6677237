# File: apig/templates.py
"""
apig - Template Engine
=======================
Jinja2 rendering of the generated Go sources and documentation.

Templates live in the package's ``_templates/`` directory and are addressed
by their path relative to it (``"controller.go.j2"``,
``"skeleton/main.go.j2"``).  Each template is rendered against an explicit
context dataclass holding exactly the values it uses; contexts are built
from read-only views of the data model (``ModelView``, ``FieldView``,
``ColumnView``) so templates never reach into pydantic objects directly.

**Rendering contract:**
    - ``render()`` is pure: identical ``(template_id, context)`` always gives
      byte-identical text.
    - Undefined names fail loudly (``StrictUndefined``).
    - Every Jinja2 failure surfaces as ``TemplateError`` carrying the
      template identity and the model being rendered.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined
from jinja2 import TemplateError as JinjaTemplateError

from apig.errors import TemplateError
from apig.models import Detail, FieldInfo, ModelInfo
from apig.utils import ModelNames, model_names, to_camel_case, to_plural, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("apig.templates")

# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

DEFAULT_TEMPLATE_DIR: Path = Path(__file__).parent / "_templates"

# Template identities
CONTROLLER_TEMPLATE: str = "controller.go.j2"
ROUTER_TEMPLATE: str = "router.go.j2"
MIGRATION_TEMPLATE: str = "migration.go.j2"
APIB_MODEL_TEMPLATE: str = "model.apib.j2"
ROUTER_INDEX_TEMPLATE: str = "router_index.go.j2"
README_TEMPLATE: str = "README.md.j2"
APIB_INDEX_TEMPLATE: str = "index.apib.j2"


# ---------------------------------------------------------------------------
# Views over the data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FieldView:
    """One field as the templates see it."""

    name: str
    json_name: str
    go_type: str
    apib_type: str
    sample: str
    nullable: bool
    tag: str
    association: str
    target: str
    target_names: Optional[ModelNames]

    @property
    def is_association(self) -> bool:
        return self.association != "none"

    @property
    def is_belongs_to(self) -> bool:
        return self.association == "belongs_to"

    @property
    def is_has_many(self) -> bool:
        return self.association == "has_many"

    @property
    def presence(self) -> str:
        """MSON type attributes describing whether the value may be absent."""
        return "optional, nullable" if self.nullable else "required"


@dataclass(frozen=True, slots=True)
class ColumnView:
    """One column of a migration struct, already padded gofmt-style."""

    name: str
    go_type: str
    tag: str


@dataclass(frozen=True, slots=True)
class ModelView:
    """A model plus every name derived from it."""

    names: ModelNames
    fields: Tuple[FieldView, ...]

    @property
    def name(self) -> str:
        return self.names.name

    @property
    def identifier(self) -> FieldView:
        return next(f for f in self.fields if f.name == "ID")

    @property
    def associations(self) -> Tuple[FieldView, ...]:
        return tuple(f for f in self.fields if f.is_association)

    @property
    def attributes(self) -> Tuple[FieldView, ...]:
        """Fields a client writes, in declaration order: all but the identifier and has_many."""
        return tuple(
            f for f in self.fields if not f.is_has_many and f.name != "ID"
        )


def build_field_view(field: FieldInfo) -> FieldView:
    """Project a ``FieldInfo`` into its template view."""
    target: str = field.association.target or ""
    return FieldView(
        name=field.name,
        json_name=field.json_name,
        go_type=field.type.go_type,
        apib_type=field.type.apib_type,
        sample=field.type.sample,
        nullable=field.type.nullable,
        tag=field.tag,
        association=field.association.kind.value,
        target=target,
        target_names=model_names(target) if target else None,
    )


def build_model_view(model: ModelInfo) -> ModelView:
    """Project a ``ModelInfo`` into its template view, keeping field order."""
    return ModelView(
        names=model_names(model.name),
        fields=tuple(build_field_view(f) for f in model.fields),
    )


def build_columns(model: ModelInfo) -> Tuple[ColumnView, ...]:
    """
    Table columns for *model*'s migration struct, in field order.

    ``belongs_to`` fields become ``<Name>ID`` foreign-key columns,
    ``has_many`` fields have no column.  Names and types are padded to the
    widest entry so the struct comes out gofmt-aligned.
    """
    raw: List[Tuple[str, str, str]] = []
    for f in model.fields:
        if f.association.is_has_many:
            continue
        if f.association.is_belongs_to:
            go_type: str = "*uint" if f.type.nullable else "uint"
            name, json_name = f"{f.name}ID", f"{f.json_name}_id"
        else:
            go_type = f.type.go_type
            name, json_name = f.name, f.json_name
        tag: str = f'json:"{json_name}"'
        if f.tag:
            tag = f"{tag} {f.tag}"
        raw.append((name, go_type, tag))

    name_width: int = max(len(r[0]) for r in raw)
    type_width: int = max(len(r[1]) for r in raw)
    return tuple(
        ColumnView(name=n.ljust(name_width), go_type=t.ljust(type_width), tag=tag)
        for n, t, tag in raw
    )


# ---------------------------------------------------------------------------
# Per-template contexts
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SkeletonContext:
    """Project identity substituted into skeleton files."""

    vcs: str
    user: str
    project: str
    import_dir: str


@dataclass(frozen=True, slots=True)
class ControllerContext:
    import_dir: str
    model: ModelView


@dataclass(frozen=True, slots=True)
class RouterContext:
    import_dir: str
    model: ModelView


@dataclass(frozen=True, slots=True)
class MigrationContext:
    model: ModelView
    columns: Tuple[ColumnView, ...]
    needs_time: bool


@dataclass(frozen=True, slots=True)
class ApibModelContext:
    project: str
    model: ModelView


@dataclass(frozen=True, slots=True)
class RouterIndexContext:
    import_dir: str
    models: Tuple[ModelView, ...]


@dataclass(frozen=True, slots=True)
class ReadmeContext:
    models: Tuple[ModelView, ...]


@dataclass(frozen=True, slots=True)
class ApibIndexContext:
    project: str
    models: Tuple[ModelView, ...]


TemplateContext = Union[
    SkeletonContext,
    ControllerContext,
    RouterContext,
    MigrationContext,
    ApibModelContext,
    RouterIndexContext,
    ReadmeContext,
    ApibIndexContext,
]


def skeleton_context(detail: Detail) -> SkeletonContext:
    return SkeletonContext(
        vcs=detail.vcs,
        user=detail.user,
        project=detail.project,
        import_dir=detail.import_dir,
    )


def controller_context(detail: Detail, model: ModelInfo) -> ControllerContext:
    return ControllerContext(import_dir=detail.import_dir, model=build_model_view(model))


def router_context(detail: Detail, model: ModelInfo) -> RouterContext:
    return RouterContext(import_dir=detail.import_dir, model=build_model_view(model))


def migration_context(detail: Detail, model: ModelInfo) -> MigrationContext:
    columns: Tuple[ColumnView, ...] = build_columns(model)
    return MigrationContext(
        model=build_model_view(model),
        columns=columns,
        needs_time=any(
            f.type.needs_time_import for f in model.fields if f.association.is_none
        ),
    )


def apib_model_context(detail: Detail, model: ModelInfo) -> ApibModelContext:
    return ApibModelContext(project=detail.project, model=build_model_view(model))


def router_index_context(detail: Detail) -> RouterIndexContext:
    return RouterIndexContext(
        import_dir=detail.import_dir,
        models=tuple(build_model_view(m) for m in detail.models),
    )


def readme_context(models: List[ModelInfo]) -> ReadmeContext:
    return ReadmeContext(models=tuple(build_model_view(m) for m in models))


def apib_index_context(detail: Detail) -> ApibIndexContext:
    return ApibIndexContext(
        project=detail.project,
        models=tuple(build_model_view(m) for m in detail.models),
    )


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """
    Renders Jinja2 templates for generated project files.

    The renderer is stateless apart from its Jinja2 environment and can be
    shared by every generator of a run.
    """

    def __init__(self, template_dir: Optional[Union[str, Path]] = None) -> None:
        if template_dir is None:
            template_dir = DEFAULT_TEMPLATE_DIR
        self.template_dir: Path = Path(template_dir)
        self.env: Environment = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            undefined=StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["snake_case"] = to_snake_case
        self.env.filters["camel_case"] = to_camel_case
        self.env.filters["plural"] = to_plural

    # -- Rendering ----------------------------------------------------------

    def render(
        self,
        template_id: str,
        context: TemplateContext,
        *,
        model_name: str = "",
    ) -> str:
        """
        Render *template_id* with the values of *context*.

        Args:
            template_id: Path relative to the template directory.
            context: Context dataclass instance for this template.
            model_name: Name reported in errors; defaults to the context's
                model when it has one.

        Raises:
            TemplateError: The template is missing, malformed, or references
                a name the context does not provide.
        """
        label: str = model_name or _context_model_name(context)
        try:
            template = self.env.get_template(template_id)
            text: str = template.render(**_context_values(context))
        except JinjaTemplateError as exc:
            raise TemplateError(template_id, label, f"{type(exc).__name__}: {exc}") from exc

        logger.debug("Rendered %s for %s (%d chars).", template_id, label, len(text))
        return text

    def render_string(
        self,
        source: str,
        context: TemplateContext,
        *,
        template_id: str = "<string>",
        model_name: str = "",
    ) -> str:
        """Render inline template *source* with the same environment and error mapping."""
        label: str = model_name or _context_model_name(context)
        try:
            return self.env.from_string(source).render(**_context_values(context))
        except JinjaTemplateError as exc:
            raise TemplateError(template_id, label, f"{type(exc).__name__}: {exc}") from exc

    def source(self, template_id: str) -> bytes:
        """Raw bytes of a bundled file, for verbatim copies."""
        path: Path = self.template_dir / template_id
        try:
            return path.read_bytes()
        except OSError as exc:
            raise TemplateError(template_id, "", f"cannot read bundled file: {exc}") from exc

    def list_templates(self, prefix: str = "") -> List[str]:
        """Sorted template identities under *prefix*."""
        return sorted(t for t in self.env.list_templates() if t.startswith(prefix))


def _context_values(context: TemplateContext) -> Dict[str, Any]:
    # Shallow on purpose: nested views keep their properties.
    return {f.name: getattr(context, f.name) for f in dataclasses.fields(context)}


def _context_model_name(context: TemplateContext) -> str:
    model: Optional[ModelView] = getattr(context, "model", None)
    if model is not None:
        return model.name
    models: Tuple[ModelView, ...] = getattr(context, "models", ())
    if models:
        return ", ".join(m.name for m in models)
    return getattr(context, "project", "")


__all__: List[str] = [
    "APIB_INDEX_TEMPLATE",
    "APIB_MODEL_TEMPLATE",
    "CONTROLLER_TEMPLATE",
    "DEFAULT_TEMPLATE_DIR",
    "MIGRATION_TEMPLATE",
    "README_TEMPLATE",
    "ROUTER_INDEX_TEMPLATE",
    "ROUTER_TEMPLATE",
    "ApibIndexContext",
    "ApibModelContext",
    "ColumnView",
    "ControllerContext",
    "FieldView",
    "MigrationContext",
    "ModelView",
    "ReadmeContext",
    "RouterContext",
    "RouterIndexContext",
    "SkeletonContext",
    "TemplateRenderer",
    "build_columns",
    "build_field_view",
    "build_model_view",
    "skeleton_context",
]
