# File: apig/validators.py
"""
apig - Detail Validators
=========================
A **pure-function validation pipeline** over the pydantic models defined in
``apig.models``.

Pydantic's validators handle per-field and per-model structure (unique
field names, an ``ID`` field, association targets present).  This module
adds **cross-entity semantic validation**: association targets resolve to a
model of the same ``Detail``, derived file names and routes do not collide,
Go identifiers are exported, foreign-key columns do not shadow fields.

Usage by downstream modules:
    from apig.validators import ensure_valid
    ensure_valid(detail)          # raises InputError listing every error
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Set

from apig.errors import InputError
from apig.models import Detail, ModelInfo
from apig.utils import GO_KEYWORDS, model_names

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("apig.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """Lightweight issue descriptor (no pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()


class ValidationResult:
    """Accumulates ``ValidationIssue`` instances produced by the pipeline."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("warning", code, message, context))

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_warning]

    @property
    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {
                "error": "❌",
                "warning": "⚠️",
                "info": "ℹ️",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            for k, v in item.context.items():
                lines.append(f"       {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

_EXPORTED_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Z][A-Za-z0-9]*$")
_SNAKE_CASE_RE: re.Pattern[str] = re.compile(r"^[a-z][a-z0-9]*(_[a-z0-9]+)*$")
_JSON_NAME_RE: re.Pattern[str] = re.compile(r"^[A-Za-z0-9_\-]+$")
_WHITESPACE_RE: re.Pattern[str] = re.compile(r"\s")


# ---------------------------------------------------------------------------
# Individual validators
# ---------------------------------------------------------------------------


def validate_identity(detail: Detail) -> ValidationResult:
    """Repository identity parts must be non-empty and free of whitespace."""
    result: ValidationResult = ValidationResult()

    for key in ("vcs", "user", "project", "import_dir"):
        value: str = getattr(detail, key)
        if not value:
            result.add_error(
                "MISSING_IDENTITY",
                f"Project identity '{key}' is empty.",
                {"field": key},
            )
        elif _WHITESPACE_RE.search(value):
            result.add_error(
                "INVALID_IDENTITY",
                f"Project identity '{key}' must not contain whitespace: {value!r}.",
                {"field": key},
            )

    return result


def validate_models_present(detail: Detail) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    if not detail.models:
        result.add_error("NO_MODELS", "At least one model is required.")
    return result


def validate_model_names(detail: Detail) -> ValidationResult:
    """
    Model names must be exported Go identifiers whose derived file names
    and routes are unique across the project.

    Complexity: O(M) where M = number of models.
    """
    result: ValidationResult = ValidationResult()
    seen_names: Set[str] = set()
    seen_files: Dict[str, str] = {}
    seen_routes: Dict[str, str] = {}

    for model in detail.models:
        name: str = model.name
        ctx: Dict[str, Any] = {"model": name}

        if name in seen_names:
            result.add_error(
                "DUPLICATE_MODEL_NAME",
                f"Model '{name}' is defined more than once.",
                ctx,
            )
            continue
        seen_names.add(name)

        if not _EXPORTED_IDENTIFIER_RE.match(name):
            result.add_error(
                "INVALID_MODEL_NAME",
                f"Model name '{name}' is not an exported Go identifier.",
                ctx,
            )
            continue

        if name.lower() in GO_KEYWORDS:
            result.add_warning(
                "MODEL_NAME_GO_KEYWORD",
                f"Model name '{name}' lower-cases to a Go keyword; "
                f"generated local variables get a trailing underscore.",
                ctx,
            )

        names = model_names(name)
        if names.plural == names.name or names.plural_var == names.var:
            result.add_error(
                "PLURAL_COLLISION",
                f"Model name '{name}' has no distinct plural; list and item "
                f"handlers would share the name 'Get{names.plural}'.",
                {**ctx, "plural": names.plural},
            )

        if names.file_name in seen_files:
            result.add_error(
                "DUPLICATE_MODEL_FILE",
                f"Models '{seen_files[names.file_name]}' and '{name}' both "
                f"generate files named '{names.file_name}'.",
                {**ctx, "file_name": names.file_name},
            )
        seen_files.setdefault(names.file_name, name)

        if names.route in seen_routes:
            result.add_error(
                "DUPLICATE_ROUTE",
                f"Models '{seen_routes[names.route]}' and '{name}' both "
                f"map to route '/{names.route}'.",
                {**ctx, "route": names.route},
            )
        seen_routes.setdefault(names.route, name)

    logger.debug(
        "validate_model_names: checked %d models, %d issue(s).",
        len(detail.models),
        len(result),
    )
    return result


def validate_field_names(detail: Detail) -> ValidationResult:
    """
    Field names must be exported identifiers; JSON names must be usable
    inside a struct tag and should be snake_case.

    Complexity: O(F) where F = total number of fields.
    """
    result: ValidationResult = ValidationResult()

    for model in detail.models:
        for f in model.fields:
            ctx: Dict[str, Any] = {"model": model.name, "field": f.name}

            if not _EXPORTED_IDENTIFIER_RE.match(f.name):
                result.add_error(
                    "INVALID_FIELD_NAME",
                    f"Field '{model.name}.{f.name}' is not an exported Go identifier.",
                    ctx,
                )

            if not _JSON_NAME_RE.match(f.json_name):
                result.add_error(
                    "INVALID_JSON_NAME",
                    f"JSON name '{f.json_name}' of '{model.name}.{f.name}' "
                    f"contains characters not allowed in a struct tag.",
                    ctx,
                )
            elif not _SNAKE_CASE_RE.match(f.json_name):
                result.add_warning(
                    "JSON_NAME_NOT_SNAKE_CASE",
                    f"JSON name '{f.json_name}' of '{model.name}.{f.name}' "
                    f"is not snake_case.",
                    ctx,
                )

    return result


def _validate_model_associations(
    model: ModelInfo, known: Set[str], result: ValidationResult
) -> None:
    field_names: Set[str] = set(model.field_names)
    json_names: Set[str] = {f.json_name for f in model.fields}

    for f in model.fields:
        if f.association.is_none:
            continue
        ctx: Dict[str, Any] = {
            "model": model.name,
            "field": f.name,
            "target": f.association.target,
        }

        if f.association.target not in known:
            result.add_error(
                "UNKNOWN_ASSOCIATION_TARGET",
                f"Field '{model.name}.{f.name}' refers to unknown model "
                f"'{f.association.target}'.",
                ctx,
            )

        if f.association.is_belongs_to:
            fk_name: str = f"{f.name}ID"
            fk_json: str = f"{f.json_name}_id"
            if fk_name in field_names or fk_json in json_names:
                result.add_error(
                    "FOREIGN_KEY_COLLISION",
                    f"Foreign key '{fk_name}' ({fk_json}) of '{model.name}.{f.name}' "
                    f"collides with an existing field.",
                    ctx,
                )


def validate_associations(detail: Detail) -> ValidationResult:
    """
    Every association target must name a model of this ``Detail``, and
    ``belongs_to`` foreign-key columns must not shadow declared fields.
    """
    result: ValidationResult = ValidationResult()
    known: Set[str] = {m.name for m in detail.models}
    for model in detail.models:
        _validate_model_associations(model, known, result)
    return result


def validate_current_model(detail: Detail) -> ValidationResult:
    """``detail.model``, when set, must be one of ``detail.models``."""
    result: ValidationResult = ValidationResult()
    if detail.model is not None and detail.model not in detail.models:
        result.add_error(
            "MODEL_NOT_IN_MODELS",
            f"Current model '{detail.model.name}' is not part of the model set.",
            {"model": detail.model.name},
        )
    return result


# ---------------------------------------------------------------------------
# Pipelines
# ---------------------------------------------------------------------------


def validate_detail(detail: Detail) -> ValidationResult:
    """
    **Master validation entry point.**

    Runs every validator in order and returns the merged result.  This is
    what the orchestrator and the CLI's ``--validate-only`` call.
    """
    logger.info("Starting validation of %s (%d models).", detail.import_dir, len(detail.models))

    result: ValidationResult = ValidationResult()
    result.merge(validate_identity(detail))
    result.merge(validate_models_present(detail))
    result.merge(validate_model_names(detail))
    result.merge(validate_field_names(detail))
    result.merge(validate_associations(detail))
    result.merge(validate_current_model(detail))

    if result.has_errors:
        logger.error(
            "Validation FAILED with %d error(s). %s",
            result.error_count,
            result.summary(),
        )
    else:
        logger.info("Validation PASSED. %s", result.summary())

    return result


def ensure_valid(detail: Detail) -> ValidationResult:
    """
    Validate *detail* and raise ``InputError`` carrying every error found.

    Warnings are logged and returned, never raised.
    """
    result: ValidationResult = validate_detail(detail)
    for warning in result.warnings:
        logger.warning("%s", warning)
    if result.has_errors:
        raise InputError(
            f"Invalid project description: {result.error_count} error(s).",
            issues=result.errors,
        )
    return result


def ensure_model_ready(detail: Detail) -> ModelInfo:
    """
    Check the current model of *detail* before a per-model generator runs.

    Raises:
        InputError: ``detail.model`` is unset, is not one of
            ``detail.models``, or has an association to an unknown model.
    """
    if detail.model is None:
        raise InputError("No current model set on the project description.")

    result: ValidationResult = validate_current_model(detail)
    _validate_model_associations(
        detail.model, {m.name for m in detail.models}, result
    )
    if result.has_errors:
        raise InputError(
            f"Model '{detail.model.name}' cannot be generated.",
            issues=result.errors,
        )
    return detail.model


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationIssue",
    "ValidationResult",
    "ensure_model_ready",
    "ensure_valid",
    "validate_associations",
    "validate_current_model",
    "validate_detail",
    "validate_field_names",
    "validate_identity",
    "validate_model_names",
    "validate_models_present",
]

logger.debug("apig.validators loaded: %d public symbols.", len(__all__))
