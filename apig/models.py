# File: apig/models.py
"""
apig - Core Data Models
========================
Pydantic V2 models describing *what* to generate: the fields of each data
model, their associations, the models themselves and the project-level
``Detail`` that ties them to a repository identity.

These models are the single source of truth for the whole pipeline:
Input Loading → Validation → Rendering → Export.  They are frozen once
built; every generator is a read-only projection of them.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("apig.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class FieldKind(str, Enum):
    """Primitive value kinds a field can hold, independent of Go spelling."""

    UINT = "uint"
    UINT64 = "uint64"
    INT = "int"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    BOOL = "bool"
    TIMESTAMP = "timestamp"


class AssociationKind(str, Enum):
    """Relationship cardinality of a field pointing at another model."""

    NONE = "none"
    BELONGS_TO = "belongs_to"
    HAS_MANY = "has_many"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=False,
    frozen=True,
    extra="forbid",
)

_INTEGER_KINDS: Set[FieldKind] = {
    FieldKind.UINT,
    FieldKind.UINT64,
    FieldKind.INT,
    FieldKind.INT64,
}

_FLOAT_KINDS: Set[FieldKind] = {FieldKind.FLOAT32, FieldKind.FLOAT64}

# Go spellings accepted in the string shorthand
_GO_TYPE_ALIASES: Dict[str, str] = {
    "time.Time": "timestamp",
    "float": "float64",
    "integer": "int",
    "boolean": "bool",
}

_SAMPLE_TIMESTAMP: str = "2015-01-01T00:00:00Z"


# ---------------------------------------------------------------------------
# Field type
# ---------------------------------------------------------------------------


class FieldType(BaseModel):
    """
    Storage/value type of a field: a primitive kind plus nullability.

    Accepts a string shorthand on input, where a leading ``*`` marks the
    type nullable: ``"uint"``, ``"*timestamp"``, ``"*time.Time"``.
    """

    model_config = _SHARED_CONFIG

    kind: FieldKind = Field(..., description="Primitive value kind.")
    nullable: bool = Field(default=False, description="Whether the value may be absent.")

    @model_validator(mode="before")
    @classmethod
    def _parse_shorthand(cls, data: Any) -> Any:
        if not isinstance(data, str):
            return data
        text: str = data.strip()
        nullable: bool = text.startswith("*")
        kind: str = text.lstrip("*")
        return {"kind": _GO_TYPE_ALIASES.get(kind, kind), "nullable": nullable}

    # -- Derived helpers ----------------------------------------------------

    @computed_field  # type: ignore[misc]
    @property
    def go_type(self) -> str:
        """Go spelling used in generated declarations, e.g. ``*time.Time``."""
        base: str = "time.Time" if self.kind == FieldKind.TIMESTAMP else self.kind.value
        return f"*{base}" if self.nullable else base

    @computed_field  # type: ignore[misc]
    @property
    def apib_type(self) -> str:
        """MSON type name used in API Blueprint data structures."""
        if self.kind in _INTEGER_KINDS or self.kind in _FLOAT_KINDS:
            return "number"
        if self.kind == FieldKind.BOOL:
            return "boolean"
        return "string"

    @computed_field  # type: ignore[misc]
    @property
    def sample(self) -> str:
        """Example value shown in documentation."""
        if self.kind in _INTEGER_KINDS:
            return "1"
        if self.kind in _FLOAT_KINDS:
            return "1.5"
        if self.kind == FieldKind.BOOL:
            return "true"
        if self.kind == FieldKind.TIMESTAMP:
            return _SAMPLE_TIMESTAMP
        return "sample"

    @property
    def needs_time_import(self) -> bool:
        return self.kind == FieldKind.TIMESTAMP

    def __repr__(self) -> str:
        return f"<FieldType {self.go_type}>"


# ---------------------------------------------------------------------------
# Association
# ---------------------------------------------------------------------------


class Association(BaseModel):
    """
    Tagged variant over {none, belongs_to(target), has_many(target)}.

    ``target`` names another model in the same ``Detail``; it must be set
    exactly when ``kind`` is not ``none``.
    """

    model_config = _SHARED_CONFIG

    kind: AssociationKind = Field(
        default=AssociationKind.NONE, description="Relationship cardinality."
    )
    target: Optional[str] = Field(
        default=None, description="Name of the associated model."
    )

    @model_validator(mode="after")
    def _validate_target(self) -> "Association":
        if self.kind == AssociationKind.NONE and self.target is not None:
            raise ValueError(
                f"Association target '{self.target}' given without an association kind."
            )
        if self.kind != AssociationKind.NONE and not self.target:
            raise ValueError(
                f"Association of kind '{self.kind.value}' requires a target model."
            )
        return self

    @property
    def is_none(self) -> bool:
        return self.kind == AssociationKind.NONE

    @property
    def is_belongs_to(self) -> bool:
        return self.kind == AssociationKind.BELONGS_TO

    @property
    def is_has_many(self) -> bool:
        return self.kind == AssociationKind.HAS_MANY

    def __repr__(self) -> str:
        if self.is_none:
            return "<Association none>"
        return f"<Association {self.kind.value} → {self.target}>"


# ---------------------------------------------------------------------------
# Field
# ---------------------------------------------------------------------------


class FieldInfo(BaseModel):
    """
    One attribute of a model.

    ``tag`` is passed verbatim into the generated Go struct tag, after the
    ``json`` key derived from ``json_name``.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Exported Go identifier.")
    json_name: str = Field(..., min_length=1, description="Wire-format key.")
    type: FieldType = Field(..., description="Value type.")
    tag: str = Field(default="", description="Raw struct tag annotations.")
    association: Association = Field(
        default_factory=Association, description="Optional relationship."
    )

    @field_validator("tag")
    @classmethod
    def _no_backquote(cls, v: str) -> str:
        if "`" in v:
            raise ValueError(f"Tag {v!r} must not contain a back-quote.")
        return v.strip()

    @model_validator(mode="before")
    @classmethod
    def _null_association(cls, data: Any) -> Any:
        # Input files spell "no association" as null.
        if isinstance(data, dict) and data.get("association", "") is None:
            data = {k: v for k, v in data.items() if k != "association"}
        return data

    def __repr__(self) -> str:
        return f"<Field {self.name} {self.type.go_type} json={self.json_name}>"


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


class ModelInfo(BaseModel):
    """
    A named entity with an ordered list of fields.

    One ``ModelInfo`` drives one controller, one route fragment, one
    migration and one documentation page.  Field order is kept verbatim in
    every generated file.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Singular exported name, e.g. 'User'.")
    fields: List[FieldInfo] = Field(
        ..., min_length=1, description="Ordered fields (at least one required)."
    )

    @computed_field  # type: ignore[misc]
    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    @computed_field  # type: ignore[misc]
    @property
    def association_fields(self) -> List[str]:
        return [f.name for f in self.fields if not f.association.is_none]

    def get_field(self, name: str) -> Optional[FieldInfo]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    @model_validator(mode="after")
    def _validate_unique_names(self) -> "ModelInfo":
        names: List[str] = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            dupes: List[str] = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Model '{self.name}' has duplicate field names: {dupes}")
        json_names: List[str] = [f.json_name for f in self.fields]
        if len(json_names) != len(set(json_names)):
            dupes = sorted({n for n in json_names if json_names.count(n) > 1})
            raise ValueError(f"Model '{self.name}' has duplicate JSON names: {dupes}")
        return self

    @model_validator(mode="after")
    def _validate_identifier_field(self) -> "ModelInfo":
        if self.get_field("ID") is None:
            raise ValueError(f"Model '{self.name}' has no identifier field 'ID'.")
        return self

    def __repr__(self) -> str:
        return f"<Model {self.name} ({len(self.fields)} fields)>"


# ---------------------------------------------------------------------------
# Detail: top-level generation context
# ---------------------------------------------------------------------------


class Detail(BaseModel):
    """
    Project-level generation context.

    ``model`` is the model the per-model generators work on; ``models`` is
    the complete ordered set the aggregate generators iterate.  When
    ``import_dir`` is not supplied it is derived as ``vcs/user/project``.
    """

    model_config = _SHARED_CONFIG

    vcs: str = Field(..., min_length=1, description="Repository host, e.g. 'github.com'.")
    user: str = Field(..., min_length=1, description="Repository owner.")
    project: str = Field(..., min_length=1, description="Project / repository name.")
    import_dir: str = Field(default="", description="Go import path of the project.")
    model: Optional[ModelInfo] = Field(default=None, description="Current model.")
    models: List[ModelInfo] = Field(
        default_factory=list, description="All models, in output order."
    )

    @model_validator(mode="before")
    @classmethod
    def _derive_import_dir(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("import_dir"):
            parts: List[str] = [
                str(data.get(key) or "") for key in ("vcs", "user", "project")
            ]
            if all(parts):
                data = {**data, "import_dir": "/".join(parts)}
        return data

    def get_model(self, name: str) -> Optional[ModelInfo]:
        for m in self.models:
            if m.name == name:
                return m
        return None

    def for_model(self, model: ModelInfo) -> "Detail":
        """Copy of this detail focused on *model*; identity and ``models`` unchanged."""
        return self.model_copy(update={"model": model})

    def __repr__(self) -> str:
        return f"<Detail {self.import_dir} ({len(self.models)} models)>"


__all__: List[str] = [
    "FieldKind",
    "AssociationKind",
    "FieldType",
    "Association",
    "FieldInfo",
    "ModelInfo",
    "Detail",
]

logger.debug("apig.models loaded: %d public symbols.", len(__all__))
