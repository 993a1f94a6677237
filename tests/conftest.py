"""
tests/conftest.py
Shared fixtures for the apig test suite.

No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import pathlib
from typing import Any, Dict

import pytest
import yaml

from apig.models import Detail, ModelInfo
from apig.templates import TemplateRenderer


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
TESTDATA_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent / "testdata"
MODELS_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "models_example.yaml"


def read_golden(relative_path: str) -> str:
    """Return the expected content of a golden fixture."""
    return (TESTDATA_DIR / relative_path).read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Raw input fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_example_dict() -> Dict[str, Any]:
    """Load the reference models_example.yaml once per session."""
    assert MODELS_EXAMPLE_PATH.exists(), (
        f"Reference model file not found at {MODELS_EXAMPLE_PATH}."
    )
    with open(MODELS_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def example_dict(raw_example_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_example_dict)


@pytest.fixture()
def user_model_dict() -> Dict[str, Any]:
    """The User model the golden fixtures were rendered from."""
    return {
        "name": "User",
        "fields": [
            {"name": "ID", "json_name": "id", "type": "uint"},
            {"name": "Name", "json_name": "name", "type": "string"},
            {"name": "CreatedAt", "json_name": "created_at", "type": "*time.Time"},
            {"name": "UpdatedAt", "json_name": "updated_at", "type": "*time.Time"},
        ],
    }


@pytest.fixture()
def user_detail_dict(user_model_dict: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "vcs": "github.com",
        "user": "wantedly",
        "project": "api-server",
        "models": [user_model_dict],
    }


@pytest.fixture()
def user_yaml_path(user_detail_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the User description to a temporary YAML file and return its path."""
    path = tmp_path / "models.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(user_detail_dict, fh, default_flow_style=False, sort_keys=False)
    return path


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def user_model(user_model_dict: Dict[str, Any]) -> ModelInfo:
    return ModelInfo.model_validate(user_model_dict)


@pytest.fixture()
def user_detail(user_detail_dict: Dict[str, Any]) -> Detail:
    """Detail for github.com/wantedly/api-server with the User model selected."""
    detail = Detail.model_validate(user_detail_dict)
    return detail.for_model(detail.models[0])


@pytest.fixture()
def example_detail(example_dict: Dict[str, Any]) -> Detail:
    """User / Profile / Email with belongs_to and has_many associations."""
    return Detail.model_validate(example_dict)


@pytest.fixture()
def category_model() -> ModelInfo:
    return ModelInfo.model_validate({
        "name": "Category",
        "fields": [
            {"name": "ID", "json_name": "id", "type": "uint"},
            {"name": "Title", "json_name": "title", "type": "string"},
        ],
    })


@pytest.fixture(scope="session")
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


@pytest.fixture()
def out_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    return tmp_path / "api-server"
