"""
tests/test_cli.py
End-to-end tests for the ``apig`` command line.
"""

from __future__ import annotations

import logging
import pathlib
from typing import Any, Dict, Iterator, List

import pytest
import yaml

from apig import __version__
from apig.cli import (
    EXIT_INPUT_ERROR,
    EXIT_OUTPUT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    cli_main,
)
from conftest import read_golden


@pytest.fixture(autouse=True)
def _restore_apig_logger() -> Iterator[None]:
    apig_logger = logging.getLogger("apig")
    saved = (apig_logger.level, list(apig_logger.handlers), apig_logger.propagate)
    yield
    apig_logger.setLevel(saved[0])
    apig_logger.handlers[:] = saved[1]
    apig_logger.propagate = saved[2]


def _run(argv: List[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        cli_main(argv)
    return exc_info.value.code


def _write_yaml(path: pathlib.Path, data: Dict[str, Any]) -> pathlib.Path:
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path


# ===========================================================================
# gen
# ===========================================================================


class TestGen:
    def test_generates_project(
        self, user_yaml_path: pathlib.Path, out_dir: pathlib.Path, capsys
    ) -> None:
        code = _run(["gen", "-f", str(user_yaml_path), "-o", str(out_dir)])
        assert code == EXIT_SUCCESS
        assert (out_dir / "controllers" / "user.go").read_text(encoding="utf-8") == read_golden(
            "controllers/user.go"
        )
        assert "apig Generation Report" in capsys.readouterr().out

    def test_quiet(self, user_yaml_path: pathlib.Path, out_dir: pathlib.Path, capsys) -> None:
        assert _run(["gen", "-f", str(user_yaml_path), "-o", str(out_dir), "-q"]) == EXIT_SUCCESS
        assert capsys.readouterr().out == ""

    def test_identity_overrides(
        self, user_yaml_path: pathlib.Path, out_dir: pathlib.Path
    ) -> None:
        code = _run([
            "gen", "-f", str(user_yaml_path), "-o", str(out_dir), "-q",
            "--user", "acme", "--vcs", "gitlab.com",
        ])
        assert code == EXIT_SUCCESS
        main_go = (out_dir / "main.go").read_text(encoding="utf-8")
        assert '"gitlab.com/acme/api-server/db"' in main_go

    def test_project_from_output_basename(
        self, user_detail_dict: Dict[str, Any], tmp_path: pathlib.Path
    ) -> None:
        del user_detail_dict["project"]
        model_file = _write_yaml(tmp_path / "models.yaml", user_detail_dict)
        out = tmp_path / "my-service"
        assert _run(["gen", "-f", str(model_file), "-o", str(out), "-q"]) == EXIT_SUCCESS
        assert (out / ".gitignore").read_text(encoding="utf-8").startswith("/my-service\n")
        assert '"github.com/wantedly/my-service/server"' in (out / "main.go").read_text(
            encoding="utf-8"
        )

    def test_validate_only_writes_nothing(
        self, user_yaml_path: pathlib.Path, out_dir: pathlib.Path, capsys
    ) -> None:
        code = _run(["gen", "-f", str(user_yaml_path), "-o", str(out_dir), "--validate-only"])
        assert code == EXIT_SUCCESS
        assert "Model Validation Report" in capsys.readouterr().out
        assert not out_dir.exists()

    def test_validate_only_reports_errors(
        self, example_dict: Dict[str, Any], tmp_path: pathlib.Path, capsys
    ) -> None:
        example_dict["models"] = example_dict["models"][:1]
        model_file = _write_yaml(tmp_path / "models.yaml", example_dict)
        assert _run(["gen", "-f", str(model_file), "--validate-only"]) == EXIT_VALIDATION_ERROR
        assert "UNKNOWN_ASSOCIATION_TARGET" in capsys.readouterr().out


# ===========================================================================
# Failures and exit codes
# ===========================================================================


class TestExitCodes:
    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        assert _run(["gen", "-f", str(tmp_path / "absent.yaml"), "-q"]) == EXIT_INPUT_ERROR

    def test_unparsable_file(self, tmp_path: pathlib.Path) -> None:
        bad = tmp_path / "bad.yaml"
        bad.write_text("models: [unclosed\n", encoding="utf-8")
        assert _run(["gen", "-f", str(bad), "-q"]) == EXIT_INPUT_ERROR

    def test_malformed_description(
        self, user_detail_dict: Dict[str, Any], tmp_path: pathlib.Path
    ) -> None:
        user_detail_dict["models"][0]["fields"][0]["type"] = "complex128"
        model_file = _write_yaml(tmp_path / "models.yaml", user_detail_dict)
        assert _run(["gen", "-f", str(model_file), "-q"]) == EXIT_VALIDATION_ERROR

    def test_invalid_description_writes_nothing(
        self, example_dict: Dict[str, Any], tmp_path: pathlib.Path
    ) -> None:
        example_dict["models"] = example_dict["models"][:1]
        model_file = _write_yaml(tmp_path / "models.yaml", example_dict)
        out = tmp_path / "out"
        assert _run(["gen", "-f", str(model_file), "-o", str(out), "-q"]) == EXIT_VALIDATION_ERROR
        assert not out.exists()

    def test_unwritable_output(self, user_yaml_path: pathlib.Path, tmp_path: pathlib.Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        code = _run(["gen", "-f", str(user_yaml_path), "-o", str(blocker / "out"), "-q"])
        assert code == EXIT_OUTPUT_ERROR

    def test_missing_command(self) -> None:
        assert _run([]) == EXIT_INPUT_ERROR

    def test_missing_file_option(self) -> None:
        assert _run(["gen"]) == EXIT_INPUT_ERROR

    def test_version(self, capsys) -> None:
        assert _run(["--version"]) == EXIT_SUCCESS
        assert capsys.readouterr().out.strip() == f"apig v{__version__}"
