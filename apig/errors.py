# File: apig/errors.py
"""
apig - Error Kinds
===================
Every failure the generation pipeline can surface.  Generators raise the
first error they hit and the orchestrator re-raises it unchanged; mapping
to exit codes and user-facing messages is left to the caller (``cli.py``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence, Tuple, Union


class ApigError(Exception):
    """Base class for all generation errors."""


class TemplateError(ApigError):
    """A template failed to load or render against its context."""

    def __init__(self, template_id: str, model_name: str, message: str) -> None:
        self.template_id: str = template_id
        self.model_name: str = model_name
        self.message: str = message
        super().__init__(
            f"Failed to render template '{template_id}' "
            f"for model '{model_name}': {message}"
        )


class OutputError(ApigError):
    """A directory or file under the output tree could not be created or written."""

    def __init__(self, path: Union[str, Path], message: str) -> None:
        self.path: str = str(path)
        self.message: str = message
        super().__init__(f"{self.path}: {message}")


class InputError(ApigError):
    """The Detail handed to the core is malformed."""

    def __init__(self, message: str, issues: Sequence[Any] = ()) -> None:
        self.message: str = message
        self.issues: Tuple[Any, ...] = tuple(issues)
        if self.issues:
            details: str = "\n".join(f"  - {issue}" for issue in self.issues)
            message = f"{message}\n{details}"
        super().__init__(message)


__all__ = [
    "ApigError",
    "TemplateError",
    "OutputError",
    "InputError",
]
