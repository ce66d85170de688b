# preparator/validation.py
"""
Semantic validation of configuration.

Responsibilities:
- Validate constraints the JSON Schema cannot express
- Produce actionable errors with field path context

This module does NOT:
- load YAML files
- load JSON Schema files
- interact with git
"""

from __future__ import annotations

import re

from preparator.config import Config


class ValidationError(RuntimeError):
    """
    Raised when configuration is structurally valid but semantically invalid.

    Attributes:
        path: dotted path of the failing field, for example shell.0
    """

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


# Characters git refuses in ref names (see git-check-ref-format)
_BAD_REF_CHARS = re.compile(r"[\x00-\x20\x7f~^:?*\[\\]")


def validate_config(cfg: Config) -> Config:
    """
    Validate a loaded configuration and return it unchanged.

    Enforces:
    - base is not blank
    - shell has a program and no empty arguments
    - temp_branch_prefix can start a git ref name
    """
    if not cfg.base.strip():
        raise ValidationError("base", "base must not be blank")

    if not cfg.shell:
        raise ValidationError("shell", "shell must name a program")

    for i, arg in enumerate(cfg.shell):
        if not arg:
            raise ValidationError(f"shell.{i}", "shell arguments must not be empty")

    _validate_ref_prefix("temp_branch_prefix", cfg.temp_branch_prefix)

    return cfg


def _validate_ref_prefix(path: str, prefix: str) -> None:
    if _BAD_REF_CHARS.search(prefix):
        raise ValidationError(path, f"invalid character in branch prefix: {prefix!r}")

    if ".." in prefix or "@{" in prefix:
        raise ValidationError(path, f"branch prefix must not contain '..' or '@{{': {prefix!r}")

    if prefix.startswith(("-", "/", ".")):
        raise ValidationError(path, f"branch prefix must not start with '-', '/' or '.': {prefix!r}")
