# preparator/config.py
"""
Configuration loading and validation.

Responsibilities:
- Locate the configuration file (explicit path or <repo>/.preparator.yaml)
- Load YAML configuration
- Validate against JSON Schema
- Expose a normalised config object with defaults filled in

This module does NOT:
- interact with git
- run commands
- rewrite history
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import json
import yaml
from jsonschema import Draft202012Validator


CONFIG_FILENAME = ".preparator.yaml"

DEFAULT_BASE = "master"
DEFAULT_SHELL: Tuple[str, ...] = ("bash", "-eu", "-c")
DEFAULT_TEMP_BRANCH_PREFIX = "next-"
DEFAULT_UNTRACKED_FILES = "ask"


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class Config:
    base: str = DEFAULT_BASE
    shell: Tuple[str, ...] = DEFAULT_SHELL
    temp_branch_prefix: str = DEFAULT_TEMP_BRANCH_PREFIX
    untracked_files: str = DEFAULT_UNTRACKED_FILES  # ask | add | skip


def default_schema_path() -> Path:
    """
    Resolve schema.json relative to this module so the CLI works from any CWD.
    """
    return Path(__file__).resolve().parent / "schema.json"


def _load_schema(schema_path: Path) -> Dict[str, Any]:
    """
    Load JSON Schema from a schema.json file.
    """
    try:
        raw = schema_path.read_text(encoding="utf-8")
    except Exception as e:
        raise ConfigError(f"Failed to read schema file: {schema_path}") from e

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Schema is not valid JSON: {schema_path}") from e

    if not isinstance(parsed, dict):
        raise ConfigError(f"Schema must be a JSON object: {schema_path}")

    return parsed


def _load_yaml(config_path: Path) -> Dict[str, Any]:
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except Exception as e:
        raise ConfigError(f"Failed to load config: {config_path}") from e

    # an empty file means "all defaults"
    if raw is None:
        return {}

    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a mapping at top level: {config_path}")

    return raw


def find_config(repo_root: Path, explicit: Optional[Path] = None) -> Optional[Path]:
    if explicit is not None:
        return explicit

    candidate = repo_root / CONFIG_FILENAME
    if candidate.is_file():
        return candidate

    return None


def load_config(config_path: Optional[Path], schema_path: Optional[Path] = None) -> Config:
    """
    Load and validate configuration. A missing path yields the defaults.

    Raises ConfigError on validation failure.
    """
    if config_path is None:
        return Config()

    raw_config = _load_yaml(config_path)
    schema = _load_schema(schema_path or default_schema_path())

    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(raw_config), key=lambda e: list(e.path))

    if errors:
        messages = []
        for err in errors:
            path = ".".join(str(p) for p in err.path)
            prefix = path if path else "<root>"
            messages.append(f"{prefix}: {err.message}")
        raise ConfigError("Invalid configuration:\n" + "\n".join(messages))

    return Config(
        base=str(raw_config.get("base", DEFAULT_BASE)),
        shell=tuple(str(a) for a in raw_config.get("shell", DEFAULT_SHELL)),
        temp_branch_prefix=str(raw_config.get("temp_branch_prefix", DEFAULT_TEMP_BRANCH_PREFIX)),
        untracked_files=str(raw_config.get("untracked_files", DEFAULT_UNTRACKED_FILES)),
    )
